"""
Property-based tests for CPE credit rounding and computation.

Tests bounds and quarter granularity of credits using Hypothesis.
"""
from datetime import datetime, timedelta

from hypothesis import given, strategies as st, example

from cpekit.credit import compute_credit, minutes_to_cpe
from cpekit.types import Attendee, MeetingTimestamps, TimelineEntry

START = datetime(2021, 6, 9, 9, 0, 0)
TIMESTAMPS = MeetingTimestamps(
    start=START,
    end=START + timedelta(hours=2),
    bus_start=START + timedelta(minutes=10),
    bus_end=START + timedelta(minutes=110),
)


@given(
    st.floats(min_value=-600, max_value=10000, allow_nan=False, allow_infinity=False),
    st.integers(min_value=0, max_value=8),
)
@example(97.0, 2)
@example(239.0, 2)
def test_credit_within_bounds_and_quarters(minutes, max_cpe):
    cpe = minutes_to_cpe(minutes, max_cpe)

    assert 0.0 <= cpe <= max_cpe
    assert (cpe * 4) == int(cpe * 4)


@given(
    st.floats(min_value=0, max_value=600, allow_nan=False),
    st.floats(min_value=0, max_value=600, allow_nan=False),
)
def test_credit_is_monotonic(a, b):
    low, high = sorted((a, b))

    assert minutes_to_cpe(low, 4) <= minutes_to_cpe(high, 4)


@st.composite
def attendees(draw):
    """Attendees with entries anywhere from an hour before to an hour after the meeting."""
    entries = []
    for _ in range(draw(st.integers(min_value=1, max_value=5))):
        join = START + timedelta(minutes=draw(st.integers(min_value=-60, max_value=180)))
        leave = join + timedelta(minutes=draw(st.integers(min_value=1, max_value=180)))
        entries.append(TimelineEntry(["attendee"], join, leave))
    return Attendee(email="prop@example.com", timeline=entries)


@given(attendees(), st.integers(min_value=1, max_value=4), st.sampled_from(["reset", "accumulate"]))
def test_computed_credit_within_bounds(attendee, max_cpe, mode):
    result = compute_credit(attendee, TIMESTAMPS, max_cpe, mode)

    assert 0.0 <= result.cpe <= max_cpe
    assert attendee.cpe == result.cpe
    assert attendee.cpe_minutes == f"{result.minutes:.3f}"
    if result.full_attendance:
        assert result.cpe == max_cpe
