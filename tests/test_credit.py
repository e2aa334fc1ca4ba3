"""
CPEKit Credit Calculator Tests

Tests timestamp resolution and CPE computation:
- Defaults for scheduled end and business end
- Stream window from the export's summary table
- Quarter rounding with bias and capping
- Full-span short circuit, start/end/neither branches
- Late-join reset versus accumulate

Example usage:
    pytest tests/test_credit.py -v
"""

import pytest
from datetime import datetime

from cpekit.credit import compute_credit, minutes_to_cpe, resolve_timestamps
from cpekit.errors import ConfigurationError, TableLookupError
from cpekit.models import CpeConfig
from cpekit.tables import parse_report
from cpekit.types import Attendee


SUMMARY = """\
Attendee Report,
Report Generated:,"Jun 10, 2021 08:00 AM"
Topic,Actual Start Time,Actual Duration (minutes)
Workshop,"Jun 9, 2021 08:55 AM",130
"""


class TestResolveTimestamps:
    """Test derivation of the meeting's business window."""

    def test_defaults_from_start(self):
        ts = resolve_timestamps(CpeConfig(start="2021-06-09 09:00:00"))

        assert ts.start == datetime(2021, 6, 9, 9, 0, 0)
        assert ts.bus_start == datetime(2021, 6, 9, 9, 10, 0)
        assert ts.end == datetime(2021, 6, 9, 11, 0, 0)
        assert ts.bus_end == ts.end

    def test_end_follows_max_cpe(self):
        ts = resolve_timestamps(CpeConfig(start="2021-06-09 09:00:00", max_cpe=3, start_grace_period=5))

        assert ts.end == datetime(2021, 6, 9, 12, 0, 0)
        assert ts.bus_start == datetime(2021, 6, 9, 9, 5, 0)

    def test_explicit_end_and_business_end(self):
        ts = resolve_timestamps(CpeConfig(
            start="2021-06-09 09:00:00",
            end="June 9, 2021 10:30:00",
            bus_end="2021-06-09 10:20:00",
        ))

        assert ts.end == datetime(2021, 6, 9, 10, 30, 0)
        assert ts.bus_end == datetime(2021, 6, 9, 10, 20, 0)

    def test_stream_window_from_summary_table(self):
        ts = resolve_timestamps(CpeConfig(start="2021-06-09 09:00:00"), parse_report(SUMMARY))

        assert ts.stream_start == datetime(2021, 6, 9, 8, 55, 0)
        assert ts.stream_end == datetime(2021, 6, 9, 11, 5, 0)
        assert ts.generated == datetime(2021, 6, 10, 8, 0, 0)

    def test_start_defaults_to_stream_start(self):
        ts = resolve_timestamps(CpeConfig(), parse_report(SUMMARY))

        assert ts.start == datetime(2021, 6, 9, 8, 55, 0)
        assert ts.end == datetime(2021, 6, 9, 10, 55, 0)

    def test_no_start_and_no_summary_table(self, two_section_report):
        with pytest.raises(TableLookupError) as exc_info:
            resolve_timestamps(CpeConfig(), parse_report(two_section_report))
        assert exc_info.value.table == "attendee report"

    def test_no_start_and_no_report(self):
        with pytest.raises(ConfigurationError):
            resolve_timestamps(CpeConfig())

    def test_configured_start_without_summary_table(self, two_section_report):
        ts = resolve_timestamps(CpeConfig(start="2021-06-09 09:00:00"), parse_report(two_section_report))

        assert ts.stream_start is None
        assert ts.start == datetime(2021, 6, 9, 9, 0, 0)


class TestMinutesToCpe:
    """Test quarter-CPE rounding and capping."""

    @pytest.mark.parametrize("minutes,expected", [
        (0, 0.0),
        (6, 0.0),
        (8, 0.0),
        (9, 0.25),
        (15, 0.25),
        (30, 0.5),
        (60, 1.0),
        (97, 1.5),
        (105, 1.75),
        (120, 2.0),
    ])
    def test_rounding(self, minutes, expected):
        assert minutes_to_cpe(minutes, 2) == expected

    def test_capped_at_max(self):
        assert minutes_to_cpe(239, 2) == 2.0
        assert minutes_to_cpe(500, 3) == 3.0

    def test_never_negative(self):
        assert minutes_to_cpe(-30, 2) == 0.0


class TestComputeCredit:
    """Test per-attendee credit computation against the business window."""

    def test_full_span_short_circuit(self, meeting_timestamps, make_entry):
        attendee = Attendee(email="a@example.com", timeline=[
            make_entry("09:10:00", "10:45:00"),
        ])
        result = compute_credit(attendee, meeting_timestamps, max_cpe=2)

        assert result.cpe == 2.0
        assert result.full_attendance is True
        assert attendee.cpe == 2.0
        assert attendee.cpe_minutes == "120.000"

    def test_full_span_ignores_other_entries(self, meeting_timestamps, make_entry):
        attendee = Attendee(email="a@example.com", timeline=[
            make_entry("09:30:00", "09:35:00"),
            make_entry("09:00:00", "11:00:00"),
            make_entry("11:30:00", "11:45:00"),
        ])

        assert compute_credit(attendee, meeting_timestamps, max_cpe=2).cpe == 2.0

    def test_present_at_start_counts_from_scheduled_start(self, meeting_timestamps, make_entry):
        attendee = Attendee(email="a@example.com", timeline=[make_entry("08:50:00", "10:37:00")])
        result = compute_credit(attendee, meeting_timestamps, max_cpe=2)

        assert result.minutes == pytest.approx(97.0)
        assert result.cpe == 1.5
        assert attendee.cpe_minutes == "97.000"

    def test_neither_boundary_uses_join_to_leave(self, meeting_timestamps, make_entry):
        attendee = Attendee(email="a@example.com", timeline=[
            make_entry("09:20:00", "09:50:00"),
            make_entry("10:00:00", "10:30:00"),
        ])
        result = compute_credit(attendee, meeting_timestamps, max_cpe=2)

        assert result.minutes == pytest.approx(60.0)
        assert result.cpe == 1.0

    def test_late_join_resets_total(self, meeting_timestamps, make_entry):
        attendee = Attendee(email="a@example.com", timeline=[
            make_entry("09:00:00", "09:30:00"),
            make_entry("10:00:00", "10:50:00"),
        ])
        result = compute_credit(attendee, meeting_timestamps, max_cpe=2)

        # second entry alone: 11:00 - 10:00
        assert result.minutes == pytest.approx(60.0)
        assert result.cpe == 1.0

    def test_late_join_accumulate_mode(self, meeting_timestamps, make_entry):
        attendee = Attendee(email="a@example.com", timeline=[
            make_entry("09:00:00", "09:30:00"),
            make_entry("10:00:00", "10:50:00"),
        ])
        result = compute_credit(attendee, meeting_timestamps, max_cpe=2, late_join_mode="accumulate")

        assert result.minutes == pytest.approx(90.0)
        assert result.cpe == 1.5

    def test_cap_applies(self, meeting_timestamps, make_entry):
        attendee = Attendee(email="a@example.com", timeline=[
            make_entry("09:00:00", "10:40:00"),
            make_entry("10:41:00", "10:44:00"),
        ])
        result = compute_credit(attendee, meeting_timestamps, max_cpe=1)

        assert result.cpe == 1.0
        assert result.minutes == pytest.approx(103.0)

    def test_unknown_late_join_mode_rejected(self, meeting_timestamps, make_entry):
        attendee = Attendee(email="a@example.com", timeline=[make_entry("10:00:00", "10:50:00")])

        with pytest.raises(ValueError, match="late_join_mode"):
            compute_credit(attendee, meeting_timestamps, max_cpe=2, late_join_mode="sum")
        assert attendee.cpe is None

    def test_empty_timeline_returns_none(self, meeting_timestamps):
        attendee = Attendee(email="host@example.org")

        assert compute_credit(attendee, meeting_timestamps, max_cpe=2) is None
        assert attendee.cpe is None
        assert attendee.cpe_minutes is None
