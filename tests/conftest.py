"""
CPEKit Test Configuration and Shared Fixtures

Provides pytest fixtures for example data paths, small inline attendance
exports and meeting timestamps used across the CPEKit test suite.

Example usage:
    def test_parse_example(example_report_path):
        text = read_report_file(example_report_path)
"""

import logging

import pytest
from datetime import datetime, timedelta
from pathlib import Path

from cpekit.models import CpeConfig
from cpekit.types import MeetingTimestamps, TimelineEntry


TWO_SECTION_REPORT = """\
Host Details,
Attended,User Name (Original Name),Email,Join Time,Leave Time,Time in Session (minutes)
Yes,Meeting Host,host@example.org,2021-06-09 08:50:00,2021-06-09 11:05:00,135
Attendee Details,
Attended,First Name,Last Name,Email,Join Time,Leave Time,Time in Session (minutes),(ISC)2 Certification:
Yes,Rae,Connor,rae@example.com,2021-06-09 09:20:00,2021-06-09 10:00:00,40,CISSP 246810
Yes,Rae,Connor,rae@example.com,2021-06-09 10:00:30,2021-06-09 10:37:00,37,CISSP 246810
Yes,Sam,Solo,sam@example.com,2021-06-09 09:30:00,2021-06-09 10:00:00,30,135791
No,Nia,Absent,nia@example.com,,,,CISSP 111111
"""


@pytest.fixture(autouse=True)
def reset_cpekit_logger():
    """Undo handler setup done by CLI runs so caplog sees package records."""
    yield
    logger = logging.getLogger("cpekit")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def examples_dir():
    """
    Provide path to the examples directory.

    Returns:
        Path: Path to examples directory
    """
    return Path(__file__).parent.parent / "examples"


@pytest.fixture
def example_report_path(examples_dir):
    """Path to the sample webinar attendance export."""
    return examples_dir / "zoom_attendee_report.csv"


@pytest.fixture
def example_config_path(examples_dir):
    """Path to the sample YAML meeting file."""
    return examples_dir / "cpe-config-2021-04.yaml"


@pytest.fixture
def two_section_report():
    """
    Host and attendee tables only, no summary section.

    rae@example.com reconnects after 30 seconds.
    """
    return TWO_SECTION_REPORT


@pytest.fixture
def morning_config():
    """Scheduled 09:00-11:00 meeting with default grace period and max CPE."""
    return CpeConfig(start="2021-06-09 09:00:00", title="June workshop")


@pytest.fixture
def meeting_timestamps():
    """
    Timestamps for a 09:00-11:00 meeting, 10 minute grace, business ends 10:45.
    """
    start = datetime(2021, 6, 9, 9, 0, 0)
    return MeetingTimestamps(
        start=start,
        end=start + timedelta(hours=2),
        bus_start=start + timedelta(minutes=10),
        bus_end=datetime(2021, 6, 9, 10, 45, 0),
    )


@pytest.fixture
def make_entry():
    """Factory for timeline entries from HH:MM:SS strings on the meeting day."""
    def _make(join, leave, role="attendee", minutes=None):
        join_time = datetime.strptime(f"2021-06-09 {join}", "%Y-%m-%d %H:%M:%S")
        leave_time = datetime.strptime(f"2021-06-09 {leave}", "%Y-%m-%d %H:%M:%S")
        if minutes is None:
            minutes = round((leave_time - join_time).total_seconds() / 60.0)
        return TimelineEntry([role], join_time, leave_time, float(minutes))
    return _make
