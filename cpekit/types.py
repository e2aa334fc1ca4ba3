"""
CPEKit Core Types

Dataclass definitions for the per-attendee working state: attendance
timeline entries, attendees and the meeting's resolved timestamps.

Example usage:
    from cpekit.types import Attendee, TimelineEntry

    attendee = Attendee(email="pat@example.com", last_name="Doe")
    attendee.timeline.append(TimelineEntry(["attendee"], join, leave, 95.0))
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

ROLE_SEPARATOR = "/"


@dataclass
class TimelineEntry:
    """
    One continuous attendance interval for one attendee.

    ``roles`` grows when the reconciler merges a following entry into this
    one; it is serialized joined with "/" (e.g. "attendee/panelist").
    """
    roles: List[str]
    join_time: datetime
    leave_time: datetime
    session_minutes: float = 0.0

    @property
    def role(self) -> str:
        return ROLE_SEPARATOR.join(self.roles)

    @property
    def duration_minutes(self) -> float:
        return (self.leave_time - self.join_time).total_seconds() / 60.0

    def absorb(self, other: "TimelineEntry") -> None:
        """Extend this entry with the entry that immediately follows it."""
        self.roles.extend(other.roles)
        self.leave_time = other.leave_time
        self.session_minutes += other.session_minutes


@dataclass
class Attendee:
    """
    Attendance and credit state for one person, keyed by email.

    ``preset_cpe`` comes from a seed record and bypasses computation.
    ``cpe`` and ``cpe_minutes`` are filled by the credit calculator.
    """
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    isc2: Optional[str] = None
    timeline: List[TimelineEntry] = field(default_factory=list)
    preset_cpe: Optional[float] = None
    cpe: Optional[float] = None
    cpe_minutes: Optional[str] = None

    def fill_missing(self, **values: Optional[str]) -> None:
        """Set fields that are still empty; existing values always win."""
        for name, value in values.items():
            if value is None or value == "":
                continue
            if getattr(self, name) in (None, ""):
                setattr(self, name, value)

    @property
    def display_name(self) -> str:
        return f"{self.last_name or ''}, {self.first_name or ''}"


@dataclass(frozen=True)
class MeetingTimestamps:
    """
    Resolved instants bounding the meeting.

    stream_start/stream_end come from the export's summary section when it
    is present. bus_start is start plus the grace period; bus_end is the
    end-of-business cutoff used for full-attendance checks.
    """
    start: datetime
    end: datetime
    bus_start: datetime
    bus_end: datetime
    stream_start: Optional[datetime] = None
    stream_end: Optional[datetime] = None
    generated: Optional[datetime] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            'stream_start': self.stream_start,
            'stream_end': self.stream_end,
            'start': self.start,
            'end': self.end,
            'bus_start': self.bus_start,
            'bus_end': self.bus_end,
            'generated': self.generated,
        }
