"""
CPEKit Credit Calculator

Resolves the meeting's business window and converts each attendee's
reconciled timeline into CPE credit, rounded to the nearest quarter CPE
and capped at the configured maximum.

Example usage:
    from cpekit.credit import resolve_timestamps, compute_credit

    timestamps = resolve_timestamps(config, report)
    result = compute_credit(attendee, timestamps, max_cpe=config.max_cpe)
    if result:
        print(f"{attendee.email}: {result.cpe} CPE ({result.minutes:.1f} min)")
"""

import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Literal, Optional

from cpekit.dates import parse_date
from cpekit.errors import ConfigurationError, ReportParseError
from cpekit.models import CpeConfig
from cpekit.tables import AttendanceReport
from cpekit.types import Attendee, MeetingTimestamps

logger = logging.getLogger(__name__)

SUMMARY_TABLE = "attendee report"
ROUNDING_BIAS = 0.45
QUARTERS_PER_HOUR = 4
LATE_JOIN_MODES = ("reset", "accumulate")


@dataclass
class CreditResult:
    """Credit for one attendee and the qualifying minutes behind it."""
    cpe: float
    minutes: float
    full_attendance: bool = False

    @property
    def minutes_text(self) -> str:
        return f"{self.minutes:.3f}"


def _stream_window(report: AttendanceReport):
    actual_start = report.fetch(SUMMARY_TABLE, 0, "actual start time")
    duration = report.fetch(SUMMARY_TABLE, 0, "actual duration (minutes)")
    stream_start = parse_date(actual_start)
    try:
        stream_end = stream_start + timedelta(minutes=float(duration or 0))
    except ValueError as e:
        raise ReportParseError(f"invalid actual duration {duration!r}", table=SUMMARY_TABLE) from e
    return stream_start, stream_end


def resolve_timestamps(config: CpeConfig, report: Optional[AttendanceReport] = None) -> MeetingTimestamps:
    """
    Resolve the meeting's start, end and business window.

    The scheduled start defaults to the stream start from the export's
    summary table. The scheduled end defaults to start + max_cpe hours and
    business end defaults to the scheduled end.

    Args:
        config: Run configuration
        report: Parsed export, used for the stream window and report timestamp

    Returns:
        MeetingTimestamps

    Raises:
        TableLookupError: If start is not configured and the export has no
            usable summary table
        ConfigurationError: If start is not configured and no report is given
        DateParseError: If a date cannot be parsed
    """
    stream_start = stream_end = None
    if report is not None and (config.start is None or report.has_table(SUMMARY_TABLE)):
        stream_start, stream_end = _stream_window(report)

    if config.start is not None:
        start = parse_date(config.start)
    elif stream_start is not None:
        logger.warning("No scheduled start configured, using stream start time")
        start = stream_start
    else:
        raise ConfigurationError("scheduled start not configured and no report to read it from")

    bus_start = start + timedelta(minutes=config.start_grace_period)
    end = parse_date(config.end) if config.end is not None else start + timedelta(hours=config.max_cpe)
    bus_end = parse_date(config.bus_end) if config.bus_end is not None else end

    timestamps = MeetingTimestamps(
        start=start,
        end=end,
        bus_start=bus_start,
        bus_end=bus_end,
        stream_start=stream_start,
        stream_end=stream_end,
        generated=report.generated if report is not None else None,
    )
    for name, value in timestamps.as_dict().items():
        logger.debug(f"timestamp {name}: {value}")
    return timestamps


def minutes_to_cpe(minutes: float, max_cpe: float) -> float:
    """
    Round minutes to the nearest quarter CPE and cap at max_cpe.

    The 0.45 bias rounds a quarter up once 45% of it is attended.
    """
    cpe = math.floor(minutes / 60.0 * QUARTERS_PER_HOUR + ROUNDING_BIAS) / QUARTERS_PER_HOUR
    return min(max(cpe, 0.0), float(max_cpe))


def compute_credit(
    attendee: Attendee,
    timestamps: MeetingTimestamps,
    max_cpe: float,
    late_join_mode: Literal["reset", "accumulate"] = "reset",
) -> Optional[CreditResult]:
    """
    Compute CPE credit for an attendee with a reconciled timeline.

    Each entry is classified by whether it covers business start and
    business end:

    - both: the attendee was present for the whole business window, so
      the maximum credit is returned immediately
    - start only: minutes from scheduled start to leave are added
    - end only: minutes from join to scheduled end replace the running total
      (``late_join_mode="accumulate"`` adds them instead)
    - neither: minutes from join to leave are added

    Sets ``attendee.cpe`` and ``attendee.cpe_minutes``.

    Args:
        attendee: Attendee whose timeline was reconciled
        timestamps: Resolved meeting timestamps
        max_cpe: Credit cap
        late_join_mode: "reset" or "accumulate"

    Returns:
        CreditResult, or None if the attendee has no timeline entries

    Raises:
        ValueError: If late_join_mode is not "reset" or "accumulate"
    """
    if late_join_mode not in LATE_JOIN_MODES:
        raise ValueError(f"unknown late_join_mode {late_join_mode!r}, expected one of {LATE_JOIN_MODES}")
    if not attendee.timeline:
        logger.debug(f"No timeline for {attendee.email}, credit not computed")
        return None

    minutes = 0.0
    for entry in attendee.timeline:
        at_start = entry.join_time <= timestamps.bus_start
        at_end = entry.leave_time >= timestamps.bus_end

        if at_start and at_end:
            window = (timestamps.end - timestamps.start).total_seconds() / 60.0
            result = CreditResult(cpe=float(max_cpe), minutes=window, full_attendance=True)
            break
        if at_start:
            minutes += (entry.leave_time - timestamps.start).total_seconds() / 60.0
        elif at_end:
            late = (timestamps.end - entry.join_time).total_seconds() / 60.0
            if late_join_mode == "accumulate":
                minutes += late
            else:
                minutes = late
        else:
            minutes += entry.duration_minutes
    else:
        result = CreditResult(cpe=minutes_to_cpe(minutes, max_cpe), minutes=minutes)

    attendee.cpe = result.cpe
    attendee.cpe_minutes = result.minutes_text
    logger.debug(
        f"{attendee.email}: {result.cpe} CPE from {result.minutes_text} minutes",
        extra={'email': attendee.email, 'entries': len(attendee.timeline)}
    )
    return result
