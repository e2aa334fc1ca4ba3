"""
CPEKit Attendance Timelines

Collects per-attendee attendance intervals from the host, attendee and
panelist tables of an export, then merges intervals that are separated by
less than a minute. Such gaps come from reconnects and from promoting an
attendee to panelist, which the webinar platform records as a leave and a
join 0-1 seconds apart.

Example usage:
    from cpekit.timeline import build_timelines, reconcile_timeline

    attendees = build_timelines(report, attendees)
    for attendee in attendees.values():
        reconcile_timeline(attendee.timeline)
"""

import logging
import re
from typing import Dict, List, Optional, Sequence

from cpekit.dates import parse_date
from cpekit.tables import AttendanceReport, Table
from cpekit.types import Attendee, TimelineEntry

logger = logging.getLogger(__name__)

ROLE_TABLES = ("host details", "attendee details", "panelist details")

# Entries closer together than this are one continuous presence
MERGE_TOLERANCE_S = 60

AFFIRMATIVE_VALUES = frozenset(["yes", "y", "true", "1"])

# Registration survey field names seen for the certification number
CERT_ID_COLUMNS = (
    "(isc)2 certification:",
    "isc2 certification",
    "(isc)2 member #",
    "isc2 member number",
)

JOIN_COLUMN = "join time"
LEAVE_COLUMN = "leave time"
MINUTES_COLUMN = "time in session (minutes)"
REQUIRED_COLUMNS = ("attended", "email", JOIN_COLUMN, LEAVE_COLUMN, MINUTES_COLUMN)

_ROLE_RE = re.compile(r'^(\w+) details')


def role_for_table(name: str) -> str:
    """Role tag of a role table: "attendee details" -> "attendee"."""
    match = _ROLE_RE.match(name)
    return match.group(1) if match else name


def is_affirmative(value: Optional[str]) -> bool:
    return value is not None and value.strip().casefold() in AFFIRMATIVE_VALUES


def _parse_minutes(value: Optional[str]) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Non-numeric session minutes {value!r}, using 0")
        return 0.0


def _cert_id(table: Table, row: Sequence[Optional[str]]) -> Optional[str]:
    for column in CERT_ID_COLUMNS:
        value = table.get(row, column)
        if value:
            return value
    return None


def build_timelines(report: AttendanceReport, attendees: Dict[str, Attendee]) -> Dict[str, Attendee]:
    """
    Add one timeline entry per attended row of each role table.

    Attendee records already in ``attendees`` (seed records) keep their
    fields; scanning only fills fields that are still empty. Role tables
    missing from the export are skipped.

    Args:
        report: Parsed attendance export
        attendees: Attendee map keyed by email, mutated in place

    Returns:
        The same attendee map

    Raises:
        TableLookupError: If a role table lacks a required column
        DateParseError: If a join or leave time cannot be parsed
    """
    for table_name in ROLE_TABLES:
        if not report.has_table(table_name):
            logger.debug(f"No '{table_name}' table in report")
            continue
        table = report.get_table(table_name)
        role = role_for_table(table_name)
        for column in REQUIRED_COLUMNS:
            table.column_index(column)

        added = 0
        for row in table.rows:
            if not is_affirmative(table.get(row, "attended")):
                continue
            email = table.get(row, "email")
            if not email:
                continue

            attendee = attendees.get(email)
            if attendee is None:
                attendee = Attendee(email=email)
                attendees[email] = attendee
            attendee.fill_missing(
                first_name=table.get(row, "first name"),
                last_name=table.get(row, "last name"),
                isc2=_cert_id(table, row),
            )

            attendee.timeline.append(TimelineEntry(
                roles=[role],
                join_time=parse_date(table.get(row, JOIN_COLUMN)),
                leave_time=parse_date(table.get(row, LEAVE_COLUMN)),
                session_minutes=_parse_minutes(table.get(row, MINUTES_COLUMN)),
            ))
            added += 1
        logger.debug(f"Collected {added} timeline entries from '{table_name}'")

    return attendees


def reconcile_timeline(timeline: List[TimelineEntry]) -> List[TimelineEntry]:
    """
    Merge adjacent timeline entries less than a minute apart.

    Works on discovery order (role table order, each table chronological),
    not on sorted times. After a merge the same position is examined again
    so chains of three or more entries collapse into one. Entries that
    overlap (negative gap) are left alone.

    Args:
        timeline: Entries of one attendee, modified in place

    Returns:
        The same list
    """
    index = 0
    while index < len(timeline) - 1:
        current, following = timeline[index], timeline[index + 1]
        gap = (following.join_time - current.leave_time).total_seconds()
        if 0 <= gap < MERGE_TOLERANCE_S:
            logger.debug(f"Merging {current.role} and {following.role} entries ({gap:.0f}s gap)")
            current.absorb(following)
            del timeline[index + 1]
        else:
            index += 1
    return timeline
