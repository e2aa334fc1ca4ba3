"""
CPEKit Processing Pipeline

Runs an attendance export through every stage: table parsing, timestamp
resolution, timeline collection and reconciliation, credit computation and
report assembly. All working state is created per call and passed between
stages explicitly.

Example usage:
    from cpekit.config import build_config
    from cpekit.pipeline import process_attendance_report
    from cpekit.tables import read_report_file

    config = build_config({"start": "2021-04-14 19:00:00", "title": "April meeting"})
    report = process_attendance_report(read_report_file("report.csv"), config)
    for row in report.rows():
        print(row)
"""

import logging
from typing import Dict, Iterable, Mapping, Optional, Union

from cpekit.credit import compute_credit, resolve_timestamps
from cpekit.models import AttendeeSeed, CpeConfig, CpeReport
from cpekit.report import assemble_report
from cpekit.tables import parse_report
from cpekit.timeline import build_timelines, reconcile_timeline
from cpekit.types import Attendee

logger = logging.getLogger(__name__)


def seed_attendees(seeds: Optional[Mapping[str, AttendeeSeed]]) -> Dict[str, Attendee]:
    """Create the initial attendee map from manually entered records."""
    attendees: Dict[str, Attendee] = {}
    for email, seed in (seeds or {}).items():
        if isinstance(seed, dict):
            seed = AttendeeSeed(**seed)
        attendees[email] = Attendee(
            email=email,
            first_name=seed.first_name,
            last_name=seed.last_name,
            isc2=seed.isc2,
            preset_cpe=seed.cpe,
        )
    return attendees


def process_attendance_report(
    text: Union[str, Iterable[str]],
    config: CpeConfig,
    seeds: Optional[Mapping[str, AttendeeSeed]] = None,
) -> CpeReport:
    """
    Compute the CPE report for one attendance export.

    Args:
        text: Raw export text (or lines)
        config: Resolved run configuration
        seeds: Manually entered attendee records keyed by email

    Returns:
        CpeReport with ordered rows and skipped attendees

    Raises:
        CpeKitError: Any structural, lookup or date error in the export
    """
    report = parse_report(text)
    timestamps = resolve_timestamps(config, report)
    attendees = build_timelines(report, seed_attendees(seeds))

    for attendee in attendees.values():
        if attendee.preset_cpe is not None:
            logger.debug(f"{attendee.email}: preset {attendee.preset_cpe} CPE")
            continue
        reconcile_timeline(attendee.timeline)
        compute_credit(attendee, timestamps, config.max_cpe, config.late_join_mode)

    return assemble_report(attendees, timestamps, config.title)
