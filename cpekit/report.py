"""
CPEKit Report Assembler

Orders attendees, filters out those without a usable certification number
and produces the rows submitted for CPE credit.

Example usage:
    from cpekit.report import assemble_report, write_report_csv

    report = assemble_report(attendees, timestamps, title="April meeting")
    write_report_csv(report, "cpe-report-2021-04.csv")
"""

import re
import sys
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd

from cpekit.dates import format_activity_date
from cpekit.logging import get_logger, log_with_context
from cpekit.models import OUTPUT_COLUMNS, CpeRecord, CpeReport, SkippedAttendee
from cpekit.types import Attendee, MeetingTimestamps

logger = get_logger(__name__)

CERT_DESIGNATION_RE = re.compile(r'cissp|csslp|sscp|ccsp|cap|hcispp', re.IGNORECASE)
_DIGIT_RE = re.compile(r'\d')
_NON_DIGITS_RE = re.compile(r'\D+')


def normalize_cert_id(raw: Optional[str]) -> Optional[str]:
    """
    Extract the member number from free-text certification input.

    Text without any digit is not a member number. When the text names a
    certification ("CISSP #12345") everything but the digits is dropped;
    otherwise the text is kept as entered.
    """
    if raw is None or not _DIGIT_RE.search(raw):
        return None
    if CERT_DESIGNATION_RE.search(raw):
        return _NON_DIGITS_RE.sub("", raw)
    return raw


def _sort_key(attendee: Attendee):
    return (attendee.last_name or "", attendee.first_name or "", attendee.email)


def _skip(report: CpeReport, attendee: Attendee, reason: str) -> None:
    log_with_context(
        logger, "warning", f"skipping {attendee.display_name}: {reason}",
        email=attendee.email, reason=reason
    )
    report.skipped.append(SkippedAttendee(
        email=attendee.email,
        first_name=attendee.first_name,
        last_name=attendee.last_name,
        reason=reason,
    ))


def assemble_report(
    attendees: Dict[str, Attendee],
    timestamps: MeetingTimestamps,
    title: Optional[str] = None,
) -> CpeReport:
    """
    Build the ordered credit report.

    Attendees are sorted by last name (ordinal comparison), then first name
    and email. Attendees without a certification number or without a
    credit value are skipped and listed in ``CpeReport.skipped``.

    Args:
        attendees: Attendees with credit computed or preset
        timestamps: Resolved meeting timestamps (activity date source)
        title: Meeting title for every row

    Returns:
        CpeReport
    """
    report = CpeReport()
    activity_date = format_activity_date(timestamps.start)

    for attendee in sorted(attendees.values(), key=_sort_key):
        member_id = normalize_cert_id(attendee.isc2)
        if member_id is None:
            _skip(report, attendee, "no ISC2 number data")
            continue

        cpe = attendee.preset_cpe if attendee.preset_cpe is not None else attendee.cpe
        if cpe is None:
            _skip(report, attendee, "no attendance data")
            continue

        report.records.append(CpeRecord(
            member_id=member_id,
            first_name=attendee.first_name,
            last_name=attendee.last_name,
            meeting_title=title,
            cpe=cpe,
            activity_date=activity_date,
            cpe_minutes=attendee.cpe_minutes,
        ))

    logger.info(
        f"Report has {len(report.records)} row(s), {len(report.skipped)} attendee(s) skipped"
    )
    return report


def report_to_dataframe(report: CpeReport) -> pd.DataFrame:
    """Tabulate report rows under the submission column headings."""
    return pd.DataFrame(report.rows(), columns=OUTPUT_COLUMNS)


def write_report_csv(report: CpeReport, output: Union[str, Path] = "-") -> None:
    """
    Write the report as CSV.

    Args:
        report: Assembled report
        output: File path, or "-" for standard output
    """
    df = report_to_dataframe(report)
    if str(output) == "-":
        df.to_csv(sys.stdout, index=False)
    else:
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output, index=False)
        logger.info(f"Wrote {len(df)} row(s) to {output}")
