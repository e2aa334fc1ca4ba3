"""
CPEKit Report Table Parser

Webinar attendance exports are several CSV tables concatenated into one
file. Each table is introduced by a title line such as ``Attendee Details,``
and followed by its own header row. CSV readers cannot process that layout
directly, so the text is first split into per-title line groups and each
group is then parsed as an ordinary CSV table.

Example usage:
    from cpekit.tables import parse_report, read_report_file

    report = parse_report(read_report_file("12345_Attendee_Report.csv"))
    attendees = report.get_table("attendee details")
    print(attendees.fetch(0, "email"))
"""

import codecs
import csv
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import chardet

from cpekit.dates import parse_date
from cpekit.errors import ReportParseError, TableLookupError

logger = logging.getLogger(__name__)

TITLE_RE = re.compile(r'^([^,]+),$')
GENERATED_RE = re.compile(r'^Report Generated:,"([^"]*)"$')
BOM = '\ufeff'


@dataclass(frozen=True)
class RawTableGroup:
    """Raw lines of one titled section, header row first."""
    title: str
    lines: Tuple[str, ...]


@dataclass
class SplitReport:
    """Result of splitting an export into sections."""
    groups: Dict[str, RawTableGroup]
    titles: List[str]
    generated: Optional[datetime] = None


@dataclass
class Table:
    """
    One parsed report table.

    Column names are case-folded. Duplicate names are allowed; the index
    points at the last occurrence.
    """
    name: str
    columns: Tuple[str, ...]
    rows: List[Tuple[Optional[str], ...]]
    index: Dict[str, int] = field(init=False)

    def __post_init__(self):
        self.index = build_column_index(self.columns)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def has_column(self, column: str) -> bool:
        return column in self.index

    def column_index(self, column: str) -> int:
        try:
            return self.index[column]
        except KeyError:
            raise TableLookupError(self.name, column=column, available=list(self.columns)) from None

    def fetch(self, row: int, column: str) -> Optional[str]:
        """
        Fetch one value by row number and case-folded column name.

        Raises:
            TableLookupError: If the column or row does not exist
        """
        col = self.column_index(column)
        if row < 0 or row >= self.row_count:
            raise TableLookupError(self.name, row=row, row_count=self.row_count)
        return self.rows[row][col]

    def get(self, row: Sequence[Optional[str]], column: str) -> Optional[str]:
        """Value of ``column`` in a row of this table, None if the column is absent."""
        col = self.index.get(column)
        if col is None:
            return None
        return row[col]


@dataclass
class AttendanceReport:
    """All tables of one export, keyed by case-folded title."""
    tables: Dict[str, Table]
    titles: List[str]
    generated: Optional[datetime] = None

    def has_table(self, name: str) -> bool:
        return name in self.tables

    def get_table(self, name: str) -> Table:
        try:
            return self.tables[name]
        except KeyError:
            raise TableLookupError(name, available=list(self.tables)) from None

    def fetch(self, table: str, row: int, column: str) -> Optional[str]:
        return self.get_table(table).fetch(row, column)


def build_column_index(columns: Iterable[str]) -> Dict[str, int]:
    """Map column name to position; later duplicates override earlier ones."""
    index: Dict[str, int] = {}
    for i, name in enumerate(columns):
        index[name] = i
    return index


def _as_lines(text: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(text, str):
        lines = text.splitlines()
    else:
        lines = [line.rstrip('\r\n') for line in text]
    if lines and lines[0].startswith(BOM):
        lines[0] = lines[0].lstrip(BOM)
    return lines


def split_report(text: Union[str, Iterable[str]]) -> SplitReport:
    """
    Split a concatenated export into titled raw line groups.

    Title lines and the "Report Generated" line are consumed. Lines before the
    first title are discarded. Blank lines are skipped. Titles with no lines
    under them produce no group.

    Args:
        text: Whole export as a string, or an iterable of lines

    Returns:
        SplitReport with groups in discovery order

    Raises:
        DateParseError: If the "Report Generated" timestamp is malformed
    """
    title: Optional[str] = None
    titles: List[str] = []
    collected: Dict[str, List[str]] = {}
    generated = None
    discarded = 0

    for line in _as_lines(text):
        if not line.strip():
            continue

        match = TITLE_RE.match(line)
        if match:
            title = match.group(1).casefold()
            if title not in collected:
                titles.append(title)
                collected[title] = []
            continue

        match = GENERATED_RE.match(line)
        if match:
            generated = parse_date(match.group(1))
            continue

        if title is None:
            discarded += 1
            continue
        collected[title].append(line)

    if discarded:
        logger.debug(f"Discarded {discarded} line(s) before the first section title")
    for name in list(titles):
        if not collected[name]:
            logger.debug(f"Section '{name}' is empty, dropped")
            titles.remove(name)
            continue
        logger.debug(f"Section '{name}': {len(collected[name])} line(s)")

    groups = {name: RawTableGroup(name, tuple(collected[name])) for name in titles}
    return SplitReport(groups=groups, titles=titles, generated=generated)


def _align_row(name: str, fields: List[str], width: int, line_no: int) -> Tuple[Optional[str], ...]:
    values: List[Optional[str]] = [value if value != "" else None for value in fields]
    if len(values) < width:
        values.extend([None] * (width - len(values)))
    elif len(values) > width:
        surplus = values[width:]
        if any(value is not None for value in surplus):
            raise ReportParseError(
                f"row has {len(values)} fields but header has {width}",
                table=name, line=line_no
            )
        values = values[:width]
    return tuple(values)


def _parse_line(name: str, line: str, line_no: int) -> List[str]:
    # Each line is a record of its own; an unclosed quote ends with the line
    try:
        return next(csv.reader([line], strict=False), [])
    except csv.Error as e:
        raise ReportParseError(f"CSV parsing failed: {e}", table=name, line=line_no) from e


def parse_table(group: RawTableGroup) -> Table:
    """
    Parse one raw line group into a Table.

    Rows shorter than the header are padded with None. Rows longer than the
    header are accepted only if the surplus fields are empty (trailing
    delimiters).

    Raises:
        ReportParseError: If the section has no header or a row has
            non-empty fields beyond the header
    """
    if not group.lines:
        raise ReportParseError("section has no header row", table=group.title)

    header = _parse_line(group.title, group.lines[0], 1)
    columns = tuple(column.strip().casefold() for column in header)
    rows = []
    for line_no, line in enumerate(group.lines[1:], start=2):
        fields = _parse_line(group.title, line, line_no)
        if not fields:
            continue
        rows.append(_align_row(group.title, fields, len(columns), line_no))

    return Table(name=group.title, columns=columns, rows=rows)


def parse_report(text: Union[str, Iterable[str]]) -> AttendanceReport:
    """
    Split an export and parse every section.

    Args:
        text: Whole export as a string, or an iterable of lines

    Returns:
        AttendanceReport with one Table per section title
    """
    split = split_report(text)
    tables = {name: parse_table(split.groups[name]) for name in split.titles}
    logger.info(
        f"Parsed {len(tables)} report table(s)",
        extra={'tables': {name: table.row_count for name, table in tables.items()}}
    )
    return AttendanceReport(tables=tables, titles=list(split.titles), generated=split.generated)


def detect_encoding(raw: bytes) -> str:
    """Detect text encoding, handling BOM and common encodings."""
    if raw.startswith(codecs.BOM_UTF8):
        return 'utf-8-sig'
    if raw.startswith(codecs.BOM_UTF16_LE) or raw.startswith(codecs.BOM_UTF16_BE):
        return 'utf-16'

    try:
        raw.decode('utf-8')
        return 'utf-8'
    except UnicodeDecodeError:
        pass

    detected = chardet.detect(raw[:10000])
    encoding = (detected.get('encoding') or 'utf-8').lower()
    encoding_map = {
        'windows-1252': 'cp1252',
        'iso-8859-1': 'latin1',
        'ascii': 'utf-8',
    }
    return encoding_map.get(encoding, encoding)


def read_report_file(path: Union[str, Path]) -> str:
    """
    Read an export file as text, stripping any byte-order mark.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Attendance report not found: {path}")
    raw = path.read_bytes()
    encoding = detect_encoding(raw)
    logger.debug(f"Detected encoding: {encoding}")
    return raw.decode(encoding, errors='replace').lstrip(BOM)
