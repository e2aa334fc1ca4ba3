"""
CPEKit CLI Main Module

Command-line interface for CPEKit using Typer. Reads a webinar attendance
export, applies meeting options from flags and an optional YAML meeting file
and writes the CPE report as CSV.
"""

import sys
import logging
from pathlib import Path
from typing import Optional

import typer

from cpekit.config import build_config, is_debug_enabled, load_seed_file
from cpekit.errors import CpeKitError
from cpekit.logging import setup_logging
from cpekit.models import SeedFile
from cpekit.pipeline import process_attendance_report
from cpekit.report import write_report_csv
from cpekit.tables import parse_report, read_report_file

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="cpekit",
    help="CPEKit - Convert webinar attendance reports to CPE credit lists",
    add_completion=False
)


def _read_input(csv_file: str) -> str:
    if csv_file == "-":
        return sys.stdin.read()
    return read_report_file(csv_file)


@app.command()
def report(
    csv_file: str = typer.Argument("-", help="Attendance report CSV ('-' for standard input)"),
    max_cpe: Optional[int] = typer.Option(None, "--max-cpe", "--cpe", help="Maximum CPEs for the event (default 2)"),
    start: Optional[str] = typer.Option(None, "--start", help="Scheduled start time, e.g. 'YYYY-MM-DD HH:MM:SS'"),
    end: Optional[str] = typer.Option(None, "--end", help="Scheduled end time (default: start + max CPE hours)"),
    bus_end: Optional[str] = typer.Option(None, "--bus-end", "--biz", help="Actual end of business time"),
    grace: Optional[int] = typer.Option(None, "--start-grace-period", "--grace", help="Grace period in minutes at start (default 10)"),
    title: Optional[str] = typer.Option(None, "--title", "--meeting-title", help="Meeting title"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="YAML meeting configuration file"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file (default: standard output)"),
    late_join_mode: Optional[str] = typer.Option(None, "--late-join-mode", help="'reset' (default) or 'accumulate'"),
    debug: bool = typer.Option(False, "--debug", help="Verbose debug logging"),
    log_format: str = typer.Option("text", "--log-format", help="Log format: text or json"),
) -> None:
    """
    Compute CPE credits for every attendee and write the report.

    Options given on the command line override the config section of the
    YAML meeting file. Attendees listed in the meeting file supply names,
    certification numbers and preset CPEs for hosts and speakers.
    """
    try:
        seed_file = load_seed_file(config_file) if config_file else SeedFile()
        config = build_config(seed_file.config, {
            'max_cpe': max_cpe,
            'start': start,
            'end': end,
            'bus_end': bus_end,
            'start_grace_period': grace,
            'title': title,
            'output': output,
            'late_join_mode': late_join_mode,
            'debug': debug or None,
        })
        setup_logging(
            level="DEBUG" if is_debug_enabled(config) else "INFO",
            format_type=log_format,
            logger_name="cpekit",
        )

        result = process_attendance_report(_read_input(csv_file), config, seed_file.attendee)
        write_report_csv(result, config.output)

        if config.output != "-":
            typer.echo(f"✓ Wrote {len(result.records)} CPE record(s) to {config.output}", err=True)
        if result.skipped:
            typer.echo(f"{len(result.skipped)} attendee(s) skipped", err=True)

    except (CpeKitError, FileNotFoundError) as e:
        typer.echo(f"Failed to compute CPE report: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def inspect(
    csv_file: str = typer.Argument("-", help="Attendance report CSV ('-' for standard input)"),
) -> None:
    """
    List the tables of an attendance export with their columns and row counts.
    """
    try:
        parsed = parse_report(_read_input(csv_file))
    except (CpeKitError, FileNotFoundError) as e:
        typer.echo(f"Failed to read attendance report: {e}", err=True)
        raise typer.Exit(1)

    if parsed.generated:
        typer.echo(f"Report generated: {parsed.generated}")
    for name in parsed.titles:
        table = parsed.tables[name]
        typer.echo(f"{name}: {table.row_count} row(s)")
        typer.echo(f"  columns: {', '.join(table.columns)}")


if __name__ == "__main__":
    app()
