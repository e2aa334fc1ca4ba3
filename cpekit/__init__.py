"""
CPEKit Core Module

This module contains the core logic for turning webinar attendance exports
into continuing-education (CPE) credit reports:
- Splitting and parsing the concatenated CSV tables of an export
- Collecting and reconciling per-attendee attendance timelines
- Computing quarter-rounded, capped CPE credit against the business window
- Assembling the ordered report rows

The core module has no I/O beyond optional helpers for reading an export
file and writing the finished report, and can be used independently of
the CLI.

Example usage:
    from cpekit.pipeline import process_attendance_report
    from cpekit.config import build_config
"""

__version__ = "0.1.0"
