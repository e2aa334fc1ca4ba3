"""
CPEKit CLI Module

Command-line interface for CPEKit using Typer.

Available commands:
- report: Compute the CPE report for an attendance export
- inspect: List the tables found in an attendance export

Example usage:
    from cpekit_cli.main import app as cli_app

    # Or use directly from command line:
    # cpekit report 12345_Attendee_Report.csv --config cpe-config-2021-04.yaml
"""

__version__ = "0.1.0"
