# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.17
# Copyright (C) 2025 HRDAG https://hrdag.org
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along
# with this program; if not, see <https://www.gnu.org/licenses/>.
#
# ------
# raid-check/src/raid_check/cli.py

"""Command-line interface for the RAID health check."""

import json
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console

from .checker import check_controllers
from .config import (
    DEFAULT_PROC_ROOT,
    DEFAULT_SENTINEL_DIR,
    DEFAULT_SYSFS_ROOT,
    Settings,
)
from .discovery import discover
from .display import display_findings
from .drivers import CheckContext
from .model import Finding
from .overrides import OverridePolicy
from .report import Report, render_report
from .runner import ProcessRunner, find_executable
from .smartctl import SmartctlCache

# monitoring convention for "could not even produce a report"
EXIT_UNKNOWN = 3

app = typer.Typer()


def configure_logging(verbose: bool):
    """Library logging stays off unless asked for, and never on stdout."""
    logger.remove()
    if verbose:
        logger.add(sys.stderr, level="DEBUG")
        logger.enable("raid_check")
    else:
        logger.disable("raid_check")


def run_check(settings: Settings,
              runner: ProcessRunner | None = None,
              ) -> tuple[Report, list[Finding]]:
    """Discover, check and report; the whole run minus printing."""
    instances = discover(settings)
    if not instances:
        logger.info("No RAID controllers or md arrays found")
        return render_report([]), []

    runner = runner or ProcessRunner(trace=settings.trace)
    smartctl = find_executable(settings.candidates("smartctl"))
    context = CheckContext(
        runner=runner,
        smart=SmartctlCache(runner, smartctl),
        settings=settings,
        which=find_executable,
    )
    policy = OverridePolicy(settings.sentinel_dir)
    findings = check_controllers(instances, context, policy)
    return render_report(findings), findings


@app.command()
def check(
    sentinel_dir: Path = typer.Option(
        DEFAULT_SENTINEL_DIR,
        "--sentinel-dir",
        envvar="RAID_CHECK_SENTINEL_DIR",
        help="Directory holding <family>.<adapter>.no-disks style sentinels"
    ),
    sysfs_root: Path = typer.Option(
        DEFAULT_SYSFS_ROOT,
        "--sysfs-root",
        envvar="RAID_CHECK_SYSFS_ROOT",
        help="Where sysfs is mounted"
    ),
    proc_root: Path = typer.Option(
        DEFAULT_PROC_ROOT,
        "--proc-root",
        envvar="RAID_CHECK_PROC_ROOT",
        help="Where procfs is mounted"
    ),
    details: bool = typer.Option(
        False,
        "--details",
        help="Also print a table of every finding to stderr"
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output findings as JSON instead of the status line"
    ),
    trace: bool = typer.Option(
        False,
        "--trace",
        help="Time every external command (logged with --verbose)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging output on stderr"
    ),
):
    """Check RAID health and print one status line."""
    configure_logging(verbose)
    settings = Settings(
        sentinel_dir=sentinel_dir,
        sysfs_root=sysfs_root,
        proc_root=proc_root,
        trace=trace,
    )

    try:
        report, findings = run_check(settings)
    except Exception as e:
        logger.exception("RAID check failed")
        typer.echo(f"UNKNOWN: raid-check failed: {e}")
        raise typer.Exit(EXIT_UNKNOWN)

    if json_output:
        output = {
            'status': report.severity.label,
            'line': report.line,
            'findings': [f.to_dict() for f in findings],
        }
        typer.echo(json.dumps(output, indent=2))
    else:
        typer.echo(report.line)

    if details and findings:
        display_findings(findings, Console(stderr=True))

    raise typer.Exit(report.exit_code)


if __name__ == "__main__":
    app()
