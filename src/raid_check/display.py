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
# raid-check/src/raid_check/display.py

"""Rich tabular display of findings for humans at a terminal."""

from collections.abc import Sequence

import polars as pl
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .model import Finding, Severity
from .report import findings_frame

SEVERITY_COLORS = {
    Severity.OK: "green",
    Severity.WARN: "yellow",
    Severity.CRIT: "red",
}


def format_severity(severity: Severity) -> Text:
    return Text(severity.label, style=SEVERITY_COLORS[severity])


def family_summary(findings: Sequence[Finding]) -> pl.DataFrame:
    """Count findings per driver family and severity."""
    df = findings_frame(findings).with_columns(
        pl.col('message').str.extract(r"^([^/]+)/", 1).alias('family')
    )
    return (
        df.group_by('family', 'severity')
        .agg(pl.len().alias('count'))
        .sort('family', 'severity')
    )


def create_findings_table(findings: Sequence[Finding]) -> Table:
    """One row per finding, worst first."""
    table = Table(title="RAID Findings", show_edge=True)
    table.add_column("Severity", justify="center")
    table.add_column("Kind", style="dim")
    table.add_column("Message", style="cyan")

    ordered = sorted(findings, key=lambda f: (-f.severity, f.message))
    for finding in ordered:
        row_style = "bold" if finding.severity is Severity.CRIT else None
        table.add_row(
            format_severity(finding.severity),
            finding.kind.value or "-",
            finding.message,
            style=row_style
        )
    return table


def create_summary_table(findings: Sequence[Finding]) -> Table:
    table = Table(title="Per-family Summary", show_header=True)
    table.add_column("Family", style="cyan")
    for severity in Severity:
        table.add_column(severity.label, justify="right")

    summary = family_summary(findings)
    for family in summary.get_column('family').unique().sort().to_list():
        counts = {
            row['severity']: row['count']
            for row in summary.filter(pl.col('family') == family)
            .iter_rows(named=True)
        }
        cells = []
        for severity in Severity:
            count = counts.get(int(severity), 0)
            style = SEVERITY_COLORS[severity] if count else "dim"
            cells.append(Text(str(count), style=style))
        table.add_row(family or "?", *cells)
    return table


def display_findings(findings: Sequence[Finding],
                     console: Console | None = None):
    """Display findings and the per-family summary using rich tables."""
    if console is None:
        console = Console(stderr=True)

    console.print(create_findings_table(findings))
    console.print()
    console.print(create_summary_table(findings))
