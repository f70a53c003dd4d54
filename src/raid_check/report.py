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
# raid-check/src/raid_check/report.py

"""Turn a pile of findings into one status line and an exit code."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final

import polars as pl

from .model import Finding, Severity

NO_RAID_LINE: Final[str] = "OK: no RAID controllers or md arrays found"

_GROUP_ORDER: Final = (Severity.CRIT, Severity.WARN, Severity.OK)


@dataclass(frozen=True)
class Report:
    line: str
    severity: Severity

    @property
    def exit_code(self) -> int:
        return int(self.severity)


def findings_frame(findings: Iterable[Finding]) -> pl.DataFrame:
    """Findings as a (severity, kind, message) frame."""
    findings = list(findings)
    return pl.DataFrame(
        {
            'severity': [int(f.severity) for f in findings],
            'kind': [f.kind.value for f in findings],
            'message': [f.message for f in findings],
        },
        schema={'severity': pl.Int8, 'kind': pl.Utf8, 'message': pl.Utf8},
    )


def render_report(findings: Iterable[Finding]) -> Report:
    """Render ``CRITICAL: [..], WARNING: [..], OK: [..]``.

    Messages are sorted within each group so the same findings always give
    the same line, whatever order they were produced in.
    """
    df = findings_frame(findings)
    if df.is_empty():
        return Report(NO_RAID_LINE, Severity.OK)

    groups = []
    for severity in _GROUP_ORDER:
        messages = (
            df.filter(pl.col('severity') == int(severity))
            .get_column('message')
            .sort()
            .to_list()
        )
        if messages:
            rendered = " ".join(f"[{m}]" for m in messages)
            groups.append(f"{severity.label}: {rendered}")

    worst = Severity(int(df.get_column('severity').max()))
    return Report(", ".join(groups), worst)
