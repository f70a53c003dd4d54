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
# raid-check/src/raid_check/drivers/cciss.py

"""HP / Compaq Smart Array via ``hpacucli ctrl all show config``.

Output looks like::

    Smart Array P400 in Slot 1                (sn: PAFGF0N9SXQ0W8)

       array A (SAS, Unused Space: 0 MB)

          logicaldrive 1 (68.3 GB, RAID 1, OK)

          physicaldrive 1I:1:1 (port 1I:box 1:bay 1, SAS, 72 GB, OK)

The tool refuses to run while another copy holds its lock, so it goes
through the retrying runner.
"""

import re
from collections.abc import Iterable
from typing import Final

from loguru import logger

from ..model import DriverFamily, Finding, Severity, UnitKind
from .base import DriverHandler

BUSY_RE: Final = re.compile(r"Another instance of .* is (?:already )?running")

_CONTROLLER_RE: Final = re.compile(r"^(\S.*?) in Slot (\S+)")
_LOGICAL_RE: Final = re.compile(r"^\s*logicaldrive\s+(\d+)\s+\((.*)\)\s*$")
_PHYSICAL_RE: Final = re.compile(r"^\s*physicaldrive\s+(\S+)\s+\((.*)\)\s*$")

_LD_WARN_RE: Final = re.compile(r"Recovering|Rebuilding|Transforming|Expanding",
                                re.IGNORECASE)
_PD_WARN_RE: Final = re.compile(r"Rebuilding|Predictive Failure",
                                re.IGNORECASE)


def ld_severity(status: str) -> Severity:
    if status == "OK":
        return Severity.OK
    if _LD_WARN_RE.search(status):
        return Severity.WARN
    return Severity.CRIT


def pd_severity(status: str) -> Severity:
    if status == "OK":
        return Severity.OK
    if _PD_WARN_RE.search(status):
        return Severity.WARN
    return Severity.CRIT


def split_controllers(lines: Iterable[str]) -> list[tuple[str, list[str]]]:
    """Group config lines under their ``... in Slot N`` header."""
    controllers: list[tuple[str, list[str]]] = []
    for line in lines:
        if match := _CONTROLLER_RE.match(line):
            controllers.append((f"{match.group(1)} slot {match.group(2)}", []))
        elif controllers:
            controllers[-1][1].append(line)
    return controllers


def split_details(details: str, leading: int) -> tuple[list[str], str]:
    """Split ``68.3 GB, RAID 1, Recovering, 45% complete``.

    The first ``leading`` comma-separated fields are descriptive, the rest
    is the status, so multi-part states stay whole. A trailing ``spare``
    marker is moved to the descriptive fields.
    """
    parts = [p.strip() for p in details.split(",")]
    fields, status = parts[:leading], parts[leading:]
    if status and status[-1] == "spare":
        fields.append(status.pop())
    return fields, ", ".join(status)


class CcissHandler(DriverHandler):
    family = DriverFamily.CCISS

    def collect(self, adapter: int, handle: int | str) -> list[Finding]:
        tool = self.require_tool(adapter, "hpacucli")
        result = self.run(adapter, [tool, "ctrl", "all", "show", "config"],
                          runner=self.context.retrying(BUSY_RE))
        if result.busy:
            logger.warning(f"cciss/{adapter}: tool busy, skipping")
            return []
        if not any(line.strip() for line in result.lines):
            return []

        controllers = split_controllers(result.lines)
        if not controllers:
            return [self.unrecognized(adapter, "hpacucli")]
        if adapter >= len(controllers):
            return [Finding.controller(
                Severity.WARN, self.family, adapter,
                f"controller not listed by hpacucli "
                f"({len(controllers)} found)"
            )]

        name, lines = controllers[adapter]
        logger.debug(f"cciss/{adapter}: reading {name}")
        return self.parse(adapter, lines)

    def parse(self, adapter: int, lines: Iterable[str]) -> list[Finding]:
        findings = []
        for line in lines:
            if match := _LOGICAL_RE.match(line):
                unit, details = match.groups()
                # size, RAID level, status...
                fields, status = split_details(details, 2)
                findings.append(self.finding(
                    ld_severity, adapter, UnitKind.LOGICAL, unit, status,
                    fields
                ))
            elif match := _PHYSICAL_RE.match(line):
                unit, details = match.groups()
                # location, interface, size, status...
                fields, status = split_details(details, 3)
                findings.append(self.finding(
                    pd_severity, adapter, UnitKind.PHYSICAL, unit, status,
                    fields[1:]
                ))
        return findings

    def finding(self, judge, adapter: int, kind: UnitKind, unit: str,
                status: str, fields: list[str]) -> Finding:
        if not status:
            return self.unit(Severity.WARN, adapter, kind, unit,
                             "state not reported")
        return self.unit(judge(status), adapter, kind, unit,
                         " ".join([status] + fields))
