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
# raid-check/src/raid_check/drivers/threeware.py

"""3ware / AMCC controllers via ``tw_cli``.

``tw_cli show`` lists controller ids (c0, c2, ...), then ``tw_cli /cN show``
prints the unit and port tables::

    Unit  UnitType  Status         %RCmpl  %V/I/M  Stripe  Size(GB)  Cache  AVrfy
    ------------------------------------------------------------------------------
    u0    RAID-1    OK             -       -       -       465.651   ON     OFF

    Port   Status           Unit   Size        Blocks        Serial
    ---------------------------------------------------------------
    p0     OK               u0     465.76 GB   976773168     WD-WCAS87280912

Each table row is a complete record.
"""

import re
from collections.abc import Iterable
from typing import Final

from loguru import logger

from ..model import DriverFamily, Finding, Severity, UnitKind
from .base import DriverHandler, LineClassifier, LineKind, LineRule

_CONTROLLER_RE: Final = re.compile(r"^(c\d+)\s+\S+")

_RULES: Final = LineClassifier([
    LineRule(re.compile(r"^(u\d+\s+.*)$"), LineKind.LOGICAL),
    LineRule(re.compile(r"^(p\d+\s+.*)$"), LineKind.PHYSICAL),
])

_UNIT_OK: Final = frozenset({"OK", "VERIFYING"})
_UNIT_WARN: Final = frozenset({
    "INITIALIZING", "INIT-PAUSED", "VERIFY-PAUSED", "REBUILDING",
    "REBUILD-PAUSED", "MIGRATING", "MIGRATE-PAUSED",
})
_PORT_WARN: Final = frozenset({"REBUILDING", "SMART-FAILURE"})
_PORT_ABSENT: Final = "NOT-PRESENT"


def unit_severity(status: str) -> Severity:
    if status in _UNIT_OK:
        return Severity.OK
    if status in _UNIT_WARN:
        return Severity.WARN
    return Severity.CRIT


def port_severity(status: str) -> Severity:
    if status == "OK":
        return Severity.OK
    if status in _PORT_WARN:
        return Severity.WARN
    return Severity.CRIT


def list_controllers(lines: Iterable[str]) -> list[str]:
    """Controller ids from ``tw_cli show``, in listed order."""
    return [m.group(1) for line in lines
            if (m := _CONTROLLER_RE.match(line.strip()))]


class ThreewareHandler(DriverHandler):
    family = DriverFamily.THREEWARE

    def collect(self, adapter: int, handle: int | str) -> list[Finding]:
        tw_cli = self.require_tool(adapter, "tw_cli")
        listing = self.run(adapter, [tw_cli, "show"])
        controllers = list_controllers(listing.lines)
        if adapter < len(controllers):
            controller = controllers[adapter]
        else:
            controller = f"c{adapter}"
            logger.info(f"3ware/{adapter}: not in tw_cli show, trying /{controller}")

        result = self.run(adapter, [tw_cli, f"/{controller}", "show"])
        findings, recognized = self.parse(adapter, result.lines)
        if not recognized and any(line.strip() for line in result.lines):
            return [self.unrecognized(adapter, "tw_cli")]
        return findings

    def parse(self, adapter: int,
              lines: Iterable[str]) -> tuple[list[Finding], bool]:
        findings = []
        recognized = False
        for line in lines:
            item = _RULES.classify(line.strip())
            if item.kind is LineKind.LOGICAL:
                recognized = True
                findings.append(self.unit_finding(adapter, item.value.split()))
            elif item.kind is LineKind.PHYSICAL:
                recognized = True
                columns = item.value.split()
                if len(columns) > 1 and columns[1] == _PORT_ABSENT:
                    continue
                findings.append(self.port_finding(adapter, columns))
        return findings, recognized

    def unit_finding(self, adapter: int, columns: list[str]) -> Finding:
        # u0 RAID-5 REBUILDING 45% - 64K 1396.95 ON ON
        name = columns[0]
        if len(columns) < 3:
            return self.unit(Severity.WARN, adapter, UnitKind.LOGICAL, name,
                             "state not reported")
        unit_type, status = columns[1], columns[2]
        words = [status, unit_type]
        if len(columns) > 3 and columns[3].rstrip("%").isdigit():
            words.append(f"{columns[3].rstrip('%')}%")
        return self.unit(unit_severity(status), adapter, UnitKind.LOGICAL,
                         name, " ".join(words))

    def port_finding(self, adapter: int, columns: list[str]) -> Finding:
        # p0 OK u0 465.76 GB 976773168 WD-WCAS87280912
        name = columns[0]
        if len(columns) < 2:
            return self.unit(Severity.WARN, adapter, UnitKind.PHYSICAL, name,
                             "state not reported")
        status = columns[1]
        words = [status]
        if len(columns) > 2 and columns[2] != "-":
            words.append(columns[2])
        if len(columns) > 4:
            words.append(" ".join(columns[3:5]))
        return self.unit(port_severity(status), adapter, UnitKind.PHYSICAL,
                         name, " ".join(words))
