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
# raid-check/src/raid_check/drivers/aacraid.py

"""Adaptec / Microsemi controllers via ``arcconf GETCONFIG n AL``.

arcconf numbers controllers from 1, so adapter 0 is controller 1.
"""

import re
from collections.abc import Iterable
from typing import Final

from loguru import logger

from ..model import DriverFamily, Finding, Severity, UnitKind
from .base import (
    DriverHandler,
    LineClassifier,
    LineKind,
    LineRule,
    RecordAccumulator,
    downgrade_ok,
    parse_int,
)

BATTERY_CRIT_PERCENT: Final[int] = 25
BATTERY_WARN_PERCENT: Final[int] = 50

_RULES: Final = LineClassifier([
    LineRule(re.compile(r"^Controller information"), LineKind.CONTROLLER),
    LineRule(re.compile(r"^Controller Battery Information"), LineKind.BATTERY),
    LineRule(re.compile(r"^Logical (?:device|drive) number\s+(\d+)",
                        re.IGNORECASE),
             LineKind.LOGICAL),
    LineRule(re.compile(r"^Device #(\d+)"), LineKind.PHYSICAL),
    LineRule(re.compile(r"^Device is an? (?!Hard drive)"), LineKind.SKIP),
    LineRule(re.compile(r"^-{8,}"), LineKind.TERMINATOR),
    LineRule(re.compile(r"^Controller Status\s*:\s*(.+)"), LineKind.FIELD,
             "state"),
    LineRule(re.compile(r"^Controller Model\s*:\s*(.+)"), LineKind.FIELD,
             "model"),
    LineRule(re.compile(r"^Status of logical (?:device|drive)\s*:\s*(.+)",
                        re.IGNORECASE),
             LineKind.FIELD, "state"),
    LineRule(re.compile(r"^Logical (?:device|drive) name\s*:\s*(.*)",
                        re.IGNORECASE),
             LineKind.FIELD, "name"),
    LineRule(re.compile(r"^RAID level\s*:\s*(.+)"), LineKind.FIELD, "level"),
    LineRule(re.compile(r"^Status\s*:\s*(.+)"), LineKind.FIELD, "state"),
    LineRule(re.compile(r"^State\s*:\s*(.+)"), LineKind.FIELD, "state"),
    LineRule(re.compile(r"^Over temperature\s*:\s*(.+)"), LineKind.FIELD,
             "over_temperature"),
    LineRule(re.compile(r"^Capacity remaining\s*:\s*(.+)"), LineKind.FIELD,
             "capacity"),
    LineRule(re.compile(r"^Reported Location\s*:\s*(.+)"), LineKind.FIELD,
             "location"),
    LineRule(re.compile(r"^Model\s*:\s*(.+)"), LineKind.FIELD, "model"),
    LineRule(re.compile(r"^S\.M\.A\.R\.T\. warnings\s*:\s*(.+)"),
             LineKind.FIELD, "smart_warnings"),
    LineRule(re.compile(r"^S\.M\.A\.R\.T\.\s*:\s*(.+)"), LineKind.FIELD,
             "smart"),
])

# "Rebuilding" also covers "Degraded, Rebuilding (35%)"
_LD_WARN_RE: Final = re.compile(r"Rebuild|Impacted|Recovering|Building",
                                re.IGNORECASE)
_PD_OK: Final = ("Online", "Hot Spare", "Ready")


def controller_severity(state: str) -> Severity:
    return Severity.OK if state == "Optimal" else Severity.CRIT


def battery_severity(state: str, capacity: int | None,
                     over_temperature: bool) -> Severity:
    """Optimal is fine, Charging is judged by remaining capacity."""
    if state == "Optimal":
        severity = Severity.OK
    elif state == "Charging":
        severity = Severity.OK
        if capacity is not None and capacity < BATTERY_CRIT_PERCENT:
            severity = Severity.CRIT
        elif capacity is not None and capacity < BATTERY_WARN_PERCENT:
            severity = Severity.WARN
    else:
        severity = Severity.CRIT
    return downgrade_ok(severity, over_temperature)


def ld_severity(state: str) -> Severity:
    if state == "Optimal":
        return Severity.OK
    if _LD_WARN_RE.search(state):
        return Severity.WARN
    return Severity.CRIT


def pd_severity(state: str) -> Severity:
    if state in _PD_OK:
        return Severity.OK
    if state.startswith("Rebuilding"):
        return Severity.WARN
    return Severity.CRIT


class AacraidHandler(DriverHandler):
    family = DriverFamily.AACRAID

    def collect(self, adapter: int, handle: int | str) -> list[Finding]:
        arcconf = self.require_tool(adapter, "arcconf")
        result = self.run(adapter, [arcconf, "GETCONFIG", str(adapter + 1),
                                    "AL"])
        findings, recognized = self.parse(adapter, result.lines)
        if not recognized and any(line.strip() for line in result.lines):
            return [self.unrecognized(adapter, "arcconf")]
        return findings

    def parse(self, adapter: int,
              lines: Iterable[str]) -> tuple[list[Finding], bool]:
        record = RecordAccumulator()
        findings: list[Finding] = []
        recognized = False

        def close():
            nonlocal recognized
            if record.is_open:
                recognized = True
                if not record.skip:
                    findings.append(self.materialize(adapter, record))
            record.clear()

        for line in lines:
            item = _RULES.classify(line.strip())
            if item.kind is LineKind.CONTROLLER:
                close()
                record.open(UnitKind.CONTROLLER, str(adapter + 1))
            elif item.kind is LineKind.BATTERY:
                close()
                record.open(UnitKind.BATTERY, str(adapter + 1))
            elif item.kind is LineKind.LOGICAL:
                close()
                record.open(UnitKind.LOGICAL, item.value)
            elif item.kind is LineKind.PHYSICAL:
                close()
                record.open(UnitKind.PHYSICAL, item.value)
            elif item.kind is LineKind.SKIP:
                record.skip = True
            elif item.kind is LineKind.FIELD:
                record.set(item.name, item.value)
            elif item.kind is LineKind.TERMINATOR:
                # the rule under a section title belongs to that section
                if record.is_open and record.fields:
                    close()
        close()
        return findings, recognized

    def materialize(self, adapter: int, record: RecordAccumulator) -> Finding:
        state = record.get("state")
        if not state:
            return self.unit(Severity.WARN, adapter, record.kind, record.unit,
                             "state not reported")

        if record.kind is UnitKind.CONTROLLER:
            words = [state, record.get("model")]
            severity = controller_severity(state)
        elif record.kind is UnitKind.BATTERY:
            capacity = None
            if capacity_text := record.get("capacity"):
                capacity = parse_int(capacity_text)
            hot = record.get("over_temperature").lower().startswith("yes")
            severity = battery_severity(state, capacity, hot)
            words = [state]
            if capacity is not None:
                words.append(f"{capacity}%")
            if hot:
                words.append("over temperature")
        elif record.kind is UnitKind.LOGICAL:
            severity = ld_severity(state)
            words = [state, record.get("name")]
            if level := record.get("level"):
                words.append(f"RAID-{level}")
        else:
            smart_warnings = parse_int(record.get("smart_warnings"))
            smart_alert = record.get("smart").lower() == "yes"
            severity = downgrade_ok(pd_severity(state),
                                    smart_warnings > 0 or smart_alert)
            words = [state, record.get("model"), record.get("location")]
            if smart_warnings:
                words.append(f"SMART warnings={smart_warnings}")
            elif smart_alert:
                words.append("SMART alert")

        logger.debug(f"aacraid/{adapter} {record.kind} {record.unit}: "
                     f"{record.fields}")
        return self.unit(severity, adapter, record.kind, record.unit,
                         " ".join(w for w in words if w))
