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
# raid-check/src/raid_check/drivers/megaraid.py

"""LSI MegaRAID / Dell PERC via ``megacli -LDPDInfo``."""

import re
from collections.abc import Iterable
from typing import Final

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

_RULES: Final = LineClassifier([
    LineRule(re.compile(r"^Virtual (?:Drive|Disk):\s*(\d+)"), LineKind.LOGICAL),
    LineRule(re.compile(r"^PD:\s*(\d+) Information"), LineKind.PHYSICAL),
    LineRule(re.compile(r"^Enclosure Device ID:\s*(\S+)"), LineKind.PHYSICAL,
             "enclosure"),
    LineRule(re.compile(r"^Drive has flagged a S\.M\.A\.R\.T alert\s*:\s*(\S+)"),
             LineKind.TERMINATOR, "smart_alert"),
    LineRule(re.compile(r"^Slot Number:\s*(\d+)"), LineKind.FIELD, "slot"),
    LineRule(re.compile(r"^Firmware state:\s*(.+)"), LineKind.FIELD, "state"),
    LineRule(re.compile(r"^State\s*:\s*(.+)"), LineKind.FIELD, "state"),
    LineRule(re.compile(r"^Size\s*:\s*(.+)"), LineKind.FIELD, "size"),
    LineRule(re.compile(r"^RAID Level\s*:\s*Primary-(\d+)"), LineKind.FIELD,
             "level"),
    LineRule(re.compile(r"^Media Error Count:\s*(\d+)"), LineKind.FIELD,
             "media_errors"),
    LineRule(re.compile(r"^Other Error Count:\s*(\d+)"), LineKind.FIELD,
             "other_errors"),
    LineRule(re.compile(r"^Predictive Failure Count:\s*(\d+)"), LineKind.FIELD,
             "predictive_errors"),
])

_NO_VD_RE: Final = re.compile(r"No Virtual Drive Configured")

_ERROR_FIELDS: Final = ("media_errors", "other_errors", "predictive_errors")

_PD_OK: Final = ("Online", "Hotspare", "Unconfigured(good)", "JBOD")
_PD_WARN: Final = ("Rebuild", "Copyback")


def ld_severity(state: str) -> Severity:
    return Severity.OK if state == "Optimal" else Severity.CRIT


def pd_severity(state: str) -> Severity:
    # "Online, Spun Up" and "Hotspare, Spun down" carry a spin suffix
    base = state.split(",")[0].strip()
    if base in _PD_OK:
        return Severity.OK
    if base in _PD_WARN:
        return Severity.WARN
    return Severity.CRIT


class MegaraidParser:
    """Streaming accumulator over megacli LD/PD blocks."""

    def __init__(self, handler: "MegaraidHandler", adapter: int):
        self.handler = handler
        self.adapter = adapter
        self.record = RecordAccumulator()
        self.findings: list[Finding] = []
        self.recognized = False

    def feed(self, line: str):
        line = line.strip()
        item = _RULES.classify(line)
        kind = item.kind

        if kind is LineKind.LOGICAL:
            self.close()
            self.record.open(UnitKind.LOGICAL, item.value)
        elif kind is LineKind.PHYSICAL:
            # "PD: n Information" is followed by "Enclosure Device ID:"
            if not (self.record.kind is UnitKind.PHYSICAL and
                    not self.record.fields):
                self.close()
                self.record.open(UnitKind.PHYSICAL, item.value)
            if item.name:
                self.record.set(item.name, item.value)
        elif kind is LineKind.FIELD:
            self.record.set(item.name, item.value)
        elif kind is LineKind.TERMINATOR:
            self.record.set(item.name, item.value)
            self.close()
        elif kind is LineKind.BLANK and self.record.is_open and \
                "state" in self.record.fields:
            # blank lines also appear between a header and its fields
            self.close()

    def close(self):
        if self.record.is_open:
            self.recognized = True
            self.findings.append(self.materialize(self.record))
        self.record.clear()

    def materialize(self, record: RecordAccumulator) -> Finding:
        state = record.get("state")
        if record.kind is UnitKind.LOGICAL:
            unit = record.unit
        else:
            unit = f"{record.get('enclosure', '?')}:{record.get('slot', '?')}"

        if not state:
            return self.handler.unit(Severity.WARN, self.adapter, record.kind,
                                     unit, "state not reported")

        if record.kind is UnitKind.LOGICAL:
            severity = ld_severity(state)
            words = [state]
            if level := record.get("level"):
                words.append(f"RAID-{level}")
            if size := record.get("size"):
                words.append(size)
            return self.handler.unit(severity, self.adapter, record.kind,
                                     unit, " ".join(words))

        # predictive and other errors share one counter and can only warn
        errors = sum(parse_int(record.get(name)) for name in _ERROR_FIELDS)
        alert = record.get("smart_alert").lower() == "yes"
        severity = downgrade_ok(pd_severity(state), errors > 0 or alert)
        words = [state]
        if errors:
            words.append(f"errors={errors}")
        if alert:
            words.append("SMART alert")
        return self.handler.unit(severity, self.adapter, record.kind,
                                 unit, ", ".join(words))


def parse_megacli(handler: "MegaraidHandler", adapter: int,
                  lines: Iterable[str]) -> tuple[list[Finding], bool]:
    """Return the findings and whether any LD/PD block was seen."""
    parser = MegaraidParser(handler, adapter)
    for line in lines:
        parser.feed(line)
    parser.close()
    return parser.findings, parser.recognized


class MegaraidHandler(DriverHandler):
    family = DriverFamily.MEGARAID

    def collect(self, adapter: int, handle: int | str) -> list[Finding]:
        megacli = self.require_tool(adapter, "megacli")
        result = self.run(adapter, [megacli, "-LDPDInfo", f"-a{adapter}",
                                    "-NoLog"])
        findings, recognized = parse_megacli(self, adapter, result.lines)
        if any(_NO_VD_RE.search(line) for line in result.lines):
            recognized = True
        if not recognized and any(line.strip() for line in result.lines):
            return [self.unrecognized(adapter, "megacli")]
        return findings
