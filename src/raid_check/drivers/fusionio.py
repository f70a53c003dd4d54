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
# raid-check/src/raid_check/drivers/fusionio.py

"""Fusion-io ioMemory cards via ``fio-status -a``."""

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
)

LIFE_WARN_PERCENT: Final[float] = 10.0

_RULES: Final = LineClassifier([
    # "fct0    Attached" at column zero opens a device block
    LineRule(re.compile(r"^(fct\d+)\s+\S"), LineKind.LOGICAL),
    LineRule(re.compile(r"^\s*Reserve space status:\s*([^;]+)"),
             LineKind.FIELD, "reserves"),
    LineRule(re.compile(r"^\s*Rated PBW:.*?([\d.]+)% remaining"),
             LineKind.FIELD, "life"),
    LineRule(re.compile(r"^\s*Media status:\s*([^;]+)"), LineKind.FIELD,
             "media"),
])
_STATE_RE: Final = re.compile(r"^fct\d+\s+(.+?)\s*$")
_DEVICE_RE: Final = re.compile(r"^fct\d+$")


class FusionioHandler(DriverHandler):
    family = DriverFamily.FUSIONIO

    def collect(self, adapter: int, handle: int | str) -> list[Finding]:
        fio_status = self.require_tool(adapter, "fio-status")
        argv = [fio_status, "-a"]
        # discovered through /proc/fusion/fio/fctN: ask about that card only
        if isinstance(handle, str) and _DEVICE_RE.match(handle):
            argv.append(f"/dev/{handle}")
        result = self.run(adapter, argv)
        findings, recognized = self.parse(adapter, result.lines)
        if not recognized and any(line.strip() for line in result.lines):
            return [self.unrecognized(adapter, "fio-status")]
        return findings

    def parse(self, adapter: int,
              lines: Iterable[str]) -> tuple[list[Finding], bool]:
        record = RecordAccumulator()
        findings: list[Finding] = []

        for line in lines:
            item = _RULES.classify(line.rstrip())
            if item.kind is LineKind.LOGICAL:
                if record.is_open:
                    findings.append(self.materialize(adapter, record))
                record.open(UnitKind.LOGICAL, item.value)
                state = _STATE_RE.match(line.strip())
                record.set("state", state.group(1) if state else "")
            elif item.kind is LineKind.FIELD:
                record.set(item.name, item.value)
        if record.is_open:
            findings.append(self.materialize(adapter, record))
        return findings, bool(findings)

    def materialize(self, adapter: int, record: RecordAccumulator) -> Finding:
        state = record.get("state")
        if not state:
            return self.unit(Severity.WARN, adapter, record.kind, record.unit,
                             "state not reported")

        severity = Severity.OK if state == "Attached" else Severity.CRIT
        words = [state]
        reserves = record.get("reserves")
        media = record.get("media")
        unhealthy = bool(reserves and reserves != "Healthy" or
                         media and media != "Healthy")
        life = None
        if life_text := record.get("life"):
            life = float(life_text)
        worn = life is not None and life < LIFE_WARN_PERCENT

        severity = downgrade_ok(severity, unhealthy or worn)
        if reserves:
            words.append(f"reserves {reserves}")
        if media and media != "Healthy":
            words.append(f"media {media}")
        if life is not None:
            words.append(f"{life:g}% life left")
        return self.unit(severity, adapter, record.kind, record.unit,
                         ", ".join(words))
