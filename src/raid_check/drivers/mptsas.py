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
# raid-check/src/raid_check/drivers/mptsas.py

"""LSI Fusion-MPT SAS controllers.

Two tools can read these: ``mpt-status`` prints one line per volume or
disk, ``sas2ircu`` prints blocks of ``Label : value`` fields. mpt-status is
used when installed, sas2ircu otherwise.
"""

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

# ioc0 vol_id 0 type IM, 2 phy, 135 GB, state OPTIMAL, flags ENABLED
_MPT_VOLUME_RE: Final = re.compile(
    r"^ioc\d+\s+vol_id\s+(\d+)\s+type\s+([^,]+),.*?,\s*([^,]+),"
    r"\s*state\s+(\S+),\s*flags\s+(.*)$"
)
# ioc0 phy 1 scsi_id 4 SEAGATE  ST3146855SS  0002, 136 GB, state ONLINE, flags NONE
_MPT_PHY_RE: Final = re.compile(
    r"^ioc\d+\s+phy\s+(\d+)\s+scsi_id\s+\d+\s+(.*?),\s*([^,]+),"
    r"\s*state\s+(\S+),\s*flags\s+(.*)$"
)

_SAS2IRCU_RULES: Final = LineClassifier([
    LineRule(re.compile(r"^IR volume\s+(\d+)"), LineKind.LOGICAL),
    LineRule(re.compile(r"^Device is a Hard disk"), LineKind.PHYSICAL),
    LineRule(re.compile(r"^Device is a"), LineKind.SKIP),
    LineRule(re.compile(r"^-{8,}"), LineKind.TERMINATOR),
    LineRule(re.compile(r"^Status of volume\s*:\s*(.+)"), LineKind.FIELD,
             "state"),
    LineRule(re.compile(r"^State\s*:\s*(.+)"), LineKind.FIELD, "state"),
    LineRule(re.compile(r"^RAID level\s*:\s*(.+)"), LineKind.FIELD, "level"),
    LineRule(re.compile(r"^Enclosure #\s*:\s*(\d+)"), LineKind.FIELD,
             "enclosure"),
    LineRule(re.compile(r"^Slot #\s*:\s*(\d+)"), LineKind.FIELD, "slot"),
    LineRule(re.compile(r"^Model Number\s*:\s*(.+)"), LineKind.FIELD, "model"),
])

_STATE_CODE_RE: Final = re.compile(r"\((\w+)\)\s*$")
_SAS2IRCU_OK: Final = frozenset({"OKY", "OPT", "ONL", "HSP", "RDY", "AVL"})
_SAS2IRCU_WARN: Final = frozenset({"RBLD", "SYNC", "INIT"})


def mpt_volume_severity(state: str, flags: str) -> Severity:
    if state != "OPTIMAL":
        return Severity.CRIT
    return downgrade_ok(Severity.OK, "RESYNC_IN_PROGRESS" in flags)


def mpt_phy_severity(state: str, flags: str) -> Severity:
    if state != "ONLINE":
        return Severity.CRIT
    return downgrade_ok(Severity.OK, "OUT_OF_SYNC" in flags)


def sas2ircu_severity(state: str) -> Severity:
    """Judge ``Okay (OKY)`` style states by the code in parentheses."""
    match = _STATE_CODE_RE.search(state)
    code = match.group(1) if match else state.upper()
    if code in _SAS2IRCU_OK:
        return Severity.OK
    if code in _SAS2IRCU_WARN:
        return Severity.WARN
    return Severity.CRIT


class MptsasHandler(DriverHandler):
    family = DriverFamily.MPTSAS

    def collect(self, adapter: int, handle: int | str) -> list[Finding]:
        if mpt_status := self.context.tool("mpt-status"):
            result = self.run(adapter, [mpt_status, "-n", "-u", str(adapter)])
            findings = self.parse_mpt_status(adapter, result.lines)
            tool = "mpt-status"
        else:
            sas2ircu = self.require_tool(adapter, "mpt-status", "sas2ircu")
            result = self.run(adapter, [sas2ircu, str(adapter), "DISPLAY"])
            findings = self.parse_sas2ircu(adapter, result.lines)
            tool = "sas2ircu"

        if findings is None:
            return [self.unrecognized(adapter, tool)]
        return findings

    def parse_mpt_status(self, adapter: int,
                         lines: Iterable[str]) -> list[Finding] | None:
        """Line-oriented; ``None`` when output had no volume or phy lines."""
        findings = []
        seen_output = False
        for line in lines:
            line = line.strip()
            if not line:
                continue
            seen_output = True
            if match := _MPT_VOLUME_RE.match(line):
                vol_id, vol_type, size, state, flags = match.groups()
                severity = mpt_volume_severity(state, flags)
                findings.append(self.unit(
                    severity, adapter, UnitKind.LOGICAL, vol_id,
                    f"{state} {vol_type} {size} flags {flags.strip()}"
                ))
            elif match := _MPT_PHY_RE.match(line):
                phy, model, size, state, flags = match.groups()
                severity = mpt_phy_severity(state, flags)
                findings.append(self.unit(
                    severity, adapter, UnitKind.PHYSICAL, phy,
                    f"{state} {' '.join(model.split())} {size}"
                ))
        if seen_output and not findings:
            return None
        return findings

    def parse_sas2ircu(self, adapter: int,
                       lines: Iterable[str]) -> list[Finding] | None:
        """Streaming accumulator; ``None`` when no record was recognized."""
        record = RecordAccumulator()
        findings: list[Finding] = []
        recognized = False
        seen_output = False

        def close():
            nonlocal recognized
            if record.is_open:
                recognized = True
                if not record.skip:
                    findings.append(self.materialize_sas2ircu(adapter, record))
            record.clear()

        for line in lines:
            item = _SAS2IRCU_RULES.classify(line.strip())
            if item.kind is not LineKind.BLANK:
                seen_output = True
            if item.kind is LineKind.LOGICAL:
                close()
                record.open(UnitKind.LOGICAL, item.value)
            elif item.kind is LineKind.PHYSICAL:
                close()
                record.open(UnitKind.PHYSICAL)
            elif item.kind is LineKind.SKIP:
                close()
                record.open(UnitKind.PHYSICAL, skip=True)
            elif item.kind is LineKind.FIELD:
                record.set(item.name, item.value)
            elif item.kind is LineKind.TERMINATOR:
                close()
            elif item.kind is LineKind.BLANK and "state" in record.fields:
                close()
        close()

        if seen_output and not recognized:
            return None
        return findings

    def materialize_sas2ircu(self, adapter: int,
                             record: RecordAccumulator) -> Finding:
        if record.kind is UnitKind.LOGICAL:
            unit = record.unit
        else:
            unit = f"{record.get('enclosure', '?')}:{record.get('slot', '?')}"
        state = record.get("state")
        if not state:
            return self.unit(Severity.WARN, adapter, record.kind, unit,
                             "state not reported")
        words = [state]
        words.extend(w for w in (record.get("level"), record.get("model")) if w)
        return self.unit(sas2ircu_severity(state), adapter, record.kind, unit,
                         " ".join(words))
