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
# raid-check/src/raid_check/drivers/md.py

"""Linux software RAID, read from /proc/mdstat.

Example block::

    md0 : active raid1 sdb1[1] sda1[0]
          1953511936 blocks [2/2] [UU]
          [==>..................]  recovery = 12.6% (...) finish=...

The ``[n/m]`` pair is total/present and each character of ``[UU]`` is one
member position, ``_`` meaning that position is down.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Final

from loguru import logger

from ..model import ArraySlot, DriverFamily, Finding, Severity, UnitKind
from .base import DriverHandler, ToolFailure, max_severity

_HEADER_RE: Final = re.compile(r"^(md\S+)\s*:\s*(.*)$")
_MEMBER_RE: Final = re.compile(r"^(\S+?)\[(\d+)\]((?:\([A-Z]\))*)$")
_LEVEL_RE: Final = re.compile(r"^(raid\d+|linear|multipath|faulty)$")
_SUMMARY_RE: Final = re.compile(
    r"^\s*(\d+) blocks\b(?:.*?\[(\d+)/(\d+)\]\s+\[([U_]+)\])?"
)
_RECOVERY_RE: Final = re.compile(
    r"\b(recovery|resync|reshape|check)\s*=\s*(\S+)"
)
_PARTITION_RES: Final = (
    re.compile(r"^((?:nvme\d+n\d+)|(?:mmcblk\d+)|(?:loop\d+))p\d+$"),
    re.compile(r"^([a-z]+)\d+$"),
)

# "check" is a routine scrub and only annotates the array
_RESYNC_KINDS: Final = frozenset({"recovery", "resync", "reshape"})


class MdState(Enum):
    IDLE = auto()
    HEADER = auto()
    SUMMARY = auto()
    RECOVERY = auto()


def disk_for_partition(partition: str) -> str:
    """``sda1`` -> ``sda``, ``nvme0n1p2`` -> ``nvme0n1``, ``sdb`` -> ``sdb``."""
    for pattern in _PARTITION_RES:
        if match := pattern.match(partition):
            return match.group(1)
    return partition


@dataclass
class MdArray:
    """Everything read about one array so far."""
    name: str
    state: str = ""
    level: str = ""
    notes: list[str] = field(default_factory=list)
    members: dict[int, ArraySlot] = field(default_factory=dict)
    spares: list[ArraySlot] = field(default_factory=list)
    slots: list[ArraySlot] = field(default_factory=list)
    total: int | None = None
    present: int | None = None
    status: str = ""
    resync: str = ""
    resync_progress: str = ""

    @property
    def resyncing(self) -> bool:
        return self.resync in _RESYNC_KINDS


def parse_header(name: str, rest: str) -> MdArray:
    """Split ``active raid1 sdb1[1] sda1[0]`` into state, level and slots."""
    array = MdArray(name=name)
    state_words = []
    for token in rest.split():
        if member := _MEMBER_RE.match(token):
            partition, number, flags = member.groups()
            slot = ArraySlot(
                partition_name=partition,
                disk_name=disk_for_partition(partition),
                is_spare="(S)" in flags,
                is_faulty="(F)" in flags,
            )
            # (W)rite-mostly and (R)eplacement flags carry no health meaning
            if slot.is_spare:
                array.spares.append(slot)
            else:
                array.members[int(number)] = slot
        elif _LEVEL_RE.match(token):
            array.level = token
        elif token.startswith("("):
            array.notes.append(token.strip("()"))
        elif not array.level and not array.members:
            state_words.append(token)
        else:
            logger.debug(f"{name}: ignoring token {token!r}")
    array.state = " ".join(state_words)
    return array


def assign_status(array: MdArray):
    """Map the ``[UU_]`` characters onto member positions.

    A working member whose number is a free position takes it. Faulty
    members and those numbered past the end (replacements) fill the
    remaining gaps, working ones first. Gaps left over have no disk at all.
    """
    positions = len(array.status) if array.status else len(array.members)
    slots: list[ArraySlot | None] = [None] * positions
    leftovers = []
    for number, slot in sorted(array.members.items()):
        if (not slot.is_faulty and number < positions
                and slots[number] is None):
            slots[number] = slot
        else:
            leftovers.append(slot)
    leftovers.sort(key=lambda slot: slot.is_faulty)

    for i in range(positions):
        if slots[i] is None:
            slots[i] = leftovers.pop(0) if leftovers else ArraySlot()
    slots.extend(leftovers)

    for i, slot in enumerate(slots):
        if i < len(array.status):
            slot.status_char = array.status[i]
        elif not array.status and i < positions:
            slot.status_char = "U"
    array.slots = slots


class MdParser:
    """Explicit state machine over mdstat lines.

    IDLE -> HEADER on an ``mdN :`` line, HEADER -> SUMMARY on the blocks
    line, SUMMARY -> RECOVERY on a progress line. A blank line (or a new
    header, or the end of input) closes the open array.
    """

    def __init__(self):
        self.state = MdState.IDLE
        self.current: MdArray | None = None
        self.closed: list[MdArray] = []

    def feed(self, line: str):
        if header := _HEADER_RE.match(line):
            self._close()
            self.current = parse_header(header.group(1), header.group(2))
            self.state = MdState.HEADER
            return

        if self.state is MdState.IDLE:
            return

        if not line.strip():
            self._close()
        elif self.state is MdState.HEADER and (
                summary := _SUMMARY_RE.match(line)):
            _, total, present, status = summary.groups()
            if total is not None:
                self.current.total = int(total)
                self.current.present = int(present)
                self.current.status = status
            self.state = MdState.SUMMARY
        elif recovery := _RECOVERY_RE.search(line):
            self.current.resync = recovery.group(1)
            self.current.resync_progress = recovery.group(2)
            self.state = MdState.RECOVERY

    def finish(self) -> list[MdArray]:
        self._close()
        return self.closed

    def _close(self):
        if self.current is not None:
            assign_status(self.current)
            self.closed.append(self.current)
        self.current = None
        self.state = MdState.IDLE


def parse_mdstat(lines: Iterable[str]) -> list[MdArray]:
    parser = MdParser()
    for line in lines:
        parser.feed(line)
    return parser.finish()


class MdHandler(DriverHandler):
    family = DriverFamily.MD

    def collect(self, adapter: int, handle: int | str) -> list[Finding]:
        path = self.context.settings.mdstat_path
        try:
            lines = self.context.read_lines(path)
        except OSError as e:
            raise ToolFailure(Finding.controller(
                Severity.CRIT, self.family, adapter,
                f"cannot read {path}: {e.strerror or e}"
            )) from e

        findings = []
        for array in parse_mdstat(lines):
            findings.extend(self.array_findings(adapter, array))
        return findings

    def slot_finding(self, adapter: int, array: MdArray, position: int,
                     slot: ArraySlot) -> Finding:
        if not slot.disk_name:
            return self.unit(Severity.CRIT, adapter, UnitKind.PHYSICAL,
                             f"{array.name}[{position}]", "MISSING")

        rebuilding = slot.status_char == "_" and array.resyncing
        if slot.status_char == "_" and not rebuilding:
            note = " faulty" if slot.is_faulty else ""
            return self.unit(Severity.CRIT, adapter, UnitKind.PHYSICAL,
                             slot.partition_name,
                             f"MISSING ({slot.disk_name}{note})")
        return self.disk_finding(adapter, slot, rebuilding=rebuilding)

    def disk_finding(self, adapter: int, slot: ArraySlot,
                     rebuilding: bool = False) -> Finding:
        info = self.context.smart.health(slot.disk_name)
        severity = Severity.OK if info.passed or info.unavailable \
            else Severity.CRIT
        words = []
        if slot.is_spare:
            words.append("spare")
        if slot.is_faulty:
            words.append("faulty")
        if rebuilding:
            severity = max_severity(severity, Severity.WARN)
            words.append("rebuilding")
        words.extend(w for w in (info.health, info.model, info.size_text) if w)
        return self.unit(severity, adapter, UnitKind.PHYSICAL,
                         slot.partition_name, " ".join(words))

    def array_findings(self, adapter: int, array: MdArray) -> list[Finding]:
        slot_findings = [
            self.slot_finding(adapter, array, i, slot)
            for i, slot in enumerate(array.slots)
        ]
        slot_findings.extend(
            self.disk_finding(adapter, spare) for spare in array.spares
        )

        severity = max_severity(*(f.severity for f in slot_findings))
        if (array.total is not None and
                array.present is not None and array.present < array.total):
            severity = Severity.CRIT
        if array.state != "active":
            severity = Severity.CRIT
        if any(slot.is_faulty for slot in array.slots):
            severity = max_severity(severity, Severity.WARN)
        if array.resyncing:
            severity = max_severity(severity, Severity.WARN)

        words = [w for w in (array.state, array.level) if w]
        words.extend(f"({note})" for note in array.notes)
        if array.total is not None:
            words.append(f"[{array.total}/{array.present}] [{array.status}]")
        if array.resync:
            words.append(f"{array.resync} {array.resync_progress}")
        array_finding = self.unit(severity, adapter, UnitKind.LOGICAL,
                                  array.name, " ".join(words))
        return slot_findings + [array_finding]
