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
# raid-check/src/raid_check/model.py

"""Value types shared by discovery, the driver parsers and the reporter."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Final


class Severity(IntEnum):
    """Finding severity; the integer value doubles as the exit code."""
    OK = 0
    WARN = 1
    CRIT = 2

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS: Final[dict[Severity, str]] = {
    Severity.OK: "OK",
    Severity.WARN: "WARNING",
    Severity.CRIT: "CRITICAL",
}


class DriverFamily(str, Enum):
    """Controller families the auditor knows how to check."""
    MD = "md"
    MEGARAID = "megaraid_sas"
    MPTSAS = "mptsas"
    AACRAID = "aacraid"
    CCISS = "cciss"
    THREEWARE = "3ware"
    FUSIONIO = "fusionio"

    def __str__(self) -> str:
        return self.value


class UnitKind(str, Enum):
    """What a finding is about."""
    LOGICAL = "ld"
    PHYSICAL = "phy"
    CONTROLLER = "ctl"
    BATTERY = "bbu"
    NONE = ""

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Finding:
    """One (severity, message) observation about one unit."""
    severity: Severity
    message: str
    kind: UnitKind = UnitKind.NONE

    @classmethod
    def unit(cls, severity: Severity, family: DriverFamily | str,
             adapter: int, kind: UnitKind, unit: str | int,
             status: str) -> "Finding":
        """Build a finding for a single ld/phy/ctl/bbu unit."""
        message = f"{family}/{adapter} {kind} {unit}: {status}"
        return cls(severity, message, kind)

    @classmethod
    def controller(cls, severity: Severity, family: DriverFamily | str,
                   adapter: int, text: str) -> "Finding":
        """Build a controller-level note that is not tied to a unit."""
        return cls(severity, f"{family}/{adapter}: {text}")

    @property
    def is_logical(self) -> bool:
        return self.kind is UnitKind.LOGICAL

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary."""
        return {
            'severity': self.severity.label,
            'message': self.message,
            'kind': self.kind.value or None,
        }


@dataclass(frozen=True)
class ControllerInstance:
    """A controller (or the md subsystem) found on this host."""
    family: DriverFamily
    adapter_index: int
    host_handle: int | str


@dataclass(frozen=True)
class DiskHealthInfo:
    """Summary of one smartctl probe."""
    model: str = ""
    health: str = ""
    size_text: str = ""

    @property
    def passed(self) -> bool:
        return self.health == HEALTH_PASSED

    @property
    def unavailable(self) -> bool:
        """True when SMART data cannot be had at all for this disk."""
        return self.health in (HEALTH_NO_SMARTCTL, HEALTH_PRE_SMART)


HEALTH_PASSED: Final[str] = "PASSED"
HEALTH_NO_SMARTCTL: Final[str] = "no-smartctl!"
HEALTH_PRE_SMART: Final[str] = "pre-smart"
HEALTH_OPEN_FAILED: Final[str] = "smartctl-open-failed"


@dataclass
class ArraySlot:
    """One member position of an md array while its block is being parsed."""
    partition_name: str = ""
    disk_name: str = ""
    is_spare: bool = False
    is_faulty: bool = False
    status_char: str = ""
