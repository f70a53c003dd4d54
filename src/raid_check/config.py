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
# raid-check/src/raid_check/config.py

"""Run-wide settings and the places vendor tools are looked for."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

DEFAULT_SENTINEL_DIR: Final[Path] = Path("/etc/raid-check")
DEFAULT_SYSFS_ROOT: Final[Path] = Path("/sys")
DEFAULT_PROC_ROOT: Final[Path] = Path("/proc")

# hpacucli/hpssacli hold a lock while another instance runs
RETRY_ATTEMPTS: Final[int] = 3
RETRY_DELAY_SECONDS: Final[float] = 1.0

# Candidate paths per tool, first executable one wins
TOOL_CANDIDATES: Final[dict[str, tuple[str, ...]]] = {
    "smartctl": (
        "/usr/sbin/smartctl",
        "/usr/bin/smartctl",
        "/usr/local/sbin/smartctl",
    ),
    "megacli": (
        "/opt/MegaRAID/MegaCli/MegaCli64",
        "/opt/MegaRAID/MegaCli/MegaCli",
        "/usr/sbin/megacli",
        "/usr/bin/megacli",
        "/usr/sbin/MegaCli64",
    ),
    "mpt-status": (
        "/usr/sbin/mpt-status",
        "/usr/bin/mpt-status",
    ),
    "sas2ircu": (
        "/usr/sbin/sas2ircu",
        "/usr/bin/sas2ircu",
        "/usr/local/sbin/sas2ircu",
    ),
    "arcconf": (
        "/usr/sbin/arcconf",
        "/usr/bin/arcconf",
        "/usr/StorMan/arcconf",
    ),
    "hpacucli": (
        "/usr/sbin/ssacli",
        "/usr/sbin/hpssacli",
        "/usr/sbin/hpacucli",
    ),
    "tw_cli": (
        "/usr/sbin/tw_cli",
        "/usr/bin/tw_cli",
        "/usr/local/sbin/tw_cli",
    ),
    "fio-status": (
        "/usr/bin/fio-status",
        "/usr/sbin/fio-status",
    ),
}


@dataclass(frozen=True)
class Settings:
    """Everything a run needs to know about its environment."""
    sentinel_dir: Path = DEFAULT_SENTINEL_DIR
    sysfs_root: Path = DEFAULT_SYSFS_ROOT
    proc_root: Path = DEFAULT_PROC_ROOT
    trace: bool = False
    retry_attempts: int = RETRY_ATTEMPTS
    retry_delay: float = RETRY_DELAY_SECONDS
    tool_candidates: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(TOOL_CANDIDATES)
    )

    @property
    def mdstat_path(self) -> Path:
        return self.proc_root / "mdstat"

    def candidates(self, tool: str) -> tuple[str, ...]:
        try:
            return self.tool_candidates[tool]
        except KeyError:
            raise ValueError(f"Unknown tool: {tool}") from None
