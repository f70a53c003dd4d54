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
# raid-check/src/raid_check/overrides.py

"""Operator sentinel files that acknowledge empty controllers."""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .model import DriverFamily


class Concern(str, Enum):
    NO_DISKS = "no-disks"
    NO_LOGICAL_DRIVES = "no-logical-drives"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OverridePolicy:
    """``<sentinel_dir>/<family>.<adapter>.<concern>`` marks a known state."""
    sentinel_dir: Path

    def sentinel(self, family: DriverFamily, adapter: int,
                 concern: Concern) -> Path:
        return Path(self.sentinel_dir) / f"{family}.{adapter}.{concern}"

    def acknowledged(self, family: DriverFamily, adapter: int,
                     concern: Concern) -> bool:
        path = self.sentinel(family, adapter, concern)
        return path.is_file() and os.access(path, os.R_OK)
