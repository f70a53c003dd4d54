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
# raid-check/src/raid_check/__init__.py

"""Hardware and software RAID health check.

Discover RAID controllers and md arrays, parse each vendor tool's output
into findings, and fold them into one monitoring status line.
"""

from .checker import check_controllers
from .discovery import discover
from .model import (
    ControllerInstance,
    DiskHealthInfo,
    DriverFamily,
    Finding,
    Severity,
    UnitKind,
)
from .report import Report, render_report
from .smartctl import SmartctlCache

__version__ = "0.1.0"

__all__ = [
    "ControllerInstance",
    "DiskHealthInfo",
    "DriverFamily",
    "Finding",
    "Report",
    "Severity",
    "SmartctlCache",
    "UnitKind",
    "check_controllers",
    "discover",
    "render_report",
]
