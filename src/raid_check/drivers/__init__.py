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
# raid-check/src/raid_check/drivers/__init__.py

"""One parser per controller family."""

from .aacraid import AacraidHandler
from .base import CheckContext, DriverHandler
from .cciss import CcissHandler
from .fusionio import FusionioHandler
from .md import MdHandler
from .megaraid import MegaraidHandler
from .mptsas import MptsasHandler
from .threeware import ThreewareHandler

__all__ = [
    "AacraidHandler",
    "CcissHandler",
    "CheckContext",
    "DriverHandler",
    "FusionioHandler",
    "MdHandler",
    "MegaraidHandler",
    "MptsasHandler",
    "ThreewareHandler",
]
