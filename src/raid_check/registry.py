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
# raid-check/src/raid_check/registry.py

"""Which parser handles which driver family, and how families are named
by the kernel.

Most controllers show up as a SCSI host whose ``proc_name`` names the
driver. A few families only expose a ``/proc`` directory or a loaded
module, so those get their own lookup tables.
"""

from typing import Final

from .drivers import (
    AacraidHandler,
    CcissHandler,
    CheckContext,
    DriverHandler,
    FusionioHandler,
    MdHandler,
    MegaraidHandler,
    MptsasHandler,
    ThreewareHandler,
)
from .model import DriverFamily

HANDLERS: Final[dict[DriverFamily, type[DriverHandler]]] = {
    DriverFamily.MD: MdHandler,
    DriverFamily.MEGARAID: MegaraidHandler,
    DriverFamily.MPTSAS: MptsasHandler,
    DriverFamily.AACRAID: AacraidHandler,
    DriverFamily.CCISS: CcissHandler,
    DriverFamily.THREEWARE: ThreewareHandler,
    DriverFamily.FUSIONIO: FusionioHandler,
}

_missing = set(DriverFamily) - set(HANDLERS)
if _missing:
    raise RuntimeError(f"No handler registered for {sorted(_missing)}")

# /sys/class/scsi_host/host*/proc_name -> family
SCSI_PROC_NAMES: Final[dict[str, DriverFamily]] = {
    "megaraid_sas": DriverFamily.MEGARAID,
    "megaraid": DriverFamily.MEGARAID,
    "mptsas": DriverFamily.MPTSAS,
    "mpt2sas": DriverFamily.MPTSAS,
    "mpt3sas": DriverFamily.MPTSAS,
    "aacraid": DriverFamily.AACRAID,
    "hpsa": DriverFamily.CCISS,
    "3w-9xxx": DriverFamily.THREEWARE,
    "3w-xxxx": DriverFamily.THREEWARE,
    "3w-sas": DriverFamily.THREEWARE,
}

# /proc/modules entry -> family
MODULE_NAMES: Final[dict[str, DriverFamily]] = {
    "cciss": DriverFamily.CCISS,
    "iomemory_vsl": DriverFamily.FUSIONIO,
    "iomemory_vsl4": DriverFamily.FUSIONIO,
}

# directory under /proc -> family; each entry inside is one controller
PROC_DIRS: Final[dict[str, DriverFamily]] = {
    "driver/cciss": DriverFamily.CCISS,
    "fusion/fio": DriverFamily.FUSIONIO,
}


def handler_for(family: DriverFamily, context: CheckContext) -> DriverHandler:
    return HANDLERS[family](context)
