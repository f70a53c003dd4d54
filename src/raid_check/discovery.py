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
# raid-check/src/raid_check/discovery.py

"""Find RAID controllers and md arrays on this host.

Sources, in order: /proc/mdstat, SCSI hosts in /sys, family-specific
directories under /proc, and finally loaded kernel modules for families
nothing else turned up.
"""

import re
from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path
from typing import Final

from loguru import logger

from .config import Settings
from .model import ControllerInstance, DriverFamily
from .registry import MODULE_NAMES, PROC_DIRS, SCSI_PROC_NAMES

MDSTAT_HANDLE: Final[str] = "mdstat"

_MD_ARRAY_RE: Final = re.compile(r"^md\S*\s*:")
_HOST_RE: Final = re.compile(r"^host(\d+)$")
_PROC_ENTRY_RE: Final = re.compile(r"^[a-z]+\d+$")


def _read_lines(path: Path) -> list[str]:
    try:
        return path.read_text().splitlines()
    except OSError as e:
        logger.debug(f"Cannot read {path}: {e}")
        return []


def find_md_arrays(mdstat: Path) -> list[tuple[DriverFamily, str]]:
    if any(_MD_ARRAY_RE.match(line) for line in _read_lines(mdstat)):
        return [(DriverFamily.MD, MDSTAT_HANDLE)]
    return []


def find_scsi_hosts(sysfs_root: Path) -> list[tuple[DriverFamily, int]]:
    """SCSI hosts whose driver is a known RAID family."""
    found = []
    for host_dir in sorted((sysfs_root / "class" / "scsi_host").glob("host*")):
        match = _HOST_RE.match(host_dir.name)
        if not match:
            continue
        lines = _read_lines(host_dir / "proc_name")
        proc_name = lines[0].strip() if lines else ""
        family = SCSI_PROC_NAMES.get(proc_name)
        if family is None:
            logger.debug(f"{host_dir.name}: ignoring driver {proc_name!r}")
            continue
        found.append((family, int(match.group(1))))
    return found


def find_proc_dirs(proc_root: Path) -> list[tuple[DriverFamily, str]]:
    found = []
    for subdir, family in PROC_DIRS.items():
        path = proc_root / subdir
        if not path.is_dir():
            continue
        for entry in sorted(path.iterdir()):
            if _PROC_ENTRY_RE.match(entry.name):
                found.append((family, entry.name))
    return found


def find_modules(proc_root: Path,
                 exclude: Iterable[DriverFamily] = ()
                 ) -> list[tuple[DriverFamily, str]]:
    """Loaded modules for families no other source turned up."""
    exclude = set(exclude)
    found = []
    for line in _read_lines(proc_root / "modules"):
        name = line.split(" ", 1)[0]
        family = MODULE_NAMES.get(name)
        if family is None or family in exclude:
            continue
        found.append((family, f"module:{name}"))
        exclude.add(family)
    return found


def _handle_key(handle: int | str) -> tuple:
    if isinstance(handle, int):
        return (0, handle, "")
    # cciss10 sorts after cciss2
    match = re.match(r"^(\D*)(\d+)$", handle)
    if match:
        return (1, int(match.group(2)), match.group(1))
    return (2, 0, handle)


def assign_indexes(
    found: Iterable[tuple[DriverFamily, int | str]]
) -> list[ControllerInstance]:
    """Number controllers 0..n-1 per family by ascending raw handle.

    The same (family, handle) found twice is one controller.
    """
    by_family: dict[DriverFamily, set[int | str]] = defaultdict(set)
    for family, handle in found:
        by_family[family].add(handle)

    instances = []
    for family in DriverFamily:
        handles = sorted(by_family.get(family, ()), key=_handle_key)
        instances.extend(
            ControllerInstance(family, index, handle)
            for index, handle in enumerate(handles)
        )
    return instances


def discover(settings: Settings) -> list[ControllerInstance]:
    found: list[tuple[DriverFamily, int | str]] = []
    found.extend(find_md_arrays(settings.mdstat_path))
    found.extend(find_scsi_hosts(settings.sysfs_root))
    found.extend(find_proc_dirs(settings.proc_root))
    found.extend(find_modules(settings.proc_root,
                              exclude={family for family, _ in found}))

    instances = assign_indexes(found)
    for instance in instances:
        logger.info(
            f"Found {instance.family}/{instance.adapter_index} "
            f"(handle {instance.host_handle})"
        )
    return instances
