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
# raid-check/src/raid_check/smartctl.py

"""Per-run cache of smartctl health verdicts."""

import re
from collections.abc import Iterable
from typing import Final

from loguru import logger

from .model import (
    HEALTH_NO_SMARTCTL,
    HEALTH_OPEN_FAILED,
    HEALTH_PASSED,
    HEALTH_PRE_SMART,
    DiskHealthInfo,
)
from .runner import CommandLaunchError, ProcessRunner

# smartctl exit statuses with a fixed meaning here
EXIT_OPEN_FAILED: Final[int] = 2
EXIT_SMART_CMD_FAILED: Final[int] = 4

# ATA dialect first, SCSI dialect second
_MODEL_RE: Final = re.compile(r"^(?:Device Model|Device|Product):\s+(.+?)\s*$")
_HEALTH_RE: Final = re.compile(
    r"^(?:SMART overall-health self-assessment test result|"
    r"SMART Health Status):\s+(.+?)\s*$"
)
_CAPACITY_RE: Final = re.compile(r"^User Capacity:.*\[(.+)\]")
_PRE_SMART_RE: Final = re.compile(
    r"SMART support is:\s+Unavailable|Device does not support SMART"
)


def parse_smartctl_output(lines: Iterable[str]) -> DiskHealthInfo:
    """Parse ``smartctl -i -H`` output in either dialect."""
    model = ""
    health = ""
    size_text = ""
    for line in lines:
        if not model and (match := _MODEL_RE.match(line)):
            # "Device: SEAGATE  ST3146855SS      Version: 0002"
            model = " ".join(match.group(1).split(" Version:")[0].split())
        elif match := _HEALTH_RE.match(line):
            health = match.group(1)
            if health == "OK":
                health = HEALTH_PASSED
        elif match := _CAPACITY_RE.match(line):
            size_text = match.group(1).strip()
        elif _PRE_SMART_RE.search(line) and not health:
            health = HEALTH_PRE_SMART
    return DiskHealthInfo(model=model, health=health, size_text=size_text)


def apply_exit_status(info: DiskHealthInfo, status: int) -> DiskHealthInfo:
    """Fold the smartctl exit status into the parsed health."""
    if status in (0, EXIT_SMART_CMD_FAILED):
        return info
    if status == EXIT_OPEN_FAILED:
        health = HEALTH_OPEN_FAILED
    else:
        health = f"smartctl-fail-{status}"
    return DiskHealthInfo(model=info.model, health=health,
                          size_text=info.size_text)


class SmartctlCache:
    """Map device name to ``DiskHealthInfo``, probing each device once.

    Values never expire during a run. When smartctl is not installed every
    lookup answers ``no-smartctl!`` without running anything.
    """

    def __init__(self, runner: ProcessRunner, smartctl: str | None):
        self.runner = runner
        self.smartctl = smartctl
        self._cache: dict[str, DiskHealthInfo] = {}

    def __contains__(self, device: str) -> bool:
        return device in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def health(self, device: str) -> DiskHealthInfo:
        if self.smartctl is None:
            return DiskHealthInfo(health=HEALTH_NO_SMARTCTL)
        if device not in self._cache:
            self._cache[device] = self._probe(device)
        return self._cache[device]

    def _probe(self, device: str) -> DiskHealthInfo:
        argv = [self.smartctl, "-T", "conservative", "-i", "-H", "-A",
                f"/dev/{device}"]
        try:
            result = self.runner.run(argv)
        except CommandLaunchError as e:
            logger.warning(f"smartctl for {device}: {e}")
            return DiskHealthInfo(health="smartctl-fail-launch")

        info = apply_exit_status(parse_smartctl_output(result.lines),
                                 result.returncode)
        logger.debug(f"smartctl {device}: {info}")
        return info
