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
# raid-check/tests/test_smartctl.py

import pytest

from raid_check.model import DiskHealthInfo
from raid_check.runner import CommandLaunchError, CommandResult
from raid_check.smartctl import (
    SmartctlCache,
    apply_exit_status,
    parse_smartctl_output,
)

from conftest import FakeRunner

ATA_OUTPUT = """smartctl 7.2 2020-12-30 r5155 [x86_64-linux-5.10.0-21-amd64] (local build)
Copyright (C) 2002-20, Bruce Allen, Christian Franke, www.smartmontools.org

=== START OF INFORMATION SECTION ===
Model Family:     Seagate Barracuda 7200.14 (AF)
Device Model:     ST2000DM001-1CH164
Serial Number:    Z1E5A1B2
Firmware Version: CC27
User Capacity:    2,000,398,934,016 bytes [2.00 TB]
Sector Sizes:     512 bytes logical, 4096 bytes physical
Device is:        In smartctl database [for details use: -P show]
SMART support is: Available - device has SMART capability.
SMART support is: Enabled

=== START OF READ SMART DATA SECTION ===
SMART overall-health self-assessment test result: PASSED
"""

SCSI_OUTPUT = """smartctl 5.41 2011-06-09 r3365 [x86_64-linux-2.6.32] (local build)

Device: SEAGATE  ST3146855SS      Version: 0002
Serial number: 3LN1ABCD
Device type: disk
Transport protocol: SAS
Device supports SMART and is Enabled
Temperature Warning Enabled
SMART Health Status: OK
"""

PRE_SMART_OUTPUT = """=== START OF INFORMATION SECTION ===
Device Model:     QUANTUM FIREBALL
User Capacity:    4,303,272,960 bytes [4.30 GB]
SMART support is: Unavailable - device lacks SMART capability.
"""


class TestParsing:
    """Both smartctl dialects give the same normalized fields."""

    def test_ata_dialect(self):
        """ATA output yields model, PASSED and capacity."""
        info = parse_smartctl_output(ATA_OUTPUT.splitlines())
        assert info == DiskHealthInfo(
            model="ST2000DM001-1CH164", health="PASSED", size_text="2.00 TB"
        )
        assert info.passed

    def test_scsi_dialect_ok_becomes_passed(self):
        """SCSI "SMART Health Status: OK" is normalized to PASSED."""
        info = parse_smartctl_output(SCSI_OUTPUT.splitlines())
        assert info.health == "PASSED"
        assert info.model == "SEAGATE ST3146855SS"

    def test_failing_verdict_is_kept_raw(self):
        """A vendor verdict other than OK is passed through untouched."""
        lines = ["SMART overall-health self-assessment test result: FAILED!"]
        assert parse_smartctl_output(lines).health == "FAILED!"

    def test_pre_smart_disk(self):
        """Disks without SMART are marked pre-smart."""
        info = parse_smartctl_output(PRE_SMART_OUTPUT.splitlines())
        assert info.health == "pre-smart"
        assert info.unavailable


class TestExitStatus:
    """smartctl exit status overrides the parsed health."""

    @pytest.mark.parametrize("status,health", [
        (0, "PASSED"),
        (2, "smartctl-open-failed"),
        (4, "PASSED"),
        (8, "smartctl-fail-8"),
        (64, "smartctl-fail-64"),
    ])
    def test_status_mapping(self, status, health):
        info = DiskHealthInfo(model="X", health="PASSED", size_text="1 TB")
        assert apply_exit_status(info, status).health == health

    def test_open_failure_wins_over_parsed_fields(self):
        """Status 2 means open-failed whatever was printed."""
        runner = FakeRunner({
            "/dev/sdb": CommandResult(ATA_OUTPUT.splitlines(), returncode=2)
        })
        cache = SmartctlCache(runner, "/usr/sbin/smartctl")
        assert cache.health("sdb").health == "smartctl-open-failed"


class TestCache:
    """Each device is probed at most once per run."""

    def test_second_lookup_reuses_first(self):
        """Two lookups for one device make a single smartctl call."""
        runner = FakeRunner({"/dev/sda": ATA_OUTPUT})
        cache = SmartctlCache(runner, "/usr/sbin/smartctl")

        first = cache.health("sda")
        second = cache.health("sda")

        assert first == second
        assert second is first
        assert len(runner.calls) == 1
        assert "sda" in cache
        assert len(cache) == 1

    def test_conservative_mode_arguments(self):
        """The probe asks for conservative-mode info and health."""
        runner = FakeRunner({"/dev/sda": ATA_OUTPUT})
        SmartctlCache(runner, "/usr/sbin/smartctl").health("sda")
        argv = runner.calls[0]
        assert argv[0] == "/usr/sbin/smartctl"
        assert argv[1:3] == ("-T", "conservative")
        assert "-H" in argv
        assert argv[-1] == "/dev/sda"

    def test_distinct_devices_probe_separately(self):
        runner = FakeRunner({"/dev/sd": ATA_OUTPUT})
        cache = SmartctlCache(runner, "/usr/sbin/smartctl")
        cache.health("sda")
        cache.health("sdb")
        assert len(runner.calls) == 2

    def test_missing_smartctl_runs_nothing(self):
        """Without smartctl every disk reports no-smartctl!."""
        runner = FakeRunner()
        cache = SmartctlCache(runner, None)
        assert cache.health("sda").health == "no-smartctl!"
        assert cache.health("sda").unavailable
        assert runner.calls == []

    def test_launch_failure_is_cached(self):
        """A smartctl that cannot start is remembered, not retried."""
        runner = FakeRunner({
            "smartctl": CommandLaunchError("smartctl", "Permission denied")
        })
        cache = SmartctlCache(runner, "/usr/sbin/smartctl")
        assert cache.health("sda").health == "smartctl-fail-launch"
        cache.health("sda")
        assert len(runner.calls) == 1
