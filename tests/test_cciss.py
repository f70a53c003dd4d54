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
# raid-check/tests/test_cciss.py

from raid_check.drivers.cciss import (
    CcissHandler,
    ld_severity,
    pd_severity,
    split_controllers,
    split_details,
)
from raid_check.model import Severity, UnitKind

SHOW_CONFIG = """
Smart Array P400 in Slot 1                (sn: PAFGF0N9SXQ0W8)

   array A (SAS, Unused Space: 0 MB)

      logicaldrive 1 (68.3 GB, RAID 1, OK)

      physicaldrive 1I:1:1 (port 1I:box 1:bay 1, SAS, 72 GB, OK)
      physicaldrive 1I:1:2 (port 1I:box 1:bay 2, SAS, 72 GB, OK)

   unassigned

      physicaldrive 2I:1:3 (port 2I:box 1:bay 3, SAS, 72 GB, OK, spare)

Smart Array P410i in Slot 0 (Embedded)    (sn: 5001438012345670)

   array A (SAS, Unused Space: 0 MB)

      logicaldrive 1 (136.7 GB, RAID 1, Recovering, 45% complete)

      physicaldrive 1I:1:1 (port 1I:box 1:bay 1, SAS, 146 GB, Rebuilding)
      physicaldrive 1I:1:2 (port 1I:box 1:bay 2, SAS, 146 GB, Failed)
"""

BUSY = "Another instance of hpacucli is running! Stop it first.\n"


def run(make_context, output, adapter=0):
    context = make_context({"show config": output}, tools=["hpacucli"])
    return CcissHandler(context).check(adapter, f"cciss{adapter}"), \
        context.runner


class TestHelpers:

    def test_split_controllers(self):
        controllers = split_controllers(SHOW_CONFIG.splitlines())
        assert [name for name, _ in controllers] == [
            "Smart Array P400 slot 1", "Smart Array P410i slot 0"
        ]

    def test_split_details_keeps_multi_part_status(self):
        fields, status = split_details(
            "136.7 GB, RAID 1, Recovering, 45% complete", 2)
        assert fields == ["136.7 GB", "RAID 1"]
        assert status == "Recovering, 45% complete"

    def test_split_details_moves_spare_marker(self):
        fields, status = split_details(
            "port 2I:box 1:bay 3, SAS, 72 GB, OK, spare", 3)
        assert fields == ["port 2I:box 1:bay 3", "SAS", "72 GB", "spare"]
        assert status == "OK"

    def test_severities(self):
        assert ld_severity("OK") is Severity.OK
        assert ld_severity("Recovering, 45% complete") is Severity.WARN
        assert ld_severity("Interim Recovery Mode") is Severity.CRIT
        assert ld_severity("Failed") is Severity.CRIT
        assert pd_severity("OK") is Severity.OK
        assert pd_severity("Rebuilding") is Severity.WARN
        assert pd_severity("Predictive Failure") is Severity.WARN
        assert pd_severity("Failed") is Severity.CRIT


class TestCcissHandler:

    def test_first_controller(self, make_context):
        findings, runner = run(make_context, SHOW_CONFIG, adapter=0)

        assert runner.calls == [
            ("/usr/sbin/hpacucli", "ctrl", "all", "show", "config")
        ]
        assert [f.kind for f in findings] == [
            UnitKind.LOGICAL, UnitKind.PHYSICAL, UnitKind.PHYSICAL,
            UnitKind.PHYSICAL,
        ]
        assert all(f.severity is Severity.OK for f in findings)
        assert findings[0].message == "cciss/0 ld 1: OK 68.3 GB RAID 1"
        assert findings[1].message == "cciss/0 phy 1I:1:1: OK SAS 72 GB"
        assert findings[3].message == "cciss/0 phy 2I:1:3: OK SAS 72 GB spare"

    def test_second_controller_rebuilding(self, make_context):
        findings, _ = run(make_context, SHOW_CONFIG, adapter=1)

        logical, rebuilding, failed = findings
        assert logical.severity is Severity.WARN
        assert logical.message == \
            "cciss/1 ld 1: Recovering, 45% complete 136.7 GB RAID 1"
        assert rebuilding.severity is Severity.WARN
        assert failed.severity is Severity.CRIT

    def test_adapter_beyond_listing(self, make_context):
        (finding,) = run(make_context, SHOW_CONFIG, adapter=2)[0]

        assert finding.severity is Severity.WARN
        assert finding.message == \
            "cciss/2: controller not listed by hpacucli (2 found)"

    def test_busy_then_free(self, make_context):
        findings, runner = run(make_context, [BUSY, SHOW_CONFIG])

        assert len(runner.calls) == 2
        assert len(findings) == 4

    def test_busy_until_gave_up(self, make_context):
        """A tool that stays locked yields no findings, not an error."""
        findings, runner = run(make_context, [BUSY])

        assert findings == []
        assert len(runner.calls) == 3

    def test_no_output(self, make_context):
        findings, _ = run(make_context, "\n")
        assert findings == []

    def test_unrecognized(self, make_context):
        (finding,) = run(make_context, "Error: No controllers detected.\n")[0]

        assert finding.severity is Severity.WARN
        assert "unrecognized hpacucli output" in finding.message
