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
# raid-check/tests/test_threeware.py

from raid_check.drivers.threeware import (
    ThreewareHandler,
    list_controllers,
    port_severity,
    unit_severity,
)
from raid_check.model import Severity, UnitKind

TW_SHOW = """
Ctl   Model        (V)Ports  Drives   Units   NotOpt  RRete  VRate  BBU
------------------------------------------------------------------------
c0    9650SE-4LPML 4         4        1       0       1      1      -
c2    9690SA-8I    8         8        1       0       1      1      OK
"""

TW_UNITS_HEALTHY = """
Unit  UnitType  Status         %RCmpl  %V/I/M  Stripe  Size(GB)  Cache  AVrfy
------------------------------------------------------------------------------
u0    RAID-1    OK             -       -       -       465.651   ON     OFF

Port   Status           Unit   Size        Blocks        Serial
---------------------------------------------------------------
p0     OK               u0     465.76 GB   976773168     WD-WCAS87280912
p1     OK               u0     465.76 GB   976773168     WD-WCAS87280913
p2     NOT-PRESENT      -      -           -             -
p3     NOT-PRESENT      -      -           -             -
"""

TW_UNITS_REBUILDING = """
Unit  UnitType  Status         %RCmpl  %V/I/M  Stripe  Size(GB)  Cache  AVrfy
------------------------------------------------------------------------------
u0    RAID-5    REBUILDING     45%     -       64K     1396.95   ON     OFF

Port   Status           Unit   Size        Blocks        Serial
---------------------------------------------------------------
p0     OK               u0     465.76 GB   976773168     WD-WCAS87280912
p1     DEGRADED         u0     465.76 GB   976773168     WD-WCAS87280913
p2     REBUILDING       u0     465.76 GB   976773168     WD-WCAS87280914
"""


def run(make_context, units, adapter=0, listing=TW_SHOW):
    context = make_context({"tw_cli show": listing, " show": units},
                           tools=["tw_cli"])
    return ThreewareHandler(context).check(adapter, 4 + adapter), \
        context.runner


class TestHelpers:

    def test_list_controllers(self):
        assert list_controllers(TW_SHOW.splitlines()) == ["c0", "c2"]

    def test_severities(self):
        assert unit_severity("OK") is Severity.OK
        assert unit_severity("VERIFYING") is Severity.OK
        assert unit_severity("REBUILDING") is Severity.WARN
        assert unit_severity("INITIALIZING") is Severity.WARN
        assert unit_severity("DEGRADED") is Severity.CRIT
        assert unit_severity("INOPERABLE") is Severity.CRIT
        assert port_severity("OK") is Severity.OK
        assert port_severity("SMART-FAILURE") is Severity.WARN
        assert port_severity("DEVICE-ERROR") is Severity.CRIT


class TestThreewareHandler:

    def test_healthy_mirror(self, make_context):
        findings, runner = run(make_context, TW_UNITS_HEALTHY)

        assert runner.calls == [
            ("/usr/sbin/tw_cli", "show"),
            ("/usr/sbin/tw_cli", "/c0", "show"),
        ]
        # empty ports are not reported
        assert [f.kind for f in findings] == [
            UnitKind.LOGICAL, UnitKind.PHYSICAL, UnitKind.PHYSICAL
        ]
        assert all(f.severity is Severity.OK for f in findings)
        assert findings[0].message == "3ware/0 ld u0: OK RAID-1"
        assert findings[1].message == "3ware/0 phy p0: OK u0 465.76 GB"

    def test_rebuilding_unit(self, make_context):
        findings, _ = run(make_context, TW_UNITS_REBUILDING)

        unit, p0, p1, p2 = findings
        assert unit.severity is Severity.WARN
        assert unit.message == "3ware/0 ld u0: REBUILDING RAID-5 45%"
        assert p0.severity is Severity.OK
        assert p1.severity is Severity.CRIT
        assert p2.severity is Severity.WARN

    def test_second_adapter_uses_listed_id(self, make_context):
        _, runner = run(make_context, TW_UNITS_HEALTHY, adapter=1)
        assert runner.calls[-1] == ("/usr/sbin/tw_cli", "/c2", "show")

    def test_unlisted_adapter_falls_back(self, make_context):
        _, runner = run(make_context, TW_UNITS_HEALTHY, adapter=3)
        assert runner.calls[-1] == ("/usr/sbin/tw_cli", "/c3", "show")

    def test_unrecognized(self, make_context):
        findings, _ = run(make_context, "Error: (CLI:003) Specified "
                                        "controller does not exist.\n")
        assert len(findings) == 1
        assert findings[0].severity is Severity.WARN
        assert "unrecognized tw_cli output" in findings[0].message
