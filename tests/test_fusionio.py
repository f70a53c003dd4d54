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
# raid-check/tests/test_fusionio.py

from raid_check.drivers.fusionio import FusionioHandler
from raid_check.model import Severity, UnitKind

FIO_STATUS = """
Found 2 ioMemory devices in this system
Driver version: 3.2.15 build 1699

Adapter: Single Controller Adapter
\tFusion-io ioScale 410GB, Product Number:F11-003-410G-CS-0001, SN:1234D0987
\tExternal Power: NOT connected
\tConnected ioMemory modules:
\t  fct0:\tProduct Number:F11-003-410G-CS-0001, SN:1234D0987

fct0\tAttached
\tSN:1234D0987
\tLocated in slot 0 Center of ioScale 410GB SN:1234D0987
\tReserve space status: Healthy; Reserves: 100.00%, warn at 10.00%
\tActive media: 100.00%
\tRated PBW: 2.00 PB, 99.97% remaining

fct1\tAttached
\tSN:1234D0988
\tReserve space status: Healthy; Reserves: 100.00%, warn at 10.00%
\tRated PBW: 2.00 PB, 4.50% remaining
"""

MINIMAL_MODE = """
fct0\tStatus unknown: Driver is in MINIMAL MODE:
\t\tThe firmware on this device is not compatible with the currently installed version of the driver
"""


def run(make_context, output, handle="module:iomemory_vsl"):
    context = make_context({"fio-status": output}, tools=["fio-status"])
    return FusionioHandler(context).check(0, handle), context.runner


class TestFusionioHandler:

    def test_cards(self, make_context):
        findings, runner = run(make_context, FIO_STATUS)

        assert runner.calls == [("/usr/sbin/fio-status", "-a")]
        assert [f.kind for f in findings] == [UnitKind.LOGICAL] * 2
        healthy, worn = findings
        assert healthy.severity is Severity.OK
        assert healthy.message == \
            "fusionio/0 ld fct0: Attached, reserves Healthy, 99.97% life left"
        # little rated life left only warns
        assert worn.severity is Severity.WARN
        assert worn.message.endswith("4.5% life left")

    def test_single_card_from_proc(self, make_context):
        _, runner = run(make_context, FIO_STATUS, handle="fct1")
        assert runner.calls == [("/usr/sbin/fio-status", "-a", "/dev/fct1")]

    def test_unhealthy_reserves(self, make_context):
        output = FIO_STATUS.replace("status: Healthy; Reserves: 100.00%",
                                    "status: Warning; Reserves: 5.00%", 1)
        findings, _ = run(make_context, output)

        assert findings[0].severity is Severity.WARN
        assert "reserves Warning" in findings[0].message

    def test_minimal_mode_is_critical(self, make_context):
        (finding,) = run(make_context, MINIMAL_MODE)[0]

        assert finding.severity is Severity.CRIT
        assert "MINIMAL MODE" in finding.message

    def test_unrecognized(self, make_context):
        (finding,) = run(make_context, "fio-status: no devices found\n")[0]

        assert finding.severity is Severity.WARN
        assert "unrecognized fio-status output" in finding.message

    def test_tool_missing(self, make_context):
        context = make_context({})
        (finding,) = FusionioHandler(context).check(0, "fct0")

        assert finding.severity is Severity.CRIT
        assert finding.message == "fusionio/0: fio-status not found"
