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
# raid-check/tests/conftest.py

"""Fake command runner and a CheckContext factory for driver tests."""

from collections.abc import Sequence

import pytest

from raid_check.config import TOOL_CANDIDATES, Settings
from raid_check.drivers import CheckContext
from raid_check.runner import CommandResult
from raid_check.smartctl import SmartctlCache


class FakeRunner:
    """Answer commands from canned output instead of running them.

    ``outputs`` maps a substring of the joined command line to a response:
    a string (split into lines), a ``CommandResult``, an exception to raise,
    or a list of those handed out one call at a time.
    """

    def __init__(self, outputs: dict | None = None):
        self.outputs = dict(outputs or {})
        self.calls: list[tuple[str, ...]] = []

    def run(self, argv: Sequence[str]) -> CommandResult:
        argv = tuple(argv)
        self.calls.append(argv)
        command = " ".join(argv)
        for pattern, response in self.outputs.items():
            if pattern in command:
                if isinstance(response, list):
                    response = response.pop(0) if len(response) > 1 \
                        else response[0]
                return self._respond(response)
        return CommandResult(lines=[])

    @staticmethod
    def _respond(response) -> CommandResult:
        if isinstance(response, Exception):
            raise response
        if isinstance(response, CommandResult):
            return response
        return CommandResult(lines=response.splitlines())

    def calls_matching(self, pattern: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if pattern in " ".join(call)]


def first_candidate(candidates):
    return candidates[0] if candidates else None


@pytest.fixture
def make_context():
    """Build a CheckContext whose tools resolve to /usr/sbin/<name>."""
    def factory(outputs: dict | None = None, tools: Sequence[str] = (),
                smartctl: str | None = None, **settings_kwargs) -> CheckContext:
        runner = FakeRunner(outputs)
        candidates = {
            name: (f"/usr/sbin/{name}",) if name in tools else ()
            for name in TOOL_CANDIDATES
        }
        settings = Settings(tool_candidates=candidates, **settings_kwargs)
        return CheckContext(
            runner=runner,
            smart=SmartctlCache(runner, smartctl),
            settings=settings,
            which=first_candidate,
            sleep=lambda _: None,
        )
    return factory
