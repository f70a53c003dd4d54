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
# raid-check/src/raid_check/drivers/base.py

"""Shared plumbing for the per-driver parsers.

Every handler gets a ``CheckContext`` (runner, smartctl cache, settings and
a tool resolver) and implements ``check(adapter, handle)``. Streaming
parsers classify each line with a ``LineClassifier`` and collect fields in a
``RecordAccumulator`` until a terminator line closes the record.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path

from loguru import logger

from ..config import Settings
from ..model import DriverFamily, Finding, Severity, UnitKind
from ..runner import (
    CommandLaunchError,
    CommandResult,
    ProcessRunner,
    RetryingRunner,
    find_executable,
)
from ..smartctl import SmartctlCache


class LineKind(Enum):
    """What a single line of tool output means to a streaming parser."""
    LOGICAL = auto()      # opens a logical-drive record
    PHYSICAL = auto()     # opens a physical-device record
    CONTROLLER = auto()   # opens a controller record
    BATTERY = auto()      # opens a battery record
    FIELD = auto()        # sets a field on the open record
    TERMINATOR = auto()   # closes the open record
    SKIP = auto()         # opens a record that must not be reported
    BLANK = auto()
    OTHER = auto()


@dataclass(frozen=True)
class Classified:
    kind: LineKind
    name: str = ""
    value: str = ""


@dataclass(frozen=True)
class LineRule:
    """``pattern`` matched against a line; ``name`` labels the captured value."""
    pattern: re.Pattern
    kind: LineKind
    name: str = ""


class LineClassifier:
    """Ordered rule table; the first matching rule wins."""

    def __init__(self, rules: Sequence[LineRule]):
        self.rules = tuple(rules)

    def classify(self, line: str) -> Classified:
        if not line.strip():
            return Classified(LineKind.BLANK)
        for rule in self.rules:
            if match := rule.pattern.search(line):
                value = match.group(1).strip() if match.groups() else ""
                return Classified(rule.kind, rule.name, value)
        return Classified(LineKind.OTHER)


@dataclass
class RecordAccumulator:
    """Fields of the unit currently being read."""
    kind: UnitKind | None = None
    unit: str = ""
    fields: dict[str, str] = field(default_factory=dict)
    skip: bool = False

    @property
    def is_open(self) -> bool:
        return self.kind is not None

    def open(self, kind: UnitKind, unit: str = "", skip: bool = False):
        self.kind = kind
        self.unit = unit
        self.fields = {}
        self.skip = skip

    def set(self, name: str, value: str):
        if self.is_open:
            self.fields[name] = value

    def get(self, name: str, default: str = "") -> str:
        return self.fields.get(name, default)

    def clear(self):
        self.kind = None
        self.unit = ""
        self.fields = {}
        self.skip = False


def max_severity(*severities: Severity) -> Severity:
    return max(severities, default=Severity.OK)


def downgrade_ok(severity: Severity, condition: bool) -> Severity:
    """Turn OK into WARN when ``condition`` holds; never touch WARN/CRIT."""
    if condition and severity is Severity.OK:
        return Severity.WARN
    return severity


def parse_int(value: str, default: int = 0) -> int:
    match = re.search(r"-?\d+", value or "")
    return int(match.group(0)) if match else default


@dataclass
class CheckContext:
    """What handlers need from the outside world."""
    runner: ProcessRunner
    smart: SmartctlCache
    settings: Settings = field(default_factory=Settings)
    which: Callable[[Iterable[str]], str | None] = find_executable
    sleep: Callable[[float], None] | None = None

    def tool(self, name: str) -> str | None:
        return self.which(self.settings.candidates(name))

    def retrying(self, busy_pattern: re.Pattern) -> RetryingRunner:
        kwargs = {}
        if self.sleep is not None:
            kwargs["sleep"] = self.sleep
        return RetryingRunner(
            self.runner,
            busy_pattern,
            attempts=self.settings.retry_attempts,
            delay=self.settings.retry_delay,
            **kwargs
        )

    def read_lines(self, path: Path) -> list[str]:
        return Path(path).read_text().splitlines()


class ToolFailure(Exception):
    """A handler could not get output; ``finding`` says why."""

    def __init__(self, finding: Finding):
        super().__init__(finding.message)
        self.finding = finding


class DriverHandler(ABC):
    """Parser for one controller family."""
    family: DriverFamily

    def __init__(self, context: CheckContext):
        self.context = context

    def check(self, adapter: int, handle: int | str) -> list[Finding]:
        """Run the family's tool(s) and turn the output into findings."""
        try:
            return self.collect(adapter, handle)
        except ToolFailure as e:
            return [e.finding]

    @abstractmethod
    def collect(self, adapter: int, handle: int | str) -> list[Finding]:
        ...

    def require_tool(self, adapter: int, *names: str) -> str:
        """Resolve the first available of ``names`` or fail with CRIT."""
        for name in names:
            if path := self.context.tool(name):
                return path
        raise ToolFailure(Finding.controller(
            Severity.CRIT, self.family, adapter,
            f"{' or '.join(names)} not found"
        ))

    def run(self, adapter: int, argv: Sequence[str],
            runner: ProcessRunner | RetryingRunner | None = None
            ) -> CommandResult:
        runner = runner or self.context.runner
        try:
            return runner.run(argv)
        except CommandLaunchError as e:
            logger.error(f"{self.family}/{adapter}: {e}")
            raise ToolFailure(Finding.controller(
                Severity.CRIT, self.family, adapter, str(e)
            )) from e

    def unrecognized(self, adapter: int, tool: str) -> Finding:
        """Output was there but nothing in it looked like a unit."""
        return Finding.controller(
            Severity.WARN, self.family, adapter,
            f"unrecognized {tool} output; did you load the kernel module?"
        )

    def unit(self, severity: Severity, adapter: int, kind: UnitKind,
             unit: str | int, status: str) -> Finding:
        return Finding.unit(severity, self.family, adapter, kind, unit, status)
