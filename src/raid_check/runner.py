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
# raid-check/src/raid_check/runner.py

"""Running vendor tools and capturing what they print."""

import os
import re
import subprocess
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from loguru import logger


class CommandLaunchError(RuntimeError):
    """The command could not be started at all."""

    def __init__(self, command: str, reason: str):
        super().__init__(f"cannot run {command}: {reason}")
        self.command = command
        self.reason = reason


@dataclass(frozen=True)
class CommandResult:
    """Captured stdout lines and exit status of one invocation."""
    lines: list[str]
    returncode: int = 0
    busy: bool = False

    @classmethod
    def unavailable(cls) -> "CommandResult":
        """Result used when a locked tool never became free."""
        return cls(lines=[], returncode=0, busy=True)


@dataclass(frozen=True)
class CommandTiming:
    argv: tuple[str, ...]
    started: datetime
    elapsed: float


@dataclass
class ProcessRunner:
    """Run a command and hand back its stdout split into lines.

    Exit status is reported, not judged: callers that care (smartctl) look
    at ``returncode`` themselves. With ``trace`` on, every call also records
    a ``CommandTiming`` in ``timings``.
    """
    trace: bool = False
    timings: list[CommandTiming] = field(default_factory=list)

    def run(self, argv: Sequence[str]) -> CommandResult:
        argv = tuple(str(arg) for arg in argv)
        started = datetime.now()
        t0 = time.perf_counter()
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False
            )
        except OSError as e:
            raise CommandLaunchError(argv[0], e.strerror or str(e)) from e
        finally:
            if self.trace:
                elapsed = time.perf_counter() - t0
                self.timings.append(CommandTiming(argv, started, elapsed))
                logger.debug(
                    f"{' '.join(argv)} started {started:%H:%M:%S.%f} "
                    f"took {elapsed:.3f}s"
                )

        lines = result.stdout.splitlines()
        logger.debug(f"{argv[0]} exited {result.returncode}, {len(lines)} lines")
        return CommandResult(lines=lines, returncode=result.returncode)


class RetryingRunner:
    """Runner for tools that refuse to work while another copy holds a lock.

    When the output matches ``busy_pattern`` the call is repeated after
    ``delay`` seconds, ``attempts`` times in total. If the tool is still busy
    after that, an empty ``CommandResult`` with ``busy`` set is returned.
    """

    def __init__(self, runner: ProcessRunner, busy_pattern: re.Pattern,
                 attempts: int = 3, delay: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep):
        if attempts < 1:
            raise ValueError(f"attempts must be positive, got {attempts}")
        self.runner = runner
        self.busy_pattern = busy_pattern
        self.attempts = attempts
        self.delay = delay
        self.sleep = sleep

    def is_busy(self, lines: Iterable[str]) -> bool:
        return any(self.busy_pattern.search(line) for line in lines)

    def run(self, argv: Sequence[str]) -> CommandResult:
        for attempt in range(1, self.attempts + 1):
            result = self.runner.run(argv)
            if not self.is_busy(result.lines):
                return result
            logger.info(
                f"{argv[0]} busy (attempt {attempt}/{self.attempts})"
            )
            if attempt < self.attempts:
                self.sleep(self.delay)

        logger.warning(f"{argv[0]} still busy after {self.attempts} attempts")
        return CommandResult.unavailable()


def find_executable(candidates: Iterable[str | Path]) -> str | None:
    """Return the first candidate that exists and is executable."""
    for candidate in candidates:
        path = Path(candidate)
        if path.is_file() and os.access(path, os.X_OK):
            return str(path)
    return None
