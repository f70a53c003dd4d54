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
# raid-check/src/raid_check/checker.py

"""Run every discovered controller's parser and sanity-check the results."""

from collections.abc import Iterable

from loguru import logger

from .drivers import CheckContext
from .model import ControllerInstance, Finding, Severity
from .overrides import Concern, OverridePolicy
from .registry import handler_for

_CONCERN_TEXT = {
    Concern.NO_DISKS: "no disks found",
    Concern.NO_LOGICAL_DRIVES: "no logical drives found",
}


def escalate_empty(instance: ControllerInstance, concern: Concern,
                   policy: OverridePolicy) -> Finding:
    """OK if the operator acknowledged ``concern``, otherwise WARN."""
    family, adapter = instance.family, instance.adapter_index
    text = _CONCERN_TEXT[concern]
    if policy.acknowledged(family, adapter, concern):
        return Finding.controller(Severity.OK, family, adapter,
                                  f"{text} (acknowledged)")
    sentinel = policy.sentinel(family, adapter, concern)
    return Finding.controller(
        Severity.WARN, family, adapter,
        f"{text}; create {sentinel} if this is expected"
    )


def check_controller(instance: ControllerInstance, context: CheckContext,
                     policy: OverridePolicy) -> list[Finding]:
    family, adapter = instance.family, instance.adapter_index
    handler = handler_for(family, context)
    try:
        findings = handler.check(adapter, instance.host_handle)
    except Exception as e:
        logger.exception(f"{family}/{adapter} check failed")
        return [Finding.controller(Severity.CRIT, family, adapter,
                                   f"check failed: {e}")]

    logger.debug(f"{family}/{adapter}: {len(findings)} findings")
    if not findings:
        return [escalate_empty(instance, Concern.NO_DISKS, policy)]
    if not any(f.is_logical for f in findings):
        findings.append(
            escalate_empty(instance, Concern.NO_LOGICAL_DRIVES, policy)
        )
    return findings


def check_controllers(instances: Iterable[ControllerInstance],
                      context: CheckContext,
                      policy: OverridePolicy) -> list[Finding]:
    """Check controllers one at a time and pool their findings."""
    findings = []
    for instance in instances:
        findings.extend(check_controller(instance, context, policy))
    return findings
