# ambrogio-reminders - Italian Reminder Engine and Scheduler
# Copyright (c) 2026 The ambrogio-reminders authors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Licensing inquiries: see the ambrogio-reminders project page

"""
Reminder Lifecycle

    Scheduled --fire--> Fired --advance--> Scheduled | Terminal

Once reminders terminate after their single fire; recurrent reminders go
back to Scheduled with a recomputed next_fire_at until the evaluator has
nothing left, then terminate. Terminal reminders are deleted by the store.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

import pytz

from .evaluator import next_occurrence
from .spec import ReminderKind, ReminderSpec


class LifecycleError(ValueError):
    """Raised on a transition the lifecycle does not allow."""


class LifecycleState(str, Enum):
    SCHEDULED = "scheduled"
    FIRED = "fired"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class LifecycleStep:
    state: LifecycleState
    next_fire_at: Optional[datetime] = None
    fired_at: Optional[datetime] = None


def schedule(spec: ReminderSpec, created_at: datetime) -> LifecycleStep:
    """Initial step: the first evaluator result after creation."""
    first = next_occurrence(spec, created_at)
    if first is None:
        return LifecycleStep(LifecycleState.TERMINAL)
    return LifecycleStep(LifecycleState.SCHEDULED, next_fire_at=first)


def fire(step: LifecycleStep, at: Optional[datetime] = None) -> LifecycleStep:
    """Scheduled -> Fired. `at` defaults to the scheduled instant."""
    if step.state is not LifecycleState.SCHEDULED:
        raise LifecycleError(f"Cannot fire a reminder in state {step.state.value}")
    return LifecycleStep(
        LifecycleState.FIRED,
        next_fire_at=step.next_fire_at,
        fired_at=at or step.next_fire_at,
    )


def advance_lifecycle(
    spec: ReminderSpec, step: LifecycleStep, now: Optional[datetime] = None
) -> LifecycleStep:
    """
    Fired -> Scheduled | Terminal.

    The next instant is searched after both the fire instant and `now`, so
    a reminder catching up after downtime fires once, not once per missed
    occurrence.
    """
    if step.state is not LifecycleState.FIRED:
        raise LifecycleError(f"Cannot advance a reminder in state {step.state.value}")
    if spec.kind is ReminderKind.ONCE:
        return LifecycleStep(LifecycleState.TERMINAL, fired_at=step.fired_at)

    after = step.fired_at or datetime.now(pytz.UTC)
    if now is not None and now > after:
        after = now
    following = next_occurrence(spec, after)
    if following is None:
        return LifecycleStep(LifecycleState.TERMINAL, fired_at=step.fired_at)
    return LifecycleStep(
        LifecycleState.SCHEDULED, next_fire_at=following, fired_at=step.fired_at
    )
