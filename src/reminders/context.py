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
Grammar Context Module

Per-parse state: the reception instant, the sub-grammar currently in
scope and the fragments gathered so far. Contexts are immutable; every
sub-grammar returns an updated copy.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, time
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta

from .spec import Interval


class Scope(str, Enum):
    TOP = "top"
    SINCE = "since"
    UNTIL = "until"
    TIMES = "times"


@dataclass(frozen=True)
class Boundary:
    """A since/until date fragment. Missing fields are resolved by the builder."""

    day: Optional[int] = None
    month: Optional[int] = None
    year: Optional[int] = None
    weekday: Optional[int] = None
    days_ahead: Optional[int] = None
    time: Optional[time] = None


@dataclass(frozen=True)
class Fragments:
    """Everything the parser recognized, before defaults are applied."""

    offset: Optional[relativedelta] = None
    times: tuple = ()
    year: Optional[int] = None
    months: frozenset = frozenset()
    days: frozenset = frozenset()
    weekdays: frozenset = frozenset()
    interval: Optional[Interval] = None
    recurrent: bool = False
    since: Optional[Boundary] = None
    until: Optional[Boundary] = None


@dataclass(frozen=True)
class GrammarContext:
    received_at: datetime
    scope: Scope = Scope.TOP
    fragments: Fragments = field(default_factory=Fragments)

    def with_scope(self, scope: Scope) -> "GrammarContext":
        if scope is self.scope:
            return self
        return replace(self, scope=scope)

    def update(self, **changes) -> "GrammarContext":
        """Overwrite fragment fields; the last occurrence of a fragment wins."""
        return replace(self, fragments=replace(self.fragments, **changes))

    def bind_times(self, times: list) -> "GrammarContext":
        """
        Attach times to whatever is in scope.

        Right after a since/until boundary the first time belongs to that
        boundary's instant, not to the reminder's anchor times.
        """
        if self.scope is Scope.SINCE and self.fragments.since is not None:
            return self.update(since=replace(self.fragments.since, time=times[0]))
        if self.scope is Scope.UNTIL and self.fragments.until is not None:
            return self.update(until=replace(self.fragments.until, time=times[0]))
        return self.update(times=tuple(times)).with_scope(Scope.TIMES)
