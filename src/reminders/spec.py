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
Reminder Specification Module

The canonical result of parsing one reminder command. The kind of a
reminder is a tagged variant: OnceSpec, RecurrentSpec or
RecurrentUntilSpec, built only after every fragment has been merged.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import ClassVar, Optional

import pytz
from dateutil.relativedelta import relativedelta

from .config import DEFAULT_TIMEZONE


class ReminderKind(str, Enum):
    ONCE = "Once"
    RECURRENT = "Recurrent"
    RECURRENT_UNTIL = "RecurrentUntil"


class Unit(str, Enum):
    """Duration and recurrence units, finest first."""

    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    def delta(self, count: int = 1) -> relativedelta:
        return relativedelta(**{f"{self.value}s": count})

    @property
    def is_sub_day(self) -> bool:
        return self in (Unit.SECOND, Unit.MINUTE, Unit.HOUR)


@dataclass(frozen=True)
class WeekdaySelector:
    """
    A weekday, optionally restricted to its n-th occurrence in the month.

    weekday follows datetime.weekday() (Monday = 0). ordinal is 1..5 for
    "primo".."quinto", -1 for "ultimo", None for every occurrence.
    """

    weekday: int
    ordinal: Optional[int] = None

    def matches(self, day: date) -> bool:
        if day.weekday() != self.weekday:
            return False
        if self.ordinal is None:
            return True
        if self.ordinal < 0:
            return day.day + 7 > calendar.monthrange(day.year, day.month)[1]
        return (day.day - 1) // 7 + 1 == self.ordinal

    @property
    def sort_key(self) -> tuple:
        return (self.weekday, 0 if self.ordinal is None else self.ordinal)


@dataclass(frozen=True)
class Interval:
    """Periodic step: every `count` units."""

    count: int = 1
    unit: Unit = Unit.DAY


DEFAULT_INTERVAL = Interval(1, Unit.DAY)


@dataclass(frozen=True)
class DateSelector:
    """
    Which calendar dates qualify. Empty collections mean "any".

    offset is a relative duration added to `since` (only kept for Once
    reminders; recurrent reminders fold it into `since`).
    """

    year: Optional[int] = None
    months: frozenset = frozenset()
    days: frozenset = frozenset()
    weekdays: frozenset = frozenset()
    offset: Optional[relativedelta] = None

    def matches(self, day: date) -> bool:
        if self.year is not None and day.year != self.year:
            return False
        if self.months and day.month not in self.months:
            return False
        if self.days and day.day not in self.days:
            return False
        if self.weekdays and not any(w.matches(day) for w in self.weekdays):
            return False
        return True

    def month_may_match(self, year: int, month: int) -> bool:
        if self.year is not None and year != self.year:
            return False
        return not self.months or month in self.months


@dataclass(frozen=True)
class ReminderSpec:
    """Fields shared by every reminder kind."""

    since: datetime
    anchor_times: tuple
    date_selector: DateSelector = field(default_factory=DateSelector)
    message: str = ""
    timezone: str = DEFAULT_TIMEZONE
    interval: Optional[Interval] = None
    until: Optional[datetime] = None

    kind: ClassVar[ReminderKind]

    def __post_init__(self):
        if not self.anchor_times:
            raise ValueError("A reminder needs at least one anchor time")

    @property
    def tz(self) -> pytz.BaseTzInfo:
        return pytz.timezone(self.timezone)


@dataclass(frozen=True)
class OnceSpec(ReminderSpec):
    kind: ClassVar[ReminderKind] = ReminderKind.ONCE

    def __post_init__(self):
        super().__post_init__()
        if self.interval is not None or self.until is not None:
            raise ValueError("Once reminders have neither interval nor until")


@dataclass(frozen=True)
class RecurrentSpec(ReminderSpec):
    kind: ClassVar[ReminderKind] = ReminderKind.RECURRENT

    def __post_init__(self):
        super().__post_init__()
        if self.interval is None or self.interval.count < 1:
            raise ValueError("Recurrent reminders need a positive interval")
        if self.until is not None and type(self) is RecurrentSpec:
            raise ValueError("Recurrent reminders have no until")


@dataclass(frozen=True)
class RecurrentUntilSpec(RecurrentSpec):
    kind: ClassVar[ReminderKind] = ReminderKind.RECURRENT_UNTIL

    def __post_init__(self):
        super().__post_init__()
        if self.until is None or self.until < self.since:
            raise ValueError("RecurrentUntil requires since <= until")


SPEC_TYPES = {cls.kind: cls for cls in (OnceSpec, RecurrentSpec, RecurrentUntilSpec)}


def anchor_time_of(instant: datetime) -> time:
    """Time-of-day of an instant, as a naive time."""
    return instant.time().replace(tzinfo=None)
