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
Recurrence Evaluator

Turns a reminder specification into its stream of fire instants.

Calendar dates are walked month by month, aligned on the interval counted
from `since` and filtered by the date selector; each qualifying date
yields one instant per anchor time. Sub-day intervals step from `since`
in elapsed time instead, and only keep instants on qualifying dates.
"""

import calendar
import logging
from datetime import MAXYEAR, date, datetime, time, timedelta
from typing import Iterator, Optional

import pytz

from .clock import localize, shift, start_of_day, to_local
from .spec import ReminderKind, ReminderSpec, Unit

logger = logging.getLogger("ambrogio.reminders.evaluator")

# How far ahead an open-ended search looks for a qualifying date
HORIZON_YEARS = 400


def _months(start: date, last: date) -> Iterator[tuple[int, int]]:
    year, month = start.year, start.month
    while (year, month) <= (last.year, last.month):
        yield year, month
        month += 1
        if month > 12:
            year, month = year + 1, 1


def _month_aligned(spec: ReminderSpec, since: date, year: int, month: int) -> bool:
    if spec.interval is None:
        return True
    count, unit = spec.interval.count, spec.interval.unit
    if unit is Unit.MONTH:
        return ((year - since.year) * 12 + month - since.month) % count == 0
    if unit is Unit.YEAR:
        return (year - since.year) % count == 0
    return True


def _day_aligned(spec: ReminderSpec, since: date, day: date) -> bool:
    if spec.interval is None:
        return True
    count, unit = spec.interval.count, spec.interval.unit
    if unit is Unit.DAY:
        return (day - since).days % count == 0
    if unit is Unit.WEEK:
        monday = day - timedelta(days=day.weekday())
        since_monday = since - timedelta(days=since.weekday())
        return ((monday - since_monday).days // 7) % count == 0
    return True


def qualifying_dates(
    spec: ReminderSpec, start: date, last: Optional[date] = None
) -> Iterator[date]:
    """
    Yield the calendar dates on or after `start` the reminder may fire on.

    Args:
        spec: Reminder specification
        start: First civil date to consider
        last: Last civil date to consider (defaults to the search horizon)
    """
    selector = spec.date_selector
    if last is None:
        last = date(min(start.year + HORIZON_YEARS, MAXYEAR), 12, 31)
    if selector.year is not None:
        last = min(last, date(selector.year, 12, 31))
    since = to_local(spec.since, spec.tz).date()

    for year, month in _months(start, last):
        if not selector.month_may_match(year, month):
            continue
        if not _month_aligned(spec, since, year, month):
            continue
        month_days = calendar.monthrange(year, month)[1]
        if selector.days:
            days = sorted(d for d in selector.days if d <= month_days)
        else:
            days = range(1, month_days + 1)
        for number in days:
            day = date(year, month, number)
            if day < start or day > last:
                continue
            if selector.matches(day) and _day_aligned(spec, since, day):
                yield day


def _instants(
    spec: ReminderSpec, start: date, last: Optional[date] = None
) -> Iterator[datetime]:
    tz = spec.tz
    times = sorted(spec.anchor_times)
    for day in qualifying_dates(spec, start, last):
        for at in times:
            yield localize(day, at, tz)


def _pin(instant: datetime, exact: datetime) -> datetime:
    """
    Prefer a known instant over its wall-clock rebuild.

    Inside the repeated hour of a daylight-saving change, localize() picks
    standard time; an instant computed in elapsed time keeps its own offset.
    """
    if instant.replace(tzinfo=None) == exact.replace(tzinfo=None):
        return exact
    return instant


def _once_target(spec: ReminderSpec) -> Optional[datetime]:
    """The single instant a Once reminder fires at."""
    tz = spec.tz
    start = exact = to_local(spec.since, tz)
    offset = spec.date_selector.offset
    if offset:
        exact = to_local(shift(spec.since, offset, tz), tz)
        start = start_of_day(exact, tz)
    for instant in _instants(spec, start.date()):
        instant = _pin(instant, exact)
        if instant > spec.since:
            return instant
    return None


def _next_sub_day(spec: ReminderSpec, after: datetime) -> Optional[datetime]:
    """Next since + k * interval strictly after `after`, on a qualifying date."""
    tz = spec.tz
    step = timedelta(**{f"{spec.interval.unit.value}s": spec.interval.count})
    since = spec.since.astimezone(pytz.UTC)
    last = to_local(spec.until, tz).date() if spec.until is not None else None

    lower = max(since, after)
    candidate = since + step * max(0, -(-(lower - since) // step))
    if candidate <= after:
        candidate += step

    while True:
        if spec.until is not None and candidate > spec.until:
            return None
        local = candidate.astimezone(tz)
        if spec.date_selector.matches(local.date()):
            return local
        following = next(qualifying_dates(spec, local.date() + timedelta(days=1), last), None)
        if following is None:
            return None
        day_start = localize(following, time(0, 0), tz)
        candidate = since + step * -(-(day_start - since) // step)


def next_occurrence(spec: ReminderSpec, after: datetime) -> Optional[datetime]:
    """
    Compute the earliest fire instant strictly after `after`.

    Args:
        spec: Reminder specification
        after: Exclusive lower bound (naive values are civil time)

    Returns:
        Fire instant in the civil timezone, or None when the reminder has
        nothing left to fire (a past Once target, or an exhausted until)
    """
    tz = spec.tz
    after = to_local(after, tz)
    try:
        if spec.kind is ReminderKind.ONCE:
            target = _once_target(spec)
            return target if target is not None and target > after else None

        if spec.interval.unit.is_sub_day:
            return _next_sub_day(spec, after)

        lower = max(spec.since, after)
        since = to_local(spec.since, tz)
        last = to_local(spec.until, tz).date() if spec.until is not None else None
        for instant in _instants(spec, to_local(lower, tz).date(), last):
            instant = _pin(instant, since)
            if instant < spec.since or instant <= after:
                continue
            if spec.until is not None and instant > spec.until:
                return None
            return instant
        return None
    except (OverflowError, ValueError):
        # Stepping past the last representable date
        logger.debug(f"No representable occurrence after {after} for {spec}")
        return None


def occurrences(
    spec: ReminderSpec, after: datetime, limit: Optional[int] = None
) -> Iterator[datetime]:
    """Lazily enumerate fire instants after `after`, increasing."""
    produced = 0
    while limit is None or produced < limit:
        instant = next_occurrence(spec, after)
        if instant is None:
            return
        yield instant
        after = instant
        produced += 1
