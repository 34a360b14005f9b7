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
Recurrence Spec Builder

Merges parsed fragments into one of the three reminder kinds, filling
missing fields in this order of precedence:

    explicit value > reception instant > grammar default ("every day", 1 unit)
"""

import calendar
import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from .clock import get_timezone, localize, shift, to_local
from .config import DEFAULT_TIMEZONE
from .context import Boundary, Fragments
from .spec import (
    DEFAULT_INTERVAL,
    DateSelector,
    OnceSpec,
    RecurrentSpec,
    RecurrentUntilSpec,
    ReminderSpec,
    Unit,
    WeekdaySelector,
    anchor_time_of,
)

logger = logging.getLogger("ambrogio.reminders.builder")

END_OF_DAY = time(23, 59, 59)


def _last_day(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def resolve_boundary(boundary: Boundary, ref: date, is_until: bool = False) -> date:
    """
    Resolve a since/until date fragment against a reference date.

    Missing fields take the start of the period for since boundaries and
    its end for until boundaries. A boundary without an explicit year that
    falls before the reference moves to the next month or year.
    """
    if boundary.days_ahead is not None:
        return ref + timedelta(days=boundary.days_ahead)
    if boundary.weekday is not None:
        return ref + timedelta(days=(boundary.weekday - ref.weekday()) % 7)

    year = boundary.year if boundary.year is not None else ref.year
    if boundary.month is not None:
        month = boundary.month
    elif boundary.day is not None and boundary.year is None:
        month = ref.month
    else:
        month = 12 if is_until else 1

    def build(y: int, m: int) -> date:
        if boundary.day is not None:
            return date(y, m, min(boundary.day, _last_day(y, m)))
        return date(y, m, _last_day(y, m) if is_until else 1)

    resolved = build(year, month)
    if resolved < ref and boundary.year is None:
        if boundary.month is None and boundary.day is not None:
            rolled = date(year, month, 1) + relativedelta(months=1)
            resolved = build(rolled.year, rolled.month)
        else:
            resolved = build(year + 1, month)
    return resolved


def _apply_offset(now: datetime, offset: Optional[relativedelta], tz) -> tuple:
    """Shift the reception instant; offsets past the calendar range are dropped."""
    if not offset:
        return None, now
    try:
        return offset, shift(now, offset, tz)
    except (OverflowError, ValueError):
        logger.debug(f"Offset {offset} out of range, ignoring it")
        return None, now


def _base_selector(fragments: Fragments) -> DateSelector:
    return DateSelector(
        year=fragments.year,
        months=fragments.months,
        days=fragments.days,
        weekdays=fragments.weekdays,
    )


def _merge_since_into_selector(fragments: Fragments) -> Fragments:
    """A since boundary without "ogni" only narrows the single target date."""
    since = fragments.since
    changes = {}
    if since.year is not None and fragments.year is None:
        changes["year"] = since.year
    if since.month is not None and not fragments.months:
        changes["months"] = frozenset([since.month])
    if since.day is not None and not fragments.days:
        changes["days"] = frozenset([since.day])
    if since.weekday is not None and not fragments.weekdays:
        changes["weekdays"] = frozenset([WeekdaySelector(since.weekday)])
    if since.days_ahead is not None and fragments.offset is None:
        changes["offset"] = relativedelta(days=since.days_ahead)
    if since.time is not None and not fragments.times:
        changes["times"] = (since.time,)
    return replace(fragments, since=None, **changes)


def _build_once(fragments: Fragments, now: datetime, message: str, tz) -> OnceSpec:
    if fragments.since is not None:
        fragments = _merge_since_into_selector(fragments)

    offset, base = _apply_offset(now, fragments.offset, tz)
    times = tuple(sorted(set(fragments.times))) or (anchor_time_of(base),)

    selector = replace(_base_selector(fragments), offset=offset)
    if selector.year is not None and not selector.months:
        selector = replace(selector, months=frozenset([1]))
    if selector.months and not selector.days and not selector.weekdays:
        selector = replace(selector, days=frozenset([1]))

    return OnceSpec(
        since=now,
        anchor_times=times,
        date_selector=selector,
        message=message,
        timezone=tz.zone,
    )


def _fill_for_interval(selector: DateSelector, interval, since: datetime) -> DateSelector:
    unit = interval.unit
    if unit is Unit.YEAR:
        if not selector.months:
            selector = replace(selector, months=frozenset([since.month]))
        if not selector.days and not selector.weekdays:
            selector = replace(selector, days=frozenset([since.day]))
    elif unit is Unit.MONTH:
        if not selector.days and not selector.weekdays:
            selector = replace(selector, days=frozenset([since.day]))
    elif unit is Unit.WEEK:
        if not selector.weekdays:
            selector = replace(selector, weekdays=frozenset([WeekdaySelector(since.weekday())]))
    return selector


def _build_recurrent(fragments: Fragments, now: datetime, message: str, tz) -> RecurrentSpec:
    _, base = _apply_offset(now, fragments.offset, tz)
    times = tuple(sorted(set(fragments.times))) or (anchor_time_of(base),)

    if fragments.since is not None:
        since_day = resolve_boundary(fragments.since, now.date())
        since = localize(since_day, fragments.since.time or anchor_time_of(now), tz)
    else:
        since = base

    interval = fragments.interval or DEFAULT_INTERVAL
    selector = _fill_for_interval(_base_selector(fragments), interval, since)

    if fragments.until is None:
        return RecurrentSpec(
            since=since,
            anchor_times=times,
            date_selector=selector,
            message=message,
            timezone=tz.zone,
            interval=interval,
        )

    until_day = resolve_boundary(fragments.until, since.date(), is_until=True)
    until = localize(until_day, fragments.until.time or END_OF_DAY, tz)
    if until < since:
        logger.debug(f"Until {until} precedes since {since}, clamping")
        until = since
    return RecurrentUntilSpec(
        since=since,
        anchor_times=times,
        date_selector=selector,
        message=message,
        timezone=tz.zone,
        interval=interval,
        until=until,
    )


def build_spec(
    fragments: Fragments,
    received_at: datetime,
    message: str = "",
    timezone: Optional[str] = DEFAULT_TIMEZONE,
) -> ReminderSpec:
    """
    Build the tagged specification for a set of parsed fragments.

    "ogni" makes a reminder recurrent, an until boundary makes it
    RecurrentUntil, otherwise it fires once.

    Args:
        fragments: Values gathered by the parser
        received_at: Reception instant, already in the civil timezone
        message: Verbatim reminder text
        timezone: Civil timezone name

    Returns:
        OnceSpec, RecurrentSpec or RecurrentUntilSpec
    """
    tz = get_timezone(timezone)
    now = to_local(received_at, tz).replace(microsecond=0)

    if not fragments.recurrent and fragments.until is None:
        spec = _build_once(fragments, now, message, tz)
    else:
        spec = _build_recurrent(fragments, now, message, tz)

    logger.debug(f"Built {spec.kind.value} reminder: {spec}")
    return spec
