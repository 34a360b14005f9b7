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
Civil Clock Helpers

Timezone lookup and instant construction in the reminders' civil timezone.
Daylight-saving discontinuities are normalized when an instant is built,
never during calendar arithmetic.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz
from dateutil.relativedelta import relativedelta

from .config import DEFAULT_TIMEZONE

logger = logging.getLogger("ambrogio.reminders.clock")


def validate_timezone(tz_name: str) -> bool:
    """
    Validate that a timezone name is valid.

    Args:
        tz_name: IANA timezone name (e.g., "Europe/Rome")

    Returns:
        True if valid, False otherwise
    """
    try:
        pytz.timezone(tz_name)
        return True
    except pytz.UnknownTimeZoneError:
        return False


def get_timezone(tz_name: Optional[str]) -> pytz.BaseTzInfo:
    """Resolve a timezone name, falling back to the default civil timezone."""
    if not tz_name or not validate_timezone(tz_name):
        logger.warning(f"Invalid timezone '{tz_name}', falling back to {DEFAULT_TIMEZONE}")
        tz_name = DEFAULT_TIMEZONE
    return pytz.timezone(tz_name)


def to_local(instant: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """Express an instant in the civil timezone (naive values are taken as civil time)."""
    if instant.tzinfo is None:
        return tz.normalize(tz.localize(instant, is_dst=False))
    return instant.astimezone(tz)


def localize(day: date, at: time, tz: pytz.BaseTzInfo) -> datetime:
    """Build the instant for a civil date and time-of-day."""
    naive = datetime.combine(day, at.replace(tzinfo=None))
    # Nonexistent times (spring forward) move forward, ambiguous ones take standard time
    return tz.normalize(tz.localize(naive, is_dst=False))


def shift(instant: datetime, delta: relativedelta, tz: pytz.BaseTzInfo) -> datetime:
    """
    Add a relative duration to an instant.

    Calendar fields (years, months, days) move the civil date keeping the
    wall-clock time; clock fields (hours, minutes, seconds) are elapsed time.
    """
    local = to_local(instant, tz)
    calendar = relativedelta(years=delta.years, months=delta.months, days=delta.days)
    moved = local
    if calendar:
        # Rebuilt from the wall clock only when the civil date moves
        moved = localize((local.replace(tzinfo=None) + calendar).date(), local.time(), tz)
    elapsed = timedelta(
        hours=delta.hours,
        minutes=delta.minutes,
        seconds=delta.seconds,
        microseconds=delta.microseconds,
    )
    return (moved.astimezone(pytz.UTC) + elapsed).astimezone(tz)


def start_of_day(instant: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """First instant of the civil day containing the given instant."""
    return localize(to_local(instant, tz).date(), time(0, 0), tz)
