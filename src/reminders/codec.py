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
JSON document form of reminder specifications (stored in a JSONB column).
"""

from datetime import datetime, time
from typing import Any, Optional

from dateutil.relativedelta import relativedelta

from .clock import get_timezone
from .spec import SPEC_TYPES, DateSelector, Interval, ReminderKind, ReminderSpec, Unit, WeekdaySelector

_OFFSET_FIELDS = ("years", "months", "days", "hours", "minutes", "seconds", "microseconds")


def _offset_to_dict(offset: Optional[relativedelta]) -> Optional[dict]:
    if not offset:
        return None
    return {f: getattr(offset, f) for f in _OFFSET_FIELDS if getattr(offset, f)}


def spec_to_dict(spec: ReminderSpec) -> dict[str, Any]:
    selector = spec.date_selector
    return {
        "kind": spec.kind.value,
        "since": spec.since.isoformat(),
        "until": spec.until.isoformat() if spec.until is not None else None,
        "anchor_times": [t.isoformat() for t in spec.anchor_times],
        "interval": (
            {"count": spec.interval.count, "unit": spec.interval.unit.value}
            if spec.interval is not None
            else None
        ),
        "date_selector": {
            "year": selector.year,
            "months": sorted(selector.months),
            "days": sorted(selector.days),
            "weekdays": [[w.weekday, w.ordinal] for w in sorted(selector.weekdays, key=lambda w: w.sort_key)],
            "offset": _offset_to_dict(selector.offset),
        },
        "timezone": spec.timezone,
        "message": spec.message,
    }


def spec_from_dict(data: dict[str, Any]) -> ReminderSpec:
    """
    Rebuild a specification from spec_to_dict() output.

    Raises:
        ValueError: Unknown kind or a document violating the kind's invariants
    """
    tz = get_timezone(data.get("timezone"))
    kind = ReminderKind(data["kind"])

    def instant(value: Optional[str]) -> Optional[datetime]:
        return datetime.fromisoformat(value).astimezone(tz) if value else None

    selector_data = data.get("date_selector") or {}
    offset = selector_data.get("offset")
    interval = data.get("interval")

    return SPEC_TYPES[kind](
        since=instant(data["since"]),
        until=instant(data.get("until")),
        anchor_times=tuple(time.fromisoformat(t) for t in data["anchor_times"]),
        date_selector=DateSelector(
            year=selector_data.get("year"),
            months=frozenset(selector_data.get("months", ())),
            days=frozenset(selector_data.get("days", ())),
            weekdays=frozenset(
                WeekdaySelector(weekday, ordinal)
                for weekday, ordinal in selector_data.get("weekdays", ())
            ),
            offset=relativedelta(**offset) if offset else None,
        ),
        interval=Interval(interval["count"], Unit(interval["unit"])) if interval else None,
        timezone=tz.zone,
        message=data.get("message", ""),
    )
