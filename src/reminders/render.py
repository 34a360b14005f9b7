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
Specification Renderer

Renders a specification back into an Italian time expression. Parsing
the rendered phrase at the same reception instant yields an equal
specification, so `promemoria <id>` shows text the user could have typed.
"""

from datetime import datetime, time
from typing import Iterable

from dateutil.relativedelta import relativedelta

from .clock import to_local
from .spec import (
    DEFAULT_INTERVAL,
    DateSelector,
    Interval,
    ReminderKind,
    ReminderSpec,
    Unit,
)

WEEKDAY_NAMES = ["lunedì", "martedì", "mercoledì", "giovedì", "venerdì", "sabato", "domenica"]

MONTH_NAMES = [
    None,
    "gennaio",
    "febbraio",
    "marzo",
    "aprile",
    "maggio",
    "giugno",
    "luglio",
    "agosto",
    "settembre",
    "ottobre",
    "novembre",
    "dicembre",
]

ORDINAL_NAMES = {1: "primo", 2: "secondo", 3: "terzo", 4: "quarto", 5: "quinto", -1: "ultimo"}
FEMININE_ORDINAL_NAMES = {1: "prima", 2: "seconda", 3: "terza", 4: "quarta", 5: "quinta", -1: "ultima"}

# (singular, plural)
UNIT_NAMES = {
    Unit.SECOND: ("secondo", "secondi"),
    Unit.MINUTE: ("minuto", "minuti"),
    Unit.HOUR: ("ora", "ore"),
    Unit.DAY: ("giorno", "giorni"),
    Unit.WEEK: ("settimana", "settimane"),
    Unit.MONTH: ("mese", "mesi"),
    Unit.YEAR: ("anno", "anni"),
}

_OFFSET_FIELDS = [
    ("years", Unit.YEAR),
    ("months", Unit.MONTH),
    ("days", Unit.DAY),
    ("hours", Unit.HOUR),
    ("minutes", Unit.MINUTE),
    ("seconds", Unit.SECOND),
]

_SUNDAY = 6


def _join(items: Iterable[str]) -> str:
    """["a", "b", "c"] -> "a, b e c" """
    items = list(items)
    if len(items) <= 1:
        return "".join(items)
    return ", ".join(items[:-1]) + " e " + items[-1]


def _quantity(count: int, unit: Unit) -> str:
    singular, plural = UNIT_NAMES[unit]
    return f"{count} {singular if count == 1 else plural}"


def format_time(at: time) -> str:
    if at.second:
        return at.strftime("%H:%M:%S")
    return at.strftime("%H:%M")


def format_date(instant: datetime) -> str:
    return f"{instant.day} {MONTH_NAMES[instant.month]} {instant.year}"


def _format_offset(offset: relativedelta) -> str:
    parts = []
    for attr, unit in _OFFSET_FIELDS:
        count = getattr(offset, attr)
        if count:
            parts.append(_quantity(count, unit))
    return " e ".join(parts)


def _format_interval(interval: Interval) -> str:
    # "ogni secondo" would read as an ordinal before a weekday
    if interval.count == 1 and interval.unit is not Unit.SECOND:
        return UNIT_NAMES[interval.unit][0]
    return _quantity(interval.count, interval.unit)


def _format_weekdays(selectors) -> str:
    """Plain weekdays first, then one group per ordinal weekday."""
    plain = sorted(s.weekday for s in selectors if s.ordinal is None)
    groups = []
    if plain:
        groups.append(_join(WEEKDAY_NAMES[w] for w in plain))
    for selector in sorted((s for s in selectors if s.ordinal is not None), key=lambda s: s.sort_key):
        names = FEMININE_ORDINAL_NAMES if selector.weekday == _SUNDAY else ORDINAL_NAMES
        groups.append(f"{names[selector.ordinal]} {WEEKDAY_NAMES[selector.weekday]}")
    return " e ".join(groups)


def _format_days(selector: DateSelector) -> str:
    phrase = _join(str(d) for d in sorted(selector.days))
    if selector.months:
        phrase += " " + _format_months(selector.months)
    return phrase


def _format_months(months) -> str:
    return _join(MONTH_NAMES[m] for m in sorted(months))


def _in_months(months) -> str:
    phrase = _format_months(months)
    preposition = "ad" if phrase[0] in "aeiou" else "a"
    return f"{preposition} {phrase}"


def _selector_phrases(selector: DateSelector) -> list[str]:
    phrases = []
    if selector.weekdays:
        phrases.append("il " + _format_weekdays(selector.weekdays))
    if selector.days:
        phrases.append("il " + _format_days(selector))
    elif selector.months:
        phrases.append(_in_months(selector.months))
    if selector.year is not None:
        phrases.append(f"nel {selector.year}")
    return phrases


def _recurrence_phrases(spec: ReminderSpec) -> list[str]:
    selector = spec.date_selector
    if spec.interval != DEFAULT_INTERVAL:
        return ["ogni " + _format_interval(spec.interval)] + _selector_phrases(selector)

    if selector.weekdays:
        head = "ogni " + _format_weekdays(selector.weekdays)
        rest = DateSelector(year=selector.year, months=selector.months, days=selector.days)
    elif selector.days:
        head = "ogni " + _format_days(selector)
        rest = DateSelector(year=selector.year)
    elif selector.months:
        head = "ogni " + _format_months(selector.months)
        rest = DateSelector(year=selector.year)
    else:
        head = "ogni giorno"
        rest = DateSelector(year=selector.year)
    return [head] + _selector_phrases(rest)


def _boundary(word: str, instant: datetime) -> str:
    return f"{word} {format_date(instant)} alle {format_time(instant.time())}"


def render_spec(spec: ReminderSpec) -> str:
    """
    Render a specification as a time expression.

    Examples:
        "tra 5 minuti alle 14:35"
        "ogni secondo lunedì e terzo lunedì alle 09:00 dal 18 ottobre 2026 alle 10:00"
        "ogni sabato alle 10:00 dal 1 giugno 2025 alle 10:00 al 30 aprile 2026 alle 23:59:59"
    """
    tz = spec.tz
    times = "alle " + _join(format_time(t) for t in sorted(spec.anchor_times))

    if spec.kind is ReminderKind.ONCE:
        phrases = []
        offset = spec.date_selector.offset
        if offset:
            phrases.append("tra " + _format_offset(offset))
        phrases.extend(_selector_phrases(spec.date_selector))
        phrases.append(times)
        return " ".join(phrases)

    phrases = _recurrence_phrases(spec)
    phrases.append(times)
    phrases.append(_boundary("dal", to_local(spec.since, tz)))
    if spec.until is not None:
        phrases.append(_boundary("al", to_local(spec.until, tz)))
    return " ".join(phrases)


def describe_spec(spec: ReminderSpec) -> str:
    """One-line summary for reminder listings."""
    if spec.kind is ReminderKind.ONCE:
        return "una volta"
    if spec.kind is ReminderKind.RECURRENT_UNTIL:
        return f"ricorrente fino al {format_date(to_local(spec.until, spec.tz))}"
    return "ricorrente"
