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
Context-Scoped Parser

Recursive-descent reader for Italian reminder time expressions, e.g.

    ricordami tra 1 minuto e 20 secondi
    ricordami il 13 settembre alle 11 e 37
    ricordami ogni secondo e terzo lunedì alle 9, 18:30
    ricordami ogni sabato da giugno 2025 ad aprile 2026

Every sub-grammar takes the tokens, the index of its first token and the
current GrammarContext, and returns (consumed token count, new context).
Tokens nothing understands are skipped: parsing never fails.
"""

import logging
import re
from datetime import datetime, time
from typing import Callable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from . import grammar
from .builder import build_spec
from .clock import get_timezone, to_local
from .config import DEFAULT_TIMEZONE
from .context import Boundary, GrammarContext, Scope
from .lexer import Token, TokenKind
from .spec import Interval, ReminderSpec, WeekdaySelector

logger = logging.getLogger("ambrogio.reminders.parser")

Tokens = Sequence[Token]
SubGrammar = Callable[[Tokens, int, GrammarContext], tuple[int, GrammarContext]]


# =========================================================================
# Token readers: (value or None, consumed)
# =========================================================================


def _norm(tokens: Tokens, i: int) -> Optional[str]:
    return tokens[i].norm if i < len(tokens) else None


def _kind(tokens: Tokens, i: int) -> Optional[TokenKind]:
    return tokens[i].kind if i < len(tokens) else None


def _read_number(tokens: Tokens, i: int) -> tuple[Optional[int], int]:
    if i >= len(tokens):
        return None, 0
    if tokens[i].kind is TokenKind.NUMBER:
        return tokens[i].number, 1
    value = grammar.NUMBER_WORDS.get(tokens[i].norm)
    return (value, 1) if value is not None else (None, 0)


def _read_day(tokens: Tokens, i: int) -> tuple[Optional[int], int]:
    if _kind(tokens, i) is TokenKind.NUMBER and 1 <= tokens[i].number <= 31:
        return tokens[i].number, 1
    return None, 0


def _read_year(tokens: Tokens, i: int) -> tuple[Optional[int], int]:
    if _kind(tokens, i) is TokenKind.NUMBER:
        if grammar.MIN_YEAR <= tokens[i].number <= grammar.MAX_YEAR:
            return tokens[i].number, 1
    return None, 0


def _read_month(tokens: Tokens, i: int) -> tuple[Optional[int], int]:
    value = grammar.MONTHS.get(_norm(tokens, i))
    return (value, 1) if value is not None else (None, 0)


def _read_weekday(tokens: Tokens, i: int) -> tuple[Optional[int], int]:
    value = grammar.WEEKDAYS.get(_norm(tokens, i))
    return (value, 1) if value is not None else (None, 0)


def _read_ordinal(tokens: Tokens, i: int) -> tuple[Optional[int], int]:
    value = grammar.ORDINALS.get(_norm(tokens, i))
    return (value, 1) if value is not None else (None, 0)


def _read_list(tokens: Tokens, i: int, read_one) -> tuple[list, int]:
    """Read `x[, x]* [e x]` with the given element reader."""
    first, used = read_one(tokens, i)
    if first is None:
        return [], 0
    values = [first]
    pos = i + used
    while _norm(tokens, pos) in grammar.LIST_SEPARATORS:
        value, used = read_one(tokens, pos + 1)
        if value is None:
            break
        values.append(value)
        pos += 1 + used
    return values, pos - i


def _read_dated(tokens: Tokens, i: int) -> tuple[Optional[tuple], int]:
    """A dated token: 13/09/2024, 13-09, 13.09.2024 -> (day, month, year or None)."""
    if _kind(tokens, i) is not TokenKind.DATE:
        return None, 0
    parts = [int(p) for p in re.split(r"[/.-]", tokens[i].text)]
    day, month = parts[0], parts[1]
    year = parts[2] if len(parts) > 2 else None
    if year is not None and year < 100:
        year += 2000
    if year is not None and not grammar.MIN_YEAR <= year <= grammar.MAX_YEAR:
        return None, 0
    if not (1 <= day <= 31 and 1 <= month <= 12):
        return None, 0
    return (day, month, year), 1


def _clock_time(text: str) -> Optional[time]:
    parts = [int(p) for p in re.split(r"[:.]", text)]
    hour, minute = parts[0], parts[1]
    second = parts[2] if len(parts) > 2 else 0
    if hour == 24 and minute == 0 and second == 0:
        hour = 0
    if hour > 23 or minute > 59 or second > 59:
        return None
    return time(hour, minute, second)


def _read_minutes(tokens: Tokens, i: int) -> tuple[int, int]:
    """Minutes spelled after an hour: "e 20", "e mezza", "e un quarto"."""
    if _norm(tokens, i) != "e":
        return 0, 0
    word = _norm(tokens, i + 1)
    if word in grammar.HALF_WORDS:
        return 30, 2
    if word == "quarto":
        return 15, 2
    if word == "un" and _norm(tokens, i + 2) == "quarto":
        return 15, 3
    if word == "tre" and _norm(tokens, i + 2) == "quarti":
        return 45, 3
    if _kind(tokens, i + 1) is TokenKind.NUMBER and tokens[i + 1].number < 60:
        return tokens[i + 1].number, 2
    return 0, 0


def _read_time(tokens: Tokens, i: int) -> tuple[Optional[time], int]:
    if i >= len(tokens):
        return None, 0
    token = tokens[i]
    if token.kind is TokenKind.TIME:
        value = _clock_time(token.text)
        return (value, 1) if value is not None else (None, 0)
    if token.norm in grammar.NAMED_TIMES:
        return grammar.NAMED_TIMES[token.norm], 1
    hour, used = _read_number(tokens, i)
    if hour is None or hour > 24:
        return None, 0
    minute, used_minutes = _read_minutes(tokens, i + used)
    return time(hour % 24, minute), used + used_minutes


def _is_spelled_time(tokens: Tokens, i: int) -> bool:
    return _kind(tokens, i) is TokenKind.TIME or _norm(tokens, i) in grammar.NAMED_TIMES


def _read_times(tokens: Tokens, i: int) -> tuple[list, int]:
    """
    Read a list of times: "9, 13:30 e 18:00", "8 e un quarto e alle 20".

    A bare number after "e" is always the minute of the previous hour, so a
    following list item needs a comma, a clock form (18:00) or "alle".
    """
    first, used = _read_time(tokens, i)
    if first is None:
        return [], 0
    times = [first]
    pos = i + used
    while pos < len(tokens):
        separator = tokens[pos].norm
        skip = 1
        if separator == "e" and _norm(tokens, pos + 1) in grammar.TIME_WORDS:
            skip = 2
        elif separator == "e" and not _is_spelled_time(tokens, pos + 1):
            break
        elif separator not in grammar.LIST_SEPARATORS:
            break
        value, used = _read_time(tokens, pos + skip)
        if value is None:
            break
        times.append(value)
        pos += skip + used
    return times, pos - i


def _read_weekday_groups(tokens: Tokens, i: int) -> tuple[frozenset, int]:
    """
    Read "[ordinals] weekdays" groups: "secondo e terzo lunedì",
    "primo lunedì, mercoledì e ultimo venerdì". Ordinals apply to every
    weekday of their group; without ordinals every occurrence qualifies.
    """
    selectors = set()
    pos = i
    start = i
    while True:
        ordinals, used_ordinals = _read_list(tokens, start, _read_ordinal)
        weekdays, used_weekdays = _read_list(tokens, start + used_ordinals, _read_weekday)
        if not weekdays:
            break
        for weekday in weekdays:
            for ordinal in ordinals or [None]:
                selectors.add(WeekdaySelector(weekday, ordinal))
        pos = start + used_ordinals + used_weekdays
        if _norm(tokens, pos) in grammar.LIST_SEPARATORS and _norm(tokens, pos + 1) in grammar.ORDINALS:
            start = pos + 1
            continue
        break
    return frozenset(selectors), pos - i


def _read_boundary(tokens: Tokens, i: int) -> tuple[Optional[Boundary], int]:
    """A range boundary: "domani", "lunedì", "13/09", "11 gennaio 2026", "giugno 2025", "2027"."""
    word = _norm(tokens, i)
    if word in grammar.RELATIVE_DAYS:
        return Boundary(days_ahead=grammar.RELATIVE_DAYS[word]), 1
    if word in grammar.WEEKDAYS:
        return Boundary(weekday=grammar.WEEKDAYS[word]), 1
    dated, used = _read_dated(tokens, i)
    if dated is not None:
        day, month, year = dated
        return Boundary(day=day, month=month, year=year), used
    pos = i
    if word in grammar.DAY_WORDS:
        pos += 1
    day, used = _read_day(tokens, pos)
    pos += used
    month, used = _read_month(tokens, pos)
    pos += used
    year, used = _read_year(tokens, pos)
    pos += used
    if day is None and month is None and year is None:
        return None, 0
    return Boundary(day=day, month=month, year=year), pos - i


def _dated_changes(dated: tuple) -> dict:
    day, month, year = dated
    changes = {"days": frozenset([day]), "months": frozenset([month])}
    if year is not None:
        changes["year"] = year
    return changes


def _read_day_month_year(tokens: Tokens, i: int) -> tuple[dict, int]:
    """Read "13", "1 e 15 agosto", "13 settembre 2027" into fragment changes."""
    days, used = _read_list(tokens, i, _read_day)
    if not days:
        return {}, 0
    changes = {"days": frozenset(days)}
    months, used_months = _read_list(tokens, i + used, _read_month)
    if months:
        changes["months"] = frozenset(months)
        used += used_months
    year, used_year = _read_year(tokens, i + used)
    if year is not None:
        changes["year"] = year
        used += used_year
    return changes, used


# =========================================================================
# Sub-grammars: (tokens, first index, context) -> (consumed, context)
# =========================================================================


def _relative(tokens: Tokens, i: int, ctx: GrammarContext) -> tuple[int, GrammarContext]:
    """tra N unit [e N unit]* [e mezza] | tra mezz'ora"""
    total = relativedelta()
    pos = i
    while True:
        if _norm(tokens, pos) in grammar.HALF_WORDS:
            unit = grammar.DURATION_UNITS.get(_norm(tokens, pos + 1))
            if unit not in grammar.HALF_UNITS:
                break
            total += grammar.HALF_UNITS[unit]
            pos += 2
        else:
            quantity, used = _read_number(tokens, pos)
            unit = grammar.DURATION_UNITS.get(_norm(tokens, pos + used)) if used else None
            if quantity is None or unit is None:
                break
            total += unit.delta(quantity)
            pos += used + 1
        if _norm(tokens, pos) != "e":
            break
        if _norm(tokens, pos + 1) in grammar.HALF_WORDS and unit in grammar.HALF_UNITS:
            if grammar.DURATION_UNITS.get(_norm(tokens, pos + 2)) is None:
                total += grammar.HALF_UNITS[unit]
                pos += 2
                break
        pos += 1
    # Don't swallow a dangling "e"
    if pos > i and _norm(tokens, pos - 1) == "e":
        pos -= 1
    if pos == i:
        return 0, ctx
    return pos - i, ctx.update(offset=total)


def _at_time(tokens: Tokens, i: int, ctx: GrammarContext) -> tuple[int, GrammarContext]:
    """alle 14 | alle 14:30 | alle 14 e 20 | all'una | alle 9, 13 e 18:00"""
    times, used = _read_times(tokens, i)
    if not times:
        return 0, ctx
    return used, ctx.bind_times(times)


def _on_day(tokens: Tokens, i: int, ctx: GrammarContext) -> tuple[int, GrammarContext]:
    """il 13 | il 13 settembre 2027 | il 13/09/2027 | l'11 | il primo lunedì"""
    dated, used = _read_dated(tokens, i)
    if dated is not None:
        return used, ctx.update(**_dated_changes(dated))
    weekdays, used = _read_weekday_groups(tokens, i)
    if weekdays:
        return used, ctx.update(weekdays=weekdays)
    changes, used = _read_day_month_year(tokens, i)
    if not changes:
        return 0, ctx
    return used, ctx.update(**changes)


def _at_month(tokens: Tokens, i: int, ctx: GrammarContext) -> tuple[int, GrammarContext]:
    """a gennaio | ad aprile 2026 | a luglio e agosto | a mezzogiorno"""
    if _norm(tokens, i) in grammar.NAMED_TIMES:
        return _at_time(tokens, i, ctx)
    months, used = _read_list(tokens, i, _read_month)
    if not months:
        return 0, ctx
    changes = {"months": frozenset(months)}
    year, used_year = _read_year(tokens, i + used)
    if year is not None:
        changes["year"] = year
    return used + used_year, ctx.update(**changes)


def _in_year(tokens: Tokens, i: int, ctx: GrammarContext) -> tuple[int, GrammarContext]:
    """nel 2027"""
    year, used = _read_year(tokens, i)
    if year is None:
        return 0, ctx
    return used, ctx.update(year=year)


def _every(tokens: Tokens, i: int, ctx: GrammarContext) -> tuple[int, GrammarContext]:
    """
    ogni [N] unit | ogni [ordinals] weekdays | ogni months | ogni days [months]
    """
    ctx = ctx.update(recurrent=True)
    word = _norm(tokens, i)

    quantity, used = _read_number(tokens, i)
    if quantity is not None:
        unit = grammar.DURATION_UNITS.get(_norm(tokens, i + used))
        if unit is not None:
            return used + 1, ctx.update(interval=Interval(max(quantity, 1), unit))

    if word in grammar.ORDINALS or word in grammar.WEEKDAYS:
        weekdays, used = _read_weekday_groups(tokens, i)
        if weekdays:
            return used, ctx.update(weekdays=weekdays)

    unit = grammar.DURATION_UNITS.get(word)
    if unit is not None:
        return 1, ctx.update(interval=Interval(1, unit))

    dated, used = _read_dated(tokens, i)
    if dated is not None:
        return used, ctx.update(**_dated_changes(dated))

    if word in grammar.MONTHS:
        return _at_month(tokens, i, ctx)

    changes, used = _read_day_month_year(tokens, i)
    if changes:
        return used, ctx.update(**changes)
    return 0, ctx


def _since(tokens: Tokens, i: int, ctx: GrammarContext) -> tuple[int, GrammarContext]:
    """da/dal/dall' X"""
    boundary, used = _read_boundary(tokens, i)
    if boundary is None:
        return 0, ctx
    return used, ctx.update(since=boundary).with_scope(Scope.SINCE)


def _until(tokens: Tokens, i: int, ctx: GrammarContext) -> tuple[int, GrammarContext]:
    """al/ad/all' Y, right after a since boundary"""
    boundary, used = _read_boundary(tokens, i)
    if boundary is None:
        return 0, ctx
    return used, ctx.update(until=boundary).with_scope(Scope.UNTIL)


def _open_until(tokens: Tokens, i: int, ctx: GrammarContext) -> tuple[int, GrammarContext]:
    """fino [a/al/all'] Y"""
    skip = 1 if _norm(tokens, i) in grammar.UNTIL_WORDS else 0
    used, ctx = _until(tokens, i + skip, ctx)
    return (used + skip, ctx) if used else (0, ctx)


_KEYWORDS: dict[str, SubGrammar] = {}
_KEYWORDS.update({w: _relative for w in grammar.RELATIVE_WORDS})
_KEYWORDS.update({w: _every for w in grammar.RECURRENCE_WORDS})
_KEYWORDS.update({w: _on_day for w in grammar.DAY_WORDS})
_KEYWORDS.update({w: _at_month for w in grammar.MONTH_WORDS})
_KEYWORDS.update({w: _in_year for w in grammar.YEAR_WORDS})
_KEYWORDS.update({w: _since for w in grammar.SINCE_WORDS})
_KEYWORDS.update({w: _open_until for w in grammar.OPEN_UNTIL_WORDS})


def _dispatch(tokens: Tokens, i: int, ctx: GrammarContext) -> tuple[int, GrammarContext]:
    """Consume at least one token starting at i."""
    token = tokens[i]
    word = token.norm

    if ctx.scope is Scope.SINCE and word in grammar.UNTIL_WORDS:
        used, until_ctx = _until(tokens, i + 1, ctx)
        # "dal lunedì all'una" is a time, not a boundary
        if used or word not in grammar.TIME_WORDS:
            return 1 + used, until_ctx

    if word in grammar.TIME_WORDS:
        used, ctx = _at_time(tokens, i + 1, ctx)
        return 1 + used, ctx

    if token.kind is TokenKind.PUNCT:
        return 1, ctx

    handler = _KEYWORDS.get(word)
    if handler is not None:
        used, ctx = handler(tokens, i + 1, ctx.with_scope(Scope.TOP))
        return 1 + used, ctx

    top = ctx.with_scope(Scope.TOP)
    if word in grammar.WEEKDAYS or word in grammar.ORDINALS:
        weekdays, used = _read_weekday_groups(tokens, i)
        if weekdays:
            return used, top.update(weekdays=weekdays)
    if word in grammar.RELATIVE_DAYS:
        return 1, top.update(offset=relativedelta(days=grammar.RELATIVE_DAYS[word]))
    if word in grammar.NAMED_TIMES:
        return _at_time(tokens, i, ctx)
    dated, used = _read_dated(tokens, i)
    if dated is not None:
        return used, top.update(**_dated_changes(dated))

    logger.debug(f"Skipping token {token.text!r} at offset {token.offset}")
    return 1, ctx


def parse_fragments(tokens: Tokens, ctx: GrammarContext) -> GrammarContext:
    """Run the top-level grammar over all tokens, skipping a leading command word."""
    pos = 1 if tokens and tokens[0].norm in grammar.COMMAND_WORDS else 0
    while pos < len(tokens):
        used, ctx = _dispatch(tokens, pos, ctx)
        pos += max(used, 1)
    return ctx


def parse(
    tokens: Tokens,
    received_at: datetime,
    timezone: str = DEFAULT_TIMEZONE,
    message: str = "",
) -> ReminderSpec:
    """
    Parse a tokenized time expression into a reminder specification.

    Args:
        tokens: Output of tokenize()
        received_at: Instant the command was received
        timezone: Civil timezone name every instant is anchored to
        message: Verbatim reminder text

    Returns:
        A valid specification, however poor the input
    """
    tz = get_timezone(timezone)
    now = to_local(received_at, tz).replace(microsecond=0)
    ctx = parse_fragments(tokens, GrammarContext(received_at=now))
    return build_spec(ctx.fragments, now, message=message, timezone=tz.zone)
