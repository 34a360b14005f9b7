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
Time Parser Module

Entry points from raw text to a reminder specification. Supports one-time
("ricordami tra 2 ore", "ricordami domani alle 10") and recurring
("ricordami ogni lunedì alle 9", "ricordami ogni 2 anni") schedules.

A reminder command is the time expression on the first line followed by
the message on the next lines:

    ricordami ogni secondo e terzo lunedì alle 9
    Riunione di condominio
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytz

from .config import DEFAULT_TIMEZONE
from .evaluator import next_occurrence
from .lexer import tokenize
from .parser import parse
from .spec import ReminderSpec

logger = logging.getLogger("ambrogio.reminders.time_parser")


@dataclass
class ParsedReminder:
    """Result of parsing a reminder command."""

    spec: ReminderSpec
    next_fire_at: Optional[datetime]  # None when the target is already past
    original_input: str
    received_at: datetime


def split_command(text: str) -> tuple[str, str]:
    """Split a command into its first line and the verbatim message below it."""
    head, _, message = text.partition("\n")
    return head.strip(), message


def parse_time_expression(
    expr: str,
    received_at: Optional[datetime] = None,
    timezone: str = DEFAULT_TIMEZONE,
    message: str = "",
) -> ReminderSpec:
    """
    Parse a time expression into a specification.

    Never raises: unknown words are ignored and missing fields get defaults.

    Args:
        expr: Time expression, with or without the leading "ricordami"
        received_at: Reception instant (defaults to now)
        timezone: Civil timezone name
        message: Reminder text stored with the specification
    """
    received_at = received_at or datetime.now(pytz.UTC)
    tokens = tokenize(expr)
    logger.debug(f"Parsing {expr!r}: {len(tokens)} tokens")
    return parse(tokens, received_at, timezone=timezone, message=message)


def parse_reminder_command(
    text: str,
    received_at: Optional[datetime] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> ParsedReminder:
    """
    Parse a full reminder command and compute its first fire instant.

    Args:
        text: "ricordami <time expression>\\n<message>"
        received_at: Reception instant (defaults to now)
        timezone: Civil timezone name

    Returns:
        ParsedReminder with the specification and its first fire instant
    """
    received_at = received_at or datetime.now(pytz.UTC)
    expr, message = split_command(text)
    spec = parse_time_expression(expr, received_at, timezone=timezone, message=message)
    return ParsedReminder(
        spec=spec,
        next_fire_at=next_occurrence(spec, received_at),
        original_input=expr,
        received_at=received_at,
    )
