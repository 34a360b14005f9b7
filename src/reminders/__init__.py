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
Reminders Package

Italian time-expression parsing, recurrence evaluation and scheduled
delivery of reminders.
"""

from .codec import spec_from_dict, spec_to_dict
from .config import DEFAULT_TIMEZONE, ReminderConfig
from .evaluator import next_occurrence, occurrences
from .lexer import Token, TokenKind, tokenize
from .lifecycle import (
    LifecycleError,
    LifecycleState,
    LifecycleStep,
    advance_lifecycle,
    fire,
    schedule,
)
from .manager import PostgresReminderStore
from .parser import parse
from .render import render_spec
from .scheduler import ReminderScheduler
from .spec import (
    DateSelector,
    Interval,
    OnceSpec,
    RecurrentSpec,
    RecurrentUntilSpec,
    ReminderKind,
    ReminderSpec,
    Unit,
    WeekdaySelector,
)
from .store import (
    InMemoryReminderStore,
    Reminder,
    ReminderNotFound,
    ReminderStore,
    StoreUnavailable,
)
from .time_parser import ParsedReminder, parse_reminder_command, parse_time_expression

__all__ = [
    "DEFAULT_TIMEZONE",
    "ReminderConfig",
    "Token",
    "TokenKind",
    "tokenize",
    "parse",
    "parse_time_expression",
    "parse_reminder_command",
    "ParsedReminder",
    "ReminderKind",
    "ReminderSpec",
    "OnceSpec",
    "RecurrentSpec",
    "RecurrentUntilSpec",
    "DateSelector",
    "WeekdaySelector",
    "Interval",
    "Unit",
    "next_occurrence",
    "occurrences",
    "LifecycleError",
    "LifecycleState",
    "LifecycleStep",
    "schedule",
    "fire",
    "advance_lifecycle",
    "render_spec",
    "spec_to_dict",
    "spec_from_dict",
    "Reminder",
    "ReminderStore",
    "InMemoryReminderStore",
    "PostgresReminderStore",
    "ReminderNotFound",
    "StoreUnavailable",
    "ReminderScheduler",
]
