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
Reminder Configuration

Configurable parameters for parsing, storage and delivery of reminders.
Values can be overridden via environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional

# The single civil timezone every reminder instant is anchored to
DEFAULT_TIMEZONE = "Europe/Rome"


@dataclass
class ReminderConfig:
    """Configuration for the reminder system."""

    timezone: str = DEFAULT_TIMEZONE

    # Storage (PostgreSQL store is used when set, in-memory otherwise)
    database_url: Optional[str] = None

    # Delivery loop
    poll_seconds: int = 60
    due_batch: int = 100

    # How many reminders "promemoria miei" shows
    list_limit: int = 20

    @classmethod
    def from_env(cls) -> "ReminderConfig":
        """Create config from environment variables with defaults."""
        return cls(
            timezone=os.getenv("REMINDERS_TIMEZONE", DEFAULT_TIMEZONE),
            database_url=os.getenv("DATABASE_URL") or None,
            poll_seconds=int(os.getenv("REMINDERS_POLL_SECONDS", "60")),
            due_batch=int(os.getenv("REMINDERS_DUE_BATCH", "100")),
            list_limit=int(os.getenv("REMINDERS_LIST_LIMIT", "20")),
        )
