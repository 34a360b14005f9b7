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
Reminder Manager Module

PostgreSQL-backed reminder store. Specifications are kept as JSONB
documents; next_fire_at is a plain column so the scheduler can query due
reminders and claim them with a conditional update.
"""

import json
import logging
from datetime import datetime
from typing import Optional

import asyncpg

from .codec import spec_from_dict, spec_to_dict
from .spec import ReminderSpec
from .store import Reminder, ReminderNotFound, ReminderStore, StoreUnavailable

logger = logging.getLogger("ambrogio.reminders.manager")

SCHEMA = """
CREATE TABLE IF NOT EXISTS reminders (
    owner_id BIGINT NOT NULL,
    id INTEGER NOT NULL,
    spec JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    next_fire_at TIMESTAMPTZ,
    PRIMARY KEY (owner_id, id)
);
CREATE INDEX IF NOT EXISTS reminders_next_fire_at_idx ON reminders (next_fire_at);
CREATE TABLE IF NOT EXISTS reminder_owners (
    owner_id BIGINT PRIMARY KEY,
    last_id INTEGER NOT NULL
);
INSERT INTO reminder_owners (owner_id, last_id)
SELECT owner_id, MAX(id) FROM reminders GROUP BY owner_id
ON CONFLICT (owner_id) DO NOTHING;
"""

_BACKEND_ERRORS = (asyncpg.PostgresError, OSError)


class PostgresReminderStore(ReminderStore):
    """
    Manages database operations for reminders.

    Backend failures are raised as StoreUnavailable; retrying is left to
    the caller.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        """
        Initialize the reminder store.

        Args:
            db_pool: asyncpg connection pool
        """
        self.db = db_pool

    async def ensure_schema(self) -> None:
        try:
            await self.db.execute(SCHEMA)
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable(f"Cannot create reminders schema: {e}") from e

    def _to_reminder(self, row) -> Reminder:
        document = row["spec"]
        if isinstance(document, str):
            document = json.loads(document)
        return Reminder(
            id=row["id"],
            owner_id=row["owner_id"],
            spec=spec_from_dict(document),
            created_at=row["created_at"],
            next_fire_at=row["next_fire_at"],
        )

    async def create(
        self,
        owner_id: int,
        spec: ReminderSpec,
        created_at: datetime,
        next_fire_at: Optional[datetime],
    ) -> Reminder:
        """
        Create a new reminder with the owner's next id.

        Ids come from the owner's counter row in reminder_owners: concurrent
        creates queue on its row lock, and deleted ids are never reused.

        Args:
            owner_id: Owner (chat user) ID
            spec: Parsed specification
            created_at: Creation instant
            next_fire_at: First fire instant, None if nothing is left to fire

        Returns:
            The stored reminder
        """
        try:
            row = await self.db.fetchrow(
                """
                WITH next_id AS (
                    INSERT INTO reminder_owners (owner_id, last_id)
                    VALUES ($1, 1)
                    ON CONFLICT (owner_id)
                    DO UPDATE SET last_id = reminder_owners.last_id + 1
                    RETURNING last_id
                )
                INSERT INTO reminders (owner_id, id, spec, created_at, next_fire_at)
                SELECT $1, last_id, $2::jsonb, $3, $4 FROM next_id
                RETURNING id
                """,
                owner_id,
                json.dumps(spec_to_dict(spec)),
                created_at,
                next_fire_at,
            )
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable(f"Cannot create reminder: {e}") from e

        reminder_id = row["id"]
        logger.info(
            f"Created reminder {reminder_id} for owner {owner_id}: "
            f"next={next_fire_at}, kind={spec.kind.value}"
        )
        return Reminder(
            id=reminder_id,
            owner_id=owner_id,
            spec=spec,
            created_at=created_at,
            next_fire_at=next_fire_at,
        )

    async def get(self, owner_id: int, reminder_id: int) -> Reminder:
        try:
            row = await self.db.fetchrow(
                """
                SELECT owner_id, id, spec, created_at, next_fire_at
                FROM reminders
                WHERE owner_id = $1 AND id = $2
                """,
                owner_id,
                reminder_id,
            )
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable(f"Cannot read reminder: {e}") from e

        if row is None:
            raise ReminderNotFound(owner_id, reminder_id)
        return self._to_reminder(row)

    async def list_by_owner(self, owner_id: int, limit: Optional[int] = None) -> list[Reminder]:
        try:
            rows = await self.db.fetch(
                """
                SELECT owner_id, id, spec, created_at, next_fire_at
                FROM reminders
                WHERE owner_id = $1
                ORDER BY next_fire_at ASC NULLS LAST, id ASC
                LIMIT $2
                """,
                owner_id,
                limit,
            )
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable(f"Cannot list reminders: {e}") from e

        return [self._to_reminder(row) for row in rows]

    async def delete(self, owner_id: int, reminder_id: int) -> None:
        """
        Delete a reminder if the owner has it.

        Raises:
            ReminderNotFound: Unknown id or another owner's reminder
        """
        try:
            result = await self.db.execute(
                """
                DELETE FROM reminders
                WHERE owner_id = $1 AND id = $2
                """,
                owner_id,
                reminder_id,
            )
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable(f"Cannot delete reminder: {e}") from e

        if result != "DELETE 1":
            raise ReminderNotFound(owner_id, reminder_id)
        logger.info(f"Deleted reminder {reminder_id} for owner {owner_id}")

    # =========================================================================
    # Scheduler-facing methods
    # =========================================================================

    async def reschedule(
        self,
        owner_id: int,
        reminder_id: int,
        expected: Optional[datetime],
        next_fire_at: datetime,
    ) -> bool:
        try:
            result = await self.db.execute(
                """
                UPDATE reminders
                SET next_fire_at = $4
                WHERE owner_id = $1 AND id = $2
                  AND next_fire_at IS NOT DISTINCT FROM $3
                """,
                owner_id,
                reminder_id,
                expected,
                next_fire_at,
            )
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable(f"Cannot reschedule reminder: {e}") from e

        updated = result == "UPDATE 1"
        if updated:
            logger.info(f"Reminder {reminder_id} of owner {owner_id} rescheduled at {next_fire_at}")
        return updated

    async def retire(self, owner_id: int, reminder_id: int, expected: Optional[datetime]) -> bool:
        try:
            result = await self.db.execute(
                """
                DELETE FROM reminders
                WHERE owner_id = $1 AND id = $2
                  AND next_fire_at IS NOT DISTINCT FROM $3
                """,
                owner_id,
                reminder_id,
                expected,
            )
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable(f"Cannot retire reminder: {e}") from e

        retired = result == "DELETE 1"
        if retired:
            logger.info(f"Reminder {reminder_id} of owner {owner_id} completed")
        return retired

    async def due(self, now: datetime, limit: int = 100) -> list[Reminder]:
        """
        Get reminders that are due for delivery.

        Returns:
            Reminders with next_fire_at <= now, oldest first
        """
        try:
            rows = await self.db.fetch(
                """
                SELECT owner_id, id, spec, created_at, next_fire_at
                FROM reminders
                WHERE next_fire_at <= $1
                ORDER BY next_fire_at ASC
                LIMIT $2
                """,
                now,
                limit,
            )
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable(f"Cannot query due reminders: {e}") from e

        return [self._to_reminder(row) for row in rows]
