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
Reminder Store Module

The persisted Reminder entity and the keyed store interface the command
layer and the scheduler talk to. Reminder ids are unique per owner.

Every update of next_fire_at is conditional on its previous value, so two
workers racing on the same due reminder cannot both fire it.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from .spec import ReminderSpec

logger = logging.getLogger("ambrogio.reminders.store")


class ReminderNotFound(LookupError):
    """No reminder with this id for this owner."""

    def __init__(self, owner_id: int, reminder_id: int):
        super().__init__(f"Reminder {reminder_id} not found for owner {owner_id}")
        self.owner_id = owner_id
        self.reminder_id = reminder_id


class StoreUnavailable(RuntimeError):
    """The storage backend failed; callers may retry later."""


@dataclass(frozen=True)
class Reminder:
    id: int
    owner_id: int
    spec: ReminderSpec
    created_at: datetime
    next_fire_at: Optional[datetime]


class ReminderStore(ABC):
    """Keyed reminder storage."""

    @abstractmethod
    async def create(
        self,
        owner_id: int,
        spec: ReminderSpec,
        created_at: datetime,
        next_fire_at: Optional[datetime],
    ) -> Reminder:
        """Persist a new reminder, allocating the owner's next id."""

    @abstractmethod
    async def get(self, owner_id: int, reminder_id: int) -> Reminder:
        """Raises ReminderNotFound for unknown ids and other owners' reminders."""

    @abstractmethod
    async def list_by_owner(self, owner_id: int, limit: Optional[int] = None) -> list[Reminder]:
        """Owner's reminders, soonest first."""

    @abstractmethod
    async def delete(self, owner_id: int, reminder_id: int) -> None:
        """Raises ReminderNotFound when nothing was deleted."""

    @abstractmethod
    async def reschedule(
        self,
        owner_id: int,
        reminder_id: int,
        expected: Optional[datetime],
        next_fire_at: datetime,
    ) -> bool:
        """Set next_fire_at if it still equals `expected`. Returns whether it did."""

    @abstractmethod
    async def retire(self, owner_id: int, reminder_id: int, expected: Optional[datetime]) -> bool:
        """Delete the reminder if next_fire_at still equals `expected`."""

    @abstractmethod
    async def due(self, now: datetime, limit: int = 100) -> list[Reminder]:
        """Reminders whose next_fire_at is at or before `now`, oldest first."""


class InMemoryReminderStore(ReminderStore):
    """Process-local store, used when no database is configured and in tests."""

    def __init__(self):
        self._reminders: dict[tuple[int, int], Reminder] = {}
        self._last_ids: dict[int, int] = {}
        self._lock = asyncio.Lock()

    async def create(self, owner_id, spec, created_at, next_fire_at) -> Reminder:
        async with self._lock:
            reminder_id = self._last_ids.get(owner_id, 0) + 1
            self._last_ids[owner_id] = reminder_id
            reminder = Reminder(
                id=reminder_id,
                owner_id=owner_id,
                spec=spec,
                created_at=created_at,
                next_fire_at=next_fire_at,
            )
            self._reminders[(owner_id, reminder_id)] = reminder
        logger.info(f"Created reminder {reminder_id} for owner {owner_id}: next={next_fire_at}")
        return reminder

    async def get(self, owner_id, reminder_id) -> Reminder:
        reminder = self._reminders.get((owner_id, reminder_id))
        if reminder is None:
            raise ReminderNotFound(owner_id, reminder_id)
        return reminder

    async def list_by_owner(self, owner_id, limit=None) -> list[Reminder]:
        owned = [r for r in self._reminders.values() if r.owner_id == owner_id]
        owned.sort(key=lambda r: (r.next_fire_at is None, r.next_fire_at or r.created_at, r.id))
        return owned[:limit] if limit is not None else owned

    async def delete(self, owner_id, reminder_id) -> None:
        async with self._lock:
            if self._reminders.pop((owner_id, reminder_id), None) is None:
                raise ReminderNotFound(owner_id, reminder_id)
        logger.info(f"Deleted reminder {reminder_id} for owner {owner_id}")

    async def reschedule(self, owner_id, reminder_id, expected, next_fire_at) -> bool:
        async with self._lock:
            reminder = self._reminders.get((owner_id, reminder_id))
            if reminder is None or reminder.next_fire_at != expected:
                return False
            self._reminders[(owner_id, reminder_id)] = replace(reminder, next_fire_at=next_fire_at)
        logger.info(f"Reminder {reminder_id} of owner {owner_id} rescheduled at {next_fire_at}")
        return True

    async def retire(self, owner_id, reminder_id, expected) -> bool:
        async with self._lock:
            reminder = self._reminders.get((owner_id, reminder_id))
            if reminder is None or reminder.next_fire_at != expected:
                return False
            del self._reminders[(owner_id, reminder_id)]
        logger.info(f"Reminder {reminder_id} of owner {owner_id} completed")
        return True

    async def due(self, now, limit=100) -> list[Reminder]:
        ready = [
            r for r in self._reminders.values()
            if r.next_fire_at is not None and r.next_fire_at <= now
        ]
        ready.sort(key=lambda r: (r.next_fire_at, r.owner_id, r.id))
        return ready[:limit]
