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
Reminder Scheduler Module

Background asyncio loop that polls the store for due reminders and hands
their messages to a dispatch sink. Each due reminder is claimed with a
conditional update keyed by its previous next_fire_at before its message
is sent, so a retried or concurrent poll never delivers it twice.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

import pytz

from .config import ReminderConfig
from .lifecycle import LifecycleState, LifecycleStep, advance_lifecycle, fire
from .store import Reminder, ReminderStore, StoreUnavailable

logger = logging.getLogger("ambrogio.reminders.scheduler")

# (owner_id, message)
Dispatcher = Callable[[int, str], Awaitable[None]]


class ReminderScheduler:
    """
    Background scheduler for delivering reminders.

    Runs a loop every `poll_seconds` to check for due reminders and deliver
    them.
    """

    def __init__(
        self,
        store: ReminderStore,
        dispatcher: Dispatcher,
        config: Optional[ReminderConfig] = None,
    ):
        """
        Initialize the reminder scheduler.

        Args:
            store: Reminder store
            dispatcher: Async sink receiving (owner_id, message) at fire time
            config: Polling configuration
        """
        self.store = store
        self.dispatcher = dispatcher
        self.config = config or ReminderConfig()
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Start the scheduler loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
            logger.info("Reminder scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler loop."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Reminder scheduler stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.process_due(datetime.now(pytz.UTC))
            except StoreUnavailable as e:
                logger.warning(f"Reminder store unavailable, retrying next poll: {e}")
            except Exception as e:
                logger.error(f"Error in reminder scheduler loop: {e}", exc_info=True)
            await asyncio.sleep(self.config.poll_seconds)

    async def process_due(self, now: datetime) -> int:
        """
        Fire every reminder due at `now`.

        Returns:
            Number of reminders delivered
        """
        due = await self.store.due(now, limit=self.config.due_batch)
        if due:
            logger.info(f"Processing {len(due)} due reminder(s)")

        delivered = 0
        for reminder in due:
            if await self._fire_reminder(reminder, now):
                delivered += 1
        return delivered

    async def _fire_reminder(self, reminder: Reminder, now: datetime) -> bool:
        """Claim, reschedule or retire, then deliver a single reminder."""
        step = fire(LifecycleStep(LifecycleState.SCHEDULED, next_fire_at=reminder.next_fire_at))
        step = advance_lifecycle(reminder.spec, step, now=now)

        if step.state is LifecycleState.TERMINAL:
            claimed = await self.store.retire(
                reminder.owner_id, reminder.id, reminder.next_fire_at
            )
        else:
            claimed = await self.store.reschedule(
                reminder.owner_id, reminder.id, reminder.next_fire_at, step.next_fire_at
            )

        if not claimed:
            logger.info(
                f"Reminder {reminder.id} of owner {reminder.owner_id} already handled, skipping"
            )
            return False

        try:
            await self.dispatcher(reminder.owner_id, reminder.spec.message)
        except Exception as e:
            logger.error(f"Failed to deliver reminder {reminder.id}: {e}", exc_info=True)
            return False

        logger.info(f"Delivered reminder {reminder.id} to owner {reminder.owner_id}")
        return True
