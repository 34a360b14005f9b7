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
Reminder Service

Wires configuration, the reminder store, the command handler and the
delivery scheduler together. A chat transport owns one service: it passes
inbound texts to handle() and receives fire-time messages through the
dispatcher it supplied.

Run standalone to read commands from stdin as owner 0 and print replies
and deliveries:

    python src/reminder_service.py
"""

import asyncio
import sys
from typing import Optional

import asyncpg
from dotenv import load_dotenv

load_dotenv()

import logging

from commands.reminder_commands import ReminderCommands
from reminders import (
    InMemoryReminderStore,
    PostgresReminderStore,
    ReminderConfig,
    ReminderScheduler,
    ReminderStore,
)
from reminders.scheduler import Dispatcher

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("ambrogio")


class ReminderService:
    """Reminder commands and delivery for one chat transport."""

    def __init__(self, dispatcher: Dispatcher, config: Optional[ReminderConfig] = None):
        self.config = config or ReminderConfig.from_env()
        self.dispatcher = dispatcher
        self.db_pool: Optional[asyncpg.Pool] = None
        self.store: Optional[ReminderStore] = None
        self.commands: Optional[ReminderCommands] = None
        self.scheduler: Optional[ReminderScheduler] = None

    async def start(self) -> None:
        """Open the store and start the delivery loop."""
        if self.config.database_url:
            self.db_pool = await asyncpg.create_pool(self.config.database_url)
            store = PostgresReminderStore(self.db_pool)
            await store.ensure_schema()
            self.store = store
            logger.info("Reminders stored in PostgreSQL")
        else:
            self.store = InMemoryReminderStore()
            logger.warning("DATABASE_URL not set, reminders are kept in memory only")

        self.commands = ReminderCommands(self.store, self.config)
        self.scheduler = ReminderScheduler(self.store, self.dispatcher, self.config)
        self.scheduler.start()

    async def handle(self, owner_id: int, text: str) -> Optional[str]:
        """Reply to a reminder command, or None when the text is not one."""
        if self.commands is None or not self.commands.can_accept(text):
            return None
        return await self.commands.handle(owner_id, text)

    async def close(self) -> None:
        """Clean up resources on shutdown."""
        if self.scheduler:
            await self.scheduler.stop()
        if self.db_pool:
            await self.db_pool.close()


async def _console() -> None:
    async def deliver(owner_id: int, message: str) -> None:
        print(f"[promemoria per {owner_id}] {message}")

    service = ReminderService(deliver)
    await service.start()
    loop = asyncio.get_running_loop()
    try:
        # Commands are separated by an empty line so messages can span lines
        buffer: list[str] = []
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            if line.strip():
                buffer.append(line.rstrip("\n"))
                continue
            if buffer:
                reply = await service.handle(0, "\n".join(buffer))
                print(reply or "(nessun comando)")
                buffer = []
    finally:
        await service.close()


if __name__ == "__main__":
    asyncio.run(_console())
