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

"""Tests for the reminder text commands."""

import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from commands.reminder_commands import (
    GENERIC_HELP,
    NO_REMINDERS,
    NOT_FOUND,
    PAST_TIME,
    PROMEMORIA_HELP,
    RICORDAMI_HELP,
    SCORDATI_HELP,
    UNAVAILABLE,
    ReminderCommands,
)
from reminders.config import ReminderConfig
from reminders.store import InMemoryReminderStore, StoreUnavailable

ROME = pytz.timezone("Europe/Rome")
RECEIVED = ROME.localize(datetime(2026, 10, 7, 10, 30))


@pytest.fixture
def commands():
    return ReminderCommands(InMemoryReminderStore())


class TestCanAccept:
    """Test command recognition."""

    @pytest.mark.parametrize("text", [
        "ricordami tra 5 minuti\nlatte",
        "Ricordati domani",
        "scordati 3",
        "promemoria miei",
    ])
    def test_commands(self, commands, text):
        assert commands.can_accept(text)

    @pytest.mark.parametrize("text", ["ciao Ambrogio", "ricordamelo", ""])
    def test_other_text(self, commands, text):
        assert not commands.can_accept(text)


class TestRicordami:
    """Test reminder creation."""

    @pytest.mark.asyncio
    async def test_create(self, commands):
        reply = await commands.handle(1, "ricordami tra 5 minuti\nComprare il latte", RECEIVED)
        assert reply == "Sarà fatto. Promemoria 1 (una volta), prossimo avviso: 07/10/2026 10:35."

        reminder = await commands.store.get(1, 1)
        assert reminder.spec.message == "Comprare il latte"
        assert reminder.created_at == RECEIVED

    @pytest.mark.asyncio
    async def test_create_recurrent(self, commands):
        reply = await commands.handle(1, "ricordami ogni lunedì alle 9\nRiunione", RECEIVED)
        assert reply == "Sarà fatto. Promemoria 1 (ricorrente), prossimo avviso: 12/10/2026 09:00."

    @pytest.mark.asyncio
    async def test_multiline_message_is_verbatim(self, commands):
        await commands.handle(1, "ricordami domani\nriga uno\n  riga due", RECEIVED)
        reminder = await commands.store.get(1, 1)
        assert reminder.spec.message == "riga uno\n  riga due"

    @pytest.mark.asyncio
    async def test_past_time_is_not_stored(self, commands):
        reply = await commands.handle(1, "ricordami il 1 gennaio 2020\nCapodanno", RECEIVED)
        assert reply == PAST_TIME
        assert await commands.store.list_by_owner(1) == []

    @pytest.mark.asyncio
    async def test_without_message(self, commands):
        assert await commands.handle(1, "ricordami domani", RECEIVED) == RICORDAMI_HELP


class TestPromemoria:
    """Test listing and showing reminders."""

    @pytest.mark.asyncio
    async def test_empty_list(self, commands):
        assert await commands.handle(1, "promemoria miei", RECEIVED) == NO_REMINDERS

    @pytest.mark.asyncio
    async def test_list(self, commands):
        await commands.handle(1, "ricordami ogni giorno alle 9\nVitamine", RECEIVED)
        await commands.handle(1, "ricordami tra 5 minuti\nComprare il latte", RECEIVED)
        await commands.handle(2, "ricordami tra 1 minuto\nNon mio", RECEIVED)

        reply = await commands.handle(1, "promemoria miei", RECEIVED)
        assert reply == (
            "I Suoi promemoria:\n"
            "[2] 07/10/2026 10:35 (una volta) Comprare il latte\n"
            "[1] 08/10/2026 09:00 (ricorrente) Vitamine"
        )

    @pytest.mark.asyncio
    async def test_list_preview_is_truncated(self, commands):
        await commands.handle(1, "ricordami domani\n" + "x" * 80, RECEIVED)
        reply = await commands.handle(1, "promemoria miei", RECEIVED)
        assert reply.splitlines()[1].endswith("x" * 47 + "...")

    @pytest.mark.asyncio
    async def test_show(self, commands):
        await commands.handle(1, "ricordami tra 5 minuti\nComprare il latte", RECEIVED)
        reply = await commands.handle(1, "promemoria 1", RECEIVED)
        assert reply == (
            "Promemoria 1: ricordami tra 5 minuti alle 10:35\n"
            "Prossimo avviso: 07/10/2026 10:35\n"
            "Comprare il latte"
        )

    @pytest.mark.asyncio
    async def test_show_other_owner(self, commands):
        await commands.handle(1, "ricordami domani\nx", RECEIVED)
        assert await commands.handle(2, "promemoria 1", RECEIVED) == NOT_FOUND.format(reminder_id=1)

    @pytest.mark.asyncio
    async def test_help(self, commands):
        assert await commands.handle(1, "promemoria", RECEIVED) == PROMEMORIA_HELP


class TestScordati:
    """Test reminder deletion."""

    @pytest.mark.asyncio
    async def test_delete(self, commands):
        await commands.handle(1, "ricordami domani\nx", RECEIVED)
        reply = await commands.handle(1, "scordati 1", RECEIVED)
        assert reply == "Come desidera, ho dimenticato il promemoria 1."
        assert await commands.store.list_by_owner(1) == []

    @pytest.mark.asyncio
    async def test_delete_unknown(self, commands):
        assert await commands.handle(1, "scordati 4", RECEIVED) == NOT_FOUND.format(reminder_id=4)

    @pytest.mark.asyncio
    async def test_overlong_id_is_not_an_id(self, commands):
        reply = await commands.handle(1, "scordati " + "9" * 5000, RECEIVED)
        assert reply == SCORDATI_HELP

    @pytest.mark.asyncio
    async def test_help(self, commands):
        assert await commands.handle(1, "scordati tutto", RECEIVED) == SCORDATI_HELP


class TestErrors:
    """Test fallbacks."""

    @pytest.mark.asyncio
    async def test_unknown_command(self, commands):
        assert await commands.handle(1, "buongiorno", RECEIVED) == GENERIC_HELP

    @pytest.mark.asyncio
    async def test_store_unavailable(self):
        store = MagicMock()
        store.create = AsyncMock(side_effect=StoreUnavailable("connection refused"))
        store.list_by_owner = AsyncMock(side_effect=StoreUnavailable("connection refused"))
        commands = ReminderCommands(store)

        assert await commands.handle(1, "ricordami domani\nx", RECEIVED) == UNAVAILABLE
        assert await commands.handle(1, "promemoria miei", RECEIVED) == UNAVAILABLE


class TestConfig:
    """Test configuration handling."""

    def test_invalid_timezone_falls_back(self):
        commands = ReminderCommands(
            InMemoryReminderStore(), ReminderConfig(timezone="Mars/Olympus")
        )
        assert commands.tz.zone == "Europe/Rome"

    @pytest.mark.asyncio
    async def test_invalid_timezone_still_creates(self):
        commands = ReminderCommands(
            InMemoryReminderStore(), ReminderConfig(timezone="Mars/Olympus")
        )
        reply = await commands.handle(1, "ricordami tra 5 minuti\nlatte", RECEIVED)
        assert reply == "Sarà fatto. Promemoria 1 (una volta), prossimo avviso: 07/10/2026 10:35."
