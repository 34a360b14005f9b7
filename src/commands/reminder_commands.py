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
Reminder Commands

Text commands for managing reminders. The chat transport strips its own
framing and hands over the owner id and the message text; every command
answers with the reply text to send back.

Commands:
- ricordami <quando>\\n<messaggio> - Create a reminder
- promemoria miei - List your reminders
- promemoria <N> - Show reminder N
- scordati <N> - Delete reminder N
"""

import logging
import re
from datetime import datetime
from typing import Optional

import pytz

from reminders import (
    ReminderConfig,
    ReminderNotFound,
    ReminderStore,
    StoreUnavailable,
    parse_time_expression,
    render_spec,
    schedule,
)
from reminders.clock import get_timezone
from reminders.lifecycle import LifecycleState
from reminders.render import describe_spec
from reminders.time_parser import split_command

logger = logging.getLogger("ambrogio.commands.reminder")

COMMAND_RE = re.compile(r"(?i)^(ricordami\s+|ricordati\s+|scordati\s+|promemoria)")

# Message preview length in listings
PREVIEW_LENGTH = 50

GENERIC_HELP = (
    "Sono costernato, ma non ho compreso il Suo desiderio.\n"
    "Provi a scrivermi `ricordami`, `scordati`, `promemoria` così da aiutarmi ad aiutarla!"
)

PROMEMORIA_HELP = (
    "Sono costernato, ma non ho compreso il Suo desiderio.\n"
    "Scriva `promemoria miei` per vedere una lista dei suoi promemoria.\n"
    "Oppure scriva `promemoria <N>` (<N> è un numero) per vedere il promemoria identificato con N."
)

SCORDATI_HELP = (
    "Sono costernato, ma non ho compreso il Suo desiderio.\n"
    "Scriva `scordati <N>` (<N> è un numero) per eliminare il promemoria identificato con N."
)

RICORDAMI_HELP = (
    "Sono costernato, ma non ho compreso il Suo desiderio.\n"
    "Scriva `ricordami <quando>` e, a capo, il messaggio da ricordare. Per esempio:\n"
    "- `ricordami tra 2 ore`\n"
    "- `ricordami domani alle 10`\n"
    "- `ricordami il 13 settembre alle 11 e 37`\n"
    "- `ricordami ogni secondo e terzo lunedì alle 9`\n"
    "- `ricordami ogni sabato da giugno ad aprile`"
)

PAST_TIME = "Temo che quel momento sia già passato: non c'è nulla da ricordare."
NOT_FOUND = "Non trovo il promemoria {reminder_id} tra i Suoi."
UNAVAILABLE = "Mi perdoni, il mio taccuino non è raggiungibile in questo momento. Riprovi più tardi."
NO_REMINDERS = "Non ha alcun promemoria. Scriva `ricordami` per crearne uno!"


def _tokens(line: str) -> list[str]:
    return [t.strip(",:.!") for t in line.split() if t.strip(",:.!")]


def _reminder_id(tokens: list[str]) -> Optional[int]:
    for token in tokens:
        # Ids are INTEGER column values
        if token.isascii() and token.isdigit() and len(token) <= 9:
            return int(token)
    return None


class ReminderCommands:
    """Command surface for reminder management."""

    def __init__(self, store: ReminderStore, config: Optional[ReminderConfig] = None):
        self.store = store
        self.config = config or ReminderConfig()
        self.tz = get_timezone(self.config.timezone)

    def can_accept(self, text: str) -> bool:
        return bool(COMMAND_RE.match(text))

    def _format_instant(self, instant: Optional[datetime]) -> str:
        if instant is None:
            return "nessuna"
        return instant.astimezone(self.tz).strftime("%d/%m/%Y %H:%M")

    async def handle(
        self, owner_id: int, text: str, received_at: Optional[datetime] = None
    ) -> str:
        """
        Run one command.

        Args:
            owner_id: Chat user ID
            text: Message text, chat framing already stripped
            received_at: Reception instant (defaults to now)

        Returns:
            Reply text
        """
        received_at = received_at or datetime.now(pytz.UTC)
        head, message = split_command(text)
        tokens = _tokens(head)
        command = tokens[0].lower() if tokens else None

        try:
            if command == "promemoria":
                return await self._promemoria(owner_id, tokens)
            if command in ("ricordami", "ricordati") and "\n" in text:
                return await self._ricordami(owner_id, head, message, received_at)
            if command in ("ricordami", "ricordati"):
                return RICORDAMI_HELP
            if command == "scordati":
                return await self._scordati(owner_id, tokens)
        except ReminderNotFound as e:
            return NOT_FOUND.format(reminder_id=e.reminder_id)
        except StoreUnavailable as e:
            logger.error(f"Reminder store unavailable for owner {owner_id}: {e}", exc_info=True)
            return UNAVAILABLE

        logger.info(f"Received unknown command: {command!r}")
        return GENERIC_HELP

    # =========================================================================
    # ricordami
    # =========================================================================

    async def _ricordami(
        self, owner_id: int, expr: str, message: str, received_at: datetime
    ) -> str:
        spec = parse_time_expression(
            expr, received_at, timezone=self.tz.zone, message=message
        )
        step = schedule(spec, received_at)
        if step.state is LifecycleState.TERMINAL:
            return PAST_TIME

        reminder = await self.store.create(owner_id, spec, received_at, step.next_fire_at)
        return (
            f"Sarà fatto. Promemoria {reminder.id} ({describe_spec(spec)}), "
            f"prossimo avviso: {self._format_instant(reminder.next_fire_at)}."
        )

    # =========================================================================
    # promemoria
    # =========================================================================

    async def _promemoria(self, owner_id: int, tokens: list[str]) -> str:
        if "miei" in (t.lower() for t in tokens):
            return await self._list(owner_id)

        reminder_id = _reminder_id(tokens)
        if reminder_id is None:
            return PROMEMORIA_HELP

        reminder = await self.store.get(owner_id, reminder_id)
        return (
            f"Promemoria {reminder.id}: ricordami {render_spec(reminder.spec)}\n"
            f"Prossimo avviso: {self._format_instant(reminder.next_fire_at)}\n"
            f"{reminder.spec.message}"
        )

    async def _list(self, owner_id: int) -> str:
        reminders = await self.store.list_by_owner(owner_id, limit=self.config.list_limit)
        if not reminders:
            return NO_REMINDERS

        lines = ["I Suoi promemoria:"]
        for reminder in reminders:
            content = reminder.spec.message.strip().splitlines()[0] if reminder.spec.message.strip() else ""
            if len(content) > PREVIEW_LENGTH:
                content = content[: PREVIEW_LENGTH - 3] + "..."
            lines.append(
                f"[{reminder.id}] {self._format_instant(reminder.next_fire_at)} "
                f"({describe_spec(reminder.spec)}) {content}".rstrip()
            )
        return "\n".join(lines)

    # =========================================================================
    # scordati
    # =========================================================================

    async def _scordati(self, owner_id: int, tokens: list[str]) -> str:
        reminder_id = _reminder_id(tokens)
        if reminder_id is None:
            return SCORDATI_HELP

        await self.store.delete(owner_id, reminder_id)
        logger.info(f"Owner {owner_id} deleted reminder {reminder_id}")
        return f"Come desidera, ho dimenticato il promemoria {reminder_id}."
