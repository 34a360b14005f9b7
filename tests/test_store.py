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

"""Tests for reminder storage and configuration."""

import asyncio
import json
import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.codec import spec_to_dict
from reminders.config import ReminderConfig
from reminders.manager import PostgresReminderStore
from reminders.store import InMemoryReminderStore, ReminderNotFound, StoreUnavailable
from reminders.time_parser import parse_time_expression

ROME = pytz.timezone("Europe/Rome")
RECEIVED = ROME.localize(datetime(2026, 10, 7, 10, 30))
SPEC = parse_time_expression("ogni giorno alle 9", RECEIVED, message="Annaffiare le piante")
FIRST = ROME.localize(datetime(2026, 10, 8, 9, 0))


class TestReminderConfig:
    """Test reminder configuration."""

    def test_default_config(self):
        config = ReminderConfig()
        assert config.timezone == "Europe/Rome"
        assert config.database_url is None
        assert config.poll_seconds == 60

    def test_config_from_env_default(self):
        with patch.dict("os.environ", {}, clear=True):
            config = ReminderConfig.from_env()
            assert config.timezone == "Europe/Rome"
            assert config.database_url is None
            assert config.list_limit == 20

    def test_config_from_env_custom_values(self):
        with patch.dict("os.environ", {
            "REMINDERS_TIMEZONE": "Europe/Zurich",
            "DATABASE_URL": "postgresql://localhost/ambrogio",
            "REMINDERS_POLL_SECONDS": "5",
            "REMINDERS_DUE_BATCH": "10",
        }):
            config = ReminderConfig.from_env()
            assert config.timezone == "Europe/Zurich"
            assert config.database_url == "postgresql://localhost/ambrogio"
            assert config.poll_seconds == 5
            assert config.due_batch == 10


class TestInMemoryStore:
    """Test the process-local store."""

    @pytest.mark.asyncio
    async def test_ids_are_per_owner(self):
        store = InMemoryReminderStore()
        first = await store.create(1, SPEC, RECEIVED, FIRST)
        second = await store.create(1, SPEC, RECEIVED, FIRST)
        other = await store.create(2, SPEC, RECEIVED, FIRST)
        assert (first.id, second.id, other.id) == (1, 2, 1)

    @pytest.mark.asyncio
    async def test_ids_are_not_reused(self):
        store = InMemoryReminderStore()
        await store.create(1, SPEC, RECEIVED, FIRST)
        await store.delete(1, 1)
        reminder = await store.create(1, SPEC, RECEIVED, FIRST)
        assert reminder.id == 2

    @pytest.mark.asyncio
    async def test_get_is_owner_scoped(self):
        store = InMemoryReminderStore()
        await store.create(1, SPEC, RECEIVED, FIRST)
        assert (await store.get(1, 1)).spec == SPEC
        with pytest.raises(ReminderNotFound) as excinfo:
            await store.get(2, 1)
        assert excinfo.value.reminder_id == 1
        assert excinfo.value.owner_id == 2

    @pytest.mark.asyncio
    async def test_delete_unknown(self):
        store = InMemoryReminderStore()
        with pytest.raises(ReminderNotFound):
            await store.delete(1, 7)

    @pytest.mark.asyncio
    async def test_list_soonest_first(self):
        store = InMemoryReminderStore()
        await store.create(1, SPEC, RECEIVED, FIRST + timedelta(days=2))
        await store.create(1, SPEC, RECEIVED, FIRST)
        await store.create(2, SPEC, RECEIVED, FIRST)
        listed = await store.list_by_owner(1)
        assert [r.id for r in listed] == [2, 1]
        assert len(await store.list_by_owner(1, limit=1)) == 1

    @pytest.mark.asyncio
    async def test_due(self):
        store = InMemoryReminderStore()
        await store.create(1, SPEC, RECEIVED, FIRST)
        await store.create(1, SPEC, RECEIVED, FIRST + timedelta(days=1))
        assert await store.due(FIRST - timedelta(seconds=1)) == []
        assert [r.id for r in await store.due(FIRST)] == [1]

    @pytest.mark.asyncio
    async def test_reschedule_is_conditional(self):
        store = InMemoryReminderStore()
        await store.create(1, SPEC, RECEIVED, FIRST)
        later = FIRST + timedelta(days=1)
        assert await store.reschedule(1, 1, FIRST, later) is True
        assert await store.reschedule(1, 1, FIRST, later) is False
        assert (await store.get(1, 1)).next_fire_at == later

    @pytest.mark.asyncio
    async def test_retire_is_conditional(self):
        store = InMemoryReminderStore()
        await store.create(1, SPEC, RECEIVED, FIRST)
        assert await store.retire(1, 1, RECEIVED) is False
        assert await store.retire(1, 1, FIRST) is True
        assert await store.list_by_owner(1) == []


def make_row(reminder_id=1, owner_id=1, spec=SPEC, next_fire_at=FIRST, as_text=True):
    document = spec_to_dict(spec)
    return {
        "owner_id": owner_id,
        "id": reminder_id,
        "spec": json.dumps(document) if as_text else document,
        "created_at": RECEIVED,
        "next_fire_at": next_fire_at,
    }


class TestPostgresStore:
    """Test the asyncpg-backed store against a mocked pool."""

    @pytest.mark.asyncio
    async def test_create(self):
        mock_pool = MagicMock()
        mock_pool.fetchrow = AsyncMock(return_value={"id": 3})

        store = PostgresReminderStore(mock_pool)
        reminder = await store.create(1, SPEC, RECEIVED, FIRST)

        assert reminder.id == 3
        assert reminder.next_fire_at == FIRST
        args = mock_pool.fetchrow.call_args[0]
        assert "ON CONFLICT (owner_id)" in args[0]
        assert "last_id = reminder_owners.last_id + 1" in args[0]
        assert args[1] == 1
        assert json.loads(args[2]) == spec_to_dict(SPEC)

    @pytest.mark.asyncio
    async def test_get_decodes_spec(self):
        mock_pool = MagicMock()
        mock_pool.fetchrow = AsyncMock(return_value=make_row())

        store = PostgresReminderStore(mock_pool)
        reminder = await store.get(1, 1)
        assert reminder.spec == SPEC
        assert reminder.spec.message == "Annaffiare le piante"

    @pytest.mark.asyncio
    async def test_get_accepts_decoded_json(self):
        mock_pool = MagicMock()
        mock_pool.fetchrow = AsyncMock(return_value=make_row(as_text=False))

        store = PostgresReminderStore(mock_pool)
        assert (await store.get(1, 1)).spec == SPEC

    @pytest.mark.asyncio
    async def test_get_missing(self):
        mock_pool = MagicMock()
        mock_pool.fetchrow = AsyncMock(return_value=None)

        store = PostgresReminderStore(mock_pool)
        with pytest.raises(ReminderNotFound):
            await store.get(1, 9)

    @pytest.mark.asyncio
    async def test_list_by_owner(self):
        mock_pool = MagicMock()
        mock_pool.fetch = AsyncMock(return_value=[make_row(1), make_row(2)])

        store = PostgresReminderStore(mock_pool)
        listed = await store.list_by_owner(1, limit=5)
        assert [r.id for r in listed] == [1, 2]
        assert mock_pool.fetch.call_args[0][1:] == (1, 5)

    @pytest.mark.asyncio
    async def test_delete(self):
        mock_pool = MagicMock()
        mock_pool.execute = AsyncMock(return_value="DELETE 1")

        store = PostgresReminderStore(mock_pool)
        await store.delete(1, 1)
        mock_pool.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_delete_missing(self):
        mock_pool = MagicMock()
        mock_pool.execute = AsyncMock(return_value="DELETE 0")

        store = PostgresReminderStore(mock_pool)
        with pytest.raises(ReminderNotFound):
            await store.delete(1, 1)

    @pytest.mark.asyncio
    async def test_reschedule(self):
        mock_pool = MagicMock()
        mock_pool.execute = AsyncMock(side_effect=["UPDATE 1", "UPDATE 0"])

        store = PostgresReminderStore(mock_pool)
        later = FIRST + timedelta(days=1)
        assert await store.reschedule(1, 1, FIRST, later) is True
        assert await store.reschedule(1, 1, FIRST, later) is False
        assert "IS NOT DISTINCT FROM $3" in mock_pool.execute.call_args[0][0]

    @pytest.mark.asyncio
    async def test_retire(self):
        mock_pool = MagicMock()
        mock_pool.execute = AsyncMock(return_value="DELETE 1")

        store = PostgresReminderStore(mock_pool)
        assert await store.retire(1, 1, FIRST) is True

    @pytest.mark.asyncio
    async def test_due(self):
        mock_pool = MagicMock()
        mock_pool.fetch = AsyncMock(return_value=[make_row()])

        store = PostgresReminderStore(mock_pool)
        due = await store.due(FIRST, limit=10)
        assert len(due) == 1
        assert mock_pool.fetch.call_args[0][1:] == (FIRST, 10)

    @pytest.mark.asyncio
    async def test_backend_failure(self):
        mock_pool = MagicMock()
        mock_pool.fetch = AsyncMock(side_effect=ConnectionRefusedError("connection refused"))

        store = PostgresReminderStore(mock_pool)
        with pytest.raises(StoreUnavailable):
            await store.due(FIRST)

    @pytest.mark.asyncio
    async def test_ensure_schema(self):
        mock_pool = MagicMock()
        mock_pool.execute = AsyncMock()

        store = PostgresReminderStore(mock_pool)
        await store.ensure_schema()
        assert "CREATE TABLE IF NOT EXISTS reminders" in mock_pool.execute.call_args[0][0]

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_distinct_ids(self):
        # The counter row hands out ids one at a time
        counter = {"last_id": 0}
        lock = asyncio.Lock()

        async def allocate(query, owner_id, *args):
            async with lock:
                await asyncio.sleep(0)
                counter["last_id"] += 1
                return {"id": counter["last_id"]}

        mock_pool = MagicMock()
        mock_pool.fetchrow = AsyncMock(side_effect=allocate)

        store = PostgresReminderStore(mock_pool)
        created = await asyncio.gather(*(store.create(1, SPEC, RECEIVED, FIRST) for _ in range(5)))
        assert sorted(r.id for r in created) == [1, 2, 3, 4, 5]
        assert all("FROM next_id" in call[0][0] for call in mock_pool.fetchrow.call_args_list)

    @pytest.mark.asyncio
    async def test_schema_seeds_owner_counters(self):
        mock_pool = MagicMock()
        mock_pool.execute = AsyncMock()

        store = PostgresReminderStore(mock_pool)
        await store.ensure_schema()
        schema = mock_pool.execute.call_args[0][0]
        assert "CREATE TABLE IF NOT EXISTS reminder_owners" in schema
        assert "SELECT owner_id, MAX(id) FROM reminders GROUP BY owner_id" in schema
