"""
Reminder Inspector CLI

Debug tool for the reminder parser and the reminders table.

Usage:
    # Parse a phrase and show its next fire instants
    python scripts/reminder_inspector.py parse "ricordami ogni secondo e terzo lunedì alle 9"

    # Parse as if received at a given instant
    python scripts/reminder_inspector.py parse "tra 1 minuto e 20 secondi" --at 2026-10-18T10:00:00+02:00

    # List an owner's stored reminders
    python scripts/reminder_inspector.py list --owner-id 123456789

    # Show reminders due now
    python scripts/reminder_inspector.py due
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import asyncpg
import pytz
from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders import (  # noqa: E402
    PostgresReminderStore,
    ReminderConfig,
    occurrences,
    parse_time_expression,
    render_spec,
    spec_to_dict,
)
from reminders.clock import get_timezone  # noqa: E402

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def format_datetime(dt: datetime, tz) -> str:
    """Format datetime for display."""
    if dt is None:
        return "Never"
    return dt.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S %Z")


def parse_phrase(args, config: ReminderConfig):
    """Parse a phrase and print its specification and upcoming instants."""
    tz = get_timezone(config.timezone)
    received_at = datetime.fromisoformat(args.at) if args.at else datetime.now(pytz.UTC)
    if received_at.tzinfo is None:
        received_at = tz.localize(received_at)

    spec = parse_time_expression(args.phrase, received_at, timezone=tz.zone)

    logger.info(f"Received at: {format_datetime(received_at, tz)}")
    logger.info(f"Kind:        {spec.kind.value}")
    logger.info(f"Rendered:    ricordami {render_spec(spec)}")
    if args.verbose:
        logger.info(json.dumps(spec_to_dict(spec), indent=2, ensure_ascii=False))

    upcoming = list(occurrences(spec, received_at, limit=args.count))
    if not upcoming:
        logger.info("No upcoming occurrences")
    for i, instant in enumerate(upcoming, 1):
        logger.info(f"  {i:>3}. {format_datetime(instant, tz)}")


async def list_reminders(store: PostgresReminderStore, owner_id: int, tz, limit: int):
    """List an owner's reminders."""
    reminders = await store.list_by_owner(owner_id, limit=limit)
    if not reminders:
        logger.info(f"No reminders for owner {owner_id}")
        return
    for reminder in reminders:
        logger.info(
            f"[{reminder.id}] next={format_datetime(reminder.next_fire_at, tz)} "
            f"kind={reminder.spec.kind.value} | ricordami {render_spec(reminder.spec)}"
        )


async def show_due(store: PostgresReminderStore, tz, limit: int):
    """Show reminders due now."""
    due = await store.due(datetime.now(pytz.UTC), limit=limit)
    logger.info(f"{len(due)} reminder(s) due")
    for reminder in due:
        logger.info(
            f"owner={reminder.owner_id} [{reminder.id}] "
            f"due={format_datetime(reminder.next_fire_at, tz)}"
        )


async def main_async(args, config: ReminderConfig):
    """Async main function."""
    if not config.database_url:
        logger.error("DATABASE_URL environment variable required")
        sys.exit(1)

    tz = get_timezone(config.timezone)
    pool = await asyncpg.create_pool(config.database_url, min_size=1, max_size=2)
    store = PostgresReminderStore(pool)

    try:
        if args.command == "list":
            await list_reminders(store, args.owner_id, tz, args.limit)
        elif args.command == "due":
            await show_due(store, tz, args.limit)
    finally:
        await pool.close()


def main():
    parser = argparse.ArgumentParser(
        description="Reminder Inspector CLI - Debug the reminder parser and store"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse a time expression")
    parse_parser.add_argument("phrase", help="Time expression, e.g. 'ricordami domani alle 9'")
    parse_parser.add_argument("--at", help="Reception instant (ISO 8601, default: now)")
    parse_parser.add_argument(
        "--count", type=int, default=5, help="Upcoming instants to show (default: 5)"
    )
    parse_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show the stored document"
    )

    # List command
    list_parser = subparsers.add_parser("list", help="List an owner's reminders")
    list_parser.add_argument("--owner-id", type=int, required=True, help="Owner ID")
    list_parser.add_argument(
        "--limit", type=int, default=50, help="Max results (default: 50)"
    )

    # Due command
    due_parser = subparsers.add_parser("due", help="Show reminders due now")
    due_parser.add_argument(
        "--limit", type=int, default=100, help="Max results (default: 100)"
    )

    args = parser.parse_args()
    config = ReminderConfig.from_env()

    if args.command == "parse":
        parse_phrase(args, config)
    else:
        asyncio.run(main_async(args, config))


if __name__ == "__main__":
    main()
