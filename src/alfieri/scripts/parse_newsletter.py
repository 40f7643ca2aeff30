"""Dry-run a saved newsletter through the pipeline and print what would be published.

Usage:
    python -m alfieri.scripts.parse_newsletter newsletter.html \
        --subject "Spazio Alfieri • programmazione 25 settembre > 2 ottobre" \
        --received 2024-09-24T10:00
    python -m alfieri.scripts.parse_newsletter newsletter.html --check-db
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from alfieri.config import settings
from alfieri.parsing.models import ShowtimeRecord
from alfieri.services.dedup_store import InMemoryDedupStore
from alfieri.services.novelty import NoveltyFilter
from alfieri.services.pipeline import process_newsletter
from alfieri.services.publisher import Publisher, format_showtime

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)


class StdoutPublisher(Publisher):
    """Prints messages instead of sending them."""

    def __init__(self) -> None:
        self.records: list[ShowtimeRecord] = []

    async def publish(self, record: ShowtimeRecord) -> None:
        self.records.append(record)
        print(format_showtime(record))
        print()

    async def announce(self, text: str) -> None:
        print(text)

    async def report_error(self, message: str) -> None:
        print(message, file=sys.stderr)


async def check_against_db(publisher: StdoutPublisher) -> int:
    """Print which parsed showtimes are not yet in seen_showtimes."""
    from alfieri.database import AsyncSessionLocal
    from alfieri.services.dedup_store import SqlDedupStore

    new_count = 0
    async with AsyncSessionLocal() as db:
        novelty = NoveltyFilter(SqlDedupStore(db), publisher)
        for record in publisher.records:
            is_new = await novelty.is_new(record)
            new_count += is_new
            print(f"{'NEW ' if is_new else 'seen'}  {record.date} {record.times_label:<12} {record.title}")
    return new_count


def parse_received(value: str | None, tz: ZoneInfo) -> datetime:
    """Parse --received; a value without an offset is read in the newsletter timezone."""
    if not value:
        return datetime.now(tz)
    received_at = datetime.fromisoformat(value)
    if received_at.tzinfo is None:
        received_at = received_at.replace(tzinfo=tz)
    return received_at


async def main(args: argparse.Namespace) -> int:
    html = Path(args.file).read_text(encoding="utf-8")
    tz = ZoneInfo(settings.newsletter_timezone)
    received_at = parse_received(args.received, tz)

    publisher = StdoutPublisher()
    report = await process_newsletter(
        html,
        received_at=received_at,
        novelty=NoveltyFilter(InMemoryDedupStore(), publisher),
        subject=args.subject,
    )
    print(report.model_dump_json(indent=2, exclude={"problems"}))

    if args.check_db:
        new_count = await check_against_db(publisher)
        print(f"{new_count} of {len(publisher.records)} showtimes not yet published")

    return 1 if report.problems else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Dry-run a newsletter through the pipeline")
    parser.add_argument("file", help="Path to the newsletter HTML")
    parser.add_argument("--subject", default=None, help="Subject line carrying the programme window")
    parser.add_argument(
        "--received",
        default=None,
        help="Reception time as ISO 8601; without an offset, in the newsletter timezone (default: now)",
    )
    parser.add_argument(
        "--check-db",
        action="store_true",
        help="Compare parsed showtimes against the seen_showtimes table (read-only)",
    )
    sys.exit(asyncio.run(main(parser.parse_args())))
