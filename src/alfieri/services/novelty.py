"""Novelty filter: publishes each distinct showtime at most once."""

import enum
import logging

from alfieri.errors import PublicationError
from alfieri.parsing.models import ShowtimeRecord
from alfieri.services.dedup_store import DedupStore
from alfieri.services.publisher import Publisher

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    """What happened to a record handed to the novelty filter."""

    PUBLISHED = "published"
    DUPLICATE_SKIP = "duplicate"
    PUBLICATION_FAILED = "publication_failed"


class NoveltyFilter:
    """
    Checks records against the dedup store and publishes the new ones.

    The check and the record are one conditional insert in the store; there
    is never a separate read before the write, so concurrent redeliveries of
    the same newsletter publish each showtime once.
    """

    def __init__(self, store: DedupStore, publisher: Publisher) -> None:
        self.store = store
        self.publisher = publisher

    async def admit(self, record: ShowtimeRecord) -> Outcome:
        """
        Publish the record if its dedup key has never been recorded.

        A failed publication is reported but the key stays recorded:
        delivery downstream is at-least-once at best, dedup is at-most-once.

        Raises:
            StorageError: if the store is unreachable; nothing is published.
        """
        inserted = await self.store.record_if_absent(record)
        if not inserted:
            logger.debug(f"Duplicate skipped: '{record.title}' on {record.date}")
            return Outcome.DUPLICATE_SKIP

        try:
            await self.publisher.publish(record)
        except PublicationError as e:
            logger.warning(f"Publication failed: {e}")
            await self.publisher.report_error(f"Publication failed: {e}")
            return Outcome.PUBLICATION_FAILED

        return Outcome.PUBLISHED

    async def is_new(self, record: ShowtimeRecord) -> bool:
        """Read-only check for previews. Never use it to decide a write."""
        return not await self.store.is_recorded(record.dedup_key)
