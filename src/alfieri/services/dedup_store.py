"""Dedup store: the persisted index of showtimes already published."""

import logging
from abc import ABC, abstractmethod

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from alfieri.errors import StorageError
from alfieri.models.seen_showtime import SeenShowtime
from alfieri.parsing.models import ShowtimeRecord

logger = logging.getLogger(__name__)


class DedupStore(ABC):
    """
    Storage interface consumed by the novelty filter.

    ``record_if_absent`` is the only mutation and must be atomic: two
    concurrent calls with the same key return True exactly once.
    """

    @abstractmethod
    async def is_recorded(self, dedup_key: str) -> bool:
        """Return True if the key has already been recorded."""

    @abstractmethod
    async def record_if_absent(self, record: ShowtimeRecord) -> bool:
        """
        Record the record's dedup key unless it is already present.

        Returns:
            True if the key was newly inserted, False if it already existed

        Raises:
            StorageError: if the store cannot be reached
        """


class SqlDedupStore(DedupStore):
    """
    Postgres-backed store over the seen_showtimes table.

    Uses INSERT ... ON CONFLICT DO NOTHING against the unique dedup_key
    constraint and commits straight away, so the key is durable before the
    record is handed to the publisher.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def is_recorded(self, dedup_key: str) -> bool:
        stmt = select(SeenShowtime.id).where(SeenShowtime.dedup_key == dedup_key)
        try:
            result = await self.db.execute(stmt)
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"Dedup lookup failed: {e}") from e
        return result.scalar_one_or_none() is not None

    async def record_if_absent(self, record: ShowtimeRecord) -> bool:
        stmt = (
            insert(SeenShowtime)
            .values(
                dedup_key=record.dedup_key,
                film_title=record.title,
                showing_date=record.date,
                times=record.times_label,
                details=record.details,
            )
            .on_conflict_do_nothing(index_elements=[SeenShowtime.dedup_key])
            .returning(SeenShowtime.id)
        )
        try:
            result = await self.db.execute(stmt)
            inserted = result.scalar_one_or_none() is not None
            await self.db.commit()
        except (SQLAlchemyError, OSError) as e:
            try:
                await self.db.rollback()
            except SQLAlchemyError:
                logger.debug("Rollback after failed dedup insert also failed", exc_info=True)
            raise StorageError(f"Dedup insert failed for '{record.title}': {e}") from e

        return inserted


class InMemoryDedupStore(DedupStore):
    """
    Process-local store for dry runs and tests.

    The check and the insert happen without an await in between, so they
    are atomic with respect to other coroutines on the same event loop.
    """

    def __init__(self, keys: set[str] | None = None) -> None:
        self.keys: set[str] = set(keys or ())

    async def is_recorded(self, dedup_key: str) -> bool:
        return dedup_key in self.keys

    async def record_if_absent(self, record: ShowtimeRecord) -> bool:
        if record.dedup_key in self.keys:
            return False
        self.keys.add(record.dedup_key)
        return True
