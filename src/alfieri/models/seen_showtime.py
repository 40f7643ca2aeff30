"""Seen-showtime index: dedup keys of every showtime already published."""

from datetime import date

from sqlalchemy import Date, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from alfieri.models.base import Base, TimestampMixin


class SeenShowtime(Base, TimestampMixin):
    """
    One row per distinct showtime ever admitted by the novelty filter.

    The unique constraint on dedup_key is what makes the check-and-record
    step atomic across concurrent requests and replicas. The remaining
    columns are for operators reading the table, never for matching.
    """

    __tablename__ = "seen_showtimes"
    __table_args__ = (UniqueConstraint("dedup_key", name="uq_seen_showtimes_dedup_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # SHA-256 hex digest
    dedup_key: Mapped[str] = mapped_column(String(64), nullable=False)

    film_title: Mapped[str] = mapped_column(String(500), nullable=False)
    showing_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    times: Mapped[str] = mapped_column(String(50), nullable=False)  # "17:00,21:15"
    details: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<SeenShowtime(film_title={self.film_title!r}, "
            f"showing_date={self.showing_date}, times={self.times!r})>"
        )
