"""SQLAlchemy ORM models."""

from alfieri.models.base import Base
from alfieri.models.seen_showtime import SeenShowtime

__all__ = ["Base", "SeenShowtime"]
