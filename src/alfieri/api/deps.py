"""FastAPI dependencies wiring the pipeline collaborators."""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from alfieri.config import settings
from alfieri.database import get_db
from alfieri.errors import AuthError
from alfieri.security import verify_bearer_token
from alfieri.services.dedup_store import DedupStore, SqlDedupStore
from alfieri.services.novelty import NoveltyFilter
from alfieri.services.publisher import Publisher, TelegramPublisher
from alfieri.services.source_client import NewsletterSourceClient

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def require_scheduler_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> None:
    """Guard for the operator endpoints called by the scheduler and by hand."""
    try:
        verify_bearer_token(settings.scheduler_token, credentials.credentials if credentials else None)
    except AuthError as e:
        logger.warning(f"Rejected operator call: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_dedup_store(db: AsyncSession = Depends(get_db)) -> DedupStore:
    return SqlDedupStore(db)


def get_publisher() -> Publisher:
    return TelegramPublisher()


def get_novelty_filter(
    store: DedupStore = Depends(get_dedup_store),
    publisher: Publisher = Depends(get_publisher),
) -> NoveltyFilter:
    return NoveltyFilter(store, publisher)


def get_source_client() -> NewsletterSourceClient:
    return NewsletterSourceClient()
