"""Shared test fixtures."""

import time
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI

from alfieri.api.deps import get_novelty_filter, get_publisher
from alfieri.api.routes import health, message, refetch, webhook
from alfieri.config import settings
from alfieri.security import compute_mailgun_signature
from alfieri.services.dedup_store import InMemoryDedupStore
from alfieri.services.novelty import NoveltyFilter
from alfieri.services.publisher import Publisher

FIXTURE_DIR = Path(__file__).parent / "parsing" / "fixtures"

SIGNING_KEY = "key-test-signing"
SUBJECT = "Spazio Alfieri • programmazione 25 settembre > 2 ottobre"


@pytest.fixture
def newsletter_html() -> str:
    return (FIXTURE_DIR / "newsletter.html").read_text(encoding="utf-8")


@pytest.fixture
def off_week_html() -> str:
    return (FIXTURE_DIR / "off_week.html").read_text(encoding="utf-8")


@pytest.fixture
def store() -> InMemoryDedupStore:
    return InMemoryDedupStore()


@pytest.fixture
def publisher() -> AsyncMock:
    return AsyncMock(spec=Publisher)


@pytest.fixture
def novelty(store: InMemoryDedupStore, publisher: AsyncMock) -> NoveltyFilter:
    return NoveltyFilter(store, publisher)


@pytest.fixture
def test_app(novelty: NoveltyFilter, publisher: AsyncMock) -> FastAPI:
    """Minimal FastAPI app without the APScheduler lifespan, for API tests."""
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(webhook.router)
    app.include_router(refetch.router)
    app.include_router(message.router)
    app.dependency_overrides[get_novelty_filter] = lambda: novelty
    app.dependency_overrides[get_publisher] = lambda: publisher
    return app


def signed_form(html: str | None, timestamp: int | None = None, **overrides: str) -> dict[str, str]:
    """Build a Mailgun form post signed with SIGNING_KEY."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    token = "b1c7f1d2e3a4b5c6d7e8f9a0b1c2d3e4f5a6b7c8d9e0f1a2b3"
    form = {
        "timestamp": str(timestamp),
        "token": token,
        "signature": compute_mailgun_signature(SIGNING_KEY, timestamp, token),
        "from": "Spazio Alfieri <newsletter@spazioalfieri.it>",
        "subject": SUBJECT,
    }
    if html is not None:
        form["body-html"] = html
    form.update(overrides)
    return form


@pytest.fixture
def make_form():
    return signed_form


@pytest.fixture
def signing_key():
    """Configure the Mailgun signing key used by signed_form."""
    with patch.object(settings, "mailgun_signing_key", SIGNING_KEY):
        yield SIGNING_KEY
