"""Tests for the Mailgun inbound webhook endpoint."""

import asyncio
import time
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from alfieri.api.deps import get_novelty_filter
from alfieri.errors import StorageError
from alfieri.services.dedup_store import InMemoryDedupStore
from alfieri.services.novelty import NoveltyFilter

pytestmark = pytest.mark.usefixtures("signing_key")


async def post_mail(app: FastAPI, form: dict[str, str]):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post("/mail", data=form)


# ---------------------------------------------------------------------------
# Accepted deliveries
# ---------------------------------------------------------------------------


class TestReceiveNewsletter:
    async def test_publishes_new_showtimes(
        self, test_app: FastAPI, make_form, newsletter_html: str, publisher: AsyncMock
    ) -> None:
        response = await post_mail(test_app, make_form(newsletter_html))

        assert response.status_code == 200
        body = response.json()
        assert body["blocks"] == 5
        assert body["published"] == 12
        assert len(body["problems"]) == 3
        assert publisher.publish.await_count == 12

    async def test_redelivery_publishes_nothing(
        self, test_app: FastAPI, make_form, newsletter_html: str, publisher: AsyncMock
    ) -> None:
        form = make_form(newsletter_html)

        await post_mail(test_app, form)
        response = await post_mail(test_app, form)

        assert response.status_code == 200
        assert response.json()["published"] == 0
        assert response.json()["duplicates"] == 12
        assert publisher.publish.await_count == 12

    async def test_off_week_newsletter_is_accepted(
        self, test_app: FastAPI, make_form, off_week_html: str, publisher: AsyncMock
    ) -> None:
        response = await post_mail(test_app, make_form(off_week_html))

        assert response.status_code == 200
        assert response.json()["blocks"] == 0
        publisher.publish.assert_not_awaited()

    async def test_concurrent_deliveries_publish_once(
        self, test_app: FastAPI, make_form, newsletter_html: str, store: InMemoryDedupStore
    ) -> None:
        form = make_form(newsletter_html)

        responses = await asyncio.gather(*(post_mail(test_app, form) for _ in range(3)))

        assert all(r.status_code == 200 for r in responses)
        assert sum(r.json()["published"] for r in responses) == 12
        assert len(store.keys) == 12


# ---------------------------------------------------------------------------
# Rejected deliveries
# ---------------------------------------------------------------------------


class TestRejectedDeliveries:
    async def test_bad_signature_is_rejected_before_processing(
        self,
        test_app: FastAPI,
        make_form,
        newsletter_html: str,
        store: InMemoryDedupStore,
        publisher: AsyncMock,
    ) -> None:
        response = await post_mail(test_app, make_form(newsletter_html, signature="0" * 64))

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid signature"
        assert store.keys == set()
        publisher.publish.assert_not_awaited()

    async def test_stale_timestamp_is_rejected(
        self, test_app: FastAPI, make_form, newsletter_html: str, publisher: AsyncMock
    ) -> None:
        form = make_form(newsletter_html, timestamp=int(time.time()) - 3600)

        response = await post_mail(test_app, form)

        assert response.status_code == 401
        publisher.publish.assert_not_awaited()

    async def test_missing_token_is_bad_request(
        self, test_app: FastAPI, make_form, newsletter_html: str
    ) -> None:
        form = make_form(newsletter_html)
        del form["token"]

        response = await post_mail(test_app, form)

        assert response.status_code == 400
        assert "token" in response.json()["detail"]

    async def test_non_numeric_timestamp_is_bad_request(
        self, test_app: FastAPI, make_form, newsletter_html: str
    ) -> None:
        form = make_form(newsletter_html)
        form["timestamp"] = "yesterday"

        response = await post_mail(test_app, form)

        assert response.status_code == 400
        assert "timestamp" in response.json()["detail"]

    async def test_missing_body_is_bad_request(
        self, test_app: FastAPI, make_form, publisher: AsyncMock
    ) -> None:
        response = await post_mail(test_app, make_form(None))

        assert response.status_code == 400
        assert "body-html" in response.json()["detail"]
        publisher.publish.assert_not_awaited()


# ---------------------------------------------------------------------------
# Storage failure
# ---------------------------------------------------------------------------


class TestStorageFailure:
    async def test_returns_503_and_publishes_nothing(
        self, test_app: FastAPI, make_form, newsletter_html: str, publisher: AsyncMock
    ) -> None:
        store = AsyncMock()
        store.record_if_absent.side_effect = StorageError("connection refused")
        test_app.dependency_overrides[get_novelty_filter] = lambda: NoveltyFilter(store, publisher)

        response = await post_mail(test_app, make_form(newsletter_html))

        assert response.status_code == 503
        assert response.json()["storage_failed"] is True
        assert response.json()["withheld"] == 12
        publisher.publish.assert_not_awaited()
