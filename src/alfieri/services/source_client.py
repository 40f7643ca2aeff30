"""HTTP client fetching the live newsletter page for scheduled refetches."""

import logging

import httpx

from alfieri.config import settings

logger = logging.getLogger(__name__)


class NewsletterSourceClient:
    """Fetches the newsletter archive page the scheduler re-processes."""

    def __init__(self, url: str | None = None) -> None:
        """
        Initialize source client.

        Args:
            url: Live newsletter URL (uses settings if not provided)
        """
        self.url = url or settings.newsletter_source_url

    async def fetch_html(self) -> str:
        """
        Download the current newsletter HTML.

        Raises:
            ValueError: if no source URL is configured
            httpx.HTTPError: on network or HTTP status errors
        """
        if not self.url:
            raise ValueError("Newsletter source URL not configured")

        async with httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True) as client:
            response = await client.get(self.url)
            response.raise_for_status()

        logger.info(f"Fetched newsletter source ({len(response.text)} chars) from {self.url}")
        return response.text
