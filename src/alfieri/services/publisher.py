"""Publication collaborator: delivers new showtimes to Telegram."""

import html
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from alfieri.config import settings
from alfieri.errors import PublicationError
from alfieri.parsing.grammar import MONTHS, WEEKDAYS
from alfieri.parsing.models import ShowtimeRecord

logger = logging.getLogger(__name__)

MONTH_NAMES = {number: name for name, number in MONTHS.items()}


class Publisher(ABC):
    """Interface for delivering showtimes and operator error reports."""

    @abstractmethod
    async def publish(self, record: ShowtimeRecord) -> None:
        """
        Deliver one showtime.

        Raises:
            PublicationError: if delivery failed
        """

    @abstractmethod
    async def announce(self, text: str) -> None:
        """
        Relay a free-text message from the operators to the channel.

        Raises:
            PublicationError: if delivery failed
        """

    async def report_error(self, message: str) -> None:
        """
        Send a problem report to the operators.

        Should NOT raise. Default implementation only logs.
        """
        logger.error(message)


def format_showtime(record: ShowtimeRecord) -> str:
    """
    Render a showtime as a Telegram HTML message.

    Example:
        <b>MAKING OF</b>
        venerdì 27 settembre 2024 • ore 19:00
        — versione originale con sottotitoli
    """
    weekday = WEEKDAYS[record.date.weekday()]
    month = MONTH_NAMES[record.date.month]
    times = " e ".join(f"ore {t.strftime('%H:%M')}" for t in record.times)

    lines = [
        f"<b>{html.escape(record.title)}</b>",
        f"{weekday} {record.date.day} {month} {record.date.year} • {times}",
    ]
    if record.details:
        lines.append(html.escape(record.details))
    if record.newsletter_link:
        lines.append(f'<a href="{html.escape(record.newsletter_link, quote=True)}">Programma completo</a>')
    return "\n".join(lines)


class TelegramPublisher(Publisher):
    """Publisher posting to a Telegram channel through the Bot API."""

    BASE_URL = "https://api.telegram.org"

    def __init__(
        self,
        bot_token: str | None = None,
        channel_id: str | None = None,
        error_chat_id: str | None = None,
    ) -> None:
        """
        Initialize Telegram publisher.

        Args:
            bot_token: Bot API token (uses settings if not provided)
            channel_id: Channel receiving showtimes (uses settings if not provided)
            error_chat_id: Chat receiving operator reports (uses settings if not provided)
        """
        self.bot_token = bot_token or settings.telegram_bot_token
        self.channel_id = channel_id or settings.telegram_channel_id
        self.error_chat_id = error_chat_id or settings.telegram_error_chat_id
        if not self.bot_token:
            logger.warning("Telegram bot token not configured")

    async def publish(self, record: ShowtimeRecord) -> None:
        if not self.bot_token or not self.channel_id:
            raise PublicationError("Telegram bot token or channel id not configured")

        try:
            await self._send_message(self.channel_id, format_showtime(record), parse_mode="HTML")
        except (httpx.HTTPError, ValueError) as e:
            raise PublicationError(f"Unable to publish '{record.title}' on {record.date}: {e}") from e

        logger.info(f"Published '{record.title}' on {record.date} at {record.times_label}")

    async def announce(self, text: str) -> None:
        if not self.bot_token or not self.channel_id:
            raise PublicationError("Telegram bot token or channel id not configured")

        try:
            await self._send_message(self.channel_id, text)
        except (httpx.HTTPError, ValueError) as e:
            raise PublicationError(f"Unable to send message: {e}") from e

        logger.info(f"Relayed operator message ({len(text)} chars)")

    async def report_error(self, message: str) -> None:
        logger.error(message)
        if not self.bot_token or not self.error_chat_id:
            return
        try:
            await self._send_message(self.error_chat_id, message[:4000])
        except Exception as e:
            logger.error(f"Unable to deliver error report to Telegram: {e}")

    async def _send_message(self, chat_id: str, text: str, parse_mode: str | None = None) -> None:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode

        async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
            response = await client.post(
                f"{self.BASE_URL}/bot{self.bot_token}/sendMessage",
                json=payload,
            )
            response.raise_for_status()
            data = response.json()

        if not data.get("ok", False):
            raise ValueError(f"Telegram API error: {data.get('description', 'unknown error')}")
