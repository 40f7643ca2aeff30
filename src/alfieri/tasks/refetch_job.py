"""Scheduled refetch job re-processing the live newsletter page."""

import logging
from datetime import datetime, timezone

from alfieri.database import AsyncSessionLocal
from alfieri.schemas.report import PipelineReport
from alfieri.services.dedup_store import SqlDedupStore
from alfieri.services.novelty import NoveltyFilter
from alfieri.services.pipeline import process_newsletter
from alfieri.services.publisher import TelegramPublisher
from alfieri.services.source_client import NewsletterSourceClient

logger = logging.getLogger(__name__)


async def run_refetch() -> PipelineReport | None:
    """Fetch the live newsletter and run it through the pipeline.

    Creates its own DB session so it can be called from the scheduler
    without depending on a request context. Never raises: failures are
    logged and reported to the operator chat.
    """
    logger.info("Starting scheduled newsletter refetch")
    publisher = TelegramPublisher()

    try:
        html = await NewsletterSourceClient().fetch_html()
    except Exception as e:
        logger.error(f"Scheduled refetch could not fetch the source: {e}", exc_info=True)
        await publisher.report_error(f"Scheduled refetch could not fetch the source: {e}")
        return None

    async with AsyncSessionLocal() as db:
        novelty = NoveltyFilter(SqlDedupStore(db), publisher)
        try:
            report = await process_newsletter(
                html, received_at=datetime.now(timezone.utc), novelty=novelty
            )
        except Exception as e:
            logger.error(f"Scheduled refetch failed: {e}", exc_info=True)
            await publisher.report_error(f"Scheduled refetch failed: {e}")
            return None

    logger.info(
        f"Scheduled refetch complete: {report.published} published, "
        f"{report.duplicates} duplicates, {report.withheld} withheld"
    )
    return report
