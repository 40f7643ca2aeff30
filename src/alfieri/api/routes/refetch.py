"""Scheduler-triggered refetch of the live newsletter page."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status

from alfieri.api.deps import get_novelty_filter, get_source_client, require_scheduler_token
from alfieri.schemas.report import PipelineReport
from alfieri.services.novelty import NoveltyFilter
from alfieri.services.pipeline import process_newsletter
from alfieri.services.source_client import NewsletterSourceClient

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/refetch",
    response_model=PipelineReport,
    dependencies=[Depends(require_scheduler_token)],
)
async def trigger_refetch(
    response: Response,
    novelty: NoveltyFilter = Depends(get_novelty_filter),
    source: NewsletterSourceClient = Depends(get_source_client),
) -> PipelineReport:
    """
    Re-run the pipeline on the live newsletter page.

    Called by the external scheduler. Shares dedup keys with the email
    path, so showtimes already published from the email are skipped.
    """
    try:
        html = await source.fetch_html()
    except Exception as e:
        logger.error(f"Unable to fetch newsletter source: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Source fetch failed: {e}")

    report = await process_newsletter(html, received_at=datetime.now(timezone.utc), novelty=novelty)
    if report.storage_failed:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return report
