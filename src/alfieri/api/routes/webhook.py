"""Mailgun inbound webhook endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from alfieri.api.deps import get_novelty_filter
from alfieri.config import settings
from alfieri.errors import AuthError, MalformedPayloadError
from alfieri.schemas.report import PipelineReport
from alfieri.schemas.webhook import MailgunSignature, MailgunWebhookPayload, parse_form
from alfieri.security import verify_mailgun_signature
from alfieri.services.novelty import NoveltyFilter
from alfieri.services.pipeline import process_newsletter

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/mail", response_model=PipelineReport)
async def receive_newsletter_email(
    request: Request,
    response: Response,
    novelty: NoveltyFilter = Depends(get_novelty_filter),
) -> PipelineReport:
    """
    Receive a newsletter forwarded by Mailgun.

    Authentication happens before the body is looked at. A 503 is returned
    when the dedup store failed, so that Mailgun redelivers later; every
    showtime already recorded is then skipped as a duplicate.
    """
    logger.info("Received webhook from Mailgun")
    form = await request.form()

    try:
        signature = parse_form(MailgunSignature, form)
    except MalformedPayloadError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        verify_mailgun_signature(
            settings.mailgun_signing_key,
            signature.timestamp,
            signature.token,
            signature.signature,
        )
    except AuthError as e:
        logger.warning(f"Payload signature verification failed: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        payload = parse_form(MailgunWebhookPayload, form)
    except MalformedPayloadError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(f"Processing newsletter from {payload.sender!r}: {payload.subject!r}")
    report = await process_newsletter(
        payload.html_body,
        received_at=payload.received_at,
        novelty=novelty,
        subject=payload.subject,
    )

    if report.storage_failed:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return report
