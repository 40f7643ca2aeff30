"""Operator endpoint relaying a free-text message to the channel."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from alfieri.api.deps import get_publisher, require_scheduler_token
from alfieri.errors import PublicationError
from alfieri.services.publisher import Publisher

logger = logging.getLogger(__name__)
router = APIRouter()

# Telegram rejects messages longer than this
MAX_MESSAGE_LENGTH = 4096


@router.post("/message", dependencies=[Depends(require_scheduler_token)])
async def post_message(
    request: Request,
    publisher: Publisher = Depends(get_publisher),
) -> dict[str, str]:
    """
    Send the plain-text request body to the channel as it is.

    Used for announcements that are not in the newsletter (closures,
    programme changes).
    """
    text = (await request.body()).decode("utf-8", errors="replace").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty message")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Message longer than {MAX_MESSAGE_LENGTH} characters",
        )

    logger.info("Sending operator message")
    try:
        await publisher.announce(text)
    except PublicationError as e:
        logger.error(f"Unable to send operator message: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return {"status": "sent"}
