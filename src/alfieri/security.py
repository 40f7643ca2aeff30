"""Authentication for the inbound webhook and the scheduler endpoint."""

import hashlib
import hmac
import logging
import time

from alfieri.config import settings
from alfieri.errors import AuthError

logger = logging.getLogger(__name__)


def compute_mailgun_signature(signing_key: str, timestamp: int | str, token: str) -> str:
    """HMAC-SHA256 hex digest of timestamp + token, keyed by the signing key."""
    message = f"{timestamp}{token}".encode("utf-8")
    return hmac.new(signing_key.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_mailgun_signature(
    signing_key: str,
    timestamp: int,
    token: str,
    signature: str,
    now: float | None = None,
    max_age: int | None = None,
    max_skew: int | None = None,
) -> None:
    """
    Verify that a webhook call was signed by Mailgun and is fresh.

    Args:
        signing_key: Mailgun HTTP webhook signing key
        timestamp: Unix timestamp sent with the webhook
        token: Random one-time token sent with the webhook
        signature: Hex signature sent with the webhook
        now: Current unix time (defaults to time.time())
        max_age: Oldest accepted timestamp, in seconds (settings default)
        max_skew: Furthest accepted future timestamp, in seconds (settings default)

    Raises:
        AuthError: if the key is unset, the signature does not match, or the
            timestamp is outside the freshness window.
    """
    if not signing_key:
        raise AuthError("Mailgun signing key not configured")

    expected = compute_mailgun_signature(signing_key, timestamp, token)
    if not hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8")):
        raise AuthError("Signature mismatch")

    now = time.time() if now is None else now
    max_age = settings.webhook_max_age_seconds if max_age is None else max_age
    max_skew = settings.webhook_max_clock_skew_seconds if max_skew is None else max_skew

    age = now - timestamp
    if age > max_age:
        raise AuthError(f"Stale webhook timestamp ({int(age)}s old)")
    if age < -max_skew:
        raise AuthError(f"Webhook timestamp {int(-age)}s in the future")


def verify_bearer_token(expected: str, supplied: str | None) -> None:
    """
    Constant-time check of a bearer token.

    Raises:
        AuthError: if no token is configured or the supplied one differs.
    """
    if not expected:
        raise AuthError("Scheduler token not configured")
    if not supplied or not hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8")):
        raise AuthError("Invalid bearer token")
