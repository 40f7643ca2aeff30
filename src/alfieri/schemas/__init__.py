"""Pydantic schemas for webhook payloads and API responses."""

from alfieri.schemas.report import PipelineReport, ProblemReport
from alfieri.schemas.webhook import MailgunSignature, MailgunWebhookPayload

__all__ = [
    "MailgunSignature",
    "MailgunWebhookPayload",
    "PipelineReport",
    "ProblemReport",
]
