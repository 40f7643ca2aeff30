"""Pydantic schemas for the Mailgun inbound webhook."""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from alfieri.errors import MalformedPayloadError


class MailgunSignature(BaseModel):
    """Fields Mailgun sends to let the receiver authenticate the call."""

    timestamp: int
    token: str = Field(min_length=1)
    signature: str = Field(min_length=1)


class MailgunWebhookPayload(MailgunSignature):
    """
    Store-and-notify form post for an inbound newsletter.

    Field names follow Mailgun's form keys ("body-html", "from").
    """

    model_config = ConfigDict(populate_by_name=True)

    html_body: str = Field(alias="body-html")
    sender: str = Field(default="", alias="from")
    subject: str | None = None

    @property
    def received_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)


def parse_form(model: type[BaseModel], form: Mapping[str, Any]):
    """
    Validate form fields into ``model``.

    Raises:
        MalformedPayloadError: listing the missing or invalid fields.
    """
    data = {key: value for key, value in form.items() if isinstance(value, str)}
    try:
        return model.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise MalformedPayloadError(f"Missing or invalid fields: {', '.join(fields)}") from e
