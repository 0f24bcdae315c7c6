"""Incoming/outgoing Facebook Messenger models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MessengerEntry(BaseModel):
    """Facebook webhook entry (one per page in a batch)."""

    model_config = ConfigDict(coerce_numbers_to_str=True, frozen=True)

    id: str
    time: int | None = None
    # Raw messaging events; typed by the event classifier one at a time so
    # that a single bad event cannot invalidate the whole batch
    messaging: list[Any] = Field(default_factory=list)


class MessengerWebhookPayload(BaseModel):
    """Facebook webhook batch payload."""

    model_config = ConfigDict(frozen=True)

    object: str
    # Raw entries; validated one at a time as MessengerEntry by the ingestor
    entry: list[Any] = Field(default_factory=list)


class SendResult(BaseModel):
    """Send API success response."""

    model_config = ConfigDict(coerce_numbers_to_str=True, frozen=True)

    recipient_id: str | None = None
    message_id: str | None = None
