"""Typed inbound messaging events.

Each raw messaging event from a webhook batch is classified exactly once
into one of these variants; downstream code matches on the variant type
instead of probing optional fields.
"""

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class InboundAttachment(BaseModel):
    """Attachment on a user message (image, audio, location, ...)."""

    model_config = ConfigDict(frozen=True)

    type: str
    payload: dict[str, Any] | None = None


class MessagingEventBase(BaseModel):
    """Fields shared by every classified event."""

    model_config = ConfigDict(coerce_numbers_to_str=True, frozen=True)

    sender_id: str
    recipient_id: str


class MessageEvent(MessagingEventBase):
    """A message sent to the page, or an echo of one the page sent."""

    kind: Literal["message"] = "message"
    timestamp: int | None = None
    is_echo: bool = False
    mid: str | None = None
    app_id: str | None = None
    metadata: str | None = None
    text: str | None = None
    attachments: tuple[InboundAttachment, ...] = ()
    quick_reply_payload: str | None = None


class PostbackEvent(MessagingEventBase):
    """A postback button was tapped."""

    kind: Literal["postback"] = "postback"
    timestamp: int | None = None
    payload: str | None = None
    title: str | None = None


class DeliveryEvent(MessagingEventBase):
    """Messages sent by the page were delivered."""

    kind: Literal["delivery"] = "delivery"
    message_ids: tuple[str, ...] = ()
    watermark: int
    seq: int | None = None


class ReadEvent(MessagingEventBase):
    """Messages sent by the page were read."""

    kind: Literal["read"] = "read"
    watermark: int
    seq: int | None = None


class OptInEvent(MessagingEventBase):
    """The user authenticated through the Send to Messenger plugin."""

    kind: Literal["optin"] = "optin"
    timestamp: int | None = None
    ref: str | None = None


class AccountLinkEvent(MessagingEventBase):
    """The user linked or unlinked their account."""

    kind: Literal["account_link"] = "account_link"
    status: str
    authorization_code: str | None = None


class UnknownEvent(BaseModel):
    """A messaging event with none of the recognized keys."""

    model_config = ConfigDict(coerce_numbers_to_str=True, frozen=True)

    kind: Literal["unknown"] = "unknown"
    sender_id: str | None = None
    recipient_id: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)


IncomingEvent = Union[
    MessageEvent,
    PostbackEvent,
    DeliveryEvent,
    ReadEvent,
    OptInEvent,
    AccountLinkEvent,
    UnknownEvent,
]
