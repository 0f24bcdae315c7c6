"""Classify raw messaging events into typed events.

A raw event is classified by which distinguishing key it carries,
checked in a fixed order. Events with none of the keys become
``UnknownEvent``; events with a key but an unusable shape raise
``MalformedEventError``.
"""

from typing import Any, Callable

import logfire
from pydantic import ValidationError

from selfcare_bot.errors import MalformedEventError
from selfcare_bot.models.events import (
    AccountLinkEvent,
    DeliveryEvent,
    IncomingEvent,
    MessageEvent,
    OptInEvent,
    PostbackEvent,
    ReadEvent,
    UnknownEvent,
)


def _party_ids(raw: dict[str, Any]) -> dict[str, Any]:
    sender = raw.get("sender") or {}
    recipient = raw.get("recipient") or {}
    return {
        "sender_id": sender.get("id") if isinstance(sender, dict) else None,
        "recipient_id": recipient.get("id") if isinstance(recipient, dict) else None,
    }


def _body(raw: dict[str, Any], key: str) -> dict[str, Any]:
    body = raw[key]
    if not isinstance(body, dict):
        raise MalformedEventError(f"'{key}' must be an object", raw_event=raw)
    return body


def _optin(raw: dict[str, Any]) -> OptInEvent:
    body = _body(raw, "optin")
    return OptInEvent(
        **_party_ids(raw),
        timestamp=raw.get("timestamp"),
        ref=body.get("ref"),
    )


def _message(raw: dict[str, Any]) -> MessageEvent:
    body = _body(raw, "message")
    quick_reply = body.get("quick_reply") or {}
    return MessageEvent(
        **_party_ids(raw),
        timestamp=raw.get("timestamp"),
        is_echo=bool(body.get("is_echo", False)),
        mid=body.get("mid"),
        app_id=body.get("app_id"),
        metadata=body.get("metadata"),
        text=body.get("text"),
        attachments=tuple(body.get("attachments") or ()),
        quick_reply_payload=(
            quick_reply.get("payload") if isinstance(quick_reply, dict) else None
        ),
    )


def _delivery(raw: dict[str, Any]) -> DeliveryEvent:
    body = _body(raw, "delivery")
    return DeliveryEvent(
        **_party_ids(raw),
        message_ids=tuple(body.get("mids") or ()),
        watermark=body.get("watermark"),
        seq=body.get("seq"),
    )


def _postback(raw: dict[str, Any]) -> PostbackEvent:
    body = _body(raw, "postback")
    return PostbackEvent(
        **_party_ids(raw),
        timestamp=raw.get("timestamp"),
        payload=body.get("payload"),
        title=body.get("title"),
    )


def _read(raw: dict[str, Any]) -> ReadEvent:
    body = _body(raw, "read")
    return ReadEvent(
        **_party_ids(raw),
        watermark=body.get("watermark"),
        seq=body.get("seq"),
    )


def _account_link(raw: dict[str, Any]) -> AccountLinkEvent:
    body = _body(raw, "account_linking")
    return AccountLinkEvent(
        **_party_ids(raw),
        status=body.get("status"),
        authorization_code=body.get("authorization_code"),
    )


# Checked in this order; the first key present decides the variant
_CLASSIFIERS: tuple[tuple[str, Callable[[dict[str, Any]], IncomingEvent]], ...] = (
    ("optin", _optin),
    ("message", _message),
    ("delivery", _delivery),
    ("postback", _postback),
    ("read", _read),
    ("account_linking", _account_link),
)


def classify(raw: dict[str, Any]) -> IncomingEvent:
    """Classify one raw messaging event.

    Args:
        raw: One element of an entry's ``messaging`` array

    Returns:
        The typed event; ``UnknownEvent`` if no distinguishing key is present

    Raises:
        MalformedEventError: If the event is not an object, or a recognized
            event is missing required fields
    """
    if not isinstance(raw, dict):
        raise MalformedEventError("Messaging event must be an object")

    for key, build in _CLASSIFIERS:
        if raw.get(key):
            try:
                return build(raw)
            except ValidationError as e:
                raise MalformedEventError(
                    f"Invalid '{key}' event: {e.error_count()} validation error(s)",
                    raw_event=raw,
                ) from e

    parties = _party_ids(raw)
    logfire.warning(
        "Webhook received unknown messaging event",
        keys=sorted(raw.keys()),
        sender_id=parties["sender_id"],
    )
    return UnknownEvent(
        sender_id=parties["sender_id"],
        recipient_id=parties["recipient_id"],
        raw=raw,
    )
