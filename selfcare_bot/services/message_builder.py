"""Build Send API request bodies from outbound actions.

Every function here is pure: the same action always yields the same
request body. The access token is never part of the body; the send
gateway attaches it as a query parameter.
"""

from typing import Any

from pydantic import BaseModel

from selfcare_bot.models.outbound import (
    AttachmentAction,
    ButtonTemplateAction,
    GenericTemplateAction,
    OutboundAction,
    QuickRepliesAction,
    ReceiptTemplateAction,
    SenderAction,
    TextAction,
)


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", exclude_none=True)


def _envelope(recipient_id: str, message: dict[str, Any]) -> dict[str, Any]:
    return {"recipient": {"id": recipient_id}, "message": message}


def _template(recipient_id: str, payload: dict[str, Any]) -> dict[str, Any]:
    return _envelope(
        recipient_id,
        {"attachment": {"type": "template", "payload": payload}},
    )


def build_text_message(action: TextAction) -> dict[str, Any]:
    message: dict[str, Any] = {"text": action.text}
    if action.metadata:
        message["metadata"] = action.metadata
    return _envelope(action.recipient_id, message)


def build_attachment_message(action: AttachmentAction) -> dict[str, Any]:
    return _envelope(
        action.recipient_id,
        {
            "attachment": {
                "type": action.attachment_type,
                "payload": {"url": action.url},
            }
        },
    )


def build_button_template(action: ButtonTemplateAction) -> dict[str, Any]:
    return _template(
        action.recipient_id,
        {
            "template_type": "button",
            "text": action.text,
            "buttons": [_dump(button) for button in action.buttons],
        },
    )


def build_generic_template(action: GenericTemplateAction) -> dict[str, Any]:
    return _template(
        action.recipient_id,
        {
            "template_type": "generic",
            "elements": [_dump(element) for element in action.elements],
        },
    )


def build_receipt_template(action: ReceiptTemplateAction) -> dict[str, Any]:
    """Build a receipt template.

    The address is omitted when absent (digital goods); every other
    component is always present, as the platform requires.
    """
    payload: dict[str, Any] = {
        "template_type": "receipt",
        "recipient_name": action.recipient_name,
        "order_number": action.order_number,
        "currency": action.currency,
        "payment_method": action.payment_method,
        "elements": [_dump(element) for element in action.elements],
        "summary": _dump(action.summary),
        "adjustments": [_dump(adjustment) for adjustment in action.adjustments],
    }
    if action.timestamp is not None:
        payload["timestamp"] = action.timestamp
    if action.address is not None:
        payload["address"] = _dump(action.address)
    return _template(action.recipient_id, payload)


def build_quick_replies(action: QuickRepliesAction) -> dict[str, Any]:
    message: dict[str, Any] = {
        "text": action.text,
        "quick_replies": [_dump(option) for option in action.quick_replies],
    }
    if action.metadata:
        message["metadata"] = action.metadata
    return _envelope(action.recipient_id, message)


def build_sender_action(action: SenderAction) -> dict[str, Any]:
    return {
        "recipient": {"id": action.recipient_id},
        "sender_action": action.sender_action.value,
    }


def build_payload(action: OutboundAction) -> dict[str, Any]:
    """Build the Send API request body for any outbound action.

    Args:
        action: A constructed (and therefore schema-valid) outbound action

    Returns:
        JSON-serializable request body addressed to ``action.recipient_id``

    Raises:
        TypeError: If ``action`` is not an outbound action
    """
    if isinstance(action, TextAction):
        return build_text_message(action)
    if isinstance(action, AttachmentAction):
        return build_attachment_message(action)
    if isinstance(action, ButtonTemplateAction):
        return build_button_template(action)
    if isinstance(action, GenericTemplateAction):
        return build_generic_template(action)
    if isinstance(action, ReceiptTemplateAction):
        return build_receipt_template(action)
    if isinstance(action, QuickRepliesAction):
        return build_quick_replies(action)
    if isinstance(action, SenderAction):
        return build_sender_action(action)
    raise TypeError(f"Unsupported outbound action: {type(action).__name__}")
