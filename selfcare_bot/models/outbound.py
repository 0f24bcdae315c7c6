"""Outbound actions and the Send API template components they carry.

Every action is addressed to one recipient. Platform schema limits
(button, element and quick reply counts) are enforced when an action is
constructed, so a built action is always sendable.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from selfcare_bot.constants import (
    DEFAULT_MESSAGE_METADATA,
    MAX_GENERIC_ELEMENTS,
    MAX_QUICK_REPLIES,
    MAX_TEMPLATE_BUTTONS,
)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# Buttons
# =============================================================================


class WebUrlButton(_Frozen):
    """Opens a URL in the Messenger webview."""

    type: Literal["web_url"] = "web_url"
    url: str
    title: str


class PostbackButton(_Frozen):
    """Sends a postback carrying ``payload`` back to the webhook."""

    type: Literal["postback"] = "postback"
    title: str
    payload: str


class PhoneNumberButton(_Frozen):
    """Dials ``payload`` (an E.164 phone number)."""

    type: Literal["phone_number"] = "phone_number"
    title: str
    payload: str


class AccountLinkButton(_Frozen):
    """Starts the account linking flow at ``url``."""

    type: Literal["account_link"] = "account_link"
    url: str


TemplateButton = Annotated[
    Union[WebUrlButton, PostbackButton, PhoneNumberButton],
    Field(discriminator="type"),
]

ElementButton = Annotated[
    Union[WebUrlButton, PostbackButton, PhoneNumberButton, AccountLinkButton],
    Field(discriminator="type"),
]


# =============================================================================
# Template components
# =============================================================================


class GenericElement(_Frozen):
    """One bubble of a generic (carousel) template."""

    title: str
    subtitle: str | None = None
    item_url: str | None = None
    image_url: str | None = None
    buttons: list[ElementButton] = Field(
        default_factory=list, max_length=MAX_TEMPLATE_BUTTONS
    )


class ReceiptElement(_Frozen):
    """One line item of a receipt."""

    title: str
    subtitle: str | None = None
    quantity: int | None = None
    price: float
    currency: str | None = None
    image_url: str | None = None


class ReceiptAddress(_Frozen):
    street_1: str
    street_2: str = ""
    city: str
    postal_code: str
    state: str
    country: str


class ReceiptSummary(_Frozen):
    subtotal: float | None = None
    shipping_cost: float | None = None
    total_tax: float | None = None
    total_cost: float


class ReceiptAdjustment(_Frozen):
    name: str
    amount: float


class QuickReply(_Frozen):
    """A quick reply option shown above the composer."""

    content_type: Literal["text"] = "text"
    title: str
    payload: str


class SenderActionType(str, Enum):
    MARK_SEEN = "mark_seen"
    TYPING_ON = "typing_on"
    TYPING_OFF = "typing_off"


# =============================================================================
# Actions
# =============================================================================


class OutboundActionBase(_Frozen):
    recipient_id: str


class TextAction(OutboundActionBase):
    kind: Literal["text"] = "text"
    text: str
    metadata: str | None = DEFAULT_MESSAGE_METADATA


class AttachmentAction(OutboundActionBase):
    kind: Literal["attachment"] = "attachment"
    attachment_type: Literal["image", "audio", "video", "file"]
    url: str


class ButtonTemplateAction(OutboundActionBase):
    kind: Literal["button_template"] = "button_template"
    text: str
    buttons: list[TemplateButton] = Field(
        min_length=1, max_length=MAX_TEMPLATE_BUTTONS
    )


class GenericTemplateAction(OutboundActionBase):
    kind: Literal["generic_template"] = "generic_template"
    elements: list[GenericElement] = Field(
        min_length=1, max_length=MAX_GENERIC_ELEMENTS
    )


class ReceiptTemplateAction(OutboundActionBase):
    kind: Literal["receipt_template"] = "receipt_template"
    recipient_name: str
    order_number: str
    currency: str
    payment_method: str
    timestamp: str | None = None
    elements: list[ReceiptElement] = Field(default_factory=list)
    address: ReceiptAddress | None = None
    summary: ReceiptSummary
    adjustments: list[ReceiptAdjustment] = Field(default_factory=list)


class QuickRepliesAction(OutboundActionBase):
    kind: Literal["quick_replies"] = "quick_replies"
    text: str
    quick_replies: list[QuickReply] = Field(
        min_length=1, max_length=MAX_QUICK_REPLIES
    )
    metadata: str | None = DEFAULT_MESSAGE_METADATA


class SenderAction(OutboundActionBase):
    kind: Literal["sender_action"] = "sender_action"
    sender_action: SenderActionType


OutboundAction = Annotated[
    Union[
        TextAction,
        AttachmentAction,
        ButtonTemplateAction,
        GenericTemplateAction,
        ReceiptTemplateAction,
        QuickRepliesAction,
        SenderAction,
    ],
    Field(discriminator="kind"),
]
