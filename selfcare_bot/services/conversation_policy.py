"""Conversation policy: decide the replies for one inbound event.

The policy is a pure lookup over static tables. It keeps no state
between calls; a multi-step flow only continues when the user taps a
button carrying one of the bot's payload tokens. The same event always
produces the same list of outbound actions.

Message routing, in order:
1. Echoes of the page's own messages are ignored.
2. Quick reply taps are answered from ``QUICK_REPLY_TABLE``.
3. Text containing ``#v`` is a voucher recharge.
4. Text containing ``#sc`` starts a credit transfer.
5. Other text is looked up (lower-cased, whole message) in
   ``COMMAND_TABLE``; anything else starts the conversation over.
6. Attachments without text get an acknowledgement.
"""

from typing import Callable, NamedTuple

import logfire

from selfcare_bot.config import get_settings
from selfcare_bot.models.events import (
    AccountLinkEvent,
    DeliveryEvent,
    IncomingEvent,
    MessageEvent,
    OptInEvent,
    PostbackEvent,
    ReadEvent,
)
from selfcare_bot.models.outbound import OutboundAction, SenderActionType
from selfcare_bot.models.payloads import PayloadToken
from selfcare_bot.services import replies

VOUCHER_TAG = "#v"
SEND_CREDIT_TAG = "#sc"


class ReplyContext(NamedTuple):
    """What a table entry needs to build its reply.

    Attributes:
        recipient_id: User the replies are addressed to.
        base_url: Public base URL for asset and account linking links.
        message_id: Id of the triggering message, if any.
    """

    recipient_id: str
    base_url: str
    message_id: str | None = None


Reply = Callable[[ReplyContext], list[OutboundAction]]


def _init_conversation(ctx: ReplyContext) -> list[OutboundAction]:
    return [
        replies.account_options(ctx.recipient_id),
        replies.promotions(ctx.recipient_id, ctx.base_url),
    ]


def _say(body: str) -> Reply:
    return lambda ctx: [replies.text(ctx.recipient_id, body)]


def _signal(action: SenderActionType) -> Reply:
    return lambda ctx: [replies.sender_action(ctx.recipient_id, action)]


def _media(attachment_type: str, name: str) -> Reply:
    return lambda ctx: [
        replies.media(ctx.recipient_id, ctx.base_url, attachment_type, name)
    ]


def _receipt(ctx: ReplyContext) -> list[OutboundAction]:
    # Order numbers must be unique per receipt; derived from the triggering message
    order_ref = ctx.message_id or ctx.recipient_id
    return [replies.sample_receipt(ctx.recipient_id, ctx.base_url, f"order-{order_ref}")]


# =============================================================================
# Routing tables
# =============================================================================

QUICK_REPLY_TABLE: dict[PayloadToken, Reply] = {
    PayloadToken.CREDIT_AMOUNT: _say(replies.CUSTOMER_LINE_RECHARGED),
}

COMMAND_TABLE: dict[str, Reply] = {
    "plans": lambda ctx: [replies.plans(ctx.recipient_id, ctx.base_url)],
    "my id": lambda ctx: [
        replies.text(ctx.recipient_id, f"Your facebook Id: {ctx.recipient_id}")
    ],
    "image": _media("image", "rift.png"),
    "gif": _media("image", "instagram_logo.gif"),
    "audio": _media("audio", "sample.mp3"),
    "video": _media("video", "allofus480.mov"),
    "file": _media("file", "test.txt"),
    "button": lambda ctx: [replies.sample_buttons(ctx.recipient_id)],
    "generic": lambda ctx: [replies.sample_generic(ctx.recipient_id, ctx.base_url)],
    "receipt": _receipt,
    "quick reply": lambda ctx: [replies.sample_quick_replies(ctx.recipient_id)],
    "read receipt": _signal(SenderActionType.MARK_SEEN),
    "typing on": _signal(SenderActionType.TYPING_ON),
    "typing off": _signal(SenderActionType.TYPING_OFF),
    "account linking": lambda ctx: [
        replies.account_linking(ctx.recipient_id, ctx.base_url)
    ],
}

POSTBACK_TABLE: dict[PayloadToken, Reply] = {
    PayloadToken.RENEW_PLAN: _say(replies.PLAN_RENEWED),
    PayloadToken.DEACTIVATE_PLAN: _say(replies.PLAN_DEACTIVATED),
    PayloadToken.BUY_PLAN: _say(replies.PLAN_ACTIVATED),
    PayloadToken.BUY_PLAN_NO_ENOUGH_CREDIT: _say(replies.NOT_ENOUGH_CREDIT),
    PayloadToken.GET_STARTED_AUTHORIZE: lambda ctx: [
        replies.account_linking(ctx.recipient_id, ctx.base_url)
    ],
    PayloadToken.GET_STARTED: _init_conversation,
    PayloadToken.PLANS: lambda ctx: [
        replies.text(ctx.recipient_id, replies.OFFER_PLANS),
        replies.plans(ctx.recipient_id, ctx.base_url),
    ],
    PayloadToken.PROMOTIONS: lambda ctx: [
        replies.text(ctx.recipient_id, replies.PROMOTIONS),
        replies.promotions(ctx.recipient_id, ctx.base_url),
    ],
    PayloadToken.BALANCE_AND_ACTIVE_PLANS: lambda ctx: [
        replies.text(ctx.recipient_id, replies.BALANCE_SUMMARY),
        replies.active_plans(ctx.recipient_id),
    ],
    PayloadToken.ADD_CREDITS: _say(replies.ENTER_VOUCHER),
    PayloadToken.SEND_CREDITS: _say(replies.ENTER_PHONE_NUMBER),
}

# Defaults when a table has no entry
DEFAULT_COMMAND_REPLY: Reply = _init_conversation
DEFAULT_QUICK_REPLY: Reply = _say(replies.QUICK_REPLY_TAPPED)
DEFAULT_POSTBACK_REPLY: Reply = _say(replies.POSTBACK_CALLED)


class ConversationPolicy:
    """Map classified events to outbound actions.

    Example:
        >>> policy = ConversationPolicy(server_url="https://bot.example.com")
        >>> [a.kind for a in policy.decide(postback_event)]
        ['text', 'generic_template']
    """

    def __init__(self, server_url: str):
        """Initialize the policy.

        Args:
            server_url: Public base URL used in asset and account linking links
        """
        self._base_url = server_url.rstrip("/")

    def decide(self, event: IncomingEvent) -> list[OutboundAction]:
        """Return the actions to send in response to ``event`` (possibly none)."""
        if isinstance(event, OptInEvent):
            return self._on_optin(event)
        if isinstance(event, MessageEvent):
            return self._on_message(event)
        if isinstance(event, PostbackEvent):
            return self._on_postback(event)
        if isinstance(event, DeliveryEvent):
            self._on_delivery(event)
        elif isinstance(event, ReadEvent):
            logfire.info(
                "Received message read event",
                sender_id=event.sender_id,
                watermark=event.watermark,
                seq=event.seq,
            )
        elif isinstance(event, AccountLinkEvent):
            logfire.info(
                "Received account link event",
                sender_id=event.sender_id,
                status=event.status,
                has_authorization_code=event.authorization_code is not None,
            )
        return []

    def init_conversation(self, recipient_id: str) -> list[OutboundAction]:
        """Greeting sequence: account options, then promotions."""
        return _init_conversation(self._context(recipient_id))

    def _context(self, recipient_id: str, message_id: str | None = None) -> ReplyContext:
        return ReplyContext(
            recipient_id=recipient_id,
            base_url=self._base_url,
            message_id=message_id,
        )

    def _on_optin(self, event: OptInEvent) -> list[OutboundAction]:
        logfire.info(
            "Received authentication",
            sender_id=event.sender_id,
            recipient_id=event.recipient_id,
            ref=event.ref,
            timestamp=event.timestamp,
        )
        return [replies.text(event.sender_id, replies.AUTHENTICATION_SUCCESSFUL)]

    def _on_message(self, event: MessageEvent) -> list[OutboundAction]:
        ctx = self._context(event.sender_id, event.mid)

        if event.is_echo:
            logfire.info(
                "Received echo",
                mid=event.mid,
                app_id=event.app_id,
                metadata=event.metadata,
            )
            return []

        if event.quick_reply_payload is not None:
            logfire.info(
                "Quick reply tapped",
                mid=event.mid,
                payload=event.quick_reply_payload,
            )
            token = PayloadToken.parse(event.quick_reply_payload)
            return QUICK_REPLY_TABLE.get(token, DEFAULT_QUICK_REPLY)(ctx)

        if event.text:
            lowered = event.text.lower()
            if VOUCHER_TAG in lowered:
                return [replies.text(event.sender_id, replies.VOUCHER_RECHARGED)]
            if SEND_CREDIT_TAG in lowered:
                return [replies.credit_amounts(event.sender_id)]
            return COMMAND_TABLE.get(lowered, DEFAULT_COMMAND_REPLY)(ctx)

        if event.attachments:
            return [replies.text(event.sender_id, replies.ATTACHMENT_RECEIVED)]

        logfire.info("Message without text or attachments", mid=event.mid)
        return []

    def _on_postback(self, event: PostbackEvent) -> list[OutboundAction]:
        logfire.info(
            "Received postback",
            sender_id=event.sender_id,
            recipient_id=event.recipient_id,
            payload=event.payload,
            timestamp=event.timestamp,
        )
        token = PayloadToken.parse(event.payload)
        return POSTBACK_TABLE.get(token, DEFAULT_POSTBACK_REPLY)(
            self._context(event.sender_id)
        )

    def _on_delivery(self, event: DeliveryEvent) -> None:
        for message_id in event.message_ids:
            logfire.info("Received delivery confirmation", mid=message_id)
        logfire.info(
            "All messages before watermark were delivered",
            watermark=event.watermark,
        )


def get_conversation_policy() -> ConversationPolicy:
    """Factory function to create a ConversationPolicy from settings."""
    return ConversationPolicy(server_url=get_settings().public_base_url)
