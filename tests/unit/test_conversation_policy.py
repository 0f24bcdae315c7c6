"""Tests for the conversation policy."""

from selfcare_bot.models.events import (
    AccountLinkEvent,
    DeliveryEvent,
    InboundAttachment,
    MessageEvent,
    OptInEvent,
    PostbackEvent,
    ReadEvent,
    UnknownEvent,
)
from selfcare_bot.models.outbound import (
    AccountLinkButton,
    AttachmentAction,
    ButtonTemplateAction,
    GenericTemplateAction,
    PostbackButton,
    QuickRepliesAction,
    ReceiptTemplateAction,
    SenderAction,
    SenderActionType,
    TextAction,
)
from selfcare_bot.models.payloads import PayloadToken
from selfcare_bot.services import replies
from selfcare_bot.services.conversation_policy import (
    COMMAND_TABLE,
    POSTBACK_TABLE,
    ConversationPolicy,
    get_conversation_policy,
)

USER = "user-456"
PAGE = "page-123"


def _message(**fields) -> MessageEvent:
    return MessageEvent(sender_id=USER, recipient_id=PAGE, mid="mid.1", **fields)


def _postback(payload: str | None) -> PostbackEvent:
    return PostbackEvent(sender_id=USER, recipient_id=PAGE, payload=payload)


def _kinds(actions) -> list[str]:
    return [action.kind for action in actions]


class TestTextMessages:
    """Text routing: tags first, then whole-message commands."""

    def test_plans_command(self, policy):
        actions = policy.decide(_message(text="plans"))

        assert len(actions) == 1
        assert isinstance(actions[0], GenericTemplateAction)
        assert len(actions[0].elements) == 3
        assert actions[0].recipient_id == USER

    def test_commands_are_case_insensitive(self, policy):
        assert policy.decide(_message(text="PLANS")) == policy.decide(_message(text="plans"))

    def test_voucher_tag_anywhere_in_text(self, policy):
        actions = policy.decide(_message(text="Buy voucher #V now"))
        assert actions == [TextAction(recipient_id=USER, text=replies.VOUCHER_RECHARGED)]

    def test_send_credit_tag_offers_amounts(self, policy):
        actions = policy.decide(_message(text="8761234567#sc"))

        assert len(actions) == 1
        assert isinstance(actions[0], QuickRepliesAction)
        assert [option.title for option in actions[0].quick_replies] == ["15", "25", "50", "100"]
        assert {option.payload for option in actions[0].quick_replies} == {
            PayloadToken.CREDIT_AMOUNT.value
        }

    def test_voucher_tag_checked_before_send_credit_tag(self, policy):
        actions = policy.decide(_message(text="#sc #v"))
        assert actions[0].text == replies.VOUCHER_RECHARGED

    def test_my_id(self, policy):
        actions = policy.decide(_message(text="my id"))
        assert actions[0].text == f"Your facebook Id: {USER}"

    def test_unrecognized_text_starts_conversation(self, policy):
        actions = policy.decide(_message(text="hello there"))

        assert _kinds(actions) == ["button_template", "generic_template"]
        assert actions[0].text == "Account Details"
        assert [b.payload for b in actions[0].buttons] == [
            PayloadToken.BALANCE_AND_ACTIVE_PLANS.value,
            PayloadToken.ADD_CREDITS.value,
            PayloadToken.SEND_CREDITS.value,
        ]
        assert len(actions[1].elements) == 5

    def test_offers_is_not_a_command(self, policy):
        actions = policy.decide(_message(text="offers"))
        assert actions == policy.init_conversation(USER)
        assert "offers" not in COMMAND_TABLE

    def test_media_commands_use_asset_urls(self, policy):
        actions = policy.decide(_message(text="image"))

        assert isinstance(actions[0], AttachmentAction)
        assert actions[0].attachment_type == "image"
        assert actions[0].url == "https://bot.example.com/assets/rift.png"

    def test_sender_action_commands(self, policy):
        expected = {
            "read receipt": SenderActionType.MARK_SEEN,
            "typing on": SenderActionType.TYPING_ON,
            "typing off": SenderActionType.TYPING_OFF,
        }
        for command, action_type in expected.items():
            actions = policy.decide(_message(text=command))
            assert actions == [SenderAction(recipient_id=USER, sender_action=action_type)]

    def test_receipt_order_number_comes_from_message(self, policy):
        actions = policy.decide(_message(text="receipt"))

        assert isinstance(actions[0], ReceiptTemplateAction)
        assert actions[0].order_number == "order-mid.1"

    def test_account_linking_command(self, policy):
        actions = policy.decide(_message(text="account linking"))
        button = actions[0].elements[0].buttons[0]
        assert isinstance(button, AccountLinkButton)
        assert button.url == "https://bot.example.com/authorize"

    def test_every_command_yields_actions(self, policy):
        for command in COMMAND_TABLE:
            assert policy.decide(_message(text=command)), command


class TestOtherMessages:
    """Echoes, quick replies and attachments."""

    def test_echo_is_ignored(self, policy):
        assert policy.decide(_message(text="plans", is_echo=True)) == []

    def test_credit_amount_quick_reply(self, policy):
        event = _message(text="15", quick_reply_payload=PayloadToken.CREDIT_AMOUNT.value)
        actions = policy.decide(event)
        assert actions == [
            TextAction(recipient_id=USER, text=replies.CUSTOMER_LINE_RECHARGED)
        ]

    def test_unknown_quick_reply_payload(self, policy):
        event = _message(text="Action", quick_reply_payload="DEVELOPER_DEFINED_PAYLOAD")
        assert policy.decide(event)[0].text == replies.QUICK_REPLY_TAPPED

    def test_quick_reply_takes_precedence_over_text(self, policy):
        event = _message(text="plans", quick_reply_payload="ANYTHING")
        assert policy.decide(event)[0].text == replies.QUICK_REPLY_TAPPED

    def test_attachment_acknowledged(self, policy):
        event = _message(attachments=(InboundAttachment(type="image"),))
        assert policy.decide(event) == [
            TextAction(recipient_id=USER, text=replies.ATTACHMENT_RECEIVED)
        ]

    def test_empty_message_yields_nothing(self, policy):
        assert policy.decide(_message()) == []


class TestPostbacks:
    """Postback routing over the payload token table."""

    def test_balance_and_active_plans(self, policy):
        actions = policy.decide(_postback(PayloadToken.BALANCE_AND_ACTIVE_PLANS.value))

        assert _kinds(actions) == ["text", "generic_template"]
        assert actions[0].text == replies.BALANCE_SUMMARY
        elements = actions[1].elements
        assert len(elements) == 2
        for element in elements:
            assert [b.payload for b in element.buttons] == [
                PayloadToken.RENEW_PLAN.value,
                PayloadToken.DEACTIVATE_PLAN.value,
            ]

    def test_get_started_starts_conversation(self, policy):
        actions = policy.decide(_postback(PayloadToken.GET_STARTED.value))
        assert actions == policy.init_conversation(USER)

    def test_get_started_authorize_offers_account_linking(self, policy):
        actions = policy.decide(_postback(PayloadToken.GET_STARTED_AUTHORIZE.value))
        assert isinstance(actions[0].elements[0].buttons[0], AccountLinkButton)

    def test_plans_and_promotions_lead_with_a_title(self, policy):
        plans = policy.decide(_postback(PayloadToken.PLANS.value))
        promotions = policy.decide(_postback(PayloadToken.PROMOTIONS.value))

        assert plans[0].text == replies.OFFER_PLANS
        assert promotions[0].text == replies.PROMOTIONS
        assert len(plans[1].elements) == 3
        assert len(promotions[1].elements) == 5

    def test_simple_text_postbacks(self, policy):
        expected = {
            PayloadToken.RENEW_PLAN: replies.PLAN_RENEWED,
            PayloadToken.DEACTIVATE_PLAN: replies.PLAN_DEACTIVATED,
            PayloadToken.BUY_PLAN: replies.PLAN_ACTIVATED,
            PayloadToken.BUY_PLAN_NO_ENOUGH_CREDIT: replies.NOT_ENOUGH_CREDIT,
            PayloadToken.ADD_CREDITS: replies.ENTER_VOUCHER,
            PayloadToken.SEND_CREDITS: replies.ENTER_PHONE_NUMBER,
        }
        for token, text in expected.items():
            assert policy.decide(_postback(token.value)) == [
                TextAction(recipient_id=USER, text=text)
            ]

    def test_unknown_postback(self, policy):
        actions = policy.decide(_postback("DEVELOPED_DEFINED_PAYLOAD"))
        assert actions == [TextAction(recipient_id=USER, text=replies.POSTBACK_CALLED)]

    def test_postback_without_payload(self, policy):
        assert policy.decide(_postback(None))[0].text == replies.POSTBACK_CALLED

    def test_every_token_except_quick_reply_has_a_postback(self):
        assert set(POSTBACK_TABLE) == set(PayloadToken) - {PayloadToken.CREDIT_AMOUNT}


class TestNonConversationalEvents:
    """Events that are logged but never answered."""

    def test_optin_replies_authentication_successful(self, policy):
        event = OptInEvent(sender_id=USER, recipient_id=PAGE, ref="r")
        assert policy.decide(event) == [
            TextAction(recipient_id=USER, text=replies.AUTHENTICATION_SUCCESSFUL)
        ]

    def test_delivery_read_account_link_unknown(self, policy, mock_logfire):
        events = [
            DeliveryEvent(sender_id=USER, recipient_id=PAGE, message_ids=("m1", "m2"), watermark=1),
            ReadEvent(sender_id=USER, recipient_id=PAGE, watermark=1),
            AccountLinkEvent(sender_id=USER, recipient_id=PAGE, status="linked"),
            UnknownEvent(sender_id=USER),
        ]
        for event in events:
            assert policy.decide(event) == []

        # One log per delivered mid plus the watermark summary
        delivery_logs = [
            c for c in mock_logfire.info.call_args_list
            if c.args[0] == "Received delivery confirmation"
        ]
        assert len(delivery_logs) == 2


class TestPolicyProperties:
    """Determinism and construction."""

    def test_same_event_same_actions(self, policy):
        event = _postback(PayloadToken.BALANCE_AND_ACTIVE_PLANS.value)
        assert policy.decide(event) == policy.decide(event)

    def test_every_emitted_postback_payload_is_routable(self, policy):
        """Every payload token the bot emits is answered by something other than the default."""
        produced = [policy.decide(_message(text=command)) for command in COMMAND_TABLE]
        produced += [policy.decide(_postback(token.value)) for token in POSTBACK_TABLE]
        produced.append(policy.init_conversation(USER))

        emitted = set()
        for actions in produced:
            for action in actions:
                buttons = list(getattr(action, "buttons", []))
                for element in getattr(action, "elements", []):
                    buttons.extend(getattr(element, "buttons", []))
                emitted.update(
                    b.payload for b in buttons if isinstance(b, PostbackButton)
                )

        tokens = {PayloadToken.parse(p) for p in emitted} - {None}
        assert tokens
        assert tokens <= set(POSTBACK_TABLE)

    def test_server_url_trailing_slash_is_ignored(self):
        policy = ConversationPolicy(server_url="https://bot.example.com/")
        actions = policy.decide(_message(text="image"))
        assert actions[0].url == "https://bot.example.com/assets/rift.png"

    def test_factory_uses_settings(self, mock_settings):
        policy = get_conversation_policy()
        assert isinstance(policy, ConversationPolicy)
        actions = policy.decide(_message(text="account linking"))
        assert actions[0].elements[0].buttons[0].url == (
            f"{mock_settings.public_base_url}/authorize"
        )

    def test_init_conversation(self, policy):
        actions = policy.init_conversation(USER)
        assert isinstance(actions[0], ButtonTemplateAction)
        assert isinstance(actions[1], GenericTemplateAction)
