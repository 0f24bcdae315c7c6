"""Payload tokens carried by postback buttons and quick replies.

A token is emitted inside a button or quick reply and returned unchanged
by the platform when the user taps it. It is the only state a user
carries from one turn to the next.
"""

from enum import Enum


class PayloadToken(str, Enum):
    """Closed vocabulary of payload tokens the bot emits and understands."""

    CREDIT_AMOUNT = "CREDIT_AMOUNT_PAYLOAD"
    RENEW_PLAN = "RENEW_PLAN_PAYLOAD"
    DEACTIVATE_PLAN = "DEACTIVATE_PLAN_PAYLOAD"
    BUY_PLAN = "BUY_PLAN_PAYLOAD"
    BUY_PLAN_NO_ENOUGH_CREDIT = "BUY_PLAN_NO_ENOUGH_CREDIT_PAYLOAD"
    GET_STARTED_AUTHORIZE = "GET_STARTED_AUTHORIZE_PAYLOAD"
    GET_STARTED = "GET_STARTED_PAYLOAD"
    PLANS = "PLANS_PAYLOAD"
    PROMOTIONS = "PROMOTIONS_PAYLOAD"
    BALANCE_AND_ACTIVE_PLANS = "BALANCE_AND_ACTIVE_PLANS_PAYLOAD"
    ADD_CREDITS = "ADD_CREDITS_PAYLOAD"
    SEND_CREDITS = "SEND_CREDITS_PAYLOAD"

    @classmethod
    def parse(cls, value: str | None) -> "PayloadToken | None":
        """Return the token for a raw payload string, or None if unknown."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None
