"""Canned replies of the self-care bot.

Each function builds the outbound action(s) for one reply, addressed to
``recipient_id``. Image and media URLs point at assets published under
the app's public base URL.
"""

from selfcare_bot.constants import ASSETS_PATH
from selfcare_bot.models.outbound import (
    AccountLinkButton,
    AttachmentAction,
    ButtonTemplateAction,
    GenericElement,
    GenericTemplateAction,
    PhoneNumberButton,
    PostbackButton,
    QuickRepliesAction,
    QuickReply,
    ReceiptAddress,
    ReceiptAdjustment,
    ReceiptElement,
    ReceiptSummary,
    ReceiptTemplateAction,
    SenderAction,
    SenderActionType,
    TextAction,
    WebUrlButton,
)
from selfcare_bot.models.payloads import PayloadToken

# =============================================================================
# Reply copy
# =============================================================================

AUTHENTICATION_SUCCESSFUL = "Authentication successful"
QUICK_REPLY_TAPPED = "Quick reply tapped"
CUSTOMER_LINE_RECHARGED = "Customer line has been successfully recharged."
VOUCHER_RECHARGED = "Your line has been successfully recharged with 300 JMD."
ATTACHMENT_RECEIVED = "Message with attachment received"
POSTBACK_CALLED = "Postback called"
PLAN_RENEWED = (
    "Plan has been renewed and valid until 02/01/2017 12:00AM, "
    "150JMD were deduced from your balance. Thank you."
)
PLAN_DEACTIVATED = "Plan has been deactivated. Thank you."
PLAN_ACTIVATED = (
    "Plan activated successfully, 200JMD were deduced from your balance. Thank you."
)
NOT_ENOUGH_CREDIT = (
    "You do not have enough credit to activate this plan, please recharge "
    "and reactivate it.\nTo recharge please enter your voucher code followed by #v:"
)
OFFER_PLANS = "Offer Plans"
PROMOTIONS = "Promotions"
BALANCE_SUMMARY = (
    "Main Balance: 351.91JMD - 660 min(s) left\n\n"
    "Other Balances:\n"
    "Data Remaining: 0.00 MB\n"
    "Loyalty Credit: 7.65 JMD\n"
    "International Minutes: 660 min(s)\n\n"
    "Active Plans:"
)
ENTER_VOUCHER = "Please enter your voucher code followed by #v:"
ENTER_PHONE_NUMBER = "Enter phone number followed by #sc:"

_PRODUCT_SITE = "https://product-staging.digicelgroup.com/selfcare3/img/whatsnew"
_GROUP_SITE = "https://www.digicelgroup.com/en"
_OCULUS_SITE = "https://www.oculus.com/en-us"


def asset_url(base_url: str, name: str) -> str:
    """Absolute URL of a published asset."""
    return f"{base_url.rstrip('/')}{ASSETS_PATH}/{name}"


def text(recipient_id: str, body: str) -> TextAction:
    return TextAction(recipient_id=recipient_id, text=body)


# =============================================================================
# Self-care flows
# =============================================================================


def account_options(recipient_id: str) -> ButtonTemplateAction:
    """Account menu: balance, add credits, send credits."""
    return ButtonTemplateAction(
        recipient_id=recipient_id,
        text="Account Details",
        buttons=[
            PostbackButton(
                title="My Balance & Plans",
                payload=PayloadToken.BALANCE_AND_ACTIVE_PLANS.value,
            ),
            PostbackButton(title="Add Credits", payload=PayloadToken.ADD_CREDITS.value),
            PostbackButton(
                title="Send Credits", payload=PayloadToken.SEND_CREDITS.value
            ),
        ],
    )


def promotions(recipient_id: str, base_url: str) -> GenericTemplateAction:
    return GenericTemplateAction(
        recipient_id=recipient_id,
        elements=[
            GenericElement(
                title="Be A Millionaire",
                subtitle="1st Grand Prize 2,000,000$",
                image_url=asset_url(base_url, "jamjackpot.png"),
                buttons=[
                    PostbackButton(
                        title="Buy Now", payload=PayloadToken.BUY_PLAN.value
                    )
                ],
            ),
            GenericElement(
                title="LTE Prepaid Smart Plan",
                subtitle="1GB - 7 Days for 900$",
                image_url=asset_url(base_url, "jamltepre.png"),
                buttons=[
                    PostbackButton(
                        title="Buy Now",
                        payload=PayloadToken.BUY_PLAN_NO_ENOUGH_CREDIT.value,
                    )
                ],
            ),
            GenericElement(
                title="PROUD SPONSOR OF WEST INDIES CRICKET",
                image_url=asset_url(base_url, "promo-1.jpg"),
                buttons=[
                    WebUrlButton(
                        title="Read More",
                        url=(
                            f"{_GROUP_SITE}/media/news/2016/may/24/"
                            "-winning-ways-continue-with-new-digicel-wicb-partnership.html"
                        ),
                    )
                ],
            ),
            GenericElement(
                title="GO MOBILE!",
                subtitle="Keeping you connected wherever you are.",
                image_url=asset_url(base_url, "promo-2.jpg"),
                buttons=[
                    WebUrlButton(
                        title="Learn More", url=f"{_GROUP_SITE}/what-we-do/mobile.html"
                    )
                ],
            ),
            GenericElement(
                title="COMPLETE BUSINESS SOLUTIONS",
                subtitle="Finding the right solution for you",
                image_url=asset_url(base_url, "promo-3.jpg"),
                buttons=[
                    WebUrlButton(
                        title="Learn More",
                        url=f"{_GROUP_SITE}/what-we-do/business-solutions.html",
                    )
                ],
            ),
        ],
    )


def _plan_element(base_url: str, title: str, subtitle: str, image: str) -> GenericElement:
    product_url = f"{_PRODUCT_SITE}/{image}"
    return GenericElement(
        title=title,
        subtitle=subtitle,
        item_url=product_url,
        image_url=asset_url(base_url, image),
        buttons=[WebUrlButton(title="Buy Now", url=product_url)],
    )


def plans(recipient_id: str, base_url: str) -> GenericTemplateAction:
    return GenericTemplateAction(
        recipient_id=recipient_id,
        elements=[
            _plan_element(
                base_url, "Be A Millionaire", "1st Grand Prize 2,000,000$", "jamjackpot.png"
            ),
            _plan_element(
                base_url, "LTE Prepaid Smart Plan", "1GB - 7 Days for 900$", "jamltepre.png"
            ),
            _plan_element(
                base_url, "LTE Prepaid Smart Plan", "1GB - 7 Days for 900$", "jamltepre.png"
            ),
        ],
    )


def _active_plan_element(title: str, valid_until: str) -> GenericElement:
    return GenericElement(
        title=title,
        subtitle=f"Valid till {valid_until}",
        buttons=[
            PostbackButton(title="Renew", payload=PayloadToken.RENEW_PLAN.value),
            PostbackButton(
                title="Deactivate", payload=PayloadToken.DEACTIVATE_PLAN.value
            ),
        ],
    )


def active_plans(recipient_id: str) -> GenericTemplateAction:
    return GenericTemplateAction(
        recipient_id=recipient_id,
        elements=[
            _active_plan_element("D'Music Premium Plan", "30/09/2016 08:05PM"),
            _active_plan_element("In'tl 1000", "29/09/2016 11:15AM"),
        ],
    )


def credit_amounts(recipient_id: str) -> QuickRepliesAction:
    """Transfer amount picker shown after a ``#sc`` message."""
    return QuickRepliesAction(
        recipient_id=recipient_id,
        text="Select Transfer Amount: (JMD)",
        quick_replies=[
            QuickReply(title=amount, payload=PayloadToken.CREDIT_AMOUNT.value)
            for amount in ("15", "25", "50", "100")
        ],
    )


def account_linking(recipient_id: str, base_url: str) -> GenericTemplateAction:
    return GenericTemplateAction(
        recipient_id=recipient_id,
        elements=[
            GenericElement(
                title="Welcome to Digicel",
                image_url=asset_url(base_url, "small-logo.png"),
                buttons=[AccountLinkButton(url=f"{base_url.rstrip('/')}/authorize")],
            )
        ],
    )


# =============================================================================
# Messenger feature samples
# =============================================================================


def media(
    recipient_id: str, base_url: str, attachment_type: str, name: str
) -> AttachmentAction:
    return AttachmentAction(
        recipient_id=recipient_id,
        attachment_type=attachment_type,
        url=asset_url(base_url, name),
    )


def sample_buttons(recipient_id: str) -> ButtonTemplateAction:
    return ButtonTemplateAction(
        recipient_id=recipient_id,
        text="This is test text",
        buttons=[
            WebUrlButton(title="Open Web URL", url=f"{_OCULUS_SITE}/rift/"),
            PostbackButton(title="Trigger Postback", payload="DEVELOPED_DEFINED_PAYLOAD"),
            PhoneNumberButton(title="Call Phone Number", payload="+16505551234"),
        ],
    )


def sample_generic(recipient_id: str, base_url: str) -> GenericTemplateAction:
    return GenericTemplateAction(
        recipient_id=recipient_id,
        elements=[
            GenericElement(
                title="rift",
                subtitle="Next-generation virtual reality",
                item_url=f"{_OCULUS_SITE}/rift/",
                image_url=asset_url(base_url, "rift.png"),
                buttons=[
                    WebUrlButton(title="Open Web URL", url=f"{_OCULUS_SITE}/rift/"),
                    PostbackButton(
                        title="Call Postback", payload="Payload for first bubble"
                    ),
                ],
            ),
            GenericElement(
                title="touch",
                subtitle="Your Hands, Now in VR",
                item_url=f"{_OCULUS_SITE}/touch/",
                image_url=asset_url(base_url, "touch.png"),
                buttons=[
                    WebUrlButton(title="Open Web URL", url=f"{_OCULUS_SITE}/touch/"),
                    PostbackButton(
                        title="Call Postback", payload="Payload for second bubble"
                    ),
                ],
            ),
        ],
    )


def sample_receipt(
    recipient_id: str, base_url: str, order_number: str
) -> ReceiptTemplateAction:
    return ReceiptTemplateAction(
        recipient_id=recipient_id,
        recipient_name="Peter Chang",
        order_number=order_number,
        currency="USD",
        payment_method="Visa 1234",
        timestamp="1428444852",
        elements=[
            ReceiptElement(
                title="Oculus Rift",
                subtitle="Includes: headset, sensor, remote",
                quantity=1,
                price=599.00,
                currency="USD",
                image_url=asset_url(base_url, "riftsq.png"),
            ),
            ReceiptElement(
                title="Samsung Gear VR",
                subtitle="Frost White",
                quantity=1,
                price=99.99,
                currency="USD",
                image_url=asset_url(base_url, "gearvrsq.png"),
            ),
        ],
        address=ReceiptAddress(
            street_1="1 Hacker Way",
            city="Menlo Park",
            postal_code="94025",
            state="CA",
            country="US",
        ),
        summary=ReceiptSummary(
            subtotal=698.99,
            shipping_cost=20.00,
            total_tax=57.67,
            total_cost=626.66,
        ),
        adjustments=[
            ReceiptAdjustment(name="New Customer Discount", amount=-50),
            ReceiptAdjustment(name="$100 Off Coupon", amount=-100),
        ],
    )


def sample_quick_replies(recipient_id: str) -> QuickRepliesAction:
    return QuickRepliesAction(
        recipient_id=recipient_id,
        text="What's your favorite movie genre?",
        quick_replies=[
            QuickReply(
                title=genre,
                payload=f"DEVELOPER_DEFINED_PAYLOAD_FOR_PICKING_{genre.upper()}",
            )
            for genre in ("Action", "Comedy", "Drama")
        ],
    )


def sender_action(recipient_id: str, action: SenderActionType) -> SenderAction:
    return SenderAction(recipient_id=recipient_id, sender_action=action)
