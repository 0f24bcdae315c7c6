"""Account linking endpoints.

The account linking button sends the user to ``/authorize``, which shows
a consent page. Confirming it redirects back to Messenger with an
authorization code; ``/validateAuth`` is the server-side callback that
resolves the linked user and greets them.
"""

import html
import logging
import secrets

import httpx
from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from selfcare_bot.constants import AUTHORIZATION_CODE_BYTES
from selfcare_bot.logging_config import mask_pii
from selfcare_bot.services.conversation_policy import (
    ConversationPolicy,
    get_conversation_policy,
)
from selfcare_bot.services.delivery import deliver, run_in_background
from selfcare_bot.services.send_gateway import MessageGateway, get_send_gateway

logger = logging.getLogger(__name__)
router = APIRouter()

_AUTHORIZE_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>Link your account</title>
  </head>
  <body>
    <h1>Link your account</h1>
    <p>Allow Messenger to access your self-care account?</p>
    <p>
      <a href="{success_uri}">Authorize</a>
      <a href="{cancel_uri}">Cancel</a>
    </p>
    <input type="hidden" name="account_linking_token" value="{token}">
  </body>
</html>
"""

_VALIDATE_AUTH_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>Account linked</title>
  </head>
  <body>
    <h1>Thanks!</h1>
    <p>Your account is being linked. You can return to Messenger.</p>
    <input type="hidden" name="account_linking_token" value="{token}">
  </body>
</html>
"""


def generate_authorization_code() -> str:
    """Random authorization code handed back to the platform on success."""
    return secrets.token_hex(AUTHORIZATION_CODE_BYTES)


def build_success_redirect(redirect_uri: str, authorization_code: str) -> str:
    """Append the authorization code to the platform's redirect URI."""
    return str(
        httpx.URL(redirect_uri).copy_add_param("authorization_code", authorization_code)
    )


async def start_linked_conversation(
    account_linking_token: str,
    gateway: MessageGateway,
    policy: ConversationPolicy,
) -> bool:
    """Resolve the linked user and send them the greeting sequence.

    Returns:
        True if a recipient was found and the greeting was handed to the gateway
    """
    recipient_id = await gateway.resolve_linked_recipient(account_linking_token)
    if recipient_id is None:
        logger.warning("No recipient for account linking token")
        return False

    await deliver(gateway, policy.init_conversation(recipient_id))
    return True


@router.get("/authorize", response_class=HTMLResponse)
async def authorize(
    account_linking_token: str | None = None,
    redirect_uri: str | None = None,
):
    """Render the account linking consent page."""
    if not redirect_uri:
        return HTMLResponse("Missing redirect_uri", status_code=400)

    success_uri = build_success_redirect(redirect_uri, generate_authorization_code())
    logger.info(
        "Rendering account linking page for token %s",
        mask_pii(account_linking_token),
    )
    return _AUTHORIZE_PAGE.format(
        token=html.escape(account_linking_token or ""),
        success_uri=html.escape(success_uri),
        cancel_uri=html.escape(redirect_uri),
    )


@router.post("/validateAuth", response_class=HTMLResponse)
async def validate_auth(account_linking_token: str | None = None):
    """Resolve the linked user in the background and render a confirmation."""
    if account_linking_token:
        run_in_background(
            start_linked_conversation(
                account_linking_token,
                gateway=get_send_gateway(),
                policy=get_conversation_policy(),
            )
        )
    else:
        logger.warning("validateAuth called without account_linking_token")

    return _VALIDATE_AUTH_PAGE.format(token=html.escape(account_linking_token or ""))
