"""Deliver outbound actions through the Facebook Send API.

Delivery is fire-and-forget: ``SendGateway`` logs failures and reports
them as a False return, never as an exception, because the webhook that
triggered the send has normally been acknowledged already. There is no
retry.
"""

import time
from typing import Any, Protocol

import httpx
import logfire
from pydantic import ValidationError

from selfcare_bot.config import get_settings
from selfcare_bot.constants import (
    FACEBOOK_API_TIMEOUT_SECONDS,
    FACEBOOK_GRAPH_API_BASE_URL,
    FACEBOOK_GRAPH_API_VERSION,
)
from selfcare_bot.errors import GatewayError
from selfcare_bot.logging_config import redact_tokens
from selfcare_bot.models.messenger import SendResult
from selfcare_bot.models.outbound import OutboundAction
from selfcare_bot.services.message_builder import build_payload


def _graph_url(api_version: str, path: str) -> str:
    return f"{FACEBOOK_GRAPH_API_BASE_URL}/{api_version}/{path}"


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


async def call_send_api(
    body: dict[str, Any],
    *,
    page_access_token: str,
    api_version: str = FACEBOOK_GRAPH_API_VERSION,
    timeout_seconds: float = FACEBOOK_API_TIMEOUT_SECONDS,
) -> SendResult:
    """
    POST one request body to the Send API.

    Args:
        body: Request body built by ``build_payload``
        page_access_token: Page access token (sent as a query parameter)
        api_version: Graph API version
        timeout_seconds: Request timeout

    Returns:
        SendResult with the recipient and message ids

    Raises:
        GatewayError: On a transport error, a non-200 response or an unreadable
            success body
    """
    start_time = time.time()
    recipient_id = body.get("recipient", {}).get("id")

    logfire.info(
        "Sending Facebook message",
        recipient_id=recipient_id,
        sender_action=body.get("sender_action"),
        api_version=api_version,
    )

    url = _graph_url(api_version, "me/messages")
    params = {"access_token": page_access_token}

    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.post(url, params=params, json=body)
    except httpx.RequestError as e:
        elapsed = time.time() - start_time
        logfire.error(
            "Facebook API request error",
            recipient_id=recipient_id,
            error=str(e),
            error_type=type(e).__name__,
            response_time_ms=elapsed * 1000,
        )
        raise GatewayError(f"Send API request failed: {e}") from e

    elapsed = time.time() - start_time

    if response.status_code != 200:
        logfire.error(
            "Facebook message send failed",
            recipient_id=recipient_id,
            status_code=response.status_code,
            response_body=response.text[:500],  # Limit response body length
            response_time_ms=elapsed * 1000,
        )
        raise GatewayError(
            f"Send API returned {response.status_code}",
            status_code=response.status_code,
            response_body=response.text[:500],
        )

    try:
        result = SendResult.model_validate(_json_object(response))
    except ValidationError as e:
        logfire.error(
            "Unexpected Send API response body",
            recipient_id=recipient_id,
            response_body=response.text[:500],
        )
        raise GatewayError(
            "Send API returned an unexpected body",
            status_code=response.status_code,
            response_body=response.text[:500],
        ) from e

    if result.message_id:
        logfire.info(
            "Facebook message sent successfully",
            recipient_id=result.recipient_id,
            message_id=result.message_id,
            response_time_ms=elapsed * 1000,
        )
    else:
        logfire.info(
            "Successfully called Send API",
            recipient_id=result.recipient_id,
            response_time_ms=elapsed * 1000,
        )
    return result


async def fetch_linked_recipient(
    account_linking_token: str,
    *,
    page_access_token: str,
    api_version: str = FACEBOOK_GRAPH_API_VERSION,
    timeout_seconds: float = FACEBOOK_API_TIMEOUT_SECONDS,
) -> str | None:
    """
    Resolve an account linking token to the page-scoped id of the user.

    Returns:
        The recipient id, or None if the platform returned none

    Raises:
        GatewayError: On a transport error or a non-200 response
    """
    params = {
        "access_token": page_access_token,
        "fields": "recipient",
        "account_linking_token": account_linking_token,
    }
    logfire.info("Resolving account linking token", **redact_tokens(params))
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.get(_graph_url(api_version, "me"), params=params)
    except httpx.RequestError as e:
        raise GatewayError(f"Account linking lookup failed: {e}") from e

    if response.status_code != 200:
        raise GatewayError(
            f"Account linking lookup returned {response.status_code}",
            status_code=response.status_code,
            response_body=response.text[:500],
        )

    recipient = _json_object(response).get("recipient")
    return str(recipient) if recipient else None


class MessageGateway(Protocol):
    """Protocol for delivering outbound actions.

    Implementations never raise for delivery failures; the boolean result
    is only used for logging and tests.
    """

    async def send(self, action: OutboundAction) -> bool:
        """Deliver one action. Returns True if the platform accepted it."""
        ...

    async def resolve_linked_recipient(self, account_linking_token: str) -> str | None:
        """Return the user behind an account linking token, or None."""
        ...


class SendGateway:
    """Facebook Send API implementation of MessageGateway.

    Example:
        >>> gateway = SendGateway(page_access_token="...")
        >>> await gateway.send(TextAction(recipient_id="user123", text="Hello!"))
        True
    """

    def __init__(
        self,
        page_access_token: str,
        api_version: str = FACEBOOK_GRAPH_API_VERSION,
        timeout_seconds: float = FACEBOOK_API_TIMEOUT_SECONDS,
    ):
        """Initialize with the page access token.

        Args:
            page_access_token: Page access token for Send API calls
            api_version: Graph API version
            timeout_seconds: Per-request timeout
        """
        if not page_access_token:
            raise ValueError("page_access_token is required")
        self._token = page_access_token
        self._api_version = api_version
        self._timeout = timeout_seconds

    async def send(self, action: OutboundAction) -> bool:
        """Build and send one action; log and swallow delivery failures."""
        body = build_payload(action)
        try:
            await call_send_api(
                body,
                page_access_token=self._token,
                api_version=self._api_version,
                timeout_seconds=self._timeout,
            )
            return True
        except GatewayError as e:
            logfire.error(
                "SendGateway.send failed",
                recipient_id=action.recipient_id,
                action_kind=action.kind,
                status_code=e.status_code,
                error=str(e),
            )
            return False

    async def resolve_linked_recipient(self, account_linking_token: str) -> str | None:
        """Resolve an account linking token; log and swallow lookup failures."""
        try:
            recipient_id = await fetch_linked_recipient(
                account_linking_token,
                page_access_token=self._token,
                api_version=self._api_version,
                timeout_seconds=self._timeout,
            )
        except GatewayError as e:
            logfire.error(
                "Account linking lookup failed",
                status_code=e.status_code,
                error=str(e),
            )
            return None

        if recipient_id is None:
            logfire.warning("Account linking lookup returned no recipient")
        return recipient_id


def get_send_gateway() -> SendGateway:
    """Factory function to get the MessageGateway implementation from settings."""
    settings = get_settings()
    return SendGateway(
        page_access_token=settings.messenger_page_access_token,
        api_version=settings.graph_api_version,
        timeout_seconds=settings.facebook_api_timeout_seconds,
    )
