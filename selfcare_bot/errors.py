"""Error taxonomy for webhook processing.

Signature failures are reported as values (see
``selfcare_bot.services.signature``); the exceptions below cover the
failures that are raised and then contained by the layer above.
"""


class SelfCareBotError(Exception):
    """Base exception for self-care bot errors."""

    pass


class MalformedEventError(SelfCareBotError):
    """Raised when a messaging event has a recognized key but an invalid shape."""

    def __init__(self, message: str, raw_event: dict | None = None):
        super().__init__(message)
        self.raw_event = raw_event or {}


class GatewayError(SelfCareBotError):
    """Raised when the Send API call fails or answers with a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
