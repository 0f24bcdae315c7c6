"""Webhook signature verification.

The platform signs every webhook POST with an HMAC of the raw request
body keyed by the app secret, sent as ``x-hub-signature: sha1=<hex>``.
Verification returns a result value; callers decide how to answer.
"""

import hashlib
import hmac
from enum import Enum
from typing import NamedTuple


class AuthenticationFailure(str, Enum):
    """Why a webhook body failed authentication."""

    MISSING_SIGNATURE = "missing_signature"
    MALFORMED_SIGNATURE = "malformed_signature"
    UNSUPPORTED_METHOD = "unsupported_method"
    SIGNATURE_MISMATCH = "signature_mismatch"


class SignatureCheck(NamedTuple):
    """Result of signature verification.

    Attributes:
        is_valid: Whether the body may be parsed and dispatched.
        failure: Failure reason if verification failed, None otherwise.
    """

    is_valid: bool
    failure: AuthenticationFailure | None


_DIGESTS = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
}

SIGNATURE_OK = SignatureCheck(is_valid=True, failure=None)


def compute_signature(raw_body: bytes, app_secret: str, method: str = "sha1") -> str:
    """Return the ``method=hexdigest`` header value for a body."""
    digest = hmac.new(app_secret.encode("utf-8"), raw_body, _DIGESTS[method])
    return f"{method}={digest.hexdigest()}"


def verify_signature(
    raw_body: bytes,
    signature_header: str | None,
    app_secret: str,
) -> SignatureCheck:
    """Verify a webhook body against its signature header.

    Args:
        raw_body: Request body exactly as received (before JSON parsing)
        signature_header: Value of the ``x-hub-signature`` header, if any
        app_secret: Shared app secret

    Returns:
        SignatureCheck; ``is_valid`` is True only for a matching digest
    """
    if not signature_header:
        return SignatureCheck(False, AuthenticationFailure.MISSING_SIGNATURE)

    method, separator, received = signature_header.strip().partition("=")
    if not separator or not received:
        return SignatureCheck(False, AuthenticationFailure.MALFORMED_SIGNATURE)

    digest = _DIGESTS.get(method.lower())
    if digest is None:
        return SignatureCheck(False, AuthenticationFailure.UNSUPPORTED_METHOD)

    expected = hmac.new(app_secret.encode("utf-8"), raw_body, digest).hexdigest()

    # Constant-time comparison
    if not hmac.compare_digest(received.lower().encode("utf-8"), expected.encode()):
        return SignatureCheck(False, AuthenticationFailure.SIGNATURE_MISMATCH)

    return SIGNATURE_OK
