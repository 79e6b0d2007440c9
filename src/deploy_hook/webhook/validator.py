"""GitHub webhook signature validation."""

import hashlib
import hmac
import logging

from deploy_hook.errors import InvalidSignatureError, MalformedSignatureError

logger = logging.getLogger(__name__)

# Only SHA-256 signatures are accepted, whatever algorithm the header names.
SIGNATURE_ALGORITHM = "sha256"


def sign_payload(payload: bytes, secret: str) -> str:
    """
    Compute the GitHub signature header value for a payload.

    Args:
        payload: The raw request body bytes
        secret: The webhook secret configured in GitHub

    Returns:
        The signature in ``sha256=<hex digest>`` form
    """
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_ALGORITHM}={digest}"


def check_algorithm(signature: str) -> None:
    """
    Reject a signature header that does not name the accepted algorithm.

    Raises:
        MalformedSignatureError: If the header has no ``algorithm=`` prefix
        InvalidSignatureError: If the algorithm is not SHA-256
    """
    algorithm, sep, _ = signature.partition("=")
    if not sep:
        logger.warning("Invalid signature format - expected algorithm= prefix")
        raise MalformedSignatureError("Malformed GitHub signature, expected algorithm=digest.")

    if algorithm != SIGNATURE_ALGORITHM:
        logger.warning(f"Rejected signature algorithm {algorithm!r}")
        raise InvalidSignatureError(
            f"Unsupported signature algorithm {algorithm}, only {SIGNATURE_ALGORITHM} is accepted."
        )


def signatures_match(expected: str, received: str) -> bool:
    """Constant-time comparison of two signature header values."""
    is_valid = hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))

    if not is_valid:
        logger.warning("Webhook signature validation failed")

    return is_valid
