"""Webhook signature verification module."""

import hashlib
import hmac
import logging
from typing import Optional, Union

from workplace_webhook.exceptions import MalformedSignature, MissingSignature, SignatureMismatch

logger = logging.getLogger(__name__)

SIGNATURE_ALGORITHM = "sha1"


def _as_bytes(secret: Union[str, bytes]) -> bytes:
    return secret.encode() if isinstance(secret, str) else secret


def sign_payload(payload: bytes, secret: Union[str, bytes]) -> str:
    """Generate the X-Hub-Signature value for a payload.

    Args:
        payload: Raw request body bytes
        secret: Shared app secret

    Returns:
        Signature in ``sha1=<hex>`` form
    """
    digest = hmac.new(_as_bytes(secret), payload, hashlib.sha1).hexdigest()
    return f"{SIGNATURE_ALGORITHM}={digest}"


def verify_signature(signature: Optional[str], secret: Union[str, bytes], payload: bytes) -> None:
    """Verify an X-Hub-Signature header against the raw request body.

    The header is split on its first ``=``; everything after it is the
    hex digest compared against HMAC-SHA1 of the payload.

    Args:
        signature: Value of the X-Hub-Signature header
        secret: Shared app secret
        payload: Raw request body bytes

    Raises:
        MissingSignature: If the header is empty
        MalformedSignature: If the header has no ``=`` separator
        SignatureMismatch: If the digest does not match
    """
    if not signature:
        raise MissingSignature()

    _, sep, signature_hash = signature.partition("=")
    if not sep:
        raise MalformedSignature()

    expected = hmac.new(_as_bytes(secret), payload, hashlib.sha1).hexdigest()
    if not hmac.compare_digest(expected.encode(), signature_hash.encode()):
        raise SignatureMismatch()


class WebhookAuth:
    """HMAC-SHA1 webhook authentication bound to one app secret."""

    def __init__(self, secret: Union[str, bytes]):
        self.secret = _as_bytes(secret)

    def verify_signature(self, payload: bytes, signature: Optional[str]) -> bool:
        """Check the signature of a request payload.

        Args:
            payload: Raw request body bytes
            signature: Signature from X-Hub-Signature header

        Returns:
            True if signature is valid, False otherwise
        """
        try:
            verify_signature(signature, self.secret, payload)
        except (MissingSignature, MalformedSignature, SignatureMismatch) as e:
            logger.debug(f"Signature rejected: {e}")
            return False
        return True

    def sign_payload(self, payload: bytes) -> str:
        """Generate the X-Hub-Signature value for a payload."""
        return sign_payload(payload, self.secret)
