"""Webhook exception classes."""

from workplace_webhook.models import Outcome


class WebhookError(Exception):
    """Base exception for webhook request failures."""

    outcome = Outcome.CLIENT_ERROR


class TransportReadError(WebhookError):
    """Raised when the request body cannot be read."""

    def __init__(self, message: str = "Failed to read request body"):
        super().__init__(message)


class QueryParseError(WebhookError):
    """Raised when handshake query parameters cannot be parsed."""

    def __init__(self, query: str = ""):
        self.query = query
        super().__init__(f"Malformed query string: {query!r}")


class AuthenticationFailure(WebhookError):
    """Base exception for signature verification failures."""

    outcome = Outcome.FORBIDDEN


class MissingSignature(AuthenticationFailure):
    """Raised when the signature header is empty or absent."""

    def __init__(self):
        super().__init__("Signature is empty")


class MalformedSignature(AuthenticationFailure):
    """Raised when the signature header has no algorithm separator."""

    def __init__(self):
        super().__init__("Signature is not in <algorithm>=<hash> form")


class SignatureMismatch(AuthenticationFailure):
    """Raised when the signature hash does not match the expected hash."""

    def __init__(self):
        super().__init__("Signature hash does not match expected hash")


class PayloadDecodeError(WebhookError):
    """Raised when the body cannot be decoded into an envelope."""
    pass


class HandlerError(WebhookError):
    """Raised when a registered object handler fails."""

    def __init__(self, object_name: str, pattern: str):
        self.object_name = object_name
        self.pattern = pattern
        super().__init__(f"Handler for object {object_name!r} failed (pattern: {pattern})")


class UnsupportedMethod(WebhookError):
    """Raised when the callback path receives a method other than GET or POST."""

    outcome = Outcome.FORBIDDEN

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unsupported method: {method}")
