"""Webhook callback dispatcher.

Runs one request through the callback pipeline:

1. GET is answered by the verification handshake; POST continues;
   any other method is rejected with 403
2. The raw body is read once and kept for signature verification
3. ``X-Hub-Signature`` is checked (403 on any failure)
4. The body is decoded into an Envelope (400 on failure)
5. The handler registered for ``envelope.object`` is invoked
   (no handler is a 200 no-op; a handler that raises or returns an
   exception instance is a 400)

Every failure short-circuits into a DispatchResult; nothing is raised past
``dispatch`` and no error text is placed in the response body.
"""

import inspect
import logging
from typing import Awaitable, Callable, Mapping, Optional, Union

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from workplace_webhook.auth import verify_signature
from workplace_webhook.exceptions import (
    HandlerError,
    PayloadDecodeError,
    TransportReadError,
    UnsupportedMethod,
    WebhookError,
)
from workplace_webhook.handshake import respond_to_handshake
from workplace_webhook.models import DispatchResult, Envelope, Outcome
from workplace_webhook.registry import DEFAULT_PATTERN, HandlerRegistry, ObjectHandler

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature"


class Dispatcher:
    """Transport-independent callback pipeline bound to one secret/token pair."""

    def __init__(
        self,
        secret: Union[str, bytes],
        verification_token: str,
        registry: Optional[HandlerRegistry] = None,
        signature_header: str = SIGNATURE_HEADER,
    ):
        self._secret = secret
        self._verification_token = verification_token
        self.registry = registry if registry is not None else HandlerRegistry()
        self.signature_header = signature_header

    async def dispatch(
        self,
        method: str,
        *,
        read_body: Callable[[], Awaitable[bytes]],
        headers: Mapping[str, str],
        query_string: Union[str, bytes] = "",
        pattern: str = DEFAULT_PATTERN,
    ) -> DispatchResult:
        """Run one request through the pipeline.

        Args:
            method: HTTP method
            read_body: Coroutine function returning the full raw body
            headers: Request headers (case-insensitive mapping preferred)
            query_string: Raw query string, used by the handshake
            pattern: Callback path the request arrived on

        Returns:
            DispatchResult with the outcome and optional response body
        """
        method = method.upper()
        if method == "GET":
            return respond_to_handshake(query_string, self._verification_token)
        if method != "POST":
            return DispatchResult(UnsupportedMethod.outcome, error=UnsupportedMethod(method))

        try:
            envelope = await self._authenticate_and_parse(read_body, headers)
            await self._invoke(envelope, pattern)
        except WebhookError as e:
            return DispatchResult(e.outcome, error=e)

        return DispatchResult(Outcome.ACCEPTED)

    async def _authenticate_and_parse(
        self,
        read_body: Callable[[], Awaitable[bytes]],
        headers: Mapping[str, str],
    ) -> Envelope:
        try:
            raw_body = await read_body()
        except Exception as e:
            raise TransportReadError() from e

        verify_signature(self._header(headers), self._secret, raw_body)

        try:
            return Envelope.from_bytes(raw_body)
        except ValidationError as e:
            raise PayloadDecodeError(f"Invalid envelope: {e.error_count()} error(s)") from e

    def _header(self, headers: Mapping[str, str]) -> Optional[str]:
        value = headers.get(self.signature_header)
        if value is None:
            # Plain dicts are case-sensitive
            wanted = self.signature_header.lower()
            value = next((v for k, v in headers.items() if k.lower() == wanted), None)
        return value

    async def _invoke(self, envelope: Envelope, pattern: str) -> None:
        handler = self.registry.lookup(envelope.object, pattern)
        if handler is None:
            logger.debug(f"No handler for object {envelope.object!r} on {pattern}, ignoring")
            return

        try:
            result = await call_handler(handler, envelope)
        except Exception as e:
            logger.exception(f"Handler for object {envelope.object!r} on {pattern} failed")
            raise HandlerError(envelope.object, pattern) from e

        if isinstance(result, BaseException):
            logger.error(f"Handler for object {envelope.object!r} on {pattern} returned {type(result).__name__}")
            raise HandlerError(envelope.object, pattern) from result


async def call_handler(handler: ObjectHandler, envelope: Envelope):
    """Invoke a handler, awaiting coroutines and offloading sync callables."""
    if inspect.iscoroutinefunction(handler):
        return await handler(envelope)

    result = await run_in_threadpool(handler, envelope)
    if inspect.isawaitable(result):
        result = await result
    return result
