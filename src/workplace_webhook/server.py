"""FastAPI server for Workplace webhook callbacks."""

import argparse
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from workplace_webhook.config import WebhookSettings, load_settings
from workplace_webhook.dispatcher import Dispatcher
from workplace_webhook.models import Outcome
from workplace_webhook.registry import HandlerRegistry, ObjectHandler

logger = logging.getLogger(__name__)

# Everything except GET and POST is answered with 403 by the dispatcher
CALLBACK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Workplace webhook server")
    yield
    logger.info("Shutting down Workplace webhook server")


class WebhookServer:
    """Serves Workplace webhook callbacks and dispatches them by object.

    In ``single`` routing mode every handler belongs to the one configured
    callback path. In ``multi`` mode each pattern passed to
    ``handle_object`` gets its own callback route and handler set.
    """

    def __init__(
        self,
        secret: str = "",
        access_token: str = "",
        verification_token: str = "",
        settings: Optional[WebhookSettings] = None,
    ):
        if settings is None:
            # Blank arguments fall back to WORKPLACE_WEBHOOK_* values
            credentials = {
                "secret": secret,
                "access_token": access_token,
                "verification_token": verification_token,
            }
            settings = WebhookSettings(**{k: v for k, v in credentials.items() if v})
        self.settings = settings
        self.registry = HandlerRegistry()
        self.dispatcher = Dispatcher(
            secret=settings.secret.get_secret_value(),
            verification_token=settings.verification_token.get_secret_value(),
            registry=self.registry,
            signature_header=settings.signature_header,
        )
        self._callback_paths: set[str] = set()

        self.app = FastAPI(
            title="Workplace Webhook Server",
            description="Receives signed Workplace webhook callbacks",
            version="1.0.0",
            lifespan=lifespan,
        )
        self.app.state.webhook_server = self

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            return {"status": "ok", "message": "Webhook server is running"}

        self._add_callback_route(settings.callback_path)

    @property
    def access_token(self) -> str:
        """Graph API access token, for handlers that call back into Workplace."""
        return self.settings.access_token.get_secret_value()

    @property
    def multi_pattern(self) -> bool:
        return self.settings.routing_mode == "multi"

    def handle_object(self, object_name: str, handler: ObjectHandler, pattern: Optional[str] = None) -> None:
        """Register a handler for an envelope object.

        A handler already registered for the same object (and pattern) is
        replaced.

        Args:
            object_name: Envelope ``object`` value, e.g. ``WebhookObject.PAGE``
            handler: Callable taking the Envelope, sync or async. Raising, or
                returning an exception instance, fails the request with 400
            pattern: Callback path, only meaningful in multi routing mode
        """
        if pattern is None:
            pattern = self.settings.callback_path
        elif not self.multi_pattern and pattern != self.settings.callback_path:
            logger.warning(
                f"Ignoring pattern {pattern} in single routing mode, "
                f"using {self.settings.callback_path}"
            )
            pattern = self.settings.callback_path

        if pattern not in self._callback_paths:
            self._add_callback_route(pattern)
        self.registry.register(object_name, handler, pattern)

    def handle_route(
        self,
        path: str,
        endpoint: Callable[..., Any],
        methods: Sequence[str] = ("GET",),
    ) -> None:
        """Register a plain FastAPI endpoint outside the webhook envelope flow."""
        self.app.add_api_route(path, endpoint, methods=list(methods))
        logger.info(f"Registered raw route {path} ({', '.join(methods)})")

    def _add_callback_route(self, pattern: str) -> None:
        async def callback(request: Request) -> Response:
            return await self._handle_callback(request, pattern)

        self.app.add_api_route(
            pattern,
            callback,
            methods=CALLBACK_METHODS,
            include_in_schema=False,
            name=f"workplace_callback:{pattern}",
        )
        self._callback_paths.add(pattern)
        logger.info(f"Webhook callback route registered: {pattern}")

    async def _handle_callback(self, request: Request, pattern: str) -> Response:
        client_ip = request.client.host if request.client else "unknown"
        logger.info(
            f"AUDIT: Webhook {request.method} request from {client_ip}",
            extra={
                "event_type": "webhook_callback",
                "client_ip": client_ip,
                "method": request.method,
                "path": pattern,
            },
        )

        result = await self.dispatcher.dispatch(
            request.method,
            read_body=request.body,
            headers=request.headers,
            query_string=request.scope.get("query_string", b""),
            pattern=pattern,
        )

        if result.outcome is not Outcome.ACCEPTED:
            reason = type(result.error).__name__ if result.error else "handshake_rejected"
            logger.warning(
                f"AUDIT: Webhook request rejected with {result.status_code} from {client_ip}",
                extra={
                    "event_type": "webhook_callback_failed",
                    "client_ip": client_ip,
                    "path": pattern,
                    "reason": reason,
                },
            )

        if result.body:
            return PlainTextResponse(content=result.body, status_code=result.status_code)
        return Response(status_code=result.status_code)

    def listen_and_serve(self, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """Run the server with uvicorn until interrupted."""
        import uvicorn

        uvicorn.run(self.app, host=host or self.settings.host, port=port or self.settings.port)


def create_app(
    webhook_secret: str = "",
    access_token: str = "",
    verification_token: str = "",
    settings: Optional[WebhookSettings] = None,
) -> FastAPI:
    """Create and configure the FastAPI webhook application.

    The owning WebhookServer is available as ``app.state.webhook_server``
    for handler registration.

    Args:
        webhook_secret: App secret for X-Hub-Signature verification
        access_token: Graph API access token held for handlers
        verification_token: Token expected during the subscription handshake
        settings: Full settings; when given the other arguments are ignored

    Returns:
        Configured FastAPI application
    """
    server = WebhookServer(
        secret=webhook_secret,
        access_token=access_token,
        verification_token=verification_token,
        settings=settings,
    )
    return server.app


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run the webhook server directly."""
    parser = argparse.ArgumentParser(description="Workplace webhook callback server")
    parser.add_argument("--config", default="config.yaml", help="YAML config file (default: config.yaml)")
    parser.add_argument("--host", default=None, help="Listen address (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Listen port (overrides config)")
    parser.add_argument("--multi", action="store_true", help="Enable multi-pattern routing")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    settings = load_settings(
        args.config,
        overrides={
            "host": args.host,
            "port": args.port,
            "routing_mode": "multi" if args.multi else None,
        },
    )
    if not settings.secret.get_secret_value():
        logger.warning("No webhook secret configured, signatures are checked against an empty key")

    server = WebhookServer(settings=settings)
    server.listen_and_serve()


if __name__ == "__main__":
    main()
