"""Workplace webhook callback receiver."""

from workplace_webhook.auth import WebhookAuth, sign_payload, verify_signature
from workplace_webhook.config import WebhookSettings, load_settings
from workplace_webhook.dispatcher import Dispatcher
from workplace_webhook.models import DispatchResult, Envelope, Outcome, WebhookObject
from workplace_webhook.registry import HandlerRegistry
from workplace_webhook.server import WebhookServer, create_app

__all__ = [
    "Dispatcher",
    "DispatchResult",
    "Envelope",
    "HandlerRegistry",
    "Outcome",
    "WebhookAuth",
    "WebhookObject",
    "WebhookServer",
    "WebhookSettings",
    "create_app",
    "load_settings",
    "sign_payload",
    "verify_signature",
]
