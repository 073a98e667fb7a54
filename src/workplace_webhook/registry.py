"""Object handler registry."""

import logging
import threading
from typing import Any, Awaitable, Callable, Optional, Union

from workplace_webhook.models import Envelope

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "/"

ObjectHandler = Callable[[Envelope], Union[Any, Awaitable[Any]]]


def _key(object_name: str) -> str:
    # WebhookObject members and plain strings must land on the same key
    return object_name.value if hasattr(object_name, "value") else str(object_name)


class HandlerRegistry:
    """Registry mapping (callback pattern, object) to a handler.

    Registering twice for the same key replaces the earlier handler.
    Reads and writes are serialized so handlers can be added while the
    server is already dispatching.
    """

    def __init__(self):
        self._handlers: dict[tuple[str, str], ObjectHandler] = {}
        self._lock = threading.RLock()

    def register(self, object_name: str, handler: ObjectHandler, pattern: str = DEFAULT_PATTERN) -> None:
        """Register a handler for an object under a callback pattern.

        Args:
            object_name: Envelope ``object`` discriminator
            handler: Callable taking the Envelope, sync or async
            pattern: Callback path the handler belongs to
        """
        key = (pattern, _key(object_name))
        with self._lock:
            if key in self._handlers:
                logger.info(f"Overriding handler for object {key[1]!r} on {pattern}")
            self._handlers[key] = handler

    def unregister(self, object_name: str, pattern: str = DEFAULT_PATTERN) -> bool:
        """Remove a handler.

        Returns:
            True if a handler was removed
        """
        with self._lock:
            return self._handlers.pop((pattern, _key(object_name)), None) is not None

    def lookup(self, object_name: str, pattern: str = DEFAULT_PATTERN) -> Optional[ObjectHandler]:
        """Return the handler for an object, or None when nothing is registered."""
        with self._lock:
            return self._handlers.get((pattern, _key(object_name)))

    def patterns(self) -> list[str]:
        """Return the callback patterns that have at least one handler."""
        with self._lock:
            return sorted({pattern for pattern, _ in self._handlers})

    def objects(self, pattern: str = DEFAULT_PATTERN) -> list[str]:
        with self._lock:
            return sorted(obj for pat, obj in self._handlers if pat == pattern)

    def __contains__(self, key: tuple[str, str]) -> bool:
        pattern, object_name = key
        with self._lock:
            return (pattern, _key(object_name)) in self._handlers

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)
