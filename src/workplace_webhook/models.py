"""Data models for Workplace webhook callbacks."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Outcome(IntEnum):
    """Per-request result, valued by the HTTP status it maps to."""

    ACCEPTED = 200
    CLIENT_ERROR = 400
    FORBIDDEN = 403


class WebhookObject(str, Enum):
    """Known Workplace webhook object categories.

    The discriminator is open: handlers may be registered for any string,
    and members compare equal to their plain string value.
    """

    PAGE = "page"
    GROUP = "group"
    USER = "user"
    WORKPLACE_SECURITY = "workplace_security"
    LINK = "link"
    PERMISSIONS = "permissions"
    APPLICATION = "application"


class Change(BaseModel):
    """A single field change inside an entry."""

    model_config = ConfigDict(extra="allow")

    field: Any = None
    value: Any = None


class Entry(BaseModel):
    """One entry of a webhook callback.

    Values are kept exactly as sent; ``id`` may be a string or a number.
    """

    model_config = ConfigDict(extra="allow")

    id: Any = None
    time: Any = None
    changes: list[Change] = Field(default_factory=list)
    messaging: list[Any] = Field(default_factory=list)


class Envelope(BaseModel):
    """Decoded webhook callback body.

    Fields beyond ``object`` and ``entry`` are kept as extras and passed
    through to handlers untouched.
    """

    model_config = ConfigDict(extra="allow")

    object: str = Field(min_length=1)
    entry: list[Entry] = Field(default_factory=list)

    @classmethod
    def from_bytes(cls, raw_body: bytes) -> "Envelope":
        """Decode an envelope from the raw request body.

        Args:
            raw_body: Request body exactly as received

        Returns:
            Envelope instance

        Raises:
            pydantic.ValidationError: If the body is not valid JSON or
                lacks the ``object`` discriminator
        """
        return cls.model_validate_json(raw_body)


@dataclass
class DispatchResult:
    """Result of dispatching one request."""

    outcome: Outcome
    body: bytes = b""
    error: Optional[Exception] = None

    @property
    def status_code(self) -> int:
        return int(self.outcome)
