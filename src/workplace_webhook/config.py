"""Webhook server configuration."""

import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_SECTION = "webhook"


class WebhookSettings(BaseSettings):
    """Settings for one Workplace webhook server instance.

    Immutable once built: the secret and tokens are fixed for the
    lifetime of the server.
    """

    model_config = SettingsConfigDict(
        env_prefix="WORKPLACE_WEBHOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Credentials
    secret: SecretStr = Field(default=SecretStr(""), description="App secret used as the HMAC-SHA1 key")
    access_token: SecretStr = Field(default=SecretStr(""), description="Graph API access token for handlers")
    verification_token: SecretStr = Field(
        default=SecretStr(""), description="Token expected in hub.verify_token during the handshake"
    )

    # Listener
    host: str = Field(default="0.0.0.0", description="Listen address")
    port: int = Field(default=8080, ge=1, le=65535, description="Listen port")

    # Routing
    routing_mode: Literal["single", "multi"] = Field(
        default="single",
        description="single: one callback path; multi: one callback path per registered pattern",
    )
    callback_path: str = Field(default="/", description="Callback path used in single mode")
    signature_header: str = Field(default="X-Hub-Signature", description="Header carrying the body signature")

    @field_validator("callback_path")
    @classmethod
    def _path_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("callback_path must start with '/'")
        return value


def deep_merge(base: dict, override: dict) -> None:
    """Merge override dict into base dict in-place (recursive)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value


def load_config(path: str) -> dict:
    """Load configuration from a YAML file plus its ``.local.yaml`` overrides.

    Missing files yield an empty dict.
    """
    cfg: dict = {}
    if Path(path).exists():
        with open(path) as f:
            cfg = yaml.safe_load(f) or {}

    local = Path(path).with_suffix(".local.yaml")
    if local.exists():
        with open(local) as f:
            local_cfg = yaml.safe_load(f) or {}
        deep_merge(cfg, local_cfg)
        logger.info(f"Applied local config overrides from {local}")
    return cfg


def load_settings(config_path: str = "config.yaml", overrides: Optional[dict] = None) -> WebhookSettings:
    """Build WebhookSettings from the ``webhook`` section of a YAML config.

    Non-empty values from the file (and explicit overrides) take precedence
    over ``WORKPLACE_WEBHOOK_*`` environment variables and ``.env``; empty
    or null file values leave the environment value in place.

    Args:
        config_path: Path to the YAML configuration file
        overrides: Extra values applied on top of the file section

    Returns:
        WebhookSettings instance
    """
    file_section = load_config(config_path).get(CONFIG_SECTION) or {}
    section = {k: v for k, v in file_section.items() if v is not None and v != ""}
    if overrides:
        section.update({k: v for k, v in overrides.items() if v is not None})
    return WebhookSettings(**section)
