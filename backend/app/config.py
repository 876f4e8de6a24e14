"""
Runtime configuration for the inquiry relay.

Values come from the process environment (optionally seeded from a .env
file). The mail settings are read per request rather than cached at import
time so that a missing API key always surfaces as a configuration error
instead of being silently skipped.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_BUSINESS_EMAIL = "info@example.com"
DEFAULT_BUSINESS_NAME = "Our team"
DEFAULT_PROVIDER = "sendgrid"
DEFAULT_TIMEOUT_SECONDS = 10.0

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class ConfigurationError(Exception):
    """Raised when a required server-side setting is missing or invalid."""


@dataclass(frozen=True)
class MailSettings:
    """Everything the dispatcher and transport need, resolved once per request."""

    api_key: str
    provider: str = DEFAULT_PROVIDER
    business_email: str = DEFAULT_BUSINESS_EMAIL
    sender_email: str = DEFAULT_BUSINESS_EMAIL
    business_name: str = DEFAULT_BUSINESS_NAME
    send_confirmation: bool = True
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def get_api_key() -> Optional[str]:
    """
    Return the mail provider API key.

    Checks MAIL_API_KEY first, then falls back to the legacy SENDGRID_API_KEY
    name so older deployments keep working.
    """
    key = os.getenv("MAIL_API_KEY") or os.getenv("SENDGRID_API_KEY") or ""
    return key.strip() or None


def require_message_enabled() -> bool:
    """Whether an empty message should be rejected at validation time."""
    return _env_flag("INQUIRY_REQUIRE_MESSAGE", False)


def load_mail_settings() -> MailSettings:
    """
    Build MailSettings from the environment.

    Raises:
        ConfigurationError: if no API key is configured.
    """
    api_key = get_api_key()
    if not api_key:
        raise ConfigurationError(
            "MAIL_API_KEY is not configured (legacy name: SENDGRID_API_KEY)"
        )

    business_email = (
        os.getenv("INQUIRY_BUSINESS_EMAIL", "").strip() or DEFAULT_BUSINESS_EMAIL
    )
    sender_email = os.getenv("INQUIRY_SENDER_EMAIL", "").strip() or business_email

    return MailSettings(
        api_key=api_key,
        provider=(os.getenv("MAIL_PROVIDER", "").strip() or DEFAULT_PROVIDER).lower(),
        business_email=business_email,
        sender_email=sender_email,
        business_name=(
            os.getenv("INQUIRY_BUSINESS_NAME", "").strip() or DEFAULT_BUSINESS_NAME
        ),
        send_confirmation=_env_flag("INQUIRY_SEND_CONFIRMATION", True),
        timeout_seconds=_env_float("MAIL_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
    )

