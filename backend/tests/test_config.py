"""
Unit tests for environment-driven mail configuration.
"""

import os
import pytest
from unittest.mock import patch

from app.config import (
    DEFAULT_BUSINESS_EMAIL,
    ConfigurationError,
    get_api_key,
    load_mail_settings,
    require_message_enabled,
)

_CONFIG_VARS = (
    "MAIL_API_KEY",
    "SENDGRID_API_KEY",
    "MAIL_PROVIDER",
    "INQUIRY_BUSINESS_EMAIL",
    "INQUIRY_SENDER_EMAIL",
    "INQUIRY_BUSINESS_NAME",
    "INQUIRY_SEND_CONFIRMATION",
    "INQUIRY_REQUIRE_MESSAGE",
    "MAIL_TIMEOUT_SECONDS",
)


@pytest.fixture()
def clean_env():
    """Run the test with none of the relay's variables set."""
    with patch.dict(os.environ, {}):
        for name in _CONFIG_VARS:
            os.environ.pop(name, None)
        yield


class TestApiKey:
    def test_missing_key_is_a_configuration_error(self, clean_env):
        with pytest.raises(ConfigurationError) as exc_info:
            load_mail_settings()

        assert "MAIL_API_KEY" in str(exc_info.value)

    def test_blank_key_counts_as_missing(self, clean_env):
        os.environ["MAIL_API_KEY"] = "   "
        assert get_api_key() is None

    def test_legacy_name_is_a_fallback(self, clean_env):
        os.environ["SENDGRID_API_KEY"] = "legacy"
        assert get_api_key() == "legacy"

    def test_new_name_wins(self, clean_env):
        os.environ["SENDGRID_API_KEY"] = "legacy"
        os.environ["MAIL_API_KEY"] = "current"
        assert get_api_key() == "current"


class TestLoadMailSettings:
    def test_defaults(self, clean_env):
        os.environ["MAIL_API_KEY"] = "k"

        settings = load_mail_settings()

        assert settings.api_key == "k"
        assert settings.provider == "sendgrid"
        assert settings.business_email == DEFAULT_BUSINESS_EMAIL
        assert settings.sender_email == DEFAULT_BUSINESS_EMAIL
        assert settings.send_confirmation is True
        assert settings.timeout_seconds == 10.0

    def test_sender_defaults_to_business_address(self, clean_env):
        os.environ["MAIL_API_KEY"] = "k"
        os.environ["INQUIRY_BUSINESS_EMAIL"] = "hello@studio.example"

        settings = load_mail_settings()

        assert settings.sender_email == "hello@studio.example"

    def test_overrides(self, clean_env):
        os.environ.update({
            "MAIL_API_KEY": "k",
            "MAIL_PROVIDER": "Resend",
            "INQUIRY_BUSINESS_EMAIL": "hello@studio.example",
            "INQUIRY_SENDER_EMAIL": "noreply@studio.example",
            "INQUIRY_BUSINESS_NAME": "Studio",
            "INQUIRY_SEND_CONFIRMATION": "no",
            "MAIL_TIMEOUT_SECONDS": "2.5",
        })

        settings = load_mail_settings()

        assert settings.provider == "resend"
        assert settings.sender_email == "noreply@studio.example"
        assert settings.business_name == "Studio"
        assert settings.send_confirmation is False
        assert settings.timeout_seconds == 2.5

    def test_bad_timeout(self, clean_env):
        os.environ["MAIL_API_KEY"] = "k"
        os.environ["MAIL_TIMEOUT_SECONDS"] = "soon"

        with pytest.raises(ConfigurationError):
            load_mail_settings()

    def test_unrecognized_flag_keeps_default(self, clean_env):
        os.environ["MAIL_API_KEY"] = "k"
        os.environ["INQUIRY_SEND_CONFIRMATION"] = "maybe"

        assert load_mail_settings().send_confirmation is True


class TestRequireMessage:
    def test_off_by_default(self, clean_env):
        assert require_message_enabled() is False

    @pytest.mark.parametrize("value", ["1", "true", "YES", "on"])
    def test_truthy_values(self, clean_env, value):
        os.environ["INQUIRY_REQUIRE_MESSAGE"] = value
        assert require_message_enabled() is True
