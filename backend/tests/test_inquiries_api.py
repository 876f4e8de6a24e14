"""
HTTP tests for POST /api/inquiries.

Tests mock the mail transport (build_transport is patched in the router).
No real provider calls.

Coverage:
  - 201 happy path, including synonyms and attachments (single + array)
  - 400 validation failures (no send attempted)
  - 500 missing API key, unknown provider, notification delivery failure
  - confirmation failure does not downgrade the 201
  - OPTIONS preflight and 405 for other methods
"""

import os
import pytest
from unittest.mock import AsyncMock, Mock, patch

from fastapi.testclient import TestClient

from app.models.outbound_email import DeliveryReceipt
from app.services.mail_transport import MailDeliveryError

URL = "/api/inquiries"

# Environment used by every request unless a test overrides it
_MAIL_ENV = {
    "MAIL_API_KEY": "test-mail-key",
    "MAIL_PROVIDER": "sendgrid",
    "INQUIRY_BUSINESS_EMAIL": "biz@example.com",
    "INQUIRY_SENDER_EMAIL": "noreply@example.com",
    "INQUIRY_SEND_CONFIRMATION": "true",
    "INQUIRY_REQUIRE_MESSAGE": "false",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _receipt(message_id: str = "msg-1") -> DeliveryReceipt:
    return DeliveryReceipt(provider="sendgrid", status_code=202, message_id=message_id)


def _make_transport(*side_effect) -> Mock:
    """A transport whose send() returns / raises side_effect items in order."""
    transport = Mock()
    if not side_effect:
        side_effect = (_receipt("n-1"), _receipt("c-1"))
    transport.send = AsyncMock(side_effect=list(side_effect))
    return transport


def _sent_messages(transport: Mock) -> list:
    return [call.args[0] for call in transport.send.await_args_list]


@pytest.fixture()
def client():
    from app.main import app
    return TestClient(app)


@pytest.fixture()
def mail_env():
    with patch.dict(os.environ, _MAIL_ENV):
        yield


# ===========================================================================
# Happy path
# ===========================================================================

class TestCreateInquiry:
    def test_end_to_end_notification_and_response(self, client, mail_env):
        transport = _make_transport()

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(
                URL, json={"email": "a@b.com", "message": "Hello", "package": "Premium"}
            )

        assert response.status_code == 201
        assert response.json() == {"success": True}

        notification, confirmation = _sent_messages(transport)
        assert "Premium" in notification.subject
        assert "Hello" in notification.text
        assert notification.reply_to == "a@b.com"
        assert notification.to == "biz@example.com"
        assert notification.from_email == "noreply@example.com"
        assert confirmation.to == "a@b.com"

    def test_italian_field_names(self, client, mail_env):
        transport = _make_transport()

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={
                "nome": "Giulia",
                "mail": "giulia@example.it",
                "telefono": "333 1234567",
                "tipo": "Sito vetrina",
                "messaggio": "Vorrei un preventivo",
            })

        assert response.status_code == 201
        notification = _sent_messages(transport)[0]
        assert notification.reply_to == "giulia@example.it"
        assert "Sito vetrina" in notification.subject
        assert "Giulia" in notification.text
        assert "333 1234567" in notification.text
        assert "Vorrei un preventivo" in notification.text

    def test_single_data_url_attachment(self, client, mail_env):
        transport = _make_transport()

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={
                "email": "a@b.com",
                "attachment": "data:image/jpeg;base64,AAAA",
            })

        assert response.status_code == 201
        [attachment] = _sent_messages(transport)[0].attachments
        assert attachment.type == "image/jpeg"
        assert attachment.content == "AAAA"
        assert attachment.disposition == "attachment"

    def test_array_attachment(self, client, mail_env):
        transport = _make_transport()

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={
                "email": "a@b.com",
                "attachments": [
                    {"filename": "x.pdf", "content": "data:application/pdf;base64,ZGF0YQ=="}
                ],
            })

        assert response.status_code == 201
        notification, confirmation = _sent_messages(transport)
        assert len(notification.attachments) == 1
        attachment = notification.attachments[0]
        assert attachment.filename == "x.pdf"
        assert attachment.type == "application/pdf"
        assert attachment.content == "ZGF0YQ=="
        assert confirmation.attachments == []

    def test_attachments_capped_at_five(self, client, mail_env):
        transport = _make_transport()
        files = [{"filename": f"f{i}.txt", "content": "SGk="} for i in range(7)]

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={"email": "a@b.com", "attachments": files})

        assert response.status_code == 201
        names = [a.filename for a in _sent_messages(transport)[0].attachments]
        assert names == ["f0.txt", "f1.txt", "f2.txt", "f3.txt", "f4.txt"]

    def test_malformed_attachment_does_not_block_inquiry(self, client, mail_env):
        transport = _make_transport()

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={
                "email": "a@b.com",
                "attachment": 12345,
                "attachments": "not-a-list",
            })

        assert response.status_code == 201
        assert _sent_messages(transport)[0].attachments == []

    def test_confirmation_disabled_sends_one_email(self, client, mail_env):
        transport = _make_transport(_receipt())

        with patch.dict(os.environ, {"INQUIRY_SEND_CONFIRMATION": "false"}), \
             patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={"email": "a@b.com"})

        assert response.status_code == 201
        assert transport.send.await_count == 1


# ===========================================================================
# Validation failures
# ===========================================================================

class TestValidationFailures:
    def test_missing_email_returns_400_without_sending(self, client, mail_env):
        with patch("app.routers.inquiries.build_transport") as mock_build:
            response = client.post(URL, json={"name": "Mario", "message": "Hello"})

        assert response.status_code == 400
        assert response.json() == {"message": "Email is required", "field": "email"}
        mock_build.assert_not_called()

    def test_validation_runs_before_configuration(self, client):
        """A missing email is reported as 400 even when the API key is missing."""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("MAIL_API_KEY", None)
            os.environ.pop("SENDGRID_API_KEY", None)
            response = client.post(URL, json={"message": "Hello"})

        assert response.status_code == 400
        assert response.json()["field"] == "email"

    def test_invalid_json(self, client, mail_env):
        response = client.post(
            URL, content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Request body must be valid JSON"}

    def test_empty_body_reports_missing_email(self, client, mail_env):
        response = client.post(URL, content=b"", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["field"] == "email"

    def test_non_object_body(self, client, mail_env):
        response = client.post(URL, json=["a@b.com"])

        assert response.status_code == 400
        assert "field" not in response.json()

    def test_message_required_switch(self, client, mail_env):
        with patch.dict(os.environ, {"INQUIRY_REQUIRE_MESSAGE": "true"}), \
             patch("app.routers.inquiries.build_transport") as mock_build:
            response = client.post(URL, json={"email": "a@b.com"})

        assert response.status_code == 400
        assert response.json()["field"] == "message"
        mock_build.assert_not_called()


# ===========================================================================
# Configuration and delivery failures
# ===========================================================================

class TestServerFailures:
    def test_missing_api_key_returns_500(self, client, mail_env):
        os.environ.pop("MAIL_API_KEY", None)
        os.environ.pop("SENDGRID_API_KEY", None)

        response = client.post(URL, json={"email": "a@b.com"})

        assert response.status_code == 500
        assert "MAIL_API_KEY" in response.json()["message"]

    def test_legacy_api_key_name_is_accepted(self, client, mail_env):
        os.environ.pop("MAIL_API_KEY", None)
        os.environ["SENDGRID_API_KEY"] = "legacy-key"
        transport = _make_transport()

        with patch("app.routers.inquiries.build_transport", return_value=transport) as mock_build:
            response = client.post(URL, json={"email": "a@b.com"})

        assert response.status_code == 201
        settings = mock_build.call_args.args[0]
        assert settings.api_key == "legacy-key"

    def test_unknown_provider_returns_500(self, client, mail_env):
        with patch.dict(os.environ, {"MAIL_PROVIDER": "carrier-pigeon"}):
            response = client.post(URL, json={"email": "a@b.com"})

        assert response.status_code == 500
        assert "carrier-pigeon" in response.json()["message"]

    def test_notification_failure_returns_500_with_details(self, client, mail_env):
        provider_body = {"errors": [{"message": "The from address does not match a verified Sender Identity"}]}
        transport = _make_transport(
            MailDeliveryError("sendgrid rejected the message (HTTP 403)", 403, provider_body)
        )

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={"email": "a@b.com", "message": "Hello"})

        assert response.status_code == 500
        data = response.json()
        assert data["message"] == "Failed to send the inquiry email"
        assert data["details"] == provider_body
        # Confirmation is never attempted after a failed notification
        assert transport.send.await_count == 1

    def test_notification_network_failure_uses_error_message(self, client, mail_env):
        transport = _make_transport(MailDeliveryError("sendgrid request failed: timeout"))

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={"email": "a@b.com"})

        assert response.status_code == 500
        assert response.json()["details"] == "sendgrid request failed: timeout"

    def test_confirmation_failure_still_returns_201(self, client, mail_env):
        transport = _make_transport(_receipt(), MailDeliveryError("mailbox unavailable"))

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={"email": "a@b.com", "message": "Hello"})

        assert response.status_code == 201
        assert response.json() == {"success": True}
        assert transport.send.await_count == 2

    def test_unexpected_confirmation_error_still_returns_201(self, client, mail_env):
        transport = _make_transport(_receipt(), RuntimeError("boom"))

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={"email": "a@b.com", "message": "Hello"})

        assert response.status_code == 201
        assert response.json() == {"success": True}
        assert transport.send.await_count == 2

    def test_unexpected_error_returns_generic_500(self, client, mail_env):
        transport = _make_transport(RuntimeError("boom"))

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(URL, json={"email": "a@b.com"})

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}


# ===========================================================================
# CORS and methods
# ===========================================================================

class TestCorsAndMethods:
    def test_options_returns_permissive_cors_headers(self, client):
        response = client.options(URL)

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"

    def test_preflight_with_extra_request_header_is_still_200(self, client):
        response = client.options(URL, headers={
            "Origin": "https://some-site.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type, X-Requested-With",
        })

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"

    def test_preflight_for_other_method_is_still_200(self, client):
        response = client.options(URL, headers={
            "Origin": "https://some-site.example",
            "Access-Control-Request-Method": "GET",
        })

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"

    def test_browser_preflight_is_allowed(self, client):
        response = client.options(URL, headers={
            "Origin": "https://some-site.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        })

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE"])
    def test_other_methods_return_405(self, client, method):
        response = client.request(method, URL)

        assert response.status_code == 405
        assert response.json() == {"message": "Method not allowed"}
        assert response.headers["allow"] == "POST, OPTIONS"

    def test_post_response_carries_cors_header(self, client, mail_env):
        transport = _make_transport()

        with patch("app.routers.inquiries.build_transport", return_value=transport):
            response = client.post(
                URL,
                json={"email": "a@b.com"},
                headers={"Origin": "https://some-site.example"},
            )

        assert response.status_code == 201
        assert response.headers["access-control-allow-origin"] == "*"
