import json

import httpx
import pytest

from portal.errors import AuthorizationError, DependencyError, EmailDeliveryError
from portal.services.email_service import ResendEmailService
from portal.services.identity_service import USERS_PAGE_SIZE, IdentityService


def identity_with(handler, **kwargs):
    kwargs.setdefault("service_key", "service-key")
    return IdentityService(
        base_url="https://identity.test",
        anon_key="anon-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestIdentityService:
    def test_get_user(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["apikey"] = request.headers["apikey"]
            return httpx.Response(200, json={"id": "abc-123", "email": "a@example.com"})

        user = identity_with(handler).get_user("tok")

        assert user.id == "abc-123"
        assert user.email == "a@example.com"
        assert seen == {"auth": "Bearer tok", "apikey": "anon-key"}

    def test_missing_token(self):
        with pytest.raises(AuthorizationError):
            identity_with(lambda request: httpx.Response(200, json={})).get_user(None)

    def test_rejected_token(self):
        with pytest.raises(AuthorizationError):
            identity_with(lambda request: httpx.Response(401, json={"msg": "bad jwt"})).get_user("tok")

    def test_provider_outage(self):
        with pytest.raises(DependencyError):
            identity_with(lambda request: httpx.Response(503)).get_user("tok")

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DependencyError):
            identity_with(handler).get_user("tok")

    def test_list_user_emails_pages(self):
        pages = {
            "1": [{"id": f"u{i}", "email": f"u{i}@example.com"} for i in range(USERS_PAGE_SIZE)],
            "2": [{"id": "last", "email": "last@example.com"}, {"id": "no-email", "email": None}],
        }

        def handler(request):
            assert request.headers["Authorization"] == "Bearer service-key"
            return httpx.Response(200, json={"users": pages[request.url.params["page"]]})

        emails = identity_with(handler).list_user_emails()

        assert len(emails) == USERS_PAGE_SIZE + 1
        assert emails["last"] == "last@example.com"
        assert "no-email" not in emails

    def test_list_requires_service_key(self):
        service = identity_with(lambda request: httpx.Response(200, json={"users": []}))
        service.service_key = None

        with pytest.raises(DependencyError):
            service.list_user_emails()


class TestResendEmailService:
    def test_send(self):
        captured = {}

        def handler(request):
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "email-1"})

        sender = ResendEmailService(
            api_key="re_key",
            api_url="https://mail.test/emails",
            transport=httpx.MockTransport(handler),
        )

        result = sender.send_email("from@example.com", "to@example.com", "Hi", "<p>Hi</p>")

        assert result == {"message_id": "email-1", "success": True}
        assert captured["auth"] == "Bearer re_key"
        assert captured["body"] == {
            "from": "from@example.com",
            "to": "to@example.com",
            "subject": "Hi",
            "html": "<p>Hi</p>",
        }

    def test_non_2xx_raises(self):
        sender = ResendEmailService(
            api_key="re_key",
            api_url="https://mail.test/emails",
            transport=httpx.MockTransport(lambda request: httpx.Response(422, json={"message": "bad from"})),
        )

        with pytest.raises(EmailDeliveryError):
            sender.send_email("from@example.com", "to@example.com", "Hi", "<p>Hi</p>")

    def test_missing_api_key(self):
        sender = ResendEmailService(api_key="x", transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        sender.api_key = None

        with pytest.raises(EmailDeliveryError):
            sender.send_email("from@example.com", "to@example.com", "Hi", "<p>Hi</p>")
