"""
Unit tests for the Resend email adapter.

Requests are answered by an httpx.MockTransport; nothing leaves the process.
"""
import json

import httpx
import pytest

from lessons.email.service import BatchReceipt, EmailError, EmailMessage, EmailService
from lessons.email.templates import MUTUAL_REFERRER_SUBJECT, render_mutual_referrer_email


def _messages():
    return [
        EmailMessage(
            sender="Lightning Lessons <hello@lightninglessons.com>",
            to=["ana@x.com"],
            subject=MUTUAL_REFERRER_SUBJECT,
            html="<p>Hello Ana</p>",
        ),
        EmailMessage(
            sender="Lightning Lessons <hello@lightninglessons.com>",
            to=["bo@y.com"],
            subject=MUTUAL_REFERRER_SUBJECT,
            html="<p>Hello Bo</p>",
        ),
    ]


class TestSendBatch:

    @pytest.mark.asyncio
    async def test_batch_sent_in_one_request(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"data": [{"id": "msg_1"}, {"id": "msg_2"}]})

        service = EmailService("re_test", transport=httpx.MockTransport(handler))

        receipt = await service.send_batch(_messages())

        assert receipt == BatchReceipt(ids=["msg_1", "msg_2"])
        assert len(requests) == 1
        assert requests[0].url == "https://api.resend.com/emails/batch"
        assert requests[0].headers["Authorization"] == "Bearer re_test"
        body = json.loads(requests[0].content)
        assert [m["to"] for m in body] == [["ana@x.com"], ["bo@y.com"]]
        assert body[0]["from"] == "Lightning Lessons <hello@lightninglessons.com>"

    @pytest.mark.asyncio
    async def test_error_payload_is_kept_verbatim(self):
        payload = {"statusCode": 422, "name": "validation_error", "message": "Invalid `to` field."}

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json=payload)

        service = EmailService("re_test", transport=httpx.MockTransport(handler))

        with pytest.raises(EmailError) as exc_info:
            await service.send_batch(_messages())

        assert exc_info.value.payload == payload
        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_transport_error_becomes_email_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        service = EmailService("re_test", transport=httpx.MockTransport(handler))

        with pytest.raises(EmailError) as exc_info:
            await service.send_batch(_messages())

        assert exc_info.value.payload["name"] == "request_error"

    @pytest.mark.asyncio
    async def test_disabled_without_key(self):
        service = EmailService(None)

        with pytest.raises(EmailError) as exc_info:
            await service.send_batch(_messages())

        assert exc_info.value.payload["name"] == "not_configured"

    @pytest.mark.asyncio
    async def test_json_array_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json=["upstream", "failure"])

        service = EmailService("re_test", transport=httpx.MockTransport(handler))

        with pytest.raises(EmailError) as exc_info:
            await service.send_batch(_messages())

        assert exc_info.value.payload == ["upstream", "failure"]
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_html_error_body_kept_whole(self):
        html = "<html><body>" + "Bad gateway. " * 40 + "</body></html>"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text=html, headers={"Content-Type": "text/html"})

        service = EmailService("re_test", transport=httpx.MockTransport(handler))

        with pytest.raises(EmailError) as exc_info:
            await service.send_batch(_messages())

        assert exc_info.value.payload == html
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_requests_have_no_timeout(self):
        timeouts = []

        def handler(request: httpx.Request) -> httpx.Response:
            timeouts.append(request.extensions["timeout"])
            return httpx.Response(200, json={"data": [{"id": "msg_1"}, {"id": "msg_2"}]})

        service = EmailService("re_test", transport=httpx.MockTransport(handler))

        await service.send_batch(_messages())

        assert timeouts == [{"connect": None, "read": None, "write": None, "pool": None}]


class TestEmailError:

    def test_message_from_dict_payload(self):
        assert str(EmailError({"message": "Domain not verified."})) == "Domain not verified."

    def test_non_dict_payloads(self):
        assert str(EmailError(["upstream", "failure"])) == "['upstream', 'failure']"
        assert str(EmailError("Bad gateway")) == "Bad gateway"
        assert str(EmailError({})) == "Email provider error"


class TestAddContact:

    @pytest.mark.asyncio
    async def test_contact_added_to_audience(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201, json={"object": "contact", "id": "contact_1"})

        service = EmailService("re_test", transport=httpx.MockTransport(handler))

        contact_id = await service.add_contact("aud_1", "ana@x.com")

        assert contact_id == "contact_1"
        assert requests[0].url.path == "/audiences/aud_1/contacts"
        assert json.loads(requests[0].content) == {"email": "ana@x.com", "unsubscribed": False}


class TestTemplates:

    def test_referral_email_contents(self):
        html = render_mutual_referrer_email("Ana", "ANA01234567", "https://lightninglessons.com/signup")

        assert "Hello Ana" in html
        assert "<b>ANA01234567</b>" in html
        assert 'href="https://lightninglessons.com/signup"' in html
        assert "unsubscribe" in html

    def test_names_are_escaped(self):
        html = render_mutual_referrer_email("<script>", "CODE1234", "https://lightninglessons.com/signup")

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
