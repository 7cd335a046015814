import httpx
import pytest

from pianosearch.config import get_settings
from pianosearch.db import models
from pianosearch.services import contact_service, mail_service
from pianosearch.services.mail_service import DeliveryResult


@pytest.fixture()
def sent_mail(monkeypatch):
    outbox = []
    state = {"result": DeliveryResult(status_code=200, ok=True)}

    def fake_send_email(**kwargs):
        outbox.append(kwargs)
        return state["result"]

    monkeypatch.setattr(mail_service, "send_email", fake_send_email)
    return outbox, state


@pytest.fixture()
def visible_classroom(make_user, make_classroom, make_subscription):
    owner = make_user()
    make_subscription(owner)
    return make_classroom(owner, name="さくら<ピアノ>教室", email="owner-mail@example.com")


CONTACT = {
    "sender_name": "山田 <b>花子</b>",
    "sender_email": "hanako@example.com",
    "sender_phone": "090-0000-0000",
    "message": "体験レッスンを希望します。<script>alert(1)</script>",
}


def test_classroom_contact_sends_mail_and_logs(api_client, session_factory, sent_mail, visible_classroom):
    outbox, _ = sent_mail

    response = api_client.post(f"/api/v1/classrooms/{visible_classroom.id}/contact", json=CONTACT)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": contact_service.CLASSROOM_SENT_MESSAGE}
    mail = outbox[0]
    assert mail["to"] == "owner-mail@example.com"
    assert mail["reply_to"] == "hanako@example.com"
    assert "さくら<ピアノ>教室" in mail["subject"]
    assert "<script>" not in mail["html"]
    assert "&lt;script&gt;" in mail["html"]
    assert "&lt;b&gt;花子&lt;/b&gt;" in mail["html"]
    assert "090-0000-0000" in mail["html"]

    with session_factory() as db:
        log = db.query(models.MailLog).one()
        assert log.status == 200
        assert log.to_email == "owner-mail@example.com"
        assert log.sender_email == "hanako@example.com"
        assert log.response_text is None


def test_classroom_contact_failure_is_logged(api_client, session_factory, sent_mail, visible_classroom):
    _, state = sent_mail
    state["result"] = DeliveryResult(status_code=422, ok=False, response_text="invalid from")

    response = api_client.post(f"/api/v1/classrooms/{visible_classroom.id}/contact", json=CONTACT)

    assert response.status_code == 500
    assert response.json()["detail"] == contact_service.CLASSROOM_FAILED_MESSAGE
    with session_factory() as db:
        log = db.query(models.MailLog).one()
        assert log.status == 422
        assert log.response_text == "invalid from"


def test_contact_hidden_classroom_is_not_found(api_client, sent_mail, make_user, make_classroom):
    classroom = make_classroom(make_user(), published=True)
    response = api_client.post(f"/api/v1/classrooms/{classroom.id}/contact", json=CONTACT)
    assert response.status_code == 404
    assert sent_mail[0] == []


def test_contact_classroom_without_email(api_client, sent_mail, make_user, make_classroom, make_subscription):
    owner = make_user()
    make_subscription(owner)
    classroom = make_classroom(owner, email=None)

    response = api_client.post(f"/api/v1/classrooms/{classroom.id}/contact", json=CONTACT)
    assert response.status_code == 409


def test_contact_requires_fields(api_client, sent_mail, visible_classroom):
    response = api_client.post(
        f"/api/v1/classrooms/{visible_classroom.id}/contact",
        json={"sender_name": "山田", "sender_email": "hanako@example.com"},
    )
    assert response.status_code == 422


def test_general_contact_sends_admin_mail_and_confirmation(api_client, sent_mail):
    outbox, _ = sent_mail
    response = api_client.post(
        "/api/v1/contact",
        json={
            "sender_name": "山田",
            "sender_email": "hanako@example.com",
            "subject": "掲載について",
            "message": "料金について教えてください。",
        },
    )

    assert response.status_code == 200
    assert response.json()["message"] == contact_service.GENERAL_SENT_MESSAGE
    admin_mail, confirmation = outbox
    assert admin_mail["to"] == get_settings().admin_contact_email
    assert admin_mail["reply_to"] == "hanako@example.com"
    assert admin_mail["subject"].endswith("掲載について")
    assert confirmation["to"] == "hanako@example.com"
    assert "山田 様" in confirmation["html"]


def test_general_contact_failure(api_client, sent_mail):
    _, state = sent_mail
    state["result"] = DeliveryResult(status_code=None, ok=False, response_text="timeout")
    response = api_client.post(
        "/api/v1/contact",
        json={
            "sender_name": "山田",
            "sender_email": "hanako@example.com",
            "subject": "掲載について",
            "message": "料金について教えてください。",
        },
    )
    assert response.status_code == 500


def test_send_email_requires_api_key(monkeypatch):
    monkeypatch.setattr(get_settings(), "resend_api_key", "")
    with pytest.raises(mail_service.EmailConfigurationError):
        mail_service.send_email(to="a@example.com", subject="s", html="<p>x</p>")


def test_send_email_posts_to_resend(monkeypatch):
    monkeypatch.setattr(get_settings(), "resend_api_key", "re_test")
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "email_1"})

    original_client = httpx.Client

    def client_factory(*args, **kwargs):
        return original_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(mail_service.httpx, "Client", client_factory)

    result = mail_service.send_email(
        to="owner@example.com",
        subject="件名",
        html="<p>本文</p>",
        reply_to="visitor@example.com",
    )

    assert result.ok is True
    assert result.status_code == 200
    request = requests[0]
    assert request.url == mail_service.RESEND_API_URL
    assert request.headers["Authorization"] == "Bearer re_test"
    body = request.read()
    assert b'"reply_to":"visitor@example.com"' in body.replace(b" ", b"")


def test_send_email_reports_rejection(monkeypatch):
    monkeypatch.setattr(get_settings(), "resend_api_key", "re_test")
    original_client = httpx.Client

    def client_factory(*args, **kwargs):
        transport = httpx.MockTransport(lambda request: httpx.Response(403, text="forbidden"))
        return original_client(*args, transport=transport, **kwargs)

    monkeypatch.setattr(mail_service.httpx, "Client", client_factory)

    result = mail_service.send_email(to="owner@example.com", subject="s", html="<p>x</p>")

    assert result.ok is False
    assert result.status_code == 403
    assert result.response_text == "forbidden"
