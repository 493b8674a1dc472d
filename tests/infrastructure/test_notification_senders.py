"""Telegram and SMTP senders with their transports faked out."""
import aiohttp
import pytest

from core.infrastructure.adapters.notifications import smtp_email_sender
from core.infrastructure.adapters.notifications.smtp_email_sender import SMTPEmailSender
from core.infrastructure.adapters.notifications.telegram_notification_service import (
    TelegramDeliveryError,
    TelegramMessenger,
)
from core.settings.modules import EmailSettings, TelegramSettings


class FakeResponse:
    def __init__(self, status=200, text=""):
        self.status = status
        self._text = text

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.posts = []

    def post(self, url, json=None):
        self.posts.append((url, json))
        if self.error is not None:
            raise self.error
        return self.response


def _telegram(session, **overrides):
    values = {"enabled": True, "token": "123:abc", "admin_chat_id": "-100", "prefix": "[SHOP]"}
    values.update(overrides)
    return TelegramMessenger(TelegramSettings(**values), session=session)


@pytest.mark.asyncio
async def test_telegram_send_message():
    session = FakeSession()

    await _telegram(session).send_message("555", "Заказ создан")

    url, payload = session.posts[0]
    assert url == "https://api.telegram.org/bot123:abc/sendMessage"
    assert payload == {"chat_id": "555", "text": "Заказ создан", "parse_mode": "HTML"}


@pytest.mark.asyncio
async def test_telegram_admin_message_is_prefixed():
    session = FakeSession()

    await _telegram(session).send_admin_message("Новая заявка!")

    assert session.posts[0][1]["chat_id"] == "-100"
    assert session.posts[0][1]["text"] == "[SHOP] Новая заявка!"


@pytest.mark.asyncio
async def test_telegram_admin_message_without_chat_is_skipped():
    session = FakeSession()

    await _telegram(session, admin_chat_id=None).send_admin_message("x")

    assert session.posts == []


@pytest.mark.asyncio
async def test_telegram_api_error_raises():
    session = FakeSession(FakeResponse(403, "Forbidden: bot was blocked by the user"))

    with pytest.raises(TelegramDeliveryError, match="403"):
        await _telegram(session).send_message("555", "x")


@pytest.mark.asyncio
async def test_telegram_network_error_raises():
    session = FakeSession(error=aiohttp.ClientConnectionError("refused"))

    with pytest.raises(TelegramDeliveryError):
        await _telegram(session).send_message("555", "x")


@pytest.mark.asyncio
async def test_telegram_without_token_raises():
    with pytest.raises(TelegramDeliveryError):
        await _telegram(FakeSession(), token="").send_message("555", "x")


class FakeSMTP:
    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.calls = []
        FakeSMTP.instances.append(self)

    async def connect(self):
        self.calls.append("connect")

    async def login(self, user, password):
        self.calls.append(("login", user))

    async def send_message(self, message):
        self.calls.append(("send", message["To"], message["Subject"]))

    async def quit(self):
        self.calls.append("quit")


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(smtp_email_sender.aiosmtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def _email_settings(**overrides):
    values = {
        "enabled": True,
        "smtp_host": "smtp.example.test",
        "smtp_port": 465,
        "sender": "shop@example.test",
        "password": "secret",
        "sender_name": "Магазин",
    }
    values.update(overrides)
    return EmailSettings(**values)


def test_build_message_headers():
    message = SMTPEmailSender(_email_settings()).build_message("buyer@example.com", "Заказ создан", "<p>hi</p>")

    assert message["To"] == "buyer@example.com"
    assert message["Subject"] == "Заказ создан"
    assert "shop@example.test" in message["From"]
    assert message.get_payload()[0].get_content_type() == "text/html"


@pytest.mark.asyncio
async def test_smtp_implicit_tls_on_465(fake_smtp):
    await SMTPEmailSender(_email_settings()).send("buyer@example.com", "Заказ создан", "<p>hi</p>")

    smtp = fake_smtp.instances[0]
    assert smtp.kwargs["use_tls"] is True
    assert smtp.kwargs["start_tls"] is False
    assert smtp.calls == [
        "connect",
        ("login", "shop@example.test"),
        ("send", "buyer@example.com", "Заказ создан"),
        "quit",
    ]


@pytest.mark.asyncio
async def test_smtp_starttls_without_login(fake_smtp):
    await SMTPEmailSender(_email_settings(smtp_port=587, password="")).send("b@example.com", "s", "<p/>")

    smtp = fake_smtp.instances[0]
    assert smtp.kwargs["use_tls"] is False
    assert smtp.kwargs["start_tls"] is True
    assert smtp.calls[0] == "connect"
    assert all(call[0] != "login" for call in smtp.calls if isinstance(call, tuple))
