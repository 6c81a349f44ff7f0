from __future__ import annotations

import logging

import pytest

from invdb.apps.notifications import providers
from invdb.apps.notifications.providers import (
    NoopProvider,
    ProviderError,
    SendGridProvider,
    SmtpProvider,
    get_email_provider,
)
from invdb.settings import EmailSettings

MESSAGE = dict(
    to="alice@x.com",
    from_email="noreply@example.com",
    subject="Inventory Summary Report",
    text="text",
    html="<p>html</p>",
)


def test_provider_selection():
    assert isinstance(get_email_provider(EmailSettings(provider="noop")), NoopProvider)
    assert isinstance(get_email_provider(EmailSettings(provider="sendgrid", sendgrid_api_key="k")), SendGridProvider)
    assert isinstance(get_email_provider(EmailSettings(provider="smtp", smtp_host="mail")), SmtpProvider)
    with pytest.raises(ValueError):
        get_email_provider(EmailSettings(provider="pigeon"))


def test_missing_api_key_warns_but_does_not_fail(caplog):
    with caplog.at_level(logging.WARNING, logger=providers.__name__):
        provider = get_email_provider(EmailSettings(provider="sendgrid", sendgrid_api_key=None))
    assert "SENDGRID_API_KEY is not set" in caplog.text

    with pytest.raises(ProviderError):
        provider.send(**MESSAGE)


def test_missing_smtp_host_fails_at_send():
    with pytest.raises(ProviderError):
        SmtpProvider(None, 587).send(**MESSAGE)


def test_sendgrid_payload_carries_both_bodies():
    payload = SendGridProvider("k")._payload(**MESSAGE)
    assert payload["personalizations"] == [{"to": [{"email": "alice@x.com"}]}]
    assert payload["from"] == {"email": "noreply@example.com"}
    assert payload["content"] == [
        {"type": "text/plain", "value": "text"},
        {"type": "text/html", "value": "<p>html</p>"},
    ]


def test_sendgrid_unreachable_is_provider_error(monkeypatch):
    def fake_urlopen(req, timeout):
        raise OSError("connection refused")

    monkeypatch.setattr(providers.urllib.request, "urlopen", fake_urlopen)
    with pytest.raises(ProviderError):
        SendGridProvider("k").send(**MESSAGE)


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("EMAIL_PROVIDER", "SMTP")
    monkeypatch.setenv("SMTP_HOST", "mail.example.com")
    monkeypatch.setenv("SMTP_PORT", "2525")
    monkeypatch.delenv("SENDGRID_FROM_EMAIL", raising=False)
    monkeypatch.delenv("SMTP_FROM", raising=False)

    settings = EmailSettings.from_env()
    assert settings.provider == "smtp"
    assert settings.smtp_host == "mail.example.com"
    assert settings.smtp_port == 2525
    assert settings.from_email == "noreply@example.com"
