from __future__ import annotations

import json
import logging
import smtplib
import urllib.error
import urllib.request
from email.message import EmailMessage
from typing import Optional

from invdb.settings import EmailSettings

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class ProviderError(Exception):
    """The provider refused or failed to accept a message."""


class EmailProvider:
    def send(
        self,
        *,
        to: str,
        from_email: str,
        subject: str,
        text: str,
        html: str,
    ) -> None:
        raise NotImplementedError


class NoopProvider(EmailProvider):
    """Accepts everything and sends nothing (local development)."""

    def send(self, *, to: str, from_email: str, subject: str, text: str, html: str) -> None:
        logger.info("noop email provider dropped message", extra={"recipient": to, "subject": subject})


class SendGridProvider(EmailProvider):
    def __init__(self, api_key: Optional[str], *, timeout_sec: int = 15) -> None:
        self.api_key = api_key
        self.timeout_sec = timeout_sec

    def _payload(self, *, to: str, from_email: str, subject: str, text: str, html: str) -> dict:
        return {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": from_email},
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": text},
                {"type": "text/html", "value": html},
            ],
        }

    def send(self, *, to: str, from_email: str, subject: str, text: str, html: str) -> None:
        if not self.api_key:
            raise ProviderError("SENDGRID_API_KEY is not set")

        data = json.dumps(
            self._payload(to=to, from_email=from_email, subject=subject, text=text, html=html)
        ).encode("utf-8")
        req = urllib.request.Request(SENDGRID_SEND_URL, data=data, method="POST")
        req.add_header("Content-Type", "application/json")
        req.add_header("Authorization", f"Bearer {self.api_key}")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_sec) as resp:
                if not 200 <= resp.status < 300:
                    raise ProviderError(f"SendGrid responded {resp.status}")
        except urllib.error.HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace")[:500]
            raise ProviderError(f"SendGrid responded {exc.code}: {body}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise ProviderError(f"SendGrid unreachable: {exc}") from exc


class SmtpProvider(EmailProvider):
    def __init__(
        self,
        host: Optional[str],
        port: int,
        *,
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout_sec: int = 15,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout_sec = timeout_sec

    def send(self, *, to: str, from_email: str, subject: str, text: str, html: str) -> None:
        if not self.host:
            raise ProviderError("SMTP_HOST is not set")

        msg = EmailMessage()
        msg["From"] = from_email
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout_sec) as s:
                s.starttls()
                if self.user and self.password:
                    s.login(self.user, self.password)
                s.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise ProviderError(f"SMTP delivery failed: {exc}") from exc


def log_configuration_warnings(settings: EmailSettings) -> None:
    """Warn (never fail) about settings that will make sends fail later."""
    if settings.provider == "sendgrid" and not settings.sendgrid_api_key:
        logger.warning("SENDGRID_API_KEY is not set. Email functionality will not work.")
    if settings.provider == "smtp" and not settings.smtp_host:
        logger.warning("SMTP_HOST is not set. Email functionality will not work.")


def get_email_provider(settings: EmailSettings) -> EmailProvider:
    log_configuration_warnings(settings)
    name = settings.provider
    if name in {"none", "noop", "disabled"}:
        return NoopProvider()
    if name == "sendgrid":
        return SendGridProvider(settings.sendgrid_api_key, timeout_sec=settings.timeout_sec)
    if name == "smtp":
        return SmtpProvider(
            settings.smtp_host,
            settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            timeout_sec=settings.timeout_sec,
        )
    raise ValueError(f"Unsupported email provider: {name}")
