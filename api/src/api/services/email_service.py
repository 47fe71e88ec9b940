"""SMTP configuration + transactional email sending."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Any

from gallery.config import Settings

logger = logging.getLogger(__name__)


def _normalize_text(value: Any) -> str:
    return str(value or "").strip()


def _coerce_port(value: Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        return 587
    if port < 1 or port > 65535:
        return 587
    return port


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int
    username: str
    password: str
    from_email: str
    from_name: str
    use_ssl: bool = False
    use_starttls: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> SmtpConfig:
        use_ssl = bool(settings.smtp_use_ssl)
        return cls(
            host=_normalize_text(settings.smtp_host),
            port=_coerce_port(settings.smtp_port),
            username=_normalize_text(settings.smtp_user),
            password=_normalize_text(settings.smtp_password),
            from_email=_normalize_text(settings.smtp_user).lower(),
            from_name=_normalize_text(settings.mail_from_name or settings.site_name),
            use_ssl=use_ssl,
            use_starttls=bool(settings.smtp_use_starttls) and not use_ssl,
        )


def smtp_is_configured(config: SmtpConfig) -> bool:
    if not config.host or not config.from_email:
        return False
    if not config.username or not config.password:
        return False
    return config.port > 0


def _build_sender(from_email: str, from_name: str) -> str:
    if not from_name:
        return from_email
    return f"{from_name} <{from_email}>"


def _send_email_sync(
    config: SmtpConfig,
    *,
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
    reply_to: str = "",
    from_name: str | None = None,
) -> None:
    message = EmailMessage()
    message["From"] = _build_sender(config.from_email, from_name or config.from_name)
    message["To"] = to_email
    message["Subject"] = subject
    if reply_to:
        message["Reply-To"] = reply_to
    message.set_content(text_body)
    if html_body:
        message.add_alternative(html_body, subtype="html")

    if config.use_ssl:
        smtp_client: smtplib.SMTP = smtplib.SMTP_SSL(host=config.host, port=config.port, timeout=15)
    else:
        smtp_client = smtplib.SMTP(host=config.host, port=config.port, timeout=15)

    with smtp_client as smtp:
        smtp.ehlo()
        if config.use_starttls and not config.use_ssl:
            smtp.starttls()
            smtp.ehlo()
        if config.username:
            smtp.login(config.username, config.password)
        smtp.send_message(message)


class Mailer:
    """Outbound mail transport shared across requests.

    ``send`` raises on delivery failure; callers decide whether a failed
    message is fatal for their request.
    """

    def __init__(self, config: SmtpConfig, *, artist_email: str = "") -> None:
        self.config = config
        self.artist_email = _normalize_text(artist_email).lower()

    @property
    def is_configured(self) -> bool:
        return smtp_is_configured(self.config)

    async def send(
        self,
        *,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str | None = None,
        reply_to: str = "",
        from_name: str | None = None,
    ) -> None:
        if not self.is_configured:
            raise RuntimeError("SMTP is not configured")
        recipient = _normalize_text(to_email).lower()
        if not recipient:
            raise ValueError("Recipient address is required")
        await asyncio.to_thread(
            _send_email_sync,
            self.config,
            to_email=recipient,
            subject=_normalize_text(subject),
            text_body=text_body,
            html_body=html_body,
            reply_to=_normalize_text(reply_to).lower(),
            from_name=from_name,
        )
        logger.info("Sent email %r to %s", _normalize_text(subject), recipient)
