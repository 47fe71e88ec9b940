"""Contact form submission."""

from __future__ import annotations

import asyncio
import logging
import re

from fastapi import APIRouter, Depends
from gallery.config import Settings
from pydantic import BaseModel

from api.dependencies import get_app_settings, get_mailer
from api.errors import UpstreamError, ValidationError
from api.services.email_service import Mailer
from api.services.email_template_service import render_email_template

logger = logging.getLogger(__name__)
router = APIRouter()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DEFAULT_SUBJECT = "General Inquiry"


class ContactRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    subject: str | None = None
    message: str | None = None


def _single_line(value: str) -> str:
    return " ".join(value.split())


@router.post("/contact")
async def submit_contact(
    req: ContactRequest,
    settings: Settings = Depends(get_app_settings),
    mailer: Mailer = Depends(get_mailer),
):
    name = _single_line(req.name or "")
    email = (req.email or "").strip()
    message = (req.message or "").strip()
    subject = _single_line(req.subject or "") or DEFAULT_SUBJECT

    if not name or not email or not message:
        raise ValidationError("Name, email, and message are required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please provide a valid email address")

    if not mailer.is_configured or not mailer.artist_email:
        logger.error("Email configuration missing")
        raise UpstreamError("Email service temporarily unavailable")

    context = {
        "name": name,
        "email": email,
        "subject": subject,
        "message": message,
        "site_name": settings.site_name,
        "artist_name": settings.artist_name,
    }
    artist_subject, artist_text, artist_html = render_email_template(
        "contact_notification", context
    )
    reply_subject, reply_text, reply_html = render_email_template("contact_auto_reply", context)

    try:
        await asyncio.gather(
            mailer.send(
                to_email=mailer.artist_email,
                subject=artist_subject,
                text_body=artist_text,
                html_body=artist_html,
                reply_to=email,
                from_name=f"{settings.site_name} Website",
            ),
            mailer.send(
                to_email=email,
                subject=reply_subject,
                text_body=reply_text,
                html_body=reply_html,
            ),
        )
    except Exception as exc:
        logger.exception("Failed to send contact form emails")
        raise UpstreamError("Failed to send message. Please try again later.") from exc

    logger.info("Contact form emails sent")
    return {"success": True}
