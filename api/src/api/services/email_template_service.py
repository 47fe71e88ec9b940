"""Transactional email templates and placeholder rendering."""

from __future__ import annotations

import html
import re
from typing import Any

EMAIL_TEMPLATE_KEYS = (
    "purchase_confirmation",
    "artist_sale",
    "contact_notification",
    "contact_auto_reply",
)

_WRAPPER_OPEN = '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
_WRAPPER_CLOSE = "</div>"


def default_email_templates() -> dict[str, dict[str, str]]:
    return {
        "purchase_confirmation": {
            "subject": "Your purchase of {{artwork_title}}",
            "text_body": (
                "Dear {{customer_name}},\n\n"
                "Thank you for purchasing \"{{artwork_title}}\" from {{site_name}}.\n"
                "Amount paid: {{amount}}\n"
                "Order reference: {{session_id}}\n\n"
                "The artwork will be carefully packaged and we will send tracking "
                "information once it ships.\n\n"
                "Best regards,\n{{artist_name}}"
            ),
            "html_body": (
                f"{_WRAPPER_OPEN}"
                "<h1>Thank you for your purchase!</h1>"
                "<p>Dear {{customer_name}},</p>"
                "<p>Thank you for purchasing <strong>{{artwork_title}}</strong> "
                "from {{site_name}}.</p>"
                "<p><strong>Amount paid:</strong> {{amount}}<br>"
                "<strong>Order reference:</strong> {{session_id}}</p>"
                "<p>The artwork will be carefully packaged and we will send tracking "
                "information once it ships.</p>"
                "<p>Best regards,<br>{{artist_name}}</p>"
                f"{_WRAPPER_CLOSE}"
            ),
        },
        "artist_sale": {
            "subject": "Artwork sold: {{artwork_title}}",
            "text_body": (
                "\"{{artwork_title}}\" ({{artwork_slug}}) was just purchased.\n\n"
                "Amount: {{amount}}\n"
                "Customer: {{customer_name}} <{{customer_email}}>\n"
                "Ship to:\n{{shipping_address}}\n\n"
                "Checkout session: {{session_id}}"
            ),
            "html_body": (
                f"{_WRAPPER_OPEN}"
                "<h1>Artwork sold</h1>"
                "<p><strong>{{artwork_title}}</strong> ({{artwork_slug}}) was just purchased.</p>"
                "<p><strong>Amount:</strong> {{amount}}<br>"
                "<strong>Customer:</strong> {{customer_name}} "
                '<a href="mailto:{{customer_email}}">{{customer_email}}</a></p>'
                '<p><strong>Ship to:</strong></p><p style="white-space: pre-wrap;">'
                "{{shipping_address}}</p>"
                "<p><strong>Checkout session:</strong> {{session_id}}</p>"
                f"{_WRAPPER_CLOSE}"
            ),
        },
        "contact_notification": {
            "subject": "New Contact Form Submission: {{subject}}",
            "text_body": (
                "Name: {{name}}\n"
                "Email: {{email}}\n"
                "Subject: {{subject}}\n\n"
                "{{message}}\n\n"
                "Reply to: {{email}}"
            ),
            "html_body": (
                f"{_WRAPPER_OPEN}"
                "<h1>New Contact Form Submission</h1>"
                "<p><strong>Name:</strong> {{name}}</p>"
                '<p><strong>Email:</strong> <a href="mailto:{{email}}">{{email}}</a></p>'
                "<p><strong>Subject:</strong> {{subject}}</p>"
                '<p style="white-space: pre-wrap; line-height: 1.6;">{{message}}</p>'
                f"{_WRAPPER_CLOSE}"
            ),
        },
        "contact_auto_reply": {
            "subject": "Thank you for contacting me!",
            "text_body": (
                "Dear {{name}},\n\n"
                "Thank you for contacting {{site_name}}. I have received your message "
                "and appreciate your interest in my work.\n\n"
                "Subject: {{subject}}\n{{message}}\n\n"
                "I typically respond to all inquiries within 24-48 hours during business days.\n\n"
                "Best regards,\n{{artist_name}}\n\n"
                "This is an automated confirmation. Please do not reply to this email."
            ),
            "html_body": (
                f"{_WRAPPER_OPEN}"
                "<h1>Thank you for reaching out!</h1>"
                "<p>Dear {{name}},</p>"
                "<p>Thank you for contacting {{site_name}}. I have received your message "
                "and appreciate your interest in my work.</p>"
                "<p><strong>Subject:</strong> {{subject}}</p>"
                '<p style="white-space: pre-wrap; line-height: 1.6;">{{message}}</p>'
                "<p>I typically respond to all inquiries within 24-48 hours during business "
                "days.</p>"
                "<p>Best regards,<br>{{artist_name}}</p>"
                "<p>This is an automated confirmation. Please do not reply to this email.</p>"
                f"{_WRAPPER_CLOSE}"
            ),
        },
    }


_PLACEHOLDER_PATTERN = re.compile(r"{{\s*([a-zA-Z0-9_]+)\s*}}")


def _render_template(template: str, context: dict[str, Any], *, escape: bool = False) -> str:
    if not template:
        return ""

    def _replace(match: re.Match[str]) -> str:
        key = str(match.group(1) or "").strip()
        value = context.get(key, "")
        rendered = str(value if value is not None else "")
        return html.escape(rendered) if escape else rendered

    return _PLACEHOLDER_PATTERN.sub(_replace, template)


def render_email_template(
    template_key: str,
    context: dict[str, Any] | None = None,
) -> tuple[str, str, str]:
    """Return ``(subject, text_body, html_body)``; HTML values are escaped."""
    normalized_key = str(template_key or "").strip().lower()
    if normalized_key not in EMAIL_TEMPLATE_KEYS:
        raise ValueError(f"Unknown email template: {template_key}")
    template = default_email_templates()[normalized_key]
    local_context = dict(context or {})
    subject = _render_template(template["subject"], local_context)
    text_body = _render_template(template["text_body"], local_context)
    html_body = _render_template(template["html_body"], local_context, escape=True)
    return subject, text_body, html_body


def format_usd(amount_minor: int | None) -> str:
    if amount_minor is None:
        return "n/a"
    return f"${amount_minor / 100:,.2f}"
