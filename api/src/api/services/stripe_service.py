"""Stripe SDK wrapper for artwork checkout and webhook verification."""

from __future__ import annotations

import asyncio
import json
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe
from gallery.schemas.payments import PaymentEvent, parse_payment_event

logger = logging.getLogger(__name__)

CHECKOUT_CURRENCY = "usd"
SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


class WebhookConfigurationError(RuntimeError):
    """Raised when webhook verification is attempted without a signing secret."""


class InvalidWebhookPayload(ValueError):
    """Raised when a correctly signed body is not a usable event envelope."""


def to_minor_units(price: float | int | str | Decimal) -> int:
    """Convert a major-unit price to cents, rounding half up.

    Fractional cents are rounded rather than rejected: 19.995 becomes 2000.
    """
    amount = Decimal(str(price)) * 100
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_checkout_session_params(
    *,
    title: str,
    price: float | int | str | Decimal,
    slug: str,
    base_url: str,
    artist_name: str,
    allowed_countries: list[str] | None = None,
) -> dict[str, Any]:
    base = base_url.rstrip("/")
    params: dict[str, Any] = {
        "payment_method_types": ["card"],
        "line_items": [
            {
                "price_data": {
                    "currency": CHECKOUT_CURRENCY,
                    "product_data": {
                        "name": title,
                        "description": f"Original artwork by {artist_name}",
                        "metadata": {"artwork_slug": slug},
                    },
                    "unit_amount": to_minor_units(price),
                },
                "quantity": 1,
            }
        ],
        "mode": "payment",
        "success_url": f"{base}/purchase/success?session_id={SESSION_ID_PLACEHOLDER}",
        "cancel_url": f"{base}/art/{slug}",
        "metadata": {"artwork_slug": slug, "artwork_title": title},
    }
    if allowed_countries:
        params["shipping_address_collection"] = {"allowed_countries": list(allowed_countries)}
    return params


def describe_stripe_error(exc: Exception) -> str:
    """Return the most specific message Stripe offers for ``exc``."""
    user_message = getattr(exc, "user_message", None)
    if user_message:
        return str(user_message)
    message = str(exc).strip()
    return message or exc.__class__.__name__


class StripeGateway:
    """Payment provider access with an explicit key passed on every call."""

    def __init__(
        self,
        *,
        secret_key: str,
        webhook_secret: str,
        webhook_tolerance: int = 300,
    ) -> None:
        self._secret_key = secret_key.strip()
        self._webhook_secret = webhook_secret.strip()
        self._webhook_tolerance = webhook_tolerance

    @property
    def is_configured(self) -> bool:
        return bool(self._secret_key)

    @property
    def webhook_is_configured(self) -> bool:
        return bool(self._webhook_secret)

    async def create_checkout_session(self, params: dict[str, Any]) -> dict[str, str]:
        """Create a hosted Checkout session and return its id and URL."""
        if not self._secret_key:
            raise RuntimeError("Stripe is not configured")
        session = await asyncio.to_thread(
            stripe.checkout.Session.create,
            api_key=self._secret_key,
            **params,
        )
        return {"id": str(session["id"]), "url": str(session["url"])}

    def verify_event(self, payload: bytes, sig_header: str) -> PaymentEvent:
        """Verify the Stripe-Signature header and return the tagged event.

        Raises ``stripe.SignatureVerificationError`` on a bad or missing
        signature and ``InvalidWebhookPayload`` on a signed but unusable body.
        """
        if not self._webhook_secret:
            raise WebhookConfigurationError("Stripe webhook secret is not configured")
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidWebhookPayload("Webhook body is not UTF-8") from exc

        stripe.WebhookSignature.verify_header(
            body,
            sig_header,
            self._webhook_secret,
            self._webhook_tolerance,
        )

        try:
            envelope = json.loads(body)
            return parse_payment_event(envelope)
        except ValueError as exc:
            raise InvalidWebhookPayload(str(exc)) from exc
