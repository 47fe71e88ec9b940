"""Stripe webhook handler."""

from __future__ import annotations

import logging

import stripe
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from gallery.config import Settings
from gallery.schemas.payments import (
    CheckoutSessionCompleted,
    IgnoredEvent,
    PaymentEvent,
    PaymentIntentFailed,
)
from gallery.services.sanity_client import SanityClient

from api.dependencies import get_app_settings, get_cms, get_mailer, get_payments
from api.services.email_service import Mailer
from api.services.fulfillment import SiteIdentity, fulfill_checkout
from api.services.stripe_service import InvalidWebhookPayload, StripeGateway

logger = logging.getLogger(__name__)
router = APIRouter()


async def _dispatch(
    event: PaymentEvent,
    *,
    cms: SanityClient,
    mailer: Mailer,
    settings: Settings,
) -> None:
    if isinstance(event, CheckoutSessionCompleted):
        session = event.session
        logger.info(
            "Payment successful: session=%s slug=%s amount=%s",
            session.id,
            session.artwork_slug,
            session.amount_total,
        )
        if not session.artwork_slug:
            logger.warning("Session %s has no artwork_slug metadata; status not updated", session.id)
        report = await fulfill_checkout(
            session,
            cms=cms,
            mailer=mailer,
            site=SiteIdentity(site_name=settings.site_name, artist_name=settings.artist_name),
        )
        for failed in report.failed:
            logger.error(
                "Fulfillment task %s failed for session %s: %s",
                failed.name,
                session.id,
                failed.detail,
            )
    elif isinstance(event, PaymentIntentFailed):
        logger.info(
            "Payment failed: %s (%s)",
            event.payment_intent.id,
            event.payment_intent.failure_message or "no reason given",
        )
    elif isinstance(event, IgnoredEvent):
        logger.info("Stripe webhook %s acknowledged without action", event.type)
    else:
        logger.info("Unhandled event type %s", event.type)


@router.post("/webhook/payment")
async def stripe_webhook(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    payments: StripeGateway = Depends(get_payments),
    cms: SanityClient = Depends(get_cms),
    mailer: Mailer = Depends(get_mailer),
):
    try:
        payload = await request.body()
        sig_header = request.headers.get("stripe-signature", "")

        try:
            event = payments.verify_event(payload, sig_header)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Webhook signature verification failed: %s", exc)
            return JSONResponse(status_code=400, content={"error": "Invalid signature"})
        except InvalidWebhookPayload as exc:
            logger.warning("Webhook payload rejected: %s", exc)
            return JSONResponse(status_code=400, content={"error": "Invalid webhook payload"})

        logger.info("Stripe webhook: %s (%s)", event.type, event.id)
        await _dispatch(event, cms=cms, mailer=mailer, settings=settings)
    except Exception:
        logger.exception("Webhook error")
        return JSONResponse(status_code=500, content={"error": "Webhook handler failed"})

    return {"received": True}
