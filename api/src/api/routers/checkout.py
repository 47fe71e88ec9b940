"""Artwork checkout session creation."""

from __future__ import annotations

import logging
import math

from fastapi import APIRouter, Depends
from gallery.config import Settings
from gallery.services.sanity_client import SanityClient, SanityError
from pydantic import BaseModel

from api.dependencies import get_app_settings, get_cms, get_payments
from api.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from api.services.stripe_service import (
    StripeGateway,
    build_checkout_session_params,
    describe_stripe_error,
)

logger = logging.getLogger(__name__)
router = APIRouter()


class CheckoutRequest(BaseModel):
    title: str | None = None
    price: float | None = None
    slug: str | None = None


@router.post("/checkout")
async def create_checkout(
    req: CheckoutRequest,
    settings: Settings = Depends(get_app_settings),
    cms: SanityClient = Depends(get_cms),
    payments: StripeGateway = Depends(get_payments),
):
    """Create a hosted Stripe Checkout session for one available artwork."""
    title = (req.title or "").strip()
    slug = (req.slug or "").strip()
    logger.info("Checkout request received: slug=%s price=%s", slug or None, req.price)

    if not title or not req.price or not slug:
        logger.warning(
            "Checkout missing fields: title=%s price=%s slug=%s",
            bool(title),
            bool(req.price),
            bool(slug),
        )
        raise ValidationError("Missing required fields")
    if not math.isfinite(req.price) or req.price < 0:
        raise ValidationError("Price must be a positive number")

    try:
        artwork = await cms.get_artwork_by_slug(slug, fresh=True)
    except SanityError as exc:
        logger.error("Artwork lookup failed for %s: %s", slug, exc)
        raise UpstreamError("Unable to verify artwork availability") from exc
    if artwork is None:
        raise NotFoundError("Artwork not found")
    if not artwork.is_available:
        logger.info("Checkout rejected for %s: status=%s", slug, artwork.status.value)
        raise ConflictError(f"Artwork is not available for purchase ({artwork.status.value})")

    params = build_checkout_session_params(
        title=title,
        price=req.price,
        slug=slug,
        base_url=settings.public_base_url,
        artist_name=settings.artist_name,
        allowed_countries=settings.allowed_shipping_countries,
    )
    try:
        session = await payments.create_checkout_session(params)
    except Exception as exc:
        logger.exception("Stripe checkout error for %s", slug)
        if settings.is_production:
            raise UpstreamError("Failed to create checkout session") from exc
        raise UpstreamError(describe_stripe_error(exc)) from exc

    logger.info("Stripe session %s created for %s", session["id"], slug)
    return {"url": session["url"]}
