"""Tests for checkout session creation."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_checkout_creates_session_for_available_artwork(client: AsyncClient, payments):
    response = await client.post(
        "/checkout",
        json={"title": "Sunset", "price": 250, "slug": "sunset"},
    )

    assert response.status_code == 200
    assert response.json() == {"url": "https://checkout.stripe.test/c/pay/cs_test_1"}
    assert len(payments.created) == 1
    params = payments.created[0]
    line_item = params["line_items"][0]
    assert line_item["quantity"] == 1
    assert line_item["price_data"]["currency"] == "usd"
    assert line_item["price_data"]["unit_amount"] == 25000
    assert line_item["price_data"]["product_data"]["name"] == "Sunset"
    assert params["metadata"] == {"artwork_slug": "sunset", "artwork_title": "Sunset"}
    assert params["mode"] == "payment"


@pytest.mark.asyncio
async def test_checkout_redirects_embed_session_placeholder_and_detail_path(
    client: AsyncClient, payments
):
    await client.post("/checkout", json={"title": "Sunset", "price": 250, "slug": "sunset"})

    params = payments.created[0]
    assert params["success_url"] == (
        "https://gallery.test/purchase/success?session_id={CHECKOUT_SESSION_ID}"
    )
    assert params["cancel_url"] == "https://gallery.test/art/sunset"
    assert params["shipping_address_collection"] == {"allowed_countries": ["US", "CA"]}


@pytest.mark.asyncio
async def test_checkout_rounds_fractional_cents(client: AsyncClient, payments):
    response = await client.post(
        "/checkout",
        json={"title": "Sunset", "price": 19.995, "slug": "sunset"},
    )

    assert response.status_code == 200
    assert payments.created[0]["line_items"][0]["price_data"]["unit_amount"] == 2000


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"price": 250, "slug": "sunset"},
        {"title": "Sunset", "slug": "sunset"},
        {"title": "Sunset", "price": 250},
        {"title": "", "price": 250, "slug": "sunset"},
        {"title": "Sunset", "price": 0, "slug": "sunset"},
    ],
)
async def test_checkout_rejects_missing_fields(client: AsyncClient, payments, cms, body):
    response = await client.post("/checkout", json=body)

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"
    assert payments.created == []
    assert cms.lookups == []


@pytest.mark.asyncio
async def test_checkout_rejects_non_numeric_price(client: AsyncClient, payments):
    response = await client.post(
        "/checkout",
        json={"title": "Sunset", "price": "lots", "slug": "sunset"},
    )

    assert response.status_code == 400
    assert "price" in response.json()["error"]
    assert payments.created == []


@pytest.mark.asyncio
@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
async def test_checkout_rejects_non_finite_price(client: AsyncClient, payments, cms, literal):
    response = await client.post(
        "/checkout",
        content=f'{{"title": "Sunset", "price": {literal}, "slug": "sunset"}}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Price must be a positive number"}
    assert payments.created == []
    assert cms.lookups == []


@pytest.mark.asyncio
async def test_checkout_rejects_negative_price(client: AsyncClient, payments, cms):
    response = await client.post(
        "/checkout",
        json={"title": "Sunset", "price": -250, "slug": "sunset"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Price must be a positive number"}
    assert cms.lookups == []


@pytest.mark.asyncio
async def test_checkout_accepts_document_with_null_optional_fields(
    client: AsyncClient, payments, cms
):
    cms.add(slug="untitled", title=None, featured=None, images=None)

    response = await client.post(
        "/checkout",
        json={"title": "Untitled", "price": 90, "slug": "untitled"},
    )

    assert response.status_code == 200
    assert len(payments.created) == 1


@pytest.mark.asyncio
async def test_checkout_malformed_document_is_upstream_error(client: AsyncClient, payments, cms):
    cms.add(slug="broken", year="circa nineteen-ninety")

    response = await client.post(
        "/checkout",
        json={"title": "Broken", "price": 90, "slug": "broken"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Unable to verify artwork availability"}
    assert payments.created == []


@pytest.mark.asyncio
async def test_checkout_unknown_slug_returns_404(client: AsyncClient, payments):
    response = await client.post(
        "/checkout",
        json={"title": "Ghost", "price": 100, "slug": "ghost"},
    )

    assert response.status_code == 404
    assert payments.created == []


@pytest.mark.asyncio
@pytest.mark.parametrize("slug", ["harbor", "study", "draft"])
async def test_checkout_unavailable_artwork_returns_409(client: AsyncClient, payments, slug):
    response = await client.post(
        "/checkout",
        json={"title": slug.title(), "price": 100, "slug": slug},
    )

    assert response.status_code == 409
    assert "not available" in response.json()["error"]
    assert payments.created == []


@pytest.mark.asyncio
async def test_checkout_surfaces_provider_error_in_development(client: AsyncClient, payments):
    payments.fail_with = RuntimeError("Invalid API Key provided")

    response = await client.post(
        "/checkout",
        json={"title": "Sunset", "price": 250, "slug": "sunset"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Invalid API Key provided"}


@pytest.mark.asyncio
async def test_checkout_hides_provider_error_in_production(client: AsyncClient, payments, settings):
    settings.environment = "production"
    payments.fail_with = RuntimeError("Invalid API Key provided: sk_live_****")

    response = await client.post(
        "/checkout",
        json={"title": "Sunset", "price": 250, "slug": "sunset"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create checkout session"}


@pytest.mark.asyncio
async def test_checkout_cms_outage_is_upstream_error(client: AsyncClient, payments, cms):
    cms.fail_reads = True

    response = await client.post(
        "/checkout",
        json={"title": "Sunset", "price": 250, "slug": "sunset"},
    )

    assert response.status_code == 500
    assert payments.created == []
