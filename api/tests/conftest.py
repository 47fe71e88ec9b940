"""API test configuration."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Any

import pytest
from api.main import create_app
from api.services.container import ServiceContainer
from api.services.email_service import Mailer, SmtpConfig
from api.services.page_cache import PageCache
from api.services.stripe_service import StripeGateway
from gallery.config import Settings
from gallery.schemas.artwork import Artwork
from gallery.services.sanity_client import SanityClient, SanityError, _to_artwork
from httpx import ASGITransport, AsyncClient

WEBHOOK_SECRET = "whsec_test_secret"
CONTENT_SECRET = "sanity-test-secret"
ARTIST_EMAIL = "artist@example.com"


class FakeCms(SanityClient):
    """In-memory stand-in for the Content Lake keyed by slug."""

    def __init__(self, documents: list[dict[str, Any]] | None = None) -> None:
        super().__init__(project_id="test", dataset="production", api_version="2025-08-27")
        self.documents: dict[str, dict[str, Any]] = {}
        for doc in documents or []:
            self.add(**doc)
        self.patches: list[tuple[str, dict[str, Any]]] = []
        self.lookups: list[str] = []
        self.fail_reads = False
        self.fail_writes = False

    @property
    def can_write(self) -> bool:
        return True

    def add(self, **doc: Any) -> None:
        doc.setdefault("_id", f"artwork-{doc['slug']}")
        doc.setdefault("title", doc["slug"].title())
        doc.setdefault("status", "Available")
        self.documents[doc["slug"]] = doc

    async def get_artwork_by_slug(self, slug: str, *, fresh: bool = True) -> Artwork | None:
        self.lookups.append(slug)
        if self.fail_reads:
            raise SanityError("Sanity request failed (503): unavailable", status_code=503)
        doc = self.documents.get(slug)
        return _to_artwork(doc) if doc else None

    async def list_artworks(self) -> list[Artwork]:
        if self.fail_reads:
            raise SanityError("Sanity request failed (503): unavailable", status_code=503)
        return [_to_artwork(doc) for doc in self.documents.values()]

    async def list_featured_artworks(self) -> list[Artwork]:
        return [
            _to_artwork(doc)
            for doc in self.documents.values()
            if doc.get("featured") and doc.get("status") != "Hidden"
        ]

    async def patch(self, document_id: str, set_fields: dict[str, Any]) -> dict[str, Any]:
        if self.fail_writes:
            raise SanityError("Sanity request failed (403): insufficient permissions")
        self.patches.append((document_id, dict(set_fields)))
        for doc in self.documents.values():
            if doc["_id"] == document_id:
                doc.update(set_fields)
        return {"results": [{"id": document_id, "operation": "update"}]}


class RecordingGateway(StripeGateway):
    """Real webhook verification, recorded checkout session creation."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.created: list[dict[str, Any]] = []
        self.fail_with: Exception | None = None

    async def create_checkout_session(self, params: dict[str, Any]) -> dict[str, str]:
        if self.fail_with is not None:
            raise self.fail_with
        self.created.append(params)
        session_id = f"cs_test_{len(self.created)}"
        return {"id": session_id, "url": f"https://checkout.stripe.test/c/pay/{session_id}"}


class RecordingMailer(Mailer):
    def __init__(self, config: SmtpConfig, *, artist_email: str = "") -> None:
        super().__init__(config, artist_email=artist_email)
        self.sent: list[dict[str, Any]] = []
        self.fail_for: set[str] = set()

    async def send(self, **kwargs: Any) -> None:
        if not self.is_configured:
            raise RuntimeError("SMTP is not configured")
        if kwargs["to_email"] in self.fail_for:
            raise ConnectionRefusedError(f"SMTP refused {kwargs['to_email']}")
        self.sent.append(kwargs)


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, Any] = {}
        self.deleted: list[str] = []
        self.fail = False

    async def get(self, key: str) -> Any:
        if self.fail:
            raise ConnectionError("redis down")
        return self.store.get(key)

    async def set(self, key: str, value: Any, ex: int | None = None) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.store[key] = value

    async def delete(self, *keys: str) -> int:
        if self.fail:
            raise ConnectionError("redis down")
        self.deleted.extend(keys)
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def aclose(self) -> None:
        return None


def smtp_config(**overrides: Any) -> SmtpConfig:
    values = {
        "host": "smtp.example.com",
        "port": 587,
        "username": "mailer@example.com",
        "password": "app-password",
        "from_email": "mailer@example.com",
        "from_name": "Vicki Danielson Art",
    }
    values.update(overrides)
    return SmtpConfig(**values)


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def completed_event(
    *,
    slug: str | None = "sunset",
    title: str = "Sunset",
    email: str | None = "buyer@example.com",
    session_id: str = "cs_test_1",
    event_id: str = "evt_test_1",
) -> bytes:
    metadata: dict[str, str] = {"artwork_title": title}
    if slug is not None:
        metadata["artwork_slug"] = slug
    session = {
        "id": session_id,
        "object": "checkout.session",
        "amount_total": 25000,
        "currency": "usd",
        "customer_details": {"email": email, "name": "Ada Buyer"},
        "collected_information": {
            "shipping_details": {
                "name": "Ada Buyer",
                "address": {
                    "line1": "1 Lake Ave",
                    "city": "Duluth",
                    "state": "MN",
                    "postal_code": "55802",
                    "country": "US",
                },
            }
        },
        "metadata": metadata,
    }
    envelope = {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "data": {"object": session},
    }
    return json.dumps(envelope).encode("utf-8")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        PUBLIC_BASE_URL="https://gallery.test",
        STRIPE_SECRET_KEY="sk_test_123",
        STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET,
        SANITY_PROJECT_ID="test",
        SANITY_API_TOKEN="sk-sanity-write",
        SANITY_WEBHOOK_SECRET=CONTENT_SECRET,
        ARTIST_EMAIL=ARTIST_EMAIL,
        RATE_LIMIT_PER_HOUR=0,
    )


@pytest.fixture
def cms() -> FakeCms:
    return FakeCms(
        [
            {"slug": "sunset", "title": "Sunset", "price": 250, "status": "Available", "featured": True},
            {"slug": "harbor", "title": "Harbor", "price": 400, "status": "Sold"},
            {"slug": "study", "title": "Study", "price": 90, "status": "Unavailable"},
            {"slug": "draft", "title": "Draft", "price": 50, "status": "Hidden"},
        ]
    )


@pytest.fixture
def payments() -> RecordingGateway:
    return RecordingGateway(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer(smtp_config(), artist_email=ARTIST_EMAIL)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def page_cache(fake_redis: FakeRedis) -> PageCache:
    return PageCache(fake_redis, ttl_seconds=60)


@pytest.fixture
def services(settings, cms, payments, mailer, page_cache) -> ServiceContainer:
    return ServiceContainer(
        settings=settings,
        payments=payments,
        cms=cms,
        mailer=mailer,
        page_cache=page_cache,
    )


@pytest.fixture
def app(settings, services):
    return create_app(settings, services)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
