"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from gallery.config import Settings, get_settings

from api.errors import register_error_handlers
from api.middleware.rate_limit import RateLimitMiddleware
from api.routers import artworks, checkout, contact, content_webhook, health, stripe_webhook
from api.services.container import ServiceContainer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        yield
    finally:
        redis_client = getattr(app.state, "_rate_limit_redis", None)
        if redis_client is not None:
            await redis_client.aclose()
        await app.state.services.aclose()


def create_app(
    settings: Settings | None = None,
    services: ServiceContainer | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    services = services or ServiceContainer.from_settings(settings)
    services.warn_missing_configuration()

    app = FastAPI(title="Gallery Storefront API", version="0.1.0", lifespan=lifespan)
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.public_base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RateLimitMiddleware)
    register_error_handlers(app)
    app.include_router(health.router, tags=["health"])
    app.include_router(artworks.router, tags=["content"])
    app.include_router(checkout.router, tags=["checkout"])
    app.include_router(contact.router, tags=["contact"])
    app.include_router(stripe_webhook.router, tags=["webhooks"])
    app.include_router(content_webhook.router, tags=["webhooks"])
    return app


app = create_app()
