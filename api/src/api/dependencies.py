"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import Request
from gallery.config import Settings
from gallery.services.sanity_client import SanityClient

from api.services.container import ServiceContainer
from api.services.email_service import Mailer
from api.services.page_cache import PageCache
from api.services.stripe_service import StripeGateway


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_app_settings(request: Request) -> Settings:
    return get_container(request).settings


def get_payments(request: Request) -> StripeGateway:
    return get_container(request).payments


def get_cms(request: Request) -> SanityClient:
    return get_container(request).cms


def get_mailer(request: Request) -> Mailer:
    return get_container(request).mailer


def get_page_cache(request: Request) -> PageCache:
    return get_container(request).page_cache
