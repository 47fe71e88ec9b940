"""Process-wide service instances built from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from gallery.config import Settings
from gallery.services.sanity_client import SanityClient

from api.services.email_service import Mailer, SmtpConfig
from api.services.page_cache import PageCache
from api.services.stripe_service import StripeGateway

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Clients constructed once per process and handed to request handlers."""

    settings: Settings
    payments: StripeGateway
    cms: SanityClient
    mailer: Mailer
    page_cache: PageCache

    @classmethod
    def from_settings(cls, settings: Settings) -> ServiceContainer:
        return cls(
            settings=settings,
            payments=StripeGateway(
                secret_key=settings.stripe_secret_key,
                webhook_secret=settings.stripe_webhook_secret,
                webhook_tolerance=settings.stripe_webhook_tolerance,
            ),
            cms=SanityClient(
                project_id=settings.sanity_project_id,
                dataset=settings.sanity_dataset,
                api_version=settings.sanity_api_version,
                token=settings.sanity_api_token,
                use_cdn=settings.sanity_use_cdn,
            ),
            mailer=Mailer(SmtpConfig.from_settings(settings), artist_email=settings.artist_email),
            page_cache=PageCache.from_url(
                settings.redis_url,
                ttl_seconds=settings.page_cache_ttl_seconds,
            ),
        )

    def warn_missing_configuration(self) -> None:
        if not self.payments.is_configured:
            logger.warning("STRIPE_SECRET_KEY is empty; checkout will fail")
        if not self.payments.webhook_is_configured:
            logger.warning("STRIPE_WEBHOOK_SECRET is empty; payment webhooks will fail")
        if not self.cms.is_configured:
            logger.warning("SANITY_PROJECT_ID is empty; artwork lookups will fail")
        elif not self.cms.can_write:
            logger.warning("SANITY_API_TOKEN is empty; sold artworks cannot be marked")
        if not self.mailer.is_configured:
            logger.warning("SMTP credentials are incomplete; emails will be skipped")
        if not self.settings.sanity_webhook_secret:
            logger.warning("SANITY_WEBHOOK_SECRET is empty; content webhook is unauthenticated")

    async def aclose(self) -> None:
        await self.cms.aclose()
        await self.page_cache.aclose()
