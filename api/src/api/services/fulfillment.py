"""Post-payment fulfillment: mark the artwork sold and send both emails.

The three tasks run concurrently and settle independently. A failure in one
never cancels the others; every outcome is reported as a ``TaskResult`` so
callers (and tests) can see exactly what happened.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from gallery.schemas.artwork import ArtworkStatus
from gallery.schemas.payments import CheckoutSession
from gallery.services.sanity_client import SanityClient

from api.services.email_service import Mailer
from api.services.email_template_service import format_usd, render_email_template

logger = logging.getLogger(__name__)

MARK_SOLD = "mark_sold"
NOTIFY_CUSTOMER = "notify_customer"
NOTIFY_ARTIST = "notify_artist"


class TaskStatus(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class TaskResult:
    name: str
    status: TaskStatus
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status != TaskStatus.FAILED


@dataclass(frozen=True)
class FulfillmentReport:
    session_id: str
    results: tuple[TaskResult, ...] = field(default_factory=tuple)

    def get(self, name: str) -> TaskResult:
        for result in self.results:
            if result.name == name:
                return result
        raise KeyError(name)

    @property
    def failed(self) -> list[TaskResult]:
        return [result for result in self.results if result.status == TaskStatus.FAILED]


@dataclass(frozen=True)
class SiteIdentity:
    site_name: str
    artist_name: str


def _email_context(session: CheckoutSession, site: SiteIdentity) -> dict[str, str]:
    address = ""
    if session.shipping_details and session.shipping_details.address:
        address = "\n".join(session.shipping_details.address.lines())
    return {
        "site_name": site.site_name,
        "artist_name": site.artist_name,
        "artwork_title": session.artwork_title or "your artwork",
        "artwork_slug": session.artwork_slug or "unknown",
        "amount": format_usd(session.amount_total),
        "session_id": session.id,
        "customer_name": session.buyer_name or "Collector",
        "customer_email": session.buyer_email or "not provided",
        "shipping_address": address or "not provided",
    }


async def mark_artwork_sold(
    cms: SanityClient,
    slug: str,
    *,
    now: datetime | None = None,
) -> TaskResult:
    """Patch the artwork to Sold. Repeated calls converge on the same state."""
    artwork = await cms.get_artwork_by_slug(slug, fresh=True)
    if artwork is None:
        logger.warning("Cannot mark sold: no artwork with slug %s", slug)
        return TaskResult(MARK_SOLD, TaskStatus.SKIPPED, f"artwork {slug} not found")

    sold_at = (now or datetime.now(UTC)).isoformat()
    await cms.patch(artwork.id, {"status": ArtworkStatus.SOLD.value, "soldAt": sold_at})
    logger.info("Artwork %s (%s) marked sold", slug, artwork.id)
    return TaskResult(MARK_SOLD, TaskStatus.SUCCEEDED, artwork.id)


async def notify_customer(
    mailer: Mailer,
    session: CheckoutSession,
    site: SiteIdentity,
) -> TaskResult:
    if not mailer.is_configured:
        return TaskResult(NOTIFY_CUSTOMER, TaskStatus.SKIPPED, "mail transport not configured")
    recipient = session.buyer_email
    if not recipient:
        return TaskResult(NOTIFY_CUSTOMER, TaskStatus.SKIPPED, "no customer email")

    subject, text_body, html_body = render_email_template(
        "purchase_confirmation", _email_context(session, site)
    )
    await mailer.send(
        to_email=recipient,
        subject=subject,
        text_body=text_body,
        html_body=html_body,
    )
    return TaskResult(NOTIFY_CUSTOMER, TaskStatus.SUCCEEDED, recipient)


async def notify_artist(
    mailer: Mailer,
    session: CheckoutSession,
    site: SiteIdentity,
) -> TaskResult:
    if not mailer.is_configured or not mailer.artist_email:
        return TaskResult(NOTIFY_ARTIST, TaskStatus.SKIPPED, "artist notification not configured")

    subject, text_body, html_body = render_email_template(
        "artist_sale", _email_context(session, site)
    )
    await mailer.send(
        to_email=mailer.artist_email,
        subject=subject,
        text_body=text_body,
        html_body=html_body,
        reply_to=session.buyer_email or "",
        from_name=f"{site.site_name} Website",
    )
    return TaskResult(NOTIFY_ARTIST, TaskStatus.SUCCEEDED, mailer.artist_email)


async def _skip(name: str, detail: str) -> TaskResult:
    return TaskResult(name, TaskStatus.SKIPPED, detail)


async def fulfill_checkout(
    session: CheckoutSession,
    *,
    cms: SanityClient,
    mailer: Mailer,
    site: SiteIdentity,
) -> FulfillmentReport:
    """Run the three fulfillment tasks concurrently and collect every outcome."""
    slug = session.artwork_slug
    names = (MARK_SOLD, NOTIFY_CUSTOMER, NOTIFY_ARTIST)
    outcomes = await asyncio.gather(
        mark_artwork_sold(cms, slug) if slug else _skip(MARK_SOLD, "no artwork_slug metadata"),
        notify_customer(mailer, session, site),
        notify_artist(mailer, session, site),
        return_exceptions=True,
    )

    results: list[TaskResult] = []
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, TaskResult):
            results.append(outcome)
        elif isinstance(outcome, Exception):
            logger.error(
                "Fulfillment task %s failed for session %s",
                name,
                session.id,
                exc_info=outcome,
            )
            detail = str(outcome) or type(outcome).__name__
            results.append(TaskResult(name, TaskStatus.FAILED, detail))
        else:
            raise outcome

    report = FulfillmentReport(session_id=session.id, results=tuple(results))
    logger.info(
        "Fulfillment for session %s: %s",
        session.id,
        ", ".join(f"{result.name}={result.status.value}" for result in report.results),
    )
    return report
