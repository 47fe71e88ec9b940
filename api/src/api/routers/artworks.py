"""Public artwork reads served through the page cache."""

from __future__ import annotations

import logging
from collections import Counter

from fastapi import APIRouter, Depends
from gallery.schemas.artwork import ArtworkStatus
from gallery.services.sanity_client import SanityClient, SanityError

from api.dependencies import get_cms, get_page_cache
from api.errors import NotFoundError, UpstreamError
from api.services.page_cache import PageCache
from api.services.revalidation import HOME_PATH, LISTING_PATH, detail_path

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/artworks/featured")
async def featured_artworks(
    cms: SanityClient = Depends(get_cms),
    page_cache: PageCache = Depends(get_page_cache),
):
    cached = await page_cache.get(HOME_PATH)
    if cached is not None:
        return cached
    try:
        artworks = await cms.list_featured_artworks()
    except SanityError as exc:
        logger.error("Featured artwork query failed: %s", exc)
        raise UpstreamError("Content is temporarily unavailable") from exc
    payload = {"artworks": [artwork.public_payload() for artwork in artworks]}
    await page_cache.set(HOME_PATH, payload)
    return payload


@router.get("/artworks")
async def list_artworks(
    cms: SanityClient = Depends(get_cms),
    page_cache: PageCache = Depends(get_page_cache),
):
    """Gallery listing; Hidden works are omitted but still counted in the total."""
    cached = await page_cache.get(LISTING_PATH)
    if cached is not None:
        return cached
    try:
        artworks = await cms.list_artworks()
    except SanityError as exc:
        logger.error("Gallery query failed: %s", exc)
        raise UpstreamError("Content is temporarily unavailable") from exc

    counts = Counter(artwork.status for artwork in artworks)
    payload = {
        "artworks": [
            artwork.public_payload()
            for artwork in artworks
            if artwork.status != ArtworkStatus.HIDDEN
        ],
        "counts": {
            "available": counts[ArtworkStatus.AVAILABLE],
            "unavailable": counts[ArtworkStatus.UNAVAILABLE],
            "sold": counts[ArtworkStatus.SOLD],
            "total": len(artworks),
        },
    }
    await page_cache.set(LISTING_PATH, payload)
    return payload


@router.get("/artworks/{slug}")
async def get_artwork(
    slug: str,
    cms: SanityClient = Depends(get_cms),
    page_cache: PageCache = Depends(get_page_cache),
):
    path = detail_path(slug)
    cached = await page_cache.get(path)
    if cached is not None:
        return cached
    try:
        artwork = await cms.get_artwork_by_slug(slug, fresh=False)
    except SanityError as exc:
        logger.error("Artwork query failed for %s: %s", slug, exc)
        raise UpstreamError("Content is temporarily unavailable") from exc
    if artwork is None:
        raise NotFoundError("Artwork not found")
    payload = artwork.public_payload()
    await page_cache.set(path, payload)
    return payload
