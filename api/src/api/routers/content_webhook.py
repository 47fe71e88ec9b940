"""CMS content webhook: invalidate cached site paths."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from gallery.config import Settings

from api.dependencies import get_app_settings, get_page_cache
from api.errors import AuthError
from api.services.page_cache import PageCache
from api.services.revalidation import (
    ContentChange,
    extract_webhook_credential,
    is_authorized,
    paths_for_change,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/webhook/content")
async def content_webhook(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    page_cache: PageCache = Depends(get_page_cache),
):
    authorization = request.headers.get("authorization")
    signature = request.headers.get("sanity-webhook-signature")
    presented = extract_webhook_credential(authorization, signature)
    if not is_authorized(settings.sanity_webhook_secret, presented):
        logger.warning(
            "Unauthorized content webhook: auth_header=%s signature_header=%s",
            bool(authorization),
            bool(signature),
        )
        raise AuthError("Unauthorized")

    try:
        body = await request.json()
        change = ContentChange.model_validate(body)
        logger.info(
            "Content webhook received: type=%s id=%s operation=%s",
            change.type or None,
            change.id or None,
            change.operation,
        )
        paths = await page_cache.invalidate(paths_for_change(change))
    except Exception:
        logger.exception("Content webhook processing failed")
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})

    return {
        "message": "Revalidation triggered successfully",
        "documentType": change.type,
        "paths": paths,
    }
