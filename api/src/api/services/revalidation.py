"""CMS change notifications: credential check and path dispatch."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

HOME_PATH = "/"
LISTING_PATH = "/artwork"


def detail_path(slug: str) -> str:
    return f"/art/{slug}"


class ContentChange(BaseModel):
    """Webhook body sent by the CMS when a document is created or updated."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = Field(default="", alias="_type")
    id: str = Field(default="", alias="_id")
    rev: str | None = Field(default=None, alias="_rev")
    slug: str | None = None

    @field_validator("slug", mode="before")
    @classmethod
    def _flatten_slug(cls, value: Any) -> Any:
        if isinstance(value, dict):
            value = value.get("current")
        if value is None:
            return None
        return str(value).strip() or None

    @property
    def operation(self) -> str:
        return "update" if self.rev else "create"


def extract_webhook_credential(
    authorization: str | None,
    sanity_signature: str | None,
) -> str | None:
    """Pick the presented secret: bearer token, raw header, then signature header."""
    if authorization:
        if authorization.startswith("Bearer "):
            return authorization[len("Bearer ") :]
        return authorization
    if sanity_signature:
        return sanity_signature
    return None


def is_authorized(expected_secret: str, presented: str | None) -> bool:
    """Exact string comparison; an unset secret leaves the endpoint open."""
    if not expected_secret:
        return True
    return presented is not None and presented == expected_secret


def paths_for_change(change: ContentChange) -> list[str]:
    if change.type == "artwork":
        paths = [HOME_PATH, LISTING_PATH]
        if change.slug:
            paths.append(detail_path(change.slug))
        return paths
    if change.type == "homepage":
        return [HOME_PATH]
    return [HOME_PATH, LISTING_PATH]
