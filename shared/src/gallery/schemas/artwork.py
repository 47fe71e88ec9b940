"""Pydantic schemas for artwork documents held in the CMS."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArtworkStatus(str, Enum):
    AVAILABLE = "Available"
    UNAVAILABLE = "Unavailable"
    SOLD = "Sold"
    HIDDEN = "Hidden"


class Artwork(BaseModel):
    """Artwork document as projected by the artwork queries."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    title: str = ""
    slug: str | None = None
    medium: str | None = None
    dimensions: str | None = None
    year: int | None = None
    price: float | None = None
    status: ArtworkStatus = ArtworkStatus.AVAILABLE
    featured: bool = False
    sold_at: datetime | None = Field(default=None, alias="soldAt")
    images: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("slug", mode="before")
    @classmethod
    def _flatten_slug(cls, value: Any) -> Any:
        # Raw documents carry {"_type": "slug", "current": "..."}
        if isinstance(value, dict):
            return value.get("current")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> Any:
        # Documents created before the field existed have no status
        if value is None or value == "":
            return ArtworkStatus.AVAILABLE
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> Any:
        return value or ""

    @field_validator("featured", mode="before")
    @classmethod
    def _default_featured(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("images", mode="before")
    @classmethod
    def _default_images(cls, value: Any) -> Any:
        return value or []

    @property
    def is_available(self) -> bool:
        return self.status == ArtworkStatus.AVAILABLE

    def public_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "medium": self.medium,
            "dimensions": self.dimensions,
            "year": self.year,
            "price": self.price,
            "status": self.status.value,
            "featured": self.featured,
            "sold_at": self.sold_at.isoformat() if self.sold_at else None,
            "images": self.images,
        }
