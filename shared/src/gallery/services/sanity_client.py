"""Sanity Content Lake client for artwork reads and status patches."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from gallery.schemas.artwork import Artwork

logger = logging.getLogger(__name__)

ARTWORK_FIELDS = """{
  _id,
  title,
  "slug": slug.current,
  images,
  medium,
  dimensions,
  year,
  price,
  status,
  featured,
  soldAt
}"""

ARTWORK_BY_SLUG_QUERY = f'*[_type=="artwork" && slug.current == $slug][0]{ARTWORK_FIELDS}'
GALLERY_QUERY = (
    '*[_type=="artwork"] | order(featured desc, year desc, _createdAt desc)[0...60]'
    f"{ARTWORK_FIELDS}"
)
FEATURED_QUERY = (
    '*[_type=="artwork" && featured == true && status != "Hidden"]'
    f" | order(year desc, _createdAt desc)[0...12]{ARTWORK_FIELDS}"
)


class SanityError(RuntimeError):
    """Raised when the Content Lake rejects or fails a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _to_artwork(document: Any) -> Artwork:
    try:
        return Artwork.model_validate(document)
    except ValidationError as exc:
        document_id = document.get("_id") if isinstance(document, dict) else None
        raise SanityError(f"Malformed artwork document {document_id!r}: {exc}") from exc


class SanityClient:
    """Thin async client for the Sanity HTTP query and mutation APIs.

    One instance is built per process and shared by every request; call
    ``aclose`` on shutdown.
    """

    def __init__(
        self,
        *,
        project_id: str,
        dataset: str,
        api_version: str,
        token: str = "",
        use_cdn: bool = False,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.project_id = project_id.strip()
        self.dataset = dataset.strip() or "production"
        self.api_version = api_version.strip().lstrip("v")
        self._token = token.strip()
        self._use_cdn = use_cdn
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def is_configured(self) -> bool:
        return bool(self.project_id)

    @property
    def can_write(self) -> bool:
        return self.is_configured and bool(self._token)

    def _base_url(self, *, cdn: bool) -> str:
        host = "apicdn.sanity.io" if cdn else "api.sanity.io"
        return f"https://{self.project_id}.{host}/v{self.api_version}"

    def _headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    @staticmethod
    def _raise_for_status_with_context(response: httpx.Response) -> None:
        try:
            response.raise_for_status()
            return
        except httpx.HTTPStatusError as exc:
            detail = response.text.strip()
            try:
                body = response.json()
                if isinstance(body, dict):
                    error = body.get("error")
                    if isinstance(error, dict):
                        detail = error.get("description") or error.get("type") or detail
                    elif error:
                        detail = str(body.get("message") or error)
            except ValueError:
                pass
            if len(detail) > 400:
                detail = detail[:400]
            raise SanityError(
                f"Sanity request failed ({response.status_code}): {detail}",
                status_code=response.status_code,
            ) from exc

    async def query(
        self,
        groq: str,
        params: dict[str, Any] | None = None,
        *,
        fresh: bool = False,
    ) -> Any:
        """Run a GROQ query and return its ``result``.

        ``fresh`` bypasses the CDN so reads observe the latest mutation.
        """
        if not self.is_configured:
            raise SanityError("Sanity project is not configured")
        query_params: dict[str, str] = {"query": groq}
        for key, value in (params or {}).items():
            query_params[f"${key}"] = json.dumps(value)

        url = f"{self._base_url(cdn=self._use_cdn and not fresh)}/data/query/{self.dataset}"
        try:
            response = await self._client.get(url, params=query_params, headers=self._headers())
        except httpx.HTTPError as exc:
            raise SanityError(f"Sanity query transport error: {exc}") from exc
        self._raise_for_status_with_context(response)
        return response.json().get("result")

    async def patch(self, document_id: str, set_fields: dict[str, Any]) -> dict[str, Any]:
        """Apply a ``set`` patch to one document with the write token."""
        if not self.can_write:
            raise SanityError("Sanity write token is not configured")
        url = f"{self._base_url(cdn=False)}/data/mutate/{self.dataset}"
        body = {"mutations": [{"patch": {"id": document_id, "set": set_fields}}]}
        logger.info("Sanity patch %s fields=%s", document_id, sorted(set_fields))
        try:
            response = await self._client.post(
                url,
                params={"returnIds": "true", "visibility": "sync"},
                json=body,
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            raise SanityError(f"Sanity mutation transport error: {exc}") from exc
        self._raise_for_status_with_context(response)
        return response.json()

    async def get_artwork_by_slug(self, slug: str, *, fresh: bool = True) -> Artwork | None:
        result = await self.query(ARTWORK_BY_SLUG_QUERY, {"slug": slug}, fresh=fresh)
        if not result:
            return None
        return _to_artwork(result)

    async def list_artworks(self) -> list[Artwork]:
        result = await self.query(GALLERY_QUERY)
        return [_to_artwork(item) for item in result or []]

    async def list_featured_artworks(self) -> list[Artwork]:
        result = await self.query(FEATURED_QUERY)
        return [_to_artwork(item) for item in result or []]

    async def aclose(self) -> None:
        await self._client.aclose()
