from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .errors import ImageSourceError

logger = logging.getLogger(__name__)


class HttpImageSource:
    """Talks to a running slideshow server."""

    def __init__(self, base_url: str = "http://localhost:3000", client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=10.0)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, url: str) -> httpx.Response:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("request for %s failed: %s", url, exc)
            raise ImageSourceError(str(exc)) from exc
        return response

    async def list_images(self) -> list[str]:
        response = await self._get("/api/images")
        return list(response.json())

    async def load_image(self, name: str) -> bytes:
        response = await self._get(f"/images/{quote(name)}")
        return response.content

    async def get_metadata(self, name: str) -> dict[str, Any]:
        response = await self._get(f"/api/images/{quote(name)}/metadata")
        return response.json()
