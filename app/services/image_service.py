"""
Image search service: Unsplash photo search.

One landscape result per query; the caller stores its hosted URL, so nothing
is downloaded or re-hosted here.
"""

from __future__ import annotations

import httpx

from app.core.errors import ResponseValidationError, UpstreamServiceError
from app.core.logging import get_logger

logger = get_logger(__name__)

UNSPLASH_API_BASE = "https://api.unsplash.com"


class ImageService:
    def __init__(self, access_key: str, client: httpx.AsyncClient) -> None:
        self.access_key = access_key
        self.client = client

    async def search_landscape(self, query: str) -> str:
        """Return the URL of the best landscape photo for ``query``."""
        try:
            resp = await self.client.get(
                f"{UNSPLASH_API_BASE}/search/photos",
                params={"query": query, "per_page": 1, "orientation": "landscape"},
                headers={"Authorization": f"Client-ID {self.access_key}"},
            )
        except httpx.TransportError as e:
            raise UpstreamServiceError("unsplash", f"request failed: {e}") from e

        if not resp.is_success:
            raise UpstreamServiceError(
                "unsplash",
                f"request failed with status {resp.status_code}: {resp.text[:300]}",
                status_code=resp.status_code,
            )

        try:
            results = resp.json().get("results") or []
        except (ValueError, AttributeError) as e:
            raise ResponseValidationError("unsplash", "response is not a JSON object") from e

        image_url = None
        if results and isinstance(results[0], dict):
            image_url = (results[0].get("urls") or {}).get("regular")
        if not image_url:
            raise UpstreamServiceError("unsplash", f'no images found for query "{query}"')

        logger.info("image_found", query=query, url=image_url)
        return image_url
