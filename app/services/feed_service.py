"""
Ranked-feed client: Reddit's public "hot" listing.

One GET per ingestion run, no retry: the ingestion stage is safe to re-run
because inserts skip duplicates.
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ValidationError

from app.core.errors import ResponseValidationError, UpstreamServiceError
from app.core.logging import get_logger

logger = get_logger(__name__)

REDDIT_BASE_URL = "https://www.reddit.com"
USER_AGENT = "trendpress/0.1 (topic ingestion)"
SOURCE_TAG = "reddit"


# ── Listing shape (only the fields we read) ─────────────────
class _PostData(BaseModel):
    title: str
    subreddit: str
    score: int
    permalink: str


class _Child(BaseModel):
    data: _PostData


class _ListingData(BaseModel):
    children: list[_Child]


class _Listing(BaseModel):
    data: _ListingData


class RedditFeedService:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def fetch_hot(self, subreddit: str, limit: int) -> list[dict]:
        """Return topic candidates ``{title, subreddit, score, url, source}`` in feed order."""
        if limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit}")

        try:
            resp = await self.client.get(
                f"{REDDIT_BASE_URL}/r/{subreddit}/hot.json",
                params={"limit": limit},
                headers={"User-Agent": USER_AGENT},
            )
        except httpx.TransportError as e:
            raise UpstreamServiceError("reddit", f"request failed: {e}") from e

        if not resp.is_success:
            raise UpstreamServiceError(
                "reddit",
                f"request failed with status {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            listing = _Listing.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ResponseValidationError("reddit", f"malformed listing: {e}") from e

        logger.info("feed_fetched", subreddit=subreddit, post_count=len(listing.data.children))
        return [
            {
                "title": child.data.title,
                "subreddit": child.data.subreddit,
                "score": child.data.score,
                "url": f"https://reddit.com{child.data.permalink}",
                "source": SOURCE_TAG,
            }
            for child in listing.data.children
        ]
