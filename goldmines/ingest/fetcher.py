# goldmines/ingest/fetcher.py
import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx
from pydantic import ValidationError as PydanticValidationError

from goldmines.core.exceptions import RateLimitError, ValidationError
from goldmines.core.logger import logger
from goldmines.core.settings import settings
from goldmines.ingest.schemas import SourcePostIn

REDDIT_BASE_URL = "https://www.reddit.com"
MIN_TITLE_LENGTH = 10


# ------------------------------------------------------------------
# Parsing del listing (compartido con el spider de scrapy)
# ------------------------------------------------------------------
def listing_url(feed: str, limit: int, after: Optional[str] = None, time_window: str = "month") -> str:
    url = f"{REDDIT_BASE_URL}/r/{feed}/top.json?t={time_window}&limit={limit}"
    if after:
        url += f"&after={after}"
    return url


def to_source_post(data: Dict[str, Any], feed: str) -> Optional[SourcePostIn]:
    """Mapea un `children[].data` de Reddit; None si el item no es válido."""
    title = str(data.get("title") or "").strip()
    if len(title) < MIN_TITLE_LENGTH or not data.get("id"):
        return None

    permalink = data.get("permalink") or ""
    try:
        return SourcePostIn(
            external_id=str(data["id"]),
            title=title,
            body=data.get("selftext") or "",
            feed=feed,
            score=data.get("score") or 0,
            num_comments=data.get("num_comments") or 0,
            url=f"https://reddit.com{permalink}" if permalink else (data.get("url") or ""),
            permalink=permalink,
            created_utc=data.get("created_utc") or time.time(),
            author=data.get("author") or "Unknown",
        )
    except PydanticValidationError as e:
        logger.warning("Item %s de r/%s inválido, se omite: %s", data.get("id"), feed, e.errors()[0].get("msg"))
        return None


def parse_listing(payload: Any, feed: str) -> Tuple[List[SourcePostIn], Optional[str]]:
    """Devuelve (posts válidos en orden del listing, cursor `after`).

    Un payload que no tiene forma de listing lanza ValueError.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"r/{feed}: listing payload is not a JSON object")

    listing = payload.get("data") or {}
    if not isinstance(listing, dict):
        raise ValueError(f"r/{feed}: listing data is not a JSON object")

    children = listing.get("children") or []
    if not isinstance(children, list):
        raise ValueError(f"r/{feed}: listing children is not a list")

    posts = []
    for child in children:
        data = child.get("data") if isinstance(child, dict) else None
        if not isinstance(data, dict):
            continue
        post = to_source_post(data, feed)
        if post is not None:
            posts.append(post)

    after = listing.get("after")
    return posts, after if isinstance(after, str) else None


# ------------------------------------------------------------------
# Fetcher
# ------------------------------------------------------------------
class RedditFetcher:
    """Recupera los top posts de una lista de subreddits."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        feeds: Optional[List[str]] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        time_window: Optional[str] = None,
        inter_feed_delay: Optional[float] = None,
        rate_limit_backoff: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client
        self.feeds = feeds or list(settings.feeds)
        self.page_size = page_size or settings.reddit_page_size
        self.max_pages = max_pages or settings.reddit_max_pages
        self.time_window = time_window or settings.reddit_time_window
        self.inter_feed_delay = settings.inter_feed_delay if inter_feed_delay is None else inter_feed_delay
        self.rate_limit_backoff = settings.rate_limit_backoff if rate_limit_backoff is None else rate_limit_backoff
        self._sleep = sleep

    async def fetch(self, feeds: Optional[List[str]] = None, limit_per_feed: int = 10) -> List[SourcePostIn]:
        if limit_per_feed < 1:
            raise ValidationError("limit_per_feed must be at least 1")

        feeds = feeds or self.feeds
        if self._client is not None:
            return await self._fetch_all(self._client, feeds, limit_per_feed)

        async with httpx.AsyncClient(
            timeout=settings.request_timeout,
            headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
            follow_redirects=True,
        ) as client:
            return await self._fetch_all(client, feeds, limit_per_feed)

    async def _fetch_all(self, client: httpx.AsyncClient, feeds: List[str], limit: int) -> List[SourcePostIn]:
        all_posts: List[SourcePostIn] = []

        for index, feed in enumerate(feeds):
            if index > 0:
                await self._sleep(self.inter_feed_delay)
            try:
                posts = await self.fetch_feed(client, feed, limit)
                all_posts.extend(posts)
                logger.info("r/%s: %s posts aceptados", feed, len(posts))
            except RateLimitError:
                logger.warning("⏰ Rate limited en r/%s, esperando %ss", feed, self.rate_limit_backoff)
                await self._sleep(self.rate_limit_backoff)
            except httpx.HTTPStatusError as e:
                logger.warning("r/%s devolvió %s, se omite", feed, e.response.status_code)
            except (httpx.HTTPError, ValueError) as e:
                logger.error("Error leyendo r/%s: %s", feed, e)

        logger.info("🎯 Total de posts: %s de %s feeds", len(all_posts), len(feeds))
        return all_posts

    async def fetch_feed(self, client: httpx.AsyncClient, feed: str, limit: int) -> List[SourcePostIn]:
        accepted: List[SourcePostIn] = []
        seen = set()
        after = None

        for page in range(self.max_pages):
            try:
                posts, after = await self._fetch_page(client, feed, after)
            except (httpx.HTTPError, ValueError) as e:
                if page == 0:
                    raise
                # páginas siguientes: se conserva lo ya aceptado
                logger.warning("r/%s página %s falló (%s), se conservan %s posts", feed, page + 1, e, len(accepted))
                break

            for post in posts:
                if post.external_id in seen:
                    continue
                seen.add(post.external_id)
                accepted.append(post)
                if len(accepted) >= limit:
                    return accepted

            if not after:
                break

        return accepted

    async def _fetch_page(self, client: httpx.AsyncClient, feed: str, after: Optional[str]):
        url = listing_url(feed, min(self.page_size, 100), after, self.time_window)
        response = await client.get(url)

        if response.status_code == 429:
            raise RateLimitError(f"Rate limited on r/{feed}")
        response.raise_for_status()

        return parse_listing(response.json(), feed)
