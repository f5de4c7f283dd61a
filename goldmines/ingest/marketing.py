# goldmines/ingest/marketing.py
import math
from typing import List, Optional

from goldmines.core.exceptions import NotFoundError, ValidationError
from goldmines.core.logger import logger
from goldmines.core.settings import settings
from goldmines.db.models import MarketingIdea
from goldmines.ingest.analysis import validate_marketing_draft
from goldmines.ingest.pipeline import PostSource


class MarketingIdeaGenerator:
    """
    Busca posts en subreddits de marketing y guarda UNA táctica por llamada.

    fetch -> pre-filtro "marketing" -> análisis del primer candidato -> persistencia
    """

    def __init__(self, source: PostSource, analyzer, store, feeds: Optional[List[str]] = None):
        self.source = source
        self.analyzer = analyzer
        self.store = store
        self.feeds = feeds or settings.marketing_feeds

    async def run(self, limit: Optional[int] = None, feeds: Optional[List[str]] = None) -> MarketingIdea:
        limit = limit or settings.marketing_limit
        feeds = feeds or self.feeds
        if not feeds:
            raise ValidationError("At least one marketing feed is required")

        per_feed = max(1, math.ceil(limit / len(feeds)))
        posts = (await self.source.fetch(feeds=feeds, limit_per_feed=per_feed))[:limit]
        if not posts:
            raise NotFoundError("No posts found in marketing subreddits")

        candidates = await self.analyzer.screen(posts, "marketing")
        if not candidates:
            raise NotFoundError("No marketing ideas found in marketing subreddits")

        post = candidates[0]
        logger.info("📣 Analyzing marketing post %s from r/%s", post.external_id, post.feed)
        draft = validate_marketing_draft(await self.analyzer.analyze_marketing_one(post))

        stored_post = await self.store.save_source_post(post)
        idea = await self.store.save_marketing_idea(draft, stored_post.id)
        logger.info("✅ Marketing idea saved: %s", idea.id)
        return idea
