# goldmines/ingest/pipeline.py
from typing import List, Optional, Protocol

from goldmines.core.exceptions import NotFoundError, PersistenceError, ValidationError
from goldmines.core.logger import logger
from goldmines.core.settings import PipelineConfig, settings
from goldmines.db.models import BusinessIdea, SourcePost
from goldmines.ingest.analysis import validate_draft
from goldmines.ingest.schemas import IdeaDraft, PipelineReport, SourcePostIn


# ------------------------------------------------------------------
# Contratos de cada etapa
# ------------------------------------------------------------------
class PostSource(Protocol):
    async def fetch(self, feeds: Optional[List[str]] = None, limit_per_feed: int = 10) -> List[SourcePostIn]:
        ...


class PostFilter(Protocol):
    def filter(self, posts: List[SourcePostIn]) -> List[SourcePostIn]:
        ...


class IdeaScreener(Protocol):
    async def screen(self, posts: List[SourcePostIn], kind: str = "business") -> List[SourcePostIn]:
        ...


class IdeaAnalyzer(Protocol):
    async def analyze(self, posts: List[SourcePostIn]) -> List[IdeaDraft]:
        ...


class IdeaStore(Protocol):
    async def save_source_post(self, post: SourcePostIn) -> SourcePost:
        ...

    async def save_business_idea(self, draft: IdeaDraft, stored_post_id: int) -> BusinessIdea:
        ...


# ------------------------------------------------------------------
# Pipeline: fetch -> filter -> analyze -> persist
# ------------------------------------------------------------------
class IngestionPipeline:
    def __init__(
        self,
        source: PostSource,
        idea_filter: PostFilter,
        analyzer: IdeaAnalyzer,
        store: IdeaStore,
        config: Optional[PipelineConfig] = None,
        screener: Optional[IdeaScreener] = None,
    ):
        self.source = source
        self.idea_filter = idea_filter
        self.analyzer = analyzer
        self.store = store
        self.screener = screener
        self.config = config or settings.pipeline_config()

    async def run(
        self,
        feeds: Optional[List[str]] = None,
        limit_per_feed: Optional[int] = None,
    ) -> PipelineReport:
        report = PipelineReport()

        posts = await self.fetch_stage(feeds, limit_per_feed)
        report.fetched = len(posts)

        relevant = self.filter_stage(posts)
        report.filtered = len(relevant)
        if not relevant:
            logger.info("No hay posts relevantes, nada que analizar")
            return report

        candidates = await self.screen_stage(relevant)
        report.screened_out = len(relevant) - len(candidates)
        if not candidates:
            logger.info("El pre-filtro descartó todos los posts")
            return report

        drafts = await self.analyze_stage(candidates)
        report.analyzed = len(drafts)

        await self.persist_stage(drafts, report)

        logger.info(
            "✅ Pipeline terminado: fetched=%s filtered=%s screened_out=%s analyzed=%s rejected=%s saved=%s failed=%s",
            report.fetched, report.filtered, report.screened_out, report.analyzed, report.rejected, report.saved, report.failed,
        )
        return report

    async def fetch_stage(self, feeds: Optional[List[str]] = None, limit_per_feed: Optional[int] = None) -> List[SourcePostIn]:
        return await self.source.fetch(
            feeds=feeds or self.config.feeds,
            limit_per_feed=limit_per_feed or self.config.limit_per_feed,
        )

    def filter_stage(self, posts: List[SourcePostIn]) -> List[SourcePostIn]:
        return self.idea_filter.filter(posts)

    async def screen_stage(self, posts: List[SourcePostIn]) -> List[SourcePostIn]:
        if self.screener is None:
            return posts
        return await self.screener.screen(posts, "business")

    async def analyze_stage(self, posts: List[SourcePostIn]) -> List[IdeaDraft]:
        return await self.analyzer.analyze(posts)

    async def persist_stage(self, drafts: List[IdeaDraft], report: Optional[PipelineReport] = None) -> PipelineReport:
        report = report or PipelineReport()

        for draft in drafts:
            if draft.source is None:
                logger.warning("Draft '%s' sin post de origen, se descarta", draft.business_idea_name)
                report.rejected += 1
                continue

            try:
                validate_draft(draft)
            except ValidationError as e:
                logger.info("Draft de %s rechazado: %s", draft.source.external_id, e.error)
                report.rejected += 1
                continue

            try:
                stored_post = await self.store.save_source_post(draft.source)
                idea = await self.store.save_business_idea(draft, stored_post.id)
            except (PersistenceError, NotFoundError) as e:
                logger.error("Error guardando idea de %s: %s", draft.source.external_id, e.message)
                report.failed += 1
                continue

            report.saved += 1
            report.saved_idea_ids.append(idea.id)

        return report
