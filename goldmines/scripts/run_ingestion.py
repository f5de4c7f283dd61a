# goldmines/scripts/run_ingestion.py
import argparse
import asyncio
from typing import List, Optional

from goldmines.core.logger import logger
from goldmines.core.settings import settings
from goldmines.db.gateway import PersistenceGateway
from goldmines.ingest.analysis import AnalysisEngine
from goldmines.ingest.fetcher import RedditFetcher
from goldmines.ingest.filter import IdeaFilter
from goldmines.ingest.pipeline import IngestionPipeline


async def run_ingestion(feeds: Optional[List[str]] = None, limit_per_feed: Optional[int] = None):
    gateway = PersistenceGateway(settings.database_url, create_schema=settings.auto_create_schema)
    await gateway.open()
    try:
        engine = AnalysisEngine()
        pipeline = IngestionPipeline(
            source=RedditFetcher(),
            idea_filter=IdeaFilter(),
            analyzer=engine,
            store=gateway,
            screener=engine,
        )
        return await pipeline.run(feeds=feeds, limit_per_feed=limit_per_feed)
    finally:
        await gateway.close()


def main():
    parser = argparse.ArgumentParser(description="Fetch Reddit posts and extract business ideas")
    parser.add_argument("--feed", action="append", dest="feeds", help="subreddit (repeatable)")
    parser.add_argument("--limit", type=int, default=None, help="posts per feed")
    args = parser.parse_args()

    logger.info("Starting ingestion for feeds: %s", args.feeds or settings.feeds)
    report = asyncio.run(run_ingestion(args.feeds, args.limit))
    logger.info("Ingestion completed: %s", report.model_dump(exclude={"saved_idea_ids"}))


if __name__ == "__main__":
    main()
