import json

import scrapy

from goldmines.core.settings import settings
from goldmines.ingest.fetcher import listing_url, parse_listing


class RedditSpider(scrapy.Spider):
    """
    Crawl offline de los mismos feeds que usa el pipeline.

    scrapy crawl reddit_spider -a feeds=SaaS,startups -a limit=20 -o posts.json
    """

    name = "reddit_spider"

    custom_settings = {
        "USER_AGENT": settings.user_agent,
        "ROBOTSTXT_OBEY": False,
    }

    def __init__(self, feeds=None, limit=None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if isinstance(feeds, str):
            feeds = [f.strip() for f in feeds.split(",") if f.strip()]
        self.feeds = feeds or list(settings.feeds)
        self.limit = int(limit or settings.limit_per_feed)
        self.page_size = min(settings.reddit_page_size, 100)
        self.max_pages = settings.reddit_max_pages
        self.time_window = settings.reddit_time_window

    async def start(self):
        for request in self.start_requests():
            yield request

    def start_requests(self):
        for feed in self.feeds:
            yield scrapy.Request(
                listing_url(feed, self.page_size, time_window=self.time_window),
                callback=self.parse,
                meta={"feed": feed, "accepted": 0, "page": 1, "seen": []},
            )

    def parse(self, response):
        feed = response.meta["feed"]
        accepted = response.meta.get("accepted", 0)
        page = response.meta.get("page", 1)
        seen = set(response.meta.get("seen", []))

        posts, after = parse_listing(json.loads(response.text), feed)
        for post in posts:
            if accepted >= self.limit:
                return
            if post.external_id in seen:
                continue
            seen.add(post.external_id)
            accepted += 1
            yield post.model_dump()

        # Paginación
        if after and accepted < self.limit and page < self.max_pages:
            yield response.follow(
                listing_url(feed, self.page_size, after, self.time_window),
                callback=self.parse,
                meta={"feed": feed, "accepted": accepted, "page": page + 1, "seen": sorted(seen)},
            )
