from scrapy.exceptions import DropItem

from goldmines.ingest.filter import IdeaFilter
from goldmines.ingest.schemas import SourcePostIn


class IdeaFilterPipeline:
    """Aplica IdeaFilter item a item durante el crawl."""

    def __init__(self, keywords=None):
        self.idea_filter = IdeaFilter(keywords)

    def open_spider(self, spider=None):
        self.idea_filter.reset()

    def process_item(self, item, spider=None):
        post = SourcePostIn(**item)

        reason = self.idea_filter.check(post)
        if reason is not None:
            raise DropItem(f"Post {post.external_id} descartado: {reason}")
        return item
