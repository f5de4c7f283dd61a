# goldmines/ingest/filter.py
from typing import Iterable, List, Optional

from goldmines.core.logger import logger
from goldmines.core.settings import settings
from goldmines.ingest.schemas import SourcePostIn


def has_keyword(post: SourcePostIn, keywords: Iterable[str]) -> bool:
    text = f"{post.title} {post.body}".lower()
    return any(keyword in text for keyword in keywords)


class IdeaFilter:
    """Deduplica y filtra posts por relevancia (heurística de keywords).

    `filter()` es puro: cada llamada arranca sin historial. `check()` acumula
    las claves vistas en la instancia, para consumidores item a item (scrapy).
    """

    def __init__(self, keywords: Optional[Iterable[str]] = None):
        source = settings.keywords if keywords is None else keywords
        self.keywords = [k.lower() for k in source if k]
        self.reset()

    def reset(self) -> None:
        self._seen_keys = set()
        self._seen_hashes = set()

    def check(self, post: SourcePostIn) -> Optional[str]:
        """None si el post pasa (y queda registrado); si no, el motivo del descarte."""
        if not has_keyword(post, self.keywords):
            return "no business keywords"

        key = (post.feed, post.external_id)
        fingerprint = post.content_hash()
        if key in self._seen_keys or fingerprint in self._seen_hashes:
            return "duplicate"

        self._seen_keys.add(key)
        self._seen_hashes.add(fingerprint)
        return None

    def filter(self, posts: List[SourcePostIn]) -> List[SourcePostIn]:
        self.reset()
        kept = [post for post in posts if self.check(post) is None]
        self.reset()

        logger.info("Filtrados %s posts -> %s relevantes", len(posts), len(kept))
        return kept
