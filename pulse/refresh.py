# pulse/refresh.py
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from pulse.errors import NoDataAvailable
from pulse.ingest_alpha import fetch_news_sentiment

logger = logging.getLogger(__name__)

CACHE_WARNING = "quota exceeded; showing cached data"


@dataclass
class RefreshResult:
    payload: dict
    warning: Optional[str] = None
    from_cache: bool = False
    fetched_at: Optional[int] = None


class FeedRefresher:
    """
    Fetch the news feed if today's quota allows it, otherwise serve the cache.

    fetch() must raise RemoteError for provider error/throttle bodies and
    TransportError for network or parse failures. Neither touches quota or cache:
    the cache is written and the call recorded only after fetch() returns.
    """

    def __init__(self, quota, cache, fetch: Callable[[], dict] = fetch_news_sentiment,
                 clock: Callable[[], float] = time.time):
        self.quota = quota
        self.cache = cache
        self.fetch = fetch
        self.clock = clock

    def refresh(self, today=None) -> RefreshResult:
        if self.quota.can_make_call(today):
            payload = self.fetch()
            saved = self.cache.save(payload, int(self.clock() * 1000))
            used = self.quota.record_call(today)
            logger.info("feed refreshed (%d/%d calls today)", used, self.quota.limit)
            return RefreshResult(payload=saved.payload, fetched_at=saved.fetched_at)

        cached = self.cache.load()
        if cached is None:
            raise NoDataAvailable()
        logger.info("quota exhausted; serving feed cached at %s", cached.fetched_at)
        return RefreshResult(payload=cached.payload, warning=CACHE_WARNING,
                             from_cache=True, fetched_at=cached.fetched_at)
