# pulse/cache.py
import json
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

PAYLOAD_KEY = "cached_feed_payload"
FETCH_TIME_KEY = "last_fetch_time"


@dataclass
class CachedPayload:
    payload: dict
    fetched_at: Optional[int]  # epoch ms


class FeedCache:
    """Exactly one snapshot of the last good feed. Last write wins, never expires."""

    def __init__(self, store):
        self.store = store

    def load(self) -> Optional[CachedPayload]:
        blob = self.store.get(PAYLOAD_KEY)
        if not blob:
            return None
        try:
            payload = json.loads(blob)
        except ValueError:
            logger.warning("cached feed is not valid JSON; ignoring it")
            return None
        try:
            fetched_at = int(self.store.get(FETCH_TIME_KEY))
        except (TypeError, ValueError):
            fetched_at = None
        return CachedPayload(payload=payload, fetched_at=fetched_at)

    def save(self, payload: dict, fetched_at: int) -> CachedPayload:
        self.store.set(PAYLOAD_KEY, json.dumps(payload))
        self.store.set(FETCH_TIME_KEY, int(fetched_at))
        return CachedPayload(payload=payload, fetched_at=int(fetched_at))
