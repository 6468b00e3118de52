from __future__ import annotations

import pytest

from pulse.cache import FeedCache
from pulse.errors import FetchError, NoDataAvailable, RemoteError, TransportError
from pulse.ingest_alpha import fetch_news_sentiment
from pulse.refresh import CACHE_WARNING, FeedRefresher
from pulse.store import MemoryStore
from pulse.usage import QuotaTracker

from conftest import SAMPLE_FEED, FakeResponse


class FakeFetch:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        res = self.results.pop(0)
        if isinstance(res, Exception):
            raise res
        return res


def make_refresher(fetch, limit=25, now=1_700_000_000.0, store=None):
    store = store if store is not None else MemoryStore()
    quota = QuotaTracker(store, limit=limit)
    r = FeedRefresher(quota, FeedCache(store), fetch=fetch, clock=lambda: now)
    return r, store


def test_fresh_fetch_caches_payload_and_records_call() -> None:
    fetch = FakeFetch(SAMPLE_FEED)
    r, store = make_refresher(fetch, now=1_700_000_000.5)

    res = r.refresh("2024-01-01")

    assert res.payload == SAMPLE_FEED
    assert res.warning is None
    assert res.from_cache is False
    assert res.fetched_at == 1_700_000_000_500
    cached = r.cache.load()
    assert cached.payload == SAMPLE_FEED
    assert cached.fetched_at == 1_700_000_000_500
    assert r.quota.used_today("2024-01-01") == 1


def test_single_call_quota_serves_cache_on_second_refresh() -> None:
    fetch = FakeFetch(SAMPLE_FEED)
    r, _ = make_refresher(fetch, limit=1)

    first = r.refresh("2024-01-01")
    second = r.refresh("2024-01-01")

    assert fetch.calls == 1
    assert second.payload == first.payload
    assert second.warning == CACHE_WARNING
    assert second.from_cache is True
    assert second.fetched_at == first.fetched_at


def test_exhausted_quota_same_day_without_cache_raises() -> None:
    store = MemoryStore({"last_call_date": "2024-01-01", "call_count": "25"})
    fetch = FakeFetch()
    r, _ = make_refresher(fetch, store=store)

    with pytest.raises(NoDataAvailable):
        r.refresh("2024-01-01")
    assert fetch.calls == 0


@pytest.mark.parametrize("err", [RemoteError("Invalid API call"), TransportError("timed out")])
def test_failed_fetch_leaves_quota_and_cache_alone(err) -> None:
    store = MemoryStore()
    FeedCache(store).save({"feed": ["old"]}, 42)
    fetch = FakeFetch(err)
    r, _ = make_refresher(fetch, store=store)

    with pytest.raises(type(err)):
        r.refresh("2024-01-01")

    assert r.quota.used_today("2024-01-01") == 0
    cached = r.cache.load()
    assert cached.payload == {"feed": ["old"]}
    assert cached.fetched_at == 42


def test_cache_fallback_returns_exact_cached_payload() -> None:
    store = MemoryStore({"last_call_date": "2024-01-01", "call_count": "25"})
    FeedCache(store).save(SAMPLE_FEED, 123)
    fetch = FakeFetch()
    r, _ = make_refresher(fetch, store=store)

    res = r.refresh("2024-01-01")

    assert res.payload == SAMPLE_FEED
    assert res.warning == CACHE_WARNING
    assert res.fetched_at == 123
    assert fetch.calls == 0


def test_next_day_fetches_again() -> None:
    fetch = FakeFetch({"feed": ["day1"]}, {"feed": ["day2"]})
    r, _ = make_refresher(fetch, limit=1)

    r.refresh("2024-01-01")
    res = r.refresh("2024-01-02")

    assert fetch.calls == 2
    assert res.payload == {"feed": ["day2"]}
    assert res.warning is None


def test_successful_refresh_overwrites_cached_snapshot() -> None:
    store = MemoryStore()
    FeedCache(store).save({"feed": ["old"]}, 42)
    r, _ = make_refresher(FakeFetch({"feed": ["day1"]}), store=store, now=1_700_000_000.0)
    r.refresh("2024-01-01")

    r.clock = lambda: 1_700_086_400.0
    r.fetch = FakeFetch({"feed": ["day2"]})
    r.refresh("2024-01-02")

    cached = r.cache.load()
    assert cached.payload == {"feed": ["day2"]}
    assert cached.fetched_at == 1_700_086_400_000


@pytest.mark.parametrize("body", [{"feed": None}, {"items": "0"}, {"feed": "oops"}])
def test_feedless_body_is_fetch_error_and_changes_nothing(fake_get, body) -> None:
    fake_get(FakeResponse(body))
    store = MemoryStore()
    FeedCache(store).save({"feed": ["old"]}, 42)
    r, _ = make_refresher(lambda: fetch_news_sentiment(api_key="demo"), store=store)

    with pytest.raises(FetchError):
        r.refresh("2024-01-01")

    assert r.quota.used_today("2024-01-01") == 0
    cached = r.cache.load()
    assert cached.payload == {"feed": ["old"]}
    assert cached.fetched_at == 42
