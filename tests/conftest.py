from __future__ import annotations

import pytest

from pulse.store import MemoryStore


SAMPLE_FEED = {
    "items": "2",
    "sentiment_score_definition": "x <= -0.35: Bearish; ...",
    "feed": [
        {
            "title": "Chipmaker beats estimates",
            "url": "https://example.com/a",
            "time_published": "20240101T093000",
            "source": "Reuters",
            "overall_sentiment_score": "0.412",
            "overall_sentiment_label": "Bullish",
            "ticker_sentiment": [
                {"ticker": "NVDA", "relevance_score": "0.9", "ticker_sentiment_score": "0.5",
                 "ticker_sentiment_label": "Bullish"},
                {"ticker": "AMD", "relevance_score": "0.3", "ticker_sentiment_score": "-0.1",
                 "ticker_sentiment_label": "Neutral"},
            ],
        },
        {
            "title": "Cloud outage hits retailers",
            "url": "https://example.com/b",
            "time_published": "20240101T120500",
            "source": "Bloomberg",
            "overall_sentiment_score": "-0.2",
            "overall_sentiment_label": "Somewhat-Bearish",
            "ticker_sentiment": [
                {"ticker": "NVDA", "relevance_score": "0.1", "ticker_sentiment_score": "0.1",
                 "ticker_sentiment_label": "Neutral"},
            ],
        },
    ],
}

SAMPLE_QUOTE = {
    "Global Quote": {
        "01. symbol": "NVDA",
        "05. price": "495.2200",
        "06. volume": "41234567",
        "07. latest trading day": "2024-01-02",
        "09. change": "-3.4500",
        "10. change percent": "-0.6918%",
    }
}


class FakeResponse:
    def __init__(self, payload=None, status=200, json_error=None):
        self.payload = payload
        self.status_code = status
        self.json_error = json_error

    def raise_for_status(self) -> None:
        import requests

        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self.json_error is not None:
            raise self.json_error
        return self.payload


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fake_get(monkeypatch):
    """Patch requests.get; returns the list of captured (url, params) calls."""
    calls = []
    responses = []

    def _get(url, params=None, timeout=None):
        calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        resp = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(resp, Exception):
            raise resp
        return resp

    monkeypatch.setattr("pulse.ingest_alpha.requests.get", _get)

    def queue(*resps):
        responses.extend(resps)
        return calls

    return queue
