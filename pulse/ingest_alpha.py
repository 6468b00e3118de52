import logging
import re
from dataclasses import dataclass
from typing import Optional

import pandas as pd
import requests

from pulse import config
from pulse.errors import RemoteError, TransportError

logger = logging.getLogger(__name__)

BASE = "https://www.alphavantage.co/query"
TIMEOUT = 30

FEED_COLUMNS = [
    "title", "url", "source", "time_published",
    "overall_sentiment_score", "overall_sentiment_label", "n_tickers",
]
TICKER_COLUMNS = [
    "article", "title", "ticker", "relevance_score",
    "ticker_sentiment_score", "ticker_sentiment_label",
]


@dataclass
class TickerQuote:
    symbol: str
    price: Optional[float]
    change: Optional[float]
    change_percent: str
    volume: Optional[int]
    latest_trading_day: str


def _clean_alpha_msg(msg: str) -> str:
    """Remove any API key fragments from provider messages."""
    if not isinstance(msg, str):
        return "Provider error"
    # redact "API key as ABC123..." and any long A-Z0-9 run containing a digit
    msg = re.sub(r"(API key as )\w+", r"\1[REDACTED]", msg)
    msg = re.sub(r"(?<!\[)(?=[A-Z0-9]*\d)[A-Z0-9]{8,}", "[REDACTED]", msg)
    return msg


def check_alpha_payload(data: dict) -> dict:
    # Alpha Vantage answers 200 with one of these keys on errors and throttling.
    if not isinstance(data, dict):
        raise TransportError("Unexpected response shape from Alpha Vantage")
    if any(k in data for k in ("Error Message", "Note", "Information")):
        note = data.get("Error Message") or data.get("Note") or data.get("Information") or ""
        raise RemoteError(_clean_alpha_msg(note))
    return data


def _get(params: dict) -> dict:
    try:
        r = requests.get(BASE, params=params, timeout=TIMEOUT)
        r.raise_for_status()
        data = r.json()
    except requests.RequestException as e:
        # the request URL carries the key; keep only the exception type
        logger.warning("%s request failed: %s", params.get("function"), type(e).__name__)
        raise TransportError(f"Request to Alpha Vantage failed ({type(e).__name__})") from e
    except ValueError as e:
        raise TransportError("Alpha Vantage returned a non-JSON body") from e
    return check_alpha_payload(data)


def fetch_news_sentiment(topics: str = config.NEWS_TOPICS, sort: str = config.NEWS_SORT,
                         limit: int = config.NEWS_LIMIT, api_key: Optional[str] = None) -> dict:
    params = {
        "function": "NEWS_SENTIMENT",
        "topics": topics,
        "sort": sort,
        "limit": limit,
        "apikey": api_key or config.API_KEY,
    }
    data = _get(params)
    if not isinstance(data.get("feed"), list):
        raise TransportError("Alpha Vantage returned no feed")
    logger.info("fetched %d news items", len(data["feed"]))
    return data


def fetch_global_quote(symbol: str, api_key: Optional[str] = None) -> dict:
    params = {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": api_key or config.API_KEY}
    return _get(params)


def _num(value, cast=float):
    try:
        return cast(value)
    except (TypeError, ValueError):
        return None


def normalize_quote(raw: dict) -> TickerQuote:
    q = raw.get("Global Quote") or {}
    if not q:
        raise RemoteError("No quote data returned for this symbol")
    return TickerQuote(
        symbol=q.get("01. symbol", ""),
        price=_num(q.get("05. price")),
        change=_num(q.get("09. change")),
        change_percent=q.get("10. change percent", ""),
        volume=_num(q.get("06. volume"), int),
        latest_trading_day=q.get("07. latest trading day", ""),
    )


def get_quote(symbol: str, api_key: Optional[str] = None) -> TickerQuote:
    """One uncached, unthrottled GLOBAL_QUOTE lookup."""
    return normalize_quote(fetch_global_quote(symbol.strip().upper(), api_key=api_key))


def normalize_feed_json(raw: dict) -> pd.DataFrame:
    """
    Flatten the NEWS_SENTIMENT feed into one row per article.
    Scores arrive as strings; they are coerced to floats (NaN when garbage).
    """
    rows = []
    for item in raw.get("feed", []) or []:
        rows.append({
            "title": item.get("title", ""),
            "url": item.get("url", ""),
            "source": item.get("source", ""),
            "time_published": item.get("time_published", ""),
            "overall_sentiment_score": item.get("overall_sentiment_score"),
            "overall_sentiment_label": item.get("overall_sentiment_label", ""),
            "n_tickers": len(item.get("ticker_sentiment") or []),
        })
    df = pd.DataFrame(rows, columns=FEED_COLUMNS)
    df["overall_sentiment_score"] = pd.to_numeric(df["overall_sentiment_score"], errors="coerce")
    df["published"] = pd.to_datetime(df["time_published"], format="%Y%m%dT%H%M%S", errors="coerce")
    return df


def ticker_sentiment_frame(raw: dict) -> pd.DataFrame:
    rows = []
    for i, item in enumerate(raw.get("feed", []) or []):
        for t in item.get("ticker_sentiment") or []:
            rows.append({
                "article": i,
                "title": item.get("title", ""),
                "ticker": t.get("ticker", ""),
                "relevance_score": t.get("relevance_score"),
                "ticker_sentiment_score": t.get("ticker_sentiment_score"),
                "ticker_sentiment_label": t.get("ticker_sentiment_label", ""),
            })
    df = pd.DataFrame(rows, columns=TICKER_COLUMNS)
    for c in ("relevance_score", "ticker_sentiment_score"):
        df[c] = pd.to_numeric(df[c], errors="coerce")
    return df


if __name__ == "__main__":
    raw = fetch_news_sentiment()
    df = normalize_feed_json(raw)
    print(f"Fetched {len(df)} articles")
    print(df[["source", "published", "overall_sentiment_score"]].head(10))
