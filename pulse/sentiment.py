import datetime as dt
import re
from typing import Optional

import numpy as np
import pandas as pd

PUBLISHED_RE = re.compile(r"^(\d{8})T(\d{6})$")  # e.g., 20240809T143000

# Upper edges of the first four buckets; anything >= 0.35 falls in the last one.
SENTIMENT_EDGES = [-0.35, -0.15, 0.15, 0.35]
SENTIMENT_COLORS = ["#ff4136", "#ff851b", "#ffdc00", "#2ecc40", "#3d9970"]
UNKNOWN_COLOR = "#888"


def parse_published(s) -> Optional[dt.datetime]:
    m = PUBLISHED_RE.match(str(s or "").strip())
    if not m:
        return None
    try:
        return dt.datetime.strptime(m.group(1) + m.group(2), "%Y%m%d%H%M%S")
    except ValueError:
        return None


def format_published(s) -> str:
    when = parse_published(s)
    return when.strftime("%Y-%m-%d %H:%M:%S") if when else str(s or "")


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return np.nan


def format_number(value) -> str:
    x = _to_float(value)
    return "N/A" if not np.isfinite(x) else f"{x:.2f}"


def sentiment_color(score) -> str:
    x = _to_float(score)
    if not np.isfinite(x):
        return UNKNOWN_COLOR
    return SENTIMENT_COLORS[int(np.searchsorted(SENTIMENT_EDGES, x, side="right"))]


def add_sentiment_colors(df: pd.DataFrame, col: str, out: str = "color") -> pd.DataFrame:
    """Vectorized sentiment_color over a frame column."""
    df = df.copy()
    x = pd.to_numeric(df[col], errors="coerce").to_numpy(dtype=float)
    idx = np.searchsorted(SENTIMENT_EDGES, np.nan_to_num(x), side="right")
    colors = np.array(SENTIMENT_COLORS, dtype=object)[idx]
    df[out] = np.where(np.isfinite(x), colors, UNKNOWN_COLOR)
    return df


def ticker_overview(tickers: pd.DataFrame, min_relevance: float = 0.0) -> pd.DataFrame:
    """
    Per-ticker summary of a ticker_sentiment_frame():
    mentions, mean relevance, mean sentiment; most-mentioned first.
    """
    cols = ["ticker", "mentions", "relevance", "sentiment"]
    if tickers.empty:
        return pd.DataFrame(columns=cols)
    t = tickers[tickers["relevance_score"].fillna(0) >= min_relevance]
    t = t.dropna(subset=["ticker_sentiment_score"])
    if t.empty:
        return pd.DataFrame(columns=cols)
    out = (t.groupby("ticker")
            .agg(mentions=("article", "nunique"),
                 relevance=("relevance_score", "mean"),
                 sentiment=("ticker_sentiment_score", "mean"))
            .reset_index()
            .sort_values(["mentions", "ticker"], ascending=[False, True])
            .reset_index(drop=True))
    return out[cols]
