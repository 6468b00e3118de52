# pulse/daily_refresh.py
import datetime as dt
from pathlib import Path

from pulse import config
from pulse.cache import FeedCache
from pulse.ingest_alpha import normalize_feed_json
from pulse.refresh import FeedRefresher
from pulse.store import JsonFileStore
from pulse.usage import QuotaTracker


def run(data_dir: Path = config.DATA_DIR, refresher: FeedRefresher = None) -> dict:
    if refresher is None:
        if not config.API_KEY:
            raise RuntimeError("Missing ALPHAVANTAGE_API_KEY (set it in .env or the environment).")
        store = JsonFileStore(Path(data_dir) / config.STORE_PATH.name)
        refresher = FeedRefresher(QuotaTracker(store), FeedCache(store))

    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    # 1) One refresh: fresh fetch when quota allows, cached feed otherwise
    print("[daily_refresh] refreshing news feed …")
    res = refresher.refresh()
    if res.warning:
        print(f"[daily_refresh] {res.warning}")

    # 2) Flatten and save a stamped snapshot
    df = normalize_feed_json(res.payload)
    stamp = dt.datetime.now().strftime("%Y%m%d")
    out_csv = data_dir / f"news_{stamp}.csv"
    df.to_csv(out_csv, index=False)
    print(f"[daily_refresh] wrote {out_csv} rows={len(df)}")

    return {
        "rows": int(len(df)),
        "news_csv": str(out_csv),
        "from_cache": res.from_cache,
        "calls_left": refresher.quota.left_today(),
    }


if __name__ == "__main__":
    print(run())
