# pulse/config.py
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()
API_KEY = os.getenv("ALPHAVANTAGE_API_KEY")

MAX_CALLS_PER_DAY = 25  # Alpha Vantage free tier

# NEWS_SENTIMENT query used by the dashboard
NEWS_TOPICS = "technology"
NEWS_SORT = "LATEST"
NEWS_LIMIT = 50

DATA_DIR = Path("pulse/data")
STORE_PATH = DATA_DIR / ".pulse_store.json"
