"""
Product card scraper – centralized configuration.
Browser launch, timeouts, client identities, concurrency, logging.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Paths
BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")


def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default).strip()


# Browser visibility (default True for servers; set PRODSCRAPE_HEADLESS=0 to show window)
HEADLESS = _env("PRODSCRAPE_HEADLESS", "1").lower() in ("1", "true", "yes")

# Chromium runs unsandboxed so it can start as an unprivileged container user
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

# Timeouts (ms)
NAVIGATION_TIMEOUT = int(_env("PRODSCRAPE_NAV_TIMEOUT", "30000"))
CARD_WAIT_TIMEOUT = int(_env("PRODSCRAPE_CARD_WAIT_TIMEOUT", "15000"))

# Client identity: one picked at random per page
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.114 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/92.0.4515.107 Safari/537.36",
]
VIEWPORT = {"width": 1366, "height": 800}

# Concurrency for batch runs (each request still gets its own browser)
MAX_CONCURRENT_SESSIONS = int(_env("PRODSCRAPE_MAX_SESSIONS", "3"))

LOG_LEVEL = _env("PRODSCRAPE_LOG_LEVEL", "INFO").upper()
