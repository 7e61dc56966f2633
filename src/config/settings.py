# src/config/settings.py

"""Central configuration for the market_tracker engine."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Central configuration for the market_tracker engine."""

    # --- Acquisition ---
    STRUCTURED_TIMEOUT: int = 10        # Seconds for structured endpoints
    DOCUMENT_TIMEOUT: int = 15          # Seconds for product pages
    MAX_REDIRECTS: int = 5
    ALLOW_SYNTHETIC_DEFAULT: bool = _env_flag(
        "MARKET_TRACKER_ALLOW_SYNTHETIC"
    )

    # --- Block page detection ---
    BLOCK_MARKERS: list[str] = [
        "captcha",
        "verify you are human",
        "unusual traffic",
        "challenges.cloudflare.com",
        "cf-turnstile",
    ]

    # --- Batch refresh ---
    MAX_CONCURRENCY_PER_PLATFORM: int = 2
    HISTORY_DAYS: int = 30

    # --- Request headers ---
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    )
    DEFAULT_HEADERS: dict[str, str] = {
        "User-Agent": USER_AGENT,
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/webp,*/*;q=0.8"
        ),
        "Accept-Language": "vi-VN,vi;q=0.9,en-US;q=0.8,en;q=0.7",
        "Upgrade-Insecure-Requests": "1",
    }
    API_HEADERS: dict[str, str] = {
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
        "X-Requested-With": "XMLHttpRequest",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    PLATFORMS_PATH: Path = BASE_DIR / "src" / "config" / "platforms.json"
    DB_PATH: Path = Path(
        os.getenv(
            "MARKET_TRACKER_DB",
            str(BASE_DIR / "data" / "market_tracker.db"),
        )
    )
    LOGS_DIR: Path = BASE_DIR / "logs"
