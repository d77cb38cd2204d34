"""
Application configuration with environment variable support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings, read from ``PULSE_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="PULSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Scraping backend
    SCRAPER_BASE_URL: str = "https://yimbapulseapi.a-car.ci"
    SCRAPER_API_KEY: str = ""
    SOURCE_TIMEOUT_SECONDS: float = 20.0
    MAX_RESULTS_CAP: int = 100

    # Search defaults
    DEFAULT_LANGUAGE: str = "fr"
    DEFAULT_PERIOD: str = "7d"
    DEFAULT_REGION: str = "Abidjan"

    # Degradation
    FALLBACK_COUNT: int = 5
    FALLBACK_SEED: int | None = None

    # "ratio" (fixed split placeholder) or "lexicon"
    SENTIMENT_ESTIMATOR: str = "ratio"

    # Persistence
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_TABLE: str = "search_batches"

    # Keyword watch-list storage
    WATCHLIST_PATH: str = "monitored_keywords.json"

    # Capabilities granted when a request carries no X-Capabilities header
    DEFAULT_CAPABILITIES: List[str] = ["can_search"]

    # Service
    CORS_ALLOW_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


# Result-count hint sent to vendors, keyed by requested time window
PERIOD_RESULT_LIMITS: Dict[str, int] = {
    "1d": 10,
    "7d": 25,
    "30d": 50,
    "3m": 80,
}
DEFAULT_RESULT_LIMIT: int = 25

# Fixed placeholder split (percent of batch volume) for the ratio estimator
SENTIMENT_SPLIT: Dict[str, int] = {
    "positive": 40,
    "negative": 20,
    "neutral": 40,
}

# Severity vocabulary, checked from the most to the least severe bucket.
# French and English terms used in health-surveillance monitoring.
SEVERITY_KEYWORDS: Dict[str, List[str]] = {
    "critical": [
        "décès", "mort", "death", "deaths",
        "épidémie", "epidemic", "pandémie", "pandemic", "outbreak",
        "urgence sanitaire", "emergency",
    ],
    "high": [
        "hospitalisé", "hospitalisation", "hospitalized", "hospitalised",
        "contagion", "propagation", "spreading", "foyer", "cluster",
        "alerte", "alert", "confinement", "lockdown",
    ],
    "medium": [
        "symptôme", "symptom", "fièvre", "fever", "infection", "infecté",
        "infected", "cas confirmé", "confirmed case", "malade", "sick",
        "vaccin", "vaccine",
    ],
    "low": [
        "prévention", "prevention", "sensibilisation", "awareness",
        "hygiène", "hygiene", "conseil", "advice",
    ],
}

# Lexicon used by the keyword sentiment estimator
POSITIVE_KEYWORDS: List[str] = [
    "excellent", "super", "génial", "parfait", "merveilleux", "fantastique",
    "bravo", "félicitations", "merci", "magnifique", "content", "ravi",
    "love", "amazing", "awesome", "great", "wonderful", "perfect",
    "thanks", "grateful", "happy", "joy", "best", "good", "nice",
    "😍", "😊", "😃", "👍", "❤️", "🔥", "💪", "🎉", "✨", "👏",
]
NEGATIVE_KEYWORDS: List[str] = [
    "horrible", "nul", "mauvais", "décevant", "catastrophe", "problème",
    "erreur", "panne", "échec", "triste", "déçu", "colère", "peur",
    "hate", "awful", "terrible", "worst", "bad", "disappointed", "angry",
    "sorry", "problem", "issue", "wrong", "fail", "broken", "bug", "sad",
    "😢", "😠", "😡", "👎", "💔", "😞", "😤", "🤬", "😭",
]

# HTTP Client Configuration
USER_AGENT = "pulse-aggregator/0.1"
HTTP_HEADERS = {"User-Agent": USER_AGENT, "Accept": "application/json"}
