"""Environment-backed configuration for Media Tracker."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# .env lookup order: current directory, then project root
ENV_PATHS = [
    Path.cwd() / ".env",
    Path(__file__).parent.parent / ".env",
]

DEFAULT_AI_PROVIDER = "gemini"
DEFAULT_METADATA_TIMEOUT = 10.0
DEFAULT_ENRICHMENT_DELAY = 0.2

# Env var holding the API key for each AI provider
AI_KEY_ENV_VARS = {
    "gemini": "GEMINI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def load_env() -> Path | None:
    """Load the first .env file found. Returns its path, if any."""
    for env_path in ENV_PATHS:
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


def _get_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid value for {name}: {raw!r}, using {default}"
        )
        return default


@dataclass
class Settings:
    """Runtime settings read from the environment."""

    ai_provider: str = DEFAULT_AI_PROVIDER
    ai_model: str | None = None
    gemini_api_key: str | None = None
    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    tmdb_api_key: str | None = None
    omdb_api_key: str | None = None
    google_books_api_key: str | None = None
    metadata_timeout: float = DEFAULT_METADATA_TIMEOUT
    enrichment_delay: float = DEFAULT_ENRICHMENT_DELAY
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            ai_provider=os.environ.get("AI_PROVIDER", DEFAULT_AI_PROVIDER).lower(),
            ai_model=os.environ.get("AI_MODEL") or None,
            gemini_api_key=os.environ.get("GEMINI_API_KEY") or None,
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY") or None,
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            tmdb_api_key=os.environ.get("TMDB_API_KEY") or None,
            omdb_api_key=os.environ.get("OMDB_API_KEY") or None,
            google_books_api_key=os.environ.get("GOOGLE_BOOK_API_KEY") or None,
            metadata_timeout=_get_float("METADATA_TIMEOUT_SECONDS", DEFAULT_METADATA_TIMEOUT),
            enrichment_delay=_get_float("ENRICHMENT_DELAY_SECONDS", DEFAULT_ENRICHMENT_DELAY),
            log_level=os.environ.get("MEDIA_TRACKER_LOG_LEVEL", "INFO").upper(),
        )

    def ai_api_key(self) -> str | None:
        """API key for the configured AI provider."""
        return getattr(self, f"{self.ai_provider}_api_key", None)

    @property
    def ai_key_env_var(self) -> str:
        """Name of the env var that must hold the AI provider key."""
        return AI_KEY_ENV_VARS.get(self.ai_provider, f"{self.ai_provider.upper()}_API_KEY")


def get_settings() -> Settings:
    """Load .env (if present) and return fresh settings."""
    load_env()
    return Settings.from_env()


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging for CLI and web entry points."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
