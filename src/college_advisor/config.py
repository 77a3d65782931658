"""Environment-driven settings for the advisor service."""

import os
from pathlib import Path

DEFAULT_PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"
DEFAULT_PERPLEXITY_MODEL = "sonar"
DEFAULT_TIMEOUT = 60.0

# Sampling parameters sent with every completion request
TEMPERATURE = 0.7
TOP_P = 0.9


def get_database_path() -> Path:
    """Return the path to the SQLite database holding sessions and messages."""
    env = os.environ.get("ADVISOR_DB_PATH")
    if env:
        return Path(env)

    return Path.home() / ".college-advisor" / "advisor.db"


def get_perplexity_api_key() -> str | None:
    """Return the Perplexity API key, or None when it is not configured."""
    return os.environ.get("PERPLEXITY_API_KEY") or None


def get_perplexity_url() -> str:
    return os.environ.get("PERPLEXITY_API_URL", DEFAULT_PERPLEXITY_URL)


def get_perplexity_model() -> str:
    return os.environ.get("PERPLEXITY_MODEL", DEFAULT_PERPLEXITY_MODEL)


def get_request_timeout() -> float:
    """Return the upstream request timeout in seconds."""
    env = os.environ.get("PERPLEXITY_TIMEOUT")
    if env:
        try:
            return float(env)
        except ValueError:
            pass
    return DEFAULT_TIMEOUT
