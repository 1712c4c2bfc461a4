"""
Per-deployment settings loaded from the environment.

A `.env` file in the working directory is read first; variables already set
in the process environment take precedence over it.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

from core.errors import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Feed-reader credentials and the default discovery mode."""

    rss_reader_endpoint: str
    rss_reader_api_key: str
    single_url_mode: bool = False

    @field_validator("rss_reader_endpoint")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoint is joined with '/v1/...' paths; drop a trailing slash."""
        return v.strip().rstrip("/")


def _get_bool_env(name: str, default: bool) -> bool:
    """Read a boolean from environment variables with safe fallback."""
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in _TRUE_VALUES


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from `.env` (if present) and the process environment.

    Args:
        env_file: Path to a dotenv file. Defaults to `.env` in the current
            working directory.

    Raises:
        ConfigurationError: If the endpoint or API key is missing.
    """
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if env_path.is_file():
        load_dotenv(env_path, override=False)

    endpoint = (os.getenv("RSS_READER_ENDPOINT") or "").strip()
    api_key = (os.getenv("RSS_READER_API_KEY") or "").strip()

    if not endpoint:
        raise ConfigurationError(
            "RSS reader API endpoint must be provided via RSS_READER_ENDPOINT"
        )
    if not api_key:
        raise ConfigurationError(
            "RSS reader API key must be provided via RSS_READER_API_KEY"
        )

    return Settings(
        rss_reader_endpoint=endpoint,
        rss_reader_api_key=api_key,
        single_url_mode=_get_bool_env("SINGLE_URL_MODE", False),
    )
