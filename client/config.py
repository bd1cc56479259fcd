"""Client configuration loaded from environment variables (``NOTEKEEPER_*``)."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    """Settings for the front end's API client."""

    model_config = {
        "env_prefix": "NOTEKEEPER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    api_url: str = "http://localhost:8000"
    api_token: str = ""

    # Per-request timeouts (seconds)
    timeout: float = 30.0
    title_timeout: float = 15.0

    # Request queue and retry policy
    concurrency: int = 3
    max_attempts: int = 3
    base_delay: float = 0.5
    max_jitter: float = 0.25

    # Connectivity probe
    probe_path: str = "/health"
    probe_timeout: float = 3.0

    # Quiet period before a title is fetched for a typed URL
    debounce: float = 1.0
