"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with EVENTCAST_ prefix.
Nothing is read from files; the environment is the only source.

The listen port is also read from a plain PORT variable, which hosting
platforms set for you.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via EVENTCAST_* env vars."""

    # Server
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = Field(3000, validation_alias=AliasChoices("EVENTCAST_PORT", "PORT"))

    # CORS
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Streaming
    listener_queue_size: int = Field(100, ge=1)  # frames buffered per listener
    keepalive_seconds: float = Field(15.0, gt=0)

    # Upper bound on waiting for open connections at shutdown
    shutdown_timeout_seconds: float = Field(5.0, gt=0)

    # Serve a frontend from this directory at "/" (disabled if unset)
    static_dir: Optional[str] = None

    model_config = {"env_prefix": "EVENTCAST_", "populate_by_name": True}


# Process-wide default; create_app() accepts an override
settings = Settings()
