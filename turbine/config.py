"""Runtime configuration: env-driven via pydantic-settings.

Reads from a .env file and TURBINE_* environment variables.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TurbineConfig(BaseSettings):
    """Engine configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export TURBINE_LOG_LEVEL=DEBUG
        export TURBINE_CHANNEL_BUFFER_SIZE=0
        export TURBINE_WORKER_DAEMON=false
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TURBINE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Channels built by Topology (0 = rendezvous)
    channel_buffer_size: int = Field(default=16, ge=0)

    # Route workers
    worker_daemon: bool = True
    join_timeout_seconds: float = Field(default=10.0, gt=0)

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton: import as `from turbine.config import config`
config = TurbineConfig()
