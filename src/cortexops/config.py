"""Environment-based configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

from cortexops.constants import Environment

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # Directories
    log_dir: Path = Path("logs")

    # Logging
    log_level: str = "INFO"
    debug_mode: bool = False

    # API
    api_key: str = ""
    cors_origins: str = "http://localhost:3000"

    # Prompts
    max_prompt_length: int = 10_000
    default_environment: Environment = Environment.PRODUCTION

    # Auto-fix
    auto_fix_enabled: bool = True
    auto_fix_max_passes: int = 3

    # History
    history_limit: int = 100

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("auto_fix_max_passes")
    @classmethod
    def _validate_passes(cls, v: int) -> int:
        if v < 1:
            raise ValueError(
                "auto_fix_max_passes must be at least 1"
            )
        if v > 10:
            logger.warning(
                "event=config_warning auto_fix_max_passes=%d "
                "reason=unusually_high",
                v,
            )
        return v

    @property
    def cors_origin_list(self) -> list[str]:
        """CORS origins as a list (comma-separated in env)."""
        return [
            o.strip()
            for o in self.cors_origins.split(",")
            if o.strip()
        ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }
