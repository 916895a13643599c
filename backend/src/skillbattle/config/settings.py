"""Configuration management for the battle engine"""

import os
import logging
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

ENV_PREFIX = "SKILLBATTLE_"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Application settings"""

    # Session store
    database_url: str = "sqlite+aiosqlite:///:memory:"
    database_echo: bool = False

    # Shared sessions
    session_max_retries: int = 3

    # Move overrides
    move_override_ttl_seconds: float = 300.0

    # Rules
    alternate_rules_enabled: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        # Override with environment variables if present
        self.database_url = _env("DATABASE_URL") or os.environ.get("DATABASE_URL") or self.database_url
        self.database_echo = _env_bool("DATABASE_ECHO", self.database_echo)
        self.session_max_retries = int(_env("SESSION_MAX_RETRIES", str(self.session_max_retries)))
        self.move_override_ttl_seconds = float(
            _env("MOVE_OVERRIDE_TTL_SECONDS", str(self.move_override_ttl_seconds))
        )
        self.alternate_rules_enabled = _env_bool("ALTERNATE_RULES", self.alternate_rules_enabled)
        self.log_level = _env("LOG_LEVEL", self.log_level)
        self.log_file = _env("LOG_FILE", self.log_file)

        if self.session_max_retries < 0:
            raise ValueError("session_max_retries cannot be negative")


def configure_logging(settings: Settings):
    """Configure root logging from settings."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        filename=settings.log_file if settings.log_file else None
    )
    logger.info(f"Logging configured at {logging.getLevelName(log_level)}")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings():
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
