# Config
"""
Configuration for bookfacts.

Values come from the environment (a local .env file is honoured) and can be
overridden with keyword arguments, which is what the tests do.
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from bookfacts.utils.errors import ConfigurationError

load_dotenv()

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
TRUTHY = ("1", "true", "yes", "on")


class Settings:
    # The board always has five query slots
    slot_count = 5

    def __init__(self, **overrides: Any) -> None:
        # Gemini
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
        try:
            self.temperature: float = float(os.getenv("GEMINI_TEMPERATURE", "0.0"))
            self.max_output_tokens: int = int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "512"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting in environment: {e}") from e

        # Logging
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        log_file = os.getenv("LOG_FILE_PATH")
        self.log_file_path: Optional[Path] = Path(log_file) if log_file else None
        self.dev_mode: bool = os.getenv("DEV_MODE", "false").lower() in TRUTHY

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise ConfigurationError(f"Unknown setting '{key}'", {"setting": key})
            setattr(self, key, value)

        self._validate()

    def _validate(self) -> None:
        self.log_level = str(self.log_level).upper()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}",
                {"log_level": self.log_level},
            )
        if self.temperature < 0:
            raise ConfigurationError("temperature must be non-negative", {"temperature": self.temperature})
        if self.max_output_tokens <= 0:
            raise ConfigurationError(
                "max_output_tokens must be positive", {"max_output_tokens": self.max_output_tokens}
            )
        if not self.gemini_model:
            raise ConfigurationError("gemini_model must not be empty")

    def get_log_file_path(self) -> Optional[Path]:
        """Return the log file path, creating its directory if needed."""
        if self.log_file_path is None:
            return None
        path = Path(self.log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path


# Singleton instance
_settings = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
