"""Engine configuration using Pydantic v2 Settings.

Centralized configuration that loads from environment variables
and provides type-safe access throughout the package.
"""

import logging
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_LOGGER = "config_templates"

# Applied to structlog events and to records from plain logging loggers.
SHARED_PROCESSORS = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


class Settings(BaseSettings):
    """Engine settings loaded from environment variables.

    All settings have sensible defaults and can be overridden via
    environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Strategy Selection
    abstractor_type: str = Field(
        default="strict",
        description="Abstractor strategy to use: 'strict'.",
    )
    resolver_type: str = Field(
        default="strict",
        description="Resolver strategy to use: 'strict'.",
    )

    # Limits
    max_tree_depth: int = Field(
        default=64,
        ge=1,
        le=512,
        description="Deepest configuration nesting accepted by the engine.",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR.",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="structlog renderer: 'json' or 'console'.",
    )
    log_dir: Path | None = Field(
        default=None,
        description="Optional directory for info.log and error.log files.",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        return v.upper()

    @field_validator("log_dir")
    @classmethod
    def resolve_log_dir(cls, v: Path | None) -> Path | None:
        """Make the log directory absolute."""
        return v.resolve() if v is not None else None

    @property
    def level(self) -> int:
        """Numeric logging level, INFO when the name is unknown."""
        return getattr(logging, self.log_level, logging.INFO)

    def renderer(self) -> Any:
        """structlog renderer selected by ``log_format``."""
        if self.log_format == "json":
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer(colors=False)

    def configure_logging(self) -> None:
        """Configure structlog to hand its events to stdlib handlers.

        Events are wrapped for ``structlog.stdlib.ProcessorFormatter`` so
        structlog loggers and plain ``logging`` loggers share the handlers
        installed by ``setup_logging``. Root handlers are left alone.
        """
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *SHARED_PROCESSORS,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        logging.getLogger(PACKAGE_LOGGER).setLevel(self.level)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global Settings instance.

    Returns:
        The singleton Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.configure_logging()
    return _settings


def reset_settings() -> None:
    """Drop the cached Settings so the next call reloads the environment."""
    global _settings
    _settings = None
