"""Logging setup for argform.

Console or JSON formatted records for the launcher process. The target
program's own output never goes through logging; it is captured by the
runner and shown in the output pane.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

__all__ = [
    "JSONFormatter",
    "LoggingSettings",
    "setup_logging",
    "configure_from_settings",
]

_RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}


class LoggingSettings(BaseSettings):
    """Environment-based logging settings using pydantic-settings.

    Loads from environment variables with the ARGFORM_ prefix.

    Example:
        >>> # ARGFORM_LOG_LEVEL=DEBUG
        >>> # ARGFORM_LOG_FORMAT=json
        >>> settings = LoggingSettings()
        >>> settings.log_level
        'DEBUG'
    """

    log_level: str = Field(default="WARNING", description="Logging level")
    log_format: str = Field(default="console", description="Log format: 'json' or 'console'")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    model_config = SettingsConfigDict(env_prefix="ARGFORM_")

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"log_level must be one of: {sorted(valid)}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v.lower() not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return v.lower()


class JSONFormatter(logging.Formatter):
    """Formatter that renders log records as JSON."""

    def __init__(self, exclude_fields: Optional[List[str]] = None):
        super().__init__()
        self.exclude_fields = exclude_fields or []

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            k: v
            for k, v in record.__dict__.items()
            if k not in _RESERVED and k not in self.exclude_fields
        }
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, default=str)


def setup_logging(
    verbose: bool = False,
    json_format: bool = False,
    log_file: Optional[str] = None,
    level: Optional[int] = None,
) -> None:
    """Configure the root logger.

    Console output goes to stderr: stdout may belong to the terminal UI.

    Args:
        verbose: Log at DEBUG
        json_format: Emit one JSON object per record
        log_file: Also write records to this file
        level: Explicit level, overrides verbose
    """
    if level is None:
        level = logging.DEBUG if verbose else logging.INFO

    formatter: logging.Formatter = JSONFormatter() if json_format else logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # textual and asyncio are chatty at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("markdown_it").setLevel(logging.WARNING)


def configure_from_settings(settings: Optional[LoggingSettings] = None) -> LoggingSettings:
    """Apply LoggingSettings (read from the environment if not given)."""
    settings = settings or LoggingSettings()
    setup_logging(
        json_format=settings.log_format == "json",
        log_file=settings.log_file,
        level=getattr(logging, settings.log_level),
    )
    logger.debug("Logging configured: %s", settings.model_dump())
    return settings
