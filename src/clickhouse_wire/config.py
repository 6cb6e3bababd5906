"""
clickhouse_wire Configuration
=============================

Connection-level defaults for the wire layer.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. YAML file passed to ``load_config``
    3. Default values (lowest priority)

Environment Variable Mapping:
    CLICKHOUSE_WIRE_HOSTNAME   -> connection.hostname
    CLICKHOUSE_WIRE_COMPRESS   -> connection.compress
    CLICKHOUSE_WIRE_TIMEZONE   -> connection.timezone
    CLICKHOUSE_WIRE_LOG_LEVEL  -> logging.level

Example:
    from clickhouse_wire.config import load_config, setup_logging

    settings = load_config("clickhouse.yaml")
    setup_logging(settings)
"""

import logging
import os
import socket
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

import yaml
from pydantic import BaseModel, Field

from clickhouse_wire.protocol import CLIENT_NAME


logger = logging.getLogger(__name__)

TIMEZONE_ENV = "CLICKHOUSE_WIRE_TIMEZONE"


# =============================================================================
# Configuration Models
# =============================================================================

class ConnectionConfig(BaseModel):
    """Client identity and per-connection preferences."""

    hostname: str = Field(
        default_factory=socket.gethostname,
        description="Hostname reported in the client info block",
    )
    compress: bool = Field(default=False, description="Request compressed data blocks")
    client_name: str = Field(default=CLIENT_NAME, description="Client name sent to the server")
    timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone for naive date/time values (None = local time)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for clickhouse_wire.

    Loads configuration from a YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from a YAML file and environment variables.

    Args:
        config_path: Path to a YAML file. When None, only defaults and
            environment variables are used.

    Returns:
        Settings: Loaded configuration
    """
    config_data = {}
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            logger.info("Loading config from: %s", config_path)
            with open(path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        else:
            logger.warning("Config file not found: %s", config_path)

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""
    if env_host := os.environ.get("CLICKHOUSE_WIRE_HOSTNAME"):
        config_data.setdefault("connection", {})["hostname"] = env_host
    if env_compress := os.environ.get("CLICKHOUSE_WIRE_COMPRESS"):
        config_data.setdefault("connection", {})["compress"] = env_compress.lower() in ("1", "true", "yes")
    if env_tz := os.environ.get(TIMEZONE_ENV):
        config_data.setdefault("connection", {})["timezone"] = env_tz
    if env_log := os.environ.get("CLICKHOUSE_WIRE_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.WARNING)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Return the tzinfo for an IANA name, or the local timezone for None."""
    if name:
        return ZoneInfo(name)
    return datetime.now().astimezone().tzinfo  # type: ignore[return-value]


def default_timezone() -> tzinfo:
    """Process default timezone for date/time codecs.

    Taken from ``CLICKHOUSE_WIRE_TIMEZONE`` when set, else local time.
    """
    return resolve_timezone(os.environ.get(TIMEZONE_ENV))
