import logging
from enum import StrEnum
from pathlib import Path
from typing import Any

import pydantic
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from exc import ConfigurationError


class LogFormat(StrEnum):
    JSON = "json"
    TEXT = "text"


class Settings(BaseSettings):
    """Process configuration, read from REMAW_* environment variables (e.g.
    REMAW_LOG_LEVEL=debug). Built once at startup and never modified."""

    model_config = SettingsConfigDict(
        env_prefix="REMAW_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    cert_file: Path = Path("./cert.pem")
    key_file: Path = Path("./key.pem")
    log_format: LogFormat = LogFormat.TEXT
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8443

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, val):
        level = str(val).upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"log level '{val}' is not recognized")
        return level

    @field_validator("port")
    @classmethod
    def validate_port(cls, val):
        if not 0 < val < 65536:
            raise ValueError(f"port {val} is out of range")
        return val


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment. Overrides that are not None
    (command line flags) take precedence."""

    try:
        return Settings(**{k: v for k, v in overrides.items() if v is not None})
    except pydantic.ValidationError as err:
        raise ConfigurationError(f"invalid configuration: {err}") from err
