"""
Configuration for SafeIO.

Settings are loaded with Pydantic Settings and may be overridden through
``SAFEIO_``-prefixed environment variables or a ``.env`` file.

Example:
    # Via environment variables
    export SAFEIO_BACKUP_DIR=/var/tmp/safeio
    export SAFEIO_HOUSE_NAME=BACKUPS

    # In code
    from libs.safe_io.config import get_settings
    print(get_settings().house_name)  # BACKUPS
"""

import keyword
from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    SafeIO configuration settings.

    Attributes:
        house_name: Binding name of the default Safehouse in every scope
        backup_dir: Directory for temporary pre-write copies (None = system temp dir)
        checksum_chunk_size: Bytes read per step when computing CRC-32 checksums
        display_timezone: IANA zone used to render modification times in notices
        default_format: Serializer used when none is passed explicitly
        log_level: Level applied by setup_logging()
    """

    model_config = SettingsConfigDict(
        env_prefix="SAFEIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    house_name: str = Field(
        default="SAFEHOUSE",
        description="Binding name of the default Safehouse",
    )
    backup_dir: Path | None = Field(
        default=None,
        description="Directory for temporary backups; the system temp dir when unset",
    )
    checksum_chunk_size: int = Field(
        default=65536,
        ge=1024,
        le=16 * 1024 * 1024,
        description="Read size in bytes for CRC-32 checksums",
    )
    display_timezone: str | None = Field(
        default=None,
        description="IANA timezone for notice timestamps; local time when unset",
    )
    default_format: Literal["pickle", "json"] = Field(
        default="pickle",
        description="Default serializer for protected store/load",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @field_validator("house_name")
    @classmethod
    def validate_house_name(cls, v: str) -> str:
        """A Safehouse is bound like any variable, so its name must be an identifier."""
        if not v.isidentifier() or keyword.iskeyword(v):
            raise ValueError(f"house_name must be a valid, non-reserved identifier, got {v!r}")
        return v

    @field_validator("display_timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        """Reject zone names the tz database does not know."""
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v!r}") from e
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with all configuration loaded.
    """
    return Settings()
