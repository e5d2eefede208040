"""
Data models for the file guard.

BackupRecord captures everything the guard knows about a protected file just
before the caller's operation runs: where the private copy lives, where it
will be promoted to if the content changes, and the fingerprint used to
decide that.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator

from libs.safe_io.identity import reprhex

MODIFIED_FORMAT = "on %d %b %Y at %H:%M:%S"


class BackupRecord(BaseModel):
    """Pre-operation snapshot of a protected file."""

    path: Path = Field(..., description="The protected file")
    temp_path: Path = Field(..., description="Private copy of the pre-operation bytes")
    backup_path: Path = Field(..., description="Permanent sibling backup if content changes")
    backup_id: int = Field(..., ge=0, le=0xFFFFFFFF, description="Unique ID in backup_path")
    checksum: int = Field(..., ge=0, le=0xFFFFFFFF, description="CRC-32 of the original bytes")
    modified_at: datetime = Field(..., description="Last modification time (UTC)")

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("modified_at")
    @classmethod
    def validate_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("modified_at must be timezone-aware")
        return v

    @property
    def operation_id(self) -> str:
        return reprhex(self.backup_id, True)

    def modified_label(self, timezone: str | None = None) -> str:
        """Render the modification time for notices, e.g. 'on 11 Dec 2025 at 11:25:35'."""
        zone = ZoneInfo(timezone) if timezone else None
        return self.modified_at.astimezone(zone).strftime(MODIFIED_FORMAT)
