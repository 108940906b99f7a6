"""
Pydantic models for the Hub Download Tracker API.
"""

from datetime import datetime, timezone
from typing import Any, Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


UNKNOWN_USER_AGENT = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DownloadRecord(BaseModel):
    """One tracked download, as stored in the event log."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    app_id: Optional[str] = Field(default=None, alias="appId")
    user_agent: str = Field(default=UNKNOWN_USER_AGENT, alias="userAgent")
    client_address: Optional[str] = Field(default=None, alias="ip")
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")

    def to_document(self) -> dict:
        # Legacy records carry no appId; keep new unscoped records the same shape
        return self.model_dump(by_alias=True, exclude_none=True)


class TrackDownloadRequest(BaseModel):
    """Body of a track-download request. Every field is optional."""
    userAgent: Optional[str] = None

    @field_validator("userAgent", mode="before")
    @classmethod
    def _coerce_user_agent(cls, value: Any) -> Optional[str]:
        # Any value is accepted; falsy ones fall back to "Unknown" on append
        if not value:
            return None
        return value if isinstance(value, str) else str(value)


class TrackDownloadResponse(BaseModel):
    success: bool = True
    totalDownloadCount: int
    message: str = "Download tracked successfully"


class DownloadCountResponse(BaseModel):
    totalDownloadCount: int


class ErrorResponse(BaseModel):
    error: str


class CounterDrift(BaseModel):
    """Difference between a counter and the records it should reflect."""
    counter_id: str
    counter_value: int
    log_count: int

    @property
    def drift(self) -> int:
        return self.counter_value - self.log_count


class ReconciliationReport(BaseModel):
    """Result of comparing the counter store against the event log."""
    checked: int
    mismatches: List[CounterDrift] = []

    @property
    def consistent(self) -> bool:
        return not self.mismatches
