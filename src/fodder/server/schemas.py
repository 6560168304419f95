from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator


class ReplicaAttachRequest(BaseModel):
    url: str = Field(min_length=1)
    replica_id: str | None = Field(default=None, max_length=64)

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        parsed = urlparse(value.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Replica URL must be an absolute http(s) URL.")
        return value.strip()


class ScheduleUpdateRequest(BaseModel):
    seconds: int
