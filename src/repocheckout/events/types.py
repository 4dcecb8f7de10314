from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class Event(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: str


class RetryAttemptFailed(Event):
    event_type: str = "RetryAttemptFailed"
    attempt: int = 0
    max_attempts: int = 0
    error: str = ""


class RetryWaiting(Event):
    event_type: str = "RetryWaiting"
    attempt: int = 0
    max_attempts: int = 0
    delay_seconds: int = 0


class GitVersionDetected(Event):
    event_type: str = "GitVersionDetected"
    tool: str
    version: str
    path: str = ""


class GitCommandCompleted(Event):
    event_type: str = "GitCommandCompleted"
    args: list[str] = Field(default_factory=list)
    exit_code: int = 0
    silent: bool = False


class FetchCompleted(Event):
    event_type: str = "FetchCompleted"
    remote: str
    ref_spec: list[str] = Field(default_factory=list)
    status: str = ""
    error: str = ""


EVENT_TYPE_MAP: dict[str, type[Event]] = {
    "RetryAttemptFailed": RetryAttemptFailed,
    "RetryWaiting": RetryWaiting,
    "GitVersionDetected": GitVersionDetected,
    "GitCommandCompleted": GitCommandCompleted,
    "FetchCompleted": FetchCompleted,
}
