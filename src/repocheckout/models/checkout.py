from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel


class RemoteDetail(BaseModel):
    hostname: str
    protocol: str
    repository: str


class WorkingBaseType(str, Enum):
    COMMIT = "commit"
    BRANCH = "branch"
    PULL = "pull"


class WorkingBase(BaseModel):
    working_base: str
    working_base_type: WorkingBaseType


class FetchStatus(str, Enum):
    OK = "OK"
    COMMAND_FAILED = "COMMAND_FAILED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    VERSION_ERROR = "VERSION_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a fetch; truthy only when the fetch succeeded."""

    status: FetchStatus
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK

    def __bool__(self) -> bool:
        return self.ok
