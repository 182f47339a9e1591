"""Core data models shared across uastcov components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


def local_path_for(url: str) -> str:
    """Derive the checkout directory name from the repository URL's last segment."""
    trimmed = url.rstrip("/")
    name = trimmed.rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not name:
        raise ValueError(f"Cannot derive a directory name from repository URL {url!r}")
    return name


@dataclass
class Driver:
    """One language driver under audit, together with its usage counters."""

    language: str
    repository_url: str
    local_path: str = ""
    fixture_usage: Dict[str, int] = field(default_factory=dict)
    code_usage: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.local_path:
            self.local_path = local_path_for(self.repository_url)


class SyncStatus(str, Enum):
    CLONED = "cloned"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncOutcome:
    """Result of synchronizing a single driver repository."""

    driver: str
    status: SyncStatus
    reason: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status is SyncStatus.FAILED

    @classmethod
    def failure(cls, driver: str, reason: str) -> "SyncOutcome":
        return cls(driver=driver, status=SyncStatus.FAILED, reason=reason)

    def describe(self) -> str:
        if self.failed:
            return f"failed({self.reason})"
        return self.status.value
