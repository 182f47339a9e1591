"""Error types shared across uastcov components."""

from __future__ import annotations


class AuditError(RuntimeError):
    """Fatal failure that aborts the whole audit run."""


class RegistryError(AuditError):
    """Raised when the list of drivers cannot be obtained."""


class CloneRootError(AuditError):
    """Raised when the shared clone root directory cannot be prepared."""


class CatalogError(AuditError):
    """Raised when the node type catalog is malformed."""


class SyncError(RuntimeError):
    """Recoverable failure while cloning or updating one driver repository."""

    def __init__(self, driver: str, reason: str) -> None:
        super().__init__(f"{driver}: {reason}")
        self.driver = driver
        self.reason = reason


__all__ = [
    "AuditError",
    "CatalogError",
    "CloneRootError",
    "RegistryError",
    "SyncError",
]
