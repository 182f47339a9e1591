"""Version control operations on driver checkouts."""

from .sync import RepositorySynchronizer, SyncProgress

__all__ = ["RepositorySynchronizer", "SyncProgress"]
