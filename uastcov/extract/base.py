"""Base classes for usage scanners."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Sequence


class UsageScanner(ABC):
    """Contract for scanners that count node type usage in a driver checkout."""

    def __init__(self, patterns: Sequence[str]) -> None:
        self.patterns = tuple(patterns)

    def files(self, root: Path) -> List[Path]:
        """Return the files under ``root`` matching the scanner's glob patterns, sorted."""
        found = set()
        for pattern in self.patterns:
            for path in root.glob(pattern):
                if path.is_file():
                    found.add(path)
        return sorted(found)

    def scan(self, root: Path) -> Counter[str]:
        """Accumulate counts over every matching file of the checkout at ``root``."""
        counts: Counter[str] = Counter()
        for path in self.files(root):
            counts.update(self.count(path))
        return counts

    @abstractmethod
    def count(self, path: Path) -> Iterable[str]:
        """Yield one node type name per use-site found in ``path``."""
