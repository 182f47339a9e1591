"""Counts UAST type markers in recorded driver fixtures."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Sequence

from .base import UsageScanner

_TYPE_MARKER = re.compile(r"\buast:([A-Za-z_][A-Za-z0-9_]*)")


class FixtureScanner(UsageScanner):
    """Counts every ``uast:<Type>`` marker occurrence in semantic fixture files."""

    def __init__(self, patterns: Sequence[str] = ("fixtures/*.sem.uast",)) -> None:
        super().__init__(patterns)

    def count(self, path: Path) -> Iterable[str]:
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            for line in handle:
                if "uast:" not in line:
                    continue
                yield from _TYPE_MARKER.findall(line)


__all__ = ["FixtureScanner"]
