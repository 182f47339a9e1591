"""Per-driver usage extraction."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Dict, Tuple

from ..catalog import NodeTypeCatalog
from ..logging import get_logger
from ..models import Driver
from .base import UsageScanner
from .code import CodeScanner
from .fixtures import FixtureScanner

Usage = Dict[str, int]


class UsageExtractor:
    """Fills a synchronized driver's fixture and code usage mappings."""

    def __init__(
        self,
        clone_root: Path,
        *,
        fixture_scanner: UsageScanner | None = None,
        code_scanner: UsageScanner | None = None,
    ) -> None:
        self.clone_root = Path(clone_root)
        self._fixture_scanner = fixture_scanner
        self._code_scanner = code_scanner
        self.logger = get_logger("extract")

    def extract(self, driver: Driver, catalog: NodeTypeCatalog) -> Tuple[Usage, Usage]:
        """Scan the driver checkout and store the resulting counts on ``driver``.

        Every catalog name is present in both returned mappings. Names found in
        the checkout but missing from the catalog are kept as well. A scanner
        failure leaves the driver with all-zero mappings.
        """
        root = self.clone_root / driver.local_path
        fixture_scanner = self._fixture_scanner or FixtureScanner()
        code_scanner = self._code_scanner or CodeScanner(catalog)
        try:
            fixture_counts = fixture_scanner.scan(root)
            code_counts = code_scanner.scan(root)
        except Exception as exc:
            self.logger.warning("usage extraction failed for %s: %s", driver.language, exc)
            fixture_counts = Counter()
            code_counts = Counter()

        driver.fixture_usage = _with_catalog(catalog, fixture_counts)
        driver.code_usage = _with_catalog(catalog, code_counts)
        self.logger.debug(
            "%s: %d fixture and %d code references",
            driver.language,
            sum(fixture_counts.values()),
            sum(code_counts.values()),
        )
        return driver.fixture_usage, driver.code_usage

    def empty(self, driver: Driver, catalog: NodeTypeCatalog) -> Tuple[Usage, Usage]:
        """Mark a driver whose sync failed as measured-empty."""
        driver.fixture_usage = catalog.zeroed()
        driver.code_usage = catalog.zeroed()
        return driver.fixture_usage, driver.code_usage


def _with_catalog(catalog: NodeTypeCatalog, counts: Counter[str]) -> Usage:
    usage = catalog.zeroed()
    for name, value in counts.items():
        usage[name] = usage.get(name, 0) + value
    return usage


__all__ = ["CodeScanner", "FixtureScanner", "UsageExtractor", "UsageScanner"]
