"""Tests for per-driver usage extraction."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Iterable

from uastcov.catalog import NodeTypeCatalog
from uastcov.extract import UsageExtractor, UsageScanner


class _StaticScanner(UsageScanner):
    def __init__(self, counts: dict[str, int]) -> None:
        super().__init__(())
        self._counts = counts

    def scan(self, root: Path) -> Counter[str]:
        return Counter(self._counts)

    def count(self, path: Path) -> Iterable[str]:  # pragma: no cover - scan is overridden
        return []


class _BrokenScanner(UsageScanner):
    def __init__(self) -> None:
        super().__init__(("**/*",))

    def count(self, path: Path) -> Iterable[str]:
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")


def test_extract_fills_every_catalog_entry(driver_builder) -> None:
    catalog = NodeTypeCatalog(["Identifier", "Comment", "Block"])
    driver = driver_builder.driver("python")
    extractor = UsageExtractor(
        driver_builder.clone_root,
        fixture_scanner=_StaticScanner({"Identifier": 3, "Unknown": 1}),
        code_scanner=_StaticScanner({"Comment": 2}),
    )

    fixture_usage, code_usage = extractor.extract(driver, catalog)

    assert fixture_usage == {"Identifier": 3, "Comment": 0, "Block": 0, "Unknown": 1}
    assert code_usage == {"Identifier": 0, "Comment": 2, "Block": 0}
    assert driver.fixture_usage is fixture_usage
    assert driver.code_usage is code_usage


def test_extract_degrades_to_zero_on_scanner_error(driver_builder) -> None:
    catalog = NodeTypeCatalog(["Identifier", "Comment"])
    driver = driver_builder.driver("ruby")
    driver_builder.checkout(driver, {"fixtures/a.sem.uast": "uast:Identifier"})
    extractor = UsageExtractor(
        driver_builder.clone_root,
        fixture_scanner=_BrokenScanner(),
        code_scanner=_StaticScanner({"Comment": 5}),
    )

    fixture_usage, code_usage = extractor.extract(driver, catalog)

    assert fixture_usage == {"Identifier": 0, "Comment": 0}
    assert code_usage == {"Identifier": 0, "Comment": 0}


def test_extract_reads_checkout_with_default_scanners(driver_builder) -> None:
    catalog = NodeTypeCatalog(["Identifier", "Comment"])
    driver = driver_builder.driver("go")
    driver_builder.checkout(
        driver,
        {
            "fixtures/hello.go.sem.uast": '{ "@type": "uast:Identifier" }\n{ "@type": "uast:Identifier" }\n',
            "driver/normalizer/normalizer.go": """
                package normalizer

                import "github.com/bblfsh/sdk/v3/uast"

                var comment = uast.Comment{}
            """,
        },
    )

    fixture_usage, code_usage = UsageExtractor(driver_builder.clone_root).extract(driver, catalog)

    assert fixture_usage == {"Identifier": 2, "Comment": 0}
    assert code_usage == {"Identifier": 0, "Comment": 1}


def test_empty_marks_all_catalog_entries_zero(driver_builder) -> None:
    catalog = NodeTypeCatalog(["Identifier", "Comment"])
    driver = driver_builder.driver("php")

    UsageExtractor(driver_builder.clone_root).empty(driver, catalog)

    assert driver.fixture_usage == {"Identifier": 0, "Comment": 0}
    assert driver.code_usage == {"Identifier": 0, "Comment": 0}
