"""End-to-end audit: discover, synchronize, extract, report."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

from .catalog import NodeTypeCatalog, resolve_catalog
from .config import DEFAULT_UAST_PACKAGE, AuditConfig, load_config
from .extract import CodeScanner, FixtureScanner, UsageExtractor
from .git.sync import RepositorySynchronizer, SyncProgress
from .logging import get_logger
from .models import Driver, SyncOutcome
from .registry import DriverRegistryClient, StaticRegistry
from .report import ReportFormatter


class DriverRegistry(Protocol):
    def list_drivers(self) -> List[Driver]: ...


@dataclass
class AuditResult:
    """Everything one run produced."""

    report: str
    catalog: NodeTypeCatalog
    drivers: List[Driver]
    outcomes: List[SyncOutcome]

    @property
    def failed(self) -> List[SyncOutcome]:
        return [outcome for outcome in self.outcomes if outcome.failed]


class AuditPipeline:
    """Runs the registry, synchronizer, extractor and formatter in order.

    Only fatal ``AuditError``s escape ``run``; per-driver problems end up as
    failed outcomes and zero counts.
    """

    def __init__(
        self,
        config: AuditConfig,
        *,
        registry: DriverRegistry | None = None,
        synchronizer: RepositorySynchronizer | None = None,
        extractor: UsageExtractor | None = None,
        formatter: ReportFormatter | None = None,
        catalog: NodeTypeCatalog | None = None,
        progress: SyncProgress | None = None,
    ) -> None:
        self.config = config
        if progress is None:
            progress = synchronizer.progress if synchronizer is not None else SyncProgress()
        self.progress = progress
        self.registry = registry or self._default_registry(config)
        self.synchronizer = synchronizer or RepositorySynchronizer(
            config.clone_root,
            concurrency=config.sync.concurrency,
            branch=config.sync.branch,
            timeout=config.sync.timeout,
            progress=self.progress,
        )
        self._extractor = extractor
        self.formatter = formatter or ReportFormatter(show_status=config.report.show_status)
        self._catalog = catalog
        self.logger = get_logger("pipeline")

    @classmethod
    def from_path(cls, config_path: Path, **kwargs) -> "AuditPipeline":  # type: ignore[no-untyped-def]
        return cls(load_config(config_path), **kwargs)

    def run(self) -> AuditResult:
        catalog = self._catalog if self._catalog is not None else resolve_catalog(self.config.catalog)
        drivers = self.registry.list_drivers()

        outcomes = self.synchronizer.sync(drivers)

        extractor = self._extractor or self._default_extractor(catalog)
        for driver, outcome in zip(drivers, outcomes):
            if outcome.failed:
                self.logger.debug("%s not measured: %s", driver.language, outcome.reason)
                extractor.empty(driver, catalog)
                continue
            extractor.extract(driver, catalog)

        report = self.formatter.format(catalog, drivers, outcomes)
        self.logger.info(
            "report generated for %d drivers (%d not measured)",
            len(drivers),
            sum(1 for outcome in outcomes if outcome.failed),
        )
        return AuditResult(report=report, catalog=catalog, drivers=drivers, outcomes=outcomes)

    # ------------------------------------------------------------------
    # Internals

    @staticmethod
    def _default_registry(config: AuditConfig) -> DriverRegistry:
        if config.drivers:
            return StaticRegistry(config.drivers)
        return DriverRegistryClient(config.registry)

    def _default_extractor(self, catalog: NodeTypeCatalog) -> UsageExtractor:
        return UsageExtractor(
            self.synchronizer.clone_root,
            fixture_scanner=FixtureScanner(self.config.fixtures.patterns),
            code_scanner=CodeScanner(
                catalog,
                self.config.code.patterns,
                package=self.config.code.package or DEFAULT_UAST_PACKAGE,
            ),
        )


def run_audit(config_path: Path, *, progress: Optional[SyncProgress] = None) -> AuditResult:
    """Load configuration from ``config_path`` and run a full audit."""
    return AuditPipeline.from_path(config_path, progress=progress).run()


__all__ = ["AuditPipeline", "AuditResult", "DriverRegistry", "run_audit"]
