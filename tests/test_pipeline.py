"""End-to-end tests for the audit pipeline."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from uastcov.catalog import NodeTypeCatalog
from uastcov.config import AuditConfig
from uastcov.errors import CloneRootError, RegistryError
from uastcov.git.sync import RepositorySynchronizer
from uastcov.models import Driver, SyncStatus
from uastcov.pipeline import AuditPipeline

_FIXTURE = """
{ '@type': "uast:Identifier", Name: "a" }
{ '@type': "uast:Identifier", Name: "b" }
{ '@type': "uast:Identifier", Name: "c" }
"""

_NORMALIZER = """
package normalizer

import "github.com/bblfsh/sdk/v3/uast"

var Normalizers = []interface{}{
	uast.Identifier{},
	uast.Comment{},
	uast.Comment{Text: "x"},
}
"""


class _ListRegistry:
    def __init__(self, drivers: list[Driver]) -> None:
        self._drivers = drivers

    def list_drivers(self) -> list[Driver]:
        return self._drivers


class _FailingRegistry:
    def list_drivers(self) -> list[Driver]:
        raise RegistryError("Registry lookup failed: offline")


def _git_runner(checkouts: dict[str, dict[str, str]], failing: set[str]):  # type: ignore[no-untyped-def]
    def runner(args, cwd, timeout=None):  # type: ignore[no-untyped-def]
        args = list(args)
        target = args[-1] if args[1] == "clone" else Path(cwd).name
        if target in failing:
            raise subprocess.CalledProcessError(128, args, stderr="fatal: Authentication failed\n")
        if args[1] == "clone":
            root = Path(cwd) / target
            for relative, content in checkouts.get(target, {}).items():
                path = root / relative
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content.lstrip("\n"), encoding="utf-8")
            root.mkdir(parents=True, exist_ok=True)
        return ""

    return runner


def _pipeline(
    tmp_path: Path, drivers: list[Driver], failing: set[str], *, show_status: bool = False
) -> AuditPipeline:
    config = AuditConfig(root=tmp_path, clone_root=tmp_path / "drivers")
    config.report.show_status = show_status
    checkouts = {
        "a-driver": {
            "fixtures/x.sem.uast": _FIXTURE,
            "driver/normalizer/normalizer.go": _NORMALIZER,
        },
    }
    synchronizer = RepositorySynchronizer(
        config.clone_root, concurrency=2, runner=_git_runner(checkouts, failing)
    )
    return AuditPipeline(
        config,
        registry=_ListRegistry(drivers),
        synchronizer=synchronizer,
        catalog=NodeTypeCatalog(["Identifier", "Comment"]),
    )


def _drivers() -> list[Driver]:
    return [
        Driver(language="A", repository_url="https://github.com/bblfsh/a-driver"),
        Driver(language="B", repository_url="https://github.com/bblfsh/b-driver"),
    ]


def test_pipeline_reports_failed_driver_with_zero_counts(tmp_path: Path) -> None:
    result = _pipeline(tmp_path, _drivers(), failing={"b-driver"}).run()

    assert [outcome.status for outcome in result.outcomes] == [SyncStatus.CLONED, SyncStatus.FAILED]
    assert [outcome.driver for outcome in result.failed] == ["B"]
    assert "|                         |    A|    B|" in result.report
    assert "|               Identifier| 3/1 | 0/0 |" in result.report
    assert "|                  Comment| 0/2 | 0/0 |" in result.report
    assert result.drivers[1].fixture_usage == {"Identifier": 0, "Comment": 0}
    assert result.drivers[1].code_usage == {"Identifier": 0, "Comment": 0}


def test_pipeline_rerun_updates_and_reproduces_report(tmp_path: Path) -> None:
    first = _pipeline(tmp_path, _drivers(), failing=set()).run()
    second = _pipeline(tmp_path, _drivers(), failing=set()).run()

    assert all(outcome.status is SyncStatus.CLONED for outcome in first.outcomes)
    assert all(outcome.status is SyncStatus.UPDATED for outcome in second.outcomes)
    assert first.report == second.report


def test_pipeline_status_note_names_unreachable_driver(tmp_path: Path) -> None:
    result = _pipeline(tmp_path, _drivers(), failing={"b-driver"}, show_status=True).run()

    assert " - B: 'clone' exited with status 128: fatal: Authentication failed" in result.report


def test_pipeline_registry_failure_is_fatal(tmp_path: Path) -> None:
    config = AuditConfig(root=tmp_path, clone_root=tmp_path / "drivers")
    pipeline = AuditPipeline(config, registry=_FailingRegistry())

    with pytest.raises(RegistryError):
        pipeline.run()
    assert not (tmp_path / "drivers").exists()


def test_pipeline_clone_root_failure_is_fatal(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    config = AuditConfig(root=tmp_path, clone_root=blocker / "drivers")
    pipeline = AuditPipeline(config, registry=_ListRegistry(_drivers()))

    with pytest.raises(CloneRootError):
        pipeline.run()
