"""Clone-or-pull synchronization of driver repositories."""

from __future__ import annotations

import shutil
import subprocess
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..errors import CloneRootError, SyncError
from ..logging import get_logger
from ..models import Driver, SyncOutcome, SyncStatus
from ..pool import BoundedPool, TaskResult


class SyncProgress:
    """Thread-safe record of per-driver sync state, read by the diagnostics endpoint."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: Dict[str, str] = {}

    def mark(self, driver: str, state: str) -> None:
        with self._lock:
            self._states[driver] = state

    def record(self, outcome: SyncOutcome) -> None:
        self.mark(outcome.driver, outcome.describe())

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._states)


class RepositorySynchronizer:
    """Ensures every driver has an up-to-date checkout under ``clone_root``."""

    def __init__(
        self,
        clone_root: Path,
        *,
        concurrency: int = 3,
        branch: str = "master",
        timeout: float | None = None,
        runner: Callable[..., str] | None = None,
        pool: BoundedPool | None = None,
        progress: SyncProgress | None = None,
    ) -> None:
        self.clone_root = Path(clone_root)
        self.branch = branch
        self.timeout = timeout
        self._runner = runner or self._default_runner
        self._pool = pool or BoundedPool(concurrency)
        self.progress = progress or SyncProgress()
        self.logger = get_logger("sync")

    def prepare(self) -> None:
        """Create the clone root; failing here is fatal for the run."""
        try:
            self.clone_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CloneRootError(f"Cannot create clone root {self.clone_root}: {exc}") from exc

    def sync(self, drivers: Sequence[Driver]) -> List[SyncOutcome]:
        """Clone or update every driver, returning one outcome per driver in input order."""
        self.logger.info(
            "cloning %d drivers to %s (at most %d at a time)",
            len(drivers),
            self.clone_root,
            self._pool.limit,
        )
        self.prepare()
        for driver in drivers:
            self.progress.mark(driver.language, "pending")
        results = self._pool.run(drivers, self.sync_one)
        outcomes = [self._to_outcome(result) for result in results]
        failed = sum(1 for outcome in outcomes if outcome.failed)
        if failed:
            self.logger.warning("%d of %d driver repositories failed to sync", failed, len(outcomes))
        return outcomes

    def sync_one(self, driver: Driver) -> SyncOutcome:
        """Clone the driver when its checkout is missing, pull otherwise."""
        self.progress.mark(driver.language, "running")
        repo_path = self.repo_path(driver)
        if not repo_path.exists():
            self.logger.info("%s does not exist, cloning from %s", repo_path, driver.repository_url)
            try:
                self._git(
                    driver,
                    ["git", "clone", _clone_url(driver.repository_url), driver.local_path],
                    cwd=self.clone_root,
                )
            except SyncError:
                self._discard_partial_clone(repo_path)
                raise
            outcome = SyncOutcome(driver=driver.language, status=SyncStatus.CLONED)
        else:
            if not repo_path.is_dir():
                raise SyncError(driver.language, f"{repo_path} exists but is not a directory")
            self.logger.info("%s exists, will 'git pull' instead", repo_path)
            self._git(driver, ["git", "pull", "origin", self.branch], cwd=repo_path)
            outcome = SyncOutcome(driver=driver.language, status=SyncStatus.UPDATED)
        self.progress.record(outcome)
        return outcome

    def repo_path(self, driver: Driver) -> Path:
        return self.clone_root / driver.local_path

    # ------------------------------------------------------------------
    # Internals

    def _to_outcome(self, result: TaskResult[Driver, SyncOutcome]) -> SyncOutcome:
        if result.ok and result.value is not None:
            return result.value
        driver = result.item
        error = result.error
        reason = error.reason if isinstance(error, SyncError) else str(error)
        self.logger.warning("sync failed for %s: %s", driver.language, reason)
        outcome = SyncOutcome.failure(driver.language, reason)
        self.progress.record(outcome)
        return outcome

    def _discard_partial_clone(self, repo_path: Path) -> None:
        # A killed clone leaves a half-written checkout that 'git pull' can never repair.
        if not repo_path.exists():
            return
        self.logger.debug("removing incomplete checkout %s", repo_path)
        try:
            shutil.rmtree(repo_path)
        except OSError as exc:
            self.logger.warning("cannot remove incomplete checkout %s: %s", repo_path, exc)

    def _git(self, driver: Driver, args: List[str], *, cwd: Path) -> str:
        try:
            return self._runner(args, cwd=cwd, timeout=self.timeout)
        except subprocess.TimeoutExpired as exc:
            raise SyncError(driver.language, f"'{args[1]}' timed out after {exc.timeout}s") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() if isinstance(exc.stderr, str) else ""
            message = f"'{args[1]}' exited with status {exc.returncode}"
            if detail:
                message = f"{message}: {detail.splitlines()[-1]}"
            raise SyncError(driver.language, message) from exc
        except FileNotFoundError as exc:
            raise SyncError(driver.language, f"git executable not found: {exc}") from exc
        except OSError as exc:
            raise SyncError(driver.language, str(exc)) from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        timeout: Optional[float] = None,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
            timeout=timeout,
        )
        return completed.stdout


def _clone_url(url: str) -> str:
    trimmed = url.rstrip("/")
    if trimmed.endswith(".git"):
        return trimmed
    return f"{trimmed}.git"


__all__ = ["RepositorySynchronizer", "SyncProgress"]
