"""Bounded task scheduling with per-item failure isolation."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class Limiter(Protocol):
    """Counting resource limiter shared by every task of a pool run."""

    def acquire(self) -> bool: ...

    def release(self) -> None: ...


@dataclass(frozen=True)
class TaskResult(Generic[T, U]):
    """Outcome of running one work item: either a value or the raised error."""

    item: T
    value: Optional[U] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BoundedPool:
    """Runs one task per work item while at most ``limit`` hold the limiter.

    Every item gets its own worker thread so that waiting on the limiter is the
    only thing gating progress. Errors raised by a task are captured in its
    ``TaskResult`` and never affect sibling tasks.
    """

    def __init__(
        self,
        limit: int,
        *,
        limiter_factory: Callable[[int], Limiter] | None = None,
    ) -> None:
        if limit < 1:
            raise ValueError("Pool limit must be at least 1")
        self.limit = limit
        self._limiter_factory = limiter_factory or threading.BoundedSemaphore

    def run(self, items: Sequence[T], fn: Callable[[T], U]) -> List[TaskResult[T, U]]:
        """Apply ``fn`` to every item and return results in input order.

        Returns only after every task terminated, successfully or not.
        """
        if not items:
            return []
        limiter = self._limiter_factory(self.limit)

        def _task(item: T) -> TaskResult[T, U]:
            limiter.acquire()
            try:
                return TaskResult(item=item, value=fn(item))
            except Exception as exc:
                return TaskResult(item=item, error=exc)
            finally:
                limiter.release()

        with ThreadPoolExecutor(
            max_workers=len(items), thread_name_prefix="uastcov-pool"
        ) as executor:
            futures = [executor.submit(_task, item) for item in items]
            return [future.result() for future in futures]


__all__ = ["BoundedPool", "Limiter", "TaskResult"]
