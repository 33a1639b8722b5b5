"""Single-flight execution of fetch work keyed by package identity."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Hashable

from hexpm_core.errors import FetchTimedOutError

logger = logging.getLogger(__name__)


class FetchCoordinator:
    """Runs each key's work at most once and shares the outcome with every waiter.

    Results stay in the table after completion, so later ``run`` calls for the
    same key are no-ops until the key is dropped with ``forget``. A waiter that
    gives up never cancels the work.
    """

    def __init__(self, *, max_workers: int = 8, executor: ThreadPoolExecutor | None = None) -> None:
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(int(max_workers), 1),
            thread_name_prefix="hex-fetch",
        )
        self._cond = threading.Condition()
        self._futures: dict[Hashable, Future[Any]] = {}

    def run(self, key: Hashable, work: Callable[[], Any]) -> Future[Any]:
        with self._cond:
            future = self._futures.get(key)
            if future is not None:
                logger.debug("fetch already scheduled key=%s", key)
                return future
            logger.debug("scheduling fetch key=%s", key)
            future = self._executor.submit(work)
            self._futures[key] = future
            self._cond.notify_all()
            return future

    def await_result(self, key: Hashable, timeout: float) -> Any:
        deadline = time.monotonic() + float(timeout)
        with self._cond:
            while key not in self._futures:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise FetchTimedOutError(key, timeout)
                self._cond.wait(remaining)
            future = self._futures[key]

        try:
            return future.result(timeout=max(deadline - time.monotonic(), 0.0))
        except TimeoutError as exc:
            if future.done():
                # The work itself raised TimeoutError; hand it over unchanged.
                raise
            raise FetchTimedOutError(key, timeout) from exc

    def is_scheduled(self, key: Hashable) -> bool:
        with self._cond:
            return key in self._futures

    def forget(self, key: Hashable) -> bool:
        with self._cond:
            future = self._futures.get(key)
            if future is None or not future.done():
                return False
            del self._futures[key]
            return True

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "FetchCoordinator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)
