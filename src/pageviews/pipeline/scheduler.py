"""Module implementing the BoundedScheduler type."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from functools import partial
from typing import TypeVar

A = TypeVar("A")
T = TypeVar("T")

log = logging.getLogger("pipeline/scheduler")


class BoundedScheduler:
    """
    Run operations in groups of at most `limit` concurrent operations.

    The first `limit` operations start immediately. The next group starts
    only once every operation in the current group has settled, whether it
    succeeded or failed. A failing operation never prevents its siblings,
    nor the following groups, from running.

    With heterogeneous durations, one slow operation holds back the next
    group while the other slots are idle.

    A limit of None means all operations start immediately.

    `run_after` chains a stage onto the futures of a previous one: each
    operation joins a group only once its input has succeeded, so the
    limit only counts operations that actually run.
    """

    def __init__(self, limit: int | None = None, *, name: str = "scheduler") -> None:
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be positive or None, got {limit}")
        self.limit = limit
        self.name = name

    def run(self, operations: Sequence[Callable[[], T]]) -> list[Future[T]]:
        """
        Schedule the operations and return one future per operation.

        The futures are returned immediately, in the same order as the
        operations, and settle independently as operations complete. The
        future of an operation that has not started yet may be cancelled,
        in which case the operation is skipped.
        """
        futures: list[Future[T]] = [Future() for _ in operations]
        if not futures:
            return futures
        limit = self.limit or len(futures)
        dispatcher = threading.Thread(
            target=self._dispatch,
            args=(list(operations), futures, limit),
            name=f"{self.name}-dispatcher",
        )
        dispatcher.start()
        return futures

    def run_after(
        self,
        inputs: Sequence[Future[A]],
        operation: Callable[[A], T],
    ) -> list[Future[T]]:
        """
        Apply operation to the result of each input future once it succeeds.

        Returns one future per input, in the same order, immediately. An
        operation only takes a slot once its input has settled, so inputs
        still pending never count against the limit. The ready operations
        run in groups as with `run`, in the order their inputs complete.
        When an input fails, its future fails with the same exception
        without running the operation; when it is cancelled, its future
        is cancelled.
        """
        futures: list[Future[T]] = [Future() for _ in inputs]
        if not futures:
            return futures
        dispatcher = threading.Thread(
            target=self._dispatch_after,
            args=(list(inputs), operation, futures),
            name=f"{self.name}-dispatcher",
        )
        dispatcher.start()
        return futures

    def _dispatch(
        self,
        operations: list[Callable[[], T]],
        futures: list[Future[T]],
        limit: int,
    ) -> None:
        with ThreadPoolExecutor(max_workers=limit, thread_name_prefix=self.name) as pool:
            for start in range(0, len(operations), limit):
                stop = min(start + limit, len(operations))
                log.debug("%s: launching operations [%d, %d)", self.name, start, stop)
                group = [
                    pool.submit(_settle, operations[index], futures[index])
                    for index in range(start, stop)
                ]
                wait(group)

    def _dispatch_after(
        self,
        inputs: list[Future[A]],
        operation: Callable[[A], T],
        futures: list[Future[T]],
    ) -> None:
        positions: dict[Future[A], list[int]] = {}
        for index, future in enumerate(inputs):
            positions.setdefault(future, []).append(index)
        pending = set(positions)
        ready: list[int] = []
        group: set[Future[None]] = set()

        workers = self.limit or len(inputs)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=self.name) as pool:
            while pending or ready or group:
                if ready and (self.limit is None or not group):
                    count = len(ready) if self.limit is None else self.limit
                    launch, ready = ready[:count], ready[count:]
                    log.debug("%s: launching operations %s", self.name, launch)
                    group |= {
                        pool.submit(
                            _settle, partial(operation, inputs[index].result()), futures[index]
                        )
                        for index in launch
                    }

                done, _ = wait(pending | group, return_when=FIRST_COMPLETED)
                group -= done
                for future in done & pending:
                    pending.discard(future)
                    for index in positions[future]:
                        if future.cancelled():
                            futures[index].cancel()
                        elif future.exception() is not None:
                            _fail(futures[index], future.exception())
                        else:
                            ready.append(index)


def _settle(operation: Callable[[], T], future: Future[T]) -> None:
    """Run the operation and settle the future with its outcome."""
    if not future.set_running_or_notify_cancel():
        return
    try:
        result = operation()
    except BaseException as exc:
        future.set_exception(exc)
    else:
        future.set_result(result)


def _fail(future: Future[T], exc: BaseException) -> None:
    """Fail the future with exc unless it was cancelled."""
    if future.set_running_or_notify_cancel():
        future.set_exception(exc)
