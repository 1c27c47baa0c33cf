"""
aco_clustering/parallel.py
──────────────────────────
Fork-join loop execution: run a task over an index range (or over the
items of a container) in contiguous chunks, concurrently, and return only
when every chunk has finished.

Execution model
───────────────
  • Synchronous fork-join. Nothing persists between calls: each call to
    ThreadedExecutor.parallel_for() creates its own short-lived thread
    pool, submits the background chunks, and tears the pool down on exit.
  • The calling thread is one of the workers. It always runs the final
    chunk (together with any remainder left by integer division) inline,
    then joins the background futures.
  • At most `usable_threads − 1` background chunks are dispatched.
    usable_threads = max_workers, or os.cpu_count() when not given.

Chunking
────────
  count      = number of loop indices in [start, end) with the given step
  chunk      = max(count // usable_threads, 1)      (in indices)
  background = min(usable_threads − 1, count // chunk − 1)

  Example: count=1000, usable_threads=4 → chunk=250, 3 background chunks
           [0,250) [250,500) [500,750), calling thread runs [750,1000).
  Example: count=3,    usable_threads=8 → chunk=1, 2 background chunks,
           calling thread runs the last index.

Failure semantics
─────────────────
An exception raised inside any chunk is re-raised at the join as
ParallelExecutionError, with the original exception as __cause__.
The remaining chunks are still awaited before the error propagates, so
no task is left running when the caller regains control.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from aco_clustering.models import ParallelBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

AMOUNT_HARDWARE_THREADS: int = os.cpu_count() or 1
"""Hardware threads reported by the OS (1 when unknown)."""


class ParallelExecutionError(RuntimeError):
    """
    Raised at the join point when a chunk of a parallel loop failed.

    Attributes:
        start: First index of the failed chunk.
        end:   One past the last index of the failed chunk.

    The original exception is available as __cause__.
    """

    def __init__(self, start: int, end: int, message: str = "") -> None:
        self.start = start
        self.end = end
        default_msg = f"Parallel task failed in chunk [{start}, {end})."
        super().__init__(message or default_msg)


def _run_chunk(
    task: Callable[[int], None], start: int, end: int, step: int
) -> None:
    for index in range(start, end, step):
        task(index)


class ParallelExecutor(ABC):
    """
    Fork-join loop primitive.

    Used by:
        ClusteringEngine → per-agent assignment and fitness phases.
    """

    @abstractmethod
    def parallel_for(
        self,
        start: int,
        end: int,
        task: Callable[[int], None],
        step: int = 1,
    ) -> None:
        """
        Call task(i) for every i in range(start, end, step).

        Returns only after every call has completed.

        Raises:
            ValueError:             if step < 1.
            ParallelExecutionError: if any task call raised.
        """

    def parallel_for_each(
        self, items: Iterable[T], task: Callable[[T], None]
    ) -> None:
        """
        Call task(item) for every element of items, chunked like parallel_for.

        Non-sequence iterables are materialised into a list first.
        """
        sequence: Sequence[T] = items if isinstance(items, Sequence) else list(items)
        self.parallel_for(0, len(sequence), lambda i: task(sequence[i]))

    @staticmethod
    def _check_step(step: int) -> None:
        if step < 1:
            raise ValueError(f"parallel_for requires step >= 1, got step={step}")


class SerialExecutor(ParallelExecutor):
    """Runs the whole range on the calling thread. Same contract, no threads."""

    def parallel_for(
        self,
        start: int,
        end: int,
        task: Callable[[int], None],
        step: int = 1,
    ) -> None:
        self._check_step(step)
        if end <= start:
            return
        try:
            _run_chunk(task, start, end, step)
        except Exception as exc:
            raise ParallelExecutionError(start, end) from exc

    def __repr__(self) -> str:
        return "SerialExecutor()"


class ThreadedExecutor(ParallelExecutor):
    """
    Fork-join over OS threads.

    Args:
        max_workers: Total threads used per call, calling thread included.
                     None → os.cpu_count(). 1 → everything inline.
    """

    def __init__(self, max_workers: Optional[int] = None) -> None:
        if max_workers is not None and max_workers < 1:
            raise ValueError(
                f"ThreadedExecutor requires max_workers >= 1, got {max_workers}"
            )
        self._usable_threads: int = max_workers or AMOUNT_HARDWARE_THREADS

    @property
    def usable_threads(self) -> int:
        """Threads available to one call, calling thread included."""
        return self._usable_threads

    def plan_chunks(
        self, start: int, end: int, step: int = 1
    ) -> Tuple[List[Tuple[int, int]], Tuple[int, int]]:
        """
        Split [start, end) into background chunks plus the inline tail.

        Returns:
            (background, inline) where background is a list of
            (chunk_start, chunk_end) pairs and inline is the
            (chunk_start, end) pair executed by the calling thread.
        """
        self._check_step(step)
        if end <= start:
            return [], (start, start)

        count = (end - start + step - 1) // step
        background_limit = self._usable_threads - 1

        chunk = max(count // (background_limit + 1), 1)
        amount = count // chunk
        if amount > background_limit:
            amount = background_limit
        elif amount > 0:
            amount -= 1     # the calling thread takes one share

        chunk_span = chunk * step
        background: List[Tuple[int, int]] = []
        current = start
        for _ in range(amount):
            background.append((current, current + chunk_span))
            current += chunk_span

        return background, (current, end)

    def parallel_for(
        self,
        start: int,
        end: int,
        task: Callable[[int], None],
        step: int = 1,
    ) -> None:
        background, (inline_start, inline_end) = self.plan_chunks(start, end, step)
        if not background:
            if inline_end > inline_start:
                try:
                    _run_chunk(task, inline_start, inline_end, step)
                except Exception as exc:
                    raise ParallelExecutionError(inline_start, inline_end) from exc
            return

        logger.debug(
            "parallel_for [%d, %d): %d background chunk(s) + inline [%d, %d)",
            start, end, len(background), inline_start, inline_end,
        )

        with ThreadPoolExecutor(max_workers=len(background)) as pool:
            futures: List[Tuple[Tuple[int, int], Future]] = [
                (bounds, pool.submit(_run_chunk, task, bounds[0], bounds[1], step))
                for bounds in background
            ]

            try:
                _run_chunk(task, inline_start, inline_end, step)
            except Exception as exc:
                raise ParallelExecutionError(inline_start, inline_end) from exc

            for (chunk_start, chunk_end), future in futures:
                try:
                    future.result()
                except Exception as exc:
                    raise ParallelExecutionError(chunk_start, chunk_end) from exc

    def __repr__(self) -> str:
        return f"ThreadedExecutor(usable_threads={self._usable_threads})"


def make_executor(
    backend: ParallelBackend = ParallelBackend.THREADED,
    max_workers: Optional[int] = None,
) -> ParallelExecutor:
    """
    Build the executor selected by configuration.

    Args:
        backend:     THREADED or SERIAL.
        max_workers: Thread budget for THREADED. Ignored for SERIAL.
    """
    if backend == ParallelBackend.SERIAL:
        return SerialExecutor()
    return ThreadedExecutor(max_workers=max_workers)
