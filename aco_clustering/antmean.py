"""
aco_clustering/antmean.py
─────────────────────────
Caller-facing entry points for ant-mean clustering.

  antmean_clustering() → one call: validate, run, log, return the result.
  AntMean              → object form: process(data, k) then get_clusters().

Error handling contract
────────────────────────
  InvalidArgumentError:   bad data or cluster count. Raised before any
                          work starts. Logged at warning level, re-raised.
  ValidationError:        bad parameter values (pydantic). Raised when
                          the parameters are built, before any run.
  ParallelExecutionError: a task failed inside a parallel phase. The run
                          is aborted, logged with its traceback, and the
                          error is re-raised. No partial result is returned.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from aco_clustering.colony import ClusteringEngine, DataInput, InvalidArgumentError
from aco_clustering.models import AntClusteringParams, ClusteringResult
from aco_clustering.parallel import ParallelExecutionError, ParallelExecutor

logger = logging.getLogger(__name__)


def antmean_clustering(
    data: DataInput,
    count_clusters: int,
    params: Optional[AntClusteringParams] = None,
    executor: Optional[ParallelExecutor] = None,
    rng: Optional[np.random.Generator] = None,
) -> ClusteringResult:
    """
    Partition `data` into `count_clusters` clusters with the ant colony.

    Args:
        data:           N points of equal dimension.
        count_clusters: Number of clusters K, 1 ≤ K ≤ N.
        params:         Optional parameters. None → defaults.
        executor:       Optional executor overriding params.backend.
        rng:            Optional generator overriding params.seed.

    Returns:
        ClusteringResult with the best partition found.
    """
    engine = ClusteringEngine(params, executor=executor, rng=rng)

    try:
        result = engine.process(data, count_clusters)
    except InvalidArgumentError as exc:
        logger.warning("antmean_clustering: rejected input (%s): %s", exc.argument, exc)
        raise
    except ParallelExecutionError:
        logger.exception(
            "antmean_clustering: parallel phase failed for %d clusters, run aborted",
            count_clusters,
        )
        raise

    logger.info(
        "antmean_clustering: F=%.6f, cluster sizes=%s (%.2fms)",
        result.fitness, [len(c) for c in result.clusters], engine.last_run_ms,
    )
    return result


class AntMean:
    """
    Object form of the algorithm.

    Usage:
        algorithm = AntMean(AntClusteringParams(iterations=100, seed=1))
        clusters = algorithm.process(points, 3).get_clusters()
    """

    def __init__(
        self,
        params: Optional[AntClusteringParams] = None,
        executor: Optional[ParallelExecutor] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self._engine = ClusteringEngine(params, executor=executor, rng=rng)
        self._result: Optional[ClusteringResult] = None

    def process(self, data: DataInput, count_clusters: int) -> AntMean:
        """Run the colony and keep the result. Returns self for chaining."""
        self._result = self._engine.process(data, count_clusters)
        return self

    @property
    def result(self) -> Optional[ClusteringResult]:
        """Result of the last process() call, or None before the first one."""
        return self._result

    def get_clusters(self) -> List[List[int]]:
        """
        Point indices of every cluster from the last run.

        Raises:
            RuntimeError: if process() has not been called yet.
        """
        if self._result is None:
            raise RuntimeError("AntMean.get_clusters() called before process()")
        return self._result.get_clusters()

    def __repr__(self) -> str:
        return f"AntMean(engine={self._engine!r})"
