"""
aco_clustering: Ant Colony Optimisation mean clustering.

Public API:
    antmean_clustering     → one-call clustering, returns ClusteringResult
    AntMean                → process(data, k) / get_clusters() object form
    ClusteringEngine       → the colony loop itself
    AntClusteringParams    → run parameters (pydantic)
    ClusteringResult       → best partition found
    InvalidArgumentError   → malformed data or cluster count
    ParallelExecutionError → a parallel phase failed

Usage:
    from aco_clustering import AntClusteringParams, antmean_clustering

    result = antmean_clustering(points, 2, AntClusteringParams(seed=42))
    result.get_clusters()        # [[0, 1, 5], [2, 3, 4]]
"""

from aco_clustering.antmean import AntMean, antmean_clustering
from aco_clustering.colony import ClusteringEngine, InvalidArgumentError
from aco_clustering.models import AntClusteringParams, ClusteringResult, ParallelBackend
from aco_clustering.parallel import (
    ParallelExecutionError,
    ParallelExecutor,
    SerialExecutor,
    ThreadedExecutor,
    make_executor,
)

__all__ = [
    "AntClusteringParams",
    "AntMean",
    "ClusteringEngine",
    "ClusteringResult",
    "InvalidArgumentError",
    "ParallelBackend",
    "ParallelExecutionError",
    "ParallelExecutor",
    "SerialExecutor",
    "ThreadedExecutor",
    "antmean_clustering",
    "make_executor",
]
