"""
aco_clustering/models.py
────────────────────────
Typed models shared by every layer of the ant-mean clustering engine.

Reading guide
-------------
Read top-to-bottom. Section 1 holds the enumerations, section 2 the run
parameters (resolved once when a ClusteringEngine is built), section 3
the result object handed back to callers.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 1: ENUMERATIONS
# ─────────────────────────────────────────────────────────────────────────────

class ParallelBackend(str, Enum):
    """
    How the engine runs its per-agent phases.

    THREADED → fork-join over OS threads (ThreadedExecutor).
    SERIAL   → everything on the calling thread (SerialExecutor).
               Use it where threads are unavailable or when debugging.
    """
    THREADED = "threaded"
    SERIAL = "serial"


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 2: PARAMETERS
# ─────────────────────────────────────────────────────────────────────────────

DEFAULT_RO: float = 0.9
"""ρ: fraction of pheromone that evaporates between iterations."""

DEFAULT_PHEROMONE_INIT: float = 0.1
"""Starting intensity of every (point, cluster) cell."""

DEFAULT_ITERATIONS: int = 50
"""Number of assign → evaluate → reinforce rounds."""

DEFAULT_COUNT_ANTS: int = 20
"""Agents per iteration."""


class AntClusteringParams(BaseModel):
    """
    Parameters of one ant-mean clustering engine.

    Fields:
        ro             → evaporation rate ρ in [0, 1].
                         τ_new = (1 − ρ) × τ_old + deposit
                         ρ = 0 keeps every old deposit forever,
                         ρ = 1 keeps only the latest iteration's deposits.
        pheromone_init → uniform starting value of the table. 0.0 is
                         allowed: all-zero rows fall back to a uniform
                         cluster choice.
        iterations     → fixed iteration budget. There is no early exit.
        count_ants     → population size (agents per iteration).
        seed           → seed for the engine's random generator.
                         None draws fresh OS entropy (non-reproducible).
        backend        → parallel backend for the per-agent phases.
        max_workers    → upper bound on threads used by the threaded
                         backend, calling thread included.
                         None uses os.cpu_count().
    """
    ro: float = Field(
        DEFAULT_RO, ge=0.0, le=1.0,
        description="Pheromone evaporation rate"
    )
    pheromone_init: float = Field(
        DEFAULT_PHEROMONE_INIT, ge=0.0,
        description="Initial pheromone intensity for every cell"
    )
    iterations: int = Field(
        DEFAULT_ITERATIONS, ge=1,
        description="Number of colony iterations"
    )
    count_ants: int = Field(
        DEFAULT_COUNT_ANTS, ge=1,
        description="Number of agents building a partition each iteration"
    )
    seed: Optional[int] = Field(
        None, ge=0,
        description="Random seed. None = non-deterministic run."
    )
    backend: ParallelBackend = Field(
        ParallelBackend.THREADED,
        description="Parallel execution backend"
    )
    max_workers: Optional[int] = Field(
        None, ge=1,
        description="Thread budget for the threaded backend (calling thread included)"
    )


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 3: RESULT
# ─────────────────────────────────────────────────────────────────────────────

class ClusteringResult(BaseModel):
    """
    The best partition found by a clustering run.

    Every point index 0..N-1 appears in exactly one of `clusters`.
    Clusters may be empty.

    Fields:
        clusters        → K lists of point indices, ascending.
        labels          → labels[i] is the cluster of point i.
        fitness         → within-cluster sum of squares of the partition.
        count_clusters  → K.
        iterations      → iterations actually executed.
        fitness_history → best-so-far fitness after each iteration.
                          Non-increasing by construction.
    """
    model_config = ConfigDict(frozen=True)

    clusters: List[List[int]]
    labels: List[int]
    fitness: float = Field(..., ge=0.0)
    count_clusters: int = Field(..., ge=1)
    iterations: int = Field(..., ge=1)
    fitness_history: List[float] = Field(default_factory=list)

    @classmethod
    def from_membership(
        cls,
        membership: NDArray[np.bool_],
        fitness: float,
        iterations: int,
        fitness_history: List[float],
    ) -> ClusteringResult:
        """Build a result from an N×K boolean membership matrix."""
        n_clusters = membership.shape[1]
        labels = membership.argmax(axis=1)
        clusters = [
            np.flatnonzero(labels == k).tolist() for k in range(n_clusters)
        ]
        return cls(
            clusters=clusters,
            labels=labels.tolist(),
            fitness=float(fitness),
            count_clusters=n_clusters,
            iterations=iterations,
            fitness_history=list(fitness_history),
        )

    def get_clusters(self) -> List[List[int]]:
        """Point indices of every cluster (a fresh copy)."""
        return [list(cluster) for cluster in self.clusters]

    def membership(self) -> NDArray[np.bool_]:
        """
        Boolean N×K membership matrix rebuilt from `labels`.

        Each call returns a new array; editing it never touches the result.
        """
        matrix = np.zeros((len(self.labels), self.count_clusters), dtype=bool)
        matrix[np.arange(len(self.labels)), self.labels] = True
        return matrix
