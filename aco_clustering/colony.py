"""
aco_clustering/colony.py
────────────────────────
The ClusteringEngine: orchestrates all agents across all iterations.

How the engine works
─────────────────────
  INIT
    • Validate the dataset and cluster count (fail before any iteration).
    • Create the PheromoneTable with every cell = pheromone_init.
    • Create the AgentPool. Every agent gets its own child generator
      spawned from the engine's generator.
    • Best solution = empty, best fitness = +inf. Iteration 1's best
      agent is always recorded.

  ITERATE (exactly `iterations` times, no early exit)
    a. Reset the pool.
    b. Assignment phase  → every agent builds a partition in parallel.
                           The table is read-only here.            [join]
    c. Evaluation phase  → every agent computes its fitness in
                           parallel.                               [join]
    d. Best update       → replace the best solution only if some agent
                           is strictly better.
    e. Reinforcement     → single-threaded τ = (1 − ρ)τ + Σ Q/F.

  DONE
    • Return the best partition as a ClusteringResult.

Parallel work is split by agent: one task owns one agent for the whole
phase, so no two tasks ever write the same membership row.

Reproducibility
───────────────
All randomness comes from one numpy Generator owned by the engine
(seeded from params.seed, or injected by the caller). Per-agent
generators are spawned from it at the start of each run, so the result
does not depend on how chunks are scheduled across threads. Two engines
built with the same seed and parameters produce identical results;
repeated process() calls on one engine continue the same random stream.
"""

from __future__ import annotations

import logging
import math
import time
from typing import List, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from aco_clustering.ant import Agent, AgentPool
from aco_clustering.models import AntClusteringParams, ClusteringResult
from aco_clustering.parallel import ParallelExecutor, make_executor
from aco_clustering.pheromone import DEPOSIT_Q, FITNESS_EPSILON, PheromoneTable

logger = logging.getLogger(__name__)

DataInput = Union[Sequence[Sequence[float]], NDArray[np.float64]]


class InvalidArgumentError(ValueError):
    """
    Raised when the input to a clustering run is malformed.

    When is this raised?
        • The dataset is empty or not two-dimensional.
        • Points have different dimensionality.
        • A coordinate is NaN or infinite.
        • Coordinates are so large that squared distances overflow float64.
        • count_clusters is < 1 or larger than the number of points.

    Always raised by ClusteringEngine.process() before the first iteration.

    Attributes:
        argument: Name of the offending argument ("data" or "count_clusters").
    """

    def __init__(self, argument: str, message: str) -> None:
        self.argument = argument
        super().__init__(message)


class ClusteringEngine:
    """
    Runs the ant-mean colony and returns the best partition.

    Usage:
        engine = ClusteringEngine(AntClusteringParams(seed=7))
        result = engine.process(points, count_clusters=3)
        result.get_clusters()    # [[0, 4, ...], [1, 2, ...], [3, ...]]

    After process():
        engine.last_run_ms      → wall-clock time of the last run.
        engine.fitness_history  → best-so-far fitness after each iteration.
        engine.iteration_best   → best agent fitness within each iteration.
    """

    def __init__(
        self,
        params: Optional[AntClusteringParams] = None,
        executor: Optional[ParallelExecutor] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """
        Args:
            params:   Run parameters. None → AntClusteringParams() defaults.
            executor: Parallel executor. None → built from params.backend
                      and params.max_workers.
            rng:      Random generator. None → np.random.default_rng(params.seed).
        """
        self._params = params if params is not None else AntClusteringParams()
        self._executor = executor if executor is not None else make_executor(
            self._params.backend, self._params.max_workers
        )
        self._rng = rng if rng is not None else np.random.default_rng(self._params.seed)

        # Populated by process()
        self.last_run_ms: float = 0.0
        self.fitness_history: List[float] = []
        self.iteration_best: List[float] = []

    @property
    def params(self) -> AntClusteringParams:
        return self._params

    # ── Validation ─────────────────────────────────────────────────────────────

    @staticmethod
    def _validate(data: DataInput, count_clusters: int) -> NDArray[np.float64]:
        """Check the input and return it as an immutable float64 array."""
        if isinstance(data, np.ndarray):
            if data.ndim != 2:
                raise InvalidArgumentError(
                    "data", f"data must be two-dimensional, got ndim={data.ndim}"
                )
        else:
            rows = list(data)
            try:
                dimensions = [len(row) for row in rows]
            except TypeError as exc:
                raise InvalidArgumentError(
                    "data", "every point must be a sequence of coordinates"
                ) from exc
            for idx, dimension in enumerate(dimensions):
                if dimension != dimensions[0]:
                    raise InvalidArgumentError(
                        "data",
                        f"point {idx} has dimension {dimension}, "
                        f"expected {dimensions[0]}",
                    )
            data = rows

        try:
            points = np.array(data, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError("data", f"data is not numeric: {exc}") from exc

        if points.ndim != 2 or points.shape[0] == 0:
            raise InvalidArgumentError("data", "data must contain at least one point")
        if points.shape[1] == 0:
            raise InvalidArgumentError("data", "points must have at least one dimension")
        if not np.all(np.isfinite(points)):
            raise InvalidArgumentError("data", "data contains NaN or infinite values")

        # Upper bounds on any centroid sum and on any partition's F.
        n_points = points.shape[0]
        with np.errstate(over="ignore"):
            extent = points.max(axis=0) - points.min(axis=0)
            spread = n_points * float(np.sum(extent * extent))
            magnitude = n_points * float(np.max(np.abs(points)))
        if not (math.isfinite(spread) and math.isfinite(magnitude)):
            raise InvalidArgumentError(
                "data", "coordinates are too large: squared distances overflow float64"
            )

        if isinstance(count_clusters, bool) or not isinstance(
            count_clusters, (int, np.integer)
        ):
            raise InvalidArgumentError(
                "count_clusters",
                f"count_clusters must be an integer, got {count_clusters!r}",
            )
        if count_clusters < 1 or count_clusters > points.shape[0]:
            raise InvalidArgumentError(
                "count_clusters",
                f"count_clusters must be in [1, {points.shape[0]}], "
                f"got {count_clusters}",
            )

        points.flags.writeable = False
        return points

    # ── Phases ─────────────────────────────────────────────────────────────────

    def _assign(self, pool: AgentPool, table: PheromoneTable) -> None:
        self._executor.parallel_for_each(pool.agents, lambda agent: agent.construct(table))

    def _evaluate(self, pool: AgentPool, points: NDArray[np.float64]) -> None:
        self._executor.parallel_for_each(pool.agents, lambda agent: agent.evaluate(points))

    def _reinforce(self, pool: AgentPool, table: PheromoneTable) -> None:
        """Σ over agents of DEPOSIT_Q / F on every cell the agent chose, then evaporate."""
        deposits = np.zeros(table.shape, dtype=np.float64)
        for agent in pool:
            deposits += agent.membership * (DEPOSIT_Q / max(agent.fitness, FITNESS_EPSILON))
        table.reinforce(deposits, self._params.ro)

    # ── Main loop ──────────────────────────────────────────────────────────────

    def process(self, data: DataInput, count_clusters: int) -> ClusteringResult:
        """
        Cluster `data` into `count_clusters` groups.

        Args:
            data:           N points of equal dimension (nested sequence or
                            2-D array).
            count_clusters: K, with 1 ≤ K ≤ N.

        Returns:
            ClusteringResult for the best partition seen in any iteration.

        Raises:
            InvalidArgumentError:   malformed data or cluster count.
            ParallelExecutionError: a parallel phase failed; the run is
                                    aborted and no result is produced.
        """
        points = self._validate(data, count_clusters)
        n_points = points.shape[0]
        params = self._params

        start = time.perf_counter()

        # ── INIT ────────────────────────────────────────────────────────────
        table = PheromoneTable(n_points, count_clusters, params.pheromone_init)
        pool = AgentPool(
            params.count_ants, n_points, count_clusters,
            self._rng.spawn(params.count_ants),
        )
        if params.pheromone_init == 0.0:
            logger.warning(
                "pheromone_init is 0.0: first iteration assigns points uniformly at random"
            )

        best_membership: Optional[NDArray[np.bool_]] = None
        best_fitness: float = math.inf
        self.fitness_history = []
        self.iteration_best = []

        # ── ITERATE ─────────────────────────────────────────────────────────
        for iteration in range(params.iterations):
            pool.reset()
            self._assign(pool, table)
            self._evaluate(pool, points)

            iteration_best: Agent = pool.best()
            if best_membership is None or iteration_best.fitness < best_fitness:
                best_fitness = iteration_best.fitness
                best_membership = iteration_best.membership.copy()

            self._reinforce(pool, table)

            self.iteration_best.append(iteration_best.fitness)
            self.fitness_history.append(best_fitness)
            logger.debug(
                "iteration %d/%d: iteration best F=%.6f, overall best F=%.6f",
                iteration + 1, params.iterations, iteration_best.fitness, best_fitness,
            )

        self.last_run_ms = (time.perf_counter() - start) * 1000.0

        # ── DONE ────────────────────────────────────────────────────────────
        logger.info(
            "ant-mean clustering: %d points, %d clusters, %d ants × %d iterations "
            "→ F=%.6f (%.2fms)",
            n_points, count_clusters, params.count_ants, params.iterations,
            best_fitness, self.last_run_ms,
        )

        return ClusteringResult.from_membership(
            best_membership, best_fitness, params.iterations, self.fitness_history,
        )

    def __repr__(self) -> str:
        return (
            f"ClusteringEngine(ants={self._params.count_ants}, "
            f"iterations={self._params.iterations}, executor={self._executor!r}, "
            f"last_run_ms={self.last_run_ms:.2f})"
        )
