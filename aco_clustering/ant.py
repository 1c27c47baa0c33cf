"""
aco_clustering/ant.py
─────────────────────
One ant: builds one complete partition of the dataset.

What does an ant do?
─────────────────────
For every point, the ant reads that point's pheromone row and picks a
cluster by roulette-wheel selection: clusters with more pheromone are
more likely, but any cluster with non-zero pheromone can be chosen.
The result is a hard partition. Every point lands in exactly one cluster.

The selection rule
──────────────────
  cumsum = cumulative sum of τ[i]          e.g. [0.1, 0.4, 0.5]
  u      = uniform draw in [0, cumsum[-1]) e.g. 0.27
  chosen = first k with cumsum[k] > u      → 1

  All-zero row (cumsum[-1] == 0): the ant picks a cluster uniformly at
  random from its own generator. The choice is still reproducible for a
  fixed seed.

Fitness
───────
  centroid[k] = mean of the points the ant put in cluster k
  F           = Σ_i ‖x_i − centroid[label_i]‖²

  An empty cluster gets a zero-vector centroid. No point refers to it,
  so it contributes nothing to F.

Lifecycle
─────────
Agents live in an AgentPool that is created once per run and reused:

  pool.reset() → construct(table) → evaluate(data) → read membership/fitness

Each agent owns its membership matrix and its random generator, so a
parallel task that holds an agent never touches another task's state.
"""

from __future__ import annotations

import math
from typing import Iterator, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from aco_clustering.pheromone import PheromoneTable


class Agent:
    """
    Builds one partition from the pheromone table and scores it.

    Attributes:
        fitness : float → within-cluster sum of squares of the last
                          evaluated partition. +inf until evaluate() runs.
    """

    def __init__(
        self, n_points: int, n_clusters: int, rng: np.random.Generator
    ) -> None:
        self._n_points = n_points
        self._n_clusters = n_clusters
        self._rng = rng
        self._membership: NDArray[np.bool_] = np.zeros(
            (n_points, n_clusters), dtype=bool
        )
        self.fitness: float = math.inf

    def clear(self) -> None:
        """Forget the current partition. Buffers are kept, not reallocated."""
        self._membership[:] = False
        self.fitness = math.inf

    # ── Cluster selection ──────────────────────────────────────────────────────

    def _select_cluster(self, table: PheromoneTable, point_idx: int) -> int:
        """
        Roulette-wheel pick of a cluster for one point.

        np.searchsorted(..., side="right") returns the first index whose
        cumulative sum is strictly greater than the draw, so zero-weight
        clusters are never chosen. The result is clamped to the last
        column for the case where rounding lets the draw reach the total.
        """
        cumsum: NDArray[np.float64] = np.cumsum(table.get_row(point_idx))
        total = float(cumsum[-1])

        if total <= 0.0:
            return int(self._rng.integers(self._n_clusters))

        draw = self._rng.random() * total
        chosen = int(np.searchsorted(cumsum, draw, side="right"))
        return min(chosen, self._n_clusters - 1)

    def construct(self, table: PheromoneTable) -> None:
        """
        Assign every point to one cluster using the current table.

        The table is only read. The agent must be cleared beforehand
        (clear() or AgentPool.reset()).
        """
        for point_idx in range(self._n_points):
            self._membership[point_idx, self._select_cluster(table, point_idx)] = True

    # ── Fitness ────────────────────────────────────────────────────────────────

    def evaluate(self, data: NDArray[np.float64]) -> float:
        """
        Compute and store the within-cluster sum of squares.

        Args:
            data: Array of shape (n_points, dimension).

        Returns:
            The fitness, also stored in self.fitness.
        """
        labels = self.labels
        centers = self.cluster_centers(data, labels)
        diff = data - centers[labels]
        self.fitness = float(np.einsum("ij,ij->", diff, diff))
        return self.fitness

    def cluster_centers(
        self, data: NDArray[np.float64], labels: NDArray[np.intp]
    ) -> NDArray[np.float64]:
        """Centroid of every cluster; empty clusters get the zero vector."""
        counts = np.bincount(labels, minlength=self._n_clusters)
        sums = np.zeros((self._n_clusters, data.shape[1]), dtype=np.float64)
        np.add.at(sums, labels, data)

        centers = np.zeros_like(sums)
        occupied = counts > 0
        centers[occupied] = sums[occupied] / counts[occupied, np.newaxis]
        return centers

    # ── Read access ────────────────────────────────────────────────────────────

    @property
    def membership(self) -> NDArray[np.bool_]:
        """Read-only view of the N×K membership matrix."""
        view = self._membership.view()
        view.flags.writeable = False
        return view

    @property
    def labels(self) -> NDArray[np.intp]:
        """Cluster index of every point."""
        return self._membership.argmax(axis=1)

    def __repr__(self) -> str:
        return (
            f"Agent(points={self._n_points}, clusters={self._n_clusters}, "
            f"fitness={self.fitness:.4f})"
        )


class AgentPool:
    """
    Fixed-size population of agents reused across iterations.

    Contract:
        reset() clears every agent. The engine calls it at the start of
        each iteration; agents are never reallocated during a run, and
        `agents` is the same tuple for the pool's whole life.
    """

    def __init__(
        self,
        count_ants: int,
        n_points: int,
        n_clusters: int,
        rngs: Sequence[np.random.Generator],
    ) -> None:
        if count_ants < 1:
            raise ValueError(f"AgentPool requires count_ants≥1, got {count_ants}")
        if len(rngs) != count_ants:
            raise ValueError(
                f"AgentPool needs one generator per agent, "
                f"got {len(rngs)} for {count_ants} agents"
            )
        self._agents: Tuple[Agent, ...] = tuple(
            Agent(n_points, n_clusters, rng) for rng in rngs
        )

    def reset(self) -> None:
        for agent in self._agents:
            agent.clear()

    @property
    def agents(self) -> Tuple[Agent, ...]:
        return self._agents

    def best(self) -> Agent:
        """Lowest-fitness agent; the earliest one wins ties."""
        return min(self._agents, key=lambda agent: agent.fitness)

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator[Agent]:
        return iter(self._agents)

    def __getitem__(self, index: int) -> Agent:
        return self._agents[index]
