"""
aco_clustering/pheromone.py
───────────────────────────
The pheromone table: the colony's shared, persistent memory.

In this engine:
  • "Path"   = assigning point i to cluster k.
  • "Better" = lower within-cluster sum of squares of the whole partition.
  • τ[i][k]  = pheromone on the arc "put point i in cluster k".

Two forces balance each other on every reinforcement:
  1. Evaporation → all cells are scaled by (1 − ρ). Old signal fades, so
                   the colony does not lock onto an early partition.
  2. Deposit     → every agent adds Q / F to each cell it chose, where F
                   is its fitness. Compact partitions deposit more.

  τ_new = (1 − ρ) × τ_old + Σ_agents deposit

Table layout
────────────
  Shape : (n_points, n_clusters)
  τ[i][k]: pheromone for placing the i-th point in the k-th cluster.

Access rules
────────────
  • Agents read rows through get_row() / view(). Both are read-only
    numpy views; writing to them raises ValueError.
  • reinforce() is the only mutator. The engine calls it after every
    parallel phase of the iteration has been joined.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

DEPOSIT_Q: float = 1.0
"""Deposit numerator: one agent adds DEPOSIT_Q / F to each cell it chose."""

FITNESS_EPSILON: float = 1e-12
"""Floor for F in DEPOSIT_Q / F. A perfect partition (F = 0) deposits a
large but finite amount instead of dividing by zero."""


class PheromoneTable:
    """
    A 2D numpy array τ[n_points][n_clusters] of non-negative intensities.

    Used by:
        Agent._select_cluster() → reads get_row() for roulette selection.
        ClusteringEngine        → calls reinforce() once per iteration.
        Tests                   → call snapshot() to inspect state.

    Thread safety:
        Concurrent reads are safe. reinforce() must not overlap with
        readers; the engine only calls it between parallel phases.
    """

    def __init__(
        self, n_points: int, n_clusters: int, initial_value: float
    ) -> None:
        """
        Initialise a uniform table.

        Args:
            n_points:      Rows. Must be ≥ 1.
            n_clusters:    Columns. Must be ≥ 1.
            initial_value: Starting value of every cell. Must be ≥ 0.

        Raises:
            ValueError: on a bad dimension or a negative initial value.
        """
        if n_points < 1 or n_clusters < 1:
            raise ValueError(
                f"PheromoneTable requires n_points≥1 and n_clusters≥1, "
                f"got n_points={n_points}, n_clusters={n_clusters}"
            )
        if initial_value < 0.0:
            raise ValueError(
                f"PheromoneTable initial value must be ≥ 0, got {initial_value}"
            )
        self._n_points = n_points
        self._n_clusters = n_clusters
        self._table: NDArray[np.float64] = np.full(
            (n_points, n_clusters), initial_value, dtype=np.float64
        )

    # ── Mutation ───────────────────────────────────────────────────────────────

    def reinforce(
        self, deposits: NDArray[np.float64], evaporation_rate: float
    ) -> None:
        """
        Evaporate and deposit in one in-place step.

            τ = (1 − ρ) × τ + deposits

        Args:
            deposits:         Array of shape (n_points, n_clusters), all ≥ 0.
            evaporation_rate: ρ in [0, 1].

        Raises:
            ValueError: on a shape mismatch, a negative or non-finite
                        deposit, or ρ outside [0, 1].

        The table is clipped at 0.0 afterwards so floating-point rounding
        can never leave a negative cell behind.
        """
        if not 0.0 <= evaporation_rate <= 1.0:
            raise ValueError(
                f"evaporation_rate must be in [0, 1], got {evaporation_rate}"
            )
        deposits = np.asarray(deposits, dtype=np.float64)
        if deposits.shape != self._table.shape:
            raise ValueError(
                f"deposits shape {deposits.shape} does not match "
                f"table shape {self._table.shape}"
            )
        if not np.all(np.isfinite(deposits)) or np.any(deposits < 0.0):
            raise ValueError("deposits must be finite and non-negative")

        self._table *= (1.0 - evaporation_rate)
        self._table += deposits
        np.clip(self._table, 0.0, None, out=self._table)

    # ── Read access ────────────────────────────────────────────────────────────

    def get_row(self, point_idx: int) -> NDArray[np.float64]:
        """
        Return the pheromone row of one point across all clusters.

        The returned array is a read-only view of the live table.
        """
        row = self._table[point_idx]
        row.flags.writeable = False
        return row

    def view(self) -> NDArray[np.float64]:
        """Read-only view of the whole live table."""
        table = self._table.view()
        table.flags.writeable = False
        return table

    def snapshot(self) -> NDArray[np.float64]:
        """
        Deep copy of the current table.

        Mutations to the returned array do NOT affect the live table.
        """
        return self._table.copy()

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def shape(self) -> tuple[int, int]:
        """The (n_points, n_clusters) dimensions of the table."""
        return (self._n_points, self._n_clusters)

    @property
    def n_points(self) -> int:
        return self._n_points

    @property
    def n_clusters(self) -> int:
        return self._n_clusters

    def __repr__(self) -> str:
        return (
            f"PheromoneTable(n_points={self._n_points}, "
            f"n_clusters={self._n_clusters}, "
            f"min={self._table.min():.4f}, max={self._table.max():.4f}, "
            f"mean={self._table.mean():.4f})"
        )
