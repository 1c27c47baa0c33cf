"""
tests/test_pheromone.py
───────────────────────
PheromoneTable unit tests: initial state, reinforcement math, the
non-negativity invariant, and read-only access.
"""

from __future__ import annotations

import numpy as np
import pytest

from aco_clustering.pheromone import PheromoneTable


class TestPheromoneTable:

    def test_initial_values_uniform(self):
        t = PheromoneTable(4, 3, initial_value=0.1)
        assert t.shape == (4, 3)
        assert np.allclose(t.snapshot(), 0.1)

    def test_zero_initial_value_allowed(self):
        t = PheromoneTable(2, 2, initial_value=0.0)
        assert np.all(t.snapshot() == 0.0)

    def test_invalid_dimensions_raise(self):
        with pytest.raises(ValueError):
            PheromoneTable(0, 3, 0.1)
        with pytest.raises(ValueError):
            PheromoneTable(3, 0, 0.1)

    def test_negative_initial_value_raises(self):
        with pytest.raises(ValueError):
            PheromoneTable(2, 2, -0.5)

    def test_reinforce_formula(self):
        """τ_new = (1 − ρ) × τ_old + deposit, cell by cell."""
        t = PheromoneTable(2, 2, initial_value=1.0)
        deposits = np.array([[0.5, 0.0], [0.0, 2.0]])
        t.reinforce(deposits, evaporation_rate=0.25)
        expected = np.array([[1.25, 0.75], [0.75, 2.75]])
        assert np.allclose(t.snapshot(), expected), (
            f"Expected {expected.tolist()}, got {t.snapshot().tolist()}"
        )

    def test_reinforce_full_evaporation_keeps_only_deposits(self):
        t = PheromoneTable(2, 3, initial_value=5.0)
        deposits = np.arange(6, dtype=np.float64).reshape(2, 3)
        t.reinforce(deposits, evaporation_rate=1.0)
        assert np.allclose(t.snapshot(), deposits)

    def test_reinforce_zero_evaporation_accumulates(self):
        t = PheromoneTable(1, 2, initial_value=1.0)
        t.reinforce(np.array([[1.0, 0.0]]), evaporation_rate=0.0)
        t.reinforce(np.array([[1.0, 0.0]]), evaporation_rate=0.0)
        assert np.allclose(t.snapshot(), [[3.0, 1.0]])

    @pytest.mark.parametrize("rho", [0.0, 0.1, 0.5, 0.9, 1.0])
    def test_entries_stay_non_negative(self, rho: float):
        """Any ρ in [0, 1] and any non-negative deposits keep every cell ≥ 0."""
        rng = np.random.default_rng(3)
        t = PheromoneTable(10, 4, initial_value=0.1)
        for _ in range(50):
            t.reinforce(rng.random((10, 4)) * rng.integers(0, 2, (10, 4)), rho)
            assert np.all(t.snapshot() >= 0.0), f"Negative cell with ρ={rho}"

    @pytest.mark.parametrize("rho", [-0.1, 1.5])
    def test_rho_out_of_range_raises(self, rho: float):
        t = PheromoneTable(2, 2, 0.1)
        with pytest.raises(ValueError):
            t.reinforce(np.zeros((2, 2)), rho)

    def test_negative_deposit_raises(self):
        t = PheromoneTable(2, 2, 0.1)
        before = t.snapshot()
        with pytest.raises(ValueError):
            t.reinforce(np.array([[0.0, -1.0], [0.0, 0.0]]), 0.5)
        assert np.allclose(t.snapshot(), before), "Rejected update modified the table"

    def test_non_finite_deposit_raises(self):
        t = PheromoneTable(1, 2, 0.1)
        with pytest.raises(ValueError):
            t.reinforce(np.array([[np.inf, 0.0]]), 0.5)

    def test_shape_mismatch_raises(self):
        t = PheromoneTable(2, 2, 0.1)
        with pytest.raises(ValueError):
            t.reinforce(np.zeros((3, 2)), 0.5)

    def test_get_row_is_read_only(self):
        t = PheromoneTable(3, 4, 0.2)
        row = t.get_row(1)
        assert row.shape == (4,)
        with pytest.raises(ValueError):
            row[0] = 9.0
        assert np.allclose(t.snapshot()[1], 0.2)

    def test_view_is_read_only_and_live(self):
        t = PheromoneTable(2, 2, 1.0)
        view = t.view()
        with pytest.raises(ValueError):
            view[0, 0] = 0.0
        t.reinforce(np.ones((2, 2)), 0.5)
        assert np.allclose(view, 1.5), "view() should reflect later reinforcement"

    def test_snapshot_is_deep_copy(self):
        t = PheromoneTable(2, 2, 1.0)
        snap = t.snapshot()
        snap[0, 0] = 999.0
        assert np.isclose(t.snapshot()[0, 0], 1.0)

    def test_repr_contains_shape(self):
        r = repr(PheromoneTable(2, 3, 0.1))
        assert "n_points=2" in r and "n_clusters=3" in r
