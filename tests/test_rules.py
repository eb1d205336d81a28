"""
Tests for the fixed and generalized threshold rules.
"""

import numpy as np
import pytest

from kernelca.automaton import random_grid, step
from kernelca.convolution import NeighborField, convolve
from kernelca.kernels import GAME_OF_LIFE_LARGE
from kernelca.rules import (
    RuleKind,
    apply_rule,
    fixed_rule,
    generalized_rule,
    generalized_thresholds,
    rule_kind,
)

WINDOW_5X5 = [(dr, dc) for dr in range(-2, 3) for dc in range(-2, 3) if (dr, dc) != (0, 0)]


def grid_with_neighbors(count: int, center_alive: bool, side: int = 11) -> np.ndarray:
    """Grid whose center cell has exactly `count` live cells in its 5x5 window."""
    grid = np.zeros((side, side), dtype=np.uint8)
    c = side // 2
    for dr, dc in WINDOW_5X5[:count]:
        grid[c + dr, c + dc] = 1
    grid[c, c] = int(center_alive)
    return grid


class TestFixedRule:
    """Tests for the classic Life thresholds."""

    @pytest.mark.parametrize("count,expected", [(0, 0), (1, 0), (2, 1), (3, 1), (4, 0), (8, 0)])
    def test_alive_cell(self, count, expected):
        """Alive cells survive with 2 or 3 neighbors only."""
        grid = np.zeros((5, 5), dtype=np.uint8)
        grid[2, 2] = 1
        values = np.zeros((5, 5), dtype=np.int64)
        values[2, 2] = count
        field = NeighborField(values=values, margin=1)

        assert fixed_rule(grid, field)[2, 2] == expected

    @pytest.mark.parametrize("count,expected", [(0, 0), (2, 0), (3, 1), (4, 0), (6, 0)])
    def test_dead_cell(self, count, expected):
        """Dead cells are born with exactly 3 neighbors."""
        grid = np.zeros((5, 5), dtype=np.uint8)
        values = np.zeros((5, 5), dtype=np.int64)
        values[2, 2] = count
        field = NeighborField(values=values, margin=1)

        assert fixed_rule(grid, field)[2, 2] == expected

    def test_border_not_evaluated(self):
        """Border cells keep their state whatever the field holds there."""
        grid = np.zeros((5, 5), dtype=np.uint8)
        grid[0, :] = 1
        values = np.full((5, 5), 3, dtype=np.int64)
        values[0, :] = 0
        field = NeighborField(values=values, margin=1)

        result = fixed_rule(grid, field)

        assert np.all(result[0, :] == 1)
        assert np.all(result[-1, :] == 0)
        assert np.all(result[1:-1, 1:-1] == 1)


class TestGeneralizedThresholds:
    """Tests for the rescaled thresholds."""

    def test_reduces_to_fixed_for_3x3(self):
        """S = 8 gives the fixed rule's 2, 3 and 3."""
        assert generalized_thresholds(3) == (2.0, 3.0, 3.0)

    def test_5x5(self):
        """S = 24 gives 6, 9 and 9."""
        assert generalized_thresholds(5) == (6.0, 9.0, 9.0)

    @pytest.mark.parametrize("side", [3, 5, 7, 9, 11, 13, 15])
    def test_birth_value_integral_for_odd_sides(self, side):
        """For odd sides 3S/8 is a whole number, so exact-match birth is reachable."""
        birth = generalized_thresholds(side)[2]

        assert birth == int(birth)


class TestGeneralizedRule:
    """Tests for the generalized rule."""

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
    @pytest.mark.parametrize("density", [0.2, 0.35, 0.5])
    def test_equivalent_to_fixed_for_gol_kernel(self, gol_kernel, seed, density):
        """With the 3x3 center-zero kernel both rules give identical output."""
        grid = random_grid(24, density, rng=seed)

        fixed = step(grid, gol_kernel, RuleKind.FIXED)
        general = step(grid, gol_kernel, RuleKind.GENERALIZED)

        assert np.array_equal(fixed, general)

    @pytest.mark.parametrize("count", range(4, 12))
    def test_survival_band_5x5(self, count):
        """Alive cells survive when 6 <= sum <= 9."""
        grid = grid_with_neighbors(count, center_alive=True)
        result = step(grid, GAME_OF_LIFE_LARGE, RuleKind.GENERALIZED)

        assert result[5, 5] == int(6 <= count <= 9)

    @pytest.mark.parametrize("count", range(4, 12))
    def test_birth_is_exact_match_5x5(self, count):
        """Dead cells are born only at sum == 9, not across the survival band."""
        grid = grid_with_neighbors(count, center_alive=False)
        result = step(grid, GAME_OF_LIFE_LARGE, RuleKind.GENERALIZED)

        assert result[5, 5] == int(count == 9)

    def test_fractional_birth_threshold_never_births(self):
        """Known edge case: when 3S/8 is fractional no dead cell is ever born.

        An even side of 4 gives S = 15 and a birth value of 5.625; sums on
        either side of it do not trigger birth.
        """
        assert generalized_thresholds(4)[2] == 5.625

        grid = np.zeros((8, 8), dtype=np.uint8)
        values = np.zeros((8, 8), dtype=np.int64)
        values[1:4, 1:7] = 5
        values[4:7, 1:7] = 6
        field = NeighborField(values=values, margin=1)

        assert np.all(generalized_rule(grid, field, 4) == 0)


class TestRuleKind:
    """Tests for rule selection."""

    def test_from_string(self):
        """String values map to members."""
        assert rule_kind("fixed") is RuleKind.FIXED
        assert rule_kind("generalized") is RuleKind.GENERALIZED
        assert rule_kind(RuleKind.FIXED) is RuleKind.FIXED

    def test_unknown(self):
        """Unknown rule names raise ValueError."""
        with pytest.raises(ValueError, match="rule"):
            rule_kind("conway")

    def test_apply_rule_dispatch(self, gol_kernel, rng):
        """apply_rule selects the requested family."""
        grid = random_grid(12, 0.5, rng=rng)
        field = convolve(grid, gol_kernel)

        assert np.array_equal(apply_rule("fixed", grid, field, 3), fixed_rule(grid, field))
        assert np.array_equal(apply_rule("generalized", grid, field, 3), generalized_rule(grid, field, 3))
