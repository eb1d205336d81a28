"""
Pytest configuration and fixtures for kernelca tests.
"""

import numpy as np
import pytest

from kernelca.kernels import GAME_OF_LIFE
from kernelca.search import SearchTrial


@pytest.fixture
def gol_kernel() -> np.ndarray:
    """3x3 all-ones kernel with center 0."""
    return GAME_OF_LIFE.copy()


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator for stochastic tests."""
    return np.random.default_rng(12345)


@pytest.fixture
def empty_grid() -> np.ndarray:
    """8x8 all-dead grid."""
    return np.zeros((8, 8), dtype=np.uint8)


@pytest.fixture
def blinker_grid() -> np.ndarray:
    """7x7 grid with a horizontal blinker in the middle row."""
    grid = np.zeros((7, 7), dtype=np.uint8)
    grid[3, 2:5] = 1
    return grid


def _make_trial(index: int, populations, kernel=None, side: int = 10) -> SearchTrial:
    populations = np.asarray(populations, dtype=np.int64)
    final_grid = np.zeros((side, side), dtype=np.uint8)
    if len(populations):
        final_grid.flat[:int(populations[-1])] = 1
    return SearchTrial(
        index=index,
        kernel=GAME_OF_LIFE.copy() if kernel is None else kernel,
        final_grid=final_grid,
        populations=populations,
    )


@pytest.fixture
def make_trial():
    """Factory building a SearchTrial by hand from a population trajectory."""
    return _make_trial
