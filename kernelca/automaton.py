"""2D cellular automaton stepping driven by an arbitrary integer kernel."""

import numpy as np
from dataclasses import dataclass, field
from itertools import islice
from typing import Dict, Iterator, List, Union

from .convolution import GRID_DTYPE, as_grid, check_dimensions, convolve
from .errors import InvalidDistribution
from .kernels import RandomSource, as_kernel
from .rules import RuleKind, apply_rule, rule_kind

CELL_LABELS: Dict[int, str] = {0: "Dead", 1: "Alive"}


@dataclass
class Trajectory:
    """Result of folding `step` over a number of steps.

    `populations[i]` is the alive count after step i + 1; the starting grid is
    not part of the record. `history` holds the grids themselves only when
    requested.
    """
    initial: np.ndarray
    final: np.ndarray
    populations: np.ndarray
    history: List[np.ndarray] = field(default_factory=list)

    @property
    def steps(self) -> int:
        return len(self.populations)

    @property
    def final_population(self) -> int:
        if len(self.populations) == 0:
            return population(self.initial)
        return int(self.populations[-1])


def random_grid(side: int, density: float = 0.5, rng: RandomSource = None) -> np.ndarray:
    """Square grid with each cell independently alive with probability `density`."""
    if not 0.0 <= density <= 1.0:
        raise InvalidDistribution(f"density must be a probability in [0, 1], got {density}")
    rng = np.random.default_rng(rng)
    return (rng.random((side, side)) < density).astype(GRID_DTYPE)


def step(grid, kernel, rule: Union[RuleKind, str] = RuleKind.FIXED) -> np.ndarray:
    """One generation: convolve, then apply the selected rule to the interior."""
    rule = rule_kind(rule)
    kernel = as_kernel(kernel)
    grid = as_grid(grid)
    neighbor_field = convolve(grid, kernel)
    return apply_rule(rule, grid, neighbor_field, kernel.shape[0])


def iterate(grid, kernel, rule: Union[RuleKind, str] = RuleKind.FIXED) -> Iterator[np.ndarray]:
    """Yield successive generations after `grid`, forever."""
    kernel = as_kernel(kernel)
    rule = rule_kind(rule)
    current = as_grid(grid)
    while True:
        current = step(current, kernel, rule)
        yield current


def run(
    grid,
    kernel,
    steps: int,
    rule: Union[RuleKind, str] = RuleKind.FIXED,
    record_history: bool = False,
) -> Trajectory:
    """Fold `step` over `steps` generations, recording the population after each."""
    if steps < 0:
        raise ValueError(f"steps must be >= 0, got {steps}")
    initial = as_grid(grid)
    kernel = as_kernel(kernel)
    check_dimensions(initial, kernel)
    rule = rule_kind(rule)

    populations = np.zeros(steps, dtype=np.int64)
    history: List[np.ndarray] = []
    final = initial
    for i, current in enumerate(islice(iterate(initial, kernel, rule), steps)):
        populations[i] = population(current)
        if record_history:
            history.append(current)
        final = current

    return Trajectory(initial=initial, final=final, populations=populations, history=history)


def population(grid) -> int:
    """Count live cells."""
    return int(np.sum(grid, dtype=np.int64))


def label_grid(grid, labels: Dict[int, str] = CELL_LABELS) -> np.ndarray:
    """Map each cell state to its display label for rendering collaborators."""
    grid = as_grid(grid)
    out = np.empty(grid.shape, dtype=object)
    for state, label in labels.items():
        out[grid == state] = label
    return out
