"""Threshold rules mapping (cell state, neighbor sum) to the next cell state."""

import numpy as np
from enum import Enum
from typing import Tuple, Union

from .convolution import GRID_DTYPE, NeighborField


class RuleKind(Enum):
    FIXED = "fixed"              # Conway thresholds: survive on 2-3, birth on 3
    GENERALIZED = "generalized"  # Thresholds rescaled to the kernel side


def rule_kind(kind: Union[RuleKind, str]) -> RuleKind:
    """Accept a RuleKind or its string value."""
    if isinstance(kind, RuleKind):
        return kind
    try:
        return RuleKind(kind)
    except ValueError:
        valid = ", ".join(k.value for k in RuleKind)
        raise ValueError(f"rule must be one of {valid}, got {kind!r}") from None


def generalized_thresholds(kernel_side: int) -> Tuple[float, float, float]:
    """(survive_low, survive_high, birth) for a kernel of the given side.

    With S = side**2 - 1 these are S/4, 3S/8 and 3S/8. For S = 8 they are
    exactly the fixed rule's 2, 3 and 3.
    """
    s = kernel_side * kernel_side - 1
    return s / 4, 3 * s / 8, 3 * s / 8


def _threshold_rule(grid: np.ndarray, field: NeighborField,
                    low: float, high: float, birth: float) -> np.ndarray:
    """Apply survive-band/birth-value thresholds to the interior only.

    Border cells are returned unchanged from `grid`.
    """
    inner = field.interior_slice
    cells = grid[inner]
    sums = field.interior_values

    alive = cells == 1
    survives = alive & (sums >= low) & (sums <= high)
    # Birth is an exact match, not a band
    born = ~alive & (sums == birth)

    new_grid = np.array(grid, dtype=GRID_DTYPE, copy=True)
    new_grid[inner] = (survives | born).astype(GRID_DTYPE)
    return new_grid


def fixed_rule(grid: np.ndarray, field: NeighborField) -> np.ndarray:
    """Classic Life thresholds: alive survives with 2 or 3, dead is born with exactly 3."""
    return _threshold_rule(grid, field, 2, 3, 3)


def generalized_rule(grid: np.ndarray, field: NeighborField, kernel_side: int) -> np.ndarray:
    """Life thresholds rescaled by S = kernel_side**2 - 1.

    Alive cells survive when S/4 <= sum <= 3S/8; dead cells are born only when
    sum == 3S/8 exactly.
    """
    low, high, birth = generalized_thresholds(kernel_side)
    return _threshold_rule(grid, field, low, high, birth)


def apply_rule(kind: Union[RuleKind, str], grid: np.ndarray, field: NeighborField,
               kernel_side: int) -> np.ndarray:
    """Dispatch to the rule family selected by `kind`."""
    kind = rule_kind(kind)
    if kind == RuleKind.GENERALIZED:
        return generalized_rule(grid, field, kernel_side)
    return fixed_rule(grid, field)
