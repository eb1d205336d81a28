"""Kernel construction: zero, ring-masked, randomized and exact-composition kernels."""

import numpy as np
from typing import Dict, Sequence, Union

from .errors import InvalidDistribution, InvalidKernel

KERNEL_DTYPE = np.int64

RandomSource = Union[None, int, np.random.Generator, np.random.SeedSequence]


def as_kernel(kernel) -> np.ndarray:
    """Coerce to an int64 kernel, checking it is square with an odd side."""
    arr = np.asarray(kernel)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise InvalidKernel(f"kernel must be a square matrix, got shape {arr.shape}")
    if arr.shape[0] % 2 == 0:
        raise InvalidKernel(f"kernel side must be odd, got {arr.shape[0]}")
    if arr.dtype.kind not in "biu":
        raise InvalidKernel(f"kernel weights must be integers, got dtype {arr.dtype}")
    return arr.astype(KERNEL_DTYPE)


def _check_side(side: int):
    if side < 1 or side % 2 == 0:
        raise InvalidKernel(f"kernel side must be a positive odd number, got {side}")


def zero_kernel(side: int) -> np.ndarray:
    """All-zero side x side kernel."""
    _check_side(side)
    return np.zeros((side, side), dtype=KERNEL_DTYPE)


def ring_mask(kernel, value: int) -> np.ndarray:
    """Set every cell on the outermost ring to `value`, keeping the interior.

    Applied to a zero kernel this gives an "action at range" kernel: the whole
    neighbor contribution comes from cells exactly `margin` away.
    """
    result = as_kernel(kernel).copy()
    result[0, :] = value
    result[-1, :] = value
    result[:, 0] = value
    result[:, -1] = value
    return result


def categorical_kernel(
    side: int,
    numbers: Sequence[int],
    probs: Sequence[float],
    rng: RandomSource = None,
) -> np.ndarray:
    """Fill each cell with an independent draw from `numbers` weighted by `probs`.

    The weights are passed through to the sampler untouched; a mismatched or
    non-normalized vector raises InvalidDistribution rather than being fixed up.
    """
    _check_side(side)
    values = np.asarray(numbers)
    if values.size and values.dtype.kind not in "biu":
        raise InvalidKernel(f"kernel weights must be integers, got {list(numbers)}")
    rng = np.random.default_rng(rng)
    try:
        drawn = rng.choice(values, size=(side, side), replace=True, p=np.asarray(probs, dtype=float))
    except ValueError as e:
        raise InvalidDistribution(str(e)) from e
    return drawn.astype(KERNEL_DTYPE)


def check_num_ones(num_ones, side: int):
    """Raise InvalidKernel unless num_ones is an integer that fits a side x side kernel."""
    cells = side * side
    if isinstance(num_ones, bool) or not isinstance(num_ones, (int, np.integer)):
        raise InvalidKernel(f"num_ones must be an integer, got {num_ones!r}")
    if not 0 <= num_ones <= cells:
        raise InvalidKernel(f"num_ones must be in [0, {cells}] for side {side}, got {num_ones}")


def exact_composition_kernel(side: int, num_ones: int, rng: RandomSource = None) -> np.ndarray:
    """Kernel with exactly `num_ones` ones, placed by a uniform random permutation."""
    _check_side(side)
    check_num_ones(num_ones, side)
    cells = side * side
    rng = np.random.default_rng(rng)
    content = np.zeros(cells, dtype=KERNEL_DTYPE)
    content[:num_ones] = 1
    return rng.permutation(content).reshape(side, side)


def spooky_action(side: int = 5, value: int = 1) -> np.ndarray:
    """Ring kernel: neighbors only count at the kernel's outer edge."""
    return ring_mask(zero_kernel(side), value)


def _preset(rows) -> np.ndarray:
    kernel = as_kernel(rows)
    kernel.flags.writeable = False
    return kernel


# Kernels that produced interesting behavior under the fixed rule
GAME_OF_LIFE = _preset([[1, 1, 1], [1, 0, 1], [1, 1, 1]])
GAME_OF_LIFE_SELF = _preset([[1, 1, 1], [1, 1, 1], [1, 1, 1]])
JELLYFISH = _preset([[1, 1, 1], [2, 0, 1], [1, 1, 1]])
STACK = _preset([[1, 1, 1], [2, 0, 2], [1, 1, 1]])
BACTERIA = _preset([[1, 2, 1], [2, 0, 2], [1, 1, 1]])
EXP_BLOCK = _preset([[1, 2, 1], [2, 0, 2], [1, 2, 1]])
QUESTION_MARK = _preset([[2, 1, 1], [1, 0, 1], [1, 1, 1]])
OSC_COLON = _preset([[2, 1, 1], [1, 0, 1], [1, 1, 2]])
OSC = _preset([[0, 1, 1], [2, 0, 2], [1, 1, 0]])
OSC_2 = _preset([[2, 1, 1], [0, 0, 0], [1, 1, 2]])
GAME_OF_LIFE_LARGE = _preset(np.ones((5, 5), dtype=KERNEL_DTYPE) - np.pad([[1]], 2))
SPOOKY_ACTION = _preset(spooky_action())

PRESETS: Dict[str, np.ndarray] = {
    "gol": GAME_OF_LIFE,
    "gol-self": GAME_OF_LIFE_SELF,
    "jellyfish": JELLYFISH,
    "stack": STACK,
    "bacteria": BACTERIA,
    "exp-block": EXP_BLOCK,
    "q-mark": QUESTION_MARK,
    "osc-colon": OSC_COLON,
    "osc": OSC,
    "osc-2": OSC_2,
    "gol-large": GAME_OF_LIFE_LARGE,
    "spooky": SPOOKY_ACTION,
}


def get_preset(name: str) -> np.ndarray:
    """Return a writable copy of a named preset kernel."""
    try:
        return PRESETS[name].copy()
    except KeyError:
        raise KeyError(f"unknown kernel '{name}', choose from: {', '.join(sorted(PRESETS))}") from None
