"""Kernel convolution over the interior of a fixed-border grid."""

import numpy as np
from dataclasses import dataclass
from scipy import ndimage

from .errors import InvalidDimensions
from .kernels import KERNEL_DTYPE, as_kernel

GRID_DTYPE = np.uint8
FIELD_DTYPE = np.int64


def margin_for(kernel_side: int) -> int:
    """Number of border rows/columns a kernel of this side cannot be centered on."""
    return (kernel_side - 1) // 2


def interior_slice(grid_side: int, margin: int) -> tuple:
    """Index expression selecting the interior block of a grid."""
    inner = slice(margin, grid_side - margin)
    return (inner, inner)


@dataclass(frozen=True)
class NeighborField:
    """Per-cell weighted neighbor sums produced by `convolve`.

    Only the interior (cells at least `margin` away from every edge) holds
    convolution sums. Border entries of `values` are a copy of the input grid
    and must not be read as neighbor sums; use `interior_values` instead.
    """
    values: np.ndarray
    margin: int

    @property
    def shape(self):
        return self.values.shape

    @property
    def interior_slice(self) -> tuple:
        return interior_slice(self.values.shape[0], self.margin)

    @property
    def interior_values(self) -> np.ndarray:
        return self.values[self.interior_slice]

    @property
    def interior(self) -> np.ndarray:
        """Boolean mask of the cells holding real neighbor sums."""
        mask = np.zeros(self.values.shape, dtype=bool)
        mask[self.interior_slice] = True
        return mask


def as_grid(grid) -> np.ndarray:
    """Coerce to a uint8 cell grid, rejecting states other than 0 and 1."""
    arr = np.asarray(grid)
    if arr.size and not np.isin(arr, (0, 1)).all():
        raise ValueError("grid cells must be 0 (dead) or 1 (alive)")
    return arr.astype(GRID_DTYPE)


def check_dimensions(grid: np.ndarray, kernel: np.ndarray):
    """Raise InvalidDimensions unless grid is square and strictly larger than kernel."""
    if grid.ndim != 2 or grid.shape[0] != grid.shape[1]:
        raise InvalidDimensions(f"grid must be a square matrix, got shape {grid.shape}")
    if grid.shape[0] <= kernel.shape[0]:
        raise InvalidDimensions(
            f"grid side ({grid.shape[0]}) must be larger than kernel side ({kernel.shape[0]})"
        )


def convolve(grid, kernel) -> NeighborField:
    """Slide `kernel` over the interior of `grid`, summing elementwise products.

    The window is not flipped: the kernel cell at (r, c) weighs the grid cell
    at offset (r - margin, c - margin) from the center. Border cells are copied
    through from `grid`. The input grid is never modified.
    """
    kernel = as_kernel(kernel)
    grid = as_grid(grid)
    check_dimensions(grid, kernel)

    margin = margin_for(kernel.shape[0])
    values = grid.astype(FIELD_DTYPE)
    # Interior windows never reach the padding, so the constant fill is never read
    sums = ndimage.correlate(values, kernel.astype(KERNEL_DTYPE), mode="constant", cval=0)
    inner = interior_slice(grid.shape[0], margin)
    values[inner] = sums[inner]
    return NeighborField(values=values, margin=margin)


def convolve_reference(grid, kernel) -> np.ndarray:
    """Explicit window-by-window convolution, returning the raw field values.

    O(N^2 K^2) and slow; kept as the oracle `convolve` is checked against.
    """
    kernel = as_kernel(kernel)
    grid = as_grid(grid)
    check_dimensions(grid, kernel)

    n = grid.shape[0]
    margin = margin_for(kernel.shape[0])
    out = grid.astype(FIELD_DTYPE)
    for i in range(margin, n - margin):
        for j in range(margin, n - margin):
            window = grid[i - margin:i + margin + 1, j - margin:j + margin + 1]
            out[i, j] = np.sum(window.astype(FIELD_DTYPE) * kernel)
    return out
