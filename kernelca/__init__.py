"""Kernel Cellular Automata - convolution-driven 2D automata and random kernel search."""

from .automaton import Trajectory, label_grid, population, random_grid, run, step
from .convolution import NeighborField, convolve
from .errors import CorruptDatabase, InvalidDimensions, InvalidDistribution, InvalidKernel, KernelCAError
from .kernels import categorical_kernel, exact_composition_kernel, ring_mask, zero_kernel
from .rules import RuleKind
from .search import ClassificationResult, SearchTrial, run_batch

__version__ = "0.1.0"

__all__ = [
    "ClassificationResult",
    "CorruptDatabase",
    "InvalidDimensions",
    "InvalidDistribution",
    "InvalidKernel",
    "KernelCAError",
    "NeighborField",
    "RuleKind",
    "SearchTrial",
    "Trajectory",
    "categorical_kernel",
    "convolve",
    "exact_composition_kernel",
    "label_grid",
    "population",
    "random_grid",
    "ring_mask",
    "run",
    "run_batch",
    "step",
    "zero_kernel",
    "__version__",
]
