"""Exceptions raised by the kernel automaton engine."""


class KernelCAError(ValueError):
    """Base class for all engine precondition failures."""


class InvalidKernel(KernelCAError):
    """Kernel is not a square matrix with an odd side, or cannot be built as asked."""


class InvalidDimensions(KernelCAError):
    """Grid is not square or is not larger than the kernel applied to it."""


class InvalidDistribution(KernelCAError):
    """Probability weights do not match their values or do not form a distribution."""


class CorruptDatabase(KernelCAError):
    """A kernel database file exists but cannot be parsed."""
