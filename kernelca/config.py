"""Configuration dataclass for kernel search batches."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .rules import RuleKind


@dataclass
class SearchConfig:
    """
    Parameters of one kernel search batch.

    Defaults run 100 trials of 1000 steps on a 100x100 half-full grid with
    5x5 kernels holding six ones, keeping kernels that end with between 300
    and 1000 live cells.

    Attributes:
        trials: Number of independent (grid, kernel) runs
        steps: Generations simulated per trial
        grid_side: Side of the square grid
        density: Probability that each initial cell is alive
        kernel_side: Side of the square kernel (odd)
        num_ones: Exact number of ones placed in each random kernel
        lower_bound: Final populations must be strictly above this
        upper_bound: Final populations must be strictly below this
        rule: "fixed" or "generalized"
        seed: Root seed for all trials (None for fresh entropy)
        workers: Worker processes (1 runs trials in-process)
    """

    trials: int = 100
    steps: int = 1000
    grid_side: int = 100
    density: float = 0.5
    kernel_side: int = 5
    num_ones: int = 6
    lower_bound: float = 300
    upper_bound: float = 1000
    rule: str = RuleKind.FIXED.value
    seed: Optional[int] = None
    workers: int = 1

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if isinstance(self.rule, RuleKind):
            self.rule = self.rule.value
        self._validate()

    def _validate(self) -> None:
        """Check that all parameters are in valid ranges."""
        if self.trials < 0:
            raise ValueError(f"trials must be >= 0, got {self.trials}")

        if self.steps < 0:
            raise ValueError(f"steps must be >= 0, got {self.steps}")

        if self.kernel_side < 1 or self.kernel_side % 2 == 0:
            raise ValueError(f"kernel_side must be a positive odd number, got {self.kernel_side}")

        if self.grid_side <= self.kernel_side:
            raise ValueError(f"grid_side must be > kernel_side ({self.kernel_side}), got {self.grid_side}")

        if not 0 <= self.density <= 1:
            raise ValueError(f"density must be in [0, 1], got {self.density}")

        if not 0 <= self.num_ones <= self.kernel_side ** 2:
            raise ValueError(f"num_ones must be in [0, {self.kernel_side ** 2}], got {self.num_ones}")

        if self.lower_bound >= self.upper_bound:
            raise ValueError(
                f"lower_bound must be < upper_bound, got {self.lower_bound} >= {self.upper_bound}"
            )

        valid_rules = {kind.value for kind in RuleKind}
        if self.rule not in valid_rules:
            raise ValueError(f"rule must be one of {valid_rules}, got {self.rule}")

        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SearchConfig":
        """Create config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in d.items() if k in known_fields})

    @classmethod
    def from_args(cls, args: Any) -> "SearchConfig":
        """Create config from argparse namespace."""
        # Extract only known fields
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        config_dict = {k: v for k, v in vars(args).items() if k in known_fields and v is not None}
        return cls(**config_dict)

    @property
    def band_center(self) -> float:
        """Midpoint of the target population band."""
        return (self.lower_bound + self.upper_bound) / 2
