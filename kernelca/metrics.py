"""Population metrics for classifying and ranking kernel search trials."""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence

from scipy import ndimage


class TrialOutcome(Enum):
    DIED_OUT = "died_out"   # Final population at or below the lower bound
    BOUNDED = "bounded"     # Strictly inside the target band
    EXPLODED = "exploded"   # At or above the upper bound


def classify_outcome(final_population: int, lower_bound: float, upper_bound: float) -> TrialOutcome:
    """Place a final population relative to the open band (lower_bound, upper_bound)."""
    if final_population <= lower_bound:
        return TrialOutcome.DIED_OUT
    if final_population >= upper_bound:
        return TrialOutcome.EXPLODED
    return TrialOutcome.BOUNDED


def shannon_entropy(grid: np.ndarray) -> float:
    """Calculate Shannon entropy of a binary grid."""
    total = grid.size
    ones = np.sum(grid)
    zeros = total - ones

    if ones == 0 or zeros == 0:
        return 0.0

    p1 = ones / total
    p0 = zeros / total

    entropy = -p1 * np.log2(p1) - p0 * np.log2(p0)
    return float(entropy)


def final_density(grid: np.ndarray) -> float:
    """Fraction of cells alive."""
    if grid.size == 0:
        return 0.0
    return float(np.sum(grid)) / grid.size


def cluster_count(grid: np.ndarray) -> int:
    """Number of 4-connected groups of live cells."""
    _, num_clusters = ndimage.label(grid)
    return int(num_clusters)


def population_variation(populations: Sequence[int]) -> float:
    """Coefficient of variation of the population over the run."""
    populations = np.asarray(populations, dtype=float)
    if len(populations) < 2:
        return 0.0

    mean_pop = np.mean(populations)
    if mean_pop == 0:
        return 0.0

    return float(np.std(populations) / mean_pop)


def activity_lifespan(populations: Sequence[int]) -> float:
    """Fraction of steps in which the population changed."""
    populations = np.asarray(populations)
    if len(populations) < 2:
        return 0.0
    changed = np.count_nonzero(np.diff(populations))
    return changed / (len(populations) - 1)


@dataclass
class TrialSummary:
    """Container for the metrics of one search trial."""
    index: int
    outcome: TrialOutcome
    final_population: int
    peak_population: int
    population_variation: float  # Coefficient of variation of the trajectory
    activity_lifespan: float  # Fraction of steps with a population change
    final_density: float
    spatial_entropy: float
    cluster_count: int

    def to_dict(self) -> Dict:
        return {
            "index": self.index,
            "outcome": self.outcome.value,
            "final_population": self.final_population,
            "peak_population": self.peak_population,
            "population_variation": self.population_variation,
            "activity_lifespan": self.activity_lifespan,
            "final_density": self.final_density,
            "spatial_entropy": self.spatial_entropy,
            "cluster_count": self.cluster_count,
        }


def summarize_trial(trial, lower_bound: float, upper_bound: float) -> TrialSummary:
    """Compute all metrics for a `SearchTrial`."""
    populations = trial.populations
    final = trial.final_population
    return TrialSummary(
        index=trial.index,
        outcome=classify_outcome(final, lower_bound, upper_bound),
        final_population=final,
        peak_population=int(np.max(populations)) if len(populations) else final,
        population_variation=population_variation(populations),
        activity_lifespan=activity_lifespan(populations),
        final_density=final_density(trial.final_grid),
        spatial_entropy=shannon_entropy(trial.final_grid),
        cluster_count=cluster_count(trial.final_grid),
    )
