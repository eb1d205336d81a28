"""Batch search for random kernels whose population settles inside a target band."""

import numpy as np
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Union

from .automaton import population, random_grid, run
from .errors import InvalidDimensions, InvalidDistribution
from .kernels import check_num_ones, exact_composition_kernel, zero_kernel
from .metrics import TrialOutcome, classify_outcome
from .rules import RuleKind, rule_kind


@dataclass
class SearchTrial:
    """One independent (grid, kernel) run."""
    index: int
    kernel: np.ndarray
    final_grid: np.ndarray
    populations: np.ndarray  # Alive count after each step
    initial_population: int = 0

    @property
    def final_population(self) -> int:
        if len(self.populations) == 0:
            return self.initial_population
        return int(self.populations[-1])


@dataclass
class ClassificationResult:
    """Trials whose final population lies strictly between the bounds."""
    lower_bound: float
    upper_bound: float
    final_populations: np.ndarray  # One entry per evaluated trial, by index
    indices: List[int] = field(default_factory=list)
    selected: List[SearchTrial] = field(default_factory=list)

    @property
    def num_trials(self) -> int:
        return len(self.final_populations)

    @property
    def kernels(self) -> List[np.ndarray]:
        return [t.kernel for t in self.selected]

    @property
    def trajectories(self) -> List[np.ndarray]:
        return [t.populations for t in self.selected]

    def outcome_counts(self) -> Dict[TrialOutcome, int]:
        counts = {outcome: 0 for outcome in TrialOutcome}
        for final in self.final_populations:
            counts[classify_outcome(final, self.lower_bound, self.upper_bound)] += 1
        return counts


def classify(trials: Sequence[SearchTrial], lower_bound: float, upper_bound: float) -> ClassificationResult:
    """Select trials with lower_bound < final population < upper_bound."""
    ordered = sorted(trials, key=lambda t: t.index)
    finals = np.array([t.final_population for t in ordered], dtype=np.int64)
    selected = [t for t in ordered if lower_bound < t.final_population < upper_bound]
    return ClassificationResult(
        lower_bound=lower_bound,
        upper_bound=upper_bound,
        final_populations=finals,
        indices=[t.index for t in selected],
        selected=selected,
    )


def run_trial(
    index: int,
    steps: int,
    grid_side: int,
    density: float,
    kernel_side: int,
    num_ones: int,
    rule: Union[RuleKind, str] = RuleKind.FIXED,
    seed: Optional[np.random.SeedSequence] = None,
) -> SearchTrial:
    """Run one trial with its own independent grid and kernel random streams."""
    if seed is None:
        seed = np.random.SeedSequence()
    grid_seed, kernel_seed = seed.spawn(2)

    grid = random_grid(grid_side, density, rng=np.random.default_rng(grid_seed))
    kernel = exact_composition_kernel(kernel_side, num_ones, rng=np.random.default_rng(kernel_seed))
    trajectory = run(grid, kernel, steps, rule=rule)

    return SearchTrial(
        index=index,
        kernel=kernel,
        final_grid=trajectory.final,
        populations=trajectory.populations,
        initial_population=population(grid),
    )


def _validate_batch(trials, steps, grid_side, density, kernel_side, num_ones, lower_bound, upper_bound):
    if trials < 0:
        raise ValueError(f"trials must be >= 0, got {trials}")
    if steps < 0:
        raise ValueError(f"steps must be >= 0, got {steps}")
    if not lower_bound < upper_bound:
        raise ValueError(f"lower_bound ({lower_bound}) must be below upper_bound ({upper_bound})")
    if not 0.0 <= density <= 1.0:
        raise InvalidDistribution(f"density must be a probability in [0, 1], got {density}")
    zero_kernel(kernel_side)
    if grid_side <= kernel_side:
        raise InvalidDimensions(f"grid side ({grid_side}) must be larger than kernel side ({kernel_side})")
    check_num_ones(num_ones, kernel_side)


def run_batch(
    trials: int,
    steps: int,
    grid_side: int,
    density: float,
    kernel_side: int,
    num_ones: int,
    lower_bound: float,
    upper_bound: float,
    rule: Union[RuleKind, str] = RuleKind.FIXED,
    seed: Optional[int] = None,
    workers: int = 1,
    callback: Optional[Callable[[int, int, SearchTrial], None]] = None,
    verbose: bool = False,
) -> ClassificationResult:
    """
    Run `trials` independent random-kernel simulations and classify them.

    Each trial draws a fresh Bernoulli grid and a fresh exact-composition
    kernel from its own child of `SeedSequence(seed)`, so a trial's result
    depends only on the seed and its index, whatever `workers` is.

    `callback(completed, total, trial)` is called after every finished trial.
    """
    _validate_batch(trials, steps, grid_side, density, kernel_side, num_ones, lower_bound, upper_bound)
    rule = rule_kind(rule)
    seeds = np.random.SeedSequence(seed).spawn(trials)
    params = (steps, grid_side, density, kernel_side, num_ones, rule)

    results: List[Optional[SearchTrial]] = [None] * trials

    def on_done(trial: SearchTrial, completed: int):
        results[trial.index] = trial
        if verbose:
            print(f"  [{completed}/{trials}] trial {trial.index}: final population {trial.final_population}")
        if callback:
            callback(completed, trials, trial)

    if workers > 1 and trials > 1:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(run_trial, i, *params, seed=seeds[i]) for i in range(trials)]
            for completed, future in enumerate(as_completed(futures), 1):
                on_done(future.result(), completed)
    else:
        for i in range(trials):
            on_done(run_trial(i, *params, seed=seeds[i]), i + 1)

    result = classify(results, lower_bound, upper_bound)

    if verbose:
        print(f"{len(result.indices)}/{trials} trials ended with {lower_bound} < population < {upper_bound}")

    return result


def run_search(config, callback=None, verbose: bool = False) -> ClassificationResult:
    """Run a batch described by a `SearchConfig`."""
    return run_batch(
        trials=config.trials,
        steps=config.steps,
        grid_side=config.grid_side,
        density=config.density,
        kernel_side=config.kernel_side,
        num_ones=config.num_ones,
        lower_bound=config.lower_bound,
        upper_bound=config.upper_bound,
        rule=config.rule,
        seed=config.seed,
        workers=config.workers,
        callback=callback,
        verbose=verbose,
    )
