"""
Parallel Monte Carlo pricing engine for European calls.

Implements a two-stage estimator:
- Stage A: each worker thread draws its share of trials from its own
  random stream and keeps running sums (payoff, payoff², terminal price)
- Stage B: after every worker has joined, the calling thread adds the
  per-worker sums and derives price and standard error in O(1)

[T1] MC converges to the analytical price at rate 1/√N
[T1] Standard error: SE = e^{-rT} * sqrt(Var[payoff] / N)

Random streams come from numpy.random.SeedSequence.spawn, which yields
statistically independent, non-overlapping PCG64 streams per worker.

See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering"
See: O'Neill (2014) "PCG: A Family of Simple Fast Space-Efficient
     Statistically Good Algorithms for Random Number Generation"
"""

import logging
import math
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import numpy as np

from mc_option_pricing.config.settings import SETTINGS
from mc_option_pricing.options.simulation.gbm import (
    InvalidParameterError,
    PricingParameters,
    generate_terminal_values,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Accumulator:
    """
    Running sums over the trials of one worker.

    Attributes
    ----------
    count : int
        Number of trials accumulated
    sum_payoff : float
        Σ payoff (undiscounted)
    sum_payoff_squared : float
        Σ payoff²
    sum_terminal_price : float
        Σ S(T)
    """

    count: int = 0
    sum_payoff: float = 0.0
    sum_payoff_squared: float = 0.0
    sum_terminal_price: float = 0.0

    def __add__(self, other: "Accumulator") -> "Accumulator":
        if not isinstance(other, Accumulator):
            return NotImplemented
        return Accumulator(
            count=self.count + other.count,
            sum_payoff=self.sum_payoff + other.sum_payoff,
            sum_payoff_squared=self.sum_payoff_squared + other.sum_payoff_squared,
            sum_terminal_price=self.sum_terminal_price + other.sum_terminal_price,
        )

    @classmethod
    def from_samples(cls, payoffs: np.ndarray, terminal: np.ndarray) -> "Accumulator":
        """Summarize one vectorized chunk of trials (pairwise summation)."""
        return cls(
            count=int(payoffs.size),
            sum_payoff=float(np.sum(payoffs)),
            sum_payoff_squared=float(np.sum(np.square(payoffs))),
            sum_terminal_price=float(np.sum(terminal)),
        )

    @classmethod
    def combine(cls, accumulators: list["Accumulator"]) -> "Accumulator":
        """Add accumulators in list order."""
        total = cls()
        for acc in accumulators:
            total = total + acc
        return total


@dataclass(frozen=True)
class SimulationResult:
    """
    Monte Carlo pricing result.

    Attributes
    ----------
    price : float
        Option price (discounted expected payoff)
    standard_error : float
        Standard error of the price estimate, in price units
    average_terminal_price : float
        Mean simulated terminal asset price (drift diagnostic)
    sample_count : int
        Number of trials used
    discount_factor : float
        Discount factor used
    n_workers : int
        Number of worker threads that sampled
    seed_entropy : int
        Root entropy of the run; passing it back as seed with the same
        n_workers and chunk_size reproduces the result exactly
    """

    price: float
    standard_error: float
    average_terminal_price: float
    sample_count: int
    discount_factor: float
    n_workers: int = 1
    seed_entropy: Optional[int] = None

    def confidence_interval(self, z: float = SETTINGS.simulation.confidence_z) -> tuple[float, float]:
        """Two-sided confidence interval price ± z·SE (95% by default)."""
        half_width = z * self.standard_error
        return (self.price - half_width, self.price + half_width)

    @property
    def ci_width(self) -> float:
        """Width of the default (95%) confidence interval."""
        lower, upper = self.confidence_interval()
        return upper - lower

    @property
    def relative_error(self) -> float:
        """Relative standard error (SE / price)."""
        if abs(self.price) < 1e-10:
            return float("inf")
        return self.standard_error / abs(self.price)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and JSON output."""
        lower, upper = self.confidence_interval()
        return {
            "price": self.price,
            "standard_error": self.standard_error,
            "average_terminal_price": self.average_terminal_price,
            "confidence_interval": [lower, upper],
            "sample_count": self.sample_count,
            "discount_factor": self.discount_factor,
            "n_workers": self.n_workers,
            "seed_entropy": self.seed_entropy,
        }


# =============================================================================
# Stage A: work partitioning and per-worker sampling
# =============================================================================


def partition_trials(n_trials: int, n_workers: int) -> list[tuple[int, int]]:
    """
    Split trial indices [0, n_trials) into contiguous, disjoint ranges.

    The first n_trials % n_workers ranges get one extra trial.

    Parameters
    ----------
    n_trials : int
        Total number of trials
    n_workers : int
        Number of partitions

    Returns
    -------
    list[tuple[int, int]]
        Half-open (start, stop) ranges, one per worker

    Examples
    --------
    >>> partition_trials(10, 3)
    [(0, 4), (4, 7), (7, 10)]
    """
    if n_workers <= 0:
        raise ValueError(f"CRITICAL: n_workers must be > 0, got {n_workers}")
    if n_trials < 0:
        raise ValueError(f"CRITICAL: n_trials must be >= 0, got {n_trials}")

    base, extra = divmod(n_trials, n_workers)
    ranges = []
    start = 0
    for i in range(n_workers):
        stop = start + base + (1 if i < extra else 0)
        ranges.append((start, stop))
        start = stop
    return ranges


def spawn_worker_generators(entropy: int, n_workers: int) -> list[np.random.Generator]:
    """
    Create one independent generator per worker.

    Child i is seeded by (entropy, spawn_key=(i,)), so streams differ by
    worker index and never overlap within a run.
    """
    root = np.random.SeedSequence(entropy)
    return [np.random.Generator(np.random.PCG64(child)) for child in root.spawn(n_workers)]


def simulate_partition(
    params: PricingParameters,
    n_trials: int,
    rng: np.random.Generator,
    chunk_size: int,
) -> Accumulator:
    """
    Sample n_trials terminal prices and accumulate call payoff statistics.

    Runs inside a worker thread. Trials are drawn in chunks of at most
    chunk_size to bound memory; NumPy releases the GIL inside each chunk.

    Parameters
    ----------
    params : PricingParameters
        Pricing parameters (read-only)
    n_trials : int
        Trials assigned to this worker
    rng : np.random.Generator
        This worker's private generator
    chunk_size : int
        Maximum draws held in memory at once

    Returns
    -------
    Accumulator
        Sums over this worker's trials
    """
    acc = Accumulator()
    remaining = n_trials
    while remaining > 0:
        m = min(chunk_size, remaining)
        terminal = generate_terminal_values(params, m, rng)

        # Call payoff: max(S(T) - K, 0)
        payoffs = np.maximum(terminal - params.strike, 0.0)

        acc = acc + Accumulator.from_samples(payoffs, terminal)
        remaining -= m
    return acc


# =============================================================================
# Stage B: reduction to statistics
# =============================================================================


def compute_result(
    params: PricingParameters,
    total: Accumulator,
    n_workers: int = 1,
    seed_entropy: Optional[int] = None,
) -> SimulationResult:
    """
    Derive price and standard error from the combined sums.

    Uses the plug-in variance Σx²/N - x̄²; negative rounding residue
    (e.g. a constant payoff at zero volatility) is clamped to 0.

    Parameters
    ----------
    params : PricingParameters
        Pricing parameters (for discounting)
    total : Accumulator
        Sums over all N trials
    n_workers : int
        Worker count, recorded on the result
    seed_entropy : int, optional
        Root entropy, recorded on the result

    Returns
    -------
    SimulationResult
        Complete MC result with statistics
    """
    n = total.count
    if n <= 0:
        raise InvalidParameterError(f"CRITICAL: cannot compute statistics from {n} trials")

    df = params.discount_factor

    mean_payoff = total.sum_payoff / n
    variance = max(total.sum_payoff_squared / n - mean_payoff * mean_payoff, 0.0)
    se = math.sqrt(variance / n)

    return SimulationResult(
        price=mean_payoff * df,
        standard_error=se * df,
        average_terminal_price=total.sum_terminal_price / n,
        sample_count=n,
        discount_factor=df,
        n_workers=n_workers,
        seed_entropy=seed_entropy,
    )


# =============================================================================
# Engine
# =============================================================================


class MonteCarloEngine:
    """
    Multi-threaded Monte Carlo engine for European calls.

    Parameters
    ----------
    n_workers : int, optional
        Worker thread count. Defaults to SETTINGS.simulation.n_workers,
        then os.cpu_count().
    seed : int, optional
        Root seed. None seeds each run from the run-start time, so runs
        are statistically consistent but not bit-identical.
    chunk_size : int, optional
        Maximum draws a worker holds in memory at once.

    Examples
    --------
    >>> engine = MonteCarloEngine(n_workers=4, seed=42)
    >>> params = PricingParameters(spot=100, strike=100, risk_free_rate=0.05,
    ...                            volatility=0.20, maturity=1.0, sample_count=1_000_000)
    >>> result = engine.run(params)
    >>> print(f"Price: {result.price:.4f} ± {result.standard_error:.4f}")
    """

    def __init__(
        self,
        n_workers: Optional[int] = None,
        seed: Optional[int] = None,
        chunk_size: Optional[int] = None,
    ):
        if n_workers is None:
            n_workers = SETTINGS.simulation.n_workers or os.cpu_count() or 1
        if chunk_size is None:
            chunk_size = SETTINGS.simulation.chunk_size

        if n_workers <= 0:
            raise InvalidParameterError(f"CRITICAL: n_workers must be > 0, got {n_workers}")
        if chunk_size <= 0:
            raise InvalidParameterError(f"CRITICAL: chunk_size must be > 0, got {chunk_size}")
        if seed is not None and seed < 0:
            raise InvalidParameterError(f"CRITICAL: seed must be >= 0, got {seed}")

        self.n_workers = int(n_workers)
        self.seed = seed
        self.chunk_size = int(chunk_size)

    def _run_entropy(self) -> int:
        """Root entropy for one run: the fixed seed, else run-start time."""
        if self.seed is not None:
            return int(self.seed)
        return time.time_ns()

    def run(self, params: PricingParameters) -> SimulationResult:
        """
        Price a European call.

        Blocks until every worker has finished; either all
        params.sample_count trials are sampled or an exception propagates.

        Parameters
        ----------
        params : PricingParameters
            Validated pricing parameters

        Returns
        -------
        SimulationResult
            Price, standard error and average terminal price
        """
        if not isinstance(params, PricingParameters):
            raise InvalidParameterError(
                f"CRITICAL: expected PricingParameters, got {type(params).__name__}"
            )

        n = params.sample_count
        n_workers = min(self.n_workers, n)
        entropy = self._run_entropy()

        ranges = partition_trials(n, n_workers)
        generators = spawn_worker_generators(entropy, n_workers)

        logger.debug(
            f"Sampling {n:,} trials on {n_workers} worker(s), chunk {self.chunk_size:,}, "
            f"entropy {entropy}"
        )

        if n_workers == 1:
            slots = [simulate_partition(params, n, generators[0], self.chunk_size)]
        else:
            with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="mc-worker") as executor:
                futures = [
                    executor.submit(
                        simulate_partition,
                        params,
                        stop - start,
                        rng,
                        self.chunk_size,
                    )
                    for (start, stop), rng in zip(ranges, generators)
                ]
                # Collect in worker order; result() re-raises worker failures
                slots = [future.result() for future in futures]

        total = Accumulator.combine(slots)
        if total.count != n:
            raise RuntimeError(f"CRITICAL: sampled {total.count} trials, expected {n}")

        result = compute_result(params, total, n_workers=n_workers, seed_entropy=entropy)
        logger.debug(f"Price {result.price:.6f} ± {result.standard_error:.6f}")
        return result


def run_simulation(
    params: PricingParameters,
    n_workers: Optional[int] = None,
    seed: Optional[int] = None,
    chunk_size: Optional[int] = None,
) -> SimulationResult:
    """
    Convenience function to price a European call via parallel MC.

    Parameters
    ----------
    params : PricingParameters
        Pricing parameters, including sample_count
    n_workers : int, optional
        Worker thread count (default: hardware parallelism)
    seed : int, optional
        Root seed (default: run-start time)
    chunk_size : int, optional
        Maximum draws per worker held in memory at once

    Returns
    -------
    SimulationResult
        Monte Carlo pricing result

    Examples
    --------
    >>> params = PricingParameters(100, 100, 0.05, 0.20, 1.0, 1_000_000)
    >>> result = run_simulation(params, seed=42)
    >>> lower, upper = result.confidence_interval()
    """
    engine = MonteCarloEngine(n_workers=n_workers, seed=seed, chunk_size=chunk_size)
    return engine.run(params)


def convergence_analysis(
    params: PricingParameters,
    sample_counts: Optional[list[int]] = None,
    analytical_price: Optional[float] = None,
    seed: int = 42,
    n_workers: Optional[int] = None,
) -> dict:
    """
    Analyze how the standard error shrinks with the number of trials.

    [T1] SE should scale as 1/√N, i.e. a log-log slope of -0.5.

    Parameters
    ----------
    params : PricingParameters
        Base parameters; sample_count is replaced by each entry of sample_counts
    sample_counts : list[int], optional
        Trial counts to run (default: 10k, 40k, 160k, 640k)
    analytical_price : float, optional
        Reference price (e.g. Black-Scholes) to measure absolute error against
    seed : int
        Root seed shared by all runs
    n_workers : int, optional
        Worker thread count

    Returns
    -------
    dict
        Per-run results and the fitted standard-error slope
    """
    from dataclasses import replace

    if sample_counts is None:
        sample_counts = [10_000, 40_000, 160_000, 640_000]

    engine = MonteCarloEngine(n_workers=n_workers, seed=seed)
    results = []

    for n in sample_counts:
        mc_result = engine.run(replace(params, sample_count=n))
        row = {
            "sample_count": n,
            "price": mc_result.price,
            "standard_error": mc_result.standard_error,
        }
        if analytical_price is not None:
            lower, upper = mc_result.confidence_interval()
            row["absolute_error"] = abs(mc_result.price - analytical_price)
            row["within_ci"] = lower <= analytical_price <= upper
        results.append(row)

    return {
        "results": results,
        "se_slope": _estimate_se_slope(results),
    }


def _estimate_se_slope(results: list[dict]) -> float:
    """
    Fit log(SE) = slope * log(N) + const.

    [T1] Theory predicts slope = -0.5. Returns nan with fewer than two
    runs or a zero standard error.
    """
    if len(results) < 2:
        return float("nan")

    ses = np.array([r["standard_error"] for r in results], dtype=float)
    if np.any(ses <= 0):
        return float("nan")

    log_n = np.log([r["sample_count"] for r in results])
    slope, _ = np.polyfit(log_n, np.log(ses), 1)
    return float(slope)
