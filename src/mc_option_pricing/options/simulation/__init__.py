"""
Monte Carlo simulation for European call pricing.

Provides:
- GBM terminal-value sampling
- Multi-threaded Monte Carlo engine with per-worker random streams
- Convergence analysis tools
"""

from mc_option_pricing.options.simulation.gbm import (
    InvalidParameterError,
    PricingParameters,
    generate_terminal_values,
    terminal_values_from_normals,
    validate_terminal_distribution,
)
from mc_option_pricing.options.simulation.monte_carlo import (
    Accumulator,
    MonteCarloEngine,
    SimulationResult,
    compute_result,
    convergence_analysis,
    partition_trials,
    run_simulation,
    simulate_partition,
    spawn_worker_generators,
)

__all__ = [
    # GBM
    "InvalidParameterError",
    "PricingParameters",
    "generate_terminal_values",
    "terminal_values_from_normals",
    "validate_terminal_distribution",
    # Monte Carlo
    "Accumulator",
    "MonteCarloEngine",
    "SimulationResult",
    "compute_result",
    "convergence_analysis",
    "partition_trials",
    "run_simulation",
    "simulate_partition",
    "spawn_worker_generators",
]
