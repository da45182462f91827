"""
mc-option-pricing: Parallel Monte Carlo pricing of European calls.

Quick Start
-----------
>>> from mc_option_pricing import PricingParameters, estimate_volatility, run_simulation
>>> sigma = estimate_volatility(prices)
>>> params = PricingParameters(spot=100.0, strike=100.0, risk_free_rate=0.05,
...                            volatility=sigma, maturity=1.0, sample_count=10_000_000)
>>> result = run_simulation(params)
>>> lower, upper = result.confidence_interval()

Version: 0.1.0
"""

__version__ = "0.1.0"

# =============================================================================
# Analytics
# =============================================================================
from mc_option_pricing.analytics.volatility import (
    DEFAULT_VOLATILITY,
    TRADING_DAYS_PER_YEAR,
    estimate_volatility,
)

# =============================================================================
# Simulation
# =============================================================================
from mc_option_pricing.options.simulation import (
    InvalidParameterError,
    MonteCarloEngine,
    PricingParameters,
    SimulationResult,
    convergence_analysis,
    run_simulation,
)

# =============================================================================
# Analytical Reference
# =============================================================================
from mc_option_pricing.options.pricing import black_scholes_call

# =============================================================================
# Data
# =============================================================================
from mc_option_pricing.data.loader import (
    DataLoadError,
    SyntheticPriceProvider,
    load_price_history,
)

# =============================================================================
# Configuration
# =============================================================================
from mc_option_pricing.config.settings import SETTINGS

__all__ = [
    # Version
    "__version__",
    # Analytics
    "DEFAULT_VOLATILITY",
    "TRADING_DAYS_PER_YEAR",
    "estimate_volatility",
    # Simulation
    "InvalidParameterError",
    "MonteCarloEngine",
    "PricingParameters",
    "SimulationResult",
    "convergence_analysis",
    "run_simulation",
    # Analytical
    "black_scholes_call",
    # Data
    "DataLoadError",
    "SyntheticPriceProvider",
    "load_price_history",
    # Config
    "SETTINGS",
]
