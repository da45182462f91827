"""
Centralized pytest fixtures for mc-option-pricing test suite.

This module provides shared fixtures used across all test categories:
- unit/
- validation/
- properties/
- integration/

Fixture Categories:
1. Pricing Parameters - Standard market conditions for the engine
2. Reference Prices - Black-Scholes values for validation
3. Price History - Synthetic CSV files for loader and CLI tests
"""

from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pytest

from mc_option_pricing.data.loader import SyntheticPriceProvider
from mc_option_pricing.options.pricing.black_scholes import black_scholes_call
from mc_option_pricing.options.simulation.gbm import PricingParameters

# =============================================================================
# TOLERANCE TIERS
# =============================================================================


@dataclass(frozen=True)
class ToleranceTiers:
    """
    Tiered tolerance framework for different test types.

    Derived from precision requirements, not ad hoc.
    """

    # Anti-pattern tests: Very tight (fundamental violations)
    anti_pattern: float = 1e-10

    # Deterministic (σ = 0) results: summation rounding only
    deterministic: float = 1e-12

    # Monte Carlo vs analytical, in standard errors
    mc_n_se: float = 4.0


TOLERANCES = ToleranceTiers()


@pytest.fixture(scope="session")
def tolerances() -> ToleranceTiers:
    """Provide tiered tolerance settings for all tests."""
    return TOLERANCES


# =============================================================================
# PRICING PARAMETERS
# =============================================================================

#: Seed shared by tests that need reproducible runs
TEST_SEED = 20260218


@pytest.fixture
def atm_params() -> PricingParameters:
    """Standard ATM call: S=K=100, r=5%, σ=20%, T=1, 200k trials."""
    return PricingParameters(
        spot=100.0,
        strike=100.0,
        risk_free_rate=0.05,
        volatility=0.20,
        maturity=1.0,
        sample_count=200_000,
    )


@pytest.fixture
def zero_vol_params() -> PricingParameters:
    """σ = 0: terminal price is the forward on every trial."""
    return PricingParameters(
        spot=100.0,
        strike=90.0,
        risk_free_rate=0.05,
        volatility=0.0,
        maturity=2.0,
        sample_count=10_001,
    )


@pytest.fixture
def atm_bs_price(atm_params) -> float:
    """Analytical Black-Scholes price for atm_params (≈10.4506)."""
    return black_scholes_call(
        spot=atm_params.spot,
        strike=atm_params.strike,
        rate=atm_params.risk_free_rate,
        volatility=atm_params.volatility,
        time_to_expiry=atm_params.maturity,
    )


# =============================================================================
# PRICE HISTORY
# =============================================================================


@pytest.fixture
def synthetic_prices() -> np.ndarray:
    """One year of synthetic daily closes (253 prices, σ = 25%)."""
    return SyntheticPriceProvider(seed=42).generate_prices(n_days=253, spot=100.0, volatility=0.25)


@pytest.fixture
def price_csv(tmp_path) -> Path:
    """Date,Close CSV with a header row, as exported by data vendors."""
    return SyntheticPriceProvider(seed=42).write_csv(
        tmp_path / "market_data.csv", n_days=253, spot=100.0, volatility=0.25
    )
