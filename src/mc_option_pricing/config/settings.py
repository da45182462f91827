"""
Frozen configuration settings for Monte Carlo option pricing.

All configuration is immutable (frozen dataclasses) to ensure reproducibility.
Environment variables are read once, when the singleton is built.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from mc_option_pricing.config.tolerances import CONFIDENCE_Z_95

# =============================================================================
# Environment overrides
# =============================================================================


def _resolve_data_path() -> Path:
    """
    Resolve price history file path with environment variable override.

    Priority:
    1. MC_PRICER_DATA environment variable (if set)
    2. Default: market_data.csv in the working directory

    Returns
    -------
    Path
        Resolved path to the price history CSV
    """
    env_path = os.environ.get("MC_PRICER_DATA")
    if env_path:
        return Path(env_path)
    return Path("market_data.csv")


def _env_int(name: str) -> Optional[int]:
    """Read a positive integer from the environment, None if unset."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"CRITICAL: {name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"CRITICAL: {name} must be > 0, got {value}")
    return value


# =============================================================================
# Data Configuration
# =============================================================================


@dataclass(frozen=True)
class DataConfig:
    """
    Immutable data configuration.

    Attributes
    ----------
    price_path : Path
        Path to the price history CSV. Override with MC_PRICER_DATA.
    price_column : int
        Column holding the price (-1 = last column, as exported by most
        market data vendors)
    """

    price_path: Path = field(default_factory=_resolve_data_path)
    price_column: int = -1


# =============================================================================
# Simulation Configuration
# =============================================================================


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable Monte Carlo configuration.

    Attributes
    ----------
    sample_count : int
        Default number of Monte Carlo trials. Override with MC_PRICER_SAMPLES.
    n_workers : int, optional
        Worker thread count. None = os.cpu_count(). Override with MC_PRICER_THREADS.
    chunk_size : int
        Maximum number of normal draws a worker holds in memory at once
    default_volatility : float
        Fallback annualized volatility when no usable history exists
    trading_days_per_year : int
        Annualization factor for daily log-returns
    confidence_z : float
        Two-sided normal quantile for the reported confidence interval
    """

    sample_count: int = field(
        default_factory=lambda: _env_int("MC_PRICER_SAMPLES") or 10_000_000
    )
    n_workers: Optional[int] = field(default_factory=lambda: _env_int("MC_PRICER_THREADS"))
    chunk_size: int = 1_000_000
    default_volatility: float = 0.20
    trading_days_per_year: int = 252
    confidence_z: float = CONFIDENCE_Z_95


# =============================================================================
# Market Defaults
# =============================================================================


@dataclass(frozen=True)
class MarketDefaults:
    """
    Parameters used when no price history is available.

    Attributes
    ----------
    spot : float
        Asset start price
    strike : float
        Option strike
    risk_free_rate : float
        Continuously-compounded risk-free rate
    maturity : float
        Time to maturity in years
    """

    spot: float = 100.0
    strike: float = 100.0
    risk_free_rate: float = 0.05
    maturity: float = 1.0


# =============================================================================
# Validation Configuration
# =============================================================================


@dataclass(frozen=True)
class ValidationConfig:
    """
    Immutable validation configuration.

    Attributes
    ----------
    halt_on_arbitrage : bool
        Whether to HALT on no-arbitrage violations
    bound_n_std_errors : float
        Slack (in standard errors) allowed around analytic bounds
    max_relative_error : float
        Relative standard error above which a WARN is issued
    """

    halt_on_arbitrage: bool = True
    bound_n_std_errors: float = 5.0
    max_relative_error: float = 0.01


# =============================================================================
# Master Configuration
# =============================================================================


@dataclass(frozen=True)
class Settings:
    """
    Master frozen configuration combining all sub-configs.

    Usage
    -----
    >>> from mc_option_pricing.config.settings import SETTINGS
    >>> SETTINGS.simulation.default_volatility
    0.2
    """

    data: DataConfig = field(default_factory=DataConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    market: MarketDefaults = field(default_factory=MarketDefaults)
    validation: ValidationConfig = field(default_factory=ValidationConfig)


# Singleton instance - import this
SETTINGS = Settings()
