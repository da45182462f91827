"""
Statistical inputs for the pricing engine.

Provides:
- Historical (close-to-close) volatility estimation
"""

from mc_option_pricing.analytics.volatility import (
    DEFAULT_VOLATILITY,
    TRADING_DAYS_PER_YEAR,
    estimate_volatility,
    log_returns,
)

__all__ = [
    "DEFAULT_VOLATILITY",
    "TRADING_DAYS_PER_YEAR",
    "estimate_volatility",
    "log_returns",
]
