"""
Analytical option pricing.

Provides:
- Black-Scholes European call price (Monte Carlo reference)
- No-arbitrage call bounds
"""

from mc_option_pricing.options.pricing.black_scholes import (
    black_scholes_call,
    call_price_bounds,
)

__all__ = [
    "black_scholes_call",
    "call_price_bounds",
]
