"""
Black-Scholes closed-form reference for European calls.

Used as the analytical oracle that Monte Carlo estimates are checked
against (convergence analysis, validation gates, tests).

References
----------
[T1] Black, F., & Scholes, M. (1973). The pricing of options and corporate liabilities.
[T1] Hull, J. C. (2018). Options, Futures, and Other Derivatives (10th ed.).
"""

import numpy as np
from scipy import stats


def _calculate_d1_d2(
    spot: float,
    strike: float,
    rate: float,
    volatility: float,
    time_to_expiry: float,
) -> tuple[float, float]:
    """
    Calculate d1 and d2 parameters.

    [T1] d1 = (ln(S/K) + (r + σ²/2)T) / (σ√T)
    [T1] d2 = d1 - σ√T
    """
    vol_sqrt_t = volatility * np.sqrt(time_to_expiry)

    d1 = (np.log(spot / strike) + (rate + 0.5 * volatility**2) * time_to_expiry) / vol_sqrt_t
    d2 = d1 - vol_sqrt_t

    return d1, d2


def black_scholes_call(
    spot: float,
    strike: float,
    rate: float,
    volatility: float,
    time_to_expiry: float,
) -> float:
    """
    Price European call option using Black-Scholes.

    [T1] C = S*N(d1) - K*e^(-rT)*N(d2)

    Degenerate cases use the deterministic limit:
    - T = 0 or σ = 0: C = max(S - K*e^(-rT), 0)
    - K = 0: C = S

    Parameters
    ----------
    spot : float
        Current spot price
    strike : float
        Strike price
    rate : float
        Risk-free rate (decimal)
    volatility : float
        Volatility (decimal)
    time_to_expiry : float
        Time to expiry (years)

    Returns
    -------
    float
        Call option price

    Examples
    --------
    >>> round(black_scholes_call(100, 100, 0.05, 0.20, 1.0), 2)
    10.45
    """
    _validate_inputs(spot, strike, volatility, time_to_expiry)

    discounted_strike = strike * np.exp(-rate * time_to_expiry)

    if strike == 0:
        return float(spot)
    if time_to_expiry == 0 or volatility == 0:
        return float(max(spot - discounted_strike, 0.0))

    d1, d2 = _calculate_d1_d2(spot, strike, rate, volatility, time_to_expiry)

    call_price = spot * stats.norm.cdf(d1) - discounted_strike * stats.norm.cdf(d2)

    return float(call_price)


def call_price_bounds(
    spot: float,
    strike: float,
    rate: float,
    time_to_expiry: float,
) -> tuple[float, float]:
    """
    No-arbitrage bounds for a European call.

    [T1] max(S - K*e^(-rT), 0) <= C <= S

    Returns
    -------
    tuple[float, float]
        (lower, upper)
    """
    lower = max(spot - strike * np.exp(-rate * time_to_expiry), 0.0)
    return float(lower), float(spot)


def _validate_inputs(
    spot: float,
    strike: float,
    volatility: float,
    time_to_expiry: float,
) -> None:
    """Validate Black-Scholes inputs."""
    if spot <= 0:
        raise ValueError(f"CRITICAL: spot must be > 0, got {spot}")
    if strike < 0:
        raise ValueError(f"CRITICAL: strike must be >= 0, got {strike}")
    if volatility < 0:
        raise ValueError(f"CRITICAL: volatility must be >= 0, got {volatility}")
    if time_to_expiry < 0:
        raise ValueError(f"CRITICAL: time_to_expiry must be >= 0, got {time_to_expiry}")
