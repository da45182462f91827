"""
Historical volatility estimation.

[T1] Hull (2021) Ch. 15.4 - Estimating volatility from historical data:
    u_i = ln(S_i / S_{i-1})
    s   = sqrt( Σ(u_i - ū)² / (n - 1) )
    σ   = s · sqrt(trading days per year)

The estimator supplies the annualized volatility that parameterizes the
Monte Carlo engine.
"""

import logging
from typing import Final, Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)

#: Annualized volatility returned when the history is too short to estimate
DEFAULT_VOLATILITY: Final[float] = 0.20

#: Conventional number of trading days per year
TRADING_DAYS_PER_YEAR: Final[int] = 252

PriceSequence = Union[Sequence[float], np.ndarray]


def log_returns(prices: PriceSequence) -> np.ndarray:
    """
    Compute consecutive log-returns u_i = ln(P_i / P_{i-1}).

    Parameters
    ----------
    prices : sequence of float
        Prices in chronological order (oldest first), all > 0

    Returns
    -------
    np.ndarray
        Log-returns, length len(prices) - 1 (empty for fewer than 2 prices)
    """
    p = np.asarray(prices, dtype=np.float64)
    if p.size < 2:
        return np.empty(0, dtype=np.float64)
    return np.log(p[1:] / p[:-1])


def estimate_volatility(
    prices: PriceSequence,
    trading_days: int = TRADING_DAYS_PER_YEAR,
    fallback: float = DEFAULT_VOLATILITY,
) -> float:
    """
    Estimate annualized volatility from a historical price series.

    Uses the sample standard deviation of daily log-returns (Bessel's
    correction, divisor n - 1) scaled by sqrt(trading_days).

    Parameters
    ----------
    prices : sequence of float
        Prices in chronological order (oldest first). Positivity is the
        caller's responsibility.
    trading_days : int, default 252
        Annualization factor
    fallback : float, default 0.20
        Value returned when fewer than 2 prices are supplied

    Returns
    -------
    float
        Annualized volatility (decimal)

    Examples
    --------
    >>> estimate_volatility([100.0, 100.0])
    0.0
    >>> estimate_volatility([])
    0.2
    """
    returns = log_returns(prices)

    if returns.size == 0:
        logger.info(
            f"Price history has {len(prices)} point(s); using fallback volatility {fallback:.2%}"
        )
        return float(fallback)

    # A single log-return has no dispersion to measure
    if returns.size == 1:
        return 0.0

    daily_vol = float(np.std(returns, ddof=1))
    return daily_vol * float(np.sqrt(trading_days))
