"""
Centralized tolerance framework for Monte Carlo pricing.

All tolerances are derived from precision requirements, not ad hoc tuning.

Tolerance Tiers:
    Tier 1 (Analytical): Machine-precision achievable, deterministic results
    Tier 3 (Stochastic): CLT-derived, sampling error of the estimator

References:
    [T1] Higham (2002) "Accuracy and Stability of Numerical Algorithms"
    [T1] Glasserman (2003) Ch. 1-2 - Monte Carlo error bounds
"""

from typing import Final

import numpy as np

# =============================================================================
# Confidence Quantiles
# =============================================================================

#: Two-sided 95% standard normal quantile
CONFIDENCE_Z_95: Final[float] = 1.96

#: Two-sided 99.7% ("three sigma") quantile used for test bands
CONFIDENCE_Z_3SIGMA: Final[float] = 3.0


# =============================================================================
# Tier 1: Analytical Tolerances (Deterministic)
# =============================================================================

#: No-arbitrage bounds: call price in [max(S - K*exp(-rT), 0), S]
ANTI_PATTERN_TOLERANCE: Final[float] = 1e-10

#: Zero-volatility drift check: every terminal value equals S*exp(rT),
#: so only summation rounding separates the mean from the forward
DETERMINISTIC_RELATIVE_TOLERANCE: Final[float] = 1e-12


# =============================================================================
# Tier 3: Stochastic Tolerances (CLT-Derived)
# =============================================================================


def mc_tolerance(n_paths: int, sigma: float = 0.20, confidence: float = 3.0) -> float:
    """
    Calculate CLT-derived Monte Carlo tolerance.

    [T1] Standard error of MC estimate is σ/√N.
    3σ gives 99.7% confidence interval.

    Parameters
    ----------
    n_paths : int
        Number of Monte Carlo paths
    sigma : float
        Estimated volatility of payoff (default 0.20 for options)
    confidence : float
        Number of standard deviations (default 3 for 99.7% CI)

    Returns
    -------
    float
        Tolerance for MC vs analytical comparison

    Examples
    --------
    >>> round(mc_tolerance(10_000), 4)
    0.006
    """
    if n_paths <= 0:
        raise ValueError(f"CRITICAL: n_paths must be > 0, got {n_paths}")
    return confidence * sigma / np.sqrt(n_paths)


#: Standard error ratio SE(N) / SE(4N); theory says exactly 2
SE_SCALING_RATIO: Final[float] = 2.0

#: Band around SE_SCALING_RATIO accepted for a single seeded pair of runs
SE_SCALING_TOLERANCE: Final[float] = 0.10

#: BS to MC convergence, expressed in standard errors of the MC estimate
BS_MC_CONVERGENCE_N_SE: Final[float] = 4.0


# =============================================================================
# Tolerance Registry (For Dynamic Access)
# =============================================================================

TOLERANCE_REGISTRY: dict[str, float] = {
    "anti_pattern": ANTI_PATTERN_TOLERANCE,
    "deterministic_relative": DETERMINISTIC_RELATIVE_TOLERANCE,
    "se_scaling": SE_SCALING_TOLERANCE,
    "bs_mc_convergence_n_se": BS_MC_CONVERGENCE_N_SE,
}


def get_tolerance(name: str) -> float:
    """
    Get tolerance by name from registry.

    Parameters
    ----------
    name : str
        Tolerance name (see TOLERANCE_REGISTRY keys)

    Returns
    -------
    float
        Tolerance value

    Raises
    ------
    KeyError
        If tolerance name not found
    """
    if name not in TOLERANCE_REGISTRY:
        available = ", ".join(sorted(TOLERANCE_REGISTRY.keys()))
        raise KeyError(f"Unknown tolerance '{name}'. Available: {available}")
    return TOLERANCE_REGISTRY[name]
