"""
Geometric Brownian Motion (GBM) terminal-value sampling.

[T1] Risk-neutral GBM SDE: dS = rS dt + σS dW
[T1] Exact terminal solution: S(T) = S(0) * exp((r - σ²/2)T + σ√T * Z)

Only the terminal value is simulated: a European payoff needs nothing else,
so no time grid is ever stored.

See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Ch. 3.2
"""

import math
import numbers
from dataclasses import dataclass

import numpy as np


class InvalidParameterError(ValueError):
    """Raised when pricing parameters violate a precondition."""

    pass


@dataclass(frozen=True)
class PricingParameters:
    """
    Immutable inputs for one Monte Carlo run.

    Attributes
    ----------
    spot : float
        Current asset price S0 (> 0)
    strike : float
        Option strike K (>= 0). Callers wanting an at-the-money option set
        strike = spot; no such constraint is imposed here.
    risk_free_rate : float
        Risk-free rate (annualized, continuously compounded, decimal)
    volatility : float
        Volatility (annualized, decimal, >= 0)
    maturity : float
        Time to expiry in years (> 0)
    sample_count : int
        Number of independent Monte Carlo trials (> 0)
    """

    spot: float
    strike: float
    risk_free_rate: float
    volatility: float
    maturity: float
    sample_count: int

    def __post_init__(self) -> None:
        """Validate parameters."""
        for name in ("spot", "strike", "risk_free_rate", "volatility", "maturity"):
            value = getattr(self, name)
            if not isinstance(value, numbers.Real) or not math.isfinite(value):
                raise InvalidParameterError(f"CRITICAL: {name} must be a finite number, got {value!r}")

        if self.spot <= 0:
            raise InvalidParameterError(f"CRITICAL: spot must be > 0, got {self.spot}")
        if self.strike < 0:
            raise InvalidParameterError(f"CRITICAL: strike must be >= 0, got {self.strike}")
        if self.volatility < 0:
            raise InvalidParameterError(f"CRITICAL: volatility must be >= 0, got {self.volatility}")
        if self.maturity <= 0:
            raise InvalidParameterError(f"CRITICAL: maturity must be > 0, got {self.maturity}")

        # bool is an Integral; a True sample count is a bug upstream
        if isinstance(self.sample_count, bool) or not isinstance(self.sample_count, numbers.Integral):
            raise InvalidParameterError(
                f"CRITICAL: sample_count must be an integer, got {self.sample_count!r}"
            )
        if self.sample_count <= 0:
            raise InvalidParameterError(f"CRITICAL: sample_count must be > 0, got {self.sample_count}")

    @property
    def drift(self) -> float:
        """Total risk-neutral log drift over the horizon: (r - σ²/2)T."""
        return (self.risk_free_rate - 0.5 * self.volatility**2) * self.maturity

    @property
    def diffusion(self) -> float:
        """Total diffusion scale over the horizon: σ√T."""
        return self.volatility * math.sqrt(self.maturity)

    @property
    def discount_factor(self) -> float:
        """Discount factor: exp(-rT)."""
        return math.exp(-self.risk_free_rate * self.maturity)

    @property
    def forward(self) -> float:
        """Forward price: S * exp(rT)."""
        return self.spot * math.exp(self.risk_free_rate * self.maturity)

    @property
    def is_at_the_money(self) -> bool:
        """True when strike equals spot."""
        return self.strike == self.spot


def terminal_values_from_normals(params: PricingParameters, z: np.ndarray) -> np.ndarray:
    """
    Map standard normal draws to terminal prices.

    [T1] S(T) = S(0) * exp((r - σ²/2)T + σ√T * Z)

    Parameters
    ----------
    params : PricingParameters
        Pricing parameters
    z : np.ndarray
        Standard normal variates

    Returns
    -------
    np.ndarray
        Terminal values, same shape as z
    """
    log_returns = params.drift + params.diffusion * z
    return params.spot * np.exp(log_returns)


def generate_terminal_values(
    params: PricingParameters,
    n_paths: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Draw terminal values from a caller-owned generator.

    The generator is advanced by n_paths normals; it is never created here,
    so stream ownership stays with the caller (one stream per worker).

    Parameters
    ----------
    params : PricingParameters
        Pricing parameters
    n_paths : int
        Number of terminal values to draw
    rng : np.random.Generator
        Generator owned by the calling worker

    Returns
    -------
    np.ndarray
        Terminal values, shape (n_paths,)
    """
    if n_paths < 0:
        raise ValueError(f"CRITICAL: n_paths must be >= 0, got {n_paths}")

    z = rng.standard_normal(n_paths)
    return terminal_values_from_normals(params, z)


def validate_terminal_distribution(
    params: PricingParameters,
    n_paths: int = 100_000,
    seed: int = 42,
) -> dict:
    """
    Validate terminal sampling against theoretical moments.

    [T1] Under the risk-neutral measure:
    - E[S(T)] = S(0) * exp(rT) (forward price)
    - Var[log(S(T)/S(0))] = σ²T

    Parameters
    ----------
    params : PricingParameters
        Pricing parameters
    n_paths : int, default 100000
        Number of draws
    seed : int, default 42
        Random seed

    Returns
    -------
    dict
        Theoretical vs simulated moments
    """
    rng = np.random.default_rng(seed)
    terminal = generate_terminal_values(params, n_paths, rng)

    expected_mean = params.forward
    expected_log_var = params.volatility**2 * params.maturity

    simulated_mean = float(terminal.mean())
    simulated_log_var = float(np.log(terminal / params.spot).var())
    se_mean = float(terminal.std()) / math.sqrt(n_paths)

    return {
        "n_paths": n_paths,
        "theoretical_mean": expected_mean,
        "simulated_mean": simulated_mean,
        "mean_se": se_mean,
        "mean_z_score": (simulated_mean - expected_mean) / se_mean if se_mean > 0 else 0.0,
        "theoretical_log_variance": expected_log_var,
        "simulated_log_variance": simulated_log_var,
        "validation_passed": abs(simulated_mean - expected_mean) / expected_mean < 0.01,
    }
