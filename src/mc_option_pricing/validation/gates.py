"""
Validation Gates - HALT/PASS framework for Monte Carlo results.

Implements a multi-stage validation system that checks simulation results
for sanity before they are reported. Gates can HALT (reject with
diagnostics), WARN (allow with a flag) or PASS (allow to proceed).
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mc_option_pricing.config.settings import SETTINGS
from mc_option_pricing.config.tolerances import ANTI_PATTERN_TOLERANCE
from mc_option_pricing.options.pricing.black_scholes import call_price_bounds
from mc_option_pricing.options.simulation.gbm import PricingParameters
from mc_option_pricing.options.simulation.monte_carlo import SimulationResult

logger = logging.getLogger(__name__)


class GateStatus(Enum):
    """Status of a validation gate."""
    PASS = "pass"
    HALT = "halt"
    WARN = "warn"


@dataclass(frozen=True)
class GateResult:
    """
    Result of a validation gate check.

    Attributes
    ----------
    status : GateStatus
        PASS, HALT, or WARN
    gate_name : str
        Name of the gate that was checked
    message : str
        Explanation of the result
    value : Any, optional
        The value that was checked
    threshold : Any, optional
        The threshold that was applied
    """

    status: GateStatus
    gate_name: str
    message: str
    value: Any | None = None
    threshold: Any | None = None

    @property
    def passed(self) -> bool:
        """Check if gate passed (PASS or WARN)."""
        return self.status != GateStatus.HALT


@dataclass(frozen=True)
class ValidationReport:
    """
    Complete validation report from all gates.

    Attributes
    ----------
    results : tuple[GateResult, ...]
        Results from all gates
    """

    results: tuple[GateResult, ...]

    @property
    def overall_status(self) -> GateStatus:
        """Get worst status across all gates."""
        if any(r.status == GateStatus.HALT for r in self.results):
            return GateStatus.HALT
        elif any(r.status == GateStatus.WARN for r in self.results):
            return GateStatus.WARN
        return GateStatus.PASS

    @property
    def passed(self) -> bool:
        """Check if all gates passed (no HALTs)."""
        return self.overall_status != GateStatus.HALT

    @property
    def halted_gates(self) -> list[GateResult]:
        """Get all gates that halted."""
        return [r for r in self.results if r.status == GateStatus.HALT]

    @property
    def warned_gates(self) -> list[GateResult]:
        """Get all gates that warned."""
        return [r for r in self.results if r.status == GateStatus.WARN]

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "overall_status": self.overall_status.value,
            "passed": self.passed,
            "n_halted": len(self.halted_gates),
            "n_warned": len(self.warned_gates),
            "results": [
                {
                    "gate": r.gate_name,
                    "status": r.status.value,
                    "message": r.message,
                    "value": r.value,
                    "threshold": r.threshold,
                }
                for r in self.results
            ],
        }


# =============================================================================
# Gate Implementations
# =============================================================================

class ValidationGate:
    """
    Base class for validation gates.

    Subclasses implement check() to validate simulation results.
    """

    name: str = "base_gate"

    def check(self, result: SimulationResult, params: PricingParameters, **context: Any) -> GateResult:
        """
        Check the simulation result.

        Parameters
        ----------
        result : SimulationResult
            Simulation result to validate
        params : PricingParameters
            Parameters the result was produced from
        **context : Any
            Additional context

        Returns
        -------
        GateResult
            Validation result
        """
        raise NotImplementedError


class FiniteStatisticsGate(ValidationGate):
    """
    Check that every statistic is finite and the standard error non-negative.

    [T1] A NaN or infinite statistic means overflow in exp() or a
    corrupted reduction; nothing downstream can use it.
    """

    name = "finite_statistics"

    def check(self, result: SimulationResult, params: PricingParameters, **context: Any) -> GateResult:
        values = {
            "price": result.price,
            "standard_error": result.standard_error,
            "average_terminal_price": result.average_terminal_price,
        }
        bad = [k for k, v in values.items() if not math.isfinite(v)]
        if bad:
            return GateResult(
                status=GateStatus.HALT,
                gate_name=self.name,
                message=f"Non-finite statistic(s): {', '.join(bad)}",
                value=values,
            )

        if result.standard_error < 0:
            return GateResult(
                status=GateStatus.HALT,
                gate_name=self.name,
                message=f"Standard error {result.standard_error:.6f} is negative",
                value=result.standard_error,
                threshold=0.0,
            )

        return GateResult(
            status=GateStatus.PASS,
            gate_name=self.name,
            message="All statistics finite",
        )


class ArbitrageBoundsGate(ValidationGate):
    """
    Check for no-arbitrage violations.

    [T1] max(S - K*e^(-rT), 0) <= C <= S

    The MC price is a noisy estimate, so the bounds are widened by
    n_std_errors standard errors before a violation is declared.
    """

    name = "arbitrage_bounds"

    def __init__(
        self,
        n_std_errors: float = SETTINGS.validation.bound_n_std_errors,
        halt_on_violation: bool = SETTINGS.validation.halt_on_arbitrage,
    ):
        """
        Parameters
        ----------
        n_std_errors : float
            Allowed slack around the bounds, in standard errors
        halt_on_violation : bool
            HALT on a violation; False downgrades it to WARN
        """
        self.n_std_errors = n_std_errors
        self.halt_on_violation = halt_on_violation

    def check(self, result: SimulationResult, params: PricingParameters, **context: Any) -> GateResult:
        lower, upper = call_price_bounds(
            params.spot, params.strike, params.risk_free_rate, params.maturity
        )
        slack = self.n_std_errors * result.standard_error + ANTI_PATTERN_TOLERANCE
        status = GateStatus.HALT if self.halt_on_violation else GateStatus.WARN

        if result.price < lower - slack:
            return GateResult(
                status=status,
                gate_name=self.name,
                message=f"Price {result.price:.6f} below lower bound {lower:.6f} "
                        f"(arbitrage violation)",
                value=result.price,
                threshold=lower,
            )

        if result.price > upper + slack:
            return GateResult(
                status=status,
                gate_name=self.name,
                message=f"Price {result.price:.6f} exceeds spot {upper:.6f} "
                        f"(arbitrage violation)",
                value=result.price,
                threshold=upper,
            )

        return GateResult(
            status=GateStatus.PASS,
            gate_name=self.name,
            message="No arbitrage violations detected",
            value=result.price,
        )


class DriftCheckGate(ValidationGate):
    """
    Check the average terminal price against the risk-neutral forward.

    [T1] E[S(T)] = S(0) * e^(rT)

    The terminal standard deviation is S(0)e^(rT)·sqrt(e^(σ²T) - 1), which
    gives a CLT band for the sample mean without extra accumulators.
    """

    name = "drift_check"

    def __init__(self, n_std_errors: float = SETTINGS.validation.bound_n_std_errors):
        self.n_std_errors = n_std_errors

    def check(self, result: SimulationResult, params: PricingParameters, **context: Any) -> GateResult:
        forward = params.forward
        try:
            terminal_sd = forward * math.sqrt(math.expm1(params.volatility**2 * params.maturity))
        except OverflowError:
            # e^(σ²T) beyond float range: no finite band exists
            return GateResult(
                status=GateStatus.WARN,
                gate_name=self.name,
                message=f"Terminal variance overflows at σ²T = "
                        f"{params.volatility**2 * params.maturity:.1f}; drift band undefined",
                value=result.average_terminal_price,
            )
        band = self.n_std_errors * terminal_sd / math.sqrt(result.sample_count)
        band = max(band, 1e-9 * forward)

        deviation = abs(result.average_terminal_price - forward)
        if deviation > band:
            return GateResult(
                status=GateStatus.WARN,
                gate_name=self.name,
                message=f"Average terminal price {result.average_terminal_price:.6f} "
                        f"deviates from forward {forward:.6f} by {deviation:.6f}",
                value=result.average_terminal_price,
                threshold=band,
            )

        return GateResult(
            status=GateStatus.PASS,
            gate_name=self.name,
            message=f"Average terminal price within {band:.6f} of forward",
            value=result.average_terminal_price,
        )


class PrecisionGate(ValidationGate):
    """Warn when the relative standard error is too large to be useful."""

    name = "precision"

    def __init__(self, max_relative_error: float = SETTINGS.validation.max_relative_error):
        self.max_relative_error = max_relative_error

    def check(self, result: SimulationResult, params: PricingParameters, **context: Any) -> GateResult:
        # A worthless option priced at exactly 0 has no meaningful relative error
        if result.price == 0 and result.standard_error == 0:
            return GateResult(
                status=GateStatus.PASS,
                gate_name=self.name,
                message="Zero price with zero standard error",
            )

        rel = result.relative_error
        if rel > self.max_relative_error:
            return GateResult(
                status=GateStatus.WARN,
                gate_name=self.name,
                message=f"Relative standard error {rel:.2%} exceeds {self.max_relative_error:.2%}; "
                        f"increase sample_count",
                value=rel,
                threshold=self.max_relative_error,
            )

        return GateResult(
            status=GateStatus.PASS,
            gate_name=self.name,
            message=f"Relative standard error {rel:.4%}",
            value=rel,
        )


# =============================================================================
# Validation Engine
# =============================================================================

class ValidationEngine:
    """
    Engine for running validation gates on simulation results.

    Parameters
    ----------
    gates : list[ValidationGate], optional
        Custom gates to use. If None, uses default gates.

    Examples
    --------
    >>> engine = ValidationEngine()
    >>> report = engine.validate(result, params)
    >>> if not report.passed:
    ...     for gate in report.halted_gates:
    ...         print(f"HALT: {gate.message}")
    """

    def __init__(self, gates: list[ValidationGate] | None = None):
        if gates is None:
            gates = self._default_gates()
        self.gates = gates

    def _default_gates(self) -> list[ValidationGate]:
        """Create default set of validation gates."""
        return [
            FiniteStatisticsGate(),
            ArbitrageBoundsGate(),
            DriftCheckGate(),
            PrecisionGate(),
        ]

    def validate(
        self,
        result: SimulationResult,
        params: PricingParameters,
        **context: Any,
    ) -> ValidationReport:
        """
        Run all validation gates on a simulation result.

        Returns
        -------
        ValidationReport
            Complete validation report
        """
        results = []
        for gate in self.gates:
            gate_result = gate.check(result, params, **context)
            if gate_result.status == GateStatus.HALT:
                logger.warning(f"HALT [{gate_result.gate_name}]: {gate_result.message}")
            elif gate_result.status == GateStatus.WARN:
                logger.warning(f"WARN [{gate_result.gate_name}]: {gate_result.message}")
            results.append(gate_result)

        return ValidationReport(results=tuple(results))

    def validate_and_raise(
        self,
        result: SimulationResult,
        params: PricingParameters,
        **context: Any,
    ) -> SimulationResult:
        """
        Validate and raise exception on HALT.

        Returns
        -------
        SimulationResult
            The same result if validation passes

        Raises
        ------
        ValueError
            If any gate HALTs
        """
        report = self.validate(result, params, **context)

        if not report.passed:
            halt_messages = [g.message for g in report.halted_gates]
            raise ValueError(
                "CRITICAL: Validation failed. HALTs:\n" +
                "\n".join(f"  - {m}" for m in halt_messages)
            )

        return result


# =============================================================================
# Convenience Functions
# =============================================================================

def validate_simulation_result(
    result: SimulationResult,
    params: PricingParameters,
    **context: Any,
) -> ValidationReport:
    """
    Quick validation of a simulation result with the default gates.

    Examples
    --------
    >>> report = validate_simulation_result(result, params)
    >>> report.overall_status
    <GateStatus.PASS: 'pass'>
    """
    engine = ValidationEngine()
    return engine.validate(result, params, **context)


def ensure_valid(
    result: SimulationResult,
    params: PricingParameters,
    **context: Any,
) -> SimulationResult:
    """
    Validate and raise if invalid.

    Raises
    ------
    ValueError
        If validation fails (any HALT)
    """
    engine = ValidationEngine()
    return engine.validate_and_raise(result, params, **context)
