"""
Validation framework for simulation results.

Provides HALT/WARN/PASS gates for validating Monte Carlo outputs:
- FiniteStatisticsGate: No NaN/inf statistics, SE >= 0
- ArbitrageBoundsGate: No-arbitrage call bounds
- DriftCheckGate: Average terminal price vs forward
- PrecisionGate: Relative standard error
"""

from mc_option_pricing.validation.gates import (
    ArbitrageBoundsGate,
    DriftCheckGate,
    FiniteStatisticsGate,
    GateResult,
    # Enums and Results
    GateStatus,
    PrecisionGate,
    # Engine
    ValidationEngine,
    # Base Gate
    ValidationGate,
    ValidationReport,
    ensure_valid,
    # Convenience Functions
    validate_simulation_result,
)

__all__ = [
    # Enums and Results
    "GateStatus",
    "GateResult",
    "ValidationReport",
    # Base Gate
    "ValidationGate",
    # Specific Gates
    "FiniteStatisticsGate",
    "ArbitrageBoundsGate",
    "DriftCheckGate",
    "PrecisionGate",
    # Engine
    "ValidationEngine",
    # Convenience Functions
    "validate_simulation_result",
    "ensure_valid",
]
