"""
Pricing Report - console and JSON rendering of a simulation run.

Generates the human-readable run summary (parameter echo, drift check,
valuation with confidence interval, throughput) and a structured JSON
document with the same content.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from mc_option_pricing.config.settings import SETTINGS
from mc_option_pricing.options.simulation.gbm import PricingParameters
from mc_option_pricing.options.simulation.monte_carlo import SimulationResult
from mc_option_pricing.validation.gates import ValidationReport

# =============================================================================
# Report Inputs
# =============================================================================


@dataclass(frozen=True)
class RunContext:
    """
    Everything the reporter needs about one run.

    Attributes
    ----------
    params : PricingParameters
        Parameters the engine was invoked with
    result : SimulationResult
        Engine output
    elapsed_sec : float
        Wall-clock time spent inside the engine
    data_source : str, optional
        Where the price history came from (None = defaults were used)
    n_history_points : int
        Number of historical prices loaded
    validation : ValidationReport, optional
        Gate results, if validation ran
    """

    params: PricingParameters
    result: SimulationResult
    elapsed_sec: float
    data_source: Optional[str] = None
    n_history_points: int = 0
    validation: Optional[ValidationReport] = None

    @property
    def throughput(self) -> float:
        """Samples per second (inf when the run took no measurable time)."""
        if self.elapsed_sec <= 0:
            return float("inf")
        return self.result.sample_count / self.elapsed_sec


@dataclass
class ReportConfig:
    """
    Configuration for report generation.

    Attributes
    ----------
    title : str
        Report title
    currency : str
        Currency label for prices
    rule_width : int
        Width of the horizontal rules
    confidence_z : float
        Quantile for the reported interval
    include_performance : bool
        Include elapsed time and throughput
    """

    title: str = "MONTE CARLO OPTION PRICER"
    currency: str = "EUR"
    rule_width: int = 44
    confidence_z: float = field(default_factory=lambda: SETTINGS.simulation.confidence_z)
    include_performance: bool = True


# =============================================================================
# Reporter
# =============================================================================


class PricingReporter:
    """
    Renders a RunContext as text or JSON.

    Examples
    --------
    >>> reporter = PricingReporter()
    >>> print(reporter.to_text(context))
    """

    def __init__(self, config: Optional[ReportConfig] = None):
        self.config = config or ReportConfig()

    def _rule(self, char: str = "-") -> str:
        return char * self.config.rule_width

    def _format_parameters(self, ctx: RunContext) -> list[str]:
        p = ctx.params
        cur = self.config.currency
        lines = [
            "Simulation Parameters:",
            f"  > Asset Start Price (S0): {p.spot:.4f} {cur}",
            f"  > Option Strike Price (K):{p.strike:.4f} {cur}",
            f"  > Time to Maturity (T):   {p.maturity:.4f} Years",
            f"  > Risk-Free Rate (r):     {p.risk_free_rate * 100:.4f} %",
            f"  > Volatility (sigma):     {p.volatility * 100:.4f} %",
        ]
        if ctx.data_source:
            lines.append(f"  > History:                {ctx.data_source} ({ctx.n_history_points} points)")
        else:
            lines.append("  > History:                none (default parameters)")
        return lines

    def _format_drift_check(self, ctx: RunContext) -> list[str]:
        cur = self.config.currency
        return [
            "Asset Projection (Drift Check):",
            f"  > Avg Final Price (ST):   {ctx.result.average_terminal_price:.4f} {cur}",
            f"  > Forward S0*e^(rT):      {ctx.params.forward:.4f} {cur}",
        ]

    def _format_valuation(self, ctx: RunContext) -> list[str]:
        r = ctx.result
        lower, upper = r.confidence_interval(self.config.confidence_z)
        return [
            "Option Valuation (95% Confidence):",
            f"  > FAIR VALUE:             {r.price:.4f} {self.config.currency}",
            f"  > Standard Error:         {r.standard_error:.4f}",
            f"  > Conf. Interval:         [{lower:.4f}, {upper:.4f}]",
        ]

    def _format_performance(self, ctx: RunContext) -> list[str]:
        return [
            "Performance Metrics:",
            f"  > Samples:                {ctx.result.sample_count:.2e}",
            f"  > Threads:                {ctx.result.n_workers}",
            f"  > Time:                   {ctx.elapsed_sec:.5f} sec",
            f"  > Throughput:             {ctx.throughput / 1e6:.2f} M sims/sec",
        ]

    def _format_validation(self, report: ValidationReport) -> list[str]:
        lines = [f"Validation: {report.overall_status.value.upper()}"]
        for g in report.halted_gates + report.warned_gates:
            lines.append(f"  > {g.status.value.upper()} {g.gate_name}: {g.message}")
        return lines

    def to_text(self, ctx: RunContext) -> str:
        """
        Generate the console report.

        Parameters
        ----------
        ctx : RunContext
            Run to describe

        Returns
        -------
        str
            Multi-line report
        """
        sections = [
            self._rule("="),
            f"   {self.config.title}",
            self._rule("="),
        ]
        sections.extend(self._format_parameters(ctx))
        sections.append(self._rule())
        sections.extend(self._format_drift_check(ctx))
        sections.append(self._rule())
        sections.extend(self._format_valuation(ctx))
        sections.append(self._rule())

        if ctx.validation is not None:
            sections.extend(self._format_validation(ctx.validation))
            sections.append(self._rule())

        if self.config.include_performance:
            sections.extend(self._format_performance(ctx))

        sections.append(self._rule("="))
        return "\n".join(sections)

    def _params_to_dict(self, p: PricingParameters) -> Dict[str, Any]:
        """Convert PricingParameters to JSON-serializable dict."""
        return {
            "spot": p.spot,
            "strike": p.strike,
            "risk_free_rate": p.risk_free_rate,
            "volatility": p.volatility,
            "maturity": p.maturity,
            "sample_count": p.sample_count,
        }

    def to_json(self, ctx: RunContext, indent: int = 2) -> str:
        """
        Generate JSON report.

        Parameters
        ----------
        ctx : RunContext
            Run to describe
        indent : int
            JSON indentation (0 for compact)

        Returns
        -------
        str
            JSON string
        """
        lower, upper = ctx.result.confidence_interval(self.config.confidence_z)
        result = ctx.result.to_dict()
        result["confidence_interval"] = [lower, upper]

        report: Dict[str, Any] = {
            "metadata": {
                "timestamp": datetime.now().isoformat(),
                "data_source": ctx.data_source,
                "n_history_points": ctx.n_history_points,
                "report_version": "1.0",
            },
            "parameters": self._params_to_dict(ctx.params),
            "result": result,
            "forward": ctx.params.forward,
        }

        if self.config.include_performance:
            report["performance"] = {
                "elapsed_sec": ctx.elapsed_sec,
                "throughput_per_sec": ctx.throughput if ctx.elapsed_sec > 0 else None,
            }

        if ctx.validation is not None:
            report["validation"] = ctx.validation.to_dict()

        return json.dumps(report, indent=indent if indent > 0 else None, default=str)


# =============================================================================
# Convenience Functions
# =============================================================================


def render_report(ctx: RunContext, config: Optional[ReportConfig] = None) -> str:
    """Render the console report for a run."""
    return PricingReporter(config).to_text(ctx)


def report_to_json(ctx: RunContext, config: Optional[ReportConfig] = None, indent: int = 2) -> str:
    """Render the JSON report for a run."""
    return PricingReporter(config).to_json(ctx, indent=indent)
