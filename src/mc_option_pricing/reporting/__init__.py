"""
Report rendering for simulation runs (console text and JSON).
"""

from mc_option_pricing.reporting.report import (
    PricingReporter,
    ReportConfig,
    RunContext,
    render_report,
    report_to_json,
)

__all__ = [
    "PricingReporter",
    "ReportConfig",
    "RunContext",
    "render_report",
    "report_to_json",
]
