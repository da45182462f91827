#!/usr/bin/env python3
"""
At-the-money call pricing demo.

Walks the full pipeline on a synthetic history:

    history -> historical volatility -> parallel MC -> report

and compares the Monte Carlo estimate with the Black-Scholes price.

Usage:
    python examples/01_atm_call.py            # 10M samples
    python examples/01_atm_call.py --ci       # CI mode (200k samples)
"""

import argparse
import sys
import time

# Add src to path if running as script
sys.path.insert(0, "src")

from mc_option_pricing import (
    PricingParameters,
    SyntheticPriceProvider,
    black_scholes_call,
    estimate_volatility,
    run_simulation,
)
from mc_option_pricing.reporting import RunContext, render_report
from mc_option_pricing.validation import validate_simulation_result


def main() -> int:
    parser = argparse.ArgumentParser(description="At-the-money call pricing demo")
    parser.add_argument("--ci", action="store_true", help="Small sample count for CI")
    args = parser.parse_args()

    prices = SyntheticPriceProvider(seed=7).generate_prices(n_days=253, spot=100.0, volatility=0.22)
    sigma = estimate_volatility(prices)
    spot = float(prices[-1])

    params = PricingParameters(
        spot=spot,
        strike=spot,
        risk_free_rate=0.05,
        volatility=sigma,
        maturity=1.0,
        sample_count=200_000 if args.ci else 10_000_000,
    )

    start = time.perf_counter()
    result = run_simulation(params, seed=2026)
    elapsed = time.perf_counter() - start

    ctx = RunContext(
        params=params,
        result=result,
        elapsed_sec=elapsed,
        data_source="synthetic",
        n_history_points=len(prices),
        validation=validate_simulation_result(result, params),
    )
    print(render_report(ctx))

    bs = black_scholes_call(spot, spot, 0.05, sigma, 1.0)
    z = (result.price - bs) / result.standard_error
    print(f"Black-Scholes: {bs:.4f}  (MC - BS = {z:+.2f} SE)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
