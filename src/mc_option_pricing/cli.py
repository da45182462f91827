"""
mc-pricer - price an at-the-money European call from a price history.

Usage:
    mc-pricer [CSV] [--samples N] [--threads W] [--seed S] [--json] [--verbose]

Flow:
    1. Load the price history (default: SETTINGS.data.price_path)
    2. Historical volatility, spot = last price, strike = spot
    3. Run the parallel Monte Carlo engine and time it
    4. Validate and print the report

When the history is missing or unusable the run continues with the
default market parameters.

Exit codes:
    0 = Priced successfully
    1 = Invalid parameters or a validation gate HALTed
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from mc_option_pricing.analytics.volatility import estimate_volatility
from mc_option_pricing.config.settings import SETTINGS
from mc_option_pricing.data.loader import DataLoadError, load_price_history
from mc_option_pricing.options.simulation.gbm import InvalidParameterError, PricingParameters
from mc_option_pricing.options.simulation.monte_carlo import MonteCarloEngine
from mc_option_pricing.reporting.report import RunContext, render_report, report_to_json
from mc_option_pricing.validation.gates import ValidationEngine

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mc-pricer",
        description="Monte Carlo pricer for an at-the-money European call",
    )
    parser.add_argument(
        "csv",
        nargs="?",
        type=Path,
        default=None,
        help=f"Price history CSV, last column = price (default: {SETTINGS.data.price_path})",
    )
    parser.add_argument(
        "--samples", "-n",
        type=int,
        default=SETTINGS.simulation.sample_count,
        help="Number of Monte Carlo trials",
    )
    parser.add_argument("--threads", "-t", type=int, default=None, help="Worker threads (default: all cores)")
    parser.add_argument("--seed", type=int, default=None, help="Root seed for a reproducible run")
    parser.add_argument(
        "--rate", type=float, default=SETTINGS.market.risk_free_rate, help="Risk-free rate (decimal)"
    )
    parser.add_argument(
        "--maturity", type=float, default=SETTINGS.market.maturity, help="Time to maturity (years)"
    )
    parser.add_argument("--strike", type=float, default=None, help="Strike (default: at-the-money)")
    parser.add_argument("--json", action="store_true", help="Print the JSON report instead of text")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the pricer; returns the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    spot = SETTINGS.market.spot
    strike = SETTINGS.market.strike
    volatility = SETTINGS.simulation.default_volatility
    data_source = None
    n_points = 0

    csv_path = args.csv if args.csv is not None else SETTINGS.data.price_path
    try:
        history = load_price_history(csv_path)
    except (FileNotFoundError, DataLoadError) as e:
        logger.warning(f"{e} Using default parameters.")
    else:
        volatility = estimate_volatility(history, SETTINGS.simulation.trading_days_per_year)
        spot = float(history[-1])
        strike = spot
        data_source = str(csv_path)
        n_points = int(history.size)
        logger.info(f"Historical volatility: {volatility:.2%} from {n_points} points")

    if args.strike is not None:
        strike = args.strike

    try:
        params = PricingParameters(
            spot=spot,
            strike=strike,
            risk_free_rate=args.rate,
            volatility=volatility,
            maturity=args.maturity,
            sample_count=args.samples,
        )
        engine = MonteCarloEngine(n_workers=args.threads, seed=args.seed)
    except InvalidParameterError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Simulating {params.sample_count:.2e} paths on {min(engine.n_workers, params.sample_count)} thread(s)...")

    start = time.perf_counter()
    result = engine.run(params)
    elapsed = time.perf_counter() - start

    validation = ValidationEngine().validate(result, params)

    ctx = RunContext(
        params=params,
        result=result,
        elapsed_sec=elapsed,
        data_source=data_source,
        n_history_points=n_points,
        validation=validation,
    )
    print(report_to_json(ctx) if args.json else render_report(ctx))

    return 0 if validation.passed else 1


if __name__ == "__main__":
    sys.exit(main())
