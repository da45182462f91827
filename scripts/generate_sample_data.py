#!/usr/bin/env python3
"""
Generate a synthetic price history CSV for the pricer.

Creates a Date,Close file shaped like a vendor export so the CLI and
examples run without licensed market data.

Usage:
    python scripts/generate_sample_data.py [--output market_data.csv]
        [--days 253] [--spot 100] [--volatility 0.25] [--seed 42]
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mc_option_pricing.analytics.volatility import estimate_volatility
from mc_option_pricing.data.loader import SyntheticPriceProvider, load_price_history


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a synthetic price history CSV")
    parser.add_argument("--output", type=Path, default=Path("market_data.csv"), help="Output CSV path")
    parser.add_argument("--days", type=int, default=253, help="Number of daily prices")
    parser.add_argument("--spot", type=float, default=100.0, help="First price in the series")
    parser.add_argument("--volatility", type=float, default=0.25, help="Annualized volatility")
    parser.add_argument("--drift", type=float, default=0.0, help="Annualized drift")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    provider = SyntheticPriceProvider(seed=args.seed)
    path = provider.write_csv(
        args.output,
        n_days=args.days,
        spot=args.spot,
        volatility=args.volatility,
        drift=args.drift,
    )

    # Round-trip through the loader so a broken file fails here, not later
    prices = load_price_history(path)
    print(f"Wrote {len(prices)} prices to {path}")
    print(f"  Last close:            {prices[-1]:.4f}")
    print(f"  Historical volatility: {estimate_volatility(prices):.2%} (target {args.volatility:.2%})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
