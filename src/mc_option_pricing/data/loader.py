"""
Price history loader and SyntheticPriceProvider.

NEVER fails silently - all errors are explicit. The only rows dropped
without error are those whose price field is not a number (headers,
blank lines, footers), which is how vendor CSV exports are laid out.

SyntheticPriceProvider generates GBM price histories for tests, demos and
CI runs that have no market data file.
"""

import csv
import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd

from mc_option_pricing.config.settings import SETTINGS

logger = logging.getLogger(__name__)


class DataLoadError(Exception):
    """Raised when price data cannot be loaded or is unusable."""

    pass


# =============================================================================
# SyntheticPriceProvider - Generates synthetic price histories
# =============================================================================


class SyntheticPriceProvider:
    """
    Generate synthetic daily price histories from a GBM.

    ⚠️ SYNTHETIC DATA - NOT FOR PRODUCTION USE

    Usage
    -----
    >>> provider = SyntheticPriceProvider(seed=42)
    >>> prices = provider.generate_prices(n_days=253, spot=100.0, volatility=0.25)
    >>> len(prices)
    253
    """

    def __init__(self, seed: int = 42, trading_days: int = SETTINGS.simulation.trading_days_per_year):
        """
        Initialize SyntheticPriceProvider with random seed for reproducibility.

        Parameters
        ----------
        seed : int
            Random seed for reproducible synthetic data generation
        trading_days : int
            Trading days per year used to scale daily moves
        """
        self.rng = np.random.default_rng(seed)
        self.trading_days = trading_days

    def generate_prices(
        self,
        n_days: int = 253,
        spot: float = 100.0,
        volatility: float = 0.20,
        drift: float = 0.0,
    ) -> np.ndarray:
        """
        Generate a daily close series, oldest first.

        Parameters
        ----------
        n_days : int
            Number of prices (n_days - 1 daily returns)
        spot : float
            First price in the series
        volatility : float
            Annualized volatility of daily log-returns
        drift : float
            Annualized drift of daily log-returns

        Returns
        -------
        np.ndarray
            Prices, shape (n_days,)
        """
        if n_days <= 0:
            raise ValueError(f"CRITICAL: n_days must be > 0, got {n_days}")
        if spot <= 0:
            raise ValueError(f"CRITICAL: spot must be > 0, got {spot}")

        dt = 1.0 / self.trading_days
        z = self.rng.standard_normal(n_days - 1)
        steps = (drift - 0.5 * volatility**2) * dt + volatility * np.sqrt(dt) * z
        return spot * np.exp(np.concatenate([[0.0], np.cumsum(steps)]))

    def generate_frame(self, n_days: int = 253, **kwargs) -> pd.DataFrame:
        """
        Generate a Date/Close frame shaped like a vendor CSV export.

        Parameters
        ----------
        n_days : int
            Number of business days
        **kwargs
            Passed to generate_prices

        Returns
        -------
        pd.DataFrame
            Columns: Date, Close
        """
        prices = self.generate_prices(n_days=n_days, **kwargs)
        dates = pd.bdate_range(start="2024-01-02", periods=n_days)
        return pd.DataFrame({"Date": dates.strftime("%Y-%m-%d"), "Close": prices})

    def write_csv(self, path: Union[str, Path], n_days: int = 253, **kwargs) -> Path:
        """Write a synthetic Date,Close CSV and return its path."""
        path = Path(path)
        self.generate_frame(n_days=n_days, **kwargs).to_csv(path, index=False)
        return path


# =============================================================================
# CSV loading
# =============================================================================


def load_price_history(
    path: Optional[Union[str, Path]] = None,
    column: Optional[Union[int, str]] = None,
) -> np.ndarray:
    """
    Load a chronological price series from a CSV file.

    Parameters
    ----------
    path : str or Path, optional
        CSV file. Defaults to SETTINGS.data.price_path.
    column : int or str, optional
        Price column: positional index (negative counts from the end) or a
        header name. Defaults to SETTINGS.data.price_column (last column).
        A positional index is applied to each line on its own, so title
        lines and rows with extra fields do not break parsing.

    Returns
    -------
    np.ndarray
        Prices as float64, file order (oldest first)

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    DataLoadError
        If the file cannot be parsed, has no numeric prices, or contains
        non-positive prices

    Examples
    --------
    >>> prices = load_price_history("market_data.csv")  # Date,Close
    >>> prices[-1]  # latest close
    """
    file_path = Path(path) if path is not None else SETTINGS.data.price_path
    if column is None:
        column = SETTINGS.data.price_column

    if not file_path.exists():
        raise FileNotFoundError(
            f"CRITICAL: Price history file not found at {file_path}.\n"
            f"Set MC_PRICER_DATA or pass the path explicitly."
        )

    try:
        if isinstance(column, str):
            df = pd.read_csv(file_path, dtype=str, skip_blank_lines=True)
            if column not in df.columns:
                raise DataLoadError(
                    f"CRITICAL: Column '{column}' not in {file_path}. "
                    f"Available: {list(df.columns)}"
                )
            raw = df[column]
        else:
            # One field per line: preamble lines and ragged rows must not
            # fix the column count for the whole file
            lines = pd.read_csv(
                file_path,
                header=None,
                names=["line"],
                sep="\x1f",
                dtype=str,
                quoting=csv.QUOTE_NONE,
                skip_blank_lines=True,
            )["line"]
            raw = lines.str.split(",").str.get(column).str.strip().str.strip('"')
    except DataLoadError:
        raise
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataLoadError(
            f"CRITICAL: Failed to load price history from {file_path}. Error: {e}"
        ) from e

    prices = pd.to_numeric(raw.str.strip(), errors="coerce")
    n_skipped = int(prices.isna().sum())
    prices = prices.dropna()

    if n_skipped:
        logger.debug(f"Skipped {n_skipped} non-numeric row(s) in {file_path}")

    # NEVER return empty data silently
    if prices.empty:
        raise DataLoadError(f"CRITICAL: No numeric prices found in {file_path}.")

    values = prices.to_numpy(dtype=np.float64)
    bad = ~np.isfinite(values) | (values <= 0)
    if bad.any():
        first = int(np.argmax(bad))
        raise DataLoadError(
            f"CRITICAL: {int(bad.sum())} non-positive or non-finite price(s) in {file_path}; "
            f"first is {values[first]!r}. Log-returns require strictly positive prices."
        )

    logger.info(f"Loaded {values.size} prices from {file_path}")
    return values
