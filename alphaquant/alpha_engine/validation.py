"""
Input Validation Module

Enforces the bar trust boundary. Bars are checked, never repaired.

Rules:
    - Non-empty, single symbol
    - Timestamps strictly ascending
    - OHLCV finite, volume non-negative
    - Family minimum bar count met
"""

import math
from typing import List, Optional, Sequence, Tuple, Union
import logging

import pandas as pd

from alphaquant.alpha_engine.schemas import AlphaType, Bar

LOG = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['timestamp', 'open', 'high', 'low', 'close', 'volume']

# Smallest history each family accepts (158 includes the batch warm-up)
FAMILY_MIN_BARS = {
    AlphaType.ALPHA101: 60,
    AlphaType.ALPHA158: 70,
    AlphaType.ALPHA360: 60,
    AlphaType.CUSTOM: 1,
}


class BarInputValidator:
    """
    Validates bar histories before factor computation.

    Args:
        verbose: Log a line per successful validation
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def validate_bars(
        self,
        bars: Optional[Sequence[Bar]],
        family: Optional[Union[str, AlphaType]] = None,
        min_bars: Optional[int] = None
    ) -> Tuple[bool, List[Bar], List[str]]:
        """
        Validate a bar history.

        Args:
            bars: Chronological bars, oldest first
            family: Applies the family minimum from FAMILY_MIN_BARS
            min_bars: Explicit minimum, overrides the family minimum

        Returns:
            (is_valid, bars, errors)
        """
        errors = []

        if min_bars is None:
            min_bars = FAMILY_MIN_BARS[AlphaType.parse(family)] if family is not None else 1

        if not bars:
            errors.append("Bar history is empty")
            return False, [], errors

        bars = list(bars)

        symbols = {b.symbol for b in bars}
        if len(symbols) > 1:
            errors.append(f"Multiple symbols in bar history: {sorted(map(str, symbols))}")
            return False, bars, errors

        for prev, cur in zip(bars, bars[1:]):
            if cur.timestamp <= prev.timestamp:
                errors.append(
                    f"Timestamps not strictly ascending: {prev.timestamp} -> {cur.timestamp}"
                )
                return False, bars, errors

        for i, bar in enumerate(bars):
            ohlcv = (bar.open, bar.high, bar.low, bar.close, bar.volume)
            if not all(math.isfinite(v) for v in ohlcv):
                errors.append(f"Non-finite OHLCV at index {i} (timestamp {bar.timestamp})")
                return False, bars, errors
            if bar.volume < 0:
                errors.append(f"Negative volume at index {i} (timestamp {bar.timestamp})")
                return False, bars, errors

        if len(bars) < min_bars:
            errors.append(f"Insufficient bars: {len(bars)} < {min_bars} required")
            return False, bars, errors

        if self.verbose:
            LOG.info(f"✓ Input validation passed: {bars[-1].symbol} ({len(bars)} bars)")

        return True, bars, errors

    def check_sufficient_history(self, bars: Sequence[Bar], required_window: int) -> bool:
        return len(bars) >= required_window


def _to_epoch_seconds(series: pd.Series) -> pd.Series:
    if pd.api.types.is_datetime64_any_dtype(series):
        if series.dt.tz is None:
            series = series.dt.tz_localize('UTC')
        return (series - pd.Timestamp(0, tz='UTC')) // pd.Timedelta(seconds=1)
    return series.astype('int64')


def bars_from_dataframe(df: pd.DataFrame, symbol: Optional[str] = None) -> List[Bar]:
    """
    Convert an OHLCV DataFrame into bars.

    Args:
        df: Columns timestamp, open, high, low, close, volume and
            optionally symbol, amount, turnover. timestamp may be epoch
            seconds or a datetime column.
        symbol: Used when df has no symbol column

    Returns:
        Bars in row order
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")
    if symbol is None and 'symbol' not in df.columns:
        raise ValueError("DataFrame has no symbol column and no symbol was given")

    timestamps = _to_epoch_seconds(df['timestamp'])
    symbols = df['symbol'] if symbol is None else pd.Series(symbol, index=df.index)
    amounts = df['amount'] if 'amount' in df.columns else pd.Series(0.0, index=df.index)
    turnovers = df['turnover'] if 'turnover' in df.columns else pd.Series(0.0, index=df.index)

    return [
        Bar(
            symbol=str(sym),
            timestamp=int(ts),
            open=float(o),
            high=float(h),
            low=float(lo),
            close=float(c),
            volume=float(v),
            amount=float(a),
            turnover=float(t),
        )
        for sym, ts, o, h, lo, c, v, a, t in zip(
            symbols, timestamps, df['open'], df['high'], df['low'],
            df['close'], df['volume'], amounts, turnovers
        )
    ]


def bars_to_dataframe(bars: Sequence[Bar]) -> pd.DataFrame:
    """Inverse of bars_from_dataframe (timestamp stays in epoch seconds)"""
    return pd.DataFrame([b.to_dict() for b in bars])
