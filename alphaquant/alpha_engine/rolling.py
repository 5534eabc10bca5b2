"""
Alpha158 Rolling Statistics

29 rolling operators, each evaluated over the trailing window of the
latest bar.

Normalization:
    - Price-level operators divide by the latest close
    - Volume operators divide by the latest volume
    - Ratios, counts and correlations are left unscaled

Windows:
    - An operator returns NaN when fewer than w bars exist
    - Operators built on bar-to-bar changes need w+1 bars
"""

import math
from typing import Dict, Iterable, Sequence
import logging

import numpy as np

from alphaquant.alpha_engine.config import ROLLING_OPERATORS

LOG = logging.getLogger(__name__)

EPSILON = 1e-12

QUANTILE_UPPER = 0.8
QUANTILE_LOWER = 0.2


def _regression(y: np.ndarray):
    """
    OLS of y on x = 0..n-1.

    Returns:
        (slope, intercept), slope is 0 when the x variance vanishes
    """
    n = len(y)
    x = np.arange(n, dtype=float)
    sum_x = x.sum()
    sum_y = y.sum()
    denominator = n * (x * x).sum() - sum_x * sum_x
    if abs(denominator) < EPSILON:
        slope = 0.0
    else:
        slope = (n * (x * y).sum() - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def _correlation(x: np.ndarray, y: np.ndarray) -> float:
    """Pearson correlation, 0 when the denominator vanishes"""
    dx = x - x.mean()
    dy = y - y.mean()
    denominator = np.sqrt((dx * dx).sum() * (dy * dy).sum())
    if abs(denominator) < EPSILON:
        return 0.0
    return (dx * dy).sum() / denominator


class RollingStatistics:
    """
    Rolling operators over one bar history.

    Args:
        close, high, low, volume: Equal-length arrays, oldest first
    """

    def __init__(
        self,
        close: Sequence[float],
        high: Sequence[float],
        low: Sequence[float],
        volume: Sequence[float]
    ):
        self.close = np.asarray(close, dtype=float)
        self.high = np.asarray(high, dtype=float)
        self.low = np.asarray(low, dtype=float)
        self.volume = np.asarray(volume, dtype=float)
        self.n = len(self.close)

        if self.n == 0:
            raise ValueError("RollingStatistics needs at least one bar")

        self.current_close = self.close[-1]
        self.current_volume = self.volume[-1]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def compute(self, operator: str, window: int) -> float:
        """Value of one operator at one window"""
        method = getattr(self, f"_{operator.lower()}", None)
        if method is None:
            raise ValueError(f"Unknown rolling operator: {operator}")
        with np.errstate(divide='ignore', invalid='ignore'):
            return float(method(window))

    def compute_all(
        self,
        windows: Iterable[int],
        operators: Sequence[str] = ROLLING_OPERATORS
    ) -> Dict[str, float]:
        """
        Operator-major, window-minor ordered mapping.

        Every requested operator is computed, shortfalls show up as NaN.
        """
        windows = list(windows)
        if windows and self.n < max(windows):
            LOG.warning(f"Rolling statistics need {max(windows)} bars, have {self.n}; "
                        f"long windows will be NaN")

        factors = {}
        for operator in operators:
            for window in windows:
                factors[f"{operator}{window}"] = self.compute(operator, window)
        return factors

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _tail(self, series: np.ndarray, window: int) -> np.ndarray:
        return series[self.n - window:]

    def _changes(self, window: int) -> np.ndarray:
        """close[i] - close[i-1] for the last window bars"""
        tail = self.close[self.n - window - 1:]
        return tail[1:] - tail[:-1]

    def _short(self, window: int) -> bool:
        return self.n < window

    def _short_diff(self, window: int) -> bool:
        return self.n < window + 1

    # ------------------------------------------------------------------
    # Price level
    # ------------------------------------------------------------------

    def _roc(self, window: int) -> float:
        if self._short(window):
            return math.nan
        past = self.close[self.n - window]
        if past == 0:
            return math.nan
        return (self.close[-1] / past - 1.0) / self.current_close

    def _ma(self, window: int) -> float:
        if self._short(window):
            return math.nan
        return self._tail(self.close, window).mean() / self.current_close

    def _std(self, window: int) -> float:
        if self._short(window):
            return math.nan
        return self._tail(self.close, window).std() / self.current_close

    def _beta(self, window: int) -> float:
        if self._short(window):
            return math.nan
        slope, _ = _regression(self._tail(self.close, window))
        return slope

    def _rsqr(self, window: int) -> float:
        if self._short(window):
            return math.nan
        y = self._tail(self.close, window)
        slope, intercept = _regression(y)
        mean_y = y.mean()
        predicted = slope * np.arange(window, dtype=float) + intercept
        ssr = ((predicted - mean_y) ** 2).sum()
        sst = ((y - mean_y) ** 2).sum()
        if abs(sst) < EPSILON:
            return 0.0
        return ssr / sst

    def _resi(self, window: int) -> float:
        if self._short(window):
            return math.nan
        slope, intercept = _regression(self._tail(self.close, window))
        predicted = slope * (window - 1) + intercept
        return (self.close[-1] - predicted) / self.current_close

    def _max(self, window: int) -> float:
        if self._short(window):
            return math.nan
        return self._tail(self.high, window).max() / self.current_close

    def _min(self, window: int) -> float:
        if self._short(window):
            return math.nan
        return self._tail(self.low, window).min() / self.current_close

    def _quantile(self, window: int, q: float) -> float:
        if self._short(window):
            return math.nan
        values = np.sort(self._tail(self.close, window))
        index = int(math.ceil(q * window)) - 1
        index = max(0, min(index, window - 1))
        return values[index] / self.current_close

    def _qtlu(self, window: int) -> float:
        return self._quantile(window, QUANTILE_UPPER)

    def _qtld(self, window: int) -> float:
        return self._quantile(window, QUANTILE_LOWER)

    # ------------------------------------------------------------------
    # Rank / position
    # ------------------------------------------------------------------

    def _rank(self, window: int) -> float:
        """Share of the window strictly below the latest close"""
        if self._short(window):
            return math.nan
        below = (self._tail(self.close, window) < self.close[-1]).sum()
        return below / window

    def _rsv(self, window: int) -> float:
        if self._short(window):
            return math.nan
        max_high = self._tail(self.high, window).max()
        min_low = self._tail(self.low, window).min()
        return (self.close[-1] - min_low) / (max_high - min_low + EPSILON)

    def _first_max(self, window: int) -> int:
        high = self._tail(self.high, window)
        return int(np.argmax(np.where(np.isnan(high), -np.inf, high)))

    def _first_min(self, window: int) -> int:
        low = self._tail(self.low, window)
        return int(np.argmin(np.where(np.isnan(low), np.inf, low)))

    def _imax(self, window: int) -> float:
        if self._short(window):
            return math.nan
        return self._first_max(window) / window

    def _imin(self, window: int) -> float:
        if self._short(window):
            return math.nan
        return self._first_min(window) / window

    def _imxd(self, window: int) -> float:
        if self._short(window):
            return math.nan
        return (self._first_max(window) - self._first_min(window)) / window

    # ------------------------------------------------------------------
    # Correlation
    # ------------------------------------------------------------------

    def _corr(self, window: int) -> float:
        """corr(close, ln(volume + 1))"""
        if self._short(window):
            return math.nan
        prices = self._tail(self.close, window)
        log_volume = np.log(self._tail(self.volume, window) + 1)
        return _correlation(prices, log_volume)

    def _cord(self, window: int) -> float:
        """corr(close ratio, ln(volume ratio + 1))"""
        if self._short_diff(window):
            return math.nan
        close = self.close[self.n - window - 1:]
        volume = self.volume[self.n - window - 1:]
        price_changes = close[1:] / (close[:-1] + EPSILON)
        volume_changes = np.log(volume[1:] / (volume[:-1] + EPSILON) + 1)
        return _correlation(price_changes, volume_changes)

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------

    def _cntp(self, window: int) -> float:
        if self._short_diff(window):
            return math.nan
        return (self._changes(window) > 0).sum() / window

    def _cntn(self, window: int) -> float:
        if self._short_diff(window):
            return math.nan
        return (self._changes(window) < 0).sum() / window

    def _cntd(self, window: int) -> float:
        if self._short_diff(window):
            return math.nan
        changes = self._changes(window)
        return ((changes > 0).sum() - (changes < 0).sum()) / window

    # ------------------------------------------------------------------
    # Sums of changes
    # ------------------------------------------------------------------

    def _sump(self, window: int) -> float:
        if self._short_diff(window):
            return math.nan
        return np.maximum(self._changes(window), 0.0).sum() / self.current_close

    def _sumn(self, window: int) -> float:
        if self._short_diff(window):
            return math.nan
        return np.abs(np.minimum(self._changes(window), 0.0)).sum() / self.current_close

    def _sumd(self, window: int) -> float:
        if self._short_diff(window):
            return math.nan
        changes = self._changes(window)
        up = changes[changes > 0].sum()
        down = np.abs(changes[changes <= 0]).sum()
        return (up - down) / self.current_close

    # ------------------------------------------------------------------
    # Volume
    # ------------------------------------------------------------------

    def _vma(self, window: int) -> float:
        if self._short(window):
            return math.nan
        return self._tail(self.volume, window).mean() / self.current_volume

    def _vstd(self, window: int) -> float:
        if self._short(window):
            return math.nan
        return self._tail(self.volume, window).std() / self.current_volume

    def _wvma(self, window: int) -> float:
        """Dispersion of |return| x volume relative to its mean"""
        if self._short_diff(window):
            return math.nan
        close = self.close[self.n - window - 1:]
        weighted = np.abs(close[1:] / close[:-1] - 1.0) * self._tail(self.volume, window)
        mean = weighted.mean()
        return weighted.std() / (mean + EPSILON)

    def _vsump(self, window: int) -> float:
        if self._short_diff(window):
            return math.nan
        volume = self._tail(self.volume, window)
        return volume[self._changes(window) > 0].sum() / self.current_volume

    def _vsumn(self, window: int) -> float:
        if self._short_diff(window):
            return math.nan
        volume = self._tail(self.volume, window)
        return volume[self._changes(window) < 0].sum() / self.current_volume

    def _vsumd(self, window: int) -> float:
        if self._short_diff(window):
            return math.nan
        volume = self._tail(self.volume, window)
        changes = self._changes(window)
        return (volume[changes > 0].sum() - volume[changes < 0].sum()) / self.current_volume
