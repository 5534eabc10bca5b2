"""
Operator Library

Numeric building blocks for the WorldQuant 101 formulas.
All operators are causal (no lookahead) and deterministic.

Rules:
    - Inputs are 1-D sequences ordered oldest to newest
    - Outputs are float64 numpy arrays
    - Insufficient length yields an EMPTY array, never an exception
    - Statistics are population statistics (divide by w, not w-1)
    - Divisions are guarded by EPSILON
"""

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from typing import Sequence, Tuple
import logging

LOG = logging.getLogger(__name__)

EPSILON = 1e-12

_EMPTY = np.empty(0, dtype=float)


def _as_array(data) -> np.ndarray:
    if data is None:
        return _EMPTY
    return np.asarray(data, dtype=float)


class AlphaOperators:
    """
    Time-series and pseudo cross-sectional operators.

    Windowed operators return len(x) - w + 1 values: element k covers
    x[k : k + w].
    """

    # ------------------------------------------------------------------
    # Time-series operators
    # ------------------------------------------------------------------

    @staticmethod
    def delay(data: Sequence[float], d: int) -> np.ndarray:
        """
        Value d periods ago.

        Returns x[:len-d], so the last element lines up with the latest
        bar of the undelayed series.
        """
        x = _as_array(data)
        if len(x) <= d:
            return _EMPTY.copy()
        return x[:len(x) - d].copy()

    @staticmethod
    def delta(data: Sequence[float], d: int) -> np.ndarray:
        """x[t] - x[t-d], length len-d"""
        x = _as_array(data)
        if len(x) <= d:
            return _EMPTY.copy()
        return x[d:] - x[:len(x) - d]

    @staticmethod
    def ts_sum(data: Sequence[float], window: int) -> np.ndarray:
        x = _as_array(data)
        if window <= 0 or len(x) < window:
            return _EMPTY.copy()
        return sliding_window_view(x, window).sum(axis=1)

    @staticmethod
    def sma(data: Sequence[float], window: int) -> np.ndarray:
        """Simple moving average"""
        x = _as_array(data)
        if window <= 0 or len(x) < window:
            return _EMPTY.copy()
        return sliding_window_view(x, window).sum(axis=1) / window

    @staticmethod
    def ts_min(data: Sequence[float], window: int) -> np.ndarray:
        x = _as_array(data)
        if window <= 0 or len(x) < window:
            return _EMPTY.copy()
        return sliding_window_view(x, window).min(axis=1)

    @staticmethod
    def ts_max(data: Sequence[float], window: int) -> np.ndarray:
        x = _as_array(data)
        if window <= 0 or len(x) < window:
            return _EMPTY.copy()
        return sliding_window_view(x, window).max(axis=1)

    @staticmethod
    def ts_argmax(data: Sequence[float], window: int) -> np.ndarray:
        """
        Offset of the first maximum inside each window (0 = oldest).

        NaN never wins the comparison.
        """
        x = _as_array(data)
        if window <= 0 or len(x) < window:
            return _EMPTY.copy()
        windows = sliding_window_view(np.where(np.isnan(x), -np.inf, x), window)
        return windows.argmax(axis=1).astype(float)

    @staticmethod
    def ts_argmin(data: Sequence[float], window: int) -> np.ndarray:
        """Offset of the first minimum inside each window (0 = oldest)"""
        x = _as_array(data)
        if window <= 0 or len(x) < window:
            return _EMPTY.copy()
        windows = sliding_window_view(np.where(np.isnan(x), np.inf, x), window)
        return windows.argmin(axis=1).astype(float)

    @staticmethod
    def ts_rank(data: Sequence[float], window: int) -> np.ndarray:
        """
        Time-series rank of the window's last value.

        rank = count(window < last) / (w - 1)

        Ties are not counted. A window of 1 gives NaN (0/0).
        """
        x = _as_array(data)
        if window <= 0 or len(x) < window:
            return _EMPTY.copy()
        windows = sliding_window_view(x, window)
        below = (windows < windows[:, -1:]).sum(axis=1).astype(float)
        with np.errstate(divide='ignore', invalid='ignore'):
            return below / float(window - 1)

    @staticmethod
    def product(data: Sequence[float], window: int) -> np.ndarray:
        """Trailing product"""
        x = _as_array(data)
        if window <= 0 or len(x) < window:
            return _EMPTY.copy()
        return sliding_window_view(x, window).prod(axis=1)

    @staticmethod
    def decay_linear(data: Sequence[float], d: int) -> np.ndarray:
        """
        Linearly decaying weighted average.

        Weights 1..d with the newest sample weighted d, normalized by
        d(d+1)/2.
        """
        x = _as_array(data)
        if d <= 0 or len(x) < d:
            return _EMPTY.copy()
        weights = np.arange(1, d + 1, dtype=float) / (d * (d + 1) / 2.0)
        return sliding_window_view(x, d) @ weights

    # ------------------------------------------------------------------
    # Statistical operators
    # ------------------------------------------------------------------

    @staticmethod
    def stddev(data: Sequence[float], window: int) -> np.ndarray:
        """Population standard deviation"""
        x = _as_array(data)
        if window <= 0 or len(x) < window:
            return _EMPTY.copy()
        windows = sliding_window_view(x, window)
        mean = windows.sum(axis=1, keepdims=True) / window
        return np.sqrt(((windows - mean) ** 2).sum(axis=1) / window)

    @staticmethod
    def correlation(x_data: Sequence[float], y_data: Sequence[float], window: int) -> np.ndarray:
        """
        Rolling Pearson correlation.

        Both inputs must have the same length, otherwise the result is
        empty. A near-zero denominator yields 0, never NaN/Inf.
        """
        x = _as_array(x_data)
        y = _as_array(y_data)
        if window <= 0 or len(x) != len(y) or len(x) < window:
            return _EMPTY.copy()
        xw = sliding_window_view(x, window)
        yw = sliding_window_view(y, window)
        dx = xw - xw.sum(axis=1, keepdims=True) / window
        dy = yw - yw.sum(axis=1, keepdims=True) / window
        numerator = (dx * dy).sum(axis=1)
        denom = np.sqrt((dx * dx).sum(axis=1) * (dy * dy).sum(axis=1))
        safe = np.where(denom < EPSILON, 1.0, denom)
        return np.where(denom < EPSILON, 0.0, numerator / safe)

    @staticmethod
    def covariance(x_data: Sequence[float], y_data: Sequence[float], window: int) -> np.ndarray:
        """Rolling population covariance, same length rule as correlation"""
        x = _as_array(x_data)
        y = _as_array(y_data)
        if window <= 0 or len(x) != len(y) or len(x) < window:
            return _EMPTY.copy()
        xw = sliding_window_view(x, window)
        yw = sliding_window_view(y, window)
        dx = xw - xw.sum(axis=1, keepdims=True) / window
        dy = yw - yw.sum(axis=1, keepdims=True) / window
        return (dx * dy).sum(axis=1) / window

    # ------------------------------------------------------------------
    # Pseudo cross-sectional operators
    # ------------------------------------------------------------------

    @staticmethod
    def rank(data: Sequence[float]) -> np.ndarray:
        """
        Percentile rank over the supplied series itself.

        rank_i = count(x < x_i) / (n - 1)

        NOTE: this is NOT a cross-sectional rank across instruments. It
        ranks each value against the other values of the same series.
        Trained models depend on these exact values, so keep it as is.
        A single-element series gives NaN (0/0).
        """
        x = _as_array(data)
        if len(x) == 0:
            return _EMPTY.copy()
        valid = np.sort(x[~np.isnan(x)])
        below = np.searchsorted(valid, x, side='left').astype(float)
        below[np.isnan(x)] = 0.0
        with np.errstate(divide='ignore', invalid='ignore'):
            return below / float(len(x) - 1)

    @staticmethod
    def scale(data: Sequence[float], a: float = 1.0) -> np.ndarray:
        """a * x / sum(|x|), all zeros when sum(|x|) < EPSILON"""
        x = _as_array(data)
        if len(x) == 0:
            return _EMPTY.copy()
        sum_abs = np.abs(x).sum()
        if sum_abs < EPSILON:
            return np.zeros(len(x))
        return a * x / sum_abs

    # ------------------------------------------------------------------
    # Element-wise operators
    # ------------------------------------------------------------------

    @staticmethod
    def signedpower(data: Sequence[float], a: float) -> np.ndarray:
        """sign(x) * |x|^a with sign(0) = +1"""
        x = _as_array(data)
        if len(x) == 0:
            return _EMPTY.copy()
        return np.where(x >= 0, 1.0, -1.0) * np.power(np.abs(x), a)

    @staticmethod
    def signed_power_value(value: float, a: float) -> float:
        sign = 1.0 if value >= 0 else -1.0
        return sign * float(np.power(abs(value), a))

    @staticmethod
    def sign(data: Sequence[float]) -> np.ndarray:
        """+1 / -1 outside +-EPSILON, 0 inside (and for NaN)"""
        x = _as_array(data)
        if len(x) == 0:
            return _EMPTY.copy()
        return np.where(x > EPSILON, 1.0, np.where(x < -EPSILON, -1.0, 0.0))

    @staticmethod
    def sign_value(value: float) -> float:
        if value > EPSILON:
            return 1.0
        if value < -EPSILON:
            return -1.0
        return 0.0

    @staticmethod
    def abs(data: Sequence[float]) -> np.ndarray:
        x = _as_array(data)
        if len(x) == 0:
            return _EMPTY.copy()
        return np.abs(x)

    @staticmethod
    def log(data: Sequence[float]) -> np.ndarray:
        """ln(x) for x > EPSILON, 0 otherwise"""
        x = _as_array(data)
        if len(x) == 0:
            return _EMPTY.copy()
        positive = x > EPSILON
        return np.where(positive, np.log(np.where(positive, x, 1.0)), 0.0)

    # ------------------------------------------------------------------
    # Alignment helpers
    # ------------------------------------------------------------------

    @staticmethod
    def tail_align(*series: Sequence[float]) -> Tuple[np.ndarray, ...]:
        """
        Trim every series to the shortest length, keeping the newest
        values so element i refers to the same bar in each output.
        """
        arrays = [_as_array(s) for s in series]
        n = min(len(a) for a in arrays)
        return tuple(a[len(a) - n:] for a in arrays)

    @staticmethod
    def head_align(*series: Sequence[float]) -> Tuple[np.ndarray, ...]:
        """
        Trim every series to the shortest length, keeping the OLDEST
        values. Some published formulas pair series this way.
        """
        arrays = [_as_array(s) for s in series]
        n = min(len(a) for a in arrays)
        return tuple(a[:n] for a in arrays)

    @staticmethod
    def latest(data: Sequence[float], default: float = 0.0) -> float:
        """Newest element, default when empty"""
        x = _as_array(data)
        if len(x) == 0:
            return default
        return float(x[-1])
