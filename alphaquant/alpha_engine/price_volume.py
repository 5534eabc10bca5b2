"""
Alpha158 Price & Volume Ratios

Lagged price fields over the latest close, lagged volume over the latest
volume.

    PRICE{w}  = field[t-w] / close[t]
    VOLUME{w} = volume[t-w] / (volume[t] + EPSILON)

A lag with no bar behind it yields 0.0.
"""

from typing import Dict, Iterable, Mapping
import logging

import numpy as np

LOG = logging.getLogger(__name__)

EPSILON = 1e-12


class PriceFeatures:
    """
    Lagged price ratios.

    Args:
        fields: Mapping of field name (OPEN, HIGH, LOW, VWAP, CLOSE) to its
            series, oldest first
        close: Close series used for normalization
    """

    def __init__(self, fields: Mapping[str, np.ndarray], close: np.ndarray):
        self.fields = {name.upper(): np.asarray(series, dtype=float) for name, series in fields.items()}
        self.close = np.asarray(close, dtype=float)

    def compute(self, features: Iterable[str], windows: Iterable[int]) -> Dict[str, float]:
        """Field outer, window inner"""
        windows = list(windows)
        factors = {}
        for feature in features:
            for window in windows:
                factors[f"{feature}{window}"] = self.value(feature, window)
        return factors

    def value(self, feature: str, window: int) -> float:
        n = len(self.close)
        if n < window + 1:
            return 0.0

        series = self.fields.get(feature.upper())
        if series is None:
            LOG.warning(f"Unknown price feature: {feature}")
            return 0.0

        current_close = self.close[-1]
        if current_close == 0:
            return 0.0
        return float(series[n - 1 - window] / current_close)


class VolumeFeatures:
    """Lagged volume ratios"""

    def __init__(self, volume: np.ndarray):
        self.volume = np.asarray(volume, dtype=float)

    def compute(self, windows: Iterable[int]) -> Dict[str, float]:
        return {f"VOLUME{w}": self.value(w) for w in windows}

    def value(self, window: int) -> float:
        n = len(self.volume)
        if n < window + 1:
            return 0.0
        return float(self.volume[n - 1 - window] / (self.volume[-1] + EPSILON))
