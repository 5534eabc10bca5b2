"""
Alpha158 K-Bar Features

Nine shape ratios of the latest candle.

Features:
    - KMID, KMID2: body
    - KLEN: full range
    - KUP, KUP2: upper shadow
    - KLOW, KLOW2: lower shadow
    - KSFT, KSFT2: close position inside the range

Plain variants divide by the open (0.0 when open == 0), the "2"
variants divide by the range plus EPSILON.
"""

from typing import Dict
import logging

from alphaquant.alpha_engine.config import KBAR_FACTORS

LOG = logging.getLogger(__name__)

EPSILON = 1e-12


class KBarFeatures:
    """K-bar shape ratios for a single OHLC candle"""

    @staticmethod
    def compute(open_: float, high: float, low: float, close: float) -> Dict[str, float]:
        """
        Args:
            open_, high, low, close: Latest candle

        Returns:
            Ordered mapping KMID .. KSFT2
        """
        body_top = max(open_, close)
        body_bottom = min(open_, close)
        span = high - low + EPSILON

        def over_open(numerator: float) -> float:
            if open_ == 0:
                return 0.0
            return numerator / open_

        values = (
            over_open(close - open_),
            over_open(high - low),
            (close - open_) / span,
            over_open(high - body_top),
            (high - body_top) / span,
            over_open(body_bottom - low),
            (body_bottom - low) / span,
            over_open(2 * close - high - low),
            (2 * close - high - low) / span,
        )
        return dict(zip(KBAR_FACTORS, values))
