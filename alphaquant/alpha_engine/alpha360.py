"""
Alpha360 Calculator

Raw price and volume history, normalized by the latest bar.

Layout (default 60 x 6 = 360):
    CLOSE59 .. CLOSE0, OPEN59 .. OPEN0, HIGH.., LOW.., VWAP.., VOLUME59 .. VOLUME0

Suffix k reads bar index n - lookback + k, so suffix lookback-1 is the
latest bar and suffix 0 the oldest bar of the window. Existing models
were trained on this layout; keep it.

    price  = field[i] / close[t]
    volume = volume[i] / (volume[t] + EPSILON)
"""

from typing import List, Optional
import logging

from alphaquant.alpha_engine.base import AlphaCalculator
from alphaquant.alpha_engine.config import Alpha360Config
from alphaquant.alpha_engine.factor_order import alpha360_order
from alphaquant.alpha_engine.schemas import AlphaFactorResult, AlphaType, BarSeries

LOG = logging.getLogger(__name__)

EPSILON = 1e-12


class Alpha360Calculator(AlphaCalculator):
    """
    Qlib-compatible Alpha360 factors.

    Fewer bars than the lookback returns no result.
    """

    alpha_type = AlphaType.ALPHA360

    def __init__(self, config: Optional[Alpha360Config] = None):
        self.config = config or Alpha360Config()

    @property
    def batch_start(self) -> int:
        return self.config.lookback_days

    def factor_order(self) -> List[str]:
        return alpha360_order(self.config)

    def calculate_series(self, series: BarSeries) -> Optional[AlphaFactorResult]:
        lookback = self.config.lookback_days
        n = len(series)

        if n == 0:
            LOG.warning("Alpha360: empty bar history")
            return None
        if n < lookback:
            LOG.warning(f"Alpha360: need at least {lookback} bars, got {n}")
            return None

        fields = {
            'CLOSE': series.close,
            'OPEN': series.open,
            'HIGH': series.high,
            'LOW': series.low,
            'VWAP': series.bar_vwap,
        }
        current_close = series.close[-1]
        current_volume = series.volume[-1]

        result = AlphaFactorResult(symbol=series.symbol, timestamp=series.timestamp)

        for field in self.config.active_fields():
            for day in range(lookback - 1, -1, -1):
                index = n - lookback + day
                if field == 'VOLUME':
                    value = series.volume[index] / (current_volume + EPSILON)
                elif current_close == 0:
                    value = 0.0
                else:
                    value = fields[field][index] / current_close
                result.add_factor(f"{field}{day}", value)

        LOG.debug(f"✓ Alpha360 {series.symbol} @ {series.timestamp}: {result.factor_count} factors")
        return result
