"""
Alpha158 Calculator

Combines the K-bar, price, volume and rolling sub-calculators into one
ordered result per sample.

Rules:
    - Output order is exactly alpha158_order(config)
    - All rolling operators are computed; operators the config turns
      off are overwritten with NaN so the vector shape never changes
    - Non-zero price windows are emitted after the rolling block
"""

import math
from typing import List, Optional
import logging

from alphaquant.alpha_engine.base import AlphaCalculator
from alphaquant.alpha_engine.config import Alpha158Config
from alphaquant.alpha_engine.factor_order import alpha158_excluded_names, alpha158_order
from alphaquant.alpha_engine.kbar import KBarFeatures
from alphaquant.alpha_engine.price_volume import PriceFeatures, VolumeFeatures
from alphaquant.alpha_engine.rolling import RollingStatistics
from alphaquant.alpha_engine.schemas import AlphaFactorResult, AlphaType, BarSeries

LOG = logging.getLogger(__name__)

# Largest default window (60) plus a warm-up buffer
ALPHA158_MIN_BATCH_BARS = 70


class Alpha158Calculator(AlphaCalculator):
    """
    Qlib-compatible Alpha158 factors.

    Args:
        config: Layout and operator selection (default 159 factors)
    """

    alpha_type = AlphaType.ALPHA158
    batch_start = ALPHA158_MIN_BATCH_BARS

    def __init__(self, config: Optional[Alpha158Config] = None):
        self.config = config or Alpha158Config()
        self._excluded = alpha158_excluded_names(self.config)

    def factor_order(self) -> List[str]:
        return alpha158_order(self.config)

    def calculate_series(self, series: BarSeries) -> Optional[AlphaFactorResult]:
        if len(series) == 0:
            LOG.warning("Alpha158: empty bar history")
            return None

        config = self.config
        result = AlphaFactorResult(symbol=series.symbol, timestamp=series.timestamp)

        # 1. K-bar shape of the latest candle
        if config.enable_kbar:
            result.add_factors(KBarFeatures.compute(
                series.open[-1], series.high[-1], series.low[-1], series.close[-1]
            ))

        # 2. Price ratios at window 0
        price = None
        if config.enable_price:
            price = PriceFeatures(
                {
                    'OPEN': series.open,
                    'HIGH': series.high,
                    'LOW': series.low,
                    'VWAP': series.bar_vwap,
                },
                series.close,
            )
            result.add_factors(price.compute(config.price_features, config.current_price_windows))

        # 3. Volume ratios
        if config.enable_volume:
            result.add_factors(VolumeFeatures(series.volume).compute(config.volume_windows))

        # 4. Rolling statistics, NaN-padded where switched off
        if config.enable_rolling:
            rolling = RollingStatistics(series.close, series.high, series.low, series.volume)
            factors = rolling.compute_all(config.rolling_windows)
            for name in self._excluded:
                factors[name] = math.nan
            result.add_factors(factors)

        # 5. Historical price ratios
        if price is not None and config.history_price_windows:
            result.add_factors(price.compute(config.price_features, config.history_price_windows))

        LOG.debug(f"✓ Alpha158 {series.symbol} @ {series.timestamp}: {result.factor_count} factors")
        return result
