"""
Alpha101 Calculator

WorldQuant 101 Formulaic Alphas evaluated on a single instrument.

Rules:
    - Fewer than 60 bars is rejected with InvalidInputError
    - Fewer than 250 bars computes everything but logs an accuracy
      warning (long-lookback alphas such as #19 degrade to 0.0)
    - Unsupported alphas (industry neutralization) are NaN, never 0.0
    - A formula that raises is logged and set to 0.0; the others continue
    - Infinite results are set to 0.0, NaN results are kept
"""

import math
from typing import List, Optional, Sequence
import logging

import numpy as np

from alphaquant.alpha_engine import (
    alpha101_group1,
    alpha101_group2,
    alpha101_group3,
    alpha101_group4,
    alpha101_group5,
)
from alphaquant.alpha_engine.base import AlphaCalculator
from alphaquant.alpha_engine.config import ALPHA101_COUNT, ALPHA101_UNSUPPORTED, Alpha101Config
from alphaquant.alpha_engine.exceptions import InvalidInputError
from alphaquant.alpha_engine.factor_order import alpha101_name, alpha101_order
from alphaquant.alpha_engine.schemas import Alpha101Inputs, AlphaFactorResult, AlphaType, Bar, BarSeries

LOG = logging.getLogger(__name__)

ALPHA101_MIN_BARS = 60
ALPHA101_ACCURATE_BARS = 250

# Group k holds alphas 20k+1 .. 20k+20, the last group also takes #101
_GROUPS = (
    alpha101_group1.FORMULAS,
    alpha101_group2.FORMULAS,
    alpha101_group3.FORMULAS,
    alpha101_group4.FORMULAS,
    alpha101_group5.FORMULAS,
)


def _group_for(alpha_number: int) -> dict:
    return _GROUPS[min((alpha_number - 1) // 20, len(_GROUPS) - 1)]


def is_supported(alpha_number: int) -> bool:
    return 1 <= alpha_number <= ALPHA101_COUNT and alpha_number not in ALPHA101_UNSUPPORTED


class Alpha101Calculator(AlphaCalculator):
    """
    Single-instrument WorldQuant 101.

    Args:
        config: Alpha selection and ADV window
    """

    alpha_type = AlphaType.ALPHA101
    batch_start = ALPHA101_MIN_BARS

    def __init__(self, config: Optional[Alpha101Config] = None):
        self.config = config or Alpha101Config()
        self._enabled = [
            i for i in range(1, ALPHA101_COUNT + 1) if self.config.use_alpha(i)
        ]

    def factor_order(self) -> List[str]:
        return alpha101_order(self.config)

    @staticmethod
    def _too_short(n: int) -> InvalidInputError:
        return InvalidInputError(
            f"Alpha101 needs at least {ALPHA101_MIN_BARS} bars, got {n}",
            required=ALPHA101_MIN_BARS,
            actual=n,
        )

    def calculate(self, bars: Optional[Sequence[Bar]]) -> Optional[AlphaFactorResult]:
        """Factors for the latest bar; empty history is rejected like a short one"""
        if not bars:
            raise self._too_short(0)
        return super().calculate(bars)

    def calculate_series(self, series: BarSeries) -> Optional[AlphaFactorResult]:
        n = len(series)
        if n < ALPHA101_MIN_BARS:
            raise self._too_short(n)
        if n < ALPHA101_ACCURATE_BARS:
            LOG.warning(f"Alpha101: {n} bars < {ALPHA101_ACCURATE_BARS}, "
                        f"long-lookback alphas (e.g. #19) may not be accurate")
        return self._compute(series)

    def _on_batch_start(self, series: BarSeries):
        LOG.warning(f"Alpha101 batch {series.symbol}: samples with fewer than "
                    f"{ALPHA101_ACCURATE_BARS} bars may not be accurate")

    def _calculate_sample(self, window: BarSeries) -> Optional[AlphaFactorResult]:
        # batch_start guarantees the minimum, the caveat was logged once
        return self._compute(window)

    def calculate_alpha(self, alpha_number: int, inputs: Alpha101Inputs) -> float:
        """
        Value of one alpha, before failure isolation.

        Returns:
            NaN for unsupported alphas, otherwise the raw formula value
        """
        if not 1 <= alpha_number <= ALPHA101_COUNT:
            LOG.warning(f"Alpha#{alpha_number} is out of range [1, {ALPHA101_COUNT}]")
            return math.nan

        formula = _group_for(alpha_number).get(alpha_number)
        if formula is None:
            return math.nan
        return float(formula(inputs))

    def _compute(self, series: BarSeries) -> AlphaFactorResult:
        inputs = Alpha101Inputs.from_series(series, self.config.adv20_window)
        result = AlphaFactorResult(symbol=series.symbol, timestamp=series.timestamp)
        unsupported = []

        with np.errstate(all='ignore'):
            for alpha_number in self._enabled:
                name = alpha101_name(alpha_number)

                if not is_supported(alpha_number):
                    unsupported.append(alpha_number)
                    result.add_factor(name, math.nan)
                    continue

                try:
                    value = self.calculate_alpha(alpha_number, inputs)
                except Exception as e:
                    LOG.warning(f"Failed to calculate {name}: {e}")
                    value = 0.0

                if math.isinf(value):
                    value = 0.0
                result.add_factor(name, value)

        if unsupported:
            LOG.debug(f"Alpha101 {series.symbol}: {len(unsupported)} unsupported alphas "
                      f"reported as NaN: {unsupported}")

        LOG.debug(f"✓ Alpha101 {series.symbol} @ {series.timestamp}: {result.factor_count} factors")
        return result
