"""
Alpha101 formula regression tests.

Small fixed series with hand-computed values pin the alignment and
length rules that trained models depend on.

Run: pytest tests/test_alpha101_formulas.py -v
"""

import math

import numpy as np
import pytest

from alphaquant.alpha_engine.alpha101 import Alpha101Calculator
from alphaquant.alpha_engine.alpha101_group1 import alpha018
from alphaquant.alpha_engine.alpha101_group2 import alpha028, alpha034, alpha036
from alphaquant.alpha_engine.alpha101_group3 import alpha047, alpha052
from alphaquant.alpha_engine.primitives import AlphaOperators as AO
from alphaquant.alpha_engine.schemas import Alpha101Inputs, BarSeries


def make_inputs(close, open_=None, high=None, low=None, volume=None,
                vwap=None, returns=None, adv20=None):
    """Alpha101Inputs from plain lists, unspecified series are zeros"""
    close = np.asarray(close, dtype=float)
    n = len(close)

    def series(values, length=n):
        return np.zeros(length) if values is None else np.asarray(values, dtype=float)

    volume = series(volume)
    return Alpha101Inputs(
        close=close,
        open=series(open_),
        high=series(high),
        low=series(low),
        volume=volume,
        vwap=series(vwap),
        returns=series(returns, n - 1),
        adv20=AO.sma(volume, 20) if adv20 is None else np.asarray(adv20, dtype=float),
    )


# ============================================================================
# HEAD-ALIGNED FORMULAS
# ============================================================================

class TestHeadAlignedFormulas:
    """Series paired from their oldest elements keep that pairing"""

    def test_alpha018(self):
        """
        open = 0 makes the correlation term 0 and diff = close.

        stddev(|close|, 5) pairs from its oldest windows [0, 2], so
        combined = [0 + 1, 2 + 1.2] and the latest ranks 1.
        Newest-window pairing would give [2.94, 1.74] and rank 0.
        """
        close = [0, 0, 0, 0, 0, 5, 0, 0, 0, 1, 1.2]
        inputs = make_inputs(close)
        assert alpha018(inputs) == pytest.approx(-1.0)

    def test_alpha034(self):
        """
        stddev(returns, 2) = [0, 1, 1, 0, 0], stddev(returns, 5) = [0.8, 0.8].

        Oldest pairing gives ratios [0, 1.25], latest rank 1.
        delta(close, 1) is flat, latest rank 0. Result (1 - 1) + (1 - 0).
        """
        inputs = make_inputs(
            close=[1, 2, 3, 4, 5, 6, 7],
            returns=[0, 0, 2, 0, 0, 0],
        )
        assert alpha034(inputs) == pytest.approx(1.0)

    def test_alpha047(self):
        """
        rank(1 / close) pairs its OLDEST value with the newest volume/adv20.

        close[0] = 1 is the only cheap bar: rank1[0] = 1, volume/adv20 = 1.
        high - close ranks 1 at index 0, high[4] = 2, avg_high[0] = 2.2 / 5.
        Flat vwap makes the subtracted rank 0.
        """
        close = [1.0] + [2.0] * 19
        high = [3.0] + [2.0] * 19
        inputs = make_inputs(close, high=high, volume=[100.0] * 20, vwap=[5.0] * 20)
        assert alpha047(inputs) == pytest.approx(50.0 / 11.0)

    def test_alpha052(self):
        """
        sum(returns, 240) = [0, 1] pairs with the OLDEST sum(returns, 20) = [0, 0].

        Ranked spread ends at 1, delta(ts_min(low, 5), 5) ends at -5 and
        ts_rank(volume, 5) is 1, so the value is 5.
        """
        returns = [0.0] * 240 + [1.0]
        low = [10.0] * 10 + [5.0]
        inputs = make_inputs(
            close=np.ones(242),
            low=np.concatenate([np.zeros(231), low]),
            volume=np.concatenate([np.zeros(237), [1, 2, 3, 4, 5]]),
            returns=returns,
        )
        assert alpha052(inputs) == pytest.approx(5.0)


# ============================================================================
# LENGTH RULES
# ============================================================================

class TestLengthRules:
    """Unequal-length correlations produce 0.0, not a re-aligned value"""

    @pytest.fixture
    def inputs(self, long_bars):
        return Alpha101Inputs.from_series(BarSeries.from_bars(long_bars))

    def test_alpha028_adv_low_correlation(self, inputs):
        """adv20 is 19 values shorter than low"""
        assert len(AO.correlation(inputs.adv20, inputs.low, 5)) == 0
        assert alpha028(inputs) == 0.0

    def test_alpha036_lagged_volume_correlation(self, inputs):
        """delay(volume, 1) is one value shorter than close - open"""
        assert alpha036(inputs) == 0.0

    def test_calculator_reports_zero(self, long_bars):
        result = Alpha101Calculator().calculate(long_bars)
        assert result.get_factor('alpha028') == 0.0
        assert result.get_factor('alpha036') == 0.0

    def test_single_value_rank_is_nan(self, long_bars):
        """alpha039 ranks a one-element series, 0/0"""
        result = Alpha101Calculator().calculate(long_bars)
        assert math.isnan(result.get_factor('alpha039'))


# ============================================================================
# OPERATOR DETAILS
# ============================================================================

class TestOperatorDetails:
    """Exact values the formulas are built on"""

    def test_rank_ties(self):
        """Ties share the count of strictly smaller values"""
        np.testing.assert_allclose(AO.rank([3, 1, 2, 2]), [1.0, 0.0, 1 / 3, 1 / 3])

    def test_decay_linear_weights(self):
        """Weights 1, 2 over 3 on every window"""
        np.testing.assert_allclose(AO.decay_linear([1, 2, 3, 4], 2), [5 / 3, 8 / 3, 11 / 3])

    def test_ts_rank_window_one_is_nan(self):
        result = AO.ts_rank([1.0, 2.0, 3.0], 1)
        assert len(result) == 3
        assert np.isnan(result).all()

    def test_ts_rank_ties(self):
        """Equal values are not counted below the last"""
        np.testing.assert_allclose(AO.ts_rank([3, 1, 2, 2], 3), [0.5, 0.5])
