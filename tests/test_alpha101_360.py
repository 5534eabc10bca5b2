"""
Alpha101 and Alpha360 calculator tests.

Run: pytest tests/test_alpha101_360.py -v
"""

import logging
import math
import threading

import numpy as np
import pytest

from alphaquant.alpha_engine.alpha101 import Alpha101Calculator, is_supported
from alphaquant.alpha_engine.alpha360 import Alpha360Calculator
from alphaquant.alpha_engine.config import ALPHA101_UNSUPPORTED, Alpha101Config, Alpha360Config
from alphaquant.alpha_engine.exceptions import ComputationCancelled, InvalidInputError
from alphaquant.alpha_engine.factor_order import alpha101_name, alpha101_order, alpha360_order
from alphaquant.alpha_engine.schemas import Alpha101Inputs, AlphaType, BarSeries


# ============================================================================
# TEST ALPHA101
# ============================================================================

class TestAlpha101Calculator:
    """Shape, minimum data, unsupported and failure policies"""

    def test_shape_and_order(self, long_bars):
        result = Alpha101Calculator().calculate(long_bars)
        assert result.factor_count == 101
        assert result.factor_names == alpha101_order()

    def test_unsupported_are_nan(self, long_bars):
        """Industry-neutralized alphas are NaN, never a number"""
        result = Alpha101Calculator().calculate(long_bars)
        for n in ALPHA101_UNSUPPORTED:
            assert not is_supported(n)
            assert math.isnan(result.get_factor(alpha101_name(n)))

    def test_no_infinite_values(self, long_bars):
        values = Alpha101Calculator().calculate(long_bars).to_array()
        assert not np.isinf(values).any()

    def test_alpha101_formula(self, long_bars):
        """(close - open) / ((high - low) + 0.001)"""
        result = Alpha101Calculator().calculate(long_bars)
        last = long_bars[-1]
        expected = (last.close - last.open) / (last.high - last.low + 0.001)
        assert result.get_factor('alpha101') == pytest.approx(expected)

    def test_simple_formulas(self, long_bars):
        """alpha012 and alpha041 from the latest bars"""
        result = Alpha101Calculator().calculate(long_bars)
        last, prev = long_bars[-1], long_bars[-2]

        alpha012 = np.sign(last.volume - prev.volume) * -(last.close - prev.close)
        assert result.get_factor('alpha012') == pytest.approx(alpha012)

        typical = (last.high + last.low + last.close) / 3.0
        alpha041 = math.sqrt(last.high * last.low) - typical
        assert result.get_factor('alpha041') == pytest.approx(alpha041)

    def test_below_minimum_raises(self, bar_factory):
        """Fewer than 60 bars is rejected"""
        with pytest.raises(InvalidInputError) as exc_info:
            Alpha101Calculator().calculate(bar_factory(59))
        assert exc_info.value.required == 60
        assert exc_info.value.actual == 59
        assert '60' in str(exc_info.value)

    def test_empty_history_raises(self):
        """Empty or missing history is rejected like a short one"""
        for bars in ([], None):
            with pytest.raises(InvalidInputError) as exc_info:
                Alpha101Calculator().calculate(bars)
            assert exc_info.value.required == 60
            assert exc_info.value.actual == 0

    def test_accuracy_caveat(self, medium_bars, caplog):
        """60-249 bars: full result plus a warning"""
        with caplog.at_level(logging.WARNING):
            result = Alpha101Calculator().calculate(medium_bars)
        assert result.factor_count == 101
        assert 'may not be accurate' in caplog.text

    def test_include_subset(self, long_bars):
        config = Alpha101Config.create([1, 48, 101])
        result = Alpha101Calculator(config).calculate(long_bars)
        assert result.factor_names == ['alpha001', 'alpha048', 'alpha101']
        assert math.isnan(result.get_factor('alpha048'))

    def test_failure_isolation(self, long_bars, monkeypatch, caplog):
        """A raising formula becomes 0.0 and the rest are unaffected"""
        baseline = Alpha101Calculator().calculate(long_bars)

        calculator = Alpha101Calculator()
        original = calculator.calculate_alpha

        def flaky(alpha_number, inputs):
            if alpha_number == 1:
                raise RuntimeError("boom")
            return original(alpha_number, inputs)

        monkeypatch.setattr(calculator, 'calculate_alpha', flaky)

        with caplog.at_level(logging.WARNING):
            result = calculator.calculate(long_bars)

        assert result.get_factor('alpha001') == 0.0
        assert 'alpha001' in caplog.text
        np.testing.assert_array_equal(result.to_array()[1:], baseline.to_array()[1:])

    def test_calculate_alpha_out_of_range(self, long_bars):
        inputs = Alpha101Inputs.from_series(BarSeries.from_bars(long_bars))
        calculator = Alpha101Calculator()
        assert math.isnan(calculator.calculate_alpha(0, inputs))
        assert math.isnan(calculator.calculate_alpha(102, inputs))
        assert math.isnan(calculator.calculate_alpha(48, inputs))

    def test_deterministic(self, long_bars):
        calculator = Alpha101Calculator()
        np.testing.assert_array_equal(
            calculator.calculate(long_bars).to_array(),
            calculator.calculate(long_bars).to_array()
        )

    def test_batch(self, bar_factory):
        """Samples from bar 60 onward"""
        dataset = Alpha101Calculator().calculate_batch(bar_factory(62))
        assert dataset.alpha_type == AlphaType.ALPHA101
        assert dataset.size() == 3
        assert dataset.dimension == 101

    def test_batch_cancellation(self, bar_factory):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ComputationCancelled):
            Alpha101Calculator().calculate_batch(bar_factory(80), cancel_event=cancel)


# ============================================================================
# TEST ALPHA360
# ============================================================================

class TestAlpha360Calculator:
    """Normalized raw history"""

    def test_shape_and_order(self, medium_bars):
        result = Alpha360Calculator().calculate(medium_bars)
        assert result.factor_count == 360
        assert result.factor_names == alpha360_order()

    def test_normalization(self, medium_bars):
        """Suffix lookback-1 reads the latest bar, suffix 0 the oldest"""
        result = Alpha360Calculator().calculate(medium_bars)
        last = medium_bars[-1]
        oldest = medium_bars[-60]

        assert result.get_factor('CLOSE59') == 1.0
        assert result.get_factor('CLOSE0') == pytest.approx(oldest.close / last.close)
        assert result.get_factor('OPEN0') == pytest.approx(oldest.open / last.close)
        assert result.get_factor('VOLUME59') == pytest.approx(1.0)
        assert result.get_factor('VOLUME0') == pytest.approx(oldest.volume / last.volume)

    def test_insufficient_history_returns_none(self, bar_factory):
        assert Alpha360Calculator().calculate(bar_factory(59)) is None

    def test_exactly_lookback(self, bar_factory):
        result = Alpha360Calculator().calculate(bar_factory(60))
        assert result.factor_count == 360

    def test_price_only(self, medium_bars):
        result = Alpha360Calculator(Alpha360Config.create_price_only()).calculate(medium_bars)
        assert result.factor_count == 300
        assert result.factor_names[-1] == 'VWAP0'

    def test_batch(self, bar_factory):
        dataset = Alpha360Calculator().calculate_batch(bar_factory(65))
        assert dataset.size() == 6
        assert dataset.alpha_type == AlphaType.ALPHA360
