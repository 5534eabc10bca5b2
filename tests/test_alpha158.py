"""
Alpha158 tests: K-bar, price/volume ratios, rolling operators and the
calculator.

Run: pytest tests/test_alpha158.py -v
"""

import math

import numpy as np
import pytest

from alphaquant.alpha_engine.alpha158 import Alpha158Calculator
from alphaquant.alpha_engine.config import KBAR_FACTORS, Alpha158Config
from alphaquant.alpha_engine.factor_order import alpha158_order
from alphaquant.alpha_engine.kbar import KBarFeatures
from alphaquant.alpha_engine.price_volume import PriceFeatures, VolumeFeatures
from alphaquant.alpha_engine.rolling import RollingStatistics
from alphaquant.alpha_engine.schemas import AlphaType


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def linear_rolling():
    """close = 1..10, high/low one point away, flat volume"""
    close = np.arange(1, 11, dtype=float)
    return RollingStatistics(close, close + 1, close - 1, np.full(10, 100.0))


# ============================================================================
# TEST K-BAR
# ============================================================================

class TestKBarFeatures:
    """Latest candle shape ratios"""

    def test_values(self):
        """open 10, high 12, low 9, close 11"""
        k = KBarFeatures.compute(10.0, 12.0, 9.0, 11.0)
        assert list(k) == list(KBAR_FACTORS)
        assert k['KMID'] == pytest.approx(0.1)
        assert k['KLEN'] == pytest.approx(0.3)
        assert k['KMID2'] == pytest.approx(1 / 3)
        assert k['KUP'] == pytest.approx(0.1)
        assert k['KLOW'] == pytest.approx(0.1)
        assert k['KSFT'] == pytest.approx(0.1)
        assert k['KSFT2'] == pytest.approx(1 / 3)

    def test_zero_open_guard(self):
        """Open-normalized ratios fall back to 0.0"""
        k = KBarFeatures.compute(0.0, 2.0, 0.0, 1.0)
        assert k['KMID'] == 0.0
        assert k['KLEN'] == 0.0
        assert k['KMID2'] == pytest.approx(0.5)

    def test_flat_candle(self):
        """Zero range does not divide by zero"""
        k = KBarFeatures.compute(5.0, 5.0, 5.0, 5.0)
        assert all(math.isfinite(v) for v in k.values())


# ============================================================================
# TEST PRICE / VOLUME
# ============================================================================

class TestPriceVolume:

    def test_price_ratio(self):
        close = np.array([10.0, 11.0, 12.0])
        price = PriceFeatures({'OPEN': np.array([9.0, 10.0, 6.0])}, close)
        assert price.compute(['OPEN'], [0, 2]) == {'OPEN0': 0.5, 'OPEN2': 0.75}

    def test_missing_lag_is_zero(self):
        price = PriceFeatures({'OPEN': np.array([1.0, 2.0])}, np.array([1.0, 2.0]))
        assert price.value('OPEN', 5) == 0.0

    def test_volume_ratio(self):
        volume = VolumeFeatures(np.array([50.0, 100.0]))
        assert volume.value(1) == pytest.approx(0.5)
        assert volume.value(0) == pytest.approx(1.0)


# ============================================================================
# TEST ROLLING STATISTICS
# ============================================================================

class TestRollingStatistics:
    """Exact operator semantics on a linear series"""

    def test_price_level(self, linear_rolling):
        r = linear_rolling
        assert r.compute('MA', 5) == pytest.approx(0.8)
        assert r.compute('ROC', 5) == pytest.approx((10 / 6 - 1) / 10)
        assert r.compute('BETA', 5) == pytest.approx(1.0)
        assert r.compute('RSQR', 5) == pytest.approx(1.0)
        assert r.compute('RESI', 5) == pytest.approx(0.0, abs=1e-12)
        assert r.compute('MAX', 5) == pytest.approx(1.1)
        assert r.compute('MIN', 5) == pytest.approx(0.5)

    def test_quantiles(self, linear_rolling):
        assert linear_rolling.compute('QTLU', 5) == pytest.approx(0.9)
        assert linear_rolling.compute('QTLD', 5) == pytest.approx(0.6)

    def test_rank_and_position(self, linear_rolling):
        r = linear_rolling
        assert r.compute('RANK', 5) == pytest.approx(0.8)
        assert r.compute('RSV', 5) == pytest.approx(5 / 6)
        assert r.compute('IMAX', 5) == pytest.approx(0.8)
        assert r.compute('IMIN', 5) == pytest.approx(0.0)
        assert r.compute('IMXD', 5) == pytest.approx(0.8)

    def test_counts_and_sums(self, linear_rolling):
        r = linear_rolling
        assert r.compute('CNTP', 5) == pytest.approx(1.0)
        assert r.compute('CNTN', 5) == pytest.approx(0.0)
        assert r.compute('CNTD', 5) == pytest.approx(1.0)
        assert r.compute('SUMP', 5) == pytest.approx(0.5)
        assert r.compute('SUMN', 5) == pytest.approx(0.0)
        assert r.compute('SUMD', 5) == pytest.approx(0.5)

    def test_volume_operators(self, linear_rolling):
        r = linear_rolling
        assert r.compute('VMA', 5) == pytest.approx(1.0)
        assert r.compute('VSTD', 5) == pytest.approx(0.0)
        assert r.compute('VSUMP', 5) == pytest.approx(5.0)
        assert r.compute('VSUMN', 5) == pytest.approx(0.0)
        assert r.compute('VSUMD', 5) == pytest.approx(5.0)

    def test_flat_series_rsqr_is_zero(self):
        flat = RollingStatistics(np.ones(10), np.ones(10), np.ones(10), np.ones(10))
        assert flat.compute('RSQR', 5) == 0.0
        assert flat.compute('CORR', 5) == 0.0

    def test_short_history_is_nan(self, linear_rolling):
        """Window beyond history, and differenced operators needing w + 1 bars"""
        assert math.isnan(linear_rolling.compute('MA', 20))
        assert math.isnan(linear_rolling.compute('CNTP', 10))
        assert not math.isnan(linear_rolling.compute('MA', 10))

    def test_unknown_operator(self, linear_rolling):
        with pytest.raises(ValueError):
            linear_rolling.compute('FOO', 5)

    def test_compute_all_order(self, linear_rolling):
        factors = linear_rolling.compute_all([5, 10], operators=('ROC', 'MA'))
        assert list(factors) == ['ROC5', 'ROC10', 'MA5', 'MA10']

    def test_empty_history_rejected(self):
        with pytest.raises(ValueError):
            RollingStatistics([], [], [], [])


# ============================================================================
# TEST CALCULATOR
# ============================================================================

class TestAlpha158Calculator:
    """Driver output shape, order and exclusion policy"""

    def test_shape_and_order(self, long_bars):
        calculator = Alpha158Calculator()
        result = calculator.calculate(long_bars)
        assert result.factor_count == 159
        assert result.factor_names == alpha158_order()
        assert result.symbol == 'AAPL'
        assert result.timestamp == long_bars[-1].timestamp

    @pytest.mark.parametrize('config', [
        Alpha158Config.create_default(),
        Alpha158Config.create_extended(),
        Alpha158Config.create_lite(),
        Alpha158Config(rolling_windows=(20, 5), price_windows=(10, 0)),
    ])
    def test_registry_matches_result(self, long_bars, config):
        """Registry length, expected count and result size agree"""
        result = Alpha158Calculator(config).calculate(long_bars)
        order = alpha158_order(config)
        assert len(order) == config.expected_factor_count() == result.factor_count
        assert result.factor_names == order

    def test_excluded_operators_are_nan(self, long_bars):
        """Only the excluded columns differ between default and full"""
        default = Alpha158Calculator().calculate(long_bars)
        full = Alpha158Calculator(Alpha158Config.create_full()).calculate(long_bars)

        assert default.factor_names == full.factor_names
        assert math.isnan(default.get_factor('RANK5'))
        assert math.isfinite(full.get_factor('RANK5'))
        assert default.get_factor('MA20') == full.get_factor('MA20')

    def test_price_block(self, long_bars):
        result = Alpha158Calculator().calculate(long_bars)
        last = long_bars[-1]
        assert result.get_factor('OPEN0') == pytest.approx(last.open / last.close)
        assert result.get_factor('VWAP0') == pytest.approx(last.vwap / last.close)
        assert result.get_factor('VOLUME0') == pytest.approx(1.0)

    def test_extended_history_prices(self, long_bars):
        config = Alpha158Config.create_extended()
        result = Alpha158Calculator(config).calculate(long_bars)
        assert result.factor_count == 179
        assert result.factor_names[-1] == 'VWAP60'
        expected = long_bars[-6].open / long_bars[-1].close
        assert result.get_factor('OPEN5') == pytest.approx(expected)

    def test_short_history_keeps_shape(self, bar_factory):
        """Long windows turn NaN instead of shrinking the vector"""
        result = Alpha158Calculator().calculate(bar_factory(20))
        assert result.factor_count == 159
        assert math.isnan(result.get_factor('MA30'))
        assert math.isfinite(result.get_factor('MA20'))

    def test_deterministic(self, long_bars):
        calculator = Alpha158Calculator()
        a = calculator.calculate(long_bars).to_array()
        b = calculator.calculate(long_bars).to_array()
        np.testing.assert_array_equal(a, b)

    def test_empty_returns_none(self):
        assert Alpha158Calculator().calculate([]) is None

    def test_incremental_matches_full(self, long_bars):
        calculator = Alpha158Calculator()
        incremental = calculator.calculate_incremental(long_bars[:-1], long_bars[-1])
        full = calculator.calculate(long_bars)
        np.testing.assert_array_equal(incremental.to_array(), full.to_array())

    def test_batch(self, medium_bars):
        """One sample per bar from bar 70 onward"""
        dataset = Alpha158Calculator().calculate_batch(medium_bars)
        assert dataset.alpha_type == AlphaType.ALPHA158
        assert dataset.size() == 100 - 70 + 1
        assert dataset.dimension == 159
        assert dataset.timestamps()[0] == medium_bars[69].timestamp
        assert dataset.timestamps()[-1] == medium_bars[-1].timestamp

    def test_batch_sample_matches_single(self, medium_bars):
        """A batch row equals a single call on the same prefix"""
        calculator = Alpha158Calculator()
        dataset = calculator.calculate_batch(medium_bars)
        single = calculator.calculate(medium_bars[:80])
        np.testing.assert_array_equal(dataset.to_array()[80 - 70], single.to_array())

    def test_batch_too_short(self, bar_factory):
        assert Alpha158Calculator().calculate_batch(bar_factory(50)).is_empty()
