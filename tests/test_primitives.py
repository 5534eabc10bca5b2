"""
Operator library tests.

Run: pytest tests/test_primitives.py -v
"""

import math

import numpy as np
import pytest

from alphaquant.alpha_engine.primitives import AlphaOperators as AO


# ============================================================================
# TIME-SERIES OPERATORS
# ============================================================================

class TestTimeSeriesOperators:
    """Windowed operators and their empty-on-shortfall contract"""

    def test_ts_sum(self):
        """Trailing sums line up with the window end"""
        np.testing.assert_array_equal(AO.ts_sum([1, 2, 3, 4, 5], 3), [6, 9, 12])

    def test_delta_and_delay(self):
        """delta differences, delay drops the newest d values"""
        np.testing.assert_array_equal(AO.delta([10, 12, 15], 1), [2, 3])
        np.testing.assert_array_equal(AO.delay([10, 12, 15], 1), [10, 12])

    def test_decay_linear(self):
        """Newest sample carries the largest weight"""
        result = AO.decay_linear([1, 2, 3], 3)
        assert len(result) == 1
        assert result[0] == pytest.approx(14 / 6)

    def test_insufficient_window_is_empty(self):
        """Shortfall yields an empty series, never an exception"""
        assert len(AO.ts_sum([1, 2], 3)) == 0
        assert len(AO.delta([1], 1)) == 0
        assert len(AO.delay([], 1)) == 0
        assert len(AO.decay_linear([1, 2], 5)) == 0
        assert len(AO.stddev([1.0], 2)) == 0

    def test_sma_and_product(self):
        """Moving average and trailing product"""
        np.testing.assert_allclose(AO.sma([2, 4, 6], 2), [3, 5])
        np.testing.assert_allclose(AO.product([1, 2, 3, 4], 2), [2, 6, 12])

    def test_ts_min_max(self):
        """Rolling extremes"""
        np.testing.assert_array_equal(AO.ts_min([3, 1, 2, 5], 2), [1, 1, 2])
        np.testing.assert_array_equal(AO.ts_max([3, 1, 2, 5], 2), [3, 2, 5])

    def test_ts_argmax_first_occurrence(self):
        """Ties resolve to the oldest position"""
        np.testing.assert_array_equal(AO.ts_argmax([1, 3, 2, 3], 3), [1, 0])
        np.testing.assert_array_equal(AO.ts_argmin([2, 1, 1, 3], 3), [1, 0])

    def test_ts_rank(self):
        """Share of the window strictly below the last value"""
        np.testing.assert_allclose(AO.ts_rank([1, 2, 3], 3), [1.0])
        np.testing.assert_allclose(AO.ts_rank([3, 2, 1], 3), [0.0])

    def test_stddev_population(self):
        """Divides by w, not w - 1"""
        result = AO.stddev([1, 2, 3, 4], 4)
        assert result[0] == pytest.approx(math.sqrt(1.25))


# ============================================================================
# STATISTICAL OPERATORS
# ============================================================================

class TestStatisticalOperators:
    """Correlation and covariance"""

    def test_correlation_perfect(self):
        """y = 2x gives +1 in every window"""
        x = np.arange(10, dtype=float)
        np.testing.assert_allclose(AO.correlation(x, 2 * x, 5), np.ones(6))

    def test_correlation_unequal_lengths(self):
        """Unequal inputs give an empty series"""
        assert len(AO.correlation([1, 2, 3, 4], [1, 2, 3], 2)) == 0
        assert len(AO.covariance([1, 2, 3, 4], [1, 2, 3], 2)) == 0

    def test_correlation_constant_series(self):
        """Zero variance maps to 0, not NaN"""
        result = AO.correlation([1, 1, 1, 1], [1, 2, 3, 4], 3)
        np.testing.assert_array_equal(result, [0.0, 0.0])

    def test_covariance_population(self):
        """Population covariance of a series with itself is its variance"""
        result = AO.covariance([1, 2, 3], [1, 2, 3], 3)
        assert result[0] == pytest.approx(2 / 3)


# ============================================================================
# RANK / SCALE
# ============================================================================

class TestRankAndScale:
    """Single-series rank semantics and scaling"""

    def test_rank_values(self):
        """count(x < x_i) / (n - 1)"""
        np.testing.assert_allclose(AO.rank([3, 1, 2]), [1.0, 0.0, 0.5])

    def test_rank_single_value_is_nan(self):
        """One element gives 0/0"""
        assert math.isnan(AO.rank([5.0])[0])

    def test_rank_nan_entries(self):
        """NaN ranks as 0 and is not counted below others"""
        np.testing.assert_allclose(AO.rank([1.0, np.nan, 3.0]), [0.0, 0.0, 0.5])

    def test_rank_empty(self):
        assert len(AO.rank([])) == 0

    def test_scale(self):
        """Scaled to unit absolute sum"""
        np.testing.assert_allclose(AO.scale([1, -1, 2]), [0.25, -0.25, 0.5])
        np.testing.assert_array_equal(AO.scale([0, 0]), [0.0, 0.0])


# ============================================================================
# ELEMENT-WISE / HELPERS
# ============================================================================

class TestElementWise:
    """Element-wise operators and alignment helpers"""

    def test_signedpower(self):
        np.testing.assert_allclose(AO.signedpower([-2.0, 3.0], 2), [-4.0, 9.0])
        assert AO.signed_power_value(-2.0, 3) == pytest.approx(-8.0)

    def test_sign_deadband(self):
        """Values inside +-EPSILON have sign 0"""
        np.testing.assert_array_equal(AO.sign([2.0, -3.0, 1e-15]), [1.0, -1.0, 0.0])
        assert AO.sign_value(1e-13) == 0.0
        assert AO.sign_value(-0.5) == -1.0

    def test_log_guards_non_positive(self):
        """Non-positive inputs give 0"""
        np.testing.assert_allclose(AO.log([0.0, -1.0, math.e]), [0.0, 0.0, 1.0])

    def test_tail_and_head_align(self):
        """Tail keeps the newest values, head keeps the oldest"""
        a, b = AO.tail_align([1, 2, 3], [5, 6])
        np.testing.assert_array_equal(a, [2, 3])
        np.testing.assert_array_equal(b, [5, 6])

        a, b = AO.head_align([1, 2, 3], [5, 6])
        np.testing.assert_array_equal(a, [1, 2])

    def test_latest(self):
        assert AO.latest([1.0, 2.0]) == 2.0
        assert AO.latest([], default=-1.0) == -1.0
