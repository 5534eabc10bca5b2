"""
Result, feature vector, NaN handling, dataset and input validation tests.

Run: pytest tests/test_vectors_dataset.py -v
"""

import math

import numpy as np
import pandas as pd
import pytest

from alphaquant.alpha_engine.dataset import AlphaDataset
from alphaquant.alpha_engine.exceptions import (
    FamilyMismatchError,
    InvalidValuesError,
    OrderMismatchError,
)
from alphaquant.alpha_engine.nan_handling import NaNHandlingStrategy
from alphaquant.alpha_engine.schemas import (
    AlphaFactorResult,
    AlphaFeatureVector,
    AlphaType,
    Bar,
)
from alphaquant.alpha_engine.validation import (
    BarInputValidator,
    bars_from_dataframe,
    bars_to_dataframe,
)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def gappy_vector():
    """[1.0, NaN, 3.0]"""
    return AlphaFeatureVector('AAPL', 100, ['a', 'b', 'c'], [1.0, np.nan, 3.0], AlphaType.CUSTOM)


@pytest.fixture
def custom_dataset():
    return AlphaDataset(AlphaType.CUSTOM, ['a', 'b', 'c'])


# ============================================================================
# TEST RESULT
# ============================================================================

class TestAlphaFactorResult:
    """Append-only ordered map"""

    def test_overwrite_keeps_slot(self):
        result = AlphaFactorResult('AAPL', 1)
        result.add_factor('x', 1.0)
        result.add_factor('y', 2.0)
        result.add_factor('x', 3.0)
        assert result.factor_names == ['x', 'y']
        np.testing.assert_array_equal(result.to_array(), [3.0, 2.0])

    def test_add_factors_preserves_order(self):
        result = AlphaFactorResult()
        result.add_factors({'b': 1.0, 'a': 2.0})
        assert result.factor_names == ['b', 'a']

    def test_add_in_order_length_mismatch(self):
        with pytest.raises(ValueError):
            AlphaFactorResult().add_factors_in_order(['a', 'b'], [1.0])

    def test_factor_names_is_copy(self):
        result = AlphaFactorResult()
        result.add_factor('a', 1.0)
        result.factor_names.append('zzz')
        assert result.factor_count == 1

    def test_to_feature_map(self):
        result = AlphaFactorResult('AAPL', 5)
        result.add_factors_in_order(['b', 'a'], [1.0, math.nan])
        feature_map = result.to_feature_map()
        assert list(feature_map) == ['b', 'a']
        assert math.isnan(feature_map['a'])

    def test_to_feature_vector(self):
        result = AlphaFactorResult('AAPL', 5)
        result.add_factors_in_order(['a', 'b'], [1.0, 2.0])
        vector = result.to_feature_vector('alpha158')
        assert vector.alpha_type == AlphaType.ALPHA158
        assert vector.factor_names == ['a', 'b']
        assert result.validate_order(['a', 'b'])


# ============================================================================
# TEST FEATURE VECTOR
# ============================================================================

class TestAlphaFeatureVector:
    """Immutability, lookup, order checks, fills and export"""

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            AlphaFeatureVector('A', 1, ['a', 'b'], [1.0])

    def test_defensive_copies(self):
        names = ['a', 'b']
        values = np.array([1.0, 2.0])
        vector = AlphaFeatureVector('A', 1, names, values)

        names.append('c')
        values[0] = 99.0
        vector.values[1] = 42.0
        vector.factor_names.append('d')

        assert vector.factor_names == ['a', 'b']
        np.testing.assert_array_equal(vector.to_array(), [1.0, 2.0])

    def test_get_value(self):
        vector = AlphaFeatureVector('A', 1, ['a', 'b'], [1.0, 2.0])
        assert vector.get_value(1) == 2.0
        assert vector.get_value('a') == 1.0
        with pytest.raises(IndexError):
            vector.get_value(2)
        with pytest.raises(KeyError):
            vector.get_value('zzz')

    def test_validate_order_strict_position(self):
        vector = AlphaFeatureVector('A', 1, ['a', 'x', 'c'], [1.0, 2.0, 3.0])
        with pytest.raises(OrderMismatchError) as exc_info:
            vector.validate_order_strict(['a', 'b', 'c'])
        assert exc_info.value.index == 1
        assert exc_info.value.expected == 'b'
        assert exc_info.value.actual == 'x'

    def test_validate_order_strict_length(self):
        vector = AlphaFeatureVector('A', 1, ['a', 'b'], [1.0, 2.0])
        with pytest.raises(OrderMismatchError) as exc_info:
            vector.validate_order_strict(['a', 'b', 'c'])
        assert exc_info.value.index is None
        vector.validate_order_strict(['a', 'b'])

    def test_invalid_inspection(self):
        vector = AlphaFeatureVector('A', 1, ['a', 'b', 'c'], [np.nan, 1.0, np.inf])
        assert vector.has_invalid_values()
        assert vector.invalid_value_indices() == [0, 2]
        assert list(vector.invalid_values_detail()) == ['a', 'c']
        assert 'NaN: 1' in vector.invalid_values_statistics()
        assert 'Infinity: 1' in vector.invalid_values_statistics()

    def test_fills(self, gappy_vector):
        """[1, NaN, 3] under each fill"""
        np.testing.assert_array_equal(gappy_vector.fill_mean().values, [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(gappy_vector.fill_invalid_values().values, [1.0, 0.0, 3.0])
        np.testing.assert_array_equal(gappy_vector.fill_forward(0.0).values, [1.0, 1.0, 3.0])
        np.testing.assert_array_equal(gappy_vector.fill_backward(0.0).values, [1.0, 3.0, 3.0])
        np.testing.assert_array_equal(gappy_vector.fill_median().values, [1.0, 2.0, 3.0])
        assert math.isnan(gappy_vector.get_value(1))

    def test_fill_seeds(self):
        vector = AlphaFeatureVector('A', 1, ['a', 'b'], [np.nan, np.nan])
        np.testing.assert_array_equal(vector.fill_forward(7.0).values, [7.0, 7.0])
        np.testing.assert_array_equal(vector.fill_mean().values, [0.0, 0.0])

    def test_normalize(self):
        vector = AlphaFeatureVector('A', 1, ['a', 'b', 'c'], [1.0, 2.0, 3.0])
        std = math.sqrt(2 / 3)
        np.testing.assert_allclose(vector.normalize().values, [-1 / std, 0.0, 1 / std])

        flat = AlphaFeatureVector('A', 1, ['a', 'b'], [5.0, 5.0])
        np.testing.assert_array_equal(flat.normalize().values, [0.0, 0.0])

    def test_to_csv(self, gappy_vector):
        assert gappy_vector.to_csv() == 'AAPL,100,1.0,NaN,3.0'
        assert gappy_vector.to_csv(include_header=True) == (
            'symbol,timestamp,a,b,c\nAAPL,100,1.0,NaN,3.0'
        )

    def test_float_array(self, gappy_vector):
        assert gappy_vector.to_float_array().dtype == np.float32
        assert gappy_vector.dimension == 3


# ============================================================================
# TEST NaN STRATEGIES
# ============================================================================

class TestNaNHandlingStrategy:

    def test_apply(self, gappy_vector):
        assert NaNHandlingStrategy.FILL_ZERO.apply(gappy_vector).to_list() == [1.0, 0.0, 3.0]
        assert NaNHandlingStrategy.FILL_MEAN.apply(gappy_vector).to_list() == [1.0, 2.0, 3.0]
        kept = NaNHandlingStrategy.KEEP_NAN.apply(gappy_vector)
        assert kept.has_invalid_values()

    def test_throw(self, gappy_vector):
        with pytest.raises(InvalidValuesError) as exc_info:
            NaNHandlingStrategy.THROW_EXCEPTION.apply(gappy_vector)
        assert exc_info.value.symbol == 'AAPL'
        assert exc_info.value.timestamp == 100
        assert 'b' in exc_info.value.detail

    def test_clean_vector_unchanged(self):
        vector = AlphaFeatureVector('A', 1, ['a'], [1.0])
        assert NaNHandlingStrategy.THROW_EXCEPTION.apply(vector) is vector

    def test_parse(self):
        assert NaNHandlingStrategy.parse('fill_zero') is NaNHandlingStrategy.FILL_ZERO
        assert NaNHandlingStrategy.FILL_ZERO.description == 'Fill with 0.0'
        with pytest.raises(ValueError):
            NaNHandlingStrategy.parse('nope')


# ============================================================================
# TEST DATASET
# ============================================================================

class TestAlphaDataset:
    """Order enforcement, dense views and CSV"""

    def test_family_mismatch(self, custom_dataset):
        vector = AlphaFeatureVector('A', 1, ['a', 'b', 'c'], [1, 2, 3], AlphaType.ALPHA158)
        with pytest.raises(FamilyMismatchError):
            custom_dataset.add_feature(vector)

    def test_order_mismatch(self, custom_dataset):
        vector = AlphaFeatureVector('A', 1, ['a', 'c', 'b'], [1, 2, 3])
        with pytest.raises(OrderMismatchError):
            custom_dataset.add_feature(vector)
        assert custom_dataset.is_empty()

    def test_dense_views(self, custom_dataset, gappy_vector):
        custom_dataset.add_features([
            gappy_vector,
            AlphaFeatureVector('MSFT', 200, ['a', 'b', 'c'], [4.0, 5.0, 6.0]),
        ])
        assert custom_dataset.size() == len(custom_dataset) == 2
        assert custom_dataset.to_array().shape == (2, 3)
        assert custom_dataset.to_flat_array().shape == (6,)
        assert custom_dataset.to_float_array().dtype == np.float32
        assert custom_dataset.symbols() == ['AAPL', 'MSFT']
        assert custom_dataset.timestamps() == [100, 200]
        assert custom_dataset.samples_with_invalid_values() == [0]

    def test_empty_array_shape(self, custom_dataset):
        assert custom_dataset.to_array().shape == (0, 3)

    def test_csv(self, custom_dataset, gappy_vector):
        custom_dataset.add_feature(gappy_vector)
        assert custom_dataset.to_csv() == 'symbol,timestamp,a,b,c\nAAPL,100,1.0,NaN,3.0\n'
        assert custom_dataset.to_csv(include_header=False) == 'AAPL,100,1.0,NaN,3.0\n'

    def test_write_csv(self, custom_dataset, gappy_vector, tmp_path):
        custom_dataset.add_feature(gappy_vector)
        path = custom_dataset.write_csv(tmp_path / 'out' / 'alpha.csv')
        assert path.read_text().startswith('symbol,timestamp,a,b,c')

    def test_dataframe(self, custom_dataset, gappy_vector):
        custom_dataset.add_feature(gappy_vector)
        df = custom_dataset.to_dataframe()
        assert list(df.columns) == ['symbol', 'timestamp', 'a', 'b', 'c']
        assert df.loc[0, 'c'] == 3.0

    def test_handle_nan_returns_new_dataset(self, custom_dataset, gappy_vector):
        custom_dataset.add_feature(gappy_vector)
        filled = custom_dataset.handle_nan(NaNHandlingStrategy.FILL_ZERO)
        assert not filled.has_invalid_values()
        assert custom_dataset.has_invalid_values()
        assert 'Samples with NaN: 1 / 1' in custom_dataset.invalid_values_statistics()

    def test_family_factories(self):
        assert AlphaDataset.for_alpha101().dimension == 101
        assert AlphaDataset.for_alpha158().dimension == 159
        assert AlphaDataset.for_alpha360().dimension == 360

    def test_summary(self, custom_dataset):
        assert 'Type: CUSTOM' in custom_dataset.summary()


# ============================================================================
# TEST INPUT VALIDATION
# ============================================================================

class TestInputValidation:
    """Bars are checked, never repaired"""

    def test_valid(self, medium_bars):
        is_valid, bars, errors = BarInputValidator().validate_bars(medium_bars, family='alpha101')
        assert is_valid
        assert len(bars) == 100
        assert errors == []

    def test_empty(self):
        is_valid, _, errors = BarInputValidator().validate_bars([])
        assert not is_valid
        assert 'empty' in errors[0]

    def test_family_minimum(self, bar_factory):
        validator = BarInputValidator()
        assert not validator.validate_bars(bar_factory(59), family=AlphaType.ALPHA101)[0]
        assert not validator.validate_bars(bar_factory(69), family=AlphaType.ALPHA158)[0]
        assert validator.validate_bars(bar_factory(60), family=AlphaType.ALPHA360)[0]

    def test_sufficient_history(self, bar_factory):
        validator = BarInputValidator()
        assert validator.check_sufficient_history(bar_factory(20), 20)
        assert not validator.check_sufficient_history(bar_factory(19), 20)
        assert not validator.check_sufficient_history([], 1)

    def test_mixed_symbols(self, bar_factory):
        bars = bar_factory(5) + bar_factory(5, symbol='MSFT', start=1_800_000_000)
        is_valid, _, errors = BarInputValidator().validate_bars(bars)
        assert not is_valid
        assert 'Multiple symbols' in errors[0]

    def test_non_ascending(self, bar_factory):
        bars = bar_factory(5)
        bars = bars[:2] + [bars[1]] + bars[3:]
        assert not BarInputValidator().validate_bars(bars)[0]

    def test_bad_values(self):
        bad_close = [Bar('A', 1, 1.0, 1.0, 1.0, float('nan'), 1.0)]
        negative_volume = [Bar('A', 1, 1.0, 1.0, 1.0, 1.0, -5.0)]
        assert not BarInputValidator().validate_bars(bad_close)[0]
        assert not BarInputValidator().validate_bars(negative_volume)[0]

    def test_bar_vwap(self):
        assert Bar('A', 1, 1.0, 12.0, 6.0, 9.0, 100.0, amount=1000.0).vwap == 10.0
        assert Bar('A', 1, 1.0, 12.0, 6.0, 9.0, 100.0).vwap == 9.0

    def test_dataframe_roundtrip(self, bar_factory):
        bars = bar_factory(3)
        df = bars_to_dataframe(bars)
        assert bars_from_dataframe(df) == bars

    def test_dataframe_datetime_timestamps(self):
        df = pd.DataFrame({
            'timestamp': pd.to_datetime(['2024-01-01', '2024-01-02']),
            'open': [1.0, 2.0], 'high': [1.0, 2.0], 'low': [1.0, 2.0],
            'close': [1.0, 2.0], 'volume': [10.0, 20.0],
        })
        bars = bars_from_dataframe(df, symbol='SPY')
        assert bars[0].timestamp == 1704067200
        assert bars[1].timestamp - bars[0].timestamp == 86400
        assert bars[0].symbol == 'SPY'

    def test_dataframe_missing_columns(self):
        with pytest.raises(ValueError):
            bars_from_dataframe(pd.DataFrame({'timestamp': [1], 'symbol': ['A']}))
        with pytest.raises(ValueError):
            bars_from_dataframe(pd.DataFrame({
                'timestamp': [1], 'open': [1.0], 'high': [1.0],
                'low': [1.0], 'close': [1.0], 'volume': [1.0],
            }))
