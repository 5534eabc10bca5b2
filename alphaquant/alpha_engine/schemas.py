"""
Alpha Engine Schemas

Input bars and the ordered output containers.

Data flow:
    bars -> BarSeries -> AlphaFactorResult -> AlphaFeatureVector -> AlphaDataset
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Union
import logging

import numpy as np

from alphaquant.alpha_engine.exceptions import OrderMismatchError
from alphaquant.alpha_engine.primitives import AlphaOperators

LOG = logging.getLogger(__name__)

EPSILON = 1e-12


# ============================================================================
# INPUT
# ============================================================================

@dataclass(frozen=True)
class Bar:
    """
    Single OHLCV bar.

    timestamp is Unix seconds. amount (traded notional) is optional and
    only used to derive VWAP.
    """

    symbol: str
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    amount: float = 0.0
    turnover: float = 0.0

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3.0

    @property
    def vwap(self) -> float:
        """amount / volume when both are known, typical price otherwise"""
        if self.volume == 0 or self.amount == 0:
            return self.typical_price
        return self.amount / self.volume

    def to_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'timestamp': self.timestamp,
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
            'volume': self.volume,
            'amount': self.amount,
            'turnover': self.turnover,
        }


@dataclass
class BarSeries:
    """
    Base series derived once per calculation.

    vwap here is the typical price (high+low+close)/3, the proxy used by
    the 101 formulas. bar_vwap follows Bar.vwap.
    """

    symbol: str
    timestamps: np.ndarray
    close: np.ndarray
    open: np.ndarray
    high: np.ndarray
    low: np.ndarray
    volume: np.ndarray
    vwap: np.ndarray
    bar_vwap: np.ndarray

    @classmethod
    def from_bars(cls, bars: Sequence[Bar]) -> 'BarSeries':
        if not bars:
            raise ValueError("Cannot build BarSeries from empty bar list")

        close = np.array([b.close for b in bars], dtype=float)
        high = np.array([b.high for b in bars], dtype=float)
        low = np.array([b.low for b in bars], dtype=float)

        return cls(
            symbol=bars[-1].symbol,
            timestamps=np.array([b.timestamp for b in bars], dtype=np.int64),
            close=close,
            open=np.array([b.open for b in bars], dtype=float),
            high=high,
            low=low,
            volume=np.array([b.volume for b in bars], dtype=float),
            vwap=(high + low + close) / 3.0,
            bar_vwap=np.array([b.vwap for b in bars], dtype=float),
        )

    def __len__(self) -> int:
        return len(self.close)

    @property
    def timestamp(self) -> int:
        """Timestamp of the latest bar"""
        return int(self.timestamps[-1])

    @property
    def returns(self) -> np.ndarray:
        """(c[i+1] - c[i]) / c[i], length n-1"""
        with np.errstate(divide='ignore', invalid='ignore'):
            return (self.close[1:] - self.close[:-1]) / self.close[:-1]

    def head(self, end: int) -> 'BarSeries':
        """First `end` bars as views, for sliding batch computation"""
        if end <= 0 or end > len(self):
            raise ValueError(f"head({end}) out of range for {len(self)} bars")
        return BarSeries(
            symbol=self.symbol,
            timestamps=self.timestamps[:end],
            close=self.close[:end],
            open=self.open[:end],
            high=self.high[:end],
            low=self.low[:end],
            volume=self.volume[:end],
            vwap=self.vwap[:end],
            bar_vwap=self.bar_vwap[:end],
        )

    def adv(self, window: int) -> np.ndarray:
        """Average daily volume over window"""
        return AlphaOperators.sma(self.volume, window)


@dataclass(frozen=True)
class Alpha101Inputs:
    """Base series shared by every 101 formula, built once per sample"""

    close: np.ndarray
    open: np.ndarray
    high: np.ndarray
    low: np.ndarray
    volume: np.ndarray
    vwap: np.ndarray
    returns: np.ndarray
    adv20: np.ndarray

    @classmethod
    def from_series(cls, series: BarSeries, adv_window: int = 20) -> 'Alpha101Inputs':
        return cls(
            close=series.close,
            open=series.open,
            high=series.high,
            low=series.low,
            volume=series.volume,
            vwap=series.vwap,
            returns=series.returns,
            adv20=series.adv(adv_window),
        )


# ============================================================================
# FAMILY TAG
# ============================================================================

class AlphaType(str, Enum):
    """Factor family carried by every vector and dataset"""

    ALPHA101 = 'alpha101'
    ALPHA158 = 'alpha158'
    ALPHA360 = 'alpha360'
    CUSTOM = 'custom'

    @classmethod
    def parse(cls, value: Union[str, 'AlphaType']) -> 'AlphaType':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown alpha family: {value}") from None


# ============================================================================
# RESULT
# ============================================================================

@dataclass
class AlphaFactorResult:
    """
    Ordered factor values for one (symbol, timestamp) sample.

    factors maps name -> value, factor_order keeps the insertion order.
    Re-adding a name overwrites its value and keeps its original slot.
    """

    symbol: Optional[str] = None
    timestamp: Optional[int] = None
    factors: Dict[str, float] = field(default_factory=dict)
    factor_order: List[str] = field(default_factory=list)

    def add_factor(self, name: str, value: float):
        if name not in self.factors:
            self.factor_order.append(name)
        self.factors[name] = float(value)

    def add_factors(self, new_factors: Mapping[str, float]):
        """Add in the mapping's iteration order"""
        for name, value in new_factors.items():
            self.add_factor(name, value)

    def add_factors_in_order(self, names: Sequence[str], values: Sequence[float]):
        if len(names) != len(values):
            raise ValueError(
                f"Factor names ({len(names)}) and values ({len(values)}) differ in length"
            )
        for name, value in zip(names, values):
            self.add_factor(name, value)

    def get_factor(self, name: str) -> Optional[float]:
        return self.factors.get(name)

    @property
    def factor_count(self) -> int:
        return len(self.factors)

    @property
    def factor_names(self) -> List[str]:
        return list(self.factor_order)

    def to_array(self) -> np.ndarray:
        """Values in factor order, 0.0 for any name missing from the map"""
        return np.array(
            [self.factors.get(name, 0.0) for name in self.factor_order],
            dtype=float
        )

    def to_float_array(self) -> np.ndarray:
        return self.to_array().astype(np.float32)

    def to_feature_map(self) -> Dict[str, float]:
        return {name: self.factors.get(name, 0.0) for name in self.factor_order}

    def validate_order(self, expected_order: Sequence[str]) -> bool:
        return list(self.factor_order) == list(expected_order)

    def to_feature_vector(self, alpha_type: Union[str, AlphaType]) -> 'AlphaFeatureVector':
        return AlphaFeatureVector.from_result(self, AlphaType.parse(alpha_type))

    def __str__(self) -> str:
        preview = ', '.join(
            f"{name}={self.factors[name]}" for name in self.factor_order[:5]
        )
        more = self.factor_count - 5
        if more > 0:
            preview += f", ... ({more} more)"
        return (f"AlphaFactorResult(symbol='{self.symbol}', timestamp={self.timestamp}, "
                f"factorCount={self.factor_count}, factors=[{preview}])")


# ============================================================================
# FEATURE VECTOR
# ============================================================================

def _invalid_mask(values: np.ndarray) -> np.ndarray:
    return ~np.isfinite(values)


def _format_value(value: float) -> str:
    if np.isnan(value):
        return 'NaN'
    return repr(float(value))


class AlphaFeatureVector:
    """
    Immutable (names, values) pair fed to ML models.

    Both inputs are copied on construction and every accessor returns a
    fresh copy, so callers can never corrupt the stored vector.
    """

    def __init__(
        self,
        symbol: Optional[str],
        timestamp: Optional[int],
        factor_names: Sequence[str],
        values: Union[Sequence[float], np.ndarray],
        alpha_type: Union[str, AlphaType] = AlphaType.CUSTOM
    ):
        if factor_names is None or values is None:
            raise ValueError("Factor names and values must not be None")

        values_arr = np.array(values, dtype=float).ravel()
        if len(factor_names) != len(values_arr):
            raise ValueError(
                f"Factor name count ({len(factor_names)}) does not match "
                f"value count ({len(values_arr)})"
            )

        self._symbol = symbol
        self._timestamp = timestamp
        self._factor_names = tuple(factor_names)
        self._values = values_arr
        self._values.flags.writeable = False
        self._alpha_type = AlphaType.parse(alpha_type)

    @classmethod
    def from_result(cls, result: AlphaFactorResult, alpha_type: AlphaType) -> 'AlphaFeatureVector':
        return cls(
            result.symbol,
            result.timestamp,
            result.factor_names,
            result.to_array(),
            alpha_type,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def symbol(self) -> Optional[str]:
        return self._symbol

    @property
    def timestamp(self) -> Optional[int]:
        return self._timestamp

    @property
    def alpha_type(self) -> AlphaType:
        return self._alpha_type

    @property
    def factor_names(self) -> List[str]:
        return list(self._factor_names)

    @property
    def values(self) -> np.ndarray:
        return self._values.copy()

    @property
    def dimension(self) -> int:
        return len(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def to_array(self) -> np.ndarray:
        return self._values.copy()

    def to_float_array(self) -> np.ndarray:
        return self._values.astype(np.float32)

    def to_list(self) -> List[float]:
        return self._values.tolist()

    def get_value(self, key: Union[int, str]) -> float:
        """Value by position or by factor name"""
        if isinstance(key, str):
            try:
                index = self._factor_names.index(key)
            except ValueError:
                raise KeyError(f"Unknown factor: {key}") from None
            return float(self._values[index])

        if key < 0 or key >= len(self._values):
            raise IndexError(f"Factor index {key} out of range [0, {len(self._values)})")
        return float(self._values[key])

    # ------------------------------------------------------------------
    # Order validation
    # ------------------------------------------------------------------

    def validate_order(self, expected_order: Sequence[str]) -> bool:
        return list(self._factor_names) == list(expected_order)

    def validate_order_strict(self, expected_order: Sequence[str]):
        """
        Raise OrderMismatchError naming the first differing position,
        or the length mismatch when one list is a prefix of the other.
        """

        expected = list(expected_order)
        actual = self._factor_names

        for i, (want, got) in enumerate(zip(expected, actual)):
            if want != got:
                raise OrderMismatchError(
                    f"Factor order mismatch at position {i}: expected '{want}', actual '{got}'",
                    index=i,
                    expected=want,
                    actual=got,
                )

        if len(expected) != len(actual):
            raise OrderMismatchError(
                f"Factor count mismatch: expected {len(expected)}, actual {len(actual)}"
            )

    # ------------------------------------------------------------------
    # Invalid value inspection
    # ------------------------------------------------------------------

    def has_invalid_values(self) -> bool:
        return bool(_invalid_mask(self._values).any())

    def invalid_value_indices(self) -> List[int]:
        return np.flatnonzero(_invalid_mask(self._values)).tolist()

    def invalid_values_detail(self) -> Dict[str, float]:
        return {
            self._factor_names[i]: float(self._values[i])
            for i in self.invalid_value_indices()
        }

    def invalid_values_statistics(self) -> str:
        total = len(self._values)
        nan_count = int(np.isnan(self._values).sum())
        inf_count = int(np.isinf(self._values).sum())
        denom = max(total, 1)
        return (f"NaN: {nan_count} ({nan_count * 100.0 / denom:.2f}%), "
                f"Infinity: {inf_count} ({inf_count * 100.0 / denom:.2f}%), "
                f"Total: {nan_count + inf_count} / {total}")

    # ------------------------------------------------------------------
    # Filling (each returns a new vector)
    # ------------------------------------------------------------------

    def _with_values(self, values: np.ndarray) -> 'AlphaFeatureVector':
        return AlphaFeatureVector(
            self._symbol, self._timestamp, self._factor_names, values, self._alpha_type
        )

    def fill_invalid_values(self, fill_value: float = 0.0) -> 'AlphaFeatureVector':
        values = self._values.copy()
        values[_invalid_mask(values)] = fill_value
        return self._with_values(values)

    def fill_forward(self, initial_value: float = 0.0) -> 'AlphaFeatureVector':
        """Carry the last valid value forward, seeded with initial_value"""
        values = self._values.copy()
        last_valid = initial_value
        for i, value in enumerate(values):
            if np.isfinite(value):
                last_valid = value
            else:
                values[i] = last_valid
        return self._with_values(values)

    def fill_backward(self, initial_value: float = 0.0) -> 'AlphaFeatureVector':
        """Carry the next valid value backward, seeded with initial_value"""
        values = self._values.copy()
        last_valid = initial_value
        for i in range(len(values) - 1, -1, -1):
            if np.isfinite(values[i]):
                last_valid = values[i]
            else:
                values[i] = last_valid
        return self._with_values(values)

    def fill_mean(self) -> 'AlphaFeatureVector':
        """Mean of the valid values, 0.0 when there are none"""
        valid = self._values[np.isfinite(self._values)]
        mean = float(valid.mean()) if len(valid) else 0.0
        return self.fill_invalid_values(mean)

    def fill_median(self) -> 'AlphaFeatureVector':
        valid = self._values[np.isfinite(self._values)]
        median = float(np.median(valid)) if len(valid) else 0.0
        return self.fill_invalid_values(median)

    def normalize(self) -> 'AlphaFeatureVector':
        """Z-score across the vector, all zeros when std <= EPSILON"""
        if len(self._values) == 0:
            return self._with_values(self._values.copy())
        mean = self._values.mean()
        std = np.sqrt(((self._values - mean) ** 2).mean())
        if std > EPSILON:
            return self._with_values((self._values - mean) / std)
        return self._with_values(np.zeros(len(self._values)))

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_csv(self, include_header: bool = False) -> str:
        """symbol,timestamp,<values...>, optionally preceded by a header line"""
        row = ','.join(
            [str(self._symbol), str(self._timestamp)]
            + [_format_value(v) for v in self._values]
        )
        if include_header:
            header = ','.join(['symbol', 'timestamp'] + list(self._factor_names))
            return f"{header}\n{row}"
        return row

    def to_dict(self) -> dict:
        """Serialize to dictionary"""
        return {
            'symbol': self._symbol,
            'timestamp': self._timestamp,
            'alpha_type': self._alpha_type.value,
            'factor_names': list(self._factor_names),
            'values': self._values.tolist(),
        }

    def __repr__(self) -> str:
        first = float(self._values[0]) if len(self._values) else 0.0
        last = float(self._values[-1]) if len(self._values) else 0.0
        return (f"AlphaFeatureVector(symbol='{self._symbol}', timestamp={self._timestamp}, "
                f"type={self._alpha_type.name}, dimension={self.dimension}, "
                f"firstValue={first:.6f}, lastValue={last:.6f}, "
                f"hasInvalidValues={self.has_invalid_values()})")
