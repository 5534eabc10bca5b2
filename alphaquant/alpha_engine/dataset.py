"""
Alpha Dataset

Ordered collection of feature vectors that share one factor order.
Every insertion is checked against that order, which is the gate that
keeps misaligned rows out of training data.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union
import logging

import numpy as np
import pandas as pd

from alphaquant.alpha_engine.config import Alpha101Config, Alpha158Config, Alpha360Config
from alphaquant.alpha_engine.exceptions import FamilyMismatchError
from alphaquant.alpha_engine.factor_order import (
    alpha101_order,
    alpha158_order,
    alpha360_order,
)
from alphaquant.alpha_engine.nan_handling import NaNHandlingStrategy
from alphaquant.alpha_engine.schemas import AlphaFeatureVector, AlphaType

LOG = logging.getLogger(__name__)


class AlphaDataset:
    """
    Rows = samples, columns = factors in the expected order.

    Args:
        alpha_type: Family every vector must carry
        expected_factor_order: Column order every vector must match
    """

    def __init__(self, alpha_type: Union[str, AlphaType], expected_factor_order: Sequence[str]):
        self.alpha_type = AlphaType.parse(alpha_type)
        self._expected_order = tuple(expected_factor_order)
        self._features: List[AlphaFeatureVector] = []

    @classmethod
    def for_alpha101(cls, config: Optional[Alpha101Config] = None) -> 'AlphaDataset':
        return cls(AlphaType.ALPHA101, alpha101_order(config))

    @classmethod
    def for_alpha158(cls, config: Optional[Alpha158Config] = None) -> 'AlphaDataset':
        return cls(AlphaType.ALPHA158, alpha158_order(config))

    @classmethod
    def for_alpha360(cls, config: Optional[Alpha360Config] = None) -> 'AlphaDataset':
        return cls(AlphaType.ALPHA360, alpha360_order(config))

    def _empty_like(self) -> 'AlphaDataset':
        return AlphaDataset(self.alpha_type, self._expected_order)

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def add_feature(self, feature: AlphaFeatureVector):
        """
        Append one vector.

        Raises:
            FamilyMismatchError: vector family differs from the dataset
            OrderMismatchError: factor names differ from the expected order
        """
        if feature.alpha_type != self.alpha_type:
            raise FamilyMismatchError(
                f"Alpha type mismatch: expected {self.alpha_type.name}, "
                f"actual {feature.alpha_type.name}"
            )
        feature.validate_order_strict(self._expected_order)
        self._features.append(feature)

    def add_features(self, features: Iterable[AlphaFeatureVector]):
        for feature in features:
            self.add_feature(feature)

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def features(self) -> List[AlphaFeatureVector]:
        return list(self._features)

    @property
    def expected_factor_order(self) -> List[str]:
        return list(self._expected_order)

    @property
    def dimension(self) -> int:
        return len(self._expected_order)

    def size(self) -> int:
        return len(self._features)

    def __len__(self) -> int:
        return len(self._features)

    def is_empty(self) -> bool:
        return not self._features

    # ------------------------------------------------------------------
    # Dense views
    # ------------------------------------------------------------------

    def to_array(self) -> np.ndarray:
        """(samples, dimension) float64 matrix in factor order"""
        if not self._features:
            return np.empty((0, self.dimension), dtype=float)
        return np.vstack([f.to_array() for f in self._features])

    def to_float_array(self) -> np.ndarray:
        return self.to_array().astype(np.float32)

    def to_flat_array(self) -> np.ndarray:
        return self.to_array().ravel()

    def symbols(self) -> List[Optional[str]]:
        return [f.symbol for f in self._features]

    def timestamps(self) -> List[Optional[int]]:
        return [f.timestamp for f in self._features]

    def to_dataframe(self) -> pd.DataFrame:
        """symbol, timestamp, then one column per factor"""
        df = pd.DataFrame(self.to_array(), columns=list(self._expected_order))
        df.insert(0, 'timestamp', self.timestamps())
        df.insert(0, 'symbol', self.symbols())
        return df

    # ------------------------------------------------------------------
    # Invalid values
    # ------------------------------------------------------------------

    def has_invalid_values(self) -> bool:
        return any(f.has_invalid_values() for f in self._features)

    def samples_with_invalid_values(self) -> List[int]:
        return [i for i, f in enumerate(self._features) if f.has_invalid_values()]

    def invalid_values_statistics(self) -> str:
        bad_samples = 0
        bad_values = 0
        for feature in self._features:
            indices = feature.invalid_value_indices()
            if indices:
                bad_samples += 1
                bad_values += len(indices)

        total_values = len(self._features) * self.dimension
        return (
            f"Samples with NaN: {bad_samples} / {len(self._features)} "
            f"({bad_samples * 100.0 / max(len(self._features), 1):.2f}%), "
            f"Total NaN values: {bad_values} / {total_values} "
            f"({bad_values * 100.0 / max(total_values, 1):.2f}%)"
        )

    def fill_invalid_values(self, fill_value: float = 0.0) -> 'AlphaDataset':
        dataset = self._empty_like()
        dataset.add_features(f.fill_invalid_values(fill_value) for f in self._features)
        return dataset

    def handle_nan(self, strategy: NaNHandlingStrategy, initial_value: float = 0.0) -> 'AlphaDataset':
        """New dataset with the strategy applied to every vector"""
        dataset = self._empty_like()
        dataset.add_features(strategy.apply(f, initial_value) for f in self._features)
        return dataset

    def normalize(self) -> 'AlphaDataset':
        dataset = self._empty_like()
        dataset.add_features(f.normalize() for f in self._features)
        return dataset

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_csv(self, include_header: bool = True) -> str:
        """
        CSV text: optional `symbol,timestamp,<names>` header, one row per
        sample, raw numeric values, no quoting.
        """
        lines = []
        if include_header:
            lines.append(','.join(['symbol', 'timestamp'] + list(self._expected_order)))
        lines.extend(f.to_csv(include_header=False) for f in self._features)
        return ''.join(line + '\n' for line in lines)

    def write_csv(self, path: Union[str, Path], include_header: bool = True) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_csv(include_header))
        LOG.info(f"✓ Wrote {len(self)} samples x {self.dimension} factors to {path}")
        return path

    def summary(self) -> str:
        lines = [
            "=== Alpha Dataset Info ===",
            f"Type: {self.alpha_type.name}",
            f"Size: {self.size()} samples",
            f"Dimension: {self.dimension} features",
            f"Has Invalid Values: {self.has_invalid_values()}",
        ]
        if self._features:
            lines.append(f"First Feature: {self._features[0]!r}")
            lines.append(f"Last Feature: {self._features[-1]!r}")
        lines.append("Factor Order (first 10):")
        for i, name in enumerate(self._expected_order[:10], start=1):
            lines.append(f"  {i:3d}. {name}")
        if self.dimension > 10:
            lines.append("  ...")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (f"AlphaDataset(type={self.alpha_type.name}, size={self.size()}, "
                f"dimension={self.dimension}, hasInvalidValues={self.has_invalid_values()})")
