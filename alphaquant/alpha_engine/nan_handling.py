"""
NaN Handling Strategies

How NaN/Infinity entries of a feature vector are treated before the
vector reaches a model. Exactly one strategy applies per call and every
strategy works on a copy.
"""

from enum import Enum
import logging

from alphaquant.alpha_engine.exceptions import InvalidValuesError
from alphaquant.alpha_engine.schemas import AlphaFeatureVector

LOG = logging.getLogger(__name__)


class NaNHandlingStrategy(Enum):
    """
    Strategies:
        KEEP_NAN: leave as is (for models with native NaN support)
        FILL_ZERO: replace with 0.0
        FILL_MEAN: mean of the valid values (0.0 if none)
        FILL_MEDIAN: median of the valid values (0.0 if none)
        FILL_FORWARD: previous valid value, seeded with initial_value
        FILL_BACKWARD: next valid value, seeded with initial_value
        THROW_EXCEPTION: raise InvalidValuesError
    """

    KEEP_NAN = "Keep NaN"
    FILL_ZERO = "Fill with 0.0"
    FILL_MEAN = "Fill with mean"
    FILL_MEDIAN = "Fill with median"
    FILL_FORWARD = "Forward fill"
    FILL_BACKWARD = "Backward fill"
    THROW_EXCEPTION = "Raise on invalid values"

    @property
    def description(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> 'NaNHandlingStrategy':
        """Look up by member name, case-insensitive"""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown NaN strategy '{name}', expected one of {[s.name for s in cls]}"
            ) from None

    def apply(self, feature: AlphaFeatureVector, initial_value: float = 0.0) -> AlphaFeatureVector:
        """
        Apply the strategy to a feature vector.

        Args:
            feature: Source vector (never modified)
            initial_value: Seed for forward/backward fill

        Returns:
            The same vector when it holds no invalid values, otherwise a
            new filled vector

        Raises:
            InvalidValuesError: THROW_EXCEPTION and the vector is invalid
        """
        if not feature.has_invalid_values():
            return feature

        if self is NaNHandlingStrategy.KEEP_NAN:
            return feature
        if self is NaNHandlingStrategy.FILL_ZERO:
            return feature.fill_invalid_values(0.0)
        if self is NaNHandlingStrategy.FILL_MEAN:
            return feature.fill_mean()
        if self is NaNHandlingStrategy.FILL_MEDIAN:
            return feature.fill_median()
        if self is NaNHandlingStrategy.FILL_FORWARD:
            return feature.fill_forward(initial_value)
        if self is NaNHandlingStrategy.FILL_BACKWARD:
            return feature.fill_backward(initial_value)

        statistics = feature.invalid_values_statistics()
        LOG.error(f"Invalid values in {feature.symbol} @ {feature.timestamp}: {statistics}")
        raise InvalidValuesError(
            feature.symbol,
            feature.timestamp,
            statistics,
            feature.invalid_values_detail(),
        )
