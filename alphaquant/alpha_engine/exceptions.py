"""
Alpha Engine Exceptions

Error taxonomy for factor computation and vector assembly.

Policies that are NOT exceptions:
    - Insufficient window: operator returns an empty series
    - Per-factor failure: logged with the alpha name, value becomes 0.0
    - Unsupported factor: value is NaN, logged separately from failures
"""

from typing import Dict, Optional


class AlphaEngineError(Exception):
    """Base class for all alpha engine errors"""


class InvalidInputError(AlphaEngineError, ValueError):
    """Bar history is empty or below the family minimum"""

    def __init__(self, message: str, required: Optional[int] = None, actual: Optional[int] = None):
        super().__init__(message)
        self.required = required
        self.actual = actual


class OrderMismatchError(AlphaEngineError, ValueError):
    """
    Factor names do not match the expected order.
    
    index is the first differing position, or None when only the
    lengths differ.
    """

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None
    ):
        super().__init__(message)
        self.index = index
        self.expected = expected
        self.actual = actual


class FamilyMismatchError(AlphaEngineError, ValueError):
    """Feature vector family tag differs from the dataset family"""


class InvalidValuesError(AlphaEngineError, ValueError):
    """Feature vector holds NaN/Infinity under the fail-fast strategy"""

    def __init__(
        self,
        symbol: Optional[str],
        timestamp: Optional[int],
        statistics: str,
        detail: Dict[str, float]
    ):
        message = (
            f"Feature vector contains invalid values\n"
            f"Symbol: {symbol}\n"
            f"Timestamp: {timestamp}\n"
            f"Statistics: {statistics}\n"
            f"Details: {detail}"
        )
        super().__init__(message)
        self.symbol = symbol
        self.timestamp = timestamp
        self.statistics = statistics
        self.detail = detail


class ComputationCancelled(AlphaEngineError):
    """Batch computation stopped by its cancellation token"""
