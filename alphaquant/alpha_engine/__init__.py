"""
AlphaQuant Alpha Engine

Transforms OHLCV bar histories into fixed-order alpha factor vectors.

Families:
    - Alpha101: WorldQuant 101 formulaic alphas (single instrument)
    - Alpha158: Qlib K-bar, price, volume and rolling operators
    - Alpha360: Qlib normalized 60-bar price/volume history

Philosophy:
    - Causality: every factor uses bars up to the sample only
    - Determinism: same bars + config -> bit-identical values
    - Fixed order: vectors always match their family registry
    - Explicit gaps: unsupported factors are NaN, never invented numbers
"""

from alphaquant.alpha_engine.config import (
    AlphaEngineConfig,
    Alpha101Config,
    Alpha158Config,
    Alpha360Config,
    DEFAULT_CONFIG,
)
from alphaquant.alpha_engine.schemas import (
    Bar,
    AlphaType,
    AlphaFactorResult,
    AlphaFeatureVector,
)
from alphaquant.alpha_engine.dataset import AlphaDataset
from alphaquant.alpha_engine.nan_handling import NaNHandlingStrategy
from alphaquant.alpha_engine.alpha101 import Alpha101Calculator
from alphaquant.alpha_engine.alpha158 import Alpha158Calculator
from alphaquant.alpha_engine.alpha360 import Alpha360Calculator
from alphaquant.alpha_engine.pipeline import AlphaPipeline
from alphaquant.alpha_engine.exceptions import (
    AlphaEngineError,
    InvalidInputError,
    OrderMismatchError,
    FamilyMismatchError,
    InvalidValuesError,
    ComputationCancelled,
)

__all__ = [
    'AlphaEngineConfig',
    'Alpha101Config',
    'Alpha158Config',
    'Alpha360Config',
    'DEFAULT_CONFIG',
    'Bar',
    'AlphaType',
    'AlphaFactorResult',
    'AlphaFeatureVector',
    'AlphaDataset',
    'NaNHandlingStrategy',
    'Alpha101Calculator',
    'Alpha158Calculator',
    'Alpha360Calculator',
    'AlphaPipeline',
    'AlphaEngineError',
    'InvalidInputError',
    'OrderMismatchError',
    'FamilyMismatchError',
    'InvalidValuesError',
    'ComputationCancelled',
]

__version__ = '1.0.0'
