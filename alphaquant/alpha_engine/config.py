"""
Alpha Engine Configuration

Declares which factors, operators and windows are active per family.
Every config is frozen once built and safe to share across threads.

Rules:
    - Exclude always wins over include
    - Sequence fields are stored as tuples
    - Validation happens at construction, never later
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple
import json
import hashlib


# ============================================================================
# CANONICAL NAME TABLES
# ============================================================================

ALPHA101_COUNT = 101

# Alphas that dominate runtime (long windows, nested rank chains)
ALPHA101_SLOW_ALPHAS = (
    7, 17, 19, 21, 23, 24, 48, 49, 50, 51, 52, 53,
    84, 85, 86, 87, 88, 89, 98, 99, 100, 101,
)

# Alphas that need industry classification or the unpublished definitions;
# always reported as NaN
ALPHA101_UNSUPPORTED = (
    48, 56, 58, 59, 63, 67, 69, 70, 76, 79, 80, 82, 87, 89, 90, 91, 93, 97, 100,
)

KBAR_FACTORS = (
    'KMID', 'KLEN', 'KMID2', 'KUP', 'KUP2', 'KLOW', 'KLOW2', 'KSFT', 'KSFT2',
)

ALPHA158_PRICE_FIELDS = ('OPEN', 'HIGH', 'LOW', 'VWAP')

ALPHA158_ROLLING_WINDOWS = (5, 10, 20, 30, 60)

ROLLING_OPERATORS = (
    'ROC', 'MA', 'STD', 'BETA', 'RSQR', 'RESI', 'MAX', 'MIN', 'QTLU', 'QTLD',
    'RANK', 'RSV', 'IMAX', 'IMIN', 'IMXD', 'CORR', 'CORD', 'CNTP', 'CNTN', 'CNTD',
    'SUMP', 'SUMN', 'SUMD', 'VMA', 'VSTD', 'WVMA', 'VSUMP', 'VSUMN', 'VSUMD',
)

ALPHA158_DEFAULT_EXCLUDE = ('RANK', 'IMXD', 'CORD', 'CNTD', 'VSUMD')

ALPHA360_FIELD_ORDER = ('CLOSE', 'OPEN', 'HIGH', 'LOW', 'VWAP', 'VOLUME')

ALPHA360_PRICE_FIELDS = ('CLOSE', 'OPEN', 'HIGH', 'LOW', 'VWAP')


def _config_hash(payload: dict) -> str:
    """sha256 of sorted JSON, truncated to 16 hex chars"""
    config_str = json.dumps(payload, sort_keys=True)
    return hashlib.sha256(config_str.encode()).hexdigest()[:16]


def _as_tuple(values: Optional[Iterable]) -> Optional[tuple]:
    if values is None:
        return None
    return tuple(values)


# ============================================================================
# ALPHA 101
# ============================================================================

@dataclass(frozen=True)
class Alpha101Config:
    """
    WorldQuant 101 selection.

    include_alphas=None selects every alpha that is not excluded.
    """

    include_alphas: Optional[Tuple[int, ...]] = None
    exclude_alphas: Tuple[int, ...] = ()

    # Kept for config compatibility, selection is driven by the lists above
    enable_advanced_alphas: bool = True

    # ADV window used for the shared adv20 series
    adv20_window: int = 20

    def __post_init__(self):
        object.__setattr__(self, 'include_alphas', _as_tuple(self.include_alphas))
        object.__setattr__(self, 'exclude_alphas', _as_tuple(self.exclude_alphas) or ())

        for label, values in (('include_alphas', self.include_alphas or ()),
                              ('exclude_alphas', self.exclude_alphas)):
            bad = [n for n in values if not 1 <= int(n) <= ALPHA101_COUNT]
            if bad:
                raise ValueError(f"{label} out of range 1..{ALPHA101_COUNT}: {bad}")

        if self.adv20_window <= 0:
            raise ValueError(f"adv20_window must be positive, got {self.adv20_window}")

    @classmethod
    def create_default(cls) -> 'Alpha101Config':
        """All 101 alphas"""
        return cls()

    @classmethod
    def create_fast(cls) -> 'Alpha101Config':
        """Skip the slow alphas"""
        return cls(exclude_alphas=ALPHA101_SLOW_ALPHAS, enable_advanced_alphas=False)

    @classmethod
    def create(cls, include_alphas: Iterable[int]) -> 'Alpha101Config':
        """Only the listed alphas"""
        return cls(include_alphas=tuple(include_alphas))

    def use_alpha(self, alpha_number: int) -> bool:
        """Exclude wins, include=None means everything"""
        if not 1 <= alpha_number <= ALPHA101_COUNT:
            return False
        if alpha_number in self.exclude_alphas:
            return False
        if self.include_alphas is None:
            return True
        return alpha_number in self.include_alphas

    def expected_factor_count(self) -> int:
        return sum(1 for i in range(1, ALPHA101_COUNT + 1) if self.use_alpha(i))

    def to_dict(self) -> dict:
        return {
            'include_alphas': list(self.include_alphas) if self.include_alphas is not None else None,
            'exclude_alphas': list(self.exclude_alphas),
            'enable_advanced_alphas': self.enable_advanced_alphas,
            'adv20_window': self.adv20_window,
        }

    def get_config_hash(self) -> str:
        return _config_hash(self.to_dict())


# ============================================================================
# ALPHA 158
# ============================================================================

@dataclass(frozen=True)
class Alpha158Config:
    """
    Qlib Alpha158 layout.

    Blocks (in output order):
        1. K-bar shape ratios
        2. Price ratios at window 0
        3. Volume ratios
        4. Rolling operators x windows (excluded operators NaN-padded)
        5. Price ratios at non-zero windows (extended layout)
    """

    enable_kbar: bool = True

    enable_price: bool = True
    price_windows: Tuple[int, ...] = (0,)
    price_features: Tuple[str, ...] = ALPHA158_PRICE_FIELDS

    enable_volume: bool = True
    volume_windows: Tuple[int, ...] = (0,)

    enable_rolling: bool = True
    rolling_windows: Tuple[int, ...] = ALPHA158_ROLLING_WINDOWS
    rolling_include: Optional[Tuple[str, ...]] = None
    rolling_exclude: Tuple[str, ...] = ALPHA158_DEFAULT_EXCLUDE

    def __post_init__(self):
        object.__setattr__(self, 'price_windows', _as_tuple(self.price_windows) or ())
        object.__setattr__(self, 'price_features',
                           tuple(f.upper() for f in (self.price_features or ())))
        object.__setattr__(self, 'volume_windows', _as_tuple(self.volume_windows) or ())
        object.__setattr__(self, 'rolling_windows', _as_tuple(self.rolling_windows) or ())
        if self.rolling_include is not None:
            object.__setattr__(self, 'rolling_include',
                               tuple(op.upper() for op in self.rolling_include))
        object.__setattr__(self, 'rolling_exclude',
                           tuple(op.upper() for op in (self.rolling_exclude or ())))

        if any(w < 0 for w in self.price_windows + self.volume_windows):
            raise ValueError("price/volume windows must be non-negative")
        if any(w <= 0 for w in self.rolling_windows):
            raise ValueError(f"rolling windows must be positive, got {self.rolling_windows}")

        # Each entry becomes one named column, a repeat would emit the name twice
        for field_name in ('price_windows', 'price_features', 'volume_windows', 'rolling_windows'):
            values = getattr(self, field_name)
            if len(set(values)) != len(values):
                raise ValueError(f"{field_name} contains duplicates: {values}")

        unknown_fields = [f for f in self.price_features if f not in ALPHA158_PRICE_FIELDS]
        if unknown_fields:
            raise ValueError(f"Unknown price features: {unknown_fields}")

        named_ops = self.rolling_exclude + (self.rolling_include or ())
        unknown_ops = [op for op in named_ops if op not in ROLLING_OPERATORS]
        if unknown_ops:
            raise ValueError(f"Unknown rolling operators: {unknown_ops}")

    @classmethod
    def create_default(cls) -> 'Alpha158Config':
        """159 factors: 9 kbar + 4 price + 1 volume + 145 rolling"""
        return cls()

    @classmethod
    def create_full(cls) -> 'Alpha158Config':
        """Every rolling operator computed"""
        return cls(rolling_exclude=())

    @classmethod
    def create_extended(cls) -> 'Alpha158Config':
        """179 factors: default layout plus 20 historical price ratios at the end"""
        return cls(price_windows=(0, 5, 10, 20, 30, 60))

    @classmethod
    def create_lite(cls) -> 'Alpha158Config':
        """Small operator set for quick experiments"""
        return cls(
            enable_volume=False,
            rolling_windows=(5, 10, 20, 60),
            rolling_include=('ROC', 'MA', 'STD', 'MAX', 'MIN', 'RSV'),
            rolling_exclude=(),
        )

    def use_rolling_operator(self, operator: str) -> bool:
        """Exclude wins, include=None means everything"""
        operator = operator.upper()
        if operator in self.rolling_exclude:
            return False
        if self.rolling_include is None:
            return True
        return operator in self.rolling_include

    @property
    def current_price_windows(self) -> Tuple[int, ...]:
        return tuple(w for w in self.price_windows if w == 0)

    @property
    def history_price_windows(self) -> Tuple[int, ...]:
        return tuple(w for w in self.price_windows if w != 0)

    def expected_factor_count(self) -> int:
        count = 0
        if self.enable_kbar:
            count += len(KBAR_FACTORS)
        if self.enable_price:
            count += len(self.price_features) * len(self.price_windows)
        if self.enable_volume:
            count += len(self.volume_windows)
        if self.enable_rolling:
            count += len(ROLLING_OPERATORS) * len(self.rolling_windows)
        return count

    def to_dict(self) -> dict:
        return {
            'kbar': {'enabled': self.enable_kbar},
            'price': {
                'enabled': self.enable_price,
                'windows': list(self.price_windows),
                'features': list(self.price_features),
            },
            'volume': {
                'enabled': self.enable_volume,
                'windows': list(self.volume_windows),
            },
            'rolling': {
                'enabled': self.enable_rolling,
                'windows': list(self.rolling_windows),
                'include': list(self.rolling_include) if self.rolling_include is not None else None,
                'exclude': list(self.rolling_exclude),
            },
        }

    def get_config_hash(self) -> str:
        return _config_hash(self.to_dict())


# ============================================================================
# ALPHA 360
# ============================================================================

@dataclass(frozen=True)
class Alpha360Config:
    """
    Qlib Alpha360 layout: raw normalized price/volume history.

    Default is 60 bars x 6 fields = 360 factors.
    """

    lookback_days: int = 60
    price_fields: Tuple[str, ...] = ALPHA360_PRICE_FIELDS
    include_volume: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'price_fields',
                           tuple(f.upper() for f in (self.price_fields or ())))
        if self.lookback_days <= 0:
            raise ValueError(f"lookback_days must be positive, got {self.lookback_days}")
        unknown = [f for f in self.price_fields if f not in ALPHA360_PRICE_FIELDS]
        if unknown:
            raise ValueError(f"Unknown price fields: {unknown}")

    @classmethod
    def create_default(cls) -> 'Alpha360Config':
        return cls()

    @classmethod
    def create_price_only(cls) -> 'Alpha360Config':
        """300 factors, no VOLUME block"""
        return cls(include_volume=False)

    def active_fields(self) -> Tuple[str, ...]:
        """Fields in canonical block order"""
        fields = []
        for name in ALPHA360_FIELD_ORDER:
            if name == 'VOLUME':
                if self.include_volume:
                    fields.append(name)
            elif name in self.price_fields:
                fields.append(name)
        return tuple(fields)

    def expected_factor_count(self) -> int:
        return self.lookback_days * len(self.active_fields())

    def to_dict(self) -> dict:
        return {
            'lookback_days': self.lookback_days,
            'price_fields': list(self.price_fields),
            'include_volume': self.include_volume,
        }

    def get_config_hash(self) -> str:
        return _config_hash(self.to_dict())


# ============================================================================
# MASTER CONFIG
# ============================================================================

@dataclass(frozen=True)
class AlphaEngineConfig:
    """
    Master configuration for the Alpha Engine.

    All parameters versioned for reproducibility.
    """

    config_version: str = "1.0.0"

    alpha101: Alpha101Config = field(default_factory=Alpha101Config)
    alpha158: Alpha158Config = field(default_factory=Alpha158Config)
    alpha360: Alpha360Config = field(default_factory=Alpha360Config)

    # Parallel batch execution
    max_workers: int = 4

    # Raise on invalid single-sample input instead of returning None
    fail_on_invalid_input: bool = True
    verbose_logging: bool = False

    def __post_init__(self):
        if self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")

    def get_config_hash(self) -> str:
        """
        Generate deterministic hash of configuration.

        Used to tag feature vectors so training and serving can verify
        they share one factor layout.
        """
        return _config_hash(self._to_dict_no_hash())

    def _to_dict_no_hash(self) -> dict:
        return {
            'config_version': self.config_version,
            'alpha101': self.alpha101.to_dict(),
            'alpha158': self.alpha158.to_dict(),
            'alpha360': self.alpha360.to_dict(),
            'execution': {
                'max_workers': self.max_workers,
                'fail_on_invalid_input': self.fail_on_invalid_input,
                'verbose_logging': self.verbose_logging,
            },
        }

    def to_dict(self) -> dict:
        """Serialize configuration to dictionary with hash"""
        d = self._to_dict_no_hash()
        d['config_hash'] = self.get_config_hash()
        return d

    def to_json(self) -> str:
        """Serialize configuration to JSON string"""
        return json.dumps(self.to_dict(), indent=2)


# Default configuration instance
DEFAULT_CONFIG = AlphaEngineConfig()
