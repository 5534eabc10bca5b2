"""
Factor Order Registries

Canonical factor name order per family.

Rules:
    - Pure functions of an immutable config, no computation
    - Same config in, list-equal names out
    - Calculators assemble their results in exactly this order
"""

from typing import List, Optional

from alphaquant.alpha_engine.config import (
    ALPHA101_COUNT,
    KBAR_FACTORS,
    ROLLING_OPERATORS,
    Alpha101Config,
    Alpha158Config,
    Alpha360Config,
)


def alpha101_name(alpha_number: int) -> str:
    """alpha001 .. alpha101"""
    return f"alpha{alpha_number:03d}"


def alpha101_order(config: Optional[Alpha101Config] = None) -> List[str]:
    """Enabled alpha names, ascending by alpha number"""
    config = config or Alpha101Config()
    return [
        alpha101_name(i)
        for i in range(1, ALPHA101_COUNT + 1)
        if config.use_alpha(i)
    ]


def alpha158_order(config: Optional[Alpha158Config] = None) -> List[str]:
    """
    Alpha158 names.

    Rolling operators are listed unconditionally, so toggling exclusions
    never changes the vector shape. Non-zero price windows come after
    the rolling block to keep wider layouts prefix-compatible with the
    default one.
    """
    config = config or Alpha158Config()
    order = []

    if config.enable_kbar:
        order.extend(KBAR_FACTORS)

    if config.enable_price:
        order.extend(_price_names(config.price_features, config.current_price_windows))

    if config.enable_volume:
        order.extend(f"VOLUME{w}" for w in config.volume_windows)

    if config.enable_rolling:
        for operator in ROLLING_OPERATORS:
            order.extend(f"{operator}{w}" for w in config.rolling_windows)

    if config.enable_price:
        order.extend(_price_names(config.price_features, config.history_price_windows))

    return order


def _price_names(features, windows) -> List[str]:
    # Field outer, window inner
    return [f"{feature}{w}" for feature in features for w in windows]


def alpha158_excluded_names(config: Alpha158Config) -> List[str]:
    """Rolling names whose values are NaN-padded under this config"""
    if not config.enable_rolling:
        return []
    return [
        f"{operator}{w}"
        for operator in ROLLING_OPERATORS
        if not config.use_rolling_operator(operator)
        for w in config.rolling_windows
    ]


def alpha360_order(config: Optional[Alpha360Config] = None) -> List[str]:
    """Per field block, names count down from lookback-1 to 0"""
    config = config or Alpha360Config()
    return [
        f"{field}{day}"
        for field in config.active_fields()
        for day in range(config.lookback_days - 1, -1, -1)
    ]


def describe_order(names: List[str], limit: int = 10) -> str:
    """Short printable summary of an order list"""
    lines = [f"Factor order (total: {len(names)})"]
    for i, name in enumerate(names[:limit], start=1):
        lines.append(f"  {i:3d}. {name}")
    if len(names) > limit:
        lines.append("  ...")
    return "\n".join(lines)
