"""
Shared fixtures for the Alpha Engine test suite.
"""

import numpy as np
import pytest

from alphaquant.alpha_engine.schemas import Bar


def generate_bars(n_bars: int = 300, symbol: str = 'AAPL', seed: int = 42,
                  start: int = 1_700_000_000, step: int = 86_400):
    """Daily OHLCV random walk with consistent high/low envelopes"""
    np.random.seed(seed)

    closes = 100.0 * np.exp(np.cumsum(np.random.normal(0, 0.01, size=n_bars)))
    opens = closes * (1 + np.random.normal(0, 0.003, size=n_bars))
    highs = np.maximum(opens, closes) * (1 + np.abs(np.random.normal(0, 0.005, size=n_bars)))
    lows = np.minimum(opens, closes) * (1 - np.abs(np.random.normal(0, 0.005, size=n_bars)))
    volumes = np.random.uniform(1_000_000, 5_000_000, size=n_bars)

    return [
        Bar(
            symbol=symbol,
            timestamp=start + i * step,
            open=float(opens[i]),
            high=float(highs[i]),
            low=float(lows[i]),
            close=float(closes[i]),
            volume=float(volumes[i]),
        )
        for i in range(n_bars)
    ]


@pytest.fixture
def long_bars():
    """300 bars, enough for every Alpha101 lookback"""
    return generate_bars(300)


@pytest.fixture
def medium_bars():
    """100 bars: above every family minimum, below the 250-bar accuracy mark"""
    return generate_bars(100)


@pytest.fixture
def bar_factory():
    return generate_bars
