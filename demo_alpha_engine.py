"""
Alpha Engine Demo Script

End-to-end walkthrough: synthetic bars -> Alpha101 / Alpha158 / Alpha360
vectors -> batch dataset -> CSV.
"""

import logging
from pathlib import Path
import threading

import numpy as np
import pandas as pd

from alphaquant.alpha_engine import (
    AlphaEngineConfig,
    AlphaPipeline,
    AlphaType,
    NaNHandlingStrategy,
)
from alphaquant.alpha_engine.validation import bars_from_dataframe

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s | %(name)s | %(levelname)s | %(message)s'
)


def create_sample_bars(symbol: str = 'AAPL', n_bars: int = 300, seed: int = 42) -> pd.DataFrame:
    """Generate a daily OHLCV random walk"""
    np.random.seed(seed)

    dates = pd.date_range('2024-01-01', periods=n_bars, freq='D', tz='UTC')
    closes = 100.0 * np.exp(np.cumsum(np.random.normal(0, 0.01, size=n_bars)))
    opens = closes * (1 + np.random.normal(0, 0.002, size=n_bars))
    highs = np.maximum(opens, closes) * (1 + np.abs(np.random.normal(0, 0.004, size=n_bars)))
    lows = np.minimum(opens, closes) * (1 - np.abs(np.random.normal(0, 0.004, size=n_bars)))
    volumes = np.random.randint(1_000_000, 5_000_000, size=n_bars).astype(float)

    return pd.DataFrame({
        'timestamp': dates,
        'symbol': symbol,
        'open': opens,
        'high': highs,
        'low': lows,
        'close': closes,
        'volume': volumes,
        'amount': volumes * (highs + lows + closes) / 3.0,
    })


def main():
    """Run alpha engine demonstration"""

    print("=" * 80)
    print("ALPHAQUANT ALPHA ENGINE - DEMONSTRATION")
    print("=" * 80)
    print()

    # ========================================================================
    # 1. SAMPLE DATA
    # ========================================================================
    print("1. Creating sample OHLCV data...")
    bars = bars_from_dataframe(create_sample_bars())
    print(f"   ✓ Generated {len(bars)} daily bars of {bars[-1].symbol}")
    print()

    # ========================================================================
    # 2. PIPELINE
    # ========================================================================
    print("2. Initializing Alpha Pipeline...")
    config = AlphaEngineConfig()
    pipeline = AlphaPipeline(config, max_workers=2)
    print(f"   ✓ Config version {config.config_version}, hash {config.get_config_hash()}")
    print()

    # ========================================================================
    # 3. LATEST VECTORS
    # ========================================================================
    print("3. Computing latest vectors...")
    for family in (AlphaType.ALPHA101, AlphaType.ALPHA158, AlphaType.ALPHA360):
        vector = pipeline.compute_vector(bars, family)
        print(f"   ✓ {family.name}: dimension {vector.dimension}, "
              f"{vector.invalid_values_statistics()}")
        names = vector.factor_names
        print(f"     first: {names[:3]}  last: {names[-3:]}")
    print()

    # ========================================================================
    # 4. NaN HANDLING
    # ========================================================================
    print("4. NaN handling on Alpha101...")
    raw = pipeline.compute_vector(bars, AlphaType.ALPHA101)
    for strategy in (NaNHandlingStrategy.KEEP_NAN, NaNHandlingStrategy.FILL_ZERO,
                     NaNHandlingStrategy.FILL_MEDIAN):
        filled = strategy.apply(raw)
        print(f"   ✓ {strategy.description:<18} invalid after: {len(filled.invalid_value_indices())}")
    print()

    # ========================================================================
    # 5. BATCH + PARALLEL
    # ========================================================================
    print("5. Batch computation (Alpha158)...")
    dataset = pipeline.compute_batch(bars, AlphaType.ALPHA158)
    print(dataset.summary())

    universe = {
        symbol: bars_from_dataframe(create_sample_bars(symbol, n_bars=120, seed=i))
        for i, symbol in enumerate(['AAPL', 'MSFT', 'NVDA'])
    }
    results = pipeline.compute_parallel(universe, AlphaType.ALPHA360, cancel_event=threading.Event())
    for symbol, ds in sorted(results.items()):
        print(f"   ✓ {symbol}: {len(ds) if ds is not None else 'FAILED'} samples")
    print()

    # ========================================================================
    # 6. EXPORT
    # ========================================================================
    output = Path('alpha158_demo.csv')
    dataset.write_csv(output)
    print(f"6. ✓ Dataset written to {output} ({dataset.size()} rows x {dataset.dimension} factors)")
    print()

    print(pipeline.health_monitor.get_summary())
    pipeline.shutdown()


if __name__ == "__main__":
    main()
