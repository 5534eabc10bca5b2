"""
Calculator Base

Shared single-sample and sliding-batch plumbing for the three factor
families.

Batch rule:
    Sample k is computed from bars[0:k] exactly as a single call would,
    for k = batch_start .. n. Nothing is carried between samples.
"""

import threading
from typing import List, Optional, Sequence
import logging

from alphaquant.alpha_engine.dataset import AlphaDataset
from alphaquant.alpha_engine.exceptions import ComputationCancelled
from alphaquant.alpha_engine.schemas import AlphaFactorResult, AlphaType, Bar, BarSeries

LOG = logging.getLogger(__name__)


class AlphaCalculator:
    """
    Base class for family calculators.

    Subclasses set alpha_type and batch_start, and implement
    calculate_series() and factor_order().
    """

    alpha_type: AlphaType = AlphaType.CUSTOM
    batch_start: int = 1

    def factor_order(self) -> List[str]:
        raise NotImplementedError

    def calculate_series(self, series: BarSeries) -> Optional[AlphaFactorResult]:
        raise NotImplementedError

    def calculate(self, bars: Sequence[Bar]) -> Optional[AlphaFactorResult]:
        """Factors for the latest bar of the history"""
        if not bars:
            LOG.warning(f"{self.alpha_type.name}: empty bar history, nothing to compute")
            return None
        return self.calculate_series(BarSeries.from_bars(bars))

    def calculate_incremental(
        self,
        history: Sequence[Bar],
        new_bar: Bar
    ) -> Optional[AlphaFactorResult]:
        """
        Append one bar and recompute.

        Same output as calculate(history + [new_bar]), no state is kept.
        """
        return self.calculate(list(history) + [new_bar])

    def new_dataset(self) -> AlphaDataset:
        return AlphaDataset(self.alpha_type, self.factor_order())

    def _on_batch_start(self, series: BarSeries):
        pass

    def _calculate_sample(self, window: BarSeries) -> Optional[AlphaFactorResult]:
        return self.calculate_series(window)

    def calculate_batch(
        self,
        bars: Sequence[Bar],
        cancel_event: Optional[threading.Event] = None
    ) -> AlphaDataset:
        """
        One sample per bar from batch_start onward.

        Args:
            bars: Full chronological history
            cancel_event: Checked before each sample

        Returns:
            Dataset tagged with this family

        Raises:
            ComputationCancelled: cancel_event was set
        """
        dataset = self.new_dataset()

        if not bars:
            LOG.warning(f"{self.alpha_type.name}: empty bar history, batch skipped")
            return dataset

        if len(bars) < self.batch_start:
            LOG.warning(f"{self.alpha_type.name}: batch needs at least {self.batch_start} bars, "
                        f"got {len(bars)}")
            return dataset

        series = BarSeries.from_bars(bars)
        self._on_batch_start(series)
        skipped = 0

        for end in range(self.batch_start, len(series) + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise ComputationCancelled(
                    f"{self.alpha_type.name} batch for {series.symbol} cancelled "
                    f"after {len(dataset)} samples"
                )

            window = series.head(end)
            try:
                result = self._calculate_sample(window)
            except Exception as e:
                skipped += 1
                LOG.warning(f"{self.alpha_type.name}: sample {series.symbol} @ {window.timestamp} "
                            f"skipped: {e}")
                continue

            if result is not None:
                dataset.add_feature(result.to_feature_vector(self.alpha_type))

        LOG.info(f"✓ {self.alpha_type.name} batch {series.symbol}: {len(dataset)} samples"
                 + (f", {skipped} skipped" if skipped else ""))
        return dataset
