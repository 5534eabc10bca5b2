"""
Alpha Pipeline

Orchestrates factor computation from validated OHLCV bars.

Pipeline Stages:
    1. Input validation (calculator minimum)
    2. Family calculator (101 / 158 / 360)
    3. Feature vector assembly and NaN handling
    4. Health recording

Parallelism:
    - Per-symbol batch jobs (fully independent)
    - Cooperative cancellation through a shared threading.Event
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Union
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

import numpy as np

from alphaquant.alpha_engine.alpha101 import Alpha101Calculator
from alphaquant.alpha_engine.alpha158 import Alpha158Calculator
from alphaquant.alpha_engine.alpha360 import Alpha360Calculator
from alphaquant.alpha_engine.base import AlphaCalculator
from alphaquant.alpha_engine.config import ALPHA101_UNSUPPORTED, AlphaEngineConfig
from alphaquant.alpha_engine.dataset import AlphaDataset
from alphaquant.alpha_engine.exceptions import ComputationCancelled, InvalidInputError
from alphaquant.alpha_engine.health_monitor import AlphaEngineHealthMonitor
from alphaquant.alpha_engine.nan_handling import NaNHandlingStrategy
from alphaquant.alpha_engine.schemas import AlphaFactorResult, AlphaFeatureVector, AlphaType, Bar
from alphaquant.alpha_engine.validation import BarInputValidator

LOG = logging.getLogger(__name__)

Family = Union[str, AlphaType]


class AlphaPipeline:
    """
    Alpha factor computation pipeline.

    Turns bar histories into fixed-order factor vectors.

    Philosophy:
        - Causal: only bars up to the sample are used
        - Deterministic: same bars + config -> same values
        - Fixed order: every vector matches its family registry
        - Parallel: per-symbol independence
    """

    def __init__(self, config: Optional[AlphaEngineConfig] = None, max_workers: Optional[int] = None):
        self.config = config or AlphaEngineConfig()
        self.max_workers = max_workers or self.config.max_workers

        self.validator = BarInputValidator(verbose=self.config.verbose_logging)
        self.health_monitor = AlphaEngineHealthMonitor()

        self.calculators: Dict[AlphaType, AlphaCalculator] = {
            AlphaType.ALPHA101: Alpha101Calculator(self.config.alpha101),
            AlphaType.ALPHA158: Alpha158Calculator(self.config.alpha158),
            AlphaType.ALPHA360: Alpha360Calculator(self.config.alpha360),
        }

        self._unsupported_count = sum(
            1 for n in ALPHA101_UNSUPPORTED if self.config.alpha101.use_alpha(n)
        )

        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="AlphaWorker"
        )

        LOG.info(f"Alpha Pipeline initialized with config version {self.config.config_version} "
                 f"(hash {self.config.get_config_hash()}, {self.max_workers} workers)")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_calculator(self, family: Family) -> AlphaCalculator:
        alpha_type = AlphaType.parse(family)
        if alpha_type not in self.calculators:
            raise ValueError(f"No calculator for alpha family: {alpha_type.value}")
        return self.calculators[alpha_type]

    def factor_order(self, family: Family) -> List[str]:
        return self.get_calculator(family).factor_order()

    # ------------------------------------------------------------------
    # Single sample
    # ------------------------------------------------------------------

    def min_bars(self, family: Family) -> int:
        """Smallest history the family's calculator accepts (its batch start)"""
        return self.get_calculator(family).batch_start

    def _validate(self, bars: Sequence[Bar], alpha_type: AlphaType) -> Optional[List[Bar]]:
        min_bars = self.min_bars(alpha_type)
        is_valid, bars_valid, errors = self.validator.validate_bars(bars, min_bars=min_bars)
        self.health_monitor.record_validation_result(is_valid, errors)

        if is_valid:
            return bars_valid

        error_msg = f"Input validation failed: {'; '.join(errors)}"
        symbol = bars_valid[-1].symbol if bars_valid else 'UNKNOWN'
        self.health_monitor.record_computation_failure(symbol, alpha_type.value, error_msg)

        if self.config.fail_on_invalid_input:
            # Bar counts only describe a too-short history
            if self.validator.check_sufficient_history(bars_valid, min_bars):
                raise InvalidInputError(error_msg)
            raise InvalidInputError(error_msg, required=min_bars, actual=len(bars_valid))
        return None

    def compute(self, bars: Sequence[Bar], family: Family) -> Optional[AlphaFactorResult]:
        """
        Factors for the latest bar.

        Args:
            bars: Chronological history of one symbol
            family: alpha101, alpha158 or alpha360

        Returns:
            Result in registry order, or None when the input was rejected
            and fail_on_invalid_input is off

        Raises:
            InvalidInputError: input rejected and fail_on_invalid_input is on
        """
        alpha_type = AlphaType.parse(family)
        calculator = self.get_calculator(alpha_type)

        bars_valid = self._validate(bars, alpha_type)
        if bars_valid is None:
            return None

        symbol = bars_valid[-1].symbol
        start_time = self.health_monitor.record_computation_start(symbol, alpha_type.value)

        try:
            result = calculator.calculate(bars_valid)
        except Exception as e:
            self.health_monitor.record_computation_failure(symbol, alpha_type.value, str(e))
            raise

        if result is None:
            self.health_monitor.record_computation_failure(
                symbol, alpha_type.value, "Calculator returned no result"
            )
            return None

        values = result.to_array()
        self.health_monitor.record_computation_success(
            symbol,
            alpha_type.value,
            start_time,
            samples=1,
            factors=len(values),
            bars_processed=len(bars_valid),
            nan_factors=int((~np.isfinite(values)).sum()),
            unsupported_factors=self._unsupported_for(alpha_type),
        )
        return result

    def compute_vector(
        self,
        bars: Sequence[Bar],
        family: Family,
        nan_strategy: Optional[NaNHandlingStrategy] = None
    ) -> Optional[AlphaFeatureVector]:
        """Latest feature vector, with nan_strategy applied when given"""
        result = self.compute(bars, family)
        if result is None:
            return None

        vector = result.to_feature_vector(family)
        if nan_strategy is not None:
            vector = nan_strategy.apply(vector)
        return vector

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def compute_batch(
        self,
        bars: Sequence[Bar],
        family: Family,
        cancel_event: Optional[threading.Event] = None
    ) -> AlphaDataset:
        """
        One sample per bar from the family warm-up onward.

        Raises:
            InvalidInputError: input rejected and fail_on_invalid_input is on
            ComputationCancelled: cancel_event was set
        """
        alpha_type = AlphaType.parse(family)
        calculator = self.get_calculator(alpha_type)

        bars_valid = self._validate(bars, alpha_type)
        if bars_valid is None:
            return calculator.new_dataset()

        symbol = bars_valid[-1].symbol
        start_time = self.health_monitor.record_computation_start(symbol, alpha_type.value)

        try:
            dataset = calculator.calculate_batch(bars_valid, cancel_event=cancel_event)
        except ComputationCancelled:
            LOG.warning(f"Batch {symbol} {alpha_type.value} cancelled")
            raise
        except Exception as e:
            self.health_monitor.record_computation_failure(symbol, alpha_type.value, str(e))
            raise

        matrix = dataset.to_array()
        self.health_monitor.record_computation_success(
            symbol,
            alpha_type.value,
            start_time,
            samples=len(dataset),
            factors=matrix.size,
            bars_processed=len(bars_valid),
            nan_factors=int((~np.isfinite(matrix)).sum()),
            unsupported_factors=self._unsupported_for(alpha_type) * len(dataset),
        )
        return dataset

    def _batch_job(
        self,
        bars: Sequence[Bar],
        family: Family,
        cancel_event: Optional[threading.Event]
    ) -> AlphaDataset:
        # A symbol whose job has not started when cancellation fires is skipped
        if cancel_event is not None and cancel_event.is_set():
            raise ComputationCancelled("Cancelled before start")
        return self.compute_batch(bars, family, cancel_event)

    def compute_parallel(
        self,
        data: Dict[str, Sequence[Bar]],
        family: Family,
        cancel_event: Optional[threading.Event] = None
    ) -> Dict[str, Optional[AlphaDataset]]:
        """
        Compute batches for multiple symbols in parallel.

        Args:
            data: Dict mapping symbol to its bar history
            family: Factor family for all symbols
            cancel_event: Shared cancellation token

        Returns:
            Dict mapping symbol to its dataset. A failed symbol maps to
            None, a cancelled symbol is left out.
        """
        alpha_type = AlphaType.parse(family)
        LOG.info(f"Computing {alpha_type.value} for {len(data)} symbols in parallel")
        start_time = datetime.now(timezone.utc)

        results: Dict[str, Optional[AlphaDataset]] = {}
        cancelled = []

        future_to_symbol = {
            self._executor.submit(self._batch_job, bars, alpha_type, cancel_event): symbol
            for symbol, bars in data.items()
        }

        for future in as_completed(future_to_symbol):
            symbol = future_to_symbol[future]
            try:
                results[symbol] = future.result()
            except ComputationCancelled:
                cancelled.append(symbol)
            except Exception as e:
                LOG.error(f"Alpha computation failed for {symbol}: {e}")
                results[symbol] = None

        processing_time = (datetime.now(timezone.utc) - start_time).total_seconds()
        LOG.info(f"Computed {alpha_type.value} for {len(results)} symbols in {processing_time:.2f}s")
        if cancelled:
            LOG.warning(f"Cancelled {len(cancelled)} symbols: {sorted(cancelled)}")

        return results

    def _unsupported_for(self, alpha_type: AlphaType) -> int:
        return self._unsupported_count if alpha_type is AlphaType.ALPHA101 else 0

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
        LOG.info("Alpha Pipeline shut down")
