"""
Alpha Engine Health Monitor

Tracks computation success rates, timing and output quality.
Safe to share between pipeline worker threads.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
from pathlib import Path
import json

LOG = logging.getLogger(__name__)

MAX_RECENT_ERRORS = 100


@dataclass
class AlphaHealthMetrics:
    """Health metrics for factor computation"""

    # Computation metrics
    computations_succeeded: int = 0
    computations_failed: int = 0
    samples_produced: int = 0
    symbols_processed: int = 0

    # Output quality
    factors_produced: int = 0
    nan_factors: int = 0
    unsupported_factors: int = 0

    # Performance metrics
    avg_computation_time_ms: float = 0.0
    max_computation_time_ms: float = 0.0
    total_bars_processed: int = 0

    # Input quality
    validation_pass_pct: float = 0.0

    # Error tracking
    validation_errors: List[str] = field(default_factory=list)
    computation_errors: List[str] = field(default_factory=list)

    # Timestamps
    last_computation_time: Optional[datetime] = None
    last_success_time: Optional[datetime] = None
    monitor_start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            'computation': {
                'computations_succeeded': self.computations_succeeded,
                'computations_failed': self.computations_failed,
                'samples_produced': self.samples_produced,
                'symbols_processed': self.symbols_processed,
            },
            'output_quality': {
                'factors_produced': self.factors_produced,
                'nan_factors': self.nan_factors,
                'unsupported_factors': self.unsupported_factors,
            },
            'performance': {
                'avg_computation_time_ms': round(self.avg_computation_time_ms, 2),
                'max_computation_time_ms': round(self.max_computation_time_ms, 2),
                'total_bars_processed': self.total_bars_processed,
            },
            'input_quality': {
                'validation_pass_pct': round(self.validation_pass_pct, 2),
            },
            'errors': {
                'validation_errors': len(self.validation_errors),
                'computation_errors': len(self.computation_errors),
            },
            'timestamps': {
                'last_computation_time': self.last_computation_time.isoformat() if self.last_computation_time else None,
                'last_success_time': self.last_success_time.isoformat() if self.last_success_time else None,
                'monitor_start_time': self.monitor_start_time.isoformat(),
                'uptime_seconds': (datetime.now(timezone.utc) - self.monitor_start_time).total_seconds(),
            }
        }


class AlphaEngineHealthMonitor:
    """
    Monitor alpha engine health and performance.

    Tracks:
        - Computation success/failure rates
        - Computation time
        - NaN and unsupported factor counts
        - Validation pass rate and recent errors
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self.metrics = AlphaHealthMetrics()
        self.log_dir = log_dir

        # Running aggregates, no per-call history is kept
        self._total_time_ms = 0.0
        self._validations_run = 0
        self._validations_passed = 0
        self.processed_symbols = set()

        self._lock = threading.Lock()

        LOG.info("Alpha Engine Health Monitor initialized")

    def record_computation_start(self, symbol: str, family: str) -> datetime:
        """
        Record start of a computation.

        Returns:
            Start timestamp, passed back to record_computation_success
        """
        start_time = datetime.now(timezone.utc)
        with self._lock:
            self.processed_symbols.add(symbol)
            self.metrics.symbols_processed = len(self.processed_symbols)

        LOG.debug(f"Started alpha computation: {symbol} {family}")
        return start_time

    def record_computation_success(
        self,
        symbol: str,
        family: str,
        start_time: datetime,
        samples: int,
        factors: int,
        bars_processed: int,
        nan_factors: int = 0,
        unsupported_factors: int = 0
    ):
        """
        Record a successful computation.

        Args:
            symbol: Symbol processed
            family: Factor family
            start_time: Value returned by record_computation_start
            samples: Feature vectors produced
            factors: Total factor values produced
            bars_processed: Input history length
            nan_factors: Values that are NaN or infinite
            unsupported_factors: Values NaN by definition (Alpha101)
        """
        now = datetime.now(timezone.utc)
        elapsed_ms = (now - start_time).total_seconds() * 1000

        with self._lock:
            self.metrics.computations_succeeded += 1
            self.metrics.samples_produced += samples
            self.metrics.factors_produced += factors
            self.metrics.nan_factors += nan_factors
            self.metrics.unsupported_factors += unsupported_factors
            self.metrics.total_bars_processed += bars_processed
            self.metrics.last_computation_time = now
            self.metrics.last_success_time = now

            self._total_time_ms += elapsed_ms
            self.metrics.avg_computation_time_ms = self._total_time_ms / self.metrics.computations_succeeded
            self.metrics.max_computation_time_ms = max(self.metrics.max_computation_time_ms, elapsed_ms)

        LOG.info(f"✓ Alpha computation success: {symbol} {family} "
                 f"({elapsed_ms:.1f}ms, {samples} samples, {bars_processed} bars)")

    def record_computation_failure(self, symbol: str, family: str, error: str):
        with self._lock:
            self.metrics.computations_failed += 1
            self.metrics.last_computation_time = datetime.now(timezone.utc)
            self.metrics.computation_errors.append(
                f"{datetime.now(timezone.utc).isoformat()} | {symbol} {family} | {error}"
            )
            if len(self.metrics.computation_errors) > MAX_RECENT_ERRORS:
                self.metrics.computation_errors = self.metrics.computation_errors[-MAX_RECENT_ERRORS:]

        LOG.error(f"✗ Alpha computation failed: {symbol} {family} | {error}")

    def record_validation_result(self, success: bool, errors: Optional[List[str]] = None):
        with self._lock:
            self._validations_run += 1
            if success:
                self._validations_passed += 1
            self.metrics.validation_pass_pct = self._validations_passed / self._validations_run * 100

            if not success and errors:
                for error in errors:
                    self.metrics.validation_errors.append(
                        f"{datetime.now(timezone.utc).isoformat()} | {error}"
                    )
                if len(self.metrics.validation_errors) > MAX_RECENT_ERRORS:
                    self.metrics.validation_errors = self.metrics.validation_errors[-MAX_RECENT_ERRORS:]

    def get_health_status(self) -> Dict:
        """
        Current health status.

        HEALTHY at >= 95% success, DEGRADED at >= 80%, UNHEALTHY below.
        No computations yet counts as HEALTHY.
        """
        with self._lock:
            succeeded = self.metrics.computations_succeeded
            total = succeeded + self.metrics.computations_failed
            success_rate = (succeeded / total * 100) if total > 0 else 100.0

            if success_rate >= 95:
                health = "HEALTHY"
            elif success_rate >= 80:
                health = "DEGRADED"
            else:
                health = "UNHEALTHY"

            return {
                'status': health,
                'success_rate_pct': round(success_rate, 2),
                'total_computations': total,
                'metrics': self.metrics.to_dict(),
                'recent_errors': {
                    'validation': self.metrics.validation_errors[-5:],
                    'computation': self.metrics.computation_errors[-5:],
                }
            }

    def export_metrics(self, filepath: Optional[Path] = None) -> Path:
        """Write the health status as JSON"""
        if filepath is None:
            name = f"alpha_health_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}.json"
            if self.log_dir:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                filepath = self.log_dir / name
            else:
                filepath = Path(name)

        with open(filepath, 'w') as f:
            json.dump(self.get_health_status(), f, indent=2)

        LOG.info(f"Health metrics exported to {filepath}")
        return Path(filepath)

    def get_summary(self) -> str:
        status = self.get_health_status()
        m = self.metrics

        return f"""
{'=' * 80}
ALPHA ENGINE HEALTH SUMMARY
{'=' * 80}

Status: {status['status']}
Success Rate: {status['success_rate_pct']:.2f}%
Total Computations: {status['total_computations']}

Computation Metrics:
  - Computations Succeeded: {m.computations_succeeded}
  - Computations Failed: {m.computations_failed}
  - Samples Produced: {m.samples_produced}
  - Symbols Processed: {m.symbols_processed}

Output Quality:
  - Factors Produced: {m.factors_produced}
  - NaN Factors: {m.nan_factors}
  - Unsupported Factors: {m.unsupported_factors}

Performance Metrics:
  - Avg Computation Time: {m.avg_computation_time_ms:.2f}ms
  - Max Computation Time: {m.max_computation_time_ms:.2f}ms
  - Total Bars Processed: {m.total_bars_processed}

Validation Pass Rate: {m.validation_pass_pct:.2f}%

Uptime: {(datetime.now(timezone.utc) - m.monitor_start_time).total_seconds():.1f}s
Last Success: {m.last_success_time.strftime('%Y-%m-%d %H:%M:%S UTC') if m.last_success_time else 'N/A'}

{'=' * 80}
"""

    def reset_metrics(self):
        with self._lock:
            self.metrics = AlphaHealthMetrics()
            self._total_time_ms = 0.0
            self._validations_run = 0
            self._validations_passed = 0
            self.processed_symbols.clear()

        LOG.info("Health metrics reset")
