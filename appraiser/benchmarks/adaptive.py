"""Provider base weights adjusted by recent benchmark accuracy."""

import logging
import math
import time
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from appraiser.benchmarks.models import BenchmarkRecord
from appraiser.config import get_settings
from appraiser.llm.registry import WeightSnapshot, default_snapshot
from appraiser.utils.helpers import clamp

logger = logging.getLogger(__name__)

MIN_PROVIDER_SAMPLES = 5
MIN_MULTIPLIER = 0.3
MAX_MULTIPLIER = 1.5
DEGRADATION_THRESHOLD = 0.20
DEGRADED_FACTOR = 0.7
CACHE_SECONDS = 3600.0


def _within_10(records: List[BenchmarkRecord]) -> float:
    return sum(1 for r in records if abs(r.price_error_percent or 0) <= 10) / len(records)


def accuracy_multipliers(records: List[BenchmarkRecord], min_samples: int) -> Dict[str, float]:
    """Weight multipliers per provider from graded records in time order.

    Returns an empty dict when there are fewer than ``min_samples`` records.
    """
    graded = [r for r in records if r.price_error_percent is not None]
    if len(graded) < min_samples:
        return {}

    fleet_accuracy = _within_10(graded)
    by_provider: Dict[str, List[BenchmarkRecord]] = defaultdict(list)
    for record in graded:
        by_provider[record.provider_id].append(record)

    multipliers = {}
    for provider_id, provider_records in sorted(by_provider.items()):
        if len(provider_records) < MIN_PROVIDER_SAMPLES:
            continue

        accuracy = _within_10(provider_records)
        multiplier = clamp(1.0 + 0.5 * (accuracy - fleet_accuracy), MIN_MULTIPLIER, MAX_MULTIPLIER)

        recent = provider_records[-math.ceil(len(provider_records) * 0.25):]
        if len(recent) >= MIN_PROVIDER_SAMPLES:
            drop = accuracy - _within_10(recent)
            if drop >= DEGRADATION_THRESHOLD:
                logger.warning(f"{provider_id}: accuracy dropped {drop * 100:.0f}% recently")
                multiplier = max(MIN_MULTIPLIER, multiplier * DEGRADED_FACTOR)

        multipliers[provider_id] = round(multiplier, 3)
    return multipliers


class AdaptiveWeightProvider:
    """Publishes weight snapshots derived from recent benchmark accuracy.

    A snapshot is rebuilt at most once per ``cache_seconds``; snapshots
    already handed out are never changed.
    """

    def __init__(
        self,
        fetch_records: Callable[[datetime], List[BenchmarkRecord]],
        base: Optional[WeightSnapshot] = None,
        min_samples: Optional[int] = None,
        window_days: Optional[int] = None,
        cache_seconds: float = CACHE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize adaptive weights.

        Args:
            fetch_records: Returns benchmark records created since a datetime,
                oldest first. Usually ``BenchmarkRepository.get_since``.
            base: Static weights to scale. If None, the registry weights.
            min_samples: Graded records needed before adapting. If None, uses config value.
            window_days: Look-back window. If None, uses config value.
            cache_seconds: How long a built snapshot is reused
            clock: Monotonic clock, injectable for tests
        """
        settings = get_settings()
        self.fetch_records = fetch_records
        self.base = base or default_snapshot()
        self.min_samples = settings.adaptive_min_samples if min_samples is None else min_samples
        self.window_days = settings.adaptive_window_days if window_days is None else window_days
        self.cache_seconds = cache_seconds
        self.clock = clock
        self._cached: Optional[WeightSnapshot] = None
        self._cached_at: Optional[float] = None

    def snapshot(self) -> WeightSnapshot:
        """Current weights; the static base if there is too little data."""
        now = self.clock()
        if self._cached is not None and now - self._cached_at < self.cache_seconds:
            return self._cached

        snapshot = self.base
        try:
            since = datetime.now(timezone.utc) - timedelta(days=self.window_days)
            multipliers = accuracy_multipliers(self.fetch_records(since), self.min_samples)
        except Exception as e:
            logger.warning(f"Adaptive weights unavailable, using static weights: {e}")
            multipliers = {}

        if multipliers:
            weights = {pid: self.base.weight_for(pid) * m for pid, m in multipliers.items()}
            snapshot = self.base.evolve(weights, source="adaptive")
            logger.info(
                "Adaptive weights: "
                + ", ".join(f"{pid} x{m}" for pid, m in multipliers.items())
            )

        self._cached = snapshot
        self._cached_at = now
        return snapshot
