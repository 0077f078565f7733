"""
Heart Rate Variability statistics over the beat-interval stream
"""

from collections import deque
from dataclasses import dataclass, field
import logging
import time
from typing import Deque, Optional

import numpy as np

from .config import Config
from .results import HRVStats
from .utils import clamp

logger = logging.getLogger(__name__)

# Successive differences above this count towards pNN50
NN50_THRESHOLD_MS = 50.0


@dataclass
class _HRVState:
    intervals: Deque[float] = field(default_factory=deque)


class HRVEngine:
    """
    Computes SDNN, RMSSD, pNN50 and a stress index from beat intervals
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = (config or Config()).validate()
        self.hrv_config = self.config.hrv
        self.min_intervals = self.hrv_config.min_intervals
        self.max_intervals = self.hrv_config.max_intervals
        self.max_interval_ms = self.hrv_config.max_interval_ms

        self._state = self._new_state()

        logger.info(
            f"HRVEngine initialized: min {self.min_intervals} intervals, "
            f"history {self.max_intervals}"
        )

    def _new_state(self) -> _HRVState:
        return _HRVState(intervals=deque(maxlen=self.max_intervals))

    def add_interval(self, interval_ms: float):
        """
        Append a beat interval; values outside (0, max_interval_ms] are ignored

        Args:
            interval_ms: Beat-to-beat interval in milliseconds
        """
        if interval_ms is None or not 0 < interval_ms <= self.max_interval_ms:
            logger.debug(f"Rejected beat interval: {interval_ms}")
            return

        self._state.intervals.append(float(interval_ms))

    def is_ready(self) -> bool:
        return len(self._state.intervals) >= self.min_intervals

    @property
    def interval_count(self) -> int:
        return len(self._state.intervals)

    def compute(self, timestamp_ms: Optional[int] = None) -> Optional[HRVStats]:
        """
        Calculate HRV statistics over the retained intervals

        Args:
            timestamp_ms: Time to stamp the result with; wall clock if omitted

        Returns:
            HRVStats, or None until enough intervals have been collected
        """
        if not self.is_ready():
            return None

        intervals = np.array(self._state.intervals, dtype=np.float64)
        diffs = np.diff(intervals)

        sdnn = float(np.std(intervals))
        rmssd = float(np.sqrt(np.mean(diffs ** 2)))
        pnn50 = float(np.count_nonzero(np.abs(diffs) > NN50_THRESHOLD_MS) / len(diffs) * 100.0)

        # Lower variability reads as higher stress
        stress_index = clamp(100.0 - (sdnn + rmssd) / 2.0, 0.0, 100.0)

        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)

        return HRVStats(
            sdnn=round(sdnn, 1),
            rmssd=round(rmssd, 1),
            pnn50=round(pnn50, 1),
            stress_index=int(round(stress_index)),
            timestamp_ms=int(timestamp_ms),
        )

    def reset(self):
        """Clear interval history"""
        self._state = self._new_state()
        logger.info("HRVEngine reset")
