"""
Fixed-capacity sliding window of colour samples
"""

from collections import deque
from typing import List, Optional
import numpy as np


class SignalBuffer:
    """
    Circular buffer of (value, timestamp) pairs

    The oldest sample is evicted once capacity is exceeded.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")

        self._capacity = int(capacity)
        self._values = deque(maxlen=self._capacity)
        self._timestamps = deque(maxlen=self._capacity)

    def append(self, value: float, timestamp_ms: int):
        self._values.append(float(value))
        self._timestamps.append(int(timestamp_ms))

    def __len__(self) -> int:
        return len(self._values)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def fill_ratio(self) -> float:
        return len(self._values) / self._capacity

    def values(self) -> np.ndarray:
        return np.array(self._values, dtype=np.float64)

    def timestamps(self) -> List[int]:
        return list(self._timestamps)

    def effective_fps(self) -> Optional[float]:
        """Sample rate measured from the stored timestamps"""
        if len(self._timestamps) < 2:
            return None

        span_ms = self._timestamps[-1] - self._timestamps[0]
        if span_ms <= 0:
            return None

        return (len(self._timestamps) - 1) * 1000.0 / span_ms

    def clear(self):
        self._values.clear()
        self._timestamps.clear()
