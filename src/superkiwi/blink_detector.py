"""
Eye Blink Detector
Eye Aspect Ratio thresholding with debounced edge detection and a
sliding-window blink rate
"""

from collections import deque
from dataclasses import dataclass, field
import logging
from typing import Deque, Optional, Sequence

import numpy as np

from .config import Config
from .face_geometry import LEFT_EYE, RIGHT_EYE, select_points
from .results import BlinkResult
from .utils import euclidean_distance

logger = logging.getLogger(__name__)

# EAR reported when the contour cannot be measured; reads as an open eye
NEUTRAL_EAR = 1.0


def eye_aspect_ratio(eye_points: Optional[Sequence]) -> float:
    """
    Eye Aspect Ratio for a six-point eye contour

    EAR = (|p1 - p5| + |p2 - p4|) / (2 * |p0 - p3|)

    Args:
        eye_points: Six ordered (x, y[, z]) points

    Returns:
        EAR, or NEUTRAL_EAR for fewer than six points or a zero-width eye
    """
    if eye_points is None or len(eye_points) < 6:
        return NEUTRAL_EAR

    horizontal = euclidean_distance(eye_points[0], eye_points[3])
    if horizontal == 0:
        return NEUTRAL_EAR

    vertical_1 = euclidean_distance(eye_points[1], eye_points[5])
    vertical_2 = euclidean_distance(eye_points[2], eye_points[4])

    return (vertical_1 + vertical_2) / (2.0 * horizontal)


@dataclass
class _BlinkState:
    history: Deque[int] = field(default_factory=deque)
    last_blink_ms: Optional[int] = None
    blink_count: int = 0
    was_closed: bool = False


class BlinkDetector:
    """
    Counts blinks on the open -> closed transition

    A blink is only counted when at least debounce_ms have passed since the
    previous counted blink.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = (config or Config()).validate()
        self.blink_config = self.config.blink
        self.threshold = self.blink_config.threshold
        self.debounce_ms = self.blink_config.debounce_ms
        self.window_ms = self.blink_config.window_ms

        self._state = _BlinkState()

        logger.info(
            f"BlinkDetector initialized: EAR threshold {self.threshold}, "
            f"debounce {self.debounce_ms:.0f} ms, window {self.window_ms / 1000:.0f}s"
        )

    def process(self, points: np.ndarray, timestamp_ms: int) -> BlinkResult:
        """
        Run blink detection on a full landmark array

        Args:
            points: (N, 3) normalised landmark array
            timestamp_ms: Frame time in milliseconds

        Returns:
            BlinkResult for this frame
        """
        left_eye = select_points(points, LEFT_EYE)
        right_eye = select_points(points, RIGHT_EYE)
        return self.update(left_eye, right_eye, timestamp_ms)

    def update(self, left_eye, right_eye, timestamp_ms: int) -> BlinkResult:
        """
        Run blink detection on explicit eye contours

        Args:
            left_eye: Six ordered left eye points, or None
            right_eye: Six ordered right eye points, or None
            timestamp_ms: Frame time in milliseconds

        Returns:
            BlinkResult for this frame
        """
        state = self._state

        left_ear = eye_aspect_ratio(left_eye)
        right_ear = eye_aspect_ratio(right_eye)
        ear = (left_ear + right_ear) / 2.0

        is_closed = ear < self.threshold

        if is_closed and not state.was_closed:
            if state.last_blink_ms is None or timestamp_ms - state.last_blink_ms >= self.debounce_ms:
                state.blink_count += 1
                state.history.append(timestamp_ms)
                state.last_blink_ms = timestamp_ms
                logger.debug(f"Blink #{state.blink_count} at {timestamp_ms} ms (EAR {ear:.3f})")

        state.was_closed = is_closed

        return BlinkResult(
            ear=ear,
            left_ear=left_ear,
            right_ear=right_ear,
            is_blinking=is_closed,
            blink_rate=self.blink_rate(timestamp_ms),
            blink_count=state.blink_count,
        )

    def _purge(self, now_ms: int):
        cutoff = now_ms - self.window_ms
        history = self._state.history
        while history and history[0] < cutoff:
            history.popleft()

    def blink_rate(self, now_ms: int) -> float:
        """
        Blinks per minute over the retained window

        Two or more events give the interval rate between the oldest and
        newest event. A single event gives 60 / seconds since it, once at
        least one second has passed.
        """
        self._purge(now_ms)
        history = self._state.history

        if len(history) >= 2:
            span_s = (history[-1] - history[0]) / 1000.0
            if span_s <= 0:
                return 0.0
            return (len(history) - 1) / span_s * 60.0

        if len(history) == 1:
            elapsed_s = (now_ms - history[0]) / 1000.0
            if elapsed_s < 1.0:
                return 0.0
            return 60.0 / elapsed_s

        return 0.0

    @property
    def blink_count(self) -> int:
        return self._state.blink_count

    @property
    def history_size(self) -> int:
        return len(self._state.history)

    def reset(self):
        """Clear blink history, counters and edge state"""
        self._state = _BlinkState()
        logger.info("BlinkDetector reset")
