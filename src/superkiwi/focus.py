"""
Focus score aggregation from face presence, gaze stability and blink rate
"""

from collections import deque
from dataclasses import dataclass, field
import logging
from typing import Deque, NamedTuple, Optional

import numpy as np

from .config import Config, FocusConfig
from .results import FocusScoreResult
from .utils import clamp

logger = logging.getLogger(__name__)


class FocusSample(NamedTuple):
    score: float
    timestamp_ms: int


def blink_stability(blink_rate: float, optimal_rate: float = 17.5, tolerance: float = 5.0) -> float:
    """
    Score how close a blink rate is to the resting optimum

    1.0 within tolerance of the optimum, decaying linearly towards 0 as the
    deviation approaches twice the optimum. A rate of 0 means no blink data
    and scores 0.
    """
    if blink_rate == 0:
        return 0.0

    deviation = abs(blink_rate - optimal_rate)
    if deviation <= tolerance:
        return 1.0

    normalized = min(deviation / (optimal_rate * 2.0), 1.0)
    return max(0.0, 1.0 - normalized)


def composite_score(
    face_score: float,
    gaze_score: float,
    blink_score: float,
    weights: Optional[FocusConfig] = None,
) -> float:
    """Weighted sum of the three sub-scores, clamped to [0, 1]"""
    weights = weights or FocusConfig()
    score = (
        weights.face_weight * face_score
        + weights.gaze_weight * gaze_score
        + weights.blink_weight * blink_score
    )
    return clamp(score, 0.0, 1.0)


def focus_tier(score: float, high: float = 0.7, medium: float = 0.3) -> str:
    if score >= high:
        return "high"
    if score >= medium:
        return "medium"
    return "low"


@dataclass
class _FocusState:
    history: Deque[FocusSample] = field(default_factory=deque)


class FocusAggregator:
    """
    Per-frame focus score with a trailing-window average
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = (config or Config()).validate()
        self.focus_config = self.config.focus
        self.window_ms = self.focus_config.window_ms

        self._state = _FocusState()

        logger.info(
            f"FocusAggregator initialized: weights face={self.focus_config.face_weight} "
            f"gaze={self.focus_config.gaze_weight} blink={self.focus_config.blink_weight}"
        )

    def calculate(
        self,
        face_detected: bool,
        gaze_stability: float,
        blink_rate: float,
        timestamp_ms: int,
    ) -> FocusScoreResult:
        """
        Combine the per-frame inputs into a focus score

        Args:
            face_detected: Whether a face is present in this frame
            gaze_stability: Gaze stability in [0, 1]
            blink_rate: Blinks per minute
            timestamp_ms: Frame time in milliseconds

        Returns:
            FocusScoreResult with scores rounded to two decimals
        """
        cfg = self.focus_config

        face_score = 1.0 if face_detected else 0.0
        gaze_score = clamp(float(gaze_stability), 0.0, 1.0)
        blink_score = blink_stability(blink_rate, cfg.optimal_blink_rate, cfg.blink_tolerance)

        score = composite_score(face_score, gaze_score, blink_score, cfg)

        history = self._state.history
        history.append(FocusSample(score, timestamp_ms))
        cutoff = timestamp_ms - self.window_ms
        while history and history[0].timestamp_ms < cutoff:
            history.popleft()

        return FocusScoreResult(
            score=round(score, 2),
            face_score=face_score,
            gaze_score=round(gaze_score, 2),
            blink_score=round(blink_score, 2),
            state=focus_tier(score, cfg.high_threshold, cfg.medium_threshold),
        )

    def get_average_score(self) -> float:
        """Mean score over the trailing window, 0 when empty"""
        history = self._state.history
        if not history:
            return 0.0
        return float(np.mean([sample.score for sample in history]))

    @property
    def history_size(self) -> int:
        return len(self._state.history)

    def reset(self):
        """Clear score history"""
        self._state = _FocusState()
        logger.info("FocusAggregator reset")
