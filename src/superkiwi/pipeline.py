"""
Per-frame biometric pipeline
Wires landmarks and frame pixels through the rPPG, HRV, blink, gaze,
head pose and focus analyzers
"""

import logging
import time
from typing import Optional

import numpy as np

from .blink_detector import BlinkDetector
from .config import Config
from .face_geometry import (
    MIN_FACE_LANDMARKS,
    GazeTracker,
    HeadPoseEstimator,
    landmarks_to_array,
)
from .focus import FocusAggregator
from .hrv import HRVEngine
from .results import FrameResult, HRVStats
from .roi import PixelSampler, roi_bounding_box, sample_region
from .signal_processor import RPPGEstimator
from .utils import set_debug

logger = logging.getLogger(__name__)


class BiometricPipeline:
    """Runs every analyzer once per video frame"""

    def __init__(self, config: Optional[Config] = None, sampler: PixelSampler = sample_region):
        self.config = (config or Config()).validate()
        self.sampler = sampler

        if self.config.debug:
            set_debug(True)

        self.rppg = RPPGEstimator(self.config)
        self.hrv = HRVEngine(self.config)
        self.blink = BlinkDetector(self.config)
        self.gaze = GazeTracker()
        self.head_pose = HeadPoseEstimator()
        self.focus = FocusAggregator(self.config)

        self._last_hrv: Optional[HRVStats] = None

        logger.info(f"BiometricPipeline initialized: FPS={self.config.fps}")
        logger.debug(f"Configuration: {self.config.to_dict()}")

    def process_frame(self, frame, landmarks, timestamp_ms: Optional[int] = None) -> FrameResult:
        """
        Process one video frame

        Args:
            frame: BGR image handed to the pixel sampler
            landmarks: Face Mesh landmarks for this frame, or None
            timestamp_ms: Frame time in milliseconds; wall clock if omitted

        Returns:
            FrameResult; the empty shape when no face is detected
        """
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)

        points = self._face_points(landmarks)
        if points is None:
            logger.debug(f"No face at {timestamp_ms} ms")
            return FrameResult.empty(timestamp_ms, hrv=self._last_hrv)

        # 1. rPPG
        box = roi_bounding_box(points)
        if box is not None:
            rgb = self.sampler(frame, box)
            if rgb is not None:
                self.rppg.add_signal(float(rgb.g), timestamp_ms)
        heart_rate = self.rppg.compute_heart_rate()

        # 2. HRV
        if heart_rate.beat_interval_ms is not None:
            self.hrv.add_interval(heart_rate.beat_interval_ms)
        hrv = self.hrv.compute(timestamp_ms)
        if hrv is not None:
            self._last_hrv = hrv

        # 3. Blink
        blink = self.blink.process(points, timestamp_ms)

        # 4. Gaze and head pose
        gaze = self.gaze.analyze(points)
        head_pose = self.head_pose.estimate(points)

        # 5. Focus
        focus = self.focus.calculate(True, gaze.stability, blink.blink_rate, timestamp_ms)

        logger.debug(
            f"t={timestamp_ms} bpm={heart_rate.bpm} ready={heart_rate.is_ready} "
            f"ear={blink.ear:.3f} blinks={blink.blink_count} focus={focus.score:.2f}"
        )

        return FrameResult(
            timestamp_ms=timestamp_ms,
            face_detected=True,
            heart_rate=heart_rate,
            hrv=self._last_hrv,
            blink=blink,
            gaze=gaze,
            head_pose=head_pose,
            focus=focus,
        )

    def _face_points(self, landmarks) -> Optional[np.ndarray]:
        if landmarks is None:
            return None

        try:
            points = landmarks_to_array(landmarks)
        except ValueError as e:
            logger.debug(f"Treating malformed landmarks as no face: {e}")
            return None

        if len(points) < MIN_FACE_LANDMARKS:
            return None

        if not np.all(np.isfinite(points)):
            logger.debug("Treating non-finite landmarks as no face")
            return None
        return points

    @property
    def last_hrv(self) -> Optional[HRVStats]:
        return self._last_hrv

    def get_average_focus_score(self) -> float:
        return self.focus.get_average_score()

    def is_hrv_ready(self) -> bool:
        return self.hrv.is_ready()

    def reset(self):
        """Reset all analyzers"""
        self.rppg.reset()
        self.hrv.reset()
        self.blink.reset()
        self.focus.reset()
        self._last_hrv = None
        logger.info("BiometricPipeline reset")
