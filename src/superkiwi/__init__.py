"""
SuperKiwi - contactless biometric signal analysis
Heart rate (rPPG), HRV, blink rate and focus score from face landmarks
"""

__version__ = "2.0.0"
__author__ = "SuperKiwi"

from . import config
from . import utils
from . import results
from . import signal_buffer
from . import signal_processor
from . import hrv
from . import blink_detector
from . import focus
from . import face_geometry
from . import roi
from . import pipeline

from .config import Config, ConfigError, load_config
from .pipeline import BiometricPipeline
from .results import (
    BlinkResult,
    FocusScoreResult,
    FrameResult,
    GazeResult,
    HeadPoseResult,
    HeartRateResult,
    HRVStats,
    NotReady,
    NotReadyReason,
    Ready,
)

INFO = {
    "name": "SuperKiwi",
    "version": __version__,
    "description": "Contactless biometric analysis - heart rate, HRV, blinks, gaze and focus",
}

__all__ = [
    "config",
    "utils",
    "results",
    "signal_buffer",
    "signal_processor",
    "hrv",
    "blink_detector",
    "focus",
    "face_geometry",
    "roi",
    "pipeline",
    "BiometricPipeline",
    "Config",
    "ConfigError",
    "load_config",
    "BlinkResult",
    "FocusScoreResult",
    "FrameResult",
    "GazeResult",
    "HeadPoseResult",
    "HeartRateResult",
    "HRVStats",
    "NotReady",
    "NotReadyReason",
    "Ready",
    "INFO",
]
