"""
Result containers produced by the analyzers
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import ClassVar, Generic, Optional, Tuple, TypeVar, Union

T = TypeVar("T")


class NotReadyReason(str, Enum):
    """Why an estimator could not produce a fresh value"""

    INSUFFICIENT_DATA = "insufficient_data"
    NO_SPECTRAL_PEAK = "no_spectral_peak"
    NUMERICAL_FAILURE = "numerical_failure"
    NO_FACE = "no_face"


@dataclass(frozen=True)
class Ready(Generic[T]):
    """A freshly measured value"""

    value: T
    is_ready: ClassVar[bool] = True


@dataclass(frozen=True)
class NotReady(Generic[T]):
    """No fresh value; carries the last measured one, if any"""

    last_known: Optional[T] = None
    reason: NotReadyReason = NotReadyReason.INSUFFICIENT_DATA
    is_ready: ClassVar[bool] = False


Reading = Union[Ready[T], NotReady[T]]


@dataclass(frozen=True)
class HeartRateResult:
    """Heart rate estimate for one frame"""

    reading: Reading[float]
    signal_quality: float = 0.0
    beat_interval_ms: Optional[float] = None

    @property
    def bpm(self) -> Optional[float]:
        if isinstance(self.reading, Ready):
            return self.reading.value
        return self.reading.last_known

    @property
    def is_ready(self) -> bool:
        return self.reading.is_ready

    @property
    def reason(self) -> Optional[NotReadyReason]:
        if isinstance(self.reading, NotReady):
            return self.reading.reason
        return None

    @classmethod
    def empty(cls) -> "HeartRateResult":
        return cls(reading=NotReady(None, NotReadyReason.NO_FACE))

    def to_dict(self) -> dict:
        return {
            "bpm": self.bpm,
            "signal_quality": self.signal_quality,
            "beat_interval_ms": self.beat_interval_ms,
            "is_ready": self.is_ready,
            "reason": self.reason.value if self.reason is not None else None,
        }


@dataclass(frozen=True)
class HRVStats:
    """Heart rate variability statistics, all in milliseconds except pnn50 (%)"""

    sdnn: float
    rmssd: float
    pnn50: float
    stress_index: int
    timestamp_ms: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BlinkResult:
    ear: float = 0.0
    left_ear: float = 0.0
    right_ear: float = 0.0
    is_blinking: bool = False
    blink_rate: float = 0.0
    blink_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class GazeVector:
    x: float = 0.0
    y: float = 0.0
    distance: float = 0.0


@dataclass(frozen=True)
class GazeResult:
    center: Tuple[float, float] = (0.5, 0.5)
    vector: GazeVector = field(default_factory=GazeVector)
    stability: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class HeadPoseResult:
    """Head orientation in whole degrees"""

    pitch: int = 0
    yaw: int = 0
    roll: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class FocusScoreResult:
    score: float = 0.0
    face_score: float = 0.0
    gaze_score: float = 0.0
    blink_score: float = 0.0
    state: str = "low"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class FrameResult:
    """Everything inferred from a single frame"""

    timestamp_ms: int
    face_detected: bool
    heart_rate: HeartRateResult
    hrv: Optional[HRVStats]
    blink: BlinkResult
    gaze: GazeResult
    head_pose: HeadPoseResult
    focus: FocusScoreResult

    @classmethod
    def empty(cls, timestamp_ms: int, hrv: Optional[HRVStats] = None) -> "FrameResult":
        """Result shape used when no face is present; hrv carries the last known stats"""
        return cls(
            timestamp_ms=timestamp_ms,
            face_detected=False,
            heart_rate=HeartRateResult.empty(),
            hrv=hrv,
            blink=BlinkResult(),
            gaze=GazeResult(),
            head_pose=HeadPoseResult(),
            focus=FocusScoreResult(),
        )

    def to_dict(self) -> dict:
        return {
            "timestamp_ms": self.timestamp_ms,
            "face_detected": self.face_detected,
            "heart_rate": self.heart_rate.to_dict(),
            "hrv": self.hrv.to_dict() if self.hrv is not None else None,
            "blink": self.blink.to_dict(),
            "gaze": self.gaze.to_dict(),
            "head_pose": self.head_pose.to_dict(),
            "focus": self.focus.to_dict(),
        }
