"""
rPPG Signal Processing Pipeline
Linear detrending, single-pole band-pass filtering and FFT peak extraction
for heart rate estimation from a green-channel colour trace
"""

from dataclasses import dataclass
import logging
import numbers
from typing import Optional

import numpy as np
from scipy.signal import lfilter

from .config import Config
from .results import HeartRateResult, NotReady, NotReadyReason, Ready
from .signal_buffer import SignalBuffer
from .utils import clamp

logger = logging.getLogger(__name__)


@dataclass
class SpectralPeak:
    """Dominant in-band frequency of a signal"""

    frequency_hz: float
    magnitude: float
    total_power: float


def detrend_linear(signal_data: np.ndarray) -> np.ndarray:
    """
    Remove illumination drift with a least-squares line over the sample index

    Args:
        signal_data: Input signal

    Returns:
        Detrended signal
    """
    signal_data = np.asarray(signal_data, dtype=np.float64)
    if len(signal_data) < 2:
        return signal_data

    x = np.arange(len(signal_data))
    slope, intercept = np.polyfit(x, signal_data, 1)
    return signal_data - (slope * x + intercept)


def _rc_time_constant(cutoff_hz: float) -> float:
    return 1.0 / (2.0 * np.pi * cutoff_hz)


def highpass_filter(signal_data: np.ndarray, cutoff_hz: float, fps: float) -> np.ndarray:
    """
    First-order RC high-pass filter

    y[i] = a * (y[i-1] + x[i] - x[i-1]), seeded with y[0] = x[0]

    Args:
        signal_data: Input signal
        cutoff_hz: Cutoff frequency
        fps: Sample rate

    Returns:
        Filtered signal
    """
    signal_data = np.asarray(signal_data, dtype=np.float64)
    if len(signal_data) == 0:
        return signal_data

    rc = _rc_time_constant(cutoff_hz)
    dt = 1.0 / fps
    alpha = rc / (rc + dt)

    # Initial state chosen so the first output equals the first input
    zi = [(1.0 - alpha) * signal_data[0]]
    filtered, _ = lfilter([alpha, -alpha], [1.0, -alpha], signal_data, zi=zi)
    return filtered


def lowpass_filter(signal_data: np.ndarray, cutoff_hz: float, fps: float) -> np.ndarray:
    """
    First-order RC low-pass filter

    y[i] = y[i-1] + a * (x[i] - y[i-1]), seeded with y[0] = x[0]

    Args:
        signal_data: Input signal
        cutoff_hz: Cutoff frequency
        fps: Sample rate

    Returns:
        Filtered signal
    """
    signal_data = np.asarray(signal_data, dtype=np.float64)
    if len(signal_data) == 0:
        return signal_data

    rc = _rc_time_constant(cutoff_hz)
    dt = 1.0 / fps
    alpha = dt / (rc + dt)

    zi = [(1.0 - alpha) * signal_data[0]]
    filtered, _ = lfilter([alpha], [1.0, -(1.0 - alpha)], signal_data, zi=zi)
    return filtered


def bandpass_filter(
    signal_data: np.ndarray, low_hz: float, high_hz: float, fps: float
) -> np.ndarray:
    """High-pass at low_hz followed by low-pass at high_hz"""
    return lowpass_filter(highpass_filter(signal_data, low_hz, fps), high_hz, fps)


def next_power_of_two(n: int) -> int:
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


def find_spectral_peak(
    signal_data: np.ndarray, fps: float, min_hz: float, max_hz: float
) -> Optional[SpectralPeak]:
    """
    Locate the strongest frequency bin inside [min_hz, max_hz]

    The signal is zero-padded to the next power of two before the DFT.

    Args:
        signal_data: Filtered signal
        fps: Sample rate
        min_hz: Lower edge of the search band
        max_hz: Upper edge of the search band

    Returns:
        SpectralPeak, or None if no in-band bin carries energy
    """
    n_fft = next_power_of_two(len(signal_data))
    magnitudes = np.abs(np.fft.rfft(signal_data, n=n_fft))[: n_fft // 2]
    freqs = np.arange(len(magnitudes)) * (fps / n_fft)

    in_band = (freqs >= min_hz) & (freqs <= max_hz)
    if not np.any(in_band):
        return None

    band_freqs = freqs[in_band]
    band_magnitudes = magnitudes[in_band]

    peak_idx = int(np.argmax(band_magnitudes))
    peak_magnitude = float(band_magnitudes[peak_idx])
    if peak_magnitude <= 0:
        return None

    return SpectralPeak(
        frequency_hz=float(band_freqs[peak_idx]),
        magnitude=peak_magnitude,
        total_power=float(np.sum(band_magnitudes)),
    )


def peak_signal_quality(peak: SpectralPeak, scale: float) -> float:
    """
    Peak magnitude against the rest of the in-band power, mapped into [0, 1]
    """
    remainder = peak.total_power - peak.magnitude
    if remainder <= 0:
        return 1.0
    return clamp((peak.magnitude / remainder) / scale, 0.0, 1.0)


@dataclass
class _RPPGState:
    buffer: SignalBuffer
    last_bpm: Optional[float] = None
    signal_quality: float = 0.0


class RPPGEstimator:
    """
    Heart rate from a sliding window of green-channel samples
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = (config or Config()).validate()
        self.fps = self.config.fps
        self.rppg_config = self.config.rppg

        self.min_freq = self.rppg_config.min_heart_rate / 60.0
        self.max_freq = self.rppg_config.max_heart_rate / 60.0
        self.min_samples = self.rppg_config.buffer_size * self.rppg_config.ready_ratio

        self._state = self._new_state()

        logger.info(f"RPPGEstimator initialized: FPS={self.fps}")
        logger.info(
            f"Buffer: {self.rppg_config.buffer_size} samples "
            f"({self.rppg_config.buffer_size / self.fps:.1f}s), "
            f"band {self.rppg_config.min_heart_rate}-{self.rppg_config.max_heart_rate} BPM"
        )

    def _new_state(self) -> _RPPGState:
        return _RPPGState(buffer=SignalBuffer(self.rppg_config.buffer_size))

    def add_signal(self, value: float, timestamp_ms: int):
        """
        Append a green-channel sample to the sliding window

        Args:
            value: Averaged green channel value
            timestamp_ms: Capture time in milliseconds
        """
        if not isinstance(value, numbers.Real):
            raise TypeError(f"signal value must be a real number, got {type(value).__name__}")

        if not np.isfinite(value):
            logger.debug(f"Dropped non-finite signal sample: {value}")
            return

        self._state.buffer.append(value, timestamp_ms)

    def compute_heart_rate(self) -> HeartRateResult:
        """
        Estimate heart rate from the current window

        Returns:
            HeartRateResult; not ready while the window is filling or when
            no usable spectral peak exists
        """
        state = self._state

        if len(state.buffer) < self.min_samples:
            return self._not_ready(NotReadyReason.INSUFFICIENT_DATA)

        try:
            peak = self._estimate_peak(state.buffer.values())
        except (ArithmeticError, ValueError, np.linalg.LinAlgError) as e:
            logger.warning(f"Heart rate estimation failed: {e}")
            return self._not_ready(NotReadyReason.NUMERICAL_FAILURE)

        if peak is None:
            return self._not_ready(NotReadyReason.NO_SPECTRAL_PEAK)

        bpm = float(round(peak.frequency_hz * 60.0))
        state.signal_quality = peak_signal_quality(peak, self.rppg_config.quality_scale)
        state.last_bpm = bpm

        logger.debug(
            f"Spectral peak {peak.frequency_hz:.3f} Hz -> {bpm:.0f} BPM, "
            f"quality {state.signal_quality:.2f}, "
            f"measured rate {state.buffer.effective_fps()}"
        )

        return HeartRateResult(
            reading=Ready(bpm),
            signal_quality=state.signal_quality,
            beat_interval_ms=60000.0 / bpm,
        )

    def _estimate_peak(self, signal_data: np.ndarray) -> Optional[SpectralPeak]:
        if not np.all(np.isfinite(signal_data)):
            raise FloatingPointError("non-finite samples in buffer")

        with np.errstate(divide="raise", over="raise", invalid="raise"):
            detrended = detrend_linear(signal_data)
            filtered = bandpass_filter(detrended, self.min_freq, self.max_freq, self.fps)
            return find_spectral_peak(filtered, self.fps, self.min_freq, self.max_freq)

    def _not_ready(self, reason: NotReadyReason) -> HeartRateResult:
        return HeartRateResult(
            reading=NotReady(self._state.last_bpm, reason),
            signal_quality=0.0,
            beat_interval_ms=None,
        )

    @property
    def last_bpm(self) -> Optional[float]:
        return self._state.last_bpm

    @property
    def signal_quality(self) -> float:
        return self._state.signal_quality

    @property
    def sample_count(self) -> int:
        return len(self._state.buffer)

    def reset(self):
        """Reset buffer and estimates"""
        self._state = self._new_state()
        logger.info("RPPGEstimator reset")
