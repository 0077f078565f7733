import numpy as np
import pytest

from superkiwi import BiometricPipeline, Config, FrameResult, NotReadyReason
from superkiwi.roi import RGBMean
from superkiwi.utils import set_debug

FPS = 30


def frame_time(i):
    return 1000 + int(i * 1000 / FPS)


class ScriptedSampler:
    """Returns a green channel value from a precomputed trace"""

    def __init__(self, trace):
        self.trace = list(trace)
        self.calls = 0

    def __call__(self, frame, box):
        value = self.trace[self.calls % len(self.trace)]
        self.calls += 1
        return RGBMean(r=180.0, g=value, b=90.0)


@pytest.fixture
def pipeline():
    return BiometricPipeline(Config())


def assert_empty(result, timestamp_ms):
    assert result == FrameResult.empty(timestamp_ms)
    assert result.face_detected is False
    assert result.heart_rate.bpm is None
    assert result.heart_rate.is_ready is False
    assert result.heart_rate.reason is NotReadyReason.NO_FACE
    assert result.hrv is None
    assert result.blink.blink_count == 0
    assert result.blink.ear == 0.0
    assert result.gaze.center == (0.5, 0.5)
    assert result.gaze.stability == 0.0
    assert (result.head_pose.pitch, result.head_pose.yaw, result.head_pose.roll) == (0, 0, 0)
    assert result.focus.score == 0.0
    assert result.focus.state == "low"


@pytest.mark.parametrize("landmarks", [None, [], np.zeros((467, 3)), "garbage", [(0.1,)] * 500])
def test_no_face_returns_empty_shape(pipeline, make_frame, landmarks):
    result = pipeline.process_frame(make_frame(), landmarks, 5000)

    assert_empty(result, 5000)
    assert pipeline.rppg.sample_count == 0
    assert pipeline.focus.history_size == 0


@pytest.mark.parametrize("index", [10, 1, 152, 33])
def test_non_finite_landmarks_are_no_face(pipeline, make_frame, make_face, index):
    face = make_face()
    face[index] = (np.nan, np.nan, 0.0)

    result = pipeline.process_frame(make_frame(), face, 5000)

    assert_empty(result, 5000)
    assert pipeline.rppg.sample_count == 0


def test_face_frame_populates_every_section(pipeline, make_frame, open_face):
    result = pipeline.process_frame(make_frame(), open_face, 1000)

    assert result.face_detected
    assert result.timestamp_ms == 1000
    assert not result.heart_rate.is_ready
    assert result.heart_rate.reason is NotReadyReason.INSUFFICIENT_DATA
    assert result.hrv is None
    assert result.blink.ear == pytest.approx(0.3)
    assert result.gaze.stability > 0.9
    assert result.focus.face_score == 1.0
    assert pipeline.rppg.sample_count == 1


def test_accepts_landmark_objects(pipeline, make_frame, open_face):
    class Landmark:
        def __init__(self, x, y, z):
            self.x, self.y, self.z = x, y, z

    landmarks = [Landmark(*row) for row in open_face]
    assert pipeline.process_frame(make_frame(), landmarks, 0).face_detected


def test_default_sampler_reads_green_from_frame(pipeline, make_frame, open_face):
    for i in range(5):
        pipeline.process_frame(make_frame(green=100.0 + i), open_face, frame_time(i))

    np.testing.assert_allclose(pipeline.rppg._state.buffer.values(), [100, 101, 102, 103, 104])


def test_sampler_failure_skips_sample(make_frame, open_face):
    pipeline = BiometricPipeline(Config(), sampler=lambda frame, box: None)
    result = pipeline.process_frame(make_frame(), open_face, 0)

    assert result.face_detected
    assert pipeline.rppg.sample_count == 0


def test_pulse_stream_reaches_heart_rate_and_hrv(make_frame, open_face, make_sinusoid):
    sampler = ScriptedSampler(make_sinusoid(1.2, 400, fps=FPS))
    pipeline = BiometricPipeline(Config(), sampler=sampler)
    frame = make_frame()

    results = [pipeline.process_frame(frame, open_face, frame_time(i)) for i in range(300)]

    assert not results[238].heart_rate.is_ready
    assert results[239].heart_rate.is_ready
    assert abs(results[-1].heart_rate.bpm - 72) <= 60.0 * FPS / 512

    # One beat interval per ready frame; HRV needs twenty of them
    assert results[257].hrv is None
    assert results[258].hrv is not None
    assert pipeline.is_hrv_ready()
    assert results[-1].hrv == pipeline.last_hrv


def test_last_hrv_survives_lost_face(make_frame, open_face, make_sinusoid):
    sampler = ScriptedSampler(make_sinusoid(1.2, 400, fps=FPS))
    pipeline = BiometricPipeline(Config(), sampler=sampler)
    frame = make_frame()
    for i in range(300):
        pipeline.process_frame(frame, open_face, frame_time(i))

    empty = pipeline.process_frame(frame, None, frame_time(300))

    assert not empty.face_detected
    assert empty.heart_rate.bpm is None
    assert empty.hrv is not None
    assert empty.hrv == pipeline.last_hrv


def test_blinks_feed_focus(pipeline, make_frame, open_face, closed_face):
    frame = make_frame()
    t = 0
    for _ in range(4):
        pipeline.process_frame(frame, open_face, t)
        pipeline.process_frame(frame, closed_face, t + 100)
        t += 3500

    result = pipeline.process_frame(frame, open_face, t)

    assert result.blink.blink_count == 4
    assert result.blink.blink_rate == pytest.approx(3 / 10.5 * 60)
    assert result.focus.blink_score == 1.0
    assert result.focus.state == "high"
    assert pipeline.get_average_focus_score() > 0


def test_reset_matches_fresh_pipeline(make_frame, open_face, closed_face, make_sinusoid):
    sampler = ScriptedSampler(make_sinusoid(1.2, 400, fps=FPS))
    pipeline = BiometricPipeline(Config(), sampler=sampler)
    frame = make_frame()
    for i in range(300):
        face = closed_face if i % 90 == 0 else open_face
        pipeline.process_frame(frame, face, frame_time(i))

    pipeline.reset()
    fresh = BiometricPipeline(Config(), sampler=ScriptedSampler([120.0]))

    assert pipeline.last_hrv is fresh.last_hrv is None
    assert pipeline.is_hrv_ready() == fresh.is_hrv_ready()
    assert pipeline.get_average_focus_score() == fresh.get_average_focus_score()
    assert pipeline.rppg.sample_count == fresh.rppg.sample_count
    assert pipeline.blink.blink_count == fresh.blink.blink_count
    assert pipeline.hrv.interval_count == fresh.hrv.interval_count


def test_to_dict_is_plain(pipeline, make_frame, open_face):
    data = pipeline.process_frame(make_frame(), open_face, 42).to_dict()

    assert data["timestamp_ms"] == 42
    assert data["face_detected"] is True
    assert data["heart_rate"]["reason"] == "insufficient_data"
    assert set(data) == {
        "timestamp_ms", "face_detected", "heart_rate", "hrv", "blink", "gaze", "head_pose", "focus",
    }


def test_debug_flag_only_changes_logging(make_frame, open_face, caplog):
    quiet = BiometricPipeline(Config())
    loud = BiometricPipeline(Config.from_options(debug=True))

    try:
        with caplog.at_level("DEBUG", logger="superkiwi"):
            a = quiet.process_frame(make_frame(), open_face, 0)
            b = loud.process_frame(make_frame(), open_face, 0)
    finally:
        set_debug(False)

    assert a == b
    assert any("bpm=" in record.getMessage() for record in caplog.records)
