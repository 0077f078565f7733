import numpy as np
import pytest

from superkiwi import face_geometry as fg

EYE_WIDTH = 0.06
EYE_Y = 0.45


def _place_eye(points, indices, outer_x, direction, ear):
    """Lay out a six-point contour whose aspect ratio is exactly ear"""
    half_height = ear * EYE_WIDTH / 2.0
    p0, p1, p2, p3, p4, p5 = indices
    step = EYE_WIDTH / 3.0 * direction

    points[p0] = (outer_x, EYE_Y, 0.0)
    points[p3] = (outer_x + 3 * step, EYE_Y, 0.0)
    points[p1] = (outer_x + step, EYE_Y - half_height, 0.0)
    points[p5] = (outer_x + step, EYE_Y + half_height, 0.0)
    points[p2] = (outer_x + 2 * step, EYE_Y - half_height, 0.0)
    points[p4] = (outer_x + 2 * step, EYE_Y + half_height, 0.0)


def build_face(ear=0.3, count=468):
    points = np.full((count, 3), 0.5)
    points[:, 2] = 0.0

    _place_eye(points, fg.LEFT_EYE, 0.40, 1, ear)
    _place_eye(points, fg.RIGHT_EYE, 0.60, -1, ear)

    points[fg.NOSE_TIP] = (0.5, 0.55, 0.0)
    points[fg.CHIN] = (0.5, 0.75, 0.0)
    points[fg.FOREHEAD_TOP] = (0.5, 0.25, 0.0)
    points[fg.LEFT_CHEEK[0]] = (0.35, 0.6, 0.0)
    points[fg.RIGHT_CHEEK[0]] = (0.65, 0.6, 0.0)
    return points


@pytest.fixture
def make_face():
    return build_face


@pytest.fixture
def open_face():
    return build_face(ear=0.3)


@pytest.fixture
def closed_face():
    return build_face(ear=0.1)


@pytest.fixture
def make_frame():
    def _make(green=140.0, height=60, width=80):
        frame = np.empty((height, width, 3), dtype=np.float32)
        frame[:, :, 0] = 90.0  # B
        frame[:, :, 1] = green  # G
        frame[:, :, 2] = 180.0  # R
        return frame

    return _make


def sinusoid(freq_hz, n_samples, fps=30, amplitude=2.0, offset=120.0):
    t = np.arange(n_samples) / fps
    return offset + amplitude * np.sin(2.0 * np.pi * freq_hz * t)


@pytest.fixture
def make_sinusoid():
    return sinusoid
