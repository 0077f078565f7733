"""
Face Mesh landmark geometry
Landmark index sets, landmark normalisation, gaze and head pose estimation
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from .results import GazeResult, GazeVector, HeadPoseResult
from .utils import clamp

logger = logging.getLogger(__name__)

# MediaPipe Face Mesh produces 468 points (478 with refined irises)
MIN_FACE_LANDMARKS = 468

# rPPG regions of interest
FOREHEAD = (10, 151, 9, 337, 299, 333, 298, 301)
LEFT_CHEEK = (116, 117, 118, 123, 147, 213, 192)
RIGHT_CHEEK = (345, 346, 347, 352, 376, 433, 416)

# Six-point eye contours, ordered for the eye aspect ratio
LEFT_EYE = (33, 7, 163, 144, 145, 153)
RIGHT_EYE = (263, 249, 390, 373, 374, 380)

# Head pose anchors
NOSE_TIP = 1
CHIN = 152
LEFT_EYE_OUTER = 33
RIGHT_EYE_OUTER = 263
FOREHEAD_TOP = 10

SCREEN_CENTER = (0.5, 0.5)


def landmarks_to_array(landmarks) -> np.ndarray:
    """
    Normalise a landmark collection to an (N, 3) float array

    Accepts MediaPipe landmark objects (anything with .x and .y, optionally
    .z), (x, y[, z]) sequences or an (N, 2) / (N, 3) array.

    Raises:
        ValueError: if the landmarks cannot be read as points
    """
    try:
        if isinstance(landmarks, np.ndarray):
            points = landmarks.astype(np.float64)
        else:
            rows = []
            for lm in landmarks:
                if hasattr(lm, "x") and hasattr(lm, "y"):
                    z = getattr(lm, "z", 0.0)
                    rows.append((lm.x, lm.y, 0.0 if z is None else z))
                else:
                    coords = tuple(lm)
                    if len(coords) == 2:
                        coords = coords + (0.0,)
                    rows.append(coords[:3])
            points = np.array(rows, dtype=np.float64) if rows else np.empty((0, 3))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Malformed landmarks: {e}") from e

    if points.ndim != 2 or points.shape[1] not in (2, 3):
        raise ValueError(f"Landmarks must have shape (N, 2) or (N, 3), got {points.shape}")

    if points.shape[1] == 2:
        points = np.hstack([points, np.zeros((len(points), 1))])

    return points


def select_points(points: np.ndarray, indices: Sequence[int]) -> Optional[np.ndarray]:
    """Rows of points at indices, or None if any index is out of range"""
    if len(points) == 0 or max(indices) >= len(points):
        return None
    return points[list(indices)]


class GazeTracker:
    """
    Gaze centre and stability from the eye contour points
    """

    MAX_DISTANCE = math.sqrt(0.5 ** 2 + 0.5 ** 2)

    def analyze(self, points: np.ndarray) -> GazeResult:
        """
        Args:
            points: (N, 3) normalised landmark array

        Returns:
            GazeResult; stability is 1 when the eyes sit at the frame centre
        """
        left = select_points(points, LEFT_EYE)
        right = select_points(points, RIGHT_EYE)
        if left is None or right is None:
            return GazeResult()

        left_center = left[:, :2].mean(axis=0)
        right_center = right[:, :2].mean(axis=0)
        cx, cy = (left_center + right_center) / 2.0

        dx = float(cx - SCREEN_CENTER[0])
        dy = float(cy - SCREEN_CENTER[1])
        distance = math.hypot(dx, dy)

        return GazeResult(
            center=(float(cx), float(cy)),
            vector=GazeVector(x=dx, y=dy, distance=distance),
            stability=clamp(1.0 - distance / self.MAX_DISTANCE, 0.0, 1.0),
        )


class HeadPoseEstimator:
    """
    Approximate pitch, yaw and roll from five facial anchors
    """

    def estimate(self, points: np.ndarray) -> HeadPoseResult:
        if len(points) < MIN_FACE_LANDMARKS:
            return HeadPoseResult()

        nose = points[NOSE_TIP]
        chin = points[CHIN]
        left_eye = points[LEFT_EYE_OUTER]
        right_eye = points[RIGHT_EYE_OUTER]
        forehead = points[FOREHEAD_TOP]

        eye_x = (left_eye[0] + right_eye[0]) / 2.0
        eye_y = (left_eye[1] + right_eye[1]) / 2.0

        yaw = math.degrees(math.atan2(nose[0] - eye_x, 0.5))

        face_height = abs(forehead[1] - chin[1])
        pitch = math.degrees(math.atan2(nose[1] - eye_y, face_height))

        roll = math.degrees(math.atan2(right_eye[1] - left_eye[1], right_eye[0] - left_eye[0]))

        return HeadPoseResult(pitch=int(round(pitch)), yaw=int(round(yaw)), roll=int(round(roll)))
