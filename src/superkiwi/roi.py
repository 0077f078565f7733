"""
Skin region of interest and colour sampling
Bounds the forehead and cheek landmarks and averages the frame pixels inside
"""

import logging
from typing import Callable, NamedTuple, Optional, Tuple

import cv2
import numpy as np

from .face_geometry import FOREHEAD, LEFT_CHEEK, RIGHT_CHEEK, select_points

logger = logging.getLogger(__name__)

ROI_INDICES = FOREHEAD + LEFT_CHEEK + RIGHT_CHEEK

# (min_x, min_y, max_x, max_y) in normalised image coordinates
NormalizedBox = Tuple[float, float, float, float]


class RGBMean(NamedTuple):
    r: float
    g: float
    b: float


PixelSampler = Callable[[np.ndarray, NormalizedBox], Optional[RGBMean]]


def roi_bounding_box(points: np.ndarray) -> Optional[NormalizedBox]:
    """
    Bounding box of the forehead and cheek landmarks

    Args:
        points: (N, 3) normalised landmark array

    Returns:
        Normalised box, or None if any ROI landmark is missing
    """
    roi_points = select_points(points, ROI_INDICES)
    if roi_points is None:
        return None

    xs = roi_points[:, 0]
    ys = roi_points[:, 1]
    return float(xs.min()), float(ys.min()), float(xs.max()), float(ys.max())


def sample_region(frame: Optional[np.ndarray], box: NormalizedBox) -> Optional[RGBMean]:
    """
    Average colour of a normalised box in a BGR frame

    Args:
        frame: OpenCV BGR image (H x W x 3)
        box: Normalised (min_x, min_y, max_x, max_y)

    Returns:
        RGBMean, or None if the frame is unusable or the region is empty
    """
    if frame is None or frame.size == 0:
        return None

    if frame.ndim != 3 or frame.shape[2] != 3:
        logger.debug(f"Invalid frame shape: {frame.shape}")
        return None

    if not np.all(np.isfinite(box)):
        logger.debug(f"Non-finite ROI box: {box}")
        return None

    h, w = frame.shape[:2]
    min_x, min_y, max_x, max_y = box

    x1 = int(np.floor(min_x * w))
    y1 = int(np.floor(min_y * h))
    x2 = x1 + max(1, int(np.floor((max_x - min_x) * w)))
    y2 = y1 + max(1, int(np.floor((max_y - min_y) * h)))

    # Clip to frame bounds
    x1, x2 = max(0, x1), min(w, x2)
    y1, y2 = max(0, y1), min(h, y2)

    if x2 <= x1 or y2 <= y1:
        return None

    b, g, r, _ = cv2.mean(frame[y1:y2, x1:x2])
    return RGBMean(r=r, g=g, b=b)
