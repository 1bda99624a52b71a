"""
Temporal Smoothing Module - TemporalSmoother Class

Damps frame-to-frame jitter by averaging the continuous fields of the most
recent metrics records while keeping the bounding box responsive to the
latest frame.

Author: Face Metrics Tool
License: Personal/Educational Use Only
"""

import logging
from collections import deque
from typing import Deque, List, Tuple

import numpy as np

from .config import ExtractorSettings
from .errors import ContractViolation
from .types import BoundingBox, FaceMetrics, Point

logger = logging.getLogger(__name__)


def _averaged_fields(metrics: FaceMetrics) -> List[float]:
    return [
        metrics.interpupillary_distance,
        metrics.face_width,
        metrics.face_height,
        metrics.face_position.x,
        metrics.face_position.y,
        metrics.pitch,
        metrics.roll,
        metrics.yaw,
        metrics.quality_score,
        metrics.smile_confidence,
        metrics.left_eye_open_confidence,
        metrics.right_eye_open_confidence,
    ]


class TemporalSmoother:
    """
    Bounded-history smoother for FaceMetrics.

    Keeps the last ``window_size`` records (oldest evicted first). Records
    are frozen values, so the window never aliases caller state.
    """

    def __init__(self,
                 window_size: int = 5,
                 box_blend: float = 0.7,
                 smile_threshold: float = ExtractorSettings.smile_threshold,
                 eyes_open_threshold: float = ExtractorSettings.eyes_open_threshold):
        """
        Initialize the smoother.

        Args:
            window_size: Number of frames kept in the window
            box_blend: Weight of the newest raw box in the smoothed box; the
                remainder goes to the box rebuilt from averaged geometry
            smile_threshold: Averaged smile confidence above which
                is_smiling is set
            eyes_open_threshold: Averaged eye confidence above which
                are_eyes_open is set
        """
        if window_size < 1:
            raise ContractViolation("window_size must be >= 1")
        if not 0.0 <= box_blend <= 1.0:
            raise ContractViolation("box_blend must be between 0.0 and 1.0")

        self.window_size = window_size
        self.box_blend = box_blend
        self.smile_threshold = smile_threshold
        self.eyes_open_threshold = eyes_open_threshold

        self._window: Deque[FaceMetrics] = deque(maxlen=window_size)

    def push(self, metrics: FaceMetrics) -> FaceMetrics:
        """
        Record a frame and return the current smoothed estimate.

        Args:
            metrics: Metrics for the newest frame

        Returns:
            Smoothed metrics, or ``metrics`` unchanged when it is the no-face
            sentinel or fewer than two valid frames are in the window
        """
        self._window.append(metrics)

        if not metrics.is_face:
            return metrics

        valid = [m for m in self._window if m.is_face]
        if len(valid) < 2:
            logger.debug(f"Not enough valid frames to smooth ({len(valid)})")
            return metrics

        # Averaging identical records is not exact in floating point
        if all(m == metrics for m in valid):
            return metrics

        return self._smooth(valid)

    def _smooth(self, valid: List[FaceMetrics]) -> FaceMetrics:
        latest = valid[-1]

        means = np.mean(np.array([_averaged_fields(m) for m in valid], dtype=np.float64), axis=0)
        (ipd, width, height, pos_x, pos_y, pitch, roll, yaw,
         quality, smile, left_eye, right_eye) = (float(v) for v in means)

        box = self._blend_box(latest.bounding_box, pos_x, pos_y, width, height)

        return FaceMetrics(
            bounding_box=box,
            interpupillary_distance=ipd,
            face_width=width,
            face_height=height,
            face_position=Point(pos_x, pos_y),
            pitch=pitch,
            roll=roll,
            yaw=yaw,
            quality_score=quality,
            smile_confidence=smile,
            is_smiling=smile > self.smile_threshold,
            left_eye_open_confidence=left_eye,
            right_eye_open_confidence=right_eye,
            are_eyes_open=(left_eye + right_eye) / 2 > self.eyes_open_threshold,
            # Discrete signals are not averaged
            has_glasses=latest.has_glasses,
            landmarks=latest.landmarks,
            detection_confidence=latest.detection_confidence,
        )

    def _blend_box(self, recent: BoundingBox, pos_x: float, pos_y: float,
                   width: float, height: float) -> BoundingBox:
        # Averaged position is centered on the image; shift back to [0, 1]
        center_x = pos_x + 0.5
        center_y = pos_y + 0.5
        averaged = (
            center_x - width / 2,
            center_y - height / 2,
            center_x + width / 2,
            center_y + height / 2,
        )
        w = self.box_blend
        left, top, right, bottom = (
            r * w + a * (1.0 - w) for r, a in zip(recent.as_tuple(), averaged)
        )
        return BoundingBox(left, top, right, bottom).clamped(0.0, 1.0)

    def reset(self) -> None:
        """Forget all history."""
        self._window.clear()

    @property
    def window(self) -> Tuple[FaceMetrics, ...]:
        """Snapshot of the current window, oldest first."""
        return tuple(self._window)

    @property
    def valid_count(self) -> int:
        return sum(1 for m in self._window if m.is_face)

    def __len__(self) -> int:
        return len(self._window)
