"""
Overlay Coordinate Mapping Module - OverlayMapper Class

Maps normalized face-space points and rectangles into display space given
the current sensor rotation and mirroring.

The mapping is one affine matrix built by composition:

    T(+0.5, +0.5) . R(-rotation) . S(mirror) . T(-0.5, -0.5)

Rotation is negated because the matrix maps sensor space into display
space, the inverse of how the sensor itself is rotated. Only quarter turns
are supported; any other angle raises ContractViolation instead of
producing skewed geometry.

Author: Face Metrics Tool
License: Personal/Educational Use Only
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .errors import ContractViolation
from .types import BoundingBox, FaceMetrics, Landmark, Point, TransformState

logger = logging.getLogger(__name__)

# (cos, sin) for each quarter turn; exact so that 90-degree multiples map exactly
_QUARTER_TURNS = {
    0: (1.0, 0.0),
    90: (0.0, 1.0),
    180: (-1.0, 0.0),
    270: (0.0, -1.0),
}


def normalize_rotation(rotation_degrees: int) -> int:
    """
    Reduce a rotation into [0, 360) and check it is a quarter turn.

    Raises:
        ContractViolation: If the reduced angle is not 0, 90, 180 or 270
    """
    normalized = ((rotation_degrees % 360) + 360) % 360
    if normalized not in _QUARTER_TURNS:
        raise ContractViolation(
            f"Rotation must be a multiple of 90 degrees (got {rotation_degrees})"
        )
    return int(normalized)


def translation_matrix(dx: float, dy: float) -> np.ndarray:
    return np.array([
        [1.0, 0.0, dx],
        [0.0, 1.0, dy],
        [0.0, 0.0, 1.0],
    ])


def scale_matrix(sx: float, sy: float) -> np.ndarray:
    return np.array([
        [sx, 0.0, 0.0],
        [0.0, sy, 0.0],
        [0.0, 0.0, 1.0],
    ])


def rotation_matrix(degrees: int) -> np.ndarray:
    """Counter-clockwise rotation by a quarter-turn multiple."""
    cos, sin = _QUARTER_TURNS[normalize_rotation(degrees)]
    return np.array([
        [cos, -sin, 0.0],
        [sin, cos, 0.0],
        [0.0, 0.0, 1.0],
    ])


def build_transform(state: TransformState) -> np.ndarray:
    """Compose the sensor-to-display matrix for a transform state."""
    mirror = scale_matrix(-1.0 if state.mirrored else 1.0, 1.0)
    return (
        translation_matrix(0.5, 0.5)
        @ rotation_matrix(-state.rotation_degrees)
        @ mirror
        @ translation_matrix(-0.5, -0.5)
    )


@dataclass(frozen=True)
class OverlayGeometry:
    """Display-space geometry ready for a renderer."""

    bounding_box: Optional[BoundingBox] = None
    landmarks: Tuple[Landmark, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.bounding_box is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bounding_box': self.bounding_box.to_dict() if self.bounding_box else None,
            'landmarks': [
                {'type': lm.type.value, **lm.position.to_dict()}
                for lm in self.landmarks
            ],
        }


class OverlayMapper:
    """
    Applies the current TransformState to normalized geometry.

    The state and its matrix are swapped together as one immutable pair, and
    each map call reads that pair once, so a concurrent set_transform takes
    effect between calls and never in the middle of one.
    """

    def __init__(self, mirrored: bool = False, rotation_degrees: int = 0):
        self._current: Tuple[TransformState, np.ndarray] = self._prepare(
            mirrored, rotation_degrees
        )

    @staticmethod
    def _prepare(mirrored: bool, rotation_degrees: int) -> Tuple[TransformState, np.ndarray]:
        state = TransformState(bool(mirrored), normalize_rotation(rotation_degrees))
        matrix = build_transform(state)
        matrix.setflags(write=False)
        return state, matrix

    def set_transform(self, mirrored: bool, rotation_degrees: int) -> None:
        """
        Update mirroring and rotation.

        Args:
            mirrored: Whether the sensor image is mirrored (front camera)
            rotation_degrees: Sensor rotation; reduced modulo 360

        Raises:
            ContractViolation: If the rotation is not a quarter turn
        """
        current = self._prepare(mirrored, rotation_degrees)
        if current[0] != self._current[0]:
            logger.debug(f"Overlay transform changed: {self._current[0]} -> {current[0]}")
        self._current = current

    @property
    def state(self) -> TransformState:
        return self._current[0]

    @property
    def matrix(self) -> np.ndarray:
        return self._current[1]

    def map_point(self, point: Point) -> Point:
        _, matrix = self._current
        return _apply_point(matrix, point)

    def map_rect(self, rect: BoundingBox) -> BoundingBox:
        """
        Map a rectangle by transforming its four corners and taking the
        axis-aligned bounds of the result.
        """
        _, matrix = self._current
        return _apply_rect(matrix, rect)

    def map_metrics(self, metrics: FaceMetrics) -> OverlayGeometry:
        """
        Map the renderable parts of a metrics record.

        Returns:
            OverlayGeometry; empty for the no-face sentinel
        """
        if not metrics.is_face:
            return OverlayGeometry()

        _, matrix = self._current
        return OverlayGeometry(
            bounding_box=_apply_rect(matrix, metrics.bounding_box),
            landmarks=tuple(
                Landmark(lm.type, _apply_point(matrix, lm.position))
                for lm in metrics.landmarks
            ),
        )


def _apply_point(matrix: np.ndarray, point: Point) -> Point:
    x, y, _ = matrix @ np.array([point.x, point.y, 1.0])
    return Point(float(x), float(y))


def _apply_rect(matrix: np.ndarray, rect: BoundingBox) -> BoundingBox:
    corners = np.array([
        [rect.left, rect.top, 1.0],
        [rect.right, rect.top, 1.0],
        [rect.right, rect.bottom, 1.0],
        [rect.left, rect.bottom, 1.0],
    ]).T
    mapped = matrix @ corners
    xs, ys = mapped[0], mapped[1]
    return BoundingBox(
        left=float(xs.min()),
        top=float(ys.min()),
        right=float(xs.max()),
        bottom=float(ys.max()),
    )
