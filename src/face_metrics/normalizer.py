"""
Geometry Normalizer

Converts pixel-space detection geometry into resolution-independent
coordinates. Dimensions passed in must already be rotation-corrected; no
rotation logic happens here.
"""

import math
from typing import Optional

from .errors import ContractViolation
from .types import BoundingBox, Point


class GeometryNormalizer:
    """Divides pixel geometry by the frame dimensions."""

    def __init__(self, image_width: int, image_height: int):
        if image_width <= 0 or image_height <= 0:
            raise ContractViolation(
                f"Image dimensions must be positive (got {image_width}x{image_height})"
            )
        self.image_width = image_width
        self.image_height = image_height

    def normalize_box(self, box: BoundingBox) -> BoundingBox:
        """Scale a pixel box into [0, 1] on both axes."""
        return BoundingBox(
            left=box.left / self.image_width,
            top=box.top / self.image_height,
            right=box.right / self.image_width,
            bottom=box.bottom / self.image_height,
        )

    def normalize_point(self, point: Point) -> Point:
        return Point(point.x / self.image_width, point.y / self.image_height)

    def center_position(self, box: BoundingBox) -> Point:
        """Box center relative to the image center, in [-0.5, 0.5]."""
        return Point(
            box.center_x / self.image_width - 0.5,
            box.center_y / self.image_height - 0.5,
        )

    def interpupillary_distance(self,
                                left_eye: Optional[Point],
                                right_eye: Optional[Point]) -> float:
        """
        Eye-to-eye distance as a fraction of the image width.

        This is a pixel ratio, not a physical length. Returns 0 when either
        eye is missing.
        """
        if left_eye is None or right_eye is None:
            return 0.0
        distance = math.hypot(left_eye.x - right_eye.x, left_eye.y - right_eye.y)
        return distance / self.image_width
