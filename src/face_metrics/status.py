"""
Detection Status Classification

Deterministic rules (no ML) mapping a metrics record to a discrete state
used for user-facing alerts.
"""

import math
from typing import Optional

from .config import ClassifierThresholds
from .errors import ContractViolation
from .types import DetectionStatus, FaceMetrics, RawDetection


class RangeEstimator:
    """
    Rough distance-from-camera estimate derived from the face box size.

        range = scale * min(image_width, image_height) / max(box_w_px, box_h_px)

    The value has no physical unit. With the default scale of 40 and the
    default classifier thresholds, a face whose larger side covers less than
    about 27% of the short image side is too far, more than 80% too close.
    """

    def __init__(self, scale: float = 40.0):
        if scale <= 0:
            raise ContractViolation("Range scale must be positive")
        self.scale = scale

    def estimate(self, detection: RawDetection) -> float:
        """
        Estimate range for one detection.

        Returns:
            Range estimate (inf for a degenerate, zero-sized box)

        Raises:
            ContractViolation: If the image dimensions are not positive
        """
        if detection.image_width <= 0 or detection.image_height <= 0:
            raise ContractViolation(
                f"Image dimensions must be positive "
                f"(got {detection.image_width}x{detection.image_height})"
            )
        box = detection.bounding_box_px
        face_size = max(box.width, box.height)
        if face_size <= 0:
            return math.inf
        image_size = min(detection.image_width, detection.image_height)
        return self.scale * image_size / face_size


class DetectionStatusClassifier:
    """
    Threshold rules, first match wins:

    1. no face
    2. range above too_far_range
    3. range below too_close_range
    4. any angle beyond max_alignment_angle
    5. detected
    """

    def __init__(self, thresholds: Optional[ClassifierThresholds] = None):
        self.thresholds = thresholds or ClassifierThresholds()
        self.thresholds.validate()

    def classify(self, metrics: FaceMetrics,
                 range_estimate: Optional[float] = None) -> DetectionStatus:
        """
        Classify a metrics record.

        Args:
            metrics: Metrics for the current frame
            range_estimate: Value from RangeEstimator; range rules are
                skipped when None

        Returns:
            DetectionStatus
        """
        t = self.thresholds

        if metrics.detection_confidence == 0:
            return DetectionStatus.NO_FACE

        if range_estimate is not None:
            if range_estimate > t.too_far_range:
                return DetectionStatus.TOO_FAR
            if range_estimate < t.too_close_range:
                return DetectionStatus.TOO_CLOSE

        if (abs(metrics.pitch) > t.max_alignment_angle or
                abs(metrics.roll) > t.max_alignment_angle or
                abs(metrics.yaw) > t.max_alignment_angle):
            return DetectionStatus.MISALIGNED

        return DetectionStatus.DETECTED
