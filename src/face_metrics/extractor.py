"""
Metrics Extraction Module - MetricsExtractor Class

Builds one immutable FaceMetrics record per frame from a raw detector
result. Sparse detections (missing landmarks or probabilities) degrade to
defaults instead of failing.

Author: Face Metrics Tool
License: Personal/Educational Use Only
"""

import logging
from typing import List, Optional, Sequence

from .config import ExtractorSettings, OrientationWeights, QualityWeights
from .normalizer import GeometryNormalizer
from .quality import QualityScorer, clamp01
from .types import (
    EAR_LANDMARKS,
    FaceMetrics,
    Landmark,
    LandmarkType,
    RawDetection,
)

logger = logging.getLogger(__name__)


def _probability(value: Optional[float]) -> float:
    return clamp01(value) if value is not None else 0.0


class MetricsExtractor:
    """
    Turns a RawDetection into FaceMetrics.

    Stateless; the same instance can serve any number of frames.
    """

    def __init__(self,
                 settings: Optional[ExtractorSettings] = None,
                 scorer: Optional[QualityScorer] = None,
                 quality_weights: Optional[QualityWeights] = None,
                 orientation_weights: Optional[OrientationWeights] = None):
        """
        Initialize the extractor.

        Args:
            settings: Boolean thresholds and confidence values
            scorer: Quality scorer (built from the weights if None)
            quality_weights: Weights for a default scorer
            orientation_weights: Orientation weights for a default scorer
        """
        self.settings = settings or ExtractorSettings()
        self.settings.validate()
        self.scorer = scorer or QualityScorer(
            weights=quality_weights,
            orientation_weights=orientation_weights,
            full_landmark_count=self.settings.full_landmark_count,
        )

    def extract(self, detection: Optional[RawDetection]) -> FaceMetrics:
        """
        Calculate all metrics for one detected face.

        Args:
            detection: Detector output, or None when no face was found

        Returns:
            FaceMetrics record (the no-face sentinel for None)

        Raises:
            ContractViolation: If the image dimensions are not positive
        """
        if detection is None:
            return FaceMetrics.no_face()

        normalizer = GeometryNormalizer(detection.image_width, detection.image_height)

        box = normalizer.normalize_box(detection.bounding_box_px)
        ipd = normalizer.interpupillary_distance(
            detection.landmark(LandmarkType.LEFT_EYE),
            detection.landmark(LandmarkType.RIGHT_EYE),
        )

        smile = _probability(detection.smile_prob)
        left_eye = _probability(detection.left_eye_open_prob)
        right_eye = _probability(detection.right_eye_open_prob)

        quality = self.scorer.score(
            detection,
            detection.left_eye_open_prob,
            detection.right_eye_open_prob,
            detection.smile_prob,
            detection.pitch_deg,
            detection.roll_deg,
            detection.yaw_deg,
        )

        return FaceMetrics(
            bounding_box=box,
            interpupillary_distance=ipd,
            face_width=box.width,
            face_height=box.height,
            face_position=normalizer.center_position(detection.bounding_box_px),
            pitch=detection.pitch_deg,
            roll=detection.roll_deg,
            yaw=detection.yaw_deg,
            quality_score=quality,
            smile_confidence=smile,
            is_smiling=self.is_smiling(smile),
            left_eye_open_confidence=left_eye,
            right_eye_open_confidence=right_eye,
            are_eyes_open=self.are_eyes_open(left_eye, right_eye),
            has_glasses=self._detect_glasses(detection, left_eye, right_eye),
            landmarks=tuple(self._normalize_landmarks(detection, normalizer)),
            detection_confidence=self._detection_confidence(detection),
        )

    def is_smiling(self, smile_confidence: float) -> bool:
        return smile_confidence > self.settings.smile_threshold

    def are_eyes_open(self, left_eye: float, right_eye: float) -> bool:
        return (left_eye + right_eye) / 2 > self.settings.eyes_open_threshold

    def _detect_glasses(self, detection: RawDetection,
                        left_eye: float, right_eye: float) -> bool:
        """
        Coarse glasses proxy: an ear is visible and both eyes read as open.

        Known limitation: this is not a trained classifier and will report
        glasses for many faces without them.
        """
        has_ear = any(detection.landmark(kind) is not None for kind in EAR_LANDMARKS)
        threshold = self.settings.glasses_eye_threshold
        return has_ear and left_eye > threshold and right_eye > threshold

    def _normalize_landmarks(self, detection: RawDetection,
                             normalizer: GeometryNormalizer) -> List[Landmark]:
        return [
            Landmark(lm.type, normalizer.normalize_point(lm.position))
            for lm in detection.present_landmarks()
        ]

    def _detection_confidence(self, detection: RawDetection) -> float:
        if detection.tracking_id is not None:
            return self.settings.tracked_confidence
        return self.settings.untracked_confidence


def select_primary(detections: Sequence[RawDetection]) -> Optional[RawDetection]:
    """
    Pick the face to report when the detector returns several.

    The face with the highest tracking id wins; untracked faces rank lowest
    and the first one wins ties.

    Args:
        detections: All faces found in one frame

    Returns:
        Primary detection or None if the list is empty
    """
    if not detections:
        return None

    def rank(detection: RawDetection) -> int:
        return detection.tracking_id if detection.tracking_id is not None else -1

    best = detections[0]
    for detection in detections[1:]:
        if rank(detection) > rank(best):
            best = detection
    return best
