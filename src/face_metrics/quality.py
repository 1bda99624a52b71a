"""
Face Quality Scoring Module - QualityScorer Class

Computes a composite [0, 1] score describing how well-posed a detection is
for downstream use.

Sub-scores:
- Orientation: how frontal the head is
- Eye openness: mean eye-open confidence
- Smile neutrality: peaks for a neutral expression
- Landmark coverage: how many landmarks the detector found

Author: Face Metrics Tool
License: Personal/Educational Use Only
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .config import OrientationWeights, QualityWeights
from .types import RawDetection

logger = logging.getLogger(__name__)


def clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


@dataclass(frozen=True)
class QualityBreakdown:
    """Individual sub-scores and the weighted result."""

    orientation_score: float = 0.0
    eye_openness_score: float = 0.0
    smile_neutrality_score: float = 0.0
    landmark_coverage_score: float = 0.0
    overall_score: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            'orientation_score': self.orientation_score,
            'eye_openness_score': self.eye_openness_score,
            'smile_neutrality_score': self.smile_neutrality_score,
            'landmark_coverage_score': self.landmark_coverage_score,
            'overall_score': self.overall_score,
        }


class QualityScorer:
    """
    Weighted composite quality score.

    The four top-level weights must sum to 1.0, as must the three angle
    weights of the orientation sub-score. The two sets are independent.
    """

    def __init__(self,
                 weights: Optional[QualityWeights] = None,
                 orientation_weights: Optional[OrientationWeights] = None,
                 full_landmark_count: int = 5):
        """
        Initialize the scorer.

        Args:
            weights: Top-level sub-score weights
            orientation_weights: Per-angle weights and saturation angle
            full_landmark_count: Landmark count that earns full coverage
        """
        self.weights = weights or QualityWeights()
        self.orientation_weights = orientation_weights or OrientationWeights()
        self.full_landmark_count = full_landmark_count

        self.weights.validate()
        self.orientation_weights.validate()

    def score(self,
              detection: RawDetection,
              left_eye_open: Optional[float],
              right_eye_open: Optional[float],
              smile: Optional[float],
              pitch: float,
              roll: float,
              yaw: float) -> float:
        """
        Score one detection.

        Args:
            detection: Detection supplying the landmark set
            left_eye_open: Left eye-open probability (None = unknown)
            right_eye_open: Right eye-open probability (None = unknown)
            smile: Smile probability (None = unknown)
            pitch, roll, yaw: Head angles in degrees

        Returns:
            Composite score clamped to [0, 1]
        """
        return self.breakdown(
            detection, left_eye_open, right_eye_open, smile, pitch, roll, yaw
        ).overall_score

    def breakdown(self,
                  detection: RawDetection,
                  left_eye_open: Optional[float],
                  right_eye_open: Optional[float],
                  smile: Optional[float],
                  pitch: float,
                  roll: float,
                  yaw: float) -> QualityBreakdown:
        """Same as score() but returns every sub-score."""
        orientation = self._assess_orientation(pitch, roll, yaw)
        eyes = self._assess_eye_openness(left_eye_open, right_eye_open)
        smile_score = self._assess_smile_neutrality(smile)
        coverage = self._assess_landmark_coverage(detection.landmark_count)

        overall = clamp01(
            orientation * self.weights.orientation +
            eyes * self.weights.eye_openness +
            smile_score * self.weights.smile_neutrality +
            coverage * self.weights.landmark_coverage
        )

        return QualityBreakdown(
            orientation_score=orientation,
            eye_openness_score=eyes,
            smile_neutrality_score=smile_score,
            landmark_coverage_score=coverage,
            overall_score=overall,
        )

    def _assess_orientation(self, pitch: float, roll: float, yaw: float) -> float:
        """Degrades linearly as any angle approaches max_angle."""
        ow = self.orientation_weights
        penalty = (
            min(abs(pitch) / ow.max_angle, 1.0) * ow.pitch +
            min(abs(roll) / ow.max_angle, 1.0) * ow.roll +
            min(abs(yaw) / ow.max_angle, 1.0) * ow.yaw
        )
        return 1.0 - penalty

    def _assess_eye_openness(self,
                             left_eye_open: Optional[float],
                             right_eye_open: Optional[float]) -> float:
        left = clamp01(left_eye_open) if left_eye_open is not None else 0.0
        right = clamp01(right_eye_open) if right_eye_open is not None else 0.0
        return (left + right) / 2

    def _assess_smile_neutrality(self, smile: Optional[float]) -> float:
        # Rewards a neutral expression: 1 at 0.5, 0 at either extreme
        value = clamp01(smile) if smile is not None else 0.0
        return 1.0 - 2.0 * abs(value - 0.5)

    def _assess_landmark_coverage(self, landmark_count: int) -> float:
        return min(1.0, landmark_count / self.full_landmark_count)

    def set_quality_weights(self, **weights) -> None:
        """
        Update quality weights.

        Unknown names are ignored; the result is rescaled to sum to 1.0.

        Args:
            **weights: New weights (orientation, eye_openness,
                smile_neutrality, landmark_coverage)
        """
        current = {
            'orientation': self.weights.orientation,
            'eye_openness': self.weights.eye_openness,
            'smile_neutrality': self.weights.smile_neutrality,
            'landmark_coverage': self.weights.landmark_coverage,
        }
        for name, weight in weights.items():
            if name in current:
                current[name] = weight
            else:
                logger.warning(f"Ignoring unknown quality weight: {name}")

        self.weights = QualityWeights(**current).normalized()
