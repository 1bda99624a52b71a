"""
Pipeline Parameters

Calibration constants used by the extractor, scorer, classifier and smoother.
The defaults are approximate by nature; every one of them can be overridden
by constructing the dataclass with different values.
"""

import math
from dataclasses import dataclass, field

from .errors import ContractViolation

_WEIGHT_TOLERANCE = 1e-6


@dataclass(frozen=True)
class QualityWeights:
    """Top-level weights of the composite quality score."""

    orientation: float = 0.4
    eye_openness: float = 0.3
    smile_neutrality: float = 0.1
    landmark_coverage: float = 0.2

    @property
    def total(self) -> float:
        return (self.orientation + self.eye_openness +
                self.smile_neutrality + self.landmark_coverage)

    def normalized(self) -> 'QualityWeights':
        """Return weights rescaled to sum to 1.0."""
        total = self.total
        if total <= 0:
            raise ContractViolation("Quality weights must have a positive sum")
        return QualityWeights(
            orientation=self.orientation / total,
            eye_openness=self.eye_openness / total,
            smile_neutrality=self.smile_neutrality / total,
            landmark_coverage=self.landmark_coverage / total,
        )

    def validate(self) -> None:
        for name in ('orientation', 'eye_openness', 'smile_neutrality', 'landmark_coverage'):
            if getattr(self, name) < 0:
                raise ContractViolation(f"Quality weight '{name}' must be non-negative")
        if not math.isclose(self.total, 1.0, abs_tol=_WEIGHT_TOLERANCE):
            raise ContractViolation(f"Quality weights must sum to 1.0 (got {self.total:.6f})")


@dataclass(frozen=True)
class OrientationWeights:
    """Per-angle penalty weights of the orientation sub-score."""

    pitch: float = 0.4
    roll: float = 0.3
    yaw: float = 0.3
    max_angle: float = 45.0  # degrees at which an angle's penalty saturates

    @property
    def total(self) -> float:
        return self.pitch + self.roll + self.yaw

    def validate(self) -> None:
        for name in ('pitch', 'roll', 'yaw'):
            if getattr(self, name) < 0:
                raise ContractViolation(f"Orientation weight '{name}' must be non-negative")
        if not math.isclose(self.total, 1.0, abs_tol=_WEIGHT_TOLERANCE):
            raise ContractViolation(f"Orientation weights must sum to 1.0 (got {self.total:.6f})")
        if self.max_angle <= 0:
            raise ContractViolation("max_angle must be positive")


@dataclass(frozen=True)
class ExtractorSettings:
    """Thresholds used when turning probabilities into booleans."""

    smile_threshold: float = 0.7
    eyes_open_threshold: float = 0.5
    glasses_eye_threshold: float = 0.5
    full_landmark_count: int = 5
    tracked_confidence: float = 1.0
    untracked_confidence: float = 0.5

    def validate(self) -> None:
        for name in ('smile_threshold', 'eyes_open_threshold', 'glasses_eye_threshold'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ContractViolation(f"{name} must be between 0.0 and 1.0")
        if self.full_landmark_count < 1:
            raise ContractViolation("full_landmark_count must be >= 1")
        # Zero is reserved for the "no face" sentinel
        if self.tracked_confidence <= 0 or self.untracked_confidence <= 0:
            raise ContractViolation("Detection confidences must be positive")


@dataclass(frozen=True)
class ClassifierThresholds:
    """Rules used by the detection status classifier."""

    too_far_range: float = 150.0
    too_close_range: float = 50.0
    max_alignment_angle: float = 20.0
    range_scale: float = 40.0

    def validate(self) -> None:
        if self.too_close_range >= self.too_far_range:
            raise ContractViolation("too_close_range must be below too_far_range")
        if self.max_alignment_angle <= 0:
            raise ContractViolation("max_alignment_angle must be positive")
        if self.range_scale <= 0:
            raise ContractViolation("range_scale must be positive")


@dataclass(frozen=True)
class PipelineSettings:
    """Everything needed to build a FramePipeline."""

    window_size: int = 5
    box_blend: float = 0.7
    quality_weights: QualityWeights = field(default_factory=QualityWeights)
    orientation_weights: OrientationWeights = field(default_factory=OrientationWeights)
    extractor: ExtractorSettings = field(default_factory=ExtractorSettings)
    thresholds: ClassifierThresholds = field(default_factory=ClassifierThresholds)

    def validate(self) -> None:
        if self.window_size < 1:
            raise ContractViolation("window_size must be >= 1")
        if not 0.0 <= self.box_blend <= 1.0:
            raise ContractViolation("box_blend must be between 0.0 and 1.0")
        self.quality_weights.validate()
        self.orientation_weights.validate()
        self.extractor.validate()
        self.thresholds.validate()
