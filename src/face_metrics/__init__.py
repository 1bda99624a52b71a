"""
Face Metrics Module

Turns per-frame face detector output into normalized, display-ready face
metrics, a detection status for user guidance, temporally smoothed values
and overlay geometry in display space.

Key Components:
- MetricsExtractor: Raw detection to normalized FaceMetrics
- QualityScorer: Composite quality score in [0, 1]
- DetectionStatusClassifier: NO_FACE / TOO_FAR / TOO_CLOSE / MISALIGNED / DETECTED
- TemporalSmoother: Sliding-window smoothing of metrics
- OverlayMapper: Rotation and mirroring of geometry into display space
- FramePipeline: All of the above, one frame at a time

Author: Face Metrics Tool
License: Personal/Educational Use Only
"""

__version__ = "1.0.0"
__author__ = "Face Metrics Tool"

from .types import (
    Point,
    BoundingBox,
    LandmarkType,
    Landmark,
    RawDetection,
    FaceMetrics,
    DetectionStatus,
    TransformState
)

from .errors import (
    FaceMetricsError,
    ContractViolation
)

from .config import (
    QualityWeights,
    OrientationWeights,
    ExtractorSettings,
    ClassifierThresholds,
    PipelineSettings
)

from .normalizer import GeometryNormalizer
from .quality import QualityScorer, QualityBreakdown
from .extractor import MetricsExtractor, select_primary
from .status import DetectionStatusClassifier, RangeEstimator
from .smoother import TemporalSmoother
from .overlay import OverlayMapper, OverlayGeometry

from .pipeline import (
    FramePipeline,
    FrameResult,
    PipelineStats
)

from .report import format_metrics_report, status_message

__all__ = [
    # Data model
    'Point',
    'BoundingBox',
    'LandmarkType',
    'Landmark',
    'RawDetection',
    'FaceMetrics',
    'DetectionStatus',
    'TransformState',

    # Errors
    'FaceMetricsError',
    'ContractViolation',

    # Parameters
    'QualityWeights',
    'OrientationWeights',
    'ExtractorSettings',
    'ClassifierThresholds',
    'PipelineSettings',

    # Components
    'GeometryNormalizer',
    'QualityScorer',
    'QualityBreakdown',
    'MetricsExtractor',
    'select_primary',
    'DetectionStatusClassifier',
    'RangeEstimator',
    'TemporalSmoother',
    'OverlayMapper',
    'OverlayGeometry',

    # Orchestration and reporting
    'FramePipeline',
    'FrameResult',
    'PipelineStats',
    'format_metrics_report',
    'status_message'
]
