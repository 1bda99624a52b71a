"""
Frame Pipeline - per-frame orchestration

Wires the extractor, range estimator, status classifier, temporal smoother
and overlay mapper together for one detection at a time.

Frames arriving while another frame is still being processed are dropped,
never queued: a stale overlay is preferred over growing latency.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import PipelineSettings
from .extractor import MetricsExtractor
from .overlay import OverlayGeometry, OverlayMapper
from .quality import QualityScorer
from .smoother import TemporalSmoother
from .status import DetectionStatusClassifier, RangeEstimator
from .types import DetectionStatus, FaceMetrics, RawDetection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameResult:
    """Everything produced for one frame."""

    frame_index: int
    metrics: FaceMetrics
    smoothed: FaceMetrics
    status: DetectionStatus
    range_estimate: Optional[float]
    overlay: OverlayGeometry

    def to_dict(self) -> Dict[str, Any]:
        return {
            'frame_index': self.frame_index,
            'status': self.status.value,
            'range_estimate': self.range_estimate,
            'metrics': self.metrics.to_dict(),
            'smoothed': self.smoothed.to_dict(),
            'overlay': self.overlay.to_dict(),
        }


@dataclass
class PipelineStats:
    """Statistics for processed frames."""
    processed_frames: int = 0
    dropped_frames: int = 0
    face_frames: int = 0
    total_processing_time: float = 0.0

    @property
    def average_processing_time(self) -> float:
        if self.processed_frames == 0:
            return 0.0
        return self.total_processing_time / self.processed_frames


class FramePipeline:
    """
    One-detection-at-a-time metrics pipeline.

    Status is classified from the raw metrics of the current frame; the
    overlay is built from the smoothed metrics.
    """

    def __init__(self,
                 settings: Optional[PipelineSettings] = None,
                 mirrored: bool = False,
                 rotation_degrees: int = 0):
        """
        Initialize the pipeline.

        Args:
            settings: Pipeline parameters (defaults if None)
            mirrored: Initial mirroring state of the overlay mapper
            rotation_degrees: Initial sensor rotation

        Raises:
            ContractViolation: If the settings or rotation are invalid
        """
        self.settings = settings or PipelineSettings()
        self.settings.validate()

        s = self.settings
        self.extractor = MetricsExtractor(
            settings=s.extractor,
            scorer=QualityScorer(
                weights=s.quality_weights,
                orientation_weights=s.orientation_weights,
                full_landmark_count=s.extractor.full_landmark_count,
            ),
        )
        self.range_estimator = RangeEstimator(scale=s.thresholds.range_scale)
        self.classifier = DetectionStatusClassifier(s.thresholds)
        self.smoother = TemporalSmoother(
            window_size=s.window_size,
            box_blend=s.box_blend,
            smile_threshold=s.extractor.smile_threshold,
            eyes_open_threshold=s.extractor.eyes_open_threshold,
        )
        self.mapper = OverlayMapper(mirrored, rotation_degrees)

        self.stats = PipelineStats()
        self._frame_index = 0
        self._last_status: Optional[DetectionStatus] = None
        self._busy = threading.Lock()
        # Drops are counted by callers that do not hold _busy
        self._drop_lock = threading.Lock()

    def set_transform(self, mirrored: bool, rotation_degrees: int) -> None:
        """Forward an orientation change to the overlay mapper."""
        self.mapper.set_transform(mirrored, rotation_degrees)

    def process(self, detection: Optional[RawDetection]) -> Optional[FrameResult]:
        """
        Process one detection.

        Args:
            detection: Primary face of the frame, or None for no face

        Returns:
            FrameResult, or None if the frame was dropped because another
            frame is still in flight

        Raises:
            ContractViolation: If the detection breaks a precondition
        """
        if not self._busy.acquire(blocking=False):
            with self._drop_lock:
                self.stats.dropped_frames += 1
            logger.debug("Frame dropped: previous frame still processing")
            return None

        try:
            start_time = time.perf_counter()
            result = self._process(detection)
            self.stats.total_processing_time += time.perf_counter() - start_time
            return result
        finally:
            self._busy.release()

    def _process(self, detection: Optional[RawDetection]) -> FrameResult:
        metrics = self.extractor.extract(detection)
        range_estimate = (
            self.range_estimator.estimate(detection) if detection is not None else None
        )
        status = self.classifier.classify(metrics, range_estimate)
        smoothed = self.smoother.push(metrics)
        overlay = self.mapper.map_metrics(smoothed)

        if status != self._last_status:
            previous = self._last_status.value if self._last_status else None
            logger.debug(f"Detection status changed: {previous} -> {status.value}")
            self._last_status = status

        result = FrameResult(
            frame_index=self._frame_index,
            metrics=metrics,
            smoothed=smoothed,
            status=status,
            range_estimate=range_estimate,
            overlay=overlay,
        )

        self._frame_index += 1
        self.stats.processed_frames += 1
        if metrics.is_face:
            self.stats.face_frames += 1

        return result

    @property
    def last_status(self) -> Optional[DetectionStatus]:
        return self._last_status

    def reset(self) -> None:
        """Clear smoothing history, counters and status."""
        self.smoother.reset()
        self.stats = PipelineStats()
        self._frame_index = 0
        self._last_status = None
