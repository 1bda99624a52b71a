import threading
import unittest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from face_metrics.config import PipelineSettings
from face_metrics.errors import ContractViolation
from face_metrics.pipeline import FramePipeline
from face_metrics.types import (BoundingBox, DetectionStatus, LandmarkType, Point,
                                RawDetection)


def detection(yaw: float = 0.0, box: BoundingBox = BoundingBox(100, 100, 300, 300)) -> RawDetection:
    return RawDetection(
        bounding_box_px=box,
        image_width=640,
        image_height=480,
        yaw_deg=yaw,
        landmarks={
            LandmarkType.LEFT_EYE: Point(240, 180),
            LandmarkType.RIGHT_EYE: Point(160, 180),
            LandmarkType.NOSE_BASE: Point(200, 220),
            LandmarkType.MOUTH_LEFT: Point(230, 260),
            LandmarkType.MOUTH_RIGHT: Point(170, 260),
        },
        left_eye_open_prob=0.95,
        right_eye_open_prob=0.95,
        smile_prob=0.5,
        tracking_id=1,
    )


class TestFramePipeline(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures."""
        self.pipeline = FramePipeline()

    def test_frontal_face_detected(self):
        result = self.pipeline.process(detection())

        self.assertEqual(result.frame_index, 0)
        self.assertEqual(result.status, DetectionStatus.DETECTED)
        self.assertAlmostEqual(result.range_estimate, 96.0)
        self.assertAlmostEqual(result.metrics.quality_score, 0.985, places=6)
        self.assertFalse(result.overlay.is_empty)

    def test_extreme_yaw_misaligned(self):
        result = self.pipeline.process(detection(yaw=50.0))
        self.assertEqual(result.status, DetectionStatus.MISALIGNED)
        self.assertAlmostEqual(result.metrics.quality_score, 0.865, places=6)

    def test_distance_statuses(self):
        far = self.pipeline.process(detection(box=BoundingBox(300, 200, 360, 260)))
        close = self.pipeline.process(detection(box=BoundingBox(0, 0, 460, 460)))
        self.assertEqual(far.status, DetectionStatus.TOO_FAR)
        self.assertEqual(close.status, DetectionStatus.TOO_CLOSE)

    def test_no_face(self):
        result = self.pipeline.process(None)

        self.assertEqual(result.status, DetectionStatus.NO_FACE)
        self.assertIsNone(result.range_estimate)
        self.assertFalse(result.smoothed.is_face)
        self.assertTrue(result.overlay.is_empty)

    def test_status_uses_raw_metrics(self):
        """A single misaligned frame is flagged even when smoothing would hide it."""
        for _ in range(4):
            self.pipeline.process(detection())
        result = self.pipeline.process(detection(yaw=50.0))

        self.assertEqual(result.status, DetectionStatus.MISALIGNED)
        self.assertAlmostEqual(result.smoothed.yaw, 10.0)

    def test_overlay_follows_transform(self):
        self.pipeline.set_transform(False, 90)
        result = self.pipeline.process(detection())

        box = result.metrics.bounding_box
        overlay = result.overlay.bounding_box
        self.assertAlmostEqual(overlay.left, box.top)
        self.assertAlmostEqual(overlay.top, 1.0 - box.right)

    def test_invalid_rotation(self):
        with self.assertRaises(ContractViolation):
            self.pipeline.set_transform(False, 30)
        with self.assertRaises(ContractViolation):
            FramePipeline(rotation_degrees=10)

    def test_invalid_settings(self):
        with self.assertRaises(ContractViolation):
            FramePipeline(settings=PipelineSettings(window_size=0))

    def test_frame_dropped_while_busy(self):
        self.pipeline._busy.acquire()
        try:
            self.assertIsNone(self.pipeline.process(detection()))
        finally:
            self.pipeline._busy.release()

        self.assertEqual(self.pipeline.stats.dropped_frames, 1)
        self.assertEqual(self.pipeline.stats.processed_frames, 0)
        self.assertIsNotNone(self.pipeline.process(detection()))

    def test_concurrent_drops_all_counted(self):
        threads_count = 8
        calls_per_thread = 250
        frame = detection()
        results = []

        def submit():
            for _ in range(calls_per_thread):
                results.append(self.pipeline.process(frame))

        self.pipeline._busy.acquire()
        try:
            threads = [threading.Thread(target=submit) for _ in range(threads_count)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
        finally:
            self.pipeline._busy.release()

        total = threads_count * calls_per_thread
        self.assertEqual(results, [None] * total)
        self.assertEqual(self.pipeline.stats.dropped_frames, total)
        self.assertEqual(self.pipeline.stats.processed_frames, 0)

    def test_stats_and_reset(self):
        self.pipeline.process(detection())
        self.pipeline.process(None)

        stats = self.pipeline.stats
        self.assertEqual(stats.processed_frames, 2)
        self.assertEqual(stats.face_frames, 1)
        self.assertGreaterEqual(stats.average_processing_time, 0.0)
        self.assertEqual(self.pipeline.last_status, DetectionStatus.NO_FACE)

        self.pipeline.reset()
        self.assertEqual(self.pipeline.stats.processed_frames, 0)
        self.assertIsNone(self.pipeline.last_status)
        self.assertEqual(self.pipeline.process(detection()).frame_index, 0)

    def test_result_to_dict(self):
        data = self.pipeline.process(detection()).to_dict()
        self.assertEqual(data['status'], 'DETECTED')
        self.assertEqual(data['frame_index'], 0)
        self.assertIn('smoothed', data)
        self.assertIsNotNone(data['overlay']['bounding_box'])


if __name__ == '__main__':
    unittest.main()
