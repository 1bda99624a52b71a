import unittest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from face_metrics.errors import ContractViolation
from face_metrics.extractor import MetricsExtractor
from face_metrics.smoother import TemporalSmoother
from face_metrics.types import (BoundingBox, FaceMetrics, Landmark, LandmarkType,
                                Point, RawDetection)


def metrics(quality: float = 0.8, smile: float = 0.5, yaw: float = 0.0,
            box: BoundingBox = BoundingBox(0.2, 0.2, 0.6, 0.6),
            has_glasses: bool = False) -> FaceMetrics:
    """Metrics whose size and position agree with the box."""
    return FaceMetrics(
        bounding_box=box,
        interpupillary_distance=0.1,
        face_width=box.width,
        face_height=box.height,
        face_position=Point(box.center_x - 0.5, box.center_y - 0.5),
        yaw=yaw,
        quality_score=quality,
        smile_confidence=smile,
        is_smiling=smile > 0.7,
        left_eye_open_confidence=0.9,
        right_eye_open_confidence=0.9,
        are_eyes_open=True,
        has_glasses=has_glasses,
        landmarks=(Landmark(LandmarkType.NOSE_BASE, Point(0.4, 0.45)),),
        detection_confidence=1.0,
    )


class TestTemporalSmoother(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures."""
        self.smoother = TemporalSmoother(window_size=3)

    def test_first_frame_passes_through(self):
        first = metrics(quality=0.2)
        self.assertEqual(self.smoother.push(first), first)

    def test_mean_over_window(self):
        results = [self.smoother.push(metrics(quality=q)) for q in (0.2, 0.4, 0.6, 0.8)]

        self.assertAlmostEqual(results[1].quality_score, 0.3)
        self.assertAlmostEqual(results[2].quality_score, 0.4)
        # Oldest frame evicted once the window is full
        self.assertAlmostEqual(results[3].quality_score, 0.6)
        self.assertEqual(len(self.smoother), 3)

    def test_no_face_passes_through(self):
        self.smoother.push(metrics())
        self.smoother.push(metrics())
        sentinel = FaceMetrics.no_face()

        self.assertEqual(self.smoother.push(sentinel), sentinel)
        self.assertEqual(self.smoother.valid_count, 2)

    def test_no_face_frames_excluded_from_mean(self):
        self.smoother.push(metrics(yaw=10.0))
        self.smoother.push(FaceMetrics.no_face())
        result = self.smoother.push(metrics(yaw=20.0))
        self.assertAlmostEqual(result.yaw, 15.0)

    def test_single_valid_frame_in_window(self):
        self.smoother.push(FaceMetrics.no_face())
        self.smoother.push(FaceMetrics.no_face())
        latest = metrics(yaw=30.0)
        self.assertEqual(self.smoother.push(latest), latest)

    def test_stable_input_is_unchanged(self):
        """Pushing one record repeatedly returns exactly that record."""
        frame = metrics()
        for _ in range(5):
            result = self.smoother.push(frame)
        self.assertEqual(result, frame)

    def test_stable_extracted_input_is_exact(self):
        """Non-round values survive a full window of identical frames bit for bit."""
        extractor = MetricsExtractor()
        detection = RawDetection(
            bounding_box_px=BoundingBox(100, 100, 300, 300),
            image_width=640,
            image_height=480,
            yaw_deg=7.3,
            landmarks={
                LandmarkType.LEFT_EYE: Point(240, 180),
                LandmarkType.RIGHT_EYE: Point(160, 180),
                LandmarkType.NOSE_BASE: Point(200, 220),
            },
            left_eye_open_prob=0.93,
            right_eye_open_prob=0.91,
            smile_prob=0.37,
            tracking_id=2,
        )
        smoother = TemporalSmoother(window_size=5)
        for _ in range(5):
            # A fresh but equal record each frame
            frame = extractor.extract(detection)
            result = smoother.push(frame)

        self.assertEqual(result, frame)
        self.assertEqual(result.right_eye_open_confidence, 0.91)
        self.assertEqual(result.bounding_box.top, 100 / 480)

    def test_box_blends_toward_latest(self):
        self.smoother.push(metrics(box=BoundingBox(0.0, 0.0, 0.4, 0.4)))
        latest_box = BoundingBox(0.4, 0.4, 0.8, 0.8)
        result = self.smoother.push(metrics(box=latest_box))

        # Averaged box spans 0.2..0.6; blend is 0.7 latest + 0.3 averaged
        self.assertAlmostEqual(result.bounding_box.left, 0.7 * 0.4 + 0.3 * 0.2)
        self.assertAlmostEqual(result.bounding_box.right, 0.7 * 0.8 + 0.3 * 0.6)

    def test_smoothed_box_is_clamped(self):
        self.smoother.push(metrics(box=BoundingBox(0.0, 0.0, 1.0, 1.0)))
        result = self.smoother.push(metrics(box=BoundingBox(0.0, 0.0, 1.0, 1.0)))
        for edge in result.bounding_box.as_tuple():
            self.assertGreaterEqual(edge, 0.0)
            self.assertLessEqual(edge, 1.0)

    def test_booleans_follow_smoothed_values(self):
        self.smoother.push(metrics(smile=0.4))
        result = self.smoother.push(metrics(smile=0.9))

        self.assertAlmostEqual(result.smile_confidence, 0.65)
        self.assertFalse(result.is_smiling)
        self.assertTrue(result.are_eyes_open)

    def test_discrete_fields_from_latest_frame(self):
        self.smoother.push(metrics(has_glasses=False))
        result = self.smoother.push(metrics(has_glasses=True))
        self.assertTrue(result.has_glasses)
        self.assertEqual(result.detection_confidence, 1.0)
        self.assertEqual(len(result.landmarks), 1)

    def test_reset(self):
        self.smoother.push(metrics())
        self.smoother.reset()
        self.assertEqual(len(self.smoother), 0)
        self.assertEqual(self.smoother.window, ())

    def test_invalid_parameters(self):
        with self.assertRaises(ContractViolation):
            TemporalSmoother(window_size=0)
        with self.assertRaises(ContractViolation):
            TemporalSmoother(box_blend=1.5)


if __name__ == '__main__':
    unittest.main()
