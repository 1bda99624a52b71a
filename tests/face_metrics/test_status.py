import math
import unittest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from face_metrics.config import ClassifierThresholds
from face_metrics.errors import ContractViolation
from face_metrics.status import DetectionStatusClassifier, RangeEstimator
from face_metrics.types import (BoundingBox, DetectionStatus, FaceMetrics,
                                RawDetection)


def face(pitch: float = 0.0, roll: float = 0.0, yaw: float = 0.0) -> FaceMetrics:
    return FaceMetrics(
        bounding_box=BoundingBox(0.2, 0.2, 0.5, 0.6),
        face_width=0.3,
        face_height=0.4,
        pitch=pitch,
        roll=roll,
        yaw=yaw,
        detection_confidence=1.0,
    )


class TestRangeEstimator(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures."""
        self.estimator = RangeEstimator()

    def _detection(self, box: BoundingBox, width: int = 640, height: int = 480) -> RawDetection:
        return RawDetection(bounding_box_px=box, image_width=width, image_height=height)

    def test_typical_face(self):
        estimate = self.estimator.estimate(self._detection(BoundingBox(100, 100, 300, 300)))
        self.assertAlmostEqual(estimate, 96.0)

    def test_smaller_face_is_farther(self):
        near = self.estimator.estimate(self._detection(BoundingBox(0, 0, 300, 300)))
        far = self.estimator.estimate(self._detection(BoundingBox(0, 0, 60, 60)))
        self.assertGreater(far, near)

    def test_uses_larger_box_side(self):
        wide = self.estimator.estimate(self._detection(BoundingBox(0, 0, 240, 100)))
        self.assertAlmostEqual(wide, 40 * 480 / 240)

    def test_degenerate_box(self):
        estimate = self.estimator.estimate(self._detection(BoundingBox(50, 50, 50, 50)))
        self.assertTrue(math.isinf(estimate))

    def test_invalid_dimensions(self):
        with self.assertRaises(ContractViolation):
            self.estimator.estimate(self._detection(BoundingBox(0, 0, 10, 10), width=0))

    def test_invalid_scale(self):
        with self.assertRaises(ContractViolation):
            RangeEstimator(scale=0)


class TestDetectionStatusClassifier(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures."""
        self.classifier = DetectionStatusClassifier()

    def test_no_face(self):
        self.assertEqual(
            self.classifier.classify(FaceMetrics.no_face(), 10.0),
            DetectionStatus.NO_FACE
        )

    def test_detected(self):
        self.assertEqual(self.classifier.classify(face(), 96.0), DetectionStatus.DETECTED)

    def test_too_far(self):
        self.assertEqual(self.classifier.classify(face(), 151.0), DetectionStatus.TOO_FAR)

    def test_too_close(self):
        self.assertEqual(self.classifier.classify(face(), 49.0), DetectionStatus.TOO_CLOSE)

    def test_boundaries_are_exclusive(self):
        self.assertEqual(self.classifier.classify(face(), 150.0), DetectionStatus.DETECTED)
        self.assertEqual(self.classifier.classify(face(), 50.0), DetectionStatus.DETECTED)
        self.assertEqual(self.classifier.classify(face(yaw=20.0)), DetectionStatus.DETECTED)

    def test_misaligned_on_any_axis(self):
        for angles in [(21, 0, 0), (0, -21, 0), (0, 0, 50)]:
            with self.subTest(angles=angles):
                self.assertEqual(
                    self.classifier.classify(face(*angles), 96.0),
                    DetectionStatus.MISALIGNED
                )

    def test_range_takes_precedence_over_alignment(self):
        self.assertEqual(self.classifier.classify(face(yaw=50), 200.0), DetectionStatus.TOO_FAR)
        self.assertEqual(self.classifier.classify(face(yaw=50), 10.0), DetectionStatus.TOO_CLOSE)

    def test_no_face_takes_precedence(self):
        sentinel = FaceMetrics(yaw=80.0)
        self.assertEqual(self.classifier.classify(sentinel, 500.0), DetectionStatus.NO_FACE)

    def test_without_range_estimate(self):
        self.assertEqual(self.classifier.classify(face()), DetectionStatus.DETECTED)

    def test_custom_thresholds(self):
        classifier = DetectionStatusClassifier(ClassifierThresholds(max_alignment_angle=5.0))
        self.assertEqual(classifier.classify(face(roll=6.0), 96.0), DetectionStatus.MISALIGNED)

    def test_invalid_thresholds(self):
        with self.assertRaises(ContractViolation):
            DetectionStatusClassifier(ClassifierThresholds(too_far_range=40.0))


if __name__ == '__main__':
    unittest.main()
