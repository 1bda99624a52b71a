"""
MediaPipe Detection Source

Adapter producing RawDetection values from MediaPipe Face Mesh output, so
the metrics pipeline can be fed from a webcam or video frames. The detector
itself is an external collaborator; this module only converts its output.

- Bounding box: extents of all mesh landmarks
- Landmarks: fixed mesh indices for the ten landmark kinds
- Eye-open probability: eye aspect ratio mapped into [0, 1]
- Head pose: OpenCV solvePnP against a generic 3D face model
- Smile probability: not estimated (None)

Author: Face Metrics Tool
License: Personal/Educational Use Only
"""

import logging
import math
from typing import Dict, Optional, Sequence, Tuple

import cv2
import numpy as np

from .errors import ContractViolation
from .types import BoundingBox, LandmarkType, Point, RawDetection

try:
    import mediapipe as mp
    MEDIAPIPE_AVAILABLE = True
except ImportError:
    MEDIAPIPE_AVAILABLE = False
    mp = None

logger = logging.getLogger(__name__)

# Face Mesh indices; "left"/"right" are the subject's sides
EYE_POINTS = {
    LandmarkType.LEFT_EYE: (263, 362, 386, 374),   # outer, inner, upper, lower
    LandmarkType.RIGHT_EYE: (33, 133, 159, 145),
}

LANDMARK_INDICES = {
    LandmarkType.LEFT_EAR: 454,
    LandmarkType.RIGHT_EAR: 234,
    LandmarkType.LEFT_CHEEK: 280,
    LandmarkType.RIGHT_CHEEK: 50,
    LandmarkType.NOSE_BASE: 2,
    LandmarkType.MOUTH_LEFT: 291,
    LandmarkType.MOUTH_RIGHT: 61,
    LandmarkType.MOUTH_BOTTOM: 17,
}

# Landmarks used for PnP and their generic 3D positions (mm, nose tip origin, Y down)
POSE_INDICES = (1, 152, 33, 263, 61, 291)
POSE_MODEL_POINTS = np.array([
    [0.0, 0.0, 0.0],          # Nose tip
    [0.0, 90.0, -20.0],       # Chin
    [-43.0, -32.0, -25.0],    # Right eye outer corner (image left)
    [43.0, -32.0, -25.0],     # Left eye outer corner (image right)
    [-28.0, 50.0, -15.0],     # Right mouth corner
    [28.0, 50.0, -15.0],      # Left mouth corner
], dtype=np.float64)

# Eye aspect ratios treated as fully closed / fully open
EAR_CLOSED = 0.10
EAR_OPEN = 0.25


def _pixel(landmark, image_width: int, image_height: int) -> Point:
    return Point(float(landmark.x) * image_width, float(landmark.y) * image_height)


def eye_open_probability(outer: Point, inner: Point, upper: Point, lower: Point) -> float:
    """Map an eye aspect ratio into a [0, 1] openness probability."""
    width = math.hypot(outer.x - inner.x, outer.y - inner.y)
    if width <= 0:
        return 0.0
    ear = math.hypot(upper.x - lower.x, upper.y - lower.y) / width
    return float(np.clip((ear - EAR_CLOSED) / (EAR_OPEN - EAR_CLOSED), 0.0, 1.0))


def estimate_head_pose(image_points: np.ndarray,
                       image_width: int,
                       image_height: int) -> Optional[Tuple[float, float, float]]:
    """
    Estimate head pose from the six PnP landmarks.

    Args:
        image_points: (6, 2) pixel positions in POSE_INDICES order
        image_width, image_height: Frame size, used for a pinhole camera
            with focal length equal to the image width

    Returns:
        (pitch, roll, yaw) in degrees, or None if PnP failed
    """
    focal = float(image_width)
    camera_matrix = np.array([
        [focal, 0.0, image_width / 2.0],
        [0.0, focal, image_height / 2.0],
        [0.0, 0.0, 1.0],
    ], dtype=np.float64)
    dist_coeffs = np.zeros((4, 1), dtype=np.float64)

    try:
        success, rvec, _ = cv2.solvePnP(
            POSE_MODEL_POINTS,
            np.asarray(image_points, dtype=np.float64),
            camera_matrix,
            dist_coeffs,
            flags=cv2.SOLVEPNP_ITERATIVE,
        )
    except cv2.error as e:
        logger.warning(f"Head pose estimation failed: {e}")
        return None

    if not success:
        return None

    rotation, _ = cv2.Rodrigues(rvec)
    angles = cv2.RQDecomp3x3(rotation)[0]
    pitch, yaw, roll = (float(a) for a in angles)

    # Fold the 180-degree ambiguity of the decomposition back into [-90, 90]
    if pitch > 90:
        pitch -= 180
    elif pitch < -90:
        pitch += 180

    return pitch, roll, yaw


def detection_from_mesh(landmarks: Sequence,
                        image_width: int,
                        image_height: int,
                        tracking_id: Optional[int] = None,
                        pose: Optional[Tuple[float, float, float]] = None) -> RawDetection:
    """
    Convert Face Mesh landmarks into a RawDetection.

    Args:
        landmarks: Mesh landmarks exposing normalized ``.x`` and ``.y``
        image_width, image_height: Frame size in pixels
        tracking_id: Identifier to attach, if any
        pose: (pitch, roll, yaw) override; estimated with solvePnP if None

    Returns:
        RawDetection in pixel coordinates

    Raises:
        ContractViolation: If the frame size is not positive
    """
    if image_width <= 0 or image_height <= 0:
        raise ContractViolation(
            f"Image dimensions must be positive (got {image_width}x{image_height})"
        )

    xs = np.array([float(lm.x) for lm in landmarks]) * image_width
    ys = np.array([float(lm.y) for lm in landmarks]) * image_height
    box = BoundingBox(
        left=float(np.clip(xs.min(), 0, image_width)),
        top=float(np.clip(ys.min(), 0, image_height)),
        right=float(np.clip(xs.max(), 0, image_width)),
        bottom=float(np.clip(ys.max(), 0, image_height)),
    )

    def at(index: int) -> Point:
        return _pixel(landmarks[index], image_width, image_height)

    points: Dict[LandmarkType, Optional[Point]] = {}
    eye_probs: Dict[LandmarkType, float] = {}
    for kind, (outer, inner, upper, lower) in EYE_POINTS.items():
        corners = [at(outer), at(inner), at(upper), at(lower)]
        points[kind] = Point(
            sum(p.x for p in corners) / 4,
            sum(p.y for p in corners) / 4,
        )
        eye_probs[kind] = eye_open_probability(*corners)

    for kind, index in LANDMARK_INDICES.items():
        points[kind] = at(index)

    if pose is None:
        image_points = np.array([[at(i).x, at(i).y] for i in POSE_INDICES])
        pose = estimate_head_pose(image_points, image_width, image_height) or (0.0, 0.0, 0.0)
    pitch, roll, yaw = pose

    return RawDetection(
        bounding_box_px=box,
        image_width=image_width,
        image_height=image_height,
        pitch_deg=pitch,
        roll_deg=roll,
        yaw_deg=yaw,
        landmarks=points,
        left_eye_open_prob=eye_probs[LandmarkType.LEFT_EYE],
        right_eye_open_prob=eye_probs[LandmarkType.RIGHT_EYE],
        smile_prob=None,
        tracking_id=tracking_id,
    )


class MediaPipeDetectionSource:
    """
    Runs MediaPipe Face Mesh on BGR frames and yields RawDetection values.

    A tracking id is kept while the face stays continuously visible and
    incremented each time a face is re-acquired.
    """

    def __init__(self,
                 min_detection_confidence: float = 0.5,
                 min_tracking_confidence: float = 0.5):
        if not MEDIAPIPE_AVAILABLE:
            raise ImportError(
                "MediaPipe is required for MediaPipeDetectionSource: "
                "pip install 'face-metrics[mediapipe]'"
            )
        if not hasattr(mp, "solutions"):
            raise ImportError("Installed MediaPipe does not provide the Face Mesh solution API")

        self._face_mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=False,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        self._next_track_id = 0
        self._current_track_id: Optional[int] = None

    def detect(self, frame_bgr: np.ndarray) -> Optional[RawDetection]:
        """
        Detect the primary face in a frame.

        Args:
            frame_bgr: Frame as captured by OpenCV

        Returns:
            RawDetection, or None if no face was found
        """
        if frame_bgr is None or frame_bgr.size == 0:
            logger.warning("Empty frame provided")
            return None

        h, w = frame_bgr.shape[:2]
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self._face_mesh.process(frame_rgb)

        if not results.multi_face_landmarks:
            self._current_track_id = None
            return None

        if self._current_track_id is None:
            self._current_track_id = self._next_track_id
            self._next_track_id += 1
            logger.debug(f"Face acquired, tracking id {self._current_track_id}")

        mesh = results.multi_face_landmarks[0].landmark
        return detection_from_mesh(mesh, w, h, tracking_id=self._current_track_id)

    def close(self) -> None:
        self._face_mesh.close()
