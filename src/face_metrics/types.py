"""
Face Metrics Data Model

Value types shared by every stage of the face metrics pipeline: the raw
detector output consumed once per frame, the immutable metrics record built
from it, the derived detection status and the overlay transform state.

All records are frozen dataclasses. Collections held inside them are tuples,
so a record can be handed to another thread without sharing mutable state.

Author: Face Metrics Tool
License: Personal/Educational Use Only
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Point:
    """A 2D point (pixels or normalized units depending on context)."""

    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle given by its edges."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    @property
    def center_y(self) -> float:
        return self.top + self.height / 2

    def clamped(self, lo: float = 0.0, hi: float = 1.0) -> 'BoundingBox':
        """Return a copy with every edge clamped into [lo, hi]."""
        return BoundingBox(
            left=min(hi, max(lo, self.left)),
            top=min(hi, max(lo, self.top)),
            right=min(hi, max(lo, self.right)),
            bottom=min(hi, max(lo, self.bottom)),
        )

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.left, self.top, self.right, self.bottom)

    def to_dict(self) -> Dict[str, float]:
        return {
            'left': self.left,
            'top': self.top,
            'right': self.right,
            'bottom': self.bottom,
        }


class LandmarkType(Enum):
    """Facial landmark kinds. Declaration order is the output order."""
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    LEFT_CHEEK = "left_cheek"
    RIGHT_CHEEK = "right_cheek"
    NOSE_BASE = "nose_base"
    MOUTH_LEFT = "mouth_left"
    MOUTH_RIGHT = "mouth_right"
    MOUTH_BOTTOM = "mouth_bottom"


EAR_LANDMARKS = (LandmarkType.LEFT_EAR, LandmarkType.RIGHT_EAR)


@dataclass(frozen=True)
class Landmark:
    """A named landmark and its position."""

    type: LandmarkType
    position: Point


@dataclass(frozen=True)
class RawDetection:
    """
    One face as reported by the external landmark detector for one frame.

    Pixel geometry is expressed against ``image_width`` x ``image_height``,
    which must already be corrected for sensor rotation (width and height
    swapped upstream for 90/270 degree sensors).

    Angles follow the convention: positive pitch = head down, positive roll =
    tilt to the viewer's right, positive yaw = turn to the viewer's right.
    """

    bounding_box_px: BoundingBox
    image_width: int
    image_height: int
    pitch_deg: float = 0.0
    roll_deg: float = 0.0
    yaw_deg: float = 0.0
    landmarks: Mapping[LandmarkType, Optional[Point]] = field(default_factory=dict)
    left_eye_open_prob: Optional[float] = None
    right_eye_open_prob: Optional[float] = None
    smile_prob: Optional[float] = None
    tracking_id: Optional[int] = None

    def landmark(self, kind: LandmarkType) -> Optional[Point]:
        return self.landmarks.get(kind)

    def present_landmarks(self) -> List[Landmark]:
        """Landmarks that were actually detected, in LandmarkType order."""
        present = []
        for kind in LandmarkType:
            position = self.landmarks.get(kind)
            if position is not None:
                present.append(Landmark(kind, position))
        return present

    @property
    def landmark_count(self) -> int:
        return sum(1 for position in self.landmarks.values() if position is not None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawDetection':
        """
        Build a detection from a JSON-style dictionary.

        Expected keys: ``bounding_box`` (``left/top/right/bottom`` object or a
        4-item list), ``image_width``, ``image_height``; optional ``pitch``,
        ``roll``, ``yaw``, ``landmarks`` (landmark name -> ``{x, y}``, ``[x, y]``
        or null), ``left_eye_open_prob``, ``right_eye_open_prob``,
        ``smile_prob``, ``tracking_id``.

        Raises:
            ValueError: If a required key is missing or a value is malformed
        """
        try:
            box = data['bounding_box']
            if isinstance(box, dict):
                bounding_box = BoundingBox(
                    float(box['left']), float(box['top']),
                    float(box['right']), float(box['bottom']),
                )
            else:
                left, top, right, bottom = (float(v) for v in box)
                bounding_box = BoundingBox(left, top, right, bottom)

            landmarks: Dict[LandmarkType, Optional[Point]] = {}
            for name, position in (data.get('landmarks') or {}).items():
                kind = LandmarkType(name)
                if position is None:
                    landmarks[kind] = None
                elif isinstance(position, dict):
                    landmarks[kind] = Point(float(position['x']), float(position['y']))
                else:
                    x, y = position
                    landmarks[kind] = Point(float(x), float(y))

            def optional_float(key: str) -> Optional[float]:
                value = data.get(key)
                return None if value is None else float(value)

            tracking_id = data.get('tracking_id')

            return cls(
                bounding_box_px=bounding_box,
                image_width=int(data['image_width']),
                image_height=int(data['image_height']),
                pitch_deg=float(data.get('pitch', 0.0)),
                roll_deg=float(data.get('roll', 0.0)),
                yaw_deg=float(data.get('yaw', 0.0)),
                landmarks=landmarks,
                left_eye_open_prob=optional_float('left_eye_open_prob'),
                right_eye_open_prob=optional_float('right_eye_open_prob'),
                smile_prob=optional_float('smile_prob'),
                tracking_id=None if tracking_id is None else int(tracking_id),
            )
        except KeyError as e:
            raise ValueError(f"Detection is missing required key: {e}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"Malformed detection: {e}") from e


@dataclass(frozen=True)
class FaceMetrics:
    """
    Display-ready metrics for one frame.

    All geometry is normalized: ``bounding_box``, ``face_width`` and
    ``face_height`` lie in [0, 1] relative to the image, ``face_position`` is
    the box center in [-0.5, 0.5] with (0, 0) at the image center.

    ``detection_confidence == 0`` marks the "no face" sentinel, in which case
    every other field holds its zero/false/empty default. Consumers treat it
    as nothing to render.
    """

    bounding_box: BoundingBox = BoundingBox(0.0, 0.0, 0.0, 0.0)
    interpupillary_distance: float = 0.0
    face_width: float = 0.0
    face_height: float = 0.0
    face_position: Point = Point(0.0, 0.0)

    # Orientation (degrees)
    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0

    # Quality
    quality_score: float = 0.0
    smile_confidence: float = 0.0
    is_smiling: bool = False
    left_eye_open_confidence: float = 0.0
    right_eye_open_confidence: float = 0.0
    are_eyes_open: bool = False
    has_glasses: bool = False

    landmarks: Tuple[Landmark, ...] = ()
    detection_confidence: float = 0.0

    @classmethod
    def no_face(cls) -> 'FaceMetrics':
        """The canonical "no face" sentinel."""
        return cls()

    @property
    def is_face(self) -> bool:
        return self.detection_confidence > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to a JSON-friendly dictionary."""
        return {
            'bounding_box': self.bounding_box.to_dict(),
            'interpupillary_distance': self.interpupillary_distance,
            'face_width': self.face_width,
            'face_height': self.face_height,
            'face_position': self.face_position.to_dict(),
            'pitch': self.pitch,
            'roll': self.roll,
            'yaw': self.yaw,
            'quality_score': self.quality_score,
            'smile_confidence': self.smile_confidence,
            'is_smiling': self.is_smiling,
            'left_eye_open_confidence': self.left_eye_open_confidence,
            'right_eye_open_confidence': self.right_eye_open_confidence,
            'are_eyes_open': self.are_eyes_open,
            'has_glasses': self.has_glasses,
            'landmarks': [
                {'type': lm.type.value, **lm.position.to_dict()}
                for lm in self.landmarks
            ],
            'detection_confidence': self.detection_confidence,
        }


class DetectionStatus(str, Enum):
    """Operational state derived from a metrics record."""
    NO_FACE = "NO_FACE"
    DETECTED = "DETECTED"
    TOO_FAR = "TOO_FAR"
    TOO_CLOSE = "TOO_CLOSE"
    MISALIGNED = "MISALIGNED"


@dataclass(frozen=True)
class TransformState:
    """Sensor rotation and mirroring applied when mapping to display space."""

    mirrored: bool = False
    rotation_degrees: int = 0

    def inverse(self) -> 'TransformState':
        """
        State whose mapping undoes this one.

        A mirrored mapping is a reflection and therefore its own inverse; an
        unmirrored one is undone by the complementary rotation.
        """
        if self.mirrored:
            return self
        return TransformState(False, (360 - self.rotation_degrees) % 360)
