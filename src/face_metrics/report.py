"""
Human-readable formatting of metrics and detection status.
"""

from typing import Optional

from .types import DetectionStatus, FaceMetrics

STATUS_MESSAGES = {
    DetectionStatus.NO_FACE: "No face detected",
    DetectionStatus.TOO_FAR: "Face too far - move closer to the camera",
    DetectionStatus.TOO_CLOSE: "Face too close - move away from the camera",
    DetectionStatus.MISALIGNED: "Align your face with the camera",
    DetectionStatus.DETECTED: "Face detected",
}


def status_message(status: DetectionStatus) -> str:
    """User-facing notification text for a detection status."""
    return STATUS_MESSAGES[status]


def format_metrics_report(metrics: FaceMetrics,
                          status: Optional[DetectionStatus] = None) -> str:
    """
    Generate a human-readable metrics report.

    Distances are reported as fractions of the image, never as physical
    units: no calibration to millimetres is available.

    Args:
        metrics: Metrics to report
        status: Optional detection status to include

    Returns:
        Formatted report string
    """
    report = "Face Metrics Report\n"
    report += "===================\n"
    if status is not None:
        report += f"Status: {status.value} ({status_message(status)})\n"

    if not metrics.is_face:
        report += "No face in frame\n"
        return report

    report += "\nPosition:\n"
    report += f"- Eye distance: {metrics.interpupillary_distance:.3f} of image width\n"
    report += f"- Face size: {metrics.face_width:.3f} x {metrics.face_height:.3f}\n"
    report += (f"- Center offset: x={metrics.face_position.x:+.3f}, "
               f"y={metrics.face_position.y:+.3f}\n")

    smile_text = "Yes" if metrics.is_smiling else "No"
    report += "\nQuality:\n"
    report += f"- Score: {metrics.quality_score:.2f}\n"
    report += f"- Smiling: {smile_text} ({metrics.smile_confidence:.1f})\n"
    report += f"- Eyes: {'Open' if metrics.are_eyes_open else 'Closed'}\n"
    report += f"- Glasses: {'Yes' if metrics.has_glasses else 'No'}\n"

    report += "\nOrientation:\n"
    report += (f"- Pitch: {metrics.pitch:.1f}°   Roll: {metrics.roll:.1f}°   "
               f"Yaw: {metrics.yaw:.1f}°\n")
    report += f"- Landmarks: {len(metrics.landmarks)}\n"

    return report
