"""Exceptions raised by the face metrics package."""


class FaceMetricsError(Exception):
    """Base class for face metrics errors."""


class ContractViolation(FaceMetricsError, ValueError):
    """
    A caller broke a precondition of the pipeline, such as a zero image
    dimension or a rotation that is not a quarter turn.
    """
