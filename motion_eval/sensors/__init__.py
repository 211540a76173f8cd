"""Point cloud frames and frame loading."""

from .cloud import CloudFrame, EvaluationAnnotation, EvaluationLevel, PointInfo
from .frame_loader import FrameLoader, save_frame

__all__ = [
    "CloudFrame",
    "EvaluationAnnotation",
    "EvaluationLevel",
    "PointInfo",
    "FrameLoader",
    "save_frame",
]
