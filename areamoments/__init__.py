"""areamoments — Section properties of planar faces.

Project a triangulated CAD face onto its plane and compute area, centroid,
first and second moments of area, principal axes, radii of gyration and
section moduli.
"""

from .core import AreaMomentsResult, calculate, compute_face_moments, compute_face_section
from .errors import AreaMomentsError, DegenerateGeometry, InvalidInput
from .geometry import Vector3D, estimate_normal, project_to_2d

__all__ = [
    "AreaMomentsResult",
    "AreaMomentsError",
    "DegenerateGeometry",
    "InvalidInput",
    "Vector3D",
    "calculate",
    "compute_face_moments",
    "compute_face_section",
    "estimate_normal",
    "project_to_2d",
]

__version__ = "1.0.0"
