from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional, Tuple

import numpy as np

from .config import (
    AREA_EPSILON,
    LENGTH_EPSILON,
    MAX_TRIANGLES,
    PRINCIPAL_EPSILON,
    PRINCIPAL_RTOL,
)
from .errors import DegenerateGeometry
from .geometry import PlaneFrame, VectorLike, as_points, as_triangles, estimate_normal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AreaMomentsResult:
    """Section properties of one planar face, in the document's length unit.

    Coordinates are expressed in the local (u, v) frame of the face plane;
    `*_origin` moments are taken about the frame origin, the others about
    the centroid. `theta` is the angle (radians) from the local x axis to
    the axis of the maximum principal moment.
    """
    area: float = 0.0
    cx: float = 0.0
    cy: float = 0.0
    qx: float = 0.0
    qy: float = 0.0
    ixx_origin: float = 0.0
    iyy_origin: float = 0.0
    ixy_origin: float = 0.0
    j_origin: float = 0.0
    ix: float = 0.0
    iy: float = 0.0
    ixy: float = 0.0
    j: float = 0.0
    imin: float = 0.0
    imax: float = 0.0
    theta: float = 0.0
    rx: float = 0.0
    ry: float = 0.0
    rz: float = 0.0
    cx_max: float = 0.0
    cy_max: float = 0.0
    sx: float = 0.0
    sy: float = 0.0
    perimeter: float = 0.0

    @classmethod
    def zero(cls) -> "AreaMomentsResult":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.area == 0.0

    @property
    def theta_deg(self) -> float:
        return float(np.degrees(self.theta))

    def as_dict(self) -> dict:
        d = asdict(self)
        d["theta_deg"] = self.theta_deg
        return d


@dataclass(frozen=True)
class FaceSection:
    frame: PlaneFrame
    vertices2d: np.ndarray  # (n, 2), read-only
    result: AreaMomentsResult


# ---------------------------------------------------------------------------
# Triangle kernel. Elementwise: arguments may be floats or equal-length arrays.
# ---------------------------------------------------------------------------

def signed_area(x1, y1, x2, y2, x3, y3):
    """Signed triangle area, positive for counter-clockwise winding."""
    return 0.5 * ((x2 - x1) * (y3 - y1) - (x3 - x1) * (y2 - y1))


def triangle_centroid(x1, y1, x2, y2, x3, y3):
    return (x1 + x2 + x3) / 3.0, (y1 + y2 + y3) / 3.0


def triangle_moments(x1, y1, x2, y2, x3, y3, area):
    """Second moments (Ix, Iy, Ixy) of a triangle about the local origin.

    `area` is the signed area, so clockwise triangles contribute negatively.
    """
    ix = area / 6.0 * (y1 * y1 + y2 * y2 + y3 * y3 + y1 * y2 + y2 * y3 + y3 * y1)
    iy = area / 6.0 * (x1 * x1 + x2 * x2 + x3 * x3 + x1 * x2 + x2 * x3 + x3 * x1)
    ixy = area / 12.0 * (
        x1 * (2 * y1 + y2 + y3) + x2 * (y1 + 2 * y2 + y3) + x3 * (y1 + y2 + 2 * y3)
    )
    return ix, iy, ixy


# ---------------------------------------------------------------------------
# Principal axes
# ---------------------------------------------------------------------------

def principal_moments(ix: float, iy: float, ixy: float) -> Tuple[float, float, float]:
    """Return (Imin, Imax, theta) for centroidal moments (Ix, Iy, Ixy).

    theta is measured from the x axis to the Imax axis. For an isotropic
    section (circle, square) theta is 0 and Imin == Imax.
    """
    iavg = 0.5 * (ix + iy)
    half_diff = 0.5 * (ix - iy)
    r = float(np.hypot(half_diff, ixy))
    if r < PRINCIPAL_EPSILON or r <= PRINCIPAL_RTOL * abs(iavg):
        return iavg, iavg, 0.0
    theta = 0.5 * float(np.arctan2(-2.0 * ixy, ix - iy))
    return iavg - r, iavg + r, theta


def _boundary_length(uv: np.ndarray, tris: np.ndarray) -> float:
    """Total length of edges used by exactly one triangle."""
    edges = np.concatenate((tris[:, [0, 1]], tris[:, [1, 2]], tris[:, [2, 0]]))
    edges = np.sort(edges, axis=1)
    uniq, counts = np.unique(edges, axis=0, return_counts=True)
    boundary = uniq[counts == 1]
    if len(boundary) == 0:
        return 0.0
    seg = uv[boundary[:, 1]] - uv[boundary[:, 0]]
    return float(np.linalg.norm(seg, axis=1).sum())


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def calculate(vertices2d, indices) -> AreaMomentsResult:
    """Section properties of a triangulated planar region.

    Parameters
    ----------
    vertices2d:
        (n, 2) local coordinates (a flat [x0, y0, x1, y1, ...] sequence works too).
    indices:
        (m, 3) vertex indices, one row per triangle. Holes must be wound
        opposite to the outer boundary.

    Returns the zero result when the net area vanishes. Raises InvalidInput
    for malformed arrays or out-of-range indices.
    """
    uv = as_points(vertices2d, 2)
    tris = as_triangles(indices, len(uv))
    if len(tris) > MAX_TRIANGLES:
        logger.warning("Face has %d triangles (soft limit %d).", len(tris), MAX_TRIANGLES)
    if len(tris) == 0:
        logger.debug("No triangles; returning zero result.")
        return AreaMomentsResult.zero()

    x1, y1 = uv[tris[:, 0], 0], uv[tris[:, 0], 1]
    x2, y2 = uv[tris[:, 1], 0], uv[tris[:, 1], 1]
    x3, y3 = uv[tris[:, 2], 0], uv[tris[:, 2], 1]

    a = signed_area(x1, y1, x2, y2, x3, y3)
    tcx, tcy = triangle_centroid(x1, y1, x2, y2, x3, y3)
    tix, tiy, tixy = triangle_moments(x1, y1, x2, y2, x3, y3, a)

    area = float(a.sum())
    if abs(area) < AREA_EPSILON:
        logger.warning("Net area %.3e is below %.1e; returning zero result.", area, AREA_EPSILON)
        return AreaMomentsResult.zero()

    qy = float((a * tcx).sum())
    qx = float((a * tcy).sum())
    ixx_o = float(tix.sum())
    iyy_o = float(tiy.sum())
    ixy_o = float(tixy.sum())

    # Clockwise face: flip every signed sum so the area comes out positive.
    if area < 0:
        area, qx, qy, ixx_o, iyy_o, ixy_o = -area, -qx, -qy, -ixx_o, -iyy_o, -ixy_o

    cx = qy / area
    cy = qx / area

    # Parallel axis theorem
    ix = ixx_o - area * cy * cy
    iy = iyy_o - area * cx * cx
    ixy = ixy_o - area * cx * cy

    imin, imax, theta = principal_moments(ix, iy, ixy)
    j = ix + iy

    if area > LENGTH_EPSILON:
        rx = float(np.sqrt(max(ix, 0.0) / area))
        ry = float(np.sqrt(max(iy, 0.0) / area))
        rz = float(np.sqrt(max(j, 0.0) / area))
    else:
        rx = ry = rz = 0.0

    cx_max = float(np.abs(uv[:, 0] - cx).max())
    cy_max = float(np.abs(uv[:, 1] - cy).max())
    sx = ix / cy_max if cy_max > LENGTH_EPSILON else 0.0
    sy = iy / cx_max if cx_max > LENGTH_EPSILON else 0.0

    result = AreaMomentsResult(
        area=area,
        cx=cx,
        cy=cy,
        qx=qx,
        qy=qy,
        ixx_origin=ixx_o,
        iyy_origin=iyy_o,
        ixy_origin=ixy_o,
        j_origin=ixx_o + iyy_o,
        ix=ix,
        iy=iy,
        ixy=ixy,
        j=j,
        imin=imin,
        imax=imax,
        theta=theta,
        rx=rx,
        ry=ry,
        rz=rz,
        cx_max=cx_max,
        cy_max=cy_max,
        sx=sx,
        sy=sy,
        perimeter=_boundary_length(uv, tris),
    )
    logger.debug("Calculated %d triangles: area=%.6g centroid=(%.6g, %.6g)", len(tris), area, cx, cy)
    return result


def compute_face_section(
    vertices3d,
    indices,
    normal: Optional[VectorLike] = None,
    origin: Optional[VectorLike] = None,
) -> Optional[FaceSection]:
    """Project a 3D face onto its plane and compute its section properties.

    `normal` defaults to the normal of the first triangle and `origin` to the
    first vertex. Returns None when no plane can be established (no triangles
    or a degenerate normal).
    """
    pts = as_points(vertices3d, 3)
    tris = as_triangles(indices, len(pts))
    if len(tris) == 0:
        return None

    try:
        n = estimate_normal(pts, tris) if normal is None else normal
        frame = PlaneFrame.from_normal(n, pts[0] if origin is None else origin)
    except DegenerateGeometry as e:
        logger.warning("No usable face plane: %s", e)
        return None

    uv = frame.to_local(pts)
    return FaceSection(frame=frame, vertices2d=uv, result=calculate(uv, tris))


def compute_face_moments(
    vertices3d,
    indices,
    normal: Optional[VectorLike] = None,
    origin: Optional[VectorLike] = None,
) -> AreaMomentsResult:
    """Section properties of a triangulated 3D face.

    Degenerate geometry yields the zero result; malformed input raises
    InvalidInput.
    """
    section = compute_face_section(vertices3d, indices, normal=normal, origin=origin)
    if section is None:
        return AreaMomentsResult.zero()
    return section.result


def principal_directions(section: FaceSection) -> Tuple[np.ndarray, np.ndarray]:
    """World-space unit vectors of the (max, min) principal axes."""
    theta = section.result.theta
    d_max = section.frame.direction_to_world(theta).as_array()
    d_min = section.frame.direction_to_world(theta + 0.5 * np.pi).as_array()
    return d_max, d_min


def centroid_world(section: FaceSection) -> np.ndarray:
    """Centroid mapped back onto the face plane in world coordinates."""
    r = section.result
    return section.frame.to_world([[r.cx, r.cy]])[0]
