from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from .config import NORMAL_EPSILON, PARALLEL_THRESHOLD
from .errors import DegenerateGeometry, InvalidInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Vector3D:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_array(cls, values) -> "Vector3D":
        arr = np.asarray(values, dtype=float).reshape(-1)
        if arr.shape != (3,) or not np.isfinite(arr).all():
            raise InvalidInput(f"Expected three finite coordinates, got {values!r}.")
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    def __add__(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, s: float) -> "Vector3D":
        return Vector3D(self.x * s, self.y * s, self.z * s)

    __rmul__ = __mul__

    def dot(self, other: "Vector3D") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return float(np.sqrt(self.dot(self)))

    def normalized(self) -> "Vector3D":
        """Unit vector in the same direction.

        Raises DegenerateGeometry when the length is not above NORMAL_EPSILON.
        """
        n = self.length()
        if n <= NORMAL_EPSILON:
            raise DegenerateGeometry(f"Cannot normalize a near-zero vector (length {n:.3e}).")
        return Vector3D(self.x / n, self.y / n, self.z / n)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)


VectorLike = Union[Vector3D, Sequence[float], np.ndarray]

WORLD_X = Vector3D(1.0, 0.0, 0.0)
WORLD_Y = Vector3D(0.0, 1.0, 0.0)


def as_vector(value: VectorLike) -> Vector3D:
    if isinstance(value, Vector3D):
        return value
    return Vector3D.from_array(value)


def as_points(vertices, dim: int) -> np.ndarray:
    """Return `vertices` as a finite (n, dim) float array.

    A flat sequence of length dim*n is accepted as well.
    """
    pts = np.asarray(vertices, dtype=float)
    if pts.ndim == 1:
        if pts.size % dim != 0:
            raise InvalidInput(f"Flat vertex array length {pts.size} is not a multiple of {dim}.")
        pts = pts.reshape(-1, dim)
    if pts.ndim != 2 or pts.shape[1] != dim:
        raise InvalidInput(f"Expected vertices of shape (n, {dim}), got {pts.shape}.")
    if not np.isfinite(pts).all():
        raise InvalidInput("Vertex coordinates must be finite.")
    return pts


def as_triangles(indices, n_vertices: int) -> np.ndarray:
    """Return `indices` as an (m, 3) integer array with every index in range."""
    raw = np.asarray(indices)
    if raw.size == 0:
        return np.empty((0, 3), dtype=np.intp)
    if not np.issubdtype(raw.dtype, np.integer):
        if not np.issubdtype(raw.dtype, np.floating) or not np.all(np.mod(raw, 1) == 0):
            raise InvalidInput("Triangle indices must be integers.")
    ids = raw.astype(np.intp)
    if ids.ndim == 1:
        if ids.size % 3 != 0:
            raise InvalidInput(f"Flat index array length {ids.size} is not a multiple of 3.")
        ids = ids.reshape(-1, 3)
    if ids.ndim != 2 or ids.shape[1] != 3:
        raise InvalidInput(f"Expected indices of shape (m, 3), got {ids.shape}.")
    bad = (ids < 0) | (ids >= n_vertices)
    if bad.any():
        t = int(np.argwhere(bad)[0][0])
        raise InvalidInput(
            f"Triangle {t} references vertex {ids[t].tolist()} outside [0, {n_vertices})."
        )
    return ids


@dataclass(frozen=True)
class PlaneFrame:
    """Orthonormal frame on a face plane.

    (u_axis, v_axis, normal) is right-handed, so a triangle wound
    counter-clockwise about `normal` has positive signed area in (u, v).
    """
    origin: Vector3D
    normal: Vector3D
    u_axis: Vector3D
    v_axis: Vector3D

    @classmethod
    def from_normal(cls, normal: VectorLike, origin: VectorLike) -> "PlaneFrame":
        n = as_vector(normal).normalized()
        ref = WORLD_X if abs(n.dot(WORLD_X)) <= PARALLEL_THRESHOLD else WORLD_Y
        u = ref.cross(n).normalized()
        v = n.cross(u)
        return cls(origin=as_vector(origin), normal=n, u_axis=u, v_axis=v)

    def to_local(self, points) -> np.ndarray:
        """Project (n, 3) world points to a read-only (n, 2) array of (u, v)."""
        pts = as_points(points, 3)
        d = pts - self.origin.as_array()[None, :]
        uv = np.column_stack((d @ self.u_axis.as_array(), d @ self.v_axis.as_array()))
        uv.setflags(write=False)
        return uv

    def to_world(self, uv) -> np.ndarray:
        """Map (n, 2) local coordinates back onto the plane in world space."""
        loc = as_points(uv, 2)
        return (
            self.origin.as_array()[None, :]
            + loc[:, 0:1] * self.u_axis.as_array()[None, :]
            + loc[:, 1:2] * self.v_axis.as_array()[None, :]
        )

    def direction_to_world(self, angle: float) -> Vector3D:
        """World direction of the in-plane axis at `angle` radians from u."""
        return self.u_axis * float(np.cos(angle)) + self.v_axis * float(np.sin(angle))


def estimate_normal(vertices3d, indices) -> Vector3D:
    """Unit normal of the first triangle, (v1 - v0) x (v2 - v0).

    Later triangles are never consulted, even if the first one is degenerate.
    """
    pts = as_points(vertices3d, 3)
    tris = as_triangles(indices, len(pts))
    if len(tris) == 0:
        raise DegenerateGeometry("Cannot estimate a normal without triangles.")

    v0, v1, v2 = (Vector3D.from_array(pts[i]) for i in tris[0])
    cross = (v1 - v0).cross(v2 - v0)
    if cross.length() < NORMAL_EPSILON:
        raise DegenerateGeometry("First triangle is degenerate (collinear or coincident vertices).")
    return cross.normalized()


def project_to_2d(vertices3d, normal: VectorLike, origin: VectorLike) -> np.ndarray:
    """Project 3D vertices into the (u, v) frame of the plane through `origin`.

    The output keeps the length and order of `vertices3d`.
    """
    frame = PlaneFrame.from_normal(normal, origin)
    logger.debug("Projection frame u=%s v=%s n=%s", frame.u_axis, frame.v_axis, frame.normal)
    return frame.to_local(vertices3d)
