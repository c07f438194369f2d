from __future__ import annotations

import logging
from typing import Dict, List, Tuple

import numpy as np
import pyvista as pv

from .config import WELD_DECIMALS
from .errors import DegenerateGeometry, InvalidInput
from .geometry import as_points, estimate_normal
from .selection import FaceMesh, FaceRef

logger = logging.getLogger(__name__)


def load_mesh(path: str) -> pv.PolyData:
    """Load a face mesh (STL, PLY, VTK, ...) and ensure triangles."""
    mesh = pv.read(path)
    if not isinstance(mesh, pv.PolyData):
        mesh = mesh.extract_surface().triangulate()
    else:
        mesh = mesh.triangulate()
    mesh.clean(inplace=True)
    logger.info("Loaded %s: %d points, %d triangles", path, mesh.n_points, mesh.n_cells)
    return mesh


def mesh_arrays(mesh: pv.PolyData) -> Tuple[np.ndarray, np.ndarray]:
    """Return (vertices (n, 3), indices (m, 3)) of a triangulated PolyData."""
    tri = mesh
    if tri.n_cells == 0:
        raise InvalidInput("Mesh has no faces/cells.")
    if not tri.is_all_triangles:
        tri = tri.triangulate()

    faces = tri.faces.reshape(-1, 4)
    if len(faces) == 0:
        raise InvalidInput("Mesh has no triangles.")
    if not np.all(faces[:, 0] == 3):
        raise InvalidInput("Expected triangulated faces (all triangles).")

    return np.asarray(tri.points, dtype=float), faces[:, 1:4].astype(np.intp)


def from_facet_data(facets) -> Tuple[np.ndarray, np.ndarray]:
    """Triangle soup from flat facet data, 9 coordinates per triangle.

    Every triangle gets its own three vertices; use :func:`weld_vertices`
    to share coincident ones.
    """
    data = np.asarray(facets, dtype=float).reshape(-1)
    if data.size == 0 or data.size % 9 != 0:
        raise InvalidInput(f"Facet data length {data.size} is not a positive multiple of 9.")
    vertices = as_points(data, 3)
    indices = np.arange(len(vertices), dtype=np.intp).reshape(-1, 3)
    return vertices, indices


def weld_vertices(vertices, indices, decimals: int = WELD_DECIMALS) -> Tuple[np.ndarray, np.ndarray]:
    """Merge vertices that coincide after rounding to `decimals` places."""
    pts = as_points(vertices, 3)
    ids = np.asarray(indices, dtype=np.intp).reshape(-1, 3)
    _, first, inverse = np.unique(
        np.round(pts, decimals), axis=0, return_index=True, return_inverse=True
    )
    inverse = inverse.reshape(-1)
    logger.debug("Welded %d vertices into %d", len(pts), len(first))
    return pts[first], inverse[ids]


def is_planar(vertices, indices, rtol: float = 1e-6) -> bool:
    """True when every vertex lies within rtol * bbox diagonal of the first triangle's plane."""
    pts = as_points(vertices, 3)
    try:
        n = estimate_normal(pts, indices).as_array()
    except DegenerateGeometry:
        return False
    diag = float(np.linalg.norm(pts.max(axis=0) - pts.min(axis=0)))
    dist = np.abs((pts - pts[0]) @ n)
    return bool(dist.max() <= rtol * max(diag, 1.0))


class PolyDataFaceSource:
    """Faces of a mesh file: the whole mesh, or one face per connected region."""

    def __init__(self, mesh: pv.PolyData, name: str = "mesh", split: bool = False) -> None:
        self.name = name
        self._faces: Dict[int, FaceMesh] = {}
        if split:
            bodies = mesh.split_bodies()
            parts = [body.extract_surface().triangulate() for body in bodies]
        else:
            parts = [mesh]
        for key, part in enumerate(parts):
            vertices, indices = mesh_arrays(part)
            self._faces[key] = FaceMesh(vertices=vertices, indices=indices)
        logger.debug("%s: %d face(s)", name, len(self._faces))

    def faces(self) -> List[FaceRef]:
        return [FaceRef(self.name, key) for key in self._faces]

    def face_mesh(self, ref: FaceRef) -> FaceMesh:
        if ref.source != self.name or ref.key not in self._faces:
            raise InvalidInput(f"{ref!r} does not belong to {self.name!r}.")
        return self._faces[ref.key]

    def face_type(self, ref: FaceRef) -> str:
        face = self.face_mesh(ref)
        return "Planar Face" if is_planar(face.vertices, face.indices) else "Face"
