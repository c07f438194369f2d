"""Face selections and their computed results.

The host (a CAD kernel, a mesh file, ...) exposes faces through the
:class:`FaceSource` protocol and hands out opaque :class:`FaceRef` tokens.
:class:`SelectionStore` keeps one entry per selected face. A calculation
thread writes results while a display thread reads them; both go through
the same lock, and entries are frozen records that are only ever replaced
as a whole.
"""
from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, replace
from typing import Hashable, Iterable, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from .core import AreaMomentsResult, compute_face_moments
from .errors import AreaMomentsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FaceRef:
    """Opaque handle to a face owned by a :class:`FaceSource`."""
    source: str
    key: Hashable


@dataclass(frozen=True)
class FaceMesh:
    vertices: np.ndarray  # (n, 3)
    indices: np.ndarray   # (m, 3)


class FaceSource(Protocol):
    def faces(self) -> List[FaceRef]: ...
    def face_type(self, ref: FaceRef) -> str: ...
    def face_mesh(self, ref: FaceRef) -> FaceMesh: ...


class SelectionStatus(enum.Enum):
    PENDING = "pending"
    COMPUTED = "computed"
    INVALID = "invalid"


@dataclass(frozen=True)
class SelectionEntry:
    name: str
    ref: FaceRef
    status: SelectionStatus = SelectionStatus.PENDING
    result: Optional[AreaMomentsResult] = None
    error: Optional[str] = None


class SelectionStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[SelectionEntry] = []
        self._generation = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def select(self, entries: Iterable[Tuple[str, FaceRef]]) -> None:
        """Replace the whole selection; every new entry starts PENDING."""
        new = [SelectionEntry(name=name, ref=ref) for name, ref in entries]
        with self._lock:
            self._entries = new
            self._generation += 1
        logger.debug("Selection replaced with %d faces.", len(new))

    def clear(self) -> None:
        self.select(())

    def snapshot(self) -> Tuple[SelectionEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def set_result(self, index: int, ref: FaceRef, result: AreaMomentsResult) -> bool:
        return self._replace(None, index, ref, status=SelectionStatus.COMPUTED, result=result, error=None)

    def set_error(self, index: int, ref: FaceRef, message: str) -> bool:
        return self._replace(None, index, ref, status=SelectionStatus.INVALID, result=None, error=message)

    def _replace(self, generation: Optional[int], index: int, ref: FaceRef, **changes) -> bool:
        # Stale writes are dropped: selection changed, index points elsewhere,
        # or (for calculate_pending) the entry was already settled by another writer.
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            if not 0 <= index < len(self._entries) or self._entries[index].ref != ref:
                return False
            if generation is not None and self._entries[index].status is not SelectionStatus.PENDING:
                return False
            self._entries[index] = replace(self._entries[index], **changes)
            return True

    def calculate_pending(self, source: FaceSource, normal: Optional[Sequence[float]] = None) -> int:
        """Compute every PENDING entry and return how many were stored.

        Meshes are fetched and computed outside the lock, sequentially.
        `normal` overrides the estimated face normal for every entry. Entries
        settled by another writer in the meantime are left alone.
        """
        with self._lock:
            generation = self._generation
            pending = [(i, e) for i, e in enumerate(self._entries) if e.status is SelectionStatus.PENDING]

        stored = 0
        for index, entry in pending:
            try:
                mesh = source.face_mesh(entry.ref)
                result = compute_face_moments(mesh.vertices, mesh.indices, normal=normal)
            except AreaMomentsError as e:
                logger.error("%s: %s", entry.name, e)
                ok = self._replace(generation, index, entry.ref,
                                   status=SelectionStatus.INVALID, result=None, error=str(e))
            else:
                ok = self._replace(generation, index, entry.ref,
                                   status=SelectionStatus.COMPUTED, result=result, error=None)
            if ok:
                stored += 1
                continue
            with self._lock:
                if generation != self._generation:
                    logger.debug("Selection changed during calculation; discarding remaining results.")
                    break
            logger.debug("%s was settled by another writer; keeping its record.", entry.name)
        return stored


def name_faces(source: FaceSource, refs: Iterable[FaceRef]) -> List[Tuple[str, FaceRef]]:
    """Label faces "<face type> <n>", numbered from 1."""
    return [(f"{source.face_type(ref)} {i}", ref) for i, ref in enumerate(refs, start=1)]
