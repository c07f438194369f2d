"""Tests for the lock-guarded selection/result store."""

import threading

import numpy as np
import pytest

from areamoments import AreaMomentsResult
from areamoments.selection import (
    FaceMesh,
    FaceRef,
    SelectionStatus,
    SelectionStore,
    name_faces,
)

SQUARE = FaceMesh(
    vertices=np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [2.0, 2.0, 0.0], [0.0, 2.0, 0.0]]),
    indices=np.array([[0, 1, 2], [0, 2, 3]]),
)
FLAT = FaceMesh(
    vertices=np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 0.0], [1.0, 0.0, 0.0]]),
    indices=np.array([[0, 1, 2]]),
)
BROKEN = FaceMesh(
    vertices=np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]),
    indices=np.array([[0, 1, 5]]),
)


class DictSource:
    def __init__(self, meshes, name="doc"):
        self.name = name
        self.meshes = dict(meshes)
        self.calls = 0

    def faces(self):
        return [FaceRef(self.name, key) for key in self.meshes]

    def face_type(self, ref):
        return "Planar Face"

    def face_mesh(self, ref):
        self.calls += 1
        return self.meshes[ref.key]


def _store_for(source):
    store = SelectionStore()
    store.select(name_faces(source, source.faces()))
    return store


def test_names_and_initial_state():
    source = DictSource({"a": SQUARE, "b": FLAT})
    store = _store_for(source)
    entries = store.snapshot()
    assert [e.name for e in entries] == ["Planar Face 1", "Planar Face 2"]
    assert all(e.status is SelectionStatus.PENDING and e.result is None for e in entries)
    assert len(store) == 2


def test_calculate_pending_distinguishes_outcomes():
    source = DictSource({"square": SQUARE, "flat": FLAT, "broken": BROKEN})
    store = _store_for(source)
    assert store.calculate_pending(source) == 3

    square, flat, broken = store.snapshot()
    assert square.status is SelectionStatus.COMPUTED
    assert square.result.area == pytest.approx(4.0)
    assert flat.status is SelectionStatus.COMPUTED
    assert flat.result.is_empty
    assert broken.status is SelectionStatus.INVALID
    assert broken.result is None
    assert "outside" in broken.error


def test_computed_entries_are_not_recalculated():
    source = DictSource({"square": SQUARE})
    store = _store_for(source)
    store.calculate_pending(source)
    assert store.calculate_pending(source) == 0
    assert source.calls == 1


def test_old_snapshot_is_unchanged_by_writes():
    source = DictSource({"square": SQUARE})
    store = _store_for(source)
    before = store.snapshot()
    store.calculate_pending(source)
    assert before[0].status is SelectionStatus.PENDING
    assert store.snapshot()[0].status is SelectionStatus.COMPUTED


def test_results_for_replaced_selection_are_dropped():
    source = DictSource({"square": SQUARE, "flat": FLAT})
    store = _store_for(source)

    class Reselecting(DictSource):
        def face_mesh(self, ref):
            store.select([("Other 1", FaceRef("doc", "flat"))])
            return super().face_mesh(ref)

    assert store.calculate_pending(Reselecting(source.meshes)) == 0
    (entry,) = store.snapshot()
    assert entry.name == "Other 1"
    assert entry.status is SelectionStatus.PENDING


def test_set_result_checks_ref():
    source = DictSource({"square": SQUARE})
    store = _store_for(source)
    ref = source.faces()[0]
    assert not store.set_result(0, FaceRef("doc", "other"), AreaMomentsResult.zero())
    assert not store.set_result(3, ref, AreaMomentsResult.zero())
    assert store.set_result(0, ref, AreaMomentsResult(area=1.0))
    assert store.snapshot()[0].result.area == 1.0
    assert store.set_error(0, ref, "gone")
    entry = store.snapshot()[0]
    assert entry.status is SelectionStatus.INVALID and entry.result is None


def test_clear():
    source = DictSource({"square": SQUARE})
    store = _store_for(source)
    store.clear()
    assert store.snapshot() == ()


def test_readers_never_see_partial_records():
    source = DictSource({i: SQUARE for i in range(20)})
    store = _store_for(source)
    refs = source.faces()
    done = threading.Event()
    seen = []

    def reader():
        while not done.is_set():
            for e in store.snapshot():
                seen.append((e.status, e.result))

    t = threading.Thread(target=reader)
    t.start()
    try:
        for _ in range(50):
            for i, ref in enumerate(refs):
                store.set_result(i, ref, AreaMomentsResult(area=float(i + 1), cx=float(i + 1)))
            store.select(name_faces(source, refs))
    finally:
        done.set()
        t.join()

    for status, result in seen:
        if status is SelectionStatus.PENDING:
            assert result is None
        else:
            assert result.area == result.cx


def test_record_set_during_calculation_is_kept():
    source = DictSource({"square": SQUARE, "flat": FLAT})
    store = _store_for(source)
    manual = AreaMomentsResult(area=42.0)

    class ConcurrentWriter(DictSource):
        def face_mesh(self, ref):
            if ref.key == "square":
                store.set_result(0, ref, manual)
            return super().face_mesh(ref)

    assert store.calculate_pending(ConcurrentWriter(source.meshes)) == 1
    square, flat = store.snapshot()
    assert square.result is manual
    assert flat.status is SelectionStatus.COMPUTED
    assert flat.result.is_empty


def test_calculate_pending_with_explicit_normal():
    source = DictSource({"square": SQUARE})
    store = _store_for(source)
    # plane at 60 degrees to the square halves its projected area
    normal = (0.0, np.sqrt(3.0) / 2, 0.5)
    assert store.calculate_pending(source, normal=normal) == 1
    assert store.snapshot()[0].result.area == pytest.approx(2.0)


def test_calculate_pending_with_bad_normal_marks_invalid():
    source = DictSource({"square": SQUARE})
    store = _store_for(source)
    store.calculate_pending(source, normal=(0.0, 1.0))
    (entry,) = store.snapshot()
    assert entry.status is SelectionStatus.INVALID
