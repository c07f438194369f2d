from __future__ import annotations


class AreaMomentsError(ValueError):
    """Base class for errors raised by the section-property engine."""


class DegenerateGeometry(AreaMomentsError):
    """The face has no usable plane (zero-length normal)."""


class InvalidInput(AreaMomentsError):
    """Caller contract violation: malformed arrays or out-of-range indices."""
