"""
errors.py
---------

Exception hierarchy shared by the tessellation core.

Descriptor, resolution, and attribute problems are detected synchronously
while validating input, before any sampling work starts. The batch driver
wraps the first per-instance failure into ``BatchFailure`` so callers learn
which instance was rejected.
"""

from __future__ import annotations

__all__ = [
    "CurveError", "InvalidDescriptor", "InvalidResolution",
    "InvalidAttribute", "BatchFailure",
]

from typing import Any, Hashable, Optional


class CurveError(Exception):
    """Base class for all tessellation errors."""


class InvalidDescriptor(CurveError, ValueError):
    """Malformed geometric input (control-point count, radii, non-finite values)."""


class InvalidResolution(CurveError, ValueError):
    """Unusable sampling resolution (fewer than two points, bad tolerance)."""


class InvalidAttribute(CurveError, ValueError):
    """Attribute values that cannot be interpolated or combined."""


class BatchFailure(CurveError):
    """
    Raised when any instance of a batch fails validation.

    Attributes:
        index: Position of the offending instance in the input sequence.
        group: Group identifier of the offending instance (may be None).
        cause: The original InvalidDescriptor / InvalidResolution /
            InvalidAttribute error.
    """

    def __init__(self, index: int, group: Optional[Hashable], cause: Exception) -> None:
        self.index = index
        self.group = group
        self.cause = cause
        super().__init__(
            f"Instance {index} (group={group!r}) failed: "
            f"{type(cause).__name__}: {cause}"
        )

    def __reduce__(self) -> tuple[Any, ...]:
        # Keep the exception picklable across process pools.
        return (self.__class__, (self.index, self.group, self.cause))
