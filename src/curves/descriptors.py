"""
descriptors.py
--------------

Typed, immutable descriptors for every supported curve family.

Each descriptor carries only the fields valid for its kind:

    Arc            - center, radius, optional inner radius (arc-bar / wedge),
                     start and end angle in radians.
    Circle         - center and radius (closed, full turn).
    Bezier         - 2+ control points, any degree (linear, quadratic, cubic, ...).
    BSpline        - 3+ control points, clamped uniform b-spline.
    ClosedBSpline  - 3+ control points, periodic uniform b-spline.
    Link           - exactly two endpoints.
    Diagonal       - two endpoints joined by a sigmoid cubic Bezier.

Construction normalizes input (floats, tuples of (x, y) pairs) and rejects
values that cannot be read as numbers. Semantic checks (radii, point counts,
finiteness) live in ``validate()``, which the sampler calls before sampling.
"""

from __future__ import annotations

__all__ = [
    "CurveDescriptor", "Arc", "Circle", "Bezier", "BSpline", "ClosedBSpline",
    "Link", "Diagonal", "descriptor_from_record", "PointXY",
]

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Mapping, Optional, Sequence, TypeAlias

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidDescriptor

PointXY: TypeAlias = tuple[float, float]

BSPLINE_DEGREE = 3

_KINDS: dict[str, type["CurveDescriptor"]] = {}


# ---------------------------------------------------------------------------
# Normalization helpers
# ---------------------------------------------------------------------------
def _as_float(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidDescriptor(f"{name} must be numeric, got bool.")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidDescriptor(
            f"{name} must be numeric. Received type: {type(value).__name__}; value: {value!r}."
        ) from e


def _as_point(name: str, value: Any) -> PointXY:
    if isinstance(value, (str, bytes)) or not isinstance(value, (Sequence, np.ndarray)):
        raise InvalidDescriptor(f"{name} must be an (x, y) pair, got {type(value).__name__}.")
    if len(value) != 2:
        raise InvalidDescriptor(f"{name} must have exactly two coordinates, got {len(value)}.")
    return (_as_float(f"{name}.x", value[0]), _as_float(f"{name}.y", value[1]))


def _as_points(name: str, value: Any) -> tuple[PointXY, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (Sequence, np.ndarray)):
        raise InvalidDescriptor(
            f"{name} must be a sequence of (x, y) pairs, got {type(value).__name__}."
        )
    return tuple(_as_point(f"{name}[{i}]", p) for i, p in enumerate(value))


def _check_finite(name: str, *values: float) -> None:
    if not all(math.isfinite(v) for v in values):
        raise InvalidDescriptor(f"{name} must be finite, got {values}.")


def _register(cls: type["CurveDescriptor"]) -> type["CurveDescriptor"]:
    _KINDS[cls.kind] = cls
    return cls


# =============================================================================
# Base class
# =============================================================================
class CurveDescriptor(ABC):
    """
    Abstract base for all curve descriptors.

    Subclasses are frozen dataclasses; instances are value objects that can be
    shared between threads and pickled into worker processes.
    """

    kind: ClassVar[str] = ""

    @abstractmethod
    def validate(self) -> None:
        """Raise InvalidDescriptor if the descriptor cannot be sampled."""
        raise NotImplementedError

    @abstractmethod
    def control_polygon(self) -> NDArray[np.float64]:
        """Return the (k, 2) array of points defining the curve."""
        raise NotImplementedError

    @property
    def closed(self) -> bool:
        """Whether the sampled path forms a closed boundary."""
        return False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CurveDescriptor":
        """Build a descriptor from a flat mapping of field values."""
        names = {f.name for f in fields(cls)}
        unknown = set(record) - names
        if unknown:
            raise InvalidDescriptor(
                f"Unexpected field(s) {sorted(unknown)} for kind {cls.kind!r}. "
                f"Allowed: {sorted(names)}."
            )
        try:
            return cls(**record)
        except TypeError as e:
            raise InvalidDescriptor(f"Incomplete {cls.kind!r} record: {e}") from e


# =============================================================================
# Circular families
# =============================================================================
@_register
@dataclass(frozen=True)
class Arc(CurveDescriptor):
    """
    Circular arc, or arc-bar (annular wedge) when ``r0`` is given.

    Angles are in radians measured counter-clockwise from the positive x
    axis. ``end < start`` means clockwise winding; the direction is kept.
    """

    kind: ClassVar[str] = "arc"

    x0: float
    y0: float
    r: float
    start: float
    end: float
    r0: Optional[float] = None

    def __post_init__(self) -> None:
        for name in ("x0", "y0", "r", "start", "end"):
            object.__setattr__(self, name, _as_float(name, getattr(self, name)))
        if self.r0 is not None:
            object.__setattr__(self, "r0", _as_float("r0", self.r0))

    @property
    def closed(self) -> bool:
        return self.r0 is not None

    @property
    def span(self) -> float:
        return self.end - self.start

    def validate(self) -> None:
        _check_finite("Arc parameters", self.x0, self.y0, self.r, self.start, self.end)
        if self.r < 0:
            raise InvalidDescriptor(f"Arc radius must be >= 0, got {self.r}.")
        if self.r0 is not None:
            _check_finite("Arc inner radius", self.r0)
            if self.r0 < 0:
                raise InvalidDescriptor(f"Arc inner radius must be >= 0, got {self.r0}.")
            if self.r0 > self.r:
                raise InvalidDescriptor(
                    f"Arc inner radius {self.r0} exceeds outer radius {self.r}."
                )

    def control_polygon(self) -> NDArray[np.float64]:
        return np.array([[self.x0, self.y0]], dtype=float)


@_register
@dataclass(frozen=True)
class Circle(CurveDescriptor):
    """Full circle, sampled counter-clockwise from angle 0."""

    kind: ClassVar[str] = "circle"

    x0: float
    y0: float
    r: float

    def __post_init__(self) -> None:
        for name in ("x0", "y0", "r"):
            object.__setattr__(self, name, _as_float(name, getattr(self, name)))

    @property
    def closed(self) -> bool:
        return True

    def validate(self) -> None:
        _check_finite("Circle parameters", self.x0, self.y0, self.r)
        if self.r < 0:
            raise InvalidDescriptor(f"Circle radius must be >= 0, got {self.r}.")

    def as_arc(self) -> Arc:
        return Arc(self.x0, self.y0, self.r, 0.0, 2.0 * math.pi)

    def control_polygon(self) -> NDArray[np.float64]:
        return np.array([[self.x0, self.y0]], dtype=float)


# =============================================================================
# Control-point families
# =============================================================================
@dataclass(frozen=True)
class _ControlPointCurve(CurveDescriptor):
    points: tuple[PointXY, ...]

    min_points: ClassVar[int] = 2

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", _as_points("points", self.points))

    def validate(self) -> None:
        if len(self.points) < self.min_points:
            raise InvalidDescriptor(
                f"{type(self).__name__} requires at least {self.min_points} control "
                f"points, got {len(self.points)}."
            )
        _check_finite(f"{type(self).__name__} control points", *(c for p in self.points for c in p))

    def control_polygon(self) -> NDArray[np.float64]:
        return np.array(self.points, dtype=float).reshape(-1, 2)


@_register
@dataclass(frozen=True)
class Bezier(_ControlPointCurve):
    """
    Bezier curve of arbitrary degree.

    The first and last points are the curve endpoints; interior points are
    control handles (one for quadratic, two for cubic).
    """

    kind: ClassVar[str] = "bezier"
    min_points: ClassVar[int] = 2

    @property
    def degree(self) -> int:
        return len(self.points) - 1


@_register
@dataclass(frozen=True)
class BSpline(_ControlPointCurve):
    """Open b-spline, clamped so it starts and ends on the outer control points."""

    kind: ClassVar[str] = "bspline"
    min_points: ClassVar[int] = 3

    @property
    def degree(self) -> int:
        return min(BSPLINE_DEGREE, len(self.points) - 1)


@_register
@dataclass(frozen=True)
class ClosedBSpline(_ControlPointCurve):
    """Periodic b-spline through the wrapped control polygon."""

    kind: ClassVar[str] = "closed_bspline"
    min_points: ClassVar[int] = 3

    @property
    def degree(self) -> int:
        return min(BSPLINE_DEGREE, len(self.points) - 1)

    @property
    def closed(self) -> bool:
        return True


# =============================================================================
# Two-point families
# =============================================================================
@dataclass(frozen=True)
class _TwoPointCurve(CurveDescriptor):
    start: PointXY
    end: PointXY

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _as_point("start", self.start))
        object.__setattr__(self, "end", _as_point("end", self.end))

    def validate(self) -> None:
        _check_finite(f"{type(self).__name__} endpoints", *self.start, *self.end)

    def control_polygon(self) -> NDArray[np.float64]:
        return self.to_bezier().control_polygon()

    @abstractmethod
    def to_bezier(self) -> Bezier:
        raise NotImplementedError

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CurveDescriptor":
        """Accept either start/end pairs or x, y, xend, yend columns."""
        record = dict(record)
        columns = ("x", "y", "xend", "yend")
        if any(key in record for key in columns):
            missing = [key for key in columns if key not in record]
            if missing:
                raise InvalidDescriptor(f"Incomplete {cls.kind!r} record: missing {missing}.")
            x, y, xend, yend = (record.pop(key) for key in columns)
            record["start"] = (x, y)
            record["end"] = (xend, yend)
        return super().from_record(record)


@_register
@dataclass(frozen=True)
class Link(_TwoPointCurve):
    """Straight segment; the degree-1 Bezier between its endpoints."""

    kind: ClassVar[str] = "link"

    def to_bezier(self) -> Bezier:
        return Bezier((self.start, self.end))


@_register
@dataclass(frozen=True)
class Diagonal(_TwoPointCurve):
    """
    Sigmoid connector between two points.

    The cubic handles sit at ``strength`` of the horizontal distance from each
    endpoint, keeping the endpoint's y (or the vertical distance, keeping x,
    when ``flipped``). ``strength=0`` degenerates to a straight segment.
    """

    kind: ClassVar[str] = "diagonal"

    strength: float = 0.5
    flipped: bool = False

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "strength", _as_float("strength", self.strength))
        object.__setattr__(self, "flipped", bool(self.flipped))

    def validate(self) -> None:
        super().validate()
        if not 0.0 <= self.strength <= 1.0:
            raise InvalidDescriptor(f"Diagonal strength must be in [0, 1], got {self.strength}.")

    def to_bezier(self) -> Bezier:
        (x1, y1), (x2, y2) = self.start, self.end
        s = self.strength
        if self.flipped:
            dy = y2 - y1
            handles = ((x1, y1 + s * dy), (x2, y2 - s * dy))
        else:
            dx = x2 - x1
            handles = ((x1 + s * dx, y1), (x2 - s * dx, y2))
        return Bezier((self.start, *handles, self.end))


# ---------------------------------------------------------------------------
# Tabular construction
# ---------------------------------------------------------------------------
def descriptor_from_record(record: Mapping[str, Any]) -> CurveDescriptor:
    """Build a descriptor from a mapping with a ``kind`` key.

    Args:
        record: Mapping such as ``{"kind": "arc", "x0": 0, "y0": 0, "r": 1,
            "start": 0, "end": 3.14}``. Control-point kinds take ``points``;
            link and diagonal accept ``start``/``end`` or ``x, y, xend, yend``.

    Returns:
        The matching CurveDescriptor instance (not yet validated).

    Raises:
        TypeError: If ``record`` is not a mapping.
        InvalidDescriptor: For unknown kinds, missing, or unexpected fields.
    """
    if not isinstance(record, Mapping):
        raise TypeError(f"Expected a mapping, got {type(record).__name__}.")

    values = dict(record)
    kind = values.pop("kind", None)
    cls = _KINDS.get(str(kind).strip().lower()) if kind is not None else None
    if cls is None:
        raise InvalidDescriptor(f"Unknown curve kind {kind!r}. Expected one of {sorted(_KINDS)}.")
    return cls.from_record(values)
