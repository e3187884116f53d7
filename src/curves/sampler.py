"""
sampler.py
----------

Tessellation of curve descriptors into ordered 2D point sequences.

Core API:

    sample(descriptor, resolution) -> SampledCurve

        Pure, deterministic. Returns arrays ``x``, ``y`` and the normalized
        parameter ``t`` (``i / (len - 1)``, 0 at the first point, 1 at the last).

    bernstein_basis(degree, t) -> NDArray

        General-degree Bernstein basis matrix; Bezier curves of every degree
        (and links, which are degree-1 Beziers) go through this single routine.

    clamped_bspline_points(ctrl, degree, t) / closed_bspline_points(ctrl, degree, t)

        De Boor evaluation over a clamped (open) or uniform periodic knot
        vector.

    tangents(curve) -> NDArray, end_tangent(curve) -> NDArray

        Unit tangents by finite differences. Degenerate (zero-length)
        segments yield zero vectors rather than NaN.

Sampling rules per kind:
  - Arc: angles linearly spaced from start to end, direction preserved.
  - Arc-bar (Arc with r0): outer arc forward, inner arc reversed on the same
    angles, as one closed boundary of 2n points; r0 == 0 collapses the inner
    arc into the center point (n + 1 points).
  - Circle: arc over [0, 2*pi]; the last point repeats the first exactly.
  - Bezier / Link / Diagonal: Bernstein evaluation at n uniform t values.
  - BSpline: clamped uniform b-spline; exact first and last control points.
  - ClosedBSpline: periodic uniform b-spline; the last point repeats the first.
"""

from __future__ import annotations

__all__ = [
    "SampledPoint", "SampledCurve", "sample",
    "bernstein_basis", "bezier_points", "arc_points",
    "clamped_knots", "clamped_bspline_points", "closed_bspline_points",
    "tangents", "end_tangent",
]

import math
import logging
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .descriptors import (
    Arc, BSpline, Bezier, Circle, ClosedBSpline, CurveDescriptor, Diagonal, Link,
)
from .errors import InvalidDescriptor
from .resolution import SampleResolution, as_resolution

LOGGER_NAME = "curves"


class SampledPoint(NamedTuple):
    x: float
    y: float
    t: float


@dataclass(frozen=True, eq=False)
class SampledCurve:
    """
    Tessellated curve: parallel read-only arrays ``x``, ``y``, ``t``.

    ``closed`` marks boundaries (circles, arc-bars, closed b-splines) that a
    renderer should close.
    """

    x: NDArray[np.float64]
    y: NDArray[np.float64]
    t: NDArray[np.float64]
    closed: bool = False

    def __post_init__(self) -> None:
        for name in ("x", "y", "t"):
            arr = np.array(getattr(self, name), dtype=float)
            arr.flags.writeable = False
            object.__setattr__(self, name, arr)
        if not (self.x.shape == self.y.shape == self.t.shape) or self.x.ndim != 1:
            raise ValueError(
                f"x, y, t must be 1D arrays of equal length; got "
                f"{self.x.shape}, {self.y.shape}, {self.t.shape}."
            )

    def __len__(self) -> int:
        return len(self.t)

    def __iter__(self) -> Iterator[SampledPoint]:
        for x, y, t in zip(self.x.tolist(), self.y.tolist(), self.t.tolist()):
            yield SampledPoint(x, y, t)

    @property
    def points(self) -> NDArray[np.float64]:
        """(len, 2) array of vertices."""
        return np.column_stack([self.x, self.y])


# ---------------------------------------------------------------------------
# Parameter grid
# ---------------------------------------------------------------------------
def _unit_grid(n: int) -> NDArray[np.float64]:
    # linspace places exact 0.0 and 1.0 at the ends.
    return np.linspace(0.0, 1.0, n)


# ---------------------------------------------------------------------------
# Bezier (Bernstein basis)
# ---------------------------------------------------------------------------
def bernstein_basis(degree: int, t: ArrayLike) -> NDArray[np.float64]:
    """Return the (len(t), degree + 1) Bernstein basis matrix.

    Args:
        degree: Polynomial degree (>= 1).
        t: Parameter values in [0, 1].

    Returns:
        Matrix ``B`` with ``B[j, i] = C(degree, i) (1 - t_j)^(degree - i) t_j^i``.
    """
    t = np.asarray(t, dtype=float)[:, None]
    i = np.arange(degree + 1)
    coeffs = np.array([math.comb(degree, k) for k in range(degree + 1)], dtype=float)
    return coeffs * (1.0 - t) ** (degree - i) * t ** i


def bezier_points(ctrl: ArrayLike, t: ArrayLike) -> NDArray[np.float64]:
    """Evaluate a Bezier curve of degree ``len(ctrl) - 1`` at ``t``."""
    ctrl = np.asarray(ctrl, dtype=float)
    return bernstein_basis(len(ctrl) - 1, t) @ ctrl


# ---------------------------------------------------------------------------
# Circular arcs
# ---------------------------------------------------------------------------
def arc_points(x0: float, y0: float, r: float, theta: ArrayLike) -> NDArray[np.float64]:
    """Points on the circle of radius ``r`` around ``(x0, y0)`` at angles ``theta``."""
    theta = np.asarray(theta, dtype=float)
    return np.column_stack([x0 + r * np.cos(theta), y0 + r * np.sin(theta)])


def _sample_arc(arc: Arc, n: int) -> tuple[NDArray[np.float64], bool]:
    theta = np.linspace(arc.start, arc.end, n)
    outer = arc_points(arc.x0, arc.y0, arc.r, theta)
    if arc.r0 is None:
        return outer, False

    if arc.r0 == 0:
        inner = np.array([[arc.x0, arc.y0]], dtype=float)
    else:
        inner = arc_points(arc.x0, arc.y0, arc.r0, theta[::-1])
    return np.vstack([outer, inner]), True


def _sample_circle(circle: Circle, n: int) -> NDArray[np.float64]:
    points = _sample_arc(circle.as_arc(), n)[0]
    points[-1] = points[0]
    return points


# ---------------------------------------------------------------------------
# B-splines (de Boor)
# ---------------------------------------------------------------------------
def clamped_knots(n_ctrl: int, degree: int) -> NDArray[np.float64]:
    """Clamped uniform knot vector on [0, 1] for ``n_ctrl`` control points."""
    n_inner = n_ctrl - degree - 1
    inner = np.arange(1, n_inner + 1, dtype=float) / (n_inner + 1)
    return np.concatenate([np.zeros(degree + 1), inner, np.ones(degree + 1)])


def _de_boor(ctrl: NDArray[np.float64], knots: NDArray[np.float64], degree: int,
             u: NDArray[np.float64]) -> NDArray[np.float64]:
    n = len(ctrl)
    k = np.clip(np.searchsorted(knots, u, side="right") - 1, degree, n - 1)
    d = np.stack([ctrl[k - degree + j] for j in range(degree + 1)], axis=1)

    for r in range(1, degree + 1):
        for j in range(degree, r - 1, -1):
            i = k - degree + j
            left = knots[i]
            denom = knots[i + 1 + degree - r] - left
            alpha = np.divide(u - left, denom, out=np.zeros_like(u), where=denom > 0)
            d[:, j] = (1.0 - alpha)[:, None] * d[:, j - 1] + alpha[:, None] * d[:, j]

    return d[:, degree]


def clamped_bspline_points(ctrl: ArrayLike, degree: int, t: ArrayLike) -> NDArray[np.float64]:
    """Evaluate an open clamped uniform b-spline at ``t`` in [0, 1].

    The curve starts on the first and ends on the last control point; interior
    control points are generally not interpolated.
    """
    ctrl = np.asarray(ctrl, dtype=float)
    t = np.asarray(t, dtype=float)
    return _de_boor(ctrl, clamped_knots(len(ctrl), degree), degree, t)


def closed_bspline_points(ctrl: ArrayLike, degree: int, t: ArrayLike) -> NDArray[np.float64]:
    """Evaluate a periodic uniform b-spline over the wrapped control polygon."""
    ctrl = np.asarray(ctrl, dtype=float)
    wrapped = np.vstack([ctrl, ctrl[:degree]])
    m = len(wrapped)
    knots = np.arange(m + degree + 1, dtype=float)
    u = degree + np.asarray(t, dtype=float) * (m - degree)
    points = _de_boor(wrapped, knots, degree, u)
    return points


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------
def sample(descriptor: CurveDescriptor,
           resolution: Union[int, SampleResolution]) -> SampledCurve:
    """Tessellate ``descriptor`` into a SampledCurve.

    Args:
        descriptor: Any CurveDescriptor.
        resolution: Fixed point count (int >= 2) or a SampleResolution.

    Returns:
        SampledCurve with ``t`` uniformly spaced on [0, 1]. Open curves get
        exactly ``n`` points; arc-bars get ``2n`` (``n + 1`` if ``r0 == 0``).

    Raises:
        TypeError: If ``descriptor`` is not a CurveDescriptor.
        InvalidDescriptor: If the descriptor fails validation.
        InvalidResolution: If the resolution is unusable.
    """
    if not isinstance(descriptor, CurveDescriptor):
        raise TypeError(f"Expected a CurveDescriptor, got {type(descriptor).__name__}.")

    descriptor.validate()
    n = as_resolution(resolution).points_for(descriptor)

    if isinstance(descriptor, Arc):
        points, closed = _sample_arc(descriptor, n)
    elif isinstance(descriptor, Circle):
        points, closed = _sample_circle(descriptor, n), True
    elif isinstance(descriptor, (Link, Diagonal)):
        points, closed = bezier_points(descriptor.to_bezier().control_polygon(), _unit_grid(n)), False
    elif isinstance(descriptor, Bezier):
        points, closed = bezier_points(descriptor.control_polygon(), _unit_grid(n)), False
    elif isinstance(descriptor, BSpline):
        points = clamped_bspline_points(descriptor.control_polygon(), descriptor.degree, _unit_grid(n))
        closed = False
    elif isinstance(descriptor, ClosedBSpline):
        points = closed_bspline_points(descriptor.control_polygon(), descriptor.degree, _unit_grid(n))
        points[-1] = points[0]
        closed = True
    else:
        raise InvalidDescriptor(f"No sampler for descriptor kind {descriptor.kind!r}.")

    logging.getLogger(LOGGER_NAME).debug(
        f"Sampled {type(descriptor).__name__} into {len(points)} points (n={n})."
    )
    return SampledCurve(points[:, 0], points[:, 1], _unit_grid(len(points)), closed)


# ---------------------------------------------------------------------------
# Direction-derived quantities
# ---------------------------------------------------------------------------
def _motion_tolerance(points: NDArray[np.float64]) -> float:
    # Steps below a few ulps of the coordinate scale are roundoff, not motion.
    scale = float(np.abs(points).max()) if points.size else 0.0
    return 64.0 * np.finfo(float).eps * max(1.0, scale)


def tangents(curve: SampledCurve) -> NDArray[np.float64]:
    """Unit tangent per point; zero where the curve does not move."""
    points = curve.points
    if len(points) < 2:
        return np.zeros_like(points)
    d = np.gradient(points, axis=0)
    norm = np.hypot(d[:, 0], d[:, 1])[:, None]
    return np.divide(d, norm, out=np.zeros_like(d), where=norm > _motion_tolerance(points))


def end_tangent(curve: SampledCurve) -> NDArray[np.float64]:
    """Direction of the last non-degenerate segment, or (0, 0)."""
    points = curve.points
    d = np.diff(points, axis=0)
    norm = np.hypot(d[:, 0], d[:, 1])
    moving = np.flatnonzero(norm > _motion_tolerance(points))
    if moving.size == 0:
        return np.zeros(2)
    last = moving[-1]
    return d[last] / norm[last]
