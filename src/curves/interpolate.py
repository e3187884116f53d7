"""
interpolate.py
--------------

Per-point aesthetic values along a sampled curve.

Attributes come in two flavours:

  - gradient: values given at uniformly spaced stops along t. Two stops are the
    usual start/end pair; more stops (e.g. one per b-spline control point)
    give a piecewise-linear ramp. Numbers are blended linearly, colors are
    blended per RGBA channel.
  - constant: one value per curve instance, repeated on every point.
    Categorical values (linetype, discrete groups) belong here, as they
    cannot be blended.

Interpolation follows the parametric t produced by the sampler, not arc
length, so a strongly bent curve shows a non-uniform color/size density.
"""

from __future__ import annotations

__all__ = [
    "NUMERIC", "COLOR", "CATEGORICAL", "RESERVED_COLUMNS",
    "classify", "check_attributes", "interpolate", "broadcast",
]

from numbers import Real
from typing import Any, Mapping, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray
from matplotlib import colors as mcolors

from .errors import InvalidAttribute

NUMERIC = "numeric"
COLOR = "color"
CATEGORICAL = "categorical"

RESERVED_COLUMNS = frozenset({"group", "x", "y", "t", "index"})


def _is_number_string(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        float(value)
    except ValueError:
        return False
    return True


def classify(value: Any) -> str:
    """Return NUMERIC, COLOR, or CATEGORICAL for a single attribute value.

    Numeric-looking strings such as ``"1"`` or ``"0.5"`` are categorical,
    although matplotlib would read them as grayscale levels.
    """
    if isinstance(value, bool) or _is_number_string(value):
        return CATEGORICAL
    if isinstance(value, (Real, np.number)):
        return NUMERIC
    if mcolors.is_color_like(value):
        return COLOR
    return CATEGORICAL


def _stops(name: str, value: Any) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (Sequence, np.ndarray)):
        raise InvalidAttribute(
            f"Gradient attribute {name!r} needs a (start, end) pair or a sequence "
            f"of stops, got {type(value).__name__}."
        )
    if len(value) < 2:
        raise InvalidAttribute(f"Gradient attribute {name!r} needs at least 2 stops, got {len(value)}.")
    return value


def _gradient_kind(name: str, stops: Sequence[Any]) -> str:
    kinds = {classify(v) for v in stops}
    if len(kinds) > 1:
        raise InvalidAttribute(f"Gradient attribute {name!r} mixes value kinds {sorted(kinds)}.")
    kind = kinds.pop()
    if kind == CATEGORICAL and any(v != stops[0] for v in stops[1:]):
        raise InvalidAttribute(
            f"Categorical attribute {name!r} cannot be interpolated between "
            f"different values {list(stops)!r}; pass it as a constant."
        )
    return kind


def check_attributes(gradient: Mapping[str, Any],
                     constant: Mapping[str, Any]) -> dict[str, str]:
    """Validate attribute mappings and return the column kind per name.

    Raises:
        InvalidAttribute: For non-string or reserved names, names used in both
            mappings, malformed stop sequences, mixed kinds, or categorical
            gradients with differing stops.
    """
    kinds: dict[str, str] = {}
    for name in list(gradient) + list(constant):
        if not isinstance(name, str):
            raise InvalidAttribute(f"Attribute names must be strings, got {name!r}.")
        if name in RESERVED_COLUMNS:
            raise InvalidAttribute(f"Attribute name {name!r} is reserved.")
    both = set(gradient) & set(constant)
    if both:
        raise InvalidAttribute(f"Attribute(s) {sorted(both)} given as both gradient and constant.")

    for name, value in gradient.items():
        kinds[name] = _gradient_kind(name, _stops(name, value))
    for name, value in constant.items():
        kinds[name] = classify(value)
    return kinds


def _lerp_stops(values: NDArray[np.float64], t: NDArray[np.float64]) -> NDArray[np.float64]:
    k = len(values)
    pos = np.clip(t, 0.0, 1.0) * (k - 1)
    seg = np.minimum(np.floor(pos).astype(int), k - 2)
    u = (pos - seg).reshape(-1, *([1] * (values.ndim - 1)))
    # (1 - u) * a + u * b is exact at both ends of every segment.
    return (1.0 - u) * values[seg] + u * values[seg + 1]


def interpolate(gradient: Mapping[str, Any], t: ArrayLike) -> dict[str, NDArray]:
    """Interpolate gradient attributes at parameter values ``t``.

    Args:
        gradient: Mapping of attribute name to stops, e.g.
            ``{"size": (1, 4), "colour": ("red", "steelblue")}``.
        t: Parameter values in [0, 1] (as produced by the sampler).

    Returns:
        dict of arrays: numeric columns have shape (len(t),), color columns
        (len(t), 4) RGBA, categorical columns are object arrays.
    """
    t = np.asarray(t, dtype=float)
    out: dict[str, NDArray] = {}
    for name, value in gradient.items():
        stops = _stops(name, value)
        kind = _gradient_kind(name, stops)
        if kind == NUMERIC:
            out[name] = _lerp_stops(np.asarray(stops, dtype=float), t)
        elif kind == COLOR:
            out[name] = _lerp_stops(mcolors.to_rgba_array(list(stops)), t)
        else:
            out[name] = _filled(stops[0], len(t))
    return out


def _filled(value: Any, n: int) -> NDArray:
    column = np.empty(n, dtype=object)
    column.fill(value)
    return column


def broadcast(constant: Mapping[str, Any], n: int) -> dict[str, NDArray]:
    """Repeat each constant attribute on ``n`` points (colors as RGBA rows)."""
    out: dict[str, NDArray] = {}
    for name, value in constant.items():
        kind = classify(value)
        if kind == NUMERIC:
            out[name] = np.full(n, float(value))
        elif kind == COLOR:
            out[name] = np.tile(mcolors.to_rgba(value), (n, 1))
        else:
            out[name] = _filled(value, n)
    return out
