"""
resolution.py
-------------

Sampling resolution policies.

A resolution is either a fixed point count or an adaptive tolerance from
which the point count is derived per curve:

    SampleResolution(n=100)                       # fixed
    SampleResolution.adaptive(max_angle=pi / 90)  # arcs: <= 2 deg per step
    SampleResolution.adaptive(max_chord=0.05)     # any kind: <= 0.05 per step

Every policy yields at least two points.
"""

from __future__ import annotations

__all__ = ["SampleResolution", "as_resolution", "MIN_POINTS"]

import math
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from .descriptors import Arc, Circle, CurveDescriptor
from .errors import InvalidResolution

MIN_POINTS = 2


@dataclass(frozen=True)
class SampleResolution:
    """Fixed (``n``) or adaptive (``max_angle`` / ``max_chord``) resolution."""

    n: Optional[int] = None
    max_angle: Optional[float] = None
    max_chord: Optional[float] = None
    min_points: int = MIN_POINTS

    @classmethod
    def adaptive(cls, max_angle: Optional[float] = None,
                 max_chord: Optional[float] = None,
                 min_points: int = MIN_POINTS) -> "SampleResolution":
        return cls(max_angle=max_angle, max_chord=max_chord, min_points=min_points)

    @property
    def is_fixed(self) -> bool:
        return self.n is not None

    def validate(self) -> None:
        """Raise InvalidResolution unless the policy can produce >= 2 points."""
        if self.n is not None:
            if self.max_angle is not None or self.max_chord is not None:
                raise InvalidResolution("Use either a fixed point count or tolerances, not both.")
            _check_count("n", self.n)
            return

        _check_count("min_points", self.min_points)
        if self.max_angle is None and self.max_chord is None:
            raise InvalidResolution("Adaptive resolution requires max_angle and/or max_chord.")
        for name in ("max_angle", "max_chord"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidResolution(f"{name} must be numeric, got {type(value).__name__}.")
            if not (math.isfinite(value) and value > 0):
                raise InvalidResolution(f"{name} must be a positive finite number, got {value}.")

    def points_for(self, descriptor: CurveDescriptor) -> int:
        """Return the number of samples to take along ``descriptor``."""
        self.validate()
        if self.n is not None:
            return int(self.n)

        if isinstance(descriptor, Circle):
            descriptor = descriptor.as_arc()

        if isinstance(descriptor, Arc):
            span = abs(descriptor.span)
            steps = 1
            if self.max_angle is not None:
                steps = max(steps, math.ceil(span / self.max_angle))
            if self.max_chord is not None and descriptor.r > 0 and self.max_chord < 2 * descriptor.r:
                step_angle = 2.0 * math.asin(self.max_chord / (2.0 * descriptor.r))
                steps = max(steps, math.ceil(span / step_angle))
        else:
            if self.max_chord is None:
                raise InvalidResolution(
                    f"max_angle only applies to arcs; {type(descriptor).__name__} needs max_chord."
                )
            polygon = descriptor.control_polygon()
            if descriptor.closed:
                polygon = np.vstack([polygon, polygon[:1]])
            length = float(np.sum(np.hypot(*np.diff(polygon, axis=0).T)))
            steps = max(1, math.ceil(length / self.max_chord))

        return max(int(self.min_points), steps + 1)


def _check_count(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidResolution(f"{name} must be an integer, got {type(value).__name__}.")
    if value < MIN_POINTS:
        raise InvalidResolution(f"{name} must be >= {MIN_POINTS}, got {value}.")


def as_resolution(resolution: Union[int, SampleResolution],
                  validate: bool = True) -> SampleResolution:
    """Coerce an int point count into a SampleResolution (validated by default)."""
    if isinstance(resolution, SampleResolution):
        result = resolution
    elif isinstance(resolution, (int, np.integer)) and not isinstance(resolution, bool):
        result = SampleResolution(n=int(resolution))
    else:
        raise TypeError(
            f"resolution must be an int or SampleResolution, got {type(resolution).__name__}."
        )
    if validate:
        result.validate()
    return result
