"""
batch.py
--------

Multi-curve batch driver.

A plotting layer draws many curves per call. ``run`` takes an ordered
sequence of CurveInstance records, validates all of them, samples each one,
fills in per-point attributes, and concatenates everything into a single
CurveBatch whose ``group`` column partitions the output into contiguous runs
in input order.

Validation happens for the whole batch before any sampling. The first failing
instance aborts the call with BatchFailure (index, group, and the original
error); no partial output is ever returned.
"""

from __future__ import annotations

__all__ = [
    "CurveInstance", "CurveBatch", "instance_from_record", "validate_batch", "run",
]

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Hashable, Iterator, Mapping, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from .descriptors import CurveDescriptor, descriptor_from_record
from .errors import BatchFailure, CurveError, InvalidAttribute, InvalidDescriptor
from .interpolate import CATEGORICAL, COLOR, NUMERIC, broadcast, check_attributes, interpolate
from .resolution import SampleResolution, as_resolution
from .sampler import SampledCurve, sample

LOGGER_NAME = "curves"


# =============================================================================
# Input records
# =============================================================================
@dataclass(frozen=True, eq=False)
class CurveInstance:
    """
    One curve to draw: a descriptor plus its group identity and aesthetics.

    Attributes:
        descriptor: Geometry of the curve.
        group: Caller-supplied identifier, unique within a batch. Defaults to
            the instance's position in the batch.
        gradient: Attributes interpolated along t, e.g. ``{"size": (1, 3)}``.
        constant: Attributes held for the whole curve, e.g.
            ``{"linetype": "dashed"}``.
    """

    descriptor: CurveDescriptor
    group: Optional[Hashable] = None
    gradient: Mapping[str, Any] = field(default_factory=dict)
    constant: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.descriptor, CurveDescriptor):
            raise TypeError(f"descriptor must be a CurveDescriptor, got {type(self.descriptor).__name__}.")
        for name in ("gradient", "constant"):
            value = getattr(self, name)
            if not isinstance(value, Mapping):
                raise TypeError(f"{name} must be a mapping, got {type(value).__name__}.")
            object.__setattr__(self, name, dict(value))


def instance_from_record(record: Mapping[str, Any]) -> CurveInstance:
    """Build a CurveInstance from a flat record.

    ``group``, ``gradient`` and ``constant`` keys are taken for the instance;
    everything else describes the geometry (see ``descriptor_from_record``).
    """
    if not isinstance(record, Mapping):
        raise TypeError(f"Expected a mapping, got {type(record).__name__}.")
    values = dict(record)
    group = values.pop("group", None)
    gradient = values.pop("gradient", None) or {}
    constant = values.pop("constant", None) or {}
    if not isinstance(gradient, Mapping) or not isinstance(constant, Mapping):
        raise InvalidAttribute("gradient and constant must be mappings of attribute values.")
    return CurveInstance(descriptor_from_record(values), group, gradient, constant)


# =============================================================================
# Output
# =============================================================================
def _column_kind(column: NDArray) -> str:
    if column.ndim == 2:
        return COLOR
    if column.dtype == object:
        return CATEGORICAL
    return NUMERIC


def _missing(kind: str, n: int) -> NDArray:
    if kind == COLOR:
        return np.full((n, 4), np.nan)
    if kind == NUMERIC:
        return np.full(n, np.nan)
    return np.full(n, None, dtype=object)


def _object_column(values: Sequence[Any]) -> NDArray:
    column = np.empty(len(values), dtype=object)
    for i, value in enumerate(values):
        column[i] = value
    return column


@dataclass(frozen=True, eq=False)
class CurveBatch:
    """
    Flattened, group-tagged tessellation of a batch.

    All per-point arrays share the same length. ``offsets`` has one more entry
    than ``groups``; points of instance ``i`` live in
    ``offsets[i]:offsets[i + 1]``.
    """

    group: NDArray
    x: NDArray[np.float64]
    y: NDArray[np.float64]
    t: NDArray[np.float64]
    index: NDArray[np.int64]
    attributes: dict[str, NDArray]
    groups: tuple[Hashable, ...]
    offsets: NDArray[np.int64]
    closed: tuple[bool, ...]

    def __len__(self) -> int:
        return len(self.t)

    @property
    def points(self) -> NDArray[np.float64]:
        return np.column_stack([self.x, self.y])

    def curve(self, i: int) -> tuple[SampledCurve, dict[str, NDArray]]:
        """Return instance ``i`` as a SampledCurve plus its attribute slices."""
        lo, hi = int(self.offsets[i]), int(self.offsets[i + 1])
        curve = SampledCurve(self.x[lo:hi], self.y[lo:hi], self.t[lo:hi], self.closed[i])
        return curve, {name: column[lo:hi] for name, column in self.attributes.items()}

    def split(self) -> Iterator[tuple[Hashable, SampledCurve, dict[str, NDArray]]]:
        """Yield ``(group, curve, attributes)`` per instance, in input order."""
        for i, group in enumerate(self.groups):
            curve, attributes = self.curve(i)
            yield group, curve, attributes

    def to_records(self) -> list[dict[str, Any]]:
        """Per-point dicts of plain Python values (colors as RGBA lists).

        Missing numeric and color values (NaN fill) become ``None`` so the
        records serialize to strict JSON.
        """
        columns: dict[str, list] = {
            "group": self.group.tolist(),
            "x": self.x.tolist(),
            "y": self.y.tolist(),
            "t": self.t.tolist(),
            "index": self.index.tolist(),
        }
        for name, column in self.attributes.items():
            if column.dtype == object:
                columns[name] = column.tolist()
                continue
            missing = np.isnan(column) if column.ndim == 1 else np.isnan(column).all(axis=1)
            columns[name] = [None if gap else value for value, gap in zip(column.tolist(), missing)]
        return [dict(zip(columns, row)) for row in zip(*columns.values())]

    @classmethod
    def concat(cls, batches: Sequence["CurveBatch"]) -> "CurveBatch":
        """Join batches in order; attribute columns are the union of all inputs."""
        if not batches:
            return _assemble([], [], [], [])
        kinds: dict[str, str] = {}
        for batch in batches:
            for name, column in batch.attributes.items():
                kind = _column_kind(column)
                if kinds.setdefault(name, kind) != kind:
                    raise InvalidAttribute(f"Column {name!r} holds both {kinds[name]} and {kind} values.")
        offsets = [0]
        for batch in batches:
            base = offsets[-1]
            offsets.extend(base + int(o) for o in batch.offsets[1:])
        return cls(
            group=np.concatenate([b.group for b in batches]),
            x=np.concatenate([b.x for b in batches]),
            y=np.concatenate([b.y for b in batches]),
            t=np.concatenate([b.t for b in batches]),
            index=np.concatenate([b.index for b in batches]),
            attributes={
                name: np.concatenate([
                    b.attributes.get(name, _missing(kind, len(b))) for b in batches
                ])
                for name, kind in kinds.items()
            },
            groups=tuple(g for b in batches for g in b.groups),
            offsets=np.asarray(offsets, dtype=np.int64),
            closed=tuple(c for b in batches for c in b.closed),
        )


def _assemble(groups: list[Hashable], curves: list[SampledCurve],
              attributes: list[dict[str, NDArray]], kinds: list[dict[str, str]]) -> CurveBatch:
    lengths = [len(c) for c in curves]
    columns: dict[str, str] = {}
    for per_instance in kinds:
        for name, kind in per_instance.items():
            columns.setdefault(name, kind)

    def stack(parts: list[NDArray], dtype: Any) -> NDArray:
        return np.concatenate(parts) if parts else np.empty(0, dtype=dtype)

    return CurveBatch(
        group=_object_column([g for g, n in zip(groups, lengths) for _ in range(n)]),
        x=stack([c.x for c in curves], float),
        y=stack([c.y for c in curves], float),
        t=stack([c.t for c in curves], float),
        index=stack([np.arange(n, dtype=np.int64) for n in lengths], np.int64),
        attributes={
            name: np.concatenate([
                attrs.get(name, _missing(kind, n)) for attrs, n in zip(attributes, lengths)
            ])
            for name, kind in columns.items()
        },
        groups=tuple(groups),
        offsets=np.concatenate([[0], np.cumsum(lengths, dtype=np.int64)]).astype(np.int64),
        closed=tuple(c.closed for c in curves),
    )


# =============================================================================
# Driver
# =============================================================================
def validate_batch(instances: Sequence[CurveInstance],
                   resolution: Union[int, SampleResolution]) -> list[CurveInstance]:
    """Check every instance before any sampling happens.

    Returns:
        The instances with group identifiers resolved. A missing group becomes
        the instance position, or the next integer not used by any other
        instance when the position is already taken by a caller-supplied id.

    Raises:
        TypeError: If an element is not a CurveInstance, or resolution has the
            wrong type.
        InvalidResolution: If the batch is empty and the resolution is unusable.
        BatchFailure: For the first instance whose descriptor, resolution, or
            attributes are invalid, or whose explicit group repeats an earlier one.
    """
    res = as_resolution(resolution, validate=False)
    if not instances:
        res.validate()

    explicit: set = set()
    for inst in instances:
        if isinstance(inst, CurveInstance) and inst.group is not None:
            try:
                explicit.add(inst.group)
            except TypeError:
                pass  # reported with its index below

    resolved: list[CurveInstance] = []
    seen: set = set()
    columns: dict[str, str] = {}

    for i, inst in enumerate(instances):
        if not isinstance(inst, CurveInstance):
            raise TypeError(f"Instance {i} must be a CurveInstance, got {type(inst).__name__}.")
        group = inst.group
        if group is None:
            group = i
            while group in explicit or group in seen:
                group += 1
        try:
            try:
                duplicate = group in seen
            except TypeError as e:
                raise InvalidDescriptor(f"Group identifier {group!r} is not hashable.") from e
            if duplicate:
                raise InvalidDescriptor(f"Duplicate group identifier {group!r}.")
            seen.add(group)

            inst.descriptor.validate()
            res.points_for(inst.descriptor)
            for name, kind in check_attributes(inst.gradient, inst.constant).items():
                if columns.setdefault(name, kind) != kind:
                    raise InvalidAttribute(
                        f"Attribute {name!r} is {kind} here but {columns[name]} in an earlier instance."
                    )
        except CurveError as e:
            raise BatchFailure(i, group, e) from e

        resolved.append(inst if inst.group is not None else replace(inst, group=group))

    return resolved


def run(instances: Sequence[CurveInstance],
        resolution: Union[int, SampleResolution]) -> CurveBatch:
    """Sample every instance and return the flattened batch.

    Args:
        instances: Curve instances, processed in order.
        resolution: Point count or SampleResolution applied to every instance.

    Returns:
        CurveBatch with ``len == sum of per-instance point counts``.

    Raises:
        BatchFailure: If any instance is invalid (nothing is sampled).
    """
    resolved = validate_batch(instances, resolution)

    groups, curves, attributes, kinds = [], [], [], []
    for inst in resolved:
        curve = sample(inst.descriptor, resolution)
        attrs = interpolate(inst.gradient, curve.t)
        attrs.update(broadcast(inst.constant, len(curve)))
        groups.append(inst.group)
        curves.append(curve)
        attributes.append(attrs)
        kinds.append(check_attributes(inst.gradient, inst.constant))

    batch = _assemble(groups, curves, attributes, kinds)
    logging.getLogger(LOGGER_NAME).debug(
        f"Batch of {len(resolved)} instance(s) sampled into {len(batch)} points."
    )
    return batch
