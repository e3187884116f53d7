from .errors import CurveError, InvalidDescriptor, InvalidResolution, InvalidAttribute, BatchFailure
from .descriptors import (
    CurveDescriptor, Arc, Circle, Bezier, BSpline, ClosedBSpline, Link, Diagonal,
    descriptor_from_record,
)
from .resolution import SampleResolution
from .sampler import SampledPoint, SampledCurve, sample, tangents, end_tangent
from .interpolate import interpolate, broadcast
from .batch import CurveInstance, CurveBatch, instance_from_record, validate_batch, run

__all__ = [
    "CurveError", "InvalidDescriptor", "InvalidResolution", "InvalidAttribute", "BatchFailure",
    "CurveDescriptor", "Arc", "Circle", "Bezier", "BSpline", "ClosedBSpline", "Link", "Diagonal",
    "descriptor_from_record",
    "SampleResolution",
    "SampledPoint", "SampledCurve", "sample", "tangents", "end_tangent",
    "interpolate", "broadcast",
    "CurveInstance", "CurveBatch", "instance_from_record", "validate_batch", "run",
]
