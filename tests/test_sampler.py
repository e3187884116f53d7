"""
test_sampler.py
---------------
Unit tests for sampler.py
"""

import math
import warnings

import numpy as np
import pytest

from curves.descriptors import Arc, BSpline, Bezier, Circle, ClosedBSpline, Diagonal, Link
from curves.errors import InvalidDescriptor, InvalidResolution
from curves.resolution import SampleResolution
from curves.sampler import (
    SampledCurve, SampledPoint, bernstein_basis, end_tangent, sample, tangents,
)


# ---------------------------------------------------------------------------
# 1. Parameter t and endpoints
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("n", [2, 3, 17, 100])
def test_t_sequence_properties(open_curves, n):
    """t has n entries, starts at 0, ends at 1, never decreases."""
    for descriptor in open_curves:
        curve = sample(descriptor, n)
        assert len(curve) == n
        assert curve.t[0] == 0.0
        assert curve.t[-1] == 1.0
        assert np.all(np.diff(curve.t) >= 0)


def test_two_points_are_the_endpoints():
    """n=2 yields exactly the start and end of each curve."""
    cases = [
        (Bezier([(0, 0), (5, 5), (2, 7)]), (0, 0), (2, 7)),
        (Bezier([(1, 1), (2, 3), (4, -1), (6, 2)]), (1, 1), (6, 2)),
        (BSpline([(0, 0), (1, 2), (2, 0), (3, 3)]), (0, 0), (3, 3)),
        (BSpline([(0, 0), (1, 2), (2, 0), (3, 3), (4, 1)]), (0, 0), (4, 1)),
        (Link((-1, 2), (3, 4)), (-1, 2), (3, 4)),
        (Diagonal((0, 0), (2, 1)), (0, 0), (2, 1)),
    ]
    for descriptor, start, end in cases:
        curve = sample(descriptor, 2)
        np.testing.assert_array_equal(curve.points, [start, end])
        np.testing.assert_array_equal(curve.t, [0.0, 1.0])


def test_two_point_arc_endpoints():
    arc = Arc(1.0, 2.0, 3.0, 0.5, 2.0)
    curve = sample(arc, 2)
    expected = [
        (1.0 + 3.0 * math.cos(0.5), 2.0 + 3.0 * math.sin(0.5)),
        (1.0 + 3.0 * math.cos(2.0), 2.0 + 3.0 * math.sin(2.0)),
    ]
    np.testing.assert_allclose(curve.points, expected, atol=1e-12)


# ---------------------------------------------------------------------------
# 2. Arcs
# ---------------------------------------------------------------------------

def test_quarter_arc_three_points(quarter_arc):
    curve = sample(quarter_arc, 3)
    half = math.sqrt(2) / 2
    np.testing.assert_allclose(curve.points, [(1, 0), (half, half), (0, 1)], atol=1e-9)
    np.testing.assert_array_equal(curve.t, [0.0, 0.5, 1.0])
    assert curve.closed is False


def test_reverse_winding_is_kept(quarter_arc):
    """end < start walks clockwise: the same points in reverse order."""
    forward = sample(quarter_arc, 9)
    backward = sample(Arc(0.0, 0.0, 1.0, math.pi / 2, 0.0), 9)
    np.testing.assert_allclose(backward.points, forward.points[::-1], atol=1e-12)


def test_angles_are_not_normalized():
    """A span beyond one turn keeps winding around the circle."""
    curve = sample(Arc(0, 0, 1, 0, 4 * math.pi), 5)
    np.testing.assert_allclose(curve.points, [(1, 0), (-1, 0), (1, 0), (-1, 0), (1, 0)], atol=1e-9)


def test_arc_bar_is_closed_polygon():
    arc = Arc(0.0, 0.0, 2.0, 0.0, math.pi, r0=1.0)
    curve = sample(arc, 10)
    assert len(curve) == 20
    assert curve.closed is True
    radii = np.hypot(curve.x, curve.y)
    np.testing.assert_allclose(radii[:10], 2.0)
    np.testing.assert_allclose(radii[10:], 1.0)
    # inner arc runs backwards: it starts where the outer arc ends
    np.testing.assert_allclose(curve.points[10], [-1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(curve.points[-1], [1.0, 0.0], atol=1e-12)
    assert curve.t[0] == 0.0 and curve.t[-1] == 1.0


def test_wedge_collapses_inner_arc_to_center():
    curve = sample(Arc(3.0, -1.0, 2.0, 0.0, 1.0, r0=0.0), 8)
    assert len(curve) == 9
    np.testing.assert_array_equal(curve.points[-1], [3.0, -1.0])


def test_circle_is_closed():
    curve = sample(Circle(1.0, 1.0, 2.0), 33)
    assert curve.closed is True
    np.testing.assert_array_equal(curve.points[0], curve.points[-1])
    np.testing.assert_allclose(np.hypot(curve.x - 1.0, curve.y - 1.0), 2.0)


def test_zero_radius_arc_collapses_to_center():
    curve = sample(Arc(2.0, 3.0, 0.0, 0.0, 1.0), 5)
    np.testing.assert_array_equal(curve.points, np.tile([2.0, 3.0], (5, 1)))


# ---------------------------------------------------------------------------
# 3. Bezier curves
# ---------------------------------------------------------------------------

def test_link_matches_linear_bezier_exactly():
    link = sample(Link((0.1, 0.7), (3.3, -2.9)), 50)
    bezier = sample(Bezier([(0.1, 0.7), (3.3, -2.9)]), 50)
    np.testing.assert_array_equal(link.points, bezier.points)
    np.testing.assert_array_equal(link.t, bezier.t)


def test_link_matches_degree_elevated_quadratic():
    """A quadratic whose handle sits at the midpoint is the same straight line."""
    p0, p1 = np.array([0.1, 0.7]), np.array([3.3, -2.9])
    link = sample(Link(tuple(p0), tuple(p1)), 21)
    quad = sample(Bezier([p0, (p0 + p1) / 2, p1]), 21)
    np.testing.assert_allclose(link.points, quad.points, atol=1e-12)


def test_cubic_midpoint(cubic):
    curve = sample(cubic, 3)
    ctrl = np.array(cubic.points)
    expected = (ctrl[0] + 3 * ctrl[1] + 3 * ctrl[2] + ctrl[3]) / 8
    np.testing.assert_allclose(curve.points[1], expected, atol=1e-12)


def test_quadratic_matches_explicit_formula():
    p = np.array([(0.0, 0.0), (1.0, 2.0), (2.0, 0.0)])
    curve = sample(Bezier(p), 11)
    t = curve.t[:, None]
    expected = (1 - t) ** 2 * p[0] + 2 * (1 - t) * t * p[1] + t ** 2 * p[2]
    np.testing.assert_allclose(curve.points, expected, atol=1e-12)


def test_bernstein_basis_partition_of_unity():
    basis = bernstein_basis(5, np.linspace(0, 1, 13))
    assert basis.shape == (13, 6)
    np.testing.assert_allclose(basis.sum(axis=1), 1.0)


def test_diagonal_is_symmetric_sigmoid():
    curve = sample(Diagonal((0, 0), (2, 1)), 3)
    np.testing.assert_allclose(curve.points[1], [1.0, 0.5], atol=1e-12)
    flipped = sample(Diagonal((0, 0), (2, 1), flipped=True), 3)
    np.testing.assert_allclose(flipped.points[1], [1.0, 0.5], atol=1e-12)


def test_zero_strength_diagonal_is_straight():
    curve = sample(Diagonal((0, 0), (2, 1), strength=0.0), 15)
    cross = curve.x * 1.0 - curve.y * 2.0
    np.testing.assert_allclose(cross, 0.0, atol=1e-12)


# ---------------------------------------------------------------------------
# 4. B-splines
# ---------------------------------------------------------------------------

def test_bspline_does_not_pass_through_interior_points():
    ctrl = [(0, 0), (1, 2), (2, 0), (3, 2), (4, 0)]
    curve = sample(BSpline(ctrl), 201)
    np.testing.assert_array_equal(curve.points[0], ctrl[0])
    np.testing.assert_array_equal(curve.points[-1], ctrl[-1])
    for interior in ctrl[1:-1]:
        distance = np.hypot(curve.x - interior[0], curve.y - interior[1]).min()
        assert distance > 0.1


@pytest.mark.parametrize("ctrl", [
    [(0, 0), (1, 2), (2, 0)],
    [(0, 0), (1, 2), (3, 2), (4, 0)],
])
def test_bspline_without_inner_knots_is_a_bezier(ctrl):
    """Clamped b-splines with degree + 1 control points reduce to Beziers."""
    spline = sample(BSpline(ctrl), 25)
    bezier = sample(Bezier(ctrl), 25)
    np.testing.assert_allclose(spline.points, bezier.points, atol=1e-12)


def test_bspline_stays_in_convex_hull():
    ctrl = [(0, 0), (1, 3), (2, -1), (3, 2), (4, 0), (5, 1)]
    curve = sample(BSpline(ctrl), 101)
    xs, ys = zip(*ctrl)
    assert curve.x.min() >= min(xs) - 1e-12 and curve.x.max() <= max(xs) + 1e-12
    assert curve.y.min() >= min(ys) - 1e-12 and curve.y.max() <= max(ys) + 1e-12


def test_closed_bspline_on_square():
    curve = sample(ClosedBSpline([(0, 0), (1, 0), (1, 1), (0, 1)]), 101)
    assert curve.closed is True
    np.testing.assert_array_equal(curve.points[0], curve.points[-1])
    np.testing.assert_allclose(curve.points[0], [5 / 6, 1 / 6], atol=1e-12)
    np.testing.assert_allclose(curve.points[:-1].mean(axis=0), [0.5, 0.5], atol=1e-9)
    assert curve.x.min() > 0 and curve.x.max() < 1


# ---------------------------------------------------------------------------
# 5. Resolution handling
# ---------------------------------------------------------------------------

def test_adaptive_angle_for_arcs():
    curve = sample(Arc(0, 0, 1, 0, math.pi), SampleResolution.adaptive(max_angle=0.3))
    assert len(curve) == 12
    assert np.all(np.abs(np.diff(np.arctan2(curve.y, curve.x))) <= 0.3)


def test_adaptive_chord_for_links():
    curve = sample(Link((0, 0), (3, 4)), SampleResolution.adaptive(max_chord=1.0))
    assert len(curve) == 6
    assert np.all(np.hypot(np.diff(curve.x), np.diff(curve.y)) <= 1.0 + 1e-12)


@pytest.mark.parametrize("bad_n", [1, 0, -5])
def test_invalid_point_count(quarter_arc, bad_n):
    with pytest.raises(InvalidResolution):
        sample(quarter_arc, bad_n)


def test_angle_tolerance_rejected_for_bezier(cubic):
    with pytest.raises(InvalidResolution):
        sample(cubic, SampleResolution.adaptive(max_angle=0.1))


def test_invalid_types_raise(quarter_arc):
    with pytest.raises(TypeError):
        sample("not a descriptor", 10)
    with pytest.raises(TypeError):
        sample(quarter_arc, "10")


# ---------------------------------------------------------------------------
# 6. Descriptor failures surface before sampling
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("descriptor", [
    Bezier([(0, 0)]),
    BSpline([(0, 0), (1, 1)]),
    ClosedBSpline([(0, 0), (1, 1)]),
    Arc(0, 0, -1, 0, 1),
    Arc(0, 0, 1, 0, 1, r0=2),
    Arc(0, 0, 1, 0, 1, r0=-0.5),
    Arc(0, 0, 1, 0, float("inf")),
    Circle(0, 0, -2),
    Link((0, 0), (float("nan"), 1)),
    Diagonal((0, 0), (1, 1), strength=1.5),
])
def test_invalid_descriptors(descriptor):
    with pytest.raises(InvalidDescriptor):
        sample(descriptor, 10)


# ---------------------------------------------------------------------------
# 7. Result object and tangents
# ---------------------------------------------------------------------------

def test_sampled_curve_is_read_only(quarter_arc):
    curve = sample(quarter_arc, 5)
    with pytest.raises(ValueError):
        curve.x[0] = 10.0


def test_iteration_yields_sampled_points(quarter_arc):
    points = list(sample(quarter_arc, 4))
    assert len(points) == 4
    assert all(isinstance(p, SampledPoint) for p in points)
    assert points[0].t == 0.0 and points[-1].t == 1.0


def test_mismatched_arrays_rejected():
    with pytest.raises(ValueError):
        SampledCurve([0.0, 1.0], [0.0], [0.0, 1.0])


def test_zero_length_curve_has_zero_tangents():
    curve = sample(Link((1.0, 1.0), (1.0, 1.0)), 10)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        result = tangents(curve)
        tip = end_tangent(curve)
    np.testing.assert_array_equal(result, np.zeros((10, 2)))
    np.testing.assert_array_equal(tip, [0.0, 0.0])


def test_collapsed_bezier_has_zero_tangents():
    curve = sample(Bezier([(2, 2), (2, 2), (2, 2), (2, 2)]), 7)
    np.testing.assert_array_equal(tangents(curve), np.zeros((7, 2)))
    np.testing.assert_array_equal(end_tangent(curve), np.zeros(2))


@pytest.mark.parametrize("point", [(0.1, 0.7), (1e6 / 3, -2.2), (3.3, 3.3)])
def test_collapsed_bezier_roundoff_is_not_motion(point):
    curve = sample(Bezier([point] * 4), 11)
    np.testing.assert_array_equal(tangents(curve), np.zeros((11, 2)))
    np.testing.assert_array_equal(end_tangent(curve), np.zeros(2))


def test_link_tangents_are_unit_direction():
    curve = sample(Link((0, 0), (2, 0)), 6)
    np.testing.assert_allclose(tangents(curve), np.tile([1.0, 0.0], (6, 1)))


def test_arc_end_tangent(quarter_arc):
    tip = end_tangent(sample(quarter_arc, 200))
    np.testing.assert_allclose(tip, [-1.0, 0.0], atol=1e-2)
    assert math.isclose(np.hypot(*tip), 1.0)


def test_sampling_is_deterministic(open_curves, closed_curves):
    for descriptor in open_curves + closed_curves:
        a = sample(descriptor, 64)
        b = sample(descriptor, 64)
        np.testing.assert_array_equal(a.points, b.points)
        np.testing.assert_array_equal(a.t, b.t)


@pytest.mark.benchmark(group="sample")
def test_bspline_sampling_benchmark(benchmark):
    ctrl = [(i, (-1) ** i) for i in range(50)]
    curve = benchmark(lambda: sample(BSpline(ctrl), 2000))
    assert len(curve) == 2000
