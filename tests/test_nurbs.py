import math

import pytest

from cadxchange.errors import GeometryError
from cadxchange.native import Arc, Line, Plane
from cadxchange.numeric import dist
from cadxchange.nurbs import NurbsCurve, conic_arc, find_span, open_uniform_knots


XY = Plane.by_origin_normal((0, 0, 0), (0, 0, 1))


def _close(a, b, tol=1e-9):
    assert dist(a, b) <= tol


def test_open_uniform_knots():
    assert open_uniform_knots(5, 3) == [0.0, 0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0, 1.0]
    assert open_uniform_knots(2, 1) == [0.0, 0.0, 1.0, 1.0]
    with pytest.raises(GeometryError):
        open_uniform_knots(2, 3)


def test_find_span():
    knots = [0, 0, 0, 1, 2, 3, 3, 3]
    assert find_span(4, 2, 0.0, knots) == 2
    assert find_span(4, 2, 1.5, knots) == 3
    assert find_span(4, 2, 2.0, knots) == 4
    assert find_span(4, 2, 3.0, knots) == 4


def test_linear_spline_evaluation():
    curve = NurbsCurve([(0, 0, 0), (2, 0, 0)], [1.0, 1.0], [0.0, 0.0, 1.0, 1.0], 1)
    _close(curve.point_at(0.25), (0.5, 0.0, 0.0))
    _close(curve.derivative_at(0.3), (2.0, 0.0, 0.0))
    assert math.isclose(curve.length, 2.0)
    assert not curve.is_rational
    assert not curve.is_closed


def test_domain_maps_to_unit_parameter():
    pts = [(0, 0, 0), (1, 1, 0), (2, -1, 0), (3, 0, 0)]
    curve = NurbsCurve(pts, [1.0] * 4, [2.0, 2.0, 2.0, 3.0, 4.0, 4.0, 4.0], 2)
    assert curve.start_parameter == 2.0
    assert curve.end_parameter == 4.0
    _close(curve.point_at_parameter(0.0), (0.0, 0.0, 0.0))
    _close(curve.point_at_parameter(1.0), (3.0, 0.0, 0.0))
    _close(curve.point_at_parameter(0.5), curve.point_at(3.0))


def test_full_circle_conic():
    circle = conic_arc(XY, 1.0, 1.0, 0.0, 360.0)
    assert circle.degree == 2
    assert len(circle.control_points) == 9
    assert circle.knots == [0.0, 0.0, 0.0, 0.25, 0.25, 0.5, 0.5, 0.75, 0.75, 1.0, 1.0, 1.0]
    assert circle.is_rational
    assert circle.is_closed
    assert math.isclose(circle.length, 2 * math.pi, rel_tol=1e-10)
    _close(circle.point_at_parameter(0.25), (0.0, 1.0, 0.0), tol=1e-12)
    _close(circle.point_at_parameter(0.5), (-1.0, 0.0, 0.0), tol=1e-12)
    for k in range(38):
        assert math.isclose(dist(circle.point_at_parameter(k / 37), (0, 0, 0)), 1.0, rel_tol=1e-12)
    _close(circle.normal, (0.0, 0.0, 1.0))


def test_quarter_ellipse_conic():
    arc = conic_arc(XY, 2.0, 1.0, 0.0, 90.0)
    assert len(arc.control_points) == 3
    _close(arc.start_point, (2.0, 0.0, 0.0))
    _close(arc.end_point, (0.0, 1.0, 0.0))
    mid = arc.point_at_parameter(0.5)
    assert math.isclose((mid[0] / 2.0) ** 2 + mid[1] ** 2, 1.0, rel_tol=1e-12)


def test_conic_sweep_must_be_positive():
    with pytest.raises(GeometryError):
        conic_arc(XY, 1.0, 1.0, 0.0, 0.0)
    with pytest.raises(GeometryError):
        conic_arc(XY, 1.0, 1.0, 0.0, 400.0)


def test_invalid_control_data():
    pts = [(0, 0, 0), (1, 1, 0), (2, 0, 0)]
    with pytest.raises(GeometryError):
        NurbsCurve(pts, [1.0, 1.0], [0, 0, 0, 1, 1, 1], 2)
    with pytest.raises(GeometryError):
        NurbsCurve(pts, [1.0, -1.0, 1.0], [0, 0, 0, 1, 1, 1], 2)
    with pytest.raises(GeometryError):
        NurbsCurve(pts, [1.0] * 3, [0, 0, 0, 1, 1], 2)
    with pytest.raises(GeometryError):
        NurbsCurve(pts, [1.0] * 3, [0, 0, 1, 0, 1, 1], 2)
    with pytest.raises(GeometryError):
        NurbsCurve(pts, [1.0] * 3, [0, 0, 0, 1, 1, 1], 0)


def test_approximation_of_straight_spline_is_lines():
    curve = NurbsCurve.by_control_points([(0, 0, 0), (1, 0, 0), (2, 0, 0), (3, 0, 0)])
    pieces = curve.approximate_with_arc_and_line_segments(4)
    assert len(pieces) == 4
    assert all(isinstance(p, Line) for p in pieces)
    _close(pieces[0].start_point, (0.0, 0.0, 0.0))
    _close(pieces[-1].end_point, (3.0, 0.0, 0.0))


def test_approximation_of_circle_is_chained_arcs():
    circle = conic_arc(XY, 1.0, 1.0, 0.0, 360.0)
    pieces = circle.approximate_with_arc_and_line_segments(2)
    assert len(pieces) == 8
    assert all(isinstance(p, Arc) for p in pieces)
    for prev, curr in zip(pieces, pieces[1:]):
        _close(prev.end_point, curr.start_point)
    _close(pieces[0].start_point, circle.start_point)
    _close(pieces[-1].end_point, circle.end_point)
    for piece in pieces:
        assert math.isclose(piece.radius, 1.0, rel_tol=1e-9)
