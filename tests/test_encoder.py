import math

import pytest

from cadxchange.encoder import display_polyline, spline_to_record, to_record
from cadxchange.errors import ConversionError
from cadxchange.native import Arc, Circle, Ellipse, EllipseArc, Line, Mesh, Plane, PolyCurve, Polygon
from cadxchange.numeric import dist
from cadxchange.nurbs import NurbsCurve, conic_arc
from cadxchange.properties import PROPERTIES_TAG
from cadxchange.records import (
    ArcRecord,
    CircleRecord,
    EllipseRecord,
    LineRecord,
    MeshRecord,
    PolycurveRecord,
    PolylineRecord,
    SplineRecord,
)
from cadxchange.settings import ConversionSettings


XY = Plane.by_origin_normal((0, 0, 0), (0, 0, 1))


def _close(a, b, tol=1e-9):
    assert dist(a, b) <= tol


def _wavy_spline():
    return NurbsCurve.by_control_points([(0, 0, 0), (1, 2, 0), (2, -1, 0), (3, 1, 0), (4, 0, 0)])


def test_line():
    rec = to_record(Line((0, 0, 0), (1, 2, 3)))
    assert isinstance(rec, LineRecord)
    assert rec.start == (0.0, 0.0, 0.0)
    assert rec.end == (1.0, 2.0, 3.0)
    assert rec.properties is None


def test_arc_plane_starts_at_curve_start():
    arc = Arc.by_center_point_start_point_sweep_angle((1, 1, 0), (1, 3, 0), 90.0, (0, 0, 1))
    rec = to_record(arc)
    assert isinstance(rec, ArcRecord)
    assert math.isclose(rec.radius, 2.0)
    assert math.isclose(rec.angle, math.pi / 2)
    assert rec.start_angle == 0.0
    _close(rec.plane.origin, (1.0, 1.0, 0.0))
    _close(rec.plane.x_dir, (0.0, 1.0, 0.0))
    _close(rec.plane.normal, (0.0, 0.0, 1.0))
    _close(rec.plane.y_dir, (-1.0, 0.0, 0.0))


def test_circle():
    rec = to_record(Circle(Plane.by_origin_normal((0, 0, 5), (0, 0, 1)), 3.0))
    assert isinstance(rec, CircleRecord)
    assert rec.radius == 3.0
    _close(rec.plane.origin, (0.0, 0.0, 5.0))
    _close(rec.plane.x_dir, (1.0, 0.0, 0.0))


def test_ellipse():
    rec = to_record(Ellipse(XY, 3.0, 1.0))
    assert isinstance(rec, EllipseRecord)
    assert math.isclose(rec.first_radius, 3.0)
    assert math.isclose(rec.second_radius, 1.0)
    _close(rec.plane.x_dir, (1.0, 0.0, 0.0))


def test_nurbs_circle_becomes_circle():
    rec = to_record(conic_arc(XY, 1.0, 1.0, 0.0, 360.0))
    assert isinstance(rec, CircleRecord)
    assert math.isclose(rec.radius, 1.0, rel_tol=1e-9)
    _close(rec.plane.origin, (0.0, 0.0, 0.0))


def test_spline_fallback():
    curve = _wavy_spline()
    rec = to_record(curve)
    assert isinstance(rec, SplineRecord)
    assert rec.degree == 3
    assert len(rec.knots) == len(rec.points) + rec.degree - 1
    assert list(rec.knots) == curve.knots[1:-1]
    assert rec.weights == (1.0,) * 5
    assert not rec.rational
    assert not rec.periodic
    assert not rec.closed
    assert rec.domain == (0.0, 1.0)
    assert list(rec.points) == curve.control_points


def test_spline_display_polyline():
    curve = _wavy_spline()
    rec = to_record(curve)
    display = rec.display
    assert isinstance(display, PolylineRecord)
    assert not display.closed
    _close(display.points[0], curve.start_point)
    _close(display.points[-1], curve.end_point)
    # two spans, four pieces each
    assert len(display.points) == 9


def test_display_density_follows_settings():
    curve = _wavy_spline()
    coarse = display_polyline(curve, ConversionSettings(display_segments_per_span=1))
    assert len(coarse.points) == 3


def test_elliptical_arc_is_rational_spline():
    rec = to_record(EllipseArc(XY, 2.0, 1.0, 0.0, 120.0))
    assert isinstance(rec, SplineRecord)
    assert rec.rational
    assert rec.degree == 2


def test_all_linear_composite_is_polyline():
    curve = PolyCurve.by_points([(0, 0, 0), (1, 0, 0), (1, 1, 0), (2, 1, 0)])
    rec = to_record(curve)
    assert isinstance(rec, PolylineRecord)
    assert not rec.closed
    assert rec.points == ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (2.0, 1.0, 0.0))


def test_closed_polyline_does_not_repeat_first_point():
    curve = PolyCurve.by_points([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)], close=True)
    rec = to_record(curve)
    assert isinstance(rec, PolylineRecord)
    assert rec.closed
    assert len(rec.points) == 4
    assert len(rec.to_dict()["value"]) == 12


def test_closedness_comes_from_the_curve_not_the_tolerance():
    loose = ConversionSettings(tolerance=1e-2)
    nearly_closed = PolyCurve.by_points([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1e-3, 0)])
    rec = to_record(nearly_closed, loose)
    assert isinstance(rec, PolylineRecord)
    assert not nearly_closed.is_closed
    assert rec.closed is False
    assert len(rec.points) == 4
    _close(rec.points[-1], (0.0, 1e-3, 0.0))

    spline = NurbsCurve.by_control_points([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0), (0, 1e-3, 0)])
    assert spline_to_record(spline, loose).closed is False


def test_one_curved_segment_makes_polycurve():
    first = Line((0, 0, 0), (1, 0, 0))
    middle = Arc.by_three_points((1, 0, 0), (1.5, 0.5, 0), (2, 0, 0))
    last = Line((2, 0, 0), (3, 0, 0))
    rec = to_record(PolyCurve.by_joined_curves([first, middle, last]))
    assert isinstance(rec, PolycurveRecord)
    assert [type(s) for s in rec.segments] == [LineRecord, ArcRecord, LineRecord]
    assert rec.segments[0].start == (0.0, 0.0, 0.0)
    assert rec.segments[2].end == (3.0, 0.0, 0.0)
    assert math.isclose(rec.segments[1].radius, 0.5)


def test_polygon_is_closed_polyline():
    rec = to_record(Polygon.by_points([(0, 0, 0), (2, 0, 0), (2, 2, 0)]))
    assert isinstance(rec, PolylineRecord)
    assert rec.closed
    assert len(rec.points) == 3


def test_mesh():
    mesh = Mesh.by_points_face_indices([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)],
                                       [[0, 1, 2], [0, 1, 2, 3]])
    rec = to_record(mesh)
    assert isinstance(rec, MeshRecord)
    assert rec.faces == (0, 0, 1, 2, 1, 0, 1, 2, 3)
    assert len(rec.vertices) == 12
    assert rec.colors == (-10197916,) * 4


def test_properties_are_copied_from_source():
    line = Line((0, 0, 0), (1, 0, 0))
    ref = Circle(XY, 1.0)
    bag = {"name": "edge", "meta": {"id": 7, "tags": ["a", "b"]}, "ref": ref}
    line.tags[PROPERTIES_TAG] = bag
    rec = to_record(line)
    assert rec.properties["name"] == "edge"
    assert rec.properties["meta"] == {"id": 7, "tags": ["a", "b"]}
    assert rec.properties["meta"] is not bag["meta"]
    assert isinstance(rec.properties["ref"], CircleRecord)


def test_segment_properties_survive_in_polycurve():
    first = Line((0, 0, 0), (1, 0, 0))
    first.tags[PROPERTIES_TAG] = {"index": 0}
    arc = Arc.by_three_points((1, 0, 0), (1.5, 0.5, 0), (2, 0, 0))
    rec = to_record(PolyCurve.by_joined_curves([first, arc]))
    assert rec.segments[0].properties == {"index": 0}
    assert rec.segments[1].properties is None


def test_unknown_object_is_rejected():
    with pytest.raises(ConversionError):
        to_record("not geometry")
