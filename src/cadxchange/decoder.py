"""Canonical records to native geometry."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from cadxchange.errors import DecodeError
from cadxchange.meshcodec import mesh_from_record
from cadxchange.native import Arc, Circle, Curve, Ellipse, Line, Plane, PolyCurve
from cadxchange.nurbs import NurbsCurve
from cadxchange.numeric import add, angle_about_axis, scale, sub, to_degrees
from cadxchange.properties import properties_to_native, set_properties
from cadxchange.records import (
    ArcRecord,
    CircleRecord,
    EllipseRecord,
    LineRecord,
    MeshRecord,
    PlaneRecord,
    PolycurveRecord,
    PolylineRecord,
    SplineRecord,
    clamp_knots,
)

logger = logging.getLogger(__name__)


def plane_from_record(record: PlaneRecord) -> Plane:
    return Plane.by_origin_x_axis_y_axis(record.origin, record.x_dir, record.y_dir)


def line_from_record(record: LineRecord) -> Line:
    return Line.by_start_point_end_point(record.start, record.end)


def polyline_from_record(record: PolylineRecord) -> PolyCurve:
    curve = PolyCurve.by_points(record.points)
    if record.closed:
        curve = curve.close_with_line()
    return curve


def arc_from_record(record: ArcRecord) -> Arc:
    plane = plane_from_record(record.plane)
    start = add(plane.origin, scale(plane.x_axis, record.radius))
    return Arc.by_center_point_start_point_sweep_angle(plane.origin, start, to_degrees(record.angle),
                                                       plane.normal)


def circle_from_record(record: CircleRecord) -> Circle:
    """Circle in the record's plane, rotated so it starts on the plane X axis."""

    plane = plane_from_record(record.plane)
    circle = Circle.by_plane_radius(plane, record.radius)
    offset = angle_about_axis(sub(circle.start_point, circle.center_point), plane.x_axis, plane.normal)
    return circle.rotate(plane.origin, plane.normal, offset)


def ellipse_from_record(record: EllipseRecord) -> Ellipse:
    return Ellipse.by_plane_radii(plane_from_record(record.plane), record.first_radius,
                                  record.second_radius)


def spline_from_record(record: SplineRecord) -> NurbsCurve:
    return NurbsCurve.by_control_points_weights_knots(record.points, record.weights,
                                                      clamp_knots(record.knots), record.degree,
                                                      periodic=record.periodic)


def polycurve_from_record(record: PolycurveRecord) -> PolyCurve:
    return PolyCurve.by_joined_curves([curve_from_record(seg) for seg in record.segments])


_DECODERS: Dict[type, Callable[[Any], Any]] = {
    LineRecord: line_from_record,
    PolylineRecord: polyline_from_record,
    ArcRecord: arc_from_record,
    CircleRecord: circle_from_record,
    EllipseRecord: ellipse_from_record,
    SplineRecord: spline_from_record,
    PolycurveRecord: polycurve_from_record,
    MeshRecord: mesh_from_record,
}


def to_native(record: Any) -> Any:
    """Rebuild native geometry from a canonical record.

    Raises:
        DecodeError: if ``record`` is not one of the known record types.
    """

    decode = _DECODERS.get(type(record))
    if decode is None:
        raise DecodeError(f"no native geometry for {type(record).__name__}")
    native = decode(record)
    if record.properties is not None:
        set_properties(native, properties_to_native(record.properties, to_native))
    logger.debug("decoded %s record to %r", record.kind, native)
    return native


def curve_from_record(record: Any) -> Curve:
    native = to_native(record)
    if not isinstance(native, Curve):
        raise DecodeError(f"{record.kind} record does not describe a curve")
    return native


__all__ = [
    "plane_from_record",
    "line_from_record",
    "polyline_from_record",
    "arc_from_record",
    "circle_from_record",
    "ellipse_from_record",
    "spline_from_record",
    "polycurve_from_record",
    "to_native",
    "curve_from_record",
]
