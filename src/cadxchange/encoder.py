"""Native geometry to canonical records.

Every curve runs through the classification ladder first, whatever its
native type, so that degenerate shapes land on the simplest exact
primitive.  Curves with no exact primitive are written as rational
splines with a polyline display approximation.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List

from cadxchange.classify import CurveType, classify, get_as_arc, get_as_circle, get_as_ellipse, get_as_line
from cadxchange.errors import ConversionError
from cadxchange.meshcodec import mesh_to_record
from cadxchange.native import Curve, Mesh, PolyCurve, Polygon
from cadxchange.numeric import Vec3, to_radians
from cadxchange.properties import get_properties, properties_to_record
from cadxchange.records import (
    ArcRecord,
    CircleRecord,
    CurveRecord,
    EllipseRecord,
    LineRecord,
    PlaneRecord,
    PolycurveRecord,
    PolylineRecord,
    Record,
    SplineRecord,
    strip_knots,
)
from cadxchange.settings import DEFAULT_SETTINGS, ConversionSettings

logger = logging.getLogger(__name__)


def plane_to_record(plane) -> PlaneRecord:
    return PlaneRecord(plane.origin, plane.normal, plane.x_axis, plane.y_axis)


def line_to_record(curve: Curve) -> LineRecord:
    line = get_as_line(curve)
    return LineRecord(line.start_point, line.end_point)


def arc_to_record(curve: Curve) -> ArcRecord:
    arc = get_as_arc(curve)
    return ArcRecord(plane_to_record(arc.plane), arc.radius, to_radians(arc.sweep_angle))


def circle_to_record(curve: Curve) -> CircleRecord:
    circle = get_as_circle(curve)
    return CircleRecord(plane_to_record(circle.plane), circle.radius)


def ellipse_to_record(curve: Curve) -> EllipseRecord:
    ellipse = get_as_ellipse(curve)
    return EllipseRecord(plane_to_record(ellipse.plane), ellipse.major_radius, ellipse.minor_radius)


def display_polyline(nurbs, settings: ConversionSettings = DEFAULT_SETTINGS) -> PolylineRecord:
    """Polyline through the ends of an arc/line approximation of ``nurbs``.

    Takes the start of every piece, then the end of the last one.
    """

    pieces = nurbs.approximate_with_arc_and_line_segments(settings.display_segments_per_span,
                                                          settings.tolerance)
    points: List[Vec3] = [piece.start_point for piece in pieces]
    points.append(pieces[-1].end_point)
    return PolylineRecord(tuple(points), False)


def spline_to_record(curve: Curve, settings: ConversionSettings = DEFAULT_SETTINGS) -> SplineRecord:
    nurbs = curve.to_nurbs_curve()
    return SplineRecord(
        points=tuple(nurbs.control_points),
        weights=tuple(nurbs.weights),
        knots=tuple(strip_knots(nurbs.knots)),
        degree=nurbs.degree,
        rational=nurbs.is_rational,
        periodic=nurbs.is_periodic,
        closed=nurbs.is_closed,
        domain=(nurbs.start_parameter, nurbs.end_parameter),
        display=display_polyline(nurbs, settings),
    )


def polygon_to_record(polygon: Polygon) -> PolylineRecord:
    return PolylineRecord(tuple(polygon.points), True)


def polycurve_to_record(polycurve: PolyCurve,
                        settings: ConversionSettings = DEFAULT_SETTINGS) -> CurveRecord:
    """Polyline when every segment is a line, otherwise a polycurve of encoded segments."""

    segments = polycurve.curves()
    if all(classify(seg, settings) is CurveType.LINE for seg in segments):
        closed = polycurve.is_closed
        points: List[Vec3] = [seg.start_point for seg in segments]
        if not closed:
            points.append(segments[-1].end_point)
        return PolylineRecord(tuple(points), closed)
    logger.debug("%r has non-linear segments, keeping it as a polycurve", polycurve)
    return PolycurveRecord(tuple(to_record(seg, settings) for seg in segments))


_EXTRACTORS = {
    CurveType.LINE: line_to_record,
    CurveType.ARC: arc_to_record,
    CurveType.CIRCLE: circle_to_record,
    CurveType.ELLIPSE: ellipse_to_record,
}


def curve_to_record(curve: Curve, settings: ConversionSettings = DEFAULT_SETTINGS) -> CurveRecord:
    curve_type = classify(curve, settings)
    extract = _EXTRACTORS.get(curve_type)
    if extract is None:
        logger.debug("%r has no exact primitive, writing it as a spline", curve)
        return spline_to_record(curve, settings)
    return extract(curve)


def to_record(obj: Any, settings: ConversionSettings = DEFAULT_SETTINGS) -> Record:
    """Encode a native curve or mesh as a canonical record.

    The property bag of ``obj`` is copied onto the result, with any
    geometry inside it encoded the same way.

    Raises:
        ConversionError: when ``obj`` is not native geometry, or when the
            spline fallback cannot be built for it.
    """

    if isinstance(obj, Mesh):
        record: Record = mesh_to_record(obj, settings)
    elif isinstance(obj, Polygon):
        record = polygon_to_record(obj)
    elif isinstance(obj, PolyCurve):
        record = polycurve_to_record(obj, settings)
    elif isinstance(obj, Curve):
        record = curve_to_record(obj, settings)
    else:
        raise ConversionError(f"cannot convert {type(obj).__name__} to a record")

    bag = get_properties(obj)
    if bag is not None:
        record = replace(record, properties=properties_to_record(bag, lambda g: to_record(g, settings)))
    return record


__all__ = [
    "plane_to_record",
    "line_to_record",
    "arc_to_record",
    "circle_to_record",
    "ellipse_to_record",
    "display_polyline",
    "spline_to_record",
    "polygon_to_record",
    "polycurve_to_record",
    "curve_to_record",
    "to_record",
]
