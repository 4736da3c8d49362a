"""Curve classification ladder.

A curve is read once into a :class:`CurveProbe`; the four shape tests
then run on that plain data, in a fixed order, and the first one that
passes decides the canonical type::

    LINE -> ARC -> CIRCLE -> ELLIPSE -> UNCLASSIFIED

The order matters: each test assumes the earlier ones failed.  A closed
circle, for instance, also satisfies the ellipse test.

The ``get_as_*`` extractors build the exact primitive for a curve that
has already been classified, and refuse curves of the wrong closedness.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from cadxchange.errors import PreconditionError
from cadxchange.native import Arc, Circle, Curve, Ellipse, Line, Plane, arc_through_points
from cadxchange.numeric import Vec3, dist, midpoint, sub, threshold, vec3
from cadxchange.settings import DEFAULT_SETTINGS, ConversionSettings

logger = logging.getLogger(__name__)

SAMPLE_PARAMETERS = (0.0, 0.25, 0.5, 0.75)


class CurveType(enum.Enum):
    LINE = "line"
    ARC = "arc"
    CIRCLE = "circle"
    ELLIPSE = "ellipse"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class CurveProbe:
    """Everything the shape tests need, read from a curve in one pass.

    ``samples`` holds the points at :data:`SAMPLE_PARAMETERS`.
    """

    closed: bool
    length: float
    start: Vec3
    end: Vec3
    samples: Tuple[Vec3, Vec3, Vec3, Vec3]

    @property
    def mid(self) -> Vec3:
        return self.samples[2]


def probe(curve: Curve) -> Optional[CurveProbe]:
    """Read ``curve`` into a :class:`CurveProbe`, or ``None`` if the host fails."""

    try:
        return CurveProbe(
            closed=bool(curve.is_closed),
            length=float(curve.length),
            start=vec3(curve.start_point),
            end=vec3(curve.end_point),
            samples=tuple(vec3(curve.point_at_parameter(t)) for t in SAMPLE_PARAMETERS),
        )
    except Exception as exc:
        logger.warning("could not read %r, treating it as unclassified: %s", curve, exc)
        return None


def ramanujan_perimeter(a: float, b: float) -> float:
    """Ramanujan's second approximation to the perimeter of an ellipse."""

    h = ((a - b) / (a + b)) ** 2
    return math.pi * (a + b) * (1.0 + 3.0 * h / (10.0 + math.sqrt(4.0 - 3.0 * h)))


def is_linear(p: CurveProbe, settings: ConversionSettings = DEFAULT_SETTINGS) -> bool:
    return not p.closed and threshold(p.length, dist(p.start, p.end), settings.tolerance)


def is_arc(p: CurveProbe, settings: ConversionSettings = DEFAULT_SETTINGS) -> bool:
    if p.closed:
        return False
    arc = arc_through_points(p.start, p.mid, p.end)
    return arc is not None and threshold(arc.length, p.length, settings.tolerance)


def is_circle(p: CurveProbe, settings: ConversionSettings = DEFAULT_SETTINGS) -> bool:
    if not p.closed:
        return False
    radius = dist(p.start, p.mid) / 2.0
    return threshold(radius, p.length / (2.0 * math.pi), settings.tolerance)


def is_ellipse(p: CurveProbe, settings: ConversionSettings = DEFAULT_SETTINGS) -> bool:
    if not p.closed:
        return False
    p0, p1, p2, p3 = p.samples
    a = dist(p0, p2) / 2.0
    b = dist(p1, p3) / 2.0
    if a + b <= 0.0:
        return False
    return threshold(p.length, ramanujan_perimeter(a, b), settings.ellipse_tolerance)


_LADDER = (
    (CurveType.LINE, is_linear),
    (CurveType.ARC, is_arc),
    (CurveType.CIRCLE, is_circle),
    (CurveType.ELLIPSE, is_ellipse),
)


def classify_probe(p: Optional[CurveProbe], settings: ConversionSettings = DEFAULT_SETTINGS) -> CurveType:
    if p is None:
        return CurveType.UNCLASSIFIED
    for curve_type, test in _LADDER:
        if test(p, settings):
            return curve_type
    return CurveType.UNCLASSIFIED


def classify(curve: Curve, settings: ConversionSettings = DEFAULT_SETTINGS) -> CurveType:
    """Return the simplest canonical type ``curve`` is exactly representable as.

    Never raises for host failures; an unreadable curve is UNCLASSIFIED.
    """

    result = classify_probe(probe(curve), settings)
    logger.debug("classified %r as %s", curve, result.value)
    return result


def _require_open(curve: Curve, what: str) -> None:
    if curve.is_closed:
        raise PreconditionError(f"cannot extract {what} from closed curve {curve!r}")


def _require_closed(curve: Curve, what: str) -> None:
    if not curve.is_closed:
        raise PreconditionError(f"cannot extract {what} from open curve {curve!r}")


def get_as_line(curve: Curve) -> Line:
    _require_open(curve, "a line")
    return Line.by_start_point_end_point(curve.start_point, curve.end_point)


def get_as_arc(curve: Curve) -> Arc:
    """Arc through the start, middle and end of ``curve``.

    The plane is centred on the arc with its X axis through the start point.
    """

    _require_open(curve, "an arc")
    return Arc.by_three_points(curve.start_point, curve.point_at_parameter(0.5), curve.end_point)


def get_as_circle(curve: Curve) -> Circle:
    _require_closed(curve, "a circle")
    start = vec3(curve.start_point)
    center = midpoint(start, vec3(curve.point_at_parameter(0.5)))
    plane = Plane.by_origin_normal_x_axis(center, curve.normal, sub(start, center))
    radius = curve.radius if isinstance(curve, Circle) else dist(center, start)
    return Circle(plane, radius)


def get_as_ellipse(curve: Curve) -> Ellipse:
    _require_closed(curve, "an ellipse")
    p0, p1, p2, p3 = (vec3(curve.point_at_parameter(t)) for t in SAMPLE_PARAMETERS)
    center = midpoint(p0, p2)
    plane = Plane.by_origin_normal_x_axis(center, curve.normal, sub(p0, center))
    return Ellipse(plane, dist(p0, p2) / 2.0, dist(p1, p3) / 2.0)


__all__ = [
    "CurveType",
    "CurveProbe",
    "SAMPLE_PARAMETERS",
    "probe",
    "ramanujan_perimeter",
    "is_linear",
    "is_arc",
    "is_circle",
    "is_ellipse",
    "classify_probe",
    "classify",
    "get_as_line",
    "get_as_arc",
    "get_as_circle",
    "get_as_ellipse",
]
