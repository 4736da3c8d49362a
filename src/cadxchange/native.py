"""Reference native geometry kernel.

These classes play the part of a CAD host's geometry objects: they expose
the inbound contract the classifier and encoder rely on (closedness,
length, end points, normal, ``point_at_parameter`` over ``[0, 1]``) and the
constructors the decoder rebuilds curves with.

Conventions follow the host, not the canonical records:

- angles (sweeps, rotations) are in **degrees**;
- an arc runs counter-clockwise about its plane normal, starting on the
  plane's X axis;
- every entity carries a ``tags`` dictionary for host-side user data.

Rational B-spline curves live in :mod:`cadxchange.nurbs`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from cadxchange.errors import GeometryError, MalformedInputError
from cadxchange.numeric import (
    EPS,
    Vec3,
    add,
    cross,
    dist,
    dot,
    mag,
    normalize,
    rotate_vector,
    scale,
    sub,
    to_degrees,
    to_radians,
    vec3,
)

_ARBITRARY_AXIS_LIMIT = 1.0 / 64.0


def arbitrary_axis(normal: Vec3) -> Vec3:
    """Return the host's reference X direction for a plane with ``normal``.

    Uses the DXF arbitrary-axis rule: cross the world Y axis with the normal
    when the normal is close to world Z, otherwise cross world Z.
    """

    n = normalize(normal)
    if abs(n[0]) < _ARBITRARY_AXIS_LIMIT and abs(n[1]) < _ARBITRARY_AXIS_LIMIT:
        return normalize(cross((0.0, 1.0, 0.0), n))
    return normalize(cross((0.0, 0.0, 1.0), n))


@dataclass(frozen=True)
class Plane:
    """Right-handed orthonormal frame; ``y_axis == normal x x_axis``."""

    origin: Vec3
    normal: Vec3
    x_axis: Vec3
    y_axis: Vec3

    @classmethod
    def by_origin_normal_x_axis(cls, origin: Sequence[float], normal: Sequence[float],
                                x_axis: Sequence[float]) -> "Plane":
        n = normalize(vec3(normal))
        x = vec3(x_axis)
        x = normalize(sub(x, scale(n, dot(x, n))))
        return cls(vec3(origin), n, x, cross(n, x))

    @classmethod
    def by_origin_x_axis_y_axis(cls, origin: Sequence[float], x_axis: Sequence[float],
                                y_axis: Sequence[float]) -> "Plane":
        x = normalize(vec3(x_axis))
        n = normalize(cross(x, vec3(y_axis)))
        return cls(vec3(origin), n, x, cross(n, x))

    @classmethod
    def by_origin_normal(cls, origin: Sequence[float], normal: Sequence[float]) -> "Plane":
        return cls.by_origin_normal_x_axis(origin, normal, arbitrary_axis(vec3(normal)))

    def point_at(self, u: float, v: float) -> Vec3:
        return add(self.origin, add(scale(self.x_axis, u), scale(self.y_axis, v)))


class Curve:
    """Base class of all native curves."""

    def __init__(self) -> None:
        self.tags: Dict[str, Any] = {}

    @property
    def is_closed(self) -> bool:
        return dist(self.start_point, self.end_point) <= EPS

    @property
    def length(self) -> float:
        raise NotImplementedError

    @property
    def start_point(self) -> Vec3:
        return self.point_at_parameter(0.0)

    @property
    def end_point(self) -> Vec3:
        return self.point_at_parameter(1.0)

    @property
    def normal(self) -> Vec3:
        return sampled_normal(self)

    def point_at_parameter(self, t: float) -> Vec3:
        raise NotImplementedError

    def to_nurbs_curve(self):
        raise GeometryError(f"{type(self).__name__} has no rational spline form")


def sampled_normal(curve: Curve, samples: int = 64) -> Vec3:
    """Normal of a planar curve from Newell's formula over sample points.

    The sampled polygon is closed back to its first point, so open curves
    get the normal that makes their traversal counter-clockwise.
    """

    pts = [curve.point_at_parameter(i / samples) for i in range(samples + 1)]
    base = pts[0]
    acc = (0.0, 0.0, 0.0)
    for a, b in zip(pts[1:], pts[2:]):
        acc = add(acc, cross(sub(a, base), sub(b, base)))
    if mag(acc) <= 1e-12:
        raise GeometryError("curve is degenerate or linear; no normal")
    return normalize(acc)


class Line(Curve):
    def __init__(self, start: Sequence[float], end: Sequence[float]) -> None:
        super().__init__()
        self._start = vec3(start)
        self._end = vec3(end)

    @classmethod
    def by_start_point_end_point(cls, start: Sequence[float], end: Sequence[float]) -> "Line":
        if dist(vec3(start), vec3(end)) <= EPS:
            raise GeometryError("line end points coincide")
        return cls(start, end)

    @property
    def is_closed(self) -> bool:
        return False

    @property
    def length(self) -> float:
        return dist(self._start, self._end)

    @property
    def start_point(self) -> Vec3:
        return self._start

    @property
    def end_point(self) -> Vec3:
        return self._end

    @property
    def normal(self) -> Vec3:
        raise GeometryError("a line has no unique normal")

    def point_at_parameter(self, t: float) -> Vec3:
        return add(self._start, scale(sub(self._end, self._start), t))

    def to_nurbs_curve(self):
        from cadxchange.nurbs import NurbsCurve

        return NurbsCurve([self._start, self._end], [1.0, 1.0], [0.0, 0.0, 1.0, 1.0], 1)

    def __repr__(self) -> str:
        return f"Line({self._start!r}, {self._end!r})"


def arc_through_points(p1: Vec3, p2: Vec3, p3: Vec3) -> Optional["Arc"]:
    """Arc from ``p1`` through ``p2`` to ``p3``, or ``None`` when degenerate."""

    a = sub(p2, p1)
    b = sub(p3, p1)
    w = cross(a, b)
    aa = dot(a, a)
    bb = dot(b, b)
    ww = dot(w, w)
    if aa <= 0.0 or bb <= 0.0 or ww <= 1e-24 * aa * bb:
        return None
    center = add(p1, scale(cross(sub(scale(b, aa), scale(a, bb)), w), 1.0 / (2.0 * ww)))
    n = scale(w, 1.0 / math.sqrt(ww))
    x = sub(p1, center)
    radius = mag(x)
    v3 = sub(p3, center)
    sweep = math.atan2(dot(cross(x, v3), n), dot(x, v3))
    if sweep <= 0.0:
        sweep += 2.0 * math.pi
    if not 0.0 < sweep < 2.0 * math.pi:
        return None
    plane = Plane.by_origin_normal_x_axis(center, n, x)
    return Arc(plane, radius, to_degrees(sweep))


class Arc(Curve):
    """Circular arc of ``sweep_angle`` degrees starting on the plane X axis."""

    def __init__(self, plane: Plane, radius: float, sweep_angle: float) -> None:
        super().__init__()
        if radius <= 0.0:
            raise GeometryError("arc radius must be positive")
        if not 0.0 < sweep_angle < 360.0:
            raise GeometryError("arc sweep must lie strictly between 0 and 360 degrees")
        self.plane = plane
        self.radius = float(radius)
        self.sweep_angle = float(sweep_angle)

    @classmethod
    def by_three_points(cls, p1: Sequence[float], p2: Sequence[float], p3: Sequence[float]) -> "Arc":
        arc = arc_through_points(vec3(p1), vec3(p2), vec3(p3))
        if arc is None:
            raise GeometryError("cannot build an arc through collinear or coincident points")
        return arc

    @classmethod
    def by_center_point_start_point_sweep_angle(cls, center: Sequence[float], start: Sequence[float],
                                                sweep_angle: float, normal: Sequence[float]) -> "Arc":
        """Arc about ``normal``; a negative sweep runs clockwise."""

        c = vec3(center)
        n = normalize(vec3(normal))
        if sweep_angle < 0.0:
            n = scale(n, -1.0)
            sweep_angle = -sweep_angle
        x = sub(vec3(start), c)
        x = sub(x, scale(n, dot(x, n)))
        radius = mag(x)
        if radius <= EPS:
            raise GeometryError("arc start point coincides with its center")
        return cls(Plane.by_origin_normal_x_axis(c, n, x), radius, sweep_angle)

    @property
    def center_point(self) -> Vec3:
        return self.plane.origin

    @property
    def normal(self) -> Vec3:
        return self.plane.normal

    @property
    def is_closed(self) -> bool:
        return False

    @property
    def length(self) -> float:
        return self.radius * to_radians(self.sweep_angle)

    def point_at_parameter(self, t: float) -> Vec3:
        theta = to_radians(self.sweep_angle) * t
        return self.plane.point_at(self.radius * math.cos(theta), self.radius * math.sin(theta))

    def to_nurbs_curve(self):
        from cadxchange.nurbs import conic_arc

        return conic_arc(self.plane, self.radius, self.radius, 0.0, self.sweep_angle)

    def __repr__(self) -> str:
        return f"Arc(center={self.center_point!r}, radius={self.radius!r}, sweep={self.sweep_angle!r})"


class Circle(Curve):
    """Full circle whose parametric start sits on the plane X axis."""

    def __init__(self, plane: Plane, radius: float) -> None:
        super().__init__()
        if radius <= 0.0:
            raise GeometryError("circle radius must be positive")
        self.plane = plane
        self.radius = float(radius)

    @classmethod
    def by_center_point_radius_normal(cls, center: Sequence[float], radius: float,
                                      normal: Sequence[float]) -> "Circle":
        return cls(Plane.by_origin_normal(center, normal), radius)

    @classmethod
    def by_plane_radius(cls, plane: Plane, radius: float) -> "Circle":
        """Circle in ``plane``.

        Like most hosts, only the plane's origin and normal are honoured: the
        start point lands on the reference axis for the normal, not on
        ``plane.x_axis``.
        """

        return cls(Plane.by_origin_normal(plane.origin, plane.normal), radius)

    @property
    def center_point(self) -> Vec3:
        return self.plane.origin

    @property
    def normal(self) -> Vec3:
        return self.plane.normal

    @property
    def is_closed(self) -> bool:
        return True

    @property
    def length(self) -> float:
        return 2.0 * math.pi * self.radius

    @property
    def end_point(self) -> Vec3:
        return self.start_point

    def point_at_parameter(self, t: float) -> Vec3:
        theta = 2.0 * math.pi * t
        return self.plane.point_at(self.radius * math.cos(theta), self.radius * math.sin(theta))

    def rotate(self, origin: Sequence[float], axis: Sequence[float], degrees: float) -> "Circle":
        """Return a copy rotated by ``degrees`` about the line through ``origin``."""

        o = vec3(origin)
        center = add(o, rotate_vector(sub(self.plane.origin, o), vec3(axis), degrees))
        plane = Plane.by_origin_normal_x_axis(
            center,
            rotate_vector(self.plane.normal, vec3(axis), degrees),
            rotate_vector(self.plane.x_axis, vec3(axis), degrees),
        )
        rotated = Circle(plane, self.radius)
        rotated.tags = dict(self.tags)
        return rotated

    def to_nurbs_curve(self):
        from cadxchange.nurbs import conic_arc

        return conic_arc(self.plane, self.radius, self.radius, 0.0, 360.0)

    def __repr__(self) -> str:
        return f"Circle(center={self.center_point!r}, radius={self.radius!r})"


class Ellipse(Curve):
    """Full ellipse; ``major_radius`` lies along the plane X axis.

    The names follow the host: nothing forces ``major_radius`` to be the
    larger of the two.
    """

    def __init__(self, plane: Plane, major_radius: float, minor_radius: float) -> None:
        super().__init__()
        if major_radius <= 0.0 or minor_radius <= 0.0:
            raise GeometryError("ellipse radii must be positive")
        self.plane = plane
        self.major_radius = float(major_radius)
        self.minor_radius = float(minor_radius)

    @classmethod
    def by_plane_radii(cls, plane: Plane, major_radius: float, minor_radius: float) -> "Ellipse":
        return cls(plane, major_radius, minor_radius)

    @property
    def center_point(self) -> Vec3:
        return self.plane.origin

    @property
    def major_axis(self) -> Vec3:
        return scale(self.plane.x_axis, self.major_radius)

    @property
    def minor_axis(self) -> Vec3:
        return scale(self.plane.y_axis, self.minor_radius)

    @property
    def normal(self) -> Vec3:
        return self.plane.normal

    @property
    def is_closed(self) -> bool:
        return True

    @property
    def length(self) -> float:
        return self.to_nurbs_curve().length

    @property
    def end_point(self) -> Vec3:
        return self.start_point

    def point_at_parameter(self, t: float) -> Vec3:
        theta = 2.0 * math.pi * t
        return self.plane.point_at(self.major_radius * math.cos(theta), self.minor_radius * math.sin(theta))

    def to_nurbs_curve(self):
        from cadxchange.nurbs import conic_arc

        return conic_arc(self.plane, self.major_radius, self.minor_radius, 0.0, 360.0)

    def __repr__(self) -> str:
        return (f"Ellipse(center={self.center_point!r}, major={self.major_radius!r}, "
                f"minor={self.minor_radius!r})")


class EllipseArc(Curve):
    """Elliptical arc from ``start_angle`` sweeping ``sweep_angle`` degrees."""

    def __init__(self, plane: Plane, major_radius: float, minor_radius: float,
                 start_angle: float, sweep_angle: float) -> None:
        super().__init__()
        if major_radius <= 0.0 or minor_radius <= 0.0:
            raise GeometryError("ellipse radii must be positive")
        if not 0.0 < sweep_angle < 360.0:
            raise GeometryError("elliptical arc sweep must lie strictly between 0 and 360 degrees")
        self.plane = plane
        self.major_radius = float(major_radius)
        self.minor_radius = float(minor_radius)
        self.start_angle = float(start_angle)
        self.sweep_angle = float(sweep_angle)

    @property
    def center_point(self) -> Vec3:
        return self.plane.origin

    @property
    def normal(self) -> Vec3:
        return self.plane.normal

    @property
    def is_closed(self) -> bool:
        return False

    @property
    def length(self) -> float:
        return self.to_nurbs_curve().length

    def point_at_parameter(self, t: float) -> Vec3:
        theta = to_radians(self.start_angle + self.sweep_angle * t)
        return self.plane.point_at(self.major_radius * math.cos(theta), self.minor_radius * math.sin(theta))

    def to_nurbs_curve(self):
        from cadxchange.nurbs import conic_arc

        return conic_arc(self.plane, self.major_radius, self.minor_radius, self.start_angle, self.sweep_angle)


class PolyCurve(Curve):
    """Ordered chain of curves, each starting where the previous one ends."""

    def __init__(self, curves: Sequence[Curve]) -> None:
        super().__init__()
        if not curves:
            raise GeometryError("a polycurve needs at least one segment")
        for idx, curve in enumerate(curves):
            if not isinstance(curve, Curve):
                raise GeometryError(f"polycurve segment {idx} is a {type(curve).__name__}, not a curve")
        self._curves: Tuple[Curve, ...] = tuple(curves)

    @classmethod
    def by_joined_curves(cls, curves: Iterable[Curve], tol: float = EPS) -> "PolyCurve":
        polycurve = cls(list(curves))
        chain = polycurve._curves
        for idx, (prev, curr) in enumerate(zip(chain, chain[1:]), start=1):
            if dist(prev.end_point, curr.start_point) > tol:
                raise GeometryError(f"segment {idx} does not start where segment {idx - 1} ends")
        return polycurve

    @classmethod
    def by_points(cls, points: Sequence[Sequence[float]], close: bool = False) -> "PolyCurve":
        pts = [vec3(p) for p in points]
        if len(pts) < 2:
            raise GeometryError("a polyline needs at least two points")
        segments: List[Curve] = [Line.by_start_point_end_point(a, b) for a, b in zip(pts, pts[1:])]
        if close:
            segments.append(Line.by_start_point_end_point(pts[-1], pts[0]))
        return cls(segments)

    def close_with_line(self) -> "PolyCurve":
        if self.is_closed:
            return self
        closing = Line.by_start_point_end_point(self.end_point, self.start_point)
        closed = PolyCurve(self._curves + (closing,))
        closed.tags = dict(self.tags)
        return closed

    def curves(self) -> List[Curve]:
        return list(self._curves)

    @property
    def start_point(self) -> Vec3:
        return self._curves[0].start_point

    @property
    def end_point(self) -> Vec3:
        return self._curves[-1].end_point

    @property
    def length(self) -> float:
        return sum(c.length for c in self._curves)

    def point_at_parameter(self, t: float) -> Vec3:
        lengths = [c.length for c in self._curves]
        target = max(0.0, min(1.0, t)) * sum(lengths)
        for curve, seg_len in zip(self._curves, lengths):
            if target <= seg_len and seg_len > 0.0:
                return curve.point_at_parameter(target / seg_len)
            target -= seg_len
        return self._curves[-1].end_point

    def __repr__(self) -> str:
        return f"PolyCurve({len(self._curves)} segments)"


class Polygon(PolyCurve):
    """Closed chain of straight segments through ``points``."""

    @classmethod
    def by_points(cls, points: Sequence[Sequence[float]]) -> "Polygon":
        pts = [vec3(p) for p in points]
        if len(pts) < 3:
            raise GeometryError("a polygon needs at least three points")
        if dist(pts[0], pts[-1]) <= EPS:
            pts = pts[:-1]
        segments = [Line.by_start_point_end_point(a, b) for a, b in zip(pts, pts[1:] + pts[:1])]
        return cls(segments)

    @property
    def points(self) -> List[Vec3]:
        return [c.start_point for c in self._curves]


class Mesh:
    """Indexed polygon mesh with triangle and quad faces."""

    def __init__(self, vertex_positions: Sequence[Sequence[float]],
                 face_indices: Sequence[Sequence[int]]) -> None:
        self.vertex_positions: List[Vec3] = [vec3(v) for v in vertex_positions]
        self.face_indices: List[Tuple[int, ...]] = [tuple(int(i) for i in f) for f in face_indices]
        self.tags: Dict[str, Any] = {}

    @classmethod
    def by_points_face_indices(cls, vertex_positions: Sequence[Sequence[float]],
                               face_indices: Sequence[Sequence[int]]) -> "Mesh":
        count = len(vertex_positions)
        for face in face_indices:
            if len(face) not in (3, 4):
                raise MalformedInputError(f"mesh faces must have 3 or 4 vertices, got {len(face)}")
            if any(not 0 <= int(i) < count for i in face):
                raise MalformedInputError(f"face {tuple(face)} references a missing vertex")
        return cls(vertex_positions, face_indices)

    def __repr__(self) -> str:
        return f"Mesh({len(self.vertex_positions)} vertices, {len(self.face_indices)} faces)"


__all__ = [
    "arbitrary_axis",
    "Plane",
    "Curve",
    "sampled_normal",
    "Line",
    "arc_through_points",
    "Arc",
    "Circle",
    "Ellipse",
    "EllipseArc",
    "PolyCurve",
    "Polygon",
    "Mesh",
]
