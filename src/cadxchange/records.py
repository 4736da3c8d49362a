"""Canonical curve and mesh records.

Records are immutable values.  Each carries a ``kind`` tag used as the
discriminator in dict form, and an optional property bag (see
:mod:`cadxchange.properties`) that the engine copies but never inspects.

Dict layout, by ``type`` tag::

    Line      value=[x0, y0, z0, x1, y1, z1]
    Polyline  value=[flat coordinates], closed
    Arc       plane, radius, startAngle (always 0), angleRadians
    Circle    plane, radius
    Ellipse   plane, firstRadius, secondRadius
    Spline    points, weights, knots (interior), degree, rational,
              periodic, closed, domain, displayValue
    Polycurve segments
    Mesh      vertices, faces, colors
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Union

from cadxchange.errors import DecodeError, MalformedInputError
from cadxchange.numeric import Vec3, flatten_points, points_from_flat, vec3

PropertyBag = Dict[str, Any]


def clamp_knots(knots: Sequence[float]) -> List[float]:
    """Re-clamp an interior knot vector by repeating each end knot once."""

    if not knots:
        raise MalformedInputError("knot vector is empty")
    knots = [float(k) for k in knots]
    return [knots[0]] + knots + [knots[-1]]


def strip_knots(knots: Sequence[float]) -> List[float]:
    """Drop one duplicate of each end knot from a clamped knot vector."""

    if len(knots) < 3:
        raise MalformedInputError("clamped knot vector is too short to strip")
    return [float(k) for k in knots[1:-1]]


def _vec_list(v: Vec3) -> List[float]:
    return [float(v[0]), float(v[1]), float(v[2])]


class _Record:
    kind: ClassVar[str] = ""

    def to_dict(self) -> Dict[str, Any]:
        return record_to_dict(self)


@dataclass(frozen=True)
class PlaneRecord:
    origin: Vec3
    normal: Vec3
    x_dir: Vec3
    y_dir: Vec3

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin": _vec_list(self.origin),
            "normal": _vec_list(self.normal),
            "xdir": _vec_list(self.x_dir),
            "ydir": _vec_list(self.y_dir),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlaneRecord":
        try:
            return cls(vec3(data["origin"]), vec3(data["normal"]), vec3(data["xdir"]), vec3(data["ydir"]))
        except (KeyError, TypeError) as exc:
            raise MalformedInputError(f"malformed plane: {exc}") from exc


@dataclass(frozen=True)
class LineRecord(_Record):
    kind: ClassVar[str] = "Line"

    start: Vec3
    end: Vec3
    properties: Optional[PropertyBag] = None

    def _fields(self) -> Dict[str, Any]:
        return {"value": flatten_points([self.start, self.end])}

    @classmethod
    def _from_fields(cls, data: Dict[str, Any]) -> "LineRecord":
        pts = points_from_flat(data["value"])
        if len(pts) != 2:
            raise MalformedInputError("a line needs exactly two points")
        return cls(pts[0], pts[1])


@dataclass(frozen=True)
class ArcRecord(_Record):
    """Circular arc starting on the plane X axis; ``angle`` is the sweep in radians."""

    kind: ClassVar[str] = "Arc"

    plane: PlaneRecord
    radius: float
    angle: float
    start_angle: float = 0.0
    properties: Optional[PropertyBag] = None

    def _fields(self) -> Dict[str, Any]:
        return {
            "plane": self.plane.to_dict(),
            "radius": float(self.radius),
            "startAngle": float(self.start_angle),
            "angleRadians": float(self.angle),
        }

    @classmethod
    def _from_fields(cls, data: Dict[str, Any]) -> "ArcRecord":
        return cls(
            PlaneRecord.from_dict(data["plane"]),
            float(data["radius"]),
            float(data["angleRadians"]),
            float(data.get("startAngle", 0.0)),
        )


@dataclass(frozen=True)
class CircleRecord(_Record):
    kind: ClassVar[str] = "Circle"

    plane: PlaneRecord
    radius: float
    properties: Optional[PropertyBag] = None

    def _fields(self) -> Dict[str, Any]:
        return {"plane": self.plane.to_dict(), "radius": float(self.radius)}

    @classmethod
    def _from_fields(cls, data: Dict[str, Any]) -> "CircleRecord":
        return cls(PlaneRecord.from_dict(data["plane"]), float(data["radius"]))


@dataclass(frozen=True)
class EllipseRecord(_Record):
    kind: ClassVar[str] = "Ellipse"

    plane: PlaneRecord
    first_radius: float
    second_radius: float
    properties: Optional[PropertyBag] = None

    def _fields(self) -> Dict[str, Any]:
        return {
            "plane": self.plane.to_dict(),
            "firstRadius": float(self.first_radius),
            "secondRadius": float(self.second_radius),
        }

    @classmethod
    def _from_fields(cls, data: Dict[str, Any]) -> "EllipseRecord":
        return cls(PlaneRecord.from_dict(data["plane"]), float(data["firstRadius"]),
                   float(data["secondRadius"]))


@dataclass(frozen=True)
class PolylineRecord(_Record):
    """Straight-segment chain; closure is the flag, never a repeated point."""

    kind: ClassVar[str] = "Polyline"

    points: Tuple[Vec3, ...]
    closed: bool = False
    properties: Optional[PropertyBag] = None

    def _fields(self) -> Dict[str, Any]:
        return {"value": flatten_points(self.points), "closed": bool(self.closed)}

    @classmethod
    def _from_fields(cls, data: Dict[str, Any]) -> "PolylineRecord":
        return cls(tuple(points_from_flat(data["value"])), bool(data.get("closed", False)))


@dataclass(frozen=True)
class SplineRecord(_Record):
    """Rational B-spline with an interior knot vector.

    ``knots`` omits one copy of each clamped end knot, so it has
    ``len(points) + degree - 1`` entries; see :func:`clamp_knots`.
    """

    kind: ClassVar[str] = "Spline"

    points: Tuple[Vec3, ...]
    weights: Tuple[float, ...]
    knots: Tuple[float, ...]
    degree: int
    rational: bool
    periodic: bool
    closed: bool
    domain: Tuple[float, float]
    display: PolylineRecord
    properties: Optional[PropertyBag] = None

    def __post_init__(self) -> None:
        if self.degree < 1:
            raise MalformedInputError(f"spline degree must be >= 1, got {self.degree}")
        if len(self.weights) != len(self.points):
            raise MalformedInputError("spline needs one weight per control point")
        if len(self.knots) != len(self.points) + self.degree - 1:
            raise MalformedInputError(
                f"spline interior knot vector must have {len(self.points) + self.degree - 1} "
                f"entries, got {len(self.knots)}"
            )

    def _fields(self) -> Dict[str, Any]:
        return {
            "points": flatten_points(self.points),
            "weights": [float(w) for w in self.weights],
            "knots": [float(k) for k in self.knots],
            "degree": int(self.degree),
            "rational": bool(self.rational),
            "periodic": bool(self.periodic),
            "closed": bool(self.closed),
            "domain": {"start": float(self.domain[0]), "end": float(self.domain[1])},
            "displayValue": self.display.to_dict(),
        }

    @classmethod
    def _from_fields(cls, data: Dict[str, Any]) -> "SplineRecord":
        domain = data["domain"]
        display = record_from_dict(data["displayValue"])
        if not isinstance(display, PolylineRecord):
            raise MalformedInputError("spline display value must be a polyline")
        return cls(
            tuple(points_from_flat(data["points"])),
            tuple(float(w) for w in data["weights"]),
            tuple(float(k) for k in data["knots"]),
            int(data["degree"]),
            bool(data.get("rational", False)),
            bool(data.get("periodic", False)),
            bool(data.get("closed", False)),
            (float(domain["start"]), float(domain["end"])),
            display,
        )


@dataclass(frozen=True)
class PolycurveRecord(_Record):
    kind: ClassVar[str] = "Polycurve"

    segments: Tuple["CurveRecord", ...]
    properties: Optional[PropertyBag] = None

    def __post_init__(self) -> None:
        if not self.segments:
            raise MalformedInputError("polycurve needs at least one segment")
        for idx, seg in enumerate(self.segments):
            if not isinstance(seg, CURVE_RECORD_TYPES):
                raise MalformedInputError(f"polycurve segment {idx} is a {type(seg).__name__}, not a curve record")

    def _fields(self) -> Dict[str, Any]:
        return {"segments": [seg.to_dict() for seg in self.segments]}

    @classmethod
    def _from_fields(cls, data: Dict[str, Any]) -> "PolycurveRecord":
        return cls(tuple(record_from_dict(seg) for seg in data["segments"]))


@dataclass(frozen=True)
class MeshRecord(_Record):
    """Flattened mesh: ``3N`` vertex coordinates and a tagged face stream."""

    kind: ClassVar[str] = "Mesh"

    vertices: Tuple[float, ...]
    faces: Tuple[int, ...]
    colors: Tuple[int, ...] = field(default_factory=tuple)
    properties: Optional[PropertyBag] = None

    def _fields(self) -> Dict[str, Any]:
        return {
            "vertices": [float(v) for v in self.vertices],
            "faces": [int(f) for f in self.faces],
            "colors": [int(c) for c in self.colors],
        }

    @classmethod
    def _from_fields(cls, data: Dict[str, Any]) -> "MeshRecord":
        return cls(
            tuple(float(v) for v in data["vertices"]),
            tuple(int(f) for f in data["faces"]),
            tuple(int(c) for c in data.get("colors", [])),
        )


CurveRecord = Union[
    LineRecord,
    ArcRecord,
    CircleRecord,
    EllipseRecord,
    PolylineRecord,
    SplineRecord,
    PolycurveRecord,
]
Record = Union[CurveRecord, MeshRecord]

CURVE_RECORD_TYPES = (
    LineRecord,
    ArcRecord,
    CircleRecord,
    EllipseRecord,
    PolylineRecord,
    SplineRecord,
    PolycurveRecord,
)

RECORD_TYPES = {
    cls.kind: cls
    for cls in CURVE_RECORD_TYPES + (MeshRecord,)
}


def is_record(value: Any) -> bool:
    return isinstance(value, tuple(RECORD_TYPES.values()))


def record_to_dict(record: Record) -> Dict[str, Any]:
    from cadxchange.properties import properties_to_dict

    data: Dict[str, Any] = {"type": record.kind}
    data.update(record._fields())
    if record.properties is not None:
        data["properties"] = properties_to_dict(record.properties)
    return data


def record_from_dict(data: Dict[str, Any]) -> Record:
    """Rebuild a record from its dict form; unknown tags raise :class:`DecodeError`."""

    from cadxchange.properties import properties_from_dict

    if not isinstance(data, dict):
        raise MalformedInputError("record must be a mapping")
    kind = data.get("type")
    cls = RECORD_TYPES.get(kind)
    if cls is None:
        raise DecodeError(f"unrecognized record type: {kind!r}")
    try:
        record = cls._from_fields(data)
    except (KeyError, TypeError) as exc:
        raise MalformedInputError(f"malformed {kind} record: {exc}") from exc
    props = data.get("properties")
    if props is not None:
        record = replace(record, properties=properties_from_dict(props))
    return record


__all__ = [
    "PropertyBag",
    "clamp_knots",
    "strip_knots",
    "PlaneRecord",
    "LineRecord",
    "ArcRecord",
    "CircleRecord",
    "EllipseRecord",
    "PolylineRecord",
    "SplineRecord",
    "PolycurveRecord",
    "MeshRecord",
    "CurveRecord",
    "Record",
    "CURVE_RECORD_TYPES",
    "RECORD_TYPES",
    "is_record",
    "record_to_dict",
    "record_from_dict",
]
