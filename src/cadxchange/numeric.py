"""Tolerance, angle and small vector helpers shared by the whole engine.

Points and vectors are plain ``(x, y, z)`` tuples of floats.  All
classification decisions go through :func:`threshold` so the numeric
behaviour can be tuned in one place.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

from cadxchange.errors import GeometryError, MalformedInputError

Vec3 = Tuple[float, float, float]

EPS = 1e-6
ELLIPSE_EPS = 1e-5


def threshold(value1: float, value2: float, eps: float = EPS) -> bool:
    """Return ``True`` if ``value1`` and ``value2`` differ by at most ``eps``."""

    return abs(value1 - value2) <= eps


def median(lo: float, hi: float) -> float:
    return (hi - lo) * 0.5 + lo


def to_degrees(radians: float) -> float:
    return radians * (180.0 / math.pi)


def to_radians(degrees: float) -> float:
    return degrees * (math.pi / 180.0)


def vec3(value: Sequence[float]) -> Vec3:
    """Return the XYZ components of ``value`` as a float tuple."""

    if len(value) < 3:
        raise MalformedInputError("value must have at least three components")
    return float(value[0]), float(value[1]), float(value[2])


def add(a: Vec3, b: Vec3) -> Vec3:
    return a[0] + b[0], a[1] + b[1], a[2] + b[2]


def sub(a: Vec3, b: Vec3) -> Vec3:
    return a[0] - b[0], a[1] - b[1], a[2] - b[2]


def scale(a: Vec3, s: float) -> Vec3:
    return a[0] * s, a[1] * s, a[2] * s


def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def mag(a: Vec3) -> float:
    return math.sqrt(dot(a, a))


def dist(a: Vec3, b: Vec3) -> float:
    return mag(sub(a, b))


def midpoint(a: Vec3, b: Vec3) -> Vec3:
    return median(a[0], b[0]), median(a[1], b[1]), median(a[2], b[2])


def normalize(a: Vec3, tol: float = 1e-12) -> Vec3:
    """Return ``a`` scaled to unit length.

    Raises :class:`GeometryError` for vectors shorter than ``tol``.
    """

    length = mag(a)
    if length <= tol:
        raise GeometryError("cannot normalize a zero-length vector")
    return a[0] / length, a[1] / length, a[2] / length


def rotate_vector(v: Vec3, axis: Vec3, degrees: float) -> Vec3:
    """Rotate ``v`` about the unit ``axis`` by ``degrees`` (right-hand rule)."""

    k = normalize(axis)
    theta = to_radians(degrees)
    c = math.cos(theta)
    s = math.sin(theta)
    kv = cross(k, v)
    kd = dot(k, v) * (1.0 - c)
    return (
        v[0] * c + kv[0] * s + k[0] * kd,
        v[1] * c + kv[1] * s + k[1] * kd,
        v[2] * c + kv[2] * s + k[2] * kd,
    )


def angle_about_axis(v1: Vec3, v2: Vec3, axis: Vec3) -> float:
    """Signed angle in degrees that turns ``v1`` onto ``v2`` about ``axis``."""

    k = normalize(axis)
    return to_degrees(math.atan2(dot(cross(v1, v2), k), dot(v1, v2)))


def flatten_points(points: Iterable[Sequence[float]]) -> List[float]:
    """Flatten a point sequence into an ``[x0, y0, z0, x1, ...]`` stream."""

    coords: List[float] = []
    for pt in points:
        coords.extend(vec3(pt))
    return coords


def points_from_flat(coords: Sequence[float]) -> List[Vec3]:
    """Inverse of :func:`flatten_points`.

    The stream length must be a multiple of three.
    """

    if len(coords) % 3 != 0:
        raise MalformedInputError("coordinate stream malformed: length % 3 != 0")
    return [
        (float(coords[i]), float(coords[i + 1]), float(coords[i + 2]))
        for i in range(0, len(coords), 3)
    ]


__all__ = [
    "Vec3",
    "EPS",
    "ELLIPSE_EPS",
    "threshold",
    "median",
    "to_degrees",
    "to_radians",
    "vec3",
    "add",
    "sub",
    "scale",
    "dot",
    "cross",
    "mag",
    "dist",
    "midpoint",
    "normalize",
    "rotate_vector",
    "angle_about_axis",
    "flatten_points",
    "points_from_flat",
]
