"""Rational B-spline curves for the native geometry kernel.

Provides evaluation (points and first derivatives), arc length, the
arc-and-line approximation used for display polylines, and the exact
rational-quadratic construction of circular and elliptical arcs.
"""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

from cadxchange.errors import GeometryError
from cadxchange.native import Curve, Line, Plane, arc_through_points
from cadxchange.numeric import (
    EPS,
    Vec3,
    dist,
    mag,
    scale,
    sub,
    to_radians,
    vec3,
)

_GAUSS_NODES, _GAUSS_WEIGHTS = np.polynomial.legendre.leggauss(16)
_LENGTH_SUBDIVISIONS = 8


def find_span(n: int, degree: int, u: float, knots: Sequence[float]) -> int:
    """Index of the knot span containing ``u`` (``n`` is the last control index)."""

    if u >= knots[n + 1]:
        return n
    if u <= knots[degree]:
        return degree
    low = degree
    high = n + 1
    mid = (low + high) // 2
    while u < knots[mid] or u >= knots[mid + 1]:
        if u < knots[mid]:
            high = mid
        else:
            low = mid
        mid = (low + high) // 2
    return mid


def basis_function_derivatives(span: int, u: float, degree: int, knots: Sequence[float],
                               order: int) -> List[List[float]]:
    """Non-zero basis functions and their derivatives up to ``order`` at ``u``.

    ``ders[k][j]`` is the k-th derivative of basis function ``span - degree + j``.
    """

    p = degree
    ndu = [[0.0] * (p + 1) for _ in range(p + 1)]
    ndu[0][0] = 1.0
    left = [0.0] * (p + 1)
    right = [0.0] * (p + 1)
    for j in range(1, p + 1):
        left[j] = u - knots[span + 1 - j]
        right[j] = knots[span + j] - u
        saved = 0.0
        for r in range(j):
            ndu[j][r] = right[r + 1] + left[j - r]
            temp = ndu[r][j - 1] / ndu[j][r]
            ndu[r][j] = saved + right[r + 1] * temp
            saved = left[j - r] * temp
        ndu[j][j] = saved

    ders = [[0.0] * (p + 1) for _ in range(order + 1)]
    for j in range(p + 1):
        ders[0][j] = ndu[j][p]

    a = [[0.0] * (p + 1) for _ in range(2)]
    for r in range(p + 1):
        s1, s2 = 0, 1
        a[0][0] = 1.0
        for k in range(1, order + 1):
            d = 0.0
            rk = r - k
            pk = p - k
            if r >= k:
                a[s2][0] = a[s1][0] / ndu[pk + 1][rk]
                d = a[s2][0] * ndu[rk][pk]
            j1 = 1 if rk >= -1 else -rk
            j2 = k - 1 if r - 1 <= pk else p - r
            for j in range(j1, j2 + 1):
                a[s2][j] = (a[s1][j] - a[s1][j - 1]) / ndu[pk + 1][rk + j]
                d += a[s2][j] * ndu[rk + j][pk]
            if r <= pk:
                a[s2][k] = -a[s1][k - 1] / ndu[pk + 1][r]
                d += a[s2][k] * ndu[r][pk]
            ders[k][r] = d
            s1, s2 = s2, s1

    factor = p
    for k in range(1, order + 1):
        for j in range(p + 1):
            ders[k][j] *= factor
        factor *= p - k
    return ders


def open_uniform_knots(count: int, degree: int, start: float = 0.0, end: float = 1.0) -> List[float]:
    """Clamped knot vector with uniformly spaced interior knots."""

    interior = count - degree - 1
    if interior < 0:
        raise GeometryError("not enough control points for the requested degree")
    step = (end - start) / (interior + 1)
    inner = [start + step * i for i in range(1, interior + 1)]
    return [start] * (degree + 1) + inner + [end] * (degree + 1)


class NurbsCurve(Curve):
    """Rational B-spline with a clamped knot vector.

    ``knots`` holds ``len(control_points) + degree + 1`` values with the end
    knots repeated ``degree + 1`` times.
    """

    def __init__(self, control_points: Sequence[Sequence[float]], weights: Sequence[float],
                 knots: Sequence[float], degree: int, periodic: bool = False) -> None:
        super().__init__()
        degree = int(degree)
        pts = tuple(vec3(p) for p in control_points)
        if degree < 1:
            raise GeometryError("spline degree must be at least 1")
        if len(pts) < degree + 1:
            raise GeometryError("a spline needs at least degree + 1 control points")
        if len(weights) != len(pts):
            raise GeometryError("one weight is required per control point")
        if any(w <= 0.0 for w in weights):
            raise GeometryError("spline weights must be positive")
        if len(knots) != len(pts) + degree + 1:
            raise GeometryError(
                f"knot vector must have {len(pts) + degree + 1} entries, got {len(knots)}"
            )
        if any(b < a for a, b in zip(knots, knots[1:])):
            raise GeometryError("knot vector must be non-decreasing")
        if not knots[degree] < knots[len(pts)]:
            raise GeometryError("spline parameter domain is empty")
        self._points: Tuple[Vec3, ...] = pts
        self._weights: Tuple[float, ...] = tuple(float(w) for w in weights)
        self._knots: Tuple[float, ...] = tuple(float(k) for k in knots)
        self._degree = degree
        self._periodic = bool(periodic)

    @classmethod
    def by_control_points_weights_knots(cls, control_points: Sequence[Sequence[float]],
                                        weights: Sequence[float], knots: Sequence[float],
                                        degree: int, periodic: bool = False) -> "NurbsCurve":
        return cls(control_points, weights, knots, degree, periodic=periodic)

    @classmethod
    def by_control_points(cls, control_points: Sequence[Sequence[float]], degree: int = 3) -> "NurbsCurve":
        """Non-rational spline with an open uniform knot vector."""

        count = len(control_points)
        degree = min(int(degree), count - 1)
        return cls(control_points, [1.0] * count, open_uniform_knots(count, degree), degree)

    @property
    def control_points(self) -> List[Vec3]:
        return list(self._points)

    @property
    def weights(self) -> List[float]:
        return list(self._weights)

    @property
    def knots(self) -> List[float]:
        return list(self._knots)

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def is_periodic(self) -> bool:
        return self._periodic

    @property
    def is_rational(self) -> bool:
        first = self._weights[0]
        return any(abs(w - first) > 1e-12 for w in self._weights)

    @property
    def start_parameter(self) -> float:
        return self._knots[self._degree]

    @property
    def end_parameter(self) -> float:
        return self._knots[len(self._points)]

    @property
    def start_point(self) -> Vec3:
        return self.point_at(self.start_parameter)

    @property
    def end_point(self) -> Vec3:
        return self.point_at(self.end_parameter)

    def _homogeneous(self, u: float, order: int) -> List[Tuple[Vec3, float]]:
        p = self._degree
        n = len(self._points) - 1
        u = min(max(u, self.start_parameter), self.end_parameter)
        span = find_span(n, p, u, self._knots)
        ders = basis_function_derivatives(span, u, p, self._knots, order)
        out = []
        for k in range(order + 1):
            ax = ay = az = aw = 0.0
            for j in range(p + 1):
                idx = span - p + j
                coef = ders[k][j] * self._weights[idx]
                pt = self._points[idx]
                ax += coef * pt[0]
                ay += coef * pt[1]
                az += coef * pt[2]
                aw += coef
            out.append(((ax, ay, az), aw))
        return out

    def point_at(self, u: float) -> Vec3:
        """Evaluate at the native parameter ``u``."""

        (a0, w0), = self._homogeneous(u, 0)
        return scale(a0, 1.0 / w0)

    def derivative_at(self, u: float) -> Vec3:
        """First derivative with respect to the native parameter ``u``."""

        (a0, w0), (a1, w1) = self._homogeneous(u, 1)
        c = scale(a0, 1.0 / w0)
        return scale(sub(a1, scale(c, w1)), 1.0 / w0)

    def point_at_parameter(self, t: float) -> Vec3:
        t = max(0.0, min(1.0, float(t)))
        u0 = self.start_parameter
        u1 = self.end_parameter
        return self.point_at(u0 + (u1 - u0) * t)

    def spans(self) -> List[Tuple[float, float]]:
        """Non-empty knot intervals inside the parameter domain."""

        lo = self.start_parameter
        hi = self.end_parameter
        out = []
        for a, b in zip(self._knots, self._knots[1:]):
            if b > a and a >= lo and b <= hi:
                out.append((a, b))
        return out

    @property
    def length(self) -> float:
        total = 0.0
        for a, b in self.spans():
            step = (b - a) / _LENGTH_SUBDIVISIONS
            for k in range(_LENGTH_SUBDIVISIONS):
                half = 0.5 * step
                mid = a + step * k + half
                for x, w in zip(_GAUSS_NODES, _GAUSS_WEIGHTS):
                    total += float(w) * half * mag(self.derivative_at(mid + half * float(x)))
        return total

    def approximate_with_arc_and_line_segments(self, segments_per_span: int = 4,
                                               tol: float = EPS) -> List[Curve]:
        """Chain of arcs and lines following the curve.

        Each span is split into ``segments_per_span`` pieces; a piece becomes
        the arc through its start, middle and end points, or a line when the
        middle point is within ``tol`` of the chord.
        """

        if segments_per_span < 1:
            raise ValueError("segments_per_span must be >= 1")
        pieces: List[Curve] = []
        for a, b in self.spans():
            step = (b - a) / segments_per_span
            for k in range(segments_per_span):
                lo = a + step * k
                hi = lo + step
                pa = self.point_at(lo)
                pm = self.point_at(0.5 * (lo + hi))
                pb = self.point_at(hi)
                if dist(pa, pb) <= tol:
                    continue
                arc = None
                if _chord_deviation(pa, pm, pb) > tol:
                    arc = arc_through_points(pa, pm, pb)
                pieces.append(arc if arc is not None else Line(pa, pb))
        if not pieces:
            raise GeometryError("curve collapses to a point")
        return pieces

    def to_nurbs_curve(self) -> "NurbsCurve":
        return self

    def __repr__(self) -> str:
        return f"NurbsCurve(degree={self._degree}, points={len(self._points)})"


def _chord_deviation(a: Vec3, m: Vec3, b: Vec3) -> float:
    chord = sub(b, a)
    length = mag(chord)
    rel = sub(m, a)
    along = (rel[0] * chord[0] + rel[1] * chord[1] + rel[2] * chord[2]) / length
    return mag(sub(rel, scale(chord, along / length)))


def conic_arc(plane: Plane, x_radius: float, y_radius: float, start_angle: float,
              sweep_angle: float) -> NurbsCurve:
    """Exact rational quadratic for an elliptical (or circular) arc.

    The arc is split into pieces of at most 90 degrees; middle control
    points carry weight ``cos(dtheta / 2)``.  A full 360 degree sweep gives
    a closed curve whose knots fall on the quarter points.
    """

    if not 0.0 < sweep_angle <= 360.0:
        raise GeometryError("conic sweep must lie in (0, 360] degrees")
    narcs = max(1, int(math.ceil(sweep_angle / 90.0 - 1e-9)))
    dtheta = to_radians(sweep_angle) / narcs
    w1 = math.cos(0.5 * dtheta)

    def lift(cx: float, cy: float) -> Vec3:
        return plane.point_at(x_radius * cx, y_radius * cy)

    theta = to_radians(start_angle)
    points = [lift(math.cos(theta), math.sin(theta))]
    weights = [1.0]
    for _ in range(narcs):
        mid = theta + 0.5 * dtheta
        end = theta + dtheta
        points.append(lift(math.cos(mid) / w1, math.sin(mid) / w1))
        weights.append(w1)
        points.append(lift(math.cos(end), math.sin(end)))
        weights.append(1.0)
        theta = end
    if sweep_angle == 360.0:
        points[-1] = points[0]

    knots = [0.0, 0.0, 0.0]
    for i in range(1, narcs):
        knots.extend([i / narcs, i / narcs])
    knots.extend([1.0, 1.0, 1.0])
    return NurbsCurve(points, weights, knots, 2)


__all__ = [
    "find_span",
    "basis_function_derivatives",
    "open_uniform_knots",
    "NurbsCurve",
    "conic_arc",
]
