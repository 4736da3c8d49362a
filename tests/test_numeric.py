import math

import pytest

from cadxchange.errors import GeometryError, MalformedInputError
from cadxchange.numeric import (
    angle_about_axis,
    cross,
    dist,
    flatten_points,
    median,
    midpoint,
    normalize,
    points_from_flat,
    rotate_vector,
    threshold,
    to_degrees,
    to_radians,
    vec3,
)


def _close(a, b, tol=1e-9):
    assert dist(a, b) <= tol


def test_threshold_is_inclusive_and_tunable():
    assert threshold(1.0, 1.0)
    assert threshold(1.0, 1.0 + 5e-7)
    assert not threshold(1.0, 1.0 + 2e-6)
    assert threshold(1.0, 1.0 + 2e-6, eps=1e-5)
    assert threshold(-3.0, -3.0 - 5e-7)


def test_median():
    assert median(2.0, 6.0) == 4.0
    assert median(-1.0, 1.0) == 0.0
    assert median(3.0, 3.0) == 3.0


def test_angle_conversion():
    assert math.isclose(to_degrees(math.pi), 180.0)
    assert math.isclose(to_radians(90.0), math.pi / 2)
    # no wrap-around
    assert math.isclose(to_degrees(3 * math.pi), 540.0)
    assert math.isclose(to_radians(to_degrees(1.234)), 1.234)


def test_vec3_requires_three_components():
    assert vec3([1, 2, 3, 1]) == (1.0, 2.0, 3.0)
    with pytest.raises(MalformedInputError):
        vec3([1, 2])


def test_vector_algebra():
    assert cross((1, 0, 0), (0, 1, 0)) == (0.0, 0.0, 1.0)
    assert midpoint((0, 0, 0), (2, 4, 6)) == (1.0, 2.0, 3.0)
    _close(normalize((0, 3, 4)), (0.0, 0.6, 0.8))
    with pytest.raises(GeometryError):
        normalize((0.0, 0.0, 0.0))


def test_rotate_vector_right_hand_rule():
    _close(rotate_vector((1, 0, 0), (0, 0, 1), 90.0), (0.0, 1.0, 0.0))
    _close(rotate_vector((1, 0, 0), (0, 0, -1), 90.0), (0.0, -1.0, 0.0))
    _close(rotate_vector((0, 0, 5), (0, 0, 1), 37.0), (0.0, 0.0, 5.0))


def test_angle_about_axis_is_signed():
    assert math.isclose(angle_about_axis((1, 0, 0), (0, 1, 0), (0, 0, 1)), 90.0)
    assert math.isclose(angle_about_axis((1, 0, 0), (0, 1, 0), (0, 0, -1)), -90.0)
    assert math.isclose(angle_about_axis((1, 0, 0), (-1, 0, 0), (0, 0, 1)), 180.0)


def test_angle_about_axis_undoes_rotation():
    v = (0.3, -0.7, 0.0)
    axis = (0, 0, 1)
    rotated = rotate_vector(v, axis, 123.0)
    assert math.isclose(angle_about_axis(v, rotated, axis), 123.0)


def test_flat_coordinate_streams():
    pts = [(0, 0, 0), (1, 2, 3), (4, 5, 6)]
    flat = flatten_points(pts)
    assert flat == [0.0, 0.0, 0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
    assert points_from_flat(flat) == [(0.0, 0.0, 0.0), (1.0, 2.0, 3.0), (4.0, 5.0, 6.0)]
    assert points_from_flat([]) == []


def test_flat_stream_length_must_be_multiple_of_three():
    with pytest.raises(MalformedInputError):
        points_from_flat([1.0, 2.0, 3.0, 4.0])
