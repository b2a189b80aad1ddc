import math

import numpy as np
import pytest

from geoview.model.scene import Vec3
from geoview.model.view_state import Rotation
from geoview.render.math3d import ISO_FACTOR, project, project_many, rotate, rotate_many


def test_zero_rotation_is_identity():
    p = Vec3(3.0, -4.5, 12.0)
    r = rotate(p, Rotation(0.0, 0.0))
    assert r.as_tuple() == pytest.approx(p.as_tuple())


def test_rotate_matches_x_then_y_formula():
    p = Vec3(1.0, 2.0, 3.0)
    rx, ry = 0.3, 0.7

    y1 = 2.0 * math.cos(rx) - 3.0 * math.sin(rx)
    z1 = 2.0 * math.sin(rx) + 3.0 * math.cos(rx)
    x2 = 1.0 * math.cos(ry) + z1 * math.sin(ry)
    z2 = -1.0 * math.sin(ry) + z1 * math.cos(ry)

    r = rotate(p, Rotation(rx, ry))
    assert r.as_tuple() == pytest.approx((x2, y1, z2))


def test_rotation_order_is_not_commutative():
    # X by 90deg first moves +y onto +z, then Y by 90deg moves +z onto +x.
    r = rotate(Vec3(0.0, 1.0, 0.0), Rotation(math.pi / 2, math.pi / 2))
    assert r.as_tuple() == pytest.approx((1.0, 0.0, 0.0), abs=1e-12)


def test_rotate_many_agrees_with_rotate():
    rotation = Rotation(0.5, -0.5)
    points = np.array([[1.0, 2.0, 3.0], [-4.0, 0.5, 10.0], [0.0, 0.0, 0.0]])
    expected = [rotate(Vec3(*p), rotation).as_tuple() for p in points]
    np.testing.assert_allclose(rotate_many(points, rotation), np.array(expected))


def test_project_uses_isometric_formula():
    rotation = Rotation(0.0, 0.0)
    p = project(Vec3(10.0, 5.0, -2.0), rotation, zoom=1.0, center_x=100.0, center_y=50.0)
    assert p.screen_x == pytest.approx(100.0 + (10.0 + 2.0) * ISO_FACTOR)
    assert p.screen_y == pytest.approx(50.0 + (5.0 + (10.0 - 2.0) / 2) * ISO_FACTOR)
    assert p.depth == pytest.approx(-2.0)


def test_projection_offset_scales_linearly_with_zoom():
    rotation = Rotation(0.5, -0.5)
    point = Vec3(7.0, -3.0, 11.0)
    one = project(point, rotation, 1.0, 0.0, 0.0, scene_scale=2.0)
    two = project(point, rotation, 2.0, 0.0, 0.0, scene_scale=2.0)
    assert two.screen_x == pytest.approx(2 * one.screen_x)
    assert two.screen_y == pytest.approx(2 * one.screen_y)
    assert two.depth == pytest.approx(one.depth)


def test_project_many_matches_project():
    rotation = Rotation(0.2, 1.1)
    points = np.array([[1.0, 2.0, 3.0], [-5.0, 4.0, 0.0]])
    batch = project_many(points, rotation, 1.5, 40.0, 30.0, scene_scale=3.0)
    for row, got in zip(points, batch):
        single = project(Vec3(*row), rotation, 1.5, 40.0, 30.0, scene_scale=3.0)
        assert tuple(got) == pytest.approx(tuple(single))
