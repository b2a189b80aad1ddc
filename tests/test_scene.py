import dataclasses

import pytest

from geoview.model.scene import STYLES, ObjectKind, SceneObject, ShapeKind, Size3, Vec3, style_for


@pytest.mark.parametrize("text, kind", [
    ("pipe", ObjectKind.PIPE),
    (" Cavity ", ObjectKind.CAVITY),
    ("ROCK", ObjectKind.ROCK),
    ("submarine", ObjectKind.ANOMALY),
    ("", ObjectKind.ANOMALY),
    (None, ObjectKind.ANOMALY),
    (42, ObjectKind.ANOMALY),
])
def test_kind_parse_never_fails(text, kind):
    assert ObjectKind.parse(text) is kind


def test_every_kind_has_a_style():
    assert set(STYLES) == set(ObjectKind)


def test_unknown_style_falls_back_to_anomaly():
    assert style_for("unobtainium") == STYLES[ObjectKind.ANOMALY]
    assert style_for(ObjectKind.CABLE).label == "Cable"


def test_negative_sizes_are_clamped():
    size = Size3(-3, 4, -0.5)
    assert (size.width, size.height, size.depth) == (0.0, 4.0, 0.0)


@pytest.mark.parametrize("kind, shape", [
    (ObjectKind.METAL, ShapeKind.BOX),
    (ObjectKind.ROCK, ShapeKind.BOX),
    (ObjectKind.ANOMALY, ShapeKind.BOX),
    (ObjectKind.CAVITY, ShapeKind.SPHERE),
    (ObjectKind.PIPE, ShapeKind.CYLINDER),
    (ObjectKind.CABLE, ShapeKind.CYLINDER),
])
def test_shape_follows_kind(kind, shape, make_object):
    assert make_object(kind=kind).shape is shape


def test_explicit_points_make_a_polyline(make_object):
    cable = make_object(kind=ObjectKind.CABLE, points=[(0, 0, 0), (10, 10, 10)])
    assert cable.shape is ShapeKind.POLYLINE


def test_centered_is_relative_to_scene_center(make_object):
    obj = make_object(position=(60, 20, 50))
    assert obj.centered() == Vec3(10, -30, 0)


def test_scene_objects_are_immutable(make_object):
    obj = make_object()
    with pytest.raises(dataclasses.FrozenInstanceError):
        obj.kind = ObjectKind.PIPE  # type: ignore[misc]
    assert isinstance(obj, SceneObject)
