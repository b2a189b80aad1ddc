import pytest

from geoview.model.adapters import from_flat_payload
from geoview.model.scene import STYLES, ObjectKind, Vec3
from geoview.model.view_state import Rotation, ViewState
from geoview.render.math3d import project
from geoview.render.renderer import (
    BOX_FACES,
    CABLE_LINE_WIDTH,
    RenderOptions,
    RenderStats,
    SceneRenderer,
    box_corners,
    sort_back_to_front,
    visible_faces,
)
from geoview.render.surface import RadialGradient


@pytest.fixture
def renderer():
    return SceneRenderer()


def test_single_pipe_is_one_clear_and_one_line(renderer, surface, make_object):
    pipe = make_object(kind="pipe", position=(50, 50, 50), size=(20, 5, 5))

    stats = renderer.render(surface, [pipe], ViewState(), 200, 200)

    assert surface.names() == ["clear", "stroke_line"]
    start, end, color, width = surface.of("stroke_line")[0]
    assert color == STYLES[ObjectKind.PIPE].stroke
    # height * zoom * 0.707 * (min(w, h) / 100)
    assert width == pytest.approx(5 * 0.707 * 2)
    assert stats.drawn == 1


def test_pipe_endpoints_run_along_x(renderer, surface, make_object):
    view = ViewState()
    pipe = make_object(kind="pipe", position=(60, 30, 40), size=(20, 5, 5))

    renderer.render(surface, [pipe], view, 300, 200)

    c = pipe.centered()
    expected_start = project(Vec3(c.x - 10, c.y, c.z), view.rotation, view.zoom, 150, 100, 2.0)
    start, end, _, _ = surface.of("stroke_line")[0]
    assert start == pytest.approx((expected_start.screen_x, expected_start.screen_y))


def test_degenerate_surface_draws_nothing(renderer, surface, make_object):
    stats = renderer.render(surface, [make_object()], ViewState(), 0, 300)
    assert surface.calls == []
    assert stats == RenderStats()

    stats = renderer.render(surface, [make_object()], ViewState(), 300, -1)
    assert surface.calls == []


def test_clear_receives_pixel_ratio_and_background(renderer, surface):
    renderer.render(surface, [], ViewState(), 120, 80, 2.0, RenderOptions(background="#101010"))
    assert surface.calls == [("clear", (120, 80, 2.0, "#101010"))]


def test_unknown_kind_renders_as_anomaly_box(renderer, surface):
    obj = from_flat_payload({
        "type": "submarine",
        "position": {"x": 50, "y": 50, "z": 50},
        "size": {"width": 10, "height": 10, "depth": 10},
    })

    stats = renderer.render(surface, [obj], ViewState(), 200, 200)

    polygons = surface.of("fill_polygon")
    assert stats.drawn == 1
    assert polygons
    assert all(fill == STYLES[ObjectKind.ANOMALY].fill for _, fill, _, _ in polygons)


def test_default_view_draws_three_box_faces(renderer, surface, make_object):
    stats = renderer.render(surface, [make_object(kind="metal")], ViewState(), 200, 200)
    assert len(surface.of("fill_polygon")) == 3
    assert stats.faces == 3


def test_faces_facing_away_are_culled():
    view = ViewState(rotation=Rotation(0.0, 0.0))
    corners = box_corners(Vec3(0.0, 0.0, 0.0), (5.0, 5.0, 5.0))
    projected = [project(Vec3(*map(float, c)), view.rotation, 1.0, 0, 0) for c in corners]

    faces = visible_faces(projected, view)

    # only the -z face points away; side faces sit at z = 0 > -0.2
    assert 0 not in faces
    assert sorted(faces) == [1, 2, 3, 4, 5]


def test_visible_faces_are_back_to_front():
    view = ViewState()
    corners = box_corners(Vec3(0.0, 0.0, 0.0), (5.0, 5.0, 5.0))
    projected = [project(Vec3(*map(float, c)), view.rotation, 1.0, 0, 0) for c in corners]

    faces = visible_faces(projected, view)

    assert faces == [5, 3, 1]
    depths = [sum(projected[i].depth for i in BOX_FACES[f]) / 4 for f in faces]
    assert depths == sorted(depths)


def test_objects_draw_far_before_near(renderer, surface, make_object):
    near_pipe = make_object(kind="pipe", position=(50, 50, 90), size=(20, 5, 5))
    far_cavity = make_object(kind="cavity", position=(50, 50, 10), size=(20, 20, 20))

    renderer.render(surface, [near_pipe, far_cavity], ViewState(), 200, 200)

    assert surface.names() == ["clear", "fill_circle", "stroke_line"]


def test_equal_depth_keeps_input_order(make_object):
    pipe = make_object(kind="pipe")
    cable = make_object(kind="cable")
    assert sort_back_to_front([pipe, cable], ViewState()) == [pipe, cable]
    assert sort_back_to_front([cable, pipe], ViewState()) == [cable, pipe]


def test_cavity_is_shaded_sphere(renderer, surface, make_object):
    cavity = make_object(kind="cavity", size=(20, 20, 20))

    renderer.render(surface, [cavity], ViewState(zoom=1.5), 200, 200)

    center, radius, fill = surface.of("fill_circle")[0]
    assert radius == pytest.approx(10 * 1.5 * 0.707 * 2)
    assert isinstance(fill, RadialGradient)
    assert fill.stops[-1][1] == STYLES[ObjectKind.CAVITY].fill


def test_cable_width_scales_with_zoom_only(renderer, surface, make_object):
    cable = make_object(kind="cable", size=(40, 30, 30))
    renderer.render(surface, [cable], ViewState(zoom=2.0), 200, 200)
    assert surface.of("stroke_line")[0][3] == pytest.approx(CABLE_LINE_WIDTH * 2.0)


def test_polyline_with_fewer_than_two_points_is_skipped(renderer, surface, make_object):
    lonely = make_object(kind="cable", points=[(10, 10, 10)])
    empty = make_object(kind="cable", points=[])

    stats = renderer.render(surface, [lonely, empty], ViewState(), 200, 200)

    assert surface.names() == ["clear"]
    assert stats.skipped == 2
    assert stats.drawn == 0


def test_polyline_draws_all_points(renderer, surface, make_object):
    cable = make_object(kind="cable", points=[(0, 10, 0), (50, 10, 50), (100, 10, 100)])
    renderer.render(surface, [cable], ViewState(), 200, 200)
    points, color, _ = surface.of("stroke_polyline")[0]
    assert len(points) == 3
    assert color == STYLES[ObjectKind.CABLE].stroke


def test_labels_are_drawn_after_all_geometry(renderer, surface, make_object):
    objects = [
        make_object(kind="metal", position=(20, 40, 80)),
        make_object(kind="pipe", position=(70, 60, 20)),
    ]
    options = RenderOptions(show_labels=True, max_depth=5.0)

    stats = renderer.render(surface, objects, ViewState(), 400, 300, options=options)

    names = surface.names()
    assert names[-2:] == ["draw_label", "draw_label"]
    assert "draw_label" not in names[:-2]
    assert stats.labels == 2
    texts = {args[1] for args in surface.of("draw_label")}
    assert texts == {"Metal · 2.00 m", "Pipe · 3.00 m"}


def test_label_text_without_depth_scale(make_object):
    assert SceneRenderer.label_text(make_object(kind="rock"), None) == "Rock"


def test_grid_is_drawn_before_objects(renderer, surface, make_object):
    options = RenderOptions(show_grid=True, grid_divisions=10, grid_levels=4)

    renderer.render(surface, [make_object(kind="pipe")], ViewState(), 200, 200, options=options)

    lines = surface.of("stroke_line")
    # 2 * 11 ground lines, then the pipe
    assert len(lines) == 23
    assert lines[-1][2] == STYLES[ObjectKind.PIPE].stroke
    assert len(surface.of("stroke_polyline")) == 4
    assert surface.names()[-1] == "stroke_line"


def test_render_does_not_mutate_view(renderer, surface, make_object):
    view = ViewState(rotation=Rotation(0.1, 0.2), zoom=1.7)
    renderer.render(surface, [make_object()], view, 200, 200)
    assert (view.rotation.x, view.rotation.y, view.zoom) == (0.1, 0.2, 1.7)
