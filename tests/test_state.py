from geoview import config
from geoview.controller.interpreter import AnalysisResult, parse_answer
from geoview.model.history import AnalysisRecord
from geoview.model.scene import ObjectKind, ShapeKind
from geoview.model.state import SessionState


def test_sample_analysis_covers_every_producer_shape():
    with open(config.SAMPLE_ANALYSIS_PATH, encoding="utf-8") as f:
        result = parse_answer(f.read())

    assert result.description
    assert [o.kind for o in result.objects] == [
        ObjectKind.PIPE, ObjectKind.CAVITY, ObjectKind.METAL, ObjectKind.CABLE, ObjectKind.ROCK,
    ]
    assert result.objects[3].shape is ShapeKind.POLYLINE
    # centred producer: y = -80 becomes depth 80
    assert result.objects[4].position.y == 80


def test_result_and_record_replace_each_other(make_object):
    session = SessionState()
    pipe = make_object(kind="pipe")
    rock = make_object(kind="rock")

    session.set_result(AnalysisResult(description="fresh", objects=[pipe]))
    assert session.objects == [pipe]
    assert session.description == "fresh"

    session.set_record(AnalysisRecord(file_name="old.png", description="stored", objects=[rock],
                                      image_path="/tmp/old.png"))
    assert session.result is None
    assert session.objects == [rock]
    assert session.description == "stored"
    assert session.image_path == "/tmp/old.png"


def test_reset_clears_everything(make_object):
    session = SessionState(image_path="scan.png", max_depth_m=12.0)
    session.set_result(AnalysisResult(description="x", objects=[make_object()]))

    session.reset()

    assert session.image_path is None
    assert session.objects == []
    assert session.description == ""
    assert session.max_depth_m == config.DEFAULT_MAX_DEPTH_M
