import base64
import json

import pytest
import requests

from geoview.controller.interpreter import (
    GeminiInterpreter,
    InterpretationError,
    data_url_to_part,
    encode_image,
    parse_answer,
    strip_code_fences,
)
from geoview.model.scene import ObjectKind

ANSWER = {
    "description": "A shallow pipe and a void.",
    "volumen_3d": [
        {"type": "pipe", "position": {"x": 50, "y": 20, "z": 50}, "size": {"width": 60, "height": 4, "depth": 4}},
        {"type": "cavity", "position": {"x": 30, "y": 70, "z": 40}, "size": {"width": 12, "height": 12, "depth": 12}},
    ],
}


class StubResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class StubSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def gemini_reply(text):
    return StubResponse(payload={"candidates": [{"content": {"parts": [{"text": text}]}}]})


def make_interpreter(session, api_key="test-key"):
    return GeminiInterpreter(
        api_key=api_key,
        model="gemini-test",
        base_url="https://example.invalid/v1beta/",
        timeout=5,
        session=session,
    )


def test_interpret_posts_image_and_parses_fenced_answer():
    session = StubSession(gemini_reply("```json\n" + json.dumps(ANSWER) + "\n```"))
    interpreter = make_interpreter(session)

    result = interpreter.interpret(b"\x89PNG fake", "image/png")

    assert result.description == "A shallow pipe and a void."
    assert [o.kind for o in result.objects] == [ObjectKind.PIPE, ObjectKind.CAVITY]

    url, kwargs = session.calls[0]
    assert url == "https://example.invalid/v1beta/models/gemini-test:generateContent"
    assert kwargs["params"] == {"key": "test-key"}
    assert kwargs["timeout"] == 5
    inline = kwargs["json"]["contents"][0]["parts"][1]["inline_data"]
    assert inline["mime_type"] == "image/png"
    assert base64.b64decode(inline["data"]) == b"\x89PNG fake"


def test_missing_api_key_fails_before_any_request():
    session = StubSession(gemini_reply("{}"))
    with pytest.raises(InterpretationError, match="GEMINI_API_KEY"):
        make_interpreter(session, api_key="").interpret(b"x", "image/png")
    assert session.calls == []


def test_http_error_status_is_reported():
    session = StubSession(StubResponse(status_code=403, text="forbidden"))
    with pytest.raises(InterpretationError, match="403"):
        make_interpreter(session).interpret(b"x", "image/png")


def test_network_failure_is_wrapped():
    session = StubSession(error=requests.ConnectionError("down"))
    with pytest.raises(InterpretationError, match="failed"):
        make_interpreter(session).interpret(b"x", "image/png")


def test_unexpected_response_structure():
    session = StubSession(StubResponse(payload={"candidates": []}))
    with pytest.raises(InterpretationError, match="structure"):
        make_interpreter(session).interpret(b"x", "image/png")


def test_non_json_answer_is_rejected():
    with pytest.raises(InterpretationError):
        parse_answer("I could not find anything.")
    with pytest.raises(InterpretationError):
        parse_answer("[1, 2, 3]")


def test_answer_without_objects_is_empty_scene():
    result = parse_answer('{"description": "Nothing clear.", "volumen_3d": []}')
    assert result.objects == []
    assert result.raw["description"] == "Nothing clear."


def test_strip_code_fences():
    assert strip_code_fences("```json\n{}\n```") == "{}"
    assert strip_code_fences("{}") == "{}"


def test_data_url_to_part():
    part = data_url_to_part("data:image/jpeg;base64,AAAA")
    assert part == {"inline_data": {"mime_type": "image/jpeg", "data": "AAAA"}}
    with pytest.raises(InterpretationError):
        data_url_to_part("https://example.invalid/scan.jpg")


def test_encode_image_guesses_mime_type(tmp_path):
    image = tmp_path / "scan.png"
    image.write_bytes(b"\x89PNG\r\n")
    data, mime = encode_image(str(image))
    assert data == b"\x89PNG\r\n"
    assert mime == "image/png"

    notes = tmp_path / "notes.txt"
    notes.write_text("hello")
    with pytest.raises(InterpretationError):
        encode_image(str(notes))


def test_interpret_file_reads_from_disk(tmp_path):
    image = tmp_path / "scan.jpg"
    image.write_bytes(b"jpeg-bytes")
    session = StubSession(gemini_reply(json.dumps(ANSWER)))

    result = make_interpreter(session).interpret_file(str(image))

    assert len(result.objects) == 2
    inline = session.calls[0][1]["json"]["contents"][0]["parts"][1]["inline_data"]
    assert inline["mime_type"] == "image/jpeg"
