"""
GPR Image Interpretation (Gemini REST client)
=============================================
Sends a ground-penetrating-radar image to the Gemini `generateContent`
endpoint and turns the structured answer into scene objects.

Why is this file needed?
------------------------
1. Prompt Contract: the prompt fixes the JSON shape the model must return.
2. Parsing: model answers are often wrapped in ```json fences; these are
   stripped before decoding.
3. Isolation: the HTTP session is injectable so tests never hit the network.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass, field
import json
import logging
import mimetypes
import os
import re
from typing import Any, Optional

import requests

from geoview import config
from geoview.model.adapters import description_from_analysis, objects_from_analysis
from geoview.model.scene import SceneObject

logger = logging.getLogger(__name__)

PROMPT = """
You are an expert in ground-penetrating radar (GPR) data analysis. Analyse the GPR image below.
Your answer MUST be a single JSON object with this structure:
{
  "description": "A clear interpretation of the image for a non-expert: anomalies, subsurface layers and objects of interest.",
  "volumen_3d": [
    {
      "type": "pipe" | "cavity" | "metal" | "cable" | "rock",
      "position": { "x": number, "y": number, "z": number },
      "size": { "width": number, "height": number, "depth": number }
    }
  ]
}
- Coordinates (x, y, z) and sizes (width, height, depth) are numbers between 0 and 100, percentages of the surveyed volume.
- 'x' is the horizontal position, 'y' is the depth and 'z' is the distance from the front.
- Identify 3-5 objects if possible. If there are no clear objects return an empty "volumen_3d" array.
- Do not include anything else in your answer, only the JSON object.
"""

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_DATA_URL_RE = re.compile(r"^data:(.+);base64,(.+)$", re.DOTALL)


class InterpretationError(Exception):
    """The image could not be interpreted."""


@dataclass
class AnalysisResult:
    description: str
    objects: list[SceneObject] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)


def encode_image(path: str) -> tuple[bytes, str]:
    """Read an image file and guess its MIME type."""
    mime_type, _ = mimetypes.guess_type(path)
    if not mime_type or not mime_type.startswith("image/"):
        raise InterpretationError(f"'{os.path.basename(path)}' is not a recognised image file.")
    with open(path, "rb") as f:
        return f.read(), mime_type


def data_url_to_part(data_url: str) -> dict[str, Any]:
    """Convert a `data:<mime>;base64,<data>` URL to a Gemini inline-data part."""
    match = _DATA_URL_RE.match(data_url)
    if not match:
        raise InterpretationError("Invalid data URL format.")
    return {"inline_data": {"mime_type": match.group(1), "data": match.group(2)}}


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def parse_answer(text: str) -> AnalysisResult:
    """Decode the model's JSON answer into an AnalysisResult."""
    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise InterpretationError(f"Model answer is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise InterpretationError("Model answer must be a JSON object.")

    return AnalysisResult(
        description=description_from_analysis(payload),
        objects=objects_from_analysis(payload),
        raw=payload,
    )


class GeminiInterpreter:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else config.GEMINI_API_KEY
        self.model = model or config.GEMINI_MODEL
        self.base_url = (base_url or config.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_request(self, image: bytes, mime_type: str) -> dict[str, Any]:
        return {
            "contents": [{
                "parts": [
                    {"text": PROMPT},
                    {"inline_data": {
                        "mime_type": mime_type,
                        "data": base64.b64encode(image).decode("ascii"),
                    }},
                ]
            }]
        }

    def interpret(self, image: bytes, mime_type: str) -> AnalysisResult:
        """
        Ask the model to interpret one GPR image.

        Args:
            image: Raw image bytes.
            mime_type: e.g. "image/png".

        Returns:
            The description and the adapted scene objects.

        Raises:
            InterpretationError: Missing key, HTTP failure or unusable answer.
        """
        if not self.api_key:
            raise InterpretationError("GEMINI_API_KEY is not configured.")

        logger.info(f"Requesting interpretation from {self.model} ({len(image)} bytes, {mime_type}).")
        try:
            response = self.session.post(
                self.endpoint,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=self.build_request(image, mime_type),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Gemini request failed: {e}")
            raise InterpretationError(f"Request to the interpretation service failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Gemini API error: {response.status_code}")
            raise InterpretationError(f"Gemini API error {response.status_code}: {response.text}")

        try:
            text = response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise InterpretationError(f"Unexpected response structure: {e}") from e

        result = parse_answer(text)
        logger.info(f"Interpretation returned {len(result.objects)} objects.")
        return result

    def interpret_file(self, path: str) -> AnalysisResult:
        image, mime_type = encode_image(path)
        return self.interpret(image, mime_type)
