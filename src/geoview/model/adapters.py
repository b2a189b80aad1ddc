"""
Producer Adapters
=================
Normalises every known interpretation payload into canonical SceneObjects.

Why is this file needed?
------------------------
The interpretation model has been prompted with several output shapes over
time. The renderer must only ever see one shape, so all variance is absorbed
here.

Supported producers:
    flat    {type|kind, position: {x, y, z}, size: {width, height, depth}}
            0..100 cube, y = depth (larger = deeper). Already canonical.
    rich    {type: tuberia|cavidad|metalico|cable, position: [x, y, z],
             dimensions: {radius, height, orientation, size, points}, material}
            centred -50..50, negative y = deeper.
    volume  {tipo, forma: cilindro|esfera|cubo, posicion: {x, y, z},
             dimensiones: {radio, altura, ancho, alto, profundidad}}
            centred -50..50, negative y = deeper.

Malformed items are logged and skipped; one bad item never drops the rest.
"""
from __future__ import annotations

import logging
import math
import unicodedata
from typing import Any, Iterable, Mapping, Optional

from geoview.model.scene import SCENE_HALF, ObjectKind, SceneObject, Size3, Vec3

logger = logging.getLogger(__name__)


class AdapterError(ValueError):
    """Raised for a single malformed producer item."""


# Spanish producer vocabulary -> kinds (keys are accent-free, lower case)
_SPANISH_KINDS: dict[str, ObjectKind] = {
    "tuberia": ObjectKind.PIPE,
    "tubo": ObjectKind.PIPE,
    "cavidad": ObjectKind.CAVITY,
    "vacio": ObjectKind.CAVITY,
    "metalico": ObjectKind.METAL,
    "metal": ObjectKind.METAL,
    "cable": ObjectKind.CABLE,
    "roca": ObjectKind.ROCK,
}


def _plain(text: Any) -> str:
    """Lower-case, accent-free version of a producer string."""
    normalized = unicodedata.normalize("NFKD", str(text).strip().lower())
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def _number(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise AdapterError(f"'{name}' is not a number: {value!r}")
    if not math.isfinite(number):
        raise AdapterError(f"'{name}' is not finite: {value!r}")
    return number


def _require_mapping(value: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise AdapterError(f"'{name}' must be an object, got {type(value).__name__}")
    return value


def _from_centered(x: float, y: float, z: float) -> Vec3:
    """Centred producer space (negative y = deeper) -> canonical 0..100 space."""
    return Vec3(x + SCENE_HALF, -y, z + SCENE_HALF)


def _centered_triplet(value: Any, name: str) -> Vec3:
    if isinstance(value, Mapping):
        coords = [value.get("x"), value.get("y"), value.get("z")]
    elif isinstance(value, (list, tuple)) and len(value) == 3:
        coords = list(value)
    else:
        raise AdapterError(f"'{name}' must be [x, y, z] or {{x, y, z}}, got {value!r}")
    x, y, z = (_number(c, f"{name}[{i}]") for i, c in enumerate(coords))
    return _from_centered(x, y, z)


def kind_from_spanish(name: Any) -> ObjectKind:
    return _SPANISH_KINDS.get(_plain(name), ObjectKind.parse(_plain(name)))


# ------------------------------------------------------------------------------
# Per-producer adapters
# ------------------------------------------------------------------------------

def from_flat_payload(item: Mapping[str, Any]) -> SceneObject:
    kind_name = item.get("type", item.get("kind"))
    position = _require_mapping(item.get("position"), "position")
    size = _require_mapping(item.get("size"), "size")

    points: Optional[tuple[Vec3, ...]] = None
    raw_points = item.get("points")
    if raw_points is not None:
        if not isinstance(raw_points, (list, tuple)):
            raise AdapterError(f"'points' must be a list, got {raw_points!r}")
        parsed = []
        for i, p in enumerate(raw_points):
            p = _require_mapping(p, f"points[{i}]")
            parsed.append(Vec3(*(_number(p.get(axis), f"points[{i}].{axis}") for axis in "xyz")))
        points = tuple(parsed)

    return SceneObject(
        kind=ObjectKind.parse(kind_name),
        position=Vec3(
            _number(position.get("x"), "position.x"),
            _number(position.get("y"), "position.y"),
            _number(position.get("z"), "position.z"),
        ),
        size=Size3(
            _number(size.get("width"), "size.width"),
            _number(size.get("height"), "size.height"),
            _number(size.get("depth"), "size.depth"),
        ),
        points=points,
    )


def to_flat_payload(obj: SceneObject) -> dict[str, Any]:
    """Canonical object -> flat producer dict (inverse of from_flat_payload)."""
    data: dict[str, Any] = {
        "type": str(obj.kind),
        "position": {"x": obj.position.x, "y": obj.position.y, "z": obj.position.z},
        "size": {"width": obj.size.width, "height": obj.size.height, "depth": obj.size.depth},
    }
    if obj.points is not None:
        data["points"] = [{"x": p.x, "y": p.y, "z": p.z} for p in obj.points]
    return data


def from_rich_payload(item: Mapping[str, Any]) -> SceneObject:
    kind = kind_from_spanish(item.get("type"))
    position = _centered_triplet(item.get("position"), "position")
    dims = item.get("dimensions") or {}
    dims = _require_mapping(dims, "dimensions")

    material = _plain(item.get("material", "")) if item.get("material") else ""
    if material == "roca" and kind in (ObjectKind.METAL, ObjectKind.ANOMALY):
        kind = ObjectKind.ROCK

    points: Optional[tuple[Vec3, ...]] = None
    if dims.get("points") is not None:
        raw_points = dims["points"]
        if not isinstance(raw_points, (list, tuple)):
            raise AdapterError(f"'dimensions.points' must be a list, got {raw_points!r}")
        points = tuple(_centered_triplet(p, f"dimensions.points[{i}]") for i, p in enumerate(raw_points))

    if dims.get("size") is not None:
        raw_size = dims["size"]
        if not isinstance(raw_size, (list, tuple)) or len(raw_size) != 3:
            raise AdapterError(f"'dimensions.size' must be [w, h, d], got {raw_size!r}")
        size = Size3(*(_number(v, f"dimensions.size[{i}]") for i, v in enumerate(raw_size)))
    elif dims.get("radius") is not None:
        diameter = 2 * _number(dims["radius"], "dimensions.radius")
        length = _number(dims["height"], "dimensions.height") if dims.get("height") is not None else diameter
        size = Size3(length, diameter, diameter)
    elif points is not None:
        size = Size3(0.0, 0.0, 0.0)
    else:
        raise AdapterError("'dimensions' needs one of size, radius or points")

    return SceneObject(kind=kind, position=position, size=size, points=points)


def from_volume_payload(item: Mapping[str, Any]) -> SceneObject:
    kind = kind_from_spanish(item.get("tipo"))
    shape = _plain(item.get("forma", ""))
    position = _centered_triplet(item.get("posicion"), "posicion")
    dims = _require_mapping(item.get("dimensiones") or {}, "dimensiones")

    if shape == "cilindro":
        diameter = 2 * _number(dims.get("radio"), "dimensiones.radio")
        size = Size3(_number(dims.get("altura"), "dimensiones.altura"), diameter, diameter)
    elif shape == "esfera":
        diameter = 2 * _number(dims.get("radio"), "dimensiones.radio")
        size = Size3(diameter, diameter, diameter)
    elif shape == "cubo":
        size = Size3(
            _number(dims.get("ancho"), "dimensiones.ancho"),
            _number(dims.get("alto"), "dimensiones.alto"),
            _number(dims.get("profundidad"), "dimensiones.profundidad"),
        )
    else:
        raise AdapterError(f"Unknown shape {item.get('forma')!r}")

    return SceneObject(kind=kind, position=position, size=size)


# ------------------------------------------------------------------------------
# Dispatch
# ------------------------------------------------------------------------------

def parse_object(item: Any) -> SceneObject:
    """Adapt one producer item. Raises AdapterError if it is malformed."""
    item = _require_mapping(item, "object")
    if "tipo" in item or "posicion" in item:
        return from_volume_payload(item)
    if "dimensions" in item or isinstance(item.get("position"), (list, tuple)):
        return from_rich_payload(item)
    return from_flat_payload(item)


def parse_objects(items: Iterable[Any]) -> list[SceneObject]:
    """Adapt a list of producer items, skipping malformed ones."""
    objects: list[SceneObject] = []
    for index, item in enumerate(items):
        try:
            objects.append(parse_object(item))
        except AdapterError as e:
            logger.warning(f"Skipping malformed object #{index}: {e}")
    return objects


def objects_from_analysis(payload: Any) -> list[SceneObject]:
    """
    Extract scene objects from a full interpretation answer.

    Accepts a bare list, {"volumen_3d": [...]} or
    {"volumen_3d": {"objetos": [...]}}.
    """
    if isinstance(payload, list):
        return parse_objects(payload)
    if not isinstance(payload, Mapping):
        logger.warning(f"Unexpected analysis payload type: {type(payload).__name__}")
        return []

    volume = payload.get("volumen_3d", payload.get("objects", []))
    if isinstance(volume, Mapping):
        volume = volume.get("objetos", [])
    if not isinstance(volume, list):
        logger.warning("Analysis payload has no object list.")
        return []
    return parse_objects(volume)


def description_from_analysis(payload: Any) -> str:
    if not isinstance(payload, Mapping):
        return ""
    if payload.get("description"):
        return str(payload["description"])

    detected = payload.get("objetos_detectados") or []
    lines = []
    for entry in detected:
        if not isinstance(entry, Mapping):
            continue
        line = f"{entry.get('tipo', '?')}: {entry.get('descripcion_simple', '')}".strip()
        if entry.get("profundidad_estimada_cm") is not None:
            line += f" (~{entry['profundidad_estimada_cm']} cm)"
        lines.append(line)
    return "\n".join(lines)
