"""
Analysis History (JSON)
Saves and loads past interpretations to a local JSON file.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from importlib.metadata import version, PackageNotFoundError
import json
import logging
import os
import tempfile
from typing import Any, Optional
import uuid

from geoview import config
from geoview.model.adapters import parse_objects, to_flat_payload
from geoview.model.scene import SceneObject

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("geoview")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


class HistoryError(Exception):
    """The history file could not be written."""


@dataclass
class AnalysisRecord:
    file_name: str
    description: str
    objects: list[SceneObject] = field(default_factory=list)
    image_path: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "file_name": self.file_name,
            "image_path": self.image_path,
            "description": self.description,
            "volumen_3d": [to_flat_payload(obj) for obj in self.objects],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisRecord:
        created_at = datetime.fromisoformat(data["created_at"])
        if created_at.tzinfo is None:
            # entries written without an offset are UTC
            created_at = created_at.replace(tzinfo=timezone.utc)
        return cls(
            id=str(data["id"]),
            created_at=created_at,
            file_name=str(data.get("file_name", "")),
            image_path=data.get("image_path"),
            description=str(data.get("description", "")),
            objects=parse_objects(data.get("volumen_3d", [])),
        )


class HistoryManager:
    """Stores AnalysisRecords in one JSON file, newest first."""

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or config.HISTORY_PATH

    def load(self) -> list[AnalysisRecord]:
        if not os.path.exists(self.path):
            logger.debug(f"No history file at {self.path}.")
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read history '{self.path}': {e}")
            return []

        records: list[AnalysisRecord] = []
        for entry in data.get("analyses", []) if isinstance(data, dict) else []:
            try:
                records.append(AnalysisRecord.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable history entry: {e}")

        records.sort(key=lambda r: r.created_at, reverse=True)
        logger.debug(f"Loaded {len(records)} analyses from history.")
        return records

    def add(self, record: AnalysisRecord) -> None:
        records = self.load()
        records.insert(0, record)
        self._save(records)
        logger.info(f"Stored analysis of '{record.file_name}' ({len(record.objects)} objects).")

    def get(self, record_id: str) -> Optional[AnalysisRecord]:
        return next((r for r in self.load() if r.id == record_id), None)

    def delete(self, record_id: str) -> bool:
        records = self.load()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            return False
        self._save(remaining)
        logger.info(f"Deleted analysis {record_id}.")
        return True

    def clear(self) -> None:
        self._save([])

    def _save(self, records: list[AnalysisRecord]) -> None:
        """Write atomically: temp file in the same directory, then replace."""
        directory = os.path.dirname(os.path.abspath(self.path))
        payload = {
            "version": APP_VERSION,
            "analyses": [r.to_dict() for r in records],
        }
        temp_path: Optional[str] = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix=".history-", suffix=".json", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if temp_path is not None and os.path.exists(temp_path):
                os.remove(temp_path)
            logger.exception(f"Failed to save history: {e}")
            raise HistoryError(f"Could not write history file '{self.path}': {e}") from e
