"""Key-value collaborators: append-only logs and the preferred-engine setting."""
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError

from .models import LogRecord

logger = logging.getLogger(__name__)

LOG_CAPACITY = 200
MAP_ENGINE_KEY = "map_engine"


class LogStore(Protocol):
    def append_entry(self, record: LogRecord) -> None:
        ...

    def get_all(self) -> List[LogRecord]:
        ...


class SettingsStore(Protocol):
    def preferred_engine(self) -> str:
        ...


def _read_json(path: Path, default: Any) -> Any:
    try:
        raw_text = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        return default
    except UnicodeDecodeError:
        logger.warning("Ignoring undecodable JSON store %s", path)
        return default
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError:
        logger.warning("Ignoring unreadable JSON store %s", path)
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp_path, path)


def _parse_records(raw_data: object) -> List[LogRecord]:
    if not isinstance(raw_data, list):
        return []
    records: List[LogRecord] = []
    for item in raw_data:
        if not isinstance(item, dict):
            continue
        try:
            records.append(LogRecord.model_validate(item))
        except ValidationError:
            continue
    return records


class MemoryLogStore:
    """In-process log, used by tests and the dry-run CLI."""

    def __init__(self, capacity: int = LOG_CAPACITY) -> None:
        self.capacity = capacity
        self._records: List[LogRecord] = []
        self._lock = threading.Lock()

    def append_entry(self, record: LogRecord) -> None:
        with self._lock:
            self._records.append(record)
            del self._records[: max(0, len(self._records) - self.capacity)]

    def get_all(self) -> List[LogRecord]:
        with self._lock:
            return list(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


class JsonLogStore:
    """Append-only JSON list on disk keeping the most recent ``capacity`` records."""

    def __init__(self, path: Path, capacity: int = LOG_CAPACITY) -> None:
        self.path = Path(path)
        self.capacity = capacity
        self._lock = threading.Lock()

    def append_entry(self, record: LogRecord) -> None:
        with self._lock:
            current = _read_json(self.path, [])
            if not isinstance(current, list):
                current = []
            current.append(record.model_dump())
            trimmed = current[max(0, len(current) - self.capacity):]
            _write_json(self.path, trimmed)

    def get_all(self) -> List[LogRecord]:
        with self._lock:
            return _parse_records(_read_json(self.path, []))

    def clear(self) -> None:
        with self._lock:
            _write_json(self.path, [])


class MemorySettingsStore:
    def __init__(self, engine: str = "huawei") -> None:
        self._engine = engine

    def preferred_engine(self) -> str:
        return self._engine

    def set_preferred_engine(self, engine: str) -> None:
        self._engine = engine


class JsonSettingsStore:
    """Settings persisted as a flat JSON object."""

    def __init__(self, path: Path, default_engine: str = "huawei") -> None:
        self.path = Path(path)
        self.default_engine = default_engine
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Any]:
        raw_data = _read_json(self.path, {})
        return raw_data if isinstance(raw_data, dict) else {}

    def preferred_engine(self) -> str:
        with self._lock:
            value: Optional[object] = self._load().get(MAP_ENGINE_KEY)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return self.default_engine

    def set_preferred_engine(self, engine: str) -> None:
        with self._lock:
            payload = self._load()
            payload[MAP_ENGINE_KEY] = engine
            _write_json(self.path, payload)
