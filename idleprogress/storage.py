from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from idleprogress._types import finite_or

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Typed get/set over named values. Missing or mistyped keys read as None."""

    @abstractmethod
    def _get(self, key: str) -> Any: ...

    @abstractmethod
    def _set(self, key: str, value: Any) -> None: ...

    @abstractmethod
    def remove(self, key: str) -> None: ...

    @abstractmethod
    def keys(self) -> list[str]: ...

    def flush(self) -> None:
        """Persist buffered writes. In-memory stores have nothing to do."""

    def __contains__(self, key: str) -> bool:
        return self._get(key) is not None

    # ── Typed accessors ──────────────────────────────────────────────

    def get_float(self, key: str) -> float | None:
        raw = self._get(key)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            return None
        return float(raw)

    def set_float(self, key: str, value: float) -> None:
        self._set(key, finite_or(value, 0.0))

    def get_int(self, key: str) -> int | None:
        raw = self._get(key)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            return None
        if isinstance(raw, float) and not raw.is_integer():
            return None
        return int(raw)

    def set_int(self, key: str, value: int) -> None:
        self._set(key, int(value))

    def get_str(self, key: str) -> str | None:
        raw = self._get(key)
        return raw if isinstance(raw, str) else None

    def set_str(self, key: str, value: str) -> None:
        self._set(key, str(value))

    def get_bool(self, key: str) -> bool | None:
        raw = self._get(key)
        return raw if isinstance(raw, bool) else None

    def set_bool(self, key: str, value: bool) -> None:
        self._set(key, bool(value))

    def get_json(self, key: str) -> str | None:
        """JSON blobs are stored as encoded strings, as hosts write them."""
        return self.get_str(key)

    def set_json(self, key: str, value: Any) -> None:
        self._set(key, json.dumps(value))


class MemoryStore(KeyValueStore):
    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = dict(data or {})

    def _get(self, key: str) -> Any:
        return self.data.get(key)

    def _set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self.data)


class JsonFileStore(MemoryStore):
    """A MemoryStore loaded from and flushed to one JSON file.

    Writes go to a sibling ``.tmp`` file first and are moved into place, so
    a crash mid-save leaves the previous file intact.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        super().__init__(self._read())

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read save file %s, starting empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Save file %s does not hold an object, starting empty", self.path)
            return {}
        return data

    def flush(self) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=1, sort_keys=True)
            os.replace(tmp, self.path)
        except OSError:
            logger.error("Failed to write save file %s", self.path)
            if tmp.exists():
                tmp.unlink()
            raise
