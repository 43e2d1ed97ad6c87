"""Bootstrap cache stores for the enabled flag read at first paint."""

from __future__ import annotations

import json
from pathlib import Path

from .logger import get_logger

logger = get_logger()


class MemoryCache:
    """Dictionary-backed cache."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class JsonFileCache:
    """Cache persisted as a flat JSON object, rewritten on every write.

    A missing or unreadable file reads as empty. Write failures are logged
    and otherwise ignored, so a read-only location never breaks theming.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring cache file {self.path}: not a JSON object")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        try:
            self.path.write_text(json.dumps(items, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write cache file {self.path}: {e}")
