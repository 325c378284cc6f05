from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union

from telemetry.logging_utils import get_logger

logger = get_logger(__name__)


class TokenStore:
    """Small key/value store for the auth token and cached user.

    Strings are kept as-is; anything else is JSON-encoded. ``get`` decodes JSON
    when it can and otherwise hands back the raw string. With no ``path`` the
    values only live for the life of the process.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._items: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("token_store_unreadable", extra={"path": str(self.path), "error": str(exc)})
            return {}
        if not isinstance(data, dict):
            logger.warning("token_store_unreadable", extra={"path": str(self.path), "error": "not an object"})
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._items, ensure_ascii=True), encoding="utf-8")
        os.replace(tmp, self.path)

    def get(self, key: str) -> Any:
        raw = self._items.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw

    def set(self, key: str, value: Any) -> None:
        serialized = value if isinstance(value, str) else json.dumps(value)
        with self._lock:
            self._items[key] = serialized
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._items.pop(key, None) is not None:
                self._flush()

    def clear(self) -> None:
        with self._lock:
            self._items = {}
            self._flush()
