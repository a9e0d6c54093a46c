from __future__ import annotations

import contextlib
import json
import logging
import os
import secrets
from pathlib import Path
from typing import Any, Dict, Optional

from personaut.domain.errors import StorageError

logger = logging.getLogger(__name__)


class InMemoryKeyValueSource:
    """Dict-backed legacy source, used for tests and embedding hosts."""

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Any] = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def clear(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileKeyValueSource:
    """Legacy source backed by an exported key-value JSON object on disk."""

    def __init__(self, state_file: Path) -> None:
        self.state_file = Path(state_file)
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        try:
            with self.state_file.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Legacy state file {self.state_file} is not valid JSON: {e}")
            return {}
        except OSError as e:
            raise StorageError(f"Cannot read legacy state file: {e}", str(self.state_file)) from e
        if not isinstance(raw, dict):
            logger.warning(f"Legacy state file {self.state_file} does not hold an object")
            return {}
        return raw

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def clear(self, key: str) -> None:
        if key not in self._data:
            return
        remaining = {k: v for k, v in self._data.items() if k != key}
        self._write(remaining)
        self._data = remaining

    def _write(self, data: Dict[str, Any]) -> None:
        temp = self.state_file.with_name(f"{self.state_file.name}.{secrets.token_hex(6)}.tmp")
        try:
            temp.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(temp, self.state_file)
        except OSError as e:
            with contextlib.suppress(OSError):
                temp.unlink()
            raise StorageError(f"Cannot write legacy state file: {e}", str(self.state_file)) from e
