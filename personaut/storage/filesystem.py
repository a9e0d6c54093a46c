from __future__ import annotations

import base64
import binascii
import contextlib
import json
import logging
import os
import secrets
import shutil
from pathlib import Path
from typing import Any, Optional

from personaut.domain.errors import StorageError, ValidationError
from personaut.storage.interface import BlobStorage

logger = logging.getLogger(__name__)


class FilesystemStorage(BlobStorage):
    """
    Implements blob storage using the local filesystem.
    """

    def __init__(self, base_dir: str | Path, atomic_writes: bool = True, pretty_print: bool = True):
        """
        Initialize filesystem storage.

        Args:
            base_dir: Root directory for every collection.
            atomic_writes: Write JSON to a temp file and rename it into place.
            pretty_print: Indent JSON documents.
        """
        self.base_dir = Path(base_dir).resolve()
        self.atomic_writes = atomic_writes
        self.pretty_print = pretty_print
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage root: {e}", str(self.base_dir)) from e

    def full_path(self, path: str) -> Path:
        """Resolve a relative path, refusing anything outside the root."""
        full = (self.base_dir / path).resolve()
        if full != self.base_dir and self.base_dir not in full.parents:
            raise StorageError(f"Path escapes storage root: {path}", path)
        return full

    def exists(self, path: str) -> bool:
        return self.full_path(path).exists()

    def ensure_directory(self, path: str) -> None:
        full = self.full_path(path)
        try:
            full.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create directory {path}: {e}", path) from e

    def read_json(self, path: str) -> Optional[Any]:
        content = self.read_text(path)
        if content is None:
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in {path}: {e}")
            return None

    def write_json(self, path: str, data: Any) -> None:
        indent = 2 if self.pretty_print else None
        content = json.dumps(data, indent=indent, ensure_ascii=False).encode("utf-8")
        full = self.full_path(path)
        self._ensure_parent(full, path)
        if self.atomic_writes:
            self._write_atomic(full, content, path)
        else:
            self._write_bytes(full, content, path)

    def read_text(self, path: str) -> Optional[str]:
        data = self._read_bytes(path)
        if data is None:
            return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning(f"File {path} is not valid UTF-8: {e}")
            return None

    def write_text(self, path: str, content: str) -> None:
        full = self.full_path(path)
        self._ensure_parent(full, path)
        self._write_bytes(full, content.encode("utf-8"), path)

    def read_base64(self, path: str) -> Optional[str]:
        data = self._read_bytes(path)
        if data is None:
            return None
        return base64.b64encode(data).decode("ascii")

    def write_base64(self, path: str, data: str) -> None:
        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Invalid base64 payload for {Path(path).name}") from e
        full = self.full_path(path)
        self._ensure_parent(full, path)
        self._write_bytes(full, raw, path)

    def delete(self, path: str) -> bool:
        full = self.full_path(path)
        try:
            full.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Cannot delete {path}: {e}", path) from e

    def delete_directory(self, path: str) -> bool:
        full = self.full_path(path)
        if not full.is_dir():
            return False
        try:
            shutil.rmtree(full)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Cannot delete directory {path}: {e}", path) from e
        return True

    def size(self, path: str) -> Optional[int]:
        try:
            return self.full_path(path).stat().st_size
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot stat {path}: {e}", path) from e

    # --------------- Internal helpers ---------------
    def _read_bytes(self, path: str) -> Optional[bytes]:
        full = self.full_path(path)
        try:
            return full.read_bytes()
        except (FileNotFoundError, NotADirectoryError):
            return None
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}", path) from e

    def _ensure_parent(self, full: Path, path: str) -> None:
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create directory for {path}: {e}", path) from e

    def _write_bytes(self, full: Path, data: bytes, path: str) -> None:
        try:
            full.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}", path) from e

    def _write_atomic(self, full: Path, data: bytes, path: str) -> None:
        temp = full.with_name(f"{full.name}.{secrets.token_hex(6)}.tmp")
        try:
            temp.write_bytes(data)
            os.replace(temp, full)
        except OSError as e:
            with contextlib.suppress(OSError):
                temp.unlink()
            raise StorageError(f"Cannot write {path}: {e}", path) from e
