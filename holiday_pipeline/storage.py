"""Key/bytes storage backends.

Keys are '/'-separated relative paths such as ``holidays/us-2024.json``.
``FileStorage`` maps them under a root directory; ``MemoryStorage`` keeps them
in a dict for tests and dry runs.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from .error_handler import FileSystemError, ValidationError


class Storage(ABC):
    """Minimal blob storage used by caches, the collector and the migrator."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, or None when the key is absent."""

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """Store bytes under key, replacing any previous value."""

    @abstractmethod
    def append(self, key: str, data: bytes) -> None:
        """Append bytes to key, creating it when absent."""

    @abstractmethod
    def list(self, prefix: str = "") -> List[str]:
        """Return the sorted keys starting with prefix."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key; return True if something was removed."""

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def describe(self, key: str) -> str:
        """Human-readable location of key, for log messages."""
        return key


class FileStorage(Storage):
    """Storage rooted at a directory on the local file system."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()
        self.logger = logging.getLogger(__name__)

    def _path(self, key: str) -> Path:
        if not key or '\x00' in key:
            raise ValidationError(f"Invalid storage key: {key!r}", field='key', value=key)
        path = (self.root / key).resolve()
        try:
            path.relative_to(self.root)
        except ValueError:
            raise ValidationError(f"Storage key escapes root directory: {key}", field='key', value=key)
        return path

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise FileSystemError(f"Failed to read {path}: {e}", file_path=str(path), cause=e)

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_name(path.name + '.tmp')
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
        except OSError as e:
            raise FileSystemError(f"Failed to write {path}: {e}", file_path=str(path), cause=e)

    def append(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'ab') as f:
                f.write(data)
        except OSError as e:
            raise FileSystemError(f"Failed to append to {path}: {e}", file_path=str(path), cause=e)

    def list(self, prefix: str = "") -> List[str]:
        if not self.root.exists():
            return []
        keys = []
        for path in self.root.rglob('*'):
            if path.is_file() and not path.name.endswith('.tmp'):
                key = path.relative_to(self.root).as_posix()
                if key.startswith(prefix):
                    keys.append(key)
        return sorted(keys)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise FileSystemError(f"Failed to delete {path}: {e}", file_path=str(path), cause=e)

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def describe(self, key: str) -> str:
        return str(self._path(key))


class MemoryStorage(Storage):
    """In-process storage."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def put(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)

    def append(self, key: str, data: bytes) -> None:
        self._data[key] = self._data.get(key, b"") + bytes(data)

    def list(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None
