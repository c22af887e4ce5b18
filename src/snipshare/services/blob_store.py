"""Blob storage for uploaded file envelopes."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path

from snipshare.core.settings import settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class BlobStore(ABC):
    """Opaque byte storage keyed by string."""

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """Store `data` under `key`, replacing any previous value."""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the bytes for `key`, or None if nothing is stored."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete `key`; return True if something was removed."""

    def exists(self, key: str) -> bool:
        return self.get(key) is not None


def build_blob_key(snippet_id: str, file_name: str) -> str:
    """Return the storage key for a file upload."""
    name = _UNSAFE_CHARS.sub("_", Path(file_name).name)
    if name in {"", ".", ".."}:
        name = "upload"
    return f"files/{snippet_id}/{name}"


class FilesystemBlobStore(BlobStore):
    """Blob store backed by a local directory tree."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _path(self, key: str) -> Path:
        """Resolve `key` to a file under the root.

        Raises:
            ValueError: If the resolved path is the root itself or escapes it.
        """
        path = (self.root / key).resolve()
        if path == self.root or not path.is_relative_to(self.root):
            raise ValueError(f"Blob key escapes storage root: {key!r}")
        return path

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(path)

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        parent = path.parent
        if parent != self.root and not any(parent.iterdir()):
            parent.rmdir()
        return True


_BLOB_STORE: BlobStore | None = None


def get_blob_store() -> BlobStore:
    """Return the process-wide blob store configured by `BLOB_STORAGE_PATH`."""
    global _BLOB_STORE
    if _BLOB_STORE is None:
        _BLOB_STORE = FilesystemBlobStore(settings.blob_storage_path)
        logger.info("Blob storage rooted at %s", _BLOB_STORE.root)
    return _BLOB_STORE


def purge_blobs(store: BlobStore, keys: list[str]) -> list[str]:
    """Delete every key in `keys`, returning the ones that were processed.

    A failure on one key is logged and does not stop the others.
    """
    purged: list[str] = []
    for key in keys:
        try:
            store.delete(key)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to purge blob %s: %s", key, exc)
            continue
        purged.append(key)
    return purged
