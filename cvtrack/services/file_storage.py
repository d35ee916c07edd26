import os
import logging
import secrets
from pathlib import Path
from typing import Optional

from cvtrack.core.config import settings
from cvtrack.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class FileStorage:
    """
    Local-disk object store. Keys are paths relative to ``root``:
    ``team_{team_id}/{stem}_{16 hex chars}{ext}``.
    """

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or settings.storage.upload_dir).resolve()

    def _path(self, key: str) -> Path:
        path = (self.root / key.lstrip("/")).resolve()
        if self.root != path and self.root not in path.parents:
            raise StorageError(f"Refusing to access path outside storage root: {key}")
        return path

    def save(self, data: bytes, filename: str, team_id: int) -> str:
        """Write bytes under a collision-resistant key and return the key."""
        base = os.path.basename(filename or "") or "file"
        stem, ext = os.path.splitext(base)
        key = f"team_{team_id}/{stem}_{secrets.token_hex(8)}{ext}"
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Could not store {filename}: {e}")
        logger.info(f"Stored {len(data)} bytes as {key}")
        return key

    def read(self, key: str) -> bytes:
        try:
            return self._path(key).read_bytes()
        except OSError as e:
            raise StorageError(f"Could not read {key}: {e}")

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def size(self, key: str) -> int:
        try:
            return self._path(key).stat().st_size
        except OSError as e:
            raise StorageError(f"Could not stat {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            logger.warning(f"Delete requested for missing file {key}")
        except OSError as e:
            raise StorageError(f"Could not delete {key}: {e}")


def get_storage() -> FileStorage:
    return FileStorage(settings.storage.upload_dir)
