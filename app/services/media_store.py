# app/services/media_store.py
"""
Media store — writes uploaded video/image streams into the data directory.

Files are named  {UTC timestamp}_{random hex}_{upload name}  so two sensors
uploading "motion.avi" never overwrite each other. Bytes land in a ".part"
file first and are renamed into place only after the full stream is copied.
"""

import os
import re
import shutil
import uuid
from datetime import datetime
from typing import BinaryIO

from app.errors import StorageError
from app.utils.logger import get_logger

logger = get_logger(__name__)

DATA_URL_PREFIX = "/data"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_COPY_CHUNK = 1024 * 1024


class MediaStore:
    def __init__(self, data_dir: str):
        self.data_dir = os.path.abspath(data_dir)

    def ensure_dir(self):
        try:
            os.makedirs(self.data_dir, exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create data directory {self.data_dir}: {e}") from e

    def storage_key(self, upload_name: str) -> str:
        """Collision-resistant file name derived from the caller's upload name."""
        if not upload_name or upload_name in (".", ".."):
            raise StorageError(f"invalid destination name {upload_name!r}")
        if "/" in upload_name or "\\" in upload_name or "\x00" in upload_name:
            raise StorageError(f"path traversal rejected: {upload_name!r}")

        safe = _UNSAFE_CHARS.sub("_", upload_name).lstrip(".") or "upload"
        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        return f"{timestamp}_{uuid.uuid4().hex[:12]}_{safe}"

    def resolve(self, name: str) -> str:
        """Absolute path of a stored file. Refuses anything outside the data dir."""
        path = os.path.abspath(os.path.join(self.data_dir, name))
        if os.path.dirname(path) != self.data_dir:
            raise StorageError(f"path traversal rejected: {name!r}")
        return path

    def save(self, stream: BinaryIO, destination_name: str) -> str:
        """
        Copy the whole stream into the data directory.
        Returns the stored file path; raises StorageError on any write failure.
        """
        path = self.resolve(self.storage_key(destination_name))
        part_path = path + ".part"
        self.ensure_dir()

        try:
            with open(part_path, "wb") as dest:
                shutil.copyfileobj(stream, dest, _COPY_CHUNK)
            os.replace(part_path, path)
        except OSError as e:
            self.remove(part_path)
            raise StorageError(f"cannot write {os.path.basename(path)}: {e}") from e

        logger.info(f"[MEDIA] Saved {os.path.basename(path)} ({os.path.getsize(path)} bytes)")
        return path

    def remove(self, path: str):
        """Best-effort delete. A missing file is not an error."""
        try:
            os.remove(path)
            logger.info(f"[MEDIA] Removed {os.path.basename(path)}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[MEDIA] Could not remove {path}: {e}")

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def url_for(self, path: str) -> str:
        return f"{DATA_URL_PREFIX}/{os.path.basename(path)}"
