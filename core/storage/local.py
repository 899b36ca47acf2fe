"""Local file storage for uploaded resumes and assessment files."""

from pathlib import Path
from typing import Optional
import logging

from core.config import settings

logger = logging.getLogger(__name__)


class LocalStorage:
    """
    Filesystem-backed storage addressed by relative paths like "resumes/42/cv.pdf".

    Paths are resolved under base_path; anything escaping it is rejected.
    """

    def __init__(self, base_path: Optional[str] = None):
        """
        Initialize local storage.

        Args:
            base_path: Base directory for file storage (defaults to STORAGE_ROOT)
        """
        self.base_path = Path(base_path or settings.storage_root).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, file_path: str) -> Path:
        target = (self.base_path / file_path).resolve()
        if target != self.base_path and self.base_path not in target.parents:
            raise ValueError(f"Path escapes storage root: {file_path}")
        return target

    def save(self, file_data: bytes, file_path: str) -> Path:
        """
        Save bytes at file_path, creating parent folders.

        Args:
            file_data: File contents
            file_path: Relative storage path

        Returns:
            Absolute path of the saved file
        """
        target = self._resolve(file_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(file_data)
        logger.info(f"Saved file to {file_path} ({len(file_data)} bytes)")
        return target

    def read(self, file_path: str) -> bytes:
        """
        Read file contents.

        Raises:
            FileNotFoundError: If nothing is stored at file_path
        """
        target = self._resolve(file_path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")
        return target.read_bytes()

    def exists(self, file_path: str) -> bool:
        try:
            return self._resolve(file_path).is_file()
        except ValueError:
            return False

    def delete(self, file_path: str) -> bool:
        target = self._resolve(file_path)
        if not target.is_file():
            return False
        target.unlink()
        logger.info(f"Deleted file: {file_path}")
        return True
