import os
import shutil
import uuid
import logging
from pathlib import Path
from typing import BinaryIO, Optional

from ..core.config import settings

logger = logging.getLogger(__name__)


class UploadTooLargeError(Exception):
    def __init__(self, size_bytes: int, limit_mb: int):
        self.size_bytes = size_bytes
        self.limit_mb = limit_mb
        super().__init__(
            f"File size exceeds {limit_mb}MB limit. Your file is {size_bytes / (1024 * 1024):.1f}MB."
        )


class AudioService:
    """Stores uploaded recordings below the uploads directory."""

    def __init__(self, uploads_dir: Optional[Path] = None, max_bytes: Optional[int] = None):
        self.uploads_dir = Path(uploads_dir or settings.uploads_dir)
        self.max_bytes = max_bytes or settings.max_file_size_bytes

    def save_upload(self, source: BinaryIO, original_filename: Optional[str]) -> str:
        """
        Copies the upload to `<uploads>/<uuid><ext>` and returns the absolute path.
        Files over the size limit are removed and rejected.
        """
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        extension = os.path.splitext(original_filename or "")[1].lower()
        upload_path = (self.uploads_dir / f"{uuid.uuid4()}{extension}").resolve()

        with open(upload_path, "wb") as buffer:
            shutil.copyfileobj(source, buffer)

        actual_size = os.path.getsize(upload_path)
        if actual_size > self.max_bytes:
            os.remove(upload_path)
            raise UploadTooLargeError(actual_size, self.max_bytes // (1024 * 1024))

        logger.info(f"Saved upload {original_filename} -> {upload_path.name} ({actual_size} bytes)")
        return str(upload_path)

    @staticmethod
    def probe_duration(audio_path: str) -> Optional[float]:
        """Duration in seconds, or None when the file cannot be decoded (e.g. no ffmpeg)."""
        try:
            from pydub import AudioSegment
            audio = AudioSegment.from_file(audio_path)
            return round(len(audio) / 1000.0, 3)
        except Exception as e:
            logger.warning(f"Audio duration detection failed for {audio_path}: {e}")
            return None
