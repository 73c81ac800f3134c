"""
VidTube Backend — Upload Spooling Service
==========================================

What:  Validates incoming multipart files and spools them to a temp directory.
How:   Checks the extension, streams the body to storage_root/tmp under a UUID
       name while counting bytes, and rejects empty or oversized files.
Who:   VideoService, before handing the temp path to the media host.

The temp file belongs to the caller, which removes it with cleanup_file()
whatever the outcome of the upload.

Security Model:
    1. Extension check:  rejects obviously wrong files before reading
    2. Size check:       enforced while streaming, so oversized bodies are
                         never fully written
    3. UUID filename:    no user input reaches the filesystem path
"""

import enum
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Optional

import aiofiles

from vidtube.config import settings
from vidtube.exceptions import ValidationError
from vidtube.services.media_service import IMAGE_EXTENSIONS, VIDEO_EXTENSIONS

logger = logging.getLogger(__name__)


class MediaKind(str, enum.Enum):
    VIDEO = "video"
    IMAGE = "image"

    @property
    def extensions(self) -> set:
        return VIDEO_EXTENSIONS if self is MediaKind.VIDEO else IMAGE_EXTENSIONS

    @property
    def max_size(self) -> int:
        return settings.max_video_size if self is MediaKind.VIDEO else settings.max_image_size


class UploadService:
    """Temp-file lifecycle for multipart uploads."""

    CHUNK_SIZE = 1024 * 1024

    def __init__(self, storage_root: Optional[str] = None):
        self.tmp_root = (Path(storage_root or settings.storage_root) / "tmp").resolve()
        self.tmp_root.mkdir(parents=True, exist_ok=True)
        logger.info("UploadService initialized with tmp_root=%s", self.tmp_root)

    def validate_extension(self, filename: Optional[str], kind: MediaKind, field: str) -> str:
        """
        Returns the normalized extension (lowercase with dot).

        Raises:
            ValidationError if the extension is not allowed for this kind.
        """
        ext = Path(filename or "").suffix.lower()
        if ext not in kind.extensions:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'unknown'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(kind.extensions))}"
                ),
                field=field,
                context={"extension": ext, "kind": kind.value},
            )
        return ext

    def validate_size(self, size: int, kind: MediaKind, field: str) -> None:
        if size == 0:
            raise ValidationError(message="Uploaded file is empty", field=field)
        if size > kind.max_size:
            max_mb = kind.max_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field=field,
                context={"max_size": kind.max_size, "kind": kind.value},
            )

    async def spool(self, upload: Any, kind: MediaKind, field: str) -> str:
        """
        Write an UploadFile to a temp file and return its absolute path.

        Args:
            upload: starlette UploadFile (anything with .filename and async .read)
            kind:   which extension list and size limit apply
            field:  wire name of the form field, reported in validation errors

        Raises:
            ValidationError: bad extension, empty or oversized file
        """
        ext = self.validate_extension(upload.filename, kind, field)
        path = self.tmp_root / f"{uuid.uuid4()}{ext}"
        size = 0

        try:
            async with aiofiles.open(path, "wb") as out:
                while True:
                    chunk = await upload.read(self.CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > kind.max_size:
                        break
                    await out.write(chunk)
            self.validate_size(size, kind, field)
        except Exception:
            await self.cleanup_file(str(path))
            raise

        logger.debug("Spooled %s upload to %s (%d bytes)", kind.value, path.name, size)
        return str(path)

    async def cleanup_file(self, file_path: Optional[str]) -> None:
        """Remove a temp file. Best-effort: failures are logged, never raised."""
        if not file_path:
            return
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.debug("Cleaned up temp file: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up temp file %s: %s", file_path, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
upload_service = UploadService()
