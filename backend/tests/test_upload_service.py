"""
VidTube Backend — Upload Spooling Tests
========================================

What we test:
    ✅ Only whitelisted extensions are accepted, per media kind
    ✅ Empty and oversized files are rejected and leave nothing behind
    ✅ cleanup_file() is best-effort
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from vidtube.config import settings
from vidtube.exceptions import ValidationError
from vidtube.services.upload_service import MediaKind, UploadService


class TestValidateExtension:

    def setup_method(self):
        self.service = UploadService()

    @pytest.mark.parametrize("filename", ["clip.mp4", "CLIP.MOV", "a.b.webm"])
    def test_video_extensions(self, filename):
        ext = self.service.validate_extension(filename, MediaKind.VIDEO, "videoFile")
        assert ext == "." + filename.rsplit(".", 1)[1].lower()

    @pytest.mark.parametrize("filename", ["cover.mp4", "notes.txt", "noextension", None])
    def test_rejected_for_images(self, filename):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_extension(filename, MediaKind.IMAGE, "thumbnail")
        assert exc_info.value.field == "thumbnail"
        assert "not supported" in exc_info.value.message


class TestSpool:

    @pytest.mark.asyncio
    async def test_spools_to_uuid_named_file(self, tmp_path, upload_file):
        service = UploadService(storage_root=str(tmp_path))

        path = await service.spool(upload_file("../../evil name.png", b"PNGDATA"), MediaKind.IMAGE, "thumbnail")

        spooled = Path(path)
        assert spooled.parent == service.tmp_root
        assert spooled.read_bytes() == b"PNGDATA"
        assert spooled.suffix == ".png"
        assert "evil" not in spooled.name

    @pytest.mark.asyncio
    async def test_empty_file_rejected(self, tmp_path, upload_file):
        service = UploadService(storage_root=str(tmp_path))

        with pytest.raises(ValidationError) as exc_info:
            await service.spool(upload_file("empty.mp4", b""), MediaKind.VIDEO, "videoFile")

        assert exc_info.value.message == "Uploaded file is empty"
        assert list(service.tmp_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_oversized_file_rejected(self, tmp_path, upload_file):
        service = UploadService(storage_root=str(tmp_path))

        with patch.object(settings, "max_image_size", 1024 * 1024):
            with pytest.raises(ValidationError) as exc_info:
                await service.spool(
                    upload_file("big.png", b"x" * (1024 * 1024 + 1)), MediaKind.IMAGE, "thumbnail"
                )

        assert exc_info.value.message == "File size exceeds maximum of 1MB."
        assert list(service.tmp_root.iterdir()) == []


class TestCleanup:

    @pytest.mark.asyncio
    async def test_removes_file(self, tmp_path):
        service = UploadService(storage_root=str(tmp_path))
        target = service.tmp_root / "leftover.mp4"
        target.write_bytes(b"data")

        await service.cleanup_file(str(target))

        assert not target.exists()

    @pytest.mark.asyncio
    async def test_missing_or_none_is_ignored(self, tmp_path):
        service = UploadService(storage_root=str(tmp_path))

        await service.cleanup_file(None)
        await service.cleanup_file(str(tmp_path / "never-existed.mp4"))
