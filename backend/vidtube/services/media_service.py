"""
VidTube Backend — Media Host Implementations
=============================================

What:  Concrete MediaHost implementations and the configured singleton.
How:   MEDIA_BACKEND selects the host at import time:
         local      → LocalMediaHost (files under storage_root/media,
                      served by GET /media/{path})
         cloudinary → CloudinaryMediaHost (signed upload API over httpx)
Who:   VideoService (upload/delete), the health route, the media route.

Resilience (Cloudinary):
    Transport errors and 5xx/429 answers are retried with tenacity
    (exponential backoff + jitter, settings.retry_*). 4xx answers are final.
    Once retries are exhausted the failure surfaces as MediaUploadError.
    Files are read with aiofiles and sent in CHUNK_SIZE pieces, so large
    videos never sit in memory or block the event loop.
"""

import hashlib
import logging
import os
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import aiofiles
import aiofiles.os
import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from vidtube.config import settings
from vidtube.exceptions import MediaUploadError
from vidtube.services.media_base import MediaHost, UploadedMedia

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {".mp4", ".mov", ".webm", ".mkv", ".avi", ".m4v"}
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}


def resource_type_for(extension: str) -> str:
    return "video" if extension.lower() in VIDEO_EXTENSIONS else "image"


# ══════════════════════════════════════════════════════════════════════════
# Local Filesystem Host
# ══════════════════════════════════════════════════════════════════════════

class LocalMediaHost(MediaHost):
    """
    Stores assets on the local disk in date-organized directories.

    Directory Structure:
        storage/media/
        └── 2024/
            └── 01/
                └── 15/
                    ├── a1b2c3d4-....mp4
                    └── e5f6g7h8-....jpg

    The public_id of an asset is its path relative to the media root. Local
    uploads cannot probe the container, so duration is always 0.
    """

    CHUNK_SIZE = 1024 * 1024

    def __init__(self, storage_root: Optional[str] = None, public_base_url: Optional[str] = None):
        self.media_root = (Path(storage_root or settings.storage_root) / "media").resolve()
        self.media_root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")
        logger.info("LocalMediaHost initialized with media_root=%s", self.media_root)

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        now = datetime.now(timezone.utc)
        relative_path = f"{now.strftime('%Y/%m/%d')}/{uuid.uuid4()}{extension}"
        return self.media_root / relative_path, relative_path

    def resolve(self, relative_path: str) -> Optional[Path]:
        """
        Absolute path of a stored asset, or None when the path would escape
        the media root (../ traversal).
        """
        candidate = (self.media_root / relative_path).resolve()
        if self.media_root not in candidate.parents:
            return None
        return candidate

    async def upload(self, local_path: str) -> UploadedMedia:
        source = Path(local_path)
        extension = source.suffix.lower()
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(source, "rb") as src, aiofiles.open(absolute_path, "wb") as dst:
                while True:
                    chunk = await src.read(self.CHUNK_SIZE)
                    if not chunk:
                        break
                    await dst.write(chunk)
        except OSError as e:
            logger.error("Failed to store media at %s: %s", absolute_path, str(e))
            raise MediaUploadError(context={"path": str(absolute_path), "os_error": str(e)})

        logger.info("Media stored: %s", relative_path)
        return UploadedMedia(
            url=f"{self.public_base_url}/media/{relative_path}",
            public_id=relative_path,
            resource_type=resource_type_for(extension),
        )

    async def delete(self, public_id: str, resource_type: str) -> bool:
        path = self.resolve(public_id) if public_id else None
        if path is None:
            return False
        try:
            if path.exists():
                os.remove(path)
                logger.info("Deleted media: %s", public_id)
            return True
        except OSError as e:
            logger.warning("Failed to delete media %s: %s", public_id, str(e))
            return False

    async def health_check(self) -> bool:
        return self.media_root.is_dir() and os.access(self.media_root, os.W_OK)


# ══════════════════════════════════════════════════════════════════════════
# Cloudinary Host
# ══════════════════════════════════════════════════════════════════════════

def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status >= 500 or status == 429
    return False


class CloudinaryMediaHost(MediaHost):
    """
    Cloudinary upload API client.

    Requests are signed: the parameters (without file, api_key and
    resource_type) are sorted, joined as k=v pairs with '&', suffixed with
    the API secret and SHA-1 hashed.
    """

    API_BASE = "https://api.cloudinary.com/v1_1"
    CHUNK_SIZE = 20 * 1024 * 1024

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self._transport = transport
        logger.info("CloudinaryMediaHost initialized for cloud=%s", cloud_name)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def sign(self, params: Dict[str, Any]) -> str:
        payload = "&".join(
            f"{key}={value}"
            for key, value in sorted(params.items())
            if value is not None and value != ""
        )
        return hashlib.sha1(f"{payload}{self.api_secret}".encode("utf-8")).hexdigest()

    def _signed_form(self, params: Dict[str, Any]) -> Dict[str, str]:
        form = {key: str(value) for key, value in params.items()}
        form["api_key"] = self.api_key
        form["signature"] = self.sign(params)
        return form

    async def upload(self, local_path: str) -> UploadedMedia:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        try:
            payload = await self._upload_chunks(local_path)
        except httpx.HTTPStatusError as e:
            logger.error(
                "[%s] Cloudinary rejected upload of %s: HTTP %d",
                request_id,
                Path(local_path).name,
                e.response.status_code,
            )
            raise MediaUploadError(
                context={
                    "request_id": request_id,
                    "status": e.response.status_code,
                    "body": e.response.text[:500],
                },
            )
        except (httpx.HTTPError, OSError) as e:
            logger.error("[%s] Cloudinary upload failed: %s", request_id, str(e))
            raise MediaUploadError(
                context={"request_id": request_id, "error_type": type(e).__name__},
            )
        except ValueError as e:
            # 200 with a non-JSON body, e.g. a proxy error page
            logger.error("[%s] Cloudinary answer is not JSON: %s", request_id, str(e))
            raise MediaUploadError(
                context={"request_id": request_id, "error_type": type(e).__name__},
            )

        url = payload.get("secure_url") or payload.get("url")
        if not url:
            raise MediaUploadError(context={"request_id": request_id, "response": payload})

        logger.info(
            "[%s] Cloudinary upload completed in %.0fms: %s",
            request_id,
            (time.time() - start_time) * 1000,
            payload.get("public_id"),
        )
        return UploadedMedia(
            url=url,
            public_id=payload.get("public_id", ""),
            resource_type=payload.get("resource_type", resource_type_for(Path(local_path).suffix)),
            duration=float(payload.get("duration") or 0.0),
        )

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _post_upload(
        self,
        url: str,
        form: Dict[str, str],
        filename: str,
        chunk: bytes,
        headers: Dict[str, str],
    ) -> httpx.Response:
        async with self._client() as client:
            response = await client.post(
                url,
                data=form,
                files={"file": (filename, chunk)},
                headers=headers,
            )
        response.raise_for_status()
        return response

    async def _upload_chunks(self, local_path: str) -> Dict[str, Any]:
        """
        Send the file in CHUNK_SIZE pieces read with aiofiles.

        Files larger than one chunk use the chunked upload protocol: every
        piece carries a Content-Range and the same X-Unique-Upload-Id, and
        only the answer to the last piece describes the finished asset. Each
        piece is retried on its own.
        """
        url = f"{self.API_BASE}/{self.cloud_name}/auto/upload"
        filename = Path(local_path).name
        total = await aiofiles.os.path.getsize(local_path)
        form = self._signed_form({"timestamp": int(time.time())})
        upload_id = uuid.uuid4().hex if total > self.CHUNK_SIZE else None

        offset = 0
        response: Optional[httpx.Response] = None
        async with aiofiles.open(local_path, "rb") as src:
            while True:
                chunk = await src.read(self.CHUNK_SIZE)
                if not chunk and response is not None:
                    break
                headers: Dict[str, str] = {}
                if upload_id is not None:
                    headers["X-Unique-Upload-Id"] = upload_id
                    headers["Content-Range"] = f"bytes {offset}-{offset + len(chunk) - 1}/{total}"
                response = await self._post_upload(url, form, filename, chunk, headers)
                offset += len(chunk)

        return response.json()

    async def delete(self, public_id: str, resource_type: str) -> bool:
        if not public_id:
            return False
        url = f"{self.API_BASE}/{self.cloud_name}/{resource_type}/destroy"
        form = self._signed_form({"public_id": public_id, "timestamp": int(time.time())})
        try:
            async with self._client() as client:
                response = await client.post(url, data=form)
            response.raise_for_status()
            result = response.json().get("result")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Cloudinary delete of %s failed: %s", public_id, str(e))
            return False

        if result != "ok":
            logger.warning("Cloudinary delete of %s returned %s", public_id, result)
            return False
        return True

    async def health_check(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.API_BASE}/{self.cloud_name}/ping",
                    auth=(self.api_key, self.api_secret),
                )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("Cloudinary health check failed: %s", str(e))
            return False


# ── Singleton Instance ────────────────────────────────────────────────────

def create_media_host() -> MediaHost:
    if settings.media_backend == "cloudinary":
        return CloudinaryMediaHost(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            timeout=settings.cloudinary_timeout,
        )
    return LocalMediaHost()


media_host = create_media_host()
