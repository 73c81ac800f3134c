"""
VidTube Backend — Local Media Route
====================================

Serves files stored by LocalMediaHost. With the Cloudinary host the assets
live on Cloudinary's CDN and this route answers 404.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from vidtube.exceptions import NotFoundError, ValidationError
from vidtube.services.media_service import LocalMediaHost, media_host

router = APIRouter(tags=["Media"])


@router.get(
    "/media/{file_path:path}",
    summary="Serve a locally stored media file",
    responses={
        200: {"description": "Media file"},
        400: {"description": "Path escapes the media root"},
        404: {"description": "File not found"},
    },
)
async def serve_media(file_path: str) -> FileResponse:
    if not isinstance(media_host, LocalMediaHost):
        raise NotFoundError(resource="File", resource_id=file_path)

    full_path = media_host.resolve(file_path)
    if full_path is None:
        raise ValidationError(message="Invalid file path", field="path")
    if not full_path.is_file():
        raise NotFoundError(resource="File", resource_id=file_path)

    # media_type is inferred from the extension
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
