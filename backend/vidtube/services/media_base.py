"""
VidTube Backend — Abstract Media Host Interface
================================================

What:  The contract every media host (local disk, Cloudinary) implements.
How:   Concrete hosts inherit from MediaHost and implement upload(), delete()
       and health_check(). VideoService only talks to this interface.
Who:   Called by VideoService when publishing, re-thumbnailing or deleting.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class UploadedMedia:
    """
    Result of a successful upload.

    Attributes:
        url:           Public URL clients fetch the asset from
        public_id:     Host-side identifier, used for delete()
        resource_type: "video" or "image"
        duration:      Length in seconds for videos; 0.0 when unknown
    """

    url: str
    public_id: str
    resource_type: str
    duration: float = 0.0


class MediaHost(ABC):
    """
    Abstract interface for media storage.

    Contract:
        - upload() takes a local file path and never modifies or removes it;
          the caller owns the temp file
        - host-specific failures are raised as MediaUploadError
        - delete() is best-effort and must not raise
    """

    @abstractmethod
    async def upload(self, local_path: str) -> UploadedMedia:
        """
        Push a local file to the host.

        Raises:
            MediaUploadError: the host rejected the file or was unreachable
                after retries.
        """
        ...

    @abstractmethod
    async def delete(self, public_id: str, resource_type: str) -> bool:
        """Remove an asset. Returns False (and logs) instead of raising."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability check used by GET /health."""
        ...
