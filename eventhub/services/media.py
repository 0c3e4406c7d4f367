"""Media hosting for event images.

Images are stored out-of-band and events only keep the returned URL and
storage key. Two hosts are available: a local directory served under
``/uploads`` and Cloudinary.
"""

import io
import logging
import re
import time
from abc import ABC, abstractmethod
from pathlib import Path, PurePath

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from eventhub.config import get_settings
from eventhub.domain import MediaUpload, StoredMedia
from eventhub.errors import ValidationFailedError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


class MediaError(Exception):
    """Raised when the media host rejects or fails an operation."""


def validate_image(upload: MediaUpload, max_bytes: int | None = None) -> None:
    """Reject uploads that are not a supported image type or are too large."""
    if max_bytes is None:
        max_bytes = get_settings().max_upload_bytes
    if upload.content_type not in ALLOWED_IMAGE_TYPES:
        extension = PurePath(upload.filename).suffix.lstrip(".").upper() or "This"
        raise ValidationFailedError(
            f"{extension} format is not supported. "
            "Please use JPEG, PNG, GIF, WEBP, BMP, or TIFF images."
        )
    if not upload.data:
        raise ValidationFailedError("Uploaded image is empty")
    if len(upload.data) > max_bytes:
        raise ValidationFailedError(
            f"File too large. Please choose an image smaller than {max_bytes // (1024 * 1024)}MB."
        )


def generate_public_id(filename: str) -> str:
    """Build a unique storage name like ``event_1718000000000_poster``."""
    stem = _UNSAFE_CHARS.sub("_", PurePath(filename).stem).strip("_") or "image"
    return f"event_{int(time.time() * 1000)}_{stem[:64]}"


class MediaHost(ABC):
    """Interface for the external image store."""

    @abstractmethod
    def store(self, upload: MediaUpload) -> StoredMedia:
        """Store an image and return its public URL and storage key."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a previously stored image by its storage key."""
        ...


class LocalMediaHost(MediaHost):
    """Stores images in a local directory that the app serves statically."""

    def __init__(self, root: str | Path, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in {".", ".."}:
            raise MediaError(f"Invalid media key: {key}")
        return self.root / key

    def store(self, upload: MediaUpload) -> StoredMedia:
        extension = ALLOWED_IMAGE_TYPES.get(upload.content_type or "", "")
        name = f"{generate_public_id(upload.filename)}{extension}"
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / name).write_bytes(upload.data)
        logger.info(f"Stored media {name} ({len(upload.data)} bytes)")
        return StoredMedia(url=f"{self.url_prefix}/{name}", key=name)

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        if not path.exists():
            logger.info(f"Media {key} already removed")
            return
        path.unlink()
        logger.info(f"Deleted media {key}")


class CloudinaryMediaHost(MediaHost):
    """Stores images on Cloudinary through its SDK."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "eventhub_events",
        timeout: int = 60,
    ):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )
        self.folder = folder
        self.timeout = timeout

    def store(self, upload: MediaUpload) -> StoredMedia:
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(upload.data),
                folder=self.folder,
                public_id=generate_public_id(upload.filename),
                resource_type="image",
                timeout=self.timeout,
            )
        except CloudinaryError as e:
            logger.error(f"Cloudinary upload failed for {upload.filename}: {e}")
            raise MediaError("Image upload failed. Please try again.") from e

        url = result.get("secure_url")
        public_id = result.get("public_id")
        if not url or not public_id:
            raise MediaError("Cloudinary upload returned no URL")
        logger.info(f"Uploaded media {public_id} to Cloudinary")
        return StoredMedia(url=url, key=public_id)

    def delete(self, key: str) -> None:
        try:
            result = cloudinary.uploader.destroy(key, invalidate=True, timeout=self.timeout)
        except CloudinaryError as e:
            logger.error(f"Cloudinary delete failed for {key}: {e}")
            raise MediaError(f"Cloudinary delete failed for {key}") from e

        if result.get("result") not in {"ok", "not found"}:
            raise MediaError(f"Cloudinary refused to delete {key}: {result}")
        logger.info(f"Deleted media {key} from Cloudinary")


def get_media_host() -> MediaHost:
    """Build the media host selected in settings."""
    settings = get_settings()
    if settings.media_backend == "cloudinary":
        return CloudinaryMediaHost(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
        )
    return LocalMediaHost(settings.media_root, settings.media_url_prefix)
