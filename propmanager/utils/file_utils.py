"""
File upload utilities for handling image validation and storage.
Uploaded property photos live under ``<upload_dir>/properties/<property_id>/``
and are served back through the ``/uploads`` static mount.
"""

import io
import uuid
import logging
from pathlib import Path
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError
import aiofiles
from fastapi import UploadFile

from propmanager.config import get_settings
from propmanager.utils.exceptions import (
    FileUploadError,
    UnsupportedFileTypeError,
    FileSizeExceededError,
)

logger = logging.getLogger(__name__)


class FileValidator:
    """Utility class for file validation operations."""

    # Supported image formats and their extensions
    SUPPORTED_FORMATS = {
        "image/jpeg": [".jpg", ".jpeg"],
        "image/png": [".png"],
        "image/webp": [".webp"],
    }

    # Pillow format names for each MIME type
    PIL_FORMATS = {
        "image/jpeg": "jpeg",
        "image/png": "png",
        "image/webp": "webp",
    }

    # Image dimension constraints
    MIN_WIDTH = 16
    MIN_HEIGHT = 16
    MAX_WIDTH = 10000
    MAX_HEIGHT = 10000

    @classmethod
    def allowed_types(cls) -> list:
        return [t for t in get_settings().allowed_file_types if t in cls.SUPPORTED_FORMATS]

    @classmethod
    def validate_file_extension(cls, filename: str, mime_type: str) -> str:
        """
        Validate the file extension against its declared MIME type.

        Returns:
            Lowercase file extension
        """
        extension = Path(filename).suffix.lower()
        if not extension:
            raise FileUploadError("File must have an extension")

        expected_extensions = cls.SUPPORTED_FORMATS.get(mime_type, [])
        if extension not in expected_extensions:
            raise FileUploadError(
                f"File extension '{extension}' doesn't match MIME type '{mime_type}'"
            )
        return extension

    @classmethod
    def validate_mime_type(cls, mime_type: str) -> str:
        allowed = cls.allowed_types()
        if mime_type not in allowed:
            raise UnsupportedFileTypeError(mime_type or "unknown", allowed)
        return mime_type

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: Optional[int] = None) -> int:
        if file_size <= 0:
            raise FileUploadError("File is empty")

        max_allowed = max_size or get_settings().max_file_size
        if file_size > max_allowed:
            raise FileSizeExceededError(file_size, max_allowed)
        return file_size

    @classmethod
    def validate_image_content(cls, content: bytes, mime_type: str) -> Tuple[int, int]:
        """
        Open the bytes with Pillow and check format and dimensions.

        Returns:
            Tuple of (width, height)
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                pil_format = img.format.lower() if img.format else ""
        except (UnidentifiedImageError, OSError) as e:
            raise FileUploadError(f"Invalid image file: {e}")

        if pil_format != cls.PIL_FORMATS.get(mime_type):
            raise FileUploadError(f"Image format '{pil_format}' doesn't match MIME type '{mime_type}'")

        if width < cls.MIN_WIDTH or height < cls.MIN_HEIGHT:
            raise FileUploadError(
                f"Image is {width}x{height}px; minimum is {cls.MIN_WIDTH}x{cls.MIN_HEIGHT}px"
            )
        if width > cls.MAX_WIDTH or height > cls.MAX_HEIGHT:
            raise FileUploadError(
                f"Image is {width}x{height}px; maximum is {cls.MAX_WIDTH}x{cls.MAX_HEIGHT}px"
            )
        return width, height

    @classmethod
    async def validate_upload_file(cls, file: UploadFile) -> Tuple[bytes, str]:
        """
        Comprehensive validation of an uploaded file.

        Returns:
            Tuple of (file content, validated extension)
        """
        if not file.filename:
            raise FileUploadError("Filename is required")

        mime_type = cls.validate_mime_type(file.content_type or "")
        extension = cls.validate_file_extension(file.filename, mime_type)

        await file.seek(0)
        content = await file.read()
        await file.seek(0)

        cls.validate_file_size(len(content))
        cls.validate_image_content(content, mime_type)
        return content, extension


class FileStorage:
    """Utility class for file storage operations."""

    def __init__(self, base_dir: Optional[Path] = None, url_prefix: Optional[str] = None):
        settings = get_settings()
        self.base_dir = Path(base_dir or settings.upload_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.url_prefix = (url_prefix or settings.upload_url_prefix).rstrip("/")

    def get_property_directory(self, property_id: uuid.UUID) -> Path:
        property_dir = self.base_dir / "properties" / str(property_id)
        property_dir.mkdir(parents=True, exist_ok=True)
        return property_dir

    def generate_file_path(self, property_id: uuid.UUID, extension: str) -> Path:
        """Unique path for a new image of the property."""
        return self.get_property_directory(property_id) / f"{uuid.uuid4()}{extension}"

    def url_for_path(self, file_path: Path) -> str:
        """Public ``/uploads/...`` URL for a stored file."""
        relative = file_path.relative_to(self.base_dir).as_posix()
        return f"{self.url_prefix}/{relative}"

    def path_for_url(self, url: str) -> Optional[Path]:
        """
        Local path of an uploaded file, or None for external URLs.

        Paths that resolve outside the upload directory are rejected.
        """
        prefix = f"{self.url_prefix}/"
        if not isinstance(url, str) or not url.startswith(prefix):
            return None

        base = self.base_dir.resolve()
        candidate = (base / url[len(prefix):]).resolve()
        if base not in candidate.parents:
            return None
        return candidate

    async def save_upload(self, file: UploadFile, property_id: uuid.UUID) -> str:
        """
        Validate and store an uploaded image.

        Returns:
            Public URL of the stored file
        """
        content, extension = await FileValidator.validate_upload_file(file)
        file_path = self.generate_file_path(property_id, extension)

        try:
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            self.delete_file(file_path)
            raise FileUploadError(f"Failed to save file: {e}")

        logger.info(f"Stored upload {file.filename} ({len(content)} bytes) at {file_path}")
        return self.url_for_path(file_path)

    def delete_file(self, file_path: Path) -> bool:
        """Delete a file from disk; failures are logged, not raised."""
        try:
            if file_path.exists():
                file_path.unlink()
                return True
            return False
        except OSError as e:
            logger.warning(f"Failed to delete file {file_path}: {e}")
            return False

    def delete_by_url(self, url: str) -> bool:
        """Delete the local file behind an ``/uploads/`` URL, if any."""
        file_path = self.path_for_url(url)
        if file_path is None:
            return False
        return self.delete_file(file_path)

    def cleanup_empty_directories(self, property_id: uuid.UUID) -> bool:
        property_dir = self.base_dir / "properties" / str(property_id)
        try:
            if property_dir.exists() and not any(property_dir.iterdir()):
                property_dir.rmdir()
                return True
            return False
        except OSError as e:
            logger.warning(f"Failed to remove directory {property_dir}: {e}")
            return False
