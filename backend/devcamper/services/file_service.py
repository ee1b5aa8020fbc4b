"""
DevCamper Backend — Photo Storage Service
===========================================

What:  Validates and stores bootcamp photos.
How:   Checks the declared content type and size, then writes the bytes to
       FILE_UPLOAD_PATH as `photo_<bootcamp_id><ext>` with aiofiles.
Who:   BootcampService.upload_photo; the files route serves them back.

Validation order:
    1. Content type must start with "image"   → 400 "Please upload an image file"
    2. Size must not exceed MAX_FILE_UPLOAD    → 400 "Please upload an image less than N"
    3. Write                                    → 500 "Problem with file upload" on OSError
"""

import logging
import re
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from devcamper.config import settings
from devcamper.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Extensions are copied from the client filename; anything odd is dropped
SAFE_EXTENSION = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


class FileService:
    """Stores one photo per bootcamp; a new upload overwrites the old one when the extension matches."""

    def __init__(self, upload_path: Optional[str] = None):
        self._upload_path = upload_path

    @property
    def upload_root(self) -> Path:
        # Resolved lazily so tests can repoint settings.file_upload_path
        return Path(self._upload_path or settings.file_upload_path).resolve()

    def validate_content_type(self, content_type: Optional[str]) -> None:
        if not content_type or not content_type.startswith("image"):
            raise ValidationError(
                message="Please upload an image file",
                field="file",
                context={"content_type": content_type},
            )

    def validate_size(self, size: int) -> None:
        if size > settings.max_file_upload:
            raise ValidationError(
                message=f"Please upload an image less than {settings.max_file_upload}",
                field="file",
                context={"max_bytes": settings.max_file_upload, "actual_bytes": size},
            )

    @staticmethod
    def photo_filename(bootcamp_id: uuid.UUID, original_filename: Optional[str]) -> str:
        """`photo_<id><ext>`, keeping the client's extension when it looks sane."""
        ext = Path(original_filename or "").suffix
        if not SAFE_EXTENSION.match(ext):
            ext = ""
        return f"photo_{bootcamp_id}{ext.lower()}"

    async def store_photo(
        self,
        bootcamp_id: uuid.UUID,
        original_filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> str:
        """
        Validate and write a bootcamp photo.

        Returns:
            The stored filename (not the full path).

        Raises:
            ValidationError: not an image, or too large
            FileStorageError: the write failed
        """
        self.validate_content_type(content_type)
        self.validate_size(len(content))

        filename = self.photo_filename(bootcamp_id, original_filename)
        target = self.upload_root / filename

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store photo at %s: %s", target, e)
            raise FileStorageError(context={"path": str(target), "os_error": str(e)})

        logger.info("Stored photo %s (%d bytes)", filename, len(content))
        return filename

    def resolve(self, filename: str) -> Path:
        """
        Map a stored filename back to its path.

        Raises NotFoundError for missing files and for names that would
        escape the upload directory.
        """
        root = self.upload_root
        path = (root / filename).resolve()
        if path.parent != root or not path.is_file():
            raise NotFoundError(resource="File", resource_id=filename)
        return path


file_service = FileService()
