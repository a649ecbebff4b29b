"""
RecipeBox Backend — Upload Storage Service
============================================

What:  Stores optional recipe images and builds their public URLs.
How:   Checks size, writes the bytes under UPLOAD_DIR with a UUID filename
       using aiofiles, and returns the absolute path plus
       PUBLIC_BASE_URL/uploads/<filename>.
Who:   Called by the POST /auth/recipe handler before the recipe is persisted.

Filenames:
    The stored name is a fresh UUID, so no user input reaches the file system
    path. The original extension is kept when it is short and alphanumeric
    (".jpg", ".png", ".webp") so that StaticFiles serves a sensible
    Content-Type; anything else is dropped.

    uploads/
    ├── 0b6f0d3e-7c1e-4a8e-9a55-5f2c1b9d3e21.jpg
    └── 9a2c4e7f-1d3b-4c6a-8e0f-2b4d6f8a0c1e.png
"""

import logging
import os
import re
import uuid
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
from starlette.datastructures import UploadFile

from recipebox.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,8}$")


class UploadService:
    """
    Manages the upload directory.

    Lifecycle of an uploaded image:
        1. read_upload() checks the reported size, then reads at most max_size + 1 bytes
        2. store_image() checks size and writes it to disk
        3. The returned public URL is persisted on the recipe
        4. If persisting fails, the handler calls cleanup_file()
    """

    def __init__(self, upload_dir: str, public_base_url: str, max_size: int):
        self.upload_dir = Path(upload_dir).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self.max_size = max_size

    def ensure_directory(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def validate_size(self, actual_size: int) -> None:
        """
        Raises:
            ValidationError: empty upload, or larger than max_size
        """
        if actual_size == 0:
            raise ValidationError(
                message="Uploaded image is empty.",
                field="image",
            )
        if actual_size > self.max_size:
            max_mb = self.max_size / (1024 * 1024)
            raise ValidationError(
                message=f"Image size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="image",
                context={"max_size": self.max_size, "actual_size": actual_size},
            )

    async def read_upload(self, upload: UploadFile) -> bytes:
        """
        Read a multipart file part, refusing oversize parts before buffering them.

        Starlette records the spooled part's size while parsing the form, so
        an oversize image is rejected without being read into memory. At most
        max_size + 1 bytes are ever read.

        Raises:
            ValidationError: reported or actual size out of bounds (→ 400)
        """
        if upload.size is not None:
            self.validate_size(upload.size)
        content = await upload.read(self.max_size + 1)
        self.validate_size(len(content))
        return content

    @staticmethod
    def safe_extension(filename: Optional[str]) -> str:
        ext = Path(filename or "").suffix.lower()
        return ext if _EXTENSION_RE.match(ext) else ""

    def public_url(self, stored_name: str) -> str:
        return f"{self.public_base_url}/uploads/{stored_name}"

    async def store_image(self, filename: Optional[str], content: bytes) -> Tuple[str, str]:
        """
        Validate and write an image.

        Returns:
            (absolute_path, public_url)

        Raises:
            ValidationError: size checks failed (→ 400)
            FileStorageError: the write failed (→ 500)
        """
        self.validate_size(len(content))

        stored_name = f"{uuid.uuid4()}{self.safe_extension(filename)}"
        absolute_path = self.upload_dir / stored_name

        try:
            self.ensure_directory()
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("Upload stored: %s (%d bytes)", stored_name, len(content))
        return str(absolute_path), self.public_url(stored_name)

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a stored upload after the recipe could not be saved.

        Best-effort: a missing file is fine, other failures are logged.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up upload: %s", path.name)
            else:
                logger.debug("Cleanup: upload already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up upload %s: %s", file_path, str(e))
