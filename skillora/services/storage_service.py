"""
Upload storage on local disk.
Files land under UPLOAD_DIR/<kind>/ and are served back under UPLOAD_URL_PREFIX.
"""
import os
import secrets
import time
from fastapi import UploadFile

from skillora.core.config import Settings
from skillora.core.exceptions import BadRequestError


COURSE_THUMBNAILS = "courses"
MODULE_CONTENT = "content"


class StorageService:
    """Writes uploaded files to disk and returns their public URL path."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def ensure_directories(self) -> None:
        for kind in (COURSE_THUMBNAILS, MODULE_CONTENT):
            os.makedirs(os.path.join(self.settings.UPLOAD_DIR, kind), exist_ok=True)

    @staticmethod
    def build_filename(field_name: str, original_name: str) -> str:
        """<field>-<epoch ms>-<9 random digits><original extension>"""
        _, ext = os.path.splitext(original_name or "")
        suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        return f"{field_name}-{suffix}{ext}"

    async def save(self, file: UploadFile, kind: str, field_name: str) -> str:
        """Store the upload and return the URL path it is served from."""
        if file is None or not file.filename:
            raise BadRequestError("No file uploaded")

        filename = self.build_filename(field_name, file.filename)
        directory = os.path.join(self.settings.UPLOAD_DIR, kind)
        os.makedirs(directory, exist_ok=True)

        content = await file.read()
        with open(os.path.join(directory, filename), "wb") as buffer:
            buffer.write(content)

        prefix = self.settings.UPLOAD_URL_PREFIX.rstrip("/")
        return f"{prefix}/{kind}/{filename}"

    async def save_image(self, file: UploadFile, kind: str, field_name: str) -> str:
        """Like save, but the declared content type must be an image."""
        if file is None or not file.filename:
            raise BadRequestError(f"{field_name.capitalize()} is required")
        if not (file.content_type or "").startswith("image/"):
            raise BadRequestError("File must be an image")
        return await self.save(file, kind, field_name)
