"""Attachment storage for audio recordings and uploaded files.

Uploads go to Cloudinary when it is configured, otherwise into the local
upload directory served under ``/uploads``.
"""
import logging
import os
import uuid
from typing import Optional

import cloudinary
import cloudinary.uploader

from app.core.config import settings
from app.services.assembly import AttachmentRef

logger = logging.getLogger(__name__)

AUDIO_FOLDER = "audio"
FILES_FOLDER = "files"


class StorageError(Exception):
    """The attachment could not be stored; no reference is available."""


def _extension(filename: Optional[str], default: str) -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    return default


class StorageService:
    """Stores attachments and returns stable references to them."""

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = upload_dir or settings.UPLOAD_DIR
        self.use_cloudinary = settings.cloudinary_configured
        if self.use_cloudinary:
            cloudinary.config(
                cloud_name=settings.CLOUDINARY_CLOUD_NAME,
                api_key=settings.CLOUDINARY_API_KEY,
                api_secret=settings.CLOUDINARY_API_SECRET,
            )

    def store_audio(self, content: bytes, filename: Optional[str] = None) -> AttachmentRef:
        return self._store(content, AUDIO_FOLDER, "webm", filename)

    def store_file(self, content: bytes, filename: Optional[str]) -> AttachmentRef:
        return self._store(content, FILES_FOLDER, "bin", filename)

    def _store(self, content: bytes, folder: str, default_ext: str,
               filename: Optional[str]) -> AttachmentRef:
        name = f"{uuid.uuid4()}.{_extension(filename, default_ext)}"
        if self.use_cloudinary:
            reference = self._upload_cloudinary(content, folder, name)
        else:
            reference = self._write_local(content, folder, name)
        return AttachmentRef(reference=reference, filename=filename or name)

    def _upload_cloudinary(self, content: bytes, folder: str, name: str) -> str:
        try:
            result = cloudinary.uploader.upload(
                content,
                folder=f"survey-flow/{folder}",
                public_id=name.rsplit(".", 1)[0],
                resource_type="auto" if folder == FILES_FOLDER else "video",
            )
        except Exception as exc:
            logger.exception("Cloudinary upload failed for %s", name)
            raise StorageError(f"Upload failed: {exc}") from exc

        url = result.get("secure_url")
        if not url:
            raise StorageError("Upload returned no URL")
        return url

    def _write_local(self, content: bytes, folder: str, name: str) -> str:
        directory = os.path.join(self.upload_dir, folder)
        try:
            os.makedirs(directory, exist_ok=True)
            with open(os.path.join(directory, name), "wb") as fh:
                fh.write(content)
        except OSError as exc:
            logger.exception("Could not write attachment %s to %s", name, directory)
            raise StorageError(f"Could not save attachment: {exc}") from exc
        return f"/uploads/{folder}/{name}"

    def discard(self, attachment: AttachmentRef) -> None:
        """Best-effort removal of an attachment that ended up unused."""
        reference = attachment.reference
        try:
            if reference.startswith("/uploads/"):
                os.remove(os.path.join(self.upload_dir, *reference[len("/uploads/"):].split("/")))
            elif self.use_cloudinary and "/upload/" in reference:
                self._destroy_cloudinary(reference)
            else:
                logger.warning("Cannot discard unknown attachment reference %s", reference)
        except Exception:
            logger.exception("Could not discard attachment %s", reference)

    @staticmethod
    def _destroy_cloudinary(url: str) -> None:
        # .../<resource_type>/upload/v<version>/survey-flow/<folder>/<name>
        head, _, tail = url.partition("/upload/")
        resource_type = head.rsplit("/", 1)[-1]
        parts = tail.split("/")
        if parts and parts[0].startswith("v") and parts[0][1:].isdigit():
            parts = parts[1:]
        public_id = "/".join(parts)
        if resource_type != "raw":
            public_id = public_id.rsplit(".", 1)[0]
        cloudinary.uploader.destroy(public_id, resource_type=resource_type)
