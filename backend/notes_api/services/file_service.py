"""
Notes API Backend: File Storage Service
========================================

What:  Validates note attachments and uploads them to Cloudinary.
Why:   The service never stores binary content itself; a note only keeps the
       URL of the uploaded object.
How:   Cheap local checks first (extension, size), then a signed upload with
       the credential triplet passed on every call. `cloudinary.config()` is
       never touched, so two apps with different settings can coexist in
       one process.
Who:   Called by NoteService during note creation.

Accepted formats: jpg, jpeg, png, pdf. The same list is sent to Cloudinary
as `allowed_formats`, so the provider enforces it as well.

Known limitation:
    Upload runs before the insert. If the insert fails the object stays in
    Cloudinary; deleting a note does not remove its attachment either.
"""

import io
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from starlette.concurrency import run_in_threadpool

from notes_api.config import Settings
from notes_api.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_FORMATS = ("jpg", "jpeg", "png", "pdf")

ALLOWED_EXTENSIONS = {f".{fmt}" for fmt in ALLOWED_FORMATS}


class FileService:
    """
    Upload collaborator for note attachments.

    Lifecycle of an uploaded file:
        1. Route reads the multipart part → NoteService → FileService.upload()
        2. Extension check
        3. Size check (empty files are rejected too)
        4. Upload to Cloudinary in a worker thread (the SDK is blocking)
        5. `secure_url` from the upload result is returned
    """

    def __init__(self, settings: Settings):
        self.cloud_name = settings.cloud_name
        self.api_key = settings.api_key
        self.api_secret = settings.api_secret
        self.folder = settings.upload_folder
        self.max_file_size = settings.max_file_size

    def validate_extension(self, filename: str) -> str:
        """
        Check the extension against the allowed formats.

        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if the extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(ALLOWED_FORMATS)}"
                ),
                field="image",
                context={"extension": ext, "allowed": list(ALLOWED_FORMATS)},
            )
        return ext

    def validate_size(self, content: bytes) -> None:
        """Reject empty files and files larger than `max_file_size`."""
        if not content:
            raise ValidationError(message="Uploaded file is empty", field="image")

        if len(content) > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"File is too large. Maximum size is {max_mb:.0f}MB.",
                field="image",
                context={"max_size": self.max_file_size, "actual_size": len(content)},
            )

    def _upload_options(self) -> Dict[str, Any]:
        return {
            "folder": self.folder,
            "allowed_formats": list(ALLOWED_FORMATS),
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
        }

    async def upload(self, filename: str, content: bytes) -> str:
        """
        Validate and upload one attachment.

        Args:
            filename: Original filename from the multipart part
            content:  Raw file bytes

        Returns:
            The `secure_url` of the stored object, used as the note's `image`.

        Raises:
            ValidationError:  Bad extension, empty or oversize file
            FileStorageError: Cloudinary rejected the file or was unreachable
        """
        self.validate_extension(filename)
        self.validate_size(content)

        stream = io.BytesIO(content)
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                stream,
                filename=filename,
                **self._upload_options(),
            )
        except CloudinaryError as e:
            raise FileStorageError(
                message="Cloudinary rejected the upload",
                context={"filename": filename, "error": str(e)},
            )
        except Exception as e:
            # Network failures surface as urllib3/OS errors, not Cloudinary's
            raise FileStorageError(
                message="Cloudinary upload failed",
                context={"filename": filename, "error_type": type(e).__name__},
            )

        url: Optional[str] = result.get("secure_url") or result.get("url")
        if not url:
            raise FileStorageError(
                message="Cloudinary response did not include a URL",
                context={"filename": filename},
            )

        logger.info("Attachment uploaded: %s (%d bytes) → %s", filename, len(content), url)
        return url
