"""
Notes API Backend: File Service Unit Tests
===========================================

What:  Tests for FileService validation and the Cloudinary upload call.
How:   `cloudinary.uploader.upload` is patched; no network access.

Test Strategy:
    ✅ Allowed extensions (.jpg, .jpeg, .png, .pdf), case-insensitive
    ✅ Rejected extensions (.gif, .exe, none)
    ✅ Empty and oversize files
    ✅ Credentials and allowed_formats passed on every upload call
    ✅ Provider errors become FileStorageError
"""

import pytest
from unittest.mock import patch

from cloudinary.exceptions import Error as CloudinaryError

from notes_api.config import Settings
from notes_api.exceptions import FileStorageError, ValidationError
from notes_api.services.file_service import ALLOWED_FORMATS, FileService


UPLOAD_TARGET = "cloudinary.uploader.upload"


class TestFileValidation:

    def setup_method(self):
        self.service = FileService(
            Settings(cloud_name="c", api_key="k", api_secret="s", max_file_size=1_048_576)
        )

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["photo.jpg", "photo.jpeg", "photo.png", "scan.pdf"])
    def test_allowed_extensions(self, filename):
        assert self.service.validate_extension(filename) == "." + filename.rsplit(".", 1)[1]

    def test_extension_check_is_case_insensitive(self):
        assert self.service.validate_extension("photo.JPG") == ".jpg"
        assert self.service.validate_extension("scan.Pdf") == ".pdf"

    @pytest.mark.parametrize("filename", ["animation.gif", "malware.exe", "noextension"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(filename)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_within_limit(self):
        self.service.validate_size(b"x" * 1000)

    def test_size_at_limit(self):
        self.service.validate_size(b"x" * 1_048_576)

    def test_size_over_limit(self):
        with pytest.raises(ValidationError, match="too large"):
            self.service.validate_size(b"x" * (1_048_576 + 1))

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(b"")


class TestUpload:

    def setup_method(self):
        self.service = FileService(
            Settings(
                cloud_name="test-cloud",
                api_key="key-123",
                api_secret="secret-456",
                upload_folder="notes",
            )
        )

    @pytest.mark.asyncio
    async def test_upload_returns_secure_url(self, sample_image_bytes):
        with patch(UPLOAD_TARGET) as mock_upload:
            mock_upload.return_value = {
                "secure_url": "https://res.cloudinary.com/test-cloud/image/upload/v1/notes/a.png",
                "url": "http://res.cloudinary.com/test-cloud/image/upload/v1/notes/a.png",
            }
            url = await self.service.upload("a.png", sample_image_bytes)

        assert url == "https://res.cloudinary.com/test-cloud/image/upload/v1/notes/a.png"

    @pytest.mark.asyncio
    async def test_upload_passes_credentials_per_call(self, sample_image_bytes):
        with patch(UPLOAD_TARGET) as mock_upload:
            mock_upload.return_value = {"secure_url": "https://example.test/a.png"}
            await self.service.upload("a.png", sample_image_bytes)

        mock_upload.assert_called_once()
        stream = mock_upload.call_args.args[0]
        options = mock_upload.call_args.kwargs
        assert stream.read() == sample_image_bytes
        assert options["cloud_name"] == "test-cloud"
        assert options["api_key"] == "key-123"
        assert options["api_secret"] == "secret-456"
        assert options["folder"] == "notes"
        assert options["allowed_formats"] == list(ALLOWED_FORMATS)
        assert options["filename"] == "a.png"

    @pytest.mark.asyncio
    async def test_invalid_extension_never_reaches_cloudinary(self, sample_image_bytes):
        with patch(UPLOAD_TARGET) as mock_upload:
            with pytest.raises(ValidationError):
                await self.service.upload("animation.gif", sample_image_bytes)
        mock_upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_rejection_becomes_file_storage_error(self, sample_image_bytes):
        with patch(UPLOAD_TARGET, side_effect=CloudinaryError("Invalid image file")):
            with pytest.raises(FileStorageError, match="rejected"):
                await self.service.upload("a.png", sample_image_bytes)

    @pytest.mark.asyncio
    async def test_network_failure_becomes_file_storage_error(self, sample_image_bytes):
        with patch(UPLOAD_TARGET, side_effect=ConnectionError("unreachable")):
            with pytest.raises(FileStorageError):
                await self.service.upload("a.png", sample_image_bytes)

    @pytest.mark.asyncio
    async def test_response_without_url_is_an_error(self, sample_image_bytes):
        with patch(UPLOAD_TARGET, return_value={"public_id": "notes/a"}):
            with pytest.raises(FileStorageError, match="URL"):
                await self.service.upload("a.png", sample_image_bytes)
