"""
Notes API Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Unit tests use a mocked AsyncSession and a mocked FileService.
       Route tests run the real app against a throwaway SQLite file
       (aiosqlite) with Cloudinary replaced by a mock.

Fixture Hierarchy:
    ├── mock_db_session: Mock AsyncSession (no real DB needed)
    ├── mock_file_service: FileService double returning a fixed URL
    ├── test_settings: Settings pointing at a per-test SQLite file
    ├── app: Fully wired FastAPI app with tables created
    └── test_client: HTTPX AsyncClient bound to `app`
"""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

# Override settings BEFORE any app imports: `notes_api.main` builds an app
# from the environment at import time
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='notes_test_')}/import.db"
os.environ["CLOUD_NAME"] = "test-cloud"
os.environ["API_KEY"] = "test-key-not-real"
os.environ["API_SECRET"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from notes_api.config import Settings
from notes_api.database import Base
from notes_api.models.note import Note, NoteListItem, NoteTag
from notes_api.services.file_service import FileService
from notes_api.services.note_service import NoteService

UPLOADED_URL = "https://res.cloudinary.com/test-cloud/image/upload/v1/notes/photo.png"


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_file_service():
    """FileService double: every upload succeeds with UPLOADED_URL."""
    service = MagicMock(spec=FileService)
    service.upload = AsyncMock(return_value=UPLOADED_URL)
    return service


@pytest.fixture
def sample_image_bytes():
    """
    Minimal PNG bytes for upload tests.

    Signature + IHDR for a 1x1 image; enough for size and extension checks,
    never decoded because Cloudinary is mocked.
    """
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
        b"\x1f\x15\xc4\x89"
    )


@pytest.fixture
def sample_note():
    """A persisted-looking Note with one list item and two tags."""
    now = datetime.now(timezone.utc)
    return Note(
        id=uuid4(),
        title="Groceries",
        content="buy milk",
        image="https://res.cloudinary.com/test-cloud/image/upload/v1/notes/old.png",
        created_at=now,
        updated_at=now,
        list_items=[NoteListItem(position=0, item="milk")],
        tags=[NoteTag(position=0, name="home"), NoteTag(position=1, name="errands")],
    )


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path}/notes.db",
        cloud_name="test-cloud",
        api_key="test-key-not-real",
        api_secret="test-secret-not-real",
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(test_settings, mock_file_service):
    """
    Real application against a fresh SQLite database.

    Tables are created directly from the ORM metadata; the FileService is
    swapped for the mock so no request reaches Cloudinary.
    """
    from notes_api.main import create_app

    application = create_app(test_settings)
    application.state.file_service = mock_file_service
    application.state.note_service = NoteService(mock_file_service)

    database = application.state.database
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield application

    await database.dispose()


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
