"""
Notes API Backend: Note Service (Business Logic)
=================================================

What:  Every note operation: search, list, get, create, update, delete.
How:   Receives a per-request AsyncSession for each call; the FileService
       collaborator is injected once at construction.
Who:   Called by the route handlers in `notes_api.routes.notes`.

Create Flow (POST /api/notes):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Route   │───▶│   Decode    │───▶│  Cloudinary  │───▶│  Store   │
    │ (parse)  │    │ list / tags │    │ (FileServ)   │    │  (DB)    │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────┘

Error Handling Strategy:
    Application exceptions (NotFoundError, PayloadDecodeError, ...) propagate
    unchanged. Anything else raised while talking to the store is wrapped in
    DatabaseError, which hides driver details from the response.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from notes_api.exceptions import DatabaseError, NotFoundError
from notes_api.models.note import Note, NoteListItem, NoteTag
from notes_api.schemas.note import (
    ListEntry,
    NoteResponse,
    NoteUpdate,
    TagEntry,
    decode_collections,
)
from notes_api.services.file_service import FileService

logger = logging.getLogger(__name__)


def _parse_note_id(note_id: str) -> uuid.UUID:
    """
    Convert a path token into a UUID.

    A malformed id is reported as a store failure (500), not as a miss.
    """
    try:
        return uuid.UUID(note_id)
    except (TypeError, ValueError):
        raise DatabaseError(
            message="Malformed note id",
            context={"note_id": note_id},
        )


def _list_rows(entries: Sequence[ListEntry]) -> List[NoteListItem]:
    return [NoteListItem(position=i, item=e.item) for i, e in enumerate(entries)]


def _tag_rows(entries: Sequence[TagEntry]) -> List[NoteTag]:
    return [NoteTag(position=i, name=e.name) for i, e in enumerate(entries)]


def _matches(column, pattern: str, dialect_name: str):
    """
    Case-insensitive regex condition on one column.

    PostgreSQL renders `~*`. SQLite evaluates REGEXP with Python's `re` and
    ignores the flags argument, so the flag goes inline instead.
    """
    if dialect_name == "sqlite":
        return column.regexp_match("(?i)" + pattern)
    return column.regexp_match(pattern, flags="i")


def to_response(note: Note) -> NoteResponse:
    """Build the API representation of a loaded Note."""
    return NoteResponse(
        id=note.id,
        title=note.title,
        content=note.content,
        image=note.image or "",
        list_items=[ListEntry(item=row.item) for row in note.list_items],
        tags=[TagEntry(name=row.name) for row in note.tags],
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


class NoteService:
    """
    Business logic layer for note operations.

    Stateless apart from the injected FileService: no per-request data is
    kept on the instance, so one instance serves all concurrent requests.
    """

    def __init__(self, file_service: FileService):
        self.file_service = file_service

    async def search_notes(self, db: AsyncSession, query: Optional[str]) -> List[NoteResponse]:
        """
        Case-insensitive regex match over title, content, list items, tags
        and image.

        An absent query is the empty pattern, which matches every note
        because `image` is never NULL. A pattern the store cannot compile
        fails like an unreachable store (DatabaseError).
        """
        pattern = query or ""
        dialect_name = getattr(getattr(db.bind, "dialect", None), "name", "")
        stmt = (
            select(Note)
            .where(
                or_(
                    _matches(Note.title, pattern, dialect_name),
                    _matches(Note.content, pattern, dialect_name),
                    Note.list_items.any(_matches(NoteListItem.item, pattern, dialect_name)),
                    Note.tags.any(_matches(NoteTag.name, pattern, dialect_name)),
                    _matches(Note.image, pattern, dialect_name),
                )
            )
            .order_by(Note.created_at)
        )
        try:
            result = await db.execute(stmt)
            notes = result.scalars().all()
        except Exception as e:
            logger.error("Search failed for query %r: %s", pattern, str(e))
            raise DatabaseError(
                message="Could not search notes",
                context={"query": pattern, "error_type": type(e).__name__},
            )

        logger.debug("Search %r matched %d notes", pattern, len(notes))
        return [to_response(note) for note in notes]

    async def list_notes(self, db: AsyncSession) -> List[NoteResponse]:
        """Every note, unfiltered and unpaginated, oldest first."""
        try:
            result = await db.execute(select(Note).order_by(Note.created_at))
            notes = result.scalars().all()
        except Exception as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes",
                context={"error_type": type(e).__name__},
            )
        return [to_response(note) for note in notes]

    async def _load_note(self, db: AsyncSession, note_id: str) -> Note:
        """Fetch one Note by its path token or raise NotFoundError."""
        uid = _parse_note_id(note_id)
        try:
            result = await db.execute(select(Note).where(Note.id == uid))
            note = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note",
                context={"note_id": note_id},
            )

        if note is None:
            raise NotFoundError(resource="Note", resource_id=note_id)
        return note

    async def get_note(self, db: AsyncSession, note_id: str) -> NoteResponse:
        """
        Retrieve a single note.

        Raises:
            NotFoundError: no note with this id (→ 404)
            DatabaseError: malformed id or query failure (→ 500)
        """
        note = await self._load_note(db, note_id)
        return to_response(note)

    async def create_note(
        self,
        db: AsyncSession,
        title: Optional[str] = None,
        content: Optional[str] = None,
        list_value: Any = None,
        tags_value: Any = None,
        attachment: Optional[Tuple[str, bytes]] = None,
    ) -> NoteResponse:
        """
        Decode collections, upload the attachment, insert the note.

        Args:
            list_value / tags_value: as submitted, text or structured
            attachment: (filename, content) of the uploaded file, if any

        Raises:
            PayloadDecodeError: list/tags could not be decoded
            ValidationError / FileStorageError: attachment rejected
            DatabaseError: insert failed (an uploaded attachment is kept)
        """
        items, tags = decode_collections(list_value, tags_value)

        image = ""
        if attachment is not None:
            filename, data = attachment
            image = await self.file_service.upload(filename, data)

        now = datetime.now(timezone.utc)
        note = Note(
            id=uuid.uuid4(),
            title=title,
            content=content,
            image=image,
            created_at=now,
            updated_at=now,
            list_items=_list_rows(items),
            tags=_tag_rows(tags),
        )

        try:
            db.add(note)
            await db.flush()
        except Exception as e:
            if image:
                logger.warning("Insert failed after upload; attachment left at %s", image)
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note",
                context={"error_type": type(e).__name__},
            )

        logger.info("Note created: %s (%d items, %d tags)", note.id, len(items), len(tags))
        return to_response(note)

    async def update_note(
        self, db: AsyncSession, note_id: str, changes: NoteUpdate
    ) -> NoteResponse:
        """
        Overwrite title, content, list and tags with the submitted values.

        Only fields present in the body are written. `image` is never
        touched; `updated_at` is refreshed.
        """
        note = await self._load_note(db, note_id)
        submitted = changes.model_fields_set

        try:
            if "title" in submitted:
                note.title = changes.title
            if "content" in submitted:
                note.content = changes.content
            if "list_items" in submitted:
                note.list_items = _list_rows(changes.list_items or [])
            if "tags" in submitted:
                note.tags = _tag_rows(changes.tags or [])
            note.updated_at = datetime.now(timezone.utc)
            await db.flush()
        except Exception as e:
            logger.error("Database error updating note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the note",
                context={"note_id": note_id},
            )

        logger.info("Note updated: %s (fields=%s)", note_id, sorted(submitted))
        return to_response(note)

    async def delete_note(self, db: AsyncSession, note_id: str) -> None:
        """Hard-delete a note and its list/tag rows. The attachment stays."""
        note = await self._load_note(db, note_id)
        try:
            await db.delete(note)
            await db.flush()
        except Exception as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the note",
                context={"note_id": note_id},
            )
        logger.info("Note deleted: %s", note_id)
