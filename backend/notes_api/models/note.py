"""
Notes API Backend: Note SQLAlchemy Models
==========================================

What:  ORM models for the `notes`, `note_list_items` and `note_tags` tables.
How:   `Note` owns two ordered child collections. Each array element is its own
       row so the search query can match elements individually.

Table Design:
    - UUID primary key, generated in Python so the id exists after flush
    - image: URL returned by the file-storage collaborator, or ""
    - list items / tags: (note_id, position, value); position keeps the
      submission order
    - created_at / updated_at: UTC with timezone

    Children are deleted with their note (ORM delete-orphan cascade plus
    ON DELETE CASCADE on the foreign key).
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notes_api.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A note record.

    Query Patterns:
        - List all:   SELECT ... ORDER BY created_at
        - Get one:    SELECT ... WHERE id = :uuid (primary key)
        - Search:     regex OR across title, content, image and EXISTS
                      subqueries on both child tables
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Never binary content, only a reference to the uploaded object
    image: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # selectin: async sessions cannot lazy-load on attribute access
    list_items: Mapped[List["NoteListItem"]] = relationship(
        back_populates="note",
        order_by="NoteListItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tags: Mapped[List["NoteTag"]] = relationship(
        back_populates="note",
        order_by="NoteTag.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_notes_created_at", created_at),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r})>"


class NoteListItem(Base):
    """One `{item}` entry of a note's list."""

    __tablename__ = "note_list_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    item: Mapped[str] = mapped_column(Text, nullable=False, default="")

    note: Mapped[Note] = relationship(back_populates="list_items")


class NoteTag(Base):
    """One `{name}` entry of a note's tags."""

    __tablename__ = "note_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")

    note: Mapped[Note] = relationship(back_populates="tags")
