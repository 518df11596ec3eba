"""Create notes, note_list_items and note_tags tables

Revision ID: 001
Revises: None
Create Date: 2026-10-16 00:00:00.000000+00:00

What:  Initial schema for the note store.
How:   One row per note; `list` and `tags` elements live in child tables
       keyed by (note_id, position) so search can match each element.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        # URL of the uploaded attachment, "" when there is none
        sa.Column("image", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_notes_created_at", "notes", ["created_at"])

    op.create_table(
        "note_list_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("note_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("item", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_note_list_items_note_id", "note_list_items", ["note_id"])

    op.create_table(
        "note_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("note_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_note_tags_note_id", "note_tags", ["note_id"])


def downgrade() -> None:
    op.drop_index("ix_note_tags_note_id", table_name="note_tags")
    op.drop_table("note_tags")
    op.drop_index("ix_note_list_items_note_id", table_name="note_list_items")
    op.drop_table("note_list_items")
    op.drop_index("idx_notes_created_at", table_name="notes")
    op.drop_table("notes")
