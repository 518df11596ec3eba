"""
Notes API Backend: Pydantic Request/Response Schemas
=====================================================

What:  The API contract for notes, plus the collection decode step.
Why:   The same models validate requests, serialize responses, and generate
       the OpenAPI document served at /api-docs, so docs cannot drift from
       behavior.

Wire names:
    Python attributes are snake_case; the JSON keys are the aliases
    (`list`, `createdAt`, `updatedAt`). FastAPI serializes response models
    by alias.
"""

import json
import uuid
from datetime import datetime
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from notes_api.exceptions import PayloadDecodeError


# ══════════════════════════════════════════════════════════════════════════
# Collection Elements
# ══════════════════════════════════════════════════════════════════════════


class ListEntry(BaseModel):
    """One element of a note's `list`."""
    item: str = Field(default="", description="Text of the list item")

    model_config = ConfigDict(coerce_numbers_to_str=True)


class TagEntry(BaseModel):
    """One element of a note's `tags`."""
    name: str = Field(default="", description="Tag name")

    model_config = ConfigDict(coerce_numbers_to_str=True)


_LIST_ADAPTER = TypeAdapter(Optional[List[ListEntry]])
_TAGS_ADAPTER = TypeAdapter(Optional[List[TagEntry]])


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    What:  Full representation of a note.
    Who:   Returned by every endpoint that yields notes.
    """
    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: Optional[str] = Field(default=None, description="Note title")
    content: Optional[str] = Field(default=None, description="Note body")
    image: str = Field(default="", description="URL of the uploaded attachment, or empty")
    list_items: List[ListEntry] = Field(
        default_factory=list, alias="list", description="Checklist entries"
    )
    tags: List[TagEntry] = Field(default_factory=list, description="Tags")
    created_at: datetime = Field(alias="createdAt", description="Creation time (UTC)")
    updated_at: datetime = Field(alias="updatedAt", description="Last update time (UTC)")

    model_config = ConfigDict(populate_by_name=True)


class SearchMessage(BaseModel):
    """Returned by search with status 200 when nothing matched."""
    message: str = Field(default="No Matching Notes Found")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    """
    JSON body accepted by POST /api/notes.

    The route reads the body itself (it also accepts multipart) and validates
    it with this model. `list` and `tags` may also arrive as JSON text; the
    pair is resolved afterwards by `decode_collections`. Numbers in text
    fields are stored as their string form.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    list_items: Optional[Union[List[ListEntry], str]] = Field(
        default=None, alias="list", description="Checklist entries, or the same as JSON text"
    )
    tags: Optional[Union[List[TagEntry], str]] = Field(
        default=None, description="Tags, or the same as JSON text"
    )

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


class NoteCreateForm(BaseModel):
    """
    Multipart form accepted by POST /api/notes.

    Nested structures are flattened by multipart encoding, so `list` and
    `tags` travel as JSON text, e.g. `[{"item": "milk"}]`.
    """
    image: Optional[bytes] = Field(default=None, description="Attachment (jpg, jpeg, png, pdf)")
    title: Optional[str] = None
    content: Optional[str] = None
    list_items: Optional[str] = Field(
        default=None, alias="list", description='JSON text, e.g. [{"item": "milk"}]'
    )
    tags: Optional[str] = Field(default=None, description='JSON text, e.g. [{"name": "home"}]')

    model_config = ConfigDict(populate_by_name=True)

    def to_create(self) -> NoteCreate:
        """The text fields as a NoteCreate; the attachment travels separately."""
        return NoteCreate(
            title=self.title, content=self.content, list_items=self.list_items, tags=self.tags
        )


class NoteUpdate(BaseModel):
    """
    JSON body accepted by PUT /api/notes/{id}.

    Fields left out of the body are not written; `image` is not accepted.
    Numbers in text fields are stored as their string form, as on create.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    list_items: Optional[List[ListEntry]] = Field(default=None, alias="list")
    tags: Optional[List[TagEntry]] = None

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error body for every failure.

    Only two values exist: "Note not found" (404) and
    "Internal Server Error" (500).
    """
    error: str = Field(description="Error description")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    file_storage: str = Field(description="Cloudinary credentials: configured, unconfigured")
    uptime_seconds: float = Field(description="Seconds since service started")


# ══════════════════════════════════════════════════════════════════════════
# Collection Decode Step
# ══════════════════════════════════════════════════════════════════════════


def decode_collections(
    list_value: Any, tags_value: Any
) -> Tuple[List[ListEntry], List[TagEntry]]:
    """
    Turn the submitted `list` and `tags` into typed sequences.

    Rule:
        If EITHER value is a string, BOTH are parsed as JSON text. A partner
        that is absent or already structured cannot be parsed, so the whole
        request is rejected. Otherwise both are taken as submitted.
        Absent or null means an empty sequence.

    Raises:
        PayloadDecodeError: JSON text is malformed or a decoded value is not
                            a sequence of single-field records.
    """
    if isinstance(list_value, str) or isinstance(tags_value, str):
        try:
            list_value = json.loads(list_value)
            tags_value = json.loads(tags_value)
        except (TypeError, ValueError) as e:
            raise PayloadDecodeError(
                message="Could not decode list/tags from text",
                context={"error": str(e)},
            )

    try:
        items = _LIST_ADAPTER.validate_python(list_value) or []
    except SchemaValidationError as e:
        raise PayloadDecodeError(
            message="Malformed list", field="list", context={"errors": e.error_count()}
        )
    try:
        tags = _TAGS_ADAPTER.validate_python(tags_value) or []
    except SchemaValidationError as e:
        raise PayloadDecodeError(
            message="Malformed tags", field="tags", context={"errors": e.error_count()}
        )
    return items, tags
