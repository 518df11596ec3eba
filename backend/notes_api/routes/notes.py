"""
Notes API Backend: Notes Route Handlers
========================================

What:  The `/api/notes` route table: search, list, get, create, update, delete.
How:   Extract input from the request, call NoteService, return the model.
       Failures are raised as application exceptions and turned into
       responses by the handlers registered in `notes_api.main`.

Route order matters: `/search` is declared before `/{note_id}` so it is not
captured as an id.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Type, Union

from fastapi import APIRouter, Body, Depends, Path, Query, Request, Response
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from notes_api.database import get_db_session
from notes_api.exceptions import PayloadDecodeError
from notes_api.schemas.note import (
    ErrorResponse,
    NoteCreate,
    NoteCreateForm,
    NoteResponse,
    NoteUpdate,
    SearchMessage,
)
from notes_api.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])

TEXT_FIELDS = ("title", "content", "list", "tags")

_SERVER_ERROR = {"description": "Internal server error", "model": ErrorResponse}
_NOT_FOUND = {"description": "Note not found", "model": ErrorResponse}


def get_note_service(request: Request) -> NoteService:
    """Dependency returning the NoteService built in `create_app()`."""
    return request.app.state.note_service


def _create_request_body() -> Dict[str, Any]:
    """
    OpenAPI request body for POST /api/notes.

    The handler reads the body itself because it accepts two encodings, so
    the schema is taken from the pydantic models instead of the signature.
    """
    ref_template = "#/components/schemas/{model}"
    json_schema = NoteCreate.model_json_schema(ref_template=ref_template)
    json_schema.pop("$defs", None)
    return {
        "requestBody": {
            "required": True,
            "content": {
                "multipart/form-data": {
                    "schema": NoteCreateForm.model_json_schema(ref_template=ref_template),
                },
                "application/json": {"schema": json_schema},
            },
        }
    }


def _validated(model: Type[BaseModel], data: Any) -> BaseModel:
    """Validate a create body with its request model; failures are decode errors."""
    try:
        return model.model_validate(data)
    except SchemaValidationError as e:
        first = e.errors()[0]
        raise PayloadDecodeError(
            message=f"Invalid {model.__name__} body",
            field=".".join(str(part) for part in first["loc"]) or None,
            context={"errors": e.error_count(), "reason": first["msg"]},
        )


async def _read_create_payload(
    request: Request,
) -> Tuple[NoteCreate, Optional[Tuple[str, bytes]]]:
    """
    Pull the note fields and the optional attachment out of the request.

    JSON bodies are validated with NoteCreate and carry no attachment.
    Multipart bodies are validated with NoteCreateForm and may carry an
    `image` file part. An unreadable or invalid body is a decode failure
    like malformed `list`/`tags` text.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except Exception as e:
            raise PayloadDecodeError(
                message="Request body is not valid JSON",
                context={"error_type": type(e).__name__},
            )
        return _validated(NoteCreate, body), None

    try:
        form = await request.form()
    except Exception as e:
        raise PayloadDecodeError(
            message="Could not read form data",
            context={"error_type": type(e).__name__},
        )

    try:
        # A file part under a text name fails validation as a non-string
        text_fields = {name: form[name] for name in TEXT_FIELDS if name in form}
        payload = _validated(NoteCreateForm, text_fields).to_create()

        attachment = None
        upload = form.get("image")
        if isinstance(upload, UploadFile):
            data = await upload.read()
            # Browsers send an empty, nameless part when no file was picked
            if upload.filename or data:
                attachment = (upload.filename or "upload", data)
                logger.info(
                    "Received attachment: filename=%s, size=%d bytes",
                    upload.filename or "unknown",
                    len(data),
                )
        return payload, attachment
    finally:
        await form.close()



@router.get(
    "/search",
    response_model=Union[List[NoteResponse], SearchMessage],
    responses={
        200: {"description": "Matching notes, or a message when nothing matched"},
        500: _SERVER_ERROR,
    },
    summary="Search notes",
    description=(
        "Case-insensitive pattern match across title, content, list items, tag names "
        "and image URL. An absent query matches every note."
    ),
)
async def search_notes(
    query: Optional[str] = Query(default=None, description="Search query"),
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> Union[List[NoteResponse], SearchMessage]:
    notes = await service.search_notes(db, query)
    if not notes:
        return SearchMessage()
    return notes


@router.get(
    "",
    response_model=List[NoteResponse],
    responses={500: _SERVER_ERROR},
    summary="Get all notes",
    description="Retrieve every note, unpaginated.",
)
async def list_notes(
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> List[NoteResponse]:
    return await service.list_notes(db)


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses={404: _NOT_FOUND, 500: _SERVER_ERROR},
    summary="Get a single note by ID",
)
async def get_note(
    # Plain string: a malformed id must reach the service, not fail with 422
    note_id: str = Path(description="Note ID"),
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> NoteResponse:
    return await service.get_note(db, note_id)


@router.post(
    "",
    status_code=201,
    response_model=NoteResponse,
    responses={201: {"description": "Note created"}, 500: _SERVER_ERROR},
    summary="Create a new note",
    description=(
        "Create a note from multipart form data (optional `image` file; `list` and "
        "`tags` as JSON text) or from a JSON body with structured `list` and `tags`. "
        "The image is uploaded to cloud storage and its URL stored on the note."
    ),
    openapi_extra=_create_request_body(),
)
async def create_note(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> NoteResponse:
    payload, attachment = await _read_create_payload(request)
    return await service.create_note(
        db,
        title=payload.title,
        content=payload.content,
        list_value=payload.list_items,
        tags_value=payload.tags,
        attachment=attachment,
    )


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    responses={404: _NOT_FOUND, 500: _SERVER_ERROR},
    summary="Update a note by ID",
    description="Overwrite title, content, list and tags. The image is left unchanged.",
)
async def update_note(
    note_id: str = Path(description="The ID of the note to update"),
    changes: Optional[NoteUpdate] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> NoteResponse:
    return await service.update_note(db, note_id, changes or NoteUpdate())


@router.delete(
    "/{note_id}",
    status_code=204,
    response_class=Response,
    responses={204: {"description": "Note successfully deleted"}, 404: _NOT_FOUND, 500: _SERVER_ERROR},
    summary="Delete a note by ID",
)
async def delete_note(
    note_id: str = Path(description="Note ID"),
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> Response:
    await service.delete_note(db, note_id)
    return Response(status_code=204)
