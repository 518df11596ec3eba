"""
Notes API Backend: Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions raised by services and mapped to HTTP
       responses by the global handlers registered in `notes_api.main`.
How:   Each exception carries a message and an optional context dict. The
       context is logged server-side and never returned to the client.

Exception Hierarchy:
    NotesAPIError (base)
    ├── NotFoundError            → 404 {"error": "Note not found"}
    ├── ValidationError          → 500 {"error": "Internal Server Error"}
    │   └── PayloadDecodeError   → 500
    ├── FileStorageError         → 500
    └── DatabaseError            → 500

Only "not found" is distinguishable by callers. Every other failure
collapses into the same opaque 500 body; the type only drives logging.
"""

from typing import Any, Dict, Optional


class NotesAPIError(Exception):
    """
    Base exception for all application errors.

    Subclasses set `default_message`; callers pass `message` only when they
    have something more specific to log.
    """

    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.context: Dict[str, Any] = dict(context or {})
        super().__init__(self.message)


class NotFoundError(NotesAPIError):
    """No note with the requested id (get, update, delete)."""

    def __init__(self, resource: str = "Note", resource_id: Optional[str] = None, **kwargs):
        super().__init__(message=f"{resource} not found", **kwargs)
        self.context["resource"] = resource
        if resource_id:
            self.context["resource_id"] = resource_id


class ValidationError(NotesAPIError):
    """
    Client input that cannot be accepted: a disallowed attachment extension,
    an empty or oversize file.

    Reported as 500 like every non-404 failure; `field` is for the log.
    """

    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        if field:
            self.context["field"] = field


class PayloadDecodeError(ValidationError):
    """
    Raised by the collection decode step for `list` / `tags`, and when the
    create body itself cannot be read.
    """

    default_message = "Could not decode the request payload"


class FileStorageError(NotesAPIError):
    """
    Cloudinary rejected or failed an upload.

    A successful upload followed by a failed insert leaves the uploaded
    object in place; there is no compensating delete.
    """

    default_message = "File storage operation failed"


class DatabaseError(NotesAPIError):
    """
    A store operation failed: lost connection, an invalid search pattern,
    or a malformed note id.

    Driver messages may contain SQL or schema names, so they go into
    `context` (logged) and never into a response.
    """

    default_message = "A database error occurred"
