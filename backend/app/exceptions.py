"""
Docsmith Backend: Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return a JSON error body with the matching HTTP status code.
Who:   Raised by collaborators and services; caught by global handlers.
When:  During request processing.

Exception Hierarchy:
    DocsmithError (base)
    ├── ValidationError            → 400 Bad Request (missing input, unsupported type)
    ├── NotFoundError              → 404 Not Found
    ├── ServiceError               → 500 (one operation failed; short message for the client)
    │   └── DownloadGenerationError→ 500 (document regeneration for download failed)
    ├── DatabaseError              → 500 (metadata persistence failed)
    ├── BlobStorageError           → 500 (blob upload/download failed)
    └── DocumentProcessingError    → 500 (extraction, rendering or PDF conversion failed)

Collaborator errors (DatabaseError, BlobStorageError, DocumentProcessingError)
carry detailed context for the logs. Services wrap them in a ServiceError
whose message names the failed operation ("Failed to upload template"), so
the client only ever sees that short message.
"""

from typing import Any, Dict, Optional


class DocsmithError(Exception):
    """
    Base exception for all Docsmith application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(DocsmithError):
    """
    Raised when client input is missing or unusable.

    When:    No file in an upload, missing templateId/placeholderData,
             a template whose file type cannot be rendered, malformed request.
    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(DocsmithError):
    """
    Raised when a requested resource does not exist.

    The repository returns None for missing records; services convert that
    None into this exception so routes never deal with status codes.

    Example:
        NotFoundError("Template", 42) → message "Template not found"
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ServiceError(DocsmithError):
    """
    Raised when an operation fails for a reason the client cannot fix.

    What:    Wraps any collaborator failure inside one service operation.
    HTTP:    500 Internal Server Error
    Message: Short operation-level text, e.g. "Failed to fetch templates".
    """

    def __init__(
        self,
        message: str = "Operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DownloadGenerationError(ServiceError):
    """
    Raised when regenerating a document for download fails.

    Kept distinct from the outer "Failed to download document" error so the
    two failure points can be told apart in the logs; the response shape is
    identical.
    """

    def __init__(
        self,
        message: str = "Failed to generate download file",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(DocsmithError):
    """
    Raised when metadata persistence fails.

    Security Note:
        The message returned to the client is always generic. Query text,
        constraint names and driver errors go to the logs only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BlobStorageError(DocsmithError):
    """
    Raised when the blob store rejects or fails an upload/download.

    When:    Supabase returned a non-2xx status, the HTTP request failed,
             or the local storage volume could not be read/written.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DocumentProcessingError(DocsmithError):
    """
    Raised when a template cannot be parsed, rendered, or converted to PDF.

    When:    Corrupt or mislabelled upload (e.g. a spreadsheet named .docx),
             LibreOffice missing, conversion timed out or exited non-zero.
    """

    def __init__(
        self,
        message: str = "Document processing failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
