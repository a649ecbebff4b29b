"""
RecipeBox Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right HTTP status.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    RecipeBoxError (base)
    ├── ValidationError          → 400 Bad Request
    ├── DuplicateEmailError      → 400 Bad Request
    ├── BadCredentialsError      → 400 Bad Request
    ├── UnauthorizedError        → 403 Forbidden (missing/invalid token)
    │   └── InvalidTokenError
    ├── ForbiddenError           → 403 Forbidden (resource owned by someone else)
    ├── NotFoundError            → 404 Not Found
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Iterable, Mapping, Optional


class RecipeBoxError(Exception):
    """
    Base exception for all RecipeBox application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(RecipeBoxError):
    """
    Raised when client input is missing a required field or cannot be coerced.

    HTTP: 400 Bad Request
    """

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

    @classmethod
    def from_errors(cls, errors: Iterable[Mapping[str, Any]]) -> "ValidationError":
        """
        Build from pydantic / FastAPI error dicts.

        Only the field locations are kept; pydantic's `ctx` entries may hold
        objects that are not JSON-serializable.
        """
        fields = []
        for err in errors:
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "path", "query")]
            name = ".".join(loc) or "body"
            if name not in fields:
                fields.append(name)
        return cls(
            message=f"Missing or invalid field(s): {', '.join(fields)}",
            field=fields[0] if len(fields) == 1 else None,
            context={"fields": fields},
        )


class DuplicateEmailError(RecipeBoxError):
    """Raised by registration when the email is already taken. HTTP 400."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="User already exists.", context=context)


class BadCredentialsError(RecipeBoxError):
    """
    Raised by login when the email is unknown or the password does not match.

    The two cases share one message so callers cannot discover which emails are registered.
    HTTP: 400 Bad Request
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid credentials.", context=context)


class UnauthorizedError(RecipeBoxError):
    """
    Raised when a protected route is reached without a valid identity.

    HTTP: 403 Forbidden. Missing header, malformed header and bad token
    all produce the same response.
    """

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTokenError(UnauthorizedError):
    """Raised by TokenService.verify for bad signature, malformed or expired tokens."""


class ForbiddenError(RecipeBoxError):
    """
    Raised when the requester tries to modify a resource owned by another user.

    HTTP: 403 Forbidden
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(
            message=f"You do not have permission to modify this {resource}",
            context=ctx,
        )


class NotFoundError(RecipeBoxError):
    """
    Raised when a requested resource does not exist.

    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(RecipeBoxError):
    """
    Raised when writing an uploaded image fails (disk full, permission denied).

    HTTP: 500 Internal Server Error. File system paths stay in the context.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(RecipeBoxError):
    """
    Raised when a datastore operation fails unexpectedly.

    HTTP: 500 Internal Server Error

    The message returned to the client is a short per-operation summary
    ("Error adding recipe"). Driver errors are kept in the context and logged.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
