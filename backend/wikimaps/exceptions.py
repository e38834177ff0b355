"""
WikiMaps Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the request pipeline.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) translate them into
       a status code plus either a rendered error view or a JSON body.
Who:   Raised by the auth gate, services and routes; caught by global handlers.

Exception Hierarchy:
    WikiMapsError (base)            → 500 Internal Server Error
    ├── AuthenticationRequiredError → 401 Unauthorized (renders user_error)
    ├── PermissionDeniedError       → 403 Forbidden
    ├── NotFoundError               → 404 Not Found
    ├── ValidationError             → 400 Bad Request
    └── PersistenceError            → 500 Internal Server Error

The `context` dict is logged server-side and never returned to the client.
"""

from typing import Any, Dict, Optional


class WikiMapsError(Exception):
    """
    Base exception for all WikiMaps application errors.

    Attributes:
        message:  User-facing error description (safe to return in a response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class AuthenticationRequiredError(WikiMapsError):
    """
    Raised by the auth gate when a protected route has no valid session.

    HTTP:    401 Unauthorized; HTML clients get the user_error view.
    """

    status_code = 401
    error_code = "authentication_required"

    def __init__(
        self,
        message: str = "You must be logged in to view this page.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(WikiMapsError):
    """Raised when the session user acts on a resource owned by someone else."""

    status_code = 403
    error_code = "permission_denied"

    def __init__(
        self,
        message: str = "You are not allowed to do that.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(WikiMapsError):
    """
    Raised when a requested resource does not exist.

    When:    Map, point, user or favourite lookup returned no row.
    HTTP:    404 Not Found

    SQLAlchemy returns None for missing records; services convert that None
    into NotFoundError so an absent entity is never rendered as an empty view.
    """

    status_code = 404
    error_code = "not_found"

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
        self.resource = resource
        self.resource_id = resource_id


class ValidationError(WikiMapsError):
    """
    Raised when submitted form data fails validation.

    When:    Blank map title, non-numeric coordinates, missing fields.
    HTTP:    400 Bad Request
    """

    status_code = 400
    error_code = "validation_error"

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


class PersistenceError(WikiMapsError):
    """
    Raised when a store operation fails (connectivity loss, constraint violation).

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the underlying
    driver error is logged server-side only.
    """

    status_code = 500
    error_code = "persistence_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
