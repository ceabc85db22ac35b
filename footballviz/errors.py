"""
Error types for footballviz.

Every failure the client can surface is a FootballVizError carrying a
machine-readable code and optional details. Stateful objects (query builder,
data explorer, collaboration provider) catch these at the call site and put
the message on an ErrorBanner instead of crashing; only ConfigurationError
is treated as fatal.

Usage:
    from footballviz.errors import APIError, ErrorBanner

    banner = ErrorBanner()
    try:
        await games.list_games()
    except FootballVizError as e:
        banner.show(e)
"""

from typing import Any, Dict, Optional


class FootballVizError(Exception):
    """Base class for all footballviz errors."""

    code = "footballviz_error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}

    @property
    def banner(self) -> str:
        """Short user-facing text for an error banner."""
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(FootballVizError):
    """Required configuration is missing. Fatal at startup."""

    code = "configuration_error"


class APIError(FootballVizError):
    """The backend answered with an error status."""

    code = "api_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.status_code = status_code
        self.endpoint = endpoint

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        data["endpoint"] = self.endpoint
        return data


class AuthenticationError(APIError):
    """The backend rejected the bearer token (401/403)."""

    code = "authentication_error"


class APIConnectionError(FootballVizError):
    """The request never got an answer (DNS, refused connection, timeout)."""

    code = "connection_error"


class FileValidationError(FootballVizError):
    """A file was rejected client-side before upload."""

    code = "file_validation_error"


class UnknownFieldError(FootballVizError):
    """A query condition references a field the schema does not define."""

    code = "unknown_field"

    def __init__(self, field: str):
        super().__init__(f"Unknown field: {field}", details={"field": field})
        self.field = field


class QueryTreeError(FootballVizError):
    """An edit addressed a node that does not exist or is not allowed."""

    code = "query_tree_error"


class CollaborationError(FootballVizError):
    """The real-time channel was used in a state that does not allow it."""

    code = "collaboration_error"


class ErrorBanner:
    """
    Holds the last error message shown to the user.

    Mirrors the dismissible inline banners of the dashboard: setting a new
    error replaces the old one, dismiss() clears it.
    """

    def __init__(self):
        self.message: Optional[str] = None
        self.error: Optional[Exception] = None

    def show(self, error: Exception, fallback: Optional[str] = None) -> None:
        self.error = error
        if isinstance(error, FootballVizError):
            self.message = error.banner
        else:
            self.message = fallback or str(error) or type(error).__name__

    def dismiss(self) -> None:
        self.message = None
        self.error = None

    def __bool__(self) -> bool:
        return self.message is not None


__all__ = [
    "FootballVizError",
    "ConfigurationError",
    "APIError",
    "AuthenticationError",
    "APIConnectionError",
    "FileValidationError",
    "UnknownFieldError",
    "QueryTreeError",
    "CollaborationError",
    "ErrorBanner",
]
