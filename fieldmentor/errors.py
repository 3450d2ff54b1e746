from typing import Optional


class FieldMentorError(Exception):
    """Base class for errors surfaced to API callers as ``{"error": ...}``."""

    status_code = 500


class AuthError(FieldMentorError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ValidationError(FieldMentorError):
    status_code = 400


class ConfigError(FieldMentorError):
    """Raised when a required credential or setting is missing."""


class UpstreamError(FieldMentorError):
    """The provider answered, but with a non-success status or unusable body."""

    def __init__(self, message: str, *, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class ConnectivityError(FieldMentorError):
    """The provider could not be reached at all."""


class ParseError(FieldMentorError):
    """The model reply could not be turned into a valid result."""
