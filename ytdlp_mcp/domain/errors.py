from __future__ import annotations


class DomainError(Exception):
    """Base domain error; its message is shown to the MCP client as is."""


class ValidationError(DomainError):
    pass


class ExtractionError(DomainError):
    pass


class VideoUnavailableError(ExtractionError):
    pass


class UnsupportedVideoError(ExtractionError):
    pass


class NetworkError(ExtractionError):
    pass


class CommentsDisabledError(ExtractionError):
    pass


class AuthenticationRequiredError(ExtractionError):
    pass
