from __future__ import annotations

from .models import Comment, CommentSortOrder, CommentsResponse
from .errors import (
    AuthenticationRequiredError,
    CommentsDisabledError,
    DomainError,
    ExtractionError,
    NetworkError,
    UnsupportedVideoError,
    ValidationError,
    VideoUnavailableError,
)
from .validators import validate_url

__all__ = [
    "Comment",
    "CommentSortOrder",
    "CommentsResponse",
    "AuthenticationRequiredError",
    "CommentsDisabledError",
    "DomainError",
    "ExtractionError",
    "NetworkError",
    "UnsupportedVideoError",
    "ValidationError",
    "VideoUnavailableError",
    "validate_url",
]
