from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


ROOT_PARENT = "root"


class CommentSortOrder(str, Enum):
    TOP = "top"
    NEW = "new"


class Comment(BaseModel):
    """
    One comment as reported by yt-dlp in the `comments` array of --dump-json.
    Every field is optional; fields missing from the source stay unset and are not serialized.
    Values are kept exactly as yt-dlp reported them, whatever their type.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Any = None
    text: Any = None
    author: Any = None
    author_id: Any = None
    author_url: Any = None
    author_is_uploader: Any = None
    author_is_verified: Any = None
    like_count: Any = None
    is_pinned: Any = None
    is_favorited: Any = None
    parent: Any = None        # comment id, or "root" for top-level
    timestamp: Any = None
    time_text: Any = None

    @property
    def is_reply(self) -> bool:
        return bool(self.parent) and self.parent != ROOT_PARENT


class CommentsResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    count: int
    has_more: bool
    comments: list[Comment]
    # Present only when comments were dropped to fit the size limit
    truncated: Optional[bool] = Field(default=None, alias="_truncated")
    message: Optional[str] = Field(default=None, alias="_message")

    def to_json(self) -> str:
        payload = self.model_dump(by_alias=True, exclude_unset=True)
        return json.dumps(payload, indent=2, ensure_ascii=False)
