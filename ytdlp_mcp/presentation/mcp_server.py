from __future__ import annotations

from typing import Annotated, Literal

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from loguru import logger
from pydantic import Field

from ytdlp_mcp.application.comments import get_video_comments, get_video_comments_summary
from ytdlp_mcp.config import Config
from ytdlp_mcp.constants import APP_NAME
from ytdlp_mcp.domain.errors import DomainError


INSTRUCTIONS = (
    "Read video comments through yt-dlp. "
    "Use ytdlp_get_video_comments_summary for a quick readable overview and "
    "ytdlp_get_video_comments when structured JSON is needed."
)


def build_server(config: Config) -> FastMCP:
    """
    Build the MCP server. Tools close over `config`; nothing is looked up globally.
    """
    mcp = FastMCP(APP_NAME, instructions=INSTRUCTIONS)

    @mcp.tool()
    async def ytdlp_get_video_comments(
        url: Annotated[str, Field(description="Full video URL, e.g. https://www.youtube.com/watch?v=...")],
        max_comments: Annotated[int, Field(ge=1, le=100, description="Maximum number of comments")] = 20,
        sort_order: Annotated[
            Literal["top", "new"],
            Field(description='"top" for most liked, "new" for newest'),
        ] = "top",
    ) -> str:
        """Get video comments as JSON: author, text, likes, pinned/uploader flags, reply parent, timestamps.

        Comments extraction is primarily supported for YouTube. Large responses are truncated
        and marked with `_truncated`.
        """
        try:
            return await get_video_comments(url, max_comments, sort_order, config)
        except DomainError as exc:
            logger.info("ytdlp_get_video_comments failed: {}", exc)
            raise ToolError(str(exc)) from exc

    @mcp.tool()
    async def ytdlp_get_video_comments_summary(
        url: Annotated[str, Field(description="Full video URL, e.g. https://www.youtube.com/watch?v=...")],
        max_comments: Annotated[int, Field(ge=1, le=50, description="Maximum number of comments")] = 10,
    ) -> str:
        """Get a human-readable summary of the top comments of a video."""
        try:
            return await get_video_comments_summary(url, max_comments, config)
        except DomainError as exc:
            logger.info("ytdlp_get_video_comments_summary failed: {}", exc)
            raise ToolError(str(exc)) from exc

    return mcp
