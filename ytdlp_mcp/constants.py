from __future__ import annotations


APP_NAME: str = "ytdlp-mcp"

YTDLP_EXECUTABLE: str = "yt-dlp"

# Client-facing, short messages (no stack traces)
MSG_MORE_COMMENTS: str = "More comments available. Increase maxComments to see more."
MSG_TRUNCATED_COMMENTS: str = (
    "Response truncated to {count} comments due to size limits. Use smaller maxComments value."
)
MSG_MALFORMED_COMMENTS: str = (
    "Failed to extract video comments: yt-dlp returned malformed comment data. Verify the URL is correct."
)
MSG_BAD_URL: str = "Invalid or unsupported URL format"

SUMMARY_RULE: str = "─" * 30
SUMMARY_TEXT_LIMIT: int = 300
