from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from ytdlp_mcp.config import Config, get_cookie_args
from ytdlp_mcp.constants import (
    MSG_MALFORMED_COMMENTS,
    MSG_MORE_COMMENTS,
    MSG_TRUNCATED_COMMENTS,
    SUMMARY_RULE,
    SUMMARY_TEXT_LIMIT,
)
from ytdlp_mcp.domain.errors import (
    AuthenticationRequiredError,
    CommentsDisabledError,
    ExtractionError,
    NetworkError,
    UnsupportedVideoError,
    ValidationError,
    VideoUnavailableError,
)
from ytdlp_mcp.domain.models import Comment, CommentSortOrder, CommentsResponse
from ytdlp_mcp.domain.validators import validate_url
from ytdlp_mcp.infrastructure.yt import run_ytdlp


@dataclass(frozen=True, slots=True)
class _ErrorRule:
    needles: tuple[str, ...]
    error: type[ExtractionError]
    template: str


# Matched against yt-dlp's stderr wording; first match wins.
_ERROR_RULES: tuple[_ErrorRule, ...] = (
    _ErrorRule(
        ("Video unavailable", "private"),
        VideoUnavailableError,
        "Video is unavailable or private: {url}. Check the URL and video privacy settings.",
    ),
    _ErrorRule(
        ("Unsupported URL", "extractor"),
        UnsupportedVideoError,
        "Unsupported platform or video URL: {url}. Comments extraction is primarily supported for YouTube.",
    ),
    _ErrorRule(
        ("network", "Connection"),
        NetworkError,
        "Network error while extracting comments. Check your internet connection and retry.",
    ),
    _ErrorRule(
        ("comments are disabled", "Comments are turned off"),
        CommentsDisabledError,
        "Comments are disabled for this video: {url}",
    ),
    _ErrorRule(
        ("Sign in", "age"),
        AuthenticationRequiredError,
        "This video requires authentication to view comments. Configure cookies in your settings.",
    ),
)


def classify_extraction_error(exc: BaseException, url: str) -> ExtractionError:
    message = str(exc)
    if not message:
        return ExtractionError(f"Failed to extract video comments from {url}")

    for rule in _ERROR_RULES:
        if any(needle in message for needle in rule.needles):
            return rule.error(rule.template.format(url=url))

    return ExtractionError(f"Failed to extract video comments: {message}. Verify the URL is correct.")


def build_comments_args(
    url: str,
    *,
    max_comments: int,
    sort_order: CommentSortOrder,
    config: Config | None,
) -> list[str]:
    return [
        "--dump-json",
        "--no-warnings",
        "--no-check-certificate",
        "--write-comments",
        "--extractor-args",
        f"youtube:comment_sort={sort_order.value};max_comments={max_comments},all,all",
        "--skip-download",
        *(get_cookie_args(config) if config is not None else []),
        url,
    ]


def build_comments_response(metadata: dict[str, Any], max_comments: int) -> CommentsResponse:
    raw_comments = metadata.get("comments") or []
    if not isinstance(raw_comments, list):
        raise ExtractionError(MSG_MALFORMED_COMMENTS)

    try:
        kept = [Comment.model_validate(c) for c in raw_comments[:max_comments]]
    except PydanticValidationError as exc:
        raise ExtractionError(MSG_MALFORMED_COMMENTS) from exc

    return CommentsResponse(
        count=len(kept),
        has_more=len(raw_comments) > max_comments,
        comments=kept,
    )


def fit_to_limit(response: CommentsResponse, character_limit: int) -> str:
    """
    Serialize `response`, dropping trailing comments until it fits `character_limit`.
    Never drops the last remaining comment, so the result may still exceed the limit.
    """
    result = response.to_json()
    comments = list(response.comments)

    while len(result) > character_limit and len(comments) > 1:
        comments = comments[:-1]
        truncated = CommentsResponse(
            count=len(comments),
            has_more=True,
            comments=comments,
            truncated=True,
            message=MSG_TRUNCATED_COMMENTS.format(count=len(comments)),
        )
        result = truncated.to_json()

    if len(comments) < len(response.comments):
        logger.info(
            "Comments response truncated from {} to {} comments ({} chars, limit {})",
            len(response.comments),
            len(comments),
            len(result),
            character_limit,
        )
    return result


def _parse_sort_order(sort_order: CommentSortOrder | str) -> CommentSortOrder:
    try:
        return CommentSortOrder(sort_order)
    except ValueError as exc:
        allowed = ", ".join(o.value for o in CommentSortOrder)
        raise ValidationError(f"Invalid sort order {sort_order!r}. Allowed: {allowed}") from exc


async def get_video_comments(
    url: str,
    max_comments: int = 20,
    sort_order: CommentSortOrder | str = CommentSortOrder.TOP,
    config: Config | None = None,
) -> str:
    """
    Fetch comments for a video with `yt-dlp --write-comments --dump-json`.

    Returns the CommentsResponse as indented JSON. With a config, cookie arguments are
    passed to yt-dlp and the response is cut down to `config.limits.character_limit`.

    Raises:
        ValidationError: bad URL, sort order or max_comments; yt-dlp is not started.
        ExtractionError: yt-dlp failed; the subclass tells which kind of failure.
    """
    url = validate_url(url)
    order = _parse_sort_order(sort_order)
    if max_comments < 1:
        raise ValidationError("max_comments must be at least 1")

    args = build_comments_args(url, max_comments=max_comments, sort_order=order, config=config)

    try:
        output = await run_ytdlp(args)
        metadata = json.loads(output)
    except Exception as exc:
        error = classify_extraction_error(exc, url)
        logger.warning("Comments extraction failed for {}: {}", url, exc)
        raise error from exc

    if not isinstance(metadata, dict):
        raise ExtractionError("Failed to extract video comments: unexpected yt-dlp output. Verify the URL is correct.")

    try:
        response = build_comments_response(metadata, max_comments)
    except ExtractionError as exc:
        logger.warning("Unexpected comments payload from yt-dlp for {}: {}", url, exc.__cause__ or exc)
        raise

    if config is None:
        return response.to_json()
    return fit_to_limit(response, config.limits.character_limit)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_count(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


def _author_line(comment: Comment) -> str:
    line = f"Author: {comment.author or 'Unknown'}"
    if comment.author_is_uploader:
        line += " [UPLOADER]"
    if comment.author_is_verified:
        line += " [VERIFIED]"
    if comment.is_pinned:
        line += " [PINNED]"
    if comment.time_text:
        line += f" ({comment.time_text})"
    if _is_number(comment.like_count) and comment.like_count > 0:
        line += f" - {_format_count(comment.like_count)} likes"
    return line


def render_comments_summary(data: CommentsResponse) -> str:
    lines: list[str] = [
        f"Video Comments ({data.count} shown)",
        SUMMARY_RULE,
        "",
    ]

    for comment in data.comments:
        lines.append(_author_line(comment))

        if comment.text:
            text = str(comment.text)
            if len(text) > SUMMARY_TEXT_LIMIT:
                text = text[:SUMMARY_TEXT_LIMIT] + "..."
            lines.append(text)

        if comment.is_reply:
            lines.append(f"(Reply to comment {comment.parent})")

        lines.append("")

    if data.has_more:
        lines.append("---")
        lines.append(MSG_MORE_COMMENTS)

    return "\n".join(lines)


async def get_video_comments_summary(
    url: str,
    max_comments: int = 10,
    config: Config | None = None,
) -> str:
    """Plain-text digest of the top comments. Errors from get_video_comments propagate unchanged."""
    raw = await get_video_comments(url, max_comments, CommentSortOrder.TOP, config)
    return render_comments_summary(CommentsResponse.model_validate_json(raw))
