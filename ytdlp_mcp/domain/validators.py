from __future__ import annotations

from urllib.parse import urlparse

from ytdlp_mcp.constants import MSG_BAD_URL

from .errors import ValidationError


def validate_url(url: str) -> str:
    """
    Syntactic check only. Whether the site is supported is decided by yt-dlp.
    """
    u = (url or "").strip()
    if not u:
        raise ValidationError(f"{MSG_BAD_URL}: empty URL")
    if any(ch.isspace() for ch in u):
        raise ValidationError(f"{MSG_BAD_URL}: URL must not contain whitespace")

    try:
        parsed = urlparse(u)
    except ValueError as exc:
        raise ValidationError(f"{MSG_BAD_URL}: {url}") from exc

    if parsed.scheme not in ("http", "https"):
        raise ValidationError(f"{MSG_BAD_URL}: URL must start with http:// or https://")
    if not parsed.hostname:
        raise ValidationError(f"{MSG_BAD_URL}: missing host")

    return u
