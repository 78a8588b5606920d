from __future__ import annotations

import re
import shutil
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import Field, ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(RuntimeError):
    pass


VALID_BROWSERS: tuple[str, ...] = (
    "brave", "chrome", "chromium", "edge",
    "firefox", "opera", "safari", "vivaldi", "whale",
)

RESOLUTIONS: tuple[str, ...] = ("480p", "720p", "1080p", "best")
AUDIO_FORMATS: tuple[str, ...] = ("m4a", "mp3")
LOG_LEVELS: frozenset[str] = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})

_SUBTITLE_LANG_RE = re.compile(r"^[a-z]{2,3}(-[A-Z][a-z]{3})?(-[A-Z]{2})?$", re.IGNORECASE)

# Windows illegal characters
DEFAULT_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')

DEFAULT_RESERVED_NAMES: tuple[str, ...] = (
    "CON", "PRN", "AUX", "NUL",
    "COM1", "COM2", "COM3", "COM4", "COM5", "COM6", "COM7", "COM8", "COM9",
    "LPT1", "LPT2", "LPT3", "LPT4", "LPT5", "LPT6", "LPT7", "LPT8", "LPT9",
)


@dataclass(frozen=True, slots=True)
class SanitizeConfig:
    replace_char: str = "_"
    truncate_suffix: str = "..."
    illegal_chars: re.Pattern[str] = DEFAULT_ILLEGAL_CHARS
    reserved_names: tuple[str, ...] = DEFAULT_RESERVED_NAMES


@dataclass(frozen=True, slots=True)
class FileConfig:
    max_filename_length: int = 50
    downloads_dir: str = str(Path.home() / "Downloads")
    temp_dir_prefix: str = "ytdlp-"
    sanitize: SanitizeConfig = field(default_factory=SanitizeConfig)


@dataclass(frozen=True, slots=True)
class ToolsConfig:
    required: tuple[str, ...] = ("yt-dlp",)


@dataclass(frozen=True, slots=True)
class DownloadConfig:
    default_resolution: str = "720p"
    default_audio_format: str = "m4a"
    default_subtitle_language: str = "en"


@dataclass(frozen=True, slots=True)
class LimitsConfig:
    character_limit: int = 25000        # typical MCP response ceiling
    max_transcript_length: int = 50000  # transcripts may run longer


@dataclass(frozen=True, slots=True)
class CookiesConfig:
    """
    Authentication for yt-dlp.
    `file` is a Netscape cookie file, `from_browser` is BROWSER[:PROFILE][::CONTAINER].
    """
    file: Optional[str] = None
    from_browser: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Config:
    file: FileConfig = field(default_factory=FileConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    cookies: CookiesConfig = field(default_factory=CookiesConfig)
    log_level: str = "INFO"


class EnvSettings(BaseSettings):
    """
    Raw environment overrides. Every field maps to one Config leaf; None keeps the default.
    """

    max_filename_length: Optional[int] = Field(default=None, alias="YTDLP_MAX_FILENAME_LENGTH")
    downloads_dir: Optional[str] = Field(default=None, alias="YTDLP_DOWNLOADS_DIR")
    temp_dir_prefix: Optional[str] = Field(default=None, alias="YTDLP_TEMP_DIR_PREFIX")

    sanitize_replace_char: Optional[str] = Field(default=None, alias="YTDLP_SANITIZE_REPLACE_CHAR")
    sanitize_truncate_suffix: Optional[str] = Field(default=None, alias="YTDLP_SANITIZE_TRUNCATE_SUFFIX")
    sanitize_illegal_chars: Optional[str] = Field(default=None, alias="YTDLP_SANITIZE_ILLEGAL_CHARS")
    sanitize_reserved_names: Optional[str] = Field(default=None, alias="YTDLP_SANITIZE_RESERVED_NAMES")

    default_resolution: Optional[str] = Field(default=None, alias="YTDLP_DEFAULT_RESOLUTION")
    default_audio_format: Optional[str] = Field(default=None, alias="YTDLP_DEFAULT_AUDIO_FORMAT")
    default_subtitle_language: Optional[str] = Field(default=None, alias="YTDLP_DEFAULT_SUBTITLE_LANG")

    character_limit: Optional[int] = Field(default=None, alias="YTDLP_CHARACTER_LIMIT")
    max_transcript_length: Optional[int] = Field(default=None, alias="YTDLP_MAX_TRANSCRIPT_LENGTH")

    cookies_file: Optional[str] = Field(default=None, alias="YTDLP_COOKIES_FILE")
    cookies_from_browser: Optional[str] = Field(default=None, alias="YTDLP_COOKIES_FROM_BROWSER")

    log_level: Optional[str] = Field(default=None, alias="YTDLP_MCP_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )


def _pick(value, default):
    return default if value is None else value


def _compile_pattern(raw: str | None, default: re.Pattern[str]) -> re.Pattern[str]:
    if raw is None:
        return default
    try:
        return re.compile(raw)
    except re.error as exc:
        raise ConfigError(f"Invalid YTDLP_SANITIZE_ILLEGAL_CHARS pattern: {raw!r}") from exc


def _split_names(raw: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if raw is None:
        return default
    return tuple(raw.split(","))


def _merge(env: EnvSettings) -> Config:
    base = Config()
    sanitize = base.file.sanitize

    return Config(
        file=FileConfig(
            max_filename_length=_pick(env.max_filename_length, base.file.max_filename_length),
            downloads_dir=_pick(env.downloads_dir, base.file.downloads_dir),
            temp_dir_prefix=_pick(env.temp_dir_prefix, base.file.temp_dir_prefix),
            sanitize=SanitizeConfig(
                replace_char=_pick(env.sanitize_replace_char, sanitize.replace_char),
                truncate_suffix=_pick(env.sanitize_truncate_suffix, sanitize.truncate_suffix),
                illegal_chars=_compile_pattern(env.sanitize_illegal_chars, sanitize.illegal_chars),
                reserved_names=_split_names(env.sanitize_reserved_names, sanitize.reserved_names),
            ),
        ),
        tools=base.tools,
        download=DownloadConfig(
            default_resolution=_pick(env.default_resolution, base.download.default_resolution),
            default_audio_format=_pick(env.default_audio_format, base.download.default_audio_format),
            default_subtitle_language=_pick(
                env.default_subtitle_language, base.download.default_subtitle_language
            ),
        ),
        limits=LimitsConfig(
            character_limit=_pick(env.character_limit, base.limits.character_limit),
            max_transcript_length=_pick(env.max_transcript_length, base.limits.max_transcript_length),
        ),
        cookies=CookiesConfig(
            file=env.cookies_file,
            from_browser=env.cookies_from_browser,
        ),
        log_level=_pick(env.log_level, base.log_level).upper(),
    )


def _validate_structure(config: Config) -> None:
    if config.file.max_filename_length < 5:
        raise ConfigError("max_filename_length must be at least 5")
    if not config.file.downloads_dir:
        raise ConfigError("downloads_dir must be specified")
    if not config.file.temp_dir_prefix:
        raise ConfigError("temp_dir_prefix must be specified")

    if config.download.default_resolution not in RESOLUTIONS:
        raise ConfigError(
            f"Invalid default_resolution={config.download.default_resolution!r}. Allowed: {list(RESOLUTIONS)}"
        )
    if config.download.default_audio_format not in AUDIO_FORMATS:
        raise ConfigError(
            f"Invalid default_audio_format={config.download.default_audio_format!r}. Allowed: {list(AUDIO_FORMATS)}"
        )
    if not _SUBTITLE_LANG_RE.match(config.download.default_subtitle_language):
        raise ConfigError(f"Invalid default_subtitle_language={config.download.default_subtitle_language!r}")

    if config.limits.character_limit <= 0:
        raise ConfigError("character_limit must be > 0")
    if config.limits.max_transcript_length <= 0:
        raise ConfigError("max_transcript_length must be > 0")

    if config.log_level not in LOG_LEVELS:
        raise ConfigError(f"Invalid log level {config.log_level!r}. Allowed: {sorted(LOG_LEVELS)}")


def validate_cookies(cookies: CookiesConfig) -> CookiesConfig:
    """
    Lenient pass: a bad cookie setting is dropped with a warning, never raised.
    Only the browser name is checked; yt-dlp validates profile paths and containers itself.
    """
    cookie_file = cookies.file
    from_browser = cookies.from_browser

    if cookie_file and not Path(cookie_file).exists():
        logger.warning("Cookie file not found: {}, continuing without cookies", cookie_file)
        cookie_file = None

    if from_browser:
        browser_name = from_browser.split(":", 1)[0].lower()
        if browser_name not in VALID_BROWSERS:
            logger.warning(
                "Invalid browser name: {}. Valid browsers: {}",
                browser_name,
                ", ".join(VALID_BROWSERS),
            )
            from_browser = None

    return replace(cookies, file=cookie_file, from_browser=from_browser)


def load_config() -> Config:
    try:
        env = EnvSettings()
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid environment configuration: {exc}") from exc

    config = _merge(env)
    _validate_structure(config)
    return replace(config, cookies=validate_cookies(config.cookies))


def get_cookie_args(config: Config) -> list[str]:
    """yt-dlp cookie arguments. A cookie file takes precedence over browser extraction."""
    if config.cookies.file:
        return ["--cookies", config.cookies.file]
    if config.cookies.from_browser:
        return ["--cookies-from-browser", config.cookies.from_browser]
    return []


def sanitize_filename(filename: str, config: FileConfig) -> str:
    rules = config.sanitize
    safe = rules.illegal_chars.sub(rules.replace_char, filename)

    stem, ext = _split_ext(safe)
    if stem.upper() in rules.reserved_names:
        safe = f"_{safe}"

    if len(safe) > config.max_filename_length:
        keep = config.max_filename_length - len(ext) - len(rules.truncate_suffix)
        safe = f"{safe[:keep]}{rules.truncate_suffix}{ext}"

    return safe


def _split_ext(name: str) -> tuple[str, str]:
    # ".bashrc" has no extension, "a.tar.gz" has ".gz"
    dot = name.rfind(".")
    if dot <= 0:
        return name, ""
    return name[:dot], name[dot:]


def missing_tools(config: Config) -> tuple[str, ...]:
    return tuple(tool for tool in config.tools.required if shutil.which(tool) is None)
