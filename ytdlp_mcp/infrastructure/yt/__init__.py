from __future__ import annotations

from .ydl_process import YdlError, YdlProcessRunner, YdlProcessSpec, run_ytdlp

__all__ = ["YdlError", "YdlProcessRunner", "YdlProcessSpec", "run_ytdlp"]
