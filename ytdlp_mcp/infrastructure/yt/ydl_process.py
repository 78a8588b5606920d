from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Sequence

from loguru import logger

from ytdlp_mcp.constants import YTDLP_EXECUTABLE


class YdlError(RuntimeError):
    """yt-dlp could not be started or exited non-zero. The message carries its stderr."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


@dataclass(frozen=True)
class YdlProcessSpec:
    """
    Immutable spec for running yt-dlp as subprocess.
    """
    args: Sequence[str]
    executable: str = YTDLP_EXECUTABLE


class YdlProcessRunner:
    """
    Runs yt-dlp as an asyncio subprocess and allows controlled termination.
    """

    def __init__(self, spec: YdlProcessSpec) -> None:
        self._spec = spec
        self._process: asyncio.subprocess.Process | None = None

    @property
    def returncode(self) -> int | None:
        return None if self._process is None else self._process.returncode

    async def start(self) -> None:
        if self._process is not None:
            raise RuntimeError("yt-dlp process already started")

        logger.debug("Starting {} {}", self._spec.executable, " ".join(self._spec.args))
        try:
            self._process = await asyncio.create_subprocess_exec(
                self._spec.executable,
                *self._spec.args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise YdlError(
                f"{self._spec.executable} executable not found. Install yt-dlp and make sure it is on PATH."
            ) from exc

    async def wait(self) -> str:
        if self._process is None:
            raise RuntimeError("yt-dlp process not started")

        stdout, stderr = await self._process.communicate()

        if self._process.returncode != 0:
            err = stderr.decode(errors="ignore").strip()
            logger.error("yt-dlp failed ({}): {}", self._process.returncode, err)
            raise YdlError(
                f"yt-dlp exited with code {self._process.returncode}: {err}",
                returncode=self._process.returncode,
                stderr=err,
            )

        return stdout.decode(errors="replace")

    async def terminate(self, timeout: float = 5.0) -> None:
        if self._process is None:
            return

        if self._process.returncode is not None:
            return

        logger.info("Terminating yt-dlp subprocess")
        self._process.terminate()

        try:
            await asyncio.wait_for(self._process.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("yt-dlp did not terminate in time, killing")
            self._process.kill()
            await self._process.wait()


async def run_ytdlp(args: Sequence[str], *, executable: str = YTDLP_EXECUTABLE) -> str:
    """Run yt-dlp to completion and return its stdout. Cancelling the caller stops the process."""
    runner = YdlProcessRunner(YdlProcessSpec(args=tuple(args), executable=executable))
    await runner.start()
    try:
        return await runner.wait()
    except asyncio.CancelledError:
        await runner.terminate()
        raise
