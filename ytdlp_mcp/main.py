from __future__ import annotations

import sys

from loguru import logger

from .config import ConfigError, load_config, missing_tools
from .constants import APP_NAME
from .logging_setup import setup_logging
from .presentation.mcp_server import build_server


def main() -> None:
    try:
        config = load_config()
    except ConfigError as exc:
        print(f"{APP_NAME}: configuration error: {exc}", file=sys.stderr)
        sys.exit(2)

    setup_logging(level=config.log_level)

    missing = missing_tools(config)
    if missing:
        logger.error("Required tools not found on PATH: {}", ", ".join(missing))
        sys.exit(2)

    if config.cookies.file:
        logger.info("Using cookie file {}", config.cookies.file)
    elif config.cookies.from_browser:
        logger.info("Using cookies from browser {}", config.cookies.from_browser)

    server = build_server(config)
    logger.info("{} MCP server starting (stdio)", APP_NAME)
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
