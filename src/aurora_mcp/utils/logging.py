import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", debug_modules: list[str] | None = None) -> logging.Logger:
    """
    Configure the root logger.

    Logs go to stderr: stdout carries the MCP stdio transport.
    ``debug_modules`` lists logger names (e.g. ``aurora_mcp.transport``)
    to raise to DEBUG regardless of ``level``.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level {level!r}")

    logging.basicConfig(
        level=numeric,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    for name in debug_modules or []:
        logging.getLogger(name).setLevel(logging.DEBUG)
    return logging.getLogger("aurora_mcp")
