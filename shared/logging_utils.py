"""
Logging helpers for the screener server.

Library modules only attach a NullHandler; the entry point owns handler setup.
stdout carries MCP JSON-RPC traffic, so every handler writes to stderr.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Chatty transport loggers kept at WARNING
NOISY_LOGGERS = ('httpx', 'httpcore', 'mcp')


def resolve_level(level: Union[int, str]) -> int:
    """Map a level name such as "debug" to its numeric value; unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def get_library_logger(name: str) -> logging.Logger:
    """
    Logger for library code that never configures output on its own.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger with a NullHandler attached
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger


def setup_logger(name: str, level: int = logging.INFO, log_file: Optional[Path] = None) -> logging.Logger:
    """
    Attach a stderr handler (and optionally a file handler) to a named logger.

    Only call this from entry points.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Root handler would print the same record twice
    logger.propagate = False
    return logger


def setup_mcp_server_logging(
    server_name: str,
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Logging setup for the stdio MCP server process.

    Args:
        server_name: Name of the server logger
        level: Level or level name (e.g. "DEBUG"), usually from LOG_LEVEL
        log_dir: Directory for an additional log file; no file when omitted

    Returns:
        Configured server logger
    """
    level = resolve_level(level)

    # Library loggers (cache_manager, shared.*, tradingview_mcp_server.*) reach stderr via root
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT, stream=sys.stderr)

    log_file = log_dir / f"{server_name}.log" if log_dir else None
    logger = setup_logger(server_name, level, log_file)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
