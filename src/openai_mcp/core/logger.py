import logging
import sys
from typing import Optional, Union

from openai_mcp.core.settings import settings


def setup_logger(
    name: str = __name__,
    level: Optional[Union[int, str]] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.handlers = []
    logger.setLevel(level if level is not None else settings.LOG_LEVEL.upper())

    formatter = logging.Formatter(
        '[%(asctime)s]\t%(levelname)s\t%(name)s:%(lineno)d]\t%(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # stdout carries the MCP stdio stream, so console output goes to stderr.
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
