################################################################################
# File Name: logging_config.py
# Purpose/Description: Structured logging configuration and utilities
# Author: Michael Cornelison
# Creation Date: 2026-10-19
# Copyright: (c) 2026 Marine OBD-II Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-19    | M. Cornelison | Initial implementation
# ================================================================================
################################################################################

"""
Logging configuration module.

Provides structured logging with:
- Configurable log levels
- Console and optional file output
- Escaping of raw adapter traffic (CR/LF and prompt characters)
- Consistent pipe-separated formatting

Usage:
    from common.logging_config import setupLogging, getLogger

    setupLogging(level='INFO')
    logger = getLogger(__name__)
    logger.info("Reading received", extra={"extra": {"pid": "0C"}})
"""

import logging
import re
import sys
from pathlib import Path
from typing import Any

# Default log format
DEFAULT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s | %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Characters the adapter emits that would otherwise break a log line
CONTROL_CHAR_ESCAPES = {
    '\r': '\\r',
    '\n': '\\n',
    '\t': '\\t',
}
CONTROL_CHAR_PATTERN = re.compile(r'[\r\n\t]')


class RawTrafficFilter(logging.Filter):
    """
    Logging filter that escapes control characters in log messages.

    ELM327 replies are terminated with carriage returns and frequently carry
    several lines; escaping keeps one adapter exchange on one log line.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Escape control characters in the log record message.

        Args:
            record: Log record to filter

        Returns:
            True (always allows record, but modifies it)
        """
        if hasattr(record, 'msg') and isinstance(record.msg, str):
            record.msg = escapeControlChars(record.msg)

        return True


def escapeControlChars(message: str) -> str:
    """
    Replace CR, LF and TAB with their printable escapes.

    Args:
        message: Text to escape

    Returns:
        Escaped text
    """
    return CONTROL_CHAR_PATTERN.sub(lambda m: CONTROL_CHAR_ESCAPES[m.group(0)], message)


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter for structured logging.

    Adds support for extra fields in log output.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record with extra fields.

        Args:
            record: Log record to format

        Returns:
            Formatted log string
        """
        message = super().format(record)

        extra = getattr(record, 'extra', None)
        if extra and isinstance(extra, dict):
            extraStr = ' | ' + ' '.join(f'{k}={v}' for k, v in extra.items())
            message += extraStr

        return message


def setupLogging(
    level: str = 'INFO',
    logFormat: str | None = None,
    logFile: str | None = None,
    escapeRawTraffic: bool = True
) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        logFormat: Custom format string
        logFile: Optional file path for log output
        escapeRawTraffic: Whether to escape control characters in messages

    Returns:
        Root logger instance
    """
    rootLogger = logging.getLogger()
    rootLogger.setLevel(getattr(logging, level.upper(), logging.INFO))

    rootLogger.handlers.clear()

    formatter = StructuredFormatter(
        fmt=logFormat or DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT
    )

    consoleHandler = logging.StreamHandler(sys.stdout)
    consoleHandler.setFormatter(formatter)
    if escapeRawTraffic:
        consoleHandler.addFilter(RawTrafficFilter())
    rootLogger.addHandler(consoleHandler)

    if logFile:
        logPath = Path(logFile)
        logPath.parent.mkdir(parents=True, exist_ok=True)

        fileHandler = logging.FileHandler(logFile, encoding='utf-8')
        fileHandler.setFormatter(formatter)
        if escapeRawTraffic:
            fileHandler.addFilter(RawTrafficFilter())
        rootLogger.addHandler(fileHandler)

    rootLogger.info(f"Logging configured | level={level}")

    return rootLogger


def getLogger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def logWithContext(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: Any
) -> None:
    """
    Log a message with structured context.

    Args:
        logger: Logger instance
        level: Log level
        message: Log message
        **context: Additional context fields
    """
    logFunc = getattr(logger, level.lower(), logger.info)

    if context:
        contextStr = ' | ' + ' '.join(f'{k}={v}' for k, v in context.items())
        logFunc(message + contextStr)
    else:
        logFunc(message)
