################################################################################
# File Name: error_handler.py
# Purpose/Description: Centralized error handling with classification
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
Error handling module.

Provides centralized error handling with:
- Custom exception classes by error category
- Error classification (transport, timeout, decode, adapter, config, system)
- Structured error reporting

The categories follow how the engine link recovers from each kind of fault:
transport faults end the session and trigger a reconnect, timeouts feed the
liveness counters, decode faults drop one frame, adapter-reported errors are
surfaced upward.

Usage:
    from common.error_handler import DecodeError, handleError

    try:
        readings = decodeReply(lines)
    except Exception as e:
        details = handleError(e, context={'command': '010C'}, reraise=False)
"""

import logging
import traceback
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors for classification."""
    TRANSPORT = 'transport'       # Byte stream open/write/close faults, reconnect
    TIMEOUT = 'timeout'           # No reply within deadline, counted
    DECODE = 'decode'             # Malformed frame, drop and continue
    ADAPTER = 'adapter'           # Adapter/bus reported condition
    CONFIGURATION = 'config'      # Config errors, fail fast
    SYSTEM = 'system'             # Unexpected errors


# ================================================================================
# Custom Exception Classes
# ================================================================================

class BaseError(Exception):
    """Base exception for all custom errors."""

    category: ErrorCategory = ErrorCategory.SYSTEM

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def toDict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            'type': self.__class__.__name__,
            'category': self.category.value,
            'message': self.message,
            'details': self.details
        }


class TransportError(BaseError):
    """Serial/Bluetooth byte stream failure (open, write, unexpected close)."""
    category = ErrorCategory.TRANSPORT


class DecodeError(BaseError):
    """Malformed, truncated or unknown response frame."""
    category = ErrorCategory.DECODE


class AdapterError(BaseError):
    """Adapter-reported condition (NO DATA, ?, UNABLE TO CONNECT, CAN ERROR)."""
    category = ErrorCategory.ADAPTER


class ConfigurationError(BaseError):
    """Configuration validation failure."""
    category = ErrorCategory.CONFIGURATION


# ================================================================================
# Error Classification
# ================================================================================

def classifyError(error: Exception) -> ErrorCategory:
    """
    Classify an error into a category.

    Args:
        error: Exception to classify

    Returns:
        ErrorCategory for the error
    """
    if isinstance(error, BaseError):
        return error.category

    # TimeoutError is an OSError subclass, check it first
    if isinstance(error, TimeoutError):
        return ErrorCategory.TIMEOUT

    if isinstance(error, (OSError, ConnectionError, EOFError)):
        return ErrorCategory.TRANSPORT

    errorType = type(error).__name__.lower()
    errorMessage = str(error).lower()

    # pyserial raises SerialException (an IOError subclass) but other
    # serial backends use their own names
    if any(term in errorType for term in ['serial', 'transport', 'connection']):
        return ErrorCategory.TRANSPORT

    if 'timeout' in errorType:
        return ErrorCategory.TIMEOUT

    if isinstance(error, (ValueError, KeyError, IndexError, TypeError, ZeroDivisionError)):
        return ErrorCategory.DECODE

    if any(term in errorMessage for term in ['config', 'missing', 'required']):
        return ErrorCategory.CONFIGURATION

    return ErrorCategory.SYSTEM


# ================================================================================
# Error Handling
# ================================================================================

def handleError(
    error: Exception,
    context: dict[str, Any] | None = None,
    reraise: bool = True
) -> dict[str, Any]:
    """
    Handle an error with logging and classification.

    Args:
        error: Exception that occurred
        context: Additional context information
        reraise: Whether to re-raise the exception

    Returns:
        Error details dictionary

    Raises:
        The original exception if reraise is True
    """
    category = classifyError(error)
    context = context or {}

    errorDetails = {
        'type': type(error).__name__,
        'category': category.value,
        'message': str(error),
        'context': context,
        'traceback': traceback.format_exc()
    }

    if category == ErrorCategory.CONFIGURATION:
        logger.error(f"Configuration error: {error}")
    elif category == ErrorCategory.DECODE:
        logger.warning(f"Decode error: {error} | context={context}")
    elif category in (ErrorCategory.TIMEOUT, ErrorCategory.TRANSPORT):
        logger.warning(f"{category.value.capitalize()} error: {error}")
    elif category == ErrorCategory.ADAPTER:
        logger.error(f"Adapter error: {error}")
    else:
        logger.error(f"Error: {error}", exc_info=True)

    if reraise:
        raise error

    return errorDetails


def formatError(error: Exception) -> str:
    """
    Format an error for display/logging.

    Args:
        error: Exception to format

    Returns:
        Formatted error string
    """
    category = classifyError(error)

    if isinstance(error, BaseError):
        details = f" | details={error.details}" if error.details else ""
        return f"[{category.value.upper()}] {error.message}{details}"

    return f"[{category.value.upper()}] {type(error).__name__}: {error}"
