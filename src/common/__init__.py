################################################################################
# File Name: __init__.py
# Purpose/Description: Common utilities package initialization
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
Common utilities package.

This package provides shared functionality used across the application:
- Configuration validation and loading
- .env loading and ${VAR} expansion
- Logging configuration
- Error handling

Usage:
    from common.config_validator import ConfigValidator
    from common.env_loader import loadConfigFile
    from common.logging_config import getLogger
    from common.error_handler import DecodeError
"""

from .config_validator import ConfigValidationError, ConfigValidator
from .error_handler import (
    AdapterError,
    ConfigurationError,
    DecodeError,
    ErrorCategory,
    TransportError,
    classifyError,
    formatError,
    handleError,
)
from .logging_config import getLogger, logWithContext, setupLogging
from .env_loader import loadConfigFile

__all__ = [
    'ConfigValidator',
    'ConfigValidationError',
    'loadConfigFile',
    'getLogger',
    'logWithContext',
    'setupLogging',
    'ErrorCategory',
    'TransportError',
    'DecodeError',
    'AdapterError',
    'ConfigurationError',
    'classifyError',
    'formatError',
    'handleError'
]
