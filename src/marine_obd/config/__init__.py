################################################################################
# File Name: __init__.py
# Purpose/Description: Monitor configuration subpackage initialization
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
Monitor configuration subpackage.

Usage:
    from marine_obd.config import loadMonitorConfig, MonitorConfigError
"""

from .exceptions import MonitorConfigError
from .loader import (
    MONITOR_DEFAULTS,
    MONITOR_REQUIRED_FIELDS,
    VALID_LOG_LEVELS,
    getConnectionSettings,
    getEngineProfile,
    loadMonitorConfig,
    validateMonitorConfig,
)

__all__ = [
    'MonitorConfigError',
    'MONITOR_DEFAULTS',
    'MONITOR_REQUIRED_FIELDS',
    'VALID_LOG_LEVELS',
    'getConnectionSettings',
    'getEngineProfile',
    'loadMonitorConfig',
    'validateMonitorConfig',
]
