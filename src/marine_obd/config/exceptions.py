################################################################################
# File Name: exceptions.py
# Purpose/Description: Monitor configuration exception classes
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
Monitor configuration exception classes.

Usage:
    from marine_obd.config.exceptions import MonitorConfigError

    try:
        config = loadMonitorConfig('path/to/monitor_config.json')
    except MonitorConfigError as e:
        print(f"Config error: {e}")
        print(f"Missing fields: {e.missingFields}")
        print(f"Invalid fields: {e.invalidFields}")
"""

from common.error_handler import ConfigurationError


class MonitorConfigError(ConfigurationError):
    """
    Raised when monitor configuration loading or validation fails.

    Attributes:
        missingFields: List of required field paths that are missing
        invalidFields: List of field paths with invalid values
    """

    def __init__(
        self,
        message: str,
        missingFields: list[str] | None = None,
        invalidFields: list[str] | None = None
    ):
        """
        Initialize the configuration error.

        Args:
            message: Human-readable error description
            missingFields: List of required field paths that are missing
            invalidFields: List of field paths with invalid values
        """
        self.missingFields = missingFields or []
        self.invalidFields = invalidFields or []
        super().__init__(message, {
            'missingFields': self.missingFields,
            'invalidFields': self.invalidFields,
        })
