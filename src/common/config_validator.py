################################################################################
# File Name: config_validator.py
# Purpose/Description: Configuration validation with required fields and defaults
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
Configuration validation module.

Provides validation of configuration files with:
- Required field checking
- Default value application
- Nested configuration support (dot notation keys)
- Clear error messages for missing/invalid fields

Usage:
    from common.config_validator import ConfigValidator

    validator = ConfigValidator(requiredKeys=['connection.port'])
    config = validator.validate(rawConfig)
"""

import copy
import logging
from typing import Any

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, missingFields: list[str] | None = None):
        super().__init__(message)
        self.missingFields = missingFields or []


# Keys every engine link configuration must carry
REQUIRED_KEYS: list[str] = [
    'connection.port',
]

# Application-level defaults; the engine link adds its own on top
DEFAULTS: dict[str, Any] = {
    'application.name': 'Marine OBD-II Engine Monitor',
    'application.version': '1.0.0',
    'logging.level': 'INFO',
    'logging.format': '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
}


class ConfigValidator:
    """
    Validates configuration dictionaries.

    Provides methods to:
    - Check for required fields
    - Apply default values
    - Validate field types
    - Return fully validated configuration

    Attributes:
        requiredKeys: List of required configuration keys (dot notation)
        defaults: Dictionary of default values for optional fields
    """

    def __init__(
        self,
        requiredKeys: list[str] | None = None,
        defaults: dict[str, Any] | None = None
    ):
        """
        Initialize the validator.

        Args:
            requiredKeys: List of required keys in dot notation (e.g., 'connection.port')
            defaults: Dictionary of default values in dot notation
        """
        self.requiredKeys = REQUIRED_KEYS if requiredKeys is None else requiredKeys
        self.defaults = DEFAULTS if defaults is None else defaults

    def validate(self, config: dict[str, Any]) -> dict[str, Any]:
        """
        Validate and enhance configuration.

        Args:
            config: Raw configuration dictionary

        Returns:
            Validated configuration with defaults applied

        Raises:
            ConfigValidationError: If required fields are missing
        """
        missingFields = self._validateRequired(config)
        if missingFields:
            fieldList = ', '.join(missingFields)
            raise ConfigValidationError(
                f"Missing required configuration fields: {fieldList}",
                missingFields=missingFields
            )

        config = self._applyDefaults(config)

        logger.info("Configuration validated successfully")
        return config

    def _validateRequired(self, config: dict[str, Any]) -> list[str]:
        """Return the required keys that are absent or empty."""
        missingFields = []

        for key in self.requiredKeys:
            value = self.getNestedValue(config, key)
            if value is None or value == '':
                missingFields.append(key)

        return missingFields

    def _applyDefaults(self, config: dict[str, Any]) -> dict[str, Any]:
        """Fill in defaults for optional fields that are absent."""
        for key, defaultValue in self.defaults.items():
            if self.getNestedValue(config, key) is None:
                # Mutable defaults (lists) must not be shared between configs
                self._setNestedValue(config, key, copy.deepcopy(defaultValue))
                logger.debug(f"Applied default for {key}: {defaultValue}")

        return config

    def getNestedValue(self, config: dict[str, Any], key: str) -> Any:
        """
        Get a value from nested dictionary using dot notation.

        Args:
            config: Configuration dictionary
            key: Dot-notation key (e.g., 'connection.port')

        Returns:
            Value if found, None otherwise
        """
        keys = key.split('.')
        value = config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return None

        return value

    def _setNestedValue(self, config: dict[str, Any], key: str, value: Any) -> None:
        """Set a value in nested dictionary using dot notation."""
        keys = key.split('.')
        current = config

        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def validateField(
        self,
        config: dict[str, Any],
        key: str,
        expectedType: type | tuple,
        allowNone: bool = False
    ) -> bool:
        """
        Validate a specific field's type.

        Args:
            config: Configuration dictionary
            key: Dot-notation key to validate
            expectedType: Expected Python type (or tuple of types)
            allowNone: Whether None is acceptable

        Returns:
            True if valid, False otherwise
        """
        value = self.getNestedValue(config, key)

        if value is None:
            return allowNone

        # bool is an int subclass; a flag is never a valid number
        if isinstance(value, bool) and expectedType is not bool and (
            expectedType in (int, float) or
            (isinstance(expectedType, tuple) and bool not in expectedType)
        ):
            return False

        return isinstance(value, expectedType)
