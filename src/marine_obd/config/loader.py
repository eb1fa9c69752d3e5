################################################################################
# File Name: loader.py
# Purpose/Description: Monitor configuration loading and validation
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
Monitor configuration loader module.

Loads the JSON configuration of one engine link, resolves ${VAR} and
${VAR:default} placeholders, applies defaults and validates every value
before the connection is built.

Usage:
    from marine_obd.config.loader import loadMonitorConfig, getConnectionSettings

    try:
        config = loadMonitorConfig('monitor_config.json')
    except MonitorConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    settings = getConnectionSettings(config)
"""

import json
import logging
from typing import Any

from common.config_validator import ConfigValidationError, ConfigValidator
from common.env_loader import loadConfigFile

from ..connection.types import MIN_RECONNECT_DELAY_SECONDS, ConnectionSettings
from ..pids.profiles import createLinearMapping, createProfile, getProfile
from ..pids.types import EngineProfile
from ..protocol.commands import MAX_BATCH_SIZE, normalizePid
from ..protocol.exceptions import InvalidPidError
from .exceptions import MonitorConfigError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MONITOR_REQUIRED_FIELDS: list[str] = [
    'connection.port',
]

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

MONITOR_DEFAULTS: dict[str, Any] = {
    # Application
    'application.name': 'Marine OBD-II Engine Monitor',
    'application.version': '1.0.0',

    # Connection
    'connection.baudRate': 38400,
    'connection.batchMode': True,
    'connection.maxBatchSize': 6,
    'connection.continuousMode': True,
    'connection.reconnectDelaySeconds': 5,

    # Timing
    'timing.requestTimeoutSeconds': 1.0,
    'timing.batchRequestTimeoutSeconds': 1.5,
    'timing.adapterCheckTimeoutSeconds': 3.0,
    'timing.engineCheckTimeoutSeconds': 3.0,
    'timing.stageDelaySeconds': 0.5,
    'timing.resetDelaySeconds': 2.0,
    'timing.commandDelaySeconds': 1.0,
    'timing.commandTimeoutSeconds': 2.0,
    'timing.settleDelaySeconds': 2.0,
    'timing.probeIntervalSeconds': 2.0,
    'timing.probeTimeoutSeconds': 2.0,

    # Liveness
    'liveness.noDataThreshold': 5,
    'liveness.maxProbeFailures': 10,

    # Engine
    'engine.manufacturer': 'Generic OBD2',
    'engine.model': 'standard',
    'engine.instance': 'port',
    'engine.pids': [],
    'engine.customMappings': {},

    # Logging
    'logging.level': 'INFO',
    'logging.format': '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
    'logging.file': None,

    # Simulator
    'simulator.engineRunning': True,
    'simulator.supportsBatching': True,
    'simulator.spaces': True,
    'simulator.responseDelaySeconds': 0.05,
}

_BOOLEAN_FIELDS = [
    'connection.batchMode',
    'connection.continuousMode',
    'simulator.engineRunning',
    'simulator.supportsBatching',
    'simulator.spaces',
]

# field -> minimum value (inclusive unless listed in _POSITIVE_FIELDS)
_NUMERIC_FIELDS = {
    'timing.requestTimeoutSeconds': 0,
    'timing.batchRequestTimeoutSeconds': 0,
    'timing.adapterCheckTimeoutSeconds': 0,
    'timing.engineCheckTimeoutSeconds': 0,
    'timing.stageDelaySeconds': 0,
    'timing.resetDelaySeconds': 0,
    'timing.commandDelaySeconds': 0,
    'timing.commandTimeoutSeconds': 0,
    'timing.settleDelaySeconds': 0,
    'timing.probeIntervalSeconds': 0,
    'timing.probeTimeoutSeconds': 0,
    'connection.reconnectDelaySeconds': 0,
    'simulator.responseDelaySeconds': 0,
}

_POSITIVE_FIELDS = [
    'timing.requestTimeoutSeconds',
    'timing.batchRequestTimeoutSeconds',
    'timing.adapterCheckTimeoutSeconds',
    'timing.engineCheckTimeoutSeconds',
    'timing.commandTimeoutSeconds',
    'timing.probeIntervalSeconds',
    'timing.probeTimeoutSeconds',
]


# =============================================================================
# Public API
# =============================================================================

def loadMonitorConfig(
    configPath: str,
    envFilePath: str | None = None
) -> dict[str, Any]:
    """
    Load and validate the monitor configuration from file.

    Performs the following operations:
    1. Load environment variables from .env file
    2. Load configuration JSON file
    3. Resolve placeholders (${VAR} syntax)
    4. Validate required fields
    5. Apply default values
    6. Validate field types and values

    Args:
        configPath: Path to the configuration JSON file
        envFilePath: Optional path to .env file

    Returns:
        Validated configuration dictionary with defaults applied

    Raises:
        MonitorConfigError: If the file cannot be loaded or validation fails
    """
    logger.info(f"Loading monitor configuration from: {configPath}")

    try:
        config = loadConfigFile(configPath, envFilePath)
    except FileNotFoundError:
        raise MonitorConfigError(
            f"Configuration file not found: {configPath}",
            missingFields=['configFile']
        )
    except json.JSONDecodeError as e:
        raise MonitorConfigError(
            f"Invalid JSON in configuration file: {configPath}\n"
            f"Parse error: {e.msg} at line {e.lineno}, column {e.colno}",
            invalidFields=['configFile']
        )
    except OSError as e:
        raise MonitorConfigError(
            f"Cannot read configuration file: {configPath}\nError: {e}",
            missingFields=['configFile']
        )

    config = validateMonitorConfig(config)

    logger.info("Monitor configuration loaded and validated successfully")
    return config


def validateMonitorConfig(config: dict[str, Any]) -> dict[str, Any]:
    """
    Validate the monitor configuration and apply defaults.

    Args:
        config: Raw configuration dictionary

    Returns:
        Validated configuration with defaults applied

    Raises:
        MonitorConfigError: If validation fails
    """
    if not isinstance(config, dict):
        raise MonitorConfigError(
            "Configuration root must be a JSON object",
            invalidFields=['configFile']
        )

    validator = ConfigValidator(
        requiredKeys=MONITOR_REQUIRED_FIELDS,
        defaults=MONITOR_DEFAULTS
    )

    try:
        config = validator.validate(config)
    except ConfigValidationError as e:
        raise MonitorConfigError(
            f"Configuration validation failed: {e}",
            missingFields=e.missingFields
        )

    _validateConnection(config, validator)
    _validateTiming(config, validator)
    _validateLiveness(config, validator)
    _validateEngine(config)
    _validateLogging(config)

    return config


def getConnectionSettings(config: dict[str, Any]) -> ConnectionSettings:
    """
    Build connection settings from a validated configuration.

    Args:
        config: Configuration from loadMonitorConfig()

    Returns:
        ConnectionSettings
    """
    connection = config['connection']
    timing = config['timing']
    liveness = config['liveness']

    return ConnectionSettings(
        port=connection['port'],
        baudRate=connection['baudRate'],
        batchMode=connection['batchMode'],
        maxBatchSize=connection['maxBatchSize'],
        continuousMode=connection['continuousMode'],
        reconnectDelaySeconds=connection['reconnectDelaySeconds'],
        requestTimeoutSeconds=timing['requestTimeoutSeconds'],
        batchRequestTimeoutSeconds=timing['batchRequestTimeoutSeconds'],
        adapterCheckTimeoutSeconds=timing['adapterCheckTimeoutSeconds'],
        engineCheckTimeoutSeconds=timing['engineCheckTimeoutSeconds'],
        stageDelaySeconds=timing['stageDelaySeconds'],
        resetDelaySeconds=timing['resetDelaySeconds'],
        commandDelaySeconds=timing['commandDelaySeconds'],
        commandTimeoutSeconds=timing['commandTimeoutSeconds'],
        settleDelaySeconds=timing['settleDelaySeconds'],
        probeIntervalSeconds=timing['probeIntervalSeconds'],
        probeTimeoutSeconds=timing['probeTimeoutSeconds'],
        noDataThreshold=liveness['noDataThreshold'],
        maxProbeFailures=liveness['maxProbeFailures'],
        instance=config['engine']['instance']
    )


def getEngineProfile(config: dict[str, Any]) -> EngineProfile:
    """
    Build the engine profile from a validated configuration.

    An explicit engine.pids list wins over the built-in profile of
    engine.manufacturer / engine.model.

    Args:
        config: Configuration from loadMonitorConfig()

    Returns:
        EngineProfile
    """
    engine = config['engine']
    mappings = {
        pid: createLinearMapping(mapping.get('scale', 1.0), mapping.get('offset', 0.0))
        for pid, mapping in engine['customMappings'].items()
    }

    if engine['pids']:
        return createProfile(
            engine['pids'],
            manufacturer=engine['manufacturer'],
            model=engine['model'],
            description='Configured PID list',
            customMappings=mappings
        )

    profile = getProfile(engine['manufacturer'], engine['model'])
    for pid, mapping in mappings.items():
        profile.customMappings[normalizePid(pid)] = mapping
    return profile


# =============================================================================
# Private Helpers
# =============================================================================

def _isNumber(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validateConnection(config: dict[str, Any], validator: ConfigValidator) -> None:
    """
    Validate the connection section.

    Raises:
        MonitorConfigError: If a value is invalid
    """
    if not validator.validateField(config, 'connection.port', str):
        raise MonitorConfigError(
            "connection.port must be a device path string",
            invalidFields=['connection.port']
        )

    baudRate = config['connection']['baudRate']
    if not validator.validateField(config, 'connection.baudRate', int) or baudRate <= 0:
        raise MonitorConfigError(
            f"Invalid baud rate: {baudRate}",
            invalidFields=['connection.baudRate']
        )

    for key in _BOOLEAN_FIELDS:
        if not validator.validateField(config, key, bool):
            raise MonitorConfigError(
                f"{key} must be true or false",
                invalidFields=[key]
            )

    maxBatchSize = config['connection']['maxBatchSize']
    if (not validator.validateField(config, 'connection.maxBatchSize', int)
            or not 1 <= maxBatchSize <= MAX_BATCH_SIZE):
        raise MonitorConfigError(
            f"connection.maxBatchSize must be 1..{MAX_BATCH_SIZE}, got {maxBatchSize}",
            invalidFields=['connection.maxBatchSize']
        )


def _validateTiming(config: dict[str, Any], validator: ConfigValidator) -> None:
    """
    Validate timing values and clamp the reconnect delay.

    Raises:
        MonitorConfigError: If a value is invalid
    """
    invalidFields = []
    for key, minimum in _NUMERIC_FIELDS.items():
        value = validator.getNestedValue(config, key)
        if not _isNumber(value) or value < minimum:
            invalidFields.append(key)
        elif key in _POSITIVE_FIELDS and value == 0:
            invalidFields.append(key)

    if invalidFields:
        raise MonitorConfigError(
            f"Invalid timing values: {', '.join(invalidFields)}",
            invalidFields=invalidFields
        )

    timing = config['timing']
    if timing['batchRequestTimeoutSeconds'] < timing['requestTimeoutSeconds']:
        raise MonitorConfigError(
            "timing.batchRequestTimeoutSeconds must not be shorter than "
            "timing.requestTimeoutSeconds",
            invalidFields=['timing.batchRequestTimeoutSeconds']
        )

    reconnectDelay = config['connection']['reconnectDelaySeconds']
    if reconnectDelay < MIN_RECONNECT_DELAY_SECONDS:
        logger.warning(
            f"connection.reconnectDelaySeconds {reconnectDelay} raised to "
            f"{MIN_RECONNECT_DELAY_SECONDS}"
        )
        config['connection']['reconnectDelaySeconds'] = MIN_RECONNECT_DELAY_SECONDS


def _validateLiveness(config: dict[str, Any], validator: ConfigValidator) -> None:
    """
    Validate liveness thresholds.

    Raises:
        MonitorConfigError: If a value is invalid
    """
    threshold = config['liveness']['noDataThreshold']
    if not validator.validateField(config, 'liveness.noDataThreshold', int) or threshold < 1:
        raise MonitorConfigError(
            f"liveness.noDataThreshold must be at least 1, got {threshold}",
            invalidFields=['liveness.noDataThreshold']
        )

    maxProbeFailures = config['liveness']['maxProbeFailures']
    if not validator.validateField(config, 'liveness.maxProbeFailures', int) or maxProbeFailures < 0:
        raise MonitorConfigError(
            f"liveness.maxProbeFailures must not be negative, got {maxProbeFailures}",
            invalidFields=['liveness.maxProbeFailures']
        )


def _validateEngine(config: dict[str, Any]) -> None:
    """
    Validate the engine section and normalize PID identifiers.

    Raises:
        MonitorConfigError: If a value is invalid
    """
    engine = config['engine']

    for key in ('manufacturer', 'model', 'instance'):
        if not isinstance(engine.get(key), str) or not engine[key].strip():
            raise MonitorConfigError(
                f"engine.{key} must be a non-empty string",
                invalidFields=[f'engine.{key}']
            )

    pids = engine['pids']
    if not isinstance(pids, list):
        raise MonitorConfigError(
            "engine.pids must be a list of PID identifiers",
            invalidFields=['engine.pids']
        )

    invalidFields = []
    normalized = []
    for i, pid in enumerate(pids):
        try:
            normalized.append(normalizePid(pid))
        except InvalidPidError:
            invalidFields.append(f'engine.pids[{i}]')

    if invalidFields:
        raise MonitorConfigError(
            f"Invalid PID identifiers in engine.pids: {', '.join(invalidFields)}",
            invalidFields=invalidFields
        )
    engine['pids'] = normalized

    mappings = engine['customMappings']
    if not isinstance(mappings, dict):
        raise MonitorConfigError(
            "engine.customMappings must be an object keyed by PID",
            invalidFields=['engine.customMappings']
        )

    for pid, mapping in mappings.items():
        field = f'engine.customMappings.{pid}'
        try:
            normalizePid(pid)
        except InvalidPidError:
            raise MonitorConfigError(f"Invalid PID identifier: {pid}", invalidFields=[field])

        if not isinstance(mapping, dict) or not all(
            _isNumber(mapping.get(key, 0)) for key in ('scale', 'offset')
        ):
            raise MonitorConfigError(
                f"{field} must be an object with numeric scale/offset",
                invalidFields=[field]
            )


def _validateLogging(config: dict[str, Any]) -> None:
    """
    Validate the logging section.

    Raises:
        MonitorConfigError: If the level is unknown
    """
    level = str(config['logging']['level']).upper()
    if level not in VALID_LOG_LEVELS:
        raise MonitorConfigError(
            f"Invalid log level: '{config['logging']['level']}'. "
            f"Must be one of: {', '.join(VALID_LOG_LEVELS)}",
            invalidFields=['logging.level']
        )
    config['logging']['level'] = level
