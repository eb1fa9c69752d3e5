################################################################################
# File Name: __init__.py
# Purpose/Description: Marine OBD-II engine monitor package initialization
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
Marine OBD-II engine monitor package.

Polls a marine engine's ECU through an ELM327-compatible adapter and
publishes decoded sensor readings and link liveness as events.

Subpackages:
- protocol: ELM327 wire vocabulary, reply framing and decoding
- pids: PID definitions and engine profiles
- scheduler: round-robin poll scheduling with batching
- connection: liveness state machine, handshake and Obd2Connection
- config: monitor configuration loading and validation
- simulator: ELM327 emulator and simulated transport

Usage:
    from marine_obd import loadMonitorConfig, createConnectionFromConfig

    config = loadMonitorConfig('monitor_config.json')
    connection = createConnectionFromConfig(config)
    connection.on('reading', lambda reading: print(reading.toDict()))
    await connection.connect()
"""

# connection before config: config.loader reads connection.types
from .connection import (
    CONNECTION_EVENTS,
    ConnectionSettings,
    LivenessState,
    Obd2Connection,
    createConnectionFromConfig,
)
from .config import (
    MonitorConfigError,
    getConnectionSettings,
    getEngineProfile,
    loadMonitorConfig,
)
from .pids import EngineProfile, PidLookup, getProfile
from .protocol import Reading, ResponseCategory

__version__ = '1.0.0'

__all__ = [
    'CONNECTION_EVENTS',
    'ConnectionSettings',
    'LivenessState',
    'Obd2Connection',
    'createConnectionFromConfig',
    'MonitorConfigError',
    'getConnectionSettings',
    'getEngineProfile',
    'loadMonitorConfig',
    'EngineProfile',
    'PidLookup',
    'getProfile',
    'Reading',
    'ResponseCategory',
]
