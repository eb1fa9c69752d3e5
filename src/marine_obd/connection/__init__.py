################################################################################
# File Name: __init__.py
# Purpose/Description: Connection subpackage initialization
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
Engine connection subpackage.

Modules:
- types: liveness state, control signals, settings, event names
- timers: named one-shot timers
- events: event emitter
- state_machine: liveness state machine
- sequencer: adapter/engine verification and adapter setup
- transport: asyncio serial transport
- connection: Obd2Connection, the owner of all of the above
- helpers: createConnectionFromConfig

Usage:
    from marine_obd.connection import Obd2Connection, ConnectionSettings
"""

from .types import (
    CONNECTION_EVENTS,
    EVENT_ADAPTER_ERROR,
    EVENT_ADAPTER_VERIFIED,
    EVENT_BUS_ERROR,
    EVENT_CONNECTION_LOST,
    EVENT_DECODE_ERROR,
    EVENT_DISCONNECTED,
    EVENT_ENGINE_OFF,
    EVENT_ENGINE_VERIFIED,
    EVENT_INITIALIZED,
    EVENT_READING,
    EVENT_STATE_CHANGE,
    MIN_RECONNECT_DELAY_SECONDS,
    ConnectionEvent,
    ConnectionSettings,
    ControlSignal,
    EventKind,
    HandshakeResult,
    LivenessState,
    LivenessStatus,
)
from .exceptions import ConnectionClosedError, TransportOpenError
from .timers import TimerSet
from .events import EventEmitter
from .state_machine import ConnectionStateMachine
from .sequencer import InitializationSequencer
from .transport import AdapterProtocol, openSerialTransport
from .connection import PROBE_TIMER, RECONNECT_TIMER, Obd2Connection
from .helpers import createConnectionFromConfig

__all__ = [
    # Types
    'CONNECTION_EVENTS',
    'EVENT_ADAPTER_ERROR',
    'EVENT_ADAPTER_VERIFIED',
    'EVENT_BUS_ERROR',
    'EVENT_CONNECTION_LOST',
    'EVENT_DECODE_ERROR',
    'EVENT_DISCONNECTED',
    'EVENT_ENGINE_OFF',
    'EVENT_ENGINE_VERIFIED',
    'EVENT_INITIALIZED',
    'EVENT_READING',
    'EVENT_STATE_CHANGE',
    'MIN_RECONNECT_DELAY_SECONDS',
    'ConnectionEvent',
    'ConnectionSettings',
    'ControlSignal',
    'EventKind',
    'HandshakeResult',
    'LivenessState',
    'LivenessStatus',
    # Exceptions
    'ConnectionClosedError',
    'TransportOpenError',
    # Components
    'TimerSet',
    'EventEmitter',
    'ConnectionStateMachine',
    'InitializationSequencer',
    'AdapterProtocol',
    'openSerialTransport',
    'Obd2Connection',
    'PROBE_TIMER',
    'RECONNECT_TIMER',
    # Helpers
    'createConnectionFromConfig',
]
