################################################################################
# File Name: types.py
# Purpose/Description: Connection type definitions, settings and event names
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
Connection type definitions.

Provides the liveness state, the control signals the state machine sends to
its owner, the events on the connection's inbox, connection settings and the
names of the events emitted to the surrounding application.

Usage:
    from marine_obd.connection.types import LivenessState, ConnectionSettings
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# =============================================================================
# Emitted Event Names
# =============================================================================

EVENT_READING = 'reading'
EVENT_STATE_CHANGE = 'stateChange'
EVENT_ADAPTER_VERIFIED = 'adapterVerified'
EVENT_ADAPTER_ERROR = 'adapterError'
EVENT_ENGINE_VERIFIED = 'engineVerified'
EVENT_ENGINE_OFF = 'engineOff'
EVENT_DECODE_ERROR = 'decodeError'
EVENT_CONNECTION_LOST = 'connectionLost'
EVENT_INITIALIZED = 'initialized'
EVENT_BUS_ERROR = 'busError'
EVENT_DISCONNECTED = 'disconnected'

CONNECTION_EVENTS = (
    EVENT_READING,
    EVENT_STATE_CHANGE,
    EVENT_ADAPTER_VERIFIED,
    EVENT_ADAPTER_ERROR,
    EVENT_ENGINE_VERIFIED,
    EVENT_ENGINE_OFF,
    EVENT_DECODE_ERROR,
    EVENT_CONNECTION_LOST,
    EVENT_INITIALIZED,
    EVENT_BUS_ERROR,
    EVENT_DISCONNECTED,
)

# =============================================================================
# Constants
# =============================================================================

MIN_RECONNECT_DELAY_SECONDS = 5.0
DEFAULT_NO_DATA_THRESHOLD = 5
DEFAULT_MAX_PROBE_FAILURES = 10


# =============================================================================
# Enums
# =============================================================================

class LivenessState(Enum):
    """Connection liveness; exactly one value at a time."""

    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    ADAPTER_CHECK = 'adapter_check'
    ENGINE_CHECK = 'engine_check'
    INITIALIZING = 'initializing'
    ACTIVE = 'active'
    PROBING = 'probing'
    ENGINE_OFF = 'engine_off'


class ControlSignal(Enum):
    """Instructions from the state machine to the connection owner."""

    START_PROBING = 'start_probing'
    SCHEDULE_PROBE = 'schedule_probe'
    RESUME_POLLING = 'resume_polling'
    RESUME_INITIALIZATION = 'resume_initialization'
    CONNECTION_LOST = 'connection_lost'
    SCHEDULE_RECONNECT = 'schedule_reconnect'
    REQUEST_NEXT = 'request_next'


class HandshakeResult(Enum):
    """Outcome of the initialization sequence."""

    READY = 'ready'
    ADAPTER_NOT_FOUND = 'adapter_not_found'
    ENGINE_OFF = 'engine_off'


class EventKind(Enum):
    """Kinds of events on a connection's inbox."""

    DATA = 'data'
    CLOSED = 'closed'
    TIMER = 'timer'
    CONTROL = 'control'


# =============================================================================
# Dataclasses
# =============================================================================

@dataclass(frozen=True)
class ConnectionEvent:
    """
    One item on the connection inbox.

    Attributes:
        kind: Event kind
        payload: Bytes for DATA, exception or None for CLOSED, callable for
            TIMER, ControlSignal for CONTROL
        source: Protocol instance that produced a transport event
    """

    kind: EventKind
    payload: Any = None
    source: Any = None


@dataclass
class LivenessStatus:
    """
    Liveness state plus its auxiliary counters.

    Attributes:
        state: Current liveness state
        consecutiveNoDataCount: NO DATA replies/timeouts in a row while active
        consecutiveProbeFailures: Unanswered probes in a row
        lastSuccessfulReadingAt: Time of the last decoded reading
        lastProbeAt: Time of the last probe reply
        adapterIdentity: Identity string reported by the adapter
        lastStateChangeAt: Time of the last transition
    """

    state: LivenessState = LivenessState.DISCONNECTED
    consecutiveNoDataCount: int = 0
    consecutiveProbeFailures: int = 0
    lastSuccessfulReadingAt: float | None = None
    lastProbeAt: float | None = None
    adapterIdentity: str | None = None
    lastStateChangeAt: float | None = None

    def toDict(self, now: float | None = None) -> dict[str, Any]:
        """
        Convert to dictionary for status reporting.

        Args:
            now: Current time used for timeSinceLastReading

        Returns:
            Dictionary of the status fields
        """
        timeSinceLastReading = None
        if now is not None and self.lastSuccessfulReadingAt is not None:
            timeSinceLastReading = now - self.lastSuccessfulReadingAt

        return {
            'state': self.state.value,
            'consecutiveNoDataCount': self.consecutiveNoDataCount,
            'consecutiveProbeFailures': self.consecutiveProbeFailures,
            'lastSuccessfulReadingAt': self.lastSuccessfulReadingAt,
            'lastProbeAt': self.lastProbeAt,
            'adapterIdentity': self.adapterIdentity,
            'lastStateChangeAt': self.lastStateChangeAt,
            'timeSinceLastReading': timeSinceLastReading,
        }


@dataclass
class ConnectionSettings:
    """
    Settings for one engine connection.

    Times are in seconds. The reconnect delay is never below five seconds and
    the batch timeout never below the single-PID timeout.
    """

    port: str
    baudRate: int = 38400
    batchMode: bool = True
    maxBatchSize: int = 6
    continuousMode: bool = True
    reconnectDelaySeconds: float = MIN_RECONNECT_DELAY_SECONDS

    requestTimeoutSeconds: float = 1.0
    batchRequestTimeoutSeconds: float = 1.5
    adapterCheckTimeoutSeconds: float = 3.0
    engineCheckTimeoutSeconds: float = 3.0
    stageDelaySeconds: float = 0.5
    resetDelaySeconds: float = 2.0
    commandDelaySeconds: float = 1.0
    commandTimeoutSeconds: float = 2.0
    settleDelaySeconds: float = 2.0
    probeIntervalSeconds: float = 2.0
    probeTimeoutSeconds: float = 2.0

    noDataThreshold: int = DEFAULT_NO_DATA_THRESHOLD
    maxProbeFailures: int = DEFAULT_MAX_PROBE_FAILURES

    instance: str = ''

    def __post_init__(self) -> None:
        if self.reconnectDelaySeconds < MIN_RECONNECT_DELAY_SECONDS:
            logger.warning(
                f"Reconnect delay {self.reconnectDelaySeconds}s raised to "
                f"{MIN_RECONNECT_DELAY_SECONDS}s"
            )
            self.reconnectDelaySeconds = MIN_RECONNECT_DELAY_SECONDS

        self.maxBatchSize = max(1, min(int(self.maxBatchSize), 6))

        if self.batchRequestTimeoutSeconds < self.requestTimeoutSeconds:
            self.batchRequestTimeoutSeconds = self.requestTimeoutSeconds

        if not self.instance:
            self.instance = self.port

    def toDict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'port': self.port,
            'baudRate': self.baudRate,
            'batchMode': self.batchMode,
            'maxBatchSize': self.maxBatchSize,
            'continuousMode': self.continuousMode,
            'reconnectDelaySeconds': self.reconnectDelaySeconds,
            'requestTimeoutSeconds': self.requestTimeoutSeconds,
            'batchRequestTimeoutSeconds': self.batchRequestTimeoutSeconds,
            'adapterCheckTimeoutSeconds': self.adapterCheckTimeoutSeconds,
            'engineCheckTimeoutSeconds': self.engineCheckTimeoutSeconds,
            'commandTimeoutSeconds': self.commandTimeoutSeconds,
            'probeIntervalSeconds': self.probeIntervalSeconds,
            'probeTimeoutSeconds': self.probeTimeoutSeconds,
            'noDataThreshold': self.noDataThreshold,
            'maxProbeFailures': self.maxProbeFailures,
            'instance': self.instance,
        }
