################################################################################
# File Name: state_machine.py
# Purpose/Description: Connection liveness state machine
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
Connection liveness state machine.

Tracks whether the transport is up, the adapter answers and the engine
answers. It is the only writer of the liveness state; every transition is
driven by one of the event methods below, reported on the emitter as
'stateChange' and, where the owner has to act, sent to the control sink as a
ControlSignal.

Transitions:

    disconnected  --transportOpened------> connecting
    connecting    --adapterCheckStarted--> adapter_check
    adapter_check --adapterVerified------> engine_check
    engine_check  --engineVerified-------> initializing
    engine_check  --engineOff------------> engine_off      (START_PROBING)
    initializing  --initialized----------> active          (RESUME_POLLING)
    active        --noData x threshold---> probing         (START_PROBING)
    probing       --reading/probe ok-----> active          (RESUME_POLLING)
    engine_off    --reading/probe ok-----> initializing    (RESUME_INITIALIZATION)
    probing       --probe failures > max-> disconnected    (CONNECTION_LOST)
    any           --transportClosed------> disconnected    (SCHEDULE_RECONNECT)

Usage:
    machine = ConnectionStateMachine(controlSink=onControl, emitter=emitter)
    machine.transportOpened()
"""

import logging
import time
from typing import Callable

from .events import EventEmitter
from .types import (
    DEFAULT_MAX_PROBE_FAILURES,
    DEFAULT_NO_DATA_THRESHOLD,
    EVENT_ADAPTER_ERROR,
    EVENT_ADAPTER_VERIFIED,
    EVENT_CONNECTION_LOST,
    EVENT_DISCONNECTED,
    EVENT_ENGINE_OFF,
    EVENT_ENGINE_VERIFIED,
    EVENT_INITIALIZED,
    EVENT_STATE_CHANGE,
    ControlSignal,
    LivenessState,
    LivenessStatus,
)

logger = logging.getLogger(__name__)

PROBING_STATES = (LivenessState.PROBING, LivenessState.ENGINE_OFF)


class ConnectionStateMachine:
    """
    Single owner of a connection's LivenessState.

    Attributes:
        status: Current state and auxiliary counters
    """

    def __init__(
        self,
        controlSink: Callable[[ControlSignal], None],
        emitter: EventEmitter | None = None,
        noDataThreshold: int = DEFAULT_NO_DATA_THRESHOLD,
        maxProbeFailures: int = DEFAULT_MAX_PROBE_FAILURES,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the state machine in the disconnected state.

        Args:
            controlSink: Receives control signals for the owner
            emitter: Receives stateChange and lifecycle notifications
            noDataThreshold: Consecutive misses in active before probing
            maxProbeFailures: Probe failures tolerated before disconnecting
            clock: Wall clock for timestamps
        """
        self._controlSink = controlSink
        self._emitter = emitter or EventEmitter()
        self._noDataThreshold = noDataThreshold
        self._maxProbeFailures = maxProbeFailures
        self._clock = clock
        self.status = LivenessStatus()

    @property
    def state(self) -> LivenessState:
        return self.status.state

    # =========================================================================
    # Internals
    # =========================================================================

    def _transition(self, newState: LivenessState) -> bool:
        oldState = self.status.state
        if oldState is newState:
            return False

        now = self._clock()
        self.status.state = newState
        self.status.lastStateChangeAt = now
        logger.info(f"Liveness state {oldState.value} -> {newState.value}")
        self._emitter.emit(EVENT_STATE_CHANGE, oldState, newState, now)
        return True

    def _signal(self, signal: ControlSignal) -> None:
        logger.debug(f"Control signal {signal.value}")
        self._controlSink(signal)

    def _expect(self, event: str, *states: LivenessState) -> bool:
        if self.status.state in states:
            return True
        logger.debug(f"Ignoring {event} in state {self.status.state.value}")
        return False

    def _resetCounters(self) -> None:
        self.status.consecutiveNoDataCount = 0
        self.status.consecutiveProbeFailures = 0

    # =========================================================================
    # Handshake Events
    # =========================================================================

    def transportOpened(self) -> bool:
        if not self._expect('transportOpened', LivenessState.DISCONNECTED):
            return False
        return self._transition(LivenessState.CONNECTING)

    def adapterCheckStarted(self) -> bool:
        if not self._expect('adapterCheckStarted', LivenessState.CONNECTING):
            return False
        return self._transition(LivenessState.ADAPTER_CHECK)

    def adapterVerified(self, identity: str) -> bool:
        """Record the adapter identity and move on to the engine check."""
        if not self._expect('adapterVerified', LivenessState.ADAPTER_CHECK):
            return False
        self.status.adapterIdentity = identity
        self._transition(LivenessState.ENGINE_CHECK)
        self._emitter.emit(EVENT_ADAPTER_VERIFIED, identity)
        return True

    def adapterCheckFailed(self, reason: str) -> None:
        """The adapter did not identify itself; the state is unchanged."""
        logger.error(f"Adapter check failed: {reason}")
        self._emitter.emit(EVENT_ADAPTER_ERROR, reason)

    def engineVerified(self) -> bool:
        if not self._expect('engineVerified', LivenessState.ENGINE_CHECK):
            return False
        self._transition(LivenessState.INITIALIZING)
        self._emitter.emit(EVENT_ENGINE_VERIFIED)
        return True

    def engineOff(self, reason: str) -> bool:
        """The engine did not answer the engine check."""
        if not self._expect('engineOff', LivenessState.ENGINE_CHECK):
            return False
        logger.warning(f"Engine not responding: {reason}")
        self._transition(LivenessState.ENGINE_OFF)
        self._emitter.emit(EVENT_ENGINE_OFF, reason)
        self._signal(ControlSignal.START_PROBING)
        return True

    def initialized(self) -> bool:
        if not self._expect('initialized', LivenessState.INITIALIZING):
            return False
        self._resetCounters()
        self._transition(LivenessState.ACTIVE)
        self._emitter.emit(EVENT_INITIALIZED)
        self._signal(ControlSignal.RESUME_POLLING)
        return True

    # =========================================================================
    # Polling Events
    # =========================================================================

    def readingReceived(self, timestamp: float | None = None) -> None:
        """A reading was decoded."""
        self.status.lastSuccessfulReadingAt = self._clock() if timestamp is None else timestamp
        self.status.consecutiveNoDataCount = 0

        if self.status.state in PROBING_STATES:
            self.probeSucceeded()

    def noData(self) -> bool:
        """
        A poll request got NO DATA or timed out.

        Returns:
            True if this miss moved the connection to probing
        """
        if not self._expect('noData', LivenessState.ACTIVE):
            return False

        self.status.consecutiveNoDataCount += 1
        if self.status.consecutiveNoDataCount < self._noDataThreshold:
            return False

        logger.warning(
            f"{self.status.consecutiveNoDataCount} consecutive requests without data, probing engine"
        )
        self.status.consecutiveProbeFailures = 0
        self._transition(LivenessState.PROBING)
        self._signal(ControlSignal.START_PROBING)
        return True

    # =========================================================================
    # Probe Events
    # =========================================================================

    def probeSucceeded(self) -> bool:
        """The engine answered a probe."""
        if not self._expect('probeSucceeded', *PROBING_STATES):
            return False

        self.status.lastProbeAt = self._clock()
        self._resetCounters()

        if self.status.state is LivenessState.PROBING:
            self._transition(LivenessState.ACTIVE)
            self._signal(ControlSignal.RESUME_POLLING)
        else:
            # The configuration commands were never sent on the engine-off path
            self._transition(LivenessState.INITIALIZING)
            self._signal(ControlSignal.RESUME_INITIALIZATION)
        return True

    def probeNoData(self) -> bool:
        """The adapter answered a probe but the engine did not."""
        if not self._expect('probeNoData', *PROBING_STATES):
            return False
        self.status.lastProbeAt = self._clock()
        self.status.consecutiveProbeFailures = 0
        self._signal(ControlSignal.SCHEDULE_PROBE)
        return True

    def probeFailed(self, reason: str) -> bool:
        """
        A probe went unanswered.

        Returns:
            True if the failure limit was exceeded and the connection is lost
        """
        if not self._expect('probeFailed', *PROBING_STATES):
            return False

        self.status.consecutiveProbeFailures += 1
        failures = self.status.consecutiveProbeFailures
        logger.warning(f"Probe failed ({failures}/{self._maxProbeFailures}): {reason}")

        if failures <= self._maxProbeFailures:
            self._signal(ControlSignal.SCHEDULE_PROBE)
            return False

        logger.error(f"Adapter unresponsive after {failures} probes, connection lost")
        self._resetCounters()
        self._transition(LivenessState.DISCONNECTED)
        self._emitter.emit(EVENT_DISCONNECTED)
        self._emitter.emit(EVENT_CONNECTION_LOST)
        self._signal(ControlSignal.CONNECTION_LOST)
        return True

    # =========================================================================
    # Transport Events
    # =========================================================================

    def transportClosed(self, expected: bool = False) -> None:
        """
        The transport went away.

        Args:
            expected: True for a requested disconnect; no reconnect follows
        """
        wasConnected = self.status.state is not LivenessState.DISCONNECTED

        self._resetCounters()
        self.status.lastSuccessfulReadingAt = None
        self.status.lastProbeAt = None
        self._transition(LivenessState.DISCONNECTED)

        if wasConnected:
            self._emitter.emit(EVENT_DISCONNECTED)

        if expected:
            return

        if wasConnected:
            self._emitter.emit(EVENT_CONNECTION_LOST)
        self._signal(ControlSignal.SCHEDULE_RECONNECT)
