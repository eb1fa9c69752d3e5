################################################################################
# File Name: command_scheduler.py
# Purpose/Description: Round-robin PID request scheduling with batching
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
Command scheduler.

Decides which PID request goes out next and guards the half-duplex link:

- at most one request is outstanding; requestNext() is a no-op otherwise
- each request arms a deadline; on expiry the request is cleared and the
  owner is told through onTimeout
- Mode 01 PIDs are batched up to maxBatchSize per request; a window that
  contains a Mode 22 PID issues the PID at the cursor alone
- a batch that times out or is answered with '?' disables batching for the
  remainder of the scheduler's life
- the cursor advances by the number of PIDs issued, wrapping at the end of
  the list

Usage:
    from marine_obd.scheduler import CommandScheduler

    scheduler = CommandScheduler(
        pids=['0C', '05'], timers=timers, send=link.sendCommand,
        onTimeout=handleTimeout
    )
    scheduler.activate()
    scheduler.requestNext()
"""

import functools
import logging
import time
from typing import Any, Callable

from ..protocol.commands import (
    MAX_BATCH_SIZE,
    buildCommand,
    buildProbeCommand,
    isMode22,
    normalizePid,
)
from ..protocol.types import Command, ResponseCategory
from .types import BatchMode, PendingRequest, RequestKind, SchedulerPhase

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

REQUEST_TIMER = 'request'

DEFAULT_REQUEST_TIMEOUT = 1.0
DEFAULT_BATCH_REQUEST_TIMEOUT = 1.5
DEFAULT_PROBE_TIMEOUT = 2.0


class CommandScheduler:
    """
    Builds and issues PID requests, one at a time.

    The scheduler does not read replies itself; the owner classifies each
    reply and reports it through handleResponse().
    """

    def __init__(
        self,
        pids: list[str],
        timers: Any,
        send: Callable[[str], None],
        onTimeout: Callable[[PendingRequest], None],
        maxBatchSize: int = MAX_BATCH_SIZE,
        batchEnabled: bool = True,
        requestTimeout: float = DEFAULT_REQUEST_TIMEOUT,
        batchRequestTimeout: float = DEFAULT_BATCH_REQUEST_TIMEOUT,
        probeTimeout: float = DEFAULT_PROBE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the scheduler.

        Args:
            pids: Ordered PID identifiers to poll
            timers: TimerSet used for the request deadline
            send: Writes command text to the adapter
            onTimeout: Called with the expired request
            maxBatchSize: Most PIDs per batched request (1..6)
            batchEnabled: Whether batching may be used at all
            requestTimeout: Deadline for a single-PID request in seconds
            batchRequestTimeout: Deadline for a batched request in seconds
            probeTimeout: Deadline for a liveness probe in seconds
            clock: Monotonic clock
        """
        uniquePids: list[str] = []
        for pid in pids:
            normalized = normalizePid(pid)
            if normalized not in uniquePids:
                uniquePids.append(normalized)
        self._pids = uniquePids

        self._timers = timers
        self._send = send
        self._onTimeout = onTimeout
        self._maxBatchSize = max(1, min(int(maxBatchSize), MAX_BATCH_SIZE))
        self._requestTimeout = requestTimeout
        self._batchRequestTimeout = max(batchRequestTimeout, requestTimeout)
        self._probeTimeout = probeTimeout
        self._clock = clock

        batchUsable = batchEnabled and self._maxBatchSize > 1
        self._batchMode = BatchMode.ENABLED if batchUsable else BatchMode.DISABLED
        self._phase = SchedulerPhase.INACTIVE
        self._cursor = 0
        self._pending: PendingRequest | None = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def pids(self) -> list[str]:
        return list(self._pids)

    @property
    def phase(self) -> SchedulerPhase:
        return self._phase

    @property
    def batchMode(self) -> BatchMode:
        return self._batchMode

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def pending(self) -> PendingRequest | None:
        return self._pending

    @property
    def hasPending(self) -> bool:
        return self._pending is not None

    # =========================================================================
    # Phase Control
    # =========================================================================

    def activate(self) -> None:
        """Allow round-robin polling."""
        self._phase = SchedulerPhase.POLLING
        logger.debug(f"Scheduler polling | pids={len(self._pids)} batchMode={self._batchMode.value}")

    def suspend(self) -> None:
        """Stop round-robin polling; probes may still be issued."""
        self._phase = SchedulerPhase.SUSPENDED
        logger.debug("Scheduler suspended")

    def deactivate(self) -> None:
        """Stop polling and forget the outstanding request."""
        self._phase = SchedulerPhase.INACTIVE
        self._clearPending()
        logger.debug("Scheduler inactive")

    # =========================================================================
    # Request Issuing
    # =========================================================================

    def requestNext(self) -> Command | None:
        """
        Issue the next poll request.

        Returns:
            The command sent, or None when polling is not active, there are
            no PIDs, or a request is already outstanding
        """
        if self._phase is not SchedulerPhase.POLLING:
            return None

        if not self._pids:
            return None

        if self._pending is not None:
            if not self._pending.isExpired(self._clock()):
                return None
            # Deadline passed but the timer has not been serviced yet
            self.handleTimeout(self._pending)
            if self._pending is not None:
                # The timeout handler already issued the next request
                return None

        window = self._nextWindow()
        command = buildCommand(window)
        self._cursor = (self._cursor + len(window)) % len(self._pids)
        self._issue(command, RequestKind.POLL)
        return command

    def issueProbe(self) -> bool:
        """
        Issue the engine liveness probe ('0100').

        Returns:
            True if sent, False if another request is still outstanding
        """
        if self._pending is not None and not self._pending.isExpired(self._clock()):
            logger.debug("Probe deferred, request outstanding")
            return False

        self._clearPending()
        self._issue(buildProbeCommand(), RequestKind.PROBE)
        return True

    def _nextWindow(self) -> list[str]:
        """Select the PIDs for the next request starting at the cursor."""
        if self._batchMode is not BatchMode.ENABLED:
            return [self._pids[self._cursor]]

        size = min(self._maxBatchSize, len(self._pids) - self._cursor)
        window = self._pids[self._cursor:self._cursor + size]

        if any(isMode22(pid) for pid in window):
            return [self._pids[self._cursor]]

        return window

    def _issue(self, command: Command, kind: RequestKind) -> None:
        if kind is RequestKind.PROBE:
            timeout = self._probeTimeout
        elif command.isBatch:
            timeout = self._batchRequestTimeout
        else:
            timeout = self._requestTimeout

        now = self._clock()
        request = PendingRequest(command=command, kind=kind, issuedAt=now, deadline=now + timeout)
        self._pending = request
        self._timers.arm(REQUEST_TIMER, timeout, functools.partial(self.handleTimeout, request))

        logger.debug(f"Request issued | command={command.wireText} kind={kind.value}")
        self._send(command.wireText)

    def _clearPending(self) -> None:
        self._pending = None
        self._timers.cancel(REQUEST_TIMER)

    # =========================================================================
    # Completion
    # =========================================================================

    def handleResponse(self, category: ResponseCategory) -> PendingRequest | None:
        """
        Complete the outstanding request with a classified reply.

        Args:
            category: Classification of the reply

        Returns:
            The request the reply answers, or None if nothing was pending
        """
        request = self._pending
        if request is None:
            logger.debug(f"Unsolicited reply ignored | category={category.value}")
            return None

        self._clearPending()

        if category is ResponseCategory.INVALID_COMMAND and request.isBatch:
            self.demoteBatching(f"adapter rejected batch {request.command.wireText}")

        return request

    def handleTimeout(self, request: PendingRequest | None = None) -> None:
        """
        Expire the outstanding request.

        Args:
            request: The request the timer was armed for; a stale timer for
                an already completed request is ignored
        """
        if self._pending is None:
            return
        if request is not None and request is not self._pending:
            return

        expired = self._pending
        self._clearPending()
        logger.warning(f"Request timed out | command={expired.command.wireText} kind={expired.kind.value}")

        if expired.isBatch:
            self.demoteBatching(f"batch {expired.command.wireText} timed out")

        self._onTimeout(expired)

    def demoteBatching(self, reason: str) -> None:
        """Disable batching for the rest of this scheduler's life."""
        if self._batchMode is not BatchMode.ENABLED:
            return
        self._batchMode = BatchMode.DEMOTED
        logger.warning(f"Batch mode disabled | reason={reason}")

    # =========================================================================
    # Status
    # =========================================================================

    def getStatus(self) -> dict[str, Any]:
        """Return a snapshot of the scheduler state."""
        return {
            'phase': self._phase.value,
            'batchMode': self._batchMode.value,
            'maxBatchSize': self._maxBatchSize,
            'cursor': self._cursor,
            'pidCount': len(self._pids),
            'pending': self._pending.toDict() if self._pending else None,
        }
