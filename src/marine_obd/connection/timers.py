################################################################################
# File Name: timers.py
# Purpose/Description: Named one-shot timers with bulk cancellation
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
Named timer set.

Every timer a connection uses (request deadline, probe interval, reconnect
delay) is registered here under a name so that disconnect() can cancel all
of them in one call.

The set is independent of the event loop: it is built on a callLater
function with the signature of loop.call_later(delay, callback) returning a
handle with cancel(). Tests pass a fake callLater and fire timers by hand.

A timer whose entry was cancelled or replaced does nothing when it fires,
even if the underlying handle had already been queued.

Usage:
    from marine_obd.connection.timers import TimerSet

    timers = TimerSet(loop.call_later)
    timers.arm('probe', 2.0, sendProbe)
    timers.cancelAll()
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

CallLater = Callable[[float, Callable[[], None]], Any]


@dataclass
class _TimerEntry:
    handle: Any
    delay: float


class TimerSet:
    """Named one-shot timers."""

    def __init__(self, callLater: CallLater):
        """
        Initialize the timer set.

        Args:
            callLater: Schedules a zero-argument callback after a delay and
                returns a cancellable handle
        """
        self._callLater = callLater
        self._entries: dict[str, _TimerEntry] = {}

    def arm(self, name: str, delay: float, callback: Callable[..., Any], *args: Any) -> None:
        """
        Arm a timer, replacing any timer with the same name.

        Args:
            name: Timer name
            delay: Delay in seconds
            callback: Called with *args when the timer fires
        """
        self.cancel(name)

        entry = _TimerEntry(handle=None, delay=delay)

        def fire() -> None:
            if self._entries.get(name) is not entry:
                return
            del self._entries[name]
            callback(*args)

        entry.handle = self._callLater(delay, fire)
        self._entries[name] = entry
        logger.debug(f"Timer armed | name={name} delay={delay}")

    def armOnce(self, name: str, delay: float, callback: Callable[..., Any], *args: Any) -> bool:
        """
        Arm a timer only if no timer with that name is armed.

        Returns:
            True if armed, False if one was already pending
        """
        if name in self._entries:
            logger.debug(f"Timer already armed | name={name}")
            return False
        self.arm(name, delay, callback, *args)
        return True

    def cancel(self, name: str) -> bool:
        """
        Cancel a timer by name.

        Returns:
            True if a timer was armed
        """
        entry = self._entries.pop(name, None)
        if entry is None:
            return False
        entry.handle.cancel()
        return True

    def cancelAll(self) -> int:
        """
        Cancel every armed timer.

        Returns:
            Number of timers cancelled
        """
        names = list(self._entries)
        for name in names:
            self.cancel(name)
        if names:
            logger.debug(f"Timers cancelled | names={names}")
        return len(names)

    def isArmed(self, name: str) -> bool:
        return name in self._entries

    def delayOf(self, name: str) -> float | None:
        """Return the delay a timer was armed with, or None."""
        entry = self._entries.get(name)
        return entry.delay if entry else None

    def armedNames(self) -> list[str]:
        return sorted(self._entries)
