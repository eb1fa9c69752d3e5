################################################################################
# File Name: events.py
# Purpose/Description: Event emitter for connection notifications
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
Event emitter.

Fire-and-forget notification of the surrounding application. A listener
that raises is logged and skipped; it never affects the connection.

Usage:
    emitter = EventEmitter()
    emitter.on('reading', lambda reading: print(reading.value))
    emitter.emit('reading', reading)
"""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventEmitter:
    """Named event callbacks."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable[..., Any]]] = {}

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Register a callback for an event."""
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Callable[..., Any] | None = None) -> bool:
        """
        Remove a callback, or every callback of an event.

        Returns:
            True if anything was removed
        """
        listeners = self._listeners.get(event)
        if not listeners:
            return False

        if callback is None:
            del self._listeners[event]
            return True

        if callback in listeners:
            listeners.remove(callback)
            return True
        return False

    def emit(self, event: str, *args: Any) -> int:
        """
        Call every callback registered for an event.

        Returns:
            Number of callbacks called
        """
        listeners = list(self._listeners.get(event, []))
        for callback in listeners:
            try:
                callback(*args)
            except Exception as e:
                logger.warning(f"{event} callback error: {e}")
        return len(listeners)

    def listenerCount(self, event: str) -> int:
        return len(self._listeners.get(event, []))
