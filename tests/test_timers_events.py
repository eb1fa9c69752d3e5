################################################################################
# File Name: test_timers_events.py
# Purpose/Description: Tests for the named timer set and event emitter
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
Tests for connection.timers and connection.events.

Run with:
    pytest tests/test_timers_events.py -v
"""

import logging
import sys
from pathlib import Path

import pytest

srcPath = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(srcPath))

from marine_obd.connection.events import EventEmitter
from marine_obd.connection.timers import TimerSet


# ================================================================================
# TimerSet Tests
# ================================================================================

class TestTimerSet:
    """Tests for TimerSet class."""

    def test_arm_fire_callsCallbackWithArgs(self, fakeCallLater):
        """
        Given: An armed timer
        When: It fires
        Then: The callback runs with its args and the name is released
        """
        timers = TimerSet(fakeCallLater)
        calls = []

        timers.arm('request', 1.5, calls.append, 'late')

        assert timers.isArmed('request')
        assert timers.delayOf('request') == 1.5

        fakeCallLater.fireLast()

        assert calls == ['late']
        assert not timers.isArmed('request')
        assert timers.delayOf('request') is None

    def test_arm_sameName_replacesAndStaleFireIsIgnored(self, fakeCallLater):
        """
        Given: A timer re-armed under the same name
        When: The first handle fires anyway
        Then: Only the second callback ever runs
        """
        timers = TimerSet(fakeCallLater)
        calls = []

        timers.arm('probe', 2.0, calls.append, 'first')
        stale = fakeCallLater.handles[0]
        timers.arm('probe', 2.0, calls.append, 'second')

        assert stale.cancelled is True
        fakeCallLater.fire(stale)
        assert calls == []

        fakeCallLater.fire(fakeCallLater.handles[1])
        assert calls == ['second']

    def test_armOnce_alreadyArmed_keepsExisting(self, fakeCallLater):
        """
        Given: A pending reconnect timer
        When: armOnce is called again
        Then: Returns False and no second handle is created
        """
        timers = TimerSet(fakeCallLater)

        assert timers.armOnce('reconnect', 5.0, lambda: None) is True
        assert timers.armOnce('reconnect', 5.0, lambda: None) is False
        assert len(fakeCallLater.handles) == 1

    def test_cancel_unknownName_returnsFalse(self, fakeCallLater):
        """
        Given: No armed timers
        When: cancel is called
        Then: Returns False
        """
        assert TimerSet(fakeCallLater).cancel('missing') is False

    def test_cancelAll_cancelsEveryHandle(self, fakeCallLater):
        """
        Given: Three armed timers
        When: cancelAll is called
        Then: All handles are cancelled and a late fire does nothing
        """
        timers = TimerSet(fakeCallLater)
        calls = []
        for name in ('request', 'probe', 'reconnect'):
            timers.arm(name, 1.0, calls.append, name)

        assert timers.armedNames() == ['probe', 'reconnect', 'request']
        assert timers.cancelAll() == 3

        assert fakeCallLater.pending == []
        assert timers.armedNames() == []
        fakeCallLater.fire(fakeCallLater.handles[0])
        assert calls == []


# ================================================================================
# EventEmitter Tests
# ================================================================================

class TestEventEmitter:
    """Tests for EventEmitter class."""

    def test_emit_callsListenersInOrder(self):
        """
        Given: Two listeners for one event
        When: The event is emitted
        Then: Both are called in registration order and the count is returned
        """
        emitter = EventEmitter()
        calls = []
        emitter.on('reading', lambda value: calls.append(('a', value)))
        emitter.on('reading', lambda value: calls.append(('b', value)))

        assert emitter.emit('reading', 42) == 2
        assert calls == [('a', 42), ('b', 42)]

    def test_emit_noListeners_returnsZero(self):
        """
        Given: No listeners
        When: An event is emitted
        Then: Returns 0
        """
        assert EventEmitter().emit('disconnected') == 0

    def test_emit_listenerRaises_othersStillCalled(self, caplog: pytest.LogCaptureFixture):
        """
        Given: A listener that raises before a working one
        When: The event is emitted
        Then: The error is logged and the next listener still runs
        """
        emitter = EventEmitter()
        calls = []

        def broken(*args):
            raise RuntimeError('listener broke')

        emitter.on('busError', broken)
        emitter.on('busError', lambda *args: calls.append(args))

        with caplog.at_level(logging.WARNING):
            emitter.emit('busError', 'can_error', ['CAN ERROR'])

        assert calls == [('can_error', ['CAN ERROR'])]
        assert 'listener broke' in caplog.text

    def test_off_specificAndAll(self):
        """
        Given: Registered listeners
        When: off is called with and without a callback
        Then: Removes one, then all
        """
        emitter = EventEmitter()
        first = lambda: None  # noqa: E731
        second = lambda: None  # noqa: E731
        emitter.on('initialized', first)
        emitter.on('initialized', second)

        assert emitter.off('initialized', first) is True
        assert emitter.listenerCount('initialized') == 1
        assert emitter.off('initialized', first) is False
        assert emitter.off('initialized') is True
        assert emitter.listenerCount('initialized') == 0
        assert emitter.off('initialized') is False
