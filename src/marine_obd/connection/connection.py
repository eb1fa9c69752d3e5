################################################################################
# File Name: connection.py
# Purpose/Description: ELM327 engine connection with a single-consumer event loop
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
Engine connection.

Owns one adapter link: transport, frame parser, command scheduler, liveness
state machine and initialization sequencer. Transport data, transport close,
timer expiry and control requests are all posted to one asyncio.Queue and
handled by one consumer, so the pending request, liveness state and parse
buffer are never mutated concurrently.

Replies are routed to the initialization sequencer while it waits for one,
otherwise to the outstanding scheduler request. A reply that cannot answer
that request (a late reply to an expired one, a leftover 'OK') is ignored
and the request keeps waiting for its own reply or its deadline.

Events emitted (register with on()):
    reading(reading)                       Reading dataclass
    stateChange(oldState, newState, timestamp)
    adapterVerified(identity)   adapterError(reason)
    engineVerified()            engineOff(reason)
    initialized()               decodeError(details)
    busError(category, lines)   connectionLost()
    disconnected()

Usage:
    from marine_obd.connection import Obd2Connection, ConnectionSettings
    from marine_obd.pids import getProfile

    connection = Obd2Connection(ConnectionSettings(port='/dev/rfcomm0'),
                                getProfile('Yanmar', '4jh'))
    connection.on('reading', lambda r: print(r.pid, r.value, r.unit))
    await connection.connect()
    ...
    connection.disconnect()
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

from common.error_handler import AdapterError, handleError
from common.logging_config import logWithContext

from ..pids.definitions import PidLookup
from ..pids.types import EngineProfile
from ..protocol.commands import encodeCommand
from ..protocol.decoder import (
    classifyLine,
    classifyResponse,
    decodeFrame,
    frameToReading,
    isEngineProbeReply,
    replyAnswersCommand,
    splitBatchFrame,
)
from ..protocol.frame_parser import ResponseFrameParser
from ..protocol.types import Reading, ResponseCategory
from ..scheduler.command_scheduler import CommandScheduler
from ..scheduler.types import PendingRequest, RequestKind
from .events import EventEmitter
from .exceptions import ConnectionClosedError
from .sequencer import InitializationSequencer
from .state_machine import ConnectionStateMachine
from .timers import TimerSet
from .transport import AdapterProtocol, openSerialTransport
from .types import (
    CONNECTION_EVENTS,
    EVENT_BUS_ERROR,
    EVENT_DECODE_ERROR,
    EVENT_READING,
    MIN_RECONNECT_DELAY_SECONDS,
    ConnectionEvent,
    ConnectionSettings,
    ControlSignal,
    EventKind,
    HandshakeResult,
    LivenessState,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

PROBE_TIMER = 'probe'
RECONNECT_TIMER = 'reconnect'

TransportFactory = Callable[[Callable[[], asyncio.Protocol]], Awaitable[tuple[Any, Any]]]


class Obd2Connection:
    """
    One engine, one adapter, one consumer.

    Attributes:
        settings: Connection settings
        profile: Engine profile being polled
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        profile: EngineProfile,
        pidLookup: PidLookup | None = None,
        transportFactory: TransportFactory | None = None,
        timers: TimerSet | None = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the connection (nothing is opened yet).

        Args:
            settings: Connection settings
            profile: Engine profile with the PIDs to poll
            pidLookup: PID definitions, defaults to the built-in table
            transportFactory: Coroutine function taking a protocol factory
                and returning (transport, protocol); defaults to the serial
                port in settings
            timers: Timer set, defaults to loop timers routed through the inbox
            clock: Monotonic clock for request deadlines
        """
        self.settings = settings
        self.profile = profile
        self._pidLookup = pidLookup or PidLookup()
        self._transportFactory = transportFactory or self._openSerial
        self._clock = clock

        self._inbox: asyncio.Queue[ConnectionEvent] = asyncio.Queue()
        self._emitter = EventEmitter()
        self._timers = timers or TimerSet(self._callLater)
        self._parser = ResponseFrameParser()

        self._stateMachine = ConnectionStateMachine(
            controlSink=self._onControl,
            emitter=self._emitter,
            noDataThreshold=settings.noDataThreshold,
            maxProbeFailures=settings.maxProbeFailures
        )
        self._scheduler = CommandScheduler(
            pids=profile.supportedPids,
            timers=self._timers,
            send=self.sendCommand,
            onTimeout=self._onRequestTimeout,
            maxBatchSize=settings.maxBatchSize,
            batchEnabled=settings.batchMode,
            requestTimeout=settings.requestTimeoutSeconds,
            batchRequestTimeout=settings.batchRequestTimeoutSeconds,
            probeTimeout=settings.probeTimeoutSeconds,
            clock=clock
        )
        self._sequencer = InitializationSequencer(self, self._stateMachine, settings)

        self._transport: Any = None
        self._protocol: Any = None
        self._replyWaiter: asyncio.Future | None = None
        self._lastCommand: str | None = None
        self._consumerTask: asyncio.Task | None = None
        self._handshakeTask: asyncio.Task | None = None
        self._openTask: asyncio.Task | None = None
        self._closing = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> LivenessState:
        return self._stateMachine.state

    @property
    def stateMachine(self) -> ConnectionStateMachine:
        return self._stateMachine

    @property
    def scheduler(self) -> CommandScheduler:
        return self._scheduler

    @property
    def timers(self) -> TimerSet:
        return self._timers

    @property
    def isConnected(self) -> bool:
        return self._transport is not None

    # =========================================================================
    # Public API
    # =========================================================================

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Register a callback for one of the connection events."""
        if event not in CONNECTION_EVENTS:
            logger.warning(f"Registering callback for unknown event '{event}'")
        self._emitter.on(event, callback)

    def off(self, event: str, callback: Callable[..., Any] | None = None) -> bool:
        return self._emitter.off(event, callback)

    async def connect(self) -> bool:
        """
        Start the consumer and open the transport.

        A failed open is not raised; the reconnect supervisor retries.

        Returns:
            True if the transport was opened
        """
        self._closing = False
        if self._consumerTask is None or self._consumerTask.done():
            self._consumerTask = asyncio.get_running_loop().create_task(self.run())
        return await self._openTransport()

    def disconnect(self) -> None:
        """
        Tear the connection down.

        Cancels every timer and task before releasing the transport; no
        reconnect follows.
        """
        logWithContext(logger, 'info', "Disconnecting", port=self.settings.port,
                       instance=self.settings.instance)
        self._closing = True

        self._timers.cancelAll()
        for task in (self._handshakeTask, self._openTask, self._consumerTask):
            if task is not None and not task.done():
                task.cancel()
        self._handshakeTask = None
        self._openTask = None
        self._consumerTask = None

        if self._replyWaiter is not None and not self._replyWaiter.done():
            self._replyWaiter.cancel()

        self._scheduler.deactivate()
        self._parser.reset()

        transport = self._transport
        self._transport = None
        self._protocol = None
        if transport is not None:
            transport.close()

        self._stateMachine.transportClosed(expected=True)

    async def run(self) -> None:
        """Consume inbox events until cancelled."""
        while True:
            event = await self._inbox.get()
            self._dispatch(event)

    def pumpEvents(self) -> int:
        """
        Handle every queued event without the consumer task.

        Returns:
            Number of events handled
        """
        handled = 0
        while not self._inbox.empty():
            self._dispatch(self._inbox.get_nowait())
            handled += 1
        return handled

    def requestNextPid(self) -> None:
        """Ask for the next poll request (for hosts not in continuous mode)."""
        self._post(ConnectionEvent(EventKind.CONTROL, ControlSignal.REQUEST_NEXT))

    def getStatus(self) -> dict[str, Any]:
        """Return a snapshot of liveness, scheduler and timer state."""
        return {
            'port': self.settings.port,
            'instance': self.settings.instance,
            'engine': f"{self.profile.manufacturer}/{self.profile.model}",
            'connected': self.isConnected,
            'liveness': self._stateMachine.status.toDict(time.time()),
            'scheduler': self._scheduler.getStatus(),
            'timers': self._timers.armedNames(),
        }

    # =========================================================================
    # Link (used by the sequencer and scheduler)
    # =========================================================================

    def sendCommand(self, text: str) -> None:
        """
        Write one command to the adapter.

        A write failure closes the transport and hands over to the reconnect
        supervisor.

        Raises:
            ConnectionClosedError: If no transport is open
        """
        if self._transport is None:
            raise ConnectionClosedError(f"Cannot send {text}: transport not open",
                                        {'port': self.settings.port})

        self._lastCommand = text.strip().upper()
        logger.debug(f"TX {text}")
        try:
            self._transport.write(encodeCommand(text))
        except OSError as e:
            handleError(e, context={'command': text, 'port': self.settings.port}, reraise=False)
            self._closeTransport()

    async def exchange(self, text: str, timeout: float) -> list[str] | None:
        """
        Send a command and wait for its reply.

        Returns:
            Reply lines, or None if no prompt arrived within the timeout
        """
        waiter = asyncio.get_running_loop().create_future()
        self._replyWaiter = waiter
        try:
            self.sendCommand(text)
            return await asyncio.wait_for(waiter, timeout)
        except asyncio.TimeoutError:
            self._parser.reset()
            return None
        finally:
            if self._replyWaiter is waiter:
                self._replyWaiter = None

    # =========================================================================
    # Inbox
    # =========================================================================

    def _post(self, event: ConnectionEvent) -> None:
        self._inbox.put_nowait(event)

    def _callLater(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self._post, ConnectionEvent(EventKind.TIMER, callback))

    def _onTransportEvent(self, kind: EventKind, protocol: Any, payload: Any) -> None:
        self._post(ConnectionEvent(kind, payload, source=protocol))

    def _dispatch(self, event: ConnectionEvent) -> None:
        try:
            if event.kind is EventKind.DATA:
                if event.source is self._protocol:
                    self._onData(event.payload)
            elif event.kind is EventKind.CLOSED:
                if event.source is self._protocol:
                    self._onTransportClosed(event.payload)
            elif event.kind is EventKind.TIMER:
                event.payload()
            elif event.kind is EventKind.CONTROL:
                self._onControl(event.payload)
        except Exception as e:
            handleError(e, context={'event': event.kind.value}, reraise=False)

    # =========================================================================
    # Transport Lifecycle
    # =========================================================================

    async def _openSerial(self, protocolFactory: Callable[[], asyncio.Protocol]) -> tuple[Any, Any]:
        return await openSerialTransport(self.settings.port, self.settings.baudRate, protocolFactory)

    def _createProtocol(self) -> AdapterProtocol:
        return AdapterProtocol(self._onTransportEvent)

    async def _openTransport(self) -> bool:
        try:
            transport, protocol = await self._transportFactory(self._createProtocol)
        except Exception as e:
            handleError(e, context={'port': self.settings.port}, reraise=False)
            self._onControl(ControlSignal.SCHEDULE_RECONNECT)
            return False

        if self._closing:
            transport.close()
            return False

        self._transport = transport
        self._protocol = protocol
        self._parser.reset()
        self._lastCommand = None
        logWithContext(logger, 'info', "Transport opened", port=self.settings.port,
                       instance=self.settings.instance)

        self._stateMachine.transportOpened()
        self._startHandshake(self._sequencer.run())
        return True

    def _closeTransport(self) -> None:
        """Close the transport; the close event drives the state change."""
        if self._transport is not None:
            self._transport.close()

    def _onTransportClosed(self, exc: Exception | None) -> None:
        self._transport = None
        self._protocol = None

        if self._handshakeTask is not None and not self._handshakeTask.done():
            self._handshakeTask.cancel()
        self._handshakeTask = None

        self._parser.reset()
        self._scheduler.deactivate()
        self._timers.cancel(PROBE_TIMER)

        logWithContext(logger, 'warning', "Transport closed", port=self.settings.port,
                       instance=self.settings.instance, error=exc)
        self._stateMachine.transportClosed(expected=self._closing)

    def _startReconnect(self) -> None:
        if self._closing or self._transport is not None:
            return
        logWithContext(logger, 'info', "Reconnecting", port=self.settings.port)
        self._openTask = asyncio.get_running_loop().create_task(self._openTransport())

    # =========================================================================
    # Handshake
    # =========================================================================

    def _startHandshake(self, coroutine: Awaitable[Any]) -> None:
        self._handshakeTask = asyncio.get_running_loop().create_task(self._runHandshake(coroutine))

    async def _runHandshake(self, coroutine: Awaitable[Any]) -> None:
        try:
            result = await coroutine
        except ConnectionClosedError as e:
            logger.warning(f"Handshake aborted: {e}")
            return
        except Exception as e:
            handleError(e, context={'stage': self.state.value}, reraise=False)
            self._closeTransport()
            return

        if result is HandshakeResult.ADAPTER_NOT_FOUND:
            # Retry through the reconnect supervisor
            self._closeTransport()

    async def _resumeInitialization(self) -> HandshakeResult:
        await self._sequencer.configureAdapter()
        return HandshakeResult.READY

    # =========================================================================
    # Replies
    # =========================================================================

    def _onData(self, data: bytes) -> None:
        logger.debug(f"RX {data!r}")
        completed = self._parser.completedReplies
        lines = self._parser.feed(data)
        if self._parser.completedReplies == completed:
            return

        lines = [line for line in lines if not self._isEcho(line)]

        if self._replyWaiter is not None and not self._replyWaiter.done():
            self._replyWaiter.set_result(lines)
            return

        self._handleReply(lines)

    def _isEcho(self, line: str) -> bool:
        return self._lastCommand is not None and line.replace(' ', '').upper() == self._lastCommand

    def _handleReply(self, lines: list[str]) -> None:
        pending = self._scheduler.pending
        if pending is not None and not replyAnswersCommand(lines, pending.command):
            # Late reply to an expired request or a leftover handshake reply
            logger.debug(f"Reply {lines} does not answer {pending.command.wireText}, ignored")
            return

        category = classifyResponse(lines)
        request = self._scheduler.handleResponse(category)
        if request is None:
            return

        if request.kind is RequestKind.PROBE:
            self._handleProbeReply(lines, category)
        else:
            self._handlePollReply(request, lines, category)

    def _handlePollReply(self, request: PendingRequest, lines: list[str], category: ResponseCategory) -> None:
        if category is ResponseCategory.DATA:
            readings = self._decodeReadings(request, lines)
            for reading in readings:
                self._emitter.emit(EVENT_READING, reading)
            if readings:
                self._stateMachine.readingReceived()
            else:
                self._stateMachine.noData()
        elif category is ResponseCategory.NO_DATA:
            self._stateMachine.noData()
        elif category.isBusError:
            self._reportBusError(category, lines)
        elif category is ResponseCategory.INVALID_COMMAND:
            logger.warning(f"Adapter rejected {request.command.wireText}")
        else:
            logger.debug(f"Unrecognised reply to {request.command.wireText}: {lines}")

        if self.settings.continuousMode:
            self._scheduler.requestNext()

    def _handleProbeReply(self, lines: list[str], category: ResponseCategory) -> None:
        if isEngineProbeReply(lines):
            self._stateMachine.probeSucceeded()
        elif category is ResponseCategory.NO_DATA:
            self._stateMachine.probeNoData()
        elif category.isBusError:
            # Adapter answered, the bus did not
            self._reportBusError(category, lines)
            self._stateMachine.probeNoData()
        else:
            self._stateMachine.probeFailed(f"unexpected probe reply {lines}")

    def _reportBusError(self, category: ResponseCategory, lines: list[str]) -> None:
        handleError(
            AdapterError(f"Adapter reported {category.value}", {'lines': lines}),
            context={'instance': self.settings.instance},
            reraise=False
        )
        self._emitter.emit(EVENT_BUS_ERROR, category.value, lines)

    def _decodeReadings(self, request: PendingRequest, lines: list[str]) -> list[Reading]:
        dataLines = [line for line in lines if classifyLine(line) is ResponseCategory.DATA]

        try:
            if request.isBatch and len(dataLines) == 1:
                frames = splitBatchFrame(dataLines[0], request.targets, self._pidLookup)
            else:
                frames = []
                for line in dataLines:
                    frame = decodeFrame(line, request.command.mode)
                    if frame is None:
                        self._reportDecodeFailure(request, line, 'undecodable frame')
                    elif frame.pid not in request.targets:
                        logger.debug(f"Frame for {frame.pid} does not answer {request.command.wireText}")
                    else:
                        frames.append(frame)

            readings = []
            for frame in frames:
                reading = frameToReading(frame, self._pidLookup, self.profile)
                if reading is not None:
                    readings.append(reading)
            return readings

        except Exception as e:
            details = handleError(
                e,
                context={'command': request.command.wireText, 'lines': lines},
                reraise=False
            )
            self._emitter.emit(EVENT_DECODE_ERROR, details)
            return []

    def _reportDecodeFailure(self, request: PendingRequest, line: str, reason: str) -> None:
        logger.debug(f"Dropped frame {line!r}: {reason}")
        self._emitter.emit(EVENT_DECODE_ERROR, {
            'category': 'decode',
            'message': reason,
            'context': {'command': request.command.wireText, 'line': line},
        })

    # =========================================================================
    # Timeouts and Control
    # =========================================================================

    def _onRequestTimeout(self, request: PendingRequest) -> None:
        # A late reply to the expired request must not answer the next one
        self._parser.reset()

        if request.kind is RequestKind.PROBE:
            self._stateMachine.probeFailed(f"no reply to {request.command.wireText}")
            return

        self._stateMachine.noData()
        if self.settings.continuousMode:
            self._scheduler.requestNext()

    def _armProbe(self) -> None:
        self._timers.arm(PROBE_TIMER, self.settings.probeIntervalSeconds, self._sendProbe)

    def _sendProbe(self) -> None:
        if self.state not in (LivenessState.PROBING, LivenessState.ENGINE_OFF):
            return
        if self._transport is None:
            return
        if not self._scheduler.issueProbe():
            self._armProbe()

    def _onControl(self, signal: ControlSignal) -> None:
        if signal is ControlSignal.START_PROBING:
            self._scheduler.suspend()
            self._armProbe()

        elif signal is ControlSignal.SCHEDULE_PROBE:
            self._armProbe()

        elif signal is ControlSignal.RESUME_POLLING:
            self._timers.cancel(PROBE_TIMER)
            self._scheduler.activate()
            if self.settings.continuousMode:
                self._scheduler.requestNext()

        elif signal is ControlSignal.RESUME_INITIALIZATION:
            self._timers.cancel(PROBE_TIMER)
            self._startHandshake(self._resumeInitialization())

        elif signal is ControlSignal.CONNECTION_LOST:
            self._scheduler.deactivate()
            self._closeTransport()

        elif signal is ControlSignal.SCHEDULE_RECONNECT:
            if self._closing:
                return
            delay = max(self.settings.reconnectDelaySeconds, MIN_RECONNECT_DELAY_SECONDS)
            if self._timers.armOnce(RECONNECT_TIMER, delay, self._startReconnect):
                logWithContext(logger, 'info', "Reconnect scheduled", port=self.settings.port,
                               delaySeconds=delay)

        elif signal is ControlSignal.REQUEST_NEXT:
            self._scheduler.requestNext()
