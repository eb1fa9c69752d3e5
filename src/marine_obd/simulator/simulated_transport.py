################################################################################
# File Name: simulated_transport.py
# Purpose/Description: In-process asyncio transport backed by the adapter emulator
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
Simulated transport module for running the monitor without hardware.

Provides:
- SimulatedTransport, an asyncio.Transport that feeds written commands to
  an ElmAdapterEmulator and delivers the replies through the protocol's
  data_received() after a configurable delay, optionally in small chunks
- dropConnection() to inject a mid-session link loss
- delayNextReply() to make one reply arrive late
- SimulatedTransportFactory, a drop-in transport factory for Obd2Connection

Usage:
    from marine_obd.simulator import ElmAdapterEmulator, createSimulatedTransportFactory

    emulator = ElmAdapterEmulator(engineRunning=True)
    factory = createSimulatedTransportFactory(emulator, responseDelaySeconds=0.01)
    connection = Obd2Connection(settings, profile, transportFactory=factory)
    await connection.connect()

    # Later: simulate the Bluetooth link dropping
    factory.latest.dropConnection()
"""

import asyncio
import logging
from typing import Any, Callable

from ..connection.exceptions import TransportOpenError
from ..protocol.commands import COMMAND_TERMINATOR
from .adapter_emulator import ElmAdapterEmulator

logger = logging.getLogger(__name__)


# ================================================================================
# Constants
# ================================================================================

DEFAULT_RESPONSE_DELAY_SECONDS = 0.05


# ================================================================================
# SimulatedTransport Class
# ================================================================================

class SimulatedTransport(asyncio.Transport):
    """
    asyncio transport talking to an in-process adapter emulator.

    Attributes:
        emulator: Emulator answering the commands
        responsive: When False, commands are swallowed without a reply
        writes: Raw bytes written by the protocol, in order
    """

    def __init__(
        self,
        emulator: ElmAdapterEmulator,
        protocol: asyncio.Protocol,
        responseDelaySeconds: float = DEFAULT_RESPONSE_DELAY_SECONDS,
        chunkSize: int | None = None,
        loop: asyncio.AbstractEventLoop | None = None
    ):
        """
        Initialize the transport.

        Args:
            emulator: Emulator answering the commands
            protocol: Protocol receiving the replies
            responseDelaySeconds: Delay before a reply is delivered
            chunkSize: Deliver replies in chunks of this many bytes
            loop: Event loop, defaults to the running loop
        """
        super().__init__()
        self.emulator = emulator
        self.responsive = True
        self.writes: list[bytes] = []
        self._protocol = protocol
        self._responseDelay = responseDelaySeconds
        self._chunkSize = chunkSize
        self._loop = loop or asyncio.get_running_loop()
        self._inputBuffer = ''
        self._closing = False
        self._extraDelays: list[float] = []

    # ================================================================================
    # asyncio.Transport
    # ================================================================================

    def write(self, data: bytes) -> None:
        if self._closing:
            return

        self.writes.append(bytes(data))
        self._inputBuffer += bytes(data).decode('ascii', errors='replace')

        while COMMAND_TERMINATOR in self._inputBuffer:
            command, self._inputBuffer = self._inputBuffer.split(COMMAND_TERMINATOR, 1)
            if not command.strip():
                continue
            if not self.responsive:
                logger.debug(f"Simulated adapter ignored {command!r}")
                continue

            reply = self.emulator.handleCommand(command)
            delay = self._responseDelay
            if self._extraDelays:
                delay += self._extraDelays.pop(0)
            self._loop.call_later(delay, self._deliver, reply)

    def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        self._loop.call_soon(self._protocol.connection_lost, None)

    def abort(self) -> None:
        self.close()

    def is_closing(self) -> bool:
        return self._closing

    def get_extra_info(self, name: str, default: Any = None) -> Any:
        if name == 'emulator':
            return self.emulator
        return default

    # ================================================================================
    # Fault Injection
    # ================================================================================

    def dropConnection(self, exc: Exception | None = None) -> None:
        """
        Simulate the link dropping mid-session.

        Args:
            exc: Exception reported to connection_lost(), defaults to
                ConnectionResetError
        """
        if self._closing:
            return
        self._closing = True
        error = exc or ConnectionResetError("Simulated link drop")
        logger.info(f"Simulated transport dropped: {error}")
        self._loop.call_soon(self._protocol.connection_lost, error)

    def delayNextReply(self, extraSeconds: float) -> None:
        """
        Hold back the reply to the next command.

        Args:
            extraSeconds: Added to the normal response delay; longer than the
                request timeout makes the reply arrive after its deadline
        """
        self._extraDelays.append(extraSeconds)

    def _deliver(self, reply: str) -> None:
        if self._closing:
            return

        data = reply.encode('ascii', errors='replace')
        size = self._chunkSize or len(data)
        for start in range(0, len(data), size):
            self._loop.call_soon(self._deliverChunk, data[start:start + size])

    def _deliverChunk(self, chunk: bytes) -> None:
        if not self._closing:
            self._protocol.data_received(chunk)


# ================================================================================
# Factory
# ================================================================================

class SimulatedTransportFactory:
    """
    Transport factory for Obd2Connection(transportFactory=...).

    Attributes:
        emulator: Emulator shared by every opened transport
        transports: Every transport opened so far
        openFailures: Number of upcoming opens that fail
    """

    def __init__(
        self,
        emulator: ElmAdapterEmulator,
        responseDelaySeconds: float = DEFAULT_RESPONSE_DELAY_SECONDS,
        chunkSize: int | None = None,
        openFailures: int = 0
    ):
        self.emulator = emulator
        self.responseDelaySeconds = responseDelaySeconds
        self.chunkSize = chunkSize
        self.openFailures = openFailures
        self.transports: list[SimulatedTransport] = []

    @property
    def latest(self) -> SimulatedTransport | None:
        """Most recently opened transport."""
        return self.transports[-1] if self.transports else None

    async def __call__(
        self,
        protocolFactory: Callable[[], asyncio.Protocol]
    ) -> tuple[SimulatedTransport, asyncio.Protocol]:
        if self.openFailures > 0:
            self.openFailures -= 1
            raise TransportOpenError("Simulated adapter not reachable", {'simulated': True})

        protocol = protocolFactory()
        transport = SimulatedTransport(
            self.emulator,
            protocol,
            responseDelaySeconds=self.responseDelaySeconds,
            chunkSize=self.chunkSize
        )
        protocol.connection_made(transport)
        self.transports.append(transport)
        logger.debug(f"Simulated transport #{len(self.transports)} opened")
        return transport, protocol


def createSimulatedTransportFactory(
    emulator: ElmAdapterEmulator | None = None,
    responseDelaySeconds: float = DEFAULT_RESPONSE_DELAY_SECONDS,
    chunkSize: int | None = None,
    openFailures: int = 0
) -> SimulatedTransportFactory:
    """
    Create a transport factory backed by an adapter emulator.

    Args:
        emulator: Emulator to talk to, defaults to a running engine
        responseDelaySeconds: Delay before each reply is delivered
        chunkSize: Deliver replies in chunks of this many bytes
        openFailures: Number of initial opens that fail

    Returns:
        SimulatedTransportFactory
    """
    return SimulatedTransportFactory(
        emulator or ElmAdapterEmulator(),
        responseDelaySeconds=responseDelaySeconds,
        chunkSize=chunkSize,
        openFailures=openFailures
    )


def createEmulatorFromConfig(config: dict) -> ElmAdapterEmulator:
    """
    Create an adapter emulator from the simulator section of the configuration.

    Args:
        config: Configuration from loadMonitorConfig()

    Returns:
        ElmAdapterEmulator
    """
    simulator = config.get('simulator', {})
    return ElmAdapterEmulator(
        engineRunning=simulator.get('engineRunning', True),
        supportsBatching=simulator.get('supportsBatching', True),
        spaces=simulator.get('spaces', True)
    )
