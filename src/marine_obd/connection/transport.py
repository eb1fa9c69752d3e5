################################################################################
# File Name: transport.py
# Purpose/Description: asyncio serial transport for the ELM327 adapter
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
Serial transport.

The adapter is reached through a serial device: a USB ELM327 or a
Bluetooth SPP binding such as /dev/rfcomm0. pyserial-asyncio provides the
asyncio transport; AdapterProtocol forwards its callbacks to the owning
connection's inbox.

Usage:
    transport, protocol = await openSerialTransport(
        '/dev/rfcomm0', 38400, lambda: AdapterProtocol(sink)
    )
"""

import asyncio
import logging
from typing import Any, Callable

import serial
import serial_asyncio

from .exceptions import TransportOpenError
from .types import EventKind

logger = logging.getLogger(__name__)

EventSink = Callable[[EventKind, Any, Any], None]


class AdapterProtocol(asyncio.Protocol):
    """
    Forwards transport callbacks as (kind, protocol, payload) to a sink.

    The protocol instance is passed along so the owner can drop events from
    a transport it has already replaced.
    """

    def __init__(self, sink: EventSink):
        self._sink = sink
        self.transport: asyncio.BaseTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport
        logger.debug("Transport connection made")

    def data_received(self, data: bytes) -> None:
        self._sink(EventKind.DATA, self, data)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            logger.warning(f"Transport connection lost: {exc}")
        else:
            logger.debug("Transport closed")
        self.transport = None
        self._sink(EventKind.CLOSED, self, exc)


async def openSerialTransport(
    port: str,
    baudRate: int,
    protocolFactory: Callable[[], asyncio.Protocol]
) -> tuple[asyncio.Transport, asyncio.Protocol]:
    """
    Open the serial device as an asyncio transport.

    Args:
        port: Device path, e.g. '/dev/rfcomm0' or 'COM5'
        baudRate: Line speed (38400 for most ELM327 clones)
        protocolFactory: Builds the protocol bound to the transport

    Returns:
        (transport, protocol)

    Raises:
        TransportOpenError: If the device cannot be opened
    """
    loop = asyncio.get_running_loop()
    logger.info(f"Opening serial port {port} at {baudRate} baud")

    try:
        return await serial_asyncio.create_serial_connection(
            loop, protocolFactory, port, baudrate=baudRate
        )
    except (serial.SerialException, OSError) as e:
        raise TransportOpenError(
            f"Cannot open serial port {port}: {e}",
            {'port': port, 'baudRate': baudRate}
        ) from e
