################################################################################
# File Name: sequencer.py
# Purpose/Description: Adapter/engine verification handshake and adapter setup
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
Initialization sequencer.

Runs once per transport open as one coroutine:

1. verifyAdapter: 'ATI' must come back with an ELM327/STN/OBD identity
   within the adapter check timeout, otherwise the attempt is abandoned
   (adapterError).
2. verifyEngine: '0100' must come back with '41 00 ...' within the engine
   check timeout, otherwise the connection goes to engine_off and probes.
3. configureAdapter: 'ATZ', 'ATE0', 'ATH0', 'ATSP0', each waiting for its
   prompt up to the command timeout and then pausing for its delay, then
   a settle delay before polling starts.

The link object supplies exchange(commandText, timeout) returning the reply
lines or None on timeout.

Usage:
    sequencer = InitializationSequencer(link, stateMachine, settings)
    result = await sequencer.run()
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from ..protocol.commands import (
    AT_IDENTIFY,
    AT_RESET,
    CONFIGURATION_COMMANDS,
    ENGINE_PROBE_COMMAND,
)
from ..protocol.decoder import classifyResponse, findAdapterIdentity, isEngineProbeReply
from .state_machine import ConnectionStateMachine
from .types import ConnectionSettings, HandshakeResult

logger = logging.getLogger(__name__)


class InitializationSequencer:
    """Two-stage verification followed by adapter configuration."""

    def __init__(
        self,
        link: Any,
        stateMachine: ConnectionStateMachine,
        settings: ConnectionSettings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Initialize the sequencer.

        Args:
            link: Object with async exchange(commandText, timeout)
            stateMachine: Receives the handshake events
            settings: Stage timeouts and delays
            sleep: Coroutine used for the fixed delays
        """
        self._link = link
        self._stateMachine = stateMachine
        self._settings = settings
        self._sleep = sleep

    async def run(self) -> HandshakeResult:
        """
        Run the full handshake.

        Returns:
            READY, ADAPTER_NOT_FOUND or ENGINE_OFF
        """
        self._stateMachine.adapterCheckStarted()

        if not await self.verifyAdapter():
            return HandshakeResult.ADAPTER_NOT_FOUND

        await self._sleep(self._settings.stageDelaySeconds)

        if not await self.verifyEngine():
            return HandshakeResult.ENGINE_OFF

        await self._sleep(self._settings.stageDelaySeconds)

        await self.configureAdapter()
        return HandshakeResult.READY

    async def verifyAdapter(self) -> bool:
        """Stage 1: query the adapter identity."""
        logger.info("Verifying adapter")
        lines = await self._link.exchange(AT_IDENTIFY, self._settings.adapterCheckTimeoutSeconds)

        if lines is None:
            self._stateMachine.adapterCheckFailed(
                f"No reply to {AT_IDENTIFY} within {self._settings.adapterCheckTimeoutSeconds}s"
            )
            return False

        identity = findAdapterIdentity(lines)
        if identity is None:
            self._stateMachine.adapterCheckFailed(f"Unrecognised adapter reply: {lines}")
            return False

        logger.info(f"Adapter verified: {identity}")
        self._stateMachine.adapterVerified(identity)
        return True

    async def verifyEngine(self) -> bool:
        """Stage 2: check the engine ECU answers."""
        logger.info("Verifying engine")
        lines = await self._link.exchange(
            ENGINE_PROBE_COMMAND, self._settings.engineCheckTimeoutSeconds
        )

        if lines is None:
            self._stateMachine.engineOff(
                f"No reply to {ENGINE_PROBE_COMMAND} within {self._settings.engineCheckTimeoutSeconds}s"
            )
            return False

        if not isEngineProbeReply(lines):
            category = classifyResponse(lines)
            self._stateMachine.engineOff(f"Engine check reply: {category.value}")
            return False

        logger.info("Engine verified")
        self._stateMachine.engineVerified()
        return True

    async def configureAdapter(self) -> None:
        """Reset and configure the adapter, then start polling."""
        logger.info("Configuring adapter")

        await self._sendConfig(AT_RESET, self._settings.resetDelaySeconds)
        for command in CONFIGURATION_COMMANDS:
            await self._sendConfig(command, self._settings.commandDelaySeconds)

        await self._sleep(self._settings.settleDelaySeconds)

        self._stateMachine.initialized()
        logger.info("Adapter initialized, polling started")

    async def _sendConfig(self, command: str, delay: float) -> None:
        timeout = self._settings.commandTimeoutSeconds
        lines = await self._link.exchange(command, timeout)
        if lines is None:
            logger.warning(f"No prompt after {command} within {timeout}s, continuing")
        else:
            logger.debug(f"{command} -> {lines}")

        # The adapter needs time to apply the setting before the next command
        await self._sleep(delay)
