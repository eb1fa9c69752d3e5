################################################################################
# File Name: test_connection.py
# Purpose/Description: Tests for Obd2Connection against the adapter emulator
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
Tests for the connection.connection module.

Drives a full Obd2Connection over the simulated transport: handshake,
polling, batch demotion, engine-off probing and link loss.

Run with:
    pytest tests/test_connection.py -v
"""

import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import Callable

import pytest
import pytest_asyncio

srcPath = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(srcPath))

from marine_obd.connection import (
    ConnectionClosedError,
    ConnectionSettings,
    LivenessState,
    Obd2Connection,
)
from marine_obd.pids import createProfile
from marine_obd.scheduler.types import BatchMode
from marine_obd.simulator import ElmAdapterEmulator, createSimulatedTransportFactory

pytestmark = pytest.mark.integration


# ================================================================================
# Helpers
# ================================================================================

async def waitFor(predicate: Callable[[], bool], timeout: float = 3.0) -> None:
    """Poll a condition until it holds or the timeout passes."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError('condition not met before timeout')
        await asyncio.sleep(0.005)


def writtenCommands(factory) -> list[str]:
    commands = []
    for transport in factory.transports:
        commands.extend(data.decode('ascii').strip() for data in transport.writes)
    return commands


class Harness:
    """A connection wired to an emulator with recorded events."""

    def __init__(self, settings: ConnectionSettings, emulator: ElmAdapterEmulator, pids: list[str]):
        self.emulator = emulator
        self.factory = createSimulatedTransportFactory(emulator, responseDelaySeconds=0.001)
        self.connection = Obd2Connection(
            settings,
            createProfile(pids),
            transportFactory=self.factory
        )
        self.readings = []
        self.states = []
        self.busErrors = []
        self.lost = []
        self.connection.on('reading', self.readings.append)
        self.connection.on('stateChange', lambda old, new, ts: self.states.append(new))
        self.connection.on('busError', lambda category, lines: self.busErrors.append(category))
        self.connection.on('connectionLost', lambda: self.lost.append(True))

    def readingPids(self) -> set:
        return {reading.pid for reading in self.readings}


@pytest_asyncio.fixture
async def harnessFactory(fastSettings):
    created = []

    def make(emulator: ElmAdapterEmulator = None, pids: list[str] = None, settings=None) -> Harness:
        harness = Harness(
            settings or fastSettings,
            emulator or ElmAdapterEmulator(),
            pids or ['0C', '05', '11']
        )
        created.append(harness)
        return harness

    yield make

    for harness in created:
        harness.connection.disconnect()
    await asyncio.sleep(0)


# ================================================================================
# Polling Tests
# ================================================================================

class TestConnectAndPoll:
    """Tests for the connect/handshake/poll path."""

    @pytest.mark.asyncio
    async def test_connect_healthyEngine_emitsReadings(self, harnessFactory):
        """
        Given: Emulated adapter with the engine running
        When: connect is called
        Then: The handshake completes and readings for every PID arrive
        """
        harness = harnessFactory()

        assert await harness.connection.connect() is True
        await waitFor(lambda: {'0C', '05', '11'} <= harness.readingPids())

        assert harness.connection.state is LivenessState.ACTIVE
        assert harness.states[:5] == [
            LivenessState.CONNECTING,
            LivenessState.ADAPTER_CHECK,
            LivenessState.ENGINE_CHECK,
            LivenessState.INITIALIZING,
            LivenessState.ACTIVE,
        ]
        rpm = next(r for r in harness.readings if r.pid == '0C')
        coolant = next(r for r in harness.readings if r.pid == '05')
        assert rpm.value == 1726
        assert coolant.value == 83

    @pytest.mark.asyncio
    async def test_connect_handshakeCommands_inOrder(self, harnessFactory):
        """
        Given: Emulated adapter
        When: The connection reaches active
        Then: The verification and configuration commands precede polling
        """
        harness = harnessFactory()

        await harness.connection.connect()
        await waitFor(lambda: harness.readings)

        commands = writtenCommands(harness.factory)
        assert commands[:6] == ['ATI', '0100', 'ATZ', 'ATE0', 'ATH0', 'ATSP0']
        assert commands[6] == '010C0511'

    @pytest.mark.asyncio
    async def test_batchRejected_demotesToSinglePid(self, harnessFactory):
        """
        Given: Adapter that rejects multi-PID requests
        When: Polling starts
        Then: Batching is demoted and every PID is still read one at a time
        """
        harness = harnessFactory(emulator=ElmAdapterEmulator(supportsBatching=False))

        await harness.connection.connect()
        await waitFor(lambda: {'0C', '05', '11'} <= harness.readingPids())

        assert harness.connection.scheduler.batchMode is BatchMode.DEMOTED
        commands = writtenCommands(harness.factory)
        assert '010C0511' in commands
        batchIndex = commands.index('010C0511')
        assert all(len(c) == 4 for c in commands[batchIndex + 1:] if c.startswith('01'))

    @pytest.mark.asyncio
    async def test_unsupportedPid_isDroppedFromReadings(self, harnessFactory):
        """
        Given: Engine that does not answer one of the batch PIDs
        When: Polling runs
        Then: The other PIDs still produce readings
        """
        emulator = ElmAdapterEmulator()
        emulator.removeSensor('11')
        harness = harnessFactory(emulator=emulator)

        await harness.connection.connect()
        await waitFor(lambda: {'0C', '05'} <= harness.readingPids())

        assert '11' not in harness.readingPids()
        assert harness.connection.state is LivenessState.ACTIVE

    @pytest.mark.asyncio
    async def test_chunkedReplies_areReassembled(self, harnessFactory):
        """
        Given: Transport delivering replies three bytes at a time
        When: Polling runs
        Then: Readings still decode
        """
        harness = harnessFactory()
        harness.factory.chunkSize = 3

        await harness.connection.connect()
        await waitFor(lambda: '0C' in harness.readingPids())

    @pytest.mark.asyncio
    async def test_getStatus_reportsActiveConnection(self, harnessFactory):
        """
        Given: Active connection
        When: getStatus is called
        Then: Liveness, instance and engine are reported
        """
        harness = harnessFactory()

        await harness.connection.connect()
        await waitFor(lambda: harness.readings)
        status = harness.connection.getStatus()

        assert status['connected'] is True
        assert status['instance'] == 'port'
        assert status['engine'] == 'Custom/custom'
        assert status['liveness']['state'] == 'active'
        assert status['liveness']['adapterIdentity'] == 'ELM327 v1.5'


# ================================================================================
# Late Reply Tests
# ================================================================================

class TestLateReplies:
    """Tests for replies that arrive after their request timed out."""

    @pytest.mark.asyncio
    async def test_lateReply_pollingStaysInStep(self, harnessFactory, fastSettings):
        """
        Given: Single-PID polling of 0C, 05 and 11
        When: One reply arrives after its 0.2s deadline
        Then: The late reply is ignored and every PID keeps its own readings
        """
        harness = harnessFactory(settings=replace(fastSettings, batchMode=False))
        await harness.connection.connect()
        await waitFor(lambda: {'0C', '05', '11'} <= harness.readingPids())

        harness.factory.latest.delayNextReply(0.25)
        await asyncio.sleep(0.35)
        mark = len(harness.readings)
        await waitFor(lambda: len(harness.readings) >= mark + 30)

        recent = harness.readings[mark:]
        assert {reading.pid for reading in recent} == {'0C', '05', '11'}
        assert all(r.value == 1726 for r in recent if r.pid == '0C')
        assert all(r.value == 83 for r in recent if r.pid == '05')
        assert harness.connection.state is LivenessState.ACTIVE
        assert harness.connection.stateMachine.status.consecutiveNoDataCount == 0

    @pytest.mark.asyncio
    async def test_lateBatchReply_doesNotAnswerSinglePid(self, harnessFactory):
        """
        Given: Batch polling
        When: The batch reply arrives after its deadline
        Then: Batching is demoted and single-PID polling still reads every PID
        """
        harness = harnessFactory()
        await harness.connection.connect()
        await waitFor(lambda: harness.readings)

        harness.factory.latest.delayNextReply(0.35)
        await waitFor(lambda: harness.connection.scheduler.batchMode is BatchMode.DEMOTED)
        await asyncio.sleep(0.1)
        mark = len(harness.readings)
        await waitFor(lambda: len(harness.readings) >= mark + 30)

        assert {reading.pid for reading in harness.readings[mark:]} == {'0C', '05', '11'}
        assert harness.connection.state is LivenessState.ACTIVE


# ================================================================================
# Liveness Tests
# ================================================================================

class TestEngineLiveness:
    """Tests for engine-off detection and probing."""

    @pytest.mark.asyncio
    async def test_engineOffAtConnect_probesUntilRunning(self, harnessFactory):
        """
        Given: Engine off when the connection opens
        When: The engine is started later
        Then: engine_off with probes, then initializing and active with readings
        """
        emulator = ElmAdapterEmulator(engineRunning=False)
        harness = harnessFactory(emulator=emulator)

        await harness.connection.connect()
        await waitFor(lambda: harness.connection.state is LivenessState.ENGINE_OFF)
        await waitFor(lambda: writtenCommands(harness.factory).count('0100') >= 3)

        assert 'ATE0' not in writtenCommands(harness.factory)
        assert harness.readings == []

        emulator.engineRunning = True
        await waitFor(lambda: harness.readings)

        assert harness.connection.state is LivenessState.ACTIVE
        assert LivenessState.INITIALIZING in harness.states[harness.states.index(LivenessState.ENGINE_OFF):]
        assert 'ATE0' in writtenCommands(harness.factory)

    @pytest.mark.asyncio
    async def test_engineStops_probesThenRecovers(self, harnessFactory):
        """
        Given: Active connection
        When: The engine stops answering and later restarts
        Then: Probing after the NO DATA threshold, active again on restart
        """
        emulator = ElmAdapterEmulator()
        harness = harnessFactory(emulator=emulator)
        await harness.connection.connect()
        await waitFor(lambda: harness.readings)

        emulator.engineRunning = False
        await waitFor(lambda: harness.connection.state is LivenessState.PROBING)

        assert harness.states.count(LivenessState.PROBING) == 1

        count = len(harness.readings)
        emulator.engineRunning = True
        await waitFor(lambda: len(harness.readings) > count)

        assert harness.connection.state is LivenessState.ACTIVE

    @pytest.mark.asyncio
    async def test_silentAdapterWhileProbing_losesConnection(self, harnessFactory, fastSettings):
        """
        Given: Probing connection allowing two probe failures
        When: The adapter stops answering entirely
        Then: The connection is lost and a reconnect is scheduled
        """
        fastSettings.maxProbeFailures = 2
        fastSettings.probeTimeoutSeconds = 0.05
        emulator = ElmAdapterEmulator()
        harness = harnessFactory(emulator=emulator, settings=fastSettings)
        await harness.connection.connect()
        await waitFor(lambda: harness.readings)

        emulator.engineRunning = False
        await waitFor(lambda: harness.connection.state is LivenessState.PROBING)
        harness.factory.latest.responsive = False
        await waitFor(lambda: harness.connection.state is LivenessState.DISCONNECTED)

        assert harness.lost
        await waitFor(lambda: harness.connection.timers.isArmed('reconnect'))


# ================================================================================
# Link Loss Tests
# ================================================================================

class TestLinkLoss:
    """Tests for transport loss, reconnect and disconnect."""

    @pytest.mark.asyncio
    async def test_dropConnection_schedulesSingleReconnect(self, harnessFactory):
        """
        Given: Active connection
        When: The link drops
        Then: Disconnected, connectionLost emitted, one reconnect timer of at least 5s
        """
        harness = harnessFactory()
        await harness.connection.connect()
        await waitFor(lambda: harness.readings)

        harness.factory.latest.dropConnection()
        await waitFor(lambda: harness.connection.state is LivenessState.DISCONNECTED)

        assert harness.lost == [True]
        assert harness.connection.isConnected is False
        assert harness.connection.timers.armedNames() == ['reconnect']
        assert harness.connection.timers.delayOf('reconnect') >= 5.0

    @pytest.mark.asyncio
    async def test_openFailure_schedulesReconnect(self, fastSettings):
        """
        Given: Adapter that cannot be opened
        When: connect is called
        Then: Returns False and a reconnect is armed
        """
        factory = createSimulatedTransportFactory(responseDelaySeconds=0.001, openFailures=1)
        connection = Obd2Connection(fastSettings, createProfile(['0C']), transportFactory=factory)

        try:
            assert await connection.connect() is False
            assert connection.state is LivenessState.DISCONNECTED
            assert connection.timers.isArmed('reconnect')
        finally:
            connection.disconnect()

    @pytest.mark.asyncio
    async def test_disconnect_cancelsEverything(self, harnessFactory):
        """
        Given: Active connection polling
        When: disconnect is called
        Then: No timers remain, no reconnect is scheduled, state is disconnected
        """
        harness = harnessFactory()
        await harness.connection.connect()
        await waitFor(lambda: harness.readings)

        harness.connection.disconnect()
        await asyncio.sleep(0.05)

        assert harness.connection.state is LivenessState.DISCONNECTED
        assert harness.connection.timers.armedNames() == []
        assert harness.lost == []
        assert harness.factory.latest.is_closing()

    @pytest.mark.asyncio
    async def test_sendCommand_withoutTransport_raises(self, fastSettings):
        """
        Given: Connection that was never opened
        When: sendCommand is called
        Then: Raises ConnectionClosedError
        """
        connection = Obd2Connection(fastSettings, createProfile(['0C']))

        with pytest.raises(ConnectionClosedError):
            connection.sendCommand('010C')
