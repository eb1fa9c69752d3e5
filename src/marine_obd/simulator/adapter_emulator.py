################################################################################
# File Name: adapter_emulator.py
# Purpose/Description: ELM327 adapter emulator for testing without hardware
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
ELM327 adapter emulator module.

Answers the ASCII command set the monitor uses the way an ELM327 clone on
a running (or stopped) engine does:
- AT commands: ATZ, ATI, ATE0/1, ATH0/1, ATS0/1, ATSP0
- 0100 engine probe
- Mode 01 single and batched (up to six PID) queries
- Mode 22 manufacturer queries

Every reply is terminated by the '>' prompt. Unsupported commands answer
'?', PIDs without sensor bytes answer NO DATA.

Usage:
    from marine_obd.simulator.adapter_emulator import ElmAdapterEmulator

    emulator = ElmAdapterEmulator(engineRunning=True)
    reply = emulator.handleCommand('010C')
    # '41 0C 1A F8\\r\\r>'
"""

import logging
import re

from ..protocol.commands import (
    AT_AUTO_PROTOCOL,
    AT_IDENTIFY,
    AT_RESET,
    ENGINE_PROBE_COMMAND,
    MAX_BATCH_SIZE,
    MODE_01,
    MODE_22,
    MODE_22_PREFIX,
    PROMPT,
    RESPONSE_MODE_01,
    RESPONSE_MODE_22,
)

logger = logging.getLogger(__name__)


# ================================================================================
# Constants
# ================================================================================

ADAPTER_IDENTITY = 'ELM327 v1.5'

NO_DATA_REPLY = 'NO DATA'
INVALID_REPLY = '?'
OK_REPLY = 'OK'

# Response header of the engine ECU when headers are on
ECU_HEADER = '7E8'

# Supported-PID bitmap answered to 0100
SUPPORTED_PIDS_BITMAP = (0xBE, 0x3F, 0xA8, 0x13)

# Raw bytes per PID for a diesel at fast idle
DEFAULT_SENSOR_BYTES: dict[str, tuple[int, ...]] = {
    '04': (0x4D,),          # 30 %
    '05': (0x7B,),          # 83 °C
    '0B': (0x65,),          # 101 kPa
    '0C': (0x1A, 0xF8),     # 1726 rpm
    '0F': (0x41,),          # 25 °C
    '10': (0x01, 0x90),     # 4 g/s
    '11': (0x33,),          # 20 %
    '1F': (0x04, 0xB0),     # 1200 s
    '22': (0x01, 0xF4),     # 39.5 kPa
    '23': (0x0B, 0xB8),     # 30000 kPa
    '2F': (0xBF,),          # 75 %
    '33': (0x65,),          # 101 kPa
    '42': (0x35, 0xB6),     # 13.75 V
    '46': (0x3C,),          # 20 °C
    '5C': (0x82,),          # 90 °C
    '5E': (0x00, 0xC8),     # 10 L/h
    '22:0545': (0x00, 0x64),
    '22:0045': (0x00, 0x64),
}

_HEX_PATTERN = re.compile(r'^[0-9A-F]+$')


class ElmAdapterEmulator:
    """
    Emulates the command/response behaviour of an ELM327 adapter.

    Attributes:
        engineRunning: Whether the ECU answers OBD queries
        supportsBatching: Whether multi-PID Mode 01 requests are accepted
        spaces: Whether reply bytes are separated by spaces (ATS1)
        echo: Whether commands are echoed back (ATE1)
        headers: Whether replies carry the ECU header (ATH1)
        sensorBytes: Raw reply bytes per PID identifier
        commandLog: Every command received, in order
    """

    def __init__(
        self,
        engineRunning: bool = True,
        supportsBatching: bool = True,
        spaces: bool = True,
        sensorBytes: dict[str, tuple[int, ...]] | None = None,
        identity: str = ADAPTER_IDENTITY
    ):
        """
        Initialize the emulator.

        Args:
            engineRunning: Whether the ECU answers OBD queries
            supportsBatching: Whether multi-PID Mode 01 requests are accepted
            spaces: Whether reply bytes are separated by spaces
            sensorBytes: Raw bytes per PID, defaults to DEFAULT_SENSOR_BYTES
            identity: String answered to ATZ and ATI
        """
        self.engineRunning = engineRunning
        self.supportsBatching = supportsBatching
        self.spaces = spaces
        self._powerOnSpaces = spaces
        self.identity = identity
        self.sensorBytes: dict[str, tuple[int, ...]] = {
            pid.upper(): tuple(value)
            for pid, value in (sensorBytes if sensorBytes is not None else DEFAULT_SENSOR_BYTES).items()
        }
        self.echo = True
        self.headers = False
        self.commandLog: list[str] = []

    # ================================================================================
    # Public API
    # ================================================================================

    def handleCommand(self, text: str) -> str:
        """
        Produce the full reply to one command, prompt included.

        Args:
            text: Command text without the carriage return

        Returns:
            Reply text as the adapter would write it
        """
        command = text.strip().upper().replace(' ', '')
        self.commandLog.append(command)

        echo = self.echo
        lines = self._answer(command)
        logger.debug(f"Emulator {command} -> {lines}")

        reply = '\r'.join(lines) + '\r\r' + PROMPT
        if echo:
            reply = text.strip() + '\r' + reply
        return reply

    def setSensorBytes(self, pid: str, value: tuple[int, ...]) -> None:
        """Set the raw reply bytes of a PID."""
        self.sensorBytes[pid.upper()] = tuple(value)

    def removeSensor(self, pid: str) -> None:
        """Make a PID answer NO DATA."""
        self.sensorBytes.pop(pid.upper(), None)

    def reset(self) -> None:
        """Restore power-on defaults (echo on, headers off)."""
        self.echo = True
        self.headers = False
        self.spaces = self._powerOnSpaces

    # ================================================================================
    # Command Handling
    # ================================================================================

    def _answer(self, command: str) -> list[str]:
        if command.startswith('AT'):
            return self._answerAt(command)

        if not command or not _HEX_PATTERN.match(command) or len(command) % 2:
            return [INVALID_REPLY]

        if command == ENGINE_PROBE_COMMAND:
            if not self.engineRunning:
                return [NO_DATA_REPLY]
            return [self._formatReply(RESPONSE_MODE_01, ['00'], SUPPORTED_PIDS_BITMAP)]

        if command.startswith(MODE_01):
            return self._answerMode01(command[len(MODE_01):])

        if command.startswith(MODE_22):
            return self._answerMode22(command[len(MODE_22):])

        return [INVALID_REPLY]

    def _answerAt(self, command: str) -> list[str]:
        if command == AT_RESET:
            self.reset()
            return ['', self.identity]
        if command == AT_IDENTIFY:
            return [self.identity]
        if command == AT_AUTO_PROTOCOL:
            return [OK_REPLY]

        toggles = {'ATE': 'echo', 'ATH': 'headers', 'ATS': 'spaces'}
        prefix, flag = command[:3], command[3:]
        if prefix in toggles and flag in ('0', '1'):
            setattr(self, toggles[prefix], flag == '1')
            return [OK_REPLY]

        return [INVALID_REPLY]

    def _answerMode01(self, pids: str) -> list[str]:
        targets = [pids[i:i + 2] for i in range(0, len(pids), 2)]
        if not targets or len(targets) > MAX_BATCH_SIZE:
            return [INVALID_REPLY]
        if len(targets) > 1 and not self.supportsBatching:
            return [INVALID_REPLY]
        if not self.engineRunning:
            return [NO_DATA_REPLY]

        answered = [pid for pid in targets if pid in self.sensorBytes]
        if not answered:
            return [NO_DATA_REPLY]

        payload: list[int] = []
        for pid in answered:
            payload.append(int(pid, 16))
            payload.extend(self.sensorBytes[pid])

        return [self._formatReply(RESPONSE_MODE_01, [], tuple(payload))]

    def _answerMode22(self, subPid: str) -> list[str]:
        if len(subPid) != 4:
            return [INVALID_REPLY]
        if not self.engineRunning:
            return [NO_DATA_REPLY]

        value = self.sensorBytes.get(MODE_22_PREFIX + subPid)
        if value is None:
            return [NO_DATA_REPLY]
        return [self._formatReply(RESPONSE_MODE_22, [subPid[:2], subPid[2:]], value)]

    def _formatReply(self, responseMode: str, pidBytes: list[str], value: tuple[int, ...]) -> str:
        tokens = [responseMode] + pidBytes + [f'{b:02X}' for b in value]
        if self.headers:
            tokens = [ECU_HEADER, f'{len(tokens):02X}'] + tokens
        separator = ' ' if self.spaces else ''
        return separator.join(tokens)
