################################################################################
# File Name: commands.py
# Purpose/Description: ELM327 wire command vocabulary and command building
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
ELM327 command vocabulary.

Defines the AT commands and OBD request modes the engine link writes to the
adapter and builds single or batched PID requests.

Mode 01 requests may carry up to six PIDs on one line ('010C0D11').
Mode 22 requests carry exactly one two-byte sub-PID ('220545') and are never
combined with Mode 01 PIDs.

Usage:
    from marine_obd.protocol.commands import buildCommand, encodeCommand

    command = buildCommand(['0C', '05'])
    transport.write(encodeCommand(command.wireText))
"""

import re

from .exceptions import CommandBuildError, InvalidPidError
from .types import Command

# =============================================================================
# Wire Constants
# =============================================================================

PROMPT = '>'
COMMAND_TERMINATOR = '\r'

AT_RESET = 'ATZ'
AT_ECHO_OFF = 'ATE0'
AT_HEADERS_OFF = 'ATH0'
AT_AUTO_PROTOCOL = 'ATSP0'
AT_IDENTIFY = 'ATI'

# PID 00 is supported by every OBD2 ECU and has a short reply
ENGINE_PROBE_PID = '00'
ENGINE_PROBE_COMMAND = '0100'

MODE_01 = '01'
MODE_22 = '22'
MODE_22_PREFIX = '22:'

RESPONSE_MODE_01 = '41'
RESPONSE_MODE_22 = '62'

RESPONSE_MODES = {
    MODE_01: RESPONSE_MODE_01,
    MODE_22: RESPONSE_MODE_22,
}

# ELM327 accepts at most six Mode 01 PIDs in one request
MAX_BATCH_SIZE = 6

# Sent in order after both verification stages succeed
CONFIGURATION_COMMANDS = (AT_ECHO_OFF, AT_HEADERS_OFF, AT_AUTO_PROTOCOL)

MODE_01_PID_PATTERN = re.compile(r'^[0-9A-F]{2}$')
MODE_22_PID_PATTERN = re.compile(r'^22:[0-9A-F]{4}$')


# =============================================================================
# PID Helpers
# =============================================================================

def isMode22(pid: str) -> bool:
    """Return True for a '22:XXXX' manufacturer-specific identifier."""
    return pid.strip().upper().startswith(MODE_22_PREFIX)


def normalizePid(pid: str) -> str:
    """
    Normalize a PID identifier to upper-case canonical form.

    Args:
        pid: Identifier such as '0c' or '22:0545'

    Returns:
        Canonical identifier

    Raises:
        InvalidPidError: If the identifier is not 'XX' or '22:XXXX' hex
    """
    if not isinstance(pid, str):
        raise InvalidPidError(f"PID identifier must be a string, got {type(pid).__name__}", str(pid))

    normalized = pid.strip().upper()

    if MODE_01_PID_PATTERN.match(normalized) or MODE_22_PID_PATTERN.match(normalized):
        return normalized

    raise InvalidPidError(
        f"Invalid PID identifier '{pid}': expected 'XX' or '22:XXXX' hex form",
        pid
    )


# =============================================================================
# Command Building
# =============================================================================

def buildCommand(targets: list[str] | tuple[str, ...]) -> Command:
    """
    Build the request line for one or more PIDs.

    Args:
        targets: Ordered PID identifiers

    Returns:
        Command with its wire text

    Raises:
        CommandBuildError: If targets are empty, too many, or mix Mode 01
            with Mode 22
        InvalidPidError: If an identifier is malformed
    """
    if not targets:
        raise CommandBuildError("Cannot build a command without targets")

    normalized = [normalizePid(pid) for pid in targets]
    mode22Targets = [pid for pid in normalized if isMode22(pid)]

    if mode22Targets:
        if len(normalized) > 1:
            raise CommandBuildError(
                f"Mode 22 PIDs cannot be batched: {normalized}",
                normalized
            )
        pid = normalized[0]
        return Command(mode=MODE_22, targets=(pid,), wireText=MODE_22 + pid[len(MODE_22_PREFIX):])

    if len(normalized) > MAX_BATCH_SIZE:
        raise CommandBuildError(
            f"At most {MAX_BATCH_SIZE} PIDs per request, got {len(normalized)}",
            normalized
        )

    return Command(mode=MODE_01, targets=tuple(normalized), wireText=MODE_01 + ''.join(normalized))


def buildProbeCommand() -> Command:
    """Build the lightweight engine liveness query ('0100')."""
    return Command(mode=MODE_01, targets=(ENGINE_PROBE_PID,), wireText=ENGINE_PROBE_COMMAND)


def encodeCommand(text: str) -> bytes:
    """
    Encode command text for the wire.

    Args:
        text: Command text such as 'ATZ' or '010C'

    Returns:
        ASCII bytes terminated by a single carriage return
    """
    return (text.strip() + COMMAND_TERMINATOR).encode('ascii')
