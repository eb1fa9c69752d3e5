################################################################################
# File Name: decoder.py
# Purpose/Description: PID frame decoding and batch reply de-concatenation
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
PID frame decoder.

Turns cleaned reply lines into protocol frames and readings:

- classifyLine / classifyResponse: sort a reply into data or one of the
  adapter error tokens (NO DATA, UNABLE TO CONNECT, CAN ERROR, ?)
- decodeFrame: split one data line into mode, PID and value bytes; spaced
  ('41 0C 1A F8') and concatenated ('410C1AF8') forms are both accepted
- splitBatchFrame: walk a concatenated multi-PID reply using each PID's
  declared byte length
- frameToReading: apply the PID definition (and optional engine remap)
- replyAnswersCommand: tell a reply to the outstanding request from a late
  reply to an earlier one

Nothing in this module raises for a malformed reply; failures return None
or an empty list. A PID decode formula that fails is re-raised as
DecodeError so the caller can report it.

Usage:
    from marine_obd.protocol.decoder import decodeFrame, frameToReading

    frame = decodeFrame('41 0C 1A F8', expectedMode='01')
    reading = frameToReading(frame, pidLookup)
"""

import logging
import re
import time
from typing import Any, Iterable

from common.error_handler import DecodeError

from .commands import (
    MODE_22_PREFIX,
    RESPONSE_MODE_01,
    RESPONSE_MODE_22,
    RESPONSE_MODES,
)
from .types import DecodedFrame, Reading, ResponseCategory

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

WHITESPACE_PATTERN = re.compile(r'\s+')
HEX_PATTERN = re.compile(r'^[0-9A-F]+$')

# Hex characters: response mode + identifier + at least one value byte
MIN_FRAME_LENGTH = {
    RESPONSE_MODE_01: 2 + 2 + 2,
    RESPONSE_MODE_22: 2 + 4 + 2,
}

IDENTIFIER_LENGTH = {
    RESPONSE_MODE_01: 2,
    RESPONSE_MODE_22: 4,
}

# Checked in order on the reply text with whitespace removed
ERROR_TOKENS = (
    ('NODATA', ResponseCategory.NO_DATA),
    ('UNABLETOCONNECT', ResponseCategory.UNABLE_TO_CONNECT),
    ('CANERROR', ResponseCategory.CAN_ERROR),
)

# classifyResponse priority after DATA
CATEGORY_PRIORITY = (
    ResponseCategory.NO_DATA,
    ResponseCategory.UNABLE_TO_CONNECT,
    ResponseCategory.CAN_ERROR,
    ResponseCategory.INVALID_COMMAND,
    ResponseCategory.OTHER,
)

ADAPTER_IDENTITY_MARKERS = ('ELM327', 'STN', 'OBD')


def _compact(line: str) -> str:
    """Upper-case a line and remove all whitespace."""
    return WHITESPACE_PATTERN.sub('', line).upper()


def _isHex(text: str) -> bool:
    return bool(text) and HEX_PATTERN.match(text) is not None


# =============================================================================
# Classification
# =============================================================================

def classifyLine(line: str) -> ResponseCategory:
    """
    Classify a single reply line.

    Args:
        line: Cleaned logical line

    Returns:
        ResponseCategory of the line
    """
    compact = _compact(line)

    if compact == '?':
        return ResponseCategory.INVALID_COMMAND

    for token, category in ERROR_TOKENS:
        if token in compact:
            return category

    if _isHex(compact) and compact[:2] in (RESPONSE_MODE_01, RESPONSE_MODE_22):
        return ResponseCategory.DATA

    return ResponseCategory.OTHER


def classifyResponse(lines: list[str]) -> ResponseCategory:
    """
    Classify a whole reply.

    A reply with any data line is DATA; otherwise the most significant error
    category wins. An empty reply (bare prompt) counts as NO_DATA.

    Args:
        lines: Cleaned logical lines of one reply

    Returns:
        ResponseCategory of the reply
    """
    if not lines:
        return ResponseCategory.NO_DATA

    categories = {classifyLine(line) for line in lines}

    if ResponseCategory.DATA in categories:
        return ResponseCategory.DATA

    for category in CATEGORY_PRIORITY:
        if category in categories:
            return category

    return ResponseCategory.OTHER


def isEngineProbeReply(lines: list[str]) -> bool:
    """True when the reply carries a Mode 01 PID 00 answer ('41 00 ...')."""
    return any('4100' in _compact(line) for line in lines)


def findAdapterIdentity(lines: list[str]) -> str | None:
    """
    Find the adapter identity line in an ATI/ATZ reply.

    Args:
        lines: Cleaned logical lines

    Returns:
        The identity line (e.g. 'ELM327 v1.5') or None if not recognised
    """
    for line in lines:
        upper = line.upper()
        if any(marker in upper for marker in ADAPTER_IDENTITY_MARKERS):
            return line.strip()
    return None


def replyAnswersCommand(lines: list[str], command: Any) -> bool:
    """
    Check whether a reply can be the answer to a command.

    Adapter error tokens carry no PID and are taken as the answer to
    whatever is outstanding. A data reply answers only when one of its
    frames is of the command's response mode and names one of its targets,
    so a late reply to an earlier request is recognised. Other text ('OK',
    an identity banner) answers no PID request.

    Args:
        lines: Cleaned logical lines of one reply
        command: Outstanding Command

    Returns:
        True if the reply answers the command
    """
    category = classifyResponse(lines)

    if category is ResponseCategory.DATA:
        for line in lines:
            if classifyLine(line) is not ResponseCategory.DATA:
                continue
            frame = decodeFrame(line, command.mode)
            if frame is not None and frame.pid in command.targets:
                return True
        return False

    return category is not ResponseCategory.OTHER


# =============================================================================
# Frame Decoding
# =============================================================================

def decodeFrame(line: str, expectedMode: str | None = None) -> DecodedFrame | None:
    """
    Split a data line into response mode, PID identifier and value bytes.

    Args:
        line: Cleaned logical line
        expectedMode: Request mode of the outstanding command ('01'/'22');
            a reply of the other mode is rejected

    Returns:
        DecodedFrame, or None if the line is not a valid data frame
    """
    if WHITESPACE_PATTERN.search(line.strip()):
        tokens = line.upper().split()
        if any(len(token) % 2 for token in tokens):
            logger.debug(f"Odd-length byte token in frame: {line!r}")
            return None
        compact = ''.join(tokens)
    else:
        compact = line.strip().upper()

    if not _isHex(compact) or len(compact) % 2:
        logger.debug(f"Not a hex frame: {line!r}")
        return None

    responseMode = compact[:2]
    if responseMode not in IDENTIFIER_LENGTH:
        logger.debug(f"Unknown response mode {responseMode} in frame: {line!r}")
        return None

    if expectedMode is not None and RESPONSE_MODES.get(expectedMode) != responseMode:
        logger.debug(f"Response mode {responseMode} does not answer mode {expectedMode}: {line!r}")
        return None

    if len(compact) < MIN_FRAME_LENGTH[responseMode]:
        logger.debug(f"Frame too short for mode {responseMode}: {line!r}")
        return None

    idEnd = 2 + IDENTIFIER_LENGTH[responseMode]
    identifier = compact[2:idEnd]
    pid = identifier if responseMode == RESPONSE_MODE_01 else MODE_22_PREFIX + identifier

    return DecodedFrame(
        mode=responseMode,
        pid=pid,
        valueBytes=tuple(bytes.fromhex(compact[idEnd:]))
    )


def splitBatchFrame(
    line: str,
    targets: Iterable[str],
    pidLookup: Any
) -> list[DecodedFrame]:
    """
    Split a concatenated multi-PID Mode 01 reply.

    Walks the requested targets in order. Each identifier is expected at the
    read cursor; its declared byte length says how many value bytes follow.
    A mismatched identifier is skipped by its own length. Splitting stops
    when the remaining data is shorter than the next PID needs.

    Args:
        line: Reply line, e.g. '410C1AF80D32' (whitespace ignored)
        targets: PIDs of the batch, in request order
        pidLookup: Object with lookup(identifier) -> PidDefinition | None

    Returns:
        Frames for every PID found, in target order
    """
    compact = _compact(line)

    if not _isHex(compact) or not compact.startswith(RESPONSE_MODE_01):
        logger.debug(f"Batch reply is not a Mode 01 frame: {line!r}")
        return []

    frames: list[DecodedFrame] = []
    cursor = len(RESPONSE_MODE_01)

    for pid in targets:
        if cursor + 2 > len(compact):
            break

        if compact[cursor:cursor + 2] != pid:
            logger.debug(f"Batch split skip | expected={pid} found={compact[cursor:cursor + 2]}")
            cursor += 2
            continue

        definition = pidLookup.lookup(pid)
        if definition is None:
            # Unknown length, nothing after it can be aligned
            logger.debug(f"Batch split stopped at unknown PID {pid}")
            break

        cursor += 2
        dataLength = definition.byteLength * 2
        if cursor + dataLength > len(compact):
            logger.debug(f"Batch split short data for {pid} | line={line!r}")
            break

        frames.append(DecodedFrame(
            mode=RESPONSE_MODE_01,
            pid=pid,
            valueBytes=tuple(bytes.fromhex(compact[cursor:cursor + dataLength]))
        ))
        cursor += dataLength

    return frames


def frameToReading(
    frame: DecodedFrame,
    pidLookup: Any,
    profile: Any = None,
    timestamp: float | None = None
) -> Reading | None:
    """
    Convert a frame into a reading using its PID definition.

    Args:
        frame: Decoded frame
        pidLookup: Object with lookup(identifier) -> PidDefinition | None
        profile: Optional engine profile with remap(pid, value)
        timestamp: Reading time, defaults to now

    Returns:
        Reading, or None if the PID is unknown or the frame too short

    Raises:
        DecodeError: If the decode formula or the remap fails
    """
    definition = pidLookup.lookup(frame.pid)
    if definition is None:
        logger.debug(f"No definition for PID {frame.pid}")
        return None

    if len(frame.valueBytes) < definition.byteLength:
        logger.debug(
            f"Frame for {frame.pid} has {len(frame.valueBytes)} bytes, "
            f"needs {definition.byteLength}"
        )
        return None

    rawBytes = tuple(frame.valueBytes[:definition.byteLength])
    try:
        value = definition.decode(rawBytes)
        if profile is not None:
            value = profile.remap(frame.pid, value)
    except (ArithmeticError, ValueError, TypeError, IndexError) as e:
        raise DecodeError(
            f"Cannot decode {frame.pid}: {e}",
            {'pid': frame.pid, 'rawBytes': [f'{b:02X}' for b in rawBytes]}
        ) from e

    return Reading(
        pid=frame.pid,
        value=value,
        unit=definition.unit,
        rawBytes=rawBytes,
        name=definition.name,
        timestamp=time.time() if timestamp is None else timestamp
    )
