################################################################################
# File Name: frame_parser.py
# Purpose/Description: De-framing of raw ELM327 output into logical reply lines
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
Response frame parser.

The adapter streams its reply in arbitrary chunks and marks the end of a
reply with the '>' prompt. The parser accumulates chunks until the prompt
arrives, then normalizes the adapter quirks:

- blank lines and the prompt token are dropped
- 'SEARCHING...' status lines are dropped
- the numbered lines of a multi-line CAN reply are joined into one line,
  cut to the byte count announced ahead of them

Example multi-line CAN reply and the line produced:

    '009\\r0: 41 04 4D 05 7B 0F\\r1: 41 00 00 00 00 00 00\\r\\r>'
    -> ['41044D057B0F410000']

Usage:
    from marine_obd.protocol.frame_parser import ResponseFrameParser

    parser = ResponseFrameParser()
    for line in parser.feed(chunk):
        handleLine(line)
"""

import logging
import re

from .commands import PROMPT

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

LINE_BREAK_PATTERN = re.compile(r'[\r\n]+')
SEARCHING_PATTERN = re.compile(r'^SEARCHING', re.IGNORECASE)
BYTE_COUNT_PATTERN = re.compile(r'^[0-9A-Fa-f]{3}$')
LINE_NUMBER_PATTERN = re.compile(r'^([0-9A-Fa-f]+):\s*(.*)$')


# =============================================================================
# Pure Helpers
# =============================================================================

def splitFrames(text: str) -> list[str]:
    """
    Split one prompt-terminated reply into cleaned logical lines.

    Args:
        text: Accumulated adapter output

    Returns:
        Ordered list of cleaned lines
    """
    lines = []
    for rawLine in LINE_BREAK_PATTERN.split(text):
        line = rawLine.replace(PROMPT, '').replace('\x00', '').strip()
        if not line:
            continue
        if SEARCHING_PATTERN.match(line):
            continue
        lines.append(line)

    frames = []
    numbered: list[str] = []
    byteCount = None
    lastIndex = len(lines) - 1

    def flushNumbered() -> None:
        if numbered:
            frames.append(_joinNumberedLines(numbered, byteCount))
            numbered.clear()

    for index, line in enumerate(lines):
        # A byte count only ever precedes the numbered lines it counts
        if index < lastIndex and BYTE_COUNT_PATTERN.match(line):
            flushNumbered()
            byteCount = int(line, 16)
            continue

        match = LINE_NUMBER_PATTERN.match(line)
        if match:
            if match.group(2).strip():
                numbered.append(match.group(2))
            continue

        flushNumbered()
        byteCount = None
        frames.append(line)

    flushNumbered()
    return frames


def _joinNumberedLines(parts: list[str], byteCount: int | None) -> str:
    """Merge the numbered lines of one CAN reply, dropping the padding."""
    compact = ''.join(''.join(part.split()) for part in parts).upper()
    if byteCount is not None and len(compact) > byteCount * 2:
        compact = compact[:byteCount * 2]
    return compact


# =============================================================================
# Parser
# =============================================================================

class ResponseFrameParser:
    """
    Accumulates adapter output and releases it one reply at a time.

    Output is produced only once the prompt has been received; a buffer
    without a prompt is kept unchanged.
    """

    def __init__(self) -> None:
        self._buffer = ''
        self._completedReplies = 0

    @property
    def completedReplies(self) -> int:
        """Number of prompt-terminated replies released so far."""
        return self._completedReplies

    @property
    def pending(self) -> str:
        """Text received since the last prompt."""
        return self._buffer

    def feed(self, chunk: bytes | str) -> list[str]:
        """
        Append a chunk and extract any complete reply.

        Args:
            chunk: Raw bytes (or text) from the transport

        Returns:
            Logical lines of the completed reply, or an empty list
        """
        if isinstance(chunk, (bytes, bytearray)):
            chunk = bytes(chunk).decode('ascii', errors='replace')

        self._buffer += chunk
        return self.extractFrames()

    def extractFrames(self) -> list[str]:
        """
        Release the buffered reply if it is complete.

        Returns:
            Logical lines, or an empty list when no prompt has arrived
        """
        if PROMPT not in self._buffer:
            return []

        text = self._buffer
        self._buffer = ''
        self._completedReplies += 1

        frames = splitFrames(text)
        logger.debug(f"Reply framed | raw={text!r} lines={frames}")
        return frames

    def reset(self) -> None:
        """Discard any partial reply."""
        if self._buffer:
            logger.debug(f"Discarding partial reply: {self._buffer!r}")
        self._buffer = ''
