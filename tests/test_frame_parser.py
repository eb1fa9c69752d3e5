################################################################################
# File Name: test_frame_parser.py
# Purpose/Description: Tests for the ELM327 response frame parser
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
Tests for the protocol.frame_parser module.

Run with:
    pytest tests/test_frame_parser.py -v
"""

import sys
from pathlib import Path

srcPath = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(srcPath))

from marine_obd.protocol.frame_parser import ResponseFrameParser, splitFrames


# ================================================================================
# splitFrames Tests
# ================================================================================

class TestSplitFrames:
    """Tests for splitFrames function."""

    def test_splitFrames_singleLine_returnsLine(self):
        """
        Given: One data line followed by the prompt
        When: splitFrames is called
        Then: Returns the cleaned line
        """
        assert splitFrames('41 0C 1A F8\r\r>') == ['41 0C 1A F8']

    def test_splitFrames_searchingLine_isDropped(self):
        """
        Given: Reply preceded by a SEARCHING... status line
        When: splitFrames is called
        Then: The status line is dropped
        """
        assert splitFrames('SEARCHING...\r41 00 BE 3F A8 13\r\r>') == ['41 00 BE 3F A8 13']

    def test_splitFrames_numberedLines_joinedToByteCount(self):
        """
        Given: Multi-line CAN reply with a byte count and numbered lines
        When: splitFrames is called
        Then: The numbered lines become one line cut to the byte count
        """
        text = '00A\r0: 41 0C 1A F8 0D 32\r1: 05 7B 11 40 00 00 00\r\r>'

        assert splitFrames(text) == ['410C1AF80D32057B1140']

    def test_splitFrames_continuationStartingWithModeByte_isJoined(self):
        """
        Given: Continuation line whose first data byte is 0x41 (intake 25 C)
        When: splitFrames is called
        Then: It is still joined to the line before it
        """
        text = '009\r0: 41 04 4D 05 7B 0F\r1: 41 00 00 00 00 00 00\r\r>'

        assert splitFrames(text) == ['41044D057B0F410000']

    def test_splitFrames_hexLineIndex_isJoined(self):
        """
        Given: Line numbers past 9 in hex form
        When: splitFrames is called
        Then: The lines are joined in order
        """
        text = '014\rA: 11 22\rB: 33 44\r>'

        assert splitFrames(text) == ['11223344']

    def test_splitFrames_twoNumberedReplies_stayApart(self):
        """
        Given: Two ECUs each sending a multi-line reply
        When: splitFrames is called
        Then: Each byte count starts a new line
        """
        text = '003\r0: 41 05 7B\r003\r0: 41 05 7C\r\r>'

        assert splitFrames(text) == ['41057B', '41057C']

    def test_splitFrames_threeHexCharsAsLastLine_isKept(self):
        """
        Given: A 3-character line that is the only line
        When: splitFrames is called
        Then: It is not mistaken for a byte count
        """
        assert splitFrames('ABC\r>') == ['ABC']

    def test_splitFrames_blankLinesAndNul_areDropped(self):
        """
        Given: Reply with blank lines, LF line breaks and NUL padding
        When: splitFrames is called
        Then: Only the content lines remain
        """
        assert splitFrames('\x00\r\n\r\nNO DATA\n\n>') == ['NO DATA']

    def test_splitFrames_promptOnly_returnsEmpty(self):
        """
        Given: Bare prompt
        When: splitFrames is called
        Then: Returns an empty list
        """
        assert splitFrames('>') == []


# ================================================================================
# ResponseFrameParser Tests
# ================================================================================

class TestResponseFrameParser:
    """Tests for ResponseFrameParser class."""

    def test_feed_withoutPrompt_returnsNothingAndKeepsBuffer(self):
        """
        Given: A chunk without the prompt
        When: feed is called
        Then: Returns nothing and keeps the chunk buffered
        """
        parser = ResponseFrameParser()

        assert parser.feed(b'41 0C 1A') == []
        assert parser.pending == '41 0C 1A'

    def test_extractFrames_noPromptTwice_isIdempotent(self):
        """
        Given: A buffer without the prompt
        When: extractFrames is called twice
        Then: Both calls return nothing and the buffer is unchanged
        """
        parser = ResponseFrameParser()
        parser.feed('41 0C 1A F8\r')

        assert parser.extractFrames() == []
        assert parser.extractFrames() == []
        assert parser.pending == '41 0C 1A F8\r'
        assert parser.completedReplies == 0

    def test_feed_splitAcrossChunks_returnsLinesOnPrompt(self):
        """
        Given: A reply delivered in three chunks
        When: The last chunk carries the prompt
        Then: The whole reply is released once and the buffer is cleared
        """
        parser = ResponseFrameParser()

        assert parser.feed(b'41 0C') == []
        assert parser.feed(b' 1A F8\r') == []
        lines = parser.feed(b'\r>')

        assert lines == ['41 0C 1A F8']
        assert parser.pending == ''
        assert parser.completedReplies == 1

    def test_feed_emptyReply_countsAsCompleted(self):
        """
        Given: A bare prompt
        When: feed is called
        Then: No lines, but the reply counter advances
        """
        parser = ResponseFrameParser()

        assert parser.feed(b'>') == []
        assert parser.completedReplies == 1

    def test_feed_invalidBytes_areReplaced(self):
        """
        Given: Non-ASCII noise in the stream
        When: feed is called
        Then: Does not raise and still frames the reply
        """
        parser = ResponseFrameParser()

        lines = parser.feed(b'\xff41 05 7B\r>')

        assert len(lines) == 1
        assert lines[0].endswith('41 05 7B')

    def test_reset_discardsPartialReply(self):
        """
        Given: A partially received reply
        When: reset is called
        Then: The buffer is empty
        """
        parser = ResponseFrameParser()
        parser.feed('41 0C')

        parser.reset()

        assert parser.pending == ''
        assert parser.feed('>') == []
