################################################################################
# File Name: test_logging_config.py
# Purpose/Description: Tests for logging configuration
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
Tests for the logging_config module.

Run with:
    pytest tests/test_logging_config.py -v
"""

import logging
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

srcPath = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(srcPath))

from common.logging_config import (
    RawTrafficFilter,
    StructuredFormatter,
    escapeControlChars,
    getLogger,
    logWithContext,
    setupLogging,
)


@pytest.fixture
def restoreRootLogger():
    """Put the root logger back the way the test runner configured it."""
    rootLogger = logging.getLogger()
    handlers = list(rootLogger.handlers)
    level = rootLogger.level

    yield rootLogger

    for handler in rootLogger.handlers:
        if handler not in handlers:
            handler.close()
    rootLogger.handlers[:] = handlers
    rootLogger.setLevel(level)


def makeRecord(message: str) -> logging.LogRecord:
    return logging.LogRecord('marine_obd.test', logging.INFO, __file__, 1, message, None, None)


class TestEscapeControlChars:
    """Tests for raw adapter traffic escaping."""

    def test_escapeControlChars_reply_staysOnOneLine(self):
        """
        Given: Raw ELM327 reply with CR and LF
        When: escapeControlChars() is called
        Then: Control characters become printable escapes
        """
        assert escapeControlChars('41 0C 1A F8\r\r>') == '41 0C 1A F8\\r\\r>'
        assert escapeControlChars('a\tb\nc') == 'a\\tb\\nc'

    def test_rawTrafficFilter_escapesMessage(self):
        """
        Given: Log record carrying raw reply text
        When: RawTrafficFilter.filter() is called
        Then: The record is kept and its message escaped
        """
        record = makeRecord("RX b'NO DATA\r\r>'\r")

        assert RawTrafficFilter().filter(record) is True
        assert '\r' not in record.msg

    def test_rawTrafficFilter_nonString_untouched(self):
        """
        Given: Record whose msg is not a string
        When: filter() is called
        Then: The msg is unchanged
        """
        record = makeRecord('x')
        record.msg = {'pid': '0C'}

        RawTrafficFilter().filter(record)

        assert record.msg == {'pid': '0C'}


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    def test_format_withExtraDict_appendsFields(self):
        """
        Given: Record with an extra dictionary
        When: Formatted
        Then: The extra fields are appended as key=value
        """
        formatter = StructuredFormatter(fmt='%(message)s')
        record = makeRecord('Reading received')
        record.extra = {'pid': '0C', 'value': 1726}

        assert formatter.format(record) == 'Reading received | pid=0C value=1726'

    def test_format_withoutExtra_plainMessage(self):
        """
        Given: Record without extra fields
        When: Formatted
        Then: Only the message is output
        """
        formatter = StructuredFormatter(fmt='%(levelname)s %(message)s')

        assert formatter.format(makeRecord('hello')) == 'INFO hello'


class TestSetupLogging:
    """Tests for setupLogging function."""

    def test_setupLogging_setsLevelAndSingleConsoleHandler(self, restoreRootLogger):
        """
        Given: Root logger with existing handlers
        When: setupLogging() is called twice
        Then: One console handler remains and the level is applied
        """
        setupLogging(level='WARNING')
        rootLogger = setupLogging(level='debug')

        assert rootLogger.level == logging.DEBUG
        assert len(rootLogger.handlers) == 1
        assert any(isinstance(f, RawTrafficFilter) for f in rootLogger.handlers[0].filters)

    def test_setupLogging_unknownLevel_fallsBackToInfo(self, restoreRootLogger):
        """
        Given: Unknown level name
        When: setupLogging() is called
        Then: INFO is used
        """
        assert setupLogging(level='LOUD').level == logging.INFO

    def test_setupLogging_withFile_writesEscapedLines(self, restoreRootLogger, tmp_path: Path):
        """
        Given: Log file in a directory that does not exist yet
        When: A raw reply is logged
        Then: The directory is created and the reply is on one escaped line
        """
        logFile = tmp_path / 'logs' / 'monitor.log'

        rootLogger = setupLogging(level='DEBUG', logFormat='%(message)s', logFile=str(logFile))
        logging.getLogger('marine_obd.test').debug('RX 41 05 7B\r\r>')
        for handler in rootLogger.handlers:
            handler.flush()

        content = logFile.read_text(encoding='utf-8')
        assert 'RX 41 05 7B\\r\\r>' in content
        assert len(rootLogger.handlers) == 2

    def test_setupLogging_escapeDisabled_noFilter(self, restoreRootLogger):
        """
        Given: escapeRawTraffic=False
        When: setupLogging() is called
        Then: No RawTrafficFilter is attached
        """
        rootLogger = setupLogging(escapeRawTraffic=False)

        assert rootLogger.handlers[0].filters == []


class TestLogWithContext:
    """Tests for logWithContext and getLogger."""

    def test_logWithContext_appendsContext(self, mockLogger: MagicMock):
        """
        Given: Context fields
        When: logWithContext() is called
        Then: The message carries the fields at the requested level
        """
        logWithContext(mockLogger, 'warning', 'Transport closed', port='/dev/rfcomm0', error=None)

        mockLogger.warning.assert_called_once_with(
            'Transport closed | port=/dev/rfcomm0 error=None'
        )

    def test_logWithContext_noContext_plainMessage(self, mockLogger: MagicMock):
        """
        Given: No context
        When: logWithContext() is called
        Then: The message is logged unchanged
        """
        logWithContext(mockLogger, 'INFO', 'Disconnecting')

        mockLogger.info.assert_called_once_with('Disconnecting')

    def test_getLogger_returnsNamedLogger(self):
        """
        Given: Module name
        When: getLogger() is called
        Then: Returns the standard logger of that name
        """
        assert getLogger('marine_obd.connection') is logging.getLogger('marine_obd.connection')
