################################################################################
# File Name: __init__.py
# Purpose/Description: Protocol subpackage initialization
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
ELM327 protocol subpackage.

Modules:
- commands: wire vocabulary, PID normalization, command building
- frame_parser: raw adapter output -> logical reply lines
- decoder: reply lines -> frames -> readings

Usage:
    from marine_obd.protocol import ResponseFrameParser, buildCommand, decodeFrame
"""

from .commands import (
    AT_AUTO_PROTOCOL,
    AT_ECHO_OFF,
    AT_HEADERS_OFF,
    AT_IDENTIFY,
    AT_RESET,
    COMMAND_TERMINATOR,
    CONFIGURATION_COMMANDS,
    ENGINE_PROBE_COMMAND,
    MAX_BATCH_SIZE,
    MODE_01,
    MODE_22,
    MODE_22_PREFIX,
    PROMPT,
    RESPONSE_MODE_01,
    RESPONSE_MODE_22,
    buildCommand,
    buildProbeCommand,
    encodeCommand,
    isMode22,
    normalizePid,
)
from .decoder import (
    classifyLine,
    classifyResponse,
    decodeFrame,
    findAdapterIdentity,
    frameToReading,
    isEngineProbeReply,
    replyAnswersCommand,
    splitBatchFrame,
)
from .exceptions import CommandBuildError, InvalidPidError
from .frame_parser import ResponseFrameParser, splitFrames
from .types import Command, DecodedFrame, Reading, ResponseCategory

__all__ = [
    # Types
    'Command',
    'DecodedFrame',
    'Reading',
    'ResponseCategory',
    # Exceptions
    'CommandBuildError',
    'InvalidPidError',
    # Commands
    'AT_AUTO_PROTOCOL',
    'AT_ECHO_OFF',
    'AT_HEADERS_OFF',
    'AT_IDENTIFY',
    'AT_RESET',
    'COMMAND_TERMINATOR',
    'CONFIGURATION_COMMANDS',
    'ENGINE_PROBE_COMMAND',
    'MAX_BATCH_SIZE',
    'MODE_01',
    'MODE_22',
    'MODE_22_PREFIX',
    'PROMPT',
    'RESPONSE_MODE_01',
    'RESPONSE_MODE_22',
    'buildCommand',
    'buildProbeCommand',
    'encodeCommand',
    'isMode22',
    'normalizePid',
    # Frame parser
    'ResponseFrameParser',
    'splitFrames',
    # Decoder
    'classifyLine',
    'classifyResponse',
    'decodeFrame',
    'findAdapterIdentity',
    'frameToReading',
    'isEngineProbeReply',
    'replyAnswersCommand',
    'splitBatchFrame',
]
