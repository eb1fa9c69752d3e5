################################################################################
# File Name: types.py
# Purpose/Description: Protocol type definitions for the ELM327 engine link
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
Protocol type definitions.

Provides the immutable value types that flow through the protocol engine:
commands written to the adapter, frames decoded from its replies and the
readings handed to the surrounding application.

Usage:
    from marine_obd.protocol.types import Command, DecodedFrame, Reading
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# =============================================================================
# Enums
# =============================================================================

class ResponseCategory(Enum):
    """Classification of one adapter reply."""

    DATA = 'data'
    NO_DATA = 'no_data'
    UNABLE_TO_CONNECT = 'unable_to_connect'
    CAN_ERROR = 'can_error'
    INVALID_COMMAND = 'invalid_command'
    OTHER = 'other'

    @property
    def isBusError(self) -> bool:
        """True for adapter/bus level conditions surfaced upward."""
        return self in (ResponseCategory.UNABLE_TO_CONNECT, ResponseCategory.CAN_ERROR)


# =============================================================================
# Dataclasses
# =============================================================================

@dataclass(frozen=True)
class Command:
    """
    One request line written to the adapter.

    A command never mixes Mode 01 and Mode 22 targets.

    Attributes:
        mode: Request mode ('01' or '22')
        targets: Ordered PID identifiers carried by the command
        wireText: Text sent to the adapter (without the terminator)
    """

    mode: str
    targets: tuple[str, ...]
    wireText: str

    @property
    def isBatch(self) -> bool:
        """True when the command carries more than one PID."""
        return len(self.targets) > 1

    def toDict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            'mode': self.mode,
            'targets': list(self.targets),
            'wireText': self.wireText,
        }


@dataclass(frozen=True)
class DecodedFrame:
    """
    A data line split into its protocol fields.

    Attributes:
        mode: Response mode byte as hex ('41' or '62')
        pid: PID identifier ('0C' for Mode 01, '22:0545' for Mode 22)
        valueBytes: Data bytes following the identifier
    """

    mode: str
    pid: str
    valueBytes: tuple[int, ...]


@dataclass(frozen=True)
class Reading:
    """
    A decoded sensor value.

    Attributes:
        pid: PID identifier the value belongs to
        value: Decoded (and optionally remapped) value
        unit: Unit of measurement
        rawBytes: Bytes the value was decoded from
        name: Display name of the PID
        timestamp: Wall clock time the reading was produced
    """

    pid: str
    value: float
    unit: str
    rawBytes: tuple[int, ...]
    name: str = ''
    timestamp: float = field(default=0.0, compare=False)

    def toDict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            'pid': self.pid,
            'name': self.name,
            'value': self.value,
            'unit': self.unit,
            'rawBytes': [f'{b:02X}' for b in self.rawBytes],
            'timestamp': self.timestamp,
        }
