################################################################################
# File Name: types.py
# Purpose/Description: PID definition and engine profile types
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
PID definition and engine profile types.

Usage:
    from marine_obd.pids.types import PidDefinition, EngineProfile
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from ..protocol.commands import normalizePid

logger = logging.getLogger(__name__)

DecodeFunction = Callable[[Sequence[int]], float]
RemapFunction = Callable[[float], float]


@dataclass(frozen=True)
class PidDefinition:
    """
    Decode information for one PID.

    Attributes:
        identifier: PID identifier ('0C' or '22:0545')
        name: Display name
        byteLength: Number of value bytes in a reply
        unit: Unit of the decoded value
        decode: Function turning the value bytes into a number
    """

    identifier: str
    name: str
    byteLength: int
    unit: str
    decode: DecodeFunction = field(compare=False, repr=False)

    def toDict(self) -> dict[str, Any]:
        """Convert to dictionary (decode function omitted)."""
        return {
            'identifier': self.identifier,
            'name': self.name,
            'byteLength': self.byteLength,
            'unit': self.unit,
        }


@dataclass
class EngineProfile:
    """
    Ordered list of PIDs to poll for one engine.

    Identifiers are normalized on creation; duplicates are dropped, keeping
    the first occurrence.

    Attributes:
        manufacturer: Engine manufacturer
        model: Model key
        supportedPids: Ordered, duplicate-free PID identifiers
        description: Display name of the model
        customMappings: Optional per-PID value remap functions
    """

    manufacturer: str
    model: str
    supportedPids: list[str]
    description: str = ''
    customMappings: dict[str, RemapFunction] = field(default_factory=dict)

    def __post_init__(self) -> None:
        uniquePids: list[str] = []
        for pid in self.supportedPids:
            normalized = normalizePid(pid)
            if normalized in uniquePids:
                logger.warning(
                    f"Duplicate PID {normalized} dropped from profile "
                    f"{self.manufacturer}/{self.model}"
                )
                continue
            uniquePids.append(normalized)
        self.supportedPids = uniquePids

        self.customMappings = {
            normalizePid(pid): mapping for pid, mapping in self.customMappings.items()
        }

    def remap(self, pid: str, value: float) -> float:
        """
        Apply the profile's custom mapping for a PID, if any.

        Args:
            pid: PID identifier
            value: Decoded value

        Returns:
            Remapped value, or the value unchanged
        """
        mapping = self.customMappings.get(pid.upper())
        if mapping is None:
            return value
        return mapping(value)

    def toDict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'manufacturer': self.manufacturer,
            'model': self.model,
            'description': self.description,
            'supportedPids': list(self.supportedPids),
            'customMappings': sorted(self.customMappings),
        }
