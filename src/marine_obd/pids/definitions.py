################################################################################
# File Name: definitions.py
# Purpose/Description: Built-in PID decode table and lookup service
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
PID definitions.

Decode formulas for the Mode 01 PIDs marine engines commonly report and the
Hyundai Mode 22 fuel consumption PIDs. In the formulas b0/b1 are the first
and second value bytes and w = b0 * 256 + b1.

Usage:
    from marine_obd.pids.definitions import PidLookup, getPidDefinition

    lookup = PidLookup()
    rpm = lookup.lookup('0C')
    value = rpm.decode([0x1A, 0xF8])   # 1726.0
"""

import logging
from typing import Sequence

from ..protocol.commands import normalizePid
from .types import PidDefinition

logger = logging.getLogger(__name__)


# =============================================================================
# Decode Formulas
# =============================================================================

def _word(data: Sequence[int]) -> int:
    return data[0] * 256 + data[1]


def _percent(data: Sequence[int]) -> float:
    return data[0] * 100 / 255


def _temperature(data: Sequence[int]) -> float:
    return data[0] - 40


def _byteValue(data: Sequence[int]) -> float:
    return data[0]


def _wordValue(data: Sequence[int]) -> float:
    return _word(data)


def _catalystTemperature(data: Sequence[int]) -> float:
    return _word(data) / 10 - 40


def _fuelRate(data: Sequence[int]) -> float:
    return _word(data) / 20


def _massAirFlow(data: Sequence[int]) -> float:
    return _word(data) / 100


def _hyundaiFuelRate(data: Sequence[int]) -> float:
    return _word(data) * 0.01


# =============================================================================
# Built-in Table
# =============================================================================

_DEFINITIONS = [
    PidDefinition('04', 'Calculated Engine Load', 1, '%', _percent),
    PidDefinition('05', 'Engine Coolant Temperature', 1, '°C', _temperature),
    PidDefinition('0A', 'Fuel Pressure', 1, 'kPa', lambda d: d[0] * 3),
    PidDefinition('0B', 'Intake Manifold Absolute Pressure', 1, 'kPa', _byteValue),
    PidDefinition('0C', 'Engine Speed', 2, 'rpm', lambda d: _word(d) / 4),
    PidDefinition('0E', 'Timing Advance', 1, '°', lambda d: (d[0] - 128) / 2),
    PidDefinition('0F', 'Intake Air Temperature', 1, '°C', _temperature),
    PidDefinition('10', 'Mass Air Flow Rate', 2, 'g/s', _massAirFlow),
    PidDefinition('11', 'Throttle Position', 1, '%', _percent),
    PidDefinition('1F', 'Run Time Since Engine Start', 2, 'seconds', _wordValue),
    PidDefinition('21', 'Distance Traveled With MIL On', 2, 'km', _wordValue),
    PidDefinition('22', 'Fuel Rail Pressure (relative to manifold)', 2, 'kPa',
                  lambda d: _word(d) * 0.079),
    PidDefinition('23', 'Fuel Rail Gauge Pressure', 2, 'kPa', lambda d: _word(d) * 10),
    PidDefinition('2C', 'Commanded EGR', 1, '%', _percent),
    PidDefinition('2D', 'EGR Error', 1, '%', lambda d: (d[0] - 128) * 100 / 128),
    PidDefinition('2E', 'Commanded Evaporative Purge', 1, '%', _percent),
    PidDefinition('2F', 'Fuel Tank Level Input', 1, '%', _percent),
    PidDefinition('30', 'Warm-ups Since Codes Cleared', 1, 'count', _byteValue),
    PidDefinition('31', 'Distance Traveled Since Codes Cleared', 2, 'km', _wordValue),
    PidDefinition('32', 'Evap System Vapor Pressure', 2, 'Pa', lambda d: _word(d) / 4),
    PidDefinition('33', 'Absolute Barometric Pressure', 1, 'kPa', _byteValue),
    PidDefinition('3C', 'Catalyst Temperature Bank 1 Sensor 1', 2, '°C', _catalystTemperature),
    PidDefinition('3D', 'Catalyst Temperature Bank 2 Sensor 1', 2, '°C', _catalystTemperature),
    PidDefinition('3E', 'Catalyst Temperature Bank 1 Sensor 2', 2, '°C', _catalystTemperature),
    PidDefinition('3F', 'Catalyst Temperature Bank 2 Sensor 2', 2, '°C', _catalystTemperature),
    PidDefinition('42', 'Control Module Voltage', 2, 'V', lambda d: _word(d) / 1000),
    PidDefinition('43', 'Absolute Load Value', 2, '%', lambda d: _word(d) * 100 / 255),
    PidDefinition('44', 'Commanded Equivalence Ratio', 2, 'ratio', lambda d: _word(d) / 32768),
    PidDefinition('45', 'Relative Throttle Position', 1, '%', _percent),
    PidDefinition('46', 'Ambient Air Temperature', 1, '°C', _temperature),
    PidDefinition('47', 'Absolute Throttle Position B', 1, '%', _percent),
    PidDefinition('48', 'Absolute Throttle Position C', 1, '%', _percent),
    PidDefinition('49', 'Accelerator Pedal Position D', 1, '%', _percent),
    PidDefinition('4A', 'Accelerator Pedal Position E', 1, '%', _percent),
    PidDefinition('4B', 'Accelerator Pedal Position F', 1, '%', _percent),
    PidDefinition('4C', 'Commanded Throttle Actuator', 1, '%', _percent),
    PidDefinition('4D', 'Time Run With MIL On', 2, 'minutes', _wordValue),
    PidDefinition('4E', 'Time Since Trouble Codes Cleared', 2, 'minutes', _wordValue),
    PidDefinition('5C', 'Engine Oil Temperature', 1, '°C', _temperature),
    PidDefinition('5E', 'Engine Fuel Rate', 2, 'L/h', _fuelRate),
    PidDefinition('66', 'Mass Air Flow Sensor (alternative)', 2, 'g/s', _massAirFlow),
    PidDefinition('9E', 'Engine Fuel Rate (alternative)', 2, 'L/h', _fuelRate),
    PidDefinition('A2', 'Cylinder Fuel Rate', 2, 'mg/stroke', lambda d: _word(d) / 32),
    # Hyundai SeasAll manufacturer-specific
    PidDefinition('22:0545', 'Fuel Consumption (Hyundai)', 2, 'L/h', _hyundaiFuelRate),
    PidDefinition('22:0045', 'Fuel Consumption Alt (Hyundai)', 2, 'L/h', _hyundaiFuelRate),
]

PID_DEFINITIONS: dict[str, PidDefinition] = {
    definition.identifier: definition for definition in _DEFINITIONS
}


# =============================================================================
# Lookup Service
# =============================================================================

class PidLookup:
    """
    Identifier -> definition lookup used by the decoder.

    Starts from the built-in table; extra definitions can be registered per
    connection without affecting other instances.
    """

    def __init__(self, definitions: dict[str, PidDefinition] | None = None):
        source = PID_DEFINITIONS if definitions is None else definitions
        self._definitions: dict[str, PidDefinition] = dict(source)

    def lookup(self, identifier: str) -> PidDefinition | None:
        """
        Find the definition for an identifier (case-insensitive).

        Args:
            identifier: PID identifier such as '0c' or '22:0545'

        Returns:
            PidDefinition or None if unknown
        """
        return self._definitions.get(identifier.strip().upper())

    def register(self, definition: PidDefinition) -> None:
        """
        Add or replace a definition.

        Args:
            definition: Definition to register

        Raises:
            InvalidPidError: If the identifier is malformed
        """
        identifier = normalizePid(definition.identifier)
        if identifier in self._definitions:
            logger.info(f"Replacing PID definition {identifier}")
        self._definitions[identifier] = definition

    def identifiers(self) -> list[str]:
        """Return all known identifiers, sorted."""
        return sorted(self._definitions)

    def __contains__(self, identifier: str) -> bool:
        return self.lookup(identifier) is not None

    def __len__(self) -> int:
        return len(self._definitions)


# =============================================================================
# Module Helpers
# =============================================================================

def getPidDefinition(identifier: str) -> PidDefinition | None:
    """Return the built-in definition for an identifier, or None."""
    return PID_DEFINITIONS.get(identifier.strip().upper())


def getAllPids() -> list[str]:
    """Return every built-in identifier, sorted."""
    return sorted(PID_DEFINITIONS)


def findPidsByName(text: str) -> list[PidDefinition]:
    """
    Search built-in definitions by name.

    Args:
        text: Case-insensitive substring of the display name

    Returns:
        Matching definitions in identifier order
    """
    needle = text.lower()
    return [
        PID_DEFINITIONS[identifier]
        for identifier in sorted(PID_DEFINITIONS)
        if needle in PID_DEFINITIONS[identifier].name.lower()
    ]
