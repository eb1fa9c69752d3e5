################################################################################
# File Name: profiles.py
# Purpose/Description: Built-in marine engine profiles
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
Marine engine profiles.

Each profile is the ordered list of PIDs a given engine answers. Unknown
manufacturer/model combinations fall back to the generic OBD2 profile.

Usage:
    from marine_obd.pids.profiles import getProfile

    profile = getProfile('Yanmar', '4jh')
    print(profile.supportedPids)
"""

import logging
from typing import Any

from .types import EngineProfile, RemapFunction

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

GENERIC_MANUFACTURER = 'Generic OBD2'
GENERIC_MODEL = 'standard'

# Shared PID sets
_BASIC_DIESEL = ['04', '05', '0C', '0F', '11', '1F', '2F', '42', '5C']
_COMMON_RAIL = ['04', '05', '0C', '0F', '11', '1F', '22', '23', '2F', '42', '5C', '5E']
_COMMON_RAIL_BARO = ['04', '05', '0C', '0F', '11', '1F', '22', '23', '2F', '33', '42', '5C', '5E']
_FULL_MARINE = ['04', '05', '0C', '0F', '11', '1F', '22', '23', '2F', '33', '42', '46', '5C', '5E']

# manufacturer -> model -> (description, pids)
_PROFILE_TABLE: dict[str, dict[str, tuple[str, list[str]]]] = {
    GENERIC_MANUFACTURER: {
        'standard': ('Standard OBD2 PIDs',
                     ['04', '05', '0C', '0F', '10', '11', '1F', '2F', '33', '42', '46', '5C', '5E']),
    },
    'Hyundai': {
        'seasall-s270': ('SeasAll S270', _FULL_MARINE),
        'seasall-s250': ('SeasAll S250',
                         ['04', '05', '0C', '0F', '11', '1F', '22', '23', '2F', '33', '42', '46',
                          '5C', '22:0545', '22:0045']),
        'seasall-r200': ('SeasAll R200',
                         ['04', '05', '0C', '0F', '11', '1F', '2F', '33', '42', '46', '5C',
                          '22:0545', '22:0045']),
    },
    'Volvo Penta': {
        'd2-75': ('D2-75', _BASIC_DIESEL),
        'd4-300': ('D4-300', _COMMON_RAIL),
        'd6-400': ('D6-400', _FULL_MARINE),
    },
    'Yanmar': {
        '4jh': ('4JH Series', ['04', '05', '0C', '0F', '11', '1F', '2F', '42', '5C', '5E']),
        '6ly': ('6LY Series', _COMMON_RAIL),
        '8lv': ('8LV Series', _FULL_MARINE),
    },
    'Mercury': {
        'verado-350': ('Verado 350', _FULL_MARINE),
        'diesel-tdi-4.2': ('Diesel TDI 4.2', _COMMON_RAIL),
    },
    'Caterpillar': {
        'c7': ('C7 Marine', _COMMON_RAIL_BARO),
        'c12': ('C12 Marine', _FULL_MARINE),
        'c18': ('C18 Marine', _FULL_MARINE),
    },
    'Cummins': {
        'qsb6.7': ('QSB 6.7', _COMMON_RAIL),
        'qsc8.3': ('QSC 8.3', _COMMON_RAIL_BARO),
        'qsl9': ('QSL 9', _FULL_MARINE),
    },
    'John Deere': {
        '4045': ('PowerTech 4045', _BASIC_DIESEL),
        '6068': ('PowerTech 6068', _COMMON_RAIL),
        '6090': ('PowerTech 6090', _COMMON_RAIL_BARO),
    },
    'MAN': {
        'i6-730': ('i6-730', _COMMON_RAIL),
        'i6-800': ('i6-800', _COMMON_RAIL_BARO),
        'v8-1000': ('V8-1000', _FULL_MARINE),
    },
    'MTU': {
        'series-2000': ('Series 2000', _COMMON_RAIL_BARO),
        'series-4000': ('Series 4000', _FULL_MARINE),
    },
}


def _buildProfiles() -> dict[str, dict[str, EngineProfile]]:
    return {
        manufacturer: {
            model: EngineProfile(
                manufacturer=manufacturer,
                model=model,
                supportedPids=list(pids),
                description=description
            )
            for model, (description, pids) in models.items()
        }
        for manufacturer, models in _PROFILE_TABLE.items()
    }


ENGINE_PROFILES: dict[str, dict[str, EngineProfile]] = _buildProfiles()


# =============================================================================
# Public API
# =============================================================================

def _findManufacturer(manufacturer: str) -> str | None:
    for name in ENGINE_PROFILES:
        if name.lower() == manufacturer.strip().lower():
            return name
    return None


def getProfile(manufacturer: str, model: str) -> EngineProfile:
    """
    Get a copy of a built-in engine profile.

    Matching is case-insensitive. Unknown combinations fall back to the
    generic OBD2 profile.

    Args:
        manufacturer: Manufacturer name, e.g. 'Volvo Penta'
        model: Model key, e.g. 'd4-300'

    Returns:
        EngineProfile (a copy; callers may modify it)
    """
    name = _findManufacturer(manufacturer)
    profile = None
    if name is not None:
        profile = ENGINE_PROFILES[name].get(model.strip().lower())

    if profile is None:
        logger.warning(
            f"No profile for {manufacturer}/{model}, using "
            f"{GENERIC_MANUFACTURER}/{GENERIC_MODEL}"
        )
        profile = ENGINE_PROFILES[GENERIC_MANUFACTURER][GENERIC_MODEL]

    return EngineProfile(
        manufacturer=profile.manufacturer,
        model=profile.model,
        supportedPids=list(profile.supportedPids),
        description=profile.description,
        customMappings=dict(profile.customMappings)
    )


def getAllManufacturers() -> list[str]:
    """Return all manufacturers with built-in profiles."""
    return list(ENGINE_PROFILES)


def getModelsForManufacturer(manufacturer: str) -> list[dict[str, Any]]:
    """
    List the built-in models of a manufacturer.

    Args:
        manufacturer: Manufacturer name (case-insensitive)

    Returns:
        List of {'model', 'description', 'pidCount'} dictionaries, empty if
        the manufacturer is unknown
    """
    name = _findManufacturer(manufacturer)
    if name is None:
        return []

    return [
        {
            'model': model,
            'description': profile.description,
            'pidCount': len(profile.supportedPids),
        }
        for model, profile in ENGINE_PROFILES[name].items()
    ]


def createProfile(
    pids: list[str],
    manufacturer: str = 'Custom',
    model: str = 'custom',
    description: str = '',
    customMappings: dict[str, RemapFunction] | None = None
) -> EngineProfile:
    """
    Create a profile from an explicit PID list.

    Args:
        pids: Ordered PID identifiers
        manufacturer: Manufacturer label
        model: Model label
        description: Display name
        customMappings: Optional per-PID remap functions

    Returns:
        EngineProfile

    Raises:
        InvalidPidError: If an identifier is malformed
    """
    return EngineProfile(
        manufacturer=manufacturer,
        model=model,
        supportedPids=list(pids),
        description=description,
        customMappings=dict(customMappings or {})
    )


def createLinearMapping(scale: float = 1.0, offset: float = 0.0) -> RemapFunction:
    """Return a remap function computing value * scale + offset."""
    def remap(value: float) -> float:
        return value * scale + offset
    return remap
