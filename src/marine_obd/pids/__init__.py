################################################################################
# File Name: __init__.py
# Purpose/Description: PID definitions subpackage initialization
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
PID definitions and engine profiles.

Usage:
    from marine_obd.pids import PidLookup, getProfile

    lookup = PidLookup()
    profile = getProfile('Cummins', 'qsb6.7')
"""

from .definitions import (
    PID_DEFINITIONS,
    PidLookup,
    findPidsByName,
    getAllPids,
    getPidDefinition,
)
from .profiles import (
    ENGINE_PROFILES,
    GENERIC_MANUFACTURER,
    GENERIC_MODEL,
    createLinearMapping,
    createProfile,
    getAllManufacturers,
    getModelsForManufacturer,
    getProfile,
)
from .types import EngineProfile, PidDefinition

__all__ = [
    'EngineProfile',
    'PidDefinition',
    'PID_DEFINITIONS',
    'PidLookup',
    'findPidsByName',
    'getAllPids',
    'getPidDefinition',
    'ENGINE_PROFILES',
    'GENERIC_MANUFACTURER',
    'GENERIC_MODEL',
    'createLinearMapping',
    'createProfile',
    'getAllManufacturers',
    'getModelsForManufacturer',
    'getProfile',
]
