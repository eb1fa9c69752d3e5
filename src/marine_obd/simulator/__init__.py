################################################################################
# File Name: __init__.py
# Purpose/Description: Adapter simulator subpackage initialization
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
Adapter simulator subpackage.

Runs the monitor against an emulated ELM327 adapter instead of a serial
device.

Modules:
- adapter_emulator: ELM327 command/response emulator
- simulated_transport: asyncio transport and factory backed by the emulator

Usage:
    from marine_obd.simulator import ElmAdapterEmulator, createSimulatedTransportFactory
"""

from .adapter_emulator import (
    ADAPTER_IDENTITY,
    DEFAULT_SENSOR_BYTES,
    ElmAdapterEmulator,
)
from .simulated_transport import (
    DEFAULT_RESPONSE_DELAY_SECONDS,
    SimulatedTransport,
    SimulatedTransportFactory,
    createEmulatorFromConfig,
    createSimulatedTransportFactory,
)

__all__ = [
    'ADAPTER_IDENTITY',
    'DEFAULT_SENSOR_BYTES',
    'ElmAdapterEmulator',
    'DEFAULT_RESPONSE_DELAY_SECONDS',
    'SimulatedTransport',
    'SimulatedTransportFactory',
    'createEmulatorFromConfig',
    'createSimulatedTransportFactory',
]
