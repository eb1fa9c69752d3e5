################################################################################
# File Name: helpers.py
# Purpose/Description: Factory helpers for engine connections
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
Connection helper functions.

Usage:
    from marine_obd.config import loadMonitorConfig
    from marine_obd.connection.helpers import createConnectionFromConfig

    config = loadMonitorConfig('monitor_config.json')
    connection = createConnectionFromConfig(config)
"""

import logging
from typing import Any

from ..config.loader import getConnectionSettings, getEngineProfile
from ..pids.definitions import PidLookup
from .connection import Obd2Connection, TransportFactory

logger = logging.getLogger(__name__)


def createConnectionFromConfig(
    config: dict[str, Any],
    transportFactory: TransportFactory | None = None,
    pidLookup: PidLookup | None = None
) -> Obd2Connection:
    """
    Create an engine connection from a validated configuration.

    Args:
        config: Configuration from loadMonitorConfig()
        transportFactory: Optional transport factory (simulator, tests);
            defaults to the configured serial port
        pidLookup: Optional PID definitions, defaults to the built-in table

    Returns:
        Obd2Connection, not yet connected
    """
    settings = getConnectionSettings(config)
    profile = getEngineProfile(config)

    logger.info(
        f"Connection created | port={settings.port} instance={settings.instance} "
        f"engine={profile.manufacturer}/{profile.model} pids={len(profile.supportedPids)}"
    )

    return Obd2Connection(
        settings=settings,
        profile=profile,
        pidLookup=pidLookup,
        transportFactory=transportFactory
    )
