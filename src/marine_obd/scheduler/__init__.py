################################################################################
# File Name: __init__.py
# Purpose/Description: Command scheduler subpackage initialization
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
Command scheduler subpackage.

Usage:
    from marine_obd.scheduler import CommandScheduler, BatchMode
"""

from .command_scheduler import (
    DEFAULT_BATCH_REQUEST_TIMEOUT,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    REQUEST_TIMER,
    CommandScheduler,
)
from .types import BatchMode, PendingRequest, RequestKind, SchedulerPhase

__all__ = [
    'BatchMode',
    'PendingRequest',
    'RequestKind',
    'SchedulerPhase',
    'CommandScheduler',
    'DEFAULT_BATCH_REQUEST_TIMEOUT',
    'DEFAULT_PROBE_TIMEOUT',
    'DEFAULT_REQUEST_TIMEOUT',
    'REQUEST_TIMER',
]
