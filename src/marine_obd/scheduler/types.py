################################################################################
# File Name: types.py
# Purpose/Description: Command scheduler type definitions
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
Command scheduler types.

Usage:
    from marine_obd.scheduler.types import PendingRequest, BatchMode
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..protocol.types import Command


class RequestKind(Enum):
    """Why a request was issued."""

    POLL = 'poll'
    PROBE = 'probe'


class BatchMode(Enum):
    """Batch capability of the scheduler."""

    ENABLED = 'enabled'
    DISABLED = 'disabled'    # Configured off
    DEMOTED = 'demoted'      # Adapter rejected a batch, off for the connection's life


class SchedulerPhase(Enum):
    """Whether round-robin polling may issue requests."""

    INACTIVE = 'inactive'    # Not initialized
    POLLING = 'polling'
    SUSPENDED = 'suspended'  # Probing, polling stopped


@dataclass(frozen=True)
class PendingRequest:
    """
    The single outstanding request.

    Attributes:
        command: Command written to the adapter
        kind: POLL or PROBE
        issuedAt: Clock time the command was sent
        deadline: Clock time after which the request has timed out
    """

    command: Command
    kind: RequestKind
    issuedAt: float
    deadline: float

    @property
    def targets(self) -> tuple[str, ...]:
        """Ordered PIDs the reply is expected to carry."""
        return self.command.targets

    @property
    def isBatch(self) -> bool:
        return self.command.isBatch

    def isExpired(self, now: float) -> bool:
        """True once the deadline has passed."""
        return now >= self.deadline

    def toDict(self) -> dict[str, Any]:
        """Convert to dictionary for status reporting."""
        return {
            'command': self.command.wireText,
            'kind': self.kind.value,
            'targets': list(self.targets),
            'isBatch': self.isBatch,
            'issuedAt': self.issuedAt,
            'deadline': self.deadline,
        }
