################################################################################
# File Name: exceptions.py
# Purpose/Description: Protocol exception classes
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
Protocol exception classes.

Raised only for programming/configuration mistakes such as an unknown PID
format or a Mode 01/Mode 22 mix. Adapter replies never raise; they are
classified instead.

Usage:
    from marine_obd.protocol.exceptions import InvalidPidError

    try:
        pid = normalizePid('ZZ')
    except InvalidPidError as e:
        print(f"Bad PID: {e.pid}")
"""


class InvalidPidError(ValueError):
    """
    Raised when a PID identifier is not in 'XX' or '22:XXXX' hex form.

    Attributes:
        pid: The rejected identifier
    """

    def __init__(self, message: str, pid: str = ''):
        super().__init__(message)
        self.pid = pid


class CommandBuildError(ValueError):
    """
    Raised when a set of targets cannot form one command.

    Attributes:
        targets: The targets that were rejected
    """

    def __init__(self, message: str, targets: list[str] | None = None):
        super().__init__(message)
        self.targets = targets or []
