################################################################################
# File Name: exceptions.py
# Purpose/Description: Connection exception classes
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
Connection exception classes.

Both are transport faults in the common error taxonomy: they end the
current session and hand over to the reconnect supervisor.

Usage:
    from marine_obd.connection.exceptions import TransportOpenError

    try:
        await openSerialTransport('/dev/rfcomm0', 38400, factory)
    except TransportOpenError as e:
        print(e.details['port'])
"""

from common.error_handler import TransportError


class TransportOpenError(TransportError):
    """The serial/Bluetooth port could not be opened."""


class ConnectionClosedError(TransportError):
    """A command was written while no transport was open."""
