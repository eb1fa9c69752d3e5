################################################################################
# File Name: __init__.py
# Purpose/Description: Source tree package initialization
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
Marine OBD-II engine monitor source tree.

This package contains the application source code organized as:
- common/: Shared utilities (config, logging, errors)
- marine_obd/protocol/: ELM327 command building, framing and decoding
- marine_obd/pids/: PID definitions and marine engine profiles
- marine_obd/scheduler/: Round-robin PID polling with batching
- marine_obd/connection/: Liveness state machine, handshake, transport
- marine_obd/config/: Monitor configuration loading and validation
- marine_obd/simulator/: ELM327 emulator and simulated transport

Entry point: main.py
"""

__version__ = '1.0.0'
