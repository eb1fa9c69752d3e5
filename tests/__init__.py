################################################################################
# File Name: __init__.py
# Purpose/Description: Test package initialization
# Author: Michael Cornelison
# Creation Date: 2026-10-19
# Copyright: (c) 2026 Marine OBD-II Project. All rights reserved.
################################################################################

"""
Test package for the marine OBD-II monitor.

Run tests with:
    pytest tests/
    pytest tests/ -m "not slow"
"""
