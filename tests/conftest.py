################################################################################
# File Name: conftest.py
# Purpose/Description: Pytest fixtures and configuration
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
Pytest configuration and shared fixtures.

Fixtures defined here are available to all test files automatically.

Usage:
    def test_something(sampleConfig, fakeCallLater):
        # sampleConfig and fakeCallLater are automatically injected
        pass
"""

import copy
import json
import os
import sys
from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import MagicMock

import pytest

# Add src to path for imports
srcPath = Path(__file__).parent.parent / 'src'
if str(srcPath) not in sys.path:
    sys.path.insert(0, str(srcPath))

from marine_obd.connection import ConnectionSettings  # noqa: E402
from marine_obd.pids import PidLookup  # noqa: E402


# ================================================================================
# Fake Timers
# ================================================================================

class FakeHandle:
    """Handle returned by FakeCallLater, mirrors asyncio.TimerHandle.cancel()."""

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeCallLater:
    """
    Stand-in for loop.call_later that records handles and fires them on demand.

    Cancelled handles are still fireable, which lets tests check that a
    stale timer does nothing when its callback was already queued.
    """

    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def fire(self, handle: FakeHandle) -> None:
        handle.fired = True
        handle.callback()

    def fireLast(self) -> None:
        self.fire(self.pending[-1])

    def fireAll(self) -> int:
        fired = 0
        while self.pending:
            self.fire(self.pending[0])
            fired += 1
        return fired


@pytest.fixture
def fakeCallLater() -> FakeCallLater:
    """Provide a fake callLater for timer-driven components."""
    return FakeCallLater()


# ================================================================================
# Domain Fixtures
# ================================================================================

@pytest.fixture
def pidLookup() -> PidLookup:
    """Provide the built-in PID definition table."""
    return PidLookup()


@pytest.fixture
def fastSettings() -> ConnectionSettings:
    """
    Provide connection settings with zero handshake delays.

    Returns:
        ConnectionSettings suitable for running against the emulator
    """
    return ConnectionSettings(
        port='/dev/test',
        requestTimeoutSeconds=0.2,
        batchRequestTimeoutSeconds=0.3,
        adapterCheckTimeoutSeconds=0.5,
        engineCheckTimeoutSeconds=0.5,
        stageDelaySeconds=0,
        resetDelaySeconds=0,
        commandDelaySeconds=0,
        commandTimeoutSeconds=0.5,
        settleDelaySeconds=0,
        probeIntervalSeconds=0.05,
        probeTimeoutSeconds=0.2,
        instance='port'
    )


# ================================================================================
# Configuration Fixtures
# ================================================================================

@pytest.fixture
def sampleConfig() -> dict[str, Any]:
    """
    Provide sample monitor configuration for tests.

    Returns:
        Dictionary with test configuration values
    """
    return {
        'application': {
            'name': 'TestMonitor',
            'version': '1.0.0'
        },
        'connection': {
            'port': '/dev/rfcomm0',
            'baudRate': 38400,
            'batchMode': True,
            'maxBatchSize': 6,
            'continuousMode': True,
            'reconnectDelaySeconds': 5
        },
        'timing': {
            'requestTimeoutSeconds': 0.2,
            'batchRequestTimeoutSeconds': 0.3,
            'adapterCheckTimeoutSeconds': 0.5,
            'engineCheckTimeoutSeconds': 0.5,
            'stageDelaySeconds': 0,
            'resetDelaySeconds': 0,
            'commandDelaySeconds': 0,
            'commandTimeoutSeconds': 0.5,
            'settleDelaySeconds': 0,
            'probeIntervalSeconds': 0.05,
            'probeTimeoutSeconds': 0.2
        },
        'liveness': {
            'noDataThreshold': 5,
            'maxProbeFailures': 10
        },
        'engine': {
            'manufacturer': 'Volvo Penta',
            'model': 'd2-75',
            'instance': 'port',
            'pids': []
        },
        'logging': {
            'level': 'DEBUG'
        },
        'simulator': {
            'responseDelaySeconds': 0.001
        }
    }


@pytest.fixture
def minimalConfig() -> dict[str, Any]:
    """
    Provide minimal configuration for testing defaults.

    Returns:
        Dictionary with only the required field
    """
    return {
        'connection': {
            'port': '/dev/rfcomm0'
        }
    }


@pytest.fixture
def validatedConfig(sampleConfig: dict[str, Any]) -> dict[str, Any]:
    """Provide the sample configuration with defaults applied."""
    from marine_obd.config import validateMonitorConfig
    return validateMonitorConfig(copy.deepcopy(sampleConfig))


# ================================================================================
# Environment Fixtures
# ================================================================================

@pytest.fixture
def envVars() -> Generator[dict[str, str], None, None]:
    """
    Set up test environment variables.

    Yields:
        Dictionary of environment variables that were set

    Automatically cleans up after test.
    """
    testVars = {
        'OBD_SERIAL_PORT': '/dev/ttyUSB7',
        'OBD_LOG_LEVEL': 'WARNING',
    }

    originalVars = {}
    for key in testVars:
        originalVars[key] = os.environ.get(key)
        os.environ[key] = testVars[key]

    yield testVars

    for key, value in originalVars.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture
def cleanEnv() -> Generator[None, None, None]:
    """
    Ensure clean environment with no test variables.

    Removes common test variables before test, restores after.
    """
    varsToRemove = ['OBD_SERIAL_PORT', 'OBD_LOG_LEVEL', 'TEST_VAR']

    saved = {}
    for var in varsToRemove:
        saved[var] = os.environ.pop(var, None)

    yield

    for var in varsToRemove:
        os.environ.pop(var, None)
    for var, value in saved.items():
        if value is not None:
            os.environ[var] = value


# ================================================================================
# Mock Fixtures
# ================================================================================

@pytest.fixture
def mockLogger() -> MagicMock:
    """
    Provide mock logger for testing log calls.

    Returns:
        MagicMock logger instance
    """
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    return logger


# ================================================================================
# File System Fixtures
# ================================================================================

@pytest.fixture
def tempConfigFile(tmp_path: Path, sampleConfig: dict[str, Any]) -> Path:
    """
    Create temporary config file for testing.

    Args:
        tmp_path: Pytest temp directory fixture
        sampleConfig: Sample configuration fixture

    Returns:
        Path to temporary config file
    """
    configFile = tmp_path / 'monitor_config.json'
    with open(configFile, 'w') as f:
        json.dump(sampleConfig, f)

    return configFile


@pytest.fixture
def tempEnvFile(tmp_path: Path, envVars: dict[str, str]) -> Path:
    """
    Create temporary .env file for testing.

    Args:
        tmp_path: Pytest temp directory fixture
        envVars: Environment variables fixture

    Returns:
        Path to temporary .env file
    """
    envFile = tmp_path / '.env'
    with open(envFile, 'w') as f:
        for key, value in envVars.items():
            f.write(f'{key}={value}\n')

    return envFile


# ================================================================================
# Pytest Configuration
# ================================================================================

def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
