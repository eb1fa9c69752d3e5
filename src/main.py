################################################################################
# File Name: main.py
# Purpose/Description: Main application entry point
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
Main application entry point.

This module provides the main entry point for the engine monitor with:
- CLI argument parsing
- Configuration loading and validation
- One engine connection per process, every reading and state change logged
- Signal handling for graceful shutdown (SIGINT/SIGTERM)
- Error handling and exit codes
- Simulation mode against an emulated ELM327 adapter

Usage:
    python src/main.py --help
    python src/main.py --config path/to/monitor_config.json
    python src/main.py --dry-run
    python src/main.py --simulate
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Any

# Resolve project paths relative to this script (not CWD)
srcPath = Path(__file__).resolve().parent
projectRoot = srcPath.parent
if str(srcPath) not in sys.path:
    sys.path.insert(0, str(srcPath))

DEFAULT_CONFIG = str(srcPath / 'monitor_config.json')
DEFAULT_ENV = str(projectRoot / '.env')

from common.error_handler import ConfigurationError, formatError, handleError
from common.logging_config import getLogger, logWithContext, setupLogging
from marine_obd import __version__
from marine_obd.config import loadMonitorConfig
from marine_obd.connection import (
    EVENT_ADAPTER_ERROR,
    EVENT_BUS_ERROR,
    EVENT_CONNECTION_LOST,
    EVENT_DECODE_ERROR,
    EVENT_ENGINE_OFF,
    EVENT_INITIALIZED,
    EVENT_READING,
    EVENT_STATE_CHANGE,
    Obd2Connection,
    createConnectionFromConfig,
)
from marine_obd.simulator import createEmulatorFromConfig, createSimulatedTransportFactory

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUNTIME_ERROR = 2
EXIT_UNKNOWN_ERROR = 3


def parseArgs(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Argument list, defaults to sys.argv[1:]

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description='Marine OBD-II engine monitor (ELM327 adapter)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py                    Run with default config
  python main.py --config my.json   Run with custom config
  python main.py --dry-run          Validate config and exit
  python main.py --simulate         Run against an emulated adapter
  python main.py --verbose          Run with debug logging
        '''
    )

    parser.add_argument(
        '--config', '-c',
        default=DEFAULT_CONFIG,
        help='Path to configuration file (default: src/monitor_config.json)'
    )

    parser.add_argument(
        '--env-file', '-e',
        default=DEFAULT_ENV,
        help='Path to environment file (default: .env)'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate configuration without opening the adapter'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose (debug) logging, including raw adapter traffic'
    )

    parser.add_argument(
        '--simulate', '-s',
        action='store_true',
        help='Run against the built-in ELM327 emulator instead of the serial port'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser.parse_args(argv)


def loadConfiguration(
    configPath: str,
    envPath: str | None = None
) -> dict:
    """
    Load and validate configuration.

    Args:
        configPath: Path to configuration file
        envPath: Path to environment file

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigurationError: If configuration is invalid
    """
    logger = getLogger(__name__)

    config = loadMonitorConfig(configPath, envPath)

    logger.info(f"Configuration loaded from {configPath}")
    return config


def attachEventLogging(connection: Obd2Connection) -> None:
    """
    Log every reading, state change and fault reported by the connection.

    Args:
        connection: Connection to observe
    """
    logger = getLogger('marine_obd.monitor')
    instance = connection.settings.instance

    def onReading(reading: Any) -> None:
        logWithContext(
            logger, 'info',
            f"{reading.name or reading.pid} = {reading.value:.2f} {reading.unit}",
            pid=reading.pid, instance=instance
        )

    def onStateChange(oldState: Any, newState: Any, timestamp: float) -> None:
        logWithContext(
            logger, 'info',
            f"State {oldState.value} -> {newState.value}",
            instance=instance
        )

    connection.on(EVENT_READING, onReading)
    connection.on(EVENT_STATE_CHANGE, onStateChange)
    connection.on(EVENT_INITIALIZED, lambda: logger.info("Adapter initialized, polling"))
    connection.on(EVENT_ENGINE_OFF, lambda reason: logger.info(f"Engine off: {reason}"))
    connection.on(EVENT_ADAPTER_ERROR, lambda reason: logger.error(f"Adapter error: {reason}"))
    connection.on(
        EVENT_BUS_ERROR,
        lambda category, lines: logger.error(f"Bus error {category}: {lines}")
    )
    connection.on(EVENT_DECODE_ERROR, lambda details: logger.warning(f"Decode error: {details}"))
    connection.on(EVENT_CONNECTION_LOST, lambda: logger.warning("Connection lost"))


def createConnection(config: dict, simulate: bool = False) -> Obd2Connection:
    """
    Create the engine connection, optionally backed by the adapter emulator.

    Args:
        config: Validated configuration dictionary
        simulate: If True, talk to the ELM327 emulator

    Returns:
        Obd2Connection, not yet connected
    """
    transportFactory = None
    if simulate:
        transportFactory = createSimulatedTransportFactory(
            createEmulatorFromConfig(config),
            responseDelaySeconds=config['simulator']['responseDelaySeconds']
        )

    connection = createConnectionFromConfig(config, transportFactory=transportFactory)
    attachEventLogging(connection)
    return connection


async def runMonitor(
    config: dict,
    simulate: bool = False,
    stopEvent: asyncio.Event | None = None,
    installSignalHandlers: bool = True
) -> int:
    """
    Run one engine connection until a shutdown signal arrives.

    Args:
        config: Validated configuration dictionary
        simulate: If True, use the ELM327 emulator
        stopEvent: Event that ends the run, created if not given
        installSignalHandlers: Register SIGINT/SIGTERM handlers

    Returns:
        Exit code
    """
    logger = getLogger(__name__)
    loop = asyncio.get_running_loop()
    stopEvent = stopEvent or asyncio.Event()

    originalHandlers: dict[int, Any] = {}

    def handleShutdownSignal(signum: int, frame: Any) -> None:
        logger.info(f"Received signal {signal.Signals(signum).name}, initiating shutdown")
        loop.call_soon_threadsafe(stopEvent.set)

    if installSignalHandlers:
        originalHandlers[signal.SIGINT] = signal.signal(signal.SIGINT, handleShutdownSignal)
        if hasattr(signal, 'SIGTERM'):
            originalHandlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, handleShutdownSignal)

    connection = createConnection(config, simulate=simulate)

    try:
        await connection.connect()
        await stopEvent.wait()
    finally:
        connection.disconnect()
        for signum, handler in originalHandlers.items():
            signal.signal(signum, handler)

    logger.info(f"Final status: {connection.getStatus()}")
    return EXIT_SUCCESS


def runWorkflow(
    config: dict,
    dryRun: bool = False,
    simulate: bool = False
) -> int:
    """
    Execute the monitor workflow.

    Args:
        config: Validated configuration dictionary
        dryRun: If True, validate config but don't open the adapter
        simulate: If True, use the ELM327 emulator

    Returns:
        Exit code: 0 for clean shutdown, non-zero for errors
    """
    logger = getLogger(__name__)

    if dryRun:
        logger.info("DRY RUN MODE - Validating config without opening the adapter")
        logger.info("Configuration is valid")
        return EXIT_SUCCESS

    logger.info("Starting monitor...")

    try:
        exitCode = asyncio.run(runMonitor(config, simulate=simulate))
    except KeyboardInterrupt:
        logger.warning("Monitor interrupted by user")
        exitCode = EXIT_SUCCESS
    except OSError as e:
        logger.error(f"Monitor error: {formatError(e)}")
        exitCode = EXIT_RUNTIME_ERROR

    logger.info("Monitor stopped")
    return exitCode


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Args:
        argv: Argument list, defaults to sys.argv[1:]

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parseArgs(argv)

    logLevel = 'DEBUG' if args.verbose else 'INFO'
    setupLogging(level=logLevel)
    logger = getLogger(__name__)

    logger.info("=" * 60)
    logger.info("Marine OBD-II monitor starting...")
    if args.simulate:
        logger.info("*** Running in SIMULATION MODE ***")
    logger.info("=" * 60)

    try:
        config = loadConfiguration(args.config, args.env_file)

        loggingConfig = config['logging']
        setupLogging(
            level=logLevel if args.verbose else loggingConfig['level'],
            logFormat=loggingConfig['format'],
            logFile=loggingConfig['file']
        )

        exitCode = runWorkflow(
            config,
            dryRun=args.dry_run,
            simulate=args.simulate
        )

        if exitCode == EXIT_SUCCESS:
            logger.info("Monitor completed successfully")
        else:
            logger.warning(f"Monitor completed with exit code {exitCode}")

        return exitCode

    except ConfigurationError as e:
        logger.error(f"Configuration error: {formatError(e)}")
        return EXIT_CONFIG_ERROR

    except KeyboardInterrupt:
        logger.warning("Monitor interrupted by user")
        return EXIT_RUNTIME_ERROR

    except Exception as e:
        handleError(e, reraise=False)
        logger.error(f"Unexpected error: {e}")
        return EXIT_UNKNOWN_ERROR

    finally:
        logger.info("=" * 60)
        logger.info("Monitor finished")
        logger.info("=" * 60)


if __name__ == '__main__':
    sys.exit(main())
