################################################################################
# File Name: env_loader.py
# Purpose/Description: .env loading and ${VAR} expansion for the monitor config
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
Environment loading for the monitor configuration.

The committed monitor_config.json stays boat-independent; anything that
differs per installation (serial device, log level) comes from the
environment or a .env file beside the project:

    "port": "${OBD_SERIAL_PORT:/dev/rfcomm0}"

A placeholder without a default that is not set is left in place so the
config validator reports the raw value.

Usage:
    from common.env_loader import loadConfigFile

    config = loadConfigFile('src/monitor_config.json', '.env')
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# ${NAME} or ${NAME:default}
PLACEHOLDER_PATTERN = re.compile(r'\$\{([^}:]+)(?::([^}]*))?\}')

DEFAULT_ENV_FILE = '.env'


def parseEnvLine(line: str) -> tuple[str, str] | None:
    """
    Split one .env line into (name, value).

    Returns None for blanks, comments and lines without '='. A leading
    'export ' and one pair of matching quotes around the value are dropped.
    """
    text = line.strip()
    if not text or text.startswith('#') or '=' not in text:
        return None

    name, _, value = text.partition('=')
    name = name.strip()
    if name.startswith('export '):
        name = name[len('export '):].strip()
    value = value.strip()

    if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
        value = value[1:-1]

    return (name, value) if name else None


def loadEnvFile(envPath: str = DEFAULT_ENV_FILE) -> list[str]:
    """
    Export the variables of a .env file into os.environ.

    Variables that are already set are left alone.

    Args:
        envPath: Path to the .env file

    Returns:
        Names of the variables this call set, in file order
    """
    envFile = Path(envPath)
    if not envFile.is_file():
        logger.debug(f"No .env file at {envPath}")
        return []

    exported: list[str] = []
    try:
        lines = envFile.read_text(encoding='utf-8').splitlines()
    except OSError as e:
        logger.error(f"Cannot read .env file {envPath}: {e}")
        return exported

    for lineNum, line in enumerate(lines, 1):
        parsed = parseEnvLine(line)
        if parsed is None:
            if line.strip() and not line.strip().startswith('#'):
                logger.warning(f"Skipping line {lineNum} of {envPath}: not NAME=value")
            continue
        name, value = parsed
        if name in os.environ:
            continue
        os.environ[name] = value
        exported.append(name)

    logger.info(f"Exported {len(exported)} variables from {envPath}")
    return exported


def expandPlaceholders(value: Any) -> Any:
    """Replace ${NAME} / ${NAME:default} in every string of a JSON value."""
    if isinstance(value, str):
        return PLACEHOLDER_PATTERN.sub(_lookup, value)
    if isinstance(value, dict):
        return {key: expandPlaceholders(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expandPlaceholders(item) for item in value]
    return value


def _lookup(match: re.Match) -> str:
    name, default = match.group(1), match.group(2)
    if name in os.environ:
        return os.environ[name]
    if default is not None:
        return default
    logger.warning(f"{name} is not set and has no default")
    return match.group(0)


def loadConfigFile(configPath: str, envPath: str | None = None) -> dict[str, Any]:
    """
    Read a JSON config file after exporting the .env file, then expand
    placeholders.

    Raises:
        FileNotFoundError: If the config file does not exist
        json.JSONDecodeError: If the config file is not valid JSON
    """
    loadEnvFile(envPath if envPath is not None else DEFAULT_ENV_FILE)

    with open(configPath, 'r', encoding='utf-8') as f:
        config = json.load(f)

    return expandPlaceholders(config)
