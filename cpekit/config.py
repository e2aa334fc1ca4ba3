"""
Configuration loading for CPEKit.

Options are layered: defaults, then the ``config`` section of a YAML meeting
file, then command-line values. The same YAML file carries attendee seed
records for hosts and speakers the export does not list properly.

Example meeting file:
    config:
      start: "2021-04-14 19:00:00"
      bus_end: "2021-04-14 20:50:00"
      title: "April 2021 chapter meeting"
    attendee:
      speaker@example.com:
        first name: Pat
        last name: Speaker
        isc2: "CISSP 123456"
        cpe: 2

Example usage:
    from cpekit.config import load_seed_file, build_config

    seed_file = load_seed_file("cpe-config-2021-04.yaml")
    config = build_config(seed_file.config, {"max_cpe": 3})
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from cpekit.errors import ConfigurationError
from cpekit.models import CpeConfig, SeedFile

DEBUG_ENV_VAR = "DEBUG_CPE"

# Short option names accepted in meeting files and on the command line
OPTION_ALIASES = {
    "cpe": "max_cpe",
    "grace": "start_grace_period",
    "biz": "bus_end",
    "meeting_title": "title",
}


def load_seed_file(path: Union[str, Path]) -> SeedFile:
    """
    Load a YAML meeting file.

    Raises:
        ConfigurationError: If the file is missing, not YAML, or has
            unexpected structure
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"file {path} does not exist")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"failed to read YAML from {path}", [str(e)]) from e

    if data is None:
        return SeedFile()
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    try:
        return SeedFile(**data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid meeting file {path}", _error_messages(e)) from e


def _error_messages(error: ValidationError):
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get('loc', ()))
        messages.append(f"{location}: {item.get('msg')}" if location else item.get('msg'))
    return messages


def build_config(*layers: Optional[Dict[str, Any]]) -> CpeConfig:
    """
    Merge option layers left to right and validate the result.

    ``None`` values in a layer do not override earlier layers, so unset
    command-line flags leave file values in place.

    Raises:
        ConfigurationError: If an option is unknown or invalid
    """
    merged: Dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if value is not None:
                merged[OPTION_ALIASES.get(key, key)] = value
    try:
        return CpeConfig(**merged)
    except ValidationError as e:
        raise ConfigurationError("invalid configuration", _error_messages(e)) from e


def is_debug_enabled(config: Optional[CpeConfig] = None) -> bool:
    """Debug mode comes from the config or the DEBUG_CPE environment variable."""
    if config is not None and config.debug:
        return True
    return os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes")
