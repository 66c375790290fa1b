"""
Configuration loading.

The config file is JSON (as written by earlier releases) or YAML, picked
by file extension. The encryption key for session tokens is not part of
the file; it comes from the ENCRYPTION_KEY environment variable and is
handed to the cipher explicitly.

Example config.json:

    {
      "primaryhost": {"baseurl": "http://10.0.0.2", "password": "pw", "sslSecure": false},
      "secondaryHosts": [
        {"baseurl": "http://10.0.0.3/pi/", "password": "pw", "path": "/admin/"}
      ],
      "updateGravity": true,
      "runOnce": false,
      "intervalMinutes": 60
    }
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from . import ENCRYPTION_KEY_ENV
from .exceptions import ConfigError
from .models import SyncConfig

logger = logging.getLogger("getpi.config")

YAML_SUFFIXES = (".yaml", ".yml")


def _parse(path: Path, text: str) -> Any:
    """Parse config text as YAML or JSON depending on the file suffix."""
    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"could not parse YAML config {path}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            f"could not parse config {path}, you might have a JSON formatting issue: {exc}"
        ) from exc


def config_from_dict(data: Mapping[str, Any]) -> SyncConfig:
    """Validate a parsed config mapping.

    Raises:
        ConfigError: If required keys are missing or values are invalid.
    """
    try:
        return SyncConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc


def load_config(path: str | Path) -> SyncConfig:
    """Read and validate a config file.

    Args:
        path: Path to a .json, .yaml or .yml file.

    Returns:
        Validated SyncConfig.

    Raises:
        ConfigError: If the file cannot be read, parsed, or validated.
    """
    cfg_path = Path(path).expanduser()
    try:
        text = cfg_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to read config file {cfg_path}: {exc}") from exc

    data = _parse(cfg_path, text)
    if not isinstance(data, dict):
        raise ConfigError(f"config {cfg_path} must contain a mapping at the top level")

    config = config_from_dict(data)
    logger.info(
        "Loaded config %s: primary=%s secondaries=%d gravity=%s run_once=%s interval=%dm",
        cfg_path,
        config.primary_host.full_url,
        len(config.secondary_hosts),
        config.update_gravity,
        config.run_once,
        config.interval_minutes,
    )
    return config


def load_encryption_key(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Read the token encryption key from the environment.

    Returns None when the variable is unset or blank; the cipher reports
    the problem when it is first used.
    """
    env = os.environ if environ is None else environ
    key = env.get(ENCRYPTION_KEY_ENV, "").strip()
    if not key:
        logger.warning("%s is not set, logins will fail", ENCRYPTION_KEY_ENV)
        return None
    return key
