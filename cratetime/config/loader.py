# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader: reads YAML from disk and produces a validated, frozen
CratetimeConfig.

The pipeline is linear: read the file, parse YAML into a dict, validate with
pydantic, return the frozen model. Any failure stops the run before the
first package is touched.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from cratetime.config.exceptions import ConfigLoadError, ConfigValidationError
from cratetime.config.schema import BatchConfig, CratetimeConfig


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed mapping.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't a
            YAML mapping.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def load_config(config_path: Path) -> CratetimeConfig:
    """
    Load, validate, and freeze a config file.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations.
    """
    raw_data = _read_yaml_file(config_path)

    try:
        config = CratetimeConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Config validation failed for {config_path}:\n{err}"
        ) from err

    return config


def apply_overrides(batch: BatchConfig, overrides: dict[str, Any]) -> BatchConfig:
    """
    Layer command-line values over a loaded batch section.

    Keys whose value is None are ignored, so an unset flag never clobbers a
    value from the YAML file. The result is re-validated.
    """
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return batch

    merged = batch.model_dump()
    merged.update(updates)
    try:
        return BatchConfig.model_validate(merged)
    except ValidationError as err:
        raise ConfigValidationError(f"Invalid command-line override:\n{err}") from err
