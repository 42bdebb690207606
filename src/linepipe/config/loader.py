"""
Config file loader.

Reads pipeline option defaults from a YAML (or JSON) file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from linepipe.config.options import PipelineOptions
from linepipe.errors import ConfigError


def _load_file(path: Path) -> Any:
    """Load and parse a local file.

    Args:
        path: Path to the file

    Returns:
        Parsed content
    """
    content = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return json.loads(content)
    return yaml.safe_load(content)


def load_options(path: str | Path) -> PipelineOptions:
    """Load pipeline options from a config file.

    Args:
        path: Path to a YAML or JSON mapping of option names to values

    Returns:
        Validated options

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    config_path = Path(path).expanduser()
    if not config_path.is_file():
        raise ConfigError(
            f"Config file not found: {config_path}", config_path=str(config_path)
        )

    try:
        raw = _load_file(config_path)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(
            f"Config file is not valid: {e}", config_path=str(config_path)
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Config file could not be read: {e}", config_path=str(config_path)
        ) from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(
            "Config file must contain a mapping", config_path=str(config_path)
        ).with_hint("use 'map: line.upper()' style keys")

    try:
        return PipelineOptions.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid options: {e}", config_path=str(config_path)
        ) from e
