"""Configuration loading for open-tasks.

Settings come from three places, later ones winning key by key:

1. built-in defaults
2. ``~/.open-tasks/.config.json`` (user)
3. ``.open-tasks/.config.json`` under the working directory (project)

An explicit ``--config`` file is applied last.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

from opentasks.domain.exceptions import ConfigurationError
from opentasks.domain.models import AiCliSettings, LlmSettings, WorkflowSettings
from opentasks.domain.timestamps import DEFAULT_TIMESTAMP_FORMAT
from opentasks.schemas import validate_config

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = ".open-tasks"
CONFIG_FILENAME = ".config.json"

DEFAULT_CONFIG: dict[str, Any] = {
    "outputDir": f"{CONFIG_DIRNAME}/outputs",
    "timestampFormat": DEFAULT_TIMESTAMP_FORMAT,
    "defaultFileExtension": "txt",
    "colors": True,
    "timeout": 120,
    "shell": None,
    "aiCli": None,
    "llm": {},
}


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Load and validate one configuration file.

    Args:
        path: Path to a .config.json file

    Returns:
        The parsed settings (empty if the file does not exist)

    Raises:
        ConfigurationError: If the file is unreadable, not JSON or invalid
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected object in {path}, got {type(data).__name__}")

    try:
        validate_config(data)
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path) or "(root)"
        raise ConfigurationError(f"{path}: {location}: {e.message}") from e

    result: dict[str, Any] = data
    return result


def merge_config(*layers: dict[str, Any]) -> dict[str, Any]:
    """Shallow merge; later layers override earlier ones key by key."""
    merged: dict[str, Any] = {}
    for layer in layers:
        merged.update(layer)
    return merged


def load_config(
    cwd: Path,
    home: Path | None = None,
    config_file: Path | None = None,
) -> WorkflowSettings:
    """
    Build the effective settings for an invocation.

    Args:
        cwd: Working directory (project config and relative outputDir)
        home: Home directory for the user config (``Path.home()`` if None)
        config_file: Explicit config file applied over the project config

    Returns:
        WorkflowSettings

    Raises:
        ConfigurationError: If any file is invalid or config_file is missing
    """
    home = home if home is not None else Path.home()
    layers = [
        DEFAULT_CONFIG,
        read_config_file(home / CONFIG_DIRNAME / CONFIG_FILENAME),
        read_config_file(cwd / CONFIG_DIRNAME / CONFIG_FILENAME),
    ]
    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        layers.append(read_config_file(config_file))

    merged = merge_config(*layers)
    logger.debug("Effective configuration: %s", merged)
    return settings_from_dict(merged, cwd)


def settings_from_dict(data: dict[str, Any], cwd: Path) -> WorkflowSettings:
    """Convert merged camelCase settings into WorkflowSettings."""
    output_dir = Path(data["outputDir"]).expanduser()
    if not output_dir.is_absolute():
        output_dir = cwd / output_dir

    ai_cli = None
    if data.get("aiCli"):
        raw = data["aiCli"]
        ai_cli = AiCliSettings(
            command=raw["command"],
            args=tuple(raw.get("args", ())),
            context_flag=raw.get("contextFlag", "--context"),
        )

    llm_data = data.get("llm") or {}
    defaults = LlmSettings()
    llm = LlmSettings(
        model=llm_data.get("model", defaults.model),
        base_url=llm_data.get("baseUrl", defaults.base_url),
        api_key=llm_data.get("apiKey", defaults.api_key),
    )

    return WorkflowSettings(
        output_dir=output_dir,
        timestamp_format=data["timestampFormat"],
        default_file_extension=data["defaultFileExtension"],
        colors=bool(data["colors"]),
        timeout=float(data["timeout"]),
        shell=data.get("shell"),
        ai_cli=ai_cli,
        llm=llm,
        cwd=cwd,
    )
