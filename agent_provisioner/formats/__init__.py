"""Format-aware config I/O keyed by provider ``configFormat``."""

from pathlib import Path
from typing import Any, Callable

import yaml

from agent_provisioner.errors import (
    InvalidConfigFormatError,
    UnsupportedConfigFormatError,
)
from agent_provisioner.formats.json_format import (
    read_json_config,
    remove_json_config,
    write_json_config,
)
from agent_provisioner.formats.toml_format import (
    read_toml_config,
    remove_toml_config,
    write_toml_config,
)
from agent_provisioner.formats.utils import deep_merge, get_nested_value
from agent_provisioner.formats.yaml_format import (
    read_yaml_config,
    remove_yaml_config,
    write_yaml_config,
)
from agent_provisioner.models import ConfigFormat

# JSONC, JSON, TOML and decode errors are all ValueError subclasses.
_PARSE_ERRORS = (ValueError, yaml.YAMLError)

_READERS: dict[ConfigFormat, Callable[[Path], dict[str, Any]]] = {
    ConfigFormat.JSON: read_json_config,
    ConfigFormat.JSONC: read_json_config,
    ConfigFormat.YAML: read_yaml_config,
    ConfigFormat.TOML: read_toml_config,
}

_WRITERS: dict[ConfigFormat, Callable[[Path, str, str, Any], None]] = {
    ConfigFormat.JSON: write_json_config,
    ConfigFormat.JSONC: write_json_config,
    ConfigFormat.YAML: write_yaml_config,
    ConfigFormat.TOML: write_toml_config,
}

_REMOVERS: dict[ConfigFormat, Callable[[Path, str, str], bool]] = {
    ConfigFormat.JSON: remove_json_config,
    ConfigFormat.JSONC: remove_json_config,
    ConfigFormat.YAML: remove_yaml_config,
    ConfigFormat.TOML: remove_toml_config,
}


def _coerce_format(path: Path, config_format: ConfigFormat | str) -> ConfigFormat:
    try:
        return ConfigFormat(config_format)
    except ValueError as exc:
        raise UnsupportedConfigFormatError(path, str(config_format)) from exc


def read_config(path: Path, config_format: ConfigFormat | str) -> dict[str, Any]:
    reader = _READERS[_coerce_format(path, config_format)]
    try:
        return reader(path)
    except _PARSE_ERRORS as exc:
        raise InvalidConfigFormatError(path, str(exc)) from exc


def write_config(
    path: Path,
    config_format: ConfigFormat | str,
    key: str,
    name: str,
    value: Any,
) -> None:
    writer = _WRITERS[_coerce_format(path, config_format)]
    try:
        writer(path, key, name, value)
    except _PARSE_ERRORS as exc:
        raise InvalidConfigFormatError(path, str(exc)) from exc


def remove_config(
    path: Path, config_format: ConfigFormat | str, key: str, name: str
) -> bool:
    remover = _REMOVERS[_coerce_format(path, config_format)]
    try:
        return remover(path, key, name)
    except _PARSE_ERRORS as exc:
        raise InvalidConfigFormatError(path, str(exc)) from exc


__all__ = [
    "deep_merge",
    "get_nested_value",
    "read_config",
    "remove_config",
    "write_config",
]
