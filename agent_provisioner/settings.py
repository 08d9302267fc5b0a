import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from jsonschema import Draft202012Validator

from agent_provisioner.constants import APP_NAME, REGISTRY_PATH_ENV
from agent_provisioner.errors import InvalidConfigFormatError, InvalidConfigSchemaError
from agent_provisioner.models import ConflictPolicy, ProviderPriority
from agent_provisioner.utils import read_json_safe, write_json

SETTINGS_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "registryPath": {"type": "string", "minLength": 1},
        "minimumPriority": {"enum": [item.value for item in ProviderPriority]},
        "conflictPolicy": {"enum": [item.value for item in ConflictPolicy]},
        "logLevel": {
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
    },
    "additionalProperties": False,
}


def format_schema_error(error: Any) -> str:
    path = ".".join([str(part) for part in error.path])
    return f"{error.message} at {path}" if path else str(error.message)


@dataclass(frozen=True)
class Settings:
    registry_path: Optional[Path] = None
    minimum_priority: ProviderPriority = ProviderPriority.LOW
    conflict_policy: ConflictPolicy = ConflictPolicy.FAIL
    log_level: Optional[str] = None


class SettingsRepository:
    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = root or (Path.home() / ".config" / APP_NAME)
        self._validator = Draft202012Validator(SETTINGS_SCHEMA)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def settings_path(self) -> Path:
        return self.root / "config" / "settings.json"

    def load_raw(self) -> dict[str, Any]:
        payload, error = read_json_safe(self.settings_path)
        if error is not None:
            raise InvalidConfigFormatError(self.settings_path, error)
        if payload is None:
            return {}
        schema_error = next(iter(self._validator.iter_errors(payload)), None)
        if schema_error is not None:
            raise InvalidConfigSchemaError(
                self.settings_path, format_schema_error(schema_error)
            )
        return payload

    def load(self) -> Settings:
        raw = self.load_raw()

        registry_path: Optional[Path] = None
        env_registry = os.environ.get(REGISTRY_PATH_ENV)
        if env_registry:
            registry_path = Path(env_registry).expanduser()
        elif "registryPath" in raw:
            registry_path = Path(raw["registryPath"]).expanduser()

        return Settings(
            registry_path=registry_path,
            minimum_priority=ProviderPriority(
                raw.get("minimumPriority", ProviderPriority.LOW.value)
            ),
            conflict_policy=ConflictPolicy(
                raw.get("conflictPolicy", ConflictPolicy.FAIL.value)
            ),
            log_level=raw.get("logLevel"),
        )

    def save(self, payload: dict[str, Any]) -> None:
        schema_error = next(iter(self._validator.iter_errors(payload)), None)
        if schema_error is not None:
            raise InvalidConfigSchemaError(
                self.settings_path, format_schema_error(schema_error)
            )
        write_json(self.settings_path, payload)
