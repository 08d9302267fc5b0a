import json
import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Optional

from jsonschema import Draft202012Validator

from agent_provisioner.errors import (
    InvalidConfigFormatError,
    InvalidConfigSchemaError,
    RegistryNotFoundError,
)
from agent_provisioner.models import (
    ConfigFormat,
    ProviderPriority,
    ProviderStatus,
    TransportType,
)
from agent_provisioner.registry.models import DetectionConfig, Provider
from agent_provisioner.settings import format_schema_error

logger = logging.getLogger(__name__)

REGISTRY_DIR = Path(__file__).resolve().parent
DEFAULT_REGISTRY_PATH = REGISTRY_DIR / "registry.json"
REGISTRY_SCHEMA_PATH = REGISTRY_DIR / "schema.json"

_TEMPLATE_PATTERN = re.compile(r"\$([A-Z_]+)")


def platform_locations() -> dict[str, Path]:
    home = Path.home()
    if sys.platform == "win32":
        app_data = Path(os.environ.get("APPDATA") or (home / "AppData" / "Roaming"))
        return {
            "HOME": home,
            "CONFIG": app_data,
            "VSCODE_CONFIG": app_data / "Code" / "User",
            "ZED_CONFIG": app_data / "Zed",
            "CLAUDE_DESKTOP_CONFIG": app_data / "Claude",
        }

    config = Path(os.environ.get("XDG_CONFIG_HOME") or (home / ".config"))
    if sys.platform == "darwin":
        support = home / "Library" / "Application Support"
        return {
            "HOME": home,
            "CONFIG": config,
            "VSCODE_CONFIG": support / "Code" / "User",
            "ZED_CONFIG": support / "Zed",
            "CLAUDE_DESKTOP_CONFIG": support / "Claude",
        }
    return {
        "HOME": home,
        "CONFIG": config,
        "VSCODE_CONFIG": config / "Code" / "User",
        "ZED_CONFIG": config / "zed",
        "CLAUDE_DESKTOP_CONFIG": config / "Claude",
    }


def resolve_template_path(
    template: str, locations: Optional[dict[str, Path]] = None
) -> Path:
    """Expand ``$HOME``-style placeholders; unknown names are left untouched."""
    values = locations or platform_locations()

    def _replace(match: re.Match[str]) -> str:
        value = values.get(match.group(1))
        return str(value) if value is not None else match.group(0)

    return Path(_TEMPLATE_PATTERN.sub(_replace, template))


class ProviderRegistry:
    def __init__(self, registry_path: Optional[Path] = None) -> None:
        self._registry_path = registry_path or DEFAULT_REGISTRY_PATH
        self._version: Optional[str] = None
        self._providers: Optional[dict[str, Provider]] = None
        self._aliases: dict[str, str] = {}

    @property
    def registry_path(self) -> Path:
        return self._registry_path

    @property
    def version(self) -> str:
        self._ensure_loaded()
        return self._version or ""

    def all_providers(self) -> list[Provider]:
        return list(self._ensure_loaded().values())

    def provider_ids(self) -> list[str]:
        return list(self._ensure_loaded())

    def resolve_alias(self, id_or_alias: str) -> str:
        self._ensure_loaded()
        return self._aliases.get(id_or_alias, id_or_alias)

    def get_provider(self, id_or_alias: str) -> Optional[Provider]:
        providers = self._ensure_loaded()
        return providers.get(self.resolve_alias(id_or_alias))

    def providers_by_priority(self, priority: ProviderPriority) -> list[Provider]:
        return [item for item in self.all_providers() if item.priority == priority]

    def providers_by_status(self, status: ProviderStatus) -> list[Provider]:
        return [item for item in self.all_providers() if item.status == status]

    def _ensure_loaded(self) -> dict[str, Provider]:
        if self._providers is not None:
            return self._providers

        payload = self._load_payload()
        locations = platform_locations()
        providers: dict[str, Provider] = {}
        aliases: dict[str, str] = {}
        for provider_id, raw in payload["providers"].items():
            provider = _build_provider(provider_id, raw, locations)
            providers[provider_id] = provider
            for alias in provider.aliases:
                aliases[alias] = provider_id

        self._version = payload["version"]
        self._providers = providers
        self._aliases = aliases
        logger.debug(
            "Loaded %d providers from %s (version %s)",
            len(providers),
            self._registry_path,
            self._version,
        )
        return providers

    def _load_payload(self) -> dict[str, Any]:
        path = self._registry_path
        if not path.exists():
            raise RegistryNotFoundError(path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise InvalidConfigFormatError(path, str(exc)) from exc

        schema = json.loads(REGISTRY_SCHEMA_PATH.read_text(encoding="utf-8"))
        error = next(iter(Draft202012Validator(schema).iter_errors(payload)), None)
        if error is not None:
            raise InvalidConfigSchemaError(path, format_schema_error(error))
        return payload


def _build_provider(
    provider_id: str, raw: dict[str, Any], locations: dict[str, Path]
) -> Provider:
    detection_raw = raw.get("detection") or {"methods": []}
    detection = DetectionConfig(
        methods=tuple(detection_raw.get("methods", [])),
        binary=detection_raw.get("binary"),
        directories=tuple(
            resolve_template_path(item, locations)
            for item in detection_raw.get("directories", [])
        ),
        app_bundle=detection_raw.get("appBundle"),
        flatpak_id=detection_raw.get("flatpakId"),
    )
    path_global = raw.get("pathGlobal")
    return Provider(
        id=provider_id,
        tool_name=raw["toolName"],
        vendor=raw.get("vendor", ""),
        agent_flag=raw.get("agentFlag", provider_id),
        aliases=tuple(raw.get("aliases", [])),
        path_global=(
            resolve_template_path(path_global, locations) if path_global else None
        ),
        path_project=raw.get("pathProject", "."),
        instruct_file=raw.get("instructFile", "AGENTS.md"),
        config_key=raw["configKey"],
        config_format=ConfigFormat(raw["configFormat"]),
        config_path_global=resolve_template_path(raw["configPathGlobal"], locations),
        config_path_project=raw.get("configPathProject"),
        path_skills=resolve_template_path(raw["pathSkills"], locations),
        path_project_skills=raw["pathProjectSkills"],
        detection=detection,
        supported_transports=tuple(
            TransportType(item) for item in raw["supportedTransports"]
        ),
        supports_headers=bool(raw["supportsHeaders"]),
        priority=ProviderPriority(raw["priority"]),
        status=ProviderStatus(raw.get("status", ProviderStatus.ACTIVE.value)),
        agent_skills_compatible=bool(raw.get("agentSkillsCompatible", True)),
    )
