"""Parse CLI inputs (operation files, tiers, policies, provider targets)."""

import json
from pathlib import Path
from typing import Any, Iterable, Optional

from agent_provisioner.errors import (
    InvalidChoiceError,
    InvalidConfigFormatError,
    InvalidOperationError,
    ProvisionerFileError,
    UnknownProviderError,
    ValidationError,
)
from agent_provisioner.models import (
    ConflictPolicy,
    McpBatchOperation,
    McpServerConfig,
    ProviderPriority,
    Scope,
    SkillBatchOperation,
)
from agent_provisioner.registry.detection import get_installed_providers
from agent_provisioner.registry.models import Provider
from agent_provisioner.registry.providers import ProviderRegistry
from agent_provisioner.skills.manifest import default_skill_name


def read_json_file(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ProvisionerFileError(path, "Input file not found") from exc
    except (OSError, ValueError) as exc:
        raise InvalidConfigFormatError(path, str(exc)) from exc


def _require_array(value: Any, path: Path, what: str) -> list[Any]:
    if not isinstance(value, list):
        raise ValidationError(f"{what} file must be a JSON array: {path}")
    return value


def parse_mcp_operations(items: list[Any]) -> list[McpBatchOperation]:
    operations: list[McpBatchOperation] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise InvalidOperationError(index, "operation", "must be an object")

        server_name = item.get("serverName")
        if not isinstance(server_name, str) or not server_name:
            raise InvalidOperationError(index, "serverName", "must be a non-empty string")

        raw_config = item.get("config")
        if not isinstance(raw_config, dict):
            raise InvalidOperationError(index, "config", "must be an object")
        try:
            config = McpServerConfig.from_dict(raw_config)
        except ValidationError as exc:
            raise InvalidOperationError(index, "config", str(exc)) from exc

        raw_scope = item.get("scope", Scope.PROJECT.value)
        try:
            scope = Scope(raw_scope)
        except ValueError as exc:
            raise InvalidOperationError(
                index, "scope", f"{raw_scope!r} (use 'project' or 'global')"
            ) from exc

        operations.append(
            McpBatchOperation(server_name=server_name, config=config, scope=scope)
        )
    return operations


def parse_skill_operations(
    items: list[Any], base_dir: Optional[Path] = None
) -> list[SkillBatchOperation]:
    """Relative ``sourcePath`` values resolve against ``base_dir``."""
    operations: list[SkillBatchOperation] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise InvalidOperationError(index, "operation", "must be an object")

        source = item.get("sourcePath")
        if not isinstance(source, str) or not source:
            raise InvalidOperationError(index, "sourcePath", "must be a non-empty string")
        source_path = Path(source).expanduser()
        if not source_path.is_absolute() and base_dir is not None:
            source_path = base_dir / source_path

        skill_name = item.get("skillName")
        if skill_name is None:
            skill_name = default_skill_name(source_path)
        if not isinstance(skill_name, str) or not skill_name:
            raise InvalidOperationError(index, "skillName", "must be a non-empty string")

        is_global = item.get("isGlobal", True)
        if not isinstance(is_global, bool):
            raise InvalidOperationError(index, "isGlobal", "must be true or false")

        operations.append(
            SkillBatchOperation(
                source_path=source_path, skill_name=skill_name, is_global=is_global
            )
        )
    return operations


def read_mcp_operations(path: Path) -> list[McpBatchOperation]:
    return parse_mcp_operations(_require_array(read_json_file(path), path, "MCP operations"))


def read_skill_operations(path: Path) -> list[SkillBatchOperation]:
    items = _require_array(read_json_file(path), path, "Skill operations")
    return parse_skill_operations(items, base_dir=path.parent)


def parse_priority(value: str) -> ProviderPriority:
    try:
        return ProviderPriority(value.lower())
    except ValueError as exc:
        raise InvalidChoiceError(
            "tier", value, [item.value for item in ProviderPriority]
        ) from exc


def parse_policy(value: str) -> ConflictPolicy:
    try:
        return ConflictPolicy(value.lower())
    except ValueError as exc:
        raise InvalidChoiceError(
            "policy", value, [item.value for item in ConflictPolicy]
        ) from exc


def resolve_providers(
    registry: ProviderRegistry, agents: Iterable[str] = (), use_all: bool = False
) -> list[Provider]:
    """All providers, the named ones (ids or aliases), or the detected ones."""
    if use_all:
        return registry.all_providers()

    requested = list(agents)
    if not requested:
        return get_installed_providers(registry)

    providers: list[Provider] = []
    missing: list[str] = []
    for agent in requested:
        provider = registry.get_provider(agent)
        if provider is None:
            missing.append(agent)
        else:
            providers.append(provider)
    if missing:
        raise UnknownProviderError(missing)
    return providers


def read_text_input(
    inline: Optional[str], file_path: Optional[Path]
) -> Optional[str]:
    if inline and file_path:
        raise ValidationError(
            "Provide either inline content or a content file, not both"
        )
    if inline:
        return inline
    if file_path is None:
        return None
    try:
        return file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProvisionerFileError(file_path, f"Failed to read content file ({exc})") from exc
