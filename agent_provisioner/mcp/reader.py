import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from agent_provisioner.errors import ProvisionerFileError
from agent_provisioner.formats import get_nested_value, read_config, remove_config
from agent_provisioner.models import Scope
from agent_provisioner.registry.models import Provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class McpServerEntry:
    name: str
    provider_id: str
    provider_name: str
    scope: Scope
    config_path: Path
    config: dict[str, Any]

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "providerId": self.provider_id,
            "providerName": self.provider_name,
            "scope": self.scope.value,
            "configPath": str(self.config_path),
            "config": self.config,
        }


def resolve_config_path(
    provider: Provider, scope: Scope, project_dir: Optional[Path] = None
) -> Optional[Path]:
    if Scope(scope) == Scope.GLOBAL:
        return provider.config_path_global
    if not provider.config_path_project:
        return None
    return (project_dir or Path.cwd()) / provider.config_path_project


def _servers_section(provider: Provider, config_path: Path) -> dict[str, Any]:
    config = read_config(config_path, provider.config_format)
    servers = get_nested_value(config, provider.config_key)
    return servers if isinstance(servers, dict) else {}


def list_mcp_servers(
    provider: Provider, scope: Scope, project_dir: Optional[Path] = None
) -> list[McpServerEntry]:
    config_path = resolve_config_path(provider, scope, project_dir)
    if config_path is None or not config_path.exists():
        return []
    try:
        servers = _servers_section(provider, config_path)
    except ProvisionerFileError as exc:
        logger.warning("Skipping unreadable config for %s: %s", provider.id, exc)
        return []
    return [
        McpServerEntry(
            name=name,
            provider_id=provider.id,
            provider_name=provider.tool_name,
            scope=Scope(scope),
            config_path=config_path,
            config=value if isinstance(value, dict) else {},
        )
        for name, value in servers.items()
    ]


def get_mcp_server(
    provider: Provider,
    server_name: str,
    scope: Scope,
    project_dir: Optional[Path] = None,
) -> Optional[Any]:
    """Return the stored entry for ``server_name``, or None when it cannot be read."""
    config_path = resolve_config_path(provider, scope, project_dir)
    if config_path is None or not config_path.exists():
        return None
    try:
        servers = _servers_section(provider, config_path)
    except ProvisionerFileError as exc:
        logger.warning("Skipping unreadable config for %s: %s", provider.id, exc)
        return None
    return servers.get(server_name)


def list_all_mcp_servers(
    providers: Iterable[Provider], scope: Scope, project_dir: Optional[Path] = None
) -> list[McpServerEntry]:
    seen: set[Path] = set()
    entries: list[McpServerEntry] = []
    for provider in providers:
        config_path = resolve_config_path(provider, scope, project_dir)
        if config_path is None or config_path in seen:
            continue
        seen.add(config_path)
        entries.extend(list_mcp_servers(provider, scope, project_dir))
    return entries


def remove_mcp_server(
    provider: Provider,
    server_name: str,
    scope: Scope,
    project_dir: Optional[Path] = None,
) -> bool:
    config_path = resolve_config_path(provider, scope, project_dir)
    if config_path is None:
        return False
    removed = remove_config(
        config_path, provider.config_format, provider.config_key, server_name
    )
    if removed:
        logger.info("Removed MCP server %s from %s", server_name, config_path)
    return removed
