import logging
from pathlib import Path
from typing import Iterable, Optional

from agent_provisioner.formats import write_config
from agent_provisioner.mcp.reader import resolve_config_path
from agent_provisioner.mcp.transforms import build_provider_value, get_transform
from agent_provisioner.models import McpInstallResult, McpServerConfig, Scope
from agent_provisioner.registry.models import Provider

logger = logging.getLogger(__name__)


def install_mcp_server(
    provider: Provider,
    server_name: str,
    config: McpServerConfig,
    scope: Scope = Scope.PROJECT,
    project_dir: Optional[Path] = None,
) -> McpInstallResult:
    """Write one server entry into a provider config. Failures are returned, not raised."""
    scope = Scope(scope)
    config_path = resolve_config_path(provider, scope, project_dir)
    logger.debug(
        "Installing MCP server %s for %s (%s) at %s",
        server_name,
        provider.id,
        scope.value,
        config_path,
    )
    if config_path is None:
        return McpInstallResult(
            provider=provider,
            scope=scope,
            config_path=None,
            success=False,
            error=f"Provider {provider.id} does not support {scope.value} config",
        )

    try:
        value = build_provider_value(provider.id, server_name, config)
        logger.debug(
            "Transform applied for %s: %s",
            provider.id,
            "yes" if get_transform(provider.id) else "no",
        )
        write_config(
            config_path,
            provider.config_format,
            provider.config_key,
            server_name,
            value,
        )
    except Exception as exc:
        logger.debug("Install of %s for %s failed: %s", server_name, provider.id, exc)
        return McpInstallResult(
            provider=provider,
            scope=scope,
            config_path=config_path,
            success=False,
            error=str(exc),
        )

    return McpInstallResult(
        provider=provider,
        scope=scope,
        config_path=config_path,
        success=True,
    )


def install_mcp_server_to_all(
    providers: Iterable[Provider],
    server_name: str,
    config: McpServerConfig,
    scope: Scope = Scope.PROJECT,
    project_dir: Optional[Path] = None,
) -> list[McpInstallResult]:
    return [
        install_mcp_server(provider, server_name, config, scope, project_dir)
        for provider in providers
    ]


class McpInstaller:
    def install(
        self,
        provider: Provider,
        server_name: str,
        config: McpServerConfig,
        scope: Scope,
        project_dir: Optional[Path] = None,
    ) -> McpInstallResult:
        return install_mcp_server(provider, server_name, config, scope, project_dir)
