from agent_provisioner.mcp.installer import McpInstaller, install_mcp_server
from agent_provisioner.mcp.reader import (
    get_mcp_server,
    list_all_mcp_servers,
    list_mcp_servers,
    remove_mcp_server,
    resolve_config_path,
)
from agent_provisioner.mcp.transforms import build_provider_value, get_transform

__all__ = [
    "McpInstaller",
    "build_provider_value",
    "get_mcp_server",
    "get_transform",
    "install_mcp_server",
    "list_all_mcp_servers",
    "list_mcp_servers",
    "remove_mcp_server",
    "resolve_config_path",
]
