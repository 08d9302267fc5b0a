"""Provider-specific shapes for canonical MCP server configs.

Providers without an entry in ``TRANSFORMS`` store the canonical shape as is.
"""

from typing import Any, Callable, Optional

from agent_provisioner.models import McpServerConfig, TransportType

Transform = Callable[[str, McpServerConfig], dict[str, Any]]

GOOSE_TIMEOUT_SECONDS = 300


def transform_goose(name: str, config: McpServerConfig) -> dict[str, Any]:
    if config.url:
        payload: dict[str, Any] = {
            "name": name,
            "type": "sse" if config.type == TransportType.SSE else "streamable_http",
            "uri": config.url,
        }
        if config.headers:
            payload["headers"] = dict(config.headers)
    else:
        payload = {
            "name": name,
            "type": "stdio",
            "cmd": config.command,
            "args": list(config.args or []),
        }
        if config.env:
            payload["envs"] = dict(config.env)
    payload["enabled"] = True
    payload["timeout"] = GOOSE_TIMEOUT_SECONDS
    return payload


def transform_zed(name: str, config: McpServerConfig) -> dict[str, Any]:
    if config.url:
        payload: dict[str, Any] = {
            "source": "custom",
            "type": (config.type or TransportType.HTTP).value,
            "url": config.url,
        }
        if config.headers:
            payload["headers"] = dict(config.headers)
        return payload

    payload = {
        "source": "custom",
        "command": config.command,
        "args": list(config.args or []),
    }
    if config.env:
        payload["env"] = dict(config.env)
    return payload


def transform_opencode(name: str, config: McpServerConfig) -> dict[str, Any]:
    if config.url:
        payload: dict[str, Any] = {
            "type": "remote",
            "url": config.url,
            "enabled": True,
        }
        if config.headers:
            payload["headers"] = dict(config.headers)
        return payload

    # OpenCode takes the executable and its arguments as one array.
    payload = {
        "type": "local",
        "command": [config.command, *(config.args or [])],
        "enabled": True,
    }
    if config.env:
        payload["environment"] = dict(config.env)
    return payload


def transform_codex(name: str, config: McpServerConfig) -> dict[str, Any]:
    if config.url:
        payload: dict[str, Any] = {"url": config.url}
        if config.headers:
            payload["http_headers"] = dict(config.headers)
        return payload

    payload = {
        "command": config.command,
        "args": list(config.args or []),
    }
    if config.env:
        payload["env"] = dict(config.env)
    return payload


def transform_cursor(name: str, config: McpServerConfig) -> dict[str, Any]:
    if config.url:
        payload: dict[str, Any] = {"url": config.url}
        if config.headers:
            payload["headers"] = dict(config.headers)
        return payload
    return config.as_dict()


TRANSFORMS: dict[str, Transform] = {
    "goose": transform_goose,
    "zed": transform_zed,
    "opencode": transform_opencode,
    "codex": transform_codex,
    "cursor": transform_cursor,
}


def get_transform(provider_id: str) -> Optional[Transform]:
    return TRANSFORMS.get(provider_id)


def build_provider_value(
    provider_id: str, name: str, config: McpServerConfig
) -> dict[str, Any]:
    """Return the exact value written under ``<configKey>.<name>`` for a provider."""
    transform = get_transform(provider_id)
    if transform is None:
        return config.as_dict()
    return transform(name, config)
