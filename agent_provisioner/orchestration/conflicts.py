import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from agent_provisioner.mcp.reader import get_mcp_server
from agent_provisioner.mcp.transforms import build_provider_value
from agent_provisioner.models import (
    McpBatchOperation,
    McpConflict,
    McpConflictCode,
)
from agent_provisioner.registry.models import Provider

logger = logging.getLogger(__name__)


def stable_dumps(value: Any) -> str:
    """Serialize with sorted object keys; array order is kept."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def _capability_conflicts(
    provider: Provider, operation: McpBatchOperation
) -> list[McpConflict]:
    conflicts: list[McpConflict] = []
    transport = operation.config.type
    if transport is not None and not provider.supports_transport(transport):
        conflicts.append(
            McpConflict(
                provider_id=provider.id,
                server_name=operation.server_name,
                scope=operation.scope,
                code=McpConflictCode.UNSUPPORTED_TRANSPORT,
                message=f"{provider.id} does not support transport {transport.value}",
            )
        )
    if operation.config.headers and not provider.supports_headers:
        conflicts.append(
            McpConflict(
                provider_id=provider.id,
                server_name=operation.server_name,
                scope=operation.scope,
                code=McpConflictCode.UNSUPPORTED_HEADERS,
                message=f"{provider.id} does not support header configuration",
            )
        )
    return conflicts


def detect_mcp_config_conflicts(
    providers: Iterable[Provider],
    operations: Iterable[McpBatchOperation],
    project_dir: Optional[Path] = None,
) -> list[McpConflict]:
    """Find pairs that cannot be applied cleanly. Reads config files, never writes them."""
    operations = list(operations)
    conflicts: list[McpConflict] = []

    for provider in providers:
        for operation in operations:
            capability = _capability_conflicts(provider, operation)
            if capability:
                conflicts.extend(capability)
                continue

            current = get_mcp_server(
                provider, operation.server_name, operation.scope, project_dir
            )
            if current is None:
                continue

            desired = build_provider_value(
                provider.id, operation.server_name, operation.config
            )
            if stable_dumps(current) != stable_dumps(desired):
                conflicts.append(
                    McpConflict(
                        provider_id=provider.id,
                        server_name=operation.server_name,
                        scope=operation.scope,
                        code=McpConflictCode.EXISTING_MISMATCH,
                        message=(
                            f"{provider.id} has existing config mismatch for "
                            f"{operation.server_name}"
                        ),
                    )
                )

    logger.debug("Detected %d conflict(s)", len(conflicts))
    return conflicts
