import logging
from pathlib import Path
from typing import Iterable, Optional

from agent_provisioner.mcp.installer import McpInstaller
from agent_provisioner.models import (
    ConflictPolicy,
    McpBatchOperation,
    McpConflict,
    McpInstallResult,
    McpPlanApplyResult,
    Scope,
    SkippedInstall,
)
from agent_provisioner.orchestration.batch import McpInstallBackend
from agent_provisioner.orchestration.conflicts import detect_mcp_config_conflicts
from agent_provisioner.registry.models import Provider

logger = logging.getLogger(__name__)


def apply_mcp_install_with_policy(
    providers: Iterable[Provider],
    operations: Iterable[McpBatchOperation],
    policy: ConflictPolicy | str = ConflictPolicy.FAIL,
    project_dir: Optional[Path] = None,
    installer: Optional[McpInstallBackend] = None,
) -> McpPlanApplyResult:
    """Install MCP entries pair by pair, deciding on conflicts by ``policy``.

    Not atomic: each pair is written directly, with no snapshot or rollback.
    """
    policy = ConflictPolicy(policy)
    providers = list(providers)
    operations = list(operations)
    installer = installer or McpInstaller()

    conflicts = detect_mcp_config_conflicts(providers, operations, project_dir)
    if policy == ConflictPolicy.FAIL and conflicts:
        logger.info("Policy fail: %d conflict(s), nothing applied", len(conflicts))
        return McpPlanApplyResult(conflicts=conflicts, applied=[], skipped=[])

    by_pair: dict[tuple[str, str, Scope], McpConflict] = {}
    for conflict in conflicts:
        by_pair.setdefault(conflict.key, conflict)

    applied: list[McpInstallResult] = []
    skipped: list[SkippedInstall] = []
    for provider in providers:
        for operation in operations:
            conflict = by_pair.get(
                (provider.id, operation.server_name, operation.scope)
            )
            if policy == ConflictPolicy.SKIP and conflict is not None:
                skipped.append(
                    SkippedInstall(
                        provider_id=provider.id,
                        server_name=operation.server_name,
                        scope=operation.scope,
                        reason=conflict.code,
                    )
                )
                continue
            applied.append(
                installer.install(
                    provider,
                    operation.server_name,
                    operation.config,
                    operation.scope,
                    project_dir,
                )
            )

    logger.info(
        "Policy %s: %d applied, %d skipped, %d conflict(s)",
        policy.value,
        len(applied),
        len(skipped),
        len(conflicts),
    )
    return McpPlanApplyResult(conflicts=conflicts, applied=applied, skipped=skipped)
