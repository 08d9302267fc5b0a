"""All-or-nothing MCP and skill installs across many providers.

A batch moves through validate -> snapshot -> apply, then either commits or
rolls back every change it made. Failures come back as a
``BatchInstallResult``; nothing raises past ``BatchExecutor.execute``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence

from agent_provisioner.errors import (
    ExecutionFailure,
    InvalidChoiceError,
    InvalidOperationError,
    SnapshotRestoreError,
    ValidationError,
)
from agent_provisioner.mcp.installer import McpInstaller
from agent_provisioner.mcp.reader import resolve_config_path
from agent_provisioner.models import (
    BatchInstallResult,
    McpBatchOperation,
    McpInstallResult,
    McpServerConfig,
    ProviderPriority,
    Scope,
    SkillBatchOperation,
    SkillInstallResult,
    SkillRemoveResult,
)
from agent_provisioner.orchestration.selection import (
    select_providers_by_minimum_priority,
)
from agent_provisioner.orchestration.snapshots import (
    ConfigSnapshot,
    SkillSnapshot,
    create_backup_root,
    remove_backup_root,
    restore_config_snapshot,
    restore_skill_snapshot,
    snapshot_configs,
    snapshot_skill_state,
)
from agent_provisioner.registry.models import Provider
from agent_provisioner.skills.installer import SkillInstaller

logger = logging.getLogger(__name__)


class McpInstallBackend(Protocol):
    def install(
        self,
        provider: Provider,
        server_name: str,
        config: McpServerConfig,
        scope: Scope,
        project_dir: Optional[Path] = None,
    ) -> McpInstallResult: ...


class SkillInstallBackend(Protocol):
    @property
    def canonical_dir(self) -> Path: ...

    def install(
        self,
        source_path: Path,
        skill_name: str,
        providers: Iterable[Provider],
        is_global: bool,
        project_dir: Optional[Path] = None,
    ) -> SkillInstallResult: ...

    def remove(
        self,
        skill_name: str,
        providers: Iterable[Provider],
        is_global: bool,
        project_dir: Optional[Path] = None,
    ) -> SkillRemoveResult: ...


@dataclass
class _AppliedSkill:
    operation: SkillBatchOperation
    linked_providers: list[Provider]


@dataclass
class _BatchRun:
    providers: list[Provider]
    project_dir: Path
    config_snapshot: ConfigSnapshot = field(default_factory=ConfigSnapshot)
    skill_snapshots: list[SkillSnapshot] = field(default_factory=list)
    applied_skills: list[_AppliedSkill] = field(default_factory=list)
    mcp_applied: int = 0
    skills_applied: int = 0

    @property
    def provider_ids(self) -> list[str]:
        return [provider.id for provider in self.providers]

    def result(
        self,
        success: bool,
        rollback_performed: bool = False,
        rollback_errors: Optional[list[str]] = None,
        error: Optional[str] = None,
    ) -> BatchInstallResult:
        return BatchInstallResult(
            success=success,
            provider_ids=self.provider_ids,
            mcp_applied=self.mcp_applied,
            skills_applied=self.skills_applied,
            rollback_performed=rollback_performed,
            rollback_errors=list(rollback_errors or []),
            error=error,
        )


def validate_operations(
    mcp: Sequence[McpBatchOperation], skills: Sequence[SkillBatchOperation]
) -> None:
    for index, operation in enumerate(mcp):
        if not isinstance(operation.server_name, str) or not operation.server_name.strip():
            raise InvalidOperationError(index, "serverName", "must be a non-empty string")
        if not isinstance(operation.config, McpServerConfig):
            raise InvalidOperationError(index, "config", "must be an MCP server config")
        try:
            Scope(operation.scope)
        except ValueError as exc:
            raise InvalidOperationError(
                index, "scope", f"unsupported scope {operation.scope!r}"
            ) from exc

    seen_skills: set[str] = set()
    for index, operation in enumerate(skills):
        name = operation.skill_name
        if not isinstance(name, str) or not name.strip():
            raise InvalidOperationError(index, "skillName", "must be a non-empty string")
        if "/" in name or "\\" in name or name in {".", ".."}:
            raise InvalidOperationError(index, "skillName", "must be a plain directory name")
        if name in seen_skills:
            raise InvalidOperationError(index, "skillName", f"duplicate skill name {name!r}")
        seen_skills.add(name)
        if not Path(operation.source_path).exists():
            raise InvalidOperationError(
                index, "sourcePath", f"path does not exist: {operation.source_path}"
            )


class BatchExecutor:
    def __init__(
        self,
        mcp_installer: Optional[McpInstallBackend] = None,
        skill_installer: Optional[SkillInstallBackend] = None,
    ) -> None:
        self.mcp_installer = mcp_installer or McpInstaller()
        self.skill_installer = skill_installer or SkillInstaller()

    def execute(
        self,
        providers: Iterable[Provider],
        mcp: Iterable[McpBatchOperation] = (),
        skills: Iterable[SkillBatchOperation] = (),
        minimum_priority: ProviderPriority | str = ProviderPriority.LOW,
        project_dir: Optional[Path] = None,
    ) -> BatchInstallResult:
        mcp_ops = list(mcp)
        skill_ops = list(skills)
        try:
            priority = ProviderPriority(minimum_priority)
        except ValueError:
            error = InvalidChoiceError(
                "minimum priority", minimum_priority, [item.value for item in ProviderPriority]
            )
            logger.warning("Batch rejected: %s", error)
            return _BatchRun(providers=[], project_dir=Path.cwd()).result(
                success=False, error=str(error)
            )

        run = _BatchRun(
            providers=select_providers_by_minimum_priority(providers, priority),
            project_dir=project_dir or Path.cwd(),
        )

        try:
            validate_operations(mcp_ops, skill_ops)
        except ValidationError as exc:
            logger.warning("Batch rejected: %s", exc)
            return run.result(success=False, error=str(exc))

        backup_root: Optional[Path] = None
        try:
            try:
                run.config_snapshot = snapshot_configs(
                    resolve_config_path(provider, operation.scope, run.project_dir)
                    for provider in run.providers
                    for operation in mcp_ops
                )
                backup_root = create_backup_root()
                run.skill_snapshots = [
                    snapshot_skill_state(
                        run.providers,
                        operation,
                        run.project_dir,
                        backup_root,
                        self.skill_installer.canonical_dir,
                    )
                    for operation in skill_ops
                ]
            except OSError as exc:
                logger.warning("Batch aborted while snapshotting: %s", exc)
                return run.result(success=False, error=f"Snapshot failed: {exc}")

            logger.info(
                "Applying %d MCP and %d skill operation(s) to %d provider(s)",
                len(mcp_ops),
                len(skill_ops),
                len(run.providers),
            )
            try:
                self._apply_mcp(run, mcp_ops)
                self._apply_skills(run, skill_ops)
            except Exception as exc:
                logger.warning("Batch failed, rolling back: %s", exc)
                rollback_errors = self._rollback(run)
                if rollback_errors:
                    logger.error(
                        "Rollback finished with %d error(s)", len(rollback_errors)
                    )
                return run.result(
                    success=False,
                    rollback_performed=True,
                    rollback_errors=rollback_errors,
                    error=str(exc),
                )

            logger.info(
                "Batch committed: %d MCP, %d skill install(s)",
                run.mcp_applied,
                run.skills_applied,
            )
            return run.result(success=True)
        finally:
            remove_backup_root(backup_root)

    def _apply_mcp(self, run: _BatchRun, operations: list[McpBatchOperation]) -> None:
        for operation in operations:
            for provider in run.providers:
                result = self.mcp_installer.install(
                    provider,
                    operation.server_name,
                    operation.config,
                    operation.scope,
                    run.project_dir,
                )
                if not result.success:
                    raise ExecutionFailure(
                        result.error or f"Failed MCP install for {provider.id}"
                    )
                run.mcp_applied += 1

    def _apply_skills(
        self, run: _BatchRun, operations: list[SkillBatchOperation]
    ) -> None:
        for operation in operations:
            result = self.skill_installer.install(
                Path(operation.source_path),
                operation.skill_name,
                run.providers,
                operation.is_global,
                run.project_dir,
            )
            linked = set(result.linked_agents)
            # Recorded before the error check so partial links are undone too.
            run.applied_skills.append(
                _AppliedSkill(
                    operation=operation,
                    linked_providers=[p for p in run.providers if p.id in linked],
                )
            )
            if result.errors:
                raise ExecutionFailure("; ".join(result.errors))
            run.skills_applied += 1

    def _rollback(self, run: _BatchRun) -> list[str]:
        errors: list[str] = []

        for applied in reversed(run.applied_skills):
            try:
                removal = self.skill_installer.remove(
                    applied.operation.skill_name,
                    applied.linked_providers,
                    applied.operation.is_global,
                    run.project_dir,
                )
            except Exception as exc:
                errors.append(f"remove {applied.operation.skill_name}: {exc}")
                continue
            errors.extend(removal.errors)

        try:
            restore_config_snapshot(run.config_snapshot)
        except SnapshotRestoreError as exc:
            errors.extend(exc.failures)

        for snapshot in run.skill_snapshots:
            try:
                restore_skill_snapshot(snapshot)
            except SnapshotRestoreError as exc:
                errors.extend(exc.failures)

        return errors


def install_batch_with_rollback(
    providers: Iterable[Provider],
    mcp: Iterable[McpBatchOperation] = (),
    skills: Iterable[SkillBatchOperation] = (),
    minimum_priority: ProviderPriority | str = ProviderPriority.LOW,
    project_dir: Optional[Path] = None,
) -> BatchInstallResult:
    return BatchExecutor().execute(
        providers,
        mcp=mcp,
        skills=skills,
        minimum_priority=minimum_priority,
        project_dir=project_dir,
    )
