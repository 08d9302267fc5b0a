import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from agent_provisioner.instructions.injector import (
    group_by_instruct_file,
    inject_all,
    instruction_file_path,
)
from agent_provisioner.mcp.installer import install_mcp_server
from agent_provisioner.mcp.reader import resolve_config_path
from agent_provisioner.models import (
    ConfigFormat,
    InjectionAction,
    McpBatchOperation,
    McpInstallResult,
    Scope,
)
from agent_provisioner.registry.models import Provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstructionFileAction:
    file: Path
    action: InjectionAction
    provider_ids: list[str]
    config_formats: list[ConfigFormat]

    def as_dict(self) -> dict[str, Any]:
        return {
            "file": str(self.file),
            "action": self.action.value,
            "providers": list(self.provider_ids),
            "configFormats": [item.value for item in self.config_formats],
        }


@dataclass(frozen=True)
class InstructionUpdateSummary:
    scope: Scope
    actions: list[InstructionFileAction]

    @property
    def updated_files(self) -> int:
        return len(self.actions)

    def as_dict(self) -> dict[str, Any]:
        return {
            "scope": self.scope.value,
            "updatedFiles": self.updated_files,
            "actions": [item.as_dict() for item in self.actions],
        }


@dataclass(frozen=True)
class InstructionContent:
    global_content: Optional[str] = None
    project_content: Optional[str] = None

    @classmethod
    def both(cls, content: str) -> "InstructionContent":
        return cls(global_content=content, project_content=content)


@dataclass(frozen=True)
class DualScopeConfigureResult:
    provider_id: str
    global_config_path: Optional[Path]
    project_config_path: Optional[Path]
    global_mcp: list[McpInstallResult] = field(default_factory=list)
    project_mcp: list[McpInstallResult] = field(default_factory=list)
    global_instructions: dict[Path, InjectionAction] = field(default_factory=dict)
    project_instructions: dict[Path, InjectionAction] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return all(item.success for item in [*self.global_mcp, *self.project_mcp])

    def as_dict(self) -> dict[str, Any]:
        def _paths(path: Optional[Path]) -> Optional[str]:
            return str(path) if path is not None else None

        return {
            "providerId": self.provider_id,
            "configPaths": {
                "global": _paths(self.global_config_path),
                "project": _paths(self.project_config_path),
            },
            "mcp": {
                "global": [item.as_dict() for item in self.global_mcp],
                "project": [item.as_dict() for item in self.project_mcp],
            },
            "instructions": {
                "global": {
                    str(path): action.value
                    for path, action in self.global_instructions.items()
                },
                "project": {
                    str(path): action.value
                    for path, action in self.project_instructions.items()
                },
            },
        }


def _install_all(
    provider: Provider,
    operations: Sequence[McpBatchOperation],
    scope: Scope,
    project_dir: Path,
) -> list[McpInstallResult]:
    return [
        install_mcp_server(
            provider, operation.server_name, operation.config, scope, project_dir
        )
        for operation in operations
    ]


def configure_provider_global_and_project(
    provider: Provider,
    global_mcp: Sequence[McpBatchOperation] = (),
    project_mcp: Sequence[McpBatchOperation] = (),
    instruction_content: Optional[InstructionContent | str] = None,
    project_dir: Optional[Path] = None,
) -> DualScopeConfigureResult:
    """Write one provider's global and project MCP entries plus instruction blocks.

    Operation scopes are ignored: ``global_mcp`` always lands in the global
    config and ``project_mcp`` in the project config. Not atomic.
    """
    project_dir = project_dir or Path.cwd()
    if isinstance(instruction_content, str):
        instruction_content = InstructionContent.both(instruction_content)

    global_results = _install_all(provider, global_mcp, Scope.GLOBAL, project_dir)
    project_results = _install_all(provider, project_mcp, Scope.PROJECT, project_dir)

    global_instructions: dict[Path, InjectionAction] = {}
    project_instructions: dict[Path, InjectionAction] = {}
    if instruction_content is not None:
        if instruction_content.global_content:
            global_instructions = inject_all(
                [provider], Scope.GLOBAL, instruction_content.global_content, project_dir
            )
        if instruction_content.project_content:
            project_instructions = inject_all(
                [provider], Scope.PROJECT, instruction_content.project_content, project_dir
            )

    logger.info(
        "Configured %s: %d global, %d project MCP entries",
        provider.id,
        len(global_results),
        len(project_results),
    )
    return DualScopeConfigureResult(
        provider_id=provider.id,
        global_config_path=resolve_config_path(provider, Scope.GLOBAL, project_dir),
        project_config_path=resolve_config_path(provider, Scope.PROJECT, project_dir),
        global_mcp=global_results,
        project_mcp=project_results,
        global_instructions=global_instructions,
        project_instructions=project_instructions,
    )


def update_instructions_single_operation(
    providers: Iterable[Provider],
    content: str,
    scope: Scope | str = Scope.PROJECT,
    project_dir: Optional[Path] = None,
) -> InstructionUpdateSummary:
    scope = Scope(scope)
    providers = list(providers)
    project_dir = project_dir or Path.cwd()

    actions = inject_all(providers, scope, content, project_dir)
    grouped = group_by_instruct_file(providers)

    summary_actions: list[InstructionFileAction] = []
    for path, action in actions.items():
        selected = [
            provider
            for provider in providers
            if instruction_file_path(provider, scope, project_dir) == path
        ] or grouped.get(path.name, [])
        formats = list(dict.fromkeys(provider.config_format for provider in selected))
        summary_actions.append(
            InstructionFileAction(
                file=path,
                action=action,
                provider_ids=[provider.id for provider in selected],
                config_formats=formats,
            )
        )
    return InstructionUpdateSummary(scope=scope, actions=summary_actions)
