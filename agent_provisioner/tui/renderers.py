from rich.console import Console

from agent_provisioner.errors import CommandError
from agent_provisioner.models import (
    BatchInstallResult,
    ConflictPolicy,
    McpConflict,
    McpPlanApplyResult,
)
from agent_provisioner.orchestration.configure import (
    DualScopeConfigureResult,
    InstructionUpdateSummary,
)
from agent_provisioner.registry.detection import DetectionResult
from agent_provisioner.tui.enums import UIStyle
from agent_provisioner.tui.sections import UISection
from agent_provisioner.tui.tables import (
    BatchTable,
    ConflictTable,
    InstallTable,
    InstructionTable,
    ProvidersTable,
)
from agent_provisioner.utils import compact_home_path, compact_home_paths_in_text


class ProvisionConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_providers(self, items: list[DetectionResult], minimum_priority: str) -> None:
        if not items:
            self.console.print(
                UISection.note(
                    "providers",
                    f"No providers at tier {minimum_priority} or above.",
                    style=UIStyle.YELLOW.value,
                )
            )
            return
        self.console.print(
            UISection.wrap(
                "providers",
                ProvidersTable.providers_table(items),
                style=UIStyle.BLUE.value,
                subtitle=f"minimum tier: {minimum_priority}",
            )
        )

    def render_batch_result(self, result: BatchInstallResult) -> None:
        self.console.print(BatchTable.stats_panel(result))
        if result.error:
            self.console.print(
                UISection.note(
                    "error",
                    compact_home_paths_in_text(result.error),
                    style=UIStyle.RED.value,
                )
            )
        if result.rollback_errors:
            errors_text = "\n".join(
                [f"- {compact_home_paths_in_text(item)}" for item in result.rollback_errors]
            )
            self.console.print(
                UISection.note("rollback errors", errors_text, style=UIStyle.RED.value)
            )

    def render_conflicts(self, conflicts: list[McpConflict]) -> None:
        if not conflicts:
            self.console.print(
                UISection.note(
                    "conflicts", "No conflicts detected.", style=UIStyle.GREEN.value
                )
            )
            return
        self.console.print(
            UISection.wrap(
                "conflicts",
                ConflictTable.conflicts_table(conflicts),
                style=UIStyle.YELLOW.value,
                subtitle=f"{len(conflicts)} found",
            )
        )

    def render_apply_result(
        self, result: McpPlanApplyResult, policy: ConflictPolicy
    ) -> None:
        if result.conflicts:
            self.render_conflicts(result.conflicts)
        if policy == ConflictPolicy.FAIL and result.conflicts:
            self.console.print(
                UISection.note(
                    "apply",
                    "Conflicts found, nothing was written.\n"
                    "- re-run with --policy skip to leave conflicting pairs alone\n"
                    "- re-run with --policy overwrite to replace them",
                    style=UIStyle.RED.value,
                )
            )
            return

        if result.applied:
            self.console.print(
                UISection.wrap(
                    "applied",
                    InstallTable.applied_table(result.applied),
                    style=UIStyle.CYAN.value,
                )
            )
        if result.skipped:
            self.console.print(
                UISection.wrap(
                    "skipped",
                    InstallTable.skipped_table(result.skipped),
                    style=UIStyle.YELLOW.value,
                )
            )
        self.console.print(
            InstallTable.stats_panel(
                applied=len(result.applied) - len(result.failed_writes),
                skipped=len(result.skipped),
                failed=len(result.failed_writes),
                title=f"apply ({policy.value})",
            )
        )

    def render_configure_result(self, result: DualScopeConfigureResult) -> None:
        for scope, items, path in (
            ("global", result.global_mcp, result.global_config_path),
            ("project", result.project_mcp, result.project_config_path),
        ):
            if not items:
                continue
            subtitle = compact_home_path(path) if path is not None else None
            self.console.print(
                UISection.wrap(
                    f"{result.provider_id} {scope} mcp",
                    InstallTable.applied_table(items),
                    style=UIStyle.CYAN.value,
                    subtitle=subtitle,
                )
            )

        rows = [
            (path, action.value, scope)
            for scope, actions in (
                ("global", result.global_instructions),
                ("project", result.project_instructions),
            )
            for path, action in actions.items()
        ]
        if rows:
            self.console.print(
                UISection.wrap(
                    "instructions",
                    InstructionTable.actions_table(rows),
                    style=UIStyle.MAGENTA.value,
                )
            )
        if not result.global_mcp and not result.project_mcp and not rows:
            self.console.print(
                UISection.note(
                    "configure", "Nothing to configure.", style=UIStyle.DIM.value
                )
            )

    def render_instruction_summary(self, summary: InstructionUpdateSummary) -> None:
        if not summary.actions:
            self.console.print(
                UISection.note(
                    "instructions",
                    "No instruction files to update.",
                    style=UIStyle.YELLOW.value,
                )
            )
            return
        rows = [
            (item.file, item.action.value, ", ".join(item.provider_ids))
            for item in summary.actions
        ]
        self.console.print(
            UISection.wrap(
                "instructions",
                InstructionTable.actions_table(rows),
                style=UIStyle.MAGENTA.value,
                subtitle=f"{summary.scope.value}: {summary.updated_files} file(s)",
            )
        )

    def render_error(self, error: CommandError) -> None:
        body = f"{compact_home_paths_in_text(error.message)}\n[dim]{error.hint}[/dim]"
        self.console.print(
            UISection.note(error.code, body, style=UIStyle.RED.value)
        )
