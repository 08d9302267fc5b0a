from pathlib import Path

from rich.panel import Panel
from rich.table import Column, Table

from agent_provisioner.models import (
    BatchInstallResult,
    McpConflict,
    McpInstallResult,
    SkippedInstall,
)
from agent_provisioner.registry.detection import DetectionResult
from agent_provisioner.tui.enums import CONFLICT_CODE_STYLE, PRIORITY_STYLE, UIStyle
from agent_provisioner.utils import compact_home_path


def _styled(value: str, style: str) -> str:
    return f"[{style}]{value}[/{style}]"


class ProvidersTable:
    @staticmethod
    def providers_table(items: list[DetectionResult]) -> Table:
        table = Table(
            Column(header="Provider", width=16),
            Column(header="Tier", width=8),
            Column(header="Status", width=10),
            Column(header="Format", width=7),
            Column(header="Installed", width=10),
            Column(header="Global config", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            provider = item.provider
            installed = (
                _styled("yes", UIStyle.GREEN.value)
                if item.installed
                else _styled("no", UIStyle.DIM.value)
            )
            table.add_row(
                provider.id,
                _styled(
                    provider.priority.value,
                    PRIORITY_STYLE.get(provider.priority, UIStyle.WHITE.value),
                ),
                provider.status.value,
                provider.config_format.value,
                installed,
                compact_home_path(provider.config_path_global),
            )
        return table


class BatchTable:
    @staticmethod
    def stats_panel(result: BatchInstallResult) -> Panel:
        stats: dict[str, str] = {
            "providers": ", ".join(result.provider_ids) or "-",
            "mcp applied": str(result.mcp_applied),
            "skills applied": str(result.skills_applied),
            "rolled back": "yes" if result.rollback_performed else "no",
        }
        table = Table(show_header=False, box=None)
        for key, value in stats.items():
            table.add_row(f"[bold]{key}[/bold]", value)
        return Panel(
            table,
            title="batch",
            border_style=UIStyle.GREEN.value if result.success else UIStyle.RED.value,
        )


class ConflictTable:
    @staticmethod
    def conflicts_table(conflicts: list[McpConflict]) -> Table:
        table = Table(
            Column(header="Provider", width=16),
            Column(header="Server", width=20, overflow="ellipsis"),
            Column(header="Scope", width=8),
            Column(header="Code", width=22),
            Column(header="Message", overflow="fold"),
            expand=True,
            header_style="bold",
        )
        for conflict in conflicts:
            style = CONFLICT_CODE_STYLE.get(conflict.code, UIStyle.WHITE.value)
            table.add_row(
                conflict.provider_id,
                conflict.server_name,
                conflict.scope.value,
                _styled(conflict.code.value, style),
                conflict.message,
            )
        return table


class InstallTable:
    @staticmethod
    def applied_table(items: list[McpInstallResult]) -> Table:
        table = Table(
            Column(header="Provider", width=16),
            Column(header="Scope", width=8),
            Column(header="Result", width=8),
            Column(header="Config", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            result = (
                _styled("ok", UIStyle.GREEN.value)
                if item.success
                else _styled("failed", UIStyle.RED.value)
            )
            target = (
                compact_home_path(item.config_path)
                if item.config_path is not None
                else ""
            )
            if item.error:
                target = f"{target} ({item.error})" if target else item.error
            table.add_row(item.provider.id, item.scope.value, result, target)
        return table

    @staticmethod
    def skipped_table(items: list[SkippedInstall]) -> Table:
        table = Table(
            Column(header="Provider", width=16),
            Column(header="Server", width=20, overflow="ellipsis"),
            Column(header="Scope", width=8),
            Column(header="Reason", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            table.add_row(
                item.provider_id,
                item.server_name,
                item.scope.value,
                _styled(
                    item.reason.value,
                    CONFLICT_CODE_STYLE.get(item.reason, UIStyle.WHITE.value),
                ),
            )
        return table

    @staticmethod
    def stats_panel(applied: int, skipped: int, failed: int, title: str) -> Panel:
        stats: dict[str, str] = {
            "applied": str(applied),
            "skipped": str(skipped),
            "failed": str(failed),
        }
        table = Table(show_header=False, box=None)
        for key, value in stats.items():
            table.add_row(f"[bold]{key}[/bold]", value)
        return Panel(
            table,
            title=title,
            border_style=UIStyle.GREEN.value if failed == 0 else UIStyle.RED.value,
        )


class InstructionTable:
    @staticmethod
    def actions_table(rows: list[tuple[Path, str, str]]) -> Table:
        table = Table(
            Column(header="File", overflow="ellipsis"),
            Column(header="Action", width=9),
            Column(header="Providers", overflow="fold"),
            expand=True,
            header_style="bold",
        )
        for path, action, providers in rows:
            table.add_row(compact_home_path(path), action, providers)
        return table
