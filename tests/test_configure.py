import json
from pathlib import Path

from agent_provisioner.constants import INSTRUCTION_MARKER_START
from agent_provisioner.models import (
    InjectionAction,
    McpBatchOperation,
    McpServerConfig,
    Scope,
)
from agent_provisioner.orchestration.configure import (
    InstructionContent,
    configure_provider_global_and_project,
    update_instructions_single_operation,
)


def _op(name: str, scope: Scope = Scope.PROJECT) -> McpBatchOperation:
    return McpBatchOperation(
        server_name=name,
        config=McpServerConfig.from_dict({"command": "npx", "args": [name]}),
        scope=scope,
    )


def test_configure_writes_each_list_to_its_own_scope(
    make_provider, project_dir: Path
) -> None:
    provider = make_provider("cursor")

    # Operation scopes are ignored in favour of the list they are passed in.
    result = configure_provider_global_and_project(
        provider,
        global_mcp=[_op("global-docs", Scope.PROJECT)],
        project_mcp=[_op("project-docs", Scope.GLOBAL)],
        project_dir=project_dir,
    )

    assert result.success is True
    global_config = json.loads(provider.config_path_global.read_text(encoding="utf-8"))
    project_config = json.loads(
        (project_dir / ".cursor" / "mcp.json").read_text(encoding="utf-8")
    )
    assert list(global_config["mcpServers"]) == ["global-docs"]
    assert list(project_config["mcpServers"]) == ["project-docs"]
    assert result.as_dict()["configPaths"]["project"] == str(
        project_dir / ".cursor" / "mcp.json"
    )


def test_configure_injects_instructions_in_both_scopes(
    make_provider, project_dir: Path
) -> None:
    provider = make_provider("claude", instruct_file="CLAUDE.md")

    result = configure_provider_global_and_project(
        provider,
        instruction_content=InstructionContent(
            global_content="global rules", project_content="project rules"
        ),
        project_dir=project_dir,
    )

    global_file = provider.path_global / "CLAUDE.md"
    project_file = project_dir / "CLAUDE.md"
    assert result.global_instructions == {global_file: InjectionAction.CREATED}
    assert result.project_instructions == {project_file: InjectionAction.CREATED}
    assert "global rules" in global_file.read_text(encoding="utf-8")
    assert "project rules" in project_file.read_text(encoding="utf-8")


def test_configure_reports_project_failure_for_global_only_provider(
    make_provider, project_dir: Path
) -> None:
    provider = make_provider("desktop", config_path_project=None)

    result = configure_provider_global_and_project(
        provider,
        global_mcp=[_op("docs")],
        project_mcp=[_op("docs")],
        instruction_content="shared",
        project_dir=project_dir,
    )

    assert result.success is False
    assert result.global_mcp[0].success is True
    assert result.project_mcp[0].success is False
    assert result.project_config_path is None
    assert result.as_dict()["configPaths"]["project"] is None


def test_single_operation_groups_shared_instruction_files(
    make_provider, project_dir: Path
) -> None:
    providers = [
        make_provider("cursor"),
        make_provider("codex"),
        make_provider("claude", instruct_file="CLAUDE.md"),
    ]
    (project_dir / "AGENTS.md").write_text("# Existing\n", encoding="utf-8")

    summary = update_instructions_single_operation(
        providers, "Use the house style.", "project", project_dir
    )

    assert summary.updated_files == 2
    by_file = {item.file.name: item for item in summary.actions}
    assert by_file["AGENTS.md"].action == InjectionAction.ADDED
    assert by_file["AGENTS.md"].provider_ids == ["cursor", "codex"]
    assert by_file["CLAUDE.md"].action == InjectionAction.CREATED
    assert by_file["CLAUDE.md"].provider_ids == ["claude"]

    agents_text = (project_dir / "AGENTS.md").read_text(encoding="utf-8")
    assert agents_text.startswith(INSTRUCTION_MARKER_START)
    assert agents_text.endswith("# Existing\n")


def test_single_operation_rerun_updates_in_place(make_provider, project_dir: Path) -> None:
    providers = [make_provider("cursor")]
    update_instructions_single_operation(providers, "v1", Scope.PROJECT, project_dir)

    summary = update_instructions_single_operation(
        providers, "v2", Scope.PROJECT, project_dir
    )

    text = (project_dir / "AGENTS.md").read_text(encoding="utf-8")
    assert summary.actions[0].action == InjectionAction.UPDATED
    assert "v2" in text and "v1" not in text
    assert text.count(INSTRUCTION_MARKER_START) == 1
    assert summary.as_dict()["actions"][0]["configFormats"] == ["json"]
