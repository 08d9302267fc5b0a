from pathlib import Path
from typing import Any, Callable, Dict, NoReturn, Optional

import click
from rich.console import Console

from agent_provisioner.envelope import (
    VALIDATION_EXIT_CODE,
    command_error_from,
    dumps_envelope,
    error_envelope,
    failure_envelope,
    operation_failed,
    success_envelope,
)
from agent_provisioner.errors import (
    CommandError,
    ProvisionerError,
    UnknownProviderError,
    ValidationError,
)
from agent_provisioner.inputs import (
    parse_policy,
    parse_priority,
    read_mcp_operations,
    read_skill_operations,
    read_text_input,
    resolve_providers,
)
from agent_provisioner.logging_config import resolve_level, setup_logging
from agent_provisioner.models import ConflictPolicy, ProviderPriority, Scope
from agent_provisioner.orchestration import (
    BatchExecutor,
    apply_mcp_install_with_policy,
    configure_provider_global_and_project,
    detect_mcp_config_conflicts,
    select_providers_by_minimum_priority,
    update_instructions_single_operation,
)
from agent_provisioner.orchestration.batch import validate_operations
from agent_provisioner.orchestration.configure import InstructionContent
from agent_provisioner.registry import Provider, ProviderRegistry
from agent_provisioner.registry.detection import detect_provider
from agent_provisioner.settings import Settings, SettingsRepository
from agent_provisioner.tui import ProvisionConsoleUI


_VERBOSITY_LEVELS = {1: "INFO", 2: "DEBUG"}


def _provider_options(func: Callable) -> Callable:
    options = [
        click.option(
            "-a",
            "--agent",
            "agents",
            multiple=True,
            help="Provider id or alias (repeatable). Defaults to installed providers.",
        ),
        click.option("--all", "use_all", is_flag=True, help="Target every registry provider."),
        click.option(
            "--min-tier",
            default=None,
            help="Lowest provider tier to include (high, medium, low).",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _project_dir_option() -> Callable:
    return click.option(
        "--project-dir",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Project root for project-scoped files (default: cwd).",
    )


def _json_option() -> Callable:
    return click.option(
        "--json", "as_json", is_flag=True, help="Print a machine-readable envelope."
    )


def _settings(obj: Dict[str, Any]) -> Settings:
    return obj["settings"]


def _registry(obj: Dict[str, Any]) -> ProviderRegistry:
    return obj["registry"]


def _project_dir(value: Optional[Path]) -> Path:
    return (value or Path.cwd()).expanduser().resolve()


def _min_tier(obj: Dict[str, Any], value: Optional[str]) -> ProviderPriority:
    if value is None:
        return _settings(obj).minimum_priority
    return parse_priority(value)


def _targets(
    obj: Dict[str, Any], agents: tuple[str, ...], use_all: bool, min_tier: Optional[str]
) -> list[Provider]:
    providers = resolve_providers(_registry(obj), agents, use_all)
    return select_providers_by_minimum_priority(providers, _min_tier(obj, min_tier))


def _emit_success(operation: str, payload: Any, as_json: bool) -> bool:
    if as_json:
        click.echo(dumps_envelope(success_envelope(operation, payload)))
    return as_json


def _abort(operation: str, exc: ProvisionerError, as_json: bool) -> NoReturn:
    error = command_error_from(exc)
    if as_json:
        click.echo(dumps_envelope(error_envelope(operation, error)))
    else:
        ProvisionConsoleUI(Console(stderr=True)).render_error(error)
    raise click.exceptions.Exit(error.exit_code)


def _fail_with_result(
    operation: str, payload: Any, error: CommandError, as_json: bool
) -> NoReturn:
    if as_json:
        click.echo(dumps_envelope(failure_envelope(operation, payload, error)))
    raise click.exceptions.Exit(error.exit_code)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Log level for stderr output.",
)
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], verbose: int) -> None:
    """Provision MCP servers, skills and instructions across AI coding agents."""
    try:
        settings = SettingsRepository().load()
    except ProvisionerError as exc:
        raise click.ClickException(f"Fatal: {exc}")

    flag_level = log_level or _VERBOSITY_LEVELS.get(min(verbose, 2))
    setup_logging(resolve_level(flag_level, settings.log_level))
    ctx.obj = {
        "settings": settings,
        "registry": ProviderRegistry(settings.registry_path),
    }


@cli.command(help="List providers with detection status.")
@_provider_options
@_project_dir_option()
@_json_option()
@click.pass_obj
def providers(
    obj: Dict[str, Any],
    agents: tuple[str, ...],
    use_all: bool,
    min_tier: Optional[str],
    project_dir: Optional[Path],
    as_json: bool,
) -> None:
    operation = "providers"
    try:
        tier = _min_tier(obj, min_tier)
        selected = _targets(obj, agents, use_all, min_tier)
    except ProvisionerError as exc:
        _abort(operation, exc, as_json)

    root = _project_dir(project_dir)
    results = [detect_provider(provider, root) for provider in selected]
    if _emit_success(operation, [item.as_dict() for item in results], as_json):
        return
    ProvisionConsoleUI(Console()).render_providers(results, tier.value)


@cli.command(help="Install MCP servers and skills atomically, rolling back on failure.")
@_provider_options
@click.option("--mcp-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--skills-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
@_project_dir_option()
@_json_option()
@click.pass_obj
def batch(
    obj: Dict[str, Any],
    agents: tuple[str, ...],
    use_all: bool,
    min_tier: Optional[str],
    mcp_file: Optional[Path],
    skills_file: Optional[Path],
    project_dir: Optional[Path],
    as_json: bool,
) -> None:
    operation = "batch"
    try:
        if mcp_file is None and skills_file is None:
            raise ValidationError("Provide --mcp-file and/or --skills-file")
        tier = _min_tier(obj, min_tier)
        targets = resolve_providers(_registry(obj), agents, use_all)
        mcp_ops = read_mcp_operations(mcp_file) if mcp_file else []
        skill_ops = read_skill_operations(skills_file) if skills_file else []
        validate_operations(mcp_ops, skill_ops)
    except ProvisionerError as exc:
        _abort(operation, exc, as_json)

    result = BatchExecutor().execute(
        targets,
        mcp=mcp_ops,
        skills=skill_ops,
        minimum_priority=tier,
        project_dir=_project_dir(project_dir),
    )
    if not as_json:
        ProvisionConsoleUI(Console()).render_batch_result(result)

    if not result.success:
        code = "E_BATCH_ROLLED_BACK" if result.rollback_performed else "E_BATCH_FAILED"
        hint = (
            "All changes were restored; fix the failing provider and re-run."
            if result.rollback_performed and not result.rollback_errors
            else "Inspect the reported paths; some state may need manual repair."
        )
        _fail_with_result(
            operation,
            result.as_dict(),
            operation_failed(code, result.error or "Batch failed", hint),
            as_json,
        )
    _emit_success(operation, result.as_dict(), as_json)


@cli.command(help="Report MCP entries that would conflict, without writing.")
@_provider_options
@click.option("--mcp-file", type=click.Path(dir_okay=False, path_type=Path), required=True)
@_project_dir_option()
@_json_option()
@click.pass_obj
def conflicts(
    obj: Dict[str, Any],
    agents: tuple[str, ...],
    use_all: bool,
    min_tier: Optional[str],
    mcp_file: Path,
    project_dir: Optional[Path],
    as_json: bool,
) -> None:
    operation = "conflicts"
    try:
        targets = _targets(obj, agents, use_all, min_tier)
        mcp_ops = read_mcp_operations(mcp_file)
        found = detect_mcp_config_conflicts(targets, mcp_ops, _project_dir(project_dir))
    except ProvisionerError as exc:
        _abort(operation, exc, as_json)

    if _emit_success(operation, [item.as_dict() for item in found], as_json):
        return
    ProvisionConsoleUI(Console()).render_conflicts(found)


@cli.command(help="Install MCP servers, resolving conflicts by policy.")
@_provider_options
@click.option("--mcp-file", type=click.Path(dir_okay=False, path_type=Path), required=True)
@click.option(
    "--policy",
    default=None,
    help="Conflict policy: fail, skip or overwrite (default from settings).",
)
@_project_dir_option()
@_json_option()
@click.pass_obj
def apply(
    obj: Dict[str, Any],
    agents: tuple[str, ...],
    use_all: bool,
    min_tier: Optional[str],
    mcp_file: Path,
    policy: Optional[str],
    project_dir: Optional[Path],
    as_json: bool,
) -> None:
    operation = "apply"
    try:
        resolved_policy = (
            parse_policy(policy) if policy else _settings(obj).conflict_policy
        )
        targets = _targets(obj, agents, use_all, min_tier)
        mcp_ops = read_mcp_operations(mcp_file)
        result = apply_mcp_install_with_policy(
            targets, mcp_ops, resolved_policy, _project_dir(project_dir)
        )
    except ProvisionerError as exc:
        _abort(operation, exc, as_json)

    if not as_json:
        ProvisionConsoleUI(Console()).render_apply_result(result, resolved_policy)

    if resolved_policy == ConflictPolicy.FAIL and result.conflicts:
        _fail_with_result(
            operation,
            result.as_dict(),
            operation_failed(
                "E_CONFLICT_BLOCKING",
                f"{len(result.conflicts)} conflict(s) blocked the install",
                "Re-run with --policy skip or --policy overwrite.",
            ),
            as_json,
        )
    if result.failed_writes:
        _fail_with_result(
            operation,
            result.as_dict(),
            operation_failed(
                "E_WRITE_FAILED",
                f"{len(result.failed_writes)} write(s) failed",
                "Check the reported config paths.",
            ),
            as_json,
        )
    _emit_success(operation, result.as_dict(), as_json)


@cli.command(help="Configure one provider's global and project scope together.")
@click.option("-a", "--agent", "agent", required=True, help="Provider id or alias.")
@click.option("--global-mcp-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--project-mcp-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--instructions", "instructions", default=None, help="Instruction text for both scopes.")
@click.option(
    "--instructions-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
)
@_project_dir_option()
@_json_option()
@click.pass_obj
def configure(
    obj: Dict[str, Any],
    agent: str,
    global_mcp_file: Optional[Path],
    project_mcp_file: Optional[Path],
    instructions: Optional[str],
    instructions_file: Optional[Path],
    project_dir: Optional[Path],
    as_json: bool,
) -> None:
    operation = "configure"
    try:
        provider = _registry(obj).get_provider(agent)
        if provider is None:
            raise UnknownProviderError([agent])
        global_ops = read_mcp_operations(global_mcp_file) if global_mcp_file else []
        project_ops = read_mcp_operations(project_mcp_file) if project_mcp_file else []
        content = read_text_input(instructions, instructions_file)
    except ProvisionerError as exc:
        _abort(operation, exc, as_json)

    result = configure_provider_global_and_project(
        provider,
        global_mcp=global_ops,
        project_mcp=project_ops,
        instruction_content=InstructionContent.both(content) if content else None,
        project_dir=_project_dir(project_dir),
    )
    if not as_json:
        ProvisionConsoleUI(Console()).render_configure_result(result)

    if not result.success:
        _fail_with_result(
            operation,
            result.as_dict(),
            operation_failed(
                "E_WRITE_FAILED",
                f"Failed to configure {provider.id}",
                "Check the reported config paths.",
            ),
            as_json,
        )
    _emit_success(operation, result.as_dict(), as_json)


@cli.command(help="Inject an instruction block into provider instruction files.")
@_provider_options
@click.option("--content", default=None, help="Instruction text.")
@click.option("--content-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option(
    "--scope",
    type=click.Choice([item.value for item in Scope], case_sensitive=False),
    default=Scope.PROJECT.value,
)
@_project_dir_option()
@_json_option()
@click.pass_obj
def instructions(
    obj: Dict[str, Any],
    agents: tuple[str, ...],
    use_all: bool,
    min_tier: Optional[str],
    content: Optional[str],
    content_file: Optional[Path],
    scope: str,
    project_dir: Optional[Path],
    as_json: bool,
) -> None:
    operation = "instructions"
    try:
        text = read_text_input(content, content_file)
        if not text:
            raise ValidationError("Provide --content or --content-file")
        targets = _targets(obj, agents, use_all, min_tier)
    except ProvisionerError as exc:
        _abort(operation, exc, as_json)

    summary = update_instructions_single_operation(
        targets, text, Scope(scope.lower()), _project_dir(project_dir)
    )
    if _emit_success(operation, summary.as_dict(), as_json):
        return
    ProvisionConsoleUI(Console()).render_instruction_summary(summary)


def main() -> int:
    try:
        code = cli(standalone_mode=False)
    except click.exceptions.Exit as exc:
        return exc.exit_code
    except click.ClickException as exc:
        exc.show()
        return VALIDATION_EXIT_CODE
    # Non-standalone click returns the code of an explicit Exit instead of raising.
    return code if isinstance(code, int) else 0


if __name__ == "__main__":
    raise SystemExit(main())
