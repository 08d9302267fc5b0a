import sys
import json
from pathlib import Path
from typing import Any, Optional

from click.testing import CliRunner
import pytest


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()

from agent_provisioner.models import (  # noqa: E402
    ConfigFormat,
    ProviderPriority,
    TransportType,
)
from agent_provisioner.registry.models import Provider  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / ".config"))
    monkeypatch.setenv("AGENTS_HOME", str(tmp_path / ".agents"))
    monkeypatch.delenv("AGENT_PROVISIONER_REGISTRY", raising=False)
    monkeypatch.delenv("AGENT_PROVISIONER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("AGENT_PROVISIONER_LOG_FILE", raising=False)
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def make_provider(tmp_path: Path):
    def _make(
        provider_id: str,
        priority: ProviderPriority = ProviderPriority.MEDIUM,
        config_format: ConfigFormat = ConfigFormat.JSON,
        config_key: str = "mcpServers",
        transports: tuple[TransportType, ...] = (
            TransportType.STDIO,
            TransportType.SSE,
            TransportType.HTTP,
        ),
        supports_headers: bool = True,
        config_path_project: Optional[str] = "",
        instruct_file: str = "AGENTS.md",
    ) -> Provider:
        suffix = {
            ConfigFormat.JSON: "json",
            ConfigFormat.JSONC: "jsonc",
            ConfigFormat.YAML: "yaml",
            ConfigFormat.TOML: "toml",
        }[config_format]
        if config_path_project == "":
            config_path_project = f".{provider_id}/mcp.{suffix}"
        return Provider(
            id=provider_id,
            tool_name=provider_id.title(),
            config_key=config_key,
            config_format=config_format,
            config_path_global=tmp_path / f".{provider_id}" / f"mcp.{suffix}",
            config_path_project=config_path_project,
            path_skills=tmp_path / f".{provider_id}" / "skills",
            path_project_skills=f".{provider_id}/skills",
            priority=priority,
            supported_transports=transports,
            supports_headers=supports_headers,
            path_global=tmp_path / f".{provider_id}",
            instruct_file=instruct_file,
        )

    return _make


@pytest.fixture
def write_json():
    def _write(path: Path, payload: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")

    return _write


@pytest.fixture
def skill_source(tmp_path: Path) -> Path:
    source = tmp_path / "sources" / "code-review"
    source.mkdir(parents=True)
    (source / "SKILL.md").write_text(
        "---\nname: code-review\ndescription: Review diffs\n---\n\nBody\n",
        encoding="utf-8",
    )
    return source


@pytest.fixture
def cli_runner(tmp_path: Path) -> CliRunner:
    class HomeCliRunner(CliRunner):
        def invoke(self, cli: Any, args: Any = None, **kwargs: Any):  # type: ignore[override]
            env = dict(kwargs.pop("env", {}) or {})
            env.setdefault("HOME", str(tmp_path))
            env.setdefault("XDG_CONFIG_HOME", str(tmp_path / ".config"))
            env.setdefault("AGENTS_HOME", str(tmp_path / ".agents"))
            kwargs["env"] = env
            return super().invoke(cli, args=args, **kwargs)

    return HomeCliRunner()
