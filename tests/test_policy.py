import json

import pytest

from agent_provisioner.mcp.installer import McpInstaller
from agent_provisioner.models import (
    ConflictPolicy,
    McpBatchOperation,
    McpConflictCode,
    McpServerConfig,
    Scope,
    TransportType,
)
from agent_provisioner.orchestration.policy import apply_mcp_install_with_policy


class CountingInstaller:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self._real = McpInstaller()

    def install(self, provider, server_name, config, scope, project_dir=None):
        self.calls.append((provider.id, server_name))
        return self._real.install(provider, server_name, config, scope, project_dir)


def _op(name: str, raw: dict) -> McpBatchOperation:
    return McpBatchOperation(
        server_name=name, config=McpServerConfig.from_dict(raw), scope=Scope.GLOBAL
    )


@pytest.fixture
def conflicted(make_provider, write_json):
    sse = make_provider("sse-ok")
    stdio_only = make_provider("stdio-only", transports=(TransportType.STDIO,))
    write_json(
        sse.config_path_global, {"mcpServers": {"local": {"command": "old"}}}
    )
    providers = [sse, stdio_only]
    operations = [
        _op("events", {"type": "sse", "url": "https://x.test/sse"}),
        _op("local", {"command": "new"}),
    ]
    return providers, operations


def test_fail_policy_installs_nothing_when_conflicts_exist(conflicted) -> None:
    providers, operations = conflicted
    installer = CountingInstaller()

    result = apply_mcp_install_with_policy(
        providers, operations, ConflictPolicy.FAIL, installer=installer
    )

    assert installer.calls == []
    assert result.applied == []
    assert result.skipped == []
    assert {(c.provider_id, c.code) for c in result.conflicts} == {
        ("stdio-only", McpConflictCode.UNSUPPORTED_TRANSPORT),
        ("sse-ok", McpConflictCode.EXISTING_MISMATCH),
    }


def test_fail_policy_installs_everything_without_conflicts(make_provider) -> None:
    providers = [make_provider("a"), make_provider("b")]
    installer = CountingInstaller()

    result = apply_mcp_install_with_policy(
        providers, [_op("docs", {"command": "npx"})], "fail", installer=installer
    )

    assert installer.calls == [("a", "docs"), ("b", "docs")]
    assert result.conflicts == []
    assert all(item.success for item in result.applied)


def test_skip_policy_never_installs_conflicting_pairs(conflicted) -> None:
    providers, operations = conflicted
    installer = CountingInstaller()

    result = apply_mcp_install_with_policy(
        providers, operations, ConflictPolicy.SKIP, installer=installer
    )

    conflict_pairs = {(c.provider_id, c.server_name) for c in result.conflicts}
    assert not conflict_pairs & set(installer.calls)
    assert installer.calls == [("sse-ok", "events"), ("stdio-only", "local")]
    assert {(s.provider_id, s.server_name, s.reason) for s in result.skipped} == {
        ("sse-ok", "local", McpConflictCode.EXISTING_MISMATCH),
        ("stdio-only", "events", McpConflictCode.UNSUPPORTED_TRANSPORT),
    }
    stored = json.loads(providers[0].config_path_global.read_text(encoding="utf-8"))
    assert stored["mcpServers"]["local"] == {"command": "old"}


def test_overwrite_policy_installs_every_pair(conflicted) -> None:
    providers, operations = conflicted
    installer = CountingInstaller()

    result = apply_mcp_install_with_policy(
        providers, operations, ConflictPolicy.OVERWRITE, installer=installer
    )

    assert len(installer.calls) == len(providers) * len(operations)
    assert result.skipped == []
    assert len(result.conflicts) == 2
    stored = json.loads(providers[0].config_path_global.read_text(encoding="utf-8"))
    assert stored["mcpServers"]["local"] == {"command": "new"}


def test_overwrite_reports_failed_writes_without_stopping(make_provider) -> None:
    broken = make_provider("broken")
    broken.config_path_global.parent.mkdir(parents=True)
    broken.config_path_global.write_text("[1, 2]", encoding="utf-8")
    healthy = make_provider("healthy")

    result = apply_mcp_install_with_policy(
        [broken, healthy], [_op("docs", {"command": "npx"})], "overwrite"
    )

    assert [item.success for item in result.applied] == [False, True]
    assert [item.provider.id for item in result.failed_writes] == ["broken"]


def test_unknown_policy_is_rejected(make_provider) -> None:
    with pytest.raises(ValueError):
        apply_mcp_install_with_policy([make_provider("a")], [], "merge")
