import itertools
import json
from pathlib import Path

from agent_provisioner.mcp.transforms import build_provider_value
from agent_provisioner.models import (
    ConfigFormat,
    McpBatchOperation,
    McpConflictCode,
    McpServerConfig,
    Scope,
    TransportType,
)
from agent_provisioner.orchestration.conflicts import (
    detect_mcp_config_conflicts,
    stable_dumps,
)


def _op(name: str, raw: dict, scope: Scope = Scope.GLOBAL) -> McpBatchOperation:
    return McpBatchOperation(
        server_name=name, config=McpServerConfig.from_dict(raw), scope=scope
    )


def _keys(conflicts) -> set[tuple[str, str, Scope, McpConflictCode]]:
    return {(c.provider_id, c.server_name, c.scope, c.code) for c in conflicts}


def test_unsupported_transport_is_reported_for_that_provider_only(make_provider) -> None:
    supports_sse = make_provider("P1")
    stdio_only = make_provider("P2", transports=(TransportType.STDIO,))

    conflicts = detect_mcp_config_conflicts(
        [supports_sse, stdio_only],
        [_op("events", {"type": "sse", "url": "https://example.test/sse"})],
    )

    assert [(c.provider_id, c.code) for c in conflicts] == [
        ("P2", McpConflictCode.UNSUPPORTED_TRANSPORT)
    ]


def test_headers_conflict_only_for_non_empty_headers(make_provider) -> None:
    no_headers = make_provider("plain", supports_headers=False)

    with_headers = detect_mcp_config_conflicts(
        [no_headers],
        [_op("api", {"url": "https://x.test", "headers": {"Authorization": "t"}})],
    )
    empty_headers = detect_mcp_config_conflicts(
        [no_headers], [_op("api", {"url": "https://x.test", "headers": {}})]
    )

    assert [c.code for c in with_headers] == [McpConflictCode.UNSUPPORTED_HEADERS]
    assert empty_headers == []


def test_missing_transport_type_is_never_a_transport_conflict(make_provider) -> None:
    stdio_only = make_provider("P2", transports=(TransportType.STDIO,))

    conflicts = detect_mcp_config_conflicts(
        [stdio_only], [_op("remote", {"url": "https://x.test"})]
    )

    assert conflicts == []


def test_existing_identical_entry_is_not_a_conflict(make_provider, write_json) -> None:
    provider = make_provider("cursor")
    config = McpServerConfig.from_dict({"command": "npx", "args": ["a"]})
    write_json(
        provider.config_path_global,
        {"mcpServers": {"docs": build_provider_value("cursor", "docs", config)}},
    )

    conflicts = detect_mcp_config_conflicts(
        [provider], [McpBatchOperation("docs", config, Scope.GLOBAL)]
    )

    assert conflicts == []


def test_existing_different_entry_is_a_mismatch(make_provider, write_json) -> None:
    provider = make_provider("one")
    write_json(
        provider.config_path_global,
        {"mcpServers": {"docs": {"command": "old-binary"}}},
    )

    conflicts = detect_mcp_config_conflicts(
        [provider], [_op("docs", {"command": "new-binary"})]
    )

    assert _keys(conflicts) == {
        ("one", "docs", Scope.GLOBAL, McpConflictCode.EXISTING_MISMATCH)
    }


def test_key_order_does_not_cause_mismatch(make_provider) -> None:
    provider = make_provider("one")
    provider.config_path_global.parent.mkdir(parents=True)
    provider.config_path_global.write_text(
        '{"mcpServers": {"docs": {"args": ["a"], "command": "npx"}}}', encoding="utf-8"
    )

    conflicts = detect_mcp_config_conflicts(
        [provider], [_op("docs", {"command": "npx", "args": ["a"]})]
    )

    assert conflicts == []


def test_unrelated_siblings_are_ignored(make_provider, write_json) -> None:
    provider = make_provider("one")
    write_json(
        provider.config_path_global,
        {
            "mcpServers": {
                "docs": {"command": "npx"},
                "other": {"command": "something-else"},
            }
        },
    )

    conflicts = detect_mcp_config_conflicts([provider], [_op("docs", {"command": "npx"})])

    assert conflicts == []


def test_capability_conflict_skips_mismatch_check(make_provider, write_json) -> None:
    provider = make_provider("P2", transports=(TransportType.STDIO,))
    write_json(
        provider.config_path_global,
        {"mcpServers": {"events": {"url": "https://old.test"}}},
    )

    conflicts = detect_mcp_config_conflicts(
        [provider], [_op("events", {"type": "sse", "url": "https://new.test"})]
    )

    assert [c.code for c in conflicts] == [McpConflictCode.UNSUPPORTED_TRANSPORT]


def test_project_scope_without_project_config_has_no_mismatch(make_provider) -> None:
    provider = make_provider("global-only", config_path_project=None)

    conflicts = detect_mcp_config_conflicts(
        [provider], [_op("docs", {"command": "npx"}, Scope.PROJECT)]
    )

    assert conflicts == []


def test_unreadable_config_is_treated_as_absent(make_provider) -> None:
    provider = make_provider("broken")
    provider.config_path_global.parent.mkdir(parents=True)
    provider.config_path_global.write_text("{not json", encoding="utf-8")

    conflicts = detect_mcp_config_conflicts([provider], [_op("docs", {"command": "npx"})])

    assert conflicts == []


def test_transformed_provider_compares_transformed_value(make_provider) -> None:
    provider = make_provider(
        "codex", config_format=ConfigFormat.TOML, config_key="mcp_servers"
    )
    provider.config_path_global.parent.mkdir(parents=True)
    provider.config_path_global.write_text(
        '[mcp_servers.docs]\ncommand = "npx"\nargs = ["a"]\n', encoding="utf-8"
    )

    conflicts = detect_mcp_config_conflicts(
        [provider], [_op("docs", {"command": "npx", "args": ["a"]})]
    )

    assert conflicts == []


def test_detection_is_order_independent(make_provider, write_json, project_dir: Path) -> None:
    providers = [
        make_provider("P1", transports=(TransportType.STDIO,)),
        make_provider("P2", supports_headers=False),
        make_provider("P3"),
    ]
    write_json(
        providers[2].config_path_global,
        {"mcpServers": {"alpha": {"command": "different"}}},
    )
    operations = [
        _op("alpha", {"command": "npx"}),
        _op("beta", {"type": "http", "url": "https://b.test", "headers": {"k": "v"}}),
        _op("gamma", {"type": "stdio", "command": "run"}, Scope.PROJECT),
    ]

    baseline = _keys(detect_mcp_config_conflicts(providers, operations, project_dir))

    assert baseline
    for permutation in itertools.permutations(operations):
        assert _keys(detect_mcp_config_conflicts(providers, permutation, project_dir)) == baseline


def test_detection_never_writes(make_provider, write_json) -> None:
    provider = make_provider("one")
    write_json(provider.config_path_global, {"mcpServers": {"docs": {"command": "a"}}})
    before = provider.config_path_global.read_bytes()

    detect_mcp_config_conflicts([provider], [_op("docs", {"command": "b"})])

    assert provider.config_path_global.read_bytes() == before


def test_stable_dumps_sorts_keys_but_keeps_array_order() -> None:
    assert stable_dumps({"b": 1, "a": [2, 1]}) == stable_dumps({"a": [2, 1], "b": 1})
    assert stable_dumps([1, 2]) != stable_dumps([2, 1])
    assert json.loads(stable_dumps({"x": {"z": 1, "y": 2}})) == {"x": {"y": 2, "z": 1}}
