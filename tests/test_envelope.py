import json
from pathlib import Path

from agent_provisioner.envelope import (
    command_error_from,
    dumps_envelope,
    error_envelope,
    failure_envelope,
    operation_failed,
    success_envelope,
)
from agent_provisioner.errors import (
    ExecutionFailure,
    InvalidOperationError,
    RegistryNotFoundError,
    UnknownProviderError,
)


def test_success_envelope_shape() -> None:
    envelope = json.loads(dumps_envelope(success_envelope("batch", {"ok": 1})))

    assert envelope["success"] is True
    assert envelope["result"] == {"ok": 1}
    assert envelope["error"] is None
    assert envelope["_meta"]["operation"] == "batch"
    assert envelope["_meta"]["schemaVersion"] == "1.0.0"
    assert envelope["_meta"]["requestId"]


def test_validation_errors_map_to_codes_and_exit_two() -> None:
    operation = command_error_from(InvalidOperationError(2, "scope", "bad"))
    provider = command_error_from(UnknownProviderError(["nope"]))
    registry = command_error_from(RegistryNotFoundError(Path("/x/registry.json")))

    assert (operation.code, operation.exit_code) == ("E_VALIDATION_OPERATION", 2)
    assert operation.category == "VALIDATION"
    assert (provider.code, provider.category) == ("E_PROVIDER_NOT_FOUND", "NOT_FOUND")
    assert registry.code == "E_REGISTRY_NOT_FOUND"


def test_unexpected_errors_are_internal() -> None:
    error = command_error_from(ExecutionFailure("boom"))

    assert error.code == "E_INTERNAL_UNEXPECTED"
    assert error.category == "INTERNAL"
    assert error.exit_code == 1
    assert error.recoverable is False


def test_error_and_failure_envelopes() -> None:
    error = operation_failed(
        "E_CONFLICT_BLOCKING", "2 conflict(s)", "use --policy", details={"n": 2}
    )

    plain = error_envelope("apply", error)
    with_result = failure_envelope("apply", {"conflicts": []}, error)

    assert plain["success"] is False
    assert plain["result"] is None
    assert plain["error"] == {
        "code": "E_CONFLICT_BLOCKING",
        "message": "2 conflict(s)",
        "category": "CONFLICT",
        "retryable": True,
        "details": {"hint": "use --policy", "payload": {"n": 2}},
    }
    assert with_result["result"] == {"conflicts": []}
    assert with_result["error"]["code"] == "E_CONFLICT_BLOCKING"
