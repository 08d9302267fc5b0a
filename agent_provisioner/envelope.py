"""Machine-readable result envelopes for ``--json`` output."""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from agent_provisioner.errors import (
    CommandError,
    InvalidChoiceError,
    InvalidConfigFormatError,
    InvalidConfigSchemaError,
    InvalidOperationError,
    ProvisionerError,
    ProvisionerFileError,
    RegistryNotFoundError,
    UnknownProviderError,
    ValidationError,
)

SCHEMA_VERSION = "1.0.0"
VALIDATION_EXIT_CODE = 2
FAILURE_EXIT_CODE = 1


def _meta(operation: str) -> dict[str, Any]:
    return {
        "schemaVersion": SCHEMA_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "operation": operation,
        "requestId": str(uuid.uuid4()),
        "transport": "cli",
    }


def success_envelope(operation: str, result: Any) -> dict[str, Any]:
    return {
        "_meta": _meta(operation),
        "success": True,
        "result": result,
        "error": None,
    }


def failure_envelope(operation: str, result: Any, error: CommandError) -> dict[str, Any]:
    """Envelope for an operation that ran but did not succeed (result is still reported)."""
    envelope = error_envelope(operation, error)
    envelope["result"] = result
    return envelope


def error_envelope(operation: str, error: CommandError) -> dict[str, Any]:
    details: dict[str, Any] = {"hint": error.hint}
    if error.details is not None:
        details["payload"] = error.details
    return {
        "_meta": _meta(operation),
        "success": False,
        "result": None,
        "error": {
            "code": error.code,
            "message": error.message,
            "category": error.category,
            "retryable": error.recoverable,
            "details": details,
        },
    }


def dumps_envelope(envelope: dict[str, Any]) -> str:
    return json.dumps(envelope, indent=2, default=str)


_ERROR_CODES: tuple[tuple[type[ProvisionerError], str, str], ...] = (
    (
        InvalidOperationError,
        "E_VALIDATION_OPERATION",
        "Fix the operation file entry at the reported index.",
    ),
    (
        UnknownProviderError,
        "E_PROVIDER_NOT_FOUND",
        "Run `agent-provisioner providers --all` for valid provider ids and aliases.",
    ),
    (
        InvalidChoiceError,
        "E_VALIDATION_CHOICE",
        "Use one of the listed values.",
    ),
    (
        ValidationError,
        "E_VALIDATION_INPUT",
        "Check the command arguments and input files.",
    ),
    (
        RegistryNotFoundError,
        "E_REGISTRY_NOT_FOUND",
        "Check registryPath in settings or AGENT_PROVISIONER_REGISTRY.",
    ),
    (
        InvalidConfigSchemaError,
        "E_VALIDATION_SCHEMA",
        "Fix the file so it matches its schema.",
    ),
    (
        InvalidConfigFormatError,
        "E_INPUT_FORMAT",
        "Confirm the file contains valid JSON/YAML/TOML.",
    ),
    (
        ProvisionerFileError,
        "E_INPUT_FILE",
        "Confirm the path exists and is readable.",
    ),
)


def command_error_from(exc: ProvisionerError) -> CommandError:
    if isinstance(exc, CommandError):
        return exc
    for error_type, code, hint in _ERROR_CODES:
        if isinstance(exc, error_type):
            return CommandError(
                code=code,
                message=str(exc),
                hint=hint,
                exit_code=VALIDATION_EXIT_CODE,
            )
    return CommandError(
        code="E_INTERNAL_UNEXPECTED",
        message=str(exc),
        hint="Re-run with --log-level DEBUG for details.",
        recoverable=False,
        exit_code=FAILURE_EXIT_CODE,
    )


def operation_failed(
    code: str, message: str, hint: str, details: Optional[Any] = None
) -> CommandError:
    return CommandError(
        code=code,
        message=message,
        hint=hint,
        details=details,
        exit_code=FAILURE_EXIT_CODE,
    )
