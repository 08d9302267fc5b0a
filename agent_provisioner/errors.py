from pathlib import Path
from typing import Any, Iterable, Optional


class ProvisionerError(Exception):
    """Base user-facing application error."""


class ValidationError(ProvisionerError):
    """Malformed input, rejected before anything is snapshotted or written."""


class InvalidOperationError(ValidationError):
    def __init__(self, index: int, field: str, message: str) -> None:
        self.index = index
        self.field = field
        self.message = message
        super().__init__(f"Invalid {field} at index {index}: {message}")


class UnknownProviderError(ValidationError):
    def __init__(self, provider_ids: Iterable[str]) -> None:
        self.provider_ids = list(provider_ids)
        super().__init__(f"Unknown provider(s): {', '.join(self.provider_ids)}")


class InvalidChoiceError(ValidationError):
    def __init__(self, name: str, value: Any, choices: Iterable[str]) -> None:
        self.name = name
        self.value = value
        self.choices = list(choices)
        super().__init__(
            f"Invalid {name}: {value} (use one of: {', '.join(self.choices)})"
        )


class ProvisionerFileError(ProvisionerError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class InvalidConfigFormatError(ProvisionerFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid config format ({detail})")


class UnsupportedConfigFormatError(ProvisionerFileError):
    def __init__(self, path: Path, config_format: str) -> None:
        self.config_format = config_format
        super().__init__(
            path=path, message=f"Unsupported config format '{config_format}'"
        )


class InvalidConfigSchemaError(ProvisionerFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid config schema ({detail})")


class RegistryNotFoundError(ProvisionerFileError):
    def __init__(self, path: Path) -> None:
        super().__init__(path=path, message="Provider registry not found")


class ExecutionFailure(ProvisionerError):
    """An install or remove collaborator reported failure mid-batch."""


class RollbackStepFailure(ProvisionerError):
    """A single rollback action could not be completed."""


class SnapshotRestoreError(RollbackStepFailure):
    def __init__(self, failures: list[str]) -> None:
        self.failures = failures
        super().__init__("; ".join(failures))


_CATEGORY_MARKERS: tuple[tuple[str, str], ...] = (
    ("VALIDATION", "VALIDATION"),
    ("NOT_FOUND", "NOT_FOUND"),
    ("CONFLICT", "CONFLICT"),
    ("PERMISSION", "PERMISSION"),
)


class CommandError(ProvisionerError):
    """Error raised by CLI commands, rendered into the result envelope."""

    def __init__(
        self,
        code: str,
        message: str,
        hint: str,
        recoverable: bool = True,
        details: Optional[Any] = None,
        exit_code: int = 1,
    ) -> None:
        self.code = code
        self.message = message
        self.hint = hint
        self.recoverable = recoverable
        self.details = details
        self.exit_code = exit_code
        super().__init__(message)

    @property
    def category(self) -> str:
        for marker, category in _CATEGORY_MARKERS:
            if marker in self.code:
                return category
        return "INTERNAL"
