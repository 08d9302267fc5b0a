from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from agent_provisioner.errors import ValidationError

if TYPE_CHECKING:
    from agent_provisioner.registry.models import Provider


class ProviderPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    ProviderPriority.HIGH: 0,
    ProviderPriority.MEDIUM: 1,
    ProviderPriority.LOW: 2,
}


class ProviderStatus(str, Enum):
    ACTIVE = "active"
    BETA = "beta"
    DEPRECATED = "deprecated"
    PLANNED = "planned"


class Scope(str, Enum):
    PROJECT = "project"
    GLOBAL = "global"


class TransportType(str, Enum):
    STDIO = "stdio"
    SSE = "sse"
    HTTP = "http"


class ConfigFormat(str, Enum):
    JSON = "json"
    JSONC = "jsonc"
    YAML = "yaml"
    TOML = "toml"


class ConflictPolicy(str, Enum):
    FAIL = "fail"
    SKIP = "skip"
    OVERWRITE = "overwrite"


class McpConflictCode(str, Enum):
    UNSUPPORTED_TRANSPORT = "unsupported-transport"
    UNSUPPORTED_HEADERS = "unsupported-headers"
    EXISTING_MISMATCH = "existing-mismatch"


class InjectionAction(str, Enum):
    CREATED = "created"
    ADDED = "added"
    UPDATED = "updated"


class InjectionStatus(str, Enum):
    MISSING = "missing"
    NONE = "none"
    CURRENT = "current"
    OUTDATED = "outdated"


def _string_map(value: Any, name: str) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ValidationError(f"{name} must be an object of strings")
    return {str(key): str(item) for key, item in value.items()}


@dataclass(frozen=True)
class McpServerConfig:
    """Canonical MCP server config, shaped per provider before it is written."""

    type: Optional[TransportType] = None
    url: Optional[str] = None
    headers: Optional[dict[str, str]] = None
    command: Optional[str] = None
    args: Optional[list[str]] = None
    env: Optional[dict[str, str]] = None

    @classmethod
    def from_dict(cls, raw: Any) -> "McpServerConfig":
        if not isinstance(raw, dict):
            raise ValidationError("config must be an object")

        transport = raw.get("type")
        if transport is not None:
            try:
                transport = TransportType(transport)
            except ValueError as exc:
                raise ValidationError(
                    f"unsupported transport type: {transport}"
                ) from exc

        url = raw.get("url")
        command = raw.get("command")
        if url is not None and not isinstance(url, str):
            raise ValidationError("url must be a string")
        if command is not None and not isinstance(command, str):
            raise ValidationError("command must be a string")
        if not url and not command:
            raise ValidationError("config must provide either command or url")

        args = raw.get("args")
        if args is not None:
            if not isinstance(args, list):
                raise ValidationError("args must be an array of strings")
            args = [str(item) for item in args]

        headers = raw.get("headers")
        env = raw.get("env")
        return cls(
            type=transport,
            url=url,
            headers=_string_map(headers, "headers") if headers is not None else None,
            command=command,
            args=args,
            env=_string_map(env, "env") if env is not None else None,
        )

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.type is not None:
            payload["type"] = self.type.value
        if self.url is not None:
            payload["url"] = self.url
        if self.headers is not None:
            payload["headers"] = dict(self.headers)
        if self.command is not None:
            payload["command"] = self.command
        if self.args is not None:
            payload["args"] = list(self.args)
        if self.env is not None:
            payload["env"] = dict(self.env)
        return payload


@dataclass(frozen=True)
class McpBatchOperation:
    server_name: str
    config: McpServerConfig
    scope: Scope = Scope.PROJECT

    def as_dict(self) -> dict[str, Any]:
        return {
            "serverName": self.server_name,
            "config": self.config.as_dict(),
            "scope": self.scope.value,
        }


@dataclass(frozen=True)
class SkillBatchOperation:
    source_path: Path
    skill_name: str
    is_global: bool = True

    def as_dict(self) -> dict[str, Any]:
        return {
            "sourcePath": str(self.source_path),
            "skillName": self.skill_name,
            "isGlobal": self.is_global,
        }


@dataclass(frozen=True)
class McpInstallResult:
    provider: Provider
    scope: Scope
    config_path: Optional[Path]
    success: bool
    error: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "providerId": self.provider.id,
            "scope": self.scope.value,
            "configPath": str(self.config_path) if self.config_path else None,
            "success": self.success,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class SkillInstallResult:
    name: str
    canonical_path: Path
    linked_agents: list[str]
    errors: list[str]

    @property
    def success(self) -> bool:
        return bool(self.linked_agents)


@dataclass(frozen=True)
class SkillRemoveResult:
    removed: list[str]
    errors: list[str]


@dataclass(frozen=True)
class BatchInstallResult:
    success: bool
    provider_ids: list[str]
    mcp_applied: int
    skills_applied: int
    rollback_performed: bool
    rollback_errors: list[str] = field(default_factory=list)
    error: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "providerIds": list(self.provider_ids),
            "mcpApplied": self.mcp_applied,
            "skillsApplied": self.skills_applied,
            "rollbackPerformed": self.rollback_performed,
            "rollbackErrors": list(self.rollback_errors),
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class McpConflict:
    provider_id: str
    server_name: str
    scope: Scope
    code: McpConflictCode
    message: str

    @property
    def key(self) -> tuple[str, str, Scope]:
        return (self.provider_id, self.server_name, self.scope)

    def as_dict(self) -> dict[str, str]:
        return {
            "providerId": self.provider_id,
            "serverName": self.server_name,
            "scope": self.scope.value,
            "code": self.code.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class SkippedInstall:
    provider_id: str
    server_name: str
    scope: Scope
    reason: McpConflictCode

    def as_dict(self) -> dict[str, str]:
        return {
            "providerId": self.provider_id,
            "serverName": self.server_name,
            "scope": self.scope.value,
            "reason": self.reason.value,
        }


@dataclass(frozen=True)
class McpPlanApplyResult:
    conflicts: list[McpConflict]
    applied: list[McpInstallResult]
    skipped: list[SkippedInstall]

    @property
    def failed_writes(self) -> list[McpInstallResult]:
        return [item for item in self.applied if not item.success]

    def as_dict(self) -> dict[str, Any]:
        return {
            "conflicts": [item.as_dict() for item in self.conflicts],
            "applied": [item.as_dict() for item in self.applied],
            "skipped": [item.as_dict() for item in self.skipped],
        }
