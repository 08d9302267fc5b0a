from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from agent_provisioner.models import (
    ConfigFormat,
    ProviderPriority,
    ProviderStatus,
    TransportType,
)


@dataclass(frozen=True)
class DetectionConfig:
    methods: tuple[str, ...]
    binary: Optional[str] = None
    directories: tuple[Path, ...] = ()
    app_bundle: Optional[str] = None
    flatpak_id: Optional[str] = None


@dataclass(frozen=True)
class Provider:
    """A resolved agent tool definition.

    Global paths are absolute; project paths are relative to the project
    directory passed to each operation.
    """

    id: str
    tool_name: str
    config_key: str
    config_format: ConfigFormat
    config_path_global: Path
    config_path_project: Optional[str]
    path_skills: Path
    path_project_skills: str
    priority: ProviderPriority
    supported_transports: tuple[TransportType, ...] = (
        TransportType.STDIO,
        TransportType.SSE,
        TransportType.HTTP,
    )
    supports_headers: bool = True
    vendor: str = ""
    agent_flag: str = ""
    aliases: tuple[str, ...] = ()
    path_global: Optional[Path] = None
    path_project: str = "."
    instruct_file: str = "AGENTS.md"
    detection: DetectionConfig = field(default_factory=lambda: DetectionConfig(()))
    status: ProviderStatus = ProviderStatus.ACTIVE
    agent_skills_compatible: bool = True

    def supports_transport(self, transport: TransportType) -> bool:
        return transport in self.supported_transports

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "priority": self.priority.value,
            "status": self.status.value,
            "configFormat": self.config_format.value,
        }

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "toolName": self.tool_name,
            "vendor": self.vendor,
            "aliases": list(self.aliases),
            "priority": self.priority.value,
            "status": self.status.value,
            "configKey": self.config_key,
            "configFormat": self.config_format.value,
            "configPathGlobal": str(self.config_path_global),
            "configPathProject": self.config_path_project,
            "pathSkills": str(self.path_skills),
            "pathProjectSkills": self.path_project_skills,
            "instructFile": self.instruct_file,
            "supportedTransports": [item.value for item in self.supported_transports],
            "supportsHeaders": self.supports_headers,
            "agentSkillsCompatible": self.agent_skills_compatible,
        }
