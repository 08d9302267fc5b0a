import logging
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from agent_provisioner.registry.models import Provider
from agent_provisioner.registry.providers import ProviderRegistry

logger = logging.getLogger(__name__)

APPLICATION_DIRS: tuple[Path, ...] = (
    Path("/Applications"),
    Path.home() / "Applications",
)


@dataclass(frozen=True)
class DetectionResult:
    provider: Provider
    installed: bool
    methods: list[str]
    project_detected: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "providerId": self.provider.id,
            "installed": self.installed,
            "methods": list(self.methods),
            "projectDetected": self.project_detected,
        }


def _check_binary(binary: str) -> bool:
    return shutil.which(binary) is not None


def _check_app_bundle(app_name: str) -> bool:
    if sys.platform != "darwin":
        return False
    return any((base / app_name).exists() for base in APPLICATION_DIRS)


def _check_flatpak(flatpak_id: str) -> bool:
    if not sys.platform.startswith("linux") or shutil.which("flatpak") is None:
        return False
    completed = subprocess.run(
        ["flatpak", "info", flatpak_id],
        capture_output=True,
        check=False,
    )
    return completed.returncode == 0


def detect_project_provider(provider: Provider, project_dir: Path) -> bool:
    if provider.config_path_project is None:
        return False
    return (project_dir / provider.config_path_project).exists()


def detect_provider(
    provider: Provider, project_dir: Optional[Path] = None
) -> DetectionResult:
    detection = provider.detection
    matched: list[str] = []

    for method in detection.methods:
        if method == "binary":
            if detection.binary and _check_binary(detection.binary):
                matched.append(method)
        elif method == "directory":
            if any(directory.exists() for directory in detection.directories):
                matched.append(method)
        elif method == "appBundle":
            if detection.app_bundle and _check_app_bundle(detection.app_bundle):
                matched.append(method)
        elif method == "flatpak":
            if detection.flatpak_id and _check_flatpak(detection.flatpak_id):
                matched.append(method)

    logger.debug("Detection for %s matched: %s", provider.id, matched or "nothing")
    return DetectionResult(
        provider=provider,
        installed=bool(matched),
        methods=matched,
        project_detected=(
            detect_project_provider(provider, project_dir)
            if project_dir is not None
            else False
        ),
    )


def detect_all_providers(
    registry: ProviderRegistry, project_dir: Optional[Path] = None
) -> list[DetectionResult]:
    return [
        detect_provider(provider, project_dir)
        for provider in registry.all_providers()
    ]


def get_installed_providers(registry: ProviderRegistry) -> list[Provider]:
    return [
        result.provider
        for result in detect_all_providers(registry)
        if result.installed
    ]
