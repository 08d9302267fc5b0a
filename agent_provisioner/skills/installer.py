import logging
from pathlib import Path
from typing import Iterable, Optional

from agent_provisioner.constants import CANONICAL_SKILLS_DIRNAME
from agent_provisioner.models import SkillInstallResult, SkillRemoveResult
from agent_provisioner.registry.models import Provider
from agent_provisioner.utils import (
    agents_home,
    copy_path,
    create_directory_link,
    remove_path,
)

logger = logging.getLogger(__name__)


def canonical_skills_dir() -> Path:
    return agents_home() / CANONICAL_SKILLS_DIRNAME


def provider_skills_dir(
    provider: Provider, is_global: bool, project_dir: Optional[Path] = None
) -> Path:
    if is_global:
        return provider.path_skills
    return (project_dir or Path.cwd()) / provider.path_project_skills


def resolve_skill_link_path(
    provider: Provider,
    skill_name: str,
    is_global: bool,
    project_dir: Optional[Path] = None,
) -> Path:
    return provider_skills_dir(provider, is_global, project_dir) / skill_name


def _path_present(path: Path) -> bool:
    return path.is_symlink() or path.exists()


class SkillInstaller:
    """Copies a skill into the canonical store and links it into each provider."""

    def __init__(self, canonical_dir: Optional[Path] = None) -> None:
        self._canonical_dir = canonical_dir

    @property
    def canonical_dir(self) -> Path:
        return self._canonical_dir or canonical_skills_dir()

    def canonical_path(self, skill_name: str) -> Path:
        return self.canonical_dir / skill_name

    def install_to_canonical(self, source_path: Path, skill_name: str) -> Path:
        target = self.canonical_path(skill_name)
        if _path_present(target):
            remove_path(target)
        copy_path(source_path, target)
        return target

    def install(
        self,
        source_path: Path,
        skill_name: str,
        providers: Iterable[Provider],
        is_global: bool,
        project_dir: Optional[Path] = None,
    ) -> SkillInstallResult:
        canonical_path = self.install_to_canonical(source_path, skill_name)
        linked: list[str] = []
        errors: list[str] = []

        for provider in providers:
            link_path = resolve_skill_link_path(
                provider, skill_name, is_global, project_dir
            )
            try:
                self._link(canonical_path, link_path)
            except OSError as exc:
                errors.append(f"{provider.id}: {exc}")
                continue
            linked.append(provider.id)

        logger.info(
            "Installed skill %s to %d provider(s)%s",
            skill_name,
            len(linked),
            f" with {len(errors)} error(s)" if errors else "",
        )
        return SkillInstallResult(
            name=skill_name,
            canonical_path=canonical_path,
            linked_agents=linked,
            errors=errors,
        )

    @staticmethod
    def _link(canonical_path: Path, link_path: Path) -> None:
        link_path.parent.mkdir(parents=True, exist_ok=True)
        if _path_present(link_path):
            remove_path(link_path)
        try:
            create_directory_link(canonical_path, link_path)
        except OSError as exc:
            logger.debug("Linking %s failed (%s); copying instead", link_path, exc)
            copy_path(canonical_path, link_path)

    def remove(
        self,
        skill_name: str,
        providers: Iterable[Provider],
        is_global: bool,
        project_dir: Optional[Path] = None,
    ) -> SkillRemoveResult:
        removed: list[str] = []
        errors: list[str] = []

        for provider in providers:
            link_path = resolve_skill_link_path(
                provider, skill_name, is_global, project_dir
            )
            if not _path_present(link_path):
                continue
            try:
                remove_path(link_path)
            except OSError as exc:
                errors.append(f"{provider.id}: {exc}")
                continue
            removed.append(provider.id)

        canonical_path = self.canonical_path(skill_name)
        if _path_present(canonical_path):
            try:
                remove_path(canonical_path)
            except OSError as exc:
                errors.append(f"canonical: {exc}")

        return SkillRemoveResult(removed=removed, errors=errors)

    def list_canonical(self) -> list[str]:
        if not self.canonical_dir.is_dir():
            return []
        return sorted(
            child.name
            for child in self.canonical_dir.iterdir()
            if child.is_dir() or child.is_symlink()
        )
