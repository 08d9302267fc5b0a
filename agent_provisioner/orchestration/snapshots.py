"""Byte-exact snapshots of config files and skill install locations.

Snapshots are plain values built by explicit capture functions and passed
along the call chain; nothing here keeps state between calls.
"""

import logging
import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from agent_provisioner.constants import SKILL_BACKUP_PREFIX
from agent_provisioner.errors import SnapshotRestoreError
from agent_provisioner.models import SkillBatchOperation
from agent_provisioner.registry.models import Provider
from agent_provisioner.skills.installer import (
    canonical_skills_dir,
    resolve_skill_link_path,
)
from agent_provisioner.utils import copy_path, create_directory_link, remove_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigFileSnapshot:
    path: Path
    # None marks a file that did not exist when the snapshot was taken.
    content: Optional[bytes]

    @property
    def existed(self) -> bool:
        return self.content is not None


@dataclass(frozen=True)
class ConfigSnapshot:
    entries: tuple[ConfigFileSnapshot, ...] = ()

    @property
    def paths(self) -> list[Path]:
        return [entry.path for entry in self.entries]

    def get(self, path: Path) -> Optional[ConfigFileSnapshot]:
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None


def snapshot_configs(paths: Iterable[Optional[Path]]) -> ConfigSnapshot:
    entries: list[ConfigFileSnapshot] = []
    seen: set[Path] = set()
    for path in paths:
        if not path:
            continue
        # Writers follow symlinks, so a linked config is captured at its target.
        if path.is_symlink():
            path = path.resolve()
        if path in seen:
            continue
        seen.add(path)
        content = path.read_bytes() if path.is_file() else None
        entries.append(ConfigFileSnapshot(path=path, content=content))
    logger.debug("Snapshotted %d config file(s)", len(entries))
    return ConfigSnapshot(entries=tuple(entries))


def restore_config_snapshot(snapshot: ConfigSnapshot) -> None:
    failures: list[str] = []
    for entry in snapshot.entries:
        try:
            if entry.content is None:
                entry.path.unlink(missing_ok=True)
                continue
            entry.path.parent.mkdir(parents=True, exist_ok=True)
            entry.path.write_bytes(entry.content)
        except OSError as exc:
            failures.append(f"restore {entry.path}: {exc}")
    if failures:
        raise SnapshotRestoreError(failures)


class SkillPathState(str, Enum):
    MISSING = "missing"
    SYMLINK = "symlink"
    DIRECTORY = "directory"
    FILE = "file"


@dataclass(frozen=True)
class SkillPathSnapshot:
    provider_id: str
    link_path: Path
    state: SkillPathState
    symlink_target: Optional[str] = None
    backup_path: Optional[Path] = None


@dataclass(frozen=True)
class SkillSnapshot:
    skill_name: str
    is_global: bool
    canonical_path: Path
    canonical_existed: bool
    canonical_backup_path: Optional[Path]
    path_snapshots: tuple[SkillPathSnapshot, ...]


def create_backup_root() -> Path:
    millis = int(time.time() * 1000)
    return Path(tempfile.mkdtemp(prefix=f"{SKILL_BACKUP_PREFIX}-{millis}-"))


def classify_skill_path(path: Path) -> SkillPathState:
    # Symlink first: a dangling link does not "exist" but still occupies the path.
    if path.is_symlink():
        return SkillPathState.SYMLINK
    if not path.exists():
        return SkillPathState.MISSING
    if path.is_dir():
        return SkillPathState.DIRECTORY
    return SkillPathState.FILE


def snapshot_skill_state(
    providers: Iterable[Provider],
    operation: SkillBatchOperation,
    project_dir: Path,
    backup_root: Path,
    canonical_dir: Optional[Path] = None,
) -> SkillSnapshot:
    skill_name = operation.skill_name
    canonical_path = (canonical_dir or canonical_skills_dir()) / skill_name
    canonical_existed = canonical_path.is_symlink() or canonical_path.exists()
    canonical_backup_path: Optional[Path] = None
    if canonical_existed:
        canonical_backup_path = backup_root / "canonical" / skill_name
        copy_path(canonical_path, canonical_backup_path)

    path_snapshots: list[SkillPathSnapshot] = []
    for provider in providers:
        link_path = resolve_skill_link_path(
            provider, skill_name, operation.is_global, project_dir
        )
        state = classify_skill_path(link_path)
        if state == SkillPathState.SYMLINK:
            path_snapshots.append(
                SkillPathSnapshot(
                    provider_id=provider.id,
                    link_path=link_path,
                    state=state,
                    symlink_target=os.readlink(link_path),
                )
            )
            continue
        if state == SkillPathState.MISSING:
            path_snapshots.append(
                SkillPathSnapshot(provider_id=provider.id, link_path=link_path, state=state)
            )
            continue

        backup_path = backup_root / "links" / provider.id / skill_name
        copy_path(link_path, backup_path)
        path_snapshots.append(
            SkillPathSnapshot(
                provider_id=provider.id,
                link_path=link_path,
                state=state,
                backup_path=backup_path,
            )
        )

    return SkillSnapshot(
        skill_name=skill_name,
        is_global=operation.is_global,
        canonical_path=canonical_path,
        canonical_existed=canonical_existed,
        canonical_backup_path=canonical_backup_path,
        path_snapshots=tuple(path_snapshots),
    )


def _clear(path: Path) -> None:
    if path.is_symlink() or path.exists():
        remove_path(path)


def _restore_skill_path(item: SkillPathSnapshot) -> None:
    _clear(item.link_path)
    if item.state == SkillPathState.MISSING:
        return
    item.link_path.parent.mkdir(parents=True, exist_ok=True)
    if item.state == SkillPathState.SYMLINK and item.symlink_target is not None:
        create_directory_link(item.symlink_target, item.link_path)
        return
    if item.backup_path is not None:
        copy_path(item.backup_path, item.link_path)


def restore_skill_snapshot(snapshot: SkillSnapshot) -> None:
    """Put the canonical copy and every provider path back the way they were."""
    failures: list[str] = []

    try:
        _clear(snapshot.canonical_path)
        if snapshot.canonical_existed and snapshot.canonical_backup_path is not None:
            if snapshot.canonical_backup_path.exists():
                copy_path(snapshot.canonical_backup_path, snapshot.canonical_path)
    except OSError as exc:
        failures.append(f"restore canonical {snapshot.canonical_path}: {exc}")

    for item in snapshot.path_snapshots:
        try:
            _restore_skill_path(item)
        except OSError as exc:
            failures.append(f"restore {item.provider_id} {item.link_path}: {exc}")

    if failures:
        raise SnapshotRestoreError(failures)


def remove_backup_root(backup_root: Optional[Path]) -> None:
    if backup_root is not None:
        shutil.rmtree(backup_root, ignore_errors=True)
