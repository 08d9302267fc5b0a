import os
from pathlib import Path

from agent_provisioner.models import SkillBatchOperation
from agent_provisioner.orchestration.snapshots import (
    SkillPathState,
    classify_skill_path,
    create_backup_root,
    remove_backup_root,
    restore_skill_snapshot,
    snapshot_skill_state,
)


def _operation(source: Path, name: str = "code-review") -> SkillBatchOperation:
    return SkillBatchOperation(source_path=source, skill_name=name, is_global=True)


def test_classify_each_path_shape(tmp_path: Path) -> None:
    directory = tmp_path / "dir"
    directory.mkdir()
    file_path = tmp_path / "file"
    file_path.write_text("x", encoding="utf-8")
    link = tmp_path / "link"
    os.symlink(str(directory), str(link))
    dangling = tmp_path / "dangling"
    os.symlink(str(tmp_path / "gone"), str(dangling))

    assert classify_skill_path(tmp_path / "missing") == SkillPathState.MISSING
    assert classify_skill_path(directory) == SkillPathState.DIRECTORY
    assert classify_skill_path(file_path) == SkillPathState.FILE
    assert classify_skill_path(link) == SkillPathState.SYMLINK
    assert classify_skill_path(dangling) == SkillPathState.SYMLINK


def test_backup_roots_are_unique(tmp_path: Path) -> None:
    first = create_backup_root()
    second = create_backup_root()
    try:
        assert first != second
        assert first.is_dir() and second.is_dir()
    finally:
        remove_backup_root(first)
        remove_backup_root(second)
    assert not first.exists()


def test_restore_brings_back_every_shape(
    tmp_path: Path, make_provider, project_dir: Path, skill_source: Path
) -> None:
    canonical_dir = tmp_path / ".agents" / "skills"
    canonical = canonical_dir / "code-review"
    canonical.mkdir(parents=True)
    (canonical / "SKILL.md").write_text("old canonical", encoding="utf-8")

    as_dir = make_provider("as-dir")
    as_link = make_provider("as-link")
    as_missing = make_provider("as-missing")
    as_file = make_provider("as-file")

    dir_path = as_dir.path_skills / "code-review"
    dir_path.mkdir(parents=True)
    (dir_path / "notes.txt").write_text("local edits", encoding="utf-8")

    link_path = as_link.path_skills / "code-review"
    link_path.parent.mkdir(parents=True)
    os.symlink(str(tmp_path / "elsewhere"), str(link_path))

    file_path = as_file.path_skills / "code-review"
    file_path.parent.mkdir(parents=True)
    file_path.write_text("plain file", encoding="utf-8")

    providers = [as_dir, as_link, as_missing, as_file]
    backup_root = create_backup_root()
    try:
        snapshot = snapshot_skill_state(
            providers, _operation(skill_source), project_dir, backup_root, canonical_dir
        )
        assert snapshot.canonical_existed is True
        assert [item.state for item in snapshot.path_snapshots] == [
            SkillPathState.DIRECTORY,
            SkillPathState.SYMLINK,
            SkillPathState.MISSING,
            SkillPathState.FILE,
        ]

        # Simulate an install that replaced everything with links to a new copy.
        (canonical / "SKILL.md").write_text("new canonical", encoding="utf-8")
        for provider in providers:
            target = provider.path_skills / "code-review"
            if target.is_symlink() or target.is_file():
                target.unlink()
            elif target.is_dir():
                for child in target.iterdir():
                    child.unlink()
                target.rmdir()
            target.parent.mkdir(parents=True, exist_ok=True)
            os.symlink(str(canonical), str(target))

        restore_skill_snapshot(snapshot)
    finally:
        remove_backup_root(backup_root)

    assert (canonical / "SKILL.md").read_text(encoding="utf-8") == "old canonical"
    assert classify_skill_path(dir_path) == SkillPathState.DIRECTORY
    assert (dir_path / "notes.txt").read_text(encoding="utf-8") == "local edits"
    assert classify_skill_path(link_path) == SkillPathState.SYMLINK
    assert os.readlink(link_path) == str(tmp_path / "elsewhere")
    assert classify_skill_path(as_missing.path_skills / "code-review") == SkillPathState.MISSING
    assert classify_skill_path(file_path) == SkillPathState.FILE
    assert file_path.read_text(encoding="utf-8") == "plain file"


def test_restore_removes_canonical_that_did_not_exist(
    tmp_path: Path, make_provider, project_dir: Path, skill_source: Path
) -> None:
    canonical_dir = tmp_path / ".agents" / "skills"
    provider = make_provider("solo")
    backup_root = create_backup_root()
    try:
        snapshot = snapshot_skill_state(
            [provider], _operation(skill_source), project_dir, backup_root, canonical_dir
        )
        (canonical_dir / "code-review").mkdir(parents=True)
        restore_skill_snapshot(snapshot)
    finally:
        remove_backup_root(backup_root)

    assert snapshot.canonical_existed is False
    assert not (canonical_dir / "code-review").exists()
