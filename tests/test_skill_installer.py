from pathlib import Path

from agent_provisioner.skills.installer import (
    SkillInstaller,
    canonical_skills_dir,
    resolve_skill_link_path,
)
from agent_provisioner.skills.manifest import default_skill_name, parse_skill_manifest


def test_canonical_dir_follows_agents_home(tmp_path: Path, monkeypatch) -> None:
    assert canonical_skills_dir() == tmp_path / ".agents" / "skills"

    monkeypatch.setenv("AGENTS_HOME", str(tmp_path / "elsewhere"))

    assert canonical_skills_dir() == tmp_path / "elsewhere" / "skills"


def test_link_paths_per_scope(make_provider, project_dir: Path) -> None:
    provider = make_provider("cursor")

    assert resolve_skill_link_path(provider, "lint", True) == provider.path_skills / "lint"
    assert resolve_skill_link_path(provider, "lint", False, project_dir) == (
        project_dir / ".cursor" / "skills" / "lint"
    )


def test_install_copies_canonical_and_links_each_provider(
    make_provider, skill_source: Path, project_dir: Path
) -> None:
    providers = [make_provider("one"), make_provider("two")]
    installer = SkillInstaller()

    result = installer.install(skill_source, "code-review", providers, False, project_dir)

    assert result.success is True
    assert result.errors == []
    assert result.linked_agents == ["one", "two"]
    assert (result.canonical_path / "SKILL.md").is_file()
    for provider in providers:
        link = project_dir / f".{provider.id}" / "skills" / "code-review"
        assert link.is_symlink()
        assert (link / "SKILL.md").read_text(encoding="utf-8").startswith("---")
    assert installer.list_canonical() == ["code-review"]


def test_install_replaces_existing_canonical_copy(
    make_provider, skill_source: Path
) -> None:
    installer = SkillInstaller()
    stale = installer.canonical_path("code-review")
    stale.mkdir(parents=True)
    (stale / "old.txt").write_text("stale", encoding="utf-8")

    installer.install(skill_source, "code-review", [make_provider("one")], True)

    assert not (stale / "old.txt").exists()
    assert (stale / "SKILL.md").is_file()


def test_remove_unlinks_and_drops_canonical(make_provider, skill_source: Path) -> None:
    provider = make_provider("one")
    installer = SkillInstaller()
    installer.install(skill_source, "code-review", [provider], True)

    removed = installer.remove("code-review", [provider, make_provider("never")], True)

    assert removed.removed == ["one"]
    assert removed.errors == []
    assert not (provider.path_skills / "code-review").exists()
    assert installer.list_canonical() == []


def test_manifest_name_and_fallback(tmp_path: Path, skill_source: Path) -> None:
    manifest = parse_skill_manifest(skill_source)
    bare = tmp_path / "bare-skill"
    bare.mkdir()

    assert manifest is not None
    assert manifest.name == "code-review"
    assert manifest.description == "Review diffs"
    assert parse_skill_manifest(bare) is None
    assert default_skill_name(bare) == "bare-skill"
