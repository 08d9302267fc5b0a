"""Read the YAML frontmatter of a skill's SKILL.md."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from agent_provisioner.constants import SKILL_MANIFEST_FILENAME

_FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)


@dataclass(frozen=True)
class SkillManifest:
    name: str
    description: str
    path: Path


def manifest_path(skill_dir: Path) -> Path:
    return skill_dir / SKILL_MANIFEST_FILENAME


def parse_skill_manifest(skill_dir: Path) -> SkillManifest | None:
    path = manifest_path(skill_dir)
    if not path.is_file():
        return None

    text = path.read_text(encoding="utf-8")
    match = _FRONTMATTER_RE.match(text)
    raw = (yaml.safe_load(match.group(1)) or {}) if match else {}
    if not isinstance(raw, dict):
        raw = {}

    return SkillManifest(
        name=str(raw.get("name") or skill_dir.name),
        description=str(raw.get("description", "")),
        path=path,
    )


def default_skill_name(skill_dir: Path) -> str:
    manifest = parse_skill_manifest(skill_dir)
    return manifest.name if manifest is not None else skill_dir.name
