"""Managed instruction blocks inside agent instruction files (AGENTS.md, CLAUDE.md, ...)."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from agent_provisioner.constants import INSTRUCTION_MARKER_END, INSTRUCTION_MARKER_START
from agent_provisioner.models import InjectionAction, InjectionStatus, Scope
from agent_provisioner.registry.models import Provider

logger = logging.getLogger(__name__)

_BLOCK_RE = re.compile(
    re.escape(INSTRUCTION_MARKER_START) + r".*?" + re.escape(INSTRUCTION_MARKER_END),
    re.DOTALL,
)


@dataclass(frozen=True)
class InjectionCheckResult:
    file: Path
    provider_id: str
    status: InjectionStatus
    file_exists: bool

    def as_dict(self) -> dict[str, Any]:
        return {
            "file": str(self.file),
            "providerId": self.provider_id,
            "status": self.status.value,
            "fileExists": self.file_exists,
        }


def build_block(content: str) -> str:
    return f"{INSTRUCTION_MARKER_START}\n{content}\n{INSTRUCTION_MARKER_END}"


def extract_block(text: str) -> Optional[str]:
    match = _BLOCK_RE.search(text)
    if match is None:
        return None
    inner = match.group(0)[len(INSTRUCTION_MARKER_START) : -len(INSTRUCTION_MARKER_END)]
    return inner.strip()


def instruction_file_path(
    provider: Provider, scope: Scope, project_dir: Optional[Path] = None
) -> Path:
    if Scope(scope) == Scope.GLOBAL:
        base = provider.path_global or provider.config_path_global.parent
        return base / provider.instruct_file
    return (project_dir or Path.cwd()) / provider.instruct_file


def check_injection(path: Path, expected_content: Optional[str] = None) -> InjectionStatus:
    if not path.exists():
        return InjectionStatus.MISSING
    block = extract_block(path.read_text(encoding="utf-8"))
    if block is None:
        return InjectionStatus.NONE
    if expected_content is not None and block != expected_content.strip():
        return InjectionStatus.OUTDATED
    return InjectionStatus.CURRENT


def inject(path: Path, content: str) -> InjectionAction:
    block = build_block(content)
    path.parent.mkdir(parents=True, exist_ok=True)

    if not path.exists():
        path.write_text(block + "\n", encoding="utf-8")
        return InjectionAction.CREATED

    existing = path.read_text(encoding="utf-8")
    if _BLOCK_RE.search(existing):
        path.write_text(_BLOCK_RE.sub(lambda _: block, existing, count=1), encoding="utf-8")
        return InjectionAction.UPDATED

    path.write_text(block + "\n\n" + existing, encoding="utf-8")
    return InjectionAction.ADDED


def remove_injection(path: Path) -> bool:
    if not path.exists():
        return False
    text = path.read_text(encoding="utf-8")
    if not _BLOCK_RE.search(text):
        return False

    cleaned = _BLOCK_RE.sub("", text).strip()
    if cleaned:
        path.write_text(cleaned + "\n", encoding="utf-8")
    else:
        path.unlink()
    return True


def group_by_instruct_file(providers: Iterable[Provider]) -> dict[str, list[Provider]]:
    groups: dict[str, list[Provider]] = {}
    for provider in providers:
        groups.setdefault(provider.instruct_file, []).append(provider)
    return groups


def check_all_injections(
    providers: Iterable[Provider],
    scope: Scope,
    project_dir: Optional[Path] = None,
    expected_content: Optional[str] = None,
) -> list[InjectionCheckResult]:
    seen: set[Path] = set()
    results: list[InjectionCheckResult] = []
    for provider in providers:
        path = instruction_file_path(provider, scope, project_dir)
        if path in seen:
            continue
        seen.add(path)
        results.append(
            InjectionCheckResult(
                file=path,
                provider_id=provider.id,
                status=check_injection(path, expected_content),
                file_exists=path.exists(),
            )
        )
    return results


def inject_all(
    providers: Iterable[Provider],
    scope: Scope,
    content: str,
    project_dir: Optional[Path] = None,
) -> dict[Path, InjectionAction]:
    """Inject ``content`` once per distinct instruction file, in provider order."""
    actions: dict[Path, InjectionAction] = {}
    for provider in providers:
        path = instruction_file_path(provider, scope, project_dir)
        if path in actions:
            continue
        actions[path] = inject(path, content)
        logger.info("Instructions %s in %s", actions[path].value, path)
    return actions
