from pathlib import Path
from typing import Any

import yaml

from agent_provisioner.formats.utils import deep_merge, delete_nested_entry, nest_entry


def _dump(payload: dict[str, Any]) -> str:
    return yaml.safe_dump(
        payload,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=4096,
    )


def read_yaml_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    payload = yaml.safe_load(text)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("root value must be a mapping")
    return payload


def write_yaml_config(path: Path, key: str, name: str, value: Any) -> None:
    merged = deep_merge(read_yaml_config(path), nest_entry(key, name, value))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_dump(merged), encoding="utf-8")


def remove_yaml_config(path: Path, key: str, name: str) -> bool:
    if not path.exists():
        return False
    payload = read_yaml_config(path)
    if not delete_nested_entry(payload, key, name):
        return False
    path.write_text(_dump(payload), encoding="utf-8")
    return True
