import tomllib
from pathlib import Path
from typing import Any

import tomli_w

from agent_provisioner.formats.utils import deep_merge, delete_nested_entry, nest_entry


def _strip_nulls(value: Any) -> Any:
    # TOML has no null; unset keys are dropped instead.
    if isinstance(value, dict):
        return {
            str(key): _strip_nulls(item)
            for key, item in value.items()
            if item is not None
        }
    if isinstance(value, list):
        return [_strip_nulls(item) for item in value if item is not None]
    return value


def read_toml_config(path: Path) -> dict[str, Any]:
    if not path.exists() or path.stat().st_size == 0:
        return {}
    return tomllib.loads(path.read_text(encoding="utf-8"))


def serialize_toml(payload: dict[str, Any]) -> str:
    return tomli_w.dumps(_strip_nulls(payload))


def write_toml_config(path: Path, key: str, name: str, value: Any) -> None:
    merged = deep_merge(read_toml_config(path), nest_entry(key, name, value))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_toml(merged), encoding="utf-8")


def remove_toml_config(path: Path, key: str, name: str) -> bool:
    if not path.exists():
        return False
    payload = read_toml_config(path)
    if not delete_nested_entry(payload, key, name):
        return False
    path.write_text(serialize_toml(payload), encoding="utf-8")
    return True
