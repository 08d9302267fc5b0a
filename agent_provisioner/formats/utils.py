from typing import Any


def deep_merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Merge ``source`` into a copy of ``target``; nested dicts merge, everything else replaces."""
    result = dict(target)
    for key, source_value in source.items():
        target_value = target.get(key)
        if isinstance(source_value, dict) and isinstance(target_value, dict):
            result[key] = deep_merge(target_value, source_value)
        else:
            result[key] = source_value
    return result


def nest_entry(key_path: str, name: str, value: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {name: value}
    for part in reversed(key_path.split(".")):
        entry = {part: entry}
    return entry


def get_nested_value(payload: dict[str, Any], key_path: str) -> Any:
    current: Any = payload
    for part in key_path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def set_nested_value(
    payload: dict[str, Any], key_path: str, name: str, value: Any
) -> dict[str, Any]:
    return deep_merge(payload, nest_entry(key_path, name, value))


def delete_nested_entry(payload: dict[str, Any], key_path: str, name: str) -> bool:
    section = get_nested_value(payload, key_path)
    if not isinstance(section, dict) or name not in section:
        return False
    del section[name]
    return True
