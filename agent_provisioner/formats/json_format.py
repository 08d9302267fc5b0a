"""JSON / JSONC config files.

Both formats go through the same comment-aware parser. Writes are surgical:
only the text of the targeted entry is replaced, inserted or removed, so
comments, key order and indentation elsewhere in the file are kept.
"""

import json
import re
from dataclasses import dataclass, field
from json.decoder import scanstring
from pathlib import Path
from typing import Any, Optional, Sequence

_WHITESPACE = " \t\r\n\ufeff"
_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_LITERALS = {"true": True, "false": False, "null": None}


class JsoncParseError(ValueError):
    def __init__(self, message: str, offset: int) -> None:
        self.offset = offset
        super().__init__(f"{message} at offset {offset}")


@dataclass
class _Node:
    start: int
    end: int
    value: Any
    is_object: bool = False
    members: list["_Member"] = field(default_factory=list)


@dataclass
class _Member:
    key: str
    key_start: int
    node: _Node
    comma_end: Optional[int] = None


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def parse_document(self) -> _Node:
        self._skip()
        node = self._parse_value()
        self._skip()
        if self.pos != len(self.text):
            raise JsoncParseError("unexpected trailing content", self.pos)
        return node

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _skip(self) -> None:
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char in _WHITESPACE:
                self.pos += 1
            elif text.startswith("//", self.pos):
                newline = text.find("\n", self.pos)
                self.pos = len(text) if newline == -1 else newline + 1
            elif text.startswith("/*", self.pos):
                close = text.find("*/", self.pos + 2)
                if close == -1:
                    raise JsoncParseError("unterminated comment", self.pos)
                self.pos = close + 2
            else:
                return

    def _parse_value(self) -> _Node:
        char = self._peek()
        if char == "{":
            return self._parse_object()
        if char == "[":
            return self._parse_array()
        if char == '"':
            start = self.pos
            value = self._parse_string()
            return _Node(start=start, end=self.pos, value=value)
        return self._parse_scalar()

    def _parse_string(self) -> str:
        try:
            value, end = scanstring(self.text, self.pos + 1)
        except json.JSONDecodeError as exc:
            raise JsoncParseError(exc.msg, exc.pos) from exc
        self.pos = end
        return value

    def _parse_scalar(self) -> _Node:
        start = self.pos
        for literal, value in _LITERALS.items():
            if self.text.startswith(literal, start):
                self.pos = start + len(literal)
                return _Node(start=start, end=self.pos, value=value)
        match = _NUMBER.match(self.text, start)
        if match is None or match.end() == start:
            raise JsoncParseError("unexpected character", start)
        self.pos = match.end()
        return _Node(start=start, end=self.pos, value=json.loads(match.group(0)))

    def _parse_object(self) -> _Node:
        node = _Node(start=self.pos, end=self.pos, value={}, is_object=True)
        self.pos += 1
        while True:
            self._skip()
            char = self._peek()
            if char == "}":
                break
            if char != '"':
                raise JsoncParseError("expected property name", self.pos)
            key_start = self.pos
            key = self._parse_string()
            self._skip()
            if self._peek() != ":":
                raise JsoncParseError("expected ':'", self.pos)
            self.pos += 1
            self._skip()
            member = _Member(key=key, key_start=key_start, node=self._parse_value())
            node.members.append(member)
            node.value[key] = member.node.value
            self._skip()
            char = self._peek()
            if char == ",":
                self.pos += 1
                member.comma_end = self.pos
                continue
            if char != "}":
                raise JsoncParseError("expected ',' or '}'", self.pos)
            break
        self.pos += 1
        node.end = self.pos
        return node

    def _parse_array(self) -> _Node:
        node = _Node(start=self.pos, end=self.pos, value=[])
        self.pos += 1
        while True:
            self._skip()
            if self._peek() == "]":
                break
            node.value.append(self._parse_value().value)
            self._skip()
            char = self._peek()
            if char == ",":
                self.pos += 1
                continue
            if char != "]":
                raise JsoncParseError("expected ',' or ']'", self.pos)
            break
        self.pos += 1
        node.end = self.pos
        return node


def parse_jsonc(text: str) -> Any:
    return _Parser(text).parse_document().value


def _parse_root(text: str) -> _Node:
    root = _Parser(text).parse_document()
    if not root.is_object:
        raise JsoncParseError("root value must be an object", root.start)
    return root


def detect_indent(text: str) -> str:
    for line in text.splitlines():
        match = re.match(r"^[ \t]+", line)
        if match and line.strip():
            whitespace = match.group(0)
            return "\t" if whitespace.startswith("\t") else whitespace
    return "  "


def _line_indent(text: str, offset: int) -> str:
    line_start = text.rfind("\n", 0, offset) + 1
    match = re.match(r"[ \t]*", text[line_start:offset])
    return match.group(0) if match else ""


def _format_value(value: Any, unit: str, indent: str) -> str:
    rendered = json.dumps(value, indent=unit, ensure_ascii=False)
    return rendered.replace("\n", "\n" + indent)


def _nest(path: Sequence[str], value: Any) -> Any:
    for part in reversed(path):
        value = {part: value}
    return value


def _find_member(node: _Node, key: str) -> Optional[_Member]:
    # Duplicate keys resolve to the last occurrence, like json.loads.
    for member in reversed(node.members):
        if member.key == key:
            return member
    return None


def _insert_member(text: str, node: _Node, key: str, value: Any, unit: str) -> str:
    if not node.members:
        parent_indent = _line_indent(text, node.start)
        child_indent = parent_indent + unit
        entry = f"{json.dumps(key)}: {_format_value(value, unit, child_indent)}"
        inner = text[node.start + 1 : node.end - 1]
        if not inner.strip():
            inner = ""
        tail = inner if inner else "\n" + parent_indent
        return (
            text[: node.start + 1]
            + "\n"
            + child_indent
            + entry
            + tail
            + text[node.end - 1 :]
        )

    last = node.members[-1]
    indent = _line_indent(text, last.key_start)
    entry = f"{json.dumps(key)}: {_format_value(value, unit, indent)}"

    if last.comma_end is not None:
        return text[: last.comma_end] + "\n" + indent + entry + "," + text[last.comma_end :]

    value_end = last.node.end
    line_end = text.find("\n", value_end)
    if line_end == -1:
        line_end = len(text)
    rest = text[value_end:line_end].strip()
    if not rest or rest.startswith("//"):
        return (
            text[:value_end]
            + ","
            + text[value_end:line_end]
            + "\n"
            + indent
            + entry
            + text[line_end:]
        )
    return text[:value_end] + ", " + entry + text[value_end:]


def modify_jsonc_text(text: str, path: Sequence[str], value: Any) -> str:
    """Return ``text`` with the value at ``path`` set, creating parents as needed."""
    if not text.strip():
        text = "{}"
    unit = detect_indent(text)
    node = _parse_root(text)

    for depth, segment in enumerate(path):
        member = _find_member(node, segment)
        remaining = path[depth + 1 :]
        if member is None:
            return _insert_member(text, node, segment, _nest(remaining, value), unit)
        if remaining and member.node.is_object:
            node = member.node
            continue
        target = _nest(remaining, value)
        indent = _line_indent(text, member.key_start)
        return (
            text[: member.node.start]
            + _format_value(target, unit, indent)
            + text[member.node.end :]
        )
    return text


def remove_jsonc_text(text: str, path: Sequence[str]) -> Optional[str]:
    """Return ``text`` without the entry at ``path``, or None if it is absent."""
    if not text.strip() or not path:
        return None
    node = _parse_root(text)
    for segment in path[:-1]:
        member = _find_member(node, segment)
        if member is None or not member.node.is_object:
            return None
        node = member.node

    member = _find_member(node, path[-1])
    if member is None:
        return None

    if len(node.members) == 1:
        return text[: node.start + 1] + text[node.end - 1 :]

    index = node.members.index(member)
    if index < len(node.members) - 1:
        start = member.key_start
        end = node.members[index + 1].key_start
    else:
        start = node.members[index - 1].node.end
        end = member.comma_end if member.comma_end is not None else member.node.end
    return text[:start] + text[end:]


def _with_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


def read_json_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    return _parse_root(text).value


def write_json_config(path: Path, key: str, name: str, value: Any) -> None:
    text = path.read_text(encoding="utf-8") if path.exists() else ""
    updated = modify_jsonc_text(text, [*key.split("."), name], value)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_with_newline(updated), encoding="utf-8")


def remove_json_config(path: Path, key: str, name: str) -> bool:
    if not path.exists():
        return False
    text = path.read_text(encoding="utf-8")
    updated = remove_jsonc_text(text, [*key.split("."), name])
    if updated is None:
        return False
    path.write_text(_with_newline(updated), encoding="utf-8")
    return True
