"""Minimal-diff YAML document used to patch user-authored values files.

The document is parsed only up to the representation graph, so every node
still knows where it came from in the source text. Writes replace the text of
the targeted node and nothing else; serializing an unedited document returns
the source unchanged.
"""

from __future__ import annotations

import json
import re
from typing import Any

import yaml
from ruamel.yaml import YAML
from ruamel.yaml.error import MarkedYAMLError, YAMLError
from ruamel.yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from ..errors import DocumentParseError
from .paths import PathSegment, format_path

_NULL_TAG = "tag:yaml.org,2002:null"
_BOOL_TAG = "tag:yaml.org,2002:bool"
_INT_TAG = "tag:yaml.org,2002:int"

_DECIMAL_RE = re.compile(r"-?(0|[1-9][0-9]*)")
_PLAIN_SAFE_RE = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.+@/-]*")
_STR_TAG = "tag:yaml.org,2002:str"
_YAML11_RESOLVER = yaml.resolver.Resolver()
# Anything go-yaml (Helm) or a YAML 1.2 reader could take for a number, `08` and `1e3` included.
_NUMBER_LIKE_RE = re.compile(r"0o[0-7_]+|0x[0-9a-fA-F_]+|[0-9][0-9_]*(\.[0-9_]*)?([eE][-+]?[0-9]+)?")
# YAML 1.1 booleans PyYAML does not resolve.
_BOOL_LETTERS = {"y", "n"}
# Anchor and tag properties written in front of a scalar.
_PROPERTIES_RE = re.compile(r"(?:(?:&\S+|!\S*)\s+)*")


class ValuesDocument:
    """Parsed values file exposing ``has``/``get``/``set``/``dump``.

    Paths are lists of segments: ``str`` segments address mapping keys and
    ``int`` segments address sequence items (see ``key_to_path_segments``).
    Duplicate mapping keys are tolerated and resolve to the last occurrence.
    """

    def __init__(self, text: str, root: Node | None) -> None:
        self._text = text
        self._root = root
        self._edits: dict[int, tuple[int, str]] = {}
        self._overrides: dict[int, str] = {}

    @classmethod
    def parse(cls, text: str) -> "ValuesDocument":
        yaml = YAML(typ="rt")
        try:
            root = yaml.compose(text)
        except MarkedYAMLError as exc:
            mark = exc.problem_mark or exc.context_mark
            message = exc.problem or exc.context or str(exc)
            if mark is None:
                raise DocumentParseError(message) from exc
            raise DocumentParseError(message, line=mark.line + 1, column=mark.column + 1) from exc
        except YAMLError as exc:
            raise DocumentParseError(str(exc)) from exc
        return cls(text, root)

    @property
    def source(self) -> str:
        return self._text

    @property
    def edited(self) -> bool:
        return bool(self._edits)

    def has(self, path: list[PathSegment]) -> bool:
        return self._resolve(path)[2] is not None

    def get(self, path: list[PathSegment]) -> Any:
        node = self._resolve(path)[2]
        if node is None:
            return None
        return self._to_data(node)

    def set(self, path: list[PathSegment], value: str) -> None:
        key_node, _, node = self._resolve(path)
        if node is None:
            raise KeyError(format_path(path))
        if self._overrides.get(id(node)) == value:
            return
        start, end = node.start_mark.index, node.end_mark.index
        source = self._text[start:end]
        if isinstance(node, ScalarNode) and not source:
            start = end = self._empty_value_offset(key_node, start)
            replacement = " " + _render_scalar(value, None)
        else:
            prefix = _PROPERTIES_RE.match(source).group(0)
            body = source[len(prefix):]
            stripped = body.rstrip()
            replacement = prefix + _render_scalar(value, node) + body[len(stripped):]
        for other in [s for s, (e, _) in self._edits.items() if start <= s and e <= end and (s, e) != (start, end)]:
            del self._edits[other]
        self._edits[start] = (end, replacement)
        self._overrides[id(node)] = value

    def dump(self) -> str:
        out = self._text
        for start in sorted(self._edits, reverse=True):
            end, replacement = self._edits[start]
            out = out[:start] + replacement + out[end:]
        return out

    def to_data(self) -> Any:
        """Plain Python view of the whole document (``None`` when empty)."""
        if self._root is None:
            return None
        return self._to_data(self._root)

    def _resolve(self, path: list[PathSegment]) -> tuple[Node | None, Node | None, Node | None]:
        key_node: Node | None = None
        parent: Node | None = None
        node = self._root
        for segment in path:
            # a replaced collection is a scalar now and has no children
            if node is None or id(node) in self._overrides:
                return None, None, None
            parent = node
            key_node, node = _child(node, segment)
            if node is not None and self._inside_edit(node):
                return None, None, None
        return key_node, parent, node

    def _inside_edit(self, node: Node) -> bool:
        """True when an earlier edit replaced a span enclosing ``node``."""
        start, end = node.start_mark.index, node.end_mark.index
        for s, (e, _) in self._edits.items():
            if (s, e) == (start, end) or not (s <= start and end <= e):
                continue
            if start < end or s < start < e:
                return True
        return False

    def _empty_value_offset(self, key_node: Node | None, fallback: int) -> int:
        if key_node is None:
            return fallback
        colon = self._text.find(":", key_node.end_mark.index)
        return fallback if colon < 0 else colon + 1

    def _to_data(self, node: Node) -> Any:
        if id(node) in self._overrides:
            return self._overrides[id(node)]
        if isinstance(node, ScalarNode):
            return _scalar_value(node)
        if isinstance(node, SequenceNode):
            return [self._to_data(item) for item in node.value]
        if isinstance(node, MappingNode):
            data: dict[str, Any] = {}
            for source in _merge_sources(node):
                merged = self._to_data(source)
                if not isinstance(merged, dict):
                    continue
                for key, value in merged.items():
                    data.setdefault(key, value)
            explicit: dict[str, Any] = {}
            for key_node, value_node in node.value:
                if not isinstance(key_node, ScalarNode) or _is_merge_key(key_node):
                    continue
                explicit[key_node.value] = self._to_data(value_node)
            data.update(explicit)
            return data
        return None


def _child(node: Node, segment: PathSegment) -> tuple[Node | None, Node | None]:
    if isinstance(node, SequenceNode):
        if isinstance(segment, int) and 0 <= segment < len(node.value):
            return None, node.value[segment]
        return None, None
    if not isinstance(node, MappingNode):
        return None, None
    wanted = str(segment)
    for key_node, value_node in reversed(node.value):
        if isinstance(key_node, ScalarNode) and not _is_merge_key(key_node) and key_node.value == wanted:
            return key_node, value_node
    for source in _merge_sources(node):
        found = _child(source, segment)
        if found[1] is not None:
            return found
    return None, None


def _is_merge_key(node: ScalarNode) -> bool:
    return node.style is None and node.value == "<<"


def _merge_sources(node: MappingNode) -> list[MappingNode]:
    sources: list[MappingNode] = []
    for key_node, value_node in node.value:
        if not isinstance(key_node, ScalarNode) or not _is_merge_key(key_node):
            continue
        if isinstance(value_node, MappingNode):
            sources.append(value_node)
        elif isinstance(value_node, SequenceNode):
            sources.extend(item for item in value_node.value if isinstance(item, MappingNode))
    return sources


def _scalar_value(node: ScalarNode) -> Any:
    if node.style is not None:
        return node.value
    tag = str(node.tag)
    if tag == _NULL_TAG:
        return None
    if tag == _BOOL_TAG:
        return node.value.lower() == "true"
    if tag == _INT_TAG and _DECIMAL_RE.fullmatch(node.value):
        return int(node.value)
    # floats and non-canonical ints keep their source spelling: `1.10` is a tag, not 1.1
    return node.value


def _render_scalar(value: str, node: Node | None) -> str:
    style = node.style if isinstance(node, ScalarNode) else None
    if style == "'" and "\n" not in value:
        return "'" + value.replace("'", "''") + "'"
    if style != '"' and _reads_back_as_string(value):
        return value
    return json.dumps(value, ensure_ascii=False)


def _reads_back_as_string(value: str) -> bool:
    """True when `value` written plain is still a string to YAML 1.1 and 1.2 readers."""
    if not _PLAIN_SAFE_RE.fullmatch(value):
        return False
    if value.lower() in _BOOL_LETTERS or _NUMBER_LIKE_RE.fullmatch(value):
        return False
    return _YAML11_RESOLVER.resolve(yaml.nodes.ScalarNode, value, (True, False)) == _STR_TAG
