from __future__ import annotations

import re
from typing import Union

PathSegment = Union[str, int]

_INDEX_RE = re.compile(r"[0-9]+")


def classify_segment(segment: str) -> PathSegment:
    """Digit-only segments address sequence items, everything else a mapping key."""
    if _INDEX_RE.fullmatch(segment):
        return int(segment)
    return segment


def key_to_path_segments(key: str) -> list[PathSegment]:
    return [classify_segment(segment) for segment in key.split(".")]


def format_path(path: list[PathSegment]) -> str:
    return ".".join(str(segment) for segment in path)
