from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

from .document import ValuesDocument
from .paths import PathSegment, format_path, key_to_path_segments
from .preprocess import normalize_yaml_input
from .scalars import normalize_scalar

TagChangeStatus = Literal["updated", "unchanged", "missing"]


@dataclass(frozen=True)
class TagChange:
    key: str
    path: str
    old_tag: str | None
    new_tag: str
    status: TagChangeStatus
    repository: str | None = None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "key": self.key,
            "path": self.path,
            "oldTag": self.old_tag,
            "newTag": self.new_tag,
            "status": self.status,
        }
        if self.repository is not None:
            payload["repository"] = self.repository
        return payload


@dataclass(frozen=True)
class ApplyResult:
    changes: list[TagChange] = field(default_factory=list)
    updated_yaml: str = ""

    def counts(self) -> dict[str, int]:
        out = {"updated": 0, "unchanged": 0, "missing": 0}
        for change in self.changes:
            out[change.status] += 1
        return out

    def to_json(self) -> dict[str, Any]:
        return {
            "changes": [change.to_json() for change in self.changes],
            "updatedYaml": self.updated_yaml,
        }


def tag_path_candidates(segments: list[PathSegment]) -> tuple[list[PathSegment], list[PathSegment]]:
    """Return the nested `image.tag` path and the flat `tag` fallback for a key."""
    return [*segments, "image", "tag"], [*segments, "tag"]


def apply_image_tag_updates(raw_yaml: str, image_map: Mapping[str, Any]) -> ApplyResult:
    """Patch image tags of a values file in place.

    Each image map entry is resolved against ``<key>.image.tag`` first and
    ``<key>.tag`` second. Every entry with a usable tag produces one
    ``TagChange``; the rest of the document is returned byte for byte.
    Raises ``DocumentParseError`` before touching any entry when the text
    does not parse.
    """
    doc = ValuesDocument.parse(normalize_yaml_input(raw_yaml))
    changes: list[TagChange] = []

    for key, entry in image_map.items():
        if not isinstance(entry, Mapping):
            continue
        next_tag = normalize_scalar(entry.get("tag"))
        if not next_tag:
            continue

        image_path, direct_path = tag_path_candidates(key_to_path_segments(str(key)))
        used_path = next((path for path in (image_path, direct_path) if doc.has(path)), None)

        status: TagChangeStatus = "missing"
        previous: str | None = None
        if used_path is not None:
            previous = normalize_scalar(doc.get(used_path))
            status = "unchanged" if previous == next_tag else "updated"
            if status == "updated":
                doc.set(used_path, next_tag)

        changes.append(
            TagChange(
                key=str(key),
                path=format_path(used_path or image_path),
                old_tag=previous,
                new_tag=next_tag,
                status=status,
                repository=normalize_scalar(entry.get("repository")),
            )
        )

    return ApplyResult(changes=changes, updated_yaml=doc.dump())
