from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable

import yaml

from ..errors import DocumentParseError
from .document import ValuesDocument
from .preprocess import normalize_yaml_input
from .scalars import normalize_scalar

EMPTY_IMAGES_YAML = "# No image data found in values.yaml\n"
ROOT_KEY = "root"

_DIGITS_RE = re.compile(r"(\d+)")


@dataclass(frozen=True)
class ImageEntry:
    repository: str
    tag: str

    def to_json(self) -> dict[str, str]:
        return {"repository": self.repository, "tag": self.tag}


@dataclass
class ImageGroup:
    repository: str
    tag: str
    paths: list[str] = field(default_factory=list)

    @property
    def reference(self) -> str:
        return f"{self.repository}:{self.tag}"


def natural_key(value: str) -> list[Any]:
    """Sort key comparing digit runs numerically, `services.2` before `services.10`."""
    return [int(part) if part.isdigit() else part.lower() for part in _DIGITS_RE.split(value)]


def extract_image_entries(values_yaml: str) -> list[tuple[str, ImageEntry]]:
    """Collect every `image: {repository, tag}` block of a chart's values file."""
    data = ValuesDocument.parse(normalize_yaml_input(values_yaml)).to_data()
    found: dict[str, ImageEntry] = {}
    _collect_images(data, [], found)
    return sorted(found.items(), key=lambda item: natural_key(item[0]))


def _collect_images(node: Any, path: list[str], acc: dict[str, ImageEntry]) -> None:
    if isinstance(node, list):
        for index, item in enumerate(node):
            _collect_images(item, [*path, str(index)], acc)
        return
    if not isinstance(node, dict):
        return

    image = node.get("image")
    if isinstance(image, dict):
        repository = image.get("repository")
        tag = image.get("tag")
        if isinstance(repository, str) and not isinstance(tag, bool) and isinstance(tag, (str, int, float)):
            acc[".".join(path) or ROOT_KEY] = ImageEntry(repository=repository, tag=normalize_scalar(tag) or "")

    for key, value in node.items():
        if key == "image":
            continue
        _collect_images(value, [*path, str(key)], acc)


def build_images_yaml(entries: Iterable[tuple[str, ImageEntry]]) -> str:
    mapping = {key: entry.to_json() for key, entry in entries}
    if not mapping:
        return EMPTY_IMAGES_YAML
    return yaml.safe_dump(mapping, sort_keys=False, default_flow_style=False, allow_unicode=True)


def load_image_map(text: str) -> dict[str, Any]:
    """Read an image map file (YAML or JSON) keeping every scalar as text."""
    try:
        data = yaml.load(normalize_yaml_input(text), Loader=yaml.BaseLoader)
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark
        message = exc.problem or str(exc)
        if mark is None:
            raise DocumentParseError(message) from exc
        raise DocumentParseError(message, line=mark.line + 1, column=mark.column + 1) from exc
    except yaml.YAMLError as exc:
        raise DocumentParseError(str(exc)) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DocumentParseError("image map root must be a mapping")
    return data


def dedupe_image_entries(entries: Iterable[tuple[str, ImageEntry]]) -> list[ImageGroup]:
    """Merge entries pointing at the same `repository:tag`, keeping every path."""
    groups: dict[str, ImageGroup] = {}
    for path_key, entry in entries:
        group = groups.setdefault(entry_id(entry), ImageGroup(repository=entry.repository, tag=entry.tag))
        normalized = path_key or ROOT_KEY
        if normalized not in group.paths:
            group.paths.append(normalized)
    for group in groups.values():
        group.paths.sort(key=natural_key)
    return list(groups.values())


def entry_id(entry: ImageEntry) -> str:
    return f"{entry.repository}:{entry.tag}"


def resolve_target_image_name(repository: str) -> str:
    return repository.split("/")[-1]
