"""Values file patching: preprocessing, path resolution and tag reconciliation."""

from .document import ValuesDocument
from .images import ImageEntry, ImageGroup, build_images_yaml, dedupe_image_entries, extract_image_entries
from .paths import key_to_path_segments
from .preprocess import normalize_yaml_input
from .reconcile import ApplyResult, TagChange, apply_image_tag_updates
from .scalars import normalize_scalar

__all__ = [
    "ApplyResult",
    "ImageEntry",
    "ImageGroup",
    "TagChange",
    "ValuesDocument",
    "apply_image_tag_updates",
    "build_images_yaml",
    "dedupe_image_entries",
    "extract_image_entries",
    "key_to_path_segments",
    "normalize_scalar",
    "normalize_yaml_input",
]
