from __future__ import annotations

import argparse
import sys

from ..core.context import RunContext
from ..core.fs import read_text, write_text
from ..core.serialize import dumps_json
from ..exit_codes import ERR_VALIDATION, OK
from ..logging import log_event
from .images import build_images_yaml, extract_image_entries, load_image_map
from .preprocess import normalize_yaml_input
from .reconcile import ApplyResult, apply_image_tag_updates


def configure_values_parser(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("values", help="inspect and patch chart values files")
    values_sub = p.add_subparsers(dest="values_cmd", required=True)

    norm_p = values_sub.add_parser("normalize", help="print a values file after BOM, newline and tab cleanup")
    norm_p.add_argument("file")

    images_p = values_sub.add_parser("images", help="list image repository/tag blocks of a values file")
    images_p.add_argument("file")
    images_p.add_argument("--json", action="store_true", help="emit JSON output")
    images_p.add_argument("--out", help="write the image map to this path")

    apply_p = values_sub.add_parser("apply", help="patch image tags of a values file from an image map")
    apply_p.add_argument("file")
    apply_p.add_argument("--images", required=True, help="image map (YAML or JSON) keyed by dotted values path")
    apply_p.add_argument("--out", help="write the updated values file to this path")
    apply_p.add_argument("--json", action="store_true", help="emit JSON output")
    apply_p.add_argument("--fail-on-missing", action="store_true", help="exit non-zero when a tag path is missing")


def run_values_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    as_json = ctx.output_format == "json" or bool(getattr(ns, "json", False))
    if ns.values_cmd == "normalize":
        sys.stdout.write(normalize_yaml_input(read_text(ns.file)))
        return OK
    if ns.values_cmd == "images":
        entries = extract_image_entries(read_text(ns.file))
        log_event(ctx, "info", "values", "images", file=ns.file, count=len(entries))
        if as_json:
            rendered = dumps_json({key: entry.to_json() for key, entry in entries})
        else:
            rendered = build_images_yaml(entries).rstrip("\n")
        if ns.out:
            write_text(ns.out, rendered + "\n")
        print(rendered)
        return OK
    if ns.values_cmd == "apply":
        return _run_apply(ctx, ns, as_json)
    return 2


def _run_apply(ctx: RunContext, ns: argparse.Namespace, as_json: bool) -> int:
    image_map = load_image_map(read_text(ns.images))
    result = apply_image_tag_updates(read_text(ns.file), image_map)
    counts = result.counts()
    log_event(ctx, "info", "values", "apply", file=ns.file, entries=len(result.changes), **counts)
    for change in result.changes:
        if change.status == "missing":
            log_event(ctx, "warning", "values", "tag-path-missing", key=change.key, path=change.path)
    if ns.out:
        write_text(ns.out, result.updated_yaml)
    if as_json:
        print(dumps_json(result.to_json()))
    elif ns.out:
        print(render_changes(result))
    else:
        sys.stdout.write(result.updated_yaml)
    if ns.fail_on_missing and counts["missing"]:
        return ERR_VALIDATION
    return OK


def render_changes(result: ApplyResult) -> str:
    lines = []
    for change in result.changes:
        old = change.old_tag if change.old_tag is not None else "-"
        lines.append(f"{change.status:<9} {change.path} {old} -> {change.new_tag}")
    counts = result.counts()
    lines.append(f"updated={counts['updated']} unchanged={counts['unchanged']} missing={counts['missing']}")
    return "\n".join(lines)
