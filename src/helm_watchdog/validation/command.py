from __future__ import annotations

import argparse

from ..core.context import RunContext
from ..core.fs import read_text
from ..core.serialize import dumps_json
from ..exit_codes import OK
from ..logging import log_event
from ..values.images import extract_image_entries
from .build import plan_variant_checks
from .normalize import count_validation_statuses, filter_missing, normalize_validation_payload


def configure_validation_parser(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("validation", help="read image validation payloads")
    validation_sub = p.add_subparsers(dest="validation_cmd", required=True)

    show_p = validation_sub.add_parser("show", help="print a normalized validation payload")
    show_p.add_argument("file")
    show_p.add_argument("--missing", action="store_true", help="only keep images whose status is missing")
    show_p.add_argument("--json", action="store_true", help="emit JSON output")

    summary_p = validation_sub.add_parser("summary", help="count images per overall status")
    summary_p.add_argument("file")
    summary_p.add_argument("--json", action="store_true", help="emit JSON output")

    plan_p = validation_sub.add_parser("plan", help="list registry references to probe for a values file")
    plan_p.add_argument("file")
    plan_p.add_argument("--json", action="store_true", help="emit JSON output")


def run_validation_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    as_json = ctx.output_format == "json" or bool(getattr(ns, "json", False))
    if ns.validation_cmd == "plan":
        return _run_plan(ctx, ns, as_json)

    payload = normalize_validation_payload(read_text(ns.file))
    if ns.validation_cmd == "summary":
        counts = count_validation_statuses(payload.images)
        if as_json:
            print(dumps_json({"version": payload.version, "counts": counts.to_json()}))
        else:
            print(
                f"version={payload.version} total={counts.total} all_found={counts.all_found} "
                f"partial={counts.partial} missing={counts.missing} error={counts.error}"
            )
        return OK

    if ns.missing:
        payload = filter_missing(payload)
    log_event(ctx, "info", "validation", "show", file=ns.file, images=len(payload.images), missing_only=ns.missing)
    if as_json:
        print(dumps_json(payload.to_json()))
        return OK
    print(f"version {payload.version} checked {payload.checked_at} registry {payload.host}/{payload.namespace}")
    for record in payload.images:
        variants = " ".join(f"{v.name}={v.status}" for v in record.variants)
        print(f"{record.status:<9} {record.target_image_name}:{record.source_tag} {variants}")
    return OK


def _run_plan(ctx: RunContext, ns: argparse.Namespace, as_json: bool) -> int:
    planned = plan_variant_checks(extract_image_entries(read_text(ns.file)), ctx.settings)
    log_event(ctx, "info", "validation", "plan", file=ns.file, checks=len(planned))
    if as_json:
        rows = [
            {
                "targetImageName": check.target_image_name,
                "variant": check.variant,
                "tag": check.tag,
                "image": check.image,
                "source": check.source,
                "paths": list(check.paths),
            }
            for check in planned
        ]
        print(dumps_json({"host": ctx.settings.registry_host, "checks": rows}))
        return OK
    for check in planned:
        print(f"{check.variant:<8} {check.image} <- {check.source}")
    return OK
