from __future__ import annotations

import argparse
import json
import sys

from . import __version__
from .core.context import RunContext
from .errors import DocumentParseError, ScriptError
from .exit_codes import ERR_INTERNAL, ERR_USAGE
from .logging import log_event
from .validation.command import configure_validation_parser, run_validation_command
from .values.command import configure_values_parser, run_values_command


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="helm-watchdog")
    p.add_argument("--version", action="version", version=f"helm-watchdog {__version__}")
    p.add_argument("--run-id", help="run identifier for log events")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--config", help="settings JSON file (registry host, namespace, variants)")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    configure_values_parser(sub)
    configure_validation_parser(sub)
    return p


def _error_payload(exc: ScriptError) -> dict[str, object]:
    error: dict[str, object] = {"message": str(exc), "code": exc.code, "kind": exc.kind}
    if isinstance(exc, DocumentParseError) and exc.line is not None:
        error["line"] = exc.line
        error["column"] = exc.column
    return {"schema_version": 1, "tool": "helm-watchdog", "status": "fail", "error": error}


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    ns = p.parse_args(argv)
    ctx: RunContext | None = None
    try:
        ctx = RunContext.from_args(ns.run_id, ns.format, ns.config, ns.verbose, ns.quiet)
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "values":
            return run_values_command(ctx, ns)
        if ns.cmd == "validation":
            return run_validation_command(ctx, ns)
        return ERR_USAGE
    except ScriptError as exc:
        if ctx is not None:
            log_event(ctx, "error", "cli", "failed", cmd=ns.cmd, kind=exc.kind, code=exc.code)
        if ctx is not None and ctx.output_format == "json":
            print(json.dumps(_error_payload(exc), sort_keys=True), file=sys.stderr)
        else:
            print(str(exc), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        if ctx is not None and ctx.output_format == "json":
            print(
                json.dumps(
                    {
                        "schema_version": 1,
                        "tool": "helm-watchdog",
                        "status": "fail",
                        "error": {"message": f"internal error: {exc}", "code": ERR_INTERNAL},
                    },
                    sort_keys=True,
                ),
                file=sys.stderr,
            )
        else:
            print(f"internal error: {exc}", file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
