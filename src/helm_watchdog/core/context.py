from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from ..config import WatchdogSettings, load_settings

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    output_format: OutputFormat
    log_json: bool
    verbose: bool
    quiet: bool
    settings: WatchdogSettings

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        output_format: OutputFormat | None = None,
        config_path: str | None = None,
        verbose: bool = False,
        quiet: bool = False,
    ) -> "RunContext":
        default_run = f"watchdog-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:7]}"
        resolved_run_id = run_id or os.environ.get("RUN_ID", default_run)
        env_format = os.environ.get("HELM_WATCHDOG_FORMAT", "")
        resolved_format: OutputFormat = output_format or ("json" if env_format == "json" else "text")
        return cls(
            run_id=resolved_run_id,
            output_format=resolved_format,
            log_json=resolved_format == "json" or os.environ.get("HELM_WATCHDOG_LOG_JSON") == "1",
            verbose=verbose,
            quiet=quiet,
            settings=load_settings(config_path or os.environ.get("HELM_WATCHDOG_CONFIG")),
        )
