from __future__ import annotations

from pathlib import Path

from ..errors import ScriptError
from ..exit_codes import ERR_USAGE


def read_text(path: str | Path) -> str:
    """Read UTF-8 text without newline translation."""
    try:
        with Path(path).open(encoding="utf-8", newline="") as handle:
            return handle.read()
    except UnicodeDecodeError as exc:
        raise ScriptError(f"unable to read {path}: not valid UTF-8 ({exc.reason} at byte {exc.start})", ERR_USAGE) from exc
    except OSError as exc:
        raise ScriptError(f"unable to read {path}: {exc.strerror or exc}", ERR_USAGE) from exc


def write_text(path: str | Path, content: str) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(content, encoding="utf-8")
    return out
