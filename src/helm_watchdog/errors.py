from __future__ import annotations

from dataclasses import dataclass

from .exit_codes import ERR_CONFIG, ERR_DOCUMENT, ERR_PAYLOAD


@dataclass
class ScriptError(Exception):
    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


@dataclass
class DocumentParseError(ScriptError):
    """Raised when values text cannot be parsed into a document tree."""

    code: int = ERR_DOCUMENT
    kind: str = "document_parse_error"
    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        return format_yaml_error(self)


@dataclass
class PayloadParseError(ScriptError):
    """Raised when a validation payload is not JSON or lacks required fields."""

    code: int = ERR_PAYLOAD
    kind: str = "payload_parse_error"


@dataclass
class ConfigError(ScriptError):
    code: int = ERR_CONFIG
    kind: str = "config_error"


def format_yaml_error(exc: BaseException) -> str:
    """Render a parse failure for end users, with position info when known."""
    if not isinstance(exc, DocumentParseError):
        return str(exc) or "Failed to process the uploaded values.yaml file."
    if exc.line is None:
        return exc.message
    col = f", col {exc.column}" if exc.column is not None else ""
    return f"{exc.message} (line {exc.line}{col})"
