from __future__ import annotations


def normalize_scalar(value: object) -> str | None:
    """Coerce a YAML leaf into the string used for comparison and writing.

    Strings pass through unchanged, booleans render as YAML spells them and
    numbers use their decimal form. Anything else (null, mappings, sequences)
    has no scalar form and yields ``None``.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None
