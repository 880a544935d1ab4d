from __future__ import annotations

import re

_BOM = "\ufeff"
_LEADING_TABS_RE = re.compile(r"^\t+", re.MULTILINE)


def normalize_yaml_input(raw: str) -> str:
    """Sanitize user-provided values text before parsing.

    Drops a leading byte-order mark, turns CRLF into LF and replaces the tabs
    that open a line with two spaces each. Tabs after the first other
    character of a line are left alone.
    """
    text = raw[1:] if raw.startswith(_BOM) else raw
    text = text.replace("\r\n", "\n")
    return _LEADING_TABS_RE.sub(lambda m: "  " * len(m.group(0)), text)
