"""Placeholder engine — ``{{ key }}`` substitution in subjects and bodies.

Pure text processing. Keys not present in the value map are left exactly as
written so that a typo in a stored template stays visible in the sent mail.
"""

import re
from collections.abc import Mapping

PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")


def replace_placeholders(text: str | None, values: Mapping) -> str:
    if not text:
        return ""

    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key not in values:
            return match.group(0)
        value = values[key]
        return "" if value is None else str(value)

    return PLACEHOLDER.sub(substitute, text)


def referenced_keys(*texts: str | None) -> set[str]:
    """Placeholder names used anywhere in ``texts``."""
    keys: set[str] = set()
    for text in texts:
        if text:
            keys.update(PLACEHOLDER.findall(text))
    return keys
