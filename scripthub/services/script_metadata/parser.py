"""Parser for the metadata block at the top of a userscript or userstyle.

    // ==UserScript==
    // @name        Example
    // @name:fr     Exemple
    // @version     1.2
    // ==/UserScript==
"""

import re
from datetime import datetime

JS_META_START = "==UserScript=="
JS_META_END = "==/UserScript=="
CSS_META_START = "==UserStyle=="
CSS_META_END = "==/UserStyle=="

_JS_META_LINE = re.compile(r"^\s*//\s*@(\S+)(?:\s+(.*))?$")
_CSS_META_LINE = re.compile(r"^\s*@(\S+)(?:\s+(.*))?$")


def _meta_block(code: str, language: str) -> list[str] | None:
    start_marker, end_marker = (
        (CSS_META_START, CSS_META_END) if language == "css" else (JS_META_START, JS_META_END)
    )
    start = code.find(start_marker)
    if start == -1:
        return None
    end = code.find(end_marker, start)
    if end == -1:
        return None
    return code[start + len(start_marker):end].splitlines()


def parse_meta(code: str | None, language: str = "js") -> dict[str, list[str]] | None:
    """Return meta keys (without '@') mapped to their values, in order.

    Returns None when the code has no complete meta block.
    """
    if not code:
        return None

    lines = _meta_block(code, language)
    if lines is None:
        return None

    line_pattern = _CSS_META_LINE if language == "css" else _JS_META_LINE
    meta: dict[str, list[str]] = {}
    for line in lines:
        match = line_pattern.match(line)
        if not match:
            continue
        key, value = match.group(1), (match.group(2) or "").strip()
        meta.setdefault(key, []).append(value)
    return meta


def localized_meta_values(meta: dict[str, list[str]], key: str) -> dict[str | None, str]:
    """Map locale to value for a localizable key.

    The unlocalized `@name` is returned under None and `@name:fr` under "fr".
    The first non-blank value wins for each locale.
    """
    values: dict[str | None, str] = {}
    prefix = f"{key}:"
    for meta_key, meta_values in meta.items():
        if meta_key == key:
            locale = None
        elif meta_key.startswith(prefix):
            locale = meta_key[len(prefix):]
        else:
            continue
        for value in meta_values:
            if value and locale not in values:
                values[locale] = value
    return values


def _version_parts(version: str) -> list[tuple[int, str]]:
    parts = []
    for part in version.split("."):
        match = re.match(r"^(\d*)(.*)$", part)
        number = int(match.group(1)) if match.group(1) else 0
        parts.append((number, match.group(2)))
    return parts


def compare_versions(left: str, right: str) -> int:
    """Compare dotted version strings; -1, 0 or 1 like cmp().

    Each part compares numerically first, then by its non-numeric suffix,
    where an empty suffix sorts after any pre-release suffix ("1.0" > "1.0b").
    """
    left_parts = _version_parts(left)
    right_parts = _version_parts(right)
    length = max(len(left_parts), len(right_parts))
    left_parts += [(0, "")] * (length - len(left_parts))
    right_parts += [(0, "")] * (length - len(right_parts))

    for (left_number, left_suffix), (right_number, right_suffix) in zip(left_parts, right_parts):
        if left_number != right_number:
            return -1 if left_number < right_number else 1
        if left_suffix != right_suffix:
            if not left_suffix:
                return 1
            if not right_suffix:
                return -1
            return -1 if left_suffix < right_suffix else 1
    return 0


def missing_version_string(now: datetime | None = None) -> str:
    """Version given to code that has none and asked for one to be added."""
    now = now or datetime.utcnow()
    return f"0.0.1.{now.strftime('%Y%m%d%H%M%S')}"
