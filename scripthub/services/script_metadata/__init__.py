"""Userscript / userstyle meta block parsing."""

from scripthub.services.script_metadata.parser import (
    parse_meta,
    localized_meta_values,
    compare_versions,
    missing_version_string,
)

__all__ = [
    "parse_meta",
    "localized_meta_values",
    "compare_versions",
    "missing_version_string",
]
