"""Reserved metadata fields that imported documents may not set on the host"""

from typing import Any

RESERVED_FIELDS = frozenset({
    # header numbering
    "level-one", "level-two", "level-three", "level-four", "level-five", "level-six",
    "level-indent", "no-reset", "no-indent",
    # metadata export
    "meta-yaml-output", "meta-json-output", "meta-output-path", "meta-include-original",
    # localisation
    "date-format", "dateformat", "timezone", "tz", "locale", "lang",
    # force directives
    "force_commands", "force-commands", "forcecommands", "commands",
    # import control
    "import-tracing", "import-tracing-format", "disable-frontmatter-merge",
    # pipeline control
    "pipeline-config", "pipeline-steps", "processing-options",
    # field tracking
    "enable-field-tracking", "field-tracking-mode",
})


def is_reserved_field(key: str) -> bool:
    """Case-insensitive membership test against RESERVED_FIELDS."""
    return isinstance(key, str) and key.lower() in RESERVED_FIELDS


def find_reserved_fields(metadata: dict[str, Any]) -> list[str]:
    """Return the top-level keys of metadata that are reserved."""
    return [k for k in metadata if is_reserved_field(k)]


def filter_reserved_fields(metadata: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Return (metadata without reserved keys, removed keys)."""
    removed = find_reserved_fields(metadata)
    kept = {k: v for k, v in metadata.items() if k not in removed}
    return kept, removed
