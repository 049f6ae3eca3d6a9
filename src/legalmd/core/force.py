"""Force directives: document-supplied settings merged over the host's

A document may carry ``force_commands: "--no-indent --highlight"`` (or a
mapping of the same flags). Only settings that cannot compromise the host
are honoured; everything else is dropped with a warning.
"""

import logging
import shlex
from typing import Any, Optional

from legalmd.config import Settings
from legalmd.core.template.engine import TemplateEngine
from legalmd.core.utils.paths import is_truthy

logger = logging.getLogger(__name__)

DIRECTIVE_KEYS = ("force_commands", "force-commands", "forceCommands")

FORCEABLE_SETTINGS = frozenset({"no_reset", "no_indent", "enable_field_tracking", "skip_headers"})

# flag -> (setting, value when the flag is given)
FLAGS: dict[str, tuple[str, bool]] = {
    "no-reset":              ("no_reset", True),
    "no-indent":             ("no_indent", True),
    "highlight":             ("enable_field_tracking", True),
    "enable-field-tracking": ("enable_field_tracking", True),
    "headers":               ("skip_headers", False),
    "no-headers":            ("skip_headers", True),
    "no-imports":            ("skip_imports", True),
    "no-clauses":            ("skip_clauses", True),
    "no-references":         ("skip_references", True),
    "no-loops":              ("skip_loops", True),
    "no-templates":          ("skip_templates", True),
    "strict":                ("strict_metadata", True),
}


def find_directive(metadata: dict[str, Any]) -> Optional[Any]:
    for key in DIRECTIVE_KEYS:
        if metadata.get(key) not in (None, ""):
            return metadata[key]
    return None


def _setting_name(flag: str) -> str:
    flag = flag.lstrip("-").strip().replace("_", "-")
    if flag in FLAGS:
        return FLAGS[flag][0]
    return flag.replace("-", "_")


def parse_force_directive(value: Any, metadata: dict[str, Any]) -> dict[str, Any]:
    """Turn a directive string or mapping into {setting: value}; templates in strings are rendered first."""
    overrides: dict[str, Any] = {}
    if isinstance(value, dict):
        for flag, flag_value in value.items():
            given = FLAGS.get(str(flag).lstrip("-").replace("_", "-"))
            if given:
                setting, on = given
                overrides[setting] = on if is_truthy(flag_value) else not on
            else:
                overrides[_setting_name(str(flag))] = flag_value
        return overrides

    text = TemplateEngine().render(str(value), metadata)
    try:
        tokens = shlex.split(text)
    except ValueError as e:
        logger.warning(f"Ignoring unparseable force directive {text!r}: {e}")
        return {}
    for token in tokens:
        flag, sep, flag_value = token.partition("=")
        key = flag.lstrip("-").replace("_", "-")
        if key in FLAGS:
            setting, default = FLAGS[key]
            overrides[setting] = flag_value if sep else default
        else:
            overrides[_setting_name(flag)] = flag_value if sep else True
    return overrides


def validate_force_overrides(overrides: dict[str, Any]) -> dict[str, Any]:
    """Keep only forceable settings; protected or unknown ones are dropped with a warning."""
    allowed = {}
    for name, value in overrides.items():
        if name in FORCEABLE_SETTINGS:
            allowed[name] = value
        elif name in Settings.model_fields:
            logger.warning(f"Force directive may not change protected setting {name!r}; ignored")
        else:
            logger.warning(f"Force directive names unknown setting {name!r}; ignored")
    return allowed


def apply_force_directive(settings: Settings, metadata: dict[str, Any]) -> Settings:
    """Return settings with the document's validated force directive applied (document wins)."""
    directive = find_directive(metadata)
    if directive is None:
        return settings
    overrides = validate_force_overrides(parse_force_directive(directive, metadata))
    if not overrides:
        return settings
    logger.info(f"Applying force directive: {overrides}")
    return Settings.model_validate({**settings.model_dump(), **overrides})
