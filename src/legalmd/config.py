"""Processing configuration: settings schema and legalmd.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "legalmd.yaml"
ENV_PREFIX = "LEGALMD_"


class Settings(BaseModel):
    skip_imports:    bool = Field(default=False, description="Leave @import directives untouched")
    skip_clauses:    bool = Field(default=False, description="Leave [text]{condition} spans untouched")
    skip_references: bool = Field(default=False, description="Leave |key| and @today untouched")
    skip_loops:      bool = Field(default=False, description="Leave {{#each}}/{{#if}} blocks untouched")
    skip_templates:  bool = Field(default=False, description="Leave {{ expr }} tokens untouched")
    skip_headers:    bool = Field(default=False, description="Leave l./ll. header markers untouched")
    no_reset:        bool = Field(default=False, description="Keep deeper header counters running across parents")
    no_indent:       bool = Field(default=False, description="Do not indent numbered headers by level")
    enable_field_tracking: bool = Field(default=False, description="Wrap substituted values in tracking spans")
    strict_metadata: bool = Field(default=False, description="Fail on malformed YAML front matter")
    import_max_depth: int = Field(default=10, ge=1, description="Max nested @import depth")
    merge_timeout:   float = Field(default=10.0, gt=0, description="Wall-clock budget in seconds for one metadata merge")
    template_timeout: float = Field(default=5.0, gt=0, description="Wall-clock budget in seconds for template rendering")
    filter_reserved: bool = Field(default=True, description="Drop reserved keys from imported metadata")
    validate_types:  bool = Field(default=True, description="Record type mismatches on merge conflicts")


def load_config(overrides: dict[str, Any] = None, path: str = CONFIG_FILE) -> Settings:
    """Load Settings from legalmd.yaml, then LEGALMD_<FIELD> env vars, then non-None overrides."""
    data: dict[str, Any] = {}
    if Path(path).exists():
        try:
            data = yaml.safe_load(Path(path).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {path}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
