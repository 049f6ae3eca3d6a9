"""Filesystem access for the CLI host: the import reader and output writers"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

logger = logging.getLogger(__name__)

MD_EXTENSIONS = (".md", ".markdown", ".txt")


def directory_reader(root: Path) -> Callable[[str], Optional[str]]:
    """Return a reader resolving import names under root; names that escape root are not found."""
    root = Path(root).resolve()

    def _read(name: str) -> Optional[str]:
        candidate = (root / name.lstrip("/")).resolve()
        if not candidate.is_relative_to(root):
            logger.warning(f"Refusing import outside {root}: {name}")
            return None
        if not candidate.is_file() and not candidate.suffix:
            candidate = next((c for c in (candidate.with_suffix(e) for e in MD_EXTENSIONS) if c.is_file()), candidate)
        if not candidate.is_file():
            return None
        return candidate.read_text(encoding="utf-8")

    return _read


def write_metadata(path: Path, metadata: dict[str, Any]) -> None:
    """Write metadata as JSON (.json) or YAML (anything else)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".json":
        text = json.dumps(metadata, indent=2, ensure_ascii=False, default=str) + "\n"
    else:
        text = yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True)
    path.write_text(text, encoding="utf-8")
