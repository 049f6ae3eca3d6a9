"""Conversion between nested metadata and dot-path keyed flat maps"""

import logging
from typing import Any, Optional

from legalmd.core.utils.deadline import Deadline

logger = logging.getLogger(__name__)

CIRCULAR = "[Circular Reference]"


class FlatMap(dict):
    """A dot-keyed flat map that remembers each key's original nested path.

    YAML keys are not always strings (``2024: 12`` loads an int key), so
    ``paths`` maps every dot key back to the tuple of original keys.
    """

    def __init__(self, *args, paths: Optional[dict[str, tuple]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.paths: dict[str, tuple] = dict(paths or {})


def flatten(data: dict[Any, Any], deadline: Optional[Deadline] = None) -> FlatMap:
    """Flatten nested mappings to dot-joined keys.

    Lists are atomic leaves and so are empty mappings, which keeps
    unflatten(flatten(m)) == m. A mapping that contains itself is replaced by
    the CIRCULAR placeholder. Keys containing dots do not round-trip.
    """
    flat = FlatMap()

    def _walk(value: Any, path: tuple, ancestors: frozenset[int]) -> None:
        key = ".".join(str(p) for p in path)
        if deadline:
            deadline.check(key)
        if isinstance(value, dict) and value:
            if id(value) in ancestors:
                logger.warning(f"Circular reference in metadata at {key!r}")
                flat[key] = CIRCULAR
                flat.paths[key] = path
                return
            ancestors = ancestors | {id(value)}
            for child_key, child in value.items():
                _walk(child, path + (child_key,), ancestors)
        else:
            flat[key] = value
            flat.paths[key] = path

    if data:
        _walk(data, (), frozenset())
    return flat


def unflatten(flat: dict[str, Any]) -> dict[Any, Any]:
    """Rebuild nested mappings from dot-joined keys, restoring original key types."""
    paths = getattr(flat, "paths", {})
    nested: dict[Any, Any] = {}
    for key, value in flat.items():
        parts = paths.get(key) or tuple(key.split("."))
        node = nested
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        leaf = parts[-1]
        if isinstance(node.get(leaf), dict) and node[leaf] and value == {}:
            continue
        node[leaf] = value
    return nested
