"""Frontmatter merging: fold imported metadata into the host, destination wins"""

import logging
from datetime import date
from typing import Any

from legalmd.core.models import MergeResult, MergeStats
from legalmd.core.utils.deadline import Deadline
from legalmd.core.utils.flatten import FlatMap, flatten, unflatten
from legalmd.core.utils.reserved import filter_reserved_fields
from legalmd.errors import MergeValidationError

logger = logging.getLogger(__name__)

COMPATIBLE_TYPES = {
    frozenset({"string", "number"}),
    frozenset({"string", "boolean"}),
    frozenset({"string", "date"}),
}


def type_name(value: Any) -> str:
    """Name a metadata value's type the way YAML authors think of it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, date):
        return "date"
    return type(value).__name__


def validate_merge_compatibility(current: Any, imported: Any, key: str) -> None:
    """Raise MergeValidationError if the two values cannot share a field."""
    current_type, imported_type = type_name(current), type_name(imported)
    if "null" in (current_type, imported_type) or current_type == imported_type:
        return
    if frozenset({current_type, imported_type}) in COMPATIBLE_TYPES:
        return
    raise MergeValidationError(key, current_type, imported_type)


def _prefixes(key: str) -> list[str]:
    """Proper dot-prefixes of key, shortest first: 'a.b.c' -> ['a', 'a.b']."""
    parts = key.split(".")
    return [".".join(parts[:i]) for i in range(1, len(parts))]


def merge_metadata(
    destination: dict[str, Any],
    source: dict[str, Any],
    *,
    filter_reserved: bool = True,
    validate_types: bool = True,
    timeout: float = 10.0,
) -> MergeResult:
    """Add source leaves the destination does not define; never overwrite.

    A source leaf that collides with a destination leaf, or that would turn a
    destination leaf into a branch (or a branch into a leaf), is discarded and
    recorded as a conflict. Raises BudgetExceededError if flattening or
    merging outlives the timeout.
    """
    deadline = Deadline(timeout, "merge")
    stats = MergeStats()
    if filter_reserved:
        source, stats.filtered = filter_reserved_fields(source)
        for key in stats.filtered:
            logger.info(f"Dropped reserved field {key!r} from imported metadata")

    dest_flat = flatten(destination, deadline)
    src_flat = flatten(source, deadline)
    stats.destination_properties = len(dest_flat)
    stats.source_properties = len(src_flat)
    dest_branches = {p for key in dest_flat for p in _prefixes(key)}

    merged = FlatMap(dest_flat, paths={**src_flat.paths, **dest_flat.paths})
    for key, value in src_flat.items():
        deadline.check(key)
        if key in dest_flat:
            if validate_types:
                try:
                    validate_merge_compatibility(dest_flat[key], value, key)
                except MergeValidationError as e:
                    logger.debug(str(e))
                    stats.type_conflicts.append(key)
            stats.conflicts.append(key)
            continue
        if key in dest_branches:
            # an empty source mapping adds nothing under existing children
            if value != {}:
                stats.conflicts.append(key)
            continue
        blocking = [p for p in _prefixes(key) if p in dest_flat]
        if blocking:
            if dest_flat[blocking[0]] != {}:
                stats.conflicts.append(key)
                continue
            merged.pop(blocking[0], None)
        merged[key] = value
        stats.added.append(key)

    if stats.conflicts:
        logger.debug(f"Merge kept destination values for {len(stats.conflicts)} field(s): {stats.conflicts}")
    return MergeResult(metadata=unflatten(merged), stats=stats)
