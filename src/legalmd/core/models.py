"""Data models shared across the processing stages"""

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, Field

from legalmd.config import Settings


class MergeStats(BaseModel):
    """Summary of one or more metadata merges."""
    destination_properties: int = 0
    source_properties:      int = 0
    added:          list[str] = Field(default_factory=list)    # dot-paths copied from source
    conflicts:      list[str] = Field(default_factory=list)    # dot-paths discarded in favour of destination
    filtered:       list[str] = Field(default_factory=list)    # reserved keys stripped from source
    type_conflicts: list[str] = Field(default_factory=list)    # subset of conflicts with incompatible types

    @property
    def added_count(self) -> int:
        return len(self.added)

    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)

    @property
    def filtered_count(self) -> int:
        return len(self.filtered)

    def combine(self, other: "MergeStats") -> "MergeStats":
        """Return a new MergeStats accumulating both."""
        return MergeStats(
            destination_properties=self.destination_properties + other.destination_properties,
            source_properties=self.source_properties + other.source_properties,
            added=self.added + other.added,
            conflicts=self.conflicts + other.conflicts,
            filtered=self.filtered + other.filtered,
            type_conflicts=self.type_conflicts + other.type_conflicts,
        )


class FieldStatus(BaseModel):
    """Tracking outcome for one field across a document."""
    field:       str
    status:      str                # resolved | computed | missing
    value:       Optional[str] = None
    occurrences: int = 1


class FieldReport(BaseModel):
    """Per-document field tracking summary."""
    fields: dict[str, FieldStatus] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.fields)

    @property
    def filled(self) -> int:
        return sum(1 for f in self.fields.values() if f.status == "resolved")

    @property
    def logic(self) -> int:
        return sum(1 for f in self.fields.values() if f.status == "computed")

    @property
    def empty(self) -> int:
        return sum(1 for f in self.fields.values() if f.status == "missing")


@dataclass
class ParsedDoc:
    """Front matter split from a document body."""
    metadata: dict[str, Any]
    body:     str
    raw:      str
    warnings: list[str] = field(default_factory=list)


@dataclass
class MergeResult:
    metadata: dict[str, Any]
    stats:    MergeStats


@dataclass
class ImportResult:
    content:  str
    metadata: dict[str, Any]
    imported: list[str]             # resolved names, in the order they were read
    stats:    MergeStats


@dataclass
class ProcessResult:
    """Output of one pipeline run."""
    content:     str
    metadata:    dict[str, Any]
    settings:    Settings
    merge_stats: MergeStats = field(default_factory=MergeStats)
    imported:    list[str] = field(default_factory=list)
    fields:      Optional[FieldReport] = None
    skipped:     list[str] = field(default_factory=list)
    warnings:    list[str] = field(default_factory=list)
