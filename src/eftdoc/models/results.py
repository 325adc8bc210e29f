"""Run result entities.

- EntityReport: per-table outcome of the merge pass
- MergeResult: aggregated merge counts
- TemplatePatchOutcome: outcome for one companion template
- PatchResult: outcomes for both companion templates
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from eftdoc.templates.markers import TemplateKind


@dataclass
class EntityReport:
    """Merge outcome for one EntityType.

    Attributes:
        name: Table name (the EntityType Name attribute)
        property_count: Number of Property nodes visited
        documented: Whether the table received a summary
        documented_properties: Number of properties that received a summary
    """

    name: str
    property_count: int = 0
    documented: bool = False
    documented_properties: int = 0


@dataclass
class MergeResult:
    """Aggregated outcome of one documentation merge pass.

    Attributes:
        entities: Per-entity reports in document order
        removed: Pre-existing Documentation nodes removed (replaced or cleared)
    """

    entities: list[EntityReport] = field(default_factory=list)
    removed: int = 0

    @property
    def entity_count(self) -> int:
        return len(self.entities)

    @property
    def property_count(self) -> int:
        return sum(e.property_count for e in self.entities)

    @property
    def documented_entities(self) -> int:
        return sum(1 for e in self.entities if e.documented)

    @property
    def documented_properties(self) -> int:
        return sum(e.documented_properties for e in self.entities)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "entities": self.entity_count,
            "properties": self.property_count,
            "documented_entities": self.documented_entities,
            "documented_properties": self.documented_properties,
            "removed": self.removed,
        }


@dataclass
class TemplatePatchOutcome:
    """Outcome of patching one companion template.

    Attributes:
        path: Companion template path
        kind: Context or entity template
        existed: Whether the file was present
        replacements: Marker occurrences replaced
        written: Whether the file was rewritten
        error: Why an existing file could not be patched (None on success)
    """

    path: Path
    kind: "TemplateKind"
    existed: bool
    replacements: int = 0
    written: bool = False
    error: str | None = None


@dataclass
class PatchResult:
    """Outcomes for the companion templates of one model."""

    outcomes: list[TemplatePatchOutcome] = field(default_factory=list)

    @property
    def all_present(self) -> bool:
        """True when every companion was found (and there was at least one)."""
        return bool(self.outcomes) and all(o.existed for o in self.outcomes)

    @property
    def replacements(self) -> int:
        return sum(o.replacements for o in self.outcomes)

    @property
    def failed(self) -> list[TemplatePatchOutcome]:
        return [o for o in self.outcomes if o.error is not None]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "templates": [
                {
                    "path": str(o.path),
                    "kind": o.kind.name.lower(),
                    "existed": o.existed,
                    "replacements": o.replacements,
                    "written": o.written,
                    "error": o.error,
                }
                for o in self.outcomes
            ],
        }
