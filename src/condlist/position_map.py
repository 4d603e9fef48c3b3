"""Output-relative index of which generated ranges came from which construct."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from condlist.span import Span


class Tag(enum.Enum):
    CONDITION = "condition"
    CONDITIONS = "conditions"
    EFFECT = "effect"
    EFFECTS = "effects"
    OUTPUT = "output"
    DOCUMENT = "document"


@dataclass(frozen=True)
class MappedRange:
    span: Span
    tag: Tag


@dataclass
class PositionMap:
    """Ranges of generated text, in the order they were recorded.

    Ranges may nest; a containing range is always recorded after the ranges it
    contains.
    """

    entries: list[MappedRange] = field(default_factory=list)

    def add(self, span: Span, tag: Tag) -> None:
        self.entries.append(MappedRange(span, tag))

    def tags_at(self, offset: int) -> list[Tag]:
        """Return the tags of every range covering *offset*, innermost first."""
        return [e.tag for e in self.entries if e.span.contains(offset)]

    def to_dict(self) -> dict:
        return {
            "schema_id": "PositionMap",
            "schema_version": "1.0",
            "entries": [
                {"start": e.span.start, "length": e.span.length, "tag": e.tag.value}
                for e in self.entries
            ],
        }
