"""Immutable document model produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from condlist.span import Span


@dataclass(frozen=True)
class InfoToggle:
    """A fact reference; ``inverted`` negates it (``-key``)."""

    key: Span
    inverted: bool = False


@dataclass(frozen=True)
class Probability:
    """A percentage threshold; ``value`` covers ASCII digits only."""

    value: Span


@dataclass(frozen=True)
class Call:
    """A named function call with positional arguments (``=fn(a:b)``)."""

    name: Span
    args: tuple[Span, ...] = ()
    inverted: bool = False


Block = Union[InfoToggle, Probability, Call]


@dataclass(frozen=True)
class Condition:
    blocks: tuple[Block, ...] = ()


@dataclass(frozen=True)
class Effect:
    blocks: tuple[Block, ...] = ()


@dataclass(frozen=True)
class Statement:
    """One comma-separated unit of the source.

    ``None`` marks an absent condition/effect group, an empty ``blocks`` tuple
    marks a group that was opened and closed with nothing inside.
    """

    condition: Optional[Condition] = None
    effects: Optional[Effect] = None
    output: Optional[Span] = None


@dataclass(frozen=True)
class Document:
    """Parsed statements together with the source text their spans point into."""

    source: str
    statements: tuple[Statement, ...] = ()

    def resolve(self, span: Span) -> str:
        return span.resolve(self.source)

    def to_dict(self) -> dict:
        """Return a JSON-ready dump matching the Document.v1.json contract."""
        return {
            "schema_id": "Document",
            "schema_version": "1.0",
            "source": self.source,
            "statements": [self._statement_dict(s) for s in self.statements],
        }

    def _statement_dict(self, statement: Statement) -> dict:
        return {
            "condition": (
                None
                if statement.condition is None
                else [self._block_dict(b) for b in statement.condition.blocks]
            ),
            "effects": (
                None
                if statement.effects is None
                else [self._block_dict(b) for b in statement.effects.blocks]
            ),
            "output": (
                None if statement.output is None else statement.output.to_dict(self.source)
            ),
        }

    def _block_dict(self, block: Block) -> dict:
        if isinstance(block, InfoToggle):
            return {
                "kind": "info_toggle",
                "key": block.key.to_dict(self.source),
                "inverted": block.inverted,
            }
        if isinstance(block, Probability):
            return {"kind": "probability", "value": block.value.to_dict(self.source)}
        return {
            "kind": "call",
            "name": block.name.to_dict(self.source),
            "args": [a.to_dict(self.source) for a in block.args],
            "inverted": block.inverted,
        }
