"""Zero-copy (start, length) references into a source text."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Span:
    """A run of ``length`` characters starting at ``start`` in some text.

    A span never holds characters of its own; it is only meaningful together
    with the text it was produced from.
    """

    start: int
    length: int

    @classmethod
    def started_at(cls, offset: int) -> "Span":
        return cls(offset, 0)

    @property
    def end(self) -> int:
        return self.start + self.length

    def extended(self) -> "Span":
        """Return a span one character longer."""
        return Span(self.start, self.length + 1)

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end

    def resolve(self, text: str) -> str:
        return text[self.start:self.end]

    def to_dict(self, text: str) -> dict:
        return {"start": self.start, "length": self.length, "text": self.resolve(text)}
