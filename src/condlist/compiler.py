"""Condition-list compiler — reads notation text and lowers it to Lua."""

from __future__ import annotations

from pathlib import Path

from condlist.document import Document
from condlist.generator import generate
from condlist.naming import DEFAULT_NAMING, NamingPolicy
from condlist.parser import parse
from condlist.position_map import PositionMap
from condlist.span import Span


class CompileError(Exception):
    """Raised when a source file cannot be read as notation text."""


# Characters the parser never routes to an output span.
_STRUCTURAL = frozenset("{},+-~=!% \t")


def read_source(path: str) -> str:
    """Read a notation file as UTF-8.

    One trailing line terminator is dropped, otherwise it would become part of
    the last statement's output text.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise CompileError(f"Cannot read source file: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise CompileError(f"Source file is not valid UTF-8: {exc}") from exc

    if raw.endswith("\r\n"):
        return raw[:-2]
    if raw.endswith("\n"):
        return raw[:-1]
    return raw


def compile_source(source: str, naming: NamingPolicy = DEFAULT_NAMING) -> tuple[str, PositionMap]:
    """Parse *source* and generate Lua text plus its position map.

    Raises ParseError on malformed notation.
    """
    return generate(parse(source), naming)


def split_outputs(document: Document) -> list[Span]:
    """Return output spans that do not cover the text they were built from.

    An output span grows by one for every character that reaches the output
    branch, but keeps its first offset.  When whitespace or another structural
    character sits inside the output run the span covers that character and
    drops the same number of characters from the end.
    """
    return [
        statement.output
        for statement in document.statements
        if statement.output is not None
        and any(ch in _STRUCTURAL for ch in document.resolve(statement.output))
    ]
