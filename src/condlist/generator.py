"""Deterministic Lua emission — no I/O, no randomness, no timestamps."""

from __future__ import annotations

from condlist.document import Block, Call, Condition, Document, Effect, InfoToggle, Statement
from condlist.naming import DEFAULT_NAMING, NamingPolicy
from condlist.position_map import PositionMap, Tag
from condlist.span import Span

INDENT = "    "


class _Output:
    """Append-only text buffer that knows its current length."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self.offset = 0

    def write(self, text: str) -> None:
        self._parts.append(text)
        self.offset += len(text)

    def getvalue(self) -> str:
        return "".join(self._parts)


_LUA_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}


def _escape(char: str) -> str:
    if char in _LUA_ESCAPES:
        return _LUA_ESCAPES[char]
    if char < " " or char == "\x7f":
        return f"\\{ord(char):03d}"
    return char


def _quote(text: str) -> str:
    return '"' + "".join(_escape(ch) for ch in text) + '"'


def _call_args(doc: Document, block: Call) -> str:
    return ",".join(_quote(doc.resolve(arg)) for arg in block.args)


def _render_condition_block(doc: Document, block: Block, naming: NamingPolicy) -> str:
    if isinstance(block, InfoToggle):
        expr = naming.fact_check.format(key=_quote(doc.resolve(block.key)))
    elif isinstance(block, Call):
        expr = naming.condition_call.format(name=doc.resolve(block.name), args=_call_args(doc, block))
    else:
        return naming.probability_check.format(value=doc.resolve(block.value))
    return "not " + expr if block.inverted else expr


def _render_effect_block(doc: Document, block: Block, naming: NamingPolicy) -> str:
    if isinstance(block, InfoToggle):
        template = naming.toggle_off if block.inverted else naming.toggle_on
        return template.format(key=_quote(doc.resolve(block.key)))
    if isinstance(block, Call):
        return naming.effect_call.format(name=doc.resolve(block.name), args=_call_args(doc, block))
    return naming.probability_check.format(value=doc.resolve(block.value))


def _emit_condition(
    doc: Document, condition: Condition, naming: NamingPolicy, out: _Output, position_map: PositionMap
) -> None:
    start = out.offset
    for i, block in enumerate(condition.blocks):
        if i:
            out.write(" and ")
        expr = _render_condition_block(doc, block, naming)
        position_map.add(Span(out.offset, len(expr)), Tag.CONDITION)
        out.write(expr)
    position_map.add(Span(start, out.offset - start), Tag.CONDITIONS)


def _emit_effects(
    doc: Document, effects: Effect, naming: NamingPolicy, indent: str, out: _Output, position_map: PositionMap
) -> None:
    start = out.offset
    for block in effects.blocks:
        out.write(indent)
        line = _render_effect_block(doc, block, naming)
        position_map.add(Span(out.offset, len(line)), Tag.EFFECT)
        out.write(line + "\n")
    position_map.add(Span(start, out.offset - start), Tag.EFFECTS)


def _emit_statement(
    doc: Document, statement: Statement, naming: NamingPolicy, out: _Output, position_map: PositionMap
) -> None:
    guarded = statement.condition is not None and len(statement.condition.blocks) > 0
    indent = INDENT if guarded else ""

    if guarded:
        out.write("if ")
        _emit_condition(doc, statement.condition, naming, out, position_map)
        out.write(" then\n")

    if statement.effects is not None:
        _emit_effects(doc, statement.effects, naming, indent, out, position_map)

    value = "nil" if statement.output is None else _quote(doc.resolve(statement.output))
    line = f"return {value}"
    out.write(indent)
    position_map.add(Span(out.offset, len(line)), Tag.OUTPUT)
    out.write(line + "\n")

    if guarded:
        out.write("end\n")


def generate(document: Document, naming: NamingPolicy = DEFAULT_NAMING) -> tuple[str, PositionMap]:
    """Lower *document* to Lua source text and its position map.

    The document is assumed to come from a successful parse; nothing is
    validated here.
    """
    out = _Output()
    position_map = PositionMap()

    for i, statement in enumerate(document.statements):
        if i:
            out.write("\n")
        _emit_statement(document, statement, naming, out, position_map)

    position_map.add(Span(0, out.offset), Tag.DOCUMENT)
    return out.getvalue(), position_map
