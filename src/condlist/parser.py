"""Single-pass parser for the condition-list notation.

One statement looks like::

    {+has_pda -is_dead ~30 =actor_in_zone(zone_1:zone_2)} Text %+met_trader =give_item(knife)%

and statements are separated by ``,``.  Every character is consumed exactly
once; special characters trigger a transition on their own, so no lookahead or
backtracking is needed.  Structural characters are::

    {  }   open / close a condition group
    %      open, or close, an effect group
    ,      end of statement
    space  end of block
    + -    fact (set / unset)
    ~      probability, digits only
    = !    function call (plain / negated), optional ``(arg:arg)`` list

Anything else is part of the pending block, or of the statement's output text
when no block is pending.
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Optional, Union

from condlist.document import Block, Call, Condition, Document, Effect, InfoToggle, Probability, Statement
from condlist.span import Span


class ParseErrorKind(enum.Enum):
    NESTED_GROUP = "group opened while another group is open"
    UNMATCHED_CLOSE = "'}' without an open condition"
    EFFECT_CLOSE_ON_CONDITION = "'%' while a condition is open"
    BLOCK_ALREADY_OPEN = "block started while another block is open"
    BLOCK_WITHOUT_CONTEXT = "block outside of a condition or effect group"
    INVALID_DIGIT = "probability accepts digits only"
    CALL_ALREADY_OPENED = "call argument list is already open"
    CALL_ALREADY_CLOSED = "call argument list is already closed"


class ParseError(Exception):
    """Raised on the first character that breaks the notation.

    ``char`` is ``None`` when the problem is detected at end of input, in which
    case ``offset`` equals the length of the source.
    """

    def __init__(self, kind: ParseErrorKind, char: Optional[str], offset: int) -> None:
        where = "end of input" if char is None else f"{char!r}"
        super().__init__(f"{kind.value} (offset {offset}, {where})")
        self.kind = kind
        self.char = char
        self.offset = offset


class GroupKind(enum.Enum):
    CONDITION = "condition"
    EFFECT = "effect"


@dataclass
class _Group:
    kind: GroupKind
    blocks: list[Block] = field(default_factory=list)


# Progress through a call's parenthesised argument list.


@dataclass(frozen=True)
class _NoArgOpened:
    pass


@dataclass(frozen=True)
class _ArgOpened:
    arg: Span


@dataclass(frozen=True)
class _ArgsClosed:
    pass


_CallState = Union[_NoArgOpened, _ArgOpened, _ArgsClosed]

NO_ARG_OPENED = _NoArgOpened()
ARGS_CLOSED = _ArgsClosed()


@dataclass
class _StatementBuilder:
    condition: Optional[list[Block]] = None
    effects: Optional[list[Block]] = None
    output: Optional[Span] = None

    def add_condition(self, blocks: list[Block]) -> None:
        if self.condition is None:
            self.condition = []
        self.condition.extend(blocks)

    def add_effects(self, blocks: list[Block]) -> None:
        if self.effects is None:
            self.effects = []
        self.effects.extend(blocks)

    def build(self) -> Statement:
        return Statement(
            condition=None if self.condition is None else Condition(tuple(self.condition)),
            effects=None if self.effects is None else Effect(tuple(self.effects)),
            output=self.output,
        )


_WHITESPACE = (" ", "\t")


class Parser:
    """Character-driven state machine; use :func:`parse` for whole texts."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._statements: list[Statement] = []
        self._statement = _StatementBuilder()
        self._group: Optional[_Group] = None
        self._block: Optional[Block] = None
        self._call_state: _CallState = NO_ARG_OPENED

    def feed(self, char: str, offset: int) -> None:
        """Consume one character found at ``offset`` of the source."""
        if char == "{":
            if self._group is not None:
                raise ParseError(ParseErrorKind.NESTED_GROUP, char, offset)
            self._group = _Group(GroupKind.CONDITION)
        elif char == "}":
            self._commit_block(char, offset)
            if self._group is None or self._group.kind is not GroupKind.CONDITION:
                raise ParseError(ParseErrorKind.UNMATCHED_CLOSE, char, offset)
            self._statement.add_condition(self._group.blocks)
            self._group = None
        elif char == ",":
            self._next_statement(char, offset)
        elif char in _WHITESPACE:
            self._commit_block(char, offset)
        elif char in ("+", "-"):
            self._start_block(InfoToggle(Span.started_at(offset + 1), inverted=char == "-"), char, offset)
        elif char == "~":
            self._start_block(Probability(Span.started_at(offset + 1)), char, offset)
        elif char in ("=", "!"):
            self._start_block(Call(Span.started_at(offset + 1), inverted=char == "!"), char, offset)
            self._call_state = NO_ARG_OPENED
        elif char == "%":
            self._commit_block(char, offset)
            if self._group is None:
                self._group = _Group(GroupKind.EFFECT)
            elif self._group.kind is GroupKind.EFFECT:
                self._statement.add_effects(self._group.blocks)
                self._group = None
            else:
                raise ParseError(ParseErrorKind.EFFECT_CLOSE_ON_CONDITION, char, offset)
        elif self._block is None:
            output = self._statement.output
            if output is None:
                output = Span.started_at(offset)
            self._statement.output = output.extended()
        else:
            self._block = self._accumulate(self._block, char, offset)

    def finish(self) -> Document:
        """Flush the last statement and return the document."""
        self._next_statement(None, len(self._source))
        return Document(self._source, tuple(self._statements))

    def _start_block(self, block: Block, char: str, offset: int) -> None:
        if self._block is not None:
            raise ParseError(ParseErrorKind.BLOCK_ALREADY_OPEN, char, offset)
        self._block = block

    def _commit_block(self, char: Optional[str], offset: int) -> None:
        if self._block is None:
            return
        if self._group is None:
            raise ParseError(ParseErrorKind.BLOCK_WITHOUT_CONTEXT, char, offset)
        self._group.blocks.append(self._block)
        self._block = None
        self._call_state = NO_ARG_OPENED

    def _next_statement(self, char: Optional[str], offset: int) -> None:
        self._commit_block(char, offset)
        self._statements.append(self._statement.build())
        self._statement = _StatementBuilder()
        self._group = None
        self._block = None
        self._call_state = NO_ARG_OPENED

    def _accumulate(self, block: Block, char: str, offset: int) -> Block:
        if isinstance(block, InfoToggle):
            return dataclasses.replace(block, key=block.key.extended())
        if isinstance(block, Probability):
            if not ("0" <= char <= "9"):
                raise ParseError(ParseErrorKind.INVALID_DIGIT, char, offset)
            return dataclasses.replace(block, value=block.value.extended())
        return self._accumulate_call(block, char, offset)

    def _accumulate_call(self, block: Call, char: str, offset: int) -> Call:
        state = self._call_state
        if isinstance(state, _ArgsClosed):
            raise ParseError(ParseErrorKind.CALL_ALREADY_CLOSED, char, offset)
        if isinstance(state, _NoArgOpened):
            if char == "(":
                self._call_state = _ArgOpened(Span.started_at(offset + 1))
                return block
            return dataclasses.replace(block, name=block.name.extended())
        if char == "(":
            raise ParseError(ParseErrorKind.CALL_ALREADY_OPENED, char, offset)
        if char == ":":
            self._call_state = _ArgOpened(Span.started_at(offset + 1))
            return dataclasses.replace(block, args=block.args + (state.arg,))
        if char == ")":
            self._call_state = ARGS_CLOSED
            return dataclasses.replace(block, args=block.args + (state.arg,))
        self._call_state = _ArgOpened(state.arg.extended())
        return block


def parse(source: str) -> Document:
    """Parse *source* into a :class:`Document`.

    Raises ParseError at the first offending character.
    """
    parser = Parser(source)
    for offset, char in enumerate(source):
        parser.feed(char, offset)
    return parser.finish()
