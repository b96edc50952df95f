from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from .automata import EPSILON, Automaton, AutomatonError

logger = logging.getLogger(__name__)

ESCAPE = "\\"


class PatternSyntaxError(AutomatonError):
    """Raised in strict mode when a pattern cannot be read as written."""

    def __init__(self, message: str, pattern: str = "", position: Optional[int] = None) -> None:
        super().__init__(message)
        self.pattern = pattern
        self.position = position


class UnitKind(Enum):
    LITERAL = "literal"
    ESCAPED = "escaped"
    CONCAT = "concat"
    UNION = "union"
    STAR = "star"
    PLUS = "plus"
    LPAREN = "lparen"
    RPAREN = "rparen"


OPERATOR_CHARS = {
    "|": UnitKind.UNION,
    "*": UnitKind.STAR,
    "+": UnitKind.PLUS,
    "(": UnitKind.LPAREN,
    ")": UnitKind.RPAREN,
}

PRECEDENCE = {
    UnitKind.STAR: 3,
    UnitKind.PLUS: 3,
    UnitKind.CONCAT: 2,
    UnitKind.UNION: 1,
}

_ENDS_OPERAND = {UnitKind.LITERAL, UnitKind.ESCAPED, UnitKind.RPAREN, UnitKind.STAR, UnitKind.PLUS}
_STARTS_OPERAND = {UnitKind.LITERAL, UnitKind.ESCAPED, UnitKind.LPAREN}


@dataclass(frozen=True)
class RegexUnit:
    kind: UnitKind
    value: str = ""
    position: int = -1

    @property
    def is_operand(self) -> bool:
        return self.kind in (UnitKind.LITERAL, UnitKind.ESCAPED)

    def __str__(self) -> str:
        if self.kind is UnitKind.CONCAT:
            return "."
        if self.kind is UnitKind.ESCAPED:
            return ESCAPE + self.value
        return self.value


def split_units(pattern: str) -> List[RegexUnit]:
    units: List[RegexUnit] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if char == ESCAPE:
            if index + 1 < len(pattern):
                units.append(RegexUnit(UnitKind.ESCAPED, pattern[index + 1], index))
                index += 2
                continue
            # lone trailing backslash stands for itself
            units.append(RegexUnit(UnitKind.ESCAPED, ESCAPE, index))
            index += 1
            continue
        units.append(RegexUnit(OPERATOR_CHARS.get(char, UnitKind.LITERAL), char, index))
        index += 1
    return units


def insert_concatenation(pattern: str) -> List[RegexUnit]:
    units = split_units(pattern)
    result: List[RegexUnit] = []
    for index, unit in enumerate(units):
        result.append(unit)
        if index + 1 < len(units):
            nxt = units[index + 1]
            if unit.kind in _ENDS_OPERAND and nxt.kind in _STARTS_OPERAND:
                result.append(RegexUnit(UnitKind.CONCAT, ".", nxt.position))
    return result


def to_postfix(pattern: str, *, strict: bool = False) -> List[RegexUnit]:
    postfix: List[RegexUnit] = []
    operators: List[RegexUnit] = []

    for unit in insert_concatenation(pattern):
        if unit.is_operand:
            postfix.append(unit)
        elif unit.kind is UnitKind.LPAREN:
            operators.append(unit)
        elif unit.kind is UnitKind.RPAREN:
            while operators and operators[-1].kind is not UnitKind.LPAREN:
                postfix.append(operators.pop())
            if operators:
                operators.pop()
            else:
                _recover(pattern, unit.position, "Unmatched ')' dropped", strict)
        else:
            precedence = PRECEDENCE[unit.kind]
            while (
                operators
                and operators[-1].kind is not UnitKind.LPAREN
                and PRECEDENCE[operators[-1].kind] >= precedence
            ):
                postfix.append(operators.pop())
            operators.append(unit)

    while operators:
        unit = operators.pop()
        if unit.kind is UnitKind.LPAREN:
            _recover(pattern, unit.position, "Unclosed '(' discarded", strict)
            continue
        postfix.append(unit)

    logger.debug("Postfix for %r: %s", pattern, postfix_to_string(postfix))
    return postfix


def postfix_to_string(postfix: Sequence[RegexUnit]) -> str:
    return "".join(str(unit) for unit in postfix)


def _recover(pattern: str, position: Optional[int], message: str, strict: bool) -> None:
    where = f" at {position}" if position is not None and position >= 0 else ""
    if strict:
        raise PatternSyntaxError(f"{message}{where} in pattern {pattern!r}.", pattern, position)
    logger.warning("%s%s in pattern %r; continuing anyway.", message, where, pattern)


def _literal(symbol: str) -> Automaton:
    fragment = Automaton()
    start = fragment.add_state(False)
    end = fragment.add_state(True)
    fragment.add_transition(start, end, symbol)
    fragment.start_id = start
    fragment.accept_id = end
    return fragment


def _concatenate(left: Automaton, right: Automaton) -> Automaton:
    result = Automaton()
    first = result.absorb(left)
    second = result.absorb(right)
    left_accept = left.accept_id + first
    result.state(left_accept).is_final = False
    result.add_transition(left_accept, right.start_id + second, EPSILON)
    result.start_id = left.start_id + first
    result.accept_id = right.accept_id + second
    result.state(result.accept_id).is_final = True
    return result


def _alternate(left: Automaton, right: Automaton) -> Automaton:
    result = Automaton()
    start = result.add_state(False)
    first = result.absorb(left)
    second = result.absorb(right)
    accept = result.add_state(True)
    for fragment, offset in ((left, first), (right, second)):
        result.add_transition(start, fragment.start_id + offset, EPSILON)
        inner_accept = fragment.accept_id + offset
        result.state(inner_accept).is_final = False
        result.add_transition(inner_accept, accept, EPSILON)
    result.start_id = start
    result.accept_id = accept
    return result


def _repeat(inner: Automaton, allow_empty: bool) -> Automaton:
    result = Automaton()
    start = result.add_state(False)
    offset = result.absorb(inner)
    accept = result.add_state(True)
    inner_start = inner.start_id + offset
    inner_accept = inner.accept_id + offset
    result.state(inner_accept).is_final = False
    result.add_transition(start, inner_start, EPSILON)
    result.add_transition(inner_accept, inner_start, EPSILON)
    result.add_transition(inner_accept, accept, EPSILON)
    if allow_empty:
        result.add_transition(start, accept, EPSILON)
    result.start_id = start
    result.accept_id = accept
    return result


def to_nfa(postfix: Sequence[RegexUnit], *, strict: bool = False, pattern: str = "") -> Automaton:
    stack: List[Automaton] = []

    for unit in postfix:
        if unit.is_operand:
            stack.append(_literal(unit.value))
        elif unit.kind in (UnitKind.CONCAT, UnitKind.UNION):
            if len(stack) < 2:
                _recover(pattern, unit.position, f"Operator {str(unit)!r} is missing an operand", strict)
                continue
            right = stack.pop()
            left = stack.pop()
            if unit.kind is UnitKind.CONCAT:
                stack.append(_concatenate(left, right))
            else:
                stack.append(_alternate(left, right))
        elif unit.kind in (UnitKind.STAR, UnitKind.PLUS):
            if not stack:
                _recover(pattern, unit.position, f"Operator {str(unit)!r} has nothing to repeat", strict)
                continue
            stack.append(_repeat(stack.pop(), allow_empty=unit.kind is UnitKind.STAR))
        else:
            _recover(pattern, unit.position, f"Stray {str(unit)!r} ignored", strict)

    if not stack:
        nfa = Automaton()
        nfa.add_state(True)
        nfa.start_id = 0
        nfa.accept_id = 0
        return nfa.optimize()

    if len(stack) > 1:
        _recover(pattern, None, f"{len(stack) - 1} dangling fragment(s) dropped", strict)
    nfa = stack[-1].optimize()
    logger.debug("Thompson NFA: %d states, %d transitions", len(nfa), nfa.transition_count())
    return nfa


def compile_nfa(pattern: str, *, strict: bool = False) -> Automaton:
    return to_nfa(to_postfix(pattern, strict=strict), strict=strict, pattern=pattern)
