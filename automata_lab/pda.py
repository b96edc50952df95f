from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .grammar import (
    CLOSERS,
    END,
    EPSILON,
    GROUP_NAMES,
    START,
    Symbol,
    select_production,
    terminal_for,
)
from .tokens import Token, TokenKind

logger = logging.getLogger(__name__)

GROUPING_PREFIX = "Mismatched grouping: "


@dataclass(frozen=True)
class ParseStep:
    stack: Tuple[Symbol, ...]
    token: Token
    action: str

    @property
    def is_error(self) -> bool:
        return self.action.startswith(("Stack error", "Cannot expand", GROUPING_PREFIX))

    def stack_text(self) -> str:
        return " ".join(symbol.name for symbol in self.stack)


class PDA:
    """Predictive parser driven one move at a time.

    The stack bottom is ``EOF`` and the top is the last element. Every move is
    recorded as a :class:`ParseStep` so a finished run can be replayed without
    parsing again.
    """

    def __init__(self) -> None:
        self._stack: List[Symbol] = []
        self._tokens: List[Token] = []
        self._history: List[ParseStep] = []
        self._cursor = 0
        self.is_error = False
        self.is_success = False
        self.error_message: Optional[str] = None
        self.reset()

    # ---------------------------------------------------------------
    @property
    def stack(self) -> Tuple[Symbol, ...]:
        return tuple(self._stack)

    @property
    def tokens(self) -> Tuple[Token, ...]:
        return tuple(self._tokens)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def history(self) -> Tuple[ParseStep, ...]:
        return tuple(self._history)

    @property
    def is_halted(self) -> bool:
        return self.is_error or self.is_success

    @property
    def current_token(self) -> Token:
        return self._token_at(self._cursor)

    def history_at(self, index: int) -> ParseStep:
        return self._history[index]

    def _token_at(self, index: int) -> Token:
        if 0 <= index < len(self._tokens):
            return self._tokens[index]
        position = self._tokens[-1].position if self._tokens else 0
        line = self._tokens[-1].line if self._tokens else 1
        return Token(TokenKind.EOF, "", position, line)

    # ---------------------------------------------------------------
    def reset(self) -> None:
        self._stack = [END, START]
        self._tokens = []
        self._history = []
        self._cursor = 0
        self.is_error = False
        self.is_success = False
        self.error_message = None

    def load_input(self, tokens: Sequence[Token]) -> None:
        self.reset()
        self._tokens = list(tokens)
        logger.debug("Loaded %d token(s)", len(self._tokens))

    def run(self, max_steps: Optional[int] = None) -> bool:
        taken = 0
        while max_steps is None or taken < max_steps:
            taken += 1
            if not self.step():
                break
        return self.is_success

    def step(self) -> bool:
        if self.is_halted:
            return False
        if not self._stack:
            if self._cursor >= len(self._tokens) - 1:
                self.is_success = True
            return False

        top = self._stack[-1]
        token = self.current_token
        lookahead = terminal_for(token.kind)
        snapshot = tuple(self._stack)

        if top.is_terminal:
            return self._match(top, token, lookahead, snapshot)
        return self._expand(top, token, lookahead, snapshot)

    # ---------------------------------------------------------------
    def _record(self, snapshot: Tuple[Symbol, ...], token: Token, action: str) -> None:
        self._history.append(ParseStep(snapshot, token, action))
        logger.debug("[%d] %s | %s | %s", len(self._history), " ".join(s.name for s in snapshot), token, action)

    def _fail(self, snapshot: Tuple[Symbol, ...], token: Token, message: str) -> bool:
        self.is_error = True
        self.error_message = message
        self._record(snapshot, token, message)
        return False

    def _match(self, top: Symbol, token: Token, lookahead: str, snapshot: Tuple[Symbol, ...]) -> bool:
        if top == EPSILON:
            self._stack.pop()
            self._record(snapshot, token, "Match epsilon")
            return True

        if top.name == lookahead:
            self._stack.pop()
            if top == END:
                self.is_success = True
            else:
                self._cursor += 1
            self._record(snapshot, token, f"Match {top.name}")
            return True

        grouping = self._grouping_problem(top.name if top.name in CLOSERS else None, lookahead, token)
        if grouping is not None:
            return self._fail(snapshot, token, grouping)
        return self._fail(snapshot, token, f"Stack error: expected {top.name}, got {_describe(token)}")

    def _expand(self, top: Symbol, token: Token, lookahead: str, snapshot: Tuple[Symbol, ...]) -> bool:
        self._stack.pop()
        following = terminal_for(self._token_at(self._cursor + 1).kind)
        production = select_production(top.name, lookahead, following)
        if production is None:
            grouping = None
            if lookahead == END.name or lookahead in CLOSERS:
                grouping = self._grouping_problem(self._pending_closer(), lookahead, token)
            if grouping is not None:
                return self._fail(snapshot, token, grouping)
            return self._fail(snapshot, token, f"Cannot expand <{top.name}> on {_describe(token)}")

        for symbol in reversed(production.rhs):
            if symbol != EPSILON:
                self._stack.append(symbol)
        self._record(snapshot, token, str(production))
        return True

    def _pending_closer(self) -> Optional[str]:
        for symbol in reversed(self._stack):
            if symbol.is_terminal and symbol.name in CLOSERS:
                return symbol.name
        return None

    @staticmethod
    def _grouping_problem(expected: Optional[str], lookahead: str, token: Token) -> Optional[str]:
        if expected is not None:
            group = GROUP_NAMES[expected]
            if lookahead == END.name:
                return f"{GROUPING_PREFIX}unclosed {group}, expected '{expected}' before end of input"
            if lookahead in CLOSERS and lookahead != expected:
                return (
                    f"{GROUPING_PREFIX}{group} opened with '{CLOSERS[expected]}' "
                    f"closed by {GROUP_NAMES[lookahead]} '{lookahead}' at {token.position}"
                )
            if lookahead != expected:
                return f"{GROUPING_PREFIX}expected '{expected}' to close {group}, got {_describe(token)}"
            return None
        if lookahead in CLOSERS:
            return (
                f"{GROUPING_PREFIX}unmatched closing {GROUP_NAMES[lookahead]} '{lookahead}' "
                f"at {token.position}"
            )
        return None


def _describe(token: Token) -> str:
    spelling = terminal_for(token.kind)
    if token.kind is TokenKind.EOF:
        return "end of input"
    if spelling in ("id", "num"):
        return f"{spelling} '{token.text}'"
    if spelling:
        return f"'{spelling}'"
    return f"unknown '{token.text}'"

