from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from .tokens import TokenKind


class SymbolKind(Enum):
    TERMINAL = "terminal"
    NON_TERMINAL = "non_terminal"


@dataclass(frozen=True)
class Symbol:
    kind: SymbolKind
    name: str

    @property
    def is_terminal(self) -> bool:
        return self.kind is SymbolKind.TERMINAL

    def __str__(self) -> str:
        if self.is_terminal:
            return f"'{self.name}'"
        return f"<{self.name}>"


def T(name: str) -> Symbol:
    return Symbol(SymbolKind.TERMINAL, name)


def N(name: str) -> Symbol:
    return Symbol(SymbolKind.NON_TERMINAL, name)


EPSILON = T("epsilon")
END = T("EOF")
START = N("S")


@dataclass(frozen=True)
class Production:
    lhs: str
    rhs: Tuple[Symbol, ...]

    @property
    def is_epsilon(self) -> bool:
        return self.rhs == (EPSILON,)

    def __str__(self) -> str:
        return f"{self.lhs} -> " + " ".join(symbol.name for symbol in self.rhs)


def _p(lhs: str, *rhs: Symbol) -> Production:
    return Production(lhs, tuple(rhs))


ASSIGN = _p("S", T("id"), T("="), N("E"))
STATEMENT_EXPR = _p("S", N("E"))

PRODUCTIONS: Tuple[Production, ...] = (
    ASSIGN,
    STATEMENT_EXPR,
    _p("E", N("T"), N("E'")),
    _p("E'", T("+"), N("T"), N("E'")),
    _p("E'", T("-"), N("T"), N("E'")),
    _p("E'", EPSILON),
    _p("T", N("F"), N("T'")),
    _p("T'", T("*"), N("F"), N("T'")),
    _p("T'", T("/"), N("F"), N("T'")),
    _p("T'", EPSILON),
    _p("F", T("("), N("E"), T(")")),
    _p("F", T("{"), N("S"), T("}")),
    _p("F", T("num")),
    _p("F", T("id")),
)

TERMINAL_SPELLING: Dict[TokenKind, str] = {
    TokenKind.IDENTIFIER: "id",
    TokenKind.NUMBER: "num",
    TokenKind.PLUS: "+",
    TokenKind.MINUS: "-",
    TokenKind.MULT: "*",
    TokenKind.DIV: "/",
    TokenKind.EQ: "=",
    TokenKind.LPAREN: "(",
    TokenKind.RPAREN: ")",
    TokenKind.LBRACE: "{",
    TokenKind.RBRACE: "}",
    TokenKind.EOF: "EOF",
}

OPENERS = {"(": ")", "{": "}"}
CLOSERS = {close: open_ for open_, close in OPENERS.items()}
GROUP_NAMES = {"(": "parenthesis", ")": "parenthesis", "{": "brace", "}": "brace"}


def terminal_for(kind: TokenKind) -> str:
    return TERMINAL_SPELLING.get(kind, "")


def _build_table(productions: Sequence[Production]) -> Dict[Tuple[str, str], Production]:
    by_head: Dict[Tuple[str, str], Production] = {
        (p.lhs, p.rhs[0].name): p for p in productions if p.lhs != "S"
    }
    factor_first = ("(", "{", "num", "id")
    follow = {
        "E'": (")", "}", "EOF"),
        "T'": ("+", "-", ")", "}", "EOF"),
    }

    table: Dict[Tuple[str, str], Production] = {}
    for lookahead in factor_first:
        table[("E", lookahead)] = by_head[("E", "T")]
        table[("T", lookahead)] = by_head[("T", "F")]
        table[("F", lookahead)] = by_head[("F", lookahead)]
    for lhs, ops in (("E'", ("+", "-")), ("T'", ("*", "/"))):
        for op in ops:
            table[(lhs, op)] = by_head[(lhs, op)]
        for lookahead in follow[lhs]:
            table[(lhs, lookahead)] = by_head[(lhs, EPSILON.name)]
    return table


LL1_TABLE = _build_table(PRODUCTIONS)


def select_production(nonterminal: str, lookahead: str, following: Optional[str] = None) -> Optional[Production]:
    """Pick the production for ``nonterminal`` given the current terminal.

    ``S`` is the one place where a single token is not enough: an identifier
    followed by ``=`` starts an assignment, so the terminal after the cursor is
    consulted there. Every other statement is an expression.
    """
    if nonterminal == "S":
        if lookahead == "id" and following == "=":
            return ASSIGN
        return STATEMENT_EXPR
    return LL1_TABLE.get((nonterminal, lookahead))
