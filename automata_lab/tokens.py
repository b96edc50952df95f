from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    INVALID = "invalid"
    IDENTIFIER = "identifier"
    NUMBER = "number"
    PLUS = "plus"
    MINUS = "minus"
    MULT = "mult"
    DIV = "div"
    EQ = "eq"
    LPAREN = "lparen"
    RPAREN = "rparen"
    LBRACE = "lbrace"
    RBRACE = "rbrace"
    UNKNOWN = "unknown"
    EOF = "eof"

    @classmethod
    def parse(cls, raw: str) -> "TokenKind":
        """Look a kind up by member name or value, ignoring case."""
        text = raw.strip()
        for kind in cls:
            if text.upper() == kind.name or text.lower() == kind.value:
                return kind
        raise ValueError(f"Unknown token kind '{raw}'.")


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int
    line: int

    def __str__(self) -> str:
        if self.kind is TokenKind.EOF:
            return "EOF"
        return f"{self.kind.name}({self.text!r})"
