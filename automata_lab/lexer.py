from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .automata import Automaton, AutomatonError
from .regex import PatternSyntaxError
from .subset import compile_recognizer
from .tokens import Token, TokenKind

logger = logging.getLogger(__name__)

DIGIT = "(" + "|".join("0123456789") + ")"
ALPHA = "(" + "|".join("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_") + ")"

DEFAULT_RULES: Tuple[Tuple[str, TokenKind], ...] = (
    ("\\+", TokenKind.PLUS),
    ("-", TokenKind.MINUS),
    ("\\*", TokenKind.MULT),
    ("/", TokenKind.DIV),
    ("=", TokenKind.EQ),
    ("\\(", TokenKind.LPAREN),
    ("\\)", TokenKind.RPAREN),
    ("{", TokenKind.LBRACE),
    ("}", TokenKind.RBRACE),
    (DIGIT + DIGIT + "*", TokenKind.NUMBER),
    (ALPHA + "(" + ALPHA + "|" + DIGIT + ")*", TokenKind.IDENTIFIER),
)


class LexiconError(AutomatonError):
    """Lexicon payload does not describe a usable rule list."""


@dataclass(frozen=True)
class LexRule:
    kind: TokenKind
    pattern: str
    dfa: Automaton


def _longest_match(recognizers: Sequence[Tuple[TokenKind, Automaton]], text: str) -> Tuple[Optional[TokenKind], int]:
    best_kind: Optional[TokenKind] = None
    best_length = 0
    for kind, dfa in recognizers:
        match = dfa.simulate(text)
        # strictly longer only: earlier rules keep ties
        if match.accepted and match.length > best_length:
            best_length = match.length
            best_kind = dfa.kind_of(match.state_id) or kind
    return best_kind, best_length


def _scan(recognizers: Sequence[Tuple[TokenKind, Automaton]], text: str) -> List[Token]:
    tokens: List[Token] = []
    cursor = 0
    line = 1
    while cursor < len(text):
        char = text[cursor]
        if char.isspace():
            if char == "\n":
                line += 1
            cursor += 1
            continue

        kind, length = _longest_match(recognizers, text[cursor:])
        if kind is None or length == 0:
            tokens.append(Token(TokenKind.UNKNOWN, char, cursor, line))
            cursor += 1
            continue
        tokens.append(Token(kind, text[cursor:cursor + length], cursor, line))
        cursor += length

    tokens.append(Token(TokenKind.EOF, "", len(text), line))
    logger.debug("Tokenized %d char(s) into %d token(s)", len(text), len(tokens))
    return tokens


def tokenize(recognizers: Sequence[Automaton], text: str) -> List[Token]:
    """Scan ``text`` with bare DFAs; the kind comes from each DFA's accepting states."""
    tagged = [(TokenKind.INVALID, dfa) for dfa in recognizers]
    return _scan(tagged, text)


class Tokenizer:
    def __init__(self, rules: Sequence[LexRule] = ()) -> None:
        self._rules: List[LexRule] = list(rules)

    @property
    def rules(self) -> Tuple[LexRule, ...]:
        return tuple(self._rules)

    def add_rule(self, pattern: str, kind: TokenKind, *, strict: bool = False) -> LexRule:
        rule = LexRule(kind=kind, pattern=pattern, dfa=compile_recognizer(pattern, kind, strict=strict))
        self._rules.append(rule)
        logger.debug("Rule %d: %s <- %r (%d states)", len(self._rules), kind.name, pattern, len(rule.dfa))
        return rule

    def recognizer_for(self, kind: TokenKind) -> Optional[Automaton]:
        for rule in self._rules:
            if rule.kind is kind:
                return rule.dfa
        return None

    def tokenize(self, text: str) -> List[Token]:
        return _scan([(rule.kind, rule.dfa) for rule in self._rules], text)


def default_tokenizer() -> Tokenizer:
    tokenizer = Tokenizer()
    for pattern, kind in DEFAULT_RULES:
        tokenizer.add_rule(pattern, kind)
    return tokenizer


def build_tokenizer_from_payload(payload: Mapping[str, Any]) -> Tokenizer:
    if not isinstance(payload, Mapping):
        raise LexiconError("Lexicon payload must be a mapping.")
    strict = payload.get("strict", False)
    if not isinstance(strict, bool):
        raise LexiconError("Lexicon field 'strict' must be true or false.")

    entries = payload.get("rules")
    if entries is None:
        return default_tokenizer()
    if not isinstance(entries, list):
        raise LexiconError("Lexicon field 'rules' must be a list.")

    tokenizer = Tokenizer()
    for index, entry in enumerate(entries, start=1):
        if not isinstance(entry, Mapping):
            raise LexiconError(f"Rule {index} must be an object with 'kind' and 'pattern'.")
        pattern = entry.get("pattern")
        raw_kind = entry.get("kind")
        if not isinstance(pattern, str):
            raise LexiconError(f"Rule {index} needs a string 'pattern'.")
        if not isinstance(raw_kind, str):
            raise LexiconError(f"Rule {index} needs a string 'kind'.")
        try:
            kind = TokenKind.parse(raw_kind)
        except ValueError as exc:
            raise LexiconError(f"Rule {index}: {exc}") from exc
        if kind in (TokenKind.EOF, TokenKind.UNKNOWN, TokenKind.INVALID):
            raise LexiconError(f"Rule {index}: kind {kind.name} is reserved for the scanner.")
        try:
            tokenizer.add_rule(pattern, kind, strict=strict)
        except PatternSyntaxError as exc:
            raise LexiconError(f"Rule {index}: {exc}") from exc
    return tokenizer
