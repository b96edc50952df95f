import pytest

from automata_lab.lexer import (
    LexiconError,
    Tokenizer,
    build_tokenizer_from_payload,
    default_tokenizer,
    tokenize,
)
from automata_lab.subset import compile_recognizer
from automata_lab.tokens import Token, TokenKind


@pytest.fixture(scope="module")
def lexer() -> Tokenizer:
    return default_tokenizer()


def _kinds(tokens):
    return [token.kind for token in tokens]


def test_assignment_tokens(lexer):
    tokens = lexer.tokenize("x = 10 + 20")
    assert _kinds(tokens) == [
        TokenKind.IDENTIFIER,
        TokenKind.EQ,
        TokenKind.NUMBER,
        TokenKind.PLUS,
        TokenKind.NUMBER,
        TokenKind.EOF,
    ]
    assert [token.text for token in tokens] == ["x", "=", "10", "+", "20", ""]
    assert [token.position for token in tokens] == [0, 2, 4, 7, 9, 11]
    assert TokenKind.UNKNOWN not in _kinds(tokens)


def test_every_operator_and_grouping(lexer):
    tokens = lexer.tokenize("(a-b)*{c/d}")
    assert _kinds(tokens) == [
        TokenKind.LPAREN,
        TokenKind.IDENTIFIER,
        TokenKind.MINUS,
        TokenKind.IDENTIFIER,
        TokenKind.RPAREN,
        TokenKind.MULT,
        TokenKind.LBRACE,
        TokenKind.IDENTIFIER,
        TokenKind.DIV,
        TokenKind.IDENTIFIER,
        TokenKind.RBRACE,
        TokenKind.EOF,
    ]


def test_identifiers_take_digits_after_first_letter(lexer):
    tokens = lexer.tokenize("x1 10x Foo_bar")
    assert [(t.kind, t.text) for t in tokens[:-1]] == [
        (TokenKind.IDENTIFIER, "x1"),
        (TokenKind.NUMBER, "10"),
        (TokenKind.IDENTIFIER, "x"),
        (TokenKind.IDENTIFIER, "Foo_bar"),
    ]


def test_longest_match_beats_shorter_prefix():
    tokenizer = Tokenizer()
    tokenizer.add_rule("1", TokenKind.IDENTIFIER)
    tokenizer.add_rule("(0|1|2)(0|1|2)*", TokenKind.NUMBER)
    tokens = tokenizer.tokenize("10")
    assert [(t.kind, t.text) for t in tokens] == [(TokenKind.NUMBER, "10"), (TokenKind.EOF, "")]


def test_earliest_rule_wins_ties():
    tokenizer = Tokenizer()
    tokenizer.add_rule("if", TokenKind.LPAREN)
    tokenizer.add_rule("(i|f)(i|f)*", TokenKind.IDENTIFIER)
    assert tokenizer.tokenize("if")[0].kind is TokenKind.LPAREN
    assert tokenizer.tokenize("iff")[0].kind is TokenKind.IDENTIFIER


def test_unknown_characters_do_not_stop_the_scan(lexer):
    tokens = lexer.tokenize("a # b")
    assert [(t.kind, t.text) for t in tokens] == [
        (TokenKind.IDENTIFIER, "a"),
        (TokenKind.UNKNOWN, "#"),
        (TokenKind.IDENTIFIER, "b"),
        (TokenKind.EOF, ""),
    ]


def test_lines_are_counted(lexer):
    tokens = lexer.tokenize("a\n\n  b\n")
    assert [(t.text, t.line) for t in tokens] == [("a", 1), ("b", 3), ("", 4)]
    assert tokens[-1].position == 7


def test_empty_text_yields_only_eof(lexer):
    assert lexer.tokenize("") == [Token(TokenKind.EOF, "", 0, 1)]
    assert _kinds(lexer.tokenize("   \t")) == [TokenKind.EOF]


def test_tokenize_with_bare_recognizers():
    recognizers = [
        compile_recognizer("(0|1)(0|1)*", TokenKind.NUMBER),
        compile_recognizer("\\+", TokenKind.PLUS),
    ]
    tokens = tokenize(recognizers, "10+1 2")
    assert [(t.kind, t.text) for t in tokens] == [
        (TokenKind.NUMBER, "10"),
        (TokenKind.PLUS, "+"),
        (TokenKind.NUMBER, "1"),
        (TokenKind.UNKNOWN, "2"),
        (TokenKind.EOF, ""),
    ]


def test_zero_length_accept_is_not_a_token():
    tokenizer = Tokenizer()
    tokenizer.add_rule("a*", TokenKind.IDENTIFIER)
    assert [(t.kind, t.text) for t in tokenizer.tokenize("b")] == [
        (TokenKind.UNKNOWN, "b"),
        (TokenKind.EOF, ""),
    ]


def test_recognizer_for(lexer):
    dfa = lexer.recognizer_for(TokenKind.NUMBER)
    assert dfa is not None and dfa.accepts("2024")
    assert Tokenizer().recognizer_for(TokenKind.NUMBER) is None


def test_payload_rules():
    tokenizer = build_tokenizer_from_payload(
        {"rules": [{"kind": "number", "pattern": "(0|1)+"}, {"kind": "PLUS", "pattern": "\\+"}]}
    )
    assert [rule.kind for rule in tokenizer.rules] == [TokenKind.NUMBER, TokenKind.PLUS]
    tokens = tokenizer.tokenize("101+2")
    assert _kinds(tokens) == [TokenKind.NUMBER, TokenKind.PLUS, TokenKind.UNKNOWN, TokenKind.EOF]


def test_payload_without_rules_uses_default_lexicon():
    tokenizer = build_tokenizer_from_payload({})
    assert len(tokenizer.rules) == len(default_tokenizer().rules)


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"rules": "nope"},
        {"rules": [42]},
        {"rules": [{"kind": "NUMBER"}]},
        {"rules": [{"pattern": "a"}]},
        {"rules": [{"kind": "FLOAT", "pattern": "a"}]},
        {"rules": [{"kind": "EOF", "pattern": "a"}]},
        {"strict": "yes"},
        {"strict": True, "rules": [{"kind": "NUMBER", "pattern": "(1"}]},
    ],
)
def test_payload_errors(payload):
    with pytest.raises(LexiconError):
        build_tokenizer_from_payload(payload)
