import pytest

from automata_lab.grammar import END, START, N, T, select_production
from automata_lab.lexer import default_tokenizer
from automata_lab.pda import GROUPING_PREFIX, PDA
from automata_lab.tokens import Token, TokenKind


@pytest.fixture(scope="module")
def lexer():
    return default_tokenizer()


def _drive(pda: PDA):
    true_steps = 0
    calls = 0
    while calls < 500:
        calls += 1
        if pda.step():
            true_steps += 1
        else:
            break
    return true_steps, calls


def _parse(lexer, text: str) -> PDA:
    pda = PDA()
    pda.load_input(lexer.tokenize(text))
    pda.run()
    return pda


def test_fresh_machine_is_seeded():
    pda = PDA()
    assert pda.stack == (END, START)
    assert pda.cursor == 0
    assert not pda.is_error and not pda.is_success
    assert pda.history == ()


def test_assignment_parses(lexer):
    pda = PDA()
    tokens = lexer.tokenize("x = 10 + 20")
    pda.load_input(tokens)
    true_steps, calls = _drive(pda)

    assert pda.is_success
    assert not pda.is_error
    assert pda.stack == ()
    assert pda.cursor == len(tokens) - 1
    assert pda.current_token.kind is TokenKind.EOF
    assert [step.action for step in pda.history] == [
        "S -> id = E",
        "Match id",
        "Match =",
        "E -> T E'",
        "T -> F T'",
        "F -> num",
        "Match num",
        "T' -> epsilon",
        "E' -> + T E'",
        "Match +",
        "T -> F T'",
        "F -> num",
        "Match num",
        "T' -> epsilon",
        "E' -> epsilon",
        "Match EOF",
    ]
    assert len(pda.history) == true_steps
    assert calls == true_steps + 1


def test_history_snapshots_are_taken_before_each_move(lexer):
    pda = _parse(lexer, "x = 10 + 20")
    first = pda.history_at(0)
    assert first.stack == (END, START)
    assert first.token.text == "x"
    second = pda.history_at(1)
    assert second.stack == (END, N("E"), T("="), T("id"))
    assert second.stack_text() == "EOF E = id"


def test_halted_machine_ignores_more_steps(lexer):
    pda = _parse(lexer, "1")
    assert pda.is_success
    recorded = len(pda.history)
    assert pda.step() is False
    assert pda.step() is False
    assert len(pda.history) == recorded


def test_plain_expression_goes_through_expr(lexer):
    pda = _parse(lexer, "x * (y - 2) / 4")
    assert pda.is_success
    assert pda.history[0].action == "S -> E"


def test_brace_block_holds_a_statement(lexer):
    pda = _parse(lexer, "{ y = 2 } * 3")
    assert pda.is_success
    actions = [step.action for step in pda.history]
    assert "F -> { S }" in actions
    assert "S -> id = E" in actions


def test_unterminated_group_is_a_grouping_error(lexer):
    pda = PDA()
    pda.load_input(lexer.tokenize("(1 + "))
    true_steps, calls = _drive(pda)
    assert pda.is_error
    assert not pda.is_success
    assert pda.error_message.startswith(GROUPING_PREFIX)
    assert "parenthesis" in pda.error_message
    assert pda.history[-1].is_error
    assert pda.history[-1].action == pda.error_message
    assert len(pda.history) == true_steps + 1
    assert calls == true_steps + 1


def test_unterminated_brace_names_the_brace(lexer):
    pda = _parse(lexer, "{1 + 2")
    assert pda.is_error
    assert pda.error_message.startswith(GROUPING_PREFIX)
    assert "brace" in pda.error_message


def test_crossed_grouping_names_both_kinds(lexer):
    pda = _parse(lexer, "(1 + 2}")
    assert pda.is_error
    assert pda.error_message.startswith(GROUPING_PREFIX)
    assert "parenthesis" in pda.error_message
    assert "brace" in pda.error_message


def test_stray_closer_is_a_grouping_error(lexer):
    pda = _parse(lexer, "1 )")
    assert pda.is_error
    assert pda.error_message.startswith(GROUPING_PREFIX + "unmatched closing parenthesis")


def test_missing_operator_is_a_plain_expansion_error(lexer):
    pda = _parse(lexer, "1 2")
    assert pda.is_error
    assert pda.error_message == "Cannot expand <T'> on num '2'"


def test_unknown_token_cannot_be_expanded(lexer):
    pda = _parse(lexer, "1 # 2")
    assert pda.is_error
    assert pda.error_message == "Cannot expand <T'> on unknown '#'"


def test_empty_input_is_rejected(lexer):
    pda = _parse(lexer, "")
    assert pda.is_error
    assert pda.error_message == "Cannot expand <E> on end of input"


def test_assignment_needs_an_expression(lexer):
    pda = _parse(lexer, "x = = 1")
    assert pda.is_error
    assert pda.error_message == "Cannot expand <E> on '='"


def test_run_can_stop_early(lexer):
    pda = PDA()
    pda.load_input(lexer.tokenize("x = 10 + 20"))
    assert pda.run(max_steps=3) is False
    assert len(pda.history) == 3
    assert not pda.is_halted
    assert pda.cursor == 2


def test_reset_and_reload(lexer):
    pda = _parse(lexer, "(1 + ")
    assert pda.is_error
    pda.reset()
    assert pda.stack == (END, START)
    assert pda.tokens == ()
    assert pda.history == ()
    assert pda.error_message is None
    pda.load_input(lexer.tokenize("7"))
    assert pda.run()


def test_missing_trailing_eof_is_tolerated():
    pda = PDA()
    pda.load_input([Token(TokenKind.NUMBER, "3", 0, 1)])
    assert pda.run()


def test_statement_dispatch_looks_one_token_further():
    assert str(select_production("S", "id", "=")) == "S -> id = E"
    assert str(select_production("S", "id", "+")) == "S -> E"
    assert str(select_production("S", ")", None)) == "S -> E"
    assert select_production("E", ")") is None
    assert str(select_production("E'", "}")) == "E' -> epsilon"
    assert str(select_production("T'", "-")) == "T' -> epsilon"
    assert select_production("T'", "=") is None
