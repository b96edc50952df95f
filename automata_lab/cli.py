from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

from .analysis import RecognizerCase, analyze_graph, run_recognizer_cases, summarize_results
from .automata import Automaton, AutomatonError
from .graphviz import highlight_for, write_dot
from .lexer import Tokenizer, build_tokenizer_from_payload, default_tokenizer
from .pda import PDA
from .regex import postfix_to_string, to_nfa, to_postfix
from .subset import to_dfa
from .tokens import Token, TokenKind

EMPTY_INPUT_LABEL = "<empty>"
EXIT_PARSE_ERROR = 2


@dataclass
class PatternSession:
    pattern: str
    kind: TokenKind
    nfa: Automaton
    dfa: Automaton
    postfix: str = ""
    cases: List[RecognizerCase] = field(default_factory=list)


def build_pattern_session(
    pattern: str,
    kind: TokenKind,
    checks: Sequence[str] = (),
    *,
    strict: bool = False,
) -> PatternSession:
    postfix = to_postfix(pattern, strict=strict)
    nfa = to_nfa(postfix, strict=strict, pattern=pattern)
    dfa = to_dfa(nfa, kind)
    cases = [RecognizerCase(text=text, expected=True, label=f"check {index}") for index, text in enumerate(checks, 1)]
    return PatternSession(
        pattern=pattern, kind=kind, nfa=nfa, dfa=dfa, postfix=postfix_to_string(postfix), cases=cases
    )


def load_tokenizer(path: Optional[str]) -> Tokenizer:
    if not path:
        return default_tokenizer()
    with open(path, "r", encoding="utf-8") as handle:
        payload: Mapping[str, Any] = json.load(handle)
    return build_tokenizer_from_payload(payload)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compile regex recognizers, tokenize text and step through the predictive parser."
    )
    parser.add_argument("--pattern", help="Regular expression to compile into an NFA and a DFA.")
    parser.add_argument(
        "--kind",
        default="IDENTIFIER",
        help="Token kind attached to the accepting states of --pattern.",
    )
    parser.add_argument(
        "--check",
        action="append",
        default=[],
        help="String to run through the compiled --pattern DFA (repeatable).",
    )
    parser.add_argument("--strict", action="store_true", help="Reject malformed patterns instead of recovering.")
    parser.add_argument("--input", help="Source text to tokenize and parse.")
    parser.add_argument("--input-file", help="File holding the source text to tokenize and parse.")
    parser.add_argument("--lexicon", help="JSON file with the tokenizer rules.")
    parser.add_argument(
        "--dot-dir",
        help="Directory where DOT graph files for --pattern will be written.",
    )
    parser.add_argument(
        "--base-name",
        default="automaton",
        help="Base filename used for generated DOT files.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log construction and parse details.")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors.")
    return parser.parse_args(argv)


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.WARNING
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def run(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args)
    if not (args.pattern or args.input is not None or args.input_file):
        print("Nothing to do: give --pattern and/or --input/--input-file.", file=sys.stderr)
        return 1

    try:
        status = 0
        if args.pattern:
            session = build_pattern_session(
                args.pattern, TokenKind.parse(args.kind), args.check, strict=args.strict
            )
            _display_pattern(session)
            _run_checks(session)
            if args.dot_dir:
                paths = write_graphs_for_session(session, args.dot_dir, args.base_name)
                print("\nDOT files written:")
                for path in paths:
                    print(f"  {path}")

        text = _read_input(args)
        if text is not None:
            tokenizer = load_tokenizer(args.lexicon)
            tokens = tokenizer.tokenize(text)
            _display_tokens(tokens)
            if not _display_parse(tokens):
                status = EXIT_PARSE_ERROR
        return status
    except KeyboardInterrupt:
        print("\nAborted by user.", file=sys.stderr)
        return 130
    except (
        AutomatonError,
        ValueError,
        FileNotFoundError,
        json.JSONDecodeError,
    ) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _read_input(args: argparse.Namespace) -> Optional[str]:
    if args.input_file:
        with open(args.input_file, "r", encoding="utf-8") as handle:
            return handle.read()
    return args.input


def _display_automaton(title: str, automaton: Automaton) -> None:
    report = analyze_graph(automaton)
    print(f"\n{title}")
    print(f"  States: {report['state_count']} (start {automaton.start_id})")
    accepting = report["accepting"]
    print(f"  Accepting: {', '.join(str(a) for a in accepting) if accepting else '<none>'}")
    alphabet = report["alphabet"]
    print(f"  Alphabet: {', '.join(alphabet) if alphabet else '<empty>'}")
    print(f"  Transitions: {report['transition_count']}")
    for state in automaton.states:
        parts = [f"{t.symbol or 'ε'}->{t.target}" for t in state.transitions]
        marker = "*" if state.is_final else " "
        print(f"   {marker}{state.id}: {', '.join(parts) if parts else '<none>'}")


def _display_pattern(session: PatternSession) -> None:
    print("Pattern Summary")
    print(f"  Pattern: {session.pattern}")
    print(f"  Postfix: {session.postfix}")
    print(f"  Kind: {session.kind.name}")
    _display_automaton("Thompson NFA", session.nfa)
    _display_automaton("Subset DFA", session.dfa)


def _run_checks(session: PatternSession):
    if not session.cases:
        return []
    print("\nRunning checks...")
    results = run_recognizer_cases(session.dfa, session.cases)
    summary = summarize_results(results)
    print(f"  Accepted {summary['passed']} of {summary['total']} input(s).")
    for result in results:
        text = result.case.text or EMPTY_INPUT_LABEL
        status = "ACCEPT" if result.actual else "REJECT"
        print(f"    [{status}] {result.case.label}: {text}")
    return results


def _display_tokens(tokens: Sequence[Token]) -> None:
    print("\nTokens")
    for token in tokens:
        print(f"  {token.line}:{token.position:<4} {token}")


def _display_parse(tokens: Sequence[Token]) -> bool:
    pda = PDA()
    pda.load_input(tokens)
    pda.run()
    print("\nParse")
    for index, step in enumerate(pda.history, start=1):
        print(f"  {index:>3}. [{step.stack_text()}]  @ {step.token}  {step.action}")
    if pda.is_success:
        print("  Result: accepted")
    else:
        print(f"  Result: rejected ({pda.error_message or 'parser stopped early'})")
    return pda.is_success


def write_graphs_for_session(
    session: PatternSession,
    output_dir: Path | str,
    base_name: Optional[str],
) -> List[Path]:
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    name = (base_name or "automaton").strip() or "automaton"

    highlight = highlight_for(session.dfa, session.cases[0].text) if session.cases else []
    nfa_path = out_dir / f"{name}_nfa.dot"
    write_dot(session.nfa, str(nfa_path), graph_name=f"{name} NFA")
    dfa_path = out_dir / f"{name}_dfa.dot"
    write_dot(session.dfa, str(dfa_path), graph_name=f"{name} DFA", highlight_path=highlight)
    return [path.resolve() for path in (nfa_path, dfa_path)]
