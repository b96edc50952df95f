from .automata import Automaton, AutomatonError, EPSILON, Match, State, Transition
from .grammar import Production, Symbol, SymbolKind
from .lexer import LexiconError, Tokenizer, build_tokenizer_from_payload, default_tokenizer, tokenize
from .pda import PDA, ParseStep
from .regex import PatternSyntaxError, compile_nfa, insert_concatenation, to_nfa, to_postfix
from .subset import compile_recognizer, epsilon_closure, move, to_dfa
from .tokens import Token, TokenKind

__all__ = [
    "Automaton",
    "AutomatonError",
    "EPSILON",
    "LexiconError",
    "Match",
    "PDA",
    "ParseStep",
    "PatternSyntaxError",
    "Production",
    "State",
    "Symbol",
    "SymbolKind",
    "Token",
    "TokenKind",
    "Tokenizer",
    "Transition",
    "build_tokenizer_from_payload",
    "compile_nfa",
    "compile_recognizer",
    "default_tokenizer",
    "epsilon_closure",
    "insert_concatenation",
    "move",
    "to_dfa",
    "to_nfa",
    "to_postfix",
    "tokenize",
]
