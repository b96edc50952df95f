from __future__ import annotations

import logging
from collections import deque
from typing import Dict, FrozenSet, Iterable, List

from .automata import EPSILON, Automaton
from .regex import compile_nfa
from .tokens import TokenKind

logger = logging.getLogger(__name__)


def _iter_bits(mask: int) -> Iterable[int]:
    while mask:
        low = mask & -mask
        yield low.bit_length() - 1
        mask ^= low


def _to_mask(state_ids: Iterable[int], limit: int) -> int:
    mask = 0
    for state_id in state_ids:
        if 0 <= state_id < limit:
            mask |= 1 << state_id
    return mask


def _closure_mask(nfa: Automaton, mask: int) -> int:
    stack = list(_iter_bits(mask))
    while stack:
        here = stack.pop()
        for t in nfa.state(here).transitions:
            if t.is_epsilon and not (mask >> t.target) & 1:
                mask |= 1 << t.target
                stack.append(t.target)
    return mask


def _move_mask(nfa: Automaton, mask: int, symbol: str) -> int:
    result = 0
    for here in _iter_bits(mask):
        for t in nfa.state(here).transitions:
            if t.symbol == symbol:
                result |= 1 << t.target
    return result


def epsilon_closure(nfa: Automaton, state_ids: Iterable[int]) -> FrozenSet[int]:
    mask = _closure_mask(nfa, _to_mask(state_ids, len(nfa)))
    return frozenset(_iter_bits(mask))


def move(nfa: Automaton, state_ids: Iterable[int], symbol: str) -> FrozenSet[int]:
    if symbol == EPSILON:
        return frozenset()
    return frozenset(_iter_bits(_move_mask(nfa, _to_mask(state_ids, len(nfa)), symbol)))


def to_dfa(nfa: Automaton, kind: TokenKind) -> Automaton:
    dfa = Automaton()
    if not len(nfa):
        return dfa

    accept_mask = 0 if nfa.accept_id is None else 1 << nfa.accept_id
    alphabet = nfa.alphabet()
    mask_to_id: Dict[int, int] = {}
    pending: deque[int] = deque()

    def intern(mask: int) -> int:
        is_final = bool(mask & accept_mask)
        state_id = dfa.add_state(is_final, _iter_bits(mask))
        if is_final:
            dfa.token_kinds[state_id] = kind
        mask_to_id[mask] = state_id
        pending.append(mask)
        return state_id

    start_mask = _closure_mask(nfa, 1 << nfa.start_id)
    dfa.start_id = intern(start_mask)

    while pending:
        mask = pending.popleft()
        source = mask_to_id[mask]
        for symbol in alphabet:
            next_mask = _closure_mask(nfa, _move_mask(nfa, mask, symbol))
            if not next_mask:
                continue
            target = mask_to_id.get(next_mask)
            if target is None:
                target = intern(next_mask)
            dfa.add_transition(source, target, symbol)

    raw_size = len(dfa)
    dfa.optimize()
    logger.debug("Subset construction for %s: %d DFA state(s) (%d before cleanup)", kind.name, len(dfa), raw_size)
    return dfa


def compile_recognizer(pattern: str, kind: TokenKind, *, strict: bool = False) -> Automaton:
    return to_dfa(compile_nfa(pattern, strict=strict), kind)


def dfa_state_labels(dfa: Automaton) -> List[str]:
    """Human-readable ``{nfa ids}`` label per DFA state, for renderers."""
    return ["{" + ",".join(str(i) for i in sorted(state.nfa_ids)) + "}" for state in dfa.states]
