from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from .tokens import TokenKind

logger = logging.getLogger(__name__)

EPSILON = ""


class AutomatonError(Exception):
    """Base meltdown for automata drama."""


@dataclass(frozen=True, order=True)
class Transition:
    symbol: str
    target: int

    @property
    def is_epsilon(self) -> bool:
        return self.symbol == EPSILON


@dataclass
class State:
    id: int
    is_final: bool = False
    transitions: List[Transition] = field(default_factory=list)
    nfa_ids: FrozenSet[int] = frozenset()


@dataclass(frozen=True)
class Match:
    state_id: Optional[int]
    length: int

    @property
    def accepted(self) -> bool:
        return self.state_id is not None


class Automaton:
    """Arena of states addressed by dense integer ids.

    The same container backs both forms: an NFA carries ``accept_id`` while it
    is being built, a DFA fills the ``token_kinds`` side-table instead.
    """

    __slots__ = ("_states", "start_id", "accept_id", "token_kinds")

    def __init__(self) -> None:
        self._states: List[State] = []
        self.start_id = 0
        self.accept_id: Optional[int] = None
        self.token_kinds: Dict[int, TokenKind] = {}

    # ---------------------------------------------------------------
    @property
    def states(self) -> Tuple[State, ...]:
        return tuple(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Automaton):
            return NotImplemented
        return (
            self._states == other._states
            and self.start_id == other.start_id
            and self.accept_id == other.accept_id
            and self.token_kinds == other.token_kinds
        )

    def __repr__(self) -> str:
        return (
            f"Automaton(states={len(self._states)}, start={self.start_id}, "
            f"transitions={self.transition_count()})"
        )

    def state(self, state_id: int) -> State:
        return self._states[state_id]

    def is_accepting(self, state_id: int) -> bool:
        return 0 <= state_id < len(self._states) and self._states[state_id].is_final

    def kind_of(self, state_id: Optional[int]) -> Optional[TokenKind]:
        if state_id is None:
            return None
        return self.token_kinds.get(state_id)

    def alphabet(self) -> List[str]:
        symbols = {
            t.symbol
            for state in self._states
            for t in state.transitions
            if not t.is_epsilon
        }
        return sorted(symbols)

    def edges(self) -> Iterator[Tuple[int, int, str]]:
        for state in self._states:
            for t in state.transitions:
                yield state.id, t.target, t.symbol

    def transition_count(self) -> int:
        return sum(len(state.transitions) for state in self._states)

    def has_epsilon(self) -> bool:
        return any(t.is_epsilon for state in self._states for t in state.transitions)

    def copy(self) -> "Automaton":
        clone = Automaton()
        clone._states = [
            State(s.id, s.is_final, list(s.transitions), s.nfa_ids) for s in self._states
        ]
        clone.start_id = self.start_id
        clone.accept_id = self.accept_id
        clone.token_kinds = dict(self.token_kinds)
        return clone

    # ---------------------------------------------------------------
    def add_state(self, is_final: bool = False, nfa_ids: Iterable[int] = ()) -> int:
        state_id = len(self._states)
        self._states.append(State(state_id, is_final, [], frozenset(nfa_ids)))
        return state_id

    def add_transition(self, source: int, target: int, symbol: str) -> None:
        if 0 <= source < len(self._states):
            self._states[source].transitions.append(Transition(symbol, target))

    def absorb(self, other: "Automaton") -> int:
        """Append every state of ``other`` and return the id offset applied."""
        offset = len(self._states)
        for state in other._states:
            self._states.append(
                State(
                    state.id + offset,
                    state.is_final,
                    [Transition(t.symbol, t.target + offset) for t in state.transitions],
                    state.nfa_ids,
                )
            )
        return offset

    def optimize(self) -> "Automaton":
        for state in self._states:
            state.transitions = sorted(set(state.transitions))

        if not 0 <= self.start_id < len(self._states):
            logger.debug("Start state %s is gone, clearing automaton", self.start_id)
            self._states = []
            self.start_id = 0
            self.accept_id = None
            self.token_kinds = {}
            return self

        order: List[int] = []
        remap: Dict[int, int] = {}
        queue: deque[int] = deque([self.start_id])
        remap[self.start_id] = 0
        while queue:
            here = queue.popleft()
            order.append(here)
            for t in self._states[here].transitions:
                if t.target not in remap and 0 <= t.target < len(self._states):
                    remap[t.target] = len(remap)
                    queue.append(t.target)

        rebuilt: List[State] = []
        for old_id in order:
            old = self._states[old_id]
            transitions = sorted(
                {Transition(t.symbol, remap[t.target]) for t in old.transitions if t.target in remap}
            )
            rebuilt.append(State(remap[old_id], old.is_final, transitions, old.nfa_ids))

        pruned = len(self._states) - len(rebuilt)
        if pruned:
            logger.debug("Pruned %d unreachable state(s)", pruned)
        self._states = rebuilt
        self.start_id = 0
        self.accept_id = remap.get(self.accept_id) if self.accept_id is not None else None
        self.token_kinds = {
            remap[state_id]: kind for state_id, kind in self.token_kinds.items() if state_id in remap
        }
        return self

    # ---------------------------------------------------------------
    def step(self, state_id: int, symbol: str) -> Optional[int]:
        for t in self._states[state_id].transitions:
            if t.symbol == symbol:
                return t.target
        return None

    def simulate(self, text: str) -> Match:
        if not self._states:
            return Match(None, 0)
        current = self.start_id
        last_final: Optional[int] = current if self._states[current].is_final else None
        last_length = 0
        for index, char in enumerate(text):
            nxt = self.step(current, char)
            if nxt is None:
                break
            current = nxt
            if self._states[current].is_final:
                last_final = current
                last_length = index + 1
        return Match(last_final, last_length)

    def accepts(self, text: str) -> bool:
        match = self.simulate(text)
        return match.accepted and match.length == len(text)
