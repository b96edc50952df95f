from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Sequence, Set

from .automata import Automaton


@dataclass(frozen=True)
class RecognizerCase:
    text: str
    expected: bool
    label: str = ""


@dataclass(frozen=True)
class RecognizerResult:
    case: RecognizerCase
    actual: bool

    @property
    def passed(self) -> bool:
        return self.actual == self.case.expected


def run_recognizer_cases(dfa: Automaton, cases: Sequence[RecognizerCase]) -> List[RecognizerResult]:
    return [RecognizerResult(case=case, actual=dfa.accepts(case.text)) for case in cases]


def summarize_results(results: Sequence[RecognizerResult]) -> dict[str, int]:
    summary = {"total": len(results), "passed": 0, "failed": 0}
    for result in results:
        if result.passed:
            summary["passed"] += 1
        else:
            summary["failed"] += 1
    return summary


def analyze_graph(automaton: Automaton) -> Dict[str, object]:
    state_ids = [state.id for state in automaton.states]
    state_set = set(state_ids)

    reachable: Set[int] = set()
    queue: deque[int] = deque([automaton.start_id] if automaton.start_id in state_set else [])
    while queue:
        here = queue.popleft()
        if here in reachable:
            continue
        reachable.add(here)
        for t in automaton.state(here).transitions:
            if t.target not in reachable:
                queue.append(t.target)

    reverse: Dict[int, Set[int]] = {state_id: set() for state_id in state_ids}
    deterministic = True
    for state in automaton.states:
        seen: Set[str] = set()
        for t in state.transitions:
            reverse.setdefault(t.target, set()).add(state.id)
            if t.is_epsilon or t.symbol in seen:
                deterministic = False
            seen.add(t.symbol)

    alive: Set[int] = set()
    queue.extend(state.id for state in automaton.states if state.is_final)
    while queue:
        here = queue.popleft()
        if here in alive:
            continue
        alive.add(here)
        for src in reverse.get(here, set()):
            if src not in alive:
                queue.append(src)

    report: Dict[str, object] = {
        "state_count": len(state_ids),
        "reachable_count": len(reachable),
        "unreachable": sorted(state_set - reachable),
        "dead_states": sorted(state_set - alive),
        "accepting": sorted(state.id for state in automaton.states if state.is_final),
        "alphabet": automaton.alphabet(),
        "transition_count": automaton.transition_count(),
        "has_epsilon": automaton.has_epsilon(),
        "is_deterministic": deterministic,
    }
    return report
