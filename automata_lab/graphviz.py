from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .automata import EPSILON, Automaton

EPSILON_LABEL = "ε"


def automaton_to_dot(
    automaton: Automaton,
    *,
    graph_name: str = "Automaton",
    rankdir: str = "LR",
    highlight_path: Sequence[Tuple[int, int]] = (),
) -> str:
    """Return a Graphviz DOT representation for the provided automaton."""
    highlight_edges = set(highlight_path)

    lines: List[str] = [f'digraph "{graph_name}" {{']
    lines.append(f"  rankdir={rankdir};")
    lines.append("  node [shape=circle];")
    if len(automaton):
        lines.append("  __start__ [shape=point];")
        lines.append(f"  __start__ -> {automaton.start_id};")

    for state in automaton.states:
        shape = "doublecircle" if state.is_final else "circle"
        kind = automaton.kind_of(state.id)
        label = f"{state.id}\\n{kind.name}" if kind is not None else str(state.id)
        lines.append(f'  {state.id} [shape={shape}, label="{label}"];')

    for source, target, labels in _collect_edges(automaton):
        label = ", ".join(labels)
        attributes = [f'label="{label}"']
        if (source, target) in highlight_edges:
            attributes.append('color="red"')
            attributes.append('fontcolor="red"')
        attr_text = ", ".join(attributes)
        lines.append(f"  {source} -> {target} [{attr_text}];")

    lines.append("}")
    return "\n".join(lines)


def _symbol_label(symbol: str) -> str:
    if symbol == EPSILON:
        return EPSILON_LABEL
    return symbol.replace("\\", "\\\\").replace('"', '\\"')


def _collect_edges(automaton: Automaton) -> Iterable[Tuple[int, int, List[str]]]:
    grouped: dict[Tuple[int, int], List[str]] = {}
    for source, target, symbol in automaton.edges():
        grouped.setdefault((source, target), []).append(_symbol_label(symbol))
    for (source, target), labels in sorted(grouped.items()):
        labels.sort()
        yield source, target, labels


def highlight_for(automaton: Automaton, text: str) -> List[Tuple[int, int]]:
    """Edges walked while reading ``text``, stopping at the first dead end."""
    path: List[Tuple[int, int]] = []
    if not len(automaton):
        return path
    current = automaton.start_id
    for char in text:
        nxt = automaton.step(current, char)
        if nxt is None:
            break
        path.append((current, nxt))
        current = nxt
    return path


def write_dot(automaton: Automaton, path: str, **kwargs) -> str:
    """Generate a DOT file at `path` and return the absolute path."""
    dot = automaton_to_dot(automaton, **kwargs)
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(dot + "\n")
    return path
