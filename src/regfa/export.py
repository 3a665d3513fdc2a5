import json
from dataclasses import asdict, dataclass
from typing import Optional

import graphviz

from regfa.fsm import FiniteStateAutomaton
from regfa.utils import symbol_sort_key


@dataclass(slots=True, frozen=True)
class FaRepresentation:
    """
    A read-only snapshot of an automaton handed to the visualization layer

    Attributes
    ----------
    dot_description: str
        The automaton in the Graphviz DOT language
    start: int
        The start state
    fin: tuple[int, ...]
        The accepting states, in increasing order
    """

    dot_description: str
    start: int
    fin: tuple[int, ...]

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    def render(
        self, directory: str = "graphs", filename: Optional[str] = None, view=False
    ) -> str:
        """Draw the automaton with the Graphviz `dot` executable, returns the output path"""
        source = graphviz.Source(
            self.dot_description,
            filename=filename or str(id(self)),
            directory=directory,
            format="pdf",
            engine="dot",
        )
        return source.render(view=view)


def edge_label(symbols) -> str:
    """
    >>> from regfa.utils import EPSILON
    >>> edge_label({'b', EPSILON, 'a'})
    'ε, a, b'
    """
    return ", ".join(map(str, sorted(symbols, key=symbol_sort_key)))


def to_dot(fsm: FiniteStateAutomaton) -> graphviz.Digraph:
    dot = graphviz.Digraph(fsm.__class__.__name__, engine="dot")
    dot.attr("graph", rankdir="LR")
    dot.attr("node", fontname="verdana")
    dot.attr("edge", fontname="verdana")

    for state in fsm.states:
        attributes = {
            "shape": "doublecircle" if state in fsm.accepting_states else "circle"
        }
        if state == fsm.start_state:
            attributes.update(color="green", style="filled")
        dot.node(str(state), **attributes)

    for start, end, symbols in fsm.all_transitions():
        # a literal backslash must not start an escape sequence in the label
        dot.edge(str(start), str(end), label=graphviz.escape(edge_label(symbols)))
    return dot


def to_fa_representation(fsm: FiniteStateAutomaton) -> FaRepresentation:
    return FaRepresentation(
        to_dot(fsm).source, fsm.start_state, tuple(sorted(fsm.accepting_states))
    )
