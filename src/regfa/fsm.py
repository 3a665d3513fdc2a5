import logging
from collections import defaultdict, deque
from itertools import chain
from typing import Iterable, Iterator, Optional

import networkx as nx
from more_itertools import all_unique

from regfa.parser import Character, ExprUnit, Operator, RegexpError
from regfa.utils import EPSILON, State, Symbol, symbol_sort_key

logger = logging.getLogger(__name__)


class RegexpBuildError(RegexpError):
    ...


class FiniteStateAutomaton(defaultdict[State, dict[State, set[Symbol]]]):
    """
    A finite state automaton stored as an adjacency mapping

        self[source][destination] -> set of symbols labelling the edge

    States are the dense integers 0 .. n_states - 1, so merging two automata
    only needs an offset added to every state of the appended one.
    An edge is never stored with an empty symbol set.
    """

    __slots__ = ("n_states", "start_state", "accepting_states", "_n_edges")

    def __init__(
        self,
        n_states: int = 0,
        start_state: State = 0,
        accepting_states: Iterable[State] = (),
    ):
        super().__init__(dict)
        self.n_states = n_states
        self.start_state = start_state
        self.accepting_states: set[State] = set(accepting_states)
        # number of (source, destination) pairs with at least one symbol
        self._n_edges = 0

    def add_state(self) -> State:
        state = self.n_states
        self.n_states += 1
        return state

    def add_transition(self, start: State, end: State, symbol: Symbol):
        successors = self[start]
        if end not in successors:
            successors[end] = set()
            self._n_edges += 1
        successors[end].add(symbol)

    def add_transitions(self, start: State, end: State, symbols: Iterable[Symbol]):
        for symbol in symbols:
            self.add_transition(start, end, symbol)

    def epsilon(self, start: State, end: State):
        self.add_transition(start, end, EPSILON)

    def successors(self, state: State) -> dict[State, set[Symbol]]:
        # `self[state]` would insert an empty entry for states without edges
        return self.get(state, {})

    def all_transitions(self) -> Iterator[tuple[State, State, set[Symbol]]]:
        for start in sorted(self):
            for end, symbols in sorted(self[start].items()):
                yield start, end, symbols

    def transition(self, state: State, symbol: Symbol) -> tuple[State, ...]:
        return tuple(
            end
            for end, symbols in self.successors(state).items()
            if symbol in symbols
        )

    @property
    def states(self) -> range:
        return range(self.n_states)

    @property
    def alphabet(self) -> set[Symbol]:
        return set(
            chain.from_iterable(symbols for _, _, symbols in self.all_transitions())
        ) - {EPSILON}

    def n_transitions(self) -> int:
        return self._n_edges

    def merge(self, other: "FiniteStateAutomaton") -> int:
        """
        Append the states of `other` after the states of this automaton

        Every state `s` of `other` becomes `s + offset` where the offset is the
        state count of this automaton before the merge. `other` is consumed.

        Returns
        -------
        int
            The offset added to the states of `other`
        """
        offset = self.n_states
        self.n_states += other.n_states
        for start, successors in other.items():
            self[offset + start] = {
                offset + end: set(symbols) for end, symbols in successors.items()
            }
        self._n_edges += other._n_edges
        return offset

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(n_states={self.n_states}, "
            f"start_state={self.start_state}, "
            f"transitions={dict(self)}, "
            f"accepting_states={sorted(self.accepting_states)})"
        )


class EpsilonNFA(FiniteStateAutomaton):
    """
    An NFA which may also move on the empty string, built by Thompson's construction

    Examples
    --------
    >>> from regfa.parser import regex_to_postfix
    >>> enfa = EpsilonNFA.from_postfix(regex_to_postfix('a|b'))
    >>> enfa.n_states, enfa.start_state, enfa.accepting_states
    (6, 4, {5})
    """

    __slots__ = ()

    @staticmethod
    def base(char: str) -> "EpsilonNFA":
        enfa = EpsilonNFA(2, 0, (1,))
        enfa.add_transition(0, 1, char)
        return enfa

    def effort(self) -> int:
        return self.n_states + self.n_transitions()

    def union(self, other: "EpsilonNFA") -> "EpsilonNFA":
        # re-index whichever operand is cheaper to walk
        if self.effort() < other.effort():
            self, other = other, self

        offset = self.merge(other)
        start, accept = self.add_state(), self.add_state()

        self.epsilon(start, self.start_state)
        self.epsilon(start, offset + other.start_state)
        for state in self.accepting_states:
            self.epsilon(state, accept)
        for state in other.accepting_states:
            self.epsilon(offset + state, accept)

        self.start_state = start
        self.accepting_states = {accept}
        return self

    def concatenate(self, other: "EpsilonNFA") -> "EpsilonNFA":
        left, right = self, other
        cost_keep_left = (
            right.effort() + len(left.accepting_states) + len(right.accepting_states)
        )
        cost_keep_right = left.effort() + len(left.accepting_states)

        if cost_keep_right < cost_keep_left:
            offset = right.merge(left)
            for state in left.accepting_states:
                right.epsilon(offset + state, right.start_state)
            right.start_state = offset + left.start_state
            return right

        offset = left.merge(right)
        for state in left.accepting_states:
            left.epsilon(state, offset + right.start_state)
        left.accepting_states = {offset + state for state in right.accepting_states}
        return left

    def star(self) -> "EpsilonNFA":
        start, accept = self.add_state(), self.add_state()

        self.epsilon(start, self.start_state)
        self.epsilon(start, accept)
        for state in self.accepting_states:
            self.epsilon(state, self.start_state)
            self.epsilon(state, accept)

        self.start_state = start
        self.accepting_states = {accept}
        return self

    @staticmethod
    def from_postfix(postfix: Iterable[ExprUnit]) -> "EpsilonNFA":
        """
        Evaluate a postfix expression over a stack of partial automata

        Raises
        ------
        RegexpBuildError
            If the expression is empty or is not a well-formed postfix expression
        """
        stack: list[EpsilonNFA] = []
        empty = True

        for unit in postfix:
            empty = False
            match unit:
                case Character(char):
                    stack.append(EpsilonNFA.base(char))
                case Operator.Union | Operator.Concat:
                    if len(stack) < 2:
                        raise RegexpBuildError(
                            f"Invalid postfix expression: not enough operands for "
                            f"{unit.name.lower()}"
                        )
                    upper = stack.pop()
                    lower = stack.pop()
                    if unit is Operator.Union:
                        stack.append(lower.union(upper))
                    else:
                        stack.append(lower.concatenate(upper))
                case Operator.Star:
                    if not stack:
                        raise RegexpBuildError(
                            "Invalid postfix expression: not enough operands for kleene star"
                        )
                    stack.append(stack.pop().star())
                case _:
                    raise RuntimeError(f"unrecognized expression unit {unit!r}")

        if empty:
            raise RegexpBuildError("Invalid postfix expression: empty expression")
        if len(stack) != 1:
            raise RegexpBuildError("Invalid postfix expression: too few operators")
        return stack.pop()

    def epsilon_graph(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        graph.add_nodes_from(self.states)
        graph.add_edges_from(
            (start, end)
            for start, end, symbols in self.all_transitions()
            if EPSILON in symbols
        )
        return graph

    def _number_components(self) -> list[State]:
        """
        Map every state to the strongly connected component of the epsilon
        subgraph containing it

        Components are numbered sinks first: an epsilon edge between two different
        components always leads from a higher to a lower component number
        """
        condensed = nx.condensation(self.epsilon_graph())
        order = list(nx.topological_sort(condensed))
        renumbered = {
            component: index for index, component in enumerate(reversed(order))
        }
        mapping = condensed.graph["mapping"]
        return [renumbered[mapping[state]] for state in self.states]

    def to_nfa(self) -> "NFA":
        """
        Remove all epsilon transitions

        Each strongly connected component of the epsilon subgraph becomes a single
        state, so epsilon cycles (e.g. from `a**`) collapse before any propagation.
        Along the remaining acyclic epsilon edges, a component inherits the
        accepting status and the symbol transitions of the components it reaches.
        """
        component_of = self._number_components()
        n_components = max(component_of, default=-1) + 1

        nfa = NFA(n_components, component_of[self.start_state])
        accepting = [False] * n_components
        for state in self.accepting_states:
            accepting[component_of[state]] = True

        epsilon_successors: defaultdict[State, set[State]] = defaultdict(set)
        for start, end, symbols in self.all_transitions():
            u, v = component_of[start], component_of[end]
            if EPSILON in symbols and u != v:
                epsilon_successors[u].add(v)
            # a symbol edge inside one component stays as a self loop
            nfa.add_transitions(u, v, symbols - {EPSILON})

        for u in range(n_components):
            for v in sorted(epsilon_successors[u]):
                accepting[u] = accepting[u] or accepting[v]
                for end, symbols in list(nfa.successors(v).items()):
                    nfa.add_transitions(u, end, symbols)

        nfa.accepting_states = {u for u in range(n_components) if accepting[u]}
        logger.debug(
            "removed epsilons: %d states -> %d states", self.n_states, nfa.n_states
        )
        return nfa


class NFA(FiniteStateAutomaton):
    """
    An automaton without epsilon edges, stored as `source -> {destination: symbols}`

    A state may have several destinations on the same symbol, so `transition`
    returns a tuple and `move` works on sets of states. `prune_unreachable` drops
    the states the start state cannot reach, `reverse` flips every edge and
    `subset_construction` turns the automaton into an equivalent DFA.
    `minimize` chains the two as reverse, determinize, reverse, determinize.
    """

    __slots__ = ()

    def prune_unreachable(self):
        """
        Drop every state that cannot be reached from the start state and renumber
        the survivors densely in breadth first discovery order, so the start state becomes 0
        """
        renumbered: dict[State, State] = {self.start_state: 0}
        queue = deque([self.start_state])

        while queue:
            state = queue.popleft()
            for end in sorted(self.successors(state)):
                if end not in renumbered:
                    renumbered[end] = len(renumbered)
                    queue.append(end)

        pruned = type(self)(
            len(renumbered),
            0,
            (renumbered[state] for state in self.accepting_states if state in renumbered),
        )
        for start, end, symbols in self.all_transitions():
            if start in renumbered:
                pruned.add_transitions(renumbered[start], renumbered[end], symbols)
        return pruned

    def reverse(self) -> "NFA":
        """
        Flip every edge. With several (or no) accepting states, a synthetic start
        state is added which copies the reversed edges of every accepting state
        """
        reversed_nfa = NFA(self.n_states)
        for start, end, symbols in self.all_transitions():
            reversed_nfa.add_transitions(end, start, symbols)

        if len(self.accepting_states) == 1:
            (reversed_nfa.start_state,) = self.accepting_states
            reversed_nfa.accepting_states = {self.start_state}
            return reversed_nfa

        synthetic = reversed_nfa.add_state()
        for state in sorted(self.accepting_states):
            for end, symbols in list(reversed_nfa.successors(state).items()):
                reversed_nfa.add_transitions(synthetic, end, symbols)

        reversed_nfa.start_state = synthetic
        reversed_nfa.accepting_states = {self.start_state}
        if self.start_state in self.accepting_states:
            reversed_nfa.accepting_states.add(synthetic)
        return reversed_nfa

    def move(self, states: Iterable[State]) -> dict[Symbol, frozenset[State]]:
        """For each symbol, the states reachable from `states` on that symbol"""
        moves: defaultdict[Symbol, set[State]] = defaultdict(set)
        for state in states:
            for end, symbols in self.successors(state).items():
                for symbol in symbols:
                    moves[symbol].add(end)
        return {
            symbol: frozenset(moves[symbol])
            for symbol in sorted(moves, key=symbol_sort_key)
        }

    def subset_construction(self) -> "DFA":
        """
        Determinize with the powerset construction

        Subsets are numbered in the order in which they are discovered,
        so the start subset {start_state} is always state 0
        """
        initial = frozenset({self.start_state})
        seen: dict[frozenset[State], State] = {initial: 0}
        queue = deque([initial])
        dfa = DFA()

        while queue:
            subset = queue.popleft()
            state = seen[subset]
            if not subset.isdisjoint(self.accepting_states):
                dfa.accepting_states.add(state)
            for symbol, destination in self.move(subset).items():
                if destination not in seen:
                    seen[destination] = len(seen)
                    queue.append(destination)
                dfa.add_transition(state, seen[destination], symbol)

        dfa.n_states = len(seen)
        return dfa

    def minimize(self) -> "DFA":
        """
        Brzozowski's algorithm: reverse, determinize, reverse, determinize

        Determinizing the reversal of an automaton whose states are all reachable
        yields a minimal DFA for the reversed language. Doing it twice gives the
        minimal DFA of the original language.
        """
        dfa = self.prune_unreachable().reverse().subset_construction()
        dfa = dfa.reverse().subset_construction()
        logger.debug(
            "minimized: %d states -> %d states", self.n_states, dfa.n_states
        )
        return dfa

    def is_deterministic(self) -> bool:
        return all(
            all_unique(chain.from_iterable(self.successors(state).values()))
            for state in self.states
        )


class DFA(NFA):
    """An NFA with at most one outgoing edge per symbol in each state"""

    __slots__ = ()


def is_isomorphic(dfa1: DFA, dfa2: DFA) -> Optional[dict[State, State]]:
    """
    Find a bijection between the states of two DFAs which preserves the start state,
    the accepting states and every labelled edge

    Only states reachable from the start states are walked. When an input has
    unreachable states, two states of `dfa1` may land on the same state of `dfa2`
    even though the state counts agree.

    Returns
    -------
    Optional[dict[State, State]]
        The bijection, or None if the two automata are not isomorphic
    """
    if dfa1.n_states != dfa2.n_states:
        return None

    mapping = {dfa1.start_state: dfa2.start_state}
    queue = deque([dfa1.start_state])

    while queue:
        state = queue.popleft()
        if (state in dfa1.accepting_states) != (
            mapping[state] in dfa2.accepting_states
        ):
            return None
        moves1, moves2 = dfa1.move((state,)), dfa2.move((mapping[state],))
        if moves1.keys() != moves2.keys():
            return None
        for symbol, (end1,) in moves1.items():
            (end2,) = moves2[symbol]
            if end1 not in mapping:
                mapping[end1] = end2
                queue.append(end1)
            elif mapping[end1] != end2:
                return None

    # can only fail when one of the inputs has unreachable states
    if len(set(mapping.values())) != len(mapping):
        return None
    return mapping


if __name__ == "__main__":
    import doctest

    doctest.testmod()
