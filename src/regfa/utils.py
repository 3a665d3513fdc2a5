from enum import Enum
from typing import Final, Union


class Epsilon(Enum):
    EPSILON = "ε"

    def __repr__(self):
        return self.value

    def __str__(self):
        return self.value


class Stage(Enum):
    """The points at which the compilation pipeline can stop"""

    POSTFIX = "postfix"
    ENFA = "enfa"
    NFA = "nfa"
    DFA = "dfa"


State = int
Symbol = Union[str, Epsilon]

EPSILON: Final[Epsilon] = Epsilon.EPSILON


def symbol_sort_key(symbol: Symbol) -> tuple[int, str]:
    """
    Orders epsilon before every character, then characters lexicographically

    Examples
    --------
    >>> sorted(['b', EPSILON, 'a'], key=symbol_sort_key)
    [ε, 'a', 'b']
    """
    if symbol is EPSILON:
        return 0, ""
    return 1, symbol
