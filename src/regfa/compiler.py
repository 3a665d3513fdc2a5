import logging
from typing import NamedTuple, Optional

from regfa.export import FaRepresentation, to_fa_representation
from regfa.fsm import DFA, NFA, EpsilonNFA, FiniteStateAutomaton
from regfa.parser import ExprUnit, RegexpError, regex_to_postfix
from regfa.utils import Stage

logger = logging.getLogger(__name__)


class CompileResult(NamedTuple):
    """Exactly one of `enfa` and `error` is set"""

    enfa: Optional[EpsilonNFA]
    error: Optional[str]

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> EpsilonNFA:
        if self.enfa is None:
            raise ValueError(self.error)
        return self.enfa


def compile_to_postfix(expr: str) -> str:
    """
    Debug text of the postfix form of `expr`, or of the error preventing it

    Examples
    --------
    >>> compile_to_postfix('a|b')
    "[Char('a'), Char('b'), Op(Union)]"
    >>> compile_to_postfix('ab)')
    "RegexpSyntaxError('Invalid expression: unbalanced closed parentheses')"
    """
    try:
        return repr(regex_to_postfix(expr))
    except RegexpError as e:
        return repr(e)


def compile_to_enfa(expr: str) -> CompileResult:
    try:
        return CompileResult(EpsilonNFA.from_postfix(regex_to_postfix(expr)), None)
    except RegexpError as e:
        logger.debug("failed to compile %r: %s", expr, e)
        return CompileResult(None, f"{e.__class__.__name__}: {e}")


def enfa_to_nfa(enfa: EpsilonNFA) -> NFA:
    return enfa.to_nfa().prune_unreachable()


def nfa_to_min_dfa(nfa: NFA) -> DFA:
    return nfa.minimize()


def export(fsm: FiniteStateAutomaton) -> FaRepresentation:
    return to_fa_representation(fsm)


def compile_regex(
    expr: str, stage: Stage = Stage.DFA
) -> list[ExprUnit] | FiniteStateAutomaton:
    """
    Run the pipeline on `expr` up to and including `stage`

    Raises
    ------
    RegexpError
        If `expr` is not a valid regular expression
    """
    postfix = regex_to_postfix(expr)
    if stage == Stage.POSTFIX:
        return postfix

    fsm: FiniteStateAutomaton = EpsilonNFA.from_postfix(postfix)
    logger.debug(
        "%r: ε-NFA has %d states, %d transitions",
        expr,
        fsm.n_states,
        fsm.n_transitions(),
    )
    if stage == Stage.ENFA:
        return fsm

    fsm = enfa_to_nfa(fsm)
    logger.debug(
        "%r: NFA has %d states, %d transitions", expr, fsm.n_states, fsm.n_transitions()
    )
    if stage == Stage.NFA:
        return fsm

    fsm = nfa_to_min_dfa(fsm)
    logger.debug(
        "%r: minimal DFA has %d states, %d transitions",
        expr,
        fsm.n_states,
        fsm.n_transitions(),
    )
    return fsm


if __name__ == "__main__":
    import doctest

    doctest.testmod()
