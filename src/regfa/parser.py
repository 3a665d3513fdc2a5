import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Final, Iterable, Union

from regfa.tokens import Token, TokenType, tokenize

logger = logging.getLogger(__name__)


class RegexpError(Exception):
    ...


class RegexpSyntaxError(RegexpError):
    ...


class Operator(Enum):
    Union = auto()
    Concat = auto()
    Star = auto()

    def __repr__(self):
        return f"Op({self.name})"


@dataclass(slots=True, frozen=True)
class Character:
    char: str

    def __repr__(self):
        return f"Char({self.char!r})"


ExprUnit = Union[Character, Operator]

PRECEDENCE: Final[dict[Operator, int]] = {
    Operator.Union: 1,
    Operator.Concat: 2,
    Operator.Star: 3,
}

# marks an open parenthesis on the operator stack
PARENS: Final[str] = "("


def precedence(operator: Operator) -> int:
    return PRECEDENCE[operator]


class PostfixParser:
    """
    Converts a stream of tokens to a postfix (reverse polish) expression
    using the shunting-yard algorithm

    Concatenation is implicit in the source, so a `Concat` operator is inserted
    whenever something that starts an operand follows something that completed one

    Examples
    --------
    >>> PostfixParser(tokenize('a|b')).postfix
    [Char('a'), Char('b'), Op(Union)]
    >>> PostfixParser(tokenize('ab*')).postfix
    [Char('a'), Char('b'), Op(Star), Op(Concat)]
    >>> PostfixParser(tokenize('(ab')).postfix
    Traceback (most recent call last):
        ...
    regfa.parser.RegexpSyntaxError: Invalid expression: unbalanced open parentheses
    """

    def __init__(self, tokens: Iterable[Token]):
        self._postfix: list[ExprUnit] = []
        self._operators: list[Operator | str] = []
        # True if the last token completed an operand
        self._completed_operand = False
        self.parse(tokens)

    @property
    def postfix(self) -> list[ExprUnit]:
        return self._postfix

    def add_operator(self, operator: Operator):
        while self._operators and isinstance(self._operators[-1], Operator):
            if precedence(self._operators[-1]) < precedence(operator):
                break
            self._postfix.append(self._operators.pop())
        self._operators.append(operator)

    def pop_operators(self):
        """Emit every operator above the topmost parenthesis marker"""
        while self._operators and isinstance(self._operators[-1], Operator):
            self._postfix.append(self._operators.pop())

    def concat_if_needed(self):
        if self._completed_operand:
            self.add_operator(Operator.Concat)

    def parse_operand(self, char: str):
        self.concat_if_needed()
        self._postfix.append(Character(char))
        self._completed_operand = True

    def parse_star(self):
        if not self._completed_operand:
            raise RegexpSyntaxError("Invalid expression: star after operator")
        self.add_operator(Operator.Star)
        # star is unary and postfix, so it applies to the operand just emitted
        self._postfix.append(self._operators.pop())
        self._completed_operand = True

    def parse_pipe(self):
        if not self._completed_operand:
            raise RegexpSyntaxError("Invalid expression: pipe after operator")
        self.add_operator(Operator.Union)
        self._completed_operand = False

    def parse_open_paren(self):
        self.concat_if_needed()
        self._operators.append(PARENS)
        self._completed_operand = False

    def parse_close_paren(self):
        if not self._completed_operand:
            raise RegexpSyntaxError(
                "Invalid expression: closed parentheses on incomplete expression"
            )
        self.pop_operators()
        if not self._operators:
            raise RegexpSyntaxError(
                "Invalid expression: unbalanced closed parentheses"
            )
        self._operators.pop()
        self._completed_operand = True

    def parse(self, tokens: Iterable[Token]):
        for token in tokens:
            match token.type:
                case TokenType.Char:
                    self.parse_operand(token.char)
                case TokenType.Backslash:
                    self.parse_operand("\\")
                case TokenType.Star:
                    self.parse_star()
                case TokenType.Pipe:
                    self.parse_pipe()
                case TokenType.OpenParen:
                    self.parse_open_paren()
                case TokenType.CloseParen:
                    self.parse_close_paren()
                case _:
                    raise RuntimeError(f"unrecognized token {token}")

        self.pop_operators()
        if self._operators:
            raise RegexpSyntaxError("Invalid expression: unbalanced open parentheses")
        logger.debug("postfix expression: %r", self._postfix)

    def __repr__(self):
        return f"PostfixParser({self._postfix})"


def regex_to_postfix(regex: str) -> list[ExprUnit]:
    return PostfixParser(tokenize(regex)).postfix


if __name__ == "__main__":
    import doctest

    doctest.testmod()
