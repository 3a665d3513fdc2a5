from enum import Enum, auto
from typing import Final, Iterator, NamedTuple, Optional


class TokenType(Enum):
    Char = auto()
    Star = auto()
    Pipe = auto()
    OpenParen = auto()
    CloseParen = auto()
    Backslash = auto()


class Token(NamedTuple):
    type: TokenType
    # only set for `TokenType.Char`
    char: Optional[str] = None

    def __repr__(self):
        if self.type == TokenType.Char:
            return f"Char({self.char!r})"
        return self.type.name


char2token_type: Final[dict[str, TokenType]] = {
    "*": TokenType.Star,
    "|": TokenType.Pipe,
    "(": TokenType.OpenParen,
    ")": TokenType.CloseParen,
    "\\": TokenType.Backslash,
}


def tokenize(regex: str) -> Iterator[Token]:
    """
    Lazily split `regex` into tokens, exactly one token per character

    Examples
    --------
    >>> list(tokenize('a|(b)*'))
    [Char('a'), Pipe, OpenParen, Char('b'), CloseParen, Star]
    >>> list(tokenize('\\\\'))
    [Backslash]
    """
    for char in regex:
        token_type = char2token_type.get(char, TokenType.Char)
        if token_type == TokenType.Char:
            yield Token(token_type, char)
        else:
            yield Token(token_type)
