from typing import Iterator

import pytest

from regfa.tokens import Token, TokenType, tokenize


@pytest.mark.parametrize(
    "pattern, expected",
    [
        ("", []),
        ("a", [Token(TokenType.Char, "a")]),
        (
            "a|b",
            [
                Token(TokenType.Char, "a"),
                Token(TokenType.Pipe),
                Token(TokenType.Char, "b"),
            ],
        ),
        (
            "(x)*",
            [
                Token(TokenType.OpenParen),
                Token(TokenType.Char, "x"),
                Token(TokenType.CloseParen),
                Token(TokenType.Star),
            ],
        ),
        ("\\", [Token(TokenType.Backslash)]),
        (" .", [Token(TokenType.Char, " "), Token(TokenType.Char, ".")]),
        ("ε", [Token(TokenType.Char, "ε")]),
    ],
)
def test_tokenize(pattern, expected):
    assert list(tokenize(pattern)) == expected, pattern


def test_one_token_per_character():
    pattern = "a(b|c)*\\d**"
    assert len(list(tokenize(pattern))) == len(pattern)


def test_tokenize_is_lazy_and_not_restartable():
    tokens = tokenize("ab")
    assert isinstance(tokens, Iterator)
    assert next(tokens) == Token(TokenType.Char, "a")
    assert list(tokens) == [Token(TokenType.Char, "b")]
    assert list(tokens) == []
