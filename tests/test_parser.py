import pytest

from regfa.parser import (
    Character,
    Operator,
    PostfixParser,
    RegexpSyntaxError,
    regex_to_postfix,
)
from regfa.tokens import tokenize

a, b, c = Character("a"), Character("b"), Character("c")
UNION, CONCAT, STAR = Operator.Union, Operator.Concat, Operator.Star


@pytest.mark.parametrize(
    "pattern, expected",
    [
        ("", []),
        ("a", [a]),
        ("ab", [a, b, CONCAT]),
        ("abc", [a, b, CONCAT, c, CONCAT]),
        ("a|b", [a, b, UNION]),
        ("ab*", [a, b, STAR, CONCAT]),
        ("a|bc", [a, b, c, CONCAT, UNION]),
        ("ab|c", [a, b, CONCAT, c, UNION]),
        ("a|b*", [a, b, STAR, UNION]),
        ("(a|b)c", [a, b, UNION, c, CONCAT]),
        ("(a)*", [a, STAR]),
        ("a**", [a, STAR, STAR]),
        ("((a))", [a]),
        ("a\\b", [a, Character("\\"), CONCAT, b, CONCAT]),
        ("a(b)", [a, b, CONCAT]),
        ("a*(b)", [a, STAR, b, CONCAT]),
        ("a|", [a, UNION]),
    ],
)
def test_postfix(pattern, expected):
    assert regex_to_postfix(pattern) == expected, pattern


@pytest.mark.parametrize(
    "pattern, reason",
    [
        ("*ab", "star after operator"),
        ("a|*", "star after operator"),
        ("(*)b", "star after operator"),
        ("|a", "pipe after operator"),
        ("a||b", "pipe after operator"),
        ("a(|b)", "pipe after operator"),
        ("(ab", "unbalanced open parentheses"),
        ("((a)", "unbalanced open parentheses"),
        ("ab)", "unbalanced closed parentheses"),
        ("(a))", "unbalanced closed parentheses"),
        ("()", "closed parentheses on incomplete expression"),
        (")(", "closed parentheses on incomplete expression"),
        ("a|)", "closed parentheses on incomplete expression"),
    ],
)
def test_syntax_errors(pattern, reason):
    with pytest.raises(RegexpSyntaxError, match=reason):
        regex_to_postfix(pattern)


def test_parser_consumes_any_token_iterable():
    parser = PostfixParser(iter(list(tokenize("a|b"))))
    assert parser.postfix == [a, b, UNION]


def test_debug_representation():
    assert repr(regex_to_postfix("(a|b)*")) == "[Char('a'), Char('b'), Op(Union), Op(Star)]"
