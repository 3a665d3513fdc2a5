import json

from click.testing import CliRunner

from regfa import main
from regfa.export import FaRepresentation
from regfa.main import entry


def test_default_is_minimal_dfa_as_json():
    result = CliRunner().invoke(entry, ["a|b"])
    assert result.exit_code == 0, result.output
    output = json.loads(result.output)
    assert output["a|b"]["start"] == 0
    assert output["a|b"]["fin"] == [1]
    assert output["a|b"]["dot_description"].startswith("digraph DFA {")


def test_postfix_stage():
    result = CliRunner().invoke(entry, ["a|b", "--stage", "postfix"])
    assert result.exit_code == 0, result.output
    assert result.output == "[Char('a'), Char('b'), Op(Union)]\n"


def test_dot_format():
    result = CliRunner().invoke(entry, ["ab*", "-s", "enfa", "-f", "dot"])
    assert result.exit_code == 0, result.output
    assert result.output.startswith("digraph EpsilonNFA {")


def test_invalid_pattern():
    result = CliRunner().invoke(entry, ["(ab"])
    assert result.exit_code == 1
    assert "unbalanced open parentheses" in result.output


def test_missing_pattern():
    result = CliRunner().invoke(entry, [])
    assert result.exit_code == 2


def test_postfix_can_not_be_rendered():
    result = CliRunner().invoke(entry, ["a", "-s", "postfix", "--render", "graphs"])
    assert result.exit_code == 2


def test_input_file(tmp_path):
    patterns = tmp_path / "patterns.txt"
    patterns.write_text("a\nab*\n\n")
    result = CliRunner().invoke(entry, ["--input-file", str(patterns), "-s", "nfa"])
    assert result.exit_code == 0, result.output
    output = json.loads(result.output)
    assert list(output) == ["a", "ab*"]
    assert output["ab*"]["dot_description"].startswith("digraph NFA {")


def test_duplicate_lines_are_reported_once(tmp_path):
    patterns = tmp_path / "patterns.txt"
    patterns.write_text("ab*\na\nab*\na\n")
    result = CliRunner().invoke(
        entry, ["--input-file", str(patterns), "-s", "enfa", "-f", "dot"]
    )
    assert result.exit_code == 0, result.output
    assert result.output.count("digraph EpsilonNFA {") == 2


def test_render_reuses_the_compiled_automaton(tmp_path, monkeypatch):
    compiled, rendered = [], []

    def compile_regex(expr, stage):
        compiled.append(expr)
        return main_compile_regex(expr, stage)

    def render(self, directory="graphs", filename=None, view=False):
        rendered.append((self, directory))
        return str(tmp_path / "automaton.pdf")

    main_compile_regex = main.compile_regex
    monkeypatch.setattr(main, "compile_regex", compile_regex)
    monkeypatch.setattr(FaRepresentation, "render", render)

    result = CliRunner().invoke(entry, ["a|b", "--render", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert compiled == ["a|b"]
    assert len(rendered) == 1
    representation, directory = rendered[0]
    assert directory == str(tmp_path)
    assert json.loads(result.output)["a|b"]["dot_description"] == (
        representation.dot_description
    )
