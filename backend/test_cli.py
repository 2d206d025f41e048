"""Tests for the mapscript command line"""

import io
import json

from mapscript.cli import main


def test_compile_text_to_stdout(capsys):
    assert main(["compile", "--text", "A:: X\nA -> B"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("digraph G {")
    assert '"A" -> "B"' in out


def test_compile_file_writes_dot(tmp_path, capsys):
    source = tmp_path / "map.ms"
    source.write_text("A:: X\n", encoding="utf-8")
    assert main(["compile", str(source)]) == 0
    output = tmp_path / "map.dot"
    assert output.read_text(encoding="utf-8").startswith("digraph G {")
    assert "Wrote" in capsys.readouterr().out


def test_compile_from_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("A:: X\n"))
    assert main(["compile"]) == 0
    assert '"A" [label="X"' in capsys.readouterr().out


def test_strict_fails_on_errors(capsys):
    assert main(["compile", "--strict", "--text=---Bad"]) == 3
    captured = capsys.readouterr()
    assert "Line 1:" in captured.err
    assert captured.out.startswith("digraph G {")


def test_issues_as_json(capsys):
    assert main(["--error-format", "json", "compile", "--text", "nonsense here"]) == 0
    payload = json.loads(capsys.readouterr().err.splitlines()[0])
    assert payload["ok"] is False
    assert payload["issues"][0]["code"] == "UNRECOGNISED_LINE"


def test_missing_file(tmp_path, capsys):
    assert main(["compile", str(tmp_path / "nope.ms")]) == 2
    assert "E_IO_READ" in capsys.readouterr().err


def test_conflicting_outputs(capsys):
    assert main(["compile", "--text", "A:: X", "--stdout", "-o", "out.dot"]) == 2
    assert "mutually exclusive" in capsys.readouterr().err


def test_missing_subcommand(capsys):
    assert main([]) == 2
    assert "missing subcommand" in capsys.readouterr().err


def test_check(capsys):
    assert main(["check", "--text", "A:: X"]) == 0
    assert "Valid" in capsys.readouterr().out
    assert main(["check", "--text", "nonsense here"]) == 3
