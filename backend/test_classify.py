"""Tests for line classification and trailing bracket parsing"""

from mapscript.compiler.brackets import (
    BracketAttrs,
    parse_bracket_attrs,
    split_trailing_bracket,
)
from mapscript.compiler.classify import LineKind, classify_line, split_comment


def test_node_line():
    line = classify_line("A:: Hello [colour=red]")
    assert line.kind == LineKind.NODE
    assert line.head == "A"
    assert line.body == "Hello"
    assert line.bracket == "colour=red"


def test_edge_line_with_lists():
    line = classify_line("A | B -> C [calls]")
    assert line.kind == LineKind.EDGE
    assert line.head == "A | B"
    assert line.body == "C"
    assert line.bracket == "calls"


def test_settings_line_needs_known_key():
    line = classify_line("Title: My map")
    assert line.kind == LineKind.SETTINGS
    assert line.key == "title"
    assert line.value == "My map"

    assert classify_line("Note: something").kind == LineKind.UNRECOGNISED


def test_colon_in_edge_is_not_a_setting():
    line = classify_line("Title: a -> b")
    assert line.kind == LineKind.EDGE
    assert line.head == "Title: a"
    assert line.body == "b"


def test_cluster_marker_with_comment():
    line = classify_line("--Group [colour=blue] # outer box")
    assert line.kind == LineKind.CLUSTER
    assert line.depth == 2
    assert line.body == "Group"
    assert line.bracket == "colour=blue"
    assert line.comment == "# outer box"
    assert line.is_well_formed


def test_odd_marker_is_not_well_formed():
    line = classify_line("---Bad")
    assert line.kind == LineKind.CLUSTER
    assert line.depth == 3
    assert not line.is_well_formed


def test_empty_marker_vs_empty_bracket():
    assert classify_line("--").marker_is_empty
    assert not classify_line("--[]").marker_is_empty
    assert not classify_line("--Label").marker_is_empty


def test_comment_only_line_is_blank():
    assert classify_line("   # just a comment").kind == LineKind.BLANK
    assert classify_line("").kind == LineKind.BLANK


def test_escaped_hash_is_literal():
    line = classify_line("Background: \\#ffffff # page colour")
    assert line.kind == LineKind.SETTINGS
    assert line.value == "#ffffff"
    assert line.comment == "# page colour"


def test_split_comment():
    assert split_comment("A -> B # note") == ("A -> B ", "# note")
    assert split_comment("A -> B") == ("A -> B", "")


# ---------- brackets ----------

def test_split_trailing_bracket():
    assert split_trailing_bracket("Hello [a=b]") == ("Hello", "a=b")
    assert split_trailing_bracket("Hello [a=b] tail") == ("Hello [a=b] tail", None)
    assert split_trailing_bracket("Hello") == ("Hello", None)


def test_parse_bracket_attrs():
    attrs = parse_bracket_attrs("colour = Red | seagreen | Label=hi")
    assert attrs.kv == {"colour": "Red", "label": "hi"}
    assert attrs.loose == ["seagreen"]


def test_bracket_first_alias():
    attrs = BracketAttrs(kv={"color": "red"})
    assert attrs.first("colour", "color") == "red"
    assert attrs.first("background") == ""
