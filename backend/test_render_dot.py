"""Tests for DOT emission and element id mapping"""

from mapscript.compiler import compile_mapscript, parse_element_id
from mapscript.compiler.render_dot import dot_attr_list, dot_quote


def dot_lines(text, font_name="Helvetica"):
    return compile_mapscript(text, font_name=font_name).dot.split("\n")


def test_defaults_header():
    lines = dot_lines("A:: X")
    assert lines[:4] == [
        "digraph G {",
        '  graph [fontname="Helvetica"];',
        '  node [fontname="Helvetica", shape="box"];',
        '  edge [fontname="Helvetica", fontsize="12"];',
    ]
    assert lines[-1] == "}"


def test_node_and_edge_statements():
    lines = dot_lines("A:: Hello [colour=red]\nB:: Y\nA -> B\n")
    assert '  "A" [fillcolor="red", style="filled", label="Hello", id="ms_n_A"];' in lines
    assert '  "B" [label="Y", id="ms_n_B"];' in lines
    assert '  "A" -> "B" [id="ms_e_3--A--B"];' in lines


def test_section_order():
    dot = compile_mapscript("--Group\nA:: X\n--\nB:: Y\nA -> B\n").dot
    assert dot.index("subgraph cluster_0 {") < dot.index('  "B" [label="Y"') < dot.index('"A" -> "B"')


def test_cluster_block():
    lines = dot_lines("--Group [colour=red | border=2px dashed blue]\nA:: X\n--\n")
    start = lines.index("  subgraph cluster_0 {")
    assert lines[start + 1:start + 8] == [
        '    label="Group";',
        '    style="rounded,filled,dashed";',
        '    color="blue";',
        '    penwidth="2";',
        '    fillcolor="red";',
        '    "A" [label="X", id="ms_n_A"];',
        "  }",
    ]


def test_nested_clusters_are_emitted_inside_parent():
    lines = dot_lines("--Outer\n----Inner\nA:: X\n----\n--\n")
    outer = lines.index("  subgraph cluster_0 {")
    inner = lines.index("    subgraph cluster_1 {")
    assert outer < inner
    assert '      "A" [label="X", id="ms_n_A"];' in lines


def test_empty_cluster_is_still_emitted():
    lines = dot_lines("--\n")
    assert "  subgraph cluster_0 {" in lines
    assert '    label=' not in "\n".join(lines)


def test_title_and_directives():
    lines = dot_lines(
        "Title: My map\nTitle position: top right\nDirection: LR\nSpacing along: 5\nBackground: seagreen\n"
    )
    assert '  bgcolor="seagreen";' in lines
    assert '  label="My map\\n"; labelloc="t"; labeljust="r"; fontsize="18";' in lines
    assert '  rankdir="LR";' in lines
    assert '  ranksep="0.5";' in lines


def test_label_wrap_keeps_backslash_escape():
    dot = compile_mapscript("Label wrap: 10\nA:: the quick brown fox").dot
    assert 'label="the quick\\nbrown fox"' in dot


def test_only_double_quotes_are_escaped():
    dot = compile_mapscript('A:: Say "hi" \\ now').dot
    assert 'label="Say \\"hi\\" \\ now"' in dot


def test_edge_attributes():
    lines = dot_lines("Default link colour: red\nA -> B [calls | 2px dotted]")
    assert '  edge [fontname="Helvetica", fontsize="12", color="red"];' in lines
    assert '  "A" -> "B" [label="calls", penwidth="2", style="dotted", id="ms_e_2--A--B"];' in lines


def test_unchanged_input_gives_identical_output():
    text = "Title: T\n--G\nA:: X\n--\nA | B -> C\n"
    assert compile_mapscript(text).dot == compile_mapscript(text).dot


def test_parse_element_id():
    assert parse_element_id("ms_n_A") == {"kind": "node", "token": "A"}
    assert parse_element_id("ms_e_12--A--order_service") == {
        "kind": "edge",
        "line": 12,
        "from_token": "A",
        "to_token": "order_service",
    }
    assert parse_element_id("graph0") is None


def test_edge_ids_survive_free_text_endpoints():
    dot = compile_mapscript("Order Service -> Billing-Team").dot
    assert 'id="ms_e_1--order_service--billing_team"' in dot


def test_quoting_helpers():
    assert dot_quote('a"b') == '"a\\"b"'
    assert dot_attr_list({}) == ""
    assert dot_attr_list({"a": None, "b": "", "c": 1.5}) == ' [c="1.5"]'
