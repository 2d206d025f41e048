"""Tests for compile_mapscript: graph building, issues and end-to-end scenarios"""

import pytest

from mapscript.compiler import IssueSeverity, MapScriptInputError, compile_mapscript
from mapscript.compiler.builder import apply_node_defaults
from mapscript.compiler.types import NodeAttrs


def edge_pairs(result):
    return [(e.from_id, e.to_id) for e in result.graph.edges]


def test_two_nodes_one_edge():
    result = compile_mapscript("A:: X\nB:: Y\nA -> B\n")
    assert result.errors == []
    assert result.is_valid
    assert list(result.graph.nodes) == ["A", "B"]
    assert edge_pairs(result) == [("A", "B")]
    assert result.graph.edges[0].source_line == 3


def test_grouping_box_scenario():
    result = compile_mapscript("--Group\nA:: X\n--\nB:: Y\nA -> B\n")
    assert result.errors == []
    top = result.graph.top_level_clusters
    assert len(top) == 1
    assert top[0].label == "Group"
    assert top[0].node_ids == ["A"]
    assert all("B" not in c.node_ids for c in result.graph.clusters)
    assert len(result.graph.edges) == 1


def test_odd_marker_is_reported_and_parsing_continues():
    result = compile_mapscript("---Bad\nA:: X\nA -> B\n")
    assert len(result.errors) == 1
    issue = result.errors[0]
    assert issue.code == "ODD_CLUSTER_MARKER"
    assert issue.line == 1
    assert "even number" in issue.message
    assert list(result.graph.nodes) == ["A", "B"]
    assert result.graph.clusters == []


def test_recompiling_is_deterministic():
    text = "Title: Demo\n--Team [colour=rgb(238,238,238)]\nA:: X\n--\nA | B -> C [calls]\n"
    first = compile_mapscript(text)
    second = compile_mapscript(text)
    assert first.dot == second.dot
    assert first.settings == second.settings


def test_cross_product_edges_own_their_attrs():
    result = compile_mapscript("A | B -> C | D | E [calls]")
    assert edge_pairs(result) == [
        ("A", "C"), ("A", "D"), ("A", "E"),
        ("B", "C"), ("B", "D"), ("B", "E"),
    ]
    edges = result.graph.edges
    edges[0].attrs.label = "changed"
    edges[0].attrs.styles.append("dashed")
    assert all(e.attrs.label == "calls" for e in edges[1:])
    assert all(e.attrs.styles == [] for e in edges[1:])


def test_unrecognised_line():
    result = compile_mapscript("A:: X\njust some words\n")
    assert [i.code for i in result.errors] == ["UNRECOGNISED_LINE"]
    assert str(result.errors[0]).startswith("Line 2:")
    assert result.errors[0].text == "just some words"


def test_empty_edge_sides():
    result = compile_mapscript("| -> B\nA -> |\n")
    assert [i.code for i in result.errors] == ["EDGE_NO_SOURCES", "EDGE_NO_TARGETS"]
    assert result.graph.edges == []


def test_free_text_endpoints_are_slugged():
    result = compile_mapscript("Order Service -> Billing")
    nodes = result.graph.nodes
    assert nodes["order_service"].label == "Order Service"
    assert nodes["Billing"].label == "Billing"


def test_redeclared_node_last_label_wins():
    result = compile_mapscript("A:: First\nA:: Second [colour=red]")
    node = result.graph.nodes["A"]
    assert node.label == "Second"
    assert node.attrs.fill_color == "red"


def test_non_identifier_node_head_is_a_warning():
    result = compile_mapscript("order-svc:: Orders")
    assert result.is_valid
    assert result.warning_count == 1
    assert result.errors[0].severity == IssueSeverity.WARNING
    assert "order_svc" in result.graph.nodes


def test_node_defaults_are_applied_once():
    result = compile_mapscript("Default node colour: \\#eee\nA:: X")
    attrs = result.graph.nodes["A"].attrs
    assert attrs.fill_color == "#eeeeee"
    assert attrs.styles == ["filled"]

    apply_node_defaults(attrs, result.settings)
    assert attrs.styles == ["filled"]


def test_explicit_node_attrs_override_defaults():
    text = "Default node colour: \\#eee\nDefault node shape: rounded\nA:: X [colour=red | border=2px dashed blue]"
    attrs = compile_mapscript(text).graph.nodes["A"].attrs
    assert attrs.fill_color == "red"
    assert attrs.border_color == "blue"
    assert attrs.border_width == 2
    assert attrs.styles == ["filled", "rounded", "dashed"]


def test_node_extras_and_text_size():
    attrs = compile_mapscript("A:: X [text size=150% | weight=3]").graph.nodes["A"].attrs
    assert attrs.font_size == "21.0"
    assert attrs.extras == {"weight": "3"}


def test_settings():
    result = compile_mapscript(
        "Title: My map\nDirection: left to right\nLabel wrap: 10\nBackground: \\#ffffff # page\n"
    )
    settings = result.settings
    assert settings.title == "My map"
    assert settings.direction == "LR"
    assert settings.label_wrap == 10.0
    assert settings.background == "#ffffff"
    assert settings.spacing_along is None


def test_edge_loose_label_and_border():
    edge = compile_mapscript("A -> B [calls | 2px dashed seagreen]").graph.edges[0]
    assert edge.attrs.label == "calls"
    assert edge.attrs.pen_width == 2
    assert edge.attrs.styles == ["dashed"]
    assert edge.attrs.color == "seagreen"


def test_edge_style_tokens_without_label():
    edge = compile_mapscript("A -> B [dotted | red]").graph.edges[0]
    assert edge.attrs.label is None
    assert edge.attrs.styles == ["dotted"]
    assert edge.attrs.color == "red"


def test_edge_explicit_keys():
    edge = compile_mapscript(
        "A -> B [label=uses | border=1px solid blue | label style=bold | weight=3]",
        font_name="Helvetica",
    ).graph.edges[0]
    assert edge.attrs.label == "uses"
    assert edge.attrs.pen_width == 1
    assert edge.attrs.color == "blue"
    assert edge.attrs.font_name == "Helvetica Bold"
    assert edge.attrs.extras == {"weight": "3"}


def test_arrow_glyphs_are_dropped_from_endpoints():
    result = compile_mapscript("A→ -> B")
    assert edge_pairs(result) == [("A", "B")]


def test_nested_clusters():
    result = compile_mapscript("--Outer\n----Inner\nA:: X\n----\nB:: Y\n--\n")
    outer, inner = result.graph.clusters
    assert outer.children == [inner]
    assert inner.depth == 4
    assert inner.node_ids == ["A"]
    assert outer.node_ids == ["B"]


def test_bytes_input():
    assert compile_mapscript(b"A:: X").graph.nodes["A"].label == "X"

    with pytest.raises(MapScriptInputError):
        compile_mapscript(42)
    with pytest.raises(MapScriptInputError):
        compile_mapscript(b"\xff\xfe")


def test_summary_and_dict():
    result = compile_mapscript("A:: X\nnonsense\n")
    assert result.get_summary() == "Invalid | Nodes: 1, Edges: 0, Clusters: 0 | Errors: 1, Warnings: 0"
    data = result.to_dict()
    assert data["is_valid"] is False
    assert data["errors"][0]["message"] == "Line 2: unrecognised syntax: nonsense"


def test_overflowing_text_size_is_ignored():
    result = compile_mapscript("A:: X [text size=1e999]")
    assert result.graph.nodes["A"].attrs.font_size is None
    assert 'fontsize="inf"' not in result.dot
