"""Tests for structural edits: deleting, grouping and quick links"""

from mapscript.compiler import compile_mapscript
from mapscript.editing import (
    add_quick_links,
    delete_cluster,
    delete_edge_line,
    delete_node_everywhere,
    group_nodes_into_cluster,
    join_document,
)


def compiled(lines):
    return compile_mapscript(join_document(lines))


def test_delete_edge_line():
    lines = ["A:: X", "A -> B", "# c"]
    assert delete_edge_line(lines, 2)
    assert lines == ["A:: X", "# c"]

    assert not delete_edge_line(lines, 1)
    assert lines == ["A:: X", "# c"]


def test_delete_node_everywhere():
    lines = [
        "A:: X",
        "B:: Y",
        "C:: Z",
        "A | B -> C [calls] # keep",
        "B -> C",
        "A -> B",
    ]
    result = delete_node_everywhere(lines, "B")
    assert result
    assert lines == ["A:: X", "C:: Z", "A -> C [calls] # keep"]
    assert "B" not in compiled(lines).graph.nodes


def test_delete_free_text_node():
    lines = ["Order Service -> Billing", "Billing -> Ledger"]
    assert delete_node_everywhere(lines, "order_service")
    assert lines == ["Billing -> Ledger"]


def test_delete_missing_node():
    lines = ["A:: X"]
    assert not delete_node_everywhere(lines, "Q")
    assert lines == ["A:: X"]


def test_delete_cluster_keeps_contents_and_promotes_nested_boxes():
    lines = ["--Outer", "----Inner", "A:: X", "----", "B:: Y", "--"]
    assert delete_cluster(lines, "cluster_0")
    assert lines == ["--Inner", "A:: X", "--", "B:: Y"]

    graph = compiled(lines).graph
    assert [c.label for c in graph.clusters] == ["Inner"]
    assert graph.clusters[0].node_ids == ["A"]


def test_delete_missing_cluster():
    lines = ["--A"]
    assert not delete_cluster(lines, "cluster_3")
    assert lines == ["--A"]


def test_group_nodes_into_cluster():
    lines = ["A:: X", "B:: Y", "C:: Z", "A -> B"]
    result = group_nodes_into_cluster(lines, ["A", "C", "A"], "Team")
    assert result
    assert lines == ["--Team", "A:: X", "C:: Z", "--", "B:: Y", "A -> B"]
    assert compiled(lines).graph.clusters[0].node_ids == ["A", "C"]


def test_group_inside_open_box_nests_one_level_deeper():
    lines = ["--Outer", "A:: X", "B:: Y", "--"]
    assert group_nodes_into_cluster(lines, ["B"])
    assert lines == ["--Outer", "A:: X", "----Group", "B:: Y", "----", "--"]

    outer, inner = compiled(lines).graph.clusters
    assert outer.children == [inner]
    assert inner.node_ids == ["B"]


def test_group_reports_nodes_without_definition():
    lines = ["A:: X", "A -> Nope"]
    result = group_nodes_into_cluster(lines, ["A", "Nope"])
    assert result
    assert "Nope" in result.message

    assert not group_nodes_into_cluster(["A -> B"], ["B"])
    assert not group_nodes_into_cluster(["A:: X"], [])


def test_add_quick_links():
    lines = ["A:: Start", ""]
    result = add_quick_links(lines, "A", ["Next step", "Other"], label="then")
    assert result
    assert result.message == "Added 2 links"
    assert lines == [
        "A:: Start",
        "N_next_step:: Next step",
        "N_other:: Other",
        "A -> N_next_step [then]",
        "A -> N_other [then]",
        "",
    ]
    assert len(compiled(lines).graph.edges) == 2


def test_add_quick_links_incoming_with_unique_ids():
    lines = ["A:: Start", "N_other:: Taken"]
    add_quick_links(lines, "A", ["Other"], direction="in", border="2px dashed")
    assert lines[-3:] == ["N_other_2:: Other", "N_other_2 -> A [2px dashed]", ""]


def test_add_quick_links_needs_labels():
    lines = ["A:: Start"]
    assert not add_quick_links(lines, "A", ["", "  "])
    assert lines == ["A:: Start"]


def test_add_quick_links_refuses_labels_that_break_brackets():
    lines = ["A:: Start"]
    assert not add_quick_links(lines, "A", ["a [b]"])
    assert not add_quick_links(lines, "A", ["ok"], label="x | y")
    assert lines == ["A:: Start"]


def test_add_quick_links_hex_border():
    lines = ["A:: Start"]
    assert add_quick_links(lines, "A", ["Next"], label="then", border="2px solid #ff0000")
    assert lines[-2] == "A -> N_next [then | 2px solid rgb(255,0,0)]"
    edge = compiled(lines).graph.edges[0]
    assert edge.attrs.label == "then"
    assert edge.attrs.color == "#ff0000"
