"""Tests for reading editor values back out of source lines"""

from mapscript.compiler.types import Settings
from mapscript.editing.styles import (
    border_text_to_ui,
    default_edge_border_text,
    default_node_ui,
    read_cluster,
    read_edge,
    read_node,
    ui_to_border_text,
)


def test_border_text_to_ui():
    assert border_text_to_ui("") == {"width": 0, "style": "solid", "colour_hex": "#999999"}
    assert border_text_to_ui("2px dashed seagreen") == {
        "width": 2, "style": "dashed", "colour_hex": "#2e8b57",
    }
    assert border_text_to_ui("dotted") == {"width": 1, "style": "dotted", "colour_hex": "#999999"}


def test_ui_to_border_text():
    assert ui_to_border_text(2, "dashed", "#0080ff") == "2px dashed rgb(0,128,255)"
    assert ui_to_border_text(0, "solid", "#000000") == ""
    assert ui_to_border_text(1.6, "wavy", "red") == "2px solid rgb(255,0,0)"


def test_read_node():
    lines = ["A:: Alpha [colour=seagreen | shape=rounded | text size=120%] # note"]
    node = read_node(lines, "A")
    assert node["label"] == "Alpha"
    assert node["comment"] == "# note"
    assert node["style"] == {
        "fill_hex": "#2e8b57",
        "border": None,
        "rounded": True,
        "text_size": 1.2,
    }
    assert read_node(lines, "B") is None


def test_read_cluster():
    lines = ["--G [background=rgb(255,255,255) | text colour=white]", "A:: X", "--"]
    cluster = read_cluster(lines, "cluster_0")
    assert cluster["label"] == "G"
    assert cluster["close_line_index"] == 2
    assert cluster["style"]["fill_hex"] == "#ffffff"
    assert cluster["style"]["text_colour_hex"] == "#ffffff"
    assert read_cluster(lines, "cluster_1") is None


def test_read_edge():
    lines = ["A | B -> C [calls | 2px dashed | weight=3 | extra] # c"]
    edge = read_edge(lines, 1)
    assert edge["sources"] == ["A", "B"]
    assert edge["targets"] == ["C"]
    assert edge["label"] == "calls"
    assert edge["border"] == "2px dashed"
    assert edge["border_ui"] == {"width": 2, "style": "dashed", "colour_hex": "#999999"}
    assert edge["kept_kv"] == {"weight": "3"}
    assert edge["kept_loose"] == ["extra"]
    assert edge["comment"] == "# c"
    assert read_edge(lines, 2) is None


def test_defaults_from_settings():
    assert default_edge_border_text(Settings()) == "1px solid rgb(108,117,125)"
    settings = Settings(default_link_width=2.4, default_link_style="dotted", default_link_colour="red")
    assert default_edge_border_text(settings) == "2px dotted red"

    ui = default_node_ui(Settings(default_node_colour="#eeeeee", default_node_shape="rounded"))
    assert ui["fill_hex"] == "#eeeeee"
    assert ui["rounded"] is True
    assert ui["has_border_default"] is False
    assert ui["border"]["width"] == 0


def test_read_edge_reports_the_repeated_key_that_is_compiled():
    edge = read_edge(["A -> B [label=a | weight=1 | label=b]"], 1)
    assert edge["label"] == "b"
    assert edge["kept_kv"] == {"weight": "1"}
