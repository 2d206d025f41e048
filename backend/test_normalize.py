"""Tests for colour, border, number and identifier normalizers"""

import pytest

from mapscript.compiler.normalize import (
    color_to_source_token,
    fmt_number,
    font_name_with_style,
    node_id_for_token,
    normalize_color,
    normalize_direction,
    parse_border,
    parse_border_loose,
    parse_border_tokens,
    parse_relative_scale,
    resolve_color_to_hex,
    resolve_color_to_rgb,
    slug_id,
    title_position_to_dot,
    wrap_label,
)
from mapscript.compiler.types import BorderSpec


def test_normalize_color_hex_and_rgb():
    assert normalize_color("#ABC") == "#aabbcc"
    assert normalize_color("rgb(0, 128, 255)") == "#0080ff"
    assert normalize_color("rgba(10,20,30,0.5)") == "#0a141e"
    assert normalize_color("#11223344") == "#112233"
    assert normalize_color("rgb(100%, 0%, 50%)") == "#ff0080"


def test_normalize_color_passes_names_through():
    assert normalize_color("seagreen") == "seagreen"
    assert normalize_color("not-a-colour") == "not-a-colour"
    assert normalize_color("") == ""


def test_parse_border_strict():
    assert parse_border("2px dashed blue") == BorderSpec(2, "dashed", "blue")
    assert parse_border("1 solid") == BorderSpec(1, "solid", None)
    assert parse_border("2px").is_empty()
    assert parse_border("thick solid").is_empty()


@pytest.mark.parametrize("token, expected", [
    ("seagreen", BorderSpec(color="seagreen")),
    ("2px", BorderSpec(width=2)),
    ("dotted", BorderSpec(style="dotted")),
    ("2px dashed", BorderSpec(width=2, style="dashed")),
    ("dashed seagreen", BorderSpec(style="dashed", color="seagreen")),
    ("2px dashed seagreen", BorderSpec(width=2, style="dashed", color="seagreen")),
    ("decreases", BorderSpec()),
])
def test_parse_border_loose(token, expected):
    assert parse_border_loose(token) == expected


def test_border_tokens_first_value_wins():
    merged = parse_border_tokens(["2px", "dotted", "5px", "red"])
    assert merged == BorderSpec(width=2, style="dotted", color="red")


def test_parse_relative_scale():
    assert parse_relative_scale("1.2") == 1.2
    assert parse_relative_scale("80%") == 0.8
    assert parse_relative_scale("0") is None
    assert parse_relative_scale("-1") is None
    assert parse_relative_scale("abc") is None
    assert parse_relative_scale(None) is None
    assert parse_relative_scale("1e999") is None
    assert parse_relative_scale("1e999%") is None


def test_directions_and_title_positions():
    assert normalize_direction("left to right") == "LR"
    assert normalize_direction("Top-Bottom") == "TB"
    assert normalize_direction("diagonal") is None

    assert title_position_to_dot("top right") == ("t", "r")
    assert title_position_to_dot("centre") == ("b", "c")
    assert title_position_to_dot(None) == ("b", "l")


def test_resolve_color():
    assert resolve_color_to_hex("SeaGreen") == "#2e8b57"
    assert resolve_color_to_rgb("hsl(0, 100%, 50%)") == (255, 0, 0)
    assert resolve_color_to_rgb("decreases") is None
    assert resolve_color_to_hex("#0af") == "#00aaff"


def test_color_to_source_token():
    assert color_to_source_token("#0080ff") == "rgb(0,128,255)"
    assert color_to_source_token("red") == "red"


def test_ids_and_slugs():
    assert slug_id("Hello, World!") == "hello_world"
    assert slug_id("!!!") == "node"
    assert node_id_for_token("Api2") == "Api2"
    assert node_id_for_token("Order Service") == "order_service"


def test_wrap_label():
    assert wrap_label("the quick brown fox", 10) == "the quick\\nbrown fox"
    assert wrap_label("the quick brown fox", None) == "the quick brown fox"


def test_small_helpers():
    assert fmt_number(2.0) == "2"
    assert fmt_number(0.1 * 3) == "0.3"
    assert font_name_with_style("Arial", "bold italic") == "Arial Bold Italic"
    assert font_name_with_style("Arial", "normal") == "Arial"
