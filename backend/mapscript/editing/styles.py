"""
Style readers: turn an existing line back into editor values.

These are the inverse of the patchers. Colours come back as #rrggbb
(named colours resolve through the CSS colour table); anything that does
not resolve reads as None so the caller falls back to its default.
"""

from typing import List, Optional

from mapscript.compiler.brackets import parse_bracket_attrs, part_key
from mapscript.compiler.classify import classify_line
from mapscript.compiler.clusters import find_cluster_opener
from mapscript.compiler.normalize import (
    BORDER_STYLES,
    hex_to_rgb,
    parse_border_loose,
    parse_relative_scale,
    resolve_color_to_hex,
    round_half_up,
)
from mapscript.compiler.types import Settings
from mapscript.editing.lines import edge_line_index, find_node_line, split_line
from mapscript.editing.patchers import edge_bracket_layout

DEFAULT_BORDER_COLOUR = "#999999"
DEFAULT_LINK_COLOUR = "rgb(108,117,125)"


# ============================================================
# Borders
# ============================================================

def border_text_to_ui(text: str) -> dict:
    """Border text -> {width, style, colour_hex}; empty text is width 0."""
    raw = (text or "").strip()
    if not raw:
        return {"width": 0, "style": "solid", "colour_hex": DEFAULT_BORDER_COLOUR}

    border = parse_border_loose(raw)
    return {
        "width": border.width if border.width is not None else 1,
        "style": border.style or "solid",
        "colour_hex": resolve_color_to_hex(border.color) or DEFAULT_BORDER_COLOUR,
    }


def ui_to_border_text(width, style: str = "solid", colour_hex: str = DEFAULT_BORDER_COLOUR) -> str:
    """
    Border text for the source, e.g. "2px dashed rgb(0,128,255)".

    A non-positive width means no border and gives "".
    """
    try:
        w = float(width)
    except (TypeError, ValueError):
        return ""
    if w <= 0:
        return ""
    style = (style or "solid").strip().lower()
    if style not in BORDER_STYLES:
        style = "solid"
    rgb = hex_to_rgb(colour_hex or "") or hex_to_rgb(resolve_color_to_hex(colour_hex) or "")
    r, g, b = rgb or hex_to_rgb(DEFAULT_BORDER_COLOUR)
    return f"{round_half_up(w)}px {style} rgb({r},{g},{b})"


# ============================================================
# Node / cluster brackets
# ============================================================

def node_style_from_inner(style_inner: Optional[str]) -> Optional[dict]:
    inner = (style_inner or "").strip()
    if not inner:
        return None
    kv = parse_bracket_attrs(inner)
    border = kv.kv.get("border", "")
    return {
        "fill_hex": resolve_color_to_hex(kv.first("colour", "color", "background")),
        "border": border_text_to_ui(border) if border else None,
        "rounded": kv.kv.get("shape", "").strip().lower() == "rounded",
        "text_size": parse_relative_scale(kv.first("text size", "textsize", "text scale", "textscale")),
    }


def cluster_style_from_inner(style_inner: Optional[str]) -> Optional[dict]:
    inner = (style_inner or "").strip()
    if not inner:
        return None
    kv = parse_bracket_attrs(inner)
    border = kv.kv.get("border", "")
    return {
        "fill_hex": resolve_color_to_hex(kv.first("colour", "color", "background")),
        "border": border_text_to_ui(border) if border else None,
        "text_colour_hex": resolve_color_to_hex(
            kv.first("text colour", "text color", "textcolour", "textcolor")
        ),
        "text_size": parse_relative_scale(kv.first("text size", "textsize", "text scale", "textscale")),
    }


def read_node(lines: List[str], node_id: str) -> Optional[dict]:
    """Label and style of a node's definition line; None when it has none."""
    index = find_node_line(lines, node_id)
    if index is None:
        return None
    line = classify_line(lines[index])
    return {
        "node_id": node_id,
        "line_index": index,
        "label": line.body,
        "style_inner": line.bracket or "",
        "style": node_style_from_inner(line.bracket),
        "comment": line.comment,
    }


def read_cluster(lines: List[str], cluster_id: str) -> Optional[dict]:
    opener = find_cluster_opener(lines, cluster_id)
    if opener is None:
        return None
    return {
        "cluster_id": cluster_id,
        "line_index": opener.line_index,
        "close_line_index": opener.close_line_index,
        "depth": opener.depth,
        "label": opener.label,
        "style_inner": opener.style_inner,
        "style": cluster_style_from_inner(opener.style_inner),
        "comment": opener.comment,
    }


def read_edge(lines: List[str], line_number: int) -> Optional[dict]:
    """
    Endpoints, label and border of an edge line, read the way the compiler
    reads them, plus the bracket parts an editor must carry over.
    """
    index = edge_line_index(lines, line_number)
    if index is None:
        return None
    line = classify_line(lines[index])
    parts = split_line(lines[index])
    layout = edge_bracket_layout(parts.inner)

    label = ""
    if layout.label_index is not None:
        part = layout.parts[layout.label_index]
        label = part[part.find("=") + 1:].strip() if part_key(part) else part

    border_texts = []
    for i in layout.border_indexes:
        part = layout.parts[i]
        border_texts.append(part[part.find("=") + 1:].strip() if part_key(part) else part)
    border = " ".join(border_texts)

    managed = set(layout.border_indexes)
    managed.update(layout.shadowed_label_indexes, layout.shadowed_border_indexes)
    if layout.label_index is not None:
        managed.add(layout.label_index)
    kept = [p for i, p in enumerate(layout.parts) if i not in managed]

    return {
        "line_number": index + 1,
        "line_index": index,
        "sources": [t.strip() for t in line.head.split("|") if t.strip()],
        "targets": [t.strip() for t in line.body.split("|") if t.strip()],
        "label": label,
        "border": border,
        "border_ui": border_text_to_ui(border) if border else None,
        "kept_kv": {part_key(p): p[p.find("=") + 1:].strip() for p in kept if part_key(p)},
        "kept_loose": [p for p in kept if part_key(p) is None],
        "comment": parts.comment,
    }


# ============================================================
# Defaults from settings
# ============================================================

def default_node_ui(settings: Settings) -> dict:
    """Editor values for a node with no explicit attributes."""
    border_text = (settings.default_node_border or "").strip()
    return {
        "fill_hex": resolve_color_to_hex(settings.default_node_colour) or "#ffffff",
        "border": border_text_to_ui(border_text),
        "rounded": (settings.default_node_shape or "") == "rounded",
        "has_fill_default": bool(settings.default_node_colour),
        "has_border_default": bool(border_text),
    }


def default_edge_border_text(settings: Settings) -> str:
    width = settings.default_link_width
    width = round_half_up(width) if width and width > 0 else 1
    style = settings.default_link_style if settings.default_link_style in BORDER_STYLES else "solid"
    colour = (settings.default_link_colour or "").strip() or DEFAULT_LINK_COLOUR
    return f"{width}px {style} {colour}"
