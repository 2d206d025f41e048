"""
DOT (Graphviz) Emitter

Order is fixed so unchanged input always gives byte-identical output:

1. graph / node / edge defaults
2. global directives (background, title, direction, spacing)
3. clusters, depth-first from the top-level boxes
4. unclustered nodes in first-seen order
5. edges in source order

Every node and edge carries an `id` attribute the rendered picture keeps,
so a clicked element can be traced back to its source line.
"""

import copy
import re
from typing import Dict, List, Optional, Set, Tuple

from mapscript.compiler.builder import apply_node_defaults
from mapscript.compiler.normalize import (
    BORDER_STYLES,
    fmt_number,
    round_half_up,
    title_position_to_dot,
    wrap_label,
)
from mapscript.compiler.types import Cluster, Edge, Graph


NODE_ID_PREFIX = "ms_n_"
EDGE_ID_PREFIX = "ms_e_"
DEFAULT_CLUSTER_BORDER = "#cccccc"
DEFAULT_TITLE_SIZE = 18
EDGE_FONT_SIZE = 12

EDGE_ID_RE = re.compile(rf"^{EDGE_ID_PREFIX}(\d+)--([A-Za-z0-9_]*)--([A-Za-z0-9_]*)$")


# ============================================================
# Quoting and element ids
# ============================================================

def dot_value(value) -> str:
    if isinstance(value, float):
        return fmt_number(value)
    return str(value)


def dot_quote(value) -> str:
    # Backslashes are left alone: "\n" in labels is a line break
    return '"' + dot_value(value).replace('"', '\\"') + '"'


def dot_attr_list(attrs: Dict[str, object]) -> str:
    """` [k="v", ...]` for the set, non-blank values; "" when none are."""
    pairs = [
        f"{key}={dot_quote(value)}"
        for key, value in attrs.items()
        if value is not None and dot_value(value).strip() != ""
    ]
    return f" [{', '.join(pairs)}]" if pairs else ""


def dom_safe_token(text) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "_", str(text or ""))


def node_element_id(node_id: str) -> str:
    return f"{NODE_ID_PREFIX}{dom_safe_token(node_id)}"


def edge_element_id(edge: Edge) -> str:
    # "--" cannot occur inside a sanitized token
    return (
        f"{EDGE_ID_PREFIX}{edge.source_line}--"
        f"{dom_safe_token(edge.from_id)}--{dom_safe_token(edge.to_id)}"
    )


def parse_element_id(element_id: str) -> Optional[Dict[str, object]]:
    """
    Map an emitted element id back to what it addresses.

    Returns {"kind": "node", "token": ...} or
    {"kind": "edge", "line": N, "from_token": ..., "to_token": ...};
    None for ids this emitter did not produce. Tokens are sanitized, so a
    node id with punctuation only round-trips in its sanitized form.
    """
    element_id = (element_id or "").strip()
    if element_id.startswith(NODE_ID_PREFIX):
        return {"kind": "node", "token": element_id[len(NODE_ID_PREFIX):]}
    match = EDGE_ID_RE.match(element_id)
    if match:
        return {
            "kind": "edge",
            "line": int(match.group(1)),
            "from_token": match.group(2),
            "to_token": match.group(3),
        }
    return None


# ============================================================
# Emitter
# ============================================================

class DotWriter:
    """Deterministic DOT writer for one built graph."""

    def __init__(self, graph: Graph, font_name: str = "Arial"):
        self.graph = graph
        self.settings = graph.settings
        self.font_name = font_name
        self.lines: List[str] = []
        self._clustered: Set[str] = set()

    # ---------- helpers ----------

    def _node_statement(self, node_id: str, indent: str) -> str:
        node = self.graph.nodes[node_id]
        attrs = apply_node_defaults(copy.deepcopy(node.attrs), self.settings).to_dot()
        attrs["label"] = wrap_label(node.label, self.settings.label_wrap)
        attrs["id"] = node_element_id(node_id)
        return f"{indent}{dot_quote(node_id)}{dot_attr_list(attrs)};"

    def _directive(self, key: str, value) -> str:
        return f"  {key}={dot_quote(value)};"

    # ---------- sections ----------

    def write_defaults(self):
        self.lines.append(f"  graph{dot_attr_list({'fontname': self.font_name})};")

        node_defaults = {
            "fontname": self.font_name,
            "shape": "box",
            "fontcolor": self.settings.default_node_text_colour,
        }
        self.lines.append(f"  node{dot_attr_list(node_defaults)};")

        edge_defaults: Dict[str, object] = {
            "fontname": self.font_name,
            "fontsize": EDGE_FONT_SIZE,
            "color": self.settings.default_link_colour,
            "fontcolor": self.settings.text_colour,
        }
        if self.settings.default_link_style in BORDER_STYLES:
            edge_defaults["style"] = self.settings.default_link_style
        width = self.settings.default_link_width
        if width is not None and width > 0:
            edge_defaults["penwidth"] = round_half_up(width)
        self.lines.append(f"  edge{dot_attr_list(edge_defaults)};")

    def write_directives(self):
        settings = self.settings
        if settings.background:
            self.lines.append(self._directive("bgcolor", settings.background))
        if settings.text_colour:
            self.lines.append(self._directive("fontcolor", settings.text_colour))
        if settings.title:
            size = settings.title_size if settings.title_size and settings.title_size > 0 else DEFAULT_TITLE_SIZE
            loc, just = title_position_to_dot(settings.title_position)
            # Trailing line break leaves a gap between title and diagram
            label = settings.title + "\\n"
            self.lines.append(
                f"  label={dot_quote(label)}; "
                f"labelloc={dot_quote(loc)}; labeljust={dot_quote(just)}; "
                f"fontsize={dot_quote(float(size))};"
            )
        if settings.direction:
            self.lines.append(self._directive("rankdir", settings.direction))
        # Spacing values are pixel-ish; DOT separations are inches
        if settings.spacing_along is not None:
            self.lines.append(self._directive("ranksep", settings.spacing_along * 0.1))
        if settings.spacing_across is not None:
            self.lines.append(self._directive("nodesep", settings.spacing_across * 0.1))

    def write_cluster(self, cluster: Cluster, indent: str):
        # Emitted even when empty so nesting stays visible
        self.lines.append(f"{indent}subgraph {cluster.id} {{")

        attrs = cluster.attrs
        font_color = attrs.font_color or self.settings.default_group_text_colour
        ordered: List[Tuple[str, object]] = [
            ("label", cluster.label if cluster.label.strip() else None),
            ("style", attrs.style),
            ("color", attrs.border_color or DEFAULT_CLUSTER_BORDER),
            ("penwidth", attrs.border_width),
            ("fillcolor", attrs.fill_color),
            ("fontcolor", font_color),
            ("fontsize", attrs.font_size),
        ]
        for key, value in ordered:
            if value is not None and dot_value(value) != "":
                self.lines.append(f"{indent}  {key}={dot_quote(value)};")

        for node_id in cluster.node_ids:
            self._clustered.add(node_id)
            self.lines.append(self._node_statement(node_id, f"{indent}  "))

        for child in cluster.children:
            self.write_cluster(child, f"{indent}  ")

        self.lines.append(f"{indent}}}")

    def write_nodes(self):
        for node_id in self.graph.nodes:
            if node_id not in self._clustered:
                self.lines.append(self._node_statement(node_id, "  "))

    def write_edges(self):
        for edge in self.graph.edges:
            attrs = edge.attrs.to_dot()
            attrs["id"] = edge_element_id(edge)
            self.lines.append(
                f"  {dot_quote(edge.from_id)} -> {dot_quote(edge.to_id)}{dot_attr_list(attrs)};"
            )

    # ---------- entry ----------

    def render(self) -> str:
        self.lines = ["digraph G {"]
        self._clustered = set()
        self.write_defaults()
        self.write_directives()
        for cluster in self.graph.top_level_clusters:
            self.write_cluster(cluster, "  ")
        self.write_nodes()
        self.write_edges()
        self.lines.append("}")
        return "\n".join(self.lines)


def render_dot(graph: Graph, font_name: str = "Arial") -> str:
    """
    Render a built Graph to DOT text.

    Args:
        graph: Graph produced by GraphBuilder
        font_name: Base font for graph, node and edge defaults

    Returns:
        DOT source
    """
    return DotWriter(graph, font_name).render()
