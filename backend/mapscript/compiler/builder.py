"""
Graph Builder.

Consumes classified lines one at a time and builds the node table, the
expanded edge list and the cluster tree. Content problems are collected
as CompileIssue records; the builder never raises for bad content.
"""

import copy
import logging
from typing import Callable, Dict, List, Optional, Tuple

from mapscript.compiler.brackets import BracketAttrs, parse_bracket_attrs
from mapscript.compiler.classify import ClassifiedLine, LineKind, classify_line
from mapscript.compiler.clusters import ClusterScanner
from mapscript.compiler.errors import CompileIssue, IssueSeverity
from mapscript.compiler.normalize import (
    font_name_with_style,
    is_simple_id,
    looks_like_edge_style_token,
    node_id_for_token,
    normalize_color,
    normalize_direction,
    normalize_title_position,
    parse_border,
    parse_border_loose,
    parse_border_tokens,
    parse_leading_number,
    parse_relative_scale,
)
from mapscript.compiler.types import (
    Cluster,
    ClusterAttrs,
    Edge,
    EdgeAttrs,
    Graph,
    Node,
    NodeAttrs,
    Settings,
)

logger = logging.getLogger(__name__)


BASE_NODE_FONT_SIZE = 14
BASE_CLUSTER_FONT_SIZE = 14

# Bracket keys the builder turns into typed attributes
TEXT_SIZE_KEYS = ("text size", "textsize", "text scale", "textscale")
TEXT_COLOUR_KEYS = ("text colour", "text color", "textcolour", "textcolor")
NODE_KEYS = {"colour", "color", "background", "shape", "border", *TEXT_SIZE_KEYS}
CLUSTER_KEYS = {"colour", "color", "background", "border", *TEXT_COLOUR_KEYS, *TEXT_SIZE_KEYS}
EDGE_KEYS = {"label", "border", "label style", "labelstyle", "label size", "labelsize"}


def _strip(value: str) -> str:
    return value.strip()


def _lower(value: str) -> str:
    return value.strip().lower()


# settings key -> (Settings field, value converter)
SETTING_FIELDS: Dict[str, Tuple[str, Callable]] = {
    "title": ("title", _strip),
    "description": ("description", _strip),
    "background": ("background", normalize_color),
    "text colour": ("text_colour", normalize_color),
    "text color": ("text_colour", normalize_color),
    "default node text colour": ("default_node_text_colour", normalize_color),
    "default node text color": ("default_node_text_colour", normalize_color),
    "default group text colour": ("default_group_text_colour", normalize_color),
    "default group text color": ("default_group_text_colour", normalize_color),
    "title size": ("title_size", parse_leading_number),
    "title position": ("title_position", normalize_title_position),
    "default node colour": ("default_node_colour", normalize_color),
    "default node color": ("default_node_colour", normalize_color),
    "default node shape": ("default_node_shape", _lower),
    "default node border": ("default_node_border", _strip),
    "default node shadow": ("default_node_shadow", _strip),
    "default link colour": ("default_link_colour", normalize_color),
    "default link color": ("default_link_colour", normalize_color),
    "default link style": ("default_link_style", _lower),
    "default link width": ("default_link_width", parse_leading_number),
    "direction": ("direction", normalize_direction),
    "label wrap": ("label_wrap", parse_leading_number),
    "spacing along": ("spacing_along", parse_leading_number),
    "spacing across": ("spacing_across", parse_leading_number),
}


def apply_node_defaults(attrs: NodeAttrs, settings: Settings) -> NodeAttrs:
    """
    Fold settings-derived defaults into node attrs, in place.

    Style flags are added set-like, so applying defaults twice is harmless.
    Explicit colours and widths already on `attrs` win.
    """
    if settings.default_node_colour:
        if not attrs.fill_color:
            attrs.fill_color = settings.default_node_colour
        attrs.add_style("filled")
    if settings.default_node_shape == "rounded":
        attrs.add_style("rounded")
    if settings.default_node_border:
        border = parse_border(settings.default_node_border)
        if border.color and not attrs.border_color:
            attrs.border_color = border.color
        attrs.add_style(border.style)
        if border.width is not None and attrs.border_width is None:
            attrs.border_width = border.width
    return attrs


def split_endpoints(text: str) -> List[str]:
    """`A | B` -> ["A", "B"]; pasted arrow glyphs are dropped first."""
    text = (text or "").replace("→", "")
    return [t.strip() for t in text.split("|") if t.strip()]


class GraphBuilder:
    """
    Single-pass builder over the document lines.

    Usage:
        builder = GraphBuilder()
        graph = builder.build(lines)
        builder.issues  # -> List[CompileIssue]
    """

    def __init__(self, font_name: str = "Arial"):
        self.font_name = font_name
        self.graph = Graph()
        self.issues: List[CompileIssue] = []
        self.scanner = ClusterScanner()
        self._clusters: Dict[int, Cluster] = {}
        self._free_text: Dict[str, str] = {}

    # ---------- entry ----------

    def build(self, lines: List[str]) -> Graph:
        for i, raw in enumerate(lines):
            self.add_line(classify_line(raw), i)
        logger.debug(
            f"[BUILDER] {len(self.graph.nodes)} nodes, {len(self.graph.edges)} edges, "
            f"{len(self.graph.clusters)} clusters, {len(self.issues)} issues"
        )
        return self.graph

    def add_line(self, line: ClassifiedLine, index: int):
        if line.kind == LineKind.BLANK:
            return
        if line.kind == LineKind.CLUSTER:
            self._add_cluster_marker(line, index)
        elif line.kind == LineKind.SETTINGS:
            self._add_setting(line)
        elif line.kind == LineKind.NODE:
            self._add_node(line, index)
        elif line.kind == LineKind.EDGE:
            self._add_edges(line, index)
        else:
            self._issue("UNRECOGNISED_LINE", f"unrecognised syntax: {line.raw}", index, line.raw)

    # ---------- helpers ----------

    def _issue(self, code: str, message: str, index: int, text: str,
               severity: IssueSeverity = IssueSeverity.ERROR):
        self.issues.append(CompileIssue(code, message, index + 1, text, severity))

    def ensure_node(self, token: str) -> Optional[str]:
        """
        Id for an endpoint or definition token, creating the node if needed.

        Bare identifiers are used as-is. Free text is slugged and the text
        itself becomes the label; when two different texts share a slug the
        last one seen wins.
        """
        raw = (token or "").strip()
        if not raw:
            return None

        simple = is_simple_id(raw)
        node_id = raw if simple else node_id_for_token(raw)

        node = self.graph.nodes.get(node_id)
        if node is None:
            node = Node(id=node_id, label=raw)
            self.graph.nodes[node_id] = node

        if not simple:
            previous = self._free_text.get(node_id)
            if previous is not None and previous != raw:
                logger.info(
                    f"[BUILDER] '{previous}' and '{raw}' share node id '{node_id}'; "
                    f"last label wins"
                )
            self._free_text[node_id] = raw
            node.label = raw

        return node_id

    def apply_defaults(self, attrs: NodeAttrs) -> NodeAttrs:
        return apply_node_defaults(attrs, self.graph.settings)

    # ---------- settings ----------

    def _add_setting(self, line: ClassifiedLine):
        field_name, convert = SETTING_FIELDS[line.key]
        setattr(self.graph.settings, field_name, convert(line.value))

    # ---------- nodes ----------

    def node_attrs_from_bracket(self, bracket: BracketAttrs,
                                attrs: Optional[NodeAttrs] = None) -> NodeAttrs:
        """Layer explicit bracket keys over `attrs` (a fresh record by default)."""
        attrs = attrs if attrs is not None else NodeAttrs()

        colour = bracket.first("colour", "color")
        if colour:
            attrs.fill_color = normalize_color(colour)
            attrs.add_style("filled")
        if bracket.kv.get("background"):
            attrs.fill_color = normalize_color(bracket.kv["background"])
            attrs.add_style("filled")

        if _lower(bracket.kv.get("shape", "")) == "rounded":
            attrs.add_style("rounded")

        if bracket.kv.get("border"):
            border = parse_border(bracket.kv["border"])
            if border.color:
                attrs.border_color = border.color
            if border.width is not None:
                attrs.border_width = border.width
            attrs.add_style(border.style)

        scale = parse_relative_scale(bracket.first(*TEXT_SIZE_KEYS))
        if scale:
            attrs.font_size = f"{BASE_NODE_FONT_SIZE * scale:.1f}"

        attrs.extras = {k: v for k, v in bracket.kv.items() if k not in NODE_KEYS}
        return attrs

    def _add_node(self, line: ClassifiedLine, index: int):
        if not is_simple_id(line.head):
            self._issue(
                "INVALID_NODE_ID",
                f"node id '{line.head}' is not a bare identifier; "
                f"it is stored as '{node_id_for_token(line.head)}'",
                index, line.raw, IssueSeverity.WARNING,
            )

        node_id = self.ensure_node(line.head)
        node = self.graph.nodes[node_id]
        node.label = line.body or node.label or node_id

        attrs = self.apply_defaults(NodeAttrs())
        if line.bracket is not None:
            self.node_attrs_from_bracket(parse_bracket_attrs(line.bracket), attrs)
        node.attrs.merge(attrs)

        opener = self.scanner.current
        if opener is not None:
            cluster = self._clusters[opener.index]
            if node_id not in cluster.node_ids:
                cluster.node_ids.append(node_id)

    # ---------- edges ----------

    def edge_attrs_from_bracket(self, bracket: BracketAttrs) -> EdgeAttrs:
        attrs = EdgeAttrs()

        label_kv = bracket.kv.get("label", "")
        border_kv = bracket.kv.get("border", "")
        if label_kv:
            attrs.label = label_kv
        if border_kv:
            attrs.apply_border(parse_border_loose(border_kv))

        loose = list(bracket.loose)
        if not label_kv and loose and not looks_like_edge_style_token(loose[0]):
            attrs.label = loose.pop(0)
        if not border_kv and loose:
            attrs.apply_border(parse_border_tokens(loose))

        label_style = bracket.first("label style", "labelstyle")
        if label_style:
            attrs.font_name = font_name_with_style(self.font_name, label_style)
        size = parse_leading_number(bracket.first("label size", "labelsize"))
        if size is not None and size > 0:
            attrs.font_size = size

        attrs.extras = {k: v for k, v in bracket.kv.items() if k not in EDGE_KEYS}
        return attrs

    def _add_edges(self, line: ClassifiedLine, index: int):
        sources = split_endpoints(line.head)
        if not sources:
            self._issue("EDGE_NO_SOURCES", "edge has no sources", index, line.raw)
            return
        targets = split_endpoints(line.body)
        if not targets:
            self._issue("EDGE_NO_TARGETS", "edge has no targets", index, line.raw)
            return

        attrs = EdgeAttrs()
        if line.bracket is not None:
            attrs = self.edge_attrs_from_bracket(parse_bracket_attrs(line.bracket))

        for source in sources:
            from_id = self.ensure_node(source)
            for target in targets:
                to_id = self.ensure_node(target)
                # Every generated edge owns its own attrs
                self.graph.edges.append(
                    Edge(from_id, to_id, index + 1, copy.deepcopy(attrs))
                )

    # ---------- clusters ----------

    def cluster_attrs_from_inner(self, style_inner: str) -> ClusterAttrs:
        attrs = ClusterAttrs()
        attrs.add_style("rounded")
        if not style_inner:
            return attrs

        bracket = parse_bracket_attrs(style_inner)
        fill = bracket.first("colour", "color", "background")
        if fill:
            attrs.fill_color = normalize_color(fill)
            attrs.add_style("filled")

        if bracket.kv.get("border"):
            border = parse_border(bracket.kv["border"])
            if border.color:
                attrs.border_color = border.color
            if border.width is not None:
                attrs.border_width = border.width
            attrs.add_style(border.style)

        text_colour = bracket.first(*TEXT_COLOUR_KEYS)
        if text_colour:
            attrs.font_color = normalize_color(text_colour)

        scale = parse_relative_scale(bracket.first(*TEXT_SIZE_KEYS))
        if scale:
            attrs.font_size = f"{BASE_CLUSTER_FONT_SIZE * scale:.1f}"

        attrs.extras = {k: v for k, v in bracket.kv.items() if k not in CLUSTER_KEYS}
        return attrs

    def _add_cluster_marker(self, line: ClassifiedLine, index: int):
        if not line.is_well_formed:
            self._issue(
                "ODD_CLUSTER_MARKER",
                "grouping box marker must use an even number of '-' (e.g. -- or ----)",
                index, line.raw,
            )
            return

        if self.scanner.feed(line, index) != ClusterScanner.OPENED:
            return

        opener = self.scanner.current
        cluster = Cluster(
            id=opener.id,
            label=opener.label,
            depth=opener.depth,
            style_inner=opener.style_inner,
            source_line=index + 1,
            attrs=self.cluster_attrs_from_inner(opener.style_inner),
        )
        self._clusters[opener.index] = cluster
        self.graph.clusters.append(cluster)
        if opener.parent_index is not None:
            self._clusters[opener.parent_index].children.append(cluster)
