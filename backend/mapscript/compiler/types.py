from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional


@dataclass
class Settings:
    """Diagram-wide properties. Unset fields stay None until emission."""
    title: Optional[str] = None
    description: Optional[str] = None
    background: Optional[str] = None
    text_colour: Optional[str] = None
    default_node_text_colour: Optional[str] = None
    default_group_text_colour: Optional[str] = None
    title_size: Optional[float] = None
    title_position: Optional[str] = None
    default_node_colour: Optional[str] = None
    default_node_shape: Optional[str] = None
    default_node_border: Optional[str] = None
    default_node_shadow: Optional[str] = None
    default_link_colour: Optional[str] = None
    default_link_style: Optional[str] = None
    default_link_width: Optional[float] = None
    direction: Optional[str] = None
    label_wrap: Optional[float] = None
    spacing_along: Optional[float] = None
    spacing_across: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BorderSpec:
    """Any subset of width / style / colour."""
    width: Optional[int] = None
    style: Optional[str] = None
    color: Optional[str] = None

    def is_empty(self) -> bool:
        return self.width is None and self.style is None and self.color is None

    def merged_with(self, other: "BorderSpec") -> "BorderSpec":
        """Fill keys still unset here from `other`; keys already set win."""
        return BorderSpec(
            width=self.width if self.width is not None else other.width,
            style=self.style if self.style is not None else other.style,
            color=self.color if self.color is not None else other.color,
        )


# ============================================================
# Attribute records
# ============================================================

@dataclass
class _StyledAttrs:
    styles: List[str] = field(default_factory=list)
    # Bracket keys this record does not manage, kept as written
    extras: Dict[str, str] = field(default_factory=dict)

    def add_style(self, token: Optional[str]):
        """Set-like append, so applying defaults twice is harmless."""
        token = (token or "").strip()
        if token and token not in self.styles:
            self.styles.append(token)

    @property
    def style(self) -> str:
        return ",".join(self.styles)


@dataclass
class NodeAttrs(_StyledAttrs):
    fill_color: Optional[str] = None
    border_color: Optional[str] = None
    border_width: Optional[int] = None
    font_size: Optional[str] = None

    def merge(self, other: "NodeAttrs"):
        """Shallow merge: every key `other` sets overrides ours."""
        if other.fill_color is not None:
            self.fill_color = other.fill_color
        if other.border_color is not None:
            self.border_color = other.border_color
        if other.border_width is not None:
            self.border_width = other.border_width
        if other.font_size is not None:
            self.font_size = other.font_size
        if other.styles:
            self.styles = list(other.styles)
        self.extras.update(other.extras)

    def to_dot(self) -> Dict[str, str]:
        return {
            "fillcolor": self.fill_color,
            "style": self.style,
            "color": self.border_color,
            "penwidth": self.border_width,
            "fontsize": self.font_size,
        }


@dataclass
class EdgeAttrs(_StyledAttrs):
    label: Optional[str] = None
    color: Optional[str] = None
    pen_width: Optional[int] = None
    font_name: Optional[str] = None
    font_size: Optional[float] = None

    def apply_border(self, border: BorderSpec):
        if border.color is not None:
            self.color = border.color
        if border.width is not None:
            self.pen_width = border.width
        self.add_style(border.style)

    def to_dot(self) -> Dict[str, str]:
        return {
            "label": self.label,
            "color": self.color,
            "penwidth": self.pen_width,
            "style": self.style,
            "fontname": self.font_name,
            "fontsize": self.font_size,
        }


@dataclass
class ClusterAttrs(_StyledAttrs):
    fill_color: Optional[str] = None
    border_color: Optional[str] = None
    border_width: Optional[int] = None
    font_color: Optional[str] = None
    font_size: Optional[str] = None


# ============================================================
# Graph entities
# ============================================================

@dataclass
class Node:
    id: str
    label: str
    attrs: NodeAttrs = field(default_factory=NodeAttrs)


@dataclass
class Edge:
    from_id: str
    to_id: str
    source_line: int  # 1-based
    attrs: EdgeAttrs = field(default_factory=EdgeAttrs)


@dataclass
class Cluster:
    id: str           # cluster_N, N = opening order
    label: str
    depth: int        # 2 = top level, 4 = nested once, ...
    style_inner: str = ""
    source_line: int = 0
    attrs: ClusterAttrs = field(default_factory=ClusterAttrs)
    node_ids: List[str] = field(default_factory=list)
    children: List["Cluster"] = field(default_factory=list)


@dataclass
class Graph:
    settings: Settings = field(default_factory=Settings)
    nodes: Dict[str, Node] = field(default_factory=dict)  # first-seen order
    edges: List[Edge] = field(default_factory=list)
    clusters: List[Cluster] = field(default_factory=list)  # opening order

    @property
    def top_level_clusters(self) -> List[Cluster]:
        return [c for c in self.clusters if c.depth == 2]
