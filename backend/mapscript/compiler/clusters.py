"""
Cluster Nesting Scanner.

Dash-count gives depth: "--" is a top-level box, "----" is nested once.
An empty marker is ambiguous. It CLOSES when something at the same or a
deeper level is open; otherwise it OPENS an untitled box.

The graph builder and the line editors both drive the same ClusterScanner,
so cluster_N ids always agree between compiling and editing.
"""

from dataclasses import dataclass
from typing import List, Optional

from mapscript.compiler.classify import ClassifiedLine, LineKind, classify_line


@dataclass
class ClusterOpener:
    index: int                  # N in cluster_N
    line_index: int             # 0-based
    depth: int
    dashes: str
    label: str
    style_inner: str
    comment: str = ""
    parent_index: Optional[int] = None
    # Line of the explicit empty marker that closed this box, if any
    close_line_index: Optional[int] = None

    @property
    def id(self) -> str:
        return f"cluster_{self.index}"


class ClusterScanner:
    """Depth stack fed one cluster-marker line at a time."""

    OPENED = "opened"
    CLOSED = "closed"
    SKIPPED = "skipped"

    def __init__(self):
        self.openers: List[ClusterOpener] = []
        self._stack: List[ClusterOpener] = []

    @property
    def current(self) -> Optional[ClusterOpener]:
        return self._stack[-1] if self._stack else None

    def feed(self, line: ClassifiedLine, line_index: int) -> str:
        if line.kind != LineKind.CLUSTER or not line.is_well_formed:
            return self.SKIPPED

        depth = line.depth

        if line.marker_is_empty and self._stack and self._stack[-1].depth >= depth:
            while self._stack and self._stack[-1].depth >= depth:
                frame = self._stack.pop()
                if frame.depth == depth:
                    frame.close_line_index = line_index
            return self.CLOSED

        # Align to the parent level, implicitly closing anything deeper
        while self._stack and self._stack[-1].depth > depth - 2:
            self._stack.pop()

        parent = self.current
        opener = ClusterOpener(
            index=len(self.openers),
            line_index=line_index,
            depth=depth,
            dashes=line.dashes,
            label=line.body,
            style_inner=(line.bracket or "").strip(),
            comment=line.comment,
            parent_index=parent.index if parent else None,
        )
        self.openers.append(opener)
        self._stack.append(opener)
        return self.OPENED


def scan_cluster_openers(lines: List[str]) -> List[ClusterOpener]:
    """Every opening marker, in cluster id order."""
    scanner = ClusterScanner()
    for i, raw in enumerate(lines):
        scanner.feed(classify_line(raw), i)
    return scanner.openers


def find_cluster_opener(lines: List[str], cluster_id: str) -> Optional[ClusterOpener]:
    return next((o for o in scan_cluster_openers(lines) if o.id == cluster_id), None)


def cluster_depth_at_line(lines: List[str], line_index: int) -> int:
    """Depth of the innermost box open just before `line_index` (0 = none)."""
    scanner = ClusterScanner()
    for i, raw in enumerate(lines[:line_index]):
        scanner.feed(classify_line(raw), i)
    current = scanner.current
    return current.depth if current else 0
