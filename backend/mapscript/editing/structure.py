"""
Structural edits: operations that add or remove whole lines.

Unlike the line patchers these may touch several lines, but each one only
touches lines that belong to its target. Every function mutates `lines`
in place on success and returns a PatchResult.
"""

import logging
from typing import Iterable, List, Optional

from mapscript.compiler.classify import LineKind, classify_line
from mapscript.compiler.clusters import cluster_depth_at_line, scan_cluster_openers
from mapscript.compiler.normalize import node_id_for_token
from mapscript.editing.lines import (
    edge_line_index,
    escape_source_text,
    explicit_node_ids,
    find_node_line,
    leading_whitespace,
    make_unique_node_id,
    split_line,
)
from mapscript.editing.patchers import (
    BRACKET_BREAKERS,
    PatchResult,
    check_bracket_value,
    failed,
    upsert_edge_inner,
)

logger = logging.getLogger(__name__)


def _done(action: str, target: str, line_index: Optional[int], changes: List[str],
          message: str = "updated") -> PatchResult:
    logger.info(f"[PATCH] {action} {target}: {len(changes)} change(s)")
    return PatchResult(
        success=True,
        action=action,
        target=target,
        line_index=line_index,
        message=message,
        changes_made=changes,
    )


# ============================================================
# Edges
# ============================================================

def delete_edge_line(lines: List[str], line_number: int) -> PatchResult:
    action = "delete_edge"
    target = f"line {line_number}"
    index = edge_line_index(lines, line_number)
    if index is None:
        return failed(action, target, f"line {line_number} is not an edge line")
    removed = lines.pop(index)
    return _done(action, target, index, [f"removed line {index + 1}: {removed}"])


# ============================================================
# Nodes
# ============================================================

def _without_node(tokens: List[str], node_id: str) -> List[str]:
    return [
        t for t in tokens
        if t != node_id and node_id_for_token(t.replace("→", "")) != node_id
    ]


def delete_node_everywhere(lines: List[str], node_id: str) -> PatchResult:
    """
    Remove a node: its definition lines and its token on every edge line.

    An edge line left with no sources or no targets is removed; other
    endpoints on the same line survive with the line's bracket and comment.
    """
    action = "delete_node"
    node_id = (node_id or "").strip()
    out: List[str] = []
    changes: List[str] = []
    first_index: Optional[int] = None

    for i, raw in enumerate(lines):
        line = classify_line(raw)

        if line.kind == LineKind.NODE and node_id_for_token(line.head) == node_id:
            changes.append(f"removed definition line {i + 1}")
            first_index = i if first_index is None else first_index
            continue

        if line.kind == LineKind.EDGE:
            sources = [t.strip() for t in line.head.split("|") if t.strip()]
            targets = [t.strip() for t in line.body.split("|") if t.strip()]
            kept_sources = _without_node(sources, node_id)
            kept_targets = _without_node(targets, node_id)
            if (kept_sources, kept_targets) != (sources, targets):
                first_index = i if first_index is None else first_index
                if not kept_sources or not kept_targets:
                    changes.append(f"removed edge line {i + 1}")
                    continue
                parts = split_line(raw)
                prefix = f"{leading_whitespace(raw)}{' | '.join(kept_sources)} -> {' | '.join(kept_targets)}"
                if parts.inner is not None:
                    prefix += " "
                out.append(parts.assemble(parts.inner, prefix))
                changes.append(f"removed '{node_id}' from edge line {i + 1}")
                continue

        out.append(raw)

    if not changes:
        return failed(action, node_id, f"node '{node_id}' does not appear in the document")

    lines[:] = out
    return _done(action, node_id, first_index, changes)


# ============================================================
# Clusters
# ============================================================

def delete_cluster(lines: List[str], cluster_id: str) -> PatchResult:
    """
    Remove a grouping box but keep its contents.

    The opening marker and its explicit closing marker are removed; boxes
    nested inside move up one level so they stay nested under the same
    parent as before.
    """
    action = "delete_cluster"
    openers = scan_cluster_openers(lines)
    target = next((o for o in openers if o.id == cluster_id), None)
    if target is None:
        return failed(action, cluster_id, f"no opening marker for '{cluster_id}'")

    # Scope ends at the explicit closer, or at the next box at the same or a shallower level
    if target.close_line_index is not None:
        scope_end = target.close_line_index
    else:
        later = [o.line_index for o in openers
                 if o.line_index > target.line_index and o.depth <= target.depth]
        scope_end = later[0] if later else len(lines)

    changes = [f"removed opening marker line {target.line_index + 1}"]
    out: List[str] = []
    for i, raw in enumerate(lines):
        if i == target.line_index:
            continue
        if i == target.close_line_index:
            changes.append(f"removed closing marker line {i + 1}")
            continue
        if target.line_index < i < scope_end:
            line = classify_line(raw)
            if line.kind == LineKind.CLUSTER and line.is_well_formed and line.depth > target.depth:
                lead = leading_whitespace(raw)
                raw = lead + raw[len(lead) + 2:]
                changes.append(f"moved marker line {i + 1} up one level")
        out.append(raw)

    lines[:] = out
    return _done(action, cluster_id, target.line_index, changes)


def group_nodes_into_cluster(lines: List[str], node_ids: Iterable[str],
                             label: str = "Group") -> PatchResult:
    """
    Move the definition lines of `node_ids` into a new grouping box.

    The box is inserted where the earliest of those lines was, one level
    deeper than whatever box is open there. Nodes with no `Id::` line are
    skipped and listed in the result message.
    """
    action = "group_nodes"
    ids = list(dict.fromkeys(i.strip() for i in node_ids if i and i.strip()))
    if not ids:
        return failed(action, "", "no nodes selected")

    defs = []
    missing = []
    for node_id in ids:
        index = find_node_line(lines, node_id)
        if index is None:
            missing.append(node_id)
        else:
            defs.append((index, node_id))
    if not defs:
        return failed(action, ", ".join(ids), "none of the nodes has a definition line to move")

    defs.sort()
    insert_at = defs[0][0]
    moved = [lines[index] for index, _ in defs]
    for index, _ in sorted(defs, reverse=True):
        del lines[index]

    dashes = "-" * (cluster_depth_at_line(lines, insert_at) + 2)
    label = escape_source_text((label or "").strip()) or "Group"
    lines[insert_at:insert_at] = [f"{dashes}{label}", *moved, dashes]

    message = f"Grouped {len(defs)} node(s)."
    if missing:
        message += f" Skipped (no definition line): {', '.join(missing)}"
    changes = [f"moved {node_id} into '{label}'" for _, node_id in defs]
    return _done(action, ", ".join(n for _, n in defs), insert_at, changes, message)


# ============================================================
# Quick links
# ============================================================

def add_quick_links(lines: List[str], source_id: str, labels: Iterable[str],
                    direction: str = "out", label: Optional[str] = None,
                    border: Optional[str] = None) -> PatchResult:
    """
    Create one new node per label and link each to `source_id`.

    New ids are derived from the labels and never collide with an existing
    definition. direction "out" links source -> new, "in" links new -> source.
    """
    action = "add_links"
    source_id = (source_id or "").strip()
    labels = [l.strip() for l in labels if l and l.strip()]
    if not source_id:
        return failed(action, "", "no source node")
    if not labels:
        return failed(action, source_id, "enter at least one new node label")

    for text in labels:
        if BRACKET_BREAKERS.search(text):
            return failed(action, source_id, f"label '{text}' cannot contain '|', '[', ']' or line breaks")
    for name, value in (("label", label), ("border", border)):
        problem = check_bracket_value(value or "")
        if problem:
            return failed(action, source_id, f"{name}: {problem}")

    bracket = upsert_edge_inner("", label=label or None, border=border or None)
    suffix = f" [{bracket}]" if bracket else ""

    existing = explicit_node_ids(lines)
    node_lines = []
    edge_lines = []
    for text in labels:
        new_id = make_unique_node_id(text, existing)
        existing.add(new_id)
        node_lines.append(f"{new_id}:: {escape_source_text(text)}")
        from_id, to_id = (source_id, new_id) if direction == "out" else (new_id, source_id)
        edge_lines.append(f"{from_id} -> {to_id}{suffix}")

    # Drop trailing blank lines, then append
    while lines and not lines[-1].strip():
        lines.pop()
    first_index = len(lines)
    lines.extend(node_lines + edge_lines)
    lines.append("")

    changes = [f"added {line}" for line in node_lines + edge_lines]
    return _done(action, source_id, first_index, changes,
                 f"Added {len(edge_lines)} link{'' if len(edge_lines) == 1 else 's'}")
