"""
Line-Patch Editors.

Each editor re-locates the one line backing a node, cluster or edge,
rewrites only the bracket keys it manages and leaves every other line of
the document byte-identical. Unmanaged `key=value` parts, loose tokens,
the text before the bracket and the trailing comment survive as written.

Field arguments take three kinds of value:

    UNSET        leave the attribute as it is (the default)
    None or ""   remove the attribute
    a value      replace it in place, or append it when missing

Editors mutate `lines` only on success and return a PatchResult that is
falsy when the target could not be located.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from mapscript.compiler.brackets import part_key
from mapscript.compiler.classify import classify_line
from mapscript.compiler.clusters import find_cluster_opener, scan_cluster_openers
from mapscript.compiler.normalize import (
    color_to_source_token,
    fmt_number,
    is_simple_id,
    looks_like_edge_style_token,
    node_id_for_token,
    parse_relative_scale,
)
from mapscript.editing.lines import (
    edge_line_index,
    escape_source_text,
    find_node_line,
    join_bracket_parts,
    leading_whitespace,
    split_bracket_parts,
    split_line,
)

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET = _Unset()

FILL_KEYS = ("colour", "color", "background")
BORDER_KEYS = ("border",)
SHAPE_KEYS = ("shape",)
TEXT_SIZE_KEYS = ("text size", "textsize", "text scale", "textscale")
TEXT_COLOUR_KEYS = ("text colour", "text color", "textcolour", "textcolor")

# Characters that would change how the bracket itself parses
BRACKET_BREAKERS = re.compile(r"[|\[\]\r\n]")


@dataclass
class PatchResult:
    """Result of one editing operation"""
    success: bool
    action: str
    target: str
    line_index: Optional[int] = None
    before: Optional[str] = None
    after: Optional[str] = None
    message: str = ""
    changes_made: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "action": self.action,
            "target": self.target,
            "line_index": self.line_index,
            "before": self.before,
            "after": self.after,
            "message": self.message,
            "changes_made": self.changes_made,
        }


def failed(action: str, target: str, message: str) -> PatchResult:
    logger.warning(f"[PATCH] {action} {target}: {message}")
    return PatchResult(success=False, action=action, target=target, message=message)


def _apply(lines: List[str], index: int, new_line: str, action: str, target: str,
           changes: List[str]) -> PatchResult:
    before = lines[index]
    lines[index] = new_line
    logger.info(f"[PATCH] {action} {target} at line {index + 1}")
    return PatchResult(
        success=True,
        action=action,
        target=target,
        line_index=index,
        before=before,
        after=new_line,
        message="updated" if before != new_line else "no change",
        changes_made=changes,
    )


# ============================================================
# Bracket value helpers
# ============================================================

def check_bracket_value(value: str) -> Optional[str]:
    """Error message when `value` cannot be written inside a bracket."""
    if BRACKET_BREAKERS.search(value or ""):
        return "value cannot contain '|', '[', ']' or line breaks"
    return None


def format_text_size(scale) -> Optional[str]:
    """Relative size as written: 1.25 -> "1.25"; 1 (the default) -> None."""
    if isinstance(scale, str):
        scale = parse_relative_scale(scale)
    if scale is None:
        return None
    scale = round(float(scale), 2)
    if scale <= 0 or scale == 1:
        return None
    return fmt_number(scale)


def border_to_source_text(value) -> str:
    """Border text for a bracket: hex colour words become rgb(...), any other "#" is escaped."""
    words = [color_to_source_token(word) for word in str(value or "").split()]
    return escape_source_text(" ".join(words))


def upsert_key(parts: List[str], aliases: Sequence[str], key: str, value) -> List[str]:
    """
    Set one managed key among bracket parts.

    The first part using any alias is replaced in place, keeping the key as
    it was spelled; later duplicates are dropped. A missing key is appended.
    Falsy `value` removes every alias. UNSET leaves `parts` alone.
    """
    if value is UNSET:
        return parts

    out: List[str] = []
    replaced = False
    for part in parts:
        if part_key(part) not in aliases:
            out.append(part)
            continue
        if value and not replaced:
            written_key = part[:part.find("=")].strip()
            out.append(f"{written_key}={value}")
            replaced = True

    if value and not replaced:
        out.append(f"{key}={value}")
    return out


def _value_or_unset(value, convert):
    if value is UNSET:
        return UNSET
    if value is None or value == "":
        return None
    return convert(value)


def _rounded_parts(parts: List[str], rounded) -> List[str]:
    if rounded is UNSET:
        return parts
    if rounded:
        return upsert_key(parts, SHAPE_KEYS, "shape", "rounded")
    # Only drop shape=rounded; other shapes are not ours to remove
    return [
        p for p in parts
        if not (part_key(p) in SHAPE_KEYS and p[p.find("=") + 1:].strip().lower() == "rounded")
    ]


def upsert_node_style_inner(inner: Optional[str], fill=UNSET, border=UNSET,
                            rounded=UNSET, text_size=UNSET) -> str:
    parts = split_bracket_parts(inner)
    parts = upsert_key(parts, FILL_KEYS, "colour", _value_or_unset(fill, color_to_source_token))
    parts = upsert_key(parts, BORDER_KEYS, "border", _value_or_unset(border, border_to_source_text))
    parts = _rounded_parts(parts, rounded)
    parts = upsert_key(parts, TEXT_SIZE_KEYS, "text size", _value_or_unset(text_size, format_text_size))
    return join_bracket_parts(parts)


def upsert_cluster_style_inner(inner: Optional[str], fill=UNSET, border=UNSET,
                               text_colour=UNSET, text_size=UNSET) -> str:
    parts = split_bracket_parts(inner)
    parts = upsert_key(parts, FILL_KEYS, "colour", _value_or_unset(fill, color_to_source_token))
    parts = upsert_key(parts, BORDER_KEYS, "border", _value_or_unset(border, border_to_source_text))
    parts = upsert_key(parts, TEXT_COLOUR_KEYS, "text colour",
                       _value_or_unset(text_colour, color_to_source_token))
    parts = upsert_key(parts, TEXT_SIZE_KEYS, "text size", _value_or_unset(text_size, format_text_size))
    return join_bracket_parts(parts)


def _check_fields(**fields) -> Optional[str]:
    for name, value in fields.items():
        if value is UNSET or value is None or isinstance(value, (bool, int, float)):
            continue
        problem = check_bracket_value(str(value))
        if problem:
            return f"{name}: {problem}"
    return None


def _changed_fields(**fields) -> List[str]:
    changes = []
    for name, value in fields.items():
        if value is UNSET:
            continue
        if value is None or value == "" or value is False:
            changes.append(f"removed {name}")
        else:
            changes.append(f"set {name}={value}")
    return changes


# ============================================================
# Nodes
# ============================================================

def set_node_style(lines: List[str], node_id: str, fill=UNSET, border=UNSET,
                   rounded=UNSET, text_size=UNSET) -> PatchResult:
    """Rewrite the managed style keys on a node's definition line."""
    action = "set_node_style"
    index = find_node_line(lines, node_id)
    if index is None:
        return failed(action, node_id, f"no definition line for node '{node_id}'")

    problem = _check_fields(fill=fill, border=border)
    if problem:
        return failed(action, node_id, problem)

    parts = split_line(lines[index])
    inner = upsert_node_style_inner(parts.inner, fill=fill, border=border,
                                    rounded=rounded, text_size=text_size)
    changes = _changed_fields(fill=fill, border=border, rounded=rounded, text_size=text_size)
    return _apply(lines, index, parts.assemble(inner), action, node_id, changes)


NODE_HEAD_RE = re.compile(r"^(\s*\S+?\s*::\s*)")


def set_node_label(lines: List[str], node_id: str, label: str) -> PatchResult:
    """Replace the label text of a node definition, keeping its bracket."""
    action = "set_node_label"
    index = find_node_line(lines, node_id)
    if index is None:
        return failed(action, node_id, f"no definition line for node '{node_id}'")

    label = escape_source_text((label or "").strip()) or node_id
    if BRACKET_BREAKERS.search(label):
        return failed(action, node_id, "label cannot contain '|', '[', ']' or line breaks")

    parts = split_line(lines[index])
    head = NODE_HEAD_RE.match(parts.prefix)
    if not head:
        return failed(action, node_id, "definition line has no '::'")

    prefix = f"{head.group(1)}{label}"
    if parts.inner is not None:
        prefix += " "
    return _apply(lines, index, parts.assemble(parts.inner, prefix), action, node_id,
                  [f"set label={label}"])


# ============================================================
# Clusters
# ============================================================

def _cluster_structure_kept(lines: List[str], index: int, new_line: str, cluster_id: str) -> bool:
    """An edit must not turn the opener into a closer or shift cluster ids."""
    trial = list(lines)
    before = [(o.id, o.line_index) for o in scan_cluster_openers(trial)]
    trial[index] = new_line
    after = [(o.id, o.line_index) for o in scan_cluster_openers(trial)]
    return before == after and (cluster_id, index) in after


def _patch_cluster_line(lines: List[str], cluster_id: str, action: str, build_line,
                        changes: List[str]) -> PatchResult:
    opener = find_cluster_opener(lines, cluster_id)
    if opener is None:
        return failed(action, cluster_id, f"no opening marker for '{cluster_id}'")

    new_line = build_line(opener)
    if not _cluster_structure_kept(lines, opener.line_index, new_line, cluster_id):
        return failed(action, cluster_id, "edit would change the box structure")
    return _apply(lines, opener.line_index, new_line, action, cluster_id, changes)


def set_cluster_style(lines: List[str], cluster_id: str, fill=UNSET, border=UNSET,
                      text_colour=UNSET, text_size=UNSET) -> PatchResult:
    """Rewrite the managed style keys on a grouping box's opening marker."""
    action = "set_cluster_style"
    problem = _check_fields(fill=fill, border=border, text_colour=text_colour)
    if problem:
        return failed(action, cluster_id, problem)

    def build_line(opener):
        parts = split_line(lines[opener.line_index])
        inner = upsert_cluster_style_inner(parts.inner, fill=fill, border=border,
                                           text_colour=text_colour, text_size=text_size)
        return parts.assemble(inner)

    changes = _changed_fields(fill=fill, border=border, text_colour=text_colour,
                              text_size=text_size)
    return _patch_cluster_line(lines, cluster_id, action, build_line, changes)


def set_cluster_label(lines: List[str], cluster_id: str, label: str) -> PatchResult:
    action = "set_cluster_label"
    label = escape_source_text((label or "").strip())
    if BRACKET_BREAKERS.search(label):
        return failed(action, cluster_id, "label cannot contain '|', '[', ']' or line breaks")

    def build_line(opener):
        raw = lines[opener.line_index]
        parts = split_line(raw)
        prefix = f"{leading_whitespace(raw)}{opener.dashes}{label}"
        if parts.inner is not None:
            prefix += " "
        return parts.assemble(parts.inner, prefix)

    return _patch_cluster_line(lines, cluster_id, action, build_line, [f"set label={label}"])


# ============================================================
# Edges
# ============================================================

@dataclass
class EdgeBracketLayout:
    """Which bracket parts the compiler reads as the label and the border."""
    parts: List[str]
    label_index: Optional[int] = None
    border_indexes: List[int] = field(default_factory=list)
    # Earlier label= / border= parts the compiler ignores
    shadowed_label_indexes: List[int] = field(default_factory=list)
    shadowed_border_indexes: List[int] = field(default_factory=list)


def _last_keyed(parts: List[str], keys: List[Optional[str]], key: str) -> Tuple[Optional[int], List[int]]:
    """Index of the `key=` part the compiler reads (the last, when non-empty) and the others."""
    indexes = [i for i, k in enumerate(keys) if k == key]
    if not indexes:
        return None, []
    last = indexes[-1]
    part = parts[last]
    if not part[part.find("=") + 1:].strip():
        return None, indexes
    return last, indexes[:-1]


def edge_bracket_layout(inner: Optional[str]) -> EdgeBracketLayout:
    """
    Locate the label and border parts exactly as the graph builder reads them:
    explicit keys win (the last one when repeated), otherwise the first loose
    token is the label unless it looks like a style token, and the rest are
    border fragments.
    """
    layout = EdgeBracketLayout(parts=split_bracket_parts(inner))
    keys = [part_key(p) for p in layout.parts]

    layout.label_index, layout.shadowed_label_indexes = _last_keyed(layout.parts, keys, "label")
    border_index, layout.shadowed_border_indexes = _last_keyed(layout.parts, keys, "border")
    if border_index is not None:
        layout.border_indexes = [border_index]

    loose = [i for i, key in enumerate(keys) if key is None]
    if layout.label_index is None and loose and not looks_like_edge_style_token(layout.parts[loose[0]]):
        layout.label_index = loose.pop(0)
    if not layout.border_indexes:
        layout.border_indexes = [
            i for i in loose
            if i != layout.label_index and looks_like_edge_style_token(layout.parts[i])
        ]
    return layout


def _label_part(label: str, written_key: Optional[str]) -> str:
    if written_key is not None or "=" in label or looks_like_edge_style_token(label):
        return f"{written_key or 'label'}={label}"
    return label


def _border_part(border: str, written_key: Optional[str]) -> str:
    if written_key is None and looks_like_edge_style_token(border):
        return border
    return f"{written_key or 'border'}={border}"


def _written_key(part: str) -> Optional[str]:
    return part[:part.find("=")].strip() if part_key(part) is not None else None


def upsert_edge_inner(inner: Optional[str], label=UNSET, border=UNSET) -> str:
    layout = edge_bracket_layout(inner)
    parts: List[Optional[str]] = list(layout.parts)
    label_first: Optional[str] = None
    appended: List[str] = []

    if border is not UNSET:
        border = border_to_source_text(border)
        for i in layout.shadowed_border_indexes:
            parts[i] = None
        if layout.border_indexes:
            first = layout.border_indexes[0]
            for i in layout.border_indexes[1:]:
                parts[i] = None
            parts[first] = _border_part(border, _written_key(layout.parts[first])) if border else None
        elif border:
            appended.append(_border_part(border, None))

    if label is not UNSET:
        label = escape_source_text((label or "").strip())
        for i in layout.shadowed_label_indexes:
            parts[i] = None
        if layout.label_index is not None:
            i = layout.label_index
            parts[i] = _label_part(label, _written_key(layout.parts[i])) if label else None
        elif label:
            label_first = _label_part(label, None)

    out = [p for p in parts if p]
    if label_first:
        out.insert(0, label_first)
    out.extend(appended)
    return join_bracket_parts(out)


def node_token_for_id(node_id: str, labels: Optional[Dict[str, str]] = None) -> str:
    """Endpoint token to write for a node: its id, or its label for slugged nodes."""
    node_id = (node_id or "").strip()
    label = (labels or {}).get(node_id, "").strip()
    if label and not is_simple_id(label) and node_id_for_token(label) == node_id:
        return label
    return node_id


def _replace_endpoint(tokens: List[str], old_id: str, new_token: str) -> bool:
    for i, token in enumerate(tokens):
        if token == old_id or node_id_for_token(token.replace("→", "")) == old_id:
            tokens[i] = new_token
            return True
    return False


def set_edge(lines: List[str], line_number: int, label=UNSET, border=UNSET,
             from_node: Optional[Tuple[str, str]] = None,
             to_node: Optional[Tuple[str, str]] = None,
             node_labels: Optional[Dict[str, str]] = None) -> PatchResult:
    """
    Rewrite an edge line addressed by its 1-based line number.

    from_node / to_node are (old_id, new_id) pairs replacing one endpoint
    token; node_labels supplies the label token for slugged node ids.
    The `A | B -> C` text is kept verbatim unless an endpoint changes.
    """
    action = "set_edge"
    target = f"line {line_number}"
    index = edge_line_index(lines, line_number)
    if index is None:
        return failed(action, target, f"line {line_number} is not an edge line")

    problem = _check_fields(label=label, border=border)
    if problem:
        return failed(action, target, problem)

    raw = lines[index]
    parts = split_line(raw)
    prefix = parts.prefix
    changes = _changed_fields(label=label, border=border)

    if from_node or to_node:
        line = classify_line(raw)
        sources = [t.strip() for t in line.head.split("|") if t.strip()]
        targets = [t.strip() for t in line.body.split("|") if t.strip()]
        for pair, tokens, side in ((from_node, sources, "source"), (to_node, targets, "target")):
            if not pair:
                continue
            old_id, new_id = pair
            new_token = node_token_for_id(new_id, node_labels)
            if not _replace_endpoint(tokens, old_id, new_token):
                return failed(action, target, f"no {side} '{old_id}' on line {line_number}")
            changes.append(f"{side} {old_id} -> {new_token}")
        prefix = f"{leading_whitespace(raw)}{' | '.join(sources)} -> {' | '.join(targets)}"
        if parts.inner is not None:
            prefix += " "

    inner = upsert_edge_inner(parts.inner, label=label, border=border)
    return _apply(lines, index, parts.assemble(inner, prefix), action, target, changes)

