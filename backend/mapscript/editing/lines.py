"""
Document and single-line helpers for the line editors.

A document is a list of raw lines. Editors locate a line with the same
classification rules the compiler uses, split it into its parts, and
reassemble it without touching anything they do not manage.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Set

from mapscript.compiler.classify import LineKind, classify_line, split_comment
from mapscript.compiler.normalize import node_id_for_token, slug_id


def split_document(text: str) -> List[str]:
    return re.split(r"\r?\n", text or "")


def join_document(lines: List[str]) -> str:
    return "\n".join(lines)


@dataclass
class LineParts:
    """
    One raw line cut into reassemblable pieces:

        <prefix>[<inner>]<gap><comment>

    `inner` is None when the line has no trailing bracket. `gap` is the
    whitespace between the code and the comment (or the line end).
    """
    prefix: str
    inner: Optional[str]
    gap: str
    comment: str

    def assemble(self, inner: Optional[str] = None, prefix: Optional[str] = None) -> str:
        prefix = self.prefix if prefix is None else prefix
        inner = (inner or "").strip()
        if inner:
            if self.inner is None:
                prefix = prefix.rstrip() + " "
            code = f"{prefix}[{inner}]"
        else:
            code = prefix.rstrip()
        if not self.comment:
            return code
        return f"{code}{self.gap or ' '}{self.comment}"


def split_line(raw: str) -> LineParts:
    code, comment = split_comment(raw)
    body = code.rstrip()
    gap = code[len(body):]

    start = body.rfind("[")
    if start >= 0 and body.endswith("]"):
        return LineParts(body[:start], body[start + 1:-1].strip(), gap, comment)
    return LineParts(body, None, gap, comment)


def split_bracket_parts(inner: Optional[str]) -> List[str]:
    return [p.strip() for p in (inner or "").split("|") if p.strip()]


def join_bracket_parts(parts: List[str]) -> str:
    return " | ".join(parts)


def leading_whitespace(raw: str) -> str:
    return raw[:len(raw) - len(raw.lstrip())]


# ============================================================
# Locating lines
# ============================================================

def find_node_line(lines: List[str], node_id: str) -> Optional[int]:
    """Index of the first definition line for `node_id` (case-sensitive)."""
    node_id = (node_id or "").strip()
    if not node_id:
        return None
    for i, raw in enumerate(lines):
        line = classify_line(raw)
        if line.kind == LineKind.NODE and node_id_for_token(line.head) == node_id:
            return i
    return None


def edge_line_index(lines: List[str], line_number: int) -> Optional[int]:
    """0-based index for a 1-based edge line number, if that line is an edge."""
    try:
        index = int(line_number) - 1
    except (TypeError, ValueError):
        return None
    if index < 0 or index >= len(lines):
        return None
    if classify_line(lines[index]).kind != LineKind.EDGE:
        return None
    return index


def explicit_node_ids(lines: List[str]) -> Set[str]:
    ids = set()
    for raw in lines:
        line = classify_line(raw)
        if line.kind == LineKind.NODE:
            ids.add(node_id_for_token(line.head))
    return ids


def make_unique_node_id(label: str, existing_ids: Set[str]) -> str:
    """`N_<slug>` from a label, suffixed _2, _3, ... until unused."""
    base = f"N_{slug_id(label or 'node')}"[:40]
    if not re.match(r"^[A-Za-z]\w*$", base, re.ASCII):
        base = "N_node"
    if base not in existing_ids:
        return base
    n = 2
    while f"{base}_{n}" in existing_ids:
        n += 1
    return f"{base}_{n}"


def escape_source_text(text: str) -> str:
    """Free text written into a line: "#" would start a comment."""
    return re.sub(r"(?<!\\)#", r"\\#", text or "")
