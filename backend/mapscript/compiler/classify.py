"""
Line Classifier.

Every physical line is exactly one of: blank, settings, node definition,
edge, cluster marker, or unrecognised. Classification runs on the code text
left after the trailing comment is stripped; the first matching rule wins:

  1. cluster marker   --Label [attrs]
  2. settings line    Key phrase: value   (known key phrases only)
  3. node definition  Id:: Label [attrs]
  4. edge             A | B -> C [attrs]
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from mapscript.compiler.brackets import split_trailing_bracket


CLUSTER_RE = re.compile(r"^(-{2,})(.*)$")
SETTING_RE = re.compile(r"^([^:]+):\s*(.+)$")
NODE_RE = re.compile(r"^(\S+)\s*::\s*(.+)$")
EDGE_RE = re.compile(r"^(.+?)\s*->\s*(.+)$")

# A "#" preceded by a backslash is a literal character, not a comment
COMMENT_RE = re.compile(r"(?<!\\)#")

SETTINGS_KEYS = {
    "title",
    "description",
    "background",
    "text colour",
    "text color",
    "default node text colour",
    "default node text color",
    "default group text colour",
    "default group text color",
    "title size",
    "title position",
    "default node colour",
    "default node color",
    "default node shape",
    "default node border",
    "default node shadow",
    "default link colour",
    "default link color",
    "default link style",
    "default link width",
    "direction",
    "label wrap",
    "spacing along",
    "spacing across",
}


class LineKind(Enum):
    BLANK = "blank"
    SETTINGS = "settings"
    NODE = "node"
    EDGE = "edge"
    CLUSTER = "cluster"
    UNRECOGNISED = "unrecognised"


@dataclass
class ClassifiedLine:
    kind: LineKind
    raw: str
    code: str = ""
    comment: str = ""
    # settings: key (lower-cased) / value
    key: str = ""
    value: str = ""
    # node: id token; edge: source list
    head: str = ""
    # node: label; edge: target list; cluster: label
    body: str = ""
    # Inner text of a trailing [...] segment, None when absent
    bracket: Optional[str] = None
    # cluster: the leading dash run
    dashes: str = ""

    @property
    def depth(self) -> int:
        return len(self.dashes)

    @property
    def is_well_formed(self) -> bool:
        return self.kind != LineKind.CLUSTER or self.depth % 2 == 0

    @property
    def marker_is_empty(self) -> bool:
        """A bare dash run: no label and no bracket at all."""
        return self.kind == LineKind.CLUSTER and not self.body and self.bracket is None


def split_comment(raw: str) -> Tuple[str, str]:
    """Split a raw line into (code, comment); the comment keeps its "#"."""
    match = COMMENT_RE.search(raw)
    if not match:
        return raw, ""
    return raw[:match.start()], raw[match.start():]


def strip_comment(raw: str) -> str:
    code, _ = split_comment(raw)
    return code.replace("\\#", "#").strip()


def is_setting_line(code: str) -> bool:
    if "->" in code or "::" in code:
        return False
    match = SETTING_RE.match(code)
    return bool(match) and match.group(1).strip().lower() in SETTINGS_KEYS


def classify_line(raw: str) -> ClassifiedLine:
    _, comment = split_comment(raw)
    code = strip_comment(raw)

    if not code:
        return ClassifiedLine(LineKind.BLANK, raw, code, comment)

    match = CLUSTER_RE.match(code)
    if match:
        body, bracket = split_trailing_bracket(match.group(2).strip())
        return ClassifiedLine(
            LineKind.CLUSTER, raw, code, comment,
            body=body.strip(), bracket=bracket, dashes=match.group(1),
        )

    if is_setting_line(code):
        match = SETTING_RE.match(code)
        return ClassifiedLine(
            LineKind.SETTINGS, raw, code, comment,
            key=match.group(1).strip().lower(), value=match.group(2).strip(),
        )

    match = NODE_RE.match(code)
    if match:
        body, bracket = split_trailing_bracket(match.group(2).strip())
        return ClassifiedLine(
            LineKind.NODE, raw, code, comment,
            head=match.group(1).strip(), body=body.strip(), bracket=bracket,
        )

    match = EDGE_RE.match(code)
    if match:
        body, bracket = split_trailing_bracket(match.group(2).strip())
        return ClassifiedLine(
            LineKind.EDGE, raw, code, comment,
            head=match.group(1).strip(), body=body.strip(), bracket=bracket,
        )

    return ClassifiedLine(LineKind.UNRECOGNISED, raw, code, comment)
