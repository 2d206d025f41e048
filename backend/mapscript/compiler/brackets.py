"""
Trailing `[...]` attribute segments.

Node form:  [colour=red | border=1px solid blue]
Edge form:  [some label | 1px solid]
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass
class BracketAttrs:
    kv: Dict[str, str] = field(default_factory=dict)
    loose: List[str] = field(default_factory=list)

    def first(self, *keys: str) -> str:
        """Value of the first key present (aliases like colour/color)."""
        for key in keys:
            value = self.kv.get(key)
            if value:
                return value
        return ""


def split_trailing_bracket(text: str) -> Tuple[str, Optional[str]]:
    """
    Split `text` into (before, inner).

    Only a bracket that closes the line counts: the last "[" is taken when
    the text ends with "]". `inner` is None when there is no bracket.
    """
    text = text or ""
    start = text.rfind("[")
    if start >= 0 and text.rstrip().endswith("]"):
        before = text[:start].rstrip()
        inner = text[start:].strip()[1:-1].strip()
        return before, inner
    return text.rstrip(), None


def split_parts(inner: str) -> List[str]:
    return [p.strip() for p in (inner or "").split("|") if p.strip()]


def part_key(part: str) -> Optional[str]:
    """Lower-cased key of a `key=value` part, None for a loose token."""
    eq = part.find("=")
    if eq < 0:
        return None
    return part[:eq].strip().lower()


def parse_bracket_attrs(inner: str) -> BracketAttrs:
    """Parse the text between the brackets into key/value pairs and loose tokens."""
    inner = (inner or "").strip()
    if inner.startswith("[") and inner.endswith("]"):
        inner = inner[1:-1]

    attrs = BracketAttrs()
    for part in split_parts(inner):
        key = part_key(part)
        if key is None:
            attrs.loose.append(part)
        else:
            attrs.kv[key] = part[part.find("=") + 1:].strip()
    return attrs
