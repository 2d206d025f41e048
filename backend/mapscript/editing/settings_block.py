"""
Settings block editor.

A document usually opens with a "styles" block: comments, blank lines and
recognised `Key: value` settings, up to the first content line. This module
splits that block off and rewrites its settings lines from a Settings
record, leaving the comments in it alone.
"""

import logging
from typing import List, Tuple

from mapscript.compiler.classify import is_setting_line
from mapscript.compiler.normalize import color_to_source_token, round_half_up
from mapscript.compiler.types import Settings
from mapscript.editing.lines import escape_source_text, split_document

logger = logging.getLogger(__name__)


def _is_setting(raw: str) -> bool:
    trimmed = raw.strip()
    return bool(trimmed) and not trimmed.startswith("#") and is_setting_line(trimmed)


def split_styles_and_contents(text: str) -> Tuple[str, str]:
    """(styles, contents): leading comment/blank/setting lines, then the rest."""
    styles: List[str] = []
    contents: List[str] = []
    in_styles = True

    for raw in split_document(text):
        trimmed = raw.strip()
        if in_styles and (not trimmed or trimmed.startswith("#") or _is_setting(raw)):
            styles.append(raw)
            continue
        in_styles = False
        contents.append(raw)

    return "\n".join(styles).rstrip(), "\n".join(contents).lstrip()


def build_settings_lines(settings: Settings) -> List[str]:
    """Settings record -> source lines, in a fixed order; unset fields are skipped."""
    s = settings
    lines: List[str] = []

    def text(key: str, value):
        if value:
            lines.append(f"{key}: {escape_source_text(str(value).strip())}")

    def colour(key: str, value):
        if value:
            lines.append(f"{key}: {color_to_source_token(value)}")

    def number(key: str, value):
        if value is not None:
            lines.append(f"{key}: {round_half_up(float(value))}")

    text("Title", s.title)
    text("Description", s.description)
    colour("Background", s.background)
    colour("Text colour", s.text_colour)
    colour("Default node text colour", s.default_node_text_colour)
    colour("Default group text colour", s.default_group_text_colour)
    number("Title size", s.title_size)
    text("Title position", s.title_position)
    colour("Default node colour", s.default_node_colour)
    text("Default node shape", s.default_node_shape)
    text("Default node shadow", s.default_node_shadow)
    text("Default node border", s.default_node_border)
    colour("Default link colour", s.default_link_colour)
    text("Default link style", s.default_link_style)
    number("Default link width", s.default_link_width)
    text("Direction", s.direction)
    number("Label wrap", s.label_wrap)
    number("Spacing along", s.spacing_along)
    number("Spacing across", s.spacing_across)
    return lines


def upsert_settings_block(text: str, settings: Settings) -> str:
    """
    Replace every settings line with lines built from `settings`.

    Settings lines in the leading block are rewritten there; settings lines
    found later in the document are dropped so no key appears twice.
    Comments and blank lines in the leading block are kept.
    """
    styles, contents = split_styles_and_contents(text)

    kept_styles = [l for l in (styles.split("\n") if styles else []) if not _is_setting(l)]
    while kept_styles and not kept_styles[-1].strip():
        kept_styles.pop()

    content_lines = contents.split("\n") if contents else []
    dropped = sum(1 for l in content_lines if _is_setting(l))
    kept_contents = "\n".join(l for l in content_lines if not _is_setting(l)).lstrip()

    new_lines = build_settings_lines(settings)
    block = kept_styles + ([""] if kept_styles and new_lines else []) + new_lines
    block_text = "\n".join(block).rstrip()

    logger.info(
        f"[PATCH] settings block: {len(new_lines)} line(s) written, "
        f"{dropped} later duplicate(s) dropped"
    )
    if not block_text:
        return kept_contents
    return f"{block_text}\n\n{kept_contents}".rstrip() + "\n"
