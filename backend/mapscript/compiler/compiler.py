# backend/mapscript/compiler/compiler.py
"""
MapScript compile entry point.

compile_mapscript() is a pure function of the document text: the whole
document is re-parsed on every call and nothing is kept between calls.
"""

import logging
import re
from typing import List, Union

from mapscript.config import MAPSCRIPT_FONT_NAME
from mapscript.compiler.builder import GraphBuilder
from mapscript.compiler.errors import CompileResult, MapScriptInputError
from mapscript.compiler.render_dot import render_dot

logger = logging.getLogger(__name__)


def split_lines(text: str) -> List[str]:
    return re.split(r"\r?\n", text)


def coerce_text(document: Union[str, bytes]) -> str:
    """Accept str, or UTF-8 bytes; anything else is not a document."""
    if isinstance(document, str):
        return document
    if isinstance(document, (bytes, bytearray)):
        try:
            return bytes(document).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MapScriptInputError(f"document is not valid UTF-8: {e}") from e
    raise MapScriptInputError(
        f"document must be text, got {type(document).__name__}"
    )


def compile_mapscript(document: Union[str, bytes], font_name: str = None) -> CompileResult:
    """
    Compile MapScript text to DOT.

    Malformed lines never abort the compile; they are reported in
    `CompileResult.errors` next to the best-effort output.

    Raises:
        MapScriptInputError: the input is not text
    """
    text = coerce_text(document)
    font = font_name or MAPSCRIPT_FONT_NAME

    builder = GraphBuilder(font_name=font)
    graph = builder.build(split_lines(text))
    dot = render_dot(graph, font_name=font)

    result = CompileResult(
        dot=dot,
        settings=graph.settings,
        errors=builder.issues,
        graph=graph,
    )
    logger.debug(f"[COMPILER] {result.get_summary()}")
    return result
