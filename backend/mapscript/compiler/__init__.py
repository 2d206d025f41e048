from mapscript.compiler.compiler import compile_mapscript
from mapscript.compiler.errors import (
    CompileIssue,
    CompileResult,
    IssueSeverity,
    MapScriptInputError,
)
from mapscript.compiler.render_dot import parse_element_id, render_dot
