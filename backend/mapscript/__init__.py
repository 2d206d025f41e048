"""MapScript: a line-oriented diagram language compiled to Graphviz DOT."""

from mapscript.compiler import compile_mapscript

__version__ = "0.1.0"
