"""
Compile issues and results.

Malformed content never aborts a compile: every problem becomes a
CompileIssue collected next to the best-effort output, because a document
being edited interactively is malformed most of the time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from mapscript.compiler.types import Graph, Settings


class MapScriptInputError(ValueError):
    """Raised when the compiler input is not text at all."""


class IssueSeverity(Enum):
    ERROR = "error"      # Line skipped while building the graph
    WARNING = "warning"  # Line used, but partly ignored
    INFO = "info"


@dataclass
class CompileIssue:
    """A single problem found on one source line"""
    code: str           # Machine-readable issue code
    message: str        # Human-readable description
    line: int           # 1-based source line number
    text: str = ""      # Original line text
    severity: IssueSeverity = IssueSeverity.ERROR

    def __str__(self) -> str:
        return f"Line {self.line}: {self.message}"

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": str(self),
            "line": self.line,
            "text": self.text,
        }


@dataclass
class CompileResult:
    """Result of compiling one document"""
    dot: str
    settings: "Settings"
    errors: List[CompileIssue] = field(default_factory=list)
    graph: Optional["Graph"] = None

    @property
    def is_valid(self) -> bool:
        return self.error_count == 0

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.errors if i.severity == IssueSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.errors if i.severity == IssueSeverity.WARNING)

    @property
    def stats(self) -> dict:
        if self.graph is None:
            return {"nodes": 0, "edges": 0, "clusters": 0}
        return {
            "nodes": len(self.graph.nodes),
            "edges": len(self.graph.edges),
            "clusters": len(self.graph.clusters),
        }

    def get_summary(self) -> str:
        """Get human-readable summary"""
        status = "Valid" if self.is_valid else "Invalid"
        stats = self.stats
        return (
            f"{status} | Nodes: {stats['nodes']}, Edges: {stats['edges']}, "
            f"Clusters: {stats['clusters']} | "
            f"Errors: {self.error_count}, Warnings: {self.warning_count}"
        )

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "dot": self.dot,
            "settings": self.settings.to_dict(),
            "errors": [i.to_dict() for i in self.errors],
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "stats": self.stats,
        }
