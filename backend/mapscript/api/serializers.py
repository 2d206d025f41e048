from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Optional

from mapscript.compiler.types import Cluster, Graph


PRIMITIVE_TYPES = (str, int, float, bool, type(None))


def serialize_model(obj: Any):
    """
    Serialize model objects into JSON-compatible structures.
    Deterministic.
    Tolerant to primitives.
    """

    if isinstance(obj, PRIMITIVE_TYPES):
        return obj

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, (list, tuple)):
        return [serialize_model(item) for item in obj]

    if isinstance(obj, dict):
        return {str(k): serialize_model(v) for k, v in obj.items()}

    if is_dataclass(obj):
        return {
            f.name: serialize_model(getattr(obj, f.name))
            for f in fields(obj)
            if not f.name.startswith("_")
        }

    return str(obj)


def _serialize_cluster(cluster: Cluster) -> dict:
    # Children by id; every cluster is listed once at the top level
    return {
        "id": cluster.id,
        "label": cluster.label,
        "depth": cluster.depth,
        "source_line": cluster.source_line,
        "style_inner": cluster.style_inner,
        "attrs": serialize_model(cluster.attrs),
        "node_ids": list(cluster.node_ids),
        "children": [child.id for child in cluster.children],
    }


def serialize_graph(graph: Optional[Graph]) -> Optional[dict]:
    if graph is None:
        return None
    return {
        "nodes": [serialize_model(node) for node in graph.nodes.values()],
        "edges": [serialize_model(edge) for edge in graph.edges],
        "clusters": [_serialize_cluster(c) for c in graph.clusters],
    }
