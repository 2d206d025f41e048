import logging
from typing import List, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from mapscript.config import MAX_DOCUMENT_CHARS
from mapscript.schemas import (
    ClusterPatchRequest,
    ClusterRequest,
    DocumentRequest,
    EdgePatchRequest,
    EdgeRequest,
    GroupRequest,
    LinksRequest,
    NodePatchRequest,
    NodeRequest,
    SettingsRequest,
)
from mapscript.api.serializers import serialize_graph
from mapscript.compiler import compile_mapscript
from mapscript.editing import (
    PatchResult,
    add_quick_links,
    delete_cluster,
    delete_edge_line,
    delete_node_everywhere,
    group_nodes_into_cluster,
    join_document,
    set_cluster_label,
    set_cluster_style,
    set_edge,
    set_node_label,
    set_node_style,
    split_document,
    upsert_settings_block,
)
from mapscript.editing.styles import (
    default_edge_border_text,
    default_node_ui,
    read_cluster,
    read_edge,
    read_node,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================
# Helpers
# ============================================================

def _too_large(text: str) -> Optional[JSONResponse]:
    if len(text) <= MAX_DOCUMENT_CHARS:
        return None
    logger.warning(f"[API] rejected document of {len(text)} chars")
    return JSONResponse(
        status_code=413,
        content={
            "status": "error",
            "message": f"document is larger than {MAX_DOCUMENT_CHARS} characters",
        },
    )


def _compiled_payload(text: str) -> dict:
    result = compile_mapscript(text)
    return {
        "status": "success" if not result.errors else "warning",
        "summary": result.get_summary(),
        "compile": result.to_dict(),
    }


def _edit_response(lines: List[str], results: List[PatchResult]):
    """Shared response for every editing endpoint."""
    failures = [r for r in results if not r]
    if failures:
        return JSONResponse(
            status_code=404,
            content={
                "status": "unchanged",
                "message": failures[0].message,
                "patches": [r.to_dict() for r in results],
            },
        )

    text = join_document(lines)
    payload = _compiled_payload(text)
    payload["text"] = text
    payload["patches"] = [r.to_dict() for r in results]
    return payload


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"status": "not_found", "message": message})


# ============================================================
# Compile
# ============================================================

@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/compile")
def compile_document(request: DocumentRequest):
    """Compile MapScript text to DOT, with the issue list and built graph."""
    rejected = _too_large(request.text)
    if rejected:
        return rejected

    result = compile_mapscript(request.text)
    logger.info(f"[API] compile: {result.get_summary()}")
    return {
        "status": "success" if not result.errors else "warning",
        "summary": result.get_summary(),
        "dot": result.dot,
        "settings": result.settings.to_dict(),
        "errors": [issue.to_dict() for issue in result.errors],
        "stats": result.stats,
        "graph": serialize_graph(result.graph),
    }


# ============================================================
# Attribute patches
# ============================================================

@router.post("/patch/node")
def patch_node(request: NodePatchRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected

    lines = split_document(request.text)
    results = []
    if request.has("label") and request.label is not None:
        results.append(set_node_label(lines, request.node_id, request.label))
    style = request.patch_fields("fill", "border", "rounded", "text_size")
    results.append(set_node_style(lines, request.node_id, **style))
    return _edit_response(lines, results)


@router.post("/patch/cluster")
def patch_cluster(request: ClusterPatchRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected

    lines = split_document(request.text)
    results = []
    if request.has("label"):
        results.append(set_cluster_label(lines, request.cluster_id, request.label or ""))
    style = request.patch_fields("fill", "border", "text_colour", "text_size")
    results.append(set_cluster_style(lines, request.cluster_id, **style))
    return _edit_response(lines, results)


@router.post("/patch/edge")
def patch_edge(request: EdgePatchRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected

    lines = split_document(request.text)
    node_labels = None
    if request.from_node or request.to_node:
        graph = compile_mapscript(request.text).graph
        node_labels = {node_id: node.label for node_id, node in graph.nodes.items()}

    fields = request.patch_fields("label", "border")
    result = set_edge(
        lines,
        request.line_number,
        from_node=(request.from_node.old, request.from_node.new) if request.from_node else None,
        to_node=(request.to_node.old, request.to_node.new) if request.to_node else None,
        node_labels=node_labels,
        **fields,
    )
    return _edit_response(lines, [result])


# ============================================================
# Structural edits
# ============================================================

@router.post("/delete/edge")
def delete_edge(request: EdgeRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected
    lines = split_document(request.text)
    return _edit_response(lines, [delete_edge_line(lines, request.line_number)])


@router.post("/delete/node")
def delete_node(request: NodeRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected
    lines = split_document(request.text)
    return _edit_response(lines, [delete_node_everywhere(lines, request.node_id)])


@router.post("/delete/cluster")
def delete_grouping_box(request: ClusterRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected
    lines = split_document(request.text)
    return _edit_response(lines, [delete_cluster(lines, request.cluster_id)])


@router.post("/group")
def group_nodes(request: GroupRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected
    lines = split_document(request.text)
    return _edit_response(lines, [group_nodes_into_cluster(lines, request.node_ids, request.label)])


@router.post("/links")
def add_links(request: LinksRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected
    lines = split_document(request.text)
    result = add_quick_links(
        lines,
        request.source_id,
        request.labels,
        direction=request.direction,
        label=request.label,
        border=request.border,
    )
    return _edit_response(lines, [result])


@router.post("/settings")
def write_settings(request: SettingsRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected

    text = upsert_settings_block(request.text, request.settings.to_settings())
    payload = _compiled_payload(text)
    payload["text"] = text
    return payload


# ============================================================
# Inspection (editor values for one element)
# ============================================================

@router.post("/inspect/node")
def inspect_node(request: NodeRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected

    result = compile_mapscript(request.text)
    node = result.graph.nodes.get(request.node_id)
    definition = read_node(split_document(request.text), request.node_id)
    if node is None and definition is None:
        return _not_found(f"node '{request.node_id}' does not exist")

    return {
        "status": "success",
        "node_id": request.node_id,
        "label": node.label if node else definition["label"],
        "definition": definition,
        "defaults": default_node_ui(result.settings),
    }


@router.post("/inspect/cluster")
def inspect_cluster(request: ClusterRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected

    cluster = read_cluster(split_document(request.text), request.cluster_id)
    if cluster is None:
        return _not_found(f"'{request.cluster_id}' does not exist")
    return {"status": "success", "cluster": cluster}


@router.post("/inspect/edge")
def inspect_edge(request: EdgeRequest):
    rejected = _too_large(request.text)
    if rejected:
        return rejected

    edge = read_edge(split_document(request.text), request.line_number)
    if edge is None:
        return _not_found(f"line {request.line_number} is not an edge line")

    settings = compile_mapscript(request.text).settings
    return {
        "status": "success",
        "edge": edge,
        "default_border": default_edge_border_text(settings),
    }
